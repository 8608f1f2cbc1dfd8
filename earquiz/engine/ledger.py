from __future__ import annotations

import logging
import threading

from ..services.media import MediaStore

logger = logging.getLogger(__name__)


class ResourceLedger:
    """Owner of every live media locator.

    A locator leaves the ledger the moment it is revoked, so each one is
    revoked at most once.  Revocation errors are logged and skipped.
    """

    def __init__(self, store: MediaStore):
        self.store = store
        self._live: set[str] = set()
        self._lock = threading.Lock()

    @property
    def live(self) -> frozenset:
        with self._lock:
            return frozenset(self._live)

    def __len__(self) -> int:
        with self._lock:
            return len(self._live)

    def register(self, locator: str) -> None:
        with self._lock:
            self._live.add(locator)

    def release(self, *locators: str) -> None:
        with self._lock:
            doomed = [loc for loc in locators if loc in self._live]
            self._live.difference_update(doomed)
        self._revoke(doomed)

    def release_all(self) -> None:
        with self._lock:
            doomed = list(self._live)
            self._live.clear()
        self._revoke(doomed)
        if doomed:
            logger.debug("released %d media locators", len(doomed))

    def _revoke(self, locators) -> None:
        for locator in locators:
            try:
                self.store.revoke(locator)
            except Exception as e:
                logger.warning("revoking %s failed: %s", locator, e)


__all__ = ["ResourceLedger"]
