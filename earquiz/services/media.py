import threading
import uuid
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class MediaBlob:
    data: bytes
    mime_type: str


class MediaStore:
    """In-memory byte buffers addressed by revocable ``media:`` locators."""

    def __init__(self):
        self._blobs: Dict[str, MediaBlob] = {}
        self._lock = threading.Lock()

    def create(self, data: bytes, mime_type: str) -> str:
        locator = f"media:{uuid.uuid4().hex}"
        with self._lock:
            self._blobs[locator] = MediaBlob(bytes(data), mime_type)
        return locator

    def resolve(self, locator: str) -> MediaBlob:
        with self._lock:
            try:
                return self._blobs[locator]
            except KeyError:
                raise LookupError(f"unknown or revoked locator: {locator}") from None

    def revoke(self, locator: str) -> None:
        # unknown locators are ignored
        with self._lock:
            self._blobs.pop(locator, None)

    def __contains__(self, locator) -> bool:
        with self._lock:
            return locator in self._blobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._blobs)


__all__ = ["MediaBlob", "MediaStore"]
