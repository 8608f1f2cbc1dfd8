"""Quiz track rendering.

Turns one uploaded file into the three quiz variants by running ffmpeg once
per plan, strictly one after another: the engine's scratch directory is shared
by every invocation.  Outputs are wrapped as media blobs and registered with
the ledger before anything else gets to see them.  A failed run rolls back the
blobs it created, and the engine files of the run are removed in every case.
"""

from __future__ import annotations

import logging
import random
import re
import threading
import time
from typing import Callable, List, Optional, Sequence

from ..errors import NoInput, NotReady, QuizError, TranscodeFailure
from ..models import specs
from ..models.quiz import NO_EXTENSION, InputAsset, Quality, QuizTrack, track_id
from ..services.media import MediaStore
from .ledger import ResourceLedger
from .tracks import shuffle

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Quality, str], None]


def safe_stem(base_name: str) -> str:
    stem = re.sub(r"[^A-Za-z0-9_\-]+", "_", base_name).strip("_-")
    return stem or "upload"


def safe_extension(extension: str) -> str:
    return re.sub(r"[^A-Za-z0-9]+", "", extension) or NO_EXTENSION


class TranscodeOrchestrator:
    def __init__(
        self,
        engine,
        store: MediaStore,
        ledger: ResourceLedger,
        plans: Sequence[specs.TranscodePlan] = specs.PLANS,
        cap_seconds: int = specs.MAX_PLAY_SECONDS,
        rng: Optional[random.Random] = None,
    ):
        self.engine = engine
        self.store = store
        self.ledger = ledger
        self.plans = tuple(plans)
        self.cap_seconds = cap_seconds
        self.rng = rng
        self._last_stamp = 0
        self._stamp_lock = threading.Lock()

    def new_session_id(self, asset: InputAsset) -> str:
        with self._stamp_lock:
            stamp = max(time.time_ns(), self._last_stamp + 1)
            self._last_stamp = stamp
        return f"{safe_stem(asset.base_name)}_{stamp}"

    def convert(self, asset: Optional[InputAsset], progress: Optional[ProgressCallback] = None) -> List[QuizTrack]:
        if not self.engine.ready:
            raise NotReady(self.engine.load_error)
        if asset is None:
            raise NoInput()

        report = progress or (lambda quality, state: None)
        session_id = self.new_session_id(asset)
        extension = safe_extension(asset.extension)
        input_name = f"{session_id}_input.{extension}"
        produced: List[QuizTrack] = []
        current = None
        logger.info("converting %s (%d bytes) as %s", asset.name, asset.size, session_id)
        try:
            try:
                self.engine.write(input_name, asset.data)
                for plan in self.plans:
                    current = plan.quality
                    report(plan.quality, "rendering")
                    produced.append(self._render(plan, asset, session_id, input_name, extension))
                    report(plan.quality, "done")
            except Exception as e:
                if current is not None:
                    report(current, "error")
                self.ledger.release(*[t.locator for t in produced])
                if isinstance(e, QuizError):
                    raise
                raise TranscodeFailure(str(e)) from e
            return shuffle(produced, self.rng)
        finally:
            self._cleanup(session_id)

    def _render(
        self, plan: specs.TranscodePlan, asset: InputAsset, session_id: str, input_name: str, extension: str
    ) -> QuizTrack:
        output_name = plan.output_name(session_id, extension)
        if not self.engine.execute(plan.command(input_name, output_name, self.cap_seconds)):
            raise TranscodeFailure(f"ffmpeg failed rendering {plan.quality.value}")
        data = self.engine.read(output_name)
        if not data:
            raise TranscodeFailure(f"ffmpeg produced no output for {plan.quality.value}")
        locator = self.store.create(data, plan.mime_for(asset))
        self.ledger.register(locator)
        return QuizTrack(
            id=track_id(session_id, plan.quality),
            quality=plan.quality,
            file_name=output_name,
            locator=locator,
        )

    def _cleanup(self, session_id: str) -> None:
        try:
            names = self.engine.list(f"{session_id}_")
        except Exception as e:
            logger.warning("listing engine files for %s failed: %s", session_id, e)
            return
        for name in names:
            try:
                self.engine.delete(name)
            except Exception as e:
                logger.warning("deleting engine file %s failed: %s", name, e)


__all__ = ["safe_stem", "safe_extension", "TranscodeOrchestrator"]
