"""The quiz session.

:class:`QuizSession` is the one object that owns the ffmpeg engine, the media
store, the ledger, the playback controller and the current track set.  The
web layer keeps a single instance; tests build one from fakes.
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..errors import ConversionInProgress, EngineLoadFailure, NoInput, NotReady, QuizError
from ..models import specs
from ..models.quiz import InputAsset, Quality, QuizTrack, parse_quality
from ..services.media import MediaStore
from .ledger import ResourceLedger
from .playback import PlaybackController
from .scoring import AnswerMap, Report, check_answers, new_answer_map
from .transcode import TranscodeOrchestrator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Feedback:
    text: str
    tone: str  # "success" | "partial" | "error"

    def to_dict(self) -> dict:
        return {"text": self.text, "tone": self.tone}


def _plan_states(state: str = "queued") -> Dict[str, Dict[str, Any]]:
    return {plan.quality.value: {"state": state, "message": ""} for plan in specs.PLANS}


def idle_progress() -> Dict[str, Any]:
    return {
        "pct": 0,
        "status": "idle",
        "message": "",
        "done": False,
        "error": None,
        "plans": _plan_states(),
    }


class QuizSession:
    def __init__(
        self,
        engine,
        player_factory: Optional[Callable[[str], object]] = None,
        store: Optional[MediaStore] = None,
        rng=None,
    ):
        self.engine = engine
        self.store = store or MediaStore()
        self.ledger = ResourceLedger(self.store)
        self.orchestrator = TranscodeOrchestrator(engine, self.store, self.ledger, rng=rng)
        if player_factory is None:
            from ..services.player import device_player_factory

            player_factory = device_player_factory(self.store)
        self.controller = PlaybackController(player_factory)
        self.tracks: List[QuizTrack] = []
        self.answers: AnswerMap = {}
        self.feedback: Optional[Feedback] = None
        self._progress = idle_progress()
        self._converting = False
        self._lock = threading.RLock()

    # -- state ----------------------------------------------------------------
    @property
    def converting(self) -> bool:
        return self._converting

    @property
    def progress(self) -> Dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._progress)

    def update_progress(self, plans: Optional[Dict[str, Dict[str, Any]]] = None, **fields) -> None:
        with self._lock:
            self._progress.update({k: v for k, v in fields.items() if v is not None})
            for key, val in (plans or {}).items():
                self._progress["plans"].setdefault(key, {"state": "queued", "message": ""}).update(val)

    def _say(self, text: str, tone: str) -> None:
        self.feedback = Feedback(text, tone)

    def _fail(self, error: QuizError) -> QuizError:
        self._say(error.message, "error")
        return error

    def track_at(self, slot: int) -> Optional[QuizTrack]:
        """Track shown at 1-based ``slot``, or ``None``."""
        if 1 <= slot <= len(self.tracks):
            return self.tracks[slot - 1]
        return None

    def public_tracks(self) -> List[Dict[str, Any]]:
        # slots only: ids and file names give the quality away
        sounding = self.controller.sounding
        rows = []
        for slot, track in enumerate(self.tracks, start=1):
            guess = self.answers.get(track.id)
            rows.append({
                "slot": slot,
                "answer": guess.value if guess else None,
                "playing": track.id == sounding,
            })
        return rows

    # -- engine ---------------------------------------------------------------
    def load_engine(self) -> None:
        try:
            self.engine.load()
        except Exception as e:
            logger.error("loading ffmpeg failed: %s", e)
            raise self._fail(EngineLoadFailure(str(e))) from e
        self._say("ffmpeg loaded.", "success")

    # -- conversion -------------------------------------------------------------
    def begin_conversion(self, asset: Optional[InputAsset]) -> None:
        """Check the preconditions of a conversion and claim the session for it."""
        with self._lock:
            if self._converting:
                raise ConversionInProgress()
            if not self.engine.ready:
                raise self._fail(NotReady(self.engine.load_error))
            if asset is None:
                raise self._fail(NoInput())
            self._converting = True
            self._progress = idle_progress()
            self.update_progress(pct=0, status="converting", message="Converting…")

    def run_conversion(self, asset: InputAsset) -> List[QuizTrack]:
        """Replace the current track set with one rendered from ``asset``.

        Must follow a successful :meth:`begin_conversion`.
        """
        try:
            self.reset()
            done = []

            def on_progress(quality: Quality, state: str) -> None:
                if state == "done":
                    done.append(quality)
                self.update_progress(
                    pct=int(100 * len(done) / len(specs.PLANS)),
                    message=f"Rendering {quality.label}…" if state == "rendering" else None,
                    plans={quality.value: {"state": state}},
                )

            try:
                tracks = self.orchestrator.convert(asset, progress=on_progress)
                with self._lock:
                    self.controller.attach(tracks)
                    self.tracks = tracks
                    self.answers = new_answer_map(tracks)
            except QuizError as e:
                self.update_progress(status="error", message=e.message, error=e.kind, done=True)
                raise self._fail(e)
            except Exception as e:
                self.reset()
                self.update_progress(status="error", message="Processing failed", error=str(e), done=True)
                raise
            self._say("Conversion finished. Play the tracks and guess their quality.", "success")
            self.update_progress(pct=100, status="done", message="Ready", done=True)
            return tracks
        finally:
            self._converting = False

    def convert(self, asset: Optional[InputAsset]) -> List[QuizTrack]:
        self.begin_conversion(asset)
        return self.run_conversion(asset)

    # -- playback ---------------------------------------------------------------
    def _playback(self, action: Callable[[], None]) -> None:
        try:
            action()
        except QuizError as e:
            raise self._fail(e)

    def play(self, track_id: str) -> None:
        self._playback(lambda: self.controller.play(track_id))

    def stop(self, track_id: str) -> None:
        self.controller.stop(track_id)

    def toggle(self, track_id: str) -> None:
        self._playback(lambda: self.controller.toggle(track_id))

    def seek_by(self, offset_seconds: float) -> None:
        self.controller.seek_by(offset_seconds)

    # -- answers ----------------------------------------------------------------
    def set_answer(self, track_id: str, value) -> None:
        if track_id not in self.answers:
            raise KeyError(track_id)
        self.answers[track_id] = parse_quality(value)

    def check_answers(self) -> Report:
        try:
            report = check_answers(self.tracks, self.answers)
        except QuizError as e:
            raise self._fail(e)
        self._say(report.message, report.tone)
        return report

    # -- lifecycle --------------------------------------------------------------
    def reset(self) -> None:
        """Drop the current track set and free its media."""
        with self._lock:
            self.controller.detach()
            self.ledger.release_all()
            self.tracks = []
            self.answers = {}

    def teardown(self) -> None:
        self.reset()
        self.engine.terminate()
        logger.info("quiz session torn down")


__all__ = ["Feedback", "idle_progress", "QuizSession"]
