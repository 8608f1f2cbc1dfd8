"""Audition control.

The controller holds one player per quiz track and lets at most one of them
sound.  Listeners are attached when a track set is installed and removed again
on :meth:`PlaybackController.detach`, which the session calls before a new
conversion and on teardown.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..errors import PlaybackFailure
from ..models.quiz import QuizTrack
from ..models.specs import MAX_PLAY_SECONDS

logger = logging.getLogger(__name__)


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


class PlaybackController:
    def __init__(self, player_factory: Callable[[str], object], cap_seconds: float = MAX_PLAY_SECONDS):
        self.player_factory = player_factory
        self.cap_seconds = cap_seconds
        self._players: Dict[str, object] = {}
        self._subscriptions: List[Tuple[object, str, Callable[[], None]]] = []
        self._sounding: Optional[str] = None
        self._lock = threading.RLock()

    @property
    def sounding(self) -> Optional[str]:
        return self._sounding

    def player(self, track_id: str):
        return self._players.get(track_id)

    def attach(self, tracks: Sequence[QuizTrack]) -> None:
        with self._lock:
            self.detach()
            try:
                for track in tracks:
                    player = self.player_factory(track.locator)
                    self._players[track.id] = player
                    self._subscribe(player, "timeupdate", lambda tid=track.id: self._on_time_update(tid))
                    self._subscribe(player, "ended", lambda tid=track.id: self._on_ended(tid))
            except Exception:
                self.detach()
                raise

    def detach(self) -> None:
        with self._lock:
            for player in self._players.values():
                self._halt(player)
            for player, event, callback in self._subscriptions:
                player.unsubscribe(event, callback)
            self._subscriptions = []
            self._players = {}
            self._sounding = None

    def _subscribe(self, player, event: str, callback: Callable[[], None]) -> None:
        player.subscribe(event, callback)
        self._subscriptions.append((player, event, callback))

    def _halt(self, player) -> None:
        try:
            player.pause()
            player.position = 0
        except Exception as e:
            logger.warning("stopping player failed: %s", e)

    def play(self, track_id: str) -> None:
        with self._lock:
            target = self._players.get(track_id)
            if target is None:
                return
            if self._sounding is not None:
                self._halt(self._players[self._sounding])
                self._sounding = None
            target.position = 0
            try:
                target.play()
            except Exception as e:
                logger.error("player rejected %s: %s", track_id, e)
                self._halt(target)
                raise PlaybackFailure(str(e)) from e
            self._sounding = track_id

    def stop(self, track_id: str) -> None:
        with self._lock:
            if self._sounding != track_id:
                return
            self._halt(self._players[track_id])
            self._sounding = None

    def toggle(self, track_id: str) -> None:
        with self._lock:
            if self._sounding == track_id:
                self.stop(track_id)
            else:
                self.play(track_id)

    def seek_by(self, offset_seconds: float) -> None:
        with self._lock:
            if self._sounding is None:
                return
            player = self._players[self._sounding]
            duration = player.duration()
            if duration is None or not math.isfinite(duration):
                return
            player.position = clamp(player.position + float(offset_seconds), 0.0, duration)
            self._enforce_cap(self._sounding)

    def elapsed(self) -> float:
        """Position of the sounding track, never past the audition cap."""
        with self._lock:
            if self._sounding is None:
                return 0.0
            return min(self._players[self._sounding].position, self.cap_seconds)

    def _enforce_cap(self, track_id: str) -> None:
        player = self._players[track_id]
        if player.position >= self.cap_seconds:
            logger.info("audition cap of %ss reached on %s", self.cap_seconds, track_id)
            self._halt(player)
            self._sounding = None

    def _on_time_update(self, track_id: str) -> None:
        with self._lock:
            if self._sounding == track_id:
                self._enforce_cap(track_id)

    def _on_ended(self, track_id: str) -> None:
        with self._lock:
            player = self._players.get(track_id)
            if player is None:
                return
            player.position = 0
            if self._sounding == track_id:
                self._sounding = None


__all__ = ["clamp", "PlaybackController"]
