"""Audio output on the host device.

One :class:`DevicePlayer` wraps one media blob.  Decoding goes through
soundfile, output through a sounddevice (PortAudio) stream.  While the stream
runs a monitor thread emits ``timeupdate`` every ``interval`` seconds and
``ended`` once the last frame was handed to the device.
"""

from __future__ import annotations

import io
import logging
import math
import threading
from typing import Callable, Dict, List, Optional

import numpy as np
import soundfile as sf

try:
    import sounddevice as sd
except Exception as e:  # PortAudio missing on headless hosts
    sd = None
    _sounddevice_import_error = e

from .media import MediaBlob, MediaStore

logger = logging.getLogger(__name__)

EVENTS = ("timeupdate", "ended")


class DevicePlayer:
    def __init__(self, blob: MediaBlob, interval: float = 0.25):
        self._blob = blob
        self.interval = interval
        self._frames: Optional[np.ndarray] = None
        self._sr: int = 0
        self._pos = 0
        self._lock = threading.Lock()
        self._stream = None
        self._halt = threading.Event()
        self._transport = threading.Lock()
        self._listeners: Dict[str, List[Callable[[], None]]] = {name: [] for name in EVENTS}

    # -- events ---------------------------------------------------------------
    def subscribe(self, event: str, callback: Callable[[], None]) -> None:
        self._listeners[event].append(callback)

    def unsubscribe(self, event: str, callback: Callable[[], None]) -> None:
        try:
            self._listeners[event].remove(callback)
        except ValueError:
            pass

    def _emit(self, event: str) -> None:
        for callback in list(self._listeners[event]):
            callback()

    # -- decoding -------------------------------------------------------------
    def _prime(self) -> None:
        if self._frames is not None:
            return
        data, sr = sf.read(io.BytesIO(self._blob.data), dtype="float32", always_2d=True)
        self._frames = data
        self._sr = sr

    def duration(self) -> float:
        try:
            self._prime()
        except Exception:
            return math.nan
        if not self._sr:
            return math.nan
        return len(self._frames) / self._sr

    @property
    def position(self) -> float:
        with self._lock:
            if not self._sr:
                return 0.0
            return self._pos / self._sr

    @position.setter
    def position(self, seconds: float) -> None:
        with self._lock:
            if not self._sr or self._frames is None:
                self._pos = 0
                return
            frame = int(round(float(seconds) * self._sr))
            self._pos = min(max(frame, 0), len(self._frames))

    # -- transport ------------------------------------------------------------
    def play(self) -> None:
        if sd is None:
            raise RuntimeError(f"sounddevice not available: {_sounddevice_import_error}")
        self._prime()
        channels = self._frames.shape[1]

        def callback(outdata, frames, time_info, status):
            with self._lock:
                chunk = self._frames[self._pos:self._pos + frames]
                self._pos += len(chunk)
            outdata[:len(chunk)] = chunk
            if len(chunk) < frames:
                outdata[len(chunk):] = 0
                raise sd.CallbackStop()

        with self._transport:
            if self._stream is not None:
                return
            halt = threading.Event()
            stream = sd.OutputStream(
                samplerate=self._sr,
                channels=channels,
                dtype="float32",
                callback=callback,
            )
            stream.start()
            self._halt, self._stream = halt, stream
        threading.Thread(target=self._monitor, args=(halt, stream), daemon=True).start()

    def pause(self) -> None:
        with self._transport:
            self._halt.set()
            stream, self._stream = self._stream, None
        _close(stream)

    def _monitor(self, halt: threading.Event, stream) -> None:
        while not halt.wait(self.interval):
            self._emit("timeupdate")
            with self._lock:
                finished = self._frames is not None and self._pos >= len(self._frames)
            if not finished:
                continue
            with self._transport:
                # paused or restarted since the last check
                if halt.is_set() or halt is not self._halt:
                    return
                halt.set()
                self._stream = None
            _close(stream)
            self._emit("ended")
            return


def _close(stream) -> None:
    if stream is None:
        return
    try:
        stream.stop()
        stream.close()
    except Exception as e:
        logger.warning("closing audio stream failed: %s", e)


def device_player_factory(store: MediaStore) -> Callable[[str], DevicePlayer]:
    """Return a factory creating a :class:`DevicePlayer` per locator."""

    def factory(locator: str) -> DevicePlayer:
        return DevicePlayer(store.resolve(locator))

    return factory


__all__ = ["EVENTS", "DevicePlayer", "device_player_factory"]
