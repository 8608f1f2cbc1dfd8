import math
import os
import sys

import numpy as np
import soundfile as sf
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from earquiz import create_app
from earquiz.engine.session import QuizSession
from earquiz.models.quiz import InputAsset
from earquiz.services.media import MediaStore


class FakeEngine:
    """In-memory stand-in for the ffmpeg engine.

    ``execute`` "renders" by copying the input with a marker naming the
    output, and fails for any output name containing one of ``fail_on``.
    """

    def __init__(self, ready=True):
        self._ready = ready
        self.load_error = None
        self.files = {}
        self.calls = []
        self.writes = []
        self.deleted = []
        self.fail_on = set()
        self.empty_on = set()
        self.terminated = False

    @property
    def ready(self):
        return self._ready

    def load(self):
        self._ready = True
        return "ffmpeg version fake"

    def write(self, name, data):
        self.writes.append(name)
        self.files[name] = bytes(data)

    def read(self, name):
        return self.files[name]

    def list(self, prefix=""):
        return sorted(n for n in self.files if n.startswith(prefix))

    def delete(self, name):
        self.deleted.append(name)
        self.files.pop(name, None)

    def execute(self, args):
        self.calls.append(list(args))
        out = args[-1]
        if any(token in out for token in self.fail_on):
            return False
        src = self.files[args[args.index("-i") + 1]]
        self.files[out] = b"" if any(t in out for t in self.empty_on) else out.encode() + b":" + src
        return True

    def terminate(self):
        self.terminated = True
        self._ready = False


class FakePlayer:
    """Player driven by a manual clock: call :meth:`advance` to make time pass."""

    def __init__(self, locator, duration=180.0, fail_play=False):
        self.locator = locator
        self._duration = duration
        self.fail_play = fail_play
        self.position = 0.0
        self.playing = False
        self.listeners = {"timeupdate": [], "ended": []}
        self.peak = 0.0
        self.ended = 0

    def subscribe(self, event, callback):
        self.listeners[event].append(callback)

    def unsubscribe(self, event, callback):
        self.listeners[event].remove(callback)

    def duration(self):
        return self._duration

    def play(self):
        if self.fail_play:
            raise RuntimeError("device busy")
        self.playing = True

    def pause(self):
        self.playing = False

    def advance(self, seconds, step=0.25):
        """Move the clock forward in ``step`` increments, emitting events."""
        elapsed = 0.0
        while elapsed < seconds and self.playing:
            self.position += step
            elapsed += step
            if not math.isnan(self._duration) and self.position >= self._duration:
                self.position = self._duration
                self.peak = max(self.peak, self.position)
                self.playing = False
                self.ended += 1
                for cb in list(self.listeners["ended"]):
                    cb()
                return
            self.peak = max(self.peak, self.position)
            for cb in list(self.listeners["timeupdate"]):
                cb()


class PlayerFactory:
    def __init__(self, duration=180.0):
        self.duration = duration
        self.fail_play = False
        self.created = {}

    def __call__(self, locator):
        player = FakePlayer(locator, duration=self.duration, fail_play=self.fail_play)
        self.created[locator] = player
        return player


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def store():
    return MediaStore()


@pytest.fixture
def players():
    return PlayerFactory()


@pytest.fixture
def quiz(engine, players, store):
    return QuizSession(engine, player_factory=players, store=store)


@pytest.fixture
def client(quiz, tmp_path, monkeypatch):
    monkeypatch.setenv('WORK_DIR', str(tmp_path / 'work'))
    app = create_app(quiz)
    app.config['TESTING'] = True
    with app.test_client() as c:
        yield c


@pytest.fixture
def sine_file(tmp_path):
    sr = 48000
    t = np.linspace(0, 1.0, sr, False)
    wave = 0.1 * np.sin(2 * np.pi * 440 * t)
    path = tmp_path / 'song.wav'
    sf.write(path, wave, sr)
    return path


@pytest.fixture
def song(sine_file):
    return InputAsset.from_path(sine_file)
