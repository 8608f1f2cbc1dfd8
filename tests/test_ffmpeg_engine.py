import shutil

import pytest

from earquiz.engine.ledger import ResourceLedger
from earquiz.engine.transcode import TranscodeOrchestrator
from earquiz.models.quiz import InputAsset, Quality
from earquiz.services.ffmpeg import FFmpegEngine

HAVE_FFMPEG = shutil.which("ffmpeg") is not None
needs_ffmpeg = pytest.mark.skipif(not HAVE_FFMPEG, reason="ffmpeg not installed")


def test_file_system_ops(tmp_path):
    engine = FFmpegEngine(tmp_path / "vfs")
    engine.root.mkdir()
    engine.write("a_input.wav", b"1")
    engine.write("a_out.mp3", b"2")
    engine.write("b_input.wav", b"3")
    assert engine.read("a_out.mp3") == b"2"
    assert engine.list("a_") == ["a_input.wav", "a_out.mp3"]
    engine.delete("a_out.mp3")
    engine.delete("a_out.mp3")
    assert engine.list() == ["a_input.wav", "b_input.wav"]


@pytest.mark.parametrize("name", ["", "..", "../x", "dir/x"])
def test_names_stay_inside_scratch_dir(tmp_path, name):
    engine = FFmpegEngine(tmp_path)
    with pytest.raises(ValueError):
        engine.write(name, b"x")


def test_missing_binary_fails_load(tmp_path):
    engine = FFmpegEngine(tmp_path / "vfs", binary="ffmpeg-does-not-exist")
    with pytest.raises(RuntimeError):
        engine.load()
    assert not engine.ready
    assert "ffmpeg-does-not-exist" in engine.load_error


def test_execute_requires_load(tmp_path):
    engine = FFmpegEngine(tmp_path)
    with pytest.raises(RuntimeError):
        engine.execute(["-version"])


def test_terminate_removes_scratch_dir(tmp_path):
    engine = FFmpegEngine(tmp_path / "vfs")
    engine.root.mkdir()
    engine.write("x", b"1")
    engine.terminate()
    assert not engine.root.exists()
    assert engine.list() == []


@needs_ffmpeg
def test_real_conversion(tmp_path, sine_file, store):
    engine = FFmpegEngine(tmp_path / "vfs")
    engine.load()
    ledger = ResourceLedger(store)
    tracks = TranscodeOrchestrator(engine, store, ledger).convert(InputAsset.from_path(sine_file))
    by_quality = {t.quality: t for t in tracks}
    assert set(by_quality) == set(Quality)
    original = store.resolve(by_quality[Quality.ORIGINAL].locator)
    assert original.data[:4] == b"RIFF"
    mp3 = store.resolve(by_quality[Quality.MP3_128].locator).data
    assert mp3[:3] == b"ID3" or mp3[0] == 0xFF
    assert engine.list() == []


@needs_ffmpeg
def test_real_failure_is_reported(tmp_path):
    engine = FFmpegEngine(tmp_path / "vfs")
    engine.load()
    engine.write("bad_input.wav", b"not audio")
    assert engine.execute(["-i", "bad_input.wav", "-t", "120", "-c", "copy", "bad_out.wav"]) is False
