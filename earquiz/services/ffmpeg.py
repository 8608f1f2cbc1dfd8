"""ffmpeg wrapper used by the transcoder.

The engine owns a private scratch directory that plays the role of its file
system: callers write inputs into it by name, run ffmpeg with arguments that
refer to those names, and read the outputs back.  Nothing outside the
directory is reachable through this interface.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from .. import settings

logger = logging.getLogger(__name__)


def run(cmd, cwd=None, timeout=None):
    # subprocess.run kills the child itself when the timeout expires
    return subprocess.run(cmd, cwd=cwd, capture_output=True, text=True, timeout=timeout)


def ffmpeg_version(binary: str = "ffmpeg") -> str | None:
    try:
        proc = run([binary, "-version"], timeout=30)
    except (OSError, subprocess.TimeoutExpired):
        return None
    if proc.returncode == 0 and proc.stdout:
        return proc.stdout.splitlines()[0]
    return None


class FFmpegEngine:
    """ffmpeg bound to a scratch directory.

    ``load()`` must succeed once before :attr:`ready` turns true.  A failed
    load keeps the reason in :attr:`load_error`.
    """

    def __init__(self, root, binary: str = settings.FFMPEG_BIN, timeout: int = settings.FFMPEG_TIMEOUT):
        self.root = Path(root)
        self.binary = binary
        self.timeout = timeout
        self.version: Optional[str] = None
        self.load_error: Optional[str] = None
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    def load(self) -> str:
        if self._ready:
            return self.version
        version = ffmpeg_version(self.binary)
        if version is None:
            self.load_error = f"{self.binary} is not available"
            raise RuntimeError(self.load_error)
        self.root.mkdir(parents=True, exist_ok=True)
        self.version = version
        self.load_error = None
        self._ready = True
        logger.info("ffmpeg ready: %s", version)
        return version

    def _path(self, name: str) -> Path:
        if not name or name in (".", "..") or os.sep in name or "/" in name:
            raise ValueError(f"invalid file name: {name!r}")
        return self.root / name

    def write(self, name: str, data: bytes) -> None:
        self._path(name).write_bytes(data)

    def read(self, name: str) -> bytes:
        return self._path(name).read_bytes()

    def list(self, prefix: str = "") -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.name for p in self.root.iterdir() if p.is_file() and p.name.startswith(prefix))

    def delete(self, name: str) -> None:
        self._path(name).unlink(missing_ok=True)

    def execute(self, args: List[str]) -> bool:
        """Run ffmpeg with ``args`` inside the scratch directory.

        Returns ``False`` when ffmpeg exits non-zero, cannot be started or
        runs past the timeout; the tail of stderr goes to the log.
        """
        if not self._ready:
            raise RuntimeError("ffmpeg engine is not loaded")
        cmd = [self.binary, "-y", "-nostdin", "-hide_banner", "-loglevel", "error", *args]
        try:
            proc = run(cmd, cwd=self.root, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            logger.error("ffmpeg timed out after %ss: %s", self.timeout, " ".join(args))
            return False
        except OSError as e:
            logger.error("ffmpeg could not start: %s", e)
            return False
        if proc.returncode != 0:
            err = (proc.stderr or "")[-400:]
            logger.error("ffmpeg failed (%s): %s", proc.returncode, err)
            return False
        return True

    def terminate(self) -> None:
        self._ready = False
        shutil.rmtree(self.root, ignore_errors=True)


__all__ = ["run", "ffmpeg_version", "FFmpegEngine"]
