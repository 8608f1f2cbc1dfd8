from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

# extension used when the uploaded name has none
NO_EXTENSION = "orig"


class Quality(str, Enum):
    MP3_128 = "mp3_128"
    MP3_320 = "mp3_320"
    ORIGINAL = "original"

    @property
    def label(self) -> str:
        return QUALITY_LABELS[self]


QUALITY_LABELS = {
    Quality.MP3_128: "mp3 128K",
    Quality.MP3_320: "mp3 320K",
    Quality.ORIGINAL: "Original",
}


def parse_quality(value) -> Quality | None:
    """Map a submitted guess to a :class:`Quality`; empty values mean unanswered."""
    if value is None or value == "":
        return None
    if isinstance(value, Quality):
        return value
    return Quality(value)


@dataclass(frozen=True)
class InputAsset:
    """The file chosen for a quiz run."""

    name: str
    data: bytes
    mime_type: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def base_name(self) -> str:
        dot = self.name.rfind(".")
        return self.name[:dot] if dot > 0 else self.name

    @property
    def extension(self) -> str:
        dot = self.name.rfind(".")
        return self.name[dot + 1:] if dot > 0 else NO_EXTENSION

    @classmethod
    def from_path(cls, path, mime_type: str | None = None) -> "InputAsset":
        path = Path(path)
        if mime_type is None:
            mime_type = mimetypes.guess_type(path.name)[0] or ""
        return cls(name=path.name, data=path.read_bytes(), mime_type=mime_type)


@dataclass(frozen=True)
class QuizTrack:
    id: str
    quality: Quality
    file_name: str
    locator: str


def track_id(session_id: str, quality: Quality) -> str:
    return f"{session_id}-{quality.value}"


__all__ = [
    "NO_EXTENSION",
    "Quality",
    "QUALITY_LABELS",
    "parse_quality",
    "InputAsset",
    "QuizTrack",
    "track_id",
]
