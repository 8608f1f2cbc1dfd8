import os
import tempfile
from pathlib import Path

from .. import settings

# Relative work directories are resolved against the project root.  When the
# chosen location cannot be created (read-only checkouts) fall back to a
# directory under the system temp dir.
BASE_DIR = Path(__file__).resolve().parent.parent
PROJECT_ROOT = BASE_DIR.parent

# Containers libsndfile decodes.  The original render is a stream copy of the
# upload, so anything the player cannot open would single that track out.
ALLOWED = {".wav", ".wave", ".aif", ".aiff", ".flac", ".mp3", ".ogg", ".oga"}
ALLOWED_MIME = {
    "audio/wav", "audio/x-wav", "audio/wave", "audio/vnd.wave",
    "audio/aiff", "audio/x-aiff",
    "audio/flac", "audio/x-flac",
    "audio/mpeg", "audio/mp3",
    "audio/ogg", "audio/vorbis",
}


def allowed_file(filename: str, mimetype: str = "") -> bool:
    suffix = Path(filename).suffix.lower()
    if suffix:
        return suffix in ALLOWED
    return (mimetype or "").split(";")[0].strip().lower() in ALLOWED_MIME


def resolve_work_dir(value=None) -> Path:
    work = Path(value or os.getenv("WORK_DIR") or settings.WORK_DIR)
    if not work.is_absolute():
        work = PROJECT_ROOT / work
    try:
        work.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        work = Path(tempfile.gettempdir()) / "earquiz"
        work.mkdir(parents=True, exist_ok=True)
    return work
