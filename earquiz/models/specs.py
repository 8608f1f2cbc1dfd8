from dataclasses import dataclass
from typing import Optional, Tuple

from .quiz import InputAsset, Quality

# audition window in seconds, applied both when transcoding and when playing
MAX_PLAY_SECONDS = 120
DEFAULT_MIME = "audio/mpeg"


@dataclass(frozen=True)
class TranscodePlan:
    quality: Quality
    suffix: Optional[str]
    codec_args: Tuple[str, ...]
    mime: Optional[str] = None

    def output_name(self, session_id: str, extension: str) -> str:
        if self.suffix is None:
            return f"{session_id}_{self.quality.value}.{extension}"
        return f"{session_id}_{self.suffix}"

    def command(self, input_name: str, output_name: str, cap_seconds: int = MAX_PLAY_SECONDS) -> list:
        return ["-i", input_name, "-t", str(cap_seconds), *self.codec_args, output_name]

    def mime_for(self, asset: InputAsset) -> str:
        if self.mime:
            return self.mime
        return asset.mime_type or DEFAULT_MIME


mp3_128 = TranscodePlan(Quality.MP3_128, "128.mp3", ("-c:a", "libmp3lame", "-b:a", "128k"), DEFAULT_MIME)
mp3_320 = TranscodePlan(Quality.MP3_320, "320.mp3", ("-c:a", "libmp3lame", "-b:a", "320k"), DEFAULT_MIME)

# stream copy keeps the source codec, only the -t cap applies
original = TranscodePlan(Quality.ORIGINAL, None, ("-c", "copy"))

PLANS = (mp3_128, mp3_320, original)
