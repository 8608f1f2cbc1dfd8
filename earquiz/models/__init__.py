from .quiz import InputAsset, Quality, QuizTrack, parse_quality
from .specs import MAX_PLAY_SECONDS, PLANS, TranscodePlan

__all__ = [
    "InputAsset",
    "Quality",
    "QuizTrack",
    "parse_quality",
    "MAX_PLAY_SECONDS",
    "PLANS",
    "TranscodePlan",
]
