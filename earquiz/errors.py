"""Failure kinds surfaced by the quiz.

Every error carries a short message meant for the person taking the quiz and
the HTTP status the web layer answers with.  Callers catch :class:`QuizError`
and show ``message``; the optional ``detail`` is for logs only.
"""


class QuizError(Exception):
    kind = "quiz_error"
    message = "Something went wrong."
    status = 400

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.message)
        self.detail = detail

    def to_dict(self) -> dict:
        return {"ok": False, "error": self.kind, "message": self.message}


class NotReady(QuizError):
    kind = "not_ready"
    message = "Load ffmpeg first."
    status = 409


class EngineLoadFailure(QuizError):
    kind = "engine_load_failure"
    message = "Loading ffmpeg failed. Wait a moment and try again."
    status = 503


class NoInput(QuizError):
    kind = "no_input"
    message = "Choose an audio file."


class ConversionInProgress(QuizError):
    kind = "conversion_in_progress"
    message = "A conversion is already running."
    status = 409


class TranscodeFailure(QuizError):
    kind = "transcode_failure"
    message = "Audio conversion failed. Try a different file."
    status = 422


class PlaybackFailure(QuizError):
    kind = "playback_failure"
    message = "Playback failed. Try again, or convert a different file."
    status = 422


class EmptyTrackSet(QuizError):
    kind = "empty_track_set"
    message = "Convert an audio file first."


class IncompleteAnswers(QuizError):
    kind = "incomplete_answers"
    message = "Choose a guess for every track."


__all__ = [
    "QuizError",
    "NotReady",
    "EngineLoadFailure",
    "NoInput",
    "ConversionInProgress",
    "TranscodeFailure",
    "PlaybackFailure",
    "EmptyTrackSet",
    "IncompleteAnswers",
]
