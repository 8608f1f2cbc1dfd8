from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from ..errors import EmptyTrackSet, IncompleteAnswers
from ..models.quiz import Quality, QuizTrack

AnswerMap = Dict[str, Optional[Quality]]


@dataclass(frozen=True)
class ReportLine:
    index: int
    actual: Quality
    guessed: Quality

    @property
    def correct(self) -> bool:
        return self.actual == self.guessed

    def __str__(self) -> str:
        return f"Track {self.index}: answer {self.actual.label} / your pick {self.guessed.label}"


@dataclass(frozen=True)
class Report:
    correct: int
    total: int
    lines: Tuple[ReportLine, ...]

    @property
    def tone(self) -> str:
        return "success" if self.correct == self.total else "partial"

    @property
    def message(self) -> str:
        return "\n".join([f"{self.correct} of {self.total} correct.", *(str(line) for line in self.lines)])

    def to_dict(self) -> dict:
        return {
            "correct": self.correct,
            "total": self.total,
            "tone": self.tone,
            "message": self.message,
            "lines": [
                {
                    "index": line.index,
                    "actual": line.actual.value,
                    "guessed": line.guessed.value,
                    "correct": line.correct,
                }
                for line in self.lines
            ],
        }


def new_answer_map(tracks: Sequence[QuizTrack]) -> AnswerMap:
    return {track.id: None for track in tracks}


def check_answers(tracks: Sequence[QuizTrack], answers: AnswerMap) -> Report:
    if not tracks:
        raise EmptyTrackSet()
    if any(answers.get(track.id) is None for track in tracks):
        raise IncompleteAnswers()
    lines = tuple(
        ReportLine(index=i, actual=track.quality, guessed=answers[track.id])
        for i, track in enumerate(tracks, start=1)
    )
    return Report(correct=sum(line.correct for line in lines), total=len(lines), lines=lines)


__all__ = ["AnswerMap", "ReportLine", "Report", "new_answer_map", "check_answers"]
