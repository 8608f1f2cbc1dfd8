import pytest

from earquiz.engine.scoring import check_answers, new_answer_map
from earquiz.errors import EmptyTrackSet, IncompleteAnswers
from earquiz.models.quiz import Quality, QuizTrack


@pytest.fixture
def tracks():
    order = [Quality.ORIGINAL, Quality.MP3_128, Quality.MP3_320]
    return [QuizTrack(f"s-{q.value}", q, f"s_{q.value}", f"media:{q.value}") for q in order]


def test_all_correct(tracks):
    report = check_answers(tracks, {t.id: t.quality for t in tracks})
    assert report.correct == report.total == 3
    assert report.tone == "success"


def test_all_wrong(tracks):
    rotate = {Quality.ORIGINAL: Quality.MP3_128, Quality.MP3_128: Quality.MP3_320, Quality.MP3_320: Quality.ORIGINAL}
    report = check_answers(tracks, {t.id: rotate[t.quality] for t in tracks})
    assert report.correct == 0
    assert report.tone == "partial"


def test_lines_follow_presentation_order(tracks):
    answers = {t.id: Quality.MP3_320 for t in tracks}
    report = check_answers(tracks, answers)
    assert [line.index for line in report.lines] == [1, 2, 3]
    assert [line.actual for line in report.lines] == [t.quality for t in tracks]
    assert report.correct == 1
    assert report.message.splitlines() == [
        "1 of 3 correct.",
        "Track 1: answer Original / your pick mp3 320K",
        "Track 2: answer mp3 128K / your pick mp3 320K",
        "Track 3: answer mp3 320K / your pick mp3 320K",
    ]


def test_empty_track_set():
    with pytest.raises(EmptyTrackSet):
        check_answers([], {})


def test_incomplete_answers(tracks):
    answers = new_answer_map(tracks)
    answers[tracks[0].id] = Quality.ORIGINAL
    with pytest.raises(IncompleteAnswers):
        check_answers(tracks, answers)


def test_report_to_dict(tracks):
    data = check_answers(tracks, {t.id: t.quality for t in tracks}).to_dict()
    assert data["correct"] == 3 and data["tone"] == "success"
    assert data["lines"][0] == {"index": 1, "actual": "original", "guessed": "original", "correct": True}
