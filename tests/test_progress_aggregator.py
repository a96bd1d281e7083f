from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from learnpath.progress.aggregator import (
    CompletionRecord,
    cohort_accuracy,
    cohort_stats,
    current_week,
    group_by_week,
    is_completed,
    overall_progress_percent,
    progress_snapshot,
    round_percent,
    score_answers,
    score_for,
    unlocked,
    update_running_accuracy,
    week_progress_percent,
)


def _lessons(*weeks: int):
    return [SimpleNamespace(id=f"l{i}", week_number=w) for i, w in enumerate(weeks)]


def test_running_accuracy_folds_new_score():
    assert round(update_running_accuracy(80, 2, 100), 2) == 86.67
    assert update_running_accuracy(0.0, 0, 40) == 40


def test_round_percent_rounds_half_up():
    assert round_percent(66.5) == 67
    assert round_percent(33.3) == 33
    assert round_percent(0.5) == 1


def test_week_progress_for_empty_week_is_zero():
    assert week_progress_percent([], [CompletionRecord("l0", 100)]) == 0


def test_week_and_overall_progress():
    lessons = _lessons(1, 1, 1, 2)
    done = [CompletionRecord("l0", 100), CompletionRecord("l1", 50)]
    assert week_progress_percent(lessons[:3], done) == 67
    assert overall_progress_percent(lessons, done) == 50


def test_unlocking_is_linear():
    lessons = _lessons(1, 1, 2)
    done = [CompletionRecord("l1", 90)]
    assert unlocked(0, lessons, []) is True
    assert unlocked(1, lessons, []) is False
    # l1 done does not unlock l1 itself when l0 is still open
    assert unlocked(1, lessons, done) is False
    assert unlocked(2, lessons, done) is True
    assert unlocked(3, lessons, done) is False


def test_is_completed_and_latest_score():
    t0 = datetime(2024, 1, 1)
    records = [
        CompletionRecord("l0", 40, answered_at=t0),
        CompletionRecord("l0", 90, answered_at=t0 + timedelta(minutes=5)),
    ]
    assert is_completed("l0", records)
    assert not is_completed("l1", records)
    assert score_for("l0", records) == 90
    assert score_for("l1", records) == 0


def test_score_answers_ignores_case_and_whitespace():
    questions = [
        SimpleNamespace(answer="Option A"),
        {"answer": "42"},
        SimpleNamespace(answer="yes"),
    ]
    assert score_answers(questions, [" option a ", "42", None]) == 67
    assert score_answers(questions, ["Option A"]) == 33
    assert score_answers([], ["x"]) == 0


def test_group_by_week_orders_weeks():
    lessons = _lessons(2, 1, 2)
    grouped = group_by_week(lessons)
    assert list(grouped) == [1, 2]
    assert [l.id for l in grouped[2]] == ["l0", "l2"]


def test_current_week_follows_first_open_lesson():
    lessons = _lessons(1, 1, 2, 3)
    assert current_week([], []) == 1
    assert current_week(lessons, []) == 1
    done = [CompletionRecord("l0", 100), CompletionRecord("l1", 100)]
    assert current_week(lessons, done) == 2
    everything = done + [CompletionRecord("l2", 100), CompletionRecord("l3", 100)]
    assert current_week(lessons, everything) == 3


def test_progress_snapshot():
    lessons = _lessons(1, 1, 2)
    done = [
        CompletionRecord("l0", 100, time_spent=20),
        CompletionRecord("l1", 60, time_spent=30),
        CompletionRecord("other-roadmap", 100, time_spent=99),
    ]
    snap = progress_snapshot(lessons, done, running_average_accuracy=80.0)
    assert snap.completed_count == 2
    assert snap.total_count == 3
    assert snap.total_time_spent == 50
    assert snap.current_week == 2
    assert snap.current_week_percent == 0
    assert snap.overall_percent == 67
    assert snap.running_average_accuracy == 80.0


def test_cohort_accuracy_is_weighted_by_completed_lessons():
    rows = [
        SimpleNamespace(completed_lessons=3, average_accuracy=90.0, total_lessons=8, total_time_spent=90),
        SimpleNamespace(completed_lessons=1, average_accuracy=50.0, total_lessons=4, total_time_spent=30),
        SimpleNamespace(completed_lessons=0, average_accuracy=0.0, total_lessons=4, total_time_spent=0),
    ]
    assert cohort_accuracy(rows) == pytest.approx(80.0)
    assert cohort_accuracy([]) == 0.0
    stats = cohort_stats(rows)
    assert stats == {
        "completed_lessons": 4,
        "total_lessons": 16,
        "total_time_spent": 120,
        "average_accuracy": 80.0,
        "overall_percent": 25,
    }
