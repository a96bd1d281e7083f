"""
Progress aggregation: pure computations over recorded quiz completions.

Lessons are any objects exposing ``id`` and ``week_number`` and are expected
in curriculum order (week, then position in week). Completions are
CompletionRecord values. Nothing here touches the database.
"""
from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class CompletionRecord:
    lesson_id: Any
    score: int
    time_spent: int = 0
    answered_at: datetime | None = None


@dataclass(frozen=True)
class ProgressSnapshot:
    completed_count: int
    total_count: int
    running_average_accuracy: float
    total_time_spent: int
    current_week: int
    current_week_percent: int
    overall_percent: int


def round_percent(value: float) -> int:
    """Round half up, the way percentages are displayed."""
    return int(math.floor(value + 0.5))


def _percent(done: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_percent(100 * done / total)


def is_completed(lesson_id: Any, completions: Iterable[CompletionRecord]) -> bool:
    return any(c.lesson_id == lesson_id for c in completions)


def score_for(lesson_id: Any, completions: Iterable[CompletionRecord]) -> int:
    """Score of the most recent completion of a lesson, 0 when never completed."""
    latest: CompletionRecord | None = None
    for record in completions:
        if record.lesson_id != lesson_id:
            continue
        if latest is None:
            latest = record
        elif record.answered_at is not None and (
            latest.answered_at is None or record.answered_at >= latest.answered_at
        ):
            latest = record
    return latest.score if latest is not None else 0


def unlocked(index: int, lessons: Sequence[Any], completions: Iterable[CompletionRecord]) -> bool:
    # Strictly linear: each lesson gates only the next one.
    if index <= 0:
        return True
    if index >= len(lessons):
        return False
    return is_completed(lessons[index - 1].id, completions)


def week_progress_percent(week_lessons: Sequence[Any], completions: Iterable[CompletionRecord]) -> int:
    completions = list(completions)
    done = sum(1 for lesson in week_lessons if is_completed(lesson.id, completions))
    return _percent(done, len(week_lessons))


def overall_progress_percent(all_lessons: Sequence[Any], completions: Iterable[CompletionRecord]) -> int:
    return week_progress_percent(all_lessons, completions)


def update_running_accuracy(old_avg: float, old_count: int, new_score: float) -> float:
    """Fold one new score into a running average without rescanning history."""
    return (old_avg * old_count + new_score) / (old_count + 1)


def score_answers(questions: Sequence[Any], answers: Sequence[str | None]) -> int:
    """Percentage of questions whose answer matches, ignoring case and surrounding whitespace."""
    if not questions:
        return 0
    correct = 0
    for i, question in enumerate(questions):
        given = answers[i] if i < len(answers) else None
        expected = question.answer if hasattr(question, "answer") else question.get("answer")
        if (given or "").strip().lower() == (expected or "").strip().lower():
            correct += 1
    return round_percent(100 * correct / len(questions))


def group_by_week(lessons: Sequence[Any]) -> dict[int, list[Any]]:
    weeks: dict[int, list[Any]] = {}
    for lesson in lessons:
        weeks.setdefault(int(lesson.week_number), []).append(lesson)
    return dict(sorted(weeks.items()))


def current_week(lessons: Sequence[Any], completions: Iterable[CompletionRecord]) -> int:
    """Week of the first incomplete lesson; the last week once everything is done."""
    if not lessons:
        return 1
    completions = list(completions)
    for lesson in lessons:
        if not is_completed(lesson.id, completions):
            return int(lesson.week_number)
    return int(lessons[-1].week_number)


def progress_snapshot(
    lessons: Sequence[Any],
    completions: Iterable[CompletionRecord],
    running_average_accuracy: float = 0.0,
) -> ProgressSnapshot:
    completions = list(completions)
    lesson_ids = {lesson.id for lesson in lessons}
    relevant = [c for c in completions if c.lesson_id in lesson_ids]
    completed_ids = {c.lesson_id for c in relevant}
    week = current_week(lessons, relevant)
    week_lessons = group_by_week(lessons).get(week, [])
    # Retakes overwrite a completion, so one record per lesson counts toward time.
    latest_time: dict[Any, int] = {}
    for record in relevant:
        latest_time[record.lesson_id] = int(record.time_spent or 0)
    return ProgressSnapshot(
        completed_count=len(completed_ids),
        total_count=len(lessons),
        running_average_accuracy=float(running_average_accuracy or 0.0),
        total_time_spent=sum(latest_time.values()),
        current_week=week,
        current_week_percent=week_progress_percent(week_lessons, relevant),
        overall_percent=overall_progress_percent(lessons, relevant),
    )


def cohort_accuracy(progress_rows: Iterable[Any]) -> float:
    """Accuracy across several progress rows, weighted by completed lesson counts.

    Each row's average is itself a running average over its completions, so
    weighting by count gives the same result as one running average over all
    of them.
    """
    total_score = 0.0
    total_count = 0
    for row in progress_rows:
        count = int(row.completed_lessons or 0)
        total_score += float(row.average_accuracy or 0.0) * count
        total_count += count
    return total_score / total_count if total_count else 0.0


def cohort_stats(progress_rows: Iterable[Any]) -> dict:
    rows = list(progress_rows)
    completed = sum(int(r.completed_lessons or 0) for r in rows)
    total = sum(int(r.total_lessons or 0) for r in rows)
    return {
        "completed_lessons": completed,
        "total_lessons": total,
        "total_time_spent": sum(int(r.total_time_spent or 0) for r in rows),
        "average_accuracy": round(cohort_accuracy(rows), 2),
        "overall_percent": _percent(completed, total),
    }
