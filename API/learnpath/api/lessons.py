"""
Lessons API: lesson list with gating, lesson content, and quiz completion.

Lesson content is generated on first view and cached on the lesson row, so the
LLM is called at most once per lesson. Completing a quiz folds the score into
the roadmap's running accuracy.
"""
from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.agents.generation import generation_service
from learnpath.core.auth import get_auth_context, get_current_user
from learnpath.core.auth_context import AuthContext
from learnpath.core.logging import DOMAIN_PROGRESS, get_domain_logger
from learnpath.core.settings import settings
from learnpath.memory.database import get_db
from learnpath.memory.store import (
    latest_roadmap,
    roadmap_lessons,
    roadmap_progress,
    to_completion_records,
    user_completions,
)
from learnpath.models.entities import Lesson, LessonCompletion, Profile, Roadmap, UserProgress, utcnow
from learnpath.progress.aggregator import (
    CompletionRecord,
    current_week,
    group_by_week,
    is_completed,
    score_answers,
    score_for,
    unlocked,
    update_running_accuracy,
    week_progress_percent,
)
from learnpath.schemas.generation import LessonContent, WeekPlan
from learnpath.schemas.learning import (
    CompleteLessonRequest,
    CompleteLessonResponse,
    LessonDetail,
    LessonsResponse,
    LessonSummary,
    WeekView,
)

router = APIRouter(prefix="/lessons", tags=["lessons"])
logger = get_domain_logger(__name__, DOMAIN_PROGRESS)


# ── View helpers (shared with the roadmap and dashboard routers) ────────────

def lesson_summary(
    index: int,
    lessons: Sequence[Lesson],
    completions: Sequence[CompletionRecord],
) -> LessonSummary:
    lesson = lessons[index]
    return LessonSummary(
        id=lesson.id,
        week_number=lesson.week_number,
        order_index=lesson.order_index,
        title=lesson.title,
        lesson_objective=lesson.lesson_objective,
        estimated_time=lesson.estimated_time,
        completed=is_completed(lesson.id, completions),
        score=score_for(lesson.id, completions),
        unlocked=unlocked(index, lessons, completions),
    )


def build_week_views(
    weeks: Sequence[dict],
    lessons: Sequence[Lesson],
    completions: Sequence[CompletionRecord],
) -> list[WeekView]:
    summaries = [lesson_summary(i, lessons, completions) for i in range(len(lessons))]
    by_week = group_by_week(lessons)
    views = []
    for week_number in sorted(set(by_week) | set(range(1, len(weeks) + 1))):
        week_lessons = by_week.get(week_number, [])
        plan = weeks[week_number - 1] if 0 < week_number <= len(weeks) else {}
        topics = plan.get("topics") if isinstance(plan, dict) else None
        views.append(
            WeekView(
                week_number=week_number,
                title=(plan.get("title") if isinstance(plan, dict) else None) or f"Week {week_number}",
                topics=topics or [],
                completed=sum(1 for lesson in week_lessons if is_completed(lesson.id, completions)),
                total=len(week_lessons),
                progress_percent=week_progress_percent(week_lessons, completions),
                lessons=[s for s in summaries if s.week_number == week_number],
            )
        )
    return views


def current_week_plan(weeks: Sequence[dict], week_number: int) -> WeekPlan | None:
    if not 0 < week_number <= len(weeks):
        return None
    return WeekPlan.model_validate(weeks[week_number - 1])


async def _owned_lesson(db: AsyncSession, user: Profile, lesson_id: UUID) -> tuple[Lesson, Roadmap]:
    lesson = await db.get(Lesson, lesson_id)
    roadmap = await db.get(Roadmap, lesson.roadmap_id) if lesson else None
    if lesson is None or roadmap is None or roadmap.user_id != user.id:
        raise HTTPException(status_code=404, detail="Lesson not found")
    return lesson, roadmap


# ── Endpoints ───────────────────────────────────────────────────────────────

@router.get("", response_model=LessonsResponse)
async def list_lessons(user: Profile = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    roadmap = await latest_roadmap(db, user.id)
    if roadmap is None:
        return LessonsResponse(roadmap_id=None, weeks=[])
    lessons = await roadmap_lessons(db, roadmap.id)
    completions = to_completion_records(await user_completions(db, user.id, [l.id for l in lessons]))
    return LessonsResponse(roadmap_id=roadmap.id, weeks=build_week_views(roadmap.weeks or [], lessons, completions))


@router.get("/{lesson_id}", response_model=LessonDetail)
async def get_lesson(
    lesson_id: UUID,
    user: Profile = Depends(get_current_user),
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    lesson, roadmap = await _owned_lesson(db, user, lesson_id)
    lessons = await roadmap_lessons(db, roadmap.id)
    completions = to_completion_records(await user_completions(db, user.id, [l.id for l in lessons]))
    index = next(i for i, l in enumerate(lessons) if l.id == lesson.id)
    if not unlocked(index, lessons, completions):
        raise HTTPException(status_code=403, detail="Complete the previous lesson first.")

    if lesson.content is None:
        content = await generation_service.generate_lesson_content(lesson, user_id=ctx.user_id)
        lesson.content = content.model_dump(by_alias=True)
        await db.commit()
    else:
        content = LessonContent.model_validate(lesson.content)

    return LessonDetail(
        lesson=lesson_summary(index, lessons, completions),
        content=content,
        previous_lesson_id=lessons[index - 1].id if index > 0 else None,
        next_lesson_id=lessons[index + 1].id if index + 1 < len(lessons) else None,
    )


@router.post("/{lesson_id}/complete", response_model=CompleteLessonResponse)
async def complete_lesson(
    lesson_id: UUID,
    payload: CompleteLessonRequest,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lesson, roadmap = await _owned_lesson(db, user, lesson_id)
    if lesson.content is None:
        raise HTTPException(status_code=409, detail="Open the lesson before taking its quiz.")
    lessons = await roadmap_lessons(db, roadmap.id)
    completion_rows = await user_completions(db, user.id, [l.id for l in lessons])
    index = next(i for i, l in enumerate(lessons) if l.id == lesson.id)
    if not unlocked(index, lessons, to_completion_records(completion_rows)):
        raise HTTPException(status_code=403, detail="Complete the previous lesson first.")

    content = LessonContent.model_validate(lesson.content)
    score = score_answers(content.assessment_questions, payload.answers)
    time_spent = payload.time_spent if payload.time_spent is not None else settings.default_lesson_time_spent

    existing = next((row for row in completion_rows if row.lesson_id == lesson.id), None)
    first_completion = existing is None
    if existing is None:
        db.add(
            LessonCompletion(
                user_id=user.id,
                lesson_id=lesson.id,
                score=score,
                time_spent=time_spent,
                answers=list(payload.answers),
            )
        )
    else:
        # Retake: keep the latest attempt, aggregates already counted this lesson.
        existing.score = score
        existing.time_spent = time_spent
        existing.answers = list(payload.answers)
        existing.completed_at = utcnow()

    progress = await roadmap_progress(db, user.id, roadmap.id)
    if progress is None:
        logger.warning("Progress row missing, recreating | user=%s | roadmap=%s", user.id, roadmap.id)
        progress = UserProgress(user_id=user.id, roadmap_id=roadmap.id, total_lessons=len(lessons))
        db.add(progress)
        await db.flush()

    if first_completion:
        old_count = int(progress.completed_lessons or 0)
        progress.average_accuracy = update_running_accuracy(float(progress.average_accuracy or 0.0), old_count, score)
        progress.completed_lessons = old_count + 1
        progress.total_time_spent = int(progress.total_time_spent or 0) + time_spent

    records = to_completion_records(completion_rows)
    if first_completion:
        records.append(CompletionRecord(lesson_id=lesson.id, score=score, time_spent=time_spent))
    progress.current_week = current_week(lessons, records)
    await db.commit()

    logger.info(
        "Lesson completed | user=%s | lesson=%s | score=%s | first=%s | avg=%.2f",
        user.id,
        lesson.id,
        score,
        first_completion,
        progress.average_accuracy,
    )
    return CompleteLessonResponse(
        lesson_id=lesson.id,
        score=score,
        passed=score >= settings.passing_score,
        first_completion=first_completion,
        completed_lessons=progress.completed_lessons,
        total_lessons=progress.total_lessons,
        average_accuracy=round(progress.average_accuracy, 2),
        next_lesson_id=lessons[index + 1].id if index + 1 < len(lessons) else None,
    )
