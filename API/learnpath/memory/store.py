"""Row-level queries shared by the roadmap, lessons and dashboard routers."""
from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.models.entities import Lesson, LessonCompletion, Roadmap, UserProgress
from learnpath.progress.aggregator import CompletionRecord
from learnpath.schemas.generation import WeekPlan


async def latest_roadmap(db: AsyncSession, user_id: UUID) -> Roadmap | None:
    result = await db.execute(
        select(Roadmap).where(Roadmap.user_id == user_id).order_by(desc(Roadmap.created_at)).limit(1)
    )
    return result.scalar_one_or_none()


async def roadmap_lessons(db: AsyncSession, roadmap_id: UUID) -> list[Lesson]:
    result = await db.execute(
        select(Lesson)
        .where(Lesson.roadmap_id == roadmap_id)
        .order_by(Lesson.week_number, Lesson.order_index)
    )
    return list(result.scalars().all())


async def user_completions(db: AsyncSession, user_id: UUID, lesson_ids: Sequence[UUID]) -> list[LessonCompletion]:
    if not lesson_ids:
        return []
    result = await db.execute(
        select(LessonCompletion).where(
            LessonCompletion.user_id == user_id,
            LessonCompletion.lesson_id.in_(list(lesson_ids)),
        )
    )
    return list(result.scalars().all())


async def roadmap_progress(db: AsyncSession, user_id: UUID, roadmap_id: UUID) -> UserProgress | None:
    result = await db.execute(
        select(UserProgress).where(UserProgress.user_id == user_id, UserProgress.roadmap_id == roadmap_id)
    )
    return result.scalar_one_or_none()


def to_completion_records(rows: Sequence[LessonCompletion]) -> list[CompletionRecord]:
    return [
        CompletionRecord(
            lesson_id=row.lesson_id,
            score=int(row.score or 0),
            time_spent=int(row.time_spent or 0),
            answered_at=row.completed_at,
        )
        for row in rows
    ]


def lessons_from_weeks(roadmap_id: UUID, weeks: Sequence[WeekPlan]) -> list[Lesson]:
    lessons: list[Lesson] = []
    for week_index, week in enumerate(weeks):
        for topic_index, topic in enumerate(week.topics):
            lessons.append(
                Lesson(
                    roadmap_id=roadmap_id,
                    week_number=week_index + 1,
                    title=topic.title,
                    lesson_objective=topic.lesson_objective,
                    estimated_time=topic.estimated_time,
                    order_index=topic_index,
                )
            )
    return lessons


async def replace_lessons(db: AsyncSession, roadmap_id: UUID, weeks: Sequence[WeekPlan]) -> list[Lesson]:
    await db.execute(delete(Lesson).where(Lesson.roadmap_id == roadmap_id))
    lessons = lessons_from_weeks(roadmap_id, weeks)
    db.add_all(lessons)
    return lessons
