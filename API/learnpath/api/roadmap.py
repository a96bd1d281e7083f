"""Roadmap API: view, alter and delete the user's current roadmap."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.agents.generation import dump_models, generation_service
from learnpath.api.lessons import build_week_views
from learnpath.core.auth import get_auth_context, get_current_user
from learnpath.core.auth_context import AuthContext
from learnpath.core.logging import DOMAIN_ROADMAP, get_domain_logger
from learnpath.memory.database import get_db
from learnpath.memory.store import (
    latest_roadmap,
    replace_lessons,
    roadmap_lessons,
    roadmap_progress,
    to_completion_records,
    user_completions,
)
from learnpath.models.entities import Profile, Roadmap, UserProgress
from learnpath.progress.aggregator import is_completed, overall_progress_percent
from learnpath.schemas.learning import AlterRoadmapRequest, RoadmapDeleteResponse, RoadmapResponse

router = APIRouter(prefix="/roadmap", tags=["roadmap"])
logger = get_domain_logger(__name__, DOMAIN_ROADMAP)


async def roadmap_response(db: AsyncSession, user: Profile, roadmap: Roadmap) -> RoadmapResponse:
    lessons = await roadmap_lessons(db, roadmap.id)
    completions = to_completion_records(await user_completions(db, user.id, [l.id for l in lessons]))
    completed = sum(1 for lesson in lessons if is_completed(lesson.id, completions))
    return RoadmapResponse(
        id=roadmap.id,
        title=roadmap.title,
        goal=roadmap.goal,
        created_at=roadmap.created_at,
        completed_count=completed,
        total_count=len(lessons),
        overall_percent=overall_progress_percent(lessons, completions),
        weeks=build_week_views(roadmap.weeks or [], lessons, completions),
    )


async def _require_roadmap(db: AsyncSession, user: Profile) -> Roadmap:
    roadmap = await latest_roadmap(db, user.id)
    if roadmap is None:
        raise HTTPException(status_code=404, detail="No roadmap found. Create one from onboarding.")
    return roadmap


@router.get("", response_model=RoadmapResponse)
async def get_roadmap(user: Profile = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    roadmap = await _require_roadmap(db, user)
    return await roadmap_response(db, user, roadmap)


@router.post("/alter", response_model=RoadmapResponse)
async def alter_roadmap(
    payload: AlterRoadmapRequest,
    user: Profile = Depends(get_current_user),
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Regenerate the weeks from a change request; lessons and progress start over."""
    roadmap = await _require_roadmap(db, user)
    weeks = await generation_service.alter_roadmap(
        roadmap.goal,
        roadmap.weeks or [],
        payload.request.strip(),
        user_id=ctx.user_id,
    )

    roadmap.weeks = dump_models(weeks)
    lessons = await replace_lessons(db, roadmap.id, weeks)
    progress = await roadmap_progress(db, user.id, roadmap.id)
    if progress is None:
        progress = UserProgress(user_id=user.id, roadmap_id=roadmap.id)
        db.add(progress)
    progress.total_lessons = len(lessons)
    progress.completed_lessons = 0
    progress.total_time_spent = 0
    progress.average_accuracy = 0.0
    progress.current_week = 1
    await db.commit()
    logger.info("Roadmap altered | user=%s | roadmap=%s | lessons=%s", user.id, roadmap.id, len(lessons))
    return await roadmap_response(db, user, roadmap)


@router.delete("", response_model=RoadmapDeleteResponse)
async def delete_roadmap(user: Profile = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    roadmap = await _require_roadmap(db, user)
    roadmap_id = roadmap.id
    # Lessons, their completions and the progress row go with it (ON DELETE CASCADE).
    await db.execute(delete(Roadmap).where(Roadmap.id == roadmap_id))
    await db.commit()
    logger.info("Roadmap deleted | user=%s | roadmap=%s", user.id, roadmap_id)
    return RoadmapDeleteResponse(roadmap_id=roadmap_id, deleted=True)
