"""
Onboarding API: goal → clarifying questions → generated roadmap.

Creating a roadmap persists the roadmap row, one lesson per topic, a fresh
progress row, and records the goal on the user's profile.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.agents.generation import dump_models, generation_service
from learnpath.api.roadmap import roadmap_response
from learnpath.core.auth import get_auth_context, get_current_user
from learnpath.core.auth_context import AuthContext
from learnpath.core.logging import DOMAIN_ROADMAP, get_domain_logger
from learnpath.memory.database import get_db
from learnpath.memory.store import lessons_from_weeks
from learnpath.models.entities import Profile, Roadmap, UserProgress
from learnpath.schemas.learning import QuestionsRequest, QuestionsResponse, RoadmapRequest, RoadmapResponse

router = APIRouter(prefix="/onboarding", tags=["onboarding"])
logger = get_domain_logger(__name__, DOMAIN_ROADMAP)


@router.post("/questions", response_model=QuestionsResponse)
async def generate_questions(
    payload: QuestionsRequest,
    user: Profile = Depends(get_current_user),
    ctx: AuthContext = Depends(get_auth_context),
):
    goal = payload.goal.strip()
    questions = await generation_service.generate_questions(goal, user_id=ctx.user_id)
    return QuestionsResponse(goal=goal, questions=questions)


@router.post("/roadmap", response_model=RoadmapResponse)
async def create_roadmap(
    payload: RoadmapRequest,
    user: Profile = Depends(get_current_user),
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    goal = payload.goal.strip()
    weeks = await generation_service.generate_roadmap(goal, payload.answers, user_id=ctx.user_id)

    roadmap = Roadmap(
        user_id=user.id,
        title=f"Learning Roadmap: {goal}",
        goal=goal,
        weeks=dump_models(weeks),
        questions=dump_models(payload.questions),
        answers=dict(payload.answers),
    )
    db.add(roadmap)
    await db.flush()

    lessons = lessons_from_weeks(roadmap.id, weeks)
    db.add_all(lessons)
    db.add(
        UserProgress(
            user_id=user.id,
            roadmap_id=roadmap.id,
            total_lessons=len(lessons),
            completed_lessons=0,
            total_time_spent=0,
            average_accuracy=0.0,
            current_week=1,
        )
    )
    user.goal = goal
    await db.commit()
    logger.info("Roadmap created | user=%s | roadmap=%s | weeks=%s | lessons=%s", user.id, roadmap.id, len(weeks), len(lessons))
    return await roadmap_response(db, user, roadmap)
