from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.api.lessons import current_week_plan
from learnpath.core.auth import get_current_user
from learnpath.memory.database import get_db
from learnpath.memory.store import (
    latest_roadmap,
    roadmap_lessons,
    roadmap_progress,
    to_completion_records,
    user_completions,
)
from learnpath.models.entities import Profile
from learnpath.progress.aggregator import progress_snapshot
from learnpath.schemas.learning import DashboardResponse

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(user: Profile = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    roadmap = await latest_roadmap(db, user.id)
    if roadmap is None:
        return DashboardResponse(has_roadmap=False)

    lessons = await roadmap_lessons(db, roadmap.id)
    completions = to_completion_records(await user_completions(db, user.id, [l.id for l in lessons]))
    progress = await roadmap_progress(db, user.id, roadmap.id)
    snapshot = progress_snapshot(
        lessons,
        completions,
        running_average_accuracy=progress.average_accuracy if progress else 0.0,
    )
    weeks = roadmap.weeks or []
    return DashboardResponse(
        has_roadmap=True,
        roadmap_id=roadmap.id,
        title=roadmap.title,
        goal=roadmap.goal,
        completed_count=snapshot.completed_count,
        total_count=snapshot.total_count,
        overall_percent=snapshot.overall_percent,
        average_accuracy=round(snapshot.running_average_accuracy, 2),
        total_time_spent=snapshot.total_time_spent,
        current_week=snapshot.current_week,
        total_weeks=len(weeks),
        current_week_percent=snapshot.current_week_percent,
        current_week_plan=current_week_plan(weeks, snapshot.current_week),
    )
