"""Admin API: learner overview with progress rollups, and account removal."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.core.auth import require_admin
from learnpath.core.logging import DOMAIN_AUTH, get_domain_logger
from learnpath.memory.database import get_db
from learnpath.models.entities import Profile, UserProgress
from learnpath.progress.aggregator import cohort_stats

router = APIRouter(prefix="/admin", tags=["admin"])
logger = get_domain_logger(__name__, DOMAIN_AUTH)


@router.get("/users")
async def list_users(
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    limit: int = Query(100, ge=1, le=500),
):
    """Return non-admin users with their progress and cohort-wide stats."""
    profiles = (
        await db.execute(
            select(Profile).where(Profile.is_admin.is_(False)).order_by(desc(Profile.created_at)).limit(limit)
        )
    ).scalars().all()
    user_ids = [p.id for p in profiles]
    progress_rows = []
    if user_ids:
        progress_rows = (
            await db.execute(select(UserProgress).where(UserProgress.user_id.in_(user_ids)))
        ).scalars().all()

    by_user: dict[UUID, list[UserProgress]] = {}
    for row in progress_rows:
        by_user.setdefault(row.user_id, []).append(row)

    users = []
    for profile in profiles:
        stats = cohort_stats(by_user.get(profile.id, []))
        users.append(
            {
                "id": str(profile.id),
                "email": profile.email,
                "full_name": profile.full_name,
                "goal": profile.goal,
                "created_at": profile.created_at.isoformat() if profile.created_at else None,
                **stats,
            }
        )

    totals = cohort_stats(progress_rows)
    return {
        "stats": {
            "total_users": len(profiles),
            "total_lessons_completed": totals["completed_lessons"],
            "total_time_spent": totals["total_time_spent"],
            "average_accuracy": totals["average_accuracy"],
        },
        "users": users,
    }


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: UUID,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    target = await db.get(Profile, user_id)
    if target is None:
        raise HTTPException(status_code=404, detail="User not found")
    if target.is_admin:
        raise HTTPException(status_code=400, detail="Admin accounts cannot be deleted from the panel")
    # Roadmaps, lessons, completions and progress cascade from the profile.
    await db.execute(delete(Profile).where(Profile.id == user_id))
    await db.commit()
    logger.info("User deleted by admin | admin=%s | user=%s", admin.id, user_id)
    return {"user_id": str(user_id), "deleted": True}
