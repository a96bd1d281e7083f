from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.core.auth import get_current_user
from learnpath.memory.database import get_db
from learnpath.models.entities import Profile
from learnpath.schemas.learning import ProfileResponse, ProfileUpdate

router = APIRouter(prefix="/profile", tags=["profile"])


def _profile_response(profile: Profile) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        avatar_url=profile.avatar_url,
        is_admin=profile.is_admin,
        goal=profile.goal,
        preferences=profile.preferences or {},
        created_at=profile.created_at,
    )


@router.get("", response_model=ProfileResponse)
async def get_profile(user: Profile = Depends(get_current_user)):
    return _profile_response(user)


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    payload: ProfileUpdate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True)
    if "preferences" in changes and changes["preferences"] is None:
        changes["preferences"] = {}
    for field, value in changes.items():
        setattr(user, field, value)
    await db.commit()
    return _profile_response(user)
