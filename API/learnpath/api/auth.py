"""Auth API: email/password signup and login."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.core.jwt_auth import create_token
from learnpath.core.logging import DOMAIN_AUTH, get_domain_logger
from learnpath.core.password import hash_password, verify_password
from learnpath.core.settings import settings
from learnpath.memory.database import get_db
from learnpath.models.entities import Profile
from learnpath.schemas.learning import AuthResponse, LoginRequest, SignupRequest

router = APIRouter(prefix="/auth", tags=["auth"])
logger = get_domain_logger(__name__, DOMAIN_AUTH)


def _admin_emails() -> set[str]:
    return {e.strip().lower() for e in settings.admin_emails.split(",") if e.strip()}


def _auth_response(profile: Profile, *, is_new_user: bool = False) -> AuthResponse:
    return AuthResponse(
        token=create_token(profile.id, profile.email),
        user_id=str(profile.id),
        email=profile.email,
        full_name=profile.full_name,
        is_admin=profile.is_admin,
        is_new_user=is_new_user,
    )


@router.post("/signup", response_model=AuthResponse)
async def signup(payload: SignupRequest, db: AsyncSession = Depends(get_db)):
    email = payload.email.strip().lower()
    existing = (await db.execute(select(Profile).where(Profile.email == email))).scalar_one_or_none()
    if existing:
        raise HTTPException(
            status_code=409,
            detail="An account with this email already exists. Please sign in instead.",
        )

    profile = Profile(
        email=email,
        password_hash=hash_password(payload.password),
        full_name=payload.full_name.strip(),
        is_admin=email in _admin_emails(),
        preferences={},
    )
    db.add(profile)
    await db.commit()
    logger.info("New account created | user=%s | admin=%s", profile.id, profile.is_admin)
    return _auth_response(profile, is_new_user=True)


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    profile = (
        await db.execute(select(Profile).where(Profile.email == payload.email.strip().lower()))
    ).scalar_one_or_none()
    if not profile or not verify_password(payload.password, profile.password_hash):
        raise HTTPException(
            status_code=401,
            detail="Invalid email or password. Please check your credentials and try again.",
        )
    return _auth_response(profile)
