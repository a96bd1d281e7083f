"""Session tokens: signed JWTs whose subject is the profile id."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from learnpath.core.settings import settings


def create_token(user_id: UUID | str, email: str, *, lifetime: timedelta | None = None) -> str:
    issued_at = datetime.now(timezone.utc)
    lifetime = lifetime if lifetime is not None else timedelta(minutes=settings.jwt_expire_minutes)
    claims = {
        "sub": str(user_id),
        "email": email,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict | None:
    """Verified claims, or None for an expired, tampered or foreign token."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.PyJWTError:
        return None


def token_subject(token: str) -> UUID | None:
    claims = decode_token(token)
    if claims is None:
        return None
    try:
        return UUID(str(claims["sub"]))
    except ValueError:
        return None
