from collections.abc import AsyncIterator
from functools import partial

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.core.auth_context import AuthContext, load_profile
from learnpath.core.jwt_auth import token_subject
from learnpath.memory.database import get_db
from learnpath.models.entities import Profile

bearer_scheme = HTTPBearer(auto_error=False)


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> AsyncIterator[AuthContext]:
    """One AuthContext per request, started from the bearer token and closed afterwards."""
    ctx = AuthContext(partial(load_profile, session=db))
    await ctx.start(credentials.credentials if credentials else None)
    try:
        yield ctx
    finally:
        await ctx.close()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    ctx: AuthContext = Depends(get_auth_context),
) -> Profile:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthorized: missing bearer token")
    if ctx.error:
        raise HTTPException(status_code=503, detail=ctx.error)
    if ctx.current_user is None:
        if token_subject(credentials.credentials) is None:
            raise HTTPException(status_code=401, detail="Your session has expired. Please sign in again.")
        raise HTTPException(status_code=401, detail="No account found for this session.")
    return ctx.current_user


async def require_admin(user: Profile = Depends(get_current_user)) -> Profile:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
