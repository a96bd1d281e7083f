"""
Explicit session context for callers that track "who is signed in".

Instead of ambient globals, an AuthContext is created, started, passed to
whatever needs the current user, and closed. Auth changes arrive through
notify(token); each one starts a profile fetch and cancels the previous
pending fetch, so only the newest event can ever publish a user.
"""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.core.jwt_auth import token_subject
from learnpath.core.logging import DOMAIN_AUTH, get_domain_logger
from learnpath.memory.database import SessionLocal
from learnpath.models.entities import Profile

logger = get_domain_logger(__name__, DOMAIN_AUTH)

Loader = Callable[[str], Awaitable[Any]]
Listener = Callable[[Any], None]

PROFILE_FETCH_TIMEOUT_SECONDS = 45.0


class AuthContext:
    def __init__(
        self,
        loader: Loader | None = None,
        *,
        fetch_timeout_seconds: float = PROFILE_FETCH_TIMEOUT_SECONDS,
    ):
        self._loader = loader or load_profile
        self._fetch_timeout = fetch_timeout_seconds
        self._listeners: list[Listener] = []
        self._pending: asyncio.Task | None = None
        self._current: Any = None
        self._started = False
        self.error: str | None = None

    @property
    def current_user(self) -> Any:
        return self._current

    @property
    def user_id(self) -> str | None:
        user_id = getattr(self._current, "id", None)
        return str(user_id) if user_id is not None else None

    async def start(self, token: str | None = None) -> Any:
        self._started = True
        if token:
            await self.notify(token)
        return self._current

    async def close(self) -> None:
        self._started = False
        pending, self._pending = self._pending, None
        if pending is not None and not pending.done():
            pending.cancel()
            try:
                await pending
            except asyncio.CancelledError:
                pass
        self._listeners.clear()
        self._current = None

    def subscribe(self, on_change: Listener) -> Callable[[], None]:
        self._listeners.append(on_change)

        def unsubscribe() -> None:
            if on_change in self._listeners:
                self._listeners.remove(on_change)

        return unsubscribe

    def notify(self, token: str | None) -> asyncio.Task:
        """Handle an auth change; supersedes any fetch still in flight."""
        if not self._started:
            raise RuntimeError("AuthContext.notify() called before start()")
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = asyncio.ensure_future(self._resolve(token))
        return self._pending

    async def _resolve(self, token: str | None) -> Any:
        user = None
        self.error = None
        if token:
            try:
                user = await asyncio.wait_for(self._loader(token), timeout=self._fetch_timeout)
            except asyncio.TimeoutError:
                self.error = "Profile fetch timeout. Please try again."
                logger.warning("Profile fetch timed out after %ss", self._fetch_timeout)
            except Exception as exc:
                self.error = "Could not load your profile. Please sign in again."
                logger.warning("Profile fetch failed: %s", exc)
        self._publish(user)
        return user

    def _publish(self, user: Any) -> None:
        self._current = user
        for listener in list(self._listeners):
            listener(user)


async def load_profile(token: str, session: AsyncSession | None = None) -> Profile | None:
    """Default loader: resolve a bearer token to its stored profile.

    With a session the profile stays attached to it, so request handlers can
    modify and commit it; without one a short-lived session is opened.
    """
    user_id = token_subject(token)
    if user_id is None:
        return None
    if session is not None:
        return await session.get(Profile, user_id)
    async with SessionLocal() as own_session:
        return await own_session.get(Profile, user_id)
