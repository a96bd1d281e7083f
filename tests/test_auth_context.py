import asyncio

import pytest

from learnpath.core.auth_context import AuthContext


def _loader(delays: dict[str, float]):
    async def load(token: str):
        await asyncio.sleep(delays.get(token, 0))
        if token == "broken":
            raise RuntimeError("db down")
        return f"user-{token}"

    return load


def test_notify_before_start_is_rejected():
    ctx = AuthContext(_loader({}))
    with pytest.raises(RuntimeError):
        ctx.notify("a")


@pytest.mark.asyncio
async def test_start_with_token_publishes_user():
    ctx = AuthContext(_loader({}))
    assert await ctx.start("alice") == "user-alice"
    assert ctx.current_user == "user-alice"
    await ctx.close()
    assert ctx.current_user is None


@pytest.mark.asyncio
async def test_newer_event_supersedes_pending_fetch():
    ctx = AuthContext(_loader({"slow": 0.5, "fast": 0}))
    await ctx.start()
    seen = []
    ctx.subscribe(seen.append)

    first = ctx.notify("slow")
    await asyncio.sleep(0)
    second = ctx.notify("fast")
    await second

    assert first.cancelled()
    assert seen == ["user-fast"]
    assert ctx.current_user == "user-fast"
    await ctx.close()


@pytest.mark.asyncio
async def test_sign_out_publishes_none():
    ctx = AuthContext(_loader({}))
    await ctx.start("alice")
    seen = []
    ctx.subscribe(seen.append)
    await ctx.notify(None)
    assert seen == [None]
    assert ctx.current_user is None
    await ctx.close()


@pytest.mark.asyncio
async def test_fetch_timeout_sets_error_and_clears_user():
    ctx = AuthContext(_loader({"slow": 1.0}), fetch_timeout_seconds=0.05)
    await ctx.start()
    await ctx.notify("slow")
    assert ctx.current_user is None
    assert ctx.error == "Profile fetch timeout. Please try again."
    await ctx.close()


@pytest.mark.asyncio
async def test_loader_failure_sets_error():
    ctx = AuthContext(_loader({}))
    await ctx.start()
    await ctx.notify("broken")
    assert ctx.current_user is None
    assert ctx.error is not None
    await ctx.close()


@pytest.mark.asyncio
async def test_unsubscribe_stops_notifications():
    ctx = AuthContext(_loader({}))
    await ctx.start()
    seen = []
    unsubscribe = ctx.subscribe(seen.append)
    await ctx.notify("a")
    unsubscribe()
    unsubscribe()
    await ctx.notify("b")
    assert seen == ["user-a"]
    await ctx.close()


@pytest.mark.asyncio
async def test_close_cancels_pending_fetch():
    ctx = AuthContext(_loader({"slow": 1.0}))
    await ctx.start()
    seen = []
    ctx.subscribe(seen.append)
    pending = ctx.notify("slow")
    await asyncio.sleep(0)
    await ctx.close()
    assert pending.cancelled()
    assert seen == []


@pytest.mark.asyncio
async def test_default_loader_ignores_unverifiable_tokens():
    ctx = AuthContext()
    assert await ctx.start("not-a-jwt") is None
    assert ctx.error is None
    await ctx.close()
