import asyncio
import time

import pytest

from svgstudio.session import SessionRegistry


@pytest.fixture
def reg():
    return SessionRegistry(idle_timeout=2)


class TestSessionRegistry:
    @pytest.mark.asyncio
    async def test_create_session(self, reg):
        session = await reg.create_session()
        assert session.token
        assert reg.session_count == 1

    @pytest.mark.asyncio
    async def test_user_id_defaults_to_token(self, reg):
        session = await reg.create_session()
        assert session.user_id == session.token

    @pytest.mark.asyncio
    async def test_user_id_from_host(self, reg):
        session = await reg.create_session(user_id="user-1")
        assert session.user_id == "user-1"

    @pytest.mark.asyncio
    async def test_get_session_valid(self, reg):
        session = await reg.create_session()
        found = await reg.get_session(session.token)
        assert found is session

    @pytest.mark.asyncio
    async def test_get_session_invalid(self, reg):
        assert await reg.get_session("nonexistent-token") is None

    @pytest.mark.asyncio
    async def test_remove_session(self, reg):
        session = await reg.create_session()
        await reg.remove_session(session.token)
        assert reg.session_count == 0
        assert await reg.get_session(session.token) is None

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, reg):
        idle = await reg.create_session()
        await reg.create_session()
        idle.last_active = time.time() - 10
        assert await reg.cleanup_expired() == 1
        assert reg.session_count == 1
        assert await reg.get_session(idle.token) is None

    @pytest.mark.asyncio
    async def test_get_session_refreshes_idle_clock(self, reg):
        session = await reg.create_session()
        session.last_active = time.time() - 10
        await reg.get_session(session.token)
        assert await reg.cleanup_expired() == 0

    @pytest.mark.asyncio
    async def test_multiple_sessions(self, reg):
        s1 = await reg.create_session()
        s2 = await reg.create_session()
        assert s1.token != s2.token
        assert reg.session_count == 2

    @pytest.mark.asyncio
    async def test_sweep_runs_in_background(self):
        reg = SessionRegistry(idle_timeout=0, sweep_interval=0.01)
        session = await reg.create_session()
        session.last_active = time.time() - 1
        reg.start_cleanup()
        try:
            await asyncio.sleep(0.05)
            assert reg.session_count == 0
        finally:
            reg.stop_cleanup()

    @pytest.mark.asyncio
    async def test_start_is_idempotent_and_stop_cancels(self, reg):
        reg.start_cleanup()
        task = reg._sweeper
        reg.start_cleanup()
        assert reg._sweeper is task
        reg.stop_cleanup()
        assert reg._sweeper is None
        await asyncio.sleep(0)
        assert task.cancelled() or task.done()
