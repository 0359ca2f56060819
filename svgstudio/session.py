"""Token sessions for the WebSocket endpoint.

A session binds an opaque token to the user whose TikTok account the
socket's ``tiktok-*`` actions act on. Idle sessions are dropped by a
background sweep started from the app lifespan.
"""

import asyncio
import time
import uuid
from dataclasses import dataclass, field

from starlette.websockets import WebSocket


@dataclass
class Session:
    token: str
    user_id: str
    last_active: float = field(default_factory=time.time)
    websocket: WebSocket | None = None

    def touch(self) -> None:
        self.last_active = time.time()

    def idle_for(self, now: float) -> float:
        return now - self.last_active


class SessionRegistry:
    def __init__(self, idle_timeout: float = 1800, sweep_interval: float = 60) -> None:
        self._sessions: dict[str, Session] = {}
        self.idle_timeout = idle_timeout
        self.sweep_interval = sweep_interval
        self._sweeper: asyncio.Task | None = None

    async def create_session(self, user_id: str | None = None) -> Session:
        """Open a session; without a host-supplied user id the token doubles as one."""
        token = str(uuid.uuid4())
        session = Session(token=token, user_id=user_id or token)
        self._sessions[token] = session
        return session

    async def get_session(self, token: str) -> Session | None:
        session = self._sessions.get(token)
        if session:
            session.touch()
        return session

    async def remove_session(self, token: str) -> None:
        self._sessions.pop(token, None)

    async def cleanup_expired(self) -> int:
        """Drop sessions idle longer than ``idle_timeout``; returns how many went."""
        now = time.time()
        expired = [t for t, s in self._sessions.items() if s.idle_for(now) > self.idle_timeout]
        for token in expired:
            del self._sessions[token]
        return len(expired)

    async def _sweep(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            await self.cleanup_expired()

    def start_cleanup(self) -> None:
        if self._sweeper is None:
            self._sweeper = asyncio.create_task(self._sweep())

    def stop_cleanup(self) -> None:
        if self._sweeper:
            self._sweeper.cancel()
            self._sweeper = None

    @property
    def session_count(self) -> int:
        return len(self._sessions)


registry = SessionRegistry()
