"""In-memory anonymous session store with periodic expiry cleanup."""

import asyncio
import contextlib
import secrets
import time
from uuid import uuid4

import structlog

from shared.auth.models import AnonymousSession

CLEANUP_INTERVAL_SECONDS = 300  # 5 minutes
DEFAULT_SESSION_TTL_SECONDS = 86400  # 24 hours

logger = structlog.get_logger()


class AnonymousSessionStore:
    """Maps bearer tokens to anonymous identities.

    Sessions are ephemeral: a server restart issues fresh identities.
    Call start_cleanup() on app startup and stop_cleanup() on shutdown.
    """

    def __init__(self, ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS) -> None:
        self._ttl_seconds = ttl_seconds
        self._sessions: dict[str, AnonymousSession] = {}  # token -> session
        self._cleanup_task: asyncio.Task[None] | None = None

    def create_session(self) -> AnonymousSession:
        """Sign in a new anonymous participant."""
        now = time.time()
        session = AnonymousSession(
            token=secrets.token_urlsafe(32),
            identity=str(uuid4()),
            created_at=now,
            expires_at=now + self._ttl_seconds,
        )
        self._sessions[session.token] = session
        logger.info("anonymous session created", identity=session.identity)
        return session

    def get_session(self, token: str) -> AnonymousSession | None:
        """Return a valid (non-expired) session, or None."""
        session = self._sessions.get(token)
        if session is None:
            return None
        if time.time() > session.expires_at:
            del self._sessions[token]
            return None
        return session

    def delete_session(self, token: str) -> None:
        self._sessions.pop(token, None)

    def cleanup_expired(self) -> int:
        """Remove all expired sessions. Return count of removed sessions."""
        now = time.time()
        expired = [token for token, s in self._sessions.items() if now > s.expires_at]
        for token in expired:
            del self._sessions[token]
        if expired:
            logger.info("cleaned up expired sessions", count=len(expired))
        return len(expired)

    def start_cleanup(self) -> None:
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop_cleanup(self) -> None:
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None

    async def _cleanup_loop(self) -> None:  # pragma: no cover - long-running background loop
        while True:
            await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
            self.cleanup_expired()
