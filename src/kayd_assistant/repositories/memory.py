"""In-memory session repository implementation."""

import asyncio
from typing import Callable, Dict, List, Optional

import structlog

from ..services.session import ConversationSession
from .base import SessionNotFoundError, SessionRepository

logger = structlog.get_logger()


class InMemorySessionRepository(SessionRepository):
    """Keeps live sessions in process memory; nothing is persisted.

    When ``max_sessions`` is reached the oldest session is disposed to make
    room for the new one.
    """

    def __init__(
        self,
        session_factory: Callable[[], ConversationSession] = ConversationSession,
        max_sessions: int = 1000,
    ) -> None:
        self._session_factory = session_factory
        self._max_sessions = max_sessions
        self._sessions: Dict[str, ConversationSession] = {}
        self._lock = asyncio.Lock()
        logger.info("repository_initialized", max_sessions=max_sessions)

    async def create_session(self) -> ConversationSession:
        """Create and register a new session."""
        session = self._session_factory()
        async with self._lock:
            while len(self._sessions) >= self._max_sessions:
                oldest_id = next(iter(self._sessions))
                self._sessions.pop(oldest_id).dispose()
                logger.warning("session_evicted", session_id=oldest_id)
            self._sessions[session.id] = session
        return session

    async def get_session(self, session_id: str) -> Optional[ConversationSession]:
        """Retrieve a live session by ID."""
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                logger.warning("session_not_found", session_id=session_id)
            return session

    async def require_session(self, session_id: str) -> ConversationSession:
        """Retrieve a live session or raise SessionNotFoundError."""
        session = await self.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    async def list_sessions(self, limit: int = 100, offset: int = 0) -> List[ConversationSession]:
        """List live sessions, oldest first, with pagination."""
        async with self._lock:
            sessions = list(self._sessions.values())
            return sessions[offset : offset + limit]

    async def dispose_session(self, session_id: str) -> bool:
        """Dispose and forget a session."""
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            logger.warning("session_not_found_for_dispose", session_id=session_id)
            return False
        session.dispose()
        return True

    async def clear(self) -> None:
        """Dispose every session."""
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.dispose()
        logger.info("repository_cleared", disposed=len(sessions))
