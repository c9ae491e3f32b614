"""Base session repository interface."""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..services.session import ConversationSession


class SessionNotFoundError(ValueError):
    """Raised when a session id is unknown."""


class SessionRepository(ABC):
    """Abstract base class for session registries."""

    @abstractmethod
    async def create_session(self) -> ConversationSession:
        """Create and register a new session."""
        pass

    @abstractmethod
    async def get_session(self, session_id: str) -> Optional[ConversationSession]:
        """Retrieve a live session by ID."""
        pass

    @abstractmethod
    async def require_session(self, session_id: str) -> ConversationSession:
        """Retrieve a live session or raise SessionNotFoundError."""
        pass

    @abstractmethod
    async def list_sessions(self, limit: int = 100, offset: int = 0) -> List[ConversationSession]:
        """List live sessions with pagination."""
        pass

    @abstractmethod
    async def dispose_session(self, session_id: str) -> bool:
        """Dispose and forget a session. Returns False for unknown IDs."""
        pass
