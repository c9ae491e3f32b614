"""Test suite for the session registry and settings."""

import pytest

from kayd_assistant.config import Settings
from kayd_assistant.repositories.base import SessionNotFoundError
from kayd_assistant.repositories.memory import InMemorySessionRepository
from kayd_assistant.services.session import ConversationSession


@pytest.mark.asyncio
async def test_create_get_and_list_sessions():
    """Test sessions are registered and listed oldest first."""
    repository = InMemorySessionRepository()
    first = await repository.create_session()
    second = await repository.create_session()

    assert first.id != second.id
    assert await repository.get_session(first.id) is first
    assert [s.id for s in await repository.list_sessions()] == [first.id, second.id]
    assert [s.id for s in await repository.list_sessions(limit=1, offset=1)] == [second.id]


@pytest.mark.asyncio
async def test_unknown_session():
    """Test lookups of unknown ids."""
    repository = InMemorySessionRepository()
    assert await repository.get_session("missing") is None
    assert not await repository.dispose_session("missing")
    with pytest.raises(SessionNotFoundError):
        await repository.require_session("missing")


@pytest.mark.asyncio
async def test_dispose_session():
    """Test disposal removes and tears down the session."""
    repository = InMemorySessionRepository()
    session = await repository.create_session()

    assert await repository.dispose_session(session.id)
    assert session.disposed
    assert await repository.get_session(session.id) is None


@pytest.mark.asyncio
async def test_oldest_session_is_evicted_at_capacity():
    """Test the registry stays within max_sessions."""
    repository = InMemorySessionRepository(ConversationSession, max_sessions=2)
    sessions = [await repository.create_session() for _ in range(3)]

    assert sessions[0].disposed
    assert [s.id for s in await repository.list_sessions()] == [sessions[1].id, sessions[2].id]


@pytest.mark.asyncio
async def test_clear_disposes_everything():
    """Test shutdown cleanup."""
    repository = InMemorySessionRepository()
    sessions = [await repository.create_session() for _ in range(3)]
    await repository.clear()
    assert all(s.disposed for s in sessions)
    assert await repository.list_sessions() == []


def test_settings_from_env(monkeypatch):
    """Test KAYD_* variables override defaults."""
    monkeypatch.setenv("KAYD_THINKING_DELAY_MIN_MS", "10")
    monkeypatch.setenv("KAYD_THINKING_DELAY_MAX_MS", "20")
    monkeypatch.setenv("KAYD_RATE_LIMIT", "5")
    settings = Settings.from_env()
    assert settings.thinking_delay_min_ms == 10
    assert settings.thinking_delay_max_ms == 20
    assert settings.rate_limit == 5
    assert settings.rate_window_seconds == 60


def test_settings_defaults_and_validation():
    """Test defaults and rejected ranges."""
    settings = Settings()
    assert (settings.thinking_delay_min_ms, settings.thinking_delay_max_ms) == (800, 2000)
    with pytest.raises(ValueError):
        Settings(thinking_delay_min_ms=3000)
    with pytest.raises(ValueError):
        Settings(thinking_delay_min_ms=-1)
    with pytest.raises(ValueError):
        Settings(rate_limit=0)
