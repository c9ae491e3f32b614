"""Shared fixtures for the assistant tests."""

import asyncio
from typing import List, Optional, Tuple

import pytest

from kayd_assistant.services.session import ConversationSession


class GatedSleep:
    """Sleep replacement that blocks until the test releases it."""

    def __init__(self) -> None:
        self.delays: List[float] = []
        self._event: Optional[asyncio.Event] = None

    def _gate(self) -> asyncio.Event:
        if self._event is None:
            self._event = asyncio.Event()
        return self._event

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await self._gate().wait()

    def release(self) -> None:
        self._gate().set()


class RecordingSink:
    """Telemetry sink that keeps every vote."""

    def __init__(self) -> None:
        self.votes: List[Tuple[str, bool]] = []

    def record_feedback(self, message_id: str, is_positive: bool) -> None:
        self.votes.append((message_id, is_positive))


async def no_sleep(delay: float) -> None:
    await asyncio.sleep(0)


@pytest.fixture
def gate() -> GatedSleep:
    return GatedSleep()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def session(gate, sink) -> ConversationSession:
    return ConversationSession(delay_source=lambda: 1.0, sleep=gate, telemetry=sink)


@pytest.fixture
def fast_session(sink) -> ConversationSession:
    return ConversationSession(delay_source=lambda: 0.0, sleep=no_sleep, telemetry=sink)
