"""Conversation session orchestration.

A session owns an append-only log of turns. Submitting text appends the user
turn immediately and starts one asyncio task that "thinks" for a randomized
delay, classifies the text and appends the assistant turn. While that task is
in flight the session is generating and refuses further submits and
regenerations, so replies always land in the order of their user turns.
"""

import asyncio
import random
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, FrozenSet, List, Optional, Sequence, Set
from uuid import uuid4

import structlog

from ..domain.models import Category, Message, ResponseTemplate, Role, SessionSnapshot
from .classifier import QUICK_ACTIONS, WELCOME_TEMPLATE, classify
from .rendering import render, to_plain_text
from .telemetry import REPLIES, LoggingTelemetrySink, TelemetrySink

logger = structlog.get_logger()

Clock = Callable[[], datetime]
DelaySource = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def uniform_delay(
    min_ms: int = 800,
    max_ms: int = 2000,
    rng: Optional[random.Random] = None,
) -> DelaySource:
    """Delay source in seconds, uniform over [min_ms, max_ms)."""
    rng = rng or random.Random()

    def delay() -> float:
        return (min_ms + rng.random() * (max_ms - min_ms)) / 1000.0

    return delay


class MessageIdFactory:
    """Millisecond-timestamp ids, bumped to stay strictly increasing."""

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._last = 0

    def __call__(self) -> str:
        candidate = int(self._clock().timestamp() * 1000)
        self._last = max(candidate, self._last + 1)
        return str(self._last)


class ConversationSession:
    """Single-client conversation with the assistant."""

    def __init__(
        self,
        session_id: Optional[str] = None,
        *,
        classifier: Callable[[str], ResponseTemplate] = classify,
        delay_source: Optional[DelaySource] = None,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = utc_now,
        telemetry: Optional[TelemetrySink] = None,
        renderer: Callable[[str], str] = render,
    ) -> None:
        self.id = session_id or uuid4().hex
        self._classifier = classifier
        self._delay_source = delay_source or uniform_delay()
        self._sleep = sleep
        self._clock = clock
        self._next_id = MessageIdFactory(clock)
        self._telemetry = telemetry or LoggingTelemetrySink()
        self._renderer = renderer

        self._log: List[Message] = []
        self._by_id: Dict[str, Message] = {}
        self._feedback: Dict[str, bool] = {}
        self._saved: Set[str] = set()
        self._generating = False
        self._disposed = False
        self._pending: Optional[asyncio.Task] = None

        self._append(
            Role.ASSISTANT,
            WELCOME_TEMPLATE.content,
            suggestions=WELCOME_TEMPLATE.suggestions,
            category=WELCOME_TEMPLATE.category,
        )
        logger.info("session_created", session_id=self.id)

    @property
    def messages(self) -> Sequence[Message]:
        return tuple(self._log)

    @property
    def generating(self) -> bool:
        return self._generating

    @property
    def rated(self) -> FrozenSet[str]:
        return frozenset(self._feedback)

    @property
    def feedback(self) -> Dict[str, bool]:
        return dict(self._feedback)

    @property
    def saved(self) -> FrozenSet[str]:
        return frozenset(self._saved)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def get_message(self, message_id: str) -> Optional[Message]:
        return self._by_id.get(message_id)

    def latest_suggestions(self) -> Sequence[str]:
        """Suggestion chips of the most recent assistant turn."""
        for message in reversed(self._log):
            if message.role is Role.ASSISTANT:
                return message.suggestions
        return ()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            id=self.id,
            messages=tuple(self._log),
            generating=self._generating,
            rated=tuple(sorted(self._feedback)),
            saved=tuple(sorted(self._saved)),
        )

    def _append(
        self,
        role: Role,
        content: str,
        *,
        suggestions: Sequence[str] = (),
        category: Optional[Category] = None,
        reply_to: Optional[str] = None,
    ) -> Message:
        message = Message(
            id=self._next_id(),
            role=role,
            content=content,
            timestamp=self._clock(),
            suggestions=tuple(suggestions),
            category=category,
            reply_to=reply_to,
        )
        self._log.append(message)
        self._by_id[message.id] = message
        return message

    def submit(self, text: str) -> Optional[Message]:
        """Append a user turn and schedule the reply.

        Returns the appended user message, or None when the text is blank,
        a reply is still pending, or the session is disposed. Must be called
        from a running event loop.
        """
        if self._disposed:
            logger.info("submit_ignored", session_id=self.id, reason="disposed")
            return None
        if not text or not text.strip():
            logger.debug("submit_ignored", session_id=self.id, reason="empty")
            return None
        if self._generating:
            logger.info("submit_ignored", session_id=self.id, reason="generating")
            return None

        loop = asyncio.get_running_loop()
        user_message = self._append(Role.USER, text)
        logger.info(
            "user_message_added",
            session_id=self.id,
            message_id=user_message.id,
            length=len(text),
        )
        self._start_reply(loop, user_message)
        return user_message

    def submit_suggestion(self, phrase: str) -> Optional[Message]:
        return self.submit(phrase)

    def run_quick_action(self, name: str) -> Optional[Message]:
        query = QUICK_ACTIONS.get(name)
        if query is None:
            logger.warning("unknown_quick_action", session_id=self.id, name=name)
            return None
        return self.submit(query)

    def _start_reply(self, loop: asyncio.AbstractEventLoop, user_message: Message) -> None:
        self._generating = True
        self._pending = loop.create_task(self.generate_reply(user_message))

    async def generate_reply(self, user_message: Message) -> Optional[Message]:
        """Think for a while, then append the classified reply."""
        try:
            delay = self._delay_source()
            logger.debug("reply_pending", session_id=self.id, delay=round(delay, 3))
            await self._sleep(delay)
            if self._disposed:
                logger.info(
                    "reply_discarded",
                    session_id=self.id,
                    reply_to=user_message.id,
                )
                return None

            template = self._classifier(user_message.content)
            reply = self._append(
                Role.ASSISTANT,
                template.content,
                suggestions=template.suggestions,
                category=template.category,
                reply_to=user_message.id,
            )
            REPLIES.labels(category=template.category.value).inc()
            logger.info(
                "assistant_message_added",
                session_id=self.id,
                message_id=reply.id,
                reply_to=user_message.id,
                category=template.category.value,
            )
            return reply
        except Exception as e:
            logger.error(
                "reply_failed",
                session_id=self.id,
                reply_to=user_message.id,
                error=str(e),
            )
            return None
        finally:
            self._generating = False
            self._pending = None

    async def wait_idle(self) -> None:
        """Wait for the in-flight reply, if any, to finish."""
        task = self._pending
        if task is not None:
            await asyncio.wait({task})

    def rate(self, message_id: str, is_positive: bool) -> bool:
        """Record one vote for an assistant message; later votes are ignored."""
        if self._disposed:
            return False
        message = self._by_id.get(message_id)
        if message is None or message.role is not Role.ASSISTANT:
            logger.warning("feedback_rejected", session_id=self.id, message_id=message_id, reason="unknown_message")
            return False
        if message_id in self._feedback:
            logger.info("feedback_rejected", session_id=self.id, message_id=message_id, reason="already_rated")
            return False

        self._feedback[message_id] = is_positive
        try:
            self._telemetry.record_feedback(message_id, is_positive)
        except Exception as e:
            logger.error("telemetry_error", session_id=self.id, message_id=message_id, error=str(e))
        return True

    def regenerate(self) -> bool:
        """Append a fresh reply to the user turn behind the latest reply.

        Only applies when the log ends in a user turn directly followed by
        the assistant reply it triggered.
        """
        if self._disposed or self._generating:
            return False
        last = self._log[-1]
        if (
            last.role is not Role.ASSISTANT
            or last.reply_to is None
            or len(self._log) < 2
            or self._log[-2].id != last.reply_to
        ):
            logger.info("regenerate_ignored", session_id=self.id, last_message_id=last.id)
            return False

        loop = asyncio.get_running_loop()
        logger.info("regenerate_started", session_id=self.id, reply_to=last.reply_to)
        self._start_reply(loop, self._log[-2])
        return True

    def toggle_saved(self, message_id: str) -> bool:
        """Bookmark or un-bookmark an assistant message; returns the new state."""
        message = self._by_id.get(message_id)
        if self._disposed or message is None or message.role is not Role.ASSISTANT:
            return False
        if message_id in self._saved:
            self._saved.remove(message_id)
            return False
        self._saved.add(message_id)
        return True

    def render(self, message_id: str) -> Optional[str]:
        message = self._by_id.get(message_id)
        return None if message is None else self._renderer(message.content)

    def plain_text(self, message_id: str) -> Optional[str]:
        message = self._by_id.get(message_id)
        return None if message is None else to_plain_text(message.content)

    def dispose(self) -> None:
        """Tear the session down and cancel any pending reply."""
        if self._disposed:
            return
        self._disposed = True
        self._generating = False
        task = self._pending
        if task is not None and not task.done():
            task.cancel()
        logger.info("session_disposed", session_id=self.id, messages=len(self._log))
