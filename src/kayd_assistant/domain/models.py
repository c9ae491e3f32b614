"""Domain models for the assistant."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Author of a turn."""

    USER = "user"
    ASSISTANT = "assistant"


class Category(str, Enum):
    """Tag naming the kind of rule that produced a reply."""

    SEARCH = "search"
    BOOKING = "booking"
    COMPARISON = "comparison"
    RECOMMENDATION = "recommendation"
    INFO = "info"


class ResponseTemplate(BaseModel):
    """Canned reply produced by the classifier."""

    model_config = ConfigDict(frozen=True)

    content: str
    suggestions: Tuple[str, ...] = Field(default=(), max_length=4)
    category: Category = Category.INFO


class Rule(BaseModel):
    """Trigger phrases mapped to a template."""

    model_config = ConfigDict(frozen=True)

    name: str
    triggers: Tuple[str, ...]
    template: ResponseTemplate


class Message(BaseModel):
    """Message model. Never mutated once appended to a session log."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: Role
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    suggestions: Tuple[str, ...] = ()
    category: Optional[Category] = None
    reply_to: Optional[str] = None  # triggering user message, assistant only


class SessionSnapshot(BaseModel):
    """Read model handed to the presentation layer."""

    id: str
    messages: Tuple[Message, ...]
    generating: bool
    rated: Tuple[str, ...]
    saved: Tuple[str, ...]
