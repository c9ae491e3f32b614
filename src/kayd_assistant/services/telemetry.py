"""Telemetry sinks for assistant feedback and replies."""

from typing import Protocol

import structlog
from prometheus_client import CollectorRegistry, Counter

logger = structlog.get_logger()

# Registry for isolated metric collection
METRICS_REGISTRY = CollectorRegistry()

FEEDBACK = Counter(
    "assistant_feedback_total",
    "Feedback votes on assistant replies",
    ["polarity"],
    registry=METRICS_REGISTRY,
)
REPLIES = Counter(
    "assistant_replies_total",
    "Assistant replies appended by category",
    ["category"],
    registry=METRICS_REGISTRY,
)


class TelemetrySink(Protocol):
    """Fire-and-forget receiver of feedback votes."""

    def record_feedback(self, message_id: str, is_positive: bool) -> None:
        ...


class LoggingTelemetrySink:
    """Logs feedback and counts it in Prometheus."""

    def record_feedback(self, message_id: str, is_positive: bool) -> None:
        polarity = "positive" if is_positive else "negative"
        FEEDBACK.labels(polarity=polarity).inc()
        logger.info("feedback_recorded", message_id=message_id, polarity=polarity)
