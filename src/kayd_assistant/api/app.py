"""
FastAPI Application Module

HTTP presentation layer for the Kayd equipment assistant. Each client holds
one conversation session; the API exposes the session log, the "thinking"
flag and the feedback state, and drives the session operations.

Key Features:
- Async session orchestration with simulated thinking latency
- Per-client rate limiting
- Structured logging and Prometheus metrics
- CORS and OpenTelemetry support

Sessions live in process memory only and are disposed on DELETE or shutdown.
"""

from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import Counter, generate_latest
from pydantic import BaseModel, Field
from structlog import get_logger

from ..config import get_settings
from ..domain.models import Message, SessionSnapshot
from ..repositories.memory import InMemorySessionRepository
from ..services.classifier import QUICK_ACTIONS
from ..services.session import ConversationSession, uniform_delay
from ..services.telemetry import METRICS_REGISTRY
from .rate_limiter import RateLimiter, RateLimitExceeded, rate_limit_middleware

# Core operational metrics for monitoring
REQUESTS = Counter("http_requests_total", "Total HTTP requests", ["method"], registry=METRICS_REGISTRY)
ERRORS = Counter("http_errors_total", "Total failed HTTP requests", ["method"], registry=METRICS_REGISTRY)

logger = get_logger()


class MessageCreate(BaseModel):
    """Free-text user turn"""
    content: str


class SuggestionCreate(BaseModel):
    """Suggestion chip clicked by the user"""
    phrase: str


class FeedbackCreate(BaseModel):
    """Thumbs up/down on an assistant turn"""
    message_id: str
    is_positive: bool


class SubmitResult(BaseModel):
    accepted: bool
    message: Optional[Message] = None


class FeedbackResult(BaseModel):
    recorded: bool


class RegenerateResult(BaseModel):
    accepted: bool


class SaveResult(BaseModel):
    saved: bool


class RenderedMessage(BaseModel):
    id: str
    html: str
    plain_text: str


class SessionList(BaseModel):
    sessions: List[str] = Field(default_factory=list)


settings = get_settings()


def build_session() -> ConversationSession:
    """Session factory wired with the configured thinking delay"""
    return ConversationSession(
        delay_source=uniform_delay(settings.thinking_delay_min_ms, settings.thinking_delay_max_ms)
    )


# Core service instances
repository = InMemorySessionRepository(build_session, max_sessions=settings.max_sessions)
rate_limiter = RateLimiter(rate_limit=settings.rate_limit, time_window=settings.rate_window_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Disposes every live session on shutdown"""
    logger.info("application_startup_complete")

    yield

    await repository.clear()
    logger.info("application_shutdown_complete")


def get_repository() -> InMemorySessionRepository:
    """Returns the session registry"""
    return repository


def get_rate_limiter() -> RateLimiter:
    """Returns the rate limiting service"""
    return rate_limiter


async def resolve_session(
    session_id: str,
    repository: InMemorySessionRepository = Depends(get_repository)
) -> ConversationSession:
    """Looks up a live session or answers 404"""
    session = await repository.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def require_message(session: ConversationSession, message_id: str) -> Message:
    message = session.get_message(message_id)
    if message is None:
        raise HTTPException(status_code=404, detail="Message not found")
    return message


app = FastAPI(
    title="Kayd Assistant API",
    description="Rule-based equipment rental assistant",
    version="0.1.0",
    lifespan=lifespan
)

# Enable cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Set up request tracing
FastAPIInstrumentor.instrument_app(app)


@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Tracks requests and enforces rate limits"""
    REQUESTS.labels(method=request.method).inc()
    logger.info("request_started", method=request.method, path=request.url.path)
    try:
        await rate_limit_middleware(request, get_rate_limiter())
    except RateLimitExceeded as e:
        ERRORS.labels(method=request.method).inc()
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many requests"},
            headers={"Retry-After": str(max(1, int(e.retry_after)))},
        )
    try:
        return await call_next(request)
    except Exception as e:
        ERRORS.labels(method=request.method).inc()
        logger.error("request_failed", path=request.url.path, error=str(e))
        raise


@app.post("/sessions", response_model=SessionSnapshot)
async def create_session(
    repository: InMemorySessionRepository = Depends(get_repository)
) -> SessionSnapshot:
    """Starts a new conversation seeded with the welcome message"""
    try:
        session = await repository.create_session()
        return session.snapshot()
    except Exception as e:
        logger.error("create_session_error", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to create session")


@app.get("/sessions", response_model=SessionList)
async def list_sessions(
    limit: int = 100,
    offset: int = 0,
    repository: InMemorySessionRepository = Depends(get_repository)
) -> SessionList:
    """Lists live session ids"""
    sessions = await repository.list_sessions(limit=limit, offset=offset)
    return SessionList(sessions=[session.id for session in sessions])


@app.get("/sessions/{session_id}", response_model=SessionSnapshot)
async def get_session(session: ConversationSession = Depends(resolve_session)) -> SessionSnapshot:
    """Returns the log, the thinking flag and the feedback state"""
    return session.snapshot()


@app.delete("/sessions/{session_id}", status_code=204)
async def dispose_session(
    session_id: str,
    repository: InMemorySessionRepository = Depends(get_repository)
) -> Response:
    """Closes a session and discards any pending reply"""
    if not await repository.dispose_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return Response(status_code=204)


@app.post("/sessions/{session_id}/messages", response_model=SubmitResult, status_code=202)
async def submit_message(
    message: MessageCreate,
    session: ConversationSession = Depends(resolve_session)
) -> SubmitResult:
    """
    Appends the user turn and starts generating the reply.
    Poll the session to pick up the assistant turn.
    """
    user_message = session.submit(message.content)
    return SubmitResult(accepted=user_message is not None, message=user_message)


@app.post("/sessions/{session_id}/suggestions", response_model=SubmitResult, status_code=202)
async def submit_suggestion(
    suggestion: SuggestionCreate,
    session: ConversationSession = Depends(resolve_session)
) -> SubmitResult:
    """Sends a suggestion chip as the next user turn"""
    user_message = session.submit_suggestion(suggestion.phrase)
    return SubmitResult(accepted=user_message is not None, message=user_message)


@app.get("/quick-actions", response_model=Dict[str, str])
async def list_quick_actions() -> Dict[str, str]:
    return dict(QUICK_ACTIONS)


@app.post("/sessions/{session_id}/quick-actions/{name}", response_model=SubmitResult, status_code=202)
async def run_quick_action(
    name: str,
    session: ConversationSession = Depends(resolve_session)
) -> SubmitResult:
    """Sends a preset query as the next user turn"""
    if name not in QUICK_ACTIONS:
        raise HTTPException(status_code=404, detail="Quick action not found")
    user_message = session.run_quick_action(name)
    return SubmitResult(accepted=user_message is not None, message=user_message)


@app.post("/sessions/{session_id}/feedback", response_model=FeedbackResult)
async def rate_message(
    feedback: FeedbackCreate,
    session: ConversationSession = Depends(resolve_session)
) -> FeedbackResult:
    """Records a one-shot vote; repeated votes are ignored"""
    return FeedbackResult(recorded=session.rate(feedback.message_id, feedback.is_positive))


@app.post("/sessions/{session_id}/regenerate", response_model=RegenerateResult, status_code=202)
async def regenerate(session: ConversationSession = Depends(resolve_session)) -> RegenerateResult:
    """Generates another reply to the latest user turn"""
    return RegenerateResult(accepted=session.regenerate())


@app.post("/sessions/{session_id}/messages/{message_id}/save", response_model=SaveResult)
async def toggle_saved(
    message_id: str,
    session: ConversationSession = Depends(resolve_session)
) -> SaveResult:
    """Bookmarks or un-bookmarks an assistant turn"""
    require_message(session, message_id)
    return SaveResult(saved=session.toggle_saved(message_id))


@app.get("/sessions/{session_id}/messages/{message_id}/html", response_model=RenderedMessage)
async def render_message(
    message_id: str,
    session: ConversationSession = Depends(resolve_session)
) -> RenderedMessage:
    """Returns escaped display markup and a copyable plain-text form"""
    message = require_message(session, message_id)
    return RenderedMessage(
        id=message.id,
        html=session.render(message_id),
        plain_text=session.plain_text(message_id),
    )


@app.get("/metrics")
async def metrics():
    """Provides Prometheus metrics for system monitoring"""
    return Response(generate_latest(METRICS_REGISTRY), media_type="text/plain")
