"""Per-client sliding window rate limiting for the HTTP layer."""

import asyncio
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from fastapi import Request
from structlog import get_logger

logger = get_logger()


class RateLimitExceeded(Exception):
    """Raised when a client exceeds its request budget."""

    def __init__(self, key: str, retry_after: float) -> None:
        super().__init__(f"Rate limit exceeded for {key}")
        self.key = key
        self.retry_after = retry_after


class RateLimiter:
    """Allows ``rate_limit`` requests per key within ``time_window`` seconds."""

    def __init__(
        self,
        rate_limit: int = 50,
        time_window: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.rate_limit = rate_limit
        self.time_window = time_window
        self._clock = clock
        self._requests: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()
        self._lock = asyncio.Lock()
        logger.info("rate_limiter_initialized", rate_limit=rate_limit, time_window=time_window)

    def _evict(self, window: Deque[float], now: float) -> None:
        while window and now - window[0] >= self.time_window:
            window.popleft()

    def _sweep(self, now: float) -> None:
        """Drop keys whose window has emptied, at most once per time window."""
        if now - self._last_sweep < self.time_window:
            return
        self._last_sweep = now
        for key in list(self._requests.keys()):
            window = self._requests[key]
            self._evict(window, now)
            if not window:
                del self._requests[key]
        logger.debug("rate_limiter_swept", keys=len(self._requests))

    async def check_rate_limit(self, key: str) -> None:
        """Track one request for ``key`` or raise RateLimitExceeded."""
        async with self._lock:
            now = self._clock()
            self._sweep(now)
            window = self._requests.setdefault(key, deque())
            self._evict(window, now)

            if len(window) >= self.rate_limit:
                retry_after = self.time_window - (now - window[0])
                logger.warning(
                    "rate_limit_exceeded",
                    key=key,
                    current_requests=len(window),
                    rate_limit=self.rate_limit,
                )
                raise RateLimitExceeded(key, retry_after)

            window.append(now)

    async def get_remaining_requests(self, key: str) -> int:
        async with self._lock:
            window = self._requests.get(key)
            if not window:
                return self.rate_limit
            self._evict(window, self._clock())
            if not window:
                del self._requests[key]
                return self.rate_limit
            return max(0, self.rate_limit - len(window))

    async def reset(self) -> None:
        async with self._lock:
            self._requests.clear()


async def rate_limit_middleware(
    request: Request,
    rate_limiter: Optional[RateLimiter] = None
) -> None:
    """Check the limit for the calling client and path."""
    if rate_limiter is None:
        return

    client_ip = request.client.host if request.client else "unknown"
    key = f"{client_ip}:{request.url.path}"
    await rate_limiter.check_rate_limit(key)
