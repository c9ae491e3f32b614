"""Runtime configuration read from the environment."""

import os
from typing import Optional

from pydantic import BaseModel, model_validator


class Settings(BaseModel):
    """Assistant settings."""

    thinking_delay_min_ms: int = 800
    thinking_delay_max_ms: int = 2000
    rate_limit: int = 50
    rate_window_seconds: int = 60
    max_sessions: int = 1000

    @model_validator(mode="after")
    def _check_ranges(self) -> "Settings":
        if self.thinking_delay_min_ms < 0:
            raise ValueError("thinking_delay_min_ms must not be negative")
        if self.thinking_delay_min_ms > self.thinking_delay_max_ms:
            raise ValueError("thinking_delay_min_ms must not exceed thinking_delay_max_ms")
        if self.rate_limit <= 0 or self.rate_window_seconds <= 0:
            raise ValueError("rate limit and window must be positive")
        if self.max_sessions <= 0:
            raise ValueError("max_sessions must be positive")
        return self

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from KAYD_* environment variables."""
        values = {
            "thinking_delay_min_ms": os.getenv("KAYD_THINKING_DELAY_MIN_MS"),
            "thinking_delay_max_ms": os.getenv("KAYD_THINKING_DELAY_MAX_MS"),
            "rate_limit": os.getenv("KAYD_RATE_LIMIT"),
            "rate_window_seconds": os.getenv("KAYD_RATE_WINDOW_SECONDS"),
            "max_sessions": os.getenv("KAYD_MAX_SESSIONS"),
        }
        return cls(**{key: value for key, value in values.items() if value is not None})


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
