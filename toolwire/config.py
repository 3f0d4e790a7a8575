# toolwire/config.py
"""
Configuration for toolwire.

Values are loaded from environment variables (optionally via a .env file at the
project root) and validated with Pydantic. Every knob has a sane default so the
dispatcher works with no configuration at all.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from pydantic import BeforeValidator, Field, model_validator
from pydantic_settings import BaseSettings, NoDecode

# Resolve .env relative to the project root (one level above toolwire/),
# so the config works regardless of the user's current working directory.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


def _coerce_str_list(value: object) -> list[str]:
    """Coerce env-var values into a list of stripped, non-empty strings.

    Accepts a single string, a comma-separated string ("en,de") or an
    existing list. Env values arrive raw because the field is marked NoDecode.
    """
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return []


StrList = Annotated[list[str], NoDecode, BeforeValidator(_coerce_str_list)]


class RetryConfig(BaseSettings):
    """Bounded retry with a fixed delay between attempts.

    ``max_attempts`` counts retries after the first try, so 2 means at most
    three invocations.
    """

    max_attempts: int = Field(2, alias="TOOLWIRE_RETRY_MAX_ATTEMPTS")
    delay_ms: int = Field(1000, alias="TOOLWIRE_RETRY_DELAY_MS")

    model_config = {"env_file": _ENV_FILE, "extra": "ignore", "populate_by_name": True}

    @model_validator(mode="after")
    def normalize_limits(self) -> "RetryConfig":
        self.max_attempts = max(0, int(self.max_attempts))
        self.delay_ms = max(0, int(self.delay_ms))
        return self


class TranscriptConfig(BaseSettings):
    """Configuration for the video transcript tool."""

    languages: StrList = Field(
        default_factory=lambda: ["en"],
        alias="TOOLWIRE_TRANSCRIPT_LANGUAGES",
    )
    # Retries for the external fetch only; 0 keeps a single attempt.
    retries: int = Field(0, alias="TOOLWIRE_TRANSCRIPT_RETRIES")
    retry_delay_ms: int = Field(1000, alias="TOOLWIRE_TRANSCRIPT_RETRY_DELAY_MS")

    model_config = {"env_file": _ENV_FILE, "extra": "ignore", "populate_by_name": True}

    @model_validator(mode="after")
    def normalize_limits(self) -> "TranscriptConfig":
        self.retries = max(0, int(self.retries))
        self.retry_delay_ms = max(0, int(self.retry_delay_ms))
        if not self.languages:
            self.languages = ["en"]
        return self


class CalculatorConfig(BaseSettings):
    """Configuration for the calculator tool."""

    max_length: int = Field(512, alias="TOOLWIRE_CALC_MAX_LENGTH")
    precision: int = Field(14, alias="TOOLWIRE_CALC_PRECISION")

    model_config = {"env_file": _ENV_FILE, "extra": "ignore", "populate_by_name": True}

    @model_validator(mode="after")
    def normalize_limits(self) -> "CalculatorConfig":
        self.max_length = max(1, int(self.max_length))
        self.precision = max(1, min(64, int(self.precision)))
        return self


class ToolwireConfig:
    """
    Master configuration that composes all subsystem configs.

    Every component receives its config from here or takes the subsystem
    config directly; nothing reads the environment on its own.
    """

    def __init__(self):
        self.retry = RetryConfig()
        self.transcript = TranscriptConfig()
        self.calculator = CalculatorConfig()

    def __repr__(self) -> str:
        return (
            f"ToolwireConfig(retry={self.retry!r}, transcript={self.transcript!r}, "
            f"calculator={self.calculator!r})"
        )
