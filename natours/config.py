"""
Natours Backend — Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the app factory; pipeline stages receive the values they
       need at construction instead of reading settings themselves.
When:  Loaded once at module import time.

The only switch that changes request handling behaviour at runtime is
ENVIRONMENT: it selects the error verbosity and enables the development
request logger. Everything else fixes the pipeline's parameters at startup.
"""

import enum
from pathlib import Path
from typing import FrozenSet

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Repository root; the public/ asset directory lives next to the package.
BASE_DIR = Path(__file__).resolve().parent.parent


class Verbosity(str, enum.Enum):
    """How much detail the global error handler puts in error responses."""

    VERBOSE = "verbose"  # development: message, detail and stack trace
    MINIMAL = "minimal"  # production: safe message only


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes are grouped by the pipeline stage that consumes them.
    """

    # ── Runtime Mode ──────────────────────────────────────────────────────
    # Valid: development, production
    environment: str = Field(default="production")

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensures environment is one of the two supported modes."""
        valid = {"development", "production"}
        lower = v.strip().lower()
        if lower not in valid:
            raise ValueError(f"Invalid environment '{v}'. Must be one of: {valid}")
        return lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def error_verbosity(self) -> Verbosity:
        return Verbosity.VERBOSE if self.is_development else Verbosity.MINIMAL

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # Fixed window per client address, applied only under rate_limit_scope.
    rate_limit_max: int = Field(default=100, ge=1, le=100_000)
    rate_limit_window_ms: int = Field(default=60 * 60 * 1000, ge=1000)
    rate_limit_scope: str = Field(default="/api")
    rate_limit_message: str = Field(
        default="Too many requests from this IP , please try again in an hour!"
    )

    # ── Body Decoder ──────────────────────────────────────────────────────
    # 10 KB; larger payloads are rejected with 413 before any router runs.
    body_limit_bytes: int = Field(default=10 * 1024, ge=1)

    # ── Parameter Deduplication ───────────────────────────────────────────
    # Comma-separated query keys allowed to repeat (parsed by property below).
    param_whitelist: str = Field(
        default="duration,ratingsAverage,ratingsQuantity,maxGroupSize,difficulty,price"
    )

    @property
    def param_whitelist_set(self) -> FrozenSet[str]:
        """Splits the comma-separated allow-list into an immutable set."""
        return frozenset(
            key.strip() for key in self.param_whitelist.split(",") if key.strip()
        )

    # ── Static Assets ─────────────────────────────────────────────────────
    public_dir: str = Field(default=str(BASE_DIR / "public"))

    # ── Auth Collaborator ─────────────────────────────────────────────────
    # Used by the users/reviews routers to decode bearer tokens.
    jwt_secret: str = Field(default="natours-development-secret-change-me")
    jwt_algorithm: str = Field(default="HS256")

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton instance used by natours.main when no override is given
settings = Settings()
