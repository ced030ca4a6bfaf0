"""
Planner configuration read from the environment (and an optional .env).

Every knob the service exposes lives here: the OpenAI key and models, the
per-call concurrency and time budgets, and Sentry. FastAPI code reads the
instance stored on app.state; scripts call get_settings() directly:

    settings = get_settings()
    orchestrator = PlanOrchestrator.from_settings(settings, client)
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.constants import PLACEHOLDER_API_KEYS


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Core Environment
    # -------------------------------------------------------------------------
    environment: str = Field(
        default="development",
        description="Runtime environment: development, staging, production",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level (DEBUG, INFO, WARNING, ERROR)",
    )

    # -------------------------------------------------------------------------
    # Text Generation Service
    # -------------------------------------------------------------------------
    openai_api_key: Optional[str] = Field(
        default=None,
        description="OpenAI API key. Without it every stage uses its deterministic fallback",
    )
    openai_base_url: Optional[str] = Field(
        default=None,
        description="Override for OpenAI-compatible endpoints",
    )
    planner_model: str = Field(
        default="gpt-4o-mini",
        description="Model used for planning, exercise generation and adaptation",
    )
    refinement_model: Optional[str] = Field(
        default=None,
        description="Model for the optional refinement pass (defaults to planner_model)",
    )
    completion_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Per-request timeout for the text generation service",
    )

    # -------------------------------------------------------------------------
    # Planning
    # -------------------------------------------------------------------------
    max_concurrent_compilations: int = Field(
        default=4,
        ge=1,
        le=8,
        description="Upper bound on concurrent per-day exercise generation calls",
    )
    planning_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Default time budget for a whole planning call",
    )

    # -------------------------------------------------------------------------
    # Observability - Sentry
    # -------------------------------------------------------------------------
    sentry_dsn: Optional[str] = Field(
        default=None,
        description="Sentry DSN for error tracking",
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is a valid value."""
        valid_environments = {"development", "staging", "production", "test"}
        if v.lower() not in valid_environments:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {valid_environments}"
            )
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is one the logging module knows."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Invalid log level '{v}'")
        return level

    # -------------------------------------------------------------------------
    # Helper Properties
    # -------------------------------------------------------------------------
    @property
    def has_openai_key(self) -> bool:
        """Check whether a usable OpenAI key is configured."""
        key = (self.openai_api_key or "").strip()
        return key not in PLACEHOLDER_API_KEYS

    @property
    def effective_refinement_model(self) -> str:
        """Model for the refinement pass."""
        return self.refinement_model or self.planner_model

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


@lru_cache
def get_settings() -> Settings:
    """Settings loaded once per process; tests reset with get_settings.cache_clear()."""
    return Settings()
