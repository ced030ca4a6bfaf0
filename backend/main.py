"""
FastAPI entry point for the microcycle planner.

create_app() wires settings, logging, Sentry and the shared completion
client into one application. Tests build their own app with explicit
settings and a fake client; uvicorn serves the module-level ``app``:

    uvicorn backend.main:app --reload

    app = create_app(
        settings=Settings(environment="test", _env_file=None),
        completion_client=FakeCompletionClient(),
    )
"""

import logging
from typing import Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from application.ports import CompletionService
from backend.settings import Settings, get_settings
from services.llm.client import CompletionClient

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    completion_client: Optional[CompletionService] = None,
) -> FastAPI:
    """
    Create and configure a FastAPI application instance.

    Args:
        settings: Optional Settings instance. If not provided, uses get_settings()
                  which loads from environment variables.
        completion_client: Optional completion service. If not provided, one is
                  built from settings; it lives as long as the app.

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    _configure_logging(settings)

    _init_sentry(settings)

    app = FastAPI(
        title="Microcycle Planner API",
        description="Multi-day training plan generation with policy guards and adaptation",
        version="1.0.0",
    )

    app.state.settings = settings
    app.state.completion_client = completion_client or CompletionClient.from_settings(settings)

    if not app.state.completion_client.is_available():
        logger.info("No OpenAI key configured; planning will use deterministic fallbacks")

    _configure_cors(app)
    _include_routers(app)

    return app


def _configure_logging(settings: Settings) -> None:
    """Configure root logging once from settings."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _init_sentry(settings: Settings) -> None:
    """Send errors to Sentry when a DSN is configured."""
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,
            profiles_sample_rate=0.1,
        )
        logger.info("Sentry initialized for microcycle-planner")


def _configure_cors(app: FastAPI) -> None:
    """Allow the local web frontends to call the API."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _include_routers(app: FastAPI) -> None:
    """Mount the health and planning routers."""
    from api.routers import health_router, planning_router

    app.include_router(health_router)
    app.include_router(planning_router)


# Served by uvicorn
app = create_app()
