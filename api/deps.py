"""
FastAPI Dependency Providers for the Microcycle Planner API.

This module provides FastAPI dependency injection functions that return
interface types (Protocols) or configured services rather than building
them inside route handlers.

Architecture:
- Settings are cached per-process (lru_cache)
- The completion client is created once by the app factory and lives on
  app.state; providers hand out that shared instance
- Planning services are cheap and created per-request

Usage in routers:
    from api.deps import get_orchestrator
    from services.orchestrator import PlanOrchestrator

    @router.post("/plans")
    async def create_plan(
        request: PlanRequest,
        orchestrator: PlanOrchestrator = Depends(get_orchestrator),
    ):
        return await orchestrator.plan(request.context, request.options)

Testing:
    # Override dependencies in tests
    app.dependency_overrides[get_completion_client] = lambda: FakeCompletionClient()
"""

from typing import Optional

from fastapi import Depends, Request

from application.ports import CompletionService
from backend.settings import Settings, get_settings as _get_settings
from services.adaptation_planner import AdaptationPlanner
from services.feedback_analyzer import FeedbackAnalyzer
from services.orchestrator import PlanOrchestrator


# =============================================================================
# Settings Provider
# =============================================================================


def get_settings(request: Request) -> Settings:
    """
    Get application settings.

    Prefers the Settings the app was created with, falling back to the
    cached instance from backend.settings.

    Returns:
        Settings: Application settings instance
    """
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else _get_settings()


# =============================================================================
# Completion Client Provider
# =============================================================================


def get_completion_client(request: Request) -> Optional[CompletionService]:
    """
    Get the shared completion client.

    The client is owned by the application (see backend.main.create_app)
    and reused across requests.

    Returns:
        CompletionService: Shared client, or None if the app has none
    """
    return getattr(request.app.state, "completion_client", None)


# =============================================================================
# Service Providers
# =============================================================================


def get_orchestrator(
    settings: Settings = Depends(get_settings),
    client: Optional[CompletionService] = Depends(get_completion_client),
) -> PlanOrchestrator:
    """
    Get a PlanOrchestrator configured from settings.

    Args:
        settings: Application settings (injected)
        client: Shared completion client (injected)

    Returns:
        PlanOrchestrator: Orchestrator for one request
    """
    return PlanOrchestrator.from_settings(settings, client)


def get_feedback_analyzer(
    settings: Settings = Depends(get_settings),
    client: Optional[CompletionService] = Depends(get_completion_client),
) -> FeedbackAnalyzer:
    """Get a FeedbackAnalyzer using the planner model."""
    return FeedbackAnalyzer(client, model=settings.planner_model)


def get_adaptation_planner(
    settings: Settings = Depends(get_settings),
    client: Optional[CompletionService] = Depends(get_completion_client),
) -> AdaptationPlanner:
    """Get an AdaptationPlanner using the planner model."""
    return AdaptationPlanner(client, model=settings.planner_model)


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Settings
    "get_settings",
    # Completion
    "get_completion_client",
    # Services
    "get_orchestrator",
    "get_feedback_analyzer",
    "get_adaptation_planner",
]
