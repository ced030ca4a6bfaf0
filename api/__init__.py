"""
API package for the Microcycle Planner API.

This package contains:
- deps.py: FastAPI dependency providers for DI
- routers/: API route handlers
"""

# Re-export dependency providers for convenient access
from api.deps import (
    get_adaptation_planner,
    get_completion_client,
    get_feedback_analyzer,
    get_orchestrator,
    get_settings,
)

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
