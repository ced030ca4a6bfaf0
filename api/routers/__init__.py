"""
Router package for the Microcycle Planner API.

This package contains all API routers organized by domain:
- health: Health check endpoints
- planning: Plan generation, summaries and adaptation strategies
"""

from api.routers.health import router as health_router
from api.routers.planning import router as planning_router

__all__ = [
    "health_router",
    "planning_router",
]
