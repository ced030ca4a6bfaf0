"""
Pytest fixtures for microcycle planner tests.
"""

import sys
from datetime import date
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# Ensure the project root is on sys.path
ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

from api.deps import get_completion_client
from backend.main import create_app
from backend.settings import Settings
from models.planning import PlanningContext, Profile, ScheduledEvent


# Monday, so weekday-based expectations are easy to read
ANCHOR_MONDAY = date(2024, 1, 1)


# ---------------------------------------------------------------------------
# Test App and Client
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Test settings with no completion service configured."""
    return Settings(
        environment="test",
        openai_api_key=None,
        sentry_dsn=None,
        _env_file=None,
    )


@pytest.fixture(scope="session")
def app(test_settings):
    """Create test application instance."""
    return create_app(settings=test_settings)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """
    Per-test FastAPI TestClient without a completion service.
    Properly cleans up dependency overrides after each test.
    """
    app.dependency_overrides[get_completion_client] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def fake_client():
    """Create a fake completion client for testing."""
    from tests.fakes import FakeCompletionClient
    return FakeCompletionClient()


@pytest.fixture
def client_with_fake_llm(app, fake_client) -> Generator[TestClient, None, None]:
    """TestClient with the fake completion client injected."""
    app.dependency_overrides[get_completion_client] = lambda: fake_client
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Mock Environment Variables
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch):
    """Keep tests independent of the developer's environment."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("SENTRY_DSN", raising=False)
    monkeypatch.setenv("ENVIRONMENT", "test")


# ---------------------------------------------------------------------------
# Domain Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def anchor() -> date:
    """Planning anchor date (a Monday)."""
    return ANCHOR_MONDAY


@pytest.fixture
def sample_profile() -> Profile:
    """A typical dumbbell-equipped athlete."""
    return Profile(
        goal="build strength",
        frequency_per_week=3,
        equipment="dumbbells, bench",
        dislikes="burpees",
        session_length_min=45,
    )


@pytest.fixture
def basic_context(anchor, sample_profile) -> PlanningContext:
    """Seven-day context with no events or history."""
    return PlanningContext(today=anchor, horizon_days=7, profile=sample_profile)


@pytest.fixture
def race_context(anchor, sample_profile) -> PlanningContext:
    """Seven-day context with a 10K race on day 4."""
    return PlanningContext(
        today=anchor,
        horizon_days=7,
        profile=sample_profile,
        events=[ScheduledEvent(date=date(2024, 1, 4), label="10K Race", intensity="high")],
    )


@pytest.fixture
def sample_context_payload() -> dict:
    """JSON payload for POST /plans."""
    return {
        "context": {
            "today": "2024-01-01",
            "horizon_days": 7,
            "profile": {
                "goal": "general fitness",
                "frequency_per_week": 3,
                "equipment": "bodyweight",
                "dislikes": "burpees",
            },
            "events": [],
            "recent_history": [],
        },
        "options": {},
    }
