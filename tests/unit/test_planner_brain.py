"""
Unit tests for the planner brain.

Tests verify that:
- The strategy follows client availability
- The deterministic planner follows the weekday table and never trains
  more than three days in a row
- Generated plans are aligned to the horizon and guarded
"""

from datetime import date, timedelta

import pytest

from application.exceptions import MalformedOutput
from models.planning import DayAction, PlannerStrategy, PlanningContext, Profile, ScheduledEvent
from services.llm.schemas import PlannerResponse
from services.planner_brain import (
    DETERMINISTIC_NOTES,
    PlannerBrain,
    select_planner_strategy,
    training_weekdays,
)
from tests.fakes import FakeCompletionClient


def train_dates(plan):
    return [d.date for d in plan.plan if d.action == DayAction.TRAIN]


def max_consecutive_train(days):
    longest = current = 0
    for day in days:
        current = current + 1 if day.action == DayAction.TRAIN else 0
        longest = max(longest, current)
    return longest


# ---------------------------------------------------------------------------
# Strategy Selection Tests
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestSelectPlannerStrategy:
    """Tests for availability-based strategy selection."""

    def test_no_client_is_deterministic(self):
        assert select_planner_strategy(None) == PlannerStrategy.DETERMINISTIC

    def test_unavailable_client_is_deterministic(self):
        client = FakeCompletionClient(available=False)
        assert select_planner_strategy(client) == PlannerStrategy.DETERMINISTIC

    def test_available_client_is_generated(self):
        assert select_planner_strategy(FakeCompletionClient()) == PlannerStrategy.GENERATED


@pytest.mark.unit
class TestTrainingWeekdays:
    """Tests for the weekday table."""

    @pytest.mark.parametrize(
        "frequency,expected",
        [
            (None, (1, 3, 5)),
            (0, (3,)),
            (1, (3,)),
            (2, (1, 4)),
            (3, (1, 3, 5)),
            (4, (1, 2, 4, 5)),
            (5, (1, 2, 3, 4, 5)),
            (7, (1, 2, 3, 4, 5)),
            (21, (1, 2, 3, 4, 5)),
        ],
    )
    def test_table(self, frequency, expected):
        assert training_weekdays(frequency) == expected


# ---------------------------------------------------------------------------
# Deterministic Planner Tests
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestDeterministicPlanner:
    """Tests for the deterministic strategy."""

    def test_frequency_three_trains_mon_wed_fri(self, anchor):
        """Frequency 3 over a week yields exactly Mon/Wed/Fri training."""
        context = PlanningContext(today=anchor, horizon_days=7, profile=Profile(frequency_per_week=3))

        plan = PlannerBrain().plan_deterministic(context)

        assert train_dates(plan) == [date(2024, 1, 1), date(2024, 1, 3), date(2024, 1, 5)]
        assert all(
            d.action in (DayAction.REST, DayAction.RECOVERY)
            for d in plan.plan
            if d.action != DayAction.TRAIN
        )
        assert max_consecutive_train(plan.plan) <= 3
        assert plan.strategy == PlannerStrategy.DETERMINISTIC
        assert plan.notes == DETERMINISTIC_NOTES

    def test_pattern_relative_to_anchor_weekday(self):
        """Starting mid-week still trains on Mon/Wed/Fri."""
        context = PlanningContext(today=date(2024, 1, 4), horizon_days=7)

        plan = PlannerBrain().plan_deterministic(context)

        assert [d.isoweekday() for d in train_dates(plan)] == [5, 1, 3]

    def test_sequential_dates(self, anchor):
        context = PlanningContext(today=anchor, horizon_days=10)

        plan = PlannerBrain().plan_deterministic(context)

        assert len(plan.plan) == 10
        assert [d.date for d in plan.plan] == [anchor + timedelta(days=i) for i in range(10)]

    def test_alternates_upper_and_lower_by_parity(self, anchor):
        context = PlanningContext(today=anchor, horizon_days=7, profile=Profile(frequency_per_week=4))

        plan = PlannerBrain().plan_deterministic(context)
        train = [d for d in plan.plan if d.action == DayAction.TRAIN]

        # Mon (index 0), Tue (1), Thu (3), Fri (4)
        assert [d.tags for d in train] == [
            ["upper", "push"],
            ["lower", "legs"],
            ["lower", "legs"],
            ["upper", "push"],
        ]

    def test_cap_inserts_recovery(self, anchor):
        """Five weekdays in a row are capped at three."""
        context = PlanningContext(today=anchor, horizon_days=7, profile=Profile(frequency_per_week=5))

        plan = PlannerBrain().plan_deterministic(context)

        assert plan.plan[3].action == DayAction.RECOVERY
        assert plan.plan[3].tags == ["mobility"]
        assert max_consecutive_train(plan.plan) <= 3

    def test_event_day_is_event(self, anchor):
        event = ScheduledEvent(date=anchor + timedelta(days=1), label="Climbing session")
        context = PlanningContext(today=anchor, horizon_days=3, events=[event])

        plan = PlannerBrain().plan_deterministic(context)

        assert plan.plan[1].action == DayAction.EVENT
        assert plan.plan[1].tags == ["climb"]
        assert plan.plan[1].reason == "Climbing session"

    def test_taper_applied(self, anchor):
        """Tuesday lower-body training is tapered before a Wednesday race."""
        race = ScheduledEvent(date=anchor + timedelta(days=2), label="Race")
        context = PlanningContext(
            today=anchor,
            horizon_days=7,
            profile=Profile(frequency_per_week=4),
            events=[race],
        )

        plan = PlannerBrain().plan_deterministic(context)

        assert plan.plan[1].action == DayAction.RECOVERY
        assert plan.plan[1].reason == "Taper for nearby event (Race)"

    @pytest.mark.asyncio
    async def test_plan_without_client_is_deterministic(self, basic_context):
        plan = await PlannerBrain().plan(basic_context)

        assert plan.strategy == PlannerStrategy.DETERMINISTIC


# ---------------------------------------------------------------------------
# Generated Planner Tests
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestGeneratedPlanner:
    """Tests for the generated strategy with a fake client."""

    @pytest.mark.asyncio
    async def test_generated_plan_guarded(self, anchor):
        client = FakeCompletionClient()
        client.set_response(
            PlannerResponse,
            {
                "plan": [
                    {"date": (anchor + timedelta(days=i)).isoformat(), "action": "train", "tags": ["upper"]}
                    for i in range(5)
                ],
                "notes": "Push week",
            },
        )
        context = PlanningContext(today=anchor, horizon_days=5)

        plan = await PlannerBrain(client).plan(context)

        assert plan.strategy == PlannerStrategy.GENERATED
        assert plan.notes == "Push week"
        assert plan.plan[3].action == DayAction.RECOVERY
        assert max_consecutive_train(plan.plan) <= 3
        assert plan.warnings == []

    @pytest.mark.asyncio
    async def test_generated_plan_aligned_with_warnings(self, anchor):
        client = FakeCompletionClient()
        client.set_response(
            PlannerResponse,
            {"plan": [{"date": anchor.isoformat(), "action": "lift", "tags": []}]},
        )
        context = PlanningContext(today=anchor, horizon_days=3)

        plan = await PlannerBrain(client).plan(context)

        assert len(plan.plan) == 3
        assert all(d.action == DayAction.REST for d in plan.plan)
        assert "Plan length (1) doesn't match horizon (3)" in plan.warnings
        assert 'Invalid action "lift" on 2024-01-01' in plan.warnings

    @pytest.mark.asyncio
    async def test_uses_configured_model(self, anchor):
        client = FakeCompletionClient(default_model="default-model")
        client.set_response(PlannerResponse, {"plan": []})
        context = PlanningContext(today=anchor, horizon_days=1)

        await PlannerBrain(client, model="planner-model").plan(context)

        assert client.calls[0]["model"] == "planner-model"
        assert "1-day training plan" in client.calls[0]["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_completion_errors_propagate(self, basic_context):
        client = FakeCompletionClient()
        client.set_response(PlannerResponse, MalformedOutput("bad json"))

        with pytest.raises(MalformedOutput):
            await PlannerBrain(client).plan(basic_context)

    @pytest.mark.asyncio
    async def test_explicit_strategy_overrides_availability(self, basic_context):
        client = FakeCompletionClient()

        plan = await PlannerBrain(client).plan(basic_context, PlannerStrategy.DETERMINISTIC)

        assert plan.strategy == PlannerStrategy.DETERMINISTIC
        assert client.call_count == 0
