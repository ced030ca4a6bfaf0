"""
End-to-end planning workflow tests (no HTTP).

Covers the path a scheduling job takes: assemble a context from storage
records, plan and compile, then work out which days to insert.
"""

from datetime import date

import pytest

from models.planning import DayAction, Focus, PlanOptions
from services.adaptation_planner import AdaptationPlanner
from services.context_builder import (
    build_planning_context,
    day_to_record,
    days_to_persist,
    exercise_to_record,
    find_unplanned_dates,
)
from services.feedback_analyzer import FeedbackAnalyzer
from services.orchestrator import PlanOrchestrator, summarize
from models.adaptation import PerformedExercise, SessionFeedback


USER_RECORD = {
    "goal": "half marathon",
    "expected_frequency_per_week": 4,
    "accessible_equipment": "bodyweight",
    "exercise_that_i_dont_like": "burpees",
    "expected_workout_duration_per_day_in_mins": 40,
}


@pytest.mark.integration
class TestPlanningWorkflow:
    """Context assembly through persistence payloads."""

    @pytest.mark.asyncio
    async def test_weekly_job(self, anchor):
        context = build_planning_context(
            anchor,
            USER_RECORD,
            events=[{"date": "2024-01-06", "label": "Half Marathon", "intensity": "high"}],
            history=[{"date": "2023-12-31", "focus": "lower", "state": "completed"}],
        )

        plan = await PlanOrchestrator().plan(context)

        assert len(plan.days) == 7
        race_day = plan.days[5]
        assert race_day.action == DayAction.EVENT
        assert race_day.exercises == []
        # Day before a high-intensity event never trains lower body
        assert plan.days[4].focus != Focus.LOWER or plan.days[4].action != DayAction.TRAIN

        to_insert = days_to_persist(plan, existing_dates=["2024-01-01"])
        assert all(d.date != date(2024, 1, 1) for d in to_insert)
        assert all(d.action != DayAction.REST for d in to_insert)

        for day in to_insert:
            record = day_to_record(day, "user-1")
            assert record["plan_meta"]["auto_generated"] is True
            for exercise in day.exercises:
                assert exercise_to_record(exercise, "w-1")["done"] is False

        summary = summarize(plan)
        assert summary.total_days == 7
        assert summary.event_days == 1

    @pytest.mark.asyncio
    async def test_only_unplanned_dates_need_a_new_run(self, anchor):
        context = build_planning_context(anchor, USER_RECORD)
        plan = await PlanOrchestrator().plan(context)
        stored = [d.date for d in days_to_persist(plan, include_rest=True)]

        assert find_unplanned_dates(anchor, 7, stored) == []

    @pytest.mark.asyncio
    async def test_feedback_adapts_next_week(self, anchor):
        sessions = [
            SessionFeedback(
                user_feedback="Way too easy",
                exercises=[
                    PerformedExercise(name="Bodyweight Squat", rir=5),
                    PerformedExercise(name="Push-ups", rir=5),
                ],
            )
        ]
        profile_context = build_planning_context(anchor, USER_RECORD)

        analysis = await FeedbackAnalyzer().analyze(sessions)
        strategy = await AdaptationPlanner().plan(analysis, profile_context.profile, len(sessions))
        baseline = await PlanOrchestrator().plan(profile_context)
        adapted = await PlanOrchestrator().plan(profile_context, PlanOptions(adaptation=strategy))

        baseline_sets = sum(e.sets for d in baseline.days for e in d.exercises)
        adapted_sets = sum(e.sets for d in adapted.days for e in d.exercises)
        assert strategy.volume_adjustments[0].sets_change == 1
        assert adapted_sets > baseline_sets
