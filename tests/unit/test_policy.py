"""
Unit tests for the planning policy guards.

Tests cover:
- Cadence limits on consecutive training days
- Tapering around high-intensity events
- Recovery spacing
- Focus mapping, validation and horizon alignment
"""

from dataclasses import fields
from datetime import date, timedelta

import pytest

from models.planning import AbstractDay, AbstractPlan, DayAction, Focus, PlanningContext, ScheduledEvent
from services.llm.schemas import PlannedDay
from services.policy import (
    PlanningConstraints,
    align_to_horizon,
    apply_guards,
    enforce_cadence,
    ensure_recovery,
    event_tags,
    is_high_intensity_event,
    map_to_safe_focus,
    normalize_tags,
    taper_around_events,
    validate_plan,
)


def make_days(anchor, actions, tags=None):
    """Build consecutive AbstractDays from a list of actions."""
    return [
        AbstractDay(
            date=anchor + timedelta(days=i),
            action=action,
            tags=list(tags or ["upper"]),
        )
        for i, action in enumerate(actions)
    ]


def max_consecutive_train(days):
    longest = current = 0
    for day in days:
        current = current + 1 if day.action == DayAction.TRAIN else 0
        longest = max(longest, current)
    return longest


# ---------------------------------------------------------------------------
# Event Classification Tests
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestEventClassification:
    """Tests for is_high_intensity_event and event_tags."""

    def test_explicit_high_intensity(self, anchor):
        event = ScheduledEvent(date=anchor, label="Team outing", intensity="HIGH")
        assert is_high_intensity_event(event) is True

    def test_label_keyword(self, anchor):
        event = ScheduledEvent(date=anchor, label="Sunday futsal")
        assert is_high_intensity_event(event) is True

    def test_tag_keyword(self, anchor):
        event = ScheduledEvent(date=anchor, label="Club night", tags=["sprint"])
        assert is_high_intensity_event(event) is True

    def test_low_intensity_event(self, anchor):
        event = ScheduledEvent(date=anchor, label="Yoga class", intensity="low")
        assert is_high_intensity_event(event) is False

    def test_event_tags_inferred_from_label(self, anchor):
        event = ScheduledEvent(date=anchor, label="Trail Run and Hike", tags=["outdoor"])
        assert event_tags(event) == ["outdoor", "run", "hike"]

    def test_event_tags_deduplicated(self, anchor):
        event = ScheduledEvent(date=anchor, label="Park run", tags=["run"])
        assert event_tags(event) == ["run"]


# ---------------------------------------------------------------------------
# Cadence Tests
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestEnforceCadence:
    """Tests for the consecutive training cap."""

    def test_fourth_train_day_becomes_recovery(self, anchor):
        days = make_days(anchor, [DayAction.TRAIN] * 4)

        result = enforce_cadence(days)

        assert [d.action for d in result[:3]] == [DayAction.TRAIN] * 3
        assert result[3].action == DayAction.RECOVERY
        assert result[3].tags == ["mobility"]
        assert result[3].reason == "Enforced recovery after consecutive training days"

    def test_count_restarts_after_conversion(self, anchor):
        days = make_days(anchor, [DayAction.TRAIN] * 8)

        result = enforce_cadence(days)

        assert [d.action for d in result] == [
            DayAction.TRAIN,
            DayAction.TRAIN,
            DayAction.TRAIN,
            DayAction.RECOVERY,
            DayAction.TRAIN,
            DayAction.TRAIN,
            DayAction.TRAIN,
            DayAction.RECOVERY,
        ]

    def test_event_resets_count(self, anchor):
        actions = [DayAction.TRAIN, DayAction.TRAIN, DayAction.EVENT, DayAction.TRAIN, DayAction.TRAIN]
        result = enforce_cadence(make_days(anchor, actions))

        assert [d.action for d in result] == actions

    def test_custom_cap(self, anchor):
        constraints = PlanningConstraints(max_consecutive_training_days=2)
        result = enforce_cadence(make_days(anchor, [DayAction.TRAIN] * 3), constraints)

        assert result[2].action == DayAction.RECOVERY

    def test_input_not_mutated(self, anchor):
        days = make_days(anchor, [DayAction.TRAIN] * 4)

        enforce_cadence(days)

        assert days[3].action == DayAction.TRAIN
        assert days[3].tags == ["upper"]


# ---------------------------------------------------------------------------
# Taper Tests
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestTaperAroundEvents:
    """Tests for tapering around high-intensity events."""

    def test_lower_body_day_before_race_becomes_recovery(self, anchor):
        """Day 3 with lower-body tags before a race on day 4 is tapered."""
        race = ScheduledEvent(date=anchor + timedelta(days=3), label="10K Race", intensity="high")
        context = PlanningContext(today=anchor, horizon_days=7, events=[race])
        days = make_days(
            anchor,
            [DayAction.REST, DayAction.TRAIN, DayAction.TRAIN, DayAction.EVENT, DayAction.REST, DayAction.REST, DayAction.REST],
            tags=["lower", "legs"],
        )

        result = taper_around_events(days, context)

        assert result[1].action == DayAction.TRAIN
        assert result[2].action == DayAction.RECOVERY
        assert result[2].tags == ["mobility"]
        assert "10K Race" in result[2].reason

    def test_lower_body_day_after_race_becomes_recovery(self, anchor):
        race = ScheduledEvent(date=anchor, label="Half marathon race")
        context = PlanningContext(today=anchor, horizon_days=3, events=[race])
        days = make_days(anchor, [DayAction.EVENT, DayAction.TRAIN, DayAction.TRAIN], tags=["squat"])

        result = taper_around_events(days, context)

        assert result[1].action == DayAction.RECOVERY
        assert result[2].action == DayAction.TRAIN

    def test_upper_body_near_race_is_kept(self, anchor):
        race = ScheduledEvent(date=anchor + timedelta(days=1), label="5K race")
        context = PlanningContext(today=anchor, horizon_days=2, events=[race])
        days = make_days(anchor, [DayAction.TRAIN, DayAction.EVENT], tags=["upper", "push"])

        result = taper_around_events(days, context)

        assert result[0].action == DayAction.TRAIN

    def test_low_intensity_event_does_not_taper(self, anchor):
        event = ScheduledEvent(date=anchor + timedelta(days=1), label="Stretch class", intensity="low")
        context = PlanningContext(today=anchor, horizon_days=2, events=[event])
        days = make_days(anchor, [DayAction.TRAIN, DayAction.EVENT], tags=["lower"])

        result = taper_around_events(days, context)

        assert result[0].action == DayAction.TRAIN

    def test_conditioning_on_event_day_becomes_recovery(self, anchor):
        game = ScheduledEvent(date=anchor, label="League game")
        context = PlanningContext(today=anchor, horizon_days=2, events=[game])
        days = make_days(anchor, [DayAction.TRAIN, DayAction.TRAIN], tags=["conditioning"])

        result = taper_around_events(days, context)

        assert result[0].action == DayAction.RECOVERY
        assert result[1].action == DayAction.TRAIN

    def test_high_intensity_property_holds_after_guards(self, anchor):
        """No lower-body train day remains within the taper window."""
        race = ScheduledEvent(date=anchor + timedelta(days=3), label="Race day")
        context = PlanningContext(today=anchor, horizon_days=7, events=[race])
        days = make_days(anchor, [DayAction.TRAIN] * 7, tags=["lower"])

        result = apply_guards(days, context)

        for day in result:
            if abs((day.date - race.date).days) <= 1:
                assert not (day.action == DayAction.TRAIN and "lower" in day.tags)


# ---------------------------------------------------------------------------
# Recovery Spacing Tests
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestEnsureRecovery:
    """Tests for recovery spacing."""

    def test_recovery_inserted_after_limit(self, anchor):
        constraints = PlanningConstraints(max_consecutive_training_days=10)
        days = make_days(anchor, [DayAction.TRAIN] * 5)

        result = ensure_recovery(days, constraints)

        assert result[3].action == DayAction.RECOVERY
        assert result[3].tags == ["mobility", "yoga"]
        assert result[3].reason == "Inserted recovery after consecutive training"
        assert result[4].action == DayAction.TRAIN

    def test_events_do_not_reset_count(self, anchor):
        actions = [DayAction.TRAIN, DayAction.TRAIN, DayAction.EVENT, DayAction.TRAIN, DayAction.TRAIN]

        result = ensure_recovery(make_days(anchor, actions))

        assert result[2].action == DayAction.EVENT
        assert result[4].action == DayAction.RECOVERY

    def test_rest_resets_count(self, anchor):
        actions = [DayAction.TRAIN, DayAction.TRAIN, DayAction.TRAIN, DayAction.REST, DayAction.TRAIN]

        result = ensure_recovery(make_days(anchor, actions))

        assert [d.action for d in result] == actions


@pytest.mark.unit
class TestApplyGuards:
    """Tests for the combined guard pipeline."""

    def test_compliant_plan_unchanged(self, anchor):
        context = PlanningContext(today=anchor, horizon_days=7)
        actions = [
            DayAction.TRAIN,
            DayAction.REST,
            DayAction.TRAIN,
            DayAction.REST,
            DayAction.TRAIN,
            DayAction.REST,
            DayAction.REST,
        ]
        days = make_days(anchor, actions)

        result = apply_guards(days, context)

        assert result == days

    def test_idempotent(self, anchor, race_context):
        days = make_days(anchor, [DayAction.TRAIN] * 7, tags=["lower"])

        once = apply_guards(days, race_context)
        twice = apply_guards(once, race_context)

        assert once == twice

    def test_cadence_cap_holds(self, anchor):
        context = PlanningContext(today=anchor, horizon_days=14)
        days = make_days(anchor, [DayAction.TRAIN] * 14)

        result = apply_guards(days, context)

        assert max_consecutive_train(result) <= 3

    def test_every_constraint_is_consumed(self):
        # Each tunable must feed one of the guards
        assert {f.name for f in fields(PlanningConstraints)} == {
            "max_consecutive_training_days",
            "taper_window_days",
            "max_days_without_recovery",
        }
        assert PlanningConstraints() == PlanningConstraints(
            max_consecutive_training_days=3, taper_window_days=1.5, max_days_without_recovery=4
        )


# ---------------------------------------------------------------------------
# Focus Mapping Tests
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestMapToSafeFocus:
    """Tests for tag -> focus collapsing."""

    @pytest.mark.parametrize(
        "tags,expected",
        [
            (["upper", "push"], Focus.UPPER),
            (["Legs"], Focus.LOWER),
            (["full-body"], Focus.FULL),
            (["cardio"], Focus.CONDITIONING),
            (["stretching"], Focus.MOBILITY),
            (["yoga"], Focus.YOGA),
            (["pilates"], Focus.PILATES),
            (["bodyweight"], Focus.CALISTHENICS),
            (["climb"], Focus.CONDITIONING),
            (["swim"], Focus.CONDITIONING),
            (["recovery"], Focus.MOBILITY),
            ([], Focus.FULL),
            (["something else"], Focus.FULL),
        ],
    )
    def test_mapping(self, tags, expected):
        assert map_to_safe_focus(tags) == expected

    def test_priority_wins_regardless_of_order(self):
        assert map_to_safe_focus(["yoga", "lower"]) == Focus.LOWER
        assert map_to_safe_focus(["lower", "yoga"]) == Focus.LOWER

    def test_mobility_beats_yoga(self):
        assert map_to_safe_focus(["yoga", "mobility"]) == Focus.MOBILITY

    def test_normalize_tags(self):
        assert normalize_tags([" Upper ", "upper", "", "PUSH"]) == ["upper", "push"]


# ---------------------------------------------------------------------------
# Validation Tests
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestValidatePlan:
    """Tests for advisory plan validation."""

    def test_valid_plan_has_no_warnings(self, anchor):
        context = PlanningContext(today=anchor, horizon_days=3)
        plan = AbstractPlan(plan=make_days(anchor, [DayAction.TRAIN, DayAction.REST, DayAction.TRAIN]))

        assert validate_plan(plan, context) == []

    def test_length_mismatch(self, anchor):
        context = PlanningContext(today=anchor, horizon_days=3)
        plan = AbstractPlan(plan=make_days(anchor, [DayAction.TRAIN, DayAction.REST]))

        warnings = validate_plan(plan, context)

        assert "Plan length (2) doesn't match horizon (3)" in warnings

    def test_date_mismatch(self, anchor):
        context = PlanningContext(today=anchor, horizon_days=1)
        plan = AbstractPlan(plan=make_days(anchor + timedelta(days=1), [DayAction.REST]))

        warnings = validate_plan(plan, context)

        assert any("Day 0 date mismatch" in w for w in warnings)

    def test_invalid_action_on_raw_response(self, anchor):
        context = PlanningContext(today=anchor, horizon_days=1)

        class Raw:
            plan = [PlannedDay(date=anchor, action="sprint")]

        warnings = validate_plan(Raw(), context)

        assert warnings == ['Invalid action "sprint" on 2024-01-01']

    def test_event_mismatches(self, anchor):
        event = ScheduledEvent(date=anchor + timedelta(days=1), label="Race")
        context = PlanningContext(today=anchor, horizon_days=2, events=[event])
        plan = AbstractPlan(plan=make_days(anchor, [DayAction.EVENT, DayAction.TRAIN]))

        warnings = validate_plan(plan, context)

        assert "Event action on 2024-01-01 without a scheduled event" in warnings
        assert 'Scheduled event on 2024-01-02 planned as "train"' in warnings


# ---------------------------------------------------------------------------
# Alignment Tests
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestAlignToHorizon:
    """Tests for rebuilding a day list on the horizon dates."""

    def test_missing_dates_become_rest(self, anchor):
        context = PlanningContext(today=anchor, horizon_days=3)
        days = [PlannedDay(date=anchor, action="train", tags=["upper"])]

        result = align_to_horizon(days, context)

        assert [d.date for d in result] == [anchor + timedelta(days=i) for i in range(3)]
        assert result[0].action == DayAction.TRAIN
        assert result[1].action == DayAction.REST
        assert result[1].reason == "No plan entry for this date"

    def test_out_of_horizon_and_duplicates_dropped(self, anchor):
        context = PlanningContext(today=anchor, horizon_days=1)
        days = [
            PlannedDay(date=anchor, action="train", tags=["upper"]),
            PlannedDay(date=anchor, action="rest"),
            PlannedDay(date=anchor + timedelta(days=5), action="train"),
        ]

        result = align_to_horizon(days, context)

        assert len(result) == 1
        assert result[0].action == DayAction.TRAIN

    def test_unknown_action_becomes_rest(self, anchor):
        context = PlanningContext(today=anchor, horizon_days=1)

        result = align_to_horizon([PlannedDay(date=anchor, action="sprint")], context)

        assert result[0].action == DayAction.REST

    def test_event_date_forced_to_event(self, anchor):
        event = ScheduledEvent(date=anchor, label="Soccer match")
        context = PlanningContext(today=anchor, horizon_days=1, events=[event])

        result = align_to_horizon([PlannedDay(date=anchor, action="train", tags=["lower"])], context)

        assert result[0].action == DayAction.EVENT
        assert result[0].tags == ["futsal", "game"]
        assert result[0].reason == "Soccer match"

    def test_event_action_without_event_becomes_rest(self, anchor):
        context = PlanningContext(today=anchor, horizon_days=1)

        result = align_to_horizon([PlannedDay(date=anchor, action="event")], context)

        assert result[0].action == DayAction.REST
        assert result[0].reason == "No scheduled event on this date"

    def test_tags_normalized(self, anchor):
        context = PlanningContext(today=anchor, horizon_days=1)

        result = align_to_horizon([PlannedDay(date=anchor, action="train", tags=[" Upper", "PUSH"])], context)

        assert result[0].tags == ["upper", "push"]

    def test_date_equality_uses_calendar_days(self):
        """Sequential dates are exact calendar days."""
        context = PlanningContext(today=date(2024, 2, 28), horizon_days=3)

        result = align_to_horizon([], context)

        assert [d.date for d in result] == [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]
