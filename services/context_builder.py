"""
Context assembly helpers for callers that persist plans.

The planner never touches storage. These helpers translate storage records
(plain dicts) into planning models, apply the usual date windows, and help
callers upsert idempotently by skipping dates that already have a record.
"""

import json
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Union

from core.constants import HISTORY_WINDOW_DAYS
from models.planning import (
    CompiledDay,
    CompiledPlan,
    DayAction,
    ExerciseSpec,
    HistoryDay,
    PlanningContext,
    Profile,
    ScheduledEvent,
)

logger = logging.getLogger(__name__)

COMPLETED_STATES = frozenset({"completed", "done"})

DateLike = Union[date, datetime, str]


def parse_date(value: DateLike) -> date:
    """Parse a date, datetime or ISO string into a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        return date.fromisoformat(value[:10])
    raise ValueError(f"Invalid date value: {value!r}")


def _first(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def _scale_value(value: Any) -> Optional[int]:
    """Accept a 1-10 rating, dropping anything else."""
    if isinstance(value, bool):
        return None
    try:
        rating = int(value)
    except (TypeError, ValueError):
        return None
    return rating if 1 <= rating <= 10 else None


# ---------------------------------------------------------------------------
# Record adapters
# ---------------------------------------------------------------------------


def profile_from_record(record: Mapping[str, Any]) -> Profile:
    """
    Build a Profile from a user-info record.

    Understands both the storage column names (expected_frequency_per_week,
    exercise_that_i_dont_like, ...) and the Profile field names.
    """
    modalities = _first(record, "exercise_modalities", "modalities_note")
    if isinstance(modalities, (list, tuple)):
        modalities = ", ".join(str(m) for m in modalities) or None

    return Profile(
        goal=record.get("goal"),
        frequency_per_week=_first(record, "expected_frequency_per_week", "frequency_per_week"),
        equipment=_first(record, "accessible_equipment", "equipment"),
        dislikes=_first(record, "exercise_that_i_dont_like", "dislikes"),
        modalities_note=modalities,
        session_length_min=_first(
            record, "expected_workout_duration_per_day_in_mins", "session_length_min"
        ),
    )


def event_from_record(record: Mapping[str, Any]) -> ScheduledEvent:
    """Build a ScheduledEvent from a user-event record."""
    return ScheduledEvent(
        date=parse_date(record["date"]),
        label=record.get("label") or "Event",
        intensity=record.get("intensity"),
        tags=list(record.get("tags") or []),
        notes=record.get("notes"),
    )


def history_from_record(record: Mapping[str, Any]) -> HistoryDay:
    """
    Build a HistoryDay from a workout record.

    Soreness and RPE come from the feedback field (a JSON string or a dict);
    unparseable feedback is ignored. Completion is derived from the state.
    """
    soreness = None
    rpe = None
    feedback = record.get("feedback")

    if isinstance(feedback, str) and feedback.strip():
        try:
            feedback = json.loads(feedback)
        except json.JSONDecodeError:
            logger.debug(f"Ignoring unparseable workout feedback on {record.get('date')}")
            feedback = None

    if isinstance(feedback, Mapping):
        soreness = _scale_value(feedback.get("soreness"))
        rpe = _scale_value(feedback.get("rpe"))

    state = (record.get("state") or "").lower()

    return HistoryDay(
        date=parse_date(record["date"]),
        focus=record.get("focus"),
        completed=state in COMPLETED_STATES,
        soreness=soreness,
        rpe=rpe,
    )


def exercise_to_record(exercise: ExerciseSpec, workout_id: str) -> Dict[str, Any]:
    """Storage insert payload for one exercise."""
    return {
        "workout_id": workout_id,
        "name": exercise.name,
        "sets": exercise.sets,
        "reps": exercise.reps,
        "rest_sec": exercise.rest_sec,
        "rir": exercise.rir,
        "load_kg": exercise.load_kg,
        "estimated_duration": exercise.estimated_duration,
        "order_index": exercise.order_index,
        "done": False,
    }


def day_to_record(day: CompiledDay, user_id: str) -> Dict[str, Any]:
    """Storage insert payload for one planned day (without its exercises)."""
    return {
        "user_id": user_id,
        "date": day.date.isoformat(),
        "action": day.action.value,
        "focus": day.focus.value,
        "tags": list(day.tags),
        "state": "planned",
        "plan_meta": {**day.meta, "auto_generated": True},
    }


# ---------------------------------------------------------------------------
# Windows and idempotent upserts
# ---------------------------------------------------------------------------


def build_planning_context(
    today: DateLike,
    profile: Union[Profile, Mapping[str, Any]],
    events: Iterable[Union[ScheduledEvent, Mapping[str, Any]]] = (),
    history: Iterable[Union[HistoryDay, Mapping[str, Any]]] = (),
    horizon_days: int = 7,
) -> PlanningContext:
    """
    Assemble a PlanningContext with the usual date windows.

    Events are kept in [today, today + horizon], history in
    [today - 7, today). Both are sorted by date. Records (dicts) are
    converted with the adapters above.
    """
    anchor = parse_date(today)
    if not isinstance(profile, Profile):
        profile = profile_from_record(profile)

    event_end = anchor + timedelta(days=horizon_days)
    history_start = anchor - timedelta(days=HISTORY_WINDOW_DAYS)

    scheduled = [e if isinstance(e, ScheduledEvent) else event_from_record(e) for e in events]
    scheduled = sorted(
        (e for e in scheduled if anchor <= e.date <= event_end), key=lambda e: e.date
    )

    past = [h if isinstance(h, HistoryDay) else history_from_record(h) for h in history]
    past = sorted((h for h in past if history_start <= h.date < anchor), key=lambda h: h.date)

    return PlanningContext(
        today=anchor,
        horizon_days=horizon_days,
        profile=profile,
        events=scheduled,
        recent_history=past,
    )


def find_unplanned_dates(
    today: DateLike,
    horizon_days: int,
    existing_dates: Iterable[DateLike],
) -> List[date]:
    """Horizon dates that have no stored record yet."""
    anchor = parse_date(today)
    existing: Set[date] = {parse_date(d) for d in existing_dates}
    horizon = (anchor + timedelta(days=i) for i in range(horizon_days))
    return [d for d in horizon if d not in existing]


def days_to_persist(
    plan: Union[CompiledPlan, Iterable[CompiledDay]],
    existing_dates: Iterable[DateLike] = (),
    include_rest: bool = False,
) -> List[CompiledDay]:
    """
    Days a caller should insert: not yet stored and (by default) not rest.

    Repeated planning runs therefore never create duplicate records.
    """
    days = plan.days if isinstance(plan, CompiledPlan) else list(plan)
    existing: Set[date] = {parse_date(d) for d in existing_dates}

    selected = []
    for day in days:
        if day.date in existing:
            logger.debug(f"Skipping {day.date}: already planned")
            continue
        if day.action == DayAction.REST and not include_rest:
            continue
        selected.append(day)
    return selected
