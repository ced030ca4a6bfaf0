"""
Planning policy: hard rules applied to a day sequence.

Every function here is pure. Guards take a list of AbstractDay and return
a new list; input days are never modified, so applying the guards twice
is safe and a compliant sequence passes through unchanged.

Rules:
- No more than ``max_consecutive_training_days`` train days in a row
- No lower-body training within ``taper_window_days`` of a high-intensity
  event, and no conditioning/run training on the event day itself
- A recovery or rest day at least every ``max_days_without_recovery`` days
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from models.planning import AbstractDay, DayAction, Focus, PlanningContext, ScheduledEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanningConstraints:
    """Tunable limits for the policy guards."""

    max_consecutive_training_days: int = 3
    taper_window_days: float = 1.5
    max_days_without_recovery: int = 4


DEFAULT_CONSTRAINTS = PlanningConstraints()

HIGH_INTENSITY_LEVELS = frozenset({"high", "hard", "intense"})

HIGH_INTENSITY_LABEL_KEYWORDS = (
    "race",
    "run",
    "sprint",
    "game",
    "match",
    "competition",
    "futsal",
    "soccer",
    "basketball",
    "tennis",
    "hike",
)

HIGH_INTENSITY_TAGS = frozenset({"run", "race", "game", "sprint", "competition"})

LOWER_BODY_TAGS = frozenset({"lower", "legs", "squat", "deadlift", "lunge"})

EVENT_DAY_CONDITIONING_TAGS = frozenset({"conditioning", "run"})

# Label keywords -> inferred event tag, in inference order
EVENT_LABEL_TAGS = (
    (("run", "race"), "run"),
    (("futsal", "soccer"), "futsal"),
    (("game", "match"), "game"),
    (("hike",), "hike"),
    (("yoga",), "yoga"),
    (("pilates",), "pilates"),
    (("swim",), "swim"),
    (("cycle", "bike"), "cycle"),
    (("climb",), "climb"),
)

# Priority-ordered keyword -> focus table; first match wins
FOCUS_PRIORITY = (
    (frozenset({"upper", "push", "pull"}), Focus.UPPER),
    (frozenset({"lower", "legs", "squat"}), Focus.LOWER),
    (frozenset({"full", "fullbody", "full_body", "full-body", "total"}), Focus.FULL),
    (frozenset({"conditioning", "cardio", "metcon"}), Focus.CONDITIONING),
    (frozenset({"mobility", "stretch", "stretching", "flexibility"}), Focus.MOBILITY),
    (frozenset({"yoga"}), Focus.YOGA),
    (frozenset({"pilates"}), Focus.PILATES),
    (frozenset({"calisthenics", "bodyweight"}), Focus.CALISTHENICS),
    # Secondary inference for sport and activity tags
    (frozenset({"climb", "climbing", "boxing", "mma"}), Focus.CONDITIONING),
    (frozenset({"cycle", "cycling", "bike", "run", "running"}), Focus.CONDITIONING),
    (frozenset({"swim", "swimming", "hike", "futsal", "game"}), Focus.CONDITIONING),
    (frozenset({"recovery"}), Focus.MOBILITY),
)

VALID_ACTIONS = frozenset(action.value for action in DayAction)


# ---------------------------------------------------------------------------
# Event analysis
# ---------------------------------------------------------------------------


def is_high_intensity_event(event: ScheduledEvent) -> bool:
    """
    Decide whether an event needs a taper around it.

    True if the explicit intensity is high/hard/intense, the label contains
    a high-intensity keyword (race, run, game, common sports), or the tags
    include run/race/game/sprint/competition.
    """
    if event.intensity and event.intensity.strip().lower() in HIGH_INTENSITY_LEVELS:
        return True

    label = event.label.lower()
    if any(keyword in label for keyword in HIGH_INTENSITY_LABEL_KEYWORDS):
        return True

    return any(tag.strip().lower() in HIGH_INTENSITY_TAGS for tag in event.tags)


def event_tags(event: ScheduledEvent) -> List[str]:
    """Event tags plus tags inferred from its label, deduplicated in order."""
    inferred = list(event.tags)
    label = event.label.lower()
    for keywords, tag in EVENT_LABEL_TAGS:
        if any(keyword in label for keyword in keywords):
            inferred.append(tag)
    return list(dict.fromkeys(inferred))


def has_lower_body_strength(tags: Iterable[str]) -> bool:
    """True if any tag marks lower-body strength work."""
    return any(tag.strip().lower() in LOWER_BODY_TAGS for tag in tags)


def events_by_date(events: Iterable[ScheduledEvent]) -> Dict[date, ScheduledEvent]:
    """Map each date to its first event; earlier entries take precedence."""
    mapping: Dict[date, ScheduledEvent] = {}
    for event in events:
        mapping.setdefault(event.date, event)
    return mapping


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def enforce_cadence(
    days: Sequence[AbstractDay],
    constraints: PlanningConstraints = DEFAULT_CONSTRAINTS,
) -> List[AbstractDay]:
    """
    Cap runs of consecutive train days.

    The day that would exceed the cap becomes a mobility recovery day and
    the count restarts. Any non-train day (including events) resets it.
    """
    result: List[AbstractDay] = []
    consecutive = 0

    for day in days:
        if day.action != DayAction.TRAIN:
            consecutive = 0
            result.append(day.model_copy(deep=True))
            continue

        consecutive += 1
        if consecutive > constraints.max_consecutive_training_days:
            logger.debug(f"Cadence cap reached on {day.date}, converting to recovery")
            result.append(
                day.model_copy(
                    update={
                        "action": DayAction.RECOVERY,
                        "tags": ["mobility"],
                        "reason": "Enforced recovery after consecutive training days",
                    }
                )
            )
            consecutive = 0
        else:
            result.append(day.model_copy(deep=True))

    return result


def taper_around_events(
    days: Sequence[AbstractDay],
    context: PlanningContext,
    constraints: PlanningConstraints = DEFAULT_CONSTRAINTS,
) -> List[AbstractDay]:
    """
    Convert risky train days near high-intensity events to recovery.

    Date differences are whole calendar days, so the default 1.5-day window
    covers the day before, the day itself and the day after. The reason
    names the event that triggered the taper.
    """
    high_intensity = [e for e in context.events if is_high_intensity_event(e)]
    result: List[AbstractDay] = []

    for day in days:
        trigger = None
        if day.action == DayAction.TRAIN:
            trigger = _taper_trigger(day, high_intensity, constraints)

        if trigger is None:
            result.append(day.model_copy(deep=True))
            continue

        logger.debug(f"Tapering {day.date} for event '{trigger.label}' on {trigger.date}")
        result.append(
            day.model_copy(
                update={
                    "action": DayAction.RECOVERY,
                    "tags": ["mobility"],
                    "reason": f"Taper for nearby event ({trigger.label})",
                }
            )
        )

    return result


def _taper_trigger(
    day: AbstractDay,
    events: Sequence[ScheduledEvent],
    constraints: PlanningConstraints,
) -> Optional[ScheduledEvent]:
    lower_body = has_lower_body_strength(day.tags)
    conditioning = any(tag.strip().lower() in EVENT_DAY_CONDITIONING_TAGS for tag in day.tags)

    for event in events:
        diff_days = abs((day.date - event.date).days)
        if diff_days > constraints.taper_window_days:
            continue
        if lower_body:
            return event
        if diff_days < 0.5 and conditioning:
            return event
    return None


def ensure_recovery(
    days: Sequence[AbstractDay],
    constraints: PlanningConstraints = DEFAULT_CONSTRAINTS,
) -> List[AbstractDay]:
    """
    Force a recovery day after too many train days without one.

    Only recovery and rest days reset the count; event days neither count
    nor reset it.
    """
    result: List[AbstractDay] = []
    since_recovery = 0

    for day in days:
        if day.action in (DayAction.RECOVERY, DayAction.REST):
            since_recovery = 0
        elif day.action == DayAction.TRAIN:
            since_recovery += 1
            if since_recovery >= constraints.max_days_without_recovery:
                result.append(
                    day.model_copy(
                        update={
                            "action": DayAction.RECOVERY,
                            "tags": ["mobility", "yoga"],
                            "reason": "Inserted recovery after consecutive training",
                        }
                    )
                )
                since_recovery = 0
                continue
        result.append(day.model_copy(deep=True))

    return result


def apply_guards(
    days: Sequence[AbstractDay],
    context: PlanningContext,
    constraints: PlanningConstraints = DEFAULT_CONSTRAINTS,
) -> List[AbstractDay]:
    """Run cadence, taper and recovery spacing in that order."""
    guarded = enforce_cadence(days, constraints)
    guarded = taper_around_events(guarded, context, constraints)
    return ensure_recovery(guarded, constraints)


# ---------------------------------------------------------------------------
# Tags and focus
# ---------------------------------------------------------------------------


def normalize_tags(tags: Iterable[str]) -> List[str]:
    """Trim, lowercase and deduplicate tags, dropping empty ones."""
    cleaned = (tag.strip().lower() for tag in tags)
    return list(dict.fromkeys(tag for tag in cleaned if tag))


def map_to_safe_focus(tags: Iterable[str]) -> Focus:
    """
    Collapse free-form tags to exactly one Focus.

    Total and deterministic: the first matching row of FOCUS_PRIORITY wins
    regardless of tag order, and anything unrecognized maps to FULL.
    """
    normalized = set(normalize_tags(tags))
    for keywords, focus in FOCUS_PRIORITY:
        if normalized & keywords:
            return focus
    return Focus.FULL


# ---------------------------------------------------------------------------
# Validation and alignment
# ---------------------------------------------------------------------------


def horizon_dates(context: PlanningContext) -> List[date]:
    """The dates covered by the plan: today + 0 .. today + horizon - 1."""
    return [context.today + timedelta(days=i) for i in range(context.horizon_days)]


def _action_value(action) -> str:
    return getattr(action, "value", action)


def validate_plan(plan, context: PlanningContext) -> List[str]:
    """
    Check a plan against the horizon and the event invariant.

    Accepts anything with a ``plan`` list of days (AbstractPlan or a raw
    planner response). Never raises; returns human-readable warnings.
    """
    warnings: List[str] = []
    days = list(plan.plan)
    event_dates = {event.date for event in context.events}

    if len(days) != context.horizon_days:
        warnings.append(
            f"Plan length ({len(days)}) doesn't match horizon ({context.horizon_days})"
        )

    for index, (day, expected) in enumerate(zip(days, horizon_dates(context))):
        if day.date != expected:
            warnings.append(
                f"Day {index} date mismatch: expected {expected.isoformat()}, "
                f"got {day.date.isoformat()}"
            )

    for day in days:
        action = _action_value(day.action)
        if action not in VALID_ACTIONS:
            warnings.append(f"Invalid action \"{action}\" on {day.date.isoformat()}")
        elif action == DayAction.EVENT.value and day.date not in event_dates:
            warnings.append(f"Event action on {day.date.isoformat()} without a scheduled event")
        elif action != DayAction.EVENT.value and day.date in event_dates:
            warnings.append(
                f"Scheduled event on {day.date.isoformat()} planned as \"{action}\""
            )

    return warnings


def align_to_horizon(days: Sequence, context: PlanningContext) -> List[AbstractDay]:
    """
    Rebuild a day list on exactly the horizon dates.

    The first entry for each horizon date is kept; duplicates and dates
    outside the horizon are dropped and missing dates become rest. Event
    dates are always action=event with inferred tags, and an event action
    on any other date (or an unknown action) becomes rest.
    """
    by_date: Dict[date, object] = {}
    for day in days:
        by_date.setdefault(day.date, day)

    events = events_by_date(context.events)
    aligned: List[AbstractDay] = []

    for current in horizon_dates(context):
        proposed = by_date.get(current)
        event = events.get(current)

        if event is not None:
            reason = event.label
            if proposed is not None and _action_value(proposed.action) == DayAction.EVENT.value:
                reason = proposed.reason or event.label
            aligned.append(
                AbstractDay(
                    date=current,
                    action=DayAction.EVENT,
                    tags=event_tags(event),
                    reason=reason,
                )
            )
            continue

        if proposed is None:
            aligned.append(
                AbstractDay(date=current, action=DayAction.REST, reason="No plan entry for this date")
            )
            continue

        action = _action_value(proposed.action)
        if action not in VALID_ACTIONS:
            aligned.append(
                AbstractDay(
                    date=current,
                    action=DayAction.REST,
                    reason=f"Unrecognized action '{action}' replaced with rest",
                )
            )
        elif action == DayAction.EVENT.value:
            aligned.append(
                AbstractDay(
                    date=current,
                    action=DayAction.REST,
                    reason="No scheduled event on this date",
                )
            )
        else:
            aligned.append(
                AbstractDay(
                    date=current,
                    action=DayAction(action),
                    tags=normalize_tags(proposed.tags),
                    reason=proposed.reason,
                )
            )

    return aligned
