"""
Domain models for microcycle planning.

These models describe one planning invocation: the caller-assembled
context going in, the planner's abstract day sequence in the middle, and
the compiled, exercise-level plan coming out. None of them map to a
database row; persistence is the caller's concern.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.adaptation import AdaptationStrategy


class DayAction(str, Enum):
    """What happens on a day of the plan."""

    TRAIN = "train"
    RECOVERY = "recovery"
    REST = "rest"
    EVENT = "event"


class Focus(str, Enum):
    """Closed set of session focuses used for exercise selection."""

    UPPER = "upper"
    LOWER = "lower"
    FULL = "full"
    CONDITIONING = "conditioning"
    MOBILITY = "mobility"
    YOGA = "yoga"
    PILATES = "pilates"
    CALISTHENICS = "calisthenics"


class PlannerStrategy(str, Enum):
    """Planner variants. Chosen once per planning call."""

    GENERATED = "generated"
    DETERMINISTIC = "deterministic"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class Profile(BaseModel):
    """Athlete attributes relevant to planning."""

    goal: Optional[str] = Field(None, description="Free-text training goal")
    frequency_per_week: Optional[int] = Field(
        None, ge=0, description="Target training sessions per week"
    )
    equipment: Optional[str] = Field(
        None, description="Free-text description of accessible equipment"
    )
    dislikes: Optional[str] = Field(
        None, description="Free-text list of disliked exercises"
    )
    modalities_note: Optional[str] = Field(
        None, description="Preferred training modalities (e.g. 'yoga, climbing')"
    )
    session_length_min: Optional[int] = Field(
        None, gt=0, description="Target session length in minutes"
    )


class ScheduledEvent(BaseModel):
    """An externally fixed occurrence such as a race or a game."""

    model_config = ConfigDict(frozen=True)

    date: date
    label: str
    intensity: Optional[str] = Field(
        None, description="Explicit intensity: low, medium, high"
    )
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


class HistoryDay(BaseModel):
    """A record of a past training day."""

    date: date
    focus: Optional[str] = None
    completed: Optional[bool] = None
    soreness: Optional[int] = Field(None, ge=1, le=10)
    rpe: Optional[int] = Field(None, ge=1, le=10, description="Perceived exertion")


class AbstractDay(BaseModel):
    """One day of the planner's output: an action and descriptive tags."""

    date: date
    action: DayAction
    tags: List[str] = Field(default_factory=list)
    reason: Optional[str] = None


class AbstractPlan(BaseModel):
    """Day-by-day action sequence produced by a planner strategy."""

    plan: List[AbstractDay]
    notes: Optional[str] = None
    strategy: Optional[PlannerStrategy] = None
    warnings: List[str] = Field(
        default_factory=list, description="Validation findings on the raw planner output"
    )


class PlanningContext(BaseModel):
    """Everything the planner needs, assembled fresh by the caller."""

    today: date
    horizon_days: int = Field(7, ge=1, description="Number of days to plan")
    profile: Profile = Field(default_factory=Profile)
    events: List[ScheduledEvent] = Field(default_factory=list)
    recent_history: List[HistoryDay] = Field(default_factory=list)
    existing_plan: Optional[AbstractPlan] = None


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


class ExerciseSpec(BaseModel):
    """One prescribed movement."""

    name: str = Field(description="Exercise name, optionally with a cue or timing suffix")
    sets: int = Field(ge=1, le=10)
    reps: Optional[int] = Field(
        None, ge=1, le=100, description="None for time-based or flow movements"
    )
    rest_sec: int = Field(0, ge=0, le=600)
    rir: Optional[int] = Field(
        None, description="Reps in reserve, filled in by the athlete after the session"
    )
    load_kg: Optional[float] = Field(
        None, ge=0, description="None means bodyweight or unspecified"
    )
    estimated_duration: int = Field(0, ge=0, description="Estimated duration in seconds")
    order_index: int = Field(0, ge=0)


class CompiledDay(BaseModel):
    """A planned day with concrete exercises."""

    date: date
    action: DayAction
    focus: Focus
    tags: List[str] = Field(default_factory=list)
    exercises: List[ExerciseSpec] = Field(default_factory=list)
    meta: Dict[str, Any] = Field(default_factory=dict)


class CompiledPlan(BaseModel):
    """Result of one orchestrator call."""

    days: List[CompiledDay]
    notes: Optional[str] = None
    strategy: PlannerStrategy
    warnings: List[str] = Field(
        default_factory=list, description="Advisory validation messages"
    )
    generated_at: datetime = Field(default_factory=datetime.utcnow)


class PlanSummary(BaseModel):
    """Aggregate statistics for a compiled plan."""

    total_days: int
    training_days: int
    recovery_days: int
    rest_days: int
    event_days: int
    total_exercises: int
    estimated_weekly_hours: float


class PreviousSession(BaseModel):
    """The last occurrence of a similar session, used as generation context."""

    exercises: List[ExerciseSpec] = Field(default_factory=list)
    feedback: str = ""
    rir_values: Dict[str, int] = Field(
        default_factory=dict, description="Exercise name -> reported reps in reserve"
    )


class PlanOptions(BaseModel):
    """Per-call orchestrator options."""

    horizon_days: Optional[int] = Field(
        None, ge=1, description="Overrides the context's horizon when set"
    )
    generation_model: Optional[str] = None
    enable_refinement_pass: bool = False
    refinement_model: Optional[str] = None
    adaptation: Optional[AdaptationStrategy] = Field(
        None, description="Shared adaptation strategy applied to every compiled day"
    )
    timeout_seconds: Optional[float] = Field(None, gt=0)
    fallback_to_deterministic: bool = Field(
        True,
        description="Use the deterministic planner when the generated planner fails",
    )
