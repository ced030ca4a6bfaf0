"""Models package for the microcycle planner."""

from models.adaptation import (
    AdaptationStrategy,
    Difficulty,
    ExerciseSwap,
    FeedbackAnalysis,
    LoadAdjustment,
    PerformedExercise,
    SessionFeedback,
    VolumeAdjustment,
)
from models.planning import (
    AbstractDay,
    AbstractPlan,
    CompiledDay,
    CompiledPlan,
    DayAction,
    ExerciseSpec,
    Focus,
    HistoryDay,
    PlannerStrategy,
    PlanningContext,
    PlanOptions,
    PlanSummary,
    PreviousSession,
    Profile,
    ScheduledEvent,
)
from models.requests import AdaptationRequest, AdaptationResponse, PlanRequest

__all__ = [
    "AbstractDay",
    "AbstractPlan",
    "AdaptationRequest",
    "AdaptationResponse",
    "AdaptationStrategy",
    "CompiledDay",
    "CompiledPlan",
    "DayAction",
    "Difficulty",
    "ExerciseSpec",
    "ExerciseSwap",
    "FeedbackAnalysis",
    "Focus",
    "HistoryDay",
    "LoadAdjustment",
    "PerformedExercise",
    "PlannerStrategy",
    "PlanningContext",
    "PlanOptions",
    "PlanRequest",
    "PlanSummary",
    "PreviousSession",
    "Profile",
    "ScheduledEvent",
    "SessionFeedback",
    "VolumeAdjustment",
]
