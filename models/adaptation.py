"""
Models for session feedback and progressive-overload adaptation.

A FeedbackAnalysis summarises how recent sessions felt (from the athlete's
reps-in-reserve ratings and notes); an AdaptationStrategy turns that into
load, volume and substitution directives for the next similar session.
"""

from datetime import date as Date
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

INTENSITY_MODIFIER_MIN = 0.9
INTENSITY_MODIFIER_MAX = 1.1
VOLUME_ADJUSTMENT_LIMIT = 10.0


def _clamp(value: Any, low: float, high: float) -> Any:
    """Clamp numeric input into [low, high]; leave anything else for pydantic."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return min(max(float(value), low), high)
    return value


class Difficulty(str, Enum):
    """Overall perceived difficulty of recent sessions."""

    TOO_EASY = "too_easy"
    APPROPRIATE = "appropriate"
    TOO_HARD = "too_hard"


# ---------------------------------------------------------------------------
# Feedback input
# ---------------------------------------------------------------------------


class PerformedExercise(BaseModel):
    """An exercise as it was performed, with the athlete's rating."""

    id: Optional[str] = None
    name: str
    sets: Optional[int] = None
    reps: Optional[int] = None
    load_kg: Optional[float] = None
    rir: Optional[int] = Field(None, description="Reported reps in reserve")
    done: bool = True


class SessionFeedback(BaseModel):
    """One completed session and the athlete's feedback on it."""

    date: Optional[Date] = None
    focus: Optional[str] = None
    user_feedback: str = ""
    exercises: List[PerformedExercise] = Field(default_factory=list)


class FeedbackAnalysis(BaseModel):
    """Structured reading of recent session feedback."""

    overall_difficulty: Difficulty = Difficulty.APPROPRIATE
    exercises_to_increase: List[str] = Field(default_factory=list)
    exercises_to_decrease: List[str] = Field(default_factory=list)
    exercises_to_swap: List[str] = Field(default_factory=list)
    volume_adjustment: float = Field(
        0.0, description="Suggested volume change in percent (-10 to +10)"
    )
    intensity_modifier: float = Field(1.0, description="Multiplier (0.9 to 1.1)")
    notes: str = ""
    confidence: float = Field(0.5, description="0-1 confidence in the analysis")

    @field_validator("volume_adjustment", mode="before")
    @classmethod
    def clamp_volume(cls, v: Any) -> Any:
        return _clamp(v, -VOLUME_ADJUSTMENT_LIMIT, VOLUME_ADJUSTMENT_LIMIT)

    @field_validator("intensity_modifier", mode="before")
    @classmethod
    def clamp_intensity(cls, v: Any) -> Any:
        return _clamp(v, INTENSITY_MODIFIER_MIN, INTENSITY_MODIFIER_MAX)

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: Any) -> Any:
        return _clamp(v, 0.0, 1.0)


# ---------------------------------------------------------------------------
# Adaptation strategy
# ---------------------------------------------------------------------------


class LoadAdjustment(BaseModel):
    """Change the prescribed load of matching exercises."""

    exercise_pattern: str = Field(description="Pattern matched against exercise names")
    change_kg: float
    reason: str = ""


class VolumeAdjustment(BaseModel):
    """Change the set (and optionally rep) count of matching exercises."""

    exercise_pattern: str
    sets_change: int
    reps_change: Optional[int] = None
    reason: str = ""


class ExerciseSwap(BaseModel):
    """Replace matching exercises with another movement."""

    old_exercise_pattern: str
    new_exercise: str
    reason: str = ""


class AdaptationStrategy(BaseModel):
    """Directives for the next occurrence of a similar session.

    Derived and ephemeral: the compiler applies it, nothing stores it.
    """

    load_adjustments: List[LoadAdjustment] = Field(default_factory=list)
    volume_adjustments: List[VolumeAdjustment] = Field(default_factory=list)
    exercise_swaps: List[ExerciseSwap] = Field(default_factory=list)
    intensity_modifier: float = Field(1.0, description="Multiplier in [0.9, 1.1]")
    progression_notes: str = ""
    confidence: float = Field(0.5, description="0-1 trust in the strategy")

    @field_validator("intensity_modifier", mode="before")
    @classmethod
    def clamp_intensity(cls, v: Any) -> Any:
        return _clamp(v, INTENSITY_MODIFIER_MIN, INTENSITY_MODIFIER_MAX)

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: Any) -> Any:
        return _clamp(v, 0.0, 1.0)

    @property
    def is_empty(self) -> bool:
        """True when the strategy changes nothing."""
        return not (
            self.load_adjustments
            or self.volume_adjustments
            or self.exercise_swaps
            or self.intensity_modifier != 1.0
        )
