"""
LLM response schemas for planning and exercise generation.

Pydantic models for structured LLM responses. These are deliberately
looser than the domain models: actions arrive as plain strings so an
unrecognized value becomes an advisory warning instead of a parse retry,
and numeric fields are clamped after parsing rather than rejected.
"""

import datetime as dt
from typing import List, Optional, Union

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------


class PlannedDay(BaseModel):
    """A single day proposed by the LLM planner."""

    date: dt.date = Field(description="Calendar date (YYYY-MM-DD)")
    action: str = Field(description="train | recovery | rest | event")
    tags: List[str] = Field(default_factory=list, description="Descriptive focus tags")
    reason: Optional[str] = Field(None, description="Short explanation")


class PlannerResponse(BaseModel):
    """Response from the LLM planner."""

    plan: List[PlannedDay] = Field(description="One entry per day of the horizon")
    notes: Optional[str] = Field(None, description="Overall plan notes")


PLANNER_SCHEMA_DESCRIPTION = """{
  "plan": [
    {
      "date": "YYYY-MM-DD",
      "action": "train" | "recovery" | "rest" | "event",
      "tags": ["tag1", "tag2"],
      "reason": "optional short explanation"
    }
  ],
  "notes": "optional overall notes (<=200 chars)"
}"""


# ---------------------------------------------------------------------------
# Exercise generation
# ---------------------------------------------------------------------------


class GeneratedExercise(BaseModel):
    """A single exercise produced by the LLM."""

    name: str = Field(min_length=1, description="Exercise name, timing embedded for holds/flows")
    sets: int = Field(3, description="Number of sets")
    reps: Optional[Union[int, str]] = Field(
        None, description="Rep count, or null/string for time-based movements"
    )
    rest_sec: int = Field(60, description="Rest between sets in seconds")
    load_kg: Optional[float] = Field(None, description="Target load, null for bodyweight")
    notes: Optional[str] = Field(None, description="Short coaching note")
    estimated_duration_sec: Optional[int] = Field(
        None, description="Estimated total duration in seconds"
    )


class ExerciseGenerationResponse(BaseModel):
    """Response from the LLM exercise generator."""

    exercises: List[GeneratedExercise] = Field(
        min_length=1, description="Exercises in execution order"
    )


EXERCISE_SCHEMA_DESCRIPTION = """{
  "exercises": [
    {
      "name": "Exercise Name",
      "sets": 3,
      "reps": 10,
      "rest_sec": 90,
      "load_kg": 20 or null,
      "notes": "optional short note",
      "estimated_duration_sec": 480
    }
  ]
}"""


# ---------------------------------------------------------------------------
# Feedback analysis and adaptation
# ---------------------------------------------------------------------------

FEEDBACK_SCHEMA_DESCRIPTION = """{
  "overall_difficulty": "too_easy" | "appropriate" | "too_hard",
  "exercises_to_increase": ["exercise name"],
  "exercises_to_decrease": ["exercise name"],
  "exercises_to_swap": ["exercise name"],
  "volume_adjustment": -10 to 10,
  "intensity_modifier": 0.9 to 1.1,
  "notes": "short explanation",
  "confidence": 0.0 to 1.0
}"""

ADAPTATION_SCHEMA_DESCRIPTION = """{
  "load_adjustments": [
    {"exercise_pattern": "bench press", "change_kg": 2.5, "reason": "..."}
  ],
  "volume_adjustments": [
    {"exercise_pattern": "squat", "sets_change": 1, "reps_change": null, "reason": "..."}
  ],
  "exercise_swaps": [
    {"old_exercise_pattern": "lunges", "new_exercise": "Split Squats", "reason": "..."}
  ],
  "intensity_modifier": 0.9 to 1.1,
  "progression_notes": "short summary",
  "confidence": 0.0 to 1.0
}"""
