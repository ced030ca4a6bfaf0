"""
LLM integration for the microcycle planner.

Provides the completion client plus the prompts and response schemas
used by the planner, exercise generator and adaptation stages.
"""

from services.llm.client import CompletionClient, CompletionOptions
from services.llm.schemas import (
    ExerciseGenerationResponse,
    GeneratedExercise,
    PlannedDay,
    PlannerResponse,
)

__all__ = [
    "CompletionClient",
    "CompletionOptions",
    "ExerciseGenerationResponse",
    "GeneratedExercise",
    "PlannedDay",
    "PlannerResponse",
]
