"""
Services package for the microcycle planner.

Contains the planning pipeline:
- Policy guards (cadence, event taper, recovery spacing, focus mapping)
- Planner brain (generated and deterministic strategies)
- Exercise generation with template fallback
- Feedback analysis and adaptation planning
- Orchestration, refinement and caller-side context assembly
"""

from services.adaptation_planner import AdaptationPlanner, apply_adaptation, fallback_strategy
from services.exercise_generator import ExerciseGenerator, GenerationResult
from services.exercise_templates import compile_template_exercises
from services.feedback_analyzer import FeedbackAnalyzer
from services.orchestrator import PlanOrchestrator, estimate_duration, summarize
from services.planner_brain import PlannerBrain, select_planner_strategy
from services.policy import (
    DEFAULT_CONSTRAINTS,
    PlanningConstraints,
    apply_guards,
    map_to_safe_focus,
    validate_plan,
)

__all__ = [
    # Adaptation
    "AdaptationPlanner",
    "FeedbackAnalyzer",
    "apply_adaptation",
    "fallback_strategy",
    # Exercise compilation
    "ExerciseGenerator",
    "GenerationResult",
    "compile_template_exercises",
    # Orchestration
    "PlanOrchestrator",
    "estimate_duration",
    "summarize",
    # Planning
    "PlannerBrain",
    "select_planner_strategy",
    # Policy
    "DEFAULT_CONSTRAINTS",
    "PlanningConstraints",
    "apply_guards",
    "map_to_safe_focus",
    "validate_plan",
]
