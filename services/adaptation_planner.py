"""
Adaptation planner: progressive-overload directives from feedback.

plan() produces an AdaptationStrategy (generated, or a fixed-delta
fallback). apply_adaptation() applies a strategy to a list of exercises
deterministically, which is how template-compiled sessions honor it.
"""

import logging
import re
from typing import List, Optional

from application.ports import CompletionService
from models.adaptation import (
    AdaptationStrategy,
    FeedbackAnalysis,
    LoadAdjustment,
    VolumeAdjustment,
)
from models.planning import ExerciseSpec, Profile
from services.llm.client import CompletionOptions
from services.llm.prompts import ADAPTATION_SYSTEM_PROMPT, build_adaptation_prompt
from services.llm.schemas import ADAPTATION_SCHEMA_DESCRIPTION

logger = logging.getLogger(__name__)

ADAPTATION_OPTIONS = CompletionOptions(temperature=0.4, max_tokens=1000, retries=2)

LOAD_STEP_KG = 2.5
FALLBACK_CONFIDENCE = 0.4
MATCH_ALL_PATTERNS = frozenset({".", ".*", "*"})

MIN_SETS = 1
MAX_SETS = 10
MIN_REPS = 1
MAX_REPS = 100


# ---------------------------------------------------------------------------
# Strategy planning
# ---------------------------------------------------------------------------


def fallback_strategy(analysis: FeedbackAnalysis) -> AdaptationStrategy:
    """
    Fixed-delta strategy used without the completion service.

    +2.5 kg for every too-easy exercise, -2.5 kg for every too-hard one,
    and one set more or less across all exercises from the sign of the
    volume adjustment.
    """
    load_adjustments = [
        LoadAdjustment(
            exercise_pattern=name.lower(),
            change_kg=LOAD_STEP_KG,
            reason="Exercise was too easy, increasing weight",
        )
        for name in analysis.exercises_to_increase
    ]
    load_adjustments.extend(
        LoadAdjustment(
            exercise_pattern=name.lower(),
            change_kg=-LOAD_STEP_KG,
            reason="Exercise was too hard, decreasing weight",
        )
        for name in analysis.exercises_to_decrease
    )

    volume_adjustments: List[VolumeAdjustment] = []
    if analysis.volume_adjustment > 0:
        volume_adjustments.append(
            VolumeAdjustment(
                exercise_pattern=".",
                sets_change=1,
                reason="Overall volume was too low, adding sets",
            )
        )
    elif analysis.volume_adjustment < 0:
        volume_adjustments.append(
            VolumeAdjustment(
                exercise_pattern=".",
                sets_change=-1,
                reason="Overall volume was too high, reducing sets",
            )
        )

    return AdaptationStrategy(
        load_adjustments=load_adjustments,
        volume_adjustments=volume_adjustments,
        exercise_swaps=[],
        intensity_modifier=analysis.intensity_modifier,
        progression_notes=(
            f"Fallback strategy based on {analysis.overall_difficulty.value} difficulty"
        ),
        confidence=FALLBACK_CONFIDENCE,
    )


class AdaptationPlanner:
    """Creates adaptation strategies from feedback analyses."""

    def __init__(self, client: Optional[CompletionService] = None, model: Optional[str] = None):
        self._client = client
        self._model = model

    async def plan(
        self,
        analysis: FeedbackAnalysis,
        profile: Profile,
        recent_workout_count: int,
        goals: Optional[str] = None,
        equipment: Optional[str] = None,
    ) -> AdaptationStrategy:
        """
        Create a strategy for the next similar session.

        Args:
            analysis: Output of the feedback analyzer
            profile: Athlete profile
            recent_workout_count: Number of sessions the analysis covered
            goals: Goal text (defaults to the profile goal)
            equipment: Equipment text (defaults to the profile equipment)

        Returns:
            AdaptationStrategy with intensity and confidence clamped
        """
        if self._client is None or not self._client.is_available():
            logger.info("Completion service not available, using fallback adaptation strategy")
            return fallback_strategy(analysis)

        model = self._model or self._client.default_model
        prompt = build_adaptation_prompt(
            analysis,
            profile,
            recent_workout_count,
            goals or profile.goal or "",
            equipment or profile.equipment or "",
        )
        messages = [
            {"role": "system", "content": ADAPTATION_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

        try:
            strategy = await self._client.generate_structured(
                model,
                messages,
                AdaptationStrategy,
                schema_description=ADAPTATION_SCHEMA_DESCRIPTION,
                options=ADAPTATION_OPTIONS,
            )
        except Exception as e:
            logger.warning(f"Adaptation planning failed, using fallback: {e}")
            return fallback_strategy(analysis)

        logger.info(
            f"Adaptation strategy created with {len(strategy.load_adjustments)} load adjustments"
        )
        return strategy


# ---------------------------------------------------------------------------
# Applying a strategy
# ---------------------------------------------------------------------------


def pattern_matches(pattern: str, name: str) -> bool:
    """
    Match an exercise pattern against a name, case-insensitively.

    "." and ".*" match everything. Patterns are tried as regular
    expressions; invalid ones fall back to substring matching.
    """
    cleaned = pattern.strip()
    if cleaned in MATCH_ALL_PATTERNS:
        return True
    if not cleaned:
        return False
    if cleaned.lower() in name.lower():
        return True
    try:
        return re.search(cleaned, name, re.IGNORECASE) is not None
    except re.error:
        return False


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def apply_adaptation(
    exercises: List[ExerciseSpec],
    strategy: Optional[AdaptationStrategy],
) -> List[ExerciseSpec]:
    """
    Apply load, volume and swap directives to a list of exercises.

    Patterns match the original names, so swaps are applied last. A load
    gets its delta, is then scaled by the intensity modifier and never
    drops below zero. Bodyweight exercises stay unloaded. Sets stay within
    1-10 and reps never drop below 1. Estimated duration scales with the
    set count. Returns new ExerciseSpec objects.
    """
    if strategy is None or strategy.is_empty:
        return [exercise.model_copy() for exercise in exercises]

    adapted: List[ExerciseSpec] = []
    for exercise in exercises:
        name = exercise.name
        update = {}

        load_delta = sum(
            adj.change_kg
            for adj in strategy.load_adjustments
            if pattern_matches(adj.exercise_pattern, name)
        )
        if exercise.load_kg is not None and (load_delta or strategy.intensity_modifier != 1.0):
            load = max(0.0, exercise.load_kg + load_delta) * strategy.intensity_modifier
            update["load_kg"] = round(load, 2)

        volume = [
            adj for adj in strategy.volume_adjustments if pattern_matches(adj.exercise_pattern, name)
        ]
        if volume:
            sets = _clamp(exercise.sets + sum(adj.sets_change for adj in volume), MIN_SETS, MAX_SETS)
            update["sets"] = sets
            if exercise.sets:
                update["estimated_duration"] = round(exercise.estimated_duration * sets / exercise.sets)
            reps_delta = sum(adj.reps_change or 0 for adj in volume)
            if exercise.reps is not None and reps_delta:
                update["reps"] = _clamp(exercise.reps + reps_delta, MIN_REPS, MAX_REPS)

        swap = next(
            (s for s in strategy.exercise_swaps if pattern_matches(s.old_exercise_pattern, name)),
            None,
        )
        if swap is not None and swap.new_exercise.strip():
            update["name"] = swap.new_exercise.strip()

        adapted.append(exercise.model_copy(update=update))

    return adapted
