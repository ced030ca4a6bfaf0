"""
Feedback analyzer: turns completed sessions into a FeedbackAnalysis.

Uses the completion service when it is available and falls back to a
reps-in-reserve heuristic over the latest session otherwise.
"""

import logging
from typing import List, Optional

from application.ports import CompletionService
from core.constants import FEEDBACK_SESSION_WINDOW
from models.adaptation import Difficulty, FeedbackAnalysis, SessionFeedback
from services.llm.client import CompletionOptions
from services.llm.prompts import FEEDBACK_ANALYSIS_SYSTEM_PROMPT, build_feedback_analysis_prompt
from services.llm.schemas import FEEDBACK_SCHEMA_DESCRIPTION

logger = logging.getLogger(__name__)

ANALYSIS_OPTIONS = CompletionOptions(temperature=0.3, max_tokens=800, retries=2)

# RIR thresholds for the heuristic
EASY_RIR = 4
HARD_RIR = 1
# Share of rated exercises that tips the overall difficulty
MAJORITY_SHARE = 0.6


def fallback_analysis(sessions: List[SessionFeedback]) -> FeedbackAnalysis:
    """
    Heuristic analysis of the latest session.

    RIR >= 4 flags an exercise as too easy, RIR <= 1 as too hard. More than
    60% of exercises either way sets the overall difficulty, with a +/-5%
    volume change and a 1.05/0.95 intensity modifier.
    """
    if not sessions:
        return FeedbackAnalysis(
            overall_difficulty=Difficulty.APPROPRIATE,
            volume_adjustment=0,
            intensity_modifier=1.0,
            notes="No workout data available for analysis",
            confidence=0.1,
        )

    latest = sessions[-1]
    to_increase: List[str] = []
    to_decrease: List[str] = []
    for exercise in latest.exercises:
        if exercise.rir is None or not exercise.name:
            continue
        if exercise.rir >= EASY_RIR:
            to_increase.append(exercise.name)
        elif exercise.rir <= HARD_RIR:
            to_decrease.append(exercise.name)

    total = len(latest.exercises)
    difficulty = Difficulty.APPROPRIATE
    if total and len(to_increase) / total > MAJORITY_SHARE:
        difficulty = Difficulty.TOO_EASY
    elif total and len(to_decrease) / total > MAJORITY_SHARE:
        difficulty = Difficulty.TOO_HARD

    volume, intensity = {
        Difficulty.TOO_EASY: (5.0, 1.05),
        Difficulty.TOO_HARD: (-5.0, 0.95),
        Difficulty.APPROPRIATE: (0.0, 1.0),
    }[difficulty]

    return FeedbackAnalysis(
        overall_difficulty=difficulty,
        exercises_to_increase=to_increase,
        exercises_to_decrease=to_decrease,
        exercises_to_swap=[],
        volume_adjustment=volume,
        intensity_modifier=intensity,
        notes=(
            f"Fallback analysis: {len(to_increase)} exercises too easy, "
            f"{len(to_decrease)} too hard"
        ),
        confidence=0.3,
    )


class FeedbackAnalyzer:
    """Reads recent session feedback into a structured analysis."""

    def __init__(self, client: Optional[CompletionService] = None, model: Optional[str] = None):
        self._client = client
        self._model = model

    async def analyze(self, sessions: List[SessionFeedback]) -> FeedbackAnalysis:
        """
        Analyze recent sessions (oldest first).

        Never raises on completion failures; the heuristic is used instead.
        """
        if not sessions:
            return fallback_analysis(sessions)

        if self._client is None or not self._client.is_available():
            logger.info("Completion service not available, using fallback feedback analysis")
            return fallback_analysis(sessions)

        recent = sessions[-FEEDBACK_SESSION_WINDOW:]
        model = self._model or self._client.default_model
        messages = [
            {"role": "system", "content": FEEDBACK_ANALYSIS_SYSTEM_PROMPT},
            {"role": "user", "content": build_feedback_analysis_prompt(recent)},
        ]

        try:
            analysis = await self._client.generate_structured(
                model,
                messages,
                FeedbackAnalysis,
                schema_description=FEEDBACK_SCHEMA_DESCRIPTION,
                options=ANALYSIS_OPTIONS,
            )
        except Exception as e:
            logger.warning(f"Feedback analysis failed, using fallback: {e}")
            return fallback_analysis(sessions)

        logger.info(f"Feedback analysis complete: {analysis.overall_difficulty.value} difficulty")
        return analysis
