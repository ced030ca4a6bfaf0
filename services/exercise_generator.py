"""
Exercise generator: concrete exercises for one training or recovery day.

The completion service generates a session when it is available. Any
failure (or no service at all) falls back to the template compiler, so a
non-rest day always gets a non-empty exercise list.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from application.ports import CompletionService
from core.constants import MAX_PROMPT_SESSION_LENGTH_MIN, MIN_PROMPT_SESSION_LENGTH_MIN
from models.adaptation import AdaptationStrategy
from models.planning import ExerciseSpec, Focus, PreviousSession, Profile
from services.adaptation_planner import apply_adaptation
from services.exercise_templates import compile_template_exercises, resolve_focus
from services.llm.client import CompletionOptions
from services.llm.prompts import (
    DEFAULT_SESSION_LENGTH_MIN,
    EXERCISE_GENERATION_SYSTEM_PROMPT,
    build_exercise_generation_prompt,
)
from services.llm.schemas import (
    EXERCISE_SCHEMA_DESCRIPTION,
    ExerciseGenerationResponse,
    GeneratedExercise,
)

logger = logging.getLogger(__name__)

GENERATION_OPTIONS = CompletionOptions(temperature=0.8, max_tokens=1500, retries=2)

SOURCE_GENERATED = "generated"
SOURCE_TEMPLATE = "template"

# Working time per set, used when the service omits a duration estimate
_SECONDS_PER_SET = 45
_MAX_LOAD_KG = 500.0
_MAX_DURATION_SEC = 2 * 60 * 60


@dataclass
class GenerationResult:
    """Exercises for a session and where they came from."""

    exercises: List[ExerciseSpec]
    source: str


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def to_exercise_spec(generated: GeneratedExercise, order_index: int) -> ExerciseSpec:
    """
    Convert one generated exercise into an ExerciseSpec.

    Notes are appended to the name, string reps ("30s", "8-12") become
    None, numbers are clamped to sane ranges and rir is never set.
    """
    name = generated.name.strip()
    if generated.notes and generated.notes.strip():
        name = f"{name} - {generated.notes.strip()}"

    reps = generated.reps if isinstance(generated.reps, int) else None
    if reps is not None:
        reps = _clamp(reps, 1, 100)

    sets = _clamp(generated.sets, 1, 10)
    rest_sec = _clamp(generated.rest_sec, 0, 600)

    load_kg = generated.load_kg
    if load_kg is not None:
        load_kg = min(load_kg, _MAX_LOAD_KG) if load_kg > 0 else None

    duration = generated.estimated_duration_sec
    if duration is None or duration <= 0:
        duration = sets * (_SECONDS_PER_SET + rest_sec)

    return ExerciseSpec(
        name=name,
        sets=sets,
        reps=reps,
        rest_sec=rest_sec,
        rir=None,
        load_kg=load_kg,
        estimated_duration=_clamp(duration, 0, _MAX_DURATION_SEC),
        order_index=order_index,
    )


class ExerciseGenerator:
    """Generates exercises for a focus, falling back to templates."""

    def __init__(
        self,
        client: Optional[CompletionService] = None,
        model: Optional[str] = None,
    ):
        """
        Initialize the generator.

        Args:
            client: Completion service; None always uses templates
            model: Generation model (defaults to the client's)
        """
        self._client = client
        self._model = model

    async def generate(
        self,
        focus: Union[Focus, str],
        tags: List[str],
        profile: Profile,
        session_length_min: Optional[int] = None,
        adaptation: Optional[AdaptationStrategy] = None,
        previous_session: Optional[PreviousSession] = None,
    ) -> List[ExerciseSpec]:
        """Generate exercises; see generate_with_source."""
        result = await self.generate_with_source(
            focus, tags, profile, session_length_min, adaptation, previous_session
        )
        return result.exercises

    async def generate_with_source(
        self,
        focus: Union[Focus, str],
        tags: List[str],
        profile: Profile,
        session_length_min: Optional[int] = None,
        adaptation: Optional[AdaptationStrategy] = None,
        previous_session: Optional[PreviousSession] = None,
    ) -> GenerationResult:
        """
        Generate exercises for one session.

        Args:
            focus: Session focus
            tags: Planner tags for the day
            profile: Athlete profile (equipment, dislikes, goal)
            session_length_min: Target duration (defaults to the profile's, then 60)
            adaptation: Directives from the adaptation planner
            previous_session: Last occurrence of a similar session

        Returns:
            GenerationResult with a non-empty exercise list
        """
        length = _clamp(
            session_length_min or profile.session_length_min or DEFAULT_SESSION_LENGTH_MIN,
            MIN_PROMPT_SESSION_LENGTH_MIN,
            MAX_PROMPT_SESSION_LENGTH_MIN,
        )

        if self._client is None or not self._client.is_available():
            logger.debug("Completion service not available, compiling from templates")
            return self._from_templates(focus, profile, adaptation)

        focus_name = focus.value if isinstance(focus, Focus) else str(focus)
        model = self._model or self._client.default_model
        messages = [
            {"role": "system", "content": EXERCISE_GENERATION_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": build_exercise_generation_prompt(
                    focus_name, tags, profile, length, adaptation, previous_session
                ),
            },
        ]

        try:
            response = await self._client.generate_structured(
                model,
                messages,
                ExerciseGenerationResponse,
                schema_description=EXERCISE_SCHEMA_DESCRIPTION,
                options=GENERATION_OPTIONS,
            )
        except Exception as e:
            logger.warning(f"Exercise generation failed for {focus_name}, using templates: {e}")
            return self._from_templates(focus, profile, adaptation)

        exercises = [to_exercise_spec(ex, index) for index, ex in enumerate(response.exercises)]
        logger.info(f"Generated {len(exercises)} exercises for {focus_name}")
        return GenerationResult(exercises=exercises, source=SOURCE_GENERATED)

    def _from_templates(
        self,
        focus: Union[Focus, str],
        profile: Profile,
        adaptation: Optional[AdaptationStrategy],
    ) -> GenerationResult:
        exercises = compile_template_exercises(resolve_focus(focus), profile)
        return GenerationResult(
            exercises=apply_adaptation(exercises, adaptation),
            source=SOURCE_TEMPLATE,
        )
