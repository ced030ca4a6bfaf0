"""
Plan orchestrator: the single entry point of the planning pipeline.

Stages, once per call:
1. Select Strategy - generated iff the completion client is available
2. Generate Abstract Plan - planner brain (deterministic fallback on failure)
3. Defensive Policy Reapplication - cadence, taper, recovery spacing
4. Validate - advisory warnings, logged and attached to the result
5. Per-Day Compile - concurrent, bounded, results kept in date order
6. Return - a complete CompiledPlan, or a single PlanningError

Nothing is persisted here; callers store the returned plan themselves.
"""

import asyncio
import logging
import math
from typing import Iterable, List, Optional, Union

from application.exceptions import PlanningError, PlanningTimeout
from application.ports import CompletionService
from models.planning import (
    AbstractDay,
    AbstractPlan,
    CompiledDay,
    CompiledPlan,
    DayAction,
    PlannerStrategy,
    PlanningContext,
    PlanOptions,
    PlanSummary,
)
from services.exercise_generator import SOURCE_GENERATED, ExerciseGenerator
from services.planner_brain import PlannerBrain, select_planner_strategy
from services.policy import (
    DEFAULT_CONSTRAINTS,
    PlanningConstraints,
    apply_guards,
    map_to_safe_focus,
    validate_plan,
)
from services.refinement import refine_exercises

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT_COMPILATIONS = 4

NON_TRAINING_ACTIONS = (DayAction.REST, DayAction.EVENT)


class PlanOrchestrator:
    """
    Runs the planning pipeline for one athlete context.

    The completion client is owned by the caller and shared across calls;
    the orchestrator holds no per-call state.
    """

    def __init__(
        self,
        client: Optional[CompletionService] = None,
        max_concurrent_compilations: int = DEFAULT_MAX_CONCURRENT_COMPILATIONS,
        default_timeout_seconds: Optional[float] = None,
        refinement_model: Optional[str] = None,
        constraints: PlanningConstraints = DEFAULT_CONSTRAINTS,
    ):
        """
        Initialize the orchestrator.

        Args:
            client: Completion service; None plans deterministically with templates
            max_concurrent_compilations: Upper bound on concurrent day compilations
            default_timeout_seconds: Time budget used when options set none
            refinement_model: Default model for the refinement pass
            constraints: Policy limits
        """
        if max_concurrent_compilations < 1:
            raise ValueError("max_concurrent_compilations must be at least 1")

        self._client = client
        self._max_concurrent = max_concurrent_compilations
        self._default_timeout = default_timeout_seconds
        self._refinement_model = refinement_model
        self._constraints = constraints

    @classmethod
    def from_settings(cls, settings, client: Optional[CompletionService]) -> "PlanOrchestrator":
        """Build an orchestrator from application Settings."""
        return cls(
            client=client,
            max_concurrent_compilations=settings.max_concurrent_compilations,
            default_timeout_seconds=settings.planning_timeout_seconds,
            refinement_model=settings.effective_refinement_model,
        )

    async def plan(
        self,
        context: PlanningContext,
        options: Optional[PlanOptions] = None,
    ) -> CompiledPlan:
        """
        Plan and compile a microcycle.

        Args:
            context: Caller-assembled planning context
            options: Per-call options (horizon, models, refinement, adaptation,
                timeout, planner fallback)

        Returns:
            CompiledPlan with one CompiledDay per horizon date

        Raises:
            PlanningTimeout: If the time budget is exceeded
            PlanningError: If no abstract plan could be produced
        """
        options = options or PlanOptions()
        timeout = options.timeout_seconds or self._default_timeout

        if timeout is None:
            return await self._run(context, options)

        try:
            return await asyncio.wait_for(self._run(context, options), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Planning exceeded its {timeout}s time budget")
            raise PlanningTimeout(f"Planning exceeded its {timeout}s time budget") from e

    async def _run(self, context: PlanningContext, options: PlanOptions) -> CompiledPlan:
        if options.horizon_days is not None:
            context = context.model_copy(update={"horizon_days": options.horizon_days})

        strategy = select_planner_strategy(self._client)
        logger.info(
            f"Planning {context.horizon_days} days from {context.today} "
            f"(strategy={strategy.value})"
        )

        abstract = await self._generate_abstract_plan(context, options, strategy)

        guarded = apply_guards(abstract.plan, context, self._constraints)
        warnings = list(abstract.warnings)
        warnings.extend(
            validate_plan(AbstractPlan(plan=guarded, notes=abstract.notes), context)
        )
        for warning in warnings:
            logger.warning(f"Plan validation: {warning}")

        semaphore = asyncio.Semaphore(self._max_concurrent)
        generator = ExerciseGenerator(self._client, model=options.generation_model)
        days = await asyncio.gather(
            *(
                self._compile_day(day, context, options, generator, semaphore)
                for day in guarded
            )
        )

        logger.info(f"Compiled {len(days)} days")
        return CompiledPlan(
            days=list(days),
            notes=abstract.notes,
            strategy=abstract.strategy or strategy,
            warnings=warnings,
        )

    async def _generate_abstract_plan(
        self,
        context: PlanningContext,
        options: PlanOptions,
        strategy: PlannerStrategy,
    ) -> AbstractPlan:
        planner = PlannerBrain(self._client, model=options.generation_model, constraints=self._constraints)

        try:
            return await planner.plan(context, strategy)
        except Exception as e:
            if strategy == PlannerStrategy.GENERATED and options.fallback_to_deterministic:
                logger.warning(f"Generated planner failed, using deterministic planner: {e}")
                try:
                    return planner.plan_deterministic(context)
                except Exception as fallback_error:
                    logger.error(f"Deterministic planner failed: {fallback_error}")
                    raise PlanningError(f"Planning failed: {fallback_error}") from fallback_error

            logger.error(f"Planner failed: {e}")
            raise PlanningError(f"Planning failed: {e}") from e

    async def _compile_day(
        self,
        day: AbstractDay,
        context: PlanningContext,
        options: PlanOptions,
        generator: ExerciseGenerator,
        semaphore: asyncio.Semaphore,
    ) -> CompiledDay:
        focus = map_to_safe_focus(day.tags)
        meta = {"reason": day.reason} if day.reason else {}

        if day.action in NON_TRAINING_ACTIONS:
            return CompiledDay(
                date=day.date,
                action=day.action,
                focus=focus,
                tags=list(day.tags),
                exercises=[],
                meta=meta,
            )

        async with semaphore:
            result = await generator.generate_with_source(
                focus,
                day.tags,
                context.profile,
                context.profile.session_length_min,
                adaptation=options.adaptation,
            )
            exercises = result.exercises

            if options.enable_refinement_pass:
                refinement = await refine_exercises(
                    self._client,
                    options.refinement_model or self._refinement_model,
                    focus.value,
                    day.tags,
                    context.profile,
                    exercises,
                )
                exercises = refinement.exercises
                meta["refined"] = refinement.refined

        meta["source"] = result.source
        meta["ai_generated"] = result.source == SOURCE_GENERATED

        return CompiledDay(
            date=day.date,
            action=day.action,
            focus=focus,
            tags=list(day.tags),
            exercises=exercises,
            meta=meta,
        )


# ---------------------------------------------------------------------------
# Read-only utilities
# ---------------------------------------------------------------------------


def estimate_duration(day: CompiledDay) -> int:
    """Total estimated duration of a day in minutes, rounded up."""
    total_seconds = sum(exercise.estimated_duration or 0 for exercise in day.exercises)
    return math.ceil(total_seconds / 60)


def summarize(plan: Union[CompiledPlan, Iterable[CompiledDay]]) -> PlanSummary:
    """
    Summary statistics for a compiled plan.

    Weekly hours scale the plan's total minutes to seven days and are
    rounded to one decimal.
    """
    days: List[CompiledDay] = list(plan.days if isinstance(plan, CompiledPlan) else plan)
    total_days = len(days)
    total_minutes = sum(estimate_duration(day) for day in days)
    weekly_hours = (total_minutes / 60) * (7 / total_days) if total_days else 0.0

    return PlanSummary(
        total_days=total_days,
        training_days=sum(day.action == DayAction.TRAIN for day in days),
        recovery_days=sum(day.action == DayAction.RECOVERY for day in days),
        rest_days=sum(day.action == DayAction.REST for day in days),
        event_days=sum(day.action == DayAction.EVENT for day in days),
        total_exercises=sum(len(day.exercises) for day in days),
        estimated_weekly_hours=round(weekly_hours, 1),
    )
