"""
Planner brain: decides the action and tags for every day of the horizon.

Two strategies share one entry point:
- GENERATED asks the completion service for a plan, then aligns it to the
  horizon and re-applies the policy guards (the model's adherence to the
  prompt is advisory).
- DETERMINISTIC walks the horizon with a fixed weekday table and never
  touches the network.

The strategy is chosen once per call from the client's availability.
"""

import logging
from datetime import timedelta
from typing import List, Optional

from application.ports import CompletionService
from models.planning import (
    AbstractDay,
    AbstractPlan,
    DayAction,
    PlannerStrategy,
    PlanningContext,
)
from services.llm.client import CompletionOptions
from services.llm.prompts import DEFAULT_FREQUENCY, PLANNER_SYSTEM_PROMPT, build_planner_prompt
from services.llm.schemas import PLANNER_SCHEMA_DESCRIPTION, PlannerResponse
from services.policy import (
    DEFAULT_CONSTRAINTS,
    PlanningConstraints,
    align_to_horizon,
    apply_guards,
    event_tags,
    events_by_date,
    validate_plan,
)

logger = logging.getLogger(__name__)

PLANNER_OPTIONS = CompletionOptions(temperature=0.7, max_tokens=2000, retries=2)

DETERMINISTIC_NOTES = "Generated by deterministic fallback planner (no AI)"

# ISO weekdays (Mon=1) used for training, by target sessions per week
_TRAINING_WEEKDAYS = (
    (5, (1, 2, 3, 4, 5)),
    (4, (1, 2, 4, 5)),
    (3, (1, 3, 5)),
    (2, (1, 4)),
)
_DEFAULT_TRAINING_WEEKDAYS = (3,)


def select_planner_strategy(client: Optional[CompletionService]) -> PlannerStrategy:
    """Pick GENERATED iff a completion client is configured and available."""
    if client is not None and client.is_available():
        return PlannerStrategy.GENERATED
    return PlannerStrategy.DETERMINISTIC


def training_weekdays(frequency_per_week: Optional[int]) -> tuple:
    """ISO weekdays to train on for a weekly frequency (None means 3)."""
    frequency = DEFAULT_FREQUENCY if frequency_per_week is None else frequency_per_week
    for minimum, weekdays in _TRAINING_WEEKDAYS:
        if frequency >= minimum:
            return weekdays
    return _DEFAULT_TRAINING_WEEKDAYS


class PlannerBrain:
    """Produces the abstract day sequence for a planning context."""

    def __init__(
        self,
        client: Optional[CompletionService] = None,
        model: Optional[str] = None,
        constraints: PlanningConstraints = DEFAULT_CONSTRAINTS,
    ):
        """
        Initialize the planner.

        Args:
            client: Completion service; None forces the deterministic strategy
            model: Model for the generated strategy (defaults to the client's)
            constraints: Policy limits applied to every plan
        """
        self._client = client
        self._model = model
        self._constraints = constraints

    async def plan(
        self,
        context: PlanningContext,
        strategy: Optional[PlannerStrategy] = None,
    ) -> AbstractPlan:
        """
        Plan the horizon with the given (or freshly selected) strategy.

        Raises:
            CompletionError: From the generated strategy; callers decide
                whether to fall back
        """
        if strategy is None:
            strategy = select_planner_strategy(self._client)

        if strategy == PlannerStrategy.GENERATED:
            return await self.plan_generated(context)
        return self.plan_deterministic(context)

    async def plan_generated(self, context: PlanningContext) -> AbstractPlan:
        """Ask the completion service for a plan, then align and guard it."""
        if self._client is None:
            raise ValueError("Generated planning requires a completion client")

        model = self._model or self._client.default_model
        messages = [
            {"role": "system", "content": PLANNER_SYSTEM_PROMPT},
            {"role": "user", "content": build_planner_prompt(context)},
        ]

        logger.info(
            f"Generating {context.horizon_days}-day plan from {context.today} with {model}"
        )
        response = await self._client.generate_structured(
            model,
            messages,
            PlannerResponse,
            schema_description=PLANNER_SCHEMA_DESCRIPTION,
            options=PLANNER_OPTIONS,
        )

        warnings = validate_plan(response, context)
        for warning in warnings:
            logger.warning(f"Planner output: {warning}")

        aligned = align_to_horizon(response.plan, context)
        guarded = apply_guards(aligned, context, self._constraints)

        return AbstractPlan(
            plan=guarded,
            notes=response.notes,
            strategy=PlannerStrategy.GENERATED,
            warnings=warnings,
        )

    def plan_deterministic(self, context: PlanningContext) -> AbstractPlan:
        """
        Build a plan from the weekday table without any external call.

        Train days alternate upper/push and lower/legs by day-index parity
        and are capped at the consecutive-day limit.
        """
        weekdays = training_weekdays(context.profile.frequency_per_week)
        events = events_by_date(context.events)
        cap = self._constraints.max_consecutive_training_days

        days: List[AbstractDay] = []
        consecutive = 0

        for i in range(context.horizon_days):
            current = context.today + timedelta(days=i)
            event = events.get(current)

            if event is not None:
                days.append(
                    AbstractDay(
                        date=current,
                        action=DayAction.EVENT,
                        tags=event_tags(event),
                        reason=event.label,
                    )
                )
                consecutive = 0
            elif current.isoweekday() in weekdays and consecutive < cap:
                tags = ["upper", "push"] if i % 2 == 0 else ["lower", "legs"]
                days.append(
                    AbstractDay(
                        date=current,
                        action=DayAction.TRAIN,
                        tags=tags,
                        reason="Scheduled training",
                    )
                )
                consecutive += 1
            elif consecutive >= cap:
                days.append(
                    AbstractDay(
                        date=current,
                        action=DayAction.RECOVERY,
                        tags=["mobility"],
                        reason="Recovery after consecutive training",
                    )
                )
                consecutive = 0
            else:
                days.append(
                    AbstractDay(date=current, action=DayAction.REST, reason="Scheduled rest")
                )
                consecutive = 0

        guarded = apply_guards(days, context, self._constraints)
        logger.info(
            f"Deterministic plan: {sum(d.action == DayAction.TRAIN for d in guarded)} "
            f"train days over {len(guarded)}"
        )

        return AbstractPlan(
            plan=guarded,
            notes=DETERMINISTIC_NOTES,
            strategy=PlannerStrategy.DETERMINISTIC,
        )
