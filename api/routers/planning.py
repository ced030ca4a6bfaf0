"""
Planning router.

This router exposes the planning pipeline over HTTP:
- Generate a compiled microcycle from a caller-assembled context
- Summarize a compiled plan
- Derive an adaptation strategy from recent session feedback

Nothing is persisted; callers store returned plans themselves.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_adaptation_planner, get_feedback_analyzer, get_orchestrator
from application.exceptions import PlanningError, PlanningTimeout
from core.constants import FEEDBACK_SESSION_WINDOW
from models.planning import CompiledPlan, PlanSummary
from models.requests import AdaptationRequest, AdaptationResponse, PlanRequest
from services.adaptation_planner import AdaptationPlanner
from services.feedback_analyzer import FeedbackAnalyzer
from services.orchestrator import PlanOrchestrator, summarize

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Planning"],
)


@router.post("/plans", response_model=CompiledPlan)
async def create_plan(
    request: PlanRequest,
    orchestrator: PlanOrchestrator = Depends(get_orchestrator),
):
    """
    Plan and compile a microcycle.

    1. **Strategy**: generated when a completion service is configured,
       deterministic otherwise.

    2. **Policy guards**: cadence limits, event tapering and recovery
       spacing are enforced on whatever the planner produced.

    3. **Compilation**: each training or recovery day gets concrete
       exercises; rest and event days stay empty.

    Raises:
        HTTPException 504: If the time budget is exceeded
        HTTPException 500: If planning fails
    """
    context = request.context
    logger.info(
        f"Plan request: today={context.today}, horizon={context.horizon_days}, "
        f"events={len(context.events)}"
    )

    try:
        return await orchestrator.plan(context, request.options)

    except PlanningTimeout as e:
        logger.error(f"Planning timed out: {e}")
        raise HTTPException(
            status_code=504,
            detail=f"Planning timed out: {str(e)}",
        )
    except PlanningError as e:
        logger.error(f"Planning failed: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Planning failed: {str(e)}",
        )
    except Exception as e:
        logger.exception(f"Unexpected error during planning: {e}")
        raise HTTPException(
            status_code=500,
            detail="An unexpected error occurred during planning",
        )


@router.post("/plans/summary", response_model=PlanSummary)
def summarize_plan(plan: CompiledPlan):
    """Summary statistics for a compiled plan."""
    return summarize(plan)


@router.post("/adaptations", response_model=AdaptationResponse)
async def create_adaptation(
    request: AdaptationRequest,
    analyzer: FeedbackAnalyzer = Depends(get_feedback_analyzer),
    planner: AdaptationPlanner = Depends(get_adaptation_planner),
):
    """
    Analyze recent session feedback and derive an adaptation strategy.

    Both stages fall back to deterministic heuristics, so this endpoint
    answers even without a completion service.
    """
    logger.info(f"Adaptation request: {len(request.sessions)} sessions")

    try:
        analysis = await analyzer.analyze(request.sessions)
        strategy = await planner.plan(
            analysis,
            request.profile,
            recent_workout_count=len(request.sessions[-FEEDBACK_SESSION_WINDOW:]),
            goals=request.goals,
            equipment=request.equipment,
        )
    except Exception as e:
        logger.exception(f"Unexpected error during adaptation: {e}")
        raise HTTPException(
            status_code=500,
            detail="An unexpected error occurred during adaptation",
        )

    return AdaptationResponse(analysis=analysis, strategy=strategy)
