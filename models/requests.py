"""
Request/response models for the planning HTTP API.

These models define the API contract; the domain models they wrap live in
models.planning and models.adaptation.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from models.adaptation import AdaptationStrategy, FeedbackAnalysis, SessionFeedback
from models.planning import PlanningContext, PlanOptions, Profile


class PlanRequest(BaseModel):
    """Request body for generating a compiled plan."""

    context: PlanningContext
    options: PlanOptions = Field(default_factory=PlanOptions)


class AdaptationRequest(BaseModel):
    """Request body for deriving an adaptation strategy from feedback."""

    sessions: List[SessionFeedback] = Field(
        default_factory=list, description="Recent sessions, oldest first"
    )
    profile: Profile = Field(default_factory=Profile)
    goals: Optional[str] = Field(None, description="Overrides the profile goal")
    equipment: Optional[str] = Field(None, description="Overrides the profile equipment")


class AdaptationResponse(BaseModel):
    """Feedback analysis together with the strategy derived from it."""

    analysis: FeedbackAnalysis
    strategy: AdaptationStrategy
