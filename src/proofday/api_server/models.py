# src/proofday/api_server/models.py
"""
Pydantic models for the proofday HTTP API.

Request bodies reject unknown fields. Responses are thin projections of the
controller's return values; whole goals are returned as the ``Goal`` model
itself.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import FeedEntry, Goal, Verdict

# --- Requests ---


class CreateGoalRequest(BaseModel):
    """Request model for creating a goal."""
    model_config = ConfigDict(extra="forbid")

    owner: str = Field(description="Username of the goal's owner.")
    title: str = Field(description="What the owner commits to doing.")
    scope: Optional[str] = Field(default=None, description="Optional free text narrowing the goal.")
    deadline: Optional[datetime] = Field(default=None, description="Advisory deadline; not enforced.")


class AddNoteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str = Field(description="Free text appended to the goal's notes.")


class SubmitAnswersRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    answers: List[Optional[str]] = Field(description="Exactly two answers, in question order.")


class AttestRequest(BaseModel):
    """Optional assertions about what is being attested; both must match the goal when given."""
    model_config = ConfigDict(extra="forbid")

    result: Optional[Verdict] = None
    disputed: Optional[bool] = None


class VerifyDisputeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    post_url: str = Field(description="URL of the dispute post (https://x.com/<user>/status/<id>).")


class RegisterUserRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: str


# --- Responses ---


class QuestionsResponse(BaseModel):
    goal_id: str
    questions: List[str]


class AttestationResponse(BaseModel):
    attestation_id: str
    tx_ref: str
    mocked: bool


class GradeResponse(BaseModel):
    """Result of submitting answers. ``pass`` is the overall verdict."""
    model_config = ConfigDict(populate_by_name=True)

    passed: bool = Field(alias="pass")
    status: str
    verdicts: List[Verdict]
    transcript: str
    judge_fallback: bool = False
    attestation: Optional[AttestationResponse] = None


class DisputeChallengeResponse(BaseModel):
    goal_id: str
    marker: str
    intent_url: str
    profile_url: str
    strategy: str


class DisputeVerificationResponse(BaseModel):
    verified: bool
    result: Verdict
    attestation_id: str
    tx_ref: str
    mocked: bool
    details: Dict[str, Any] = Field(default_factory=dict)


class GoalListResponse(BaseModel):
    goals: List[Goal]


class FeedResponse(BaseModel):
    items: List[FeedEntry]


class UsersResponse(BaseModel):
    users: List[str]


class PublicHistoryResponse(BaseModel):
    username: str
    goals: List[FeedEntry]


class ErrorResponse(BaseModel):
    """Body of every mapped error response."""
    detail: str
    error_type: str
    collaborator: Optional[str] = None
