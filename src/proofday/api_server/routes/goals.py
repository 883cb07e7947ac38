# src/proofday/api_server/routes/goals.py
"""
Goal lifecycle routes.

Each route is a thin adapter over :class:`GoalLifecycleController`;
proofday exceptions propagate to the handlers in ``api_server.errors``.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request

from ...lifecycle import GoalLifecycleController
from ...models import AttestationReceipt, Goal
from ..dependencies import get_controller
from ..models import (AddNoteRequest, AttestationResponse, AttestRequest,
                      CreateGoalRequest, DisputeChallengeResponse,
                      DisputeVerificationResponse, GoalListResponse,
                      GradeResponse, QuestionsResponse, SubmitAnswersRequest,
                      VerifyDisputeRequest)

logger = logging.getLogger(__name__)

router = APIRouter()


def _attestation(receipt: AttestationReceipt) -> AttestationResponse:
    return AttestationResponse(attestation_id=receipt.attestation_id, tx_ref=receipt.tx_ref, mocked=receipt.mocked)


@router.post("/goals", response_model=Goal, status_code=201)
async def create_goal(
    body: CreateGoalRequest,
    controller: GoalLifecycleController = Depends(get_controller),
) -> Goal:
    """Create a PENDING goal."""
    return await controller.create_goal(body.owner, body.title, scope=body.scope, deadline=body.deadline)


@router.get("/goals", response_model=GoalListResponse)
async def list_goals(
    owner: str = Query(description="Username whose goals to list"),
    controller: GoalLifecycleController = Depends(get_controller),
) -> GoalListResponse:
    return GoalListResponse(goals=await controller.list_goals(owner))


@router.get("/goals/{goal_id}", response_model=Goal)
async def get_goal(goal_id: str, controller: GoalLifecycleController = Depends(get_controller)) -> Goal:
    return await controller.get_goal(goal_id)


@router.patch("/goals/{goal_id}/notes", response_model=Goal)
async def add_note(
    goal_id: str,
    body: AddNoteRequest,
    controller: GoalLifecycleController = Depends(get_controller),
) -> Goal:
    """Append free text to the goal's notes."""
    return await controller.add_note(goal_id, body.text)


@router.post("/goals/{goal_id}/questions", response_model=QuestionsResponse)
async def request_questions(
    goal_id: str,
    controller: GoalLifecycleController = Depends(get_controller),
) -> QuestionsResponse:
    """Ask the judge for the goal's two verification questions."""
    questions = await controller.request_questions(goal_id)
    return QuestionsResponse(goal_id=goal_id, questions=questions.as_list())


@router.post("/goals/{goal_id}/answers", response_model=GradeResponse)
async def submit_answers(
    goal_id: str,
    body: SubmitAnswersRequest,
    controller: GoalLifecycleController = Depends(get_controller),
) -> GradeResponse:
    """Grade the two answers and record PASSED or FAILED."""
    outcome = await controller.submit_answers(goal_id, body.answers)
    return GradeResponse(
        passed=outcome.passed,
        status=outcome.goal.status.value,
        verdicts=outcome.verdicts,
        transcript=outcome.transcript,
        judge_fallback=outcome.judge_fallback,
        attestation=_attestation(outcome.receipt) if outcome.receipt else None,
    )


@router.post("/goals/{goal_id}/attest", response_model=AttestationResponse)
async def attest_goal(
    goal_id: str,
    body: AttestRequest = AttestRequest(),
    controller: GoalLifecycleController = Depends(get_controller),
) -> AttestationResponse:
    """Publish the goal's current result to the attestation ledger."""
    receipt = await controller.attest(goal_id, result=body.result, disputed=body.disputed)
    return _attestation(receipt)


@router.post("/goals/{goal_id}/dispute", response_model=DisputeChallengeResponse)
async def start_dispute(
    goal_id: str,
    request: Request,
    controller: GoalLifecycleController = Depends(get_controller),
) -> DisputeChallengeResponse:
    """Open a dispute on a FAILED goal. The profile link falls back to this server's base URL."""
    challenge = await controller.start_dispute(goal_id, base_url=str(request.base_url))
    return DisputeChallengeResponse(
        goal_id=challenge.goal_id,
        marker=challenge.marker,
        intent_url=challenge.intent_url,
        profile_url=challenge.profile_url,
        strategy=challenge.strategy,
    )


@router.post("/goals/{goal_id}/dispute/verify", response_model=DisputeVerificationResponse)
async def verify_dispute(
    goal_id: str,
    body: VerifyDisputeRequest,
    controller: GoalLifecycleController = Depends(get_controller),
) -> DisputeVerificationResponse:
    """Check the dispute post, resolve the dispute and attest the new result."""
    outcome = await controller.verify_dispute(goal_id, body.post_url)
    return DisputeVerificationResponse(
        verified=outcome.verified,
        result=outcome.result,
        attestation_id=outcome.receipt.attestation_id,
        tx_ref=outcome.receipt.tx_ref,
        mocked=outcome.receipt.mocked,
        details=outcome.details,
    )
