# src/proofday/api_server/routes/users.py
"""Known users and per-user public history."""

from fastapi import APIRouter, Depends

from ...lifecycle import GoalLifecycleController
from ..dependencies import get_controller
from ..models import PublicHistoryResponse, RegisterUserRequest, UsersResponse

router = APIRouter()


@router.get("/users", response_model=UsersResponse)
async def list_users(controller: GoalLifecycleController = Depends(get_controller)) -> UsersResponse:
    return UsersResponse(users=await controller.list_known_users())


@router.post("/users", response_model=UsersResponse)
async def register_user(
    body: RegisterUserRequest,
    controller: GoalLifecycleController = Depends(get_controller),
) -> UsersResponse:
    """Add a username to the discovery list."""
    return UsersResponse(users=await controller.register_user(body.username))


@router.get("/users/{username}/goals", response_model=PublicHistoryResponse)
async def public_history(
    username: str,
    controller: GoalLifecycleController = Depends(get_controller),
) -> PublicHistoryResponse:
    """Public projection of a user's goals, attested or not."""
    return PublicHistoryResponse(username=username, goals=await controller.get_public_history(username))
