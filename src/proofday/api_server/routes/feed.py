# src/proofday/api_server/routes/feed.py
"""Public feed of attested goals."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...lifecycle import GoalLifecycleController
from ..dependencies import get_controller
from ..models import FeedResponse

router = APIRouter()


@router.get("/feed", response_model=FeedResponse)
async def get_feed(
    limit: Optional[int] = Query(default=None, ge=1, le=10000, description="Maximum number of entries"),
    controller: GoalLifecycleController = Depends(get_controller),
) -> FeedResponse:
    """Recently attested goals, newest first."""
    return FeedResponse(items=await controller.get_feed(limit))
