# src/proofday/api_server/routes/diagnostics.py
"""Diagnostics endpoints."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...lifecycle import GoalLifecycleController
from ..dependencies import get_controller

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/diagnostics/judge")
async def diagnose_judge(controller: GoalLifecycleController = Depends(get_controller)) -> Dict[str, Any]:
    """
    Probe the judge.

    Reports whether mocks are in use and, for a real model, the outcome of
    a minimal request including the error name and status on failure.
    """
    info = await controller.diagnose_judge()
    if not info.get("ok", False):
        logger.warning("Judge diagnostics reported a failure: %s", info.get("error_message"))
    return info
