# src/proofday/api_server/dependencies.py
"""FastAPI dependencies shared by the routers."""

import logging

from fastapi import HTTPException, Request

from ..lifecycle import GoalLifecycleController

logger = logging.getLogger(__name__)


def get_controller(request: Request) -> GoalLifecycleController:
    """
    Return the controller attached to app state.

    Raises:
        HTTPException: 503 when the service failed to initialize.
    """
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        logger.error("Lifecycle controller not found in app state")
        raise HTTPException(status_code=503, detail="proofday service is not available.")
    return controller
