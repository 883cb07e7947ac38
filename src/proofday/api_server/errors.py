# src/proofday/api_server/errors.py
"""
Exception handlers mapping proofday errors onto HTTP responses.

    NotFoundError   -> 404
    ValidationError -> 400
    StateError      -> 409
    UpstreamError   -> 502
    ProofDayError   -> 500

FastAPI's own request validation keeps its 422 response.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..exceptions import (NotFoundError, ProofDayError, StateError,
                          UpstreamError, ValidationError)
from .models import ErrorResponse

logger = logging.getLogger(__name__)

STATUS_CODES = (
    (NotFoundError, 404),
    (ValidationError, 400),
    (StateError, 409),
    (UpstreamError, 502),
)


def status_for(exc: ProofDayError) -> int:
    for exc_type, status_code in STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return 500


async def proofday_error_handler(request: Request, exc: ProofDayError) -> JSONResponse:
    status_code = status_for(exc)
    body = ErrorResponse(
        detail=str(exc),
        error_type=type(exc).__name__,
        collaborator=getattr(exc, "collaborator", None),
    )
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=status_code == 500)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, status_code, exc)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProofDayError, proofday_error_handler)
