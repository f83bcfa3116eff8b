"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain exceptions
to HTTP responses.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from promptly_edge.core.config import get_settings
from promptly_edge.domain.exceptions import (
    AuthenticationException,
    AuthorizationException,
    DatastoreError,
    PromptlyException,
    RateLimitExceededException,
    ResourceNotFoundException,
    ValidationException,
)

logger = logging.getLogger(__name__)

_EXCEPTION_STATUS: dict[type[PromptlyException], int] = {
    AuthenticationException: 401,
    AuthorizationException: 403,
    ResourceNotFoundException: 404,
    ValidationException: 400,
    RateLimitExceededException: 429,
    DatastoreError: 503,
}


def _status_for(exc: PromptlyException) -> int:
    for exc_type, status in _EXCEPTION_STATUS.items():
        if isinstance(exc, exc_type):
            return status
    return 400


def _promptly_exception_handler(request: Request, exc: PromptlyException) -> JSONResponse:
    """Return JSON from PromptlyException.to_dict() with the mapped status code."""
    status = _status_for(exc)
    headers: dict[str, str] = {}
    if isinstance(exc, RateLimitExceededException):
        headers = {
            "X-RateLimit-Limit": str(exc.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(exc.reset_epoch),
        }
    if isinstance(exc, DatastoreError):
        logger.error("Datastore failure: %s", exc.details)
        return JSONResponse(
            status_code=status,
            content={"error": exc.message, "code": exc.error_code},
        )
    return JSONResponse(status_code=status, content=exc.to_dict(), headers=headers)


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    detail: Any = str(exc) if get_settings().debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": detail, "code": "INTERNAL_ERROR"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to app."""
    app.add_exception_handler(PromptlyException, _promptly_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
