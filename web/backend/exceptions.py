#!/usr/bin/env python3
"""
Error handlers for the web application.

Service exceptions live in core/exceptions.py; this module maps them onto
HTTP status codes with one JSON error shape.
"""

import logging
from typing import Any, Dict

from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.exceptions import (
    AuthenticationRequiredException,
    ConflictException,
    NotFoundException,
    ServiceException,
    ValidationException,
)

logger = logging.getLogger(__name__)


def status_code_for(exc: ServiceException) -> int:
    # Order matters: ConflictException and AuthenticationRequiredException
    # are ValidationException subclasses.
    if isinstance(exc, NotFoundException):
        return 404
    if isinstance(exc, AuthenticationRequiredException):
        return 401
    if isinstance(exc, ConflictException):
        return 409
    if isinstance(exc, ValidationException):
        return 400
    return 500


def _error_body(message: Any, error_type: str) -> Dict[str, Any]:
    return {
        "success": False,
        "error": message,
        "type": error_type
    }


async def service_exception_handler(
    request: Request,
    exc: ServiceException
) -> JSONResponse:
    """
    Handle service layer exceptions.

    Args:
        request: The FastAPI request.
        exc: The service exception.

    Returns:
        JSONResponse with error details.
    """
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"Service error in {request.url.path}: {exc}", exc_info=True)
    else:
        logger.info(f"{exc.__class__.__name__} in {request.url.path}: {exc}")

    body = _error_body(str(exc), exc.__class__.__name__)
    errors = getattr(exc, 'errors', None)
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body)


async def http_exception_handler(
    request: Request,
    exc: HTTPException
) -> JSONResponse:
    """Handle FastAPI HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.detail, "HTTPException")
    )


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies get the same shape as domain validation errors."""
    messages = [
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    body = _error_body("; ".join(messages), "RequestValidationError")
    body["errors"] = messages
    return JSONResponse(status_code=400, content=body)


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Args:
        request: The FastAPI request.
        exc: The exception.

    Returns:
        JSONResponse with error details.
    """
    logger.exception(f"Unexpected error in {request.url.path}")

    return JSONResponse(
        status_code=500,
        content=_error_body("Internal server error", "InternalError")
    )
