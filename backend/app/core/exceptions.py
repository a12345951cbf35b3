"""Error taxonomy for the ledger API and the handlers that render it.

Services raise these; the handlers registered in ``main.py`` turn them into
``{"error": message}`` bodies. Field-level request validation failures are
rendered as ``{"errors": [...]}``.
"""

from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.app.core.config import settings

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(LedgerError):
    """Malformed input or a debit/credit imbalance."""

    status_code = status.HTTP_400_BAD_REQUEST


class StateError(LedgerError):
    """The record exists but its status forbids the operation."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(LedgerError):
    """Duplicate unique values, or a delete blocked by dependent rows."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str) -> None:
        super().__init__(f"{resource} not found")
        self.resource = resource


class AuthenticationError(LedgerError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(LedgerError):
    status_code = status.HTTP_403_FORBIDDEN


class RateLimitError(LedgerError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, message: str, retry_after: int) -> None:
        super().__init__(message)
        self.retry_after = retry_after


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(
        status_code=exc.status_code, content={"error": exc.message}, headers=headers
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"errors": errors}),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"error": "Internal server error"}
    if settings.is_development:
        content["message"] = str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content
    )
