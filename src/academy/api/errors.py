"""
Exception handlers - Map domain errors to JSON error responses.

Every error body has the shape {error, details?, code?, expired?}.
Internal details reach the client only in development mode; the full
error is always logged.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from academy.api.cors import cors_headers
from academy.config.settings import Settings
from academy.domain.exceptions import (
    GENERIC_FAILURE_MESSAGE,
    DomainError,
    TransportError,
    ValidationFailed,
    VerificationFailed,
)

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    body: dict[str, Any] = {"error": message}
    body.update({key: value for key, value in extra.items() if value is not None})
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Install the error mapping on `app`."""

    @app.exception_handler(ValidationFailed)
    async def validation_failed(request: Request, exc: ValidationFailed) -> JSONResponse:
        return error_response(
            status.HTTP_400_BAD_REQUEST, exc.message, details=exc.field_errors
        )

    @app.exception_handler(VerificationFailed)
    async def verification_failed(request: Request, exc: VerificationFailed) -> JSONResponse:
        return error_response(
            status.HTTP_400_BAD_REQUEST, exc.message, code=exc.code, expired=exc.expired
        )

    @app.exception_handler(DomainError)
    async def domain_error(request: Request, exc: DomainError) -> JSONResponse:
        return error_response(status.HTTP_400_BAD_REQUEST, exc.message, code=exc.code)

    @app.exception_handler(TransportError)
    async def transport_error(request: Request, exc: TransportError) -> JSONResponse:
        logger.error("%s %s failed: %r", request.method, request.url.path, exc)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        response = error_response(exc.status_code, str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        details = str(exc) if settings.is_development else None
        response = error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_FAILURE_MESSAGE, details=details
        )
        # Runs outside the middleware stack
        response.headers.update(
            cors_headers(settings.cors_allow_origins, request.headers.get("origin"))
        )
        return response
