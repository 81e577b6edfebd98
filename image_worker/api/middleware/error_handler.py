import traceback
import uuid
from typing import Any, Dict, Optional, Tuple

import structlog
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ...core.exceptions import INTERNAL_ERROR, INVALID_PARAMS, ImageWorkerError
from ...models.responses import ErrorResponse

logger = structlog.get_logger()

CORRELATION_HEADER = "X-Correlation-ID"


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or str(uuid.uuid4())


async def error_handler_middleware(request: Request, call_next):
    """Bind a correlation id for the request and echo it in the response."""
    correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
    request.state.correlation_id = correlation_id

    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
    try:
        response = await call_next(request)
    except Exception as exc:
        return await handle_exception(exc, correlation_id)
    finally:
        structlog.contextvars.unbind_contextvars("correlation_id")

    response.headers[CORRELATION_HEADER] = correlation_id
    return response


def _classify(
    exc: Exception, log
) -> Tuple[int, str, Optional[Dict[str, Any]], int]:
    """Return (error_code, message, details, http_status) for an exception."""
    if isinstance(exc, ImageWorkerError):
        log.warning(
            "Request rejected",
            error_code=exc.error_code,
            error_type=type(exc).__name__,
            message=exc.message,
        )
        return exc.error_code, exc.message, dict(exc.details) or None, exc.status_code

    if isinstance(exc, RequestValidationError):
        errors = exc.errors()
        log.warning("Request body invalid", error_count=len(errors))
        return (
            INVALID_PARAMS,
            "Request validation failed",
            {"validation_errors": jsonable_encoder(errors)},
            status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    log.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        traceback=traceback.format_exc(),
    )
    return (
        INTERNAL_ERROR,
        "An unexpected error occurred",
        None,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def handle_exception(exc: Exception, correlation_id: str) -> JSONResponse:
    """Render any exception as an ErrorResponse carrying the correlation id."""
    error_code, message, details, status_code = _classify(
        exc, logger.bind(correlation_id=correlation_id)
    )
    body = ErrorResponse(
        error_code=error_code,
        message=message,
        correlation_id=correlation_id,
        details=details,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers={CORRELATION_HEADER: correlation_id},
    )


def setup_exception_handlers(app) -> None:
    """Route domain, validation and unexpected errors through handle_exception."""

    async def _handler(request: Request, exc: Exception) -> JSONResponse:
        return await handle_exception(exc, _correlation_id(request))

    for exc_class in (ImageWorkerError, RequestValidationError, Exception):
        app.add_exception_handler(exc_class, _handler)
