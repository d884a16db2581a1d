"""Error Handlers — every failure leaves the API in one envelope.

Invariants:
    - Body is always {"error": {code, message, category, severity, timestamp, ...}}
    - Domain errors keep their own status; 5xx are logged at ERROR, the rest at INFO
    - A retry hint on the error context becomes a Retry-After header (whole seconds)
    - Body validation failures are 400 VALIDATION_ERROR with per-field details
    - Unexpected exceptions are 500 INTERNAL_ERROR and never echo the exception text

Design Decisions:
    - Unknown exceptions reuse the domain envelope (_envelope) so clients parse
      a single shape; only EventDeskError.to_response adds the context block
"""

import logging
import math
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from eventdesk.core.errors import ErrorCategory, ErrorSeverity, EventDeskError

logger = logging.getLogger(__name__)


def _envelope(code: str, message: str, category: ErrorCategory,
              severity: ErrorSeverity, **extra) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "category": category.value,
            "severity": severity.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **extra,
        },
    }


def _field_errors(exc: RequestValidationError) -> list[dict]:
    # loc starts with "body"/"query"/"path"; keep it so clients know the source
    return [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]


async def handle_domain_error(request: Request, exc: EventDeskError) -> JSONResponse:
    level = logging.ERROR if exc.http_status >= 500 else logging.INFO
    logger.log(
        level,
        f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "event_id": exc.context.event_id,
            "workspace_id": exc.context.workspace_id,
        },
    )
    headers = {}
    if exc.context.retry_after_ms:
        headers["Retry-After"] = str(max(1, math.ceil(exc.context.retry_after_ms / 1000)))
    return JSONResponse(
        status_code=exc.http_status, content=exc.to_response(), headers=headers or None,
    )


async def handle_request_validation(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = _field_errors(exc)
    logger.info(
        f"Rejected {request.method} {request.url.path}: "
        f"{', '.join(d['field'] for d in details)}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_envelope(
            "VALIDATION_ERROR", "Invalid request data",
            ErrorCategory.VALIDATION, ErrorSeverity.ERROR, details=details,
        ),
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope(
            "INTERNAL_ERROR", "An unexpected error occurred",
            ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EventDeskError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)
