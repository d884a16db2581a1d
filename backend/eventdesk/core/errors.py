"""Error Hierarchy — typed, categorized exceptions for all EventDesk failure modes.

Invariants:
    - Each error names a stable machine code plus a category and severity
    - Domain errors (4xx) are recoverable; infrastructure errors (5xx) are critical
    - to_response() produces the REST error envelope used by every handler
    - Messages are safe to show an organizer; ids travel in the context block

Design Decisions:
    - Single hierarchy with EventDeskError base: one global handler catches all
    - ErrorContext as dataclass: carries ids for logs without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """How loudly a failure is logged and surfaced."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Which layer rejected the request."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"
    RATE_LIMIT = "rate_limit"


@dataclass
class ErrorContext:
    """Identifiers attached to an error for observability."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: str | None = None
    workspace_id: str | None = None
    user_id: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class EventDeskError(Exception):
    """Base exception for all EventDesk errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Envelope returned to API clients."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "event_id": self.context.event_id,
                    "workspace_id": self.context.workspace_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationFailedError(EventDeskError):
    """Request passed schema validation but violates a field rule."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class BusinessRuleError(EventDeskError):
    """Operation not allowed in the current state."""
    def __init__(self, message: str, code: str, context: ErrorContext | None = None):
        super().__init__(
            message, code, ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 422,
        )


class AuthenticationRequiredError(EventDeskError):
    """Caller identity missing or unknown."""
    def __init__(self, message: str = "User authentication required"):
        super().__init__(
            message, "UNAUTHORIZED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, None, 401,
        )


class PermissionDeniedError(EventDeskError):
    """Caller lacks the membership or permission for the resource."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "ACCESS_DENIED", ErrorCategory.PERMISSION,
            ErrorSeverity.WARNING, context, 403,
        )


class ResourceNotFoundError(EventDeskError):
    """Lookup by id found nothing (or nothing the caller may see)."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type


class ConflictError(EventDeskError):
    """Resource already exists or state changed underneath the caller."""
    def __init__(self, message: str, code: str = "CONFLICT", context: ErrorContext | None = None):
        super().__init__(
            message, code, ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class SoldOutError(ConflictError):
    """Conditional inventory increment matched no rows."""
    def __init__(self, tier_name: str, context: ErrorContext | None = None):
        super().__init__(
            f"Sorry, '{tier_name}' tickets just sold out. Please select a different tier.",
            "SOLD_OUT", context,
        )


class RateLimitedError(EventDeskError):
    """Too many requests in the current window."""
    def __init__(self, retry_after_ms: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            "Too many requests. Please wait a minute and try again.",
            "RATE_LIMITED", ErrorCategory.RATE_LIMIT,
            ErrorSeverity.WARNING, ctx, 429,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(EventDeskError):
    """Driver or constraint failure not mapped to a domain rule."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class AnthropicAPIError(EventDeskError):
    """Certificate design call to the model provider failed."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Anthropic API error ({api_error_type}): {message}",
            "ANTHROPIC_API_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.api_error_type = api_error_type


class DesignGenerationError(EventDeskError):
    """Model answered but the answer is not a usable canvas."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "DESIGN_GENERATION_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 502,
        )
