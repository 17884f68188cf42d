"""Error Hierarchy — typed, categorized exceptions for all marketplace failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation, not-found and authorization errors are raised before any write
    - to_response() produces the REST envelope used by every error handler; the
      message is repeated at the top level for clients that read body.message
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with MarketplaceError base: one FastAPI handler catches all
    - Checkout precondition errors answer 500, the status clients of POST /checkout
      already branch on
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    item_id: str | None = None
    order_id: str | None = None
    debug_info: dict[str, Any] | None = None


class MarketplaceError(Exception):
    """Base exception for all marketplace errors."""

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
        """Convert to standardized REST error response."""
        return {
            "message": self.message,
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "user_id": self.context.user_id,
                    "item_id": self.context.item_id,
                    "order_id": self.context.order_id,
                },
            }
        }


# ─── Request Errors (400-level) ─────────────────────────────────

class ValidationError(MarketplaceError):
    """Input is well-formed JSON but violates a domain rule."""
    def __init__(self, message: str, field: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class EmailAlreadyRegisteredError(MarketplaceError):
    """Signup with an email that already has an account."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Email already registered", "EMAIL_ALREADY_REGISTERED",
            ErrorCategory.CONFLICT, ErrorSeverity.WARNING, context, 400,
        )


class UploadRejectedError(MarketplaceError):
    """Uploaded attachment is missing, too large or of a disallowed type."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "UPLOAD_REJECTED", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class AuthenticationError(MarketplaceError):
    """Missing, malformed or expired credentials."""
    def __init__(self, message: str = "Invalid or expired token", context: ErrorContext | None = None):
        super().__init__(
            message, "AUTHENTICATION_FAILED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class AuthorizationError(MarketplaceError):
    """Authenticated user is not allowed to perform the action."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "AUTHORIZATION_DENIED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


class ResourceNotFoundError(MarketplaceError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# ─── Checkout Preconditions ─────────────────────────────────────

class EmptyCartError(MarketplaceError):
    """Checkout attempted with no cart entries."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Cart is empty", "EMPTY_CART", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 500,
        )


class NoSellableItemsError(MarketplaceError):
    """Every cart entry is a barter listing or already sold."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "No items available for purchase in cart",
            "NO_SELLABLE_ITEMS", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 500,
        )


class ConcurrencyError(MarketplaceError):
    """Concurrent modification detected."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class IntegrityFault(MarketplaceError):
    """A row referenced by a stored foreign key is missing from a join."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INTEGRITY_FAULT", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )

    def to_response(self) -> dict:
        response = super().to_response()
        response["message"] = response["error"]["message"] = "An unexpected error occurred"
        return response


class DatabaseError(MarketplaceError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class ConfigurationError(MarketplaceError):
    """Server is missing configuration required for the request."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFIGURATION_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )


class ExternalIdentityError(MarketplaceError):
    """External identity provider rejected or could not verify a token."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "EXTERNAL_IDENTITY_REJECTED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 401,
        )
