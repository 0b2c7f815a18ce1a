"""Error Hierarchy — typed, categorized exceptions for all registry failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable and never leave partial state
    - Infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with TagRegistryError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    AUTHORIZATION = "authorization"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    account: str | None = None
    tag_index: int | None = None
    user_message: str | None = None


class TagRegistryError(Exception):
    """Base exception for all registry errors."""

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
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "account": self.context.account,
                    "tag_index": self.context.tag_index,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class InsufficientFundsError(TagRegistryError):
    """Ledger could not reserve the requested amount."""
    def __init__(
        self, account: str, amount: int, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.account = account
        super().__init__(
            f"Account '{account}' cannot reserve {amount}: insufficient free balance",
            "INSUFFICIENT_FUNDS", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.account = account
        self.amount = amount


class StorageOverflowError(TagRegistryError):
    """Tag index counter cannot be advanced any further."""
    def __init__(self, current: int, context: ErrorContext | None = None):
        super().__init__(
            f"Tag index counter exhausted at {current}",
            "STORAGE_OVERFLOW", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.current = current


class InvalidTagError(TagRegistryError):
    """No live tag occupies the given index."""
    def __init__(self, tag_index: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.tag_index = tag_index
        super().__init__(
            f"Tag {tag_index} does not exist",
            "INVALID_TAG", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )
        self.tag_index = tag_index


class NotAllowedError(TagRegistryError):
    """Caller is not the owner of the tag it tried to modify."""
    def __init__(
        self, tag_index: int, caller: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.tag_index = tag_index
        ctx.account = caller
        super().__init__(
            f"Account '{caller}' does not own tag {tag_index}",
            "NOT_ALLOWED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.ERROR, ctx, 403,
        )
        self.tag_index = tag_index
        self.caller = caller


class BalanceOverflowError(TagRegistryError):
    """Free plus reserved balance would exceed what the ledger can hold."""
    def __init__(
        self, account: str, free: int, reserved: int,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.account = account
        super().__init__(
            f"Account '{account}' cannot hold free={free} with reserved={reserved}",
            "BALANCE_OVERFLOW", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.account = account
        self.free = free
        self.reserved = reserved


class TagNameTooLongError(TagRegistryError):
    """Tag name exceeds the configured byte limit."""
    def __init__(self, length: int, limit: int, context: ErrorContext | None = None):
        super().__init__(
            f"Tag name is {length} bytes, limit is {limit}",
            "TAG_NAME_TOO_LONG", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.length = length
        self.limit = limit


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(TagRegistryError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
