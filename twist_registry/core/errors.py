"""Error Hierarchy — typed, categorized exceptions for all registry and ledger failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (4xx) are raised before any mutation; infrastructure errors (5xx) are critical
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with TwistError base: the FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to the logging framework
    - The core only classifies; the HTTP shell decides presentation via http_status
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
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
    AUTHORIZATION = "authorization"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    caller: str | None = None
    node_id: str | None = None
    beneficiary: str | None = None
    debug_info: dict[str, Any] | None = None


class TwistError(Exception):
    """Base exception for all registry and ledger errors."""

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
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "caller": self.context.caller,
                    "node_id": self.context.node_id,
                    "beneficiary": self.context.beneficiary,
                },
            }
        }


# ─── Node Registry Errors ───────────────────────────────────────

class NodeNotFoundError(TwistError):
    """Operation referenced an unknown node identifier."""
    def __init__(self, node_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext(node_id=node_id)
        super().__init__(
            f"Node '{node_id}' not found",
            "NODE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )
        self.node_id = node_id


class UnauthorizedError(TwistError):
    """Caller lacks ownership or the required capability."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "UNAUTHORIZED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


class DuplicateIdentifierError(TwistError):
    """Derived identifier collides with an existing node."""
    def __init__(self, node_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext(node_id=node_id)
        super().__init__(
            f"Node identifier '{node_id}' is already registered",
            "DUPLICATE_IDENTIFIER", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )
        self.node_id = node_id


class AlreadyInactiveError(TwistError):
    """Node has already been deregistered."""
    def __init__(self, node_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext(node_id=node_id)
        super().__init__(
            f"Node '{node_id}' is already inactive",
            "ALREADY_INACTIVE", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )
        self.node_id = node_id


class InvalidBlockNumberError(TwistError):
    """Reported block counter is negative."""
    def __init__(self, field: str, value: int, context: ErrorContext | None = None):
        super().__init__(
            f"{field} must be non-negative, got {value}",
            "INVALID_BLOCK_NUMBER", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


# ─── Vesting & Token Errors ─────────────────────────────────────

class InvalidBeneficiaryError(TwistError):
    """Grant or mint targets the null identity."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Beneficiary cannot be the null identity",
            "INVALID_BENEFICIARY", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class InvalidAmountError(TwistError):
    """Amount is zero or negative."""
    def __init__(self, amount: int, context: ErrorContext | None = None):
        super().__init__(
            f"Amount must be greater than 0, got {amount}",
            "INVALID_AMOUNT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.amount = amount


class ExceedsMaxSupplyError(TwistError):
    """Grant or mint would breach the global supply cap."""
    def __init__(
        self, requested: int, max_supply: int, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Exceeds max supply: requested {requested}, cap {max_supply}",
            "EXCEEDS_MAX_SUPPLY", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 422,
        )
        self.requested = requested
        self.max_supply = max_supply


class NothingToClaimError(TwistError):
    """Claim attempted with zero currently-releasable amount."""
    def __init__(self, beneficiary: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext(beneficiary=beneficiary)
        super().__init__(
            "No tokens to claim",
            "NOTHING_TO_CLAIM", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, ctx, 422,
        )
        self.beneficiary = beneficiary


class InsufficientBalanceError(TwistError):
    """Burn or transfer exceeds the caller's balance."""
    def __init__(
        self, balance: int, requested: int, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Insufficient balance: have {balance}, need {requested}",
            "INSUFFICIENT_BALANCE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 422,
        )
        self.balance = balance
        self.requested = requested


class LedgerPausedError(TwistError):
    """Transfer attempted while the token ledger is paused."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Token transfers are paused",
            "LEDGER_PAUSED", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(TwistError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
