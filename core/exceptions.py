"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines the exception hierarchy shared by every package.

- Each error carries a category telling the caller how to surface it
- Each error carries context for debugging
- Serializable for logging

============================================================
EXCEPTION HIERARCHY
============================================================
RatioGangError (base)
├── ResolutionError
│   ├── EmptyTokenError
│   └── InvalidSyntaxError
├── GatewayError            (valuation_sources.exceptions)
│   ├── AssetNotFoundError
│   ├── RateLimitedError
│   ├── SourceUnavailableError
│   └── AuthMissingError
├── InsufficientInputError
└── StoreError
    └── AlreadyConsumedError

QuoteContractViolation (AssertionError) is a programming error,
outside the hierarchy on purpose.

============================================================
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


# ============================================================
# ERROR CATEGORY
# ============================================================

class ErrorCategory(Enum):
    """How a caller should present an error."""

    USER_INPUT = "user_input"
    """The user asked for something malformed or nonexistent."""

    CONFIGURATION = "configuration"
    """Process configuration (credentials) is missing or wrong."""

    OPERATIONAL = "operational"
    """Transient or infrastructure problem; retrying later may succeed."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class RatioGangError(Exception):
    """
    Base exception for all valuation and comparison errors.

    All exceptions carry:
    - category: for presentation decisions
    - context: for debugging
    - timestamp: when the error occurred
    """

    default_category: ErrorCategory = ErrorCategory.OPERATIONAL

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        category: Optional[ErrorCategory] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.context = context or {}
        self.category = category or self.default_category
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    @property
    def kind(self) -> str:
        """Short error kind name, e.g. ``AssetNotFoundError``."""
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging."""
        return {
            "type": self.kind,
            "message": self.message,
            "category": self.category.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================================
# RESOLUTION ERRORS
# ============================================================

class ResolutionError(RatioGangError):
    """A token could not be classified as an asset identifier."""

    default_category = ErrorCategory.USER_INPUT

    def __init__(self, message: str, token: str, **kwargs):
        context = kwargs.pop("context", {})
        context["token"] = token
        super().__init__(message, context=context, **kwargs)
        self.token = token


class EmptyTokenError(ResolutionError):
    """Blank asset token."""

    def __init__(self, token: str = ""):
        super().__init__("Asset token is empty", token=token)


class InvalidSyntaxError(ResolutionError):
    """Asset token contains disallowed characters."""

    def __init__(self, token: str, reason: str):
        super().__init__(
            f"Invalid asset token {token!r}: {reason}",
            token=token,
            context={"reason": reason},
        )
        self.reason = reason


# ============================================================
# RATIO ENGINE ERRORS
# ============================================================

class InsufficientInputError(RatioGangError):
    """Fewer than two valuations were supplied for comparison."""

    default_category = ErrorCategory.USER_INPUT

    def __init__(self, count: int, minimum: int = 2):
        super().__init__(
            f"At least {minimum} assets are required for a comparison, got {count}",
            context={"count": count, "minimum": minimum},
        )
        self.count = count


# ============================================================
# STORE ERRORS
# ============================================================

class StoreError(RatioGangError):
    """Base class for gold estimate store errors."""

    default_category = ErrorCategory.USER_INPUT


class AlreadyConsumedError(StoreError):
    """The gold estimate can no longer be overridden in this run."""

    def __init__(self, reason: str):
        super().__init__(
            f"Gold estimate can no longer be overridden: {reason}",
            context={"reason": reason},
        )


# ============================================================
# CONTRACT VIOLATIONS
# ============================================================

class QuoteContractViolation(AssertionError):
    """A quote's quantity kind does not match its asset kind."""
