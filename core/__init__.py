"""
Core Module Package.

Shared infrastructure every other package depends on.

Components:
- assets: AssetKind / AssetIdentifier
- clock: Testable time abstraction
- config: ApiKeys / GatewayConfig loaded from the environment
- constants: Conversion factors and policy constants
- exceptions: Error hierarchy
"""

from core.assets import AssetIdentifier, AssetKind
from core.clock import ClockProtocol, MockClock, SystemClock, get_clock, set_clock
from core.config import ApiKeys, GatewayConfig
from core.exceptions import (
    AlreadyConsumedError,
    EmptyTokenError,
    ErrorCategory,
    InsufficientInputError,
    InvalidSyntaxError,
    QuoteContractViolation,
    RatioGangError,
    ResolutionError,
    StoreError,
)


__all__ = [
    "AssetIdentifier",
    "AssetKind",
    "ClockProtocol",
    "MockClock",
    "SystemClock",
    "get_clock",
    "set_clock",
    "ApiKeys",
    "GatewayConfig",
    "AlreadyConsumedError",
    "EmptyTokenError",
    "ErrorCategory",
    "InsufficientInputError",
    "InvalidSyntaxError",
    "QuoteContractViolation",
    "RatioGangError",
    "ResolutionError",
    "StoreError",
]
