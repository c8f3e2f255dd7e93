"""
Core Module - Configuration.

============================================================
RESPONSIBILITY
============================================================
Loads process configuration once at startup.

- Provider API keys from environment (optionally a .env file)
- Gateway transport settings
- Configuration objects are passed explicitly into constructors;
  nothing below the CLI reads the environment

============================================================
ENVIRONMENT
============================================================
POLYGON_KEY              Polygon.io API key (equities, gold)
COINGECKO_KEY            CoinGecko API key (crypto)
RATIO_GANG_TIMEOUT       Request timeout in seconds (default: 30)
RATIO_GANG_MAX_ATTEMPTS  Fetch attempts per asset (default: 3)
LOG_LEVEL                Logging level for the CLI (default: WARNING)

============================================================
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from core.constants import (
    COINGECKO_BASE_URL,
    COINGECKO_KEY_ENV,
    MAX_FETCH_ATTEMPTS,
    POLYGON_BASE_URL,
    POLYGON_KEY_ENV,
    REQUEST_TIMEOUT_SECONDS,
    RETRY_BACKOFF_BASE,
)


@dataclass(frozen=True)
class ApiKeys:
    """Provider credentials. Empty string means "not configured"."""

    polygon: str = ""
    coingecko: str = ""

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "ApiKeys":
        """Read keys from the environment; absent keys are left empty."""
        if dotenv:
            load_dotenv()
        return cls(
            polygon=os.getenv(POLYGON_KEY_ENV, "").strip(),
            coingecko=os.getenv(COINGECKO_KEY_ENV, "").strip(),
        )

    def __repr__(self) -> str:
        # Never render secrets.
        return (
            f"ApiKeys(polygon={'set' if self.polygon else 'unset'}, "
            f"coingecko={'set' if self.coingecko else 'unset'})"
        )


@dataclass(frozen=True)
class GatewayConfig:
    """Configuration for the valuation source gateway."""

    api_keys: ApiKeys = field(default_factory=ApiKeys)

    timeout_seconds: float = REQUEST_TIMEOUT_SECONDS
    """Total timeout per HTTP request."""

    max_attempts: int = MAX_FETCH_ATTEMPTS
    """Attempts per asset, including the first."""

    backoff_base: float = RETRY_BACKOFF_BASE
    """Exponential backoff base; waits are base ** attempt seconds."""

    polygon_base_url: str = POLYGON_BASE_URL
    coingecko_base_url: str = COINGECKO_BASE_URL

    @classmethod
    def from_env(cls, api_keys: Optional[ApiKeys] = None) -> "GatewayConfig":
        """Load configuration from environment variables."""
        return cls(
            api_keys=api_keys or ApiKeys.from_env(),
            timeout_seconds=float(os.getenv("RATIO_GANG_TIMEOUT", str(REQUEST_TIMEOUT_SECONDS))),
            max_attempts=int(os.getenv("RATIO_GANG_MAX_ATTEMPTS", str(MAX_FETCH_ATTEMPTS))),
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.timeout_seconds <= 0:
            errors.append("timeout_seconds must be positive")

        if self.max_attempts < 1:
            errors.append("max_attempts must be at least 1")

        if self.backoff_base < 1:
            errors.append("backoff_base must be at least 1")

        return errors
