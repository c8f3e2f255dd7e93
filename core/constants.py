"""
Core Module - Constants.

============================================================
RESPONSIBILITY
============================================================
Single source of truth for valuation policy constants.

- Unit conversion factors
- Published reference quantities
- Staleness and display precision policy
- Provider endpoints and credential variable names

============================================================
"""

from datetime import timedelta
from decimal import Decimal


# ============================================================
# UNIT CONVERSION
# ============================================================

OUNCES_PER_TONNE = Decimal("32150.7")
"""Troy ounces in one metric tonne."""


# ============================================================
# GOLD REFERENCE
# ============================================================

DEFAULT_GOLD_TONNES = Decimal("212585")
"""Above-ground gold stock in tonnes, as published 2024-02-01."""

GOLD_FOREX_TICKER = "XAUUSD"
"""Spot gold priced in USD per troy ounce."""


# ============================================================
# VALUATION POLICY
# ============================================================

FRESHNESS_THRESHOLD = timedelta(hours=24)
"""Quotes older than this are flagged stale (not rejected)."""

RATIO_DECIMAL_PLACES = 2
"""Display precision for ratios."""

RATIO_SIGNIFICANT_DIGITS = 2
"""Digits kept when a positive ratio would otherwise round to zero."""


# ============================================================
# PROVIDERS
# ============================================================

POLYGON_BASE_URL = "https://api.polygon.io"
COINGECKO_BASE_URL = "https://api.coingecko.com"

POLYGON_KEY_ENV = "POLYGON_KEY"
COINGECKO_KEY_ENV = "COINGECKO_KEY"

MAX_FETCH_ATTEMPTS = 3
RETRY_BACKOFF_BASE = 2.0
REQUEST_TIMEOUT_SECONDS = 30.0
