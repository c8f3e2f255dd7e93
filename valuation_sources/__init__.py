"""
Valuation Sources Package - Quote gateway over external providers.

Features:
- Isolated, replaceable providers (Polygon.io, CoinGecko)
- Normalized RawQuote output across all providers
- Retry with exponential backoff, Retry-After honored
- Per-run cache with in-flight deduplication
- One public error taxonomy (GatewayError)

Quick Start:
    from core import AssetIdentifier, GatewayConfig
    from valuation_sources import ValuationGateway

    async def main():
        async with ValuationGateway(GatewayConfig.from_env()) as gateway:
            quote = await gateway.fetch(AssetIdentifier.crypto("bitcoin"))
            print(quote.unit_price, quote.quantity)

Adding New Providers:
    1. Create class extending BaseValuationSource
    2. Implement: fetch_raw(), normalize(), metadata()
    3. Pass it to ValuationGateway(sources={...})
"""

from valuation_sources.base import BaseValuationSource
from valuation_sources.exceptions import (
    AssetNotFoundError,
    AuthMissingError,
    FetchError,
    GatewayError,
    RateLimitedError,
    RateLimitError,
    SourceUnavailableError,
)
from valuation_sources.gateway import ValuationGateway
from valuation_sources.models import (
    EXPECTED_QUANTITY_KIND,
    QuantityKind,
    RawQuote,
    SourceMetadata,
)
from valuation_sources.providers import CoinGeckoValuationSource, PolygonValuationSource


__version__ = "1.0.0"

__all__ = [
    # Base
    "BaseValuationSource",

    # Models
    "EXPECTED_QUANTITY_KIND",
    "QuantityKind",
    "RawQuote",
    "SourceMetadata",

    # Exceptions
    "GatewayError",
    "AssetNotFoundError",
    "AuthMissingError",
    "RateLimitedError",
    "SourceUnavailableError",
    "FetchError",
    "RateLimitError",

    # Providers
    "CoinGeckoValuationSource",
    "PolygonValuationSource",

    # Gateway
    "ValuationGateway",
]
