"""
Providers package - Valuation source implementations.
"""

from valuation_sources.providers.coingecko import CoinGeckoValuationSource
from valuation_sources.providers.polygon import PolygonValuationSource


__all__ = [
    "CoinGeckoValuationSource",
    "PolygonValuationSource",
]
