"""
Valuation Engine Package.

Normalizes quotes into USD market caps and compares them.

Components:
- identifiers: resolve() user tokens into AssetIdentifiers
- gold: GoldEstimateStore (one-shot override, frozen on first read)
- normalizer: UnitNormalizer (RawQuote -> Valuation)
- ratio: RatioEngine (Valuations -> RatioResults)
- comparison: ComparisonService (end-to-end, all or nothing)
"""

from valuation_engine.comparison import ComparisonReport, ComparisonService
from valuation_engine.gold import EstimateSource, GoldEstimate, GoldEstimateStore
from valuation_engine.identifiers import resolve, resolve_all
from valuation_engine.models import UNDEFINED, RatioResult, UndefinedRatio, Valuation
from valuation_engine.normalizer import UnitNormalizer
from valuation_engine.ratio import RatioEngine


__all__ = [
    "ComparisonReport",
    "ComparisonService",
    "EstimateSource",
    "GoldEstimate",
    "GoldEstimateStore",
    "resolve",
    "resolve_all",
    "UNDEFINED",
    "RatioResult",
    "UndefinedRatio",
    "Valuation",
    "UnitNormalizer",
    "RatioEngine",
]
