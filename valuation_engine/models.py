"""
Valuation Engine - Models.

Valuations and ratio results are immutable once produced.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_DOWN, Decimal
from enum import Enum
from typing import Any, Optional, Union

from core.assets import AssetIdentifier


class UndefinedRatio(Enum):
    """Marker for a comparison whose denominator (or numerator) is zero."""
    UNDEFINED = "undefined"

    def __str__(self) -> str:
        return self.value


UNDEFINED = UndefinedRatio.UNDEFINED

Ratio = Union[Decimal, UndefinedRatio]


@dataclass(frozen=True)
class Valuation:
    """USD market capitalization of one asset."""
    identifier: AssetIdentifier
    usd_market_cap: Decimal
    as_of: datetime
    stale: bool = False
    no_data: bool = False

    def __post_init__(self) -> None:
        if self.usd_market_cap < 0:
            raise ValueError(f"usd_market_cap must be non-negative, got {self.usd_market_cap}")

    @property
    def label(self) -> str:
        return str(self.identifier)

    def to_dict(self) -> dict[str, Any]:
        return {
            "asset": self.label,
            "kind": self.identifier.kind.value,
            "usd_market_cap": str(self.usd_market_cap),
            "as_of": self.as_of.isoformat(),
            "stale": self.stale,
            "no_data": self.no_data,
        }


@dataclass(frozen=True)
class RatioResult:
    """
    numerator / denominator, rounded for display.

    ``ordering_rank`` is the 1-based position of the numerator when all
    valuations are sorted by descending market cap.
    """
    numerator: Valuation
    denominator: Valuation
    ratio: Ratio
    ordering_rank: int

    @property
    def is_undefined(self) -> bool:
        return self.ratio is UNDEFINED

    @property
    def percentage(self) -> Optional[int]:
        """Smaller cap as a whole percentage of the larger (truncated)."""
        a = self.numerator.usd_market_cap
        b = self.denominator.usd_market_cap
        if a <= 0 or b <= 0:
            return None
        smaller, larger = min(a, b), max(a, b)
        return int((smaller / larger * 100).to_integral_value(rounding=ROUND_DOWN))

    @property
    def smaller(self) -> Valuation:
        if self.denominator.usd_market_cap <= self.numerator.usd_market_cap:
            return self.denominator
        return self.numerator

    @property
    def larger(self) -> Valuation:
        if self.denominator.usd_market_cap <= self.numerator.usd_market_cap:
            return self.numerator
        return self.denominator

    def to_dict(self) -> dict[str, Any]:
        return {
            "numerator": self.numerator.to_dict(),
            "denominator": self.denominator.to_dict(),
            "ratio": str(self.ratio),
            "ordering_rank": self.ordering_rank,
        }
