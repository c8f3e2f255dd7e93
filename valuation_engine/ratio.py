"""
Valuation Engine - Ratio Engine.

============================================================
RESPONSIBILITY
============================================================
Orders valuations and computes display-ready ratios.

- Descending market cap, ties keep input order (stable sort)
- Every pair by default, larger asset as numerator
- Fixed decimal places, round-half-to-even by default
- Zero on either side yields UNDEFINED, never an arithmetic error

============================================================
"""

from decimal import ROUND_HALF_EVEN, Decimal, localcontext
from typing import List, Optional, Sequence, Tuple

from core.constants import RATIO_DECIMAL_PLACES, RATIO_SIGNIFICANT_DIGITS
from core.exceptions import InsufficientInputError
from valuation_engine.models import UNDEFINED, Ratio, RatioResult, Valuation


class RatioEngine:
    """Computes pairwise market-cap ratios."""

    MIN_VALUATIONS = 2

    def __init__(
        self,
        places: int = RATIO_DECIMAL_PLACES,
        rounding: str = ROUND_HALF_EVEN,
        significant_digits: int = RATIO_SIGNIFICANT_DIGITS,
    ) -> None:
        if places < 0:
            raise ValueError("places must be non-negative")
        if significant_digits < 1:
            raise ValueError("significant_digits must be at least 1")
        self._places = places
        self._rounding = rounding
        self._significant_digits = significant_digits

    def rank(self, valuations: Sequence[Valuation]) -> List[Valuation]:
        """Valuations by descending market cap; ties keep input order."""
        return sorted(valuations, key=lambda v: v.usd_market_cap, reverse=True)

    def compare(
        self,
        valuations: Sequence[Valuation],
        pairs: Optional[Sequence[Tuple[int, int]]] = None,
    ) -> List[RatioResult]:
        """
        Compare valuations.

        Args:
            valuations: At least two valuations, in user order
            pairs: Optional (numerator_index, denominator_index) pairs into
                ``valuations``; defaults to every pair in ranked order

        Raises:
            InsufficientInputError: With fewer than two valuations
            ValueError: If a requested pair index is out of range
        """
        valuations = list(valuations)
        count = len(valuations)
        if count < self.MIN_VALUATIONS:
            raise InsufficientInputError(count, self.MIN_VALUATIONS)

        order = sorted(range(count), key=lambda i: valuations[i].usd_market_cap, reverse=True)
        rank_of = {index: position + 1 for position, index in enumerate(order)}

        if pairs is None:
            index_pairs = [
                (order[a], order[b])
                for a in range(count)
                for b in range(a + 1, count)
            ]
        else:
            index_pairs = list(pairs)
            for numerator_index, denominator_index in index_pairs:
                if not (0 <= numerator_index < count and 0 <= denominator_index < count):
                    raise ValueError(
                        f"Pair ({numerator_index}, {denominator_index}) out of range "
                        f"for {count} valuations"
                    )

        results = []
        for numerator_index, denominator_index in index_pairs:
            numerator = valuations[numerator_index]
            denominator = valuations[denominator_index]
            results.append(
                RatioResult(
                    numerator=numerator,
                    denominator=denominator,
                    ratio=self.ratio(numerator.usd_market_cap, denominator.usd_market_cap),
                    ordering_rank=rank_of[numerator_index],
                )
            )
        return results

    def ratio(self, numerator: Decimal, denominator: Decimal) -> Ratio:
        """numerator / denominator rounded for display, or UNDEFINED."""
        if denominator == 0 or numerator == 0:
            return UNDEFINED

        with localcontext() as ctx:
            raw = numerator / denominator
            ctx.prec = max(ctx.prec, raw.adjusted() + self._places + 2)

            rounded = raw.quantize(Decimal(1).scaleb(-self._places), rounding=self._rounding)
            if rounded == 0:
                # Too small for the fixed places: keep significant digits instead.
                exponent = raw.adjusted() - (self._significant_digits - 1)
                rounded = raw.quantize(Decimal(1).scaleb(exponent), rounding=self._rounding)
            return rounded
