"""
Tests for the ratio engine.
"""

from decimal import ROUND_HALF_UP, Decimal

import pytest

from core.assets import AssetIdentifier
from core.exceptions import InsufficientInputError
from valuation_engine.models import UNDEFINED, Valuation
from valuation_engine.ratio import RatioEngine
from tests.conftest import NOW


def valuation(key: str, cap) -> Valuation:
    return Valuation(
        identifier=AssetIdentifier.crypto(key),
        usd_market_cap=Decimal(cap),
        as_of=NOW,
    )


@pytest.fixture
def engine():
    return RatioEngine()


# ============================================================
# COMPARE
# ============================================================

class TestCompare:
    """Tests for RatioEngine.compare()."""

    def test_two_assets(self, engine):
        results = engine.compare([valuation("a", 100), valuation("b", 50)])

        assert len(results) == 1
        result = results[0]
        assert result.ratio == Decimal("2.00")
        assert str(result.ratio) == "2.00"
        assert result.ordering_rank == 1
        assert result.numerator.label == "a"

    def test_larger_is_numerator_regardless_of_input_order(self, engine):
        results = engine.compare([valuation("small", 50), valuation("big", 100)])

        assert results[0].numerator.label == "big"
        assert results[0].ratio == Decimal("2.00")

    def test_zero_denominator_is_undefined(self, engine):
        results = engine.compare([valuation("a", 100), valuation("b", 0)])

        assert results[0].ratio is UNDEFINED
        assert results[0].is_undefined
        assert results[0].percentage is None

    def test_both_zero_is_undefined(self, engine):
        results = engine.compare([valuation("a", 0), valuation("b", 0)])

        assert results[0].is_undefined

    def test_single_valuation(self, engine):
        with pytest.raises(InsufficientInputError):
            engine.compare([valuation("a", 1)])

    def test_three_assets_yield_every_pair(self, engine):
        results = engine.compare([valuation("c", 10), valuation("a", 1000), valuation("b", 100)])

        pairs = [(r.numerator.label, r.denominator.label) for r in results]
        assert pairs == [("a", "b"), ("a", "c"), ("b", "c")]
        assert [r.ordering_rank for r in results] == [1, 1, 2]
        assert [r.ratio for r in results] == [Decimal("10.00"), Decimal("100.00"), Decimal("10.00")]

    def test_ties_keep_input_order(self, engine):
        ranked = engine.rank([valuation("first", 5), valuation("second", 5), valuation("top", 9)])

        assert [v.label for v in ranked] == ["top", "first", "second"]

    def test_explicit_pairs(self, engine):
        results = engine.compare([valuation("a", 50), valuation("b", 100)], pairs=[(0, 1)])

        assert results[0].numerator.label == "a"
        assert results[0].ratio == Decimal("0.50")
        assert results[0].ordering_rank == 2

    def test_pair_out_of_range(self, engine):
        with pytest.raises(ValueError):
            engine.compare([valuation("a", 1), valuation("b", 2)], pairs=[(0, 2)])


# ============================================================
# ROUNDING
# ============================================================

class TestRounding:
    """Tests for RatioEngine.ratio()."""

    def test_half_even(self, engine):
        assert engine.ratio(Decimal("1.125"), Decimal("1")) == Decimal("1.12")
        assert engine.ratio(Decimal("1.135"), Decimal("1")) == Decimal("1.14")

    def test_configurable_rounding(self):
        engine = RatioEngine(rounding=ROUND_HALF_UP)

        assert engine.ratio(Decimal("1.125"), Decimal("1")) == Decimal("1.13")

    def test_small_ratio_keeps_significant_digits(self, engine):
        ratio = engine.ratio(Decimal("1"), Decimal("30000"))

        assert ratio != 0
        assert ratio == Decimal("0.000033")

    def test_percentage_truncates(self, engine):
        result = engine.compare([valuation("a", 300), valuation("b", 199)])[0]

        assert result.percentage == 66

    def test_large_ratio_is_exact(self, engine):
        ratio = engine.ratio(Decimal("3387025599490"), Decimal("1"))

        assert ratio == Decimal("3387025599490.00")
