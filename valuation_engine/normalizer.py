"""
Valuation Engine - Unit Normalizer.

============================================================
RESPONSIBILITY
============================================================
Turns a provider quote into a USD market capitalization.

- Equity: price per share x shares outstanding
- Crypto: price per coin x circulating supply
- Gold: price per troy ounce x tonnes x OUNCES_PER_TONNE,
  tonnes taken from the Gold Estimate Store
- Flags quotes older than the freshness threshold as stale
- A zero quantity yields a zero valuation flagged no_data

============================================================
"""

from datetime import timedelta
from decimal import Decimal
from typing import Optional

from core.assets import AssetIdentifier, AssetKind
from core.clock import ClockProtocol, get_clock
from core.constants import FRESHNESS_THRESHOLD, OUNCES_PER_TONNE
from core.exceptions import QuoteContractViolation
from valuation_engine.gold import GoldEstimateStore
from valuation_engine.models import Valuation
from valuation_sources.models import EXPECTED_QUANTITY_KIND, RawQuote


class UnitNormalizer:
    """Converts (price, quantity) quotes into comparable USD valuations."""

    def __init__(
        self,
        gold_store: GoldEstimateStore,
        clock: Optional[ClockProtocol] = None,
        freshness_threshold: timedelta = FRESHNESS_THRESHOLD,
    ) -> None:
        self._gold_store = gold_store
        self._clock = clock or get_clock()
        self._freshness_threshold = freshness_threshold

    def normalize(self, identifier: AssetIdentifier, quote: RawQuote) -> Valuation:
        """
        Compute the USD valuation of ``identifier`` from ``quote``.

        Raises:
            QuoteContractViolation: If the quote's quantity kind does not
                belong to the identifier's asset kind
        """
        expected = EXPECTED_QUANTITY_KIND[identifier.kind]
        if quote.quantity_kind != expected:
            raise QuoteContractViolation(
                f"{identifier.kind.value} quote for {identifier} carries "
                f"{quote.quantity_kind.value}, expected {expected.value}"
            )

        if identifier.kind == AssetKind.GOLD:
            market_cap = self._gold_market_cap(quote)
            no_data = market_cap == 0
        elif identifier.kind in (AssetKind.EQUITY, AssetKind.CRYPTO):
            no_data = quote.quantity == 0
            market_cap = Decimal(0) if no_data else quote.unit_price * quote.quantity
        else:
            raise QuoteContractViolation(f"Unhandled asset kind: {identifier.kind}")

        return Valuation(
            identifier=identifier,
            usd_market_cap=market_cap,
            as_of=quote.as_of,
            stale=self.is_stale(quote),
            no_data=no_data,
        )

    @property
    def freshness_threshold(self) -> timedelta:
        return self._freshness_threshold

    def is_stale(self, quote: RawQuote) -> bool:
        return self._clock.age_of(quote.as_of) > self._freshness_threshold

    def _gold_market_cap(self, quote: RawQuote) -> Decimal:
        tonnes = self._gold_store.get().tonnes
        return quote.unit_price * tonnes * OUNCES_PER_TONNE
