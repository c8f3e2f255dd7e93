"""
Valuation Engine - Comparison Service.

============================================================
RESPONSIBILITY
============================================================
Runs one comparison end to end.

1. Resolve every token (fails fast, before any network call)
2. Apply the gold override, if any
3. Fan out one fetch per asset, fan in before going further
4. Normalize in the user's order
5. Compute ratios

============================================================
FAILURE POLICY
============================================================
All or nothing. The first failed fetch cancels the fetches still
in flight and its error is raised; no partial report is produced.

============================================================
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from core.assets import AssetIdentifier, AssetKind
from core.clock import ClockProtocol
from core.constants import FRESHNESS_THRESHOLD
from core.exceptions import InsufficientInputError
from valuation_engine.gold import GoldEstimate, GoldEstimateStore
from valuation_engine.identifiers import resolve_all
from valuation_engine.models import RatioResult, Valuation
from valuation_engine.normalizer import UnitNormalizer
from valuation_engine.ratio import RatioEngine
from valuation_sources.gateway import ValuationGateway
from valuation_sources.models import RawQuote


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComparisonReport:
    """Outcome of one comparison."""
    valuations: List[Valuation]
    """In the order the user named the assets."""
    ranked: List[Valuation]
    results: List[RatioResult]
    gold_estimate: Optional[GoldEstimate] = None
    """Set when gold took part in the comparison."""
    freshness_threshold: timedelta = FRESHNESS_THRESHOLD
    """Age past which a valuation was flagged stale."""

    @property
    def has_stale(self) -> bool:
        return any(v.stale for v in self.valuations)


class ComparisonService:
    """Wires resolver, gateway, normalizer and ratio engine together."""

    def __init__(
        self,
        gateway: ValuationGateway,
        gold_store: GoldEstimateStore,
        normalizer: Optional[UnitNormalizer] = None,
        ratio_engine: Optional[RatioEngine] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._gateway = gateway
        self._gold_store = gold_store
        self._normalizer = normalizer or UnitNormalizer(gold_store, clock=clock)
        self._ratio_engine = ratio_engine or RatioEngine()

    async def compare(
        self,
        tokens: Sequence[str],
        gold_override: Optional[Decimal] = None,
        pairs: Optional[Sequence[Tuple[int, int]]] = None,
    ) -> ComparisonReport:
        """
        Compare the assets named by ``tokens``.

        Raises:
            ResolutionError: For the first malformed token
            InsufficientInputError: With fewer than two tokens
            AlreadyConsumedError: If the gold estimate is already frozen
            GatewayError: For the first asset whose fetch failed
        """
        identifiers = resolve_all(tokens)
        if len(identifiers) < RatioEngine.MIN_VALUATIONS:
            raise InsufficientInputError(len(identifiers), RatioEngine.MIN_VALUATIONS)

        if gold_override is not None:
            self._gold_store.override(gold_override)

        quotes = await self._fetch_all(identifiers)

        valuations = [
            self._normalizer.normalize(identifier, quote)
            for identifier, quote in zip(identifiers, quotes)
        ]
        results = self._ratio_engine.compare(valuations, pairs)
        logger.debug(f"Compared {len(valuations)} assets: {[r.to_dict() for r in results]}")

        uses_gold = any(i.kind == AssetKind.GOLD for i in identifiers)
        return ComparisonReport(
            valuations=valuations,
            ranked=self._ratio_engine.rank(valuations),
            results=results,
            gold_estimate=self._gold_store.get() if uses_gold else None,
            freshness_threshold=self._normalizer.freshness_threshold,
        )

    async def _fetch_all(self, identifiers: List[AssetIdentifier]) -> List[RawQuote]:
        """Fetch concurrently; results come back in input order."""
        tasks = [asyncio.ensure_future(self._gateway.fetch(i)) for i in identifiers]

        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            pending = [task for task in tasks if not task.done()]
            failed = [
                task for task in tasks
                if task.done() and not task.cancelled() and task.exception() is not None
            ]
            if failed or pending:
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
                # Waiters are shielded from the shared fetch; stop it explicitly.
                await self._gateway.cancel(
                    identifier
                    for identifier, task in zip(identifiers, tasks)
                    if task in pending
                )

        if failed:
            error = failed[0].exception()
            logger.debug(f"Comparison aborted: {error}")
            raise error

        return [task.result() for task in tasks]
