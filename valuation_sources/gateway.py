"""
Valuation Gateway - Single entry point for quotes with a per-run cache.

Provides:
- Dispatch by asset kind to the responsible source
- One external fetch per (kind, identifier) per run
- Concurrent duplicate requests share the in-flight fetch
"""

import asyncio
import logging
from typing import Iterable, Optional, TYPE_CHECKING

import aiohttp

from core.assets import AssetIdentifier, AssetKind
from core.clock import ClockProtocol
from core.config import GatewayConfig
from valuation_sources.base import BaseValuationSource, Sleep
from valuation_sources.models import RawQuote
from valuation_sources.providers import CoinGeckoValuationSource, PolygonValuationSource

if TYPE_CHECKING:
    from valuation_engine.gold import GoldEstimateStore


logger = logging.getLogger(__name__)

CacheKey = tuple[AssetKind, str]


class ValuationGateway:
    """
    Uniform quote interface over the providers.

    The cache lives as long as the gateway (one invocation) and has no
    expiry: every comparison in a run sees the same snapshot. Failed
    fetches are evicted so they are never served from the cache.

    Usage:
        async with ValuationGateway(GatewayConfig.from_env(), gold_store) as gateway:
            quote = await gateway.fetch(AssetIdentifier.equity("AAPL"))
    """

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        gold_store: Optional["GoldEstimateStore"] = None,
        sources: Optional[dict[AssetKind, BaseValuationSource]] = None,
        session: Optional[aiohttp.ClientSession] = None,
        sleep: Optional[Sleep] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._config = config or GatewayConfig()

        if sources is None:
            polygon = PolygonValuationSource(
                self._config, session, sleep, gold_store=gold_store, clock=clock
            )
            coingecko = CoinGeckoValuationSource(self._config, session, sleep, clock=clock)
            sources = {
                AssetKind.EQUITY: polygon,
                AssetKind.GOLD: polygon,
                AssetKind.CRYPTO: coingecko,
            }

        missing = [kind.value for kind in AssetKind if kind not in sources]
        if missing:
            raise ValueError(f"No valuation source for asset kinds: {', '.join(missing)}")

        self._sources = sources
        self._cache: dict[CacheKey, asyncio.Task] = {}
        self._external_fetches = 0

    @property
    def external_fetches(self) -> int:
        """Number of fetches that went past the cache."""
        return self._external_fetches

    def source_for(self, kind: AssetKind) -> BaseValuationSource:
        return self._sources[kind]

    def is_cached(self, identifier: AssetIdentifier) -> bool:
        task = self._cache.get(identifier.cache_key)
        return task is not None and task.done() and not task.cancelled() and task.exception() is None

    async def fetch(self, identifier: AssetIdentifier) -> RawQuote:
        """
        Return the quote for ``identifier``, fetching it at most once per run.

        Raises:
            GatewayError: AssetNotFoundError, RateLimitedError,
                SourceUnavailableError or AuthMissingError
        """
        key = identifier.cache_key
        task = self._cache.get(key)

        if task is None:
            task = asyncio.ensure_future(self._fetch_uncached(identifier))
            task.add_done_callback(lambda done, key=key: self._evict_if_failed(key, done))
            self._cache[key] = task
        else:
            logger.debug(f"Cache hit for {identifier.kind.value}:{identifier.key}")

        # Shielded: one waiter giving up must not cancel the fetch for the others.
        return await asyncio.shield(task)

    async def cancel(self, identifiers: Iterable[AssetIdentifier]) -> None:
        """Cancel the in-flight fetches for ``identifiers`` and wait for them to stop."""
        tasks = []
        for identifier in identifiers:
            task = self._cache.get(identifier.cache_key)
            if task is not None and not task.done():
                task.cancel()
                tasks.append(task)
        if tasks:
            logger.debug(f"Cancelling {len(tasks)} in-flight fetches")
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _fetch_uncached(self, identifier: AssetIdentifier) -> RawQuote:
        self._external_fetches += 1

        if identifier.kind == AssetKind.EQUITY:
            source = self._sources[AssetKind.EQUITY]
        elif identifier.kind == AssetKind.CRYPTO:
            source = self._sources[AssetKind.CRYPTO]
        elif identifier.kind == AssetKind.GOLD:
            source = self._sources[AssetKind.GOLD]
        else:
            raise ValueError(f"Unhandled asset kind: {identifier.kind}")

        logger.debug(f"[{source.name}] Fetching {identifier.kind.value}:{identifier.key}")
        quote = await source.fetch(identifier)
        logger.debug(f"[{source.name}] {identifier}: {quote.to_dict()}")
        return quote

    def _evict_if_failed(self, key: CacheKey, task: asyncio.Task) -> None:
        if task.cancelled() or task.exception() is not None:
            if self._cache.get(key) is task:
                del self._cache[key]

    async def close(self) -> None:
        """Cancel in-flight fetches and close every source once."""
        pending = [task for task in self._cache.values() if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._cache.clear()

        closed: set[int] = set()
        for source in self._sources.values():
            if id(source) not in closed:
                closed.add(id(source))
                await source.close()

    async def __aenter__(self) -> "ValuationGateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
