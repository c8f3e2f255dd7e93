"""
Polygon.io Valuation Source - Equities and spot gold.

Endpoints used:
- /v3/reference/tickers/{ticker} - Company details (market cap, shares)
- /v2/aggs/ticker/C:XAUUSD/prev - Previous day close of spot gold

Requires POLYGON_KEY.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

import aiohttp

from core.assets import AssetIdentifier, AssetKind
from core.clock import ClockProtocol, get_clock
from core.config import GatewayConfig
from core.constants import DEFAULT_GOLD_TONNES, GOLD_FOREX_TICKER, POLYGON_KEY_ENV
from valuation_sources.base import BaseValuationSource, Sleep
from valuation_sources.exceptions import (
    AssetNotFoundError,
    AuthMissingError,
    FetchError,
    GatewayError,
    SourceUnavailableError,
)
from valuation_sources.models import QuantityKind, RawQuote, SourceMetadata
from valuation_sources.schemas import (
    PolygonErrorResponse,
    PolygonPreviousCloseResponse,
    PolygonTickerDetailsResponse,
    to_decimal,
)

if TYPE_CHECKING:
    from valuation_engine.gold import GoldEstimateStore


logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class PolygonValuationSource(BaseValuationSource):
    """
    Polygon.io REST source.

    Equity quotes carry weighted shares outstanding as quantity and
    market_cap / shares as unit price. Gold quotes carry the previous
    close in USD per troy ounce and the tonnage of the gold estimate.

    Rate limits:
    - 5 requests/minute on the free tier
    """

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        sleep: Optional[Sleep] = None,
        gold_store: Optional["GoldEstimateStore"] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        super().__init__(config, session, sleep)
        self._api_key = self._config.api_keys.polygon
        self._base_url = self._config.polygon_base_url.rstrip("/")
        self._gold_store = gold_store
        self._clock = clock or get_clock()

    @property
    def name(self) -> str:
        return "polygon"

    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=self.name,
            display_name="Polygon.io",
            asset_kinds=[AssetKind.EQUITY, AssetKind.GOLD],
            rate_limit_per_minute=5,
            requires_auth=True,
            base_url=self._base_url,
            documentation_url="https://polygon.io/docs/stocks",
            tags=["stocks", "forex", "gold"],
        )

    # =========================================================
    # URLS
    # =========================================================

    def ticker_details_url(self, symbol: str) -> str:
        return f"{self._base_url}/v3/reference/tickers/{symbol}"

    def previous_close_url(self, forex_ticker: str) -> str:
        return f"{self._base_url}/v2/aggs/ticker/C:{forex_ticker}/prev"

    def _auth_params(self) -> dict[str, str]:
        if not self._api_key:
            raise AuthMissingError(
                message=f"Polygon API key not set. Use 'export {POLYGON_KEY_ENV}=YOURKEY' to set it.",
                source_name=self.name,
                env_var=POLYGON_KEY_ENV,
            )
        return {"apiKey": self._api_key}

    # =========================================================
    # FETCH
    # =========================================================

    async def fetch_raw(self, identifier: AssetIdentifier) -> Any:
        params = self._auth_params()
        if identifier.kind == AssetKind.EQUITY:
            url = self.ticker_details_url(identifier.key)
        elif identifier.kind == AssetKind.GOLD:
            url = self.previous_close_url(GOLD_FOREX_TICKER)
        else:
            raise SourceUnavailableError(
                message=f"Unsupported asset kind: {identifier.kind.value}",
                source_name=self.name,
            )
        return await self._make_request("GET", url, params=params)

    def _map_client_error(self, error: FetchError, identifier: AssetIdentifier) -> GatewayError:
        mapped = super()._map_client_error(error, identifier)
        detail = _polygon_error_detail(error.response_body)
        if detail:
            mapped.message = f"{mapped.message}: {detail}"
            mapped.context["provider_message"] = detail
        return mapped

    # =========================================================
    # NORMALIZE
    # =========================================================

    def normalize(self, identifier: AssetIdentifier, raw_data: Any) -> RawQuote:
        if identifier.kind == AssetKind.GOLD:
            return self._normalize_gold(raw_data)
        return self._normalize_equity(identifier, raw_data)

    def _normalize_equity(self, identifier: AssetIdentifier, raw_data: Any) -> RawQuote:
        response = PolygonTickerDetailsResponse.model_validate(raw_data)
        if response.status.upper() == "NOT_FOUND" or response.results is None:
            raise AssetNotFoundError(
                message=f"{identifier} not found",
                source_name=self.name,
            )

        details = response.results
        market_cap = to_decimal(details.market_cap)
        shares = to_decimal(details.shares_outstanding)

        # Funds and some share classes have no market cap on Polygon.
        if market_cap <= 0 or shares <= 0:
            logger.debug(f"[{self.name}] No market cap data for {identifier}")
            return RawQuote(
                unit_price=Decimal(0),
                quantity=Decimal(0),
                quantity_kind=QuantityKind.SHARES,
                as_of=self._clock.now(),
                source_name=self.name,
            )

        return RawQuote(
            unit_price=market_cap / shares,
            quantity=shares,
            quantity_kind=QuantityKind.SHARES,
            as_of=self._clock.now(),
            source_name=self.name,
        )

    def _normalize_gold(self, raw_data: Any) -> RawQuote:
        response = PolygonPreviousCloseResponse.model_validate(raw_data)
        if not response.results:
            raise SourceUnavailableError(
                message=f"No previous close for {GOLD_FOREX_TICKER}",
                source_name=self.name,
            )

        bar = response.results[0]
        return RawQuote(
            unit_price=to_decimal(bar.close),
            quantity=self._gold_tonnes(),
            quantity_kind=QuantityKind.TONNES,
            as_of=EPOCH + timedelta(milliseconds=bar.timestamp_ms),
            source_name=self.name,
        )

    def _gold_tonnes(self) -> Decimal:
        if self._gold_store is None:
            return DEFAULT_GOLD_TONNES
        return self._gold_store.get().tonnes


def _polygon_error_detail(body: Optional[str]) -> Optional[str]:
    if not body:
        return None
    try:
        return PolygonErrorResponse.model_validate(json.loads(body)).detail
    except ValueError:
        return None
