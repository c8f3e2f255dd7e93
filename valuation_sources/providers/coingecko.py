"""
CoinGecko Valuation Source - Cryptocurrencies.

Endpoints used:
- /api/v3/coins/markets - Price, circulating supply and last update

Requires COINGECKO_KEY (demo or paid key).
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

import aiohttp

from core.assets import AssetIdentifier, AssetKind
from core.clock import ClockProtocol, get_clock
from core.config import GatewayConfig
from core.constants import COINGECKO_KEY_ENV
from valuation_sources.base import BaseValuationSource, Sleep
from valuation_sources.exceptions import AssetNotFoundError, AuthMissingError
from valuation_sources.models import QuantityKind, RawQuote, SourceMetadata
from valuation_sources.schemas import CoinGeckoMarket, to_decimal


logger = logging.getLogger(__name__)


class CoinGeckoValuationSource(BaseValuationSource):
    """
    CoinGecko REST source.

    Quotes carry ``current_price`` as unit price and
    ``circulating_supply`` as quantity.

    Rate limits:
    - 30 requests/minute on the demo tier
    """

    API_KEY_HEADER = "x-cg-demo-api-key"

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        sleep: Optional[Sleep] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        super().__init__(config, session, sleep)
        self._api_key = self._config.api_keys.coingecko
        self._base_url = self._config.coingecko_base_url.rstrip("/")
        self._clock = clock or get_clock()

    @property
    def name(self) -> str:
        return "coingecko"

    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=self.name,
            display_name="CoinGecko",
            asset_kinds=[AssetKind.CRYPTO],
            rate_limit_per_minute=30,
            requires_auth=True,
            base_url=self._base_url,
            documentation_url="https://docs.coingecko.com/reference/coins-markets",
            tags=["crypto"],
        )

    def markets_url(self) -> str:
        return f"{self._base_url}/api/v3/coins/markets"

    def markets_params(self, coin_id: str) -> dict[str, str]:
        return {"vs_currency": "usd", "ids": coin_id}

    def _auth_headers(self) -> dict[str, str]:
        if not self._api_key:
            raise AuthMissingError(
                message=f"CoinGecko API key not set. Use 'export {COINGECKO_KEY_ENV}=YOURKEY' to set it.",
                source_name=self.name,
                env_var=COINGECKO_KEY_ENV,
            )
        return {self.API_KEY_HEADER: self._api_key}

    async def fetch_raw(self, identifier: AssetIdentifier) -> Any:
        headers = self._auth_headers()
        data = await self._make_request(
            "GET",
            self.markets_url(),
            params=self.markets_params(identifier.key),
            headers=headers,
        )

        # An unknown id is a 200 with an empty list.
        if isinstance(data, list) and not data:
            raise AssetNotFoundError(
                message=f"CoinGecko has no coin with id '{identifier.key}'",
                source_name=self.name,
            )
        return data

    def normalize(self, identifier: AssetIdentifier, raw_data: Any) -> RawQuote:
        markets = [CoinGeckoMarket.model_validate(item) for item in raw_data]
        market = next((m for m in markets if m.id == identifier.key), markets[0])

        if market.current_price is None:
            logger.debug(f"[{self.name}] No price for {identifier}")
            unit_price = Decimal(0)
            quantity = Decimal(0)
        else:
            unit_price = to_decimal(market.current_price)
            quantity = to_decimal(market.circulating_supply)

        return RawQuote(
            unit_price=unit_price,
            quantity=quantity,
            quantity_kind=QuantityKind.CIRCULATING_SUPPLY,
            as_of=self._parse_last_updated(market.last_updated),
            source_name=self.name,
        )

    def _parse_last_updated(self, last_updated: Optional[str]) -> datetime:
        if last_updated:
            try:
                parsed = datetime.fromisoformat(last_updated.replace("Z", "+00:00"))
            except ValueError:
                logger.debug(f"[{self.name}] Unparseable last_updated {last_updated!r}")
            else:
                if parsed.tzinfo is None:
                    parsed = parsed.replace(tzinfo=timezone.utc)
                return parsed
        return self._clock.now()
