"""
Shared fixtures: frozen clock, provider payloads, in-memory sources.
"""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Union

import pytest

from core.assets import AssetIdentifier, AssetKind
from core.clock import MockClock
from valuation_sources.base import BaseValuationSource
from valuation_sources.models import QuantityKind, RawQuote, SourceMetadata


NOW = datetime(2024, 9, 19, 12, 0, tzinfo=timezone.utc)


# ============================================================
# IN-MEMORY SOURCE
# ============================================================

class StaticSource(BaseValuationSource):
    """
    Source serving canned quotes (or errors) by identifier key.

    ``gate`` lets a test hold every fetch until it is set.
    """

    def __init__(
        self,
        responses: dict[str, Union[RawQuote, Exception]],
        kinds: Optional[list[AssetKind]] = None,
        gate: Optional[asyncio.Event] = None,
        name: str = "static",
    ) -> None:
        super().__init__()
        self._responses = responses
        self._kinds = kinds or list(AssetKind)
        self._gate = gate
        self._name = name
        self.calls: list[str] = []
        self.cancelled: list[str] = []
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=self._name,
            display_name="Static",
            asset_kinds=self._kinds,
            rate_limit_per_minute=0,
            requires_auth=False,
        )

    async def fetch_raw(self, identifier: AssetIdentifier) -> Any:
        self.calls.append(identifier.key)
        self._request_count += 1
        try:
            if self._gate is not None:
                await self._gate.wait()
        except asyncio.CancelledError:
            self.cancelled.append(identifier.key)
            raise
        response = self._responses[identifier.key]
        if isinstance(response, Exception):
            raise response
        return response

    def normalize(self, identifier: AssetIdentifier, raw_data: Any) -> RawQuote:
        return raw_data

    async def close(self) -> None:
        self.closed = True


def quote(
    price: Union[str, int],
    quantity: Union[str, int],
    kind: QuantityKind,
    as_of: datetime = NOW,
) -> RawQuote:
    return RawQuote(
        unit_price=Decimal(price),
        quantity=Decimal(quantity),
        quantity_kind=kind,
        as_of=as_of,
        source_name="static",
    )


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def clock() -> MockClock:
    return MockClock(NOW)


@pytest.fixture
def ticker_details_payload() -> dict:
    return {
        "request_id": "102a3351cebaf560a070c6002c3b1d91",
        "results": {
            "ticker": "AAPL",
            "name": "Apple Inc.",
            "market": "stocks",
            "locale": "us",
            "primary_exchange": "XNAS",
            "type": "CS",
            "active": True,
            "currency_name": "usd",
            "market_cap": 3.38702559949e12,
            "share_class_shares_outstanding": 15204140000,
            "weighted_shares_outstanding": 15204137000,
            "round_lot": 100,
        },
        "status": "OK",
    }


@pytest.fixture
def previous_close_payload() -> dict:
    return {
        "ticker": "C:XAUUSD",
        "queryCount": 1,
        "resultsCount": 1,
        "adjusted": True,
        "results": [
            {
                "T": "C:XAUUSD",
                "v": 3560,
                "vw": 2570.3368,
                "o": 2574.07,
                "c": 2559.15,
                "h": 2599.8,
                "l": 2547.63,
                "t": 1726703999999,
                "n": 3560,
            }
        ],
        "status": "OK",
        "request_id": "852639747d77390dc13e683c4938d3c8",
        "count": 1,
    }


@pytest.fixture
def coingecko_markets_payload() -> list:
    return [
        {
            "id": "ethereum",
            "symbol": "eth",
            "name": "Ethereum",
            "current_price": 2431.96,
            "market_cap": 292802217292,
            "market_cap_rank": 2,
            "circulating_supply": 120345065.769204,
            "total_supply": 120345065.769204,
            "max_supply": None,
            "last_updated": "2024-09-19T08:55:01.703Z",
        }
    ]
