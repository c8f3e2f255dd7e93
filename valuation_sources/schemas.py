"""
Pydantic Schemas for provider payloads.

Only the fields the gateway reads are declared; everything else in a
response is ignored.
"""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================
# POLYGON.IO
# =============================================================

class PolygonTickerDetails(BaseModel):
    """``results`` object of /v3/reference/tickers/{ticker}."""
    ticker: str
    name: Optional[str] = None
    market_cap: Optional[float] = None
    weighted_shares_outstanding: Optional[float] = None
    share_class_shares_outstanding: Optional[float] = None
    currency_name: Optional[str] = None

    @property
    def shares_outstanding(self) -> Optional[float]:
        return self.weighted_shares_outstanding or self.share_class_shares_outstanding


class PolygonTickerDetailsResponse(BaseModel):
    """Envelope of /v3/reference/tickers/{ticker}."""
    status: str
    request_id: Optional[str] = None
    results: Optional[PolygonTickerDetails] = None


class PolygonAggregateBar(BaseModel):
    """One previous-day OHLC bar."""
    model_config = ConfigDict(populate_by_name=True)

    ticker: Optional[str] = Field(default=None, alias="T")
    open: Optional[float] = Field(default=None, alias="o")
    high: Optional[float] = Field(default=None, alias="h")
    low: Optional[float] = Field(default=None, alias="l")
    close: float = Field(alias="c")
    timestamp_ms: int = Field(alias="t")


class PolygonPreviousCloseResponse(BaseModel):
    """Envelope of /v2/aggs/ticker/{ticker}/prev."""
    model_config = ConfigDict(populate_by_name=True)

    ticker: str
    status: str
    results_count: int = Field(default=0, alias="resultsCount")
    results: List[PolygonAggregateBar] = Field(default_factory=list)


class PolygonErrorResponse(BaseModel):
    """Error body returned with non-2xx statuses."""
    status: str
    request_id: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None

    @property
    def detail(self) -> str:
        return self.message or self.error or self.status


# =============================================================
# COINGECKO
# =============================================================

class CoinGeckoMarket(BaseModel):
    """One element of /api/v3/coins/markets."""
    id: str
    symbol: str
    name: str
    current_price: Optional[float] = None
    market_cap: Optional[float] = None
    circulating_supply: Optional[float] = None
    total_supply: Optional[float] = None
    max_supply: Optional[float] = None
    last_updated: Optional[str] = None


def to_decimal(value: Optional[float]) -> Decimal:
    """Convert a JSON number to Decimal via its shortest repr; None -> 0."""
    if value is None:
        return Decimal(0)
    return Decimal(str(value))
