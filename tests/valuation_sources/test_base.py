"""
Tests for the retry and error mapping behavior shared by all sources.

HTTP is replaced by patching ``_make_request``; backoff waits go
through an AsyncMock sleep so no test actually sleeps.
"""

import logging
from unittest.mock import AsyncMock, patch

import pytest

from core.assets import AssetIdentifier, AssetKind
from core.config import ApiKeys, GatewayConfig
from valuation_sources.base import parse_retry_after
from valuation_sources.exceptions import (
    AssetNotFoundError,
    AuthMissingError,
    FetchError,
    RateLimitedError,
    RateLimitError,
    SourceUnavailableError,
)
from valuation_sources.providers import CoinGeckoValuationSource, PolygonValuationSource


AAPL = AssetIdentifier.equity("AAPL")


@pytest.fixture
def config():
    return GatewayConfig(api_keys=ApiKeys(polygon="test-polygon", coingecko="test-cg"))


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def polygon(config, sleep, clock):
    return PolygonValuationSource(config, sleep=sleep, clock=clock)


def server_error(status: int = 503) -> FetchError:
    return FetchError(message=f"HTTP {status}", source_name="polygon", status_code=status)


# ============================================================
# RETRY POLICY
# ============================================================

class TestRetry:
    """Tests for _fetch_with_retry()."""

    @pytest.mark.asyncio
    async def test_retries_transient_errors(self, polygon, sleep, ticker_details_payload):
        """Two 5xx responses then success: three attempts, two waits."""
        with patch.object(
            polygon,
            "_make_request",
            AsyncMock(side_effect=[server_error(), server_error(502), ticker_details_payload]),
        ) as request:
            quote = await polygon.fetch(AAPL)

        assert quote.has_data
        assert request.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_connection_errors_are_transient(self, polygon, sleep, ticker_details_payload):
        connection_error = FetchError(message="Connection error", source_name="polygon")
        with patch.object(
            polygon,
            "_make_request",
            AsyncMock(side_effect=[connection_error, ticker_details_payload]),
        ):
            quote = await polygon.fetch(AAPL)

        assert quote.has_data
        assert sleep.await_count == 1

    @pytest.mark.asyncio
    async def test_exhaustion_is_source_unavailable(self, polygon, sleep, caplog):
        """No sleep after the final attempt."""
        caplog.set_level(logging.DEBUG, logger="valuation_sources.base")
        with patch.object(
            polygon, "_make_request", AsyncMock(side_effect=[server_error()] * 3)
        ):
            with pytest.raises(SourceUnavailableError) as exc_info:
                await polygon.fetch(AAPL)

        assert exc_info.value.attempts == 3
        assert exc_info.value.status_code == 503
        assert exc_info.value.asset == "AAPL"
        assert sleep.await_count == 2
        assert polygon.error_count == 3
        assert "Giving up on AAPL after 3 attempts (3 errors on this source)" in caplog.text

    @pytest.mark.asyncio
    async def test_rate_limit_honors_retry_after(self, polygon, sleep, ticker_details_payload):
        limited = RateLimitError(message="Rate limit exceeded", retry_after_seconds=7.0)
        with patch.object(
            polygon,
            "_make_request",
            AsyncMock(side_effect=[limited, ticker_details_payload]),
        ):
            await polygon.fetch(AAPL)

        sleep.assert_awaited_once_with(7.0)

    @pytest.mark.asyncio
    async def test_rate_limit_exhaustion(self, polygon, sleep):
        with patch.object(
            polygon,
            "_make_request",
            AsyncMock(side_effect=[RateLimitError(message="Rate limit exceeded")] * 3),
        ):
            with pytest.raises(RateLimitedError):
                await polygon.fetch(AAPL)

        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_single_attempt_config(self, sleep, clock):
        config = GatewayConfig(api_keys=ApiKeys(polygon="k"), max_attempts=1)
        polygon = PolygonValuationSource(config, sleep=sleep, clock=clock)
        with patch.object(polygon, "_make_request", AsyncMock(side_effect=[server_error()])):
            with pytest.raises(SourceUnavailableError):
                await polygon.fetch(AAPL)

        sleep.assert_not_awaited()


# ============================================================
# ERROR MAPPING
# ============================================================

class TestErrorMapping:
    """Tests for non-retryable responses."""

    @pytest.mark.asyncio
    async def test_404_is_not_found(self, polygon, sleep):
        with patch.object(
            polygon, "_make_request", AsyncMock(side_effect=[server_error(404)])
        ) as request:
            with pytest.raises(AssetNotFoundError) as exc_info:
                await polygon.fetch(AssetIdentifier.equity("ZZZZZZ"))

        assert request.await_count == 1
        assert exc_info.value.asset == "ZZZZZZ"
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_rejected_key_is_auth_missing(self, polygon, status):
        with patch.object(
            polygon, "_make_request", AsyncMock(side_effect=[server_error(status)])
        ):
            with pytest.raises(AuthMissingError):
                await polygon.fetch(AAPL)

    @pytest.mark.asyncio
    async def test_other_client_errors_not_retried(self, polygon, sleep):
        with patch.object(
            polygon, "_make_request", AsyncMock(side_effect=[server_error(400)])
        ) as request:
            with pytest.raises(SourceUnavailableError) as exc_info:
                await polygon.fetch(AAPL)

        assert exc_info.value.status_code == 400
        assert request.await_count == 1

    @pytest.mark.asyncio
    async def test_provider_message_included(self, polygon):
        error = FetchError(
            message="HTTP 403",
            status_code=403,
            response_body='{"status": "NOT_AUTHORIZED", "message": "Not entitled"}',
        )
        with patch.object(polygon, "_make_request", AsyncMock(side_effect=[error])):
            with pytest.raises(AuthMissingError) as exc_info:
                await polygon.fetch(AAPL)

        assert "Not entitled" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_unexpected_payload(self, polygon):
        with patch.object(polygon, "_make_request", AsyncMock(return_value={"weird": True})):
            with pytest.raises(SourceUnavailableError):
                await polygon.fetch(AAPL)

    @pytest.mark.asyncio
    async def test_unsupported_kind(self, polygon):
        with pytest.raises(SourceUnavailableError):
            await polygon.fetch(AssetIdentifier.crypto("bitcoin"))

    @pytest.mark.asyncio
    async def test_missing_key_fails_without_request(self, sleep, clock):
        source = CoinGeckoValuationSource(GatewayConfig(), sleep=sleep, clock=clock)
        with patch.object(source, "_make_request", AsyncMock()) as request:
            with pytest.raises(AuthMissingError) as exc_info:
                await source.fetch(AssetIdentifier.crypto("bitcoin"))

        request.assert_not_awaited()
        assert exc_info.value.env_var == "COINGECKO_KEY"
        assert exc_info.value.category.value == "configuration"


# ============================================================
# HELPERS
# ============================================================

class TestParseRetryAfter:
    """Tests for parse_retry_after()."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, None),
            ("5", 5.0),
            (" 1.5 ", 1.5),
            ("-3", 0.0),
            ("Wed, 21 Oct 2015 07:28:00 GMT", None),
        ],
    )
    def test_values(self, value, expected):
        assert parse_retry_after(value) == expected


class TestMetadata:
    """Tests for source metadata."""

    def test_polygon_kinds(self, polygon):
        metadata = polygon.metadata()

        assert metadata.supports(AssetKind.EQUITY)
        assert metadata.supports(AssetKind.GOLD)
        assert not metadata.supports(AssetKind.CRYPTO)

    def test_to_dict(self, polygon):
        data = polygon.metadata().to_dict()

        assert data["name"] == "polygon"
        assert data["asset_kinds"] == ["equity", "gold"]
        assert data["requires_auth"] is True
