"""
Base Valuation Source - Abstract interface for all quote providers.

All providers MUST implement this interface to ensure:
- Isolation
- Replaceability
- A single error taxonomy towards the gateway
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

import aiohttp
from pydantic import ValidationError

from core.assets import AssetIdentifier
from core.config import GatewayConfig
from valuation_sources.exceptions import (
    AssetNotFoundError,
    AuthMissingError,
    FetchError,
    GatewayError,
    RateLimitedError,
    RateLimitError,
    SourceUnavailableError,
)
from valuation_sources.models import RawQuote, SourceMetadata


logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class BaseValuationSource(ABC):
    """
    Abstract base class for all valuation sources.

    Each source implementation must:
    1. Implement fetch_raw() - Get the raw payload from the provider
    2. Implement normalize() - Convert the payload to a RawQuote
    3. Implement metadata() - Return provider metadata

    Features:
    - Automatic retry with exponential backoff
    - Retry-After honored on rate limiting
    - Transport errors mapped onto GatewayError subclasses
    """

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self._config = config or GatewayConfig()
        self._timeout = self._config.timeout_seconds
        self._max_attempts = self._config.max_attempts
        self._backoff_base = self._config.backoff_base
        self._session = session
        self._owns_session = session is None
        self._sleep = sleep or asyncio.sleep

        self._request_count = 0
        self._error_count = 0

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this source."""
        pass

    @abstractmethod
    async def fetch_raw(self, identifier: AssetIdentifier) -> Any:
        """
        Fetch the raw payload for one asset.

        Raises:
            FetchError: On a failed HTTP exchange (retried if transient)
            GatewayError: On a definitive failure (never retried)
        """
        pass

    @abstractmethod
    def normalize(self, identifier: AssetIdentifier, raw_data: Any) -> RawQuote:
        """
        Convert a raw payload into a RawQuote.

        Raises:
            GatewayError: If the payload says the asset has no quote
            pydantic.ValidationError: If the payload has an unexpected shape
        """
        pass

    @abstractmethod
    def metadata(self) -> SourceMetadata:
        """Return provider metadata."""
        pass

    @property
    def request_count(self) -> int:
        """Number of HTTP requests issued so far."""
        return self._request_count

    @property
    def error_count(self) -> int:
        return self._error_count

    async def fetch(self, identifier: AssetIdentifier) -> RawQuote:
        """
        Fetch and normalize a quote (main entry point).

        Raises:
            GatewayError: Always one of the public subclasses
        """
        if not self.metadata().supports(identifier.kind):
            raise SourceUnavailableError(
                message=f"{self.name} cannot quote {identifier.kind.value} assets",
                source_name=self.name,
                asset=str(identifier),
            )

        raw_data = await self._fetch_with_retry(identifier)

        try:
            return self.normalize(identifier, raw_data)
        except ValidationError as e:
            self._error_count += 1
            raise SourceUnavailableError(
                message="Unexpected payload from provider",
                source_name=self.name,
                asset=str(identifier),
                original_error=e,
            )
        except GatewayError as e:
            if e.asset is None:
                e.asset = str(identifier)
                e.context["asset"] = e.asset
            raise

    async def _fetch_with_retry(self, identifier: AssetIdentifier) -> Any:
        """Fetch with exponential backoff retry."""
        last_error: Optional[FetchError] = None

        for attempt in range(self._max_attempts):
            is_last = attempt == self._max_attempts - 1
            try:
                return await self.fetch_raw(identifier)

            except GatewayError as e:
                self._error_count += 1
                if e.asset is None:
                    e.asset = str(identifier)
                    e.context["asset"] = e.asset
                raise

            except RateLimitError as e:
                self._error_count += 1
                last_error = e
                if is_last:
                    break
                wait_time = (
                    e.retry_after_seconds
                    if e.retry_after_seconds is not None
                    else self._backoff_base ** attempt
                )
                logger.warning(
                    f"[{self.name}] Rate limited on {identifier}, waiting {wait_time}s "
                    f"(attempt {attempt + 1}/{self._max_attempts})"
                )
                await self._sleep(wait_time)

            except FetchError as e:
                self._error_count += 1
                if not e.is_transient():
                    raise self._map_client_error(e, identifier)
                last_error = e
                if is_last:
                    break
                wait_time = self._backoff_base ** attempt
                logger.warning(
                    f"[{self.name}] {e.message} on {identifier}, "
                    f"retrying in {wait_time}s (attempt {attempt + 1}/{self._max_attempts})"
                )
                await self._sleep(wait_time)

        logger.debug(
            f"[{self.name}] Giving up on {identifier} after {self._max_attempts} attempts "
            f"({self._error_count} errors on this source)"
        )

        if isinstance(last_error, RateLimitError):
            raise RateLimitedError(
                message=f"Still rate limited after {self._max_attempts} attempts",
                source_name=self.name,
                asset=str(identifier),
                original_error=last_error,
            )

        raise SourceUnavailableError(
            message=f"Failed after {self._max_attempts} attempts",
            source_name=self.name,
            asset=str(identifier),
            status_code=last_error.status_code if last_error else None,
            attempts=self._max_attempts,
            original_error=last_error,
        )

    def _map_client_error(self, error: FetchError, identifier: AssetIdentifier) -> GatewayError:
        """Translate a non-retryable HTTP error into the public taxonomy."""
        if error.status_code == 404:
            return AssetNotFoundError(
                message=f"{identifier} not found",
                source_name=self.name,
                asset=str(identifier),
                original_error=error,
            )
        if error.status_code in (401, 403):
            return AuthMissingError(
                message=f"{self.name} rejected the configured API key",
                source_name=self.name,
                asset=str(identifier),
                original_error=error,
            )
        return SourceUnavailableError(
            message=f"HTTP {error.status_code} from provider",
            source_name=self.name,
            asset=str(identifier),
            status_code=error.status_code,
            original_error=error,
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> dict[str, str]:
        """Get default HTTP headers."""
        return {
            "Accept": "application/json",
            "User-Agent": "ratio-gang/1.0",
        }

    async def _make_request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """Make one HTTP request and return the decoded JSON body."""
        session = await self._get_session()
        self._request_count += 1

        start_time = time.time()
        try:
            async with session.request(
                method,
                url,
                params=params,
                headers=headers,
            ) as response:
                latency_ms = (time.time() - start_time) * 1000

                if response.status == 429:
                    raise RateLimitError(
                        message="Rate limit exceeded",
                        source_name=self.name,
                        retry_after_seconds=parse_retry_after(response.headers.get("Retry-After")),
                        request_url=url,
                    )

                if response.status >= 400:
                    body = await response.text()
                    raise FetchError(
                        message=f"HTTP {response.status}",
                        source_name=self.name,
                        status_code=response.status,
                        response_body=body[:1000],
                        request_url=url,
                    )

                data = await response.json()
                logger.debug(f"[{self.name}] Request completed in {latency_ms:.1f}ms")
                return data

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(
                message=f"Connection error: {e!r}",
                source_name=self.name,
                request_url=url,
                original_error=e,
            )

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "BaseValuationSource":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__}(name={self.name}, "
            f"requests={self._request_count}, errors={self._error_count})>"
        )


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parse a Retry-After header given in seconds; other forms are ignored."""
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return max(seconds, 0.0)
