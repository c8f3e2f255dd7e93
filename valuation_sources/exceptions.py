"""
Valuation Source Exceptions - Gateway error taxonomy.

Public errors (``GatewayError`` subclasses) are what callers see.
``FetchError`` and ``RateLimitError`` are transport signals used inside
the retry loop; a source never lets them escape.
"""

from typing import Any, Optional

from core.exceptions import ErrorCategory, RatioGangError


# ============================================================
# PUBLIC TAXONOMY
# ============================================================

class GatewayError(RatioGangError):
    """Base exception for all valuation source errors."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        asset: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        context = dict(context or {})
        if source_name:
            context["source_name"] = source_name
        if asset:
            context["asset"] = asset
        super().__init__(message, context=context, cause=original_error)
        self.source_name = source_name
        self.asset = asset
        self.original_error = original_error

    def __str__(self) -> str:
        parts = [f"{self.kind}: {self.message}"]
        if self.asset:
            parts.append(f"[asset={self.asset}]")
        if self.source_name:
            parts.append(f"[source={self.source_name}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class AssetNotFoundError(GatewayError):
    """The provider reports that the identifier does not exist."""

    default_category = ErrorCategory.USER_INPUT


class AuthMissingError(GatewayError):
    """Credentials required by a provider are absent or rejected."""

    default_category = ErrorCategory.CONFIGURATION

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        env_var: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", None) or {}
        if env_var:
            context["env_var"] = env_var
        super().__init__(message, source_name, context=context, **kwargs)
        self.env_var = env_var


class RateLimitedError(GatewayError):
    """Retries were exhausted while the provider kept rate limiting."""

    default_category = ErrorCategory.OPERATIONAL


class SourceUnavailableError(GatewayError):
    """Persistent transport failure or unusable provider response."""

    default_category = ErrorCategory.OPERATIONAL

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        status_code: Optional[int] = None,
        attempts: int = 0,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", None) or {}
        if status_code is not None:
            context["status_code"] = status_code
        if attempts:
            context["attempts"] = attempts
        super().__init__(message, source_name, context=context, **kwargs)
        self.status_code = status_code
        self.attempts = attempts


# ============================================================
# TRANSPORT SIGNALS (retry loop only)
# ============================================================

class FetchError(Exception):
    """Error during a single HTTP exchange with a provider."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source_name = source_name
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url
        self.original_error = original_error

    def is_transient(self) -> bool:
        """Connection-level failures and 5xx are worth retrying."""
        return self.status_code is None or self.is_server_error()

    def is_server_error(self) -> bool:
        return self.status_code is not None and 500 <= self.status_code < 600


class RateLimitError(FetchError):
    """HTTP 429 from a provider."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        retry_after_seconds: Optional[float] = None,
        request_url: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            source_name,
            status_code=429,
            request_url=request_url,
        )
        self.retry_after_seconds = retry_after_seconds
