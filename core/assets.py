"""
Core Module - Asset Identifiers.

The closed set of asset kinds and the immutable identifier value that
every package passes around. Classification of raw user tokens lives in
``valuation_engine.identifiers``; this module only guarantees that a
constructed identifier is well-formed.
"""

import re
from dataclasses import dataclass
from enum import Enum

from core.exceptions import EmptyTokenError, InvalidSyntaxError


class AssetKind(Enum):
    """Asset classes the engine can value."""
    EQUITY = "equity"
    CRYPTO = "crypto"
    GOLD = "gold"


GOLD_KEY = "gold"

EQUITY_SYMBOL_PATTERN = re.compile(r"[A-Z0-9]{1,10}")
CRYPTO_ID_PATTERN = re.compile(r"[a-z0-9][a-z0-9._-]*")


@dataclass(frozen=True)
class AssetIdentifier:
    """
    Tagged asset identifier.

    ``key`` is the equity symbol (uppercase), the CoinGecko id (lowercase)
    or ``"gold"``. Use the ``equity``/``crypto``/``gold`` constructors.
    """
    kind: AssetKind
    key: str

    def __post_init__(self) -> None:
        if not self.key:
            raise EmptyTokenError(self.key)
        if self.kind == AssetKind.EQUITY and not EQUITY_SYMBOL_PATTERN.fullmatch(self.key):
            raise InvalidSyntaxError(
                self.key, "equity symbols are 1-10 uppercase letters or digits"
            )
        if self.kind == AssetKind.CRYPTO and not CRYPTO_ID_PATTERN.fullmatch(self.key):
            raise InvalidSyntaxError(
                self.key, "crypto ids are lowercase letters, digits, '.', '_' or '-'"
            )
        if self.kind == AssetKind.GOLD and self.key != GOLD_KEY:
            raise InvalidSyntaxError(self.key, "gold identifier key must be 'gold'")

    @classmethod
    def equity(cls, symbol: str) -> "AssetIdentifier":
        return cls(AssetKind.EQUITY, symbol.strip().upper())

    @classmethod
    def crypto(cls, coin_id: str) -> "AssetIdentifier":
        return cls(AssetKind.CRYPTO, coin_id.strip().lower())

    @classmethod
    def gold(cls) -> "AssetIdentifier":
        return cls(AssetKind.GOLD, GOLD_KEY)

    @property
    def cache_key(self) -> tuple[AssetKind, str]:
        return (self.kind, self.key)

    def __str__(self) -> str:
        return self.key
