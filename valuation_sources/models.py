"""
Valuation Source Models - Quote structures produced by the gateway.

Every provider normalizes its payload into a ``RawQuote``; nothing
downstream depends on provider-specific fields.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from core.assets import AssetKind


class QuantityKind(Enum):
    """What the ``quantity`` of a quote counts."""
    SHARES = "shares"
    CIRCULATING_SUPPLY = "circulating_supply"
    TONNES = "tonnes"


EXPECTED_QUANTITY_KIND = {
    AssetKind.EQUITY: QuantityKind.SHARES,
    AssetKind.CRYPTO: QuantityKind.CIRCULATING_SUPPLY,
    AssetKind.GOLD: QuantityKind.TONNES,
}


@dataclass(frozen=True)
class RawQuote:
    """
    Provider quote - STRICT schema.

    ``unit_price`` is USD per share / coin / troy ounce. A zero
    ``quantity`` means the provider had no data for the asset.
    """
    unit_price: Decimal
    quantity: Decimal
    quantity_kind: QuantityKind
    as_of: datetime
    source_name: str = ""

    def __post_init__(self) -> None:
        if self.unit_price < 0:
            raise ValueError(f"unit_price must be non-negative, got {self.unit_price}")
        if self.quantity < 0:
            raise ValueError(f"quantity must be non-negative, got {self.quantity}")
        if self.as_of.tzinfo is None:
            object.__setattr__(self, "as_of", self.as_of.replace(tzinfo=timezone.utc))

    @property
    def has_data(self) -> bool:
        return self.quantity > 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "unit_price": str(self.unit_price),
            "quantity": str(self.quantity),
            "quantity_kind": self.quantity_kind.value,
            "as_of": self.as_of.isoformat(),
            "source_name": self.source_name,
        }


@dataclass
class SourceMetadata:
    """Metadata about a valuation source provider."""
    name: str
    display_name: str
    asset_kinds: list[AssetKind]
    rate_limit_per_minute: int
    requires_auth: bool = True
    base_url: str = ""
    documentation_url: str = ""
    tags: list[str] = field(default_factory=list)

    def supports(self, kind: AssetKind) -> bool:
        return kind in self.asset_kinds

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "display_name": self.display_name,
            "asset_kinds": [k.value for k in self.asset_kinds],
            "rate_limit_per_minute": self.rate_limit_per_minute,
            "requires_auth": self.requires_auth,
            "base_url": self.base_url,
            "documentation_url": self.documentation_url,
            "tags": self.tags,
        }
