"""
Valuation Engine - Gold Estimate Store.

Holds the above-ground gold tonnage for one invocation. The value
starts at the published default, may be overridden once, and is frozen
by the first read.
"""

import threading
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Union

from core.constants import DEFAULT_GOLD_TONNES
from core.exceptions import AlreadyConsumedError


class EstimateSource(Enum):
    """Where the tonnage came from."""
    DEFAULT = "default"
    USER_OVERRIDE = "user_override"


@dataclass(frozen=True)
class GoldEstimate:
    """Above-ground gold stock."""
    tonnes: Decimal
    source: EstimateSource


class GoldEstimateStore:
    """
    One-shot write gate around the gold estimate.

    - override() succeeds at most once, and only before the first get()
    - get() freezes the estimate for the rest of the invocation
    """

    def __init__(self, default_tonnes: Decimal = DEFAULT_GOLD_TONNES) -> None:
        self._estimate = GoldEstimate(tonnes=Decimal(default_tonnes), source=EstimateSource.DEFAULT)
        self._overridden = False
        self._consumed = False
        self._lock = threading.Lock()

    @property
    def consumed(self) -> bool:
        return self._consumed

    def get(self) -> GoldEstimate:
        """Return the estimate and freeze it."""
        with self._lock:
            self._consumed = True
            return self._estimate

    def override(self, tonnes: Union[Decimal, int, str]) -> None:
        """
        Replace the default tonnage.

        Raises:
            AlreadyConsumedError: After a previous override or a get()
            ValueError: If tonnes is negative or not a number
        """
        try:
            value = Decimal(tonnes)
        except InvalidOperation:
            raise ValueError(f"Gold tonnage must be a number, got {tonnes!r}")
        if not value.is_finite() or value < 0:
            raise ValueError(f"Gold tonnage must be a non-negative number, got {tonnes}")

        with self._lock:
            if self._consumed:
                raise AlreadyConsumedError("the estimate has already been read in this run")
            if self._overridden:
                raise AlreadyConsumedError("the estimate was already overridden in this run")
            self._estimate = GoldEstimate(tonnes=value, source=EstimateSource.USER_OVERRIDE)
            self._overridden = True

    @classmethod
    def for_invocation(cls, override: Optional[Decimal] = None) -> "GoldEstimateStore":
        """Build a store, applying the user's override if one was given."""
        store = cls()
        if override is not None:
            store.override(override)
        return store
