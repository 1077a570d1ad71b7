"""
Market price sources.

The journal never fetches prices itself; a PriceSource hands it the latest
known price for a symbol, or None when there is none.
"""

import threading
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Optional

from ..utils.numeric import to_price


class PriceSource(ABC):
    """Supplies the latest market price of a symbol."""

    @abstractmethod
    def get_price(self, symbol: str) -> Optional[Decimal]:
        """Latest price, or None when unknown."""
        pass


class StaticPriceSource(PriceSource):
    """In-memory prices, set by the caller."""

    def __init__(self, prices: Optional[dict[str, Any]] = None):
        self._lock = threading.Lock()
        self._prices: dict[str, Decimal] = {}
        for symbol, price in (prices or {}).items():
            self.update(symbol, price)

    def update(self, symbol: str, price: Any) -> Decimal:
        """
        Record a price.

        Raises:
            InvalidPrice: If price is not positive
        """
        value = to_price(price, "price")
        with self._lock:
            self._prices[symbol] = value
        return value

    def remove(self, symbol: str) -> None:
        with self._lock:
            self._prices.pop(symbol, None)

    def get_price(self, symbol: str) -> Optional[Decimal]:
        with self._lock:
            return self._prices.get(symbol)
