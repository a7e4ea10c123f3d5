"""Rolling per-symbol price history."""

from __future__ import annotations

import math
from collections import deque

from quotewatch.core.exceptions import ConfigurationError, DataValidationError
from quotewatch.core.logging import logger
from quotewatch.core.models import QuoteBatch

DEFAULT_CAPACITY = 100


class PriceHistoryStore:
    """Bounded, oldest-first price sequences keyed by symbol.

    Writes come from the single consumer of a finished batch; readers get
    immutable copies, so indicator code never sees a half-applied refresh.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ConfigurationError(f"history capacity must be at least 1, got {capacity}", setting="history.capacity")
        self.capacity = capacity
        self._prices: dict[str, deque[float]] = {}

    def record(self, symbol: str, price: float) -> None:
        """Append ``price``, evicting the oldest entry once over capacity."""
        if not math.isfinite(price):
            raise DataValidationError(
                f"Refusing non-finite price for {symbol}",
                validation_errors={"symbol": symbol, "price": price},
            )
        history = self._prices.get(symbol)
        if history is None:
            history = self._prices[symbol] = deque(maxlen=self.capacity)
        history.append(float(price))

    def record_batch(self, batch: QuoteBatch) -> int:
        """Record the price of every quote in a finalized batch.

        Returns:
            int: number of prices recorded
        """
        recorded = 0
        for quote in batch.quotes:
            try:
                self.record(quote.symbol, quote.price)
            except DataValidationError as exc:
                logger.warning("Skipping history update for {symbol}: {reason}", symbol=quote.symbol, reason=exc.message)
                continue
            recorded += 1
        return recorded

    def get(self, symbol: str) -> tuple[float, ...]:
        """Oldest-first prices for ``symbol``; empty for an unknown symbol."""
        history = self._prices.get(symbol)
        return tuple(history) if history is not None else ()

    def symbols(self) -> list[str]:
        """Symbols with at least one recorded price, in first-seen order."""
        return list(self._prices)

    def clear(self, symbol: str | None = None) -> None:
        """Forget one symbol's history, or every symbol's when ``symbol`` is None."""
        if symbol is None:
            self._prices.clear()
        else:
            self._prices.pop(symbol, None)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._prices

    def __len__(self) -> int:
        return len(self._prices)
