"""Data models module."""

from quotewatch.core.models.market import MarketState, QuoteType, SortDirection, SortOrder
from quotewatch.core.models.quote import (
    FetchFailure,
    IndicatorSnapshot,
    MacdResult,
    Quote,
    QuoteBatch,
)
from quotewatch.core.models.symbols import NormalizedSymbol

__all__ = [
    "MarketState",
    "QuoteType",
    "SortOrder",
    "SortDirection",
    "Quote",
    "FetchFailure",
    "QuoteBatch",
    "MacdResult",
    "IndicatorSnapshot",
    "NormalizedSymbol",
]
