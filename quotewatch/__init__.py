"""quotewatch - watchlist quotes with rolling technical indicators.

Fetches quotes for many symbols concurrently under a fixed concurrency cap,
keeps a bounded price history per symbol and derives SMA, EMA, RSI and MACD
from it on demand.
"""

from quotewatch.core.config import QuoteWatchConfig, get_default_config
from quotewatch.core.exceptions import (
    ConfigurationError,
    ProviderError,
    QuoteWatchError,
    SymbolValidationError,
)
from quotewatch.core.models import (
    FetchFailure,
    IndicatorSnapshot,
    MarketState,
    Quote,
    QuoteBatch,
    QuoteType,
    SortDirection,
    SortOrder,
)
from quotewatch.core.services import (
    ExportFormat,
    FetchOrchestrator,
    PriceHistoryStore,
    SymbolNormalizer,
    WatchlistSession,
    create_session,
    export_quotes,
    indicators,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "QuoteWatchConfig",
    "get_default_config",
    "QuoteWatchError",
    "ConfigurationError",
    "ProviderError",
    "SymbolValidationError",
    "Quote",
    "QuoteBatch",
    "FetchFailure",
    "IndicatorSnapshot",
    "MarketState",
    "QuoteType",
    "SortOrder",
    "SortDirection",
    "FetchOrchestrator",
    "PriceHistoryStore",
    "SymbolNormalizer",
    "WatchlistSession",
    "create_session",
    "ExportFormat",
    "export_quotes",
    "indicators",
]
