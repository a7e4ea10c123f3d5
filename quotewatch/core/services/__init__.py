"""Fetch, history and indicator services."""

from quotewatch.core.services import indicators
from quotewatch.core.services.export import ExportFormat, export_quotes, format_market_cap, format_volume
from quotewatch.core.services.fetch_orchestrator import (
    DEFAULT_CONCURRENCY,
    INVALID_SYMBOL_REASON,
    FetchOrchestrator,
)
from quotewatch.core.services.history import PriceHistoryStore
from quotewatch.core.services.symbol_normalization import (
    SymbolNormalizer,
    expand_symbol,
    get_symbol_normalizer,
    is_valid_symbol,
)
from quotewatch.core.services.watchlist import WatchlistSession, build_orchestrator, create_session, sort_quotes

__all__ = [
    "indicators",
    "ExportFormat",
    "export_quotes",
    "format_market_cap",
    "format_volume",
    "DEFAULT_CONCURRENCY",
    "INVALID_SYMBOL_REASON",
    "FetchOrchestrator",
    "PriceHistoryStore",
    "SymbolNormalizer",
    "expand_symbol",
    "get_symbol_normalizer",
    "is_valid_symbol",
    "WatchlistSession",
    "build_orchestrator",
    "create_session",
    "sort_quotes",
]
