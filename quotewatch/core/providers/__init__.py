"""Quote and valuation provider adapters."""

from quotewatch.core.providers.base import HttpProvider, QuoteProvider, ValuationProvider
from quotewatch.core.providers.fmp import FmpValuationProvider
from quotewatch.core.providers.yahoo import YahooChartProvider

__all__ = [
    "HttpProvider",
    "QuoteProvider",
    "ValuationProvider",
    "YahooChartProvider",
    "FmpValuationProvider",
]
