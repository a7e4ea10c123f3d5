"""Exception handling module."""

from quotewatch.core.exceptions.base import (
    ConfigurationError,
    DataValidationError,
    PermanentProviderError,
    ProviderError,
    QuoteWatchError,
    RateLimitError,
    SymbolValidationError,
    TransientProviderError,
)

__all__ = [
    "QuoteWatchError",
    "ConfigurationError",
    "DataValidationError",
    "SymbolValidationError",
    "ProviderError",
    "TransientProviderError",
    "RateLimitError",
    "PermanentProviderError",
]
