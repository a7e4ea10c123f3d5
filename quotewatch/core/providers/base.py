"""Provider adapter base classes."""

from abc import ABC, abstractmethod

from quotewatch.core.http_adapter import HttpClient
from quotewatch.core.models import Quote


class HttpProvider(ABC):
    """Provider backed by the session's shared HTTP client."""

    def __init__(self, name: str, http_client: HttpClient):
        """Initialise the provider.

        Args:
            name: provider name used in errors, logs and metrics
            http_client: shared client, never owned or closed by the provider
        """
        self.name = name
        self.http_client = http_client


class QuoteProvider(HttpProvider):
    """Source of core quote fields, one request per symbol."""

    @abstractmethod
    async def fetch_quote(self, symbol: str) -> Quote:
        """Fetch a quote for an already normalized symbol.

        Raises:
            ProviderError: the symbol could not be quoted
        """


class ValuationProvider(HttpProvider):
    """Source of market capitalization, one request per symbol."""

    @abstractmethod
    async def fetch_market_cap(self, symbol: str) -> int:
        """Fetch the market capitalization for ``symbol``.

        Raises:
            ProviderError: no usable value was returned
        """
