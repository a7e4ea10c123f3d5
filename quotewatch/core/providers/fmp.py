"""Financial Modeling Prep company profile valuation provider."""

from typing import Any

from quotewatch.core.config.settings import FMP_PROFILE_URL
from quotewatch.core.exceptions import PermanentProviderError
from quotewatch.core.http_adapter import HttpClient

from .base import ValuationProvider

_MARKET_CAP_KEYS = ("mktCap", "marketCap")


class FmpValuationProvider(ValuationProvider):
    """Looks up market capitalization from the FMP profile endpoint."""

    def __init__(
        self,
        http_client: HttpClient,
        api_key: str = "demo",
        profile_url: str = FMP_PROFILE_URL,
        timeout: float = 5.0,
    ):
        super().__init__("fmp", http_client)
        self.api_key = api_key
        self.profile_url = profile_url.rstrip("/")
        self.timeout = timeout

    async def fetch_market_cap(self, symbol: str) -> int:
        payload = await self.http_client.get_json(
            f"{self.profile_url}/{symbol}",
            provider=self.name,
            symbol=symbol,
            params={"apikey": self.api_key},
            timeout=self.timeout,
        )
        return self._parse_market_cap(payload, symbol)

    def _parse_market_cap(self, payload: Any, symbol: str) -> int:
        # the profile endpoint answers with a one-element list
        profile = payload[0] if isinstance(payload, list) and payload else payload
        if not isinstance(profile, dict):
            raise PermanentProviderError(f"No profile returned for {symbol}", provider_name=self.name)

        for key in _MARKET_CAP_KEYS:
            value = profile.get(key)
            if value is None:
                continue
            try:
                market_cap = int(value)
            except (TypeError, ValueError) as exc:
                raise PermanentProviderError(
                    f"Malformed market cap for {symbol}: {value!r}",
                    provider_name=self.name,
                ) from exc
            if market_cap > 0:
                return market_cap
        raise PermanentProviderError(f"No market cap available for {symbol}", provider_name=self.name)
