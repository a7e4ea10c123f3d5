"""
HTTP client shared by the provider adapters.

One ``httpx.AsyncClient`` is created lazily and shared read-only by every
concurrent fetch unit of a session. Transport failures, status codes and
undecodable bodies are translated into the provider error taxonomy here so
adapters only deal with parsed payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from quotewatch.core.config.settings import BROWSER_USER_AGENT
from quotewatch.core.exceptions import (
    PermanentProviderError,
    RateLimitError,
    TransientProviderError,
)
from quotewatch.core.logging import logger


@dataclass
class HttpConfig:
    """Configuration for HTTP client behavior."""

    timeout: float = 10.0
    user_agent: str = BROWSER_USER_AGENT
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")


def raise_for_provider_status(response: httpx.Response, *, provider: str, symbol: str) -> None:
    """Map a non-2xx response onto the provider error taxonomy."""
    status = response.status_code
    if response.is_success:
        return
    if status == 429:
        retry_after = response.headers.get("Retry-After")
        raise RateLimitError(
            f"{provider} rate limited request for {symbol}",
            provider_name=provider,
            retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
        )
    if status >= 500:
        raise TransientProviderError(
            f"{provider} returned error for {symbol}: {status}",
            provider_name=provider,
            status_code=status,
        )
    raise PermanentProviderError(
        f"{provider} returned error for {symbol}: {status}",
        provider_name=provider,
        status_code=status,
    )


class HttpClient:
    """Lazily created, shared async HTTP client."""

    def __init__(
        self,
        http_config: HttpConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.http_config = http_config if http_config is not None else HttpConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HttpClient":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {
                "User-Agent": self.http_config.user_agent,
                **self.http_config.headers,
            }
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.http_config.timeout),
                follow_redirects=True,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client and cleanup resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get_json(
        self,
        url: str,
        *,
        provider: str,
        symbol: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """GET ``url`` and decode its JSON body.

        Raises:
            TransientProviderError: timeout, connection failure, 429 or 5xx
            PermanentProviderError: other 4xx or an undecodable body
        """
        client = self._ensure_client()
        request_timeout = httpx.Timeout(timeout) if timeout is not None else httpx.USE_CLIENT_DEFAULT
        try:
            response = await client.get(url, params=params, timeout=request_timeout)
        except httpx.TimeoutException as exc:
            raise TransientProviderError(
                f"Timed out fetching {symbol} from {provider}",
                provider_name=provider,
            ) from exc
        except httpx.TransportError as exc:
            raise TransientProviderError(
                f"Failed to fetch {symbol} from {provider}: {exc}",
                provider_name=provider,
            ) from exc

        logger.debug("{provider} answered {status} for {symbol}", provider=provider, status=response.status_code, symbol=symbol)
        raise_for_provider_status(response, provider=provider, symbol=symbol)

        try:
            return response.json()
        except ValueError as exc:
            raise PermanentProviderError(
                f"Failed to parse response for {symbol} from {provider}",
                provider_name=provider,
                status_code=response.status_code,
            ) from exc
