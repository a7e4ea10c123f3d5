"""Yahoo Finance v8 chart API quote provider."""

from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote as url_quote

from quotewatch.core.config.settings import YAHOO_CHART_URL
from quotewatch.core.exceptions import PermanentProviderError
from quotewatch.core.http_adapter import HttpClient
from quotewatch.core.logging import logger
from quotewatch.core.models import MarketState, Quote, QuoteType

from .base import QuoteProvider


class YahooChartProvider(QuoteProvider):
    """Quote provider using the single-symbol v8 chart endpoint."""

    def __init__(self, http_client: HttpClient, chart_url: str = YAHOO_CHART_URL, timeout: float | None = None):
        super().__init__("yahoo", http_client)
        self.chart_url = chart_url.rstrip("/")
        self.timeout = timeout

    def _build_request_url(self, symbol: str) -> str:
        # symbol sits in the path; ^VIX and friends must be encoded
        return f"{self.chart_url}/{url_quote(symbol, safe='')}"

    async def fetch_quote(self, symbol: str) -> Quote:
        payload = await self.http_client.get_json(
            self._build_request_url(symbol),
            provider=self.name,
            symbol=symbol,
            params={"interval": "1d", "range": "1d"},
            timeout=self.timeout,
        )
        meta = self._extract_meta(payload, symbol)
        return self._parse_meta(meta, symbol)

    def _extract_meta(self, payload: Any, symbol: str) -> dict[str, Any]:
        chart = payload.get("chart") if isinstance(payload, dict) else None
        if not isinstance(chart, dict):
            raise PermanentProviderError(f"Malformed chart response for {symbol}", provider_name=self.name)

        error = chart.get("error")
        if error:
            description = error.get("description", error) if isinstance(error, dict) else error
            raise PermanentProviderError(f"Yahoo Finance error for {symbol}: {description}", provider_name=self.name)

        results = chart.get("result") or []
        first = results[0] if isinstance(results, list) and results else None
        if not isinstance(first, dict) or not isinstance(first.get("meta"), dict):
            raise PermanentProviderError(
                f"No data returned for {symbol}. Server may not be responding or symbol may be invalid.",
                provider_name=self.name,
            )
        return first["meta"]

    def _parse_meta(self, meta: dict[str, Any], symbol: str) -> Quote:
        if meta.get("regularMarketPrice") is None:
            raise PermanentProviderError(f"No price returned for {symbol}", provider_name=self.name)
        try:
            price = float(meta["regularMarketPrice"])
            previous_close = float(meta.get("chartPreviousClose") or meta.get("previousClose") or 0.0)
            change = price - previous_close
            change_percent = change / previous_close * 100.0 if previous_close > 0 else 0.0

            market_state = MarketState.CLOSED
            if meta.get("marketState"):
                market_state = MarketState.parse(meta["marketState"])

            market_time = meta.get("regularMarketTime")
            timestamp = (
                datetime.fromtimestamp(int(market_time), tz=timezone.utc)
                if market_time is not None
                else datetime.now(timezone.utc)
            )
            market_cap = meta.get("marketCap")

            return Quote(
                symbol=symbol,
                name=meta.get("shortName") or meta.get("longName") or "Unknown",
                price=price,
                change=change,
                change_percent=change_percent,
                previous_close=previous_close,
                day_high=float(meta.get("regularMarketDayHigh") or 0.0),
                day_low=float(meta.get("regularMarketDayLow") or 0.0),
                year_high=float(meta.get("fiftyTwoWeekHigh") or 0.0),
                year_low=float(meta.get("fiftyTwoWeekLow") or 0.0),
                volume=int(meta.get("regularMarketVolume") or 0),
                market_cap=int(market_cap) if market_cap is not None else None,
                currency=meta.get("currency") or "USD",
                exchange=meta.get("exchangeName") or "",
                quote_type=self._parse_quote_type(meta.get("instrumentType"), symbol),
                market_state=market_state,
                timestamp=timestamp,
            )
        except (TypeError, ValueError, OverflowError) as exc:
            raise PermanentProviderError(
                f"Failed to parse response for {symbol}: {exc}",
                provider_name=self.name,
            ) from exc

    def _parse_quote_type(self, text: Any, symbol: str) -> QuoteType | None:
        if not text:
            return None
        try:
            return QuoteType.parse(text)
        except ValueError:
            logger.info("Unrecognised instrument type {instrument_type} for {symbol}", instrument_type=text, symbol=symbol)
            return None
