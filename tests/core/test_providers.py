"""Tests for the Yahoo chart and FMP profile adapters."""

from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest

from quotewatch.core.exceptions import (
    PermanentProviderError,
    RateLimitError,
    TransientProviderError,
)
from quotewatch.core.http_adapter import HttpClient
from quotewatch.core.models import MarketState, QuoteType
from quotewatch.core.providers import FmpValuationProvider, YahooChartProvider


def _chart_payload(**meta_overrides):
    meta = {
        "symbol": "AAPL",
        "shortName": "Apple Inc.",
        "regularMarketPrice": 110.0,
        "chartPreviousClose": 100.0,
        "regularMarketDayHigh": 111.0,
        "regularMarketDayLow": 99.5,
        "fiftyTwoWeekHigh": 199.6,
        "fiftyTwoWeekLow": 80.1,
        "regularMarketVolume": 5_000_000,
        "currency": "USD",
        "exchangeName": "NMS",
        "instrumentType": "EQUITY",
        "regularMarketTime": 1_700_000_000,
        "marketState": "REGULAR",
    }
    meta.update(meta_overrides)
    return {"chart": {"result": [{"meta": meta}], "error": None}}


def _client(handler) -> HttpClient:
    return HttpClient(transport=httpx.MockTransport(handler))


class TestYahooChartProvider:
    @pytest.mark.asyncio
    async def test_parses_chart_meta(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_chart_payload())

        async with _client(handler) as client:
            quote = await YahooChartProvider(client).fetch_quote("AAPL")

        assert quote.symbol == "AAPL"
        assert quote.name == "Apple Inc."
        assert quote.price == 110.0
        assert quote.change == pytest.approx(10.0)
        assert quote.change_percent == pytest.approx(10.0)
        assert quote.volume == 5_000_000
        assert quote.market_cap is None
        assert quote.quote_type is QuoteType.EQUITY
        assert quote.market_state is MarketState.REGULAR
        assert quote.timestamp == datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)
        assert seen[0].url.path == "/v8/finance/chart/AAPL"
        assert seen[0].url.params["interval"] == "1d"
        assert seen[0].url.params["range"] == "1d"
        assert "Mozilla" in seen[0].headers["User-Agent"]

    @pytest.mark.asyncio
    async def test_index_symbol_is_encoded_in_path(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_chart_payload(symbol="^VIX"))

        async with _client(handler) as client:
            await YahooChartProvider(client).fetch_quote("^VIX")

        assert seen[0].url.raw_path.startswith(b"/v8/finance/chart/%5EVIX")

    @pytest.mark.asyncio
    async def test_missing_previous_close_gives_zero_percent(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_chart_payload(chartPreviousClose=None))

        async with _client(handler) as client:
            quote = await YahooChartProvider(client).fetch_quote("AAPL")

        assert quote.previous_close == 0.0
        assert quote.change_percent == 0.0

    @pytest.mark.asyncio
    async def test_extended_session_states(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_chart_payload(marketState="POSTPOST"))

        async with _client(handler) as client:
            quote = await YahooChartProvider(client).fetch_quote("AAPL")

        assert quote.market_state is MarketState.POST

    @pytest.mark.asyncio
    async def test_unknown_market_state_is_malformed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_chart_payload(marketState="HALTED"))

        async with _client(handler) as client:
            with pytest.raises(PermanentProviderError, match="AAPL"):
                await YahooChartProvider(client).fetch_quote("AAPL")

    @pytest.mark.asyncio
    async def test_unknown_instrument_type_is_dropped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_chart_payload(instrumentType="ECNQUOTE"))

        async with _client(handler) as client:
            quote = await YahooChartProvider(client).fetch_quote("AAPL")

        assert quote.quote_type is None

    @pytest.mark.asyncio
    async def test_market_cap_in_meta_is_kept(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_chart_payload(marketCap=2_900_000_000_000))

        async with _client(handler) as client:
            quote = await YahooChartProvider(client).fetch_quote("AAPL")

        assert quote.market_cap == 2_900_000_000_000
        assert quote.needs_valuation is False

    @pytest.mark.asyncio
    async def test_chart_error_payload(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"chart": {"result": None, "error": {"code": "Not Found", "description": "No data found"}}},
            )

        async with _client(handler) as client:
            with pytest.raises(PermanentProviderError, match="Yahoo Finance error for NOPE: No data found"):
                await YahooChartProvider(client).fetch_quote("NOPE")

    @pytest.mark.asyncio
    async def test_empty_result(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"chart": {"result": [], "error": None}})

        async with _client(handler) as client:
            with pytest.raises(PermanentProviderError, match="No data returned for AAPL"):
                await YahooChartProvider(client).fetch_quote("AAPL")

    @pytest.mark.asyncio
    async def test_result_object_instead_of_list(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"chart": {"result": {"meta": {"regularMarketPrice": 1.0}}}})

        async with _client(handler) as client:
            with pytest.raises(PermanentProviderError, match="No data returned for AAPL"):
                await YahooChartProvider(client).fetch_quote("AAPL")

    @pytest.mark.asyncio
    async def test_result_entry_without_meta(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"chart": {"result": [{"meta": "AAPL"}]}})

        async with _client(handler) as client:
            with pytest.raises(PermanentProviderError, match="No data returned for AAPL"):
                await YahooChartProvider(client).fetch_quote("AAPL")

    @pytest.mark.asyncio
    async def test_non_string_market_state_is_malformed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_chart_payload(marketState=5))

        async with _client(handler) as client:
            with pytest.raises(PermanentProviderError, match="Failed to parse response for AAPL"):
                await YahooChartProvider(client).fetch_quote("AAPL")

    @pytest.mark.asyncio
    async def test_non_string_instrument_type_is_dropped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_chart_payload(instrumentType=5))

        async with _client(handler) as client:
            quote = await YahooChartProvider(client).fetch_quote("AAPL")

        assert quote.quote_type is None
        assert quote.price == 110.0

    @pytest.mark.asyncio
    async def test_missing_price(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_chart_payload(regularMarketPrice=None))

        async with _client(handler) as client:
            with pytest.raises(PermanentProviderError, match="No price returned for AAPL"):
                await YahooChartProvider(client).fetch_quote("AAPL")

    @pytest.mark.asyncio
    async def test_malformed_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>not json</html>")

        async with _client(handler) as client:
            with pytest.raises(PermanentProviderError, match="Failed to parse response for AAPL"):
                await YahooChartProvider(client).fetch_quote("AAPL")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, error_type",
        [
            (404, PermanentProviderError),
            (401, PermanentProviderError),
            (429, RateLimitError),
            (500, TransientProviderError),
            (503, TransientProviderError),
        ],
    )
    async def test_status_mapping(self, status, error_type):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, json={})

        async with _client(handler) as client:
            with pytest.raises(error_type) as excinfo:
                await YahooChartProvider(client).fetch_quote("AAPL")

        assert "AAPL" in excinfo.value.message

    @pytest.mark.asyncio
    async def test_rate_limit_is_transient(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, headers={"Retry-After": "30"})

        async with _client(handler) as client:
            with pytest.raises(TransientProviderError) as excinfo:
                await YahooChartProvider(client).fetch_quote("AAPL")

        assert isinstance(excinfo.value, RateLimitError)
        assert excinfo.value.retry_after == 30

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with _client(handler) as client:
            with pytest.raises(TransientProviderError, match="Timed out fetching AAPL"):
                await YahooChartProvider(client).fetch_quote("AAPL")

    @pytest.mark.asyncio
    async def test_connection_error_is_transient(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection reset", request=request)

        async with _client(handler) as client:
            with pytest.raises(TransientProviderError, match="Failed to fetch AAPL"):
                await YahooChartProvider(client).fetch_quote("AAPL")


class TestFmpValuationProvider:
    @pytest.mark.asyncio
    async def test_reads_market_cap_from_profile_list(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"symbol": "AAPL", "mktCap": 2_900_000_000_000}])

        async with _client(handler) as client:
            market_cap = await FmpValuationProvider(client, api_key="secret").fetch_market_cap("AAPL")

        assert market_cap == 2_900_000_000_000
        assert seen[0].url.path == "/api/v3/profile/AAPL"
        assert seen[0].url.params["apikey"] == "secret"

    @pytest.mark.asyncio
    async def test_reads_camel_case_object(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"symbol": "AAPL", "marketCap": 1234})

        async with _client(handler) as client:
            assert await FmpValuationProvider(client).fetch_market_cap("AAPL") == 1234

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [[], {}, [{"symbol": "AAPL"}], [{"mktCap": 0}], "Limit reached"])
    async def test_missing_market_cap(self, payload):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=payload)

        async with _client(handler) as client:
            with pytest.raises(PermanentProviderError, match="AAPL"):
                await FmpValuationProvider(client).fetch_market_cap("AAPL")

    @pytest.mark.asyncio
    async def test_non_numeric_market_cap(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"mktCap": "lots"}])

        async with _client(handler) as client:
            with pytest.raises(PermanentProviderError, match="Malformed market cap for AAPL"):
                await FmpValuationProvider(client).fetch_market_cap("AAPL")

    @pytest.mark.asyncio
    async def test_forbidden_is_permanent(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"Error Message": "Invalid API KEY"})

        async with _client(handler) as client:
            with pytest.raises(PermanentProviderError):
                await FmpValuationProvider(client).fetch_market_cap("AAPL")
