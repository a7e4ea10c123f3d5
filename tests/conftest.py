"""Pytest configuration for the quotewatch test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest
from prometheus_client import CollectorRegistry

from quotewatch.core.exceptions import ProviderError
from quotewatch.core.models import Quote
from quotewatch.core.monitoring import MetricsCollector
from quotewatch.core.providers import QuoteProvider, ValuationProvider


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line options for controlling integration tests."""

    parser.addoption(
        "--quotewatch-run-integration",
        action="store_true",
        default=False,
        help="Run quotewatch integration tests that require external services.",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly requested."""

    if config.getoption("--quotewatch-run-integration"):
        return

    skip_integration = pytest.mark.skip(
        reason="integration tests require --quotewatch-run-integration",
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


class FakeQuoteProvider(QuoteProvider):
    """In-memory quote provider recording call order and concurrency."""

    def __init__(
        self,
        prices: dict[str, float] | None = None,
        errors: dict[str, Exception] | None = None,
        market_caps: dict[str, int | None] | None = None,
        delay: float = 0.0,
        before_return: Callable[[str], object] | None = None,
    ):
        super().__init__("fake-quotes", http_client=None)  # type: ignore[arg-type]
        self.prices = prices or {}
        self.errors = errors or {}
        self.market_caps = market_caps or {}
        self.delay = delay
        self.before_return = before_return
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_quote(self, symbol: str) -> Quote:
        self.calls.append(symbol)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.before_return is not None:
                waiter = self.before_return(symbol)
                if asyncio.iscoroutine(waiter):
                    await waiter
            if symbol in self.errors:
                raise self.errors[symbol]
            return Quote(
                symbol=symbol,
                price=self.prices.get(symbol, 100.0),
                market_cap=self.market_caps.get(symbol, 0),
            )
        finally:
            self.in_flight -= 1


class FakeValuationProvider(ValuationProvider):
    def __init__(self, market_caps: dict[str, int] | None = None, errors: dict[str, Exception] | None = None):
        super().__init__("fake-valuation", http_client=None)  # type: ignore[arg-type]
        self.market_caps = market_caps or {}
        self.errors = errors or {}
        self.calls: list[str] = []

    async def fetch_market_cap(self, symbol: str) -> int:
        self.calls.append(symbol)
        await asyncio.sleep(0)
        if symbol in self.errors:
            raise self.errors[symbol]
        if symbol not in self.market_caps:
            raise ProviderError(f"No market cap available for {symbol}", provider_name=self.name)
        return self.market_caps[symbol]


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector(registry=CollectorRegistry())
