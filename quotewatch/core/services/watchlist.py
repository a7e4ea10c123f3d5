"""Watchlist refresh session."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable, Sequence

import httpx

from quotewatch.core.config import QuoteWatchConfig, get_default_config
from quotewatch.core.exceptions import SymbolValidationError
from quotewatch.core.http_adapter import HttpClient, HttpConfig
from quotewatch.core.logging import configure_logging, log_context, logger
from quotewatch.core.models import (
    FetchFailure,
    IndicatorSnapshot,
    Quote,
    QuoteBatch,
    SortDirection,
    SortOrder,
)
from quotewatch.core.monitoring import MetricsCollector
from quotewatch.core.providers import FmpValuationProvider, YahooChartProvider
from quotewatch.core.services import indicators
from quotewatch.core.services.export import ExportFormat, export_quotes
from quotewatch.core.services.fetch_orchestrator import FetchOrchestrator
from quotewatch.core.services.history import PriceHistoryStore
from quotewatch.core.services.symbol_normalization import SymbolNormalizer

BatchCallback = Callable[[QuoteBatch], Awaitable[None] | None]

_SORT_KEYS: dict[SortOrder, Callable[[Quote], object]] = {
    SortOrder.SYMBOL: lambda quote: quote.symbol,
    SortOrder.NAME: lambda quote: quote.name,
    SortOrder.PRICE: lambda quote: quote.price,
    SortOrder.CHANGE: lambda quote: quote.change,
    SortOrder.CHANGE_PERCENT: lambda quote: quote.change_percent,
    SortOrder.VOLUME: lambda quote: quote.volume,
    # a missing market cap orders below every known one
    SortOrder.MARKET_CAP: lambda quote: (quote.market_cap is not None, quote.market_cap or 0),
}


def sort_quotes(
    quotes: Sequence[Quote],
    order: SortOrder = SortOrder.SYMBOL,
    direction: SortDirection = SortDirection.ASCENDING,
) -> list[Quote]:
    """Return ``quotes`` ordered by one field; ties keep their current order."""
    return sorted(quotes, key=_SORT_KEYS[order], reverse=direction is SortDirection.DESCENDING)


def build_orchestrator(
    config: QuoteWatchConfig,
    http_client: HttpClient,
    metrics: MetricsCollector | None = None,
) -> FetchOrchestrator:
    """Wire the Yahoo quote provider and FMP valuation provider onto one client."""
    providers = config.providers
    return FetchOrchestrator(
        quote_provider=YahooChartProvider(http_client, chart_url=providers.chart_url, timeout=providers.timeout),
        valuation_provider=FmpValuationProvider(
            http_client,
            api_key=providers.fmp_api_key,
            profile_url=providers.profile_url,
            timeout=providers.valuation_timeout,
        ),
        concurrency_limit=providers.max_concurrency,
        metrics=metrics,
    )


class WatchlistSession:
    """Holds the watchlist, the latest batch and the rolling price history.

    ``symbols`` keeps the entries as the user typed them; normalization happens
    in the orchestrator so failures are reported under the typed symbol.
    ``quotes`` and ``failures`` are replaced wholesale by each completed
    refresh. History is only written once a batch is final, so a refresh that
    is cancelled part way leaves every piece of state untouched.
    """

    def __init__(
        self,
        symbols: Iterable[str],
        config: QuoteWatchConfig | None = None,
        orchestrator: FetchOrchestrator | None = None,
        history: PriceHistoryStore | None = None,
        http_client: HttpClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config if config is not None else get_default_config()
        # an empty store is falsy, so compare against None
        self.history = history if history is not None else PriceHistoryStore(self.config.history.capacity)
        self._http_client = http_client
        if orchestrator is None:
            if self._http_client is None:
                self._http_client = HttpClient(
                    HttpConfig(timeout=self.config.providers.timeout, user_agent=self.config.providers.user_agent)
                )
            orchestrator = build_orchestrator(self.config, self._http_client)
        self.orchestrator = orchestrator
        self._clock = clock

        self.symbols: list[str] = []
        for symbol in symbols:
            self.add_symbol(symbol)

        self.quotes: list[Quote] = []
        self.failures: list[FetchFailure] = []
        self.last_refresh: float | None = None
        self.iteration = 0
        self.refresh_interval = self.config.refresh.interval
        self.max_iterations = self.config.refresh.max_iterations
        self.sort_order = SortOrder.parse(self.config.display.sort_by)
        self.sort_direction = (
            SortDirection.DESCENDING if self.config.display.sort_descending else SortDirection.ASCENDING
        )

    async def __aenter__(self) -> "WatchlistSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    @property
    def normalizer(self) -> SymbolNormalizer:
        return self.orchestrator.normalizer

    def _key(self, symbol: str) -> str:
        # invalid entries are keyed by their raw text
        try:
            return self.normalizer.normalize(symbol).symbol
        except SymbolValidationError:
            return symbol

    async def aclose(self) -> None:
        """Close the HTTP client if the session holds one."""
        if self._http_client is not None:
            await self._http_client.close()

    def needs_refresh(self) -> bool:
        """Whether ``refresh_interval`` has elapsed since the last refresh."""
        if self.last_refresh is None:
            return True
        return self._clock() - self.last_refresh >= self.refresh_interval

    def should_stop(self) -> bool:
        """Whether ``max_iterations`` refreshes have completed; 0 means never."""
        return self.max_iterations > 0 and self.iteration >= self.max_iterations

    async def refresh(self) -> QuoteBatch:
        """Run one fetch cycle and commit its results.

        Returns:
            QuoteBatch: the batch as the orchestrator produced it, in completion order
        """
        if not self.symbols:
            return QuoteBatch()

        with log_context(iteration=self.iteration + 1):
            batch = await self.orchestrator.fetch(self.symbols, self.config.providers.max_concurrency)
            self.quotes = sort_quotes(batch.quotes, self.sort_order, self.sort_direction)
            self.failures = list(batch.failures)
            self.history.record_batch(batch)
            self.last_refresh = self._clock()
            self.iteration += 1
            if batch.failures:
                logger.warning(
                    "Refresh {iteration} finished with failures: {failed}",
                    iteration=self.iteration,
                    failed=batch.failed_symbols,
                )
        return batch

    async def run(self, on_batch: BatchCallback | None = None) -> None:
        """Refresh every ``refresh_interval`` seconds until ``max_iterations`` is reached."""
        while not self.should_stop():
            if self.needs_refresh():
                batch = await self.refresh()
                if on_batch is not None:
                    result = on_batch(batch)
                    if asyncio.iscoroutine(result):
                        await result
                if not self.symbols:
                    return
                continue
            remaining = self.refresh_interval - (self._clock() - (self.last_refresh or 0.0))
            await asyncio.sleep(max(remaining, 0.0))

    def sort_quotes(self) -> None:
        """Re-order ``quotes`` by the current sort order and direction."""
        self.quotes = sort_quotes(self.quotes, self.sort_order, self.sort_direction)

    def toggle_sort_direction(self) -> None:
        """Flip between ascending and descending and re-sort."""
        self.sort_direction = self.sort_direction.toggle()
        self.sort_quotes()

    def next_sort_order(self) -> None:
        """Advance to the next sort field, keeping the direction."""
        self.sort_order = self.sort_order.next()
        self.sort_quotes()

    def set_sort_order(self, order: SortOrder) -> None:
        """Sort by ``order``; choosing the current order flips the direction.

        A newly chosen order starts descending.
        """
        if order is self.sort_order:
            self.sort_direction = self.sort_direction.toggle()
        else:
            self.sort_order = order
            self.sort_direction = SortDirection.DESCENDING
        self.sort_quotes()

    def export(self, export_format: ExportFormat | str = ExportFormat.TEXT) -> str:
        """Render the current quotes in display order."""
        return export_quotes(self.quotes, export_format)

    def snapshot_indicators(self, symbol: str) -> IndicatorSnapshot:
        """Indicators over the stored history of ``symbol`` (raw or normalized)."""
        key = self._key(symbol)
        return indicators.snapshot(key, self.history.get(key), self.config.indicators)

    def add_symbol(self, symbol: str) -> None:
        """Append ``symbol`` unless an entry with the same normalized form exists."""
        key = self._key(symbol)
        if all(self._key(existing) != key for existing in self.symbols):
            self.symbols.append(symbol)

    def remove_symbol(self, symbol: str) -> None:
        """Drop every entry normalizing like ``symbol`` and its current quote."""
        key = self._key(symbol)
        self.symbols = [entry for entry in self.symbols if self._key(entry) != key]
        self.quotes = [quote for quote in self.quotes if quote.symbol != key]

    def time_since_refresh(self) -> str:
        """Age of the last refresh as ``never``, ``Ns ago`` or ``Nm ago``."""
        if self.last_refresh is None:
            return "never"
        elapsed = int(self._clock() - self.last_refresh)
        if elapsed < 60:
            return f"{elapsed}s ago"
        return f"{elapsed // 60}m ago"


def create_session(
    symbols: Iterable[str],
    config: QuoteWatchConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    metrics: MetricsCollector | None = None,
    setup_logging: bool = False,
) -> WatchlistSession:
    """Create a session backed by the default Yahoo and FMP providers.

    Args:
        symbols: watchlist entries as typed
        config: defaults to ``get_default_config()``
        transport: optional httpx transport, e.g. ``httpx.MockTransport``
        metrics: collector for provider and batch metrics
        setup_logging: apply ``config.logging`` to the global logger
    """
    config = config if config is not None else get_default_config()
    if setup_logging:
        configure_logging(
            config.logging.level,
            file_output=bool(config.logging.file),
            file_path=config.logging.file,
        )
    http_client = HttpClient(
        HttpConfig(timeout=config.providers.timeout, user_agent=config.providers.user_agent),
        transport=transport,
    )
    return WatchlistSession(
        symbols,
        config=config,
        orchestrator=build_orchestrator(config, http_client, metrics=metrics),
        http_client=http_client,
    )
