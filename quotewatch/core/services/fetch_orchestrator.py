"""Bounded concurrent quote fetching."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence

from quotewatch.core.exceptions import ConfigurationError, ProviderError
from quotewatch.core.logging import logger
from quotewatch.core.models import FetchFailure, Quote, QuoteBatch
from quotewatch.core.monitoring import MetricsCollector, get_metrics_collector
from quotewatch.core.providers import QuoteProvider, ValuationProvider
from quotewatch.core.services.symbol_normalization import SymbolNormalizer, get_symbol_normalizer

DEFAULT_CONCURRENCY = 12
INVALID_SYMBOL_REASON = "invalid symbol format"


def _check_limit(limit: int) -> int:
    if limit < 1:
        raise ConfigurationError(
            f"concurrency limit must be at least 1, got {limit}",
            setting="providers.max_concurrency",
        )
    return limit


class FetchOrchestrator:
    """Fetches quotes for many symbols with at most ``concurrency_limit`` in flight.

    Each symbol is one unit of work: quote fetch, then a valuation fetch when the
    quote carries no market cap, both under the same concurrency slot. Units never
    wait on each other; a failing or slow symbol only affects its own outcome.
    """

    def __init__(
        self,
        quote_provider: QuoteProvider,
        valuation_provider: ValuationProvider | None = None,
        normalizer: SymbolNormalizer | None = None,
        concurrency_limit: int = DEFAULT_CONCURRENCY,
        metrics: MetricsCollector | None = None,
    ):
        """Initialise the orchestrator.

        Args:
            quote_provider: primary quote source
            valuation_provider: market cap fallback, optional
            normalizer: symbol normalizer, defaults to the shared instance
            concurrency_limit: default maximum of units in flight

        Raises:
            ConfigurationError: ``concurrency_limit`` is below 1
        """
        self.quote_provider = quote_provider
        self.valuation_provider = valuation_provider
        self.normalizer = normalizer if normalizer is not None else get_symbol_normalizer()
        self.concurrency_limit = _check_limit(concurrency_limit)
        self.metrics = metrics if metrics is not None else get_metrics_collector()

    async def fetch(self, symbols: Sequence[str], concurrency_limit: int | None = None) -> QuoteBatch:
        """Fetch one refresh cycle worth of quotes.

        Invalid symbols are reported immediately and never scheduled. Outcomes of
        scheduled symbols are appended in completion order. Returns only once every
        unit has finished.

        Args:
            symbols: raw symbols, normalized here
            concurrency_limit: overrides the instance default for this call

        Returns:
            QuoteBatch: quotes and failures, one entry per distinct symbol
        """
        limit = _check_limit(self.concurrency_limit if concurrency_limit is None else concurrency_limit)
        valid, invalid = self.normalizer.partition(symbols)

        batch = QuoteBatch()
        for raw in invalid:
            self.metrics.record_symbol_normalization("invalid")
            batch.failures.append(FetchFailure(symbol=raw, reason=INVALID_SYMBOL_REASON))
        for normalized in valid:
            self.metrics.record_symbol_normalization("aliased" if normalized.aliased else "valid")

        if invalid:
            logger.info("Skipping {count} invalid symbols: {invalid}", count=len(invalid), invalid=invalid)

        if valid:
            semaphore = asyncio.Semaphore(limit)
            tasks = [
                asyncio.create_task(self._run_unit(normalized.symbol, semaphore), name=f"fetch:{normalized.symbol}")
                for normalized in valid
            ]
            try:
                for next_done in asyncio.as_completed(tasks):
                    outcome = await next_done
                    if isinstance(outcome, Quote):
                        batch.quotes.append(outcome)
                    else:
                        batch.failures.append(outcome)
            finally:
                # an abandoned batch must not leave units running
                for task in tasks:
                    if not task.done():
                        task.cancel()

        self.metrics.observe_batch(len(batch.quotes), len(batch.failures))
        logger.info(
            "Fetched {quotes} quotes, {failures} failures (limit {limit})",
            quotes=len(batch.quotes),
            failures=len(batch.failures),
            limit=limit,
        )
        return batch

    async def _run_unit(self, symbol: str, semaphore: asyncio.Semaphore) -> Quote | FetchFailure:
        async with semaphore:
            started = time.perf_counter()
            try:
                quote = await self.quote_provider.fetch_quote(symbol)
            except ProviderError as exc:
                self._observe(self.quote_provider.name, started, success=False)
                logger.warning(
                    "Quote fetch failed for {symbol}: {reason}",
                    symbol=symbol,
                    reason=exc.message,
                    provider=exc.provider_name,
                )
                return FetchFailure(symbol=symbol, reason=exc.message)
            except Exception as exc:
                self._observe(self.quote_provider.name, started, success=False)
                logger.exception("Unexpected error fetching {symbol}", symbol=symbol)
                return FetchFailure(symbol=symbol, reason=f"Unexpected error fetching {symbol}: {exc}")
            self._observe(self.quote_provider.name, started, success=True)

            if quote.needs_valuation and self.valuation_provider is not None:
                quote = await self._attach_market_cap(quote, symbol)
            return quote

    async def _attach_market_cap(self, quote: Quote, symbol: str) -> Quote:
        # valuation failure degrades the quote, it never fails the symbol
        provider = self.valuation_provider
        started = time.perf_counter()
        try:
            market_cap = await provider.fetch_market_cap(symbol)
        except ProviderError as exc:
            self._observe(provider.name, started, success=False)
            logger.warning(
                "Valuation fetch failed for {symbol}, market cap left empty: {reason}",
                symbol=symbol,
                reason=exc.message,
                provider=provider.name,
            )
            return quote.model_copy(update={"market_cap": None})
        except Exception:
            self._observe(provider.name, started, success=False)
            logger.exception("Unexpected error fetching market cap for {symbol}", symbol=symbol)
            return quote.model_copy(update={"market_cap": None})
        self._observe(provider.name, started, success=True)
        return quote.model_copy(update={"market_cap": market_cap})

    def _observe(self, provider: str, started: float, *, success: bool) -> None:
        self.metrics.observe_fetch(provider, time.perf_counter() - started, success=success)
