"""Prometheus metrics helpers for quotewatch refresh cycles."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import DefaultDict

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest


@dataclass
class _ProviderStats:
    """Internal container tracking provider level success and failure counts."""

    total: int = 0
    failures: int = 0


class MetricsCollector:
    """Collects Prometheus metrics for provider calls and refresh batches."""

    def __init__(self, *, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.fetch_latency_seconds = Histogram(
            "quotewatch_fetch_latency_seconds",
            "Latency distribution for upstream provider calls.",
            ("provider",),
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float("inf")),
            registry=self.registry,
        )
        self.fetch_requests_total = Counter(
            "quotewatch_fetch_requests_total",
            "Total count of upstream provider calls.",
            ("provider",),
            registry=self.registry,
        )
        self.fetch_failures_total = Counter(
            "quotewatch_fetch_failures_total",
            "Total count of failed upstream provider calls.",
            ("provider",),
            registry=self.registry,
        )
        self.provider_error_rate = Gauge(
            "quotewatch_provider_error_rate",
            "Error rate for upstream providers since start (0-1 range).",
            ("provider",),
            registry=self.registry,
        )
        self.symbol_normalization_total = Counter(
            "quotewatch_symbol_normalization_total",
            "Symbol normalization outcomes.",
            ("status",),
            registry=self.registry,
        )
        self.batch_quotes = Gauge(
            "quotewatch_batch_quotes",
            "Quotes produced by the most recent refresh.",
            registry=self.registry,
        )
        self.batch_failures = Gauge(
            "quotewatch_batch_failures",
            "Failures produced by the most recent refresh.",
            registry=self.registry,
        )
        self._provider_stats: DefaultDict[str, _ProviderStats] = defaultdict(_ProviderStats)

    def record_symbol_normalization(self, status: str) -> None:
        """Track symbol normalization activity with constrained status labels."""

        label = status if status in _ALLOWED_SYMBOL_STATUSES else "__other__"
        self.symbol_normalization_total.labels(status=label).inc()

    def observe_fetch(self, provider: str, latency_seconds: float, *, success: bool = True) -> None:
        """Record one provider call."""

        self.fetch_latency_seconds.labels(provider=provider).observe(latency_seconds)
        self._record_outcome(provider=provider, success=success)

    def observe_batch(self, quotes: int, failures: int) -> None:
        self.batch_quotes.set(quotes)
        self.batch_failures.set(failures)

    def render(self) -> bytes:
        """Render metrics in Prometheus exposition format."""

        return generate_latest(self.registry)

    def _record_outcome(self, *, provider: str, success: bool) -> None:
        stats = self._provider_stats[provider]
        stats.total += 1
        self.fetch_requests_total.labels(provider=provider).inc()
        if not success:
            stats.failures += 1
            self.fetch_failures_total.labels(provider=provider).inc()
        self.provider_error_rate.labels(provider=provider).set(stats.failures / stats.total)


_DEFAULT_COLLECTOR: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Return the global metrics collector instance."""

    global _DEFAULT_COLLECTOR
    if _DEFAULT_COLLECTOR is None:
        _DEFAULT_COLLECTOR = MetricsCollector()
    return _DEFAULT_COLLECTOR


def configure_metrics_collector(collector: MetricsCollector | None) -> None:
    """Override the global metrics collector for application wiring or tests."""

    global _DEFAULT_COLLECTOR
    _DEFAULT_COLLECTOR = collector


_ALLOWED_SYMBOL_STATUSES = {
    "valid",
    "invalid",
    "aliased",
}
