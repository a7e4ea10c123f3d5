"""Technical indicators over an oldest-first price sequence.

All functions are pure: the same prices always give the same result and
nothing is cached between calls. A result of ``None`` means the sequence is
still shorter than the indicator's warm-up.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from quotewatch.core.config.settings import IndicatorConfig
from quotewatch.core.models import IndicatorSnapshot, MacdResult

RSI_PERIOD = 14
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9


def _check_period(period: int, name: str = "period") -> None:
    if period < 1:
        raise ValueError(f"{name} must be positive, got {period}")


def sma(prices: Sequence[float], period: int) -> float | None:
    """Arithmetic mean of the most recent ``period`` prices."""
    _check_period(period)
    if len(prices) < period:
        return None
    values = list(prices)[-period:]
    return math.fsum(values) / period


def ema_series(prices: Sequence[float], period: int) -> list[float]:
    """EMA values from the seed onward.

    The seed is the mean of the oldest ``period`` prices; each later price
    applies ``ema = (price - ema) * 2 / (period + 1) + ema``. The first element
    lines up with ``prices[period - 1]``.
    """
    _check_period(period)
    values = list(prices)
    if len(values) < period:
        return []
    alpha = 2.0 / (period + 1)
    current = math.fsum(values[:period]) / period
    series = [current]
    for price in values[period:]:
        current = (price - current) * alpha + current
        series.append(current)
    return series


def ema(prices: Sequence[float], period: int) -> float | None:
    """Latest exponential moving average, seeded with the SMA of the oldest ``period`` prices."""
    series = ema_series(prices, period)
    return series[-1] if series else None


def rsi(prices: Sequence[float], period: int = RSI_PERIOD) -> float | None:
    """Relative Strength Index with Wilder smoothing.

    The first ``period`` deltas seed the average gain and loss with a simple
    mean; every later delta is folded in as ``(avg * (period - 1) + x) / period``.
    An average loss of zero gives exactly 100, which also covers a flat window.
    Needs ``period + 1`` prices.
    """
    _check_period(period)
    values = list(prices)
    if len(values) < period + 1:
        return None

    deltas = [current - previous for previous, current in zip(values, values[1:])]
    gains = [delta if delta > 0 else 0.0 for delta in deltas]
    losses = [-delta if delta < 0 else 0.0 for delta in deltas]

    avg_gain = math.fsum(gains[:period]) / period
    avg_loss = math.fsum(losses[:period]) / period
    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_loss == 0:
        return 100.0
    return 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)


def macd_series(prices: Sequence[float], fast: int = MACD_FAST, slow: int = MACD_SLOW) -> list[float]:
    """MACD line values for every point where both EMAs exist, oldest first."""
    _check_period(fast, "fast")
    _check_period(slow, "slow")
    if fast >= slow:
        raise ValueError(f"fast period ({fast}) must be shorter than slow period ({slow})")
    slow_series = ema_series(prices, slow)
    if not slow_series:
        return []
    fast_series = ema_series(prices, fast)
    offset = slow - fast
    return [fast_value - slow_value for fast_value, slow_value in zip(fast_series[offset:], slow_series)]


def macd(
    prices: Sequence[float],
    fast: int = MACD_FAST,
    slow: int = MACD_SLOW,
    signal: int = MACD_SIGNAL,
) -> MacdResult | None:
    """MACD line, signal and histogram.

    The line is ``EMA(fast) - EMA(slow)`` over the whole sequence. The signal is a
    ``signal``-period EMA of the MACD values rebuilt across the same sequence, so it
    is ``None`` (with the histogram) until ``slow + signal - 1`` prices exist.
    """
    _check_period(signal, "signal")
    line_series = macd_series(prices, fast, slow)
    if not line_series:
        return None
    line = line_series[-1]
    signal_value = ema(line_series, signal)
    histogram = line - signal_value if signal_value is not None else None
    return MacdResult(line=line, signal=signal_value, histogram=histogram)


def snapshot(symbol: str, prices: Sequence[float], settings: IndicatorConfig | None = None) -> IndicatorSnapshot:
    """Compute every indicator for one symbol's history."""
    settings = settings if settings is not None else IndicatorConfig()
    macd_result = macd(prices, settings.macd_fast, settings.macd_slow, settings.macd_signal)
    return IndicatorSnapshot(
        symbol=symbol,
        sma=sma(prices, settings.sma_period),
        ema=ema(prices, settings.ema_period),
        rsi=rsi(prices, settings.rsi_period),
        macd_line=macd_result.line if macd_result else None,
        macd_signal=macd_result.signal if macd_result else None,
        macd_histogram=macd_result.histogram if macd_result else None,
        sma_period=settings.sma_period,
        ema_period=settings.ema_period,
        rsi_period=settings.rsi_period,
        history_length=len(prices),
    )
