"""Quote, batch and indicator models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_serializer

from .market import MarketState, QuoteType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Quote(BaseModel):
    """Snapshot of one symbol at one refresh."""

    symbol: str
    name: str = "Unknown"
    price: float
    change: float = 0.0
    change_percent: float = 0.0
    previous_close: float = 0.0
    day_high: float = 0.0
    day_low: float = 0.0
    year_high: float = 0.0
    year_low: float = 0.0
    volume: int = 0
    market_cap: int | None = None
    currency: str = "USD"
    exchange: str = ""
    quote_type: QuoteType | None = None
    market_state: MarketState = MarketState.CLOSED
    timestamp: datetime = Field(default_factory=_utcnow)
    fetched_at: datetime = Field(default_factory=_utcnow)

    @property
    def needs_valuation(self) -> bool:
        """Whether the market cap is missing and should be looked up elsewhere."""
        return not self.market_cap

    @field_serializer("timestamp", "fetched_at", when_used="json")
    def serialize_datetime(self, value: datetime) -> str:
        """Serialize datetime to isoformat string."""
        return value.isoformat()


@dataclass(frozen=True, slots=True)
class FetchFailure:
    """A symbol whose fetch pipeline failed, with a short reason."""

    symbol: str
    reason: str


@dataclass
class QuoteBatch:
    """Result of one refresh cycle.

    Every requested symbol lands in exactly one of ``quotes`` or ``failures``.
    Quotes are kept in completion order, not request order.
    """

    quotes: list[Quote] = field(default_factory=list)
    failures: list[FetchFailure] = field(default_factory=list)

    @property
    def symbols(self) -> list[str]:
        return [quote.symbol for quote in self.quotes]

    @property
    def failed_symbols(self) -> list[str]:
        return [failure.symbol for failure in self.failures]

    def get(self, symbol: str) -> Quote | None:
        """Quote for ``symbol`` if it succeeded in this batch."""
        for quote in self.quotes:
            if quote.symbol == symbol:
                return quote
        return None

    def __len__(self) -> int:
        return len(self.quotes) + len(self.failures)


@dataclass(frozen=True, slots=True)
class MacdResult:
    """Latest MACD line with its signal and histogram.

    ``signal`` and ``histogram`` stay ``None`` until the signal EMA has warmed up.
    """

    line: float
    signal: float | None
    histogram: float | None


@dataclass(frozen=True, slots=True)
class IndicatorSnapshot:
    """Indicator values derived from one symbol's price history.

    Each value is ``None`` while the history is shorter than that indicator's warm-up.
    """

    symbol: str
    sma: float | None
    ema: float | None
    rsi: float | None
    macd_line: float | None
    macd_signal: float | None
    macd_histogram: float | None
    sma_period: int
    ema_period: int
    rsi_period: int
    history_length: int
