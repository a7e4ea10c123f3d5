"""Market-related enums and their text conversions."""

from enum import Enum
from typing import Any, TypeVar

_E = TypeVar("_E", bound=Enum)


def _lookup(table: dict[str, _E], text: Any, kind: str) -> _E:
    # non-string provider values count as unknown
    if not isinstance(text, str):
        raise ValueError(f"Unknown {kind}: {text!r}")
    try:
        return table[text.strip().upper()]
    except KeyError:
        raise ValueError(f"Unknown {kind}: {text!r}") from None


class MarketState(str, Enum):
    """Trading session state reported alongside a quote."""

    PRE = "pre"
    REGULAR = "regular"
    POST = "post"
    CLOSED = "closed"

    @classmethod
    def parse(cls, text: str) -> "MarketState":
        """Parse provider text, rejecting anything outside the known table."""
        return _lookup(_MARKET_STATE_TEXT, text, "market state")

    @property
    def label(self) -> str:
        return _MARKET_STATE_LABELS[self]


class QuoteType(str, Enum):
    """Instrument type of a quoted symbol."""

    EQUITY = "equity"
    CRYPTOCURRENCY = "cryptocurrency"
    ETF = "etf"
    MUTUAL_FUND = "mutualfund"
    INDEX = "index"
    CURRENCY = "currency"
    FUTURE = "future"
    OPTION = "option"

    @classmethod
    def parse(cls, text: str) -> "QuoteType":
        """Parse provider text such as ``EQUITY`` or ``CRYPTOCURRENCY``."""
        return _lookup(_QUOTE_TYPE_TEXT, text, "quote type")

    @property
    def label(self) -> str:
        return _QUOTE_TYPE_LABELS[self]


# Yahoo reports extended sessions as PREPRE / POSTPOST
_MARKET_STATE_TEXT: dict[str, MarketState] = {
    "PRE": MarketState.PRE,
    "PREPRE": MarketState.PRE,
    "REGULAR": MarketState.REGULAR,
    "POST": MarketState.POST,
    "POSTPOST": MarketState.POST,
    "CLOSED": MarketState.CLOSED,
}

_MARKET_STATE_LABELS: dict[MarketState, str] = {
    MarketState.PRE: "Pre",
    MarketState.REGULAR: "Open",
    MarketState.POST: "Post",
    MarketState.CLOSED: "Closed",
}

_QUOTE_TYPE_TEXT: dict[str, QuoteType] = {
    "EQUITY": QuoteType.EQUITY,
    "CRYPTOCURRENCY": QuoteType.CRYPTOCURRENCY,
    "ETF": QuoteType.ETF,
    "MUTUALFUND": QuoteType.MUTUAL_FUND,
    "INDEX": QuoteType.INDEX,
    "CURRENCY": QuoteType.CURRENCY,
    "FUTURE": QuoteType.FUTURE,
    "OPTION": QuoteType.OPTION,
}

_QUOTE_TYPE_LABELS: dict[QuoteType, str] = {
    QuoteType.EQUITY: "Stock",
    QuoteType.CRYPTOCURRENCY: "Crypto",
    QuoteType.ETF: "ETF",
    QuoteType.MUTUAL_FUND: "Fund",
    QuoteType.INDEX: "Index",
    QuoteType.CURRENCY: "Forex",
    QuoteType.FUTURE: "Future",
    QuoteType.OPTION: "Option",
}


class SortOrder(str, Enum):
    """Quote field the watchlist is ordered by."""

    SYMBOL = "symbol"
    NAME = "name"
    PRICE = "price"
    CHANGE = "change"
    CHANGE_PERCENT = "change_percent"
    VOLUME = "volume"
    MARKET_CAP = "market_cap"

    @classmethod
    def parse(cls, text: str) -> "SortOrder":
        """Parse a field name such as ``change_percent``, case-insensitively."""
        if not isinstance(text, str):
            raise ValueError(f"Unknown sort order: {text!r}")
        try:
            return cls(text.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown sort order: {text!r}") from None

    def next(self) -> "SortOrder":
        """Next order in the display cycle, wrapping back to ``SYMBOL``."""
        members = list(SortOrder)
        return members[(members.index(self) + 1) % len(members)]

    @property
    def header(self) -> str:
        return _SORT_ORDER_HEADERS[self]


class SortDirection(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"

    def toggle(self) -> "SortDirection":
        return SortDirection.DESCENDING if self is SortDirection.ASCENDING else SortDirection.ASCENDING


_SORT_ORDER_HEADERS: dict[SortOrder, str] = {
    SortOrder.SYMBOL: "SYMBOL",
    SortOrder.NAME: "NAME",
    SortOrder.PRICE: "PRICE",
    SortOrder.CHANGE: "CHANGE",
    SortOrder.CHANGE_PERCENT: "CHG%",
    SortOrder.VOLUME: "VOLUME",
    SortOrder.MARKET_CAP: "MKT CAP",
}
