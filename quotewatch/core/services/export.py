"""Plain text, CSV and JSON renderings of a quote list."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Sequence
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from quotewatch.core.models import Quote

CSV_HEADER = ("Symbol", "Name", "Price", "Change", "Change%", "Volume", "MarketCap")
TEXT_TITLE = "QUOTEWATCH DATA EXPORT"
NOT_AVAILABLE = "N/A"


class ExportFormat(str, Enum):
    TEXT = "text"
    CSV = "csv"
    JSON = "json"


class ExportRow(BaseModel):
    """Exported subset of a quote, prices rounded to cents."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    symbol: str
    name: str
    price: float
    change: float
    change_percent: float
    volume: int
    market_cap: int | None = None

    @classmethod
    def from_quote(cls, quote: Quote) -> "ExportRow":
        return cls(
            symbol=quote.symbol,
            name=quote.name,
            price=round(quote.price, 2),
            change=round(quote.change, 2),
            change_percent=round(quote.change_percent, 2),
            volume=quote.volume,
            market_cap=quote.market_cap,
        )


def format_volume(volume: int) -> str:
    """Shorten a share count with a K, M or B suffix, e.g. ``1.5M``."""
    for threshold, suffix in ((1_000_000_000, "B"), (1_000_000, "M"), (1_000, "K")):
        if volume >= threshold:
            return f"{volume / threshold:.1f}{suffix}"
    return str(volume)


def format_market_cap(market_cap: float | None) -> str:
    """Dollar amount with a K, M, B or T suffix; missing or zero is ``N/A``."""
    if not market_cap:
        return NOT_AVAILABLE
    for threshold, suffix in ((1e12, "T"), (1e9, "B"), (1e6, "M"), (1e3, "K")):
        if market_cap >= threshold:
            return f"${market_cap / threshold:.2f}{suffix}"
    return f"${market_cap:.2f}"


def _export_text(rows: Sequence[ExportRow]) -> str:
    lines = [TEXT_TITLE, "=" * len(TEXT_TITLE), ""]
    for row in rows:
        lines.extend(
            [
                f"Symbol: {row.symbol}",
                f"Name: {row.name}",
                f"Price: ${row.price:.2f}",
                f"Change: {row.change:+.2f}",
                f"Change %: {row.change_percent:+.2f}%",
                f"Volume: {format_volume(row.volume)}",
                f"Market Cap: {format_market_cap(row.market_cap)}",
                "",
            ]
        )
    return "\n".join(lines) + "\n"


def _export_csv(rows: Sequence[ExportRow]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow(
            [
                row.symbol,
                row.name,
                f"{row.price:.2f}",
                f"{row.change:.2f}",
                f"{row.change_percent:.2f}",
                row.volume,
                row.market_cap if row.market_cap is not None else NOT_AVAILABLE,
            ]
        )
    return buffer.getvalue()


def _export_json(rows: Sequence[ExportRow]) -> str:
    payload = [row.model_dump(mode="json", by_alias=True) for row in rows]
    return json.dumps(payload, indent=2) + "\n"


_EXPORTERS = {
    ExportFormat.TEXT: _export_text,
    ExportFormat.CSV: _export_csv,
    ExportFormat.JSON: _export_json,
}


def export_quotes(quotes: Sequence[Quote], export_format: ExportFormat | str = ExportFormat.TEXT) -> str:
    """Render ``quotes`` in their current order.

    Args:
        quotes: quotes to export, typically a session's sorted list
        export_format: ``text``, ``csv`` or ``json``

    Raises:
        ValueError: unknown format
    """
    exporter = _EXPORTERS[ExportFormat(export_format)]
    return exporter([ExportRow.from_quote(quote) for quote in quotes])
