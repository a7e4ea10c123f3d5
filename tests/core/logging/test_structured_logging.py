"""Tests for structured logging with trace propagation."""

from __future__ import annotations

import io
import json

import pytest

from conftest import FakeQuoteProvider
from quotewatch.core.config import QuoteWatchConfig
from quotewatch.core.exceptions import PermanentProviderError
from quotewatch.core.logging import LogConfig, StructuredLogger, configure_logging, log_context, logger
from quotewatch.core.services import FetchOrchestrator, WatchlistSession


def _read_records(stream: io.StringIO) -> list[dict[str, object]]:
    stream.seek(0)
    lines = [line for line in stream.getvalue().splitlines() if line.strip()]
    return [json.loads(line) for line in lines]


@pytest.fixture
def buffer() -> io.StringIO:
    return io.StringIO()


def test_structured_log_contains_trace_and_context(buffer: io.StringIO) -> None:
    structured = StructuredLogger(LogConfig(console_stream=buffer, console_output=True, file_output=False))

    with structured.context(trace_id="trace-123", provider="yahoo", iteration=4):
        structured.logger.info("quote parsed", symbol="AAPL")

    records = _read_records(buffer)
    assert len(records) == 1
    record = records[0]
    assert record["level"] == "INFO"
    assert record["message"] == "quote parsed"
    assert record["trace_id"] == "trace-123"
    assert record["provider"] == "yahoo"
    assert record["symbol"] == "AAPL"
    assert record["context"]["iteration"] == 4


def test_trace_id_propagates_within_context(buffer: io.StringIO) -> None:
    structured = StructuredLogger(LogConfig(console_stream=buffer, console_output=True, file_output=False))

    with structured.context() as trace_id:
        structured.logger.info("first event")
        structured.logger.info("second event")

    structured.logger.info("outside context")

    records = _read_records(buffer)
    assert len(records) == 3
    assert records[0]["trace_id"] == records[1]["trace_id"] == trace_id
    assert records[2]["trace_id"] != trace_id


def test_level_filters_records(buffer: io.StringIO) -> None:
    configure_logging(level="WARNING", console_stream=buffer)

    logger.info("dropped")
    logger.warning("kept")

    records = _read_records(buffer)
    assert [record["message"] for record in records] == ["kept"]


def test_exception_is_rendered(buffer: io.StringIO) -> None:
    structured = StructuredLogger(LogConfig(console_stream=buffer))

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        structured.logger.exception("fetch blew up")

    record = _read_records(buffer)[0]
    assert record["level"] == "ERROR"
    assert record["exception"] == "RuntimeError: boom"


def test_file_sink_writes_json_lines(tmp_path) -> None:
    log_file = tmp_path / "logs" / "quotewatch.log"
    structured = StructuredLogger(LogConfig(console_output=False, file_output=True, file_path=str(log_file)))

    with log_context(trace_id="file-trace"):
        structured.logger.info("written to disk")

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[0])["trace_id"] == "file-trace"


@pytest.mark.asyncio
async def test_refresh_failures_are_logged_with_iteration(buffer: io.StringIO) -> None:
    StructuredLogger(LogConfig(level="WARNING", console_stream=buffer))
    quotes = FakeQuoteProvider(
        errors={"NOPE": PermanentProviderError("Yahoo Finance error for NOPE: Not Found", provider_name="yahoo")}
    )
    session = WatchlistSession(["AAPL", "NOPE"], config=QuoteWatchConfig(), orchestrator=FetchOrchestrator(quotes))

    await session.refresh()

    records = _read_records(buffer)
    unit_warning = next(record for record in records if record["message"].startswith("Quote fetch failed"))
    refresh_warning = next(record for record in records if record["message"].startswith("Refresh 1"))
    assert unit_warning["symbol"] == "NOPE"
    assert unit_warning["provider"] == "yahoo"
    assert unit_warning["context"]["iteration"] == 1
    assert "NOPE" in refresh_warning["message"]
    assert refresh_warning["trace_id"] == unit_warning["trace_id"]
