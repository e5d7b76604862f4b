# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for logging setup."""

import json
import logging
import sys
import tempfile
from pathlib import Path

from callgraph_engine.logging_setup import (
    STATISTICS_LOGGER_NAME,
    StructuredFormatter,
    get_statistics_logger,
    setup_logging,
)


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def test_setup_logging_creates_directory():
    """Test that setup_logging creates the log directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        log_dir = Path(tmpdir) / ".callgraph_engine_logs"
        assert not log_dir.exists()

        setup_logging(log_dir=log_dir, console_output=False)
        try:
            assert log_dir.exists()
            assert log_dir.is_dir()
        finally:
            _close_handlers(logging.getLogger())


def test_logging_produces_json():
    """Test that logs are written in JSON format."""
    with tempfile.TemporaryDirectory() as tmpdir:
        log_dir = Path(tmpdir) / ".callgraph_engine_logs"

        setup_logging(log_dir=log_dir, log_level=logging.INFO, console_output=False)
        try:
            logger = logging.getLogger("test_logger")
            logger.info("Test message")
        finally:
            _close_handlers(logging.getLogger())

        log_files = list(log_dir.glob("callgraph_engine_*.log"))
        assert len(log_files) == 1

        lines = log_files[0].read_text().strip().split("\n")
        entries = [json.loads(line) for line in lines]
        test_entry = next(e for e in entries if e["message"] == "Test message")
        assert test_entry["level"] == "INFO"
        assert test_entry["logger"] == "test_logger"
        assert test_entry["timestamp"].endswith("Z")


def test_analyzer_log_level_filters_analyzer_warnings():
    """Test that analyzer warnings can be raised above the engine level."""
    with tempfile.TemporaryDirectory() as tmpdir:
        log_dir = Path(tmpdir)

        setup_logging(log_dir=log_dir, console_output=False, analyzer_log_level=logging.ERROR)
        try:
            logging.getLogger("callgraph_engine.analyzers.ruby_analyzer").warning("skipped line")
            logging.getLogger("callgraph_engine.engine").warning("engine warning")
        finally:
            _close_handlers(logging.getLogger())
            setup_logging(log_dir=log_dir, console_output=False)
            _close_handlers(logging.getLogger())

        messages = [
            json.loads(line)["message"]
            for log_file in log_dir.glob("callgraph_engine_*.log")
            for line in log_file.read_text().strip().split("\n")
        ]
        assert "engine warning" in messages
        assert "skipped line" not in messages
        assert logging.getLogger("callgraph_engine.analyzers").level == logging.NOTSET


def test_structured_formatter_merges_extra_fields():
    """Test that extra_fields are merged into the JSON record."""
    formatter = StructuredFormatter()
    record = logging.LogRecord(
        name="callgraph_engine.engine",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="analysis_statistics",
        args=(),
        exc_info=None,
    )
    record.extra_fields = {"total_files": 3}

    data = json.loads(formatter.format(record))

    assert data["message"] == "analysis_statistics"
    assert data["total_files"] == 3


def test_structured_formatter_includes_exception():
    """Test that exception info is formatted into the record."""
    formatter = StructuredFormatter()
    try:
        raise ValueError("bad input")
    except ValueError:
        record = logging.LogRecord(
            name="test",
            level=logging.ERROR,
            pathname=__file__,
            lineno=1,
            msg="failed",
            args=(),
            exc_info=sys.exc_info(),
        )

    data = json.loads(formatter.format(record))

    assert "ValueError: bad input" in data["exception"]


def test_statistics_logger_writes_jsonl():
    """Test that the statistics logger writes one JSON line per record."""
    with tempfile.TemporaryDirectory() as tmpdir:
        log_dir = Path(tmpdir)

        statistics_logger = get_statistics_logger(log_dir)
        try:
            assert statistics_logger.name == STATISTICS_LOGGER_NAME
            assert statistics_logger.propagate is False

            statistics_logger.info("analysis_statistics", extra={"extra_fields": {"total_files": 2}})
            statistics_logger.info("analysis_statistics", extra={"extra_fields": {"total_files": 5}})
        finally:
            _close_handlers(statistics_logger)

        lines = (log_dir / "analysis_statistics.jsonl").read_text().strip().split("\n")
        assert [json.loads(line)["total_files"] for line in lines] == [2, 5]


def test_statistics_logger_replaces_handlers():
    """Test that repeated calls do not stack file handlers."""
    with tempfile.TemporaryDirectory() as tmpdir:
        statistics_logger = get_statistics_logger(Path(tmpdir))
        statistics_logger = get_statistics_logger(Path(tmpdir))
        try:
            assert len(statistics_logger.handlers) == 1
        finally:
            _close_handlers(statistics_logger)
