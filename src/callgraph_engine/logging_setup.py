# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Structured logging setup for the call graph engine."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_LOG_DIR_NAME = ".callgraph_engine_logs"
STATISTICS_LOGGER_NAME = "callgraph_engine.statistics"
ANALYZERS_LOGGER_NAME = "callgraph_engine.analyzers"


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add any extra fields
        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data)


def _resolve_log_dir(log_dir: Optional[Path]) -> Path:
    if log_dir is None:
        log_dir = Path.cwd() / DEFAULT_LOG_DIR_NAME
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def setup_logging(
    log_dir: Optional[Path] = None,
    log_level: int = logging.INFO,
    console_output: bool = True,
    analyzer_log_level: Optional[int] = None,
) -> None:
    """Set up structured logging for the engine.

    Per-file extraction warnings from the analyzers can be numerous on large
    batches; analyzer_log_level lets a host raise their threshold without
    hiding engine-level messages.

    Args:
        log_dir: Directory for log files. If None, uses .callgraph_engine_logs/
        log_level: Logging level (default: INFO)
        console_output: Whether to also output to console (default: True)
        analyzer_log_level: Level for the callgraph_engine.analyzers loggers.
            If None, they inherit log_level.
    """
    log_dir = _resolve_log_dir(log_dir)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove any existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    # File handler with structured JSON logging
    date = datetime.now(timezone.utc).strftime("%Y%m%d")
    file_handler = logging.FileHandler(log_dir / f"callgraph_engine_{date}.log", encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(console_handler)

    analyzers_logger = logging.getLogger(ANALYZERS_LOGGER_NAME)
    analyzers_logger.setLevel(logging.NOTSET if analyzer_log_level is None else analyzer_log_level)

    logging.info(f"Logging initialized. Log directory: {log_dir}")


def get_statistics_logger(log_dir: Optional[Path] = None) -> logging.Logger:
    """Get the logger that records per-batch analysis statistics.

    Records are written as JSON lines to analysis_statistics.jsonl; the
    statistics themselves travel in the record's `extra_fields`.

    Args:
        log_dir: Directory for log files. If None, uses .callgraph_engine_logs/

    Returns:
        Non-propagating logger configured for statistics output
    """
    log_dir = _resolve_log_dir(log_dir)

    statistics_logger = logging.getLogger(STATISTICS_LOGGER_NAME)
    statistics_logger.setLevel(logging.INFO)
    statistics_logger.propagate = False  # Don't propagate to root logger

    for handler in list(statistics_logger.handlers):
        statistics_logger.removeHandler(handler)
        handler.close()

    handler = logging.FileHandler(log_dir / "analysis_statistics.jsonl", encoding="utf-8")
    handler.setLevel(logging.INFO)
    handler.setFormatter(StructuredFormatter())
    statistics_logger.addHandler(handler)

    return statistics_logger
