"""Structured logging utilities for treestat."""
from __future__ import annotations

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import IO, Any, Dict, Optional

from .config import LOG_TIME_FORMAT

EXTRA_PREFIX = "_ts_"


class JsonFormatter(logging.Formatter):
    """Simple JSON formatter for treestat logs."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, LOG_TIME_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key.startswith(EXTRA_PREFIX):
                payload[key[len(EXTRA_PREFIX):]] = value
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(
    name: str,
    *,
    level: int | str = logging.INFO,
    log_file: Optional[str | Path] = None,
    stream: Optional[IO[str]] = None,
    max_bytes: int = 20 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Configure and return a logger with JSON formatting.

    Records go to *stream* (stderr by default) so stdout is left to the
    report itself.
    """

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = JsonFormatter()
    stream_handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count)
        rotating.setFormatter(formatter)
        logger.addHandler(rotating)

    return logger


def log_walk_summary(
    logger: logging.Logger,
    *,
    root: str,
    file_count: int,
    total_bytes: int,
    skipped: int,
    detail: Optional[str] = None,
) -> None:
    """Emit a structured end-of-walk log entry."""

    extra = {
        "_ts_root": root,
        "_ts_file_count": file_count,
        "_ts_total_bytes": total_bytes,
        "_ts_skipped": skipped,
    }
    if detail:
        extra["_ts_detail"] = detail
    logger.info("walk complete", extra=extra)
