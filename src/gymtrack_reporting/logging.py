"""Structured logging for GymTrack reporting.

Format and level come from GYMTRACK_LOG_FORMAT ("json" or "text") and
GYMTRACK_LOG_LEVEL. Context is attached with ``extra={"gymtrack_<key>": ...}``;
both formatters render it under ``<key>``.
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

EXTRA_PREFIX = "gymtrack_"

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """``gymtrack_*`` extras of ``record`` with the prefix stripped."""
    return {
        key[len(EXTRA_PREFIX):]: value
        for key, value in record.__dict__.items()
        if key.startswith(EXTRA_PREFIX)
    }


class JSONFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Context never overwrites the base fields
        for key, value in record_context(record).items():
            log_entry.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(log_entry, default=str)


class ContextTextFormatter(logging.Formatter):
    """Plain text lines with the record's context appended as key=value."""

    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        head, sep, tail = line.partition("\n")
        return f"{head} [{pairs}]{sep}{tail}"


def setup_logging(log_format: str, level: int | str = logging.INFO) -> None:
    """Configure the root logger with a single stderr handler."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level!r}")
        level = resolved

    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers to avoid duplicate output
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if log_format == "json" else ContextTextFormatter())
    root.addHandler(handler)
