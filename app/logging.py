"""Logging utilities for read-more-locator CLIs.

Search results are written to stdout, so CLIs that print results default to
sending every log record to stderr. The ``auto`` destination keeps the
level split (INFO and below on stdout, WARNING and above on stderr) for
commands without a result stream.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

LogFormat = Literal["text", "json"]
LogDestination = Literal["auto", "stdout", "stderr"]

TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_RESERVED_RECORD_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "process",
    "processName",
    "taskName",
    "message",
    "asctime",
}


def extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Return the fields attached to ``record`` through ``extra=``."""

    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_RECORD_KEYS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """Format log records as structured JSON objects."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.now(tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        payload.update(extra_fields(record))
        return json.dumps(payload, default=_stringify)


class TextFormatter(logging.Formatter):
    """Human-readable lines with ``extra`` fields appended as ``key=value`` pairs."""

    def __init__(self) -> None:
        super().__init__(TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        line = super().format(record)
        extras = extra_fields(record)
        if not extras:
            return line
        rendered = " ".join(f"{key}={_stringify(value)!r}" for key, value in sorted(extras.items()))
        head, sep, tail = line.partition("\n")
        return f"{head} | {rendered}{sep}{tail}"


@dataclass(slots=True)
class _LevelRangeFilter(logging.Filter):
    min_level: int | None = None
    max_level: int | None = None

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        if self.min_level is not None and record.levelno < self.min_level:
            return False
        if self.max_level is not None and record.levelno > self.max_level:
            return False
        return True


def configure_logging(
    *,
    level: str | int = "INFO",
    fmt: LogFormat = "text",
    destination: LogDestination = "auto",
) -> logging.Logger:
    """Configure the root logger with common handlers and formatters."""

    resolved_level = _resolve_level(level)
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(resolved_level)

    formatter = _select_formatter(fmt)
    for handler in _build_handlers(destination):
        handler.setLevel(logging.NOTSET)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logging.captureWarnings(True)
    return root


def _resolve_level(value: str | int) -> int:
    if isinstance(value, int):
        return value
    normalized = value.upper()
    resolved = logging.getLevelName(normalized)
    if not isinstance(resolved, int):  # logging returns the input string when it fails
        raise ValueError(f"Unknown log level: {value}")
    return resolved


def _select_formatter(fmt: LogFormat) -> logging.Formatter:
    if fmt == "json":
        return JsonFormatter()
    return TextFormatter()


def _build_handlers(destination: LogDestination) -> Iterable[logging.Handler]:
    if destination == "stdout":
        return (logging.StreamHandler(sys.stdout),)
    if destination == "stderr":
        return (logging.StreamHandler(sys.stderr),)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(_LevelRangeFilter(max_level=logging.INFO))
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.addFilter(_LevelRangeFilter(min_level=logging.WARNING))
    return (stdout_handler, stderr_handler)


def _stringify(value: Any) -> str:
    return str(value)


__all__ = [
    "LogDestination",
    "LogFormat",
    "JsonFormatter",
    "TextFormatter",
    "configure_logging",
    "extra_fields",
]
