"""
Logging setup for Tubely.

setup_logging() is called once from the lifespan hook (and from the scripts).
It installs a single stdout handler on the root logger, routes the Uvicorn
loggers through the same formatter and quiets noisy client libraries.

Call sites log with `extra={...}`; JSON output nests those fields under
"extra", text output appends them as key=value pairs. add_log_context() wraps
a logger so that every line of one upload carries its video and user ids.

Usage:
    setup_logging(log_level="info", json_logs=True)

    upload_logger = add_log_context(logger, video_id=video_id, user_id=user_id)
    upload_logger.info("Staged upload", extra={"size_bytes": size})
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, MutableMapping


# Libraries that log every request or connection at INFO/DEBUG
QUIET_LOGGERS = (
    "motor",
    "pymongo",
    "boto3",
    "botocore",
    "s3transfer",
    "urllib3",
    "httpx",
    "httpcore",
    "multipart",
    "asyncio",
)

UVICORN_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")

# Attributes every LogRecord has; anything else was passed through `extra`
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the fields a call site attached with `extra={...}`."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class JSONFormatter(logging.Formatter):
    """
    One compact JSON object per record.

    Example output:
        {"timestamp":"2025-01-15T10:30:45.123456+00:00","level":"INFO",
         "logger":"tubely.services.upload_service","message":"Video uploaded",
         "extra":{"video_id":"...","object_key":"wide/....mp4"}}
    """

    def __init__(self, include_source_location: bool = False) -> None:
        super().__init__()
        self.include_source_location = include_source_location

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.include_source_location:
            entry["source"] = f"{record.pathname}:{record.lineno} ({record.funcName})"

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else "Unknown",
                "message": str(exc_value) if exc_value else "",
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        extras = record_extras(record)
        if extras:
            entry["extra"] = extras

        return json.dumps(entry, default=_json_default, ensure_ascii=False, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    """Human-readable lines for local development, extras appended as key=value."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = record_extras(record)
        if extras:
            line += " " + " ".join(f"{key}={value}" for key, value in extras.items())
        return line


def setup_logging(
    log_level: str = "info",
    json_logs: bool = True,
    quiet_level: str = "warning",
) -> None:
    """
    Configure the root, Uvicorn and third-party loggers.

    Args:
        log_level: Level name for application output
        json_logs: JSON lines instead of text
        quiet_level: Level applied to QUIET_LOGGERS
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter: logging.Formatter
    if json_logs:
        formatter = JSONFormatter(include_source_location=level <= logging.DEBUG)
    else:
        formatter = TextFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.setLevel(level)
        uvicorn_logger.propagate = False

    quiet = logging.getLevelName(quiet_level.upper())
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet if isinstance(quiet, int) else logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging configured", extra={"log_level": log_level, "json_logs": json_logs}
    )


class ContextLoggerAdapter(logging.LoggerAdapter):
    """Adds fixed context to each record; call-site extras take precedence."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def add_log_context(logger: logging.Logger, **context: Any) -> logging.LoggerAdapter:
    """Wrap `logger` so every message carries `context` as extra fields."""
    return ContextLoggerAdapter(logger, context)
