"""Structured logging for esgdash.

Two output formats, selected by ``logging.format``:

    splunk  2026-01-08T12:15:00Z INFO  Submission status changed logger=esgdash.lifecycle submission_id=3
    json    {"event": "Submission status changed", "level": "INFO", ...}

Audit events (see ``esgdash.audit``) go through the same pipeline.
Exceptions logged with ``logger.exception`` are rendered as a traceback
after the log line.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

from .config import Config

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

# Third-party loggers that are too chatty at DEBUG
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


def _format_value(value: Any) -> str:
    text = str(value)
    if " " in text or "=" in text:
        return '"' + text.replace('"', '\\"') + '"'
    return text


def splunk_processor(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> str:
    """Render an event as a Splunk key=value line.

    Keys are sorted; private ``_`` keys are dropped. A formatted
    ``exception`` is appended on the following lines.
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    level = event_dict.pop("level", "info").upper()
    event = event_dict.pop("event", "")
    exception = event_dict.pop("exception", None)

    line = f"{timestamp} {level:5} {event}"
    pairs = [
        f"{key}={_format_value(value)}"
        for key, value in sorted(event_dict.items())
        if not key.startswith("_")
    ]
    if pairs:
        line = f"{line} {' '.join(pairs)}"
    if exception:
        line = f"{line}\n{exception}"
    return line


def json_processor(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add timestamp and normalized level before JSON rendering."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    event_dict["level"] = event_dict.get("level", "info").upper()
    return event_dict


def build_processors(fmt: str) -> list:
    """Processor chain for the given output format."""
    processors: list = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.format_exc_info,
    ]
    if fmt == "json":
        processors += [json_processor, structlog.processors.JSONRenderer()]
    else:
        processors.append(splunk_processor)
    return processors


def configure_logging(config: Config) -> structlog.stdlib.BoundLogger:
    """Route structlog through stdlib logging to stderr and the optional log file."""
    log_level = LOG_LEVELS.get(config.logging.level, logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.logging.file:
        config.logging.file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.logging.file))

    logging.basicConfig(format="%(message)s", level=log_level, handlers=handlers, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=build_processors(config.logging.format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger("esgdash")


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
