"""Structured logging helpers for long-running scans."""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# record attributes the pipelines attach through ``extra=``
CONTEXT_FIELDS = ("worker", "segment", "offset", "combination")


class JsonLogFormatter(logging.Formatter):
    """Serialize logs as line-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                payload[name] = getattr(record, name)
        return json.dumps(payload, ensure_ascii=True)


def configure_logging(
    level: str = "INFO",
    *,
    json_format: bool = False,
    log_file: str | None = None,
) -> None:
    """Configure root logging handlers (console, optional rotating file)."""
    formatter = "json" if json_format else "text"
    formatters = {
        "json": {"()": "portfolio_analysis.observability.logging.JsonLogFormatter"},
        "text": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
            "datefmt": "%Y-%m-%dT%H:%M:%S%z",
        },
    }

    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": formatter,
        }
    }

    root_handlers = ["console"]
    if log_file:
        file_path = Path(log_file).expanduser().resolve()
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(file_path),
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "formatter": formatter,
            "encoding": "utf-8",
        }
        root_handlers.append("file")

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": formatters,
            "handlers": handlers,
            "root": {"level": level, "handlers": root_handlers},
        }
    )


def log_event(logger: logging.Logger, event: str, **context: Any) -> None:
    """Log a single structured event payload."""
    payload = {"event": event, **context}
    logger.info(json.dumps(payload, ensure_ascii=False, default=str))
