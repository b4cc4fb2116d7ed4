"""Logging helpers for analysis runs."""

from .logging import JsonLogFormatter, configure_logging, log_event

__all__ = [
    "JsonLogFormatter",
    "configure_logging",
    "log_event",
]
