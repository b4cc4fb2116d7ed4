"""Runtime settings for scans and the command line."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .environment import (
    parse_env_bool,
    parse_env_choice,
    parse_env_int,
    parse_env_names,
    parse_env_path,
    parse_env_str,
)

DEFAULT_BATCH_SIZE = 10_000
DEFAULT_QUEUE_CAPACITY = 1_000
DEFAULT_PROGRESS_EVERY = 20_000_000
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
TABLE_LAYOUTS = ("row", "column")


def default_workers() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True)
class AnalysisSettings:
    workers: int
    batch_size: int = DEFAULT_BATCH_SIZE
    queue_capacity: int = DEFAULT_QUEUE_CAPACITY
    progress_every: int = DEFAULT_PROGRESS_EVERY
    log_level: str = "INFO"
    log_json: bool = False
    log_file: str | None = None
    data_file: str | None = None
    data_layout: str = "row"
    profile: str = "default"
    # default scan universe; empty means every asset in the table
    assets: tuple[str, ...] = ()

    @classmethod
    def from_env(cls, *, environ: Mapping[str, str] | None = None) -> "AnalysisSettings":
        return cls(
            workers=parse_env_int(
                "PORTFOLIO_ANALYSIS_WORKERS",
                default_workers(),
                1,
                512,
                environ=environ,
            ),
            batch_size=parse_env_int(
                "PORTFOLIO_ANALYSIS_BATCH_SIZE",
                DEFAULT_BATCH_SIZE,
                1,
                1_000_000,
                environ=environ,
            ),
            queue_capacity=parse_env_int(
                "PORTFOLIO_ANALYSIS_QUEUE_CAPACITY",
                DEFAULT_QUEUE_CAPACITY,
                1,
                100_000,
                environ=environ,
            ),
            progress_every=parse_env_int(
                "PORTFOLIO_ANALYSIS_PROGRESS_EVERY",
                DEFAULT_PROGRESS_EVERY,
                1,
                10**12,
                environ=environ,
            ),
            log_level=parse_env_choice("PORTFOLIO_ANALYSIS_LOG_LEVEL", "INFO", LOG_LEVELS, environ=environ),
            log_json=parse_env_bool("PORTFOLIO_ANALYSIS_LOG_JSON", False, environ=environ),
            log_file=parse_env_path("PORTFOLIO_ANALYSIS_LOG_FILE", environ=environ),
            data_file=parse_env_path("PORTFOLIO_ANALYSIS_DATA_FILE", environ=environ),
            data_layout=parse_env_choice(
                "PORTFOLIO_ANALYSIS_DATA_LAYOUT", "row", TABLE_LAYOUTS, environ=environ
            ),
            profile=parse_env_str("PORTFOLIO_ANALYSIS_PROFILE", "default", environ=environ),
            assets=parse_env_names("PORTFOLIO_ANALYSIS_ASSETS", environ=environ),
        )


def load_settings(*, environ: Mapping[str, str] | None = None) -> AnalysisSettings:
    return AnalysisSettings.from_env(environ=environ)
