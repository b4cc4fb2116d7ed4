"""
Portfolio Analysis Common Utilities.

Percent helpers, the exception taxonomy, analysis profiles and reports.
"""

from __future__ import annotations

from .config_manager import AnalysisProfile, ConfigError, ConfigManager, load_profile
from .errors import (
    AssetDataError,
    AssetNotFoundError,
    PipelineExecutionError,
    PortfolioAnalysisError,
    PortfolioValidationError,
    PreconditionError,
)
from .percent import (
    GrowthMultiplier,
    Percent,
    format_percent,
    format_percents,
    readable_percent,
    readable_percents,
    readable_returns,
)

__all__ = [
    "AnalysisProfile",
    "AssetDataError",
    "AssetNotFoundError",
    "ConfigError",
    "ConfigManager",
    "GrowthMultiplier",
    "Percent",
    "PipelineExecutionError",
    "PortfolioAnalysisError",
    "PortfolioValidationError",
    "PreconditionError",
    "format_percent",
    "format_percents",
    "load_profile",
    "readable_percent",
    "readable_percents",
    "readable_returns",
]
