"""
Portfolio Analysis - evaluate and rank asset allocations on annual return history.

Computes return, withdrawal-rate, drawdown and dependability metrics for
annually rebalanced portfolios, enumerates candidate allocations, evaluates
them in parallel and ranks the results across every metric.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .analytics import (
    cagr,
    drawdown_scores,
    drawdowns,
    min_pwr,
    min_swr,
    pwr,
    start_date_sensitivity,
    swr,
    ulcer_score,
)
from .common.config_manager import AnalysisProfile, ConfigError, ConfigManager, load_profile
from .common.errors import (
    AssetDataError,
    AssetNotFoundError,
    PipelineExecutionError,
    PortfolioAnalysisError,
    PortfolioValidationError,
    PreconditionError,
)
from .common.percent import Percent, readable_percent, readable_percents
from .common.report import stats_to_frame
from .data.registry import Asset, AssetRegistry
from .engines import (
    Combination,
    PortfolioEvaluator,
    PortfolioStat,
    Rank,
    StreamingPipeline,
    combinations,
    evaluate_combination,
    evaluate_portfolio,
    evaluate_portfolios,
    find_k_assets_better_than,
    portfolio_returns,
    rank_portfolios_in_place,
)

__all__ = [
    "AnalysisProfile",
    "Asset",
    "AssetDataError",
    "AssetNotFoundError",
    "AssetRegistry",
    "Combination",
    "ConfigError",
    "ConfigManager",
    "Percent",
    "PipelineExecutionError",
    "PortfolioAnalysisError",
    "PortfolioEvaluator",
    "PortfolioStat",
    "PortfolioValidationError",
    "PreconditionError",
    "Rank",
    "StreamingPipeline",
    "__version__",
    "cagr",
    "combinations",
    "drawdown_scores",
    "drawdowns",
    "evaluate_combination",
    "evaluate_portfolio",
    "evaluate_portfolios",
    "find_k_assets_better_than",
    "load_profile",
    "min_pwr",
    "min_swr",
    "portfolio_returns",
    "pwr",
    "rank_portfolios_in_place",
    "readable_percent",
    "readable_percents",
    "start_date_sensitivity",
    "stats_to_frame",
    "swr",
    "ulcer_score",
]
