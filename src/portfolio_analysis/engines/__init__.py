from __future__ import annotations

from portfolio_analysis.engines.combinations import (
    Combination,
    EnumerationSignal,
    binomial,
    combinations,
    consists_of,
    enumerate_combinations,
    equal_weight_allocations,
    parse_assets,
    percent_ladder,
    series,
    series_range,
    translate_percentages,
)
from portfolio_analysis.engines.evaluator import (
    METRIC_NAMES,
    PortfolioEvaluator,
    PortfolioStat,
    Rank,
    evaluate_combination,
    evaluate_portfolio,
    evaluate_portfolio_if_as_good_or_better_than,
    portfolio_returns,
    portfolio_trading_simulation,
)
from portfolio_analysis.engines.pipeline import (
    ScanSummary,
    StreamingPipeline,
    evaluate_portfolios,
    find_k_assets_better_than,
    merge_queues,
    segment_indexes,
)
from portfolio_analysis.engines.queries import (
    as_good_or_better_ranked,
    as_good_or_better_than,
    best_by_each_ranking,
    compare_performance,
    copy_all,
    count_better_metrics,
    find_many,
    find_one,
    holds_assets,
)
from portfolio_analysis.engines.ranking import METRICS, RankedMetric, rank_all, rank_portfolios_in_place

__all__ = [
    "Combination",
    "EnumerationSignal",
    "METRICS",
    "METRIC_NAMES",
    "PortfolioEvaluator",
    "PortfolioStat",
    "Rank",
    "RankedMetric",
    "ScanSummary",
    "StreamingPipeline",
    "as_good_or_better_ranked",
    "as_good_or_better_than",
    "best_by_each_ranking",
    "binomial",
    "combinations",
    "compare_performance",
    "consists_of",
    "copy_all",
    "count_better_metrics",
    "enumerate_combinations",
    "equal_weight_allocations",
    "evaluate_combination",
    "evaluate_portfolio",
    "evaluate_portfolio_if_as_good_or_better_than",
    "evaluate_portfolios",
    "find_k_assets_better_than",
    "find_many",
    "find_one",
    "holds_assets",
    "merge_queues",
    "parse_assets",
    "percent_ladder",
    "portfolio_returns",
    "portfolio_trading_simulation",
    "rank_all",
    "rank_portfolios_in_place",
    "segment_indexes",
    "series",
    "series_range",
    "translate_percentages",
]
