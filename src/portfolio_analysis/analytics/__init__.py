"""Return and drawdown analytics over annual return series."""

from .drawdowns import (
    DrawdownScores,
    DrawdownSequence,
    drawdown_scores,
    drawdowns,
    leading_drawdown_sequence,
    ulcer_score,
)
from .primitives import (
    as_series,
    cumulative,
    cumulative_list,
    harmonic_mean,
    mean,
    minimum,
    product,
    slope,
    standard_deviation,
    sub_slices,
    total,
)
from .returns import (
    all_pwrs,
    all_swrs,
    average_return,
    baseline_long_term_return,
    baseline_return,
    baseline_short_term_return,
    cagr,
    min_pwr,
    min_pwr_and_swr,
    min_swr,
    pwr,
    pwr_and_swr,
    start_date_sensitivity,
    swr,
)

__all__ = [
    "DrawdownScores",
    "DrawdownSequence",
    "all_pwrs",
    "all_swrs",
    "as_series",
    "average_return",
    "baseline_long_term_return",
    "baseline_return",
    "baseline_short_term_return",
    "cagr",
    "cumulative",
    "cumulative_list",
    "drawdown_scores",
    "drawdowns",
    "harmonic_mean",
    "leading_drawdown_sequence",
    "mean",
    "min_pwr",
    "min_pwr_and_swr",
    "min_swr",
    "minimum",
    "product",
    "pwr",
    "pwr_and_swr",
    "slope",
    "standard_deviation",
    "start_date_sensitivity",
    "sub_slices",
    "swr",
    "total",
    "ulcer_score",
]
