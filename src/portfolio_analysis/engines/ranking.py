"""
Multi-metric ranking of portfolio stats.

Each metric ranks every stat best-first; tied values share an ordinal. The
ordinal maps to a percentage ``r / R * 99 + 1`` in (1, 100], and the fused
score is the sum of squared percentages, so one poor rank outweighs several
middling ones. Lower fused score is better.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from portfolio_analysis.common.errors import PortfolioValidationError
from portfolio_analysis.engines.evaluator import METRIC_NAMES, OVERALL_RANK, PortfolioStat, Rank

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankedMetric:
    name: str
    less_is_better: bool
    extract: Callable[[PortfolioStat], float]


METRICS: dict[str, RankedMetric] = {
    m.name: m
    for m in (
        RankedMetric("AvgReturn", False, lambda s: s.avg_return),
        RankedMetric("BaselineLTReturn", False, lambda s: s.baseline_lt_return),
        RankedMetric("BaselineSTReturn", False, lambda s: s.baseline_st_return),
        RankedMetric("PWR30", False, lambda s: s.pwr30),
        RankedMetric("SWR30", False, lambda s: s.swr30),
        RankedMetric("StdDev", True, lambda s: s.std_dev),
        RankedMetric("UlcerScore", True, lambda s: s.ulcer_score),
        # drawdowns are negative, so closer to zero is higher
        RankedMetric("DeepestDrawdown", False, lambda s: s.deepest_drawdown),
        RankedMetric("LongestDrawdown", True, lambda s: float(s.longest_drawdown)),
        RankedMetric("StartDateSensitivity", True, lambda s: s.start_date_sensitivity),
    )
}
OVERALL_METRIC = RankedMetric(OVERALL_RANK, True, lambda s: s.overall_rank_score)


def rank_all(stats: list[PortfolioStat], metric: RankedMetric) -> None:
    """Sort *stats* best-first by *metric* and record each stat's rank.

    Reorders *stats* in place.
    """
    stats.sort(key=metric.extract, reverse=not metric.less_is_better)
    ordinals: list[int] = []
    ordinal = 0
    last_value = 0.0
    for i, stat in enumerate(stats):
        value = metric.extract(stat)
        if i == 0 or value != last_value:
            ordinal += 1
            last_value = value
        ordinals.append(ordinal)

    max_ordinal = float(ordinal)
    for stat, r in zip(stats, ordinals):
        stat.ranks[metric.name] = Rank(ordinal=r, percentage=r / max_ordinal * 99 + 1)


def overall_rank_score(stat: PortfolioStat, metric_names: Iterable[str] = METRIC_NAMES) -> float:
    return sum(stat.rank(name).percentage ** 2 for name in metric_names)


def rank_portfolios_in_place(
    stats: list[PortfolioStat],
    metric_names: Sequence[str] | None = None,
) -> None:
    """Rank *stats* on every metric, then order them by fused score.

    *metric_names* limits which metrics are ranked and fused; all ten by
    default. On return *stats* is sorted best-first by the fused score and
    each stat carries an ``OverallRankScore`` rank.
    """
    names = tuple(metric_names) if metric_names is not None else METRIC_NAMES
    unknown = [n for n in names if n not in METRICS]
    if unknown:
        raise PortfolioValidationError(f"unknown metrics: {unknown}")

    started = time.perf_counter()
    for name in names:
        rank_all(stats, METRICS[name])
    logger.debug("Ranked %d stats on %d metrics in %.3fs", len(stats), len(names), time.perf_counter() - started)

    started = time.perf_counter()
    for stat in stats:
        stat.overall_rank_score = overall_rank_score(stat, names)
    rank_all(stats, OVERALL_METRIC)
    logger.debug("Ranked %d stats by overall score in %.3fs", len(stats), time.perf_counter() - started)
