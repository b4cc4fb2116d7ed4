"""Lookup and comparison helpers over lists of portfolio stats."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from portfolio_analysis.engines.evaluator import METRIC_NAMES, PortfolioStat
from portfolio_analysis.engines.ranking import METRICS

StatPredicate = Callable[[PortfolioStat], bool]


def find_one(stats: Iterable[PortfolioStat], predicate: StatPredicate) -> PortfolioStat | None:
    for stat in stats:
        if predicate(stat):
            return stat
    return None


def find_many(stats: Iterable[PortfolioStat], predicate: StatPredicate) -> list[PortfolioStat]:
    return [stat for stat in stats if predicate(stat)]


def as_good_or_better_than(reference: PortfolioStat) -> StatPredicate:
    """Predicate: no metric value is strictly worse than *reference*'s."""
    return lambda stat: stat.as_good_or_better_than(reference)


def as_good_or_better_ranked(reference: PortfolioStat) -> StatPredicate:
    """Predicate on rank ordinals: at least as well ranked as *reference* on every metric.

    Only meaningful once the reference and the candidates were ranked together.
    """

    def predicate(stat: PortfolioStat) -> bool:
        return all(stat.rank(name).ordinal <= reference.rank(name).ordinal for name in METRIC_NAMES)

    return predicate


def holds_assets(*assets: str) -> StatPredicate:
    wanted = set(assets)
    return lambda stat: len(stat.assets) == len(wanted) and set(stat.assets) == wanted


def compare_performance(a: PortfolioStat, b: PortfolioStat) -> PortfolioStat:
    """A stat shaped like *a* whose metrics are ``a - b``."""
    return a.diff_performance(b)


def copy_all(stats: Iterable[PortfolioStat]) -> list[PortfolioStat]:
    return [stat.clone() for stat in stats]


def count_better_metrics(stat: PortfolioStat, other: PortfolioStat) -> int:
    """Number of metrics on which *stat* is strictly better than *other*."""
    better = 0
    for name in METRIC_NAMES:
        metric = METRICS[name]
        mine, theirs = metric.extract(stat), metric.extract(other)
        if (mine < theirs) if metric.less_is_better else (mine > theirs):
            better += 1
    return better


def best_by_each_ranking(stats: Sequence[PortfolioStat]) -> dict[str, PortfolioStat]:
    """The first stat ranked #1 on each metric, for ranked *stats*."""
    best: dict[str, PortfolioStat] = {}
    for name in METRIC_NAMES:
        found = find_one(stats, lambda s, n=name: s.rank(n).ordinal == 1)
        if found is not None:
            best[name] = found
    return best
