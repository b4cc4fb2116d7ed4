"""
Portfolio evaluator.

Combines the aligned return series of a combination's assets into the
return series of a portfolio rebalanced every year, then runs the return and
drawdown analytics over it to produce a :class:`PortfolioStat`.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, cast

import numpy as np

from portfolio_analysis.analytics.drawdowns import drawdown_scores
from portfolio_analysis.analytics.primitives import FloatSeries, as_series, mean, standard_deviation
from portfolio_analysis.analytics.returns import baseline_return, min_pwr_and_swr, start_date_sensitivity
from portfolio_analysis.common.config_manager import AnalysisProfile
from portfolio_analysis.common.errors import (
    AssetNotFoundError,
    PortfolioValidationError,
    PreconditionError,
)
from portfolio_analysis.common.percent import Percent, format_percents
from portfolio_analysis.engines.combinations import Combination, check_allocations

if TYPE_CHECKING:
    from portfolio_analysis.data.registry import AssetRegistry

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = AnalysisProfile()

# metric name -> PortfolioStat attribute
METRIC_ATTRIBUTES: dict[str, str] = {
    "AvgReturn": "avg_return",
    "BaselineLTReturn": "baseline_lt_return",
    "BaselineSTReturn": "baseline_st_return",
    "PWR30": "pwr30",
    "SWR30": "swr30",
    "StdDev": "std_dev",
    "UlcerScore": "ulcer_score",
    "DeepestDrawdown": "deepest_drawdown",
    "LongestDrawdown": "longest_drawdown",
    "StartDateSensitivity": "start_date_sensitivity",
}
METRIC_NAMES: tuple[str, ...] = tuple(METRIC_ATTRIBUTES)
OVERALL_RANK = "OverallRankScore"


# ---------------------------------------------------------------------------
# Portfolio return series
# ---------------------------------------------------------------------------


def _check_streams(returns_list: Sequence[FloatSeries], percentages: Sequence[Percent]) -> list[np.ndarray]:
    check_allocations(percentages)
    if len(percentages) != len(returns_list):
        raise PortfolioValidationError(
            f"lists must have the same length: percentages ({len(percentages)}), "
            f"returns_list ({len(returns_list)})"
        )
    streams = [as_series(r) for r in returns_list]
    length = streams[0].size
    for i, stream in enumerate(streams):
        if stream.size != length:
            raise PortfolioValidationError(
                f"length mismatch: expected stream {i + 1} to have length {length}, got {stream.size}"
            )
    return streams


def portfolio_returns(
    returns_list: Sequence[FloatSeries],
    percentages: Sequence[Percent],
    out: np.ndarray | None = None,
) -> np.ndarray:
    """Yearly returns of a portfolio rebalanced annually to *percentages*.

    ``portfolio_returns([TSM, ITB], [0.6, 0.4])`` weights each year's asset
    returns by the target allocation. *out*, when given, must have the length
    of the series and receives the result.
    """
    streams = _check_streams(returns_list, percentages)
    if out is None:
        out = np.zeros(streams[0].size, dtype=float)
    else:
        out[:] = 0.0
    for stream, pct in zip(streams, percentages):
        out += stream * pct
    return out


def portfolio_trading_simulation(
    returns_list: Sequence[FloatSeries],
    percentages: Sequence[Percent],
    rebalance_factor: float = 1.0,
) -> np.ndarray:
    """Yearly returns when each rebalance moves only part of the way to target.

    Each year the holdings grow by their returns, then every holding moves
    ``rebalance_factor * (target - holding)``. A factor of 1 rebalances
    exactly, 0 never rebalances, above 1 overshoots.
    """
    streams = _check_streams(returns_list, percentages)
    targets = np.asarray(percentages, dtype=float)
    holdings = targets.copy()
    res = np.empty(streams[0].size, dtype=float)
    for year in range(res.size):
        start = holdings.sum()
        eoy = holdings * (np.array([s[year] for s in streams]) + 1)
        eoy_sum = eoy.sum()
        res[year] = eoy_sum / start - 1
        holdings = eoy + (targets * eoy_sum - eoy) * rebalance_factor
        if (holdings < 0).any():
            raise PreconditionError(
                f"no allocation can go below zero (year #{year + 1}); "
                f"rebalance_factor {rebalance_factor} is too extreme"
            )
    return res


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rank:
    ordinal: int = 0
    percentage: float = 0.0


@dataclass
class PortfolioStat:
    """A combination with its performance metrics and, once ranked, its ranks."""

    assets: tuple[str, ...]
    percentages: tuple[Percent, ...]
    rebalance_factor: float = 1.0

    avg_return: Percent = 0.0
    baseline_lt_return: Percent = 0.0
    baseline_st_return: Percent = 0.0
    pwr30: Percent = 0.0
    swr30: Percent = 0.0
    std_dev: Percent = 0.0
    ulcer_score: float = 0.0
    deepest_drawdown: Percent = 0.0
    longest_drawdown: int = 0
    start_date_sensitivity: Percent = 0.0

    # metric name -> rank, filled by the ranker
    ranks: dict[str, Rank] = field(default_factory=dict)
    overall_rank_score: float = 0.0

    def __str__(self) -> str:
        r = self.rank
        return (
            f"[{' '.join(self.assets)}] {format_percents(self.percentages)} "
            f"({r(OVERALL_RANK).ordinal}) RF:{self.rebalance_factor:0.2f} "
            f"AvgReturn:{self.avg_return * 100:0.3f}%({r('AvgReturn').ordinal}) "
            f"BLT:{self.baseline_lt_return * 100:0.3f}%({r('BaselineLTReturn').ordinal}) "
            f"BST:{self.baseline_st_return * 100:0.3f}%({r('BaselineSTReturn').ordinal}) "
            f"PWR:{self.pwr30 * 100:0.3f}%({r('PWR30').ordinal}) "
            f"SWR:{self.swr30 * 100:0.3f}%({r('SWR30').ordinal}) "
            f"StdDev:{self.std_dev * 100:0.3f}%({r('StdDev').ordinal}) "
            f"Ulcer:{self.ulcer_score:0.1f}({r('UlcerScore').ordinal}) "
            f"DeepestDrawdown:{self.deepest_drawdown * 100:0.2f}%({r('DeepestDrawdown').ordinal}) "
            f"LongestDrawdown:{self.longest_drawdown}({r('LongestDrawdown').ordinal}), "
            f"StartDateSensitivity:{self.start_date_sensitivity * 100:0.2f}%"
            f"({r('StartDateSensitivity').ordinal})"
        )

    @property
    def combination(self) -> Combination:
        return Combination(self.assets, self.percentages)

    def metric(self, name: str) -> float:
        return getattr(self, METRIC_ATTRIBUTES[name])

    def rank(self, name: str) -> Rank:
        return self.ranks.get(name, Rank())

    def percentage(self, asset: str) -> Percent | None:
        """Allocation of *asset*, or None when it is not held."""
        for name, pct in zip(self.assets, self.percentages):
            if name == asset:
                return pct
        return None

    def clone(self) -> "PortfolioStat":
        return copy.deepcopy(self)

    def diff_performance(self, other: "PortfolioStat") -> "PortfolioStat":
        """Copy of this stat with every metric replaced by ``self - other``."""
        diff = self.clone()
        for attr in METRIC_ATTRIBUTES.values():
            setattr(diff, attr, getattr(self, attr) - getattr(other, attr))
        return diff

    def as_good_or_better_than(self, other: "PortfolioStat") -> bool:
        """True when no metric is strictly worse than *other*'s."""
        return (
            self.avg_return >= other.avg_return
            and self.baseline_lt_return >= other.baseline_lt_return
            and self.baseline_st_return >= other.baseline_st_return
            and self.pwr30 >= other.pwr30
            and self.swr30 >= other.swr30
            and self.std_dev <= other.std_dev
            and self.ulcer_score <= other.ulcer_score
            and self.deepest_drawdown >= other.deepest_drawdown
            and self.longest_drawdown <= other.longest_drawdown
            and self.start_date_sensitivity <= other.start_date_sensitivity
        )

    def returns(self, registry: "AssetRegistry") -> np.ndarray:
        """Recompute this portfolio's return series from *registry*."""
        returns_list = registry.aligned_returns(self.assets)
        if self.rebalance_factor == 1.0:
            return portfolio_returns(returns_list, self.percentages)
        return portfolio_trading_simulation(returns_list, self.percentages, self.rebalance_factor)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def evaluate_portfolio(
    returns: FloatSeries,
    combination: Combination,
    profile: AnalysisProfile = DEFAULT_PROFILE,
    *,
    rebalance_factor: float = 1.0,
) -> PortfolioStat:
    """Compute every metric of a portfolio return series."""
    returns = as_series(returns)
    pwr, swr = min_pwr_and_swr(returns, profile.withdrawal_years)
    scores = drawdown_scores(returns)
    return PortfolioStat(
        assets=combination.assets,
        percentages=combination.percentages,
        rebalance_factor=rebalance_factor,
        avg_return=mean(returns),
        baseline_lt_return=baseline_return(
            returns, profile.baseline_long_term_years, profile.baseline_long_term_percentile
        ),
        baseline_st_return=baseline_return(
            returns, profile.baseline_short_term_years, profile.baseline_short_term_percentile
        ),
        pwr30=pwr,
        swr30=swr,
        std_dev=standard_deviation(returns),
        ulcer_score=scores.max_ulcer_score,
        deepest_drawdown=scores.deepest_drawdown,
        longest_drawdown=scores.longest_drawdown,
        start_date_sensitivity=start_date_sensitivity(returns, profile.start_date_sensitivity_years),
    )


def evaluate_portfolio_if_as_good_or_better_than(
    returns: FloatSeries,
    combination: Combination,
    reference: PortfolioStat,
    profile: AnalysisProfile = DEFAULT_PROFILE,
    *,
    rebalance_factor: float = 1.0,
) -> PortfolioStat | None:
    """Like :func:`evaluate_portfolio`, but None as soon as a metric is worse than *reference*.

    Cheap metrics are computed first so most candidates exit early.
    """
    returns = as_series(returns)
    avg = mean(returns)
    if avg < reference.avg_return:
        return None
    std_dev = standard_deviation(returns)
    if std_dev > reference.std_dev:
        return None
    pwr, swr = min_pwr_and_swr(returns, profile.withdrawal_years)
    if pwr < reference.pwr30 or swr < reference.swr30:
        return None
    baseline_lt = baseline_return(
        returns, profile.baseline_long_term_years, profile.baseline_long_term_percentile
    )
    if baseline_lt < reference.baseline_lt_return:
        return None
    scores = drawdown_scores(returns)
    if (
        scores.max_ulcer_score > reference.ulcer_score
        or scores.deepest_drawdown < reference.deepest_drawdown
        or scores.longest_drawdown > reference.longest_drawdown
    ):
        return None
    baseline_st = baseline_return(
        returns, profile.baseline_short_term_years, profile.baseline_short_term_percentile
    )
    if baseline_st < reference.baseline_st_return:
        return None
    sensitivity = start_date_sensitivity(returns, profile.start_date_sensitivity_years)
    if sensitivity > reference.start_date_sensitivity:
        return None
    return PortfolioStat(
        assets=combination.assets,
        percentages=combination.percentages,
        rebalance_factor=rebalance_factor,
        avg_return=avg,
        baseline_lt_return=baseline_lt,
        baseline_st_return=baseline_st,
        pwr30=pwr,
        swr30=swr,
        std_dev=std_dev,
        ulcer_score=scores.max_ulcer_score,
        deepest_drawdown=scores.deepest_drawdown,
        longest_drawdown=scores.longest_drawdown,
        start_date_sensitivity=sensitivity,
    )


class PortfolioEvaluator:
    """Evaluates combinations against one registry, reusing a returns buffer.

    An evaluator is not thread-safe; give each worker its own.
    """

    def __init__(
        self,
        registry: "AssetRegistry",
        profile: AnalysisProfile = DEFAULT_PROFILE,
        *,
        reference: PortfolioStat | None = None,
        rebalance_factor: float = 1.0,
    ) -> None:
        self.registry = registry
        self.profile = profile
        self.reference = reference
        self.rebalance_factor = rebalance_factor
        self._buffer = np.empty(0, dtype=float)

    def _returns_for(self, combination: Combination) -> np.ndarray:
        combination.validate()
        returns_list = self.registry.aligned_returns(combination.assets)
        if self.rebalance_factor != 1.0:
            return portfolio_trading_simulation(returns_list, combination.percentages, self.rebalance_factor)
        length = len(returns_list[0])
        if self._buffer.size < length:
            self._buffer = np.empty(length, dtype=float)
        return portfolio_returns(returns_list, combination.percentages, out=self._buffer[:length])

    def evaluate(self, combination: Combination) -> PortfolioStat | None:
        """Stat for *combination*; None when a reference is set and it is worse."""
        returns = self._returns_for(combination)
        if self.reference is None:
            return evaluate_portfolio(
                returns, combination, self.profile, rebalance_factor=self.rebalance_factor
            )
        return evaluate_portfolio_if_as_good_or_better_than(
            returns, combination, self.reference, self.profile, rebalance_factor=self.rebalance_factor
        )

    def evaluate_many(self, combinations: Iterable[Combination]) -> list[PortfolioStat | None]:
        """Evaluate in order; errors name the 1-based position of the failing combination."""
        results: list[PortfolioStat | None] = []
        for i, combination in enumerate(combinations, start=1):
            try:
                results.append(self.evaluate(combination))
            except AssetNotFoundError as exc:
                raise AssetNotFoundError(exc.name, context=f"perm #{i}") from exc
            except PortfolioValidationError as exc:
                raise PortfolioValidationError(
                    f"perm #{i}, error calculating portfolio returns for {combination}: {exc}"
                ) from exc
        return results


def evaluate_combination(
    combination: Combination,
    registry: "AssetRegistry",
    profile: AnalysisProfile = DEFAULT_PROFILE,
    *,
    rebalance_factor: float = 1.0,
) -> PortfolioStat:
    """Resolve *combination* against *registry* and evaluate it."""
    evaluator = PortfolioEvaluator(registry, profile, rebalance_factor=rebalance_factor)
    # without a reference every combination yields a stat
    return cast(PortfolioStat, evaluator.evaluate(combination))
