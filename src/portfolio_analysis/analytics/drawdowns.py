"""
Drawdown decomposition and scoring.

A drawdown sequence starts at some year and collects the cumulative growth
multipliers while they stay below 1.0. :func:`drawdowns` peels one leading
sequence from every start index, so sequences overlap; :func:`drawdown_scores`
takes the max/min over all of them.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from portfolio_analysis.analytics.primitives import FloatSeries, as_series
from portfolio_analysis.common.percent import Percent


@dataclass(frozen=True)
class DrawdownSequence:
    """Consecutive cumulative multipliers below 1.0 starting at ``start_index``."""

    start_index: int
    cumulative_returns: tuple[float, ...]
    # did the sequence recover before the data ended?
    recovered: bool

    def __len__(self) -> int:
        return len(self.cumulative_returns)

    @property
    def lowest_point(self) -> Percent:
        return min(self.cumulative_returns) - 1


@dataclass(frozen=True)
class DrawdownScores:
    max_ulcer_score: float = 0.0
    deepest_drawdown: Percent = 0.0
    longest_drawdown: int = 0


def leading_drawdown_sequence(returns: FloatSeries) -> tuple[np.ndarray, bool]:
    """Drawdown multipliers at the head of *returns*, and whether they recovered.

    Returns an empty array with ``recovered=True`` when the first year is not
    a loss, and ``(all multipliers, False)`` when no recovery is observed.
    """
    growth = np.cumprod(as_series(returns) + 1)
    recovered_at = np.flatnonzero(growth >= 1)
    if recovered_at.size == 0:
        return growth, False
    return growth[: recovered_at[0]], True


def drawdowns(returns: FloatSeries) -> list[DrawdownSequence]:
    """Every non-empty leading drawdown sequence, one per start index."""
    arr = as_series(returns)
    result: list[DrawdownSequence] = []
    for i in range(arr.size):
        sequence, recovered = leading_drawdown_sequence(arr[i:])
        if sequence.size > 0:
            result.append(
                DrawdownSequence(
                    start_index=i,
                    cumulative_returns=tuple(float(x) for x in sequence),
                    recovered=recovered,
                )
            )
    return result


def ulcer_score(cumulative_returns: FloatSeries, recovered: bool) -> float:
    """Severity of one drawdown: ``sum((1 - c) * 10)``, doubled when unrecovered."""
    score = 0.0
    for x in as_series(cumulative_returns):
        score += (1 - x) * 10
    if not recovered:
        score *= 2
    return score


def drawdown_scores(returns: FloatSeries) -> DrawdownScores:
    """Max ulcer score, deepest drawdown and longest drawdown over all sequences.

    Walks the same sequences as :func:`drawdowns` without materialising them.
    """
    arr = as_series(returns)
    max_ulcer = 0.0
    deepest = 0.0
    longest = 0
    for i in range(arr.size):
        sequence, recovered = leading_drawdown_sequence(arr[i:])
        if sequence.size == 0:
            continue
        max_ulcer = max(max_ulcer, ulcer_score(sequence, recovered))
        deepest = min(deepest, float(sequence.min()) - 1)
        longest = max(longest, int(sequence.size))
    return DrawdownScores(
        max_ulcer_score=max_ulcer,
        deepest_drawdown=deepest,
        longest_drawdown=longest,
    )
