"""
Return analytics over annual real-return series.

Compound growth, percentile ("baseline") returns, withdrawal rates and
start-date sensitivity. Definitions follow portfoliocharts.com:

- https://portfoliocharts.com/portfolio/annual-returns/
- https://portfoliocharts.com/portfolio/long-term-returns/
- https://portfoliocharts.com/portfolio/withdrawal-rates/
- https://portfoliocharts.com/portfolio/start-date-sensitivity/
"""

from __future__ import annotations

import math

import numpy as np

from portfolio_analysis.analytics.primitives import (
    FloatSeries,
    as_series,
    cumulative,
    cumulative_list,
    harmonic_mean,
    mean,
    sub_slices,
)
from portfolio_analysis.common.errors import require
from portfolio_analysis.common.percent import Percent, readable_percent

BASELINE_LONG_TERM_YEARS = 15
BASELINE_SHORT_TERM_YEARS = 3
BASELINE_PERCENTILE = readable_percent(15)
START_DATE_SENSITIVITY_YEARS = 20


# ---------------------------------------------------------------------------
# Compound growth
# ---------------------------------------------------------------------------


def cagr(returns: FloatSeries) -> Percent:
    """Compound annual growth rate; 0 for an empty series."""
    arr = as_series(returns)
    if arr.size == 0:
        return 0.0
    return math.pow(cumulative(arr), 1 / arr.size) - 1


def average_return(returns: FloatSeries) -> Percent:
    return mean(returns)


def baseline_return(returns: FloatSeries, n_years: int, percentile: Percent) -> Percent:
    """Percentile of the CAGRs of every *n_years*-long window.

    *percentile* is a fraction in ``[0, 1)``; the CAGRs are sorted ascending
    and the value at ``int(len(cagrs) * percentile)`` is returned.
    """
    arr = as_series(returns)
    if arr.size == 0:
        return 0.0
    require(
        0 <= percentile < 1,
        f"percentile must be in the range [0,1.00) but got {percentile:f}",
    )
    cagrs = sorted(cagr(window) for window in sub_slices(arr, n_years))
    return cagrs[int(len(cagrs) * percentile)]


def baseline_long_term_return(returns: FloatSeries) -> Percent:
    """Conservative long-term return: 15th percentile 15-year real CAGR."""
    return baseline_return(returns, BASELINE_LONG_TERM_YEARS, BASELINE_PERCENTILE)


def baseline_short_term_return(returns: FloatSeries) -> Percent:
    """Conservative short-term return: 15th percentile 3-year real CAGR."""
    return baseline_return(returns, BASELINE_SHORT_TERM_YEARS, BASELINE_PERCENTILE)


# ---------------------------------------------------------------------------
# Withdrawal rates
# ---------------------------------------------------------------------------


def swr(returns: FloatSeries) -> Percent:
    """Safe withdrawal rate.

    The fixed annual withdrawal, as a fraction of the starting balance, that
    exactly exhausts the account by the end of the series.
    """
    growth = cumulative_list(returns)
    return harmonic_mean(growth) / growth.size


def pwr(returns: FloatSeries) -> Percent:
    """Perpetual withdrawal rate.

    Like :func:`swr`, but the ending balance equals the starting balance.
    """
    return swr(returns) * (1.0 - 1 / cumulative(returns))


def pwr_and_swr(returns: FloatSeries) -> tuple[Percent, Percent]:
    """PWR and SWR of one series from a single cumulative-growth pass."""
    growth = cumulative_list(returns)
    safe = harmonic_mean(growth) / growth.size
    perpetual = safe * (1.0 - 1 / growth[-1])
    return float(perpetual), float(safe)


def _window_rates(windows: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """(PWR, SWR) for each row of a 2-D window view."""
    growth = np.cumprod(windows + 1, axis=1)
    require(
        bool((growth > 0).all()),
        "harmonic_mean requires inputs greater than zero (non-positive input): "
        "a window loses its whole balance",
    )
    # harmonic mean over [1, C1..Cn] divided by its length reduces to 1/sum(1/x)
    safe = 1 / (1 + np.sum(1 / growth, axis=1))
    perpetual = safe * (1.0 - 1 / growth[:, -1])
    return perpetual, safe


def all_pwrs(returns: FloatSeries, n_years: int) -> np.ndarray:
    """PWR of every *n_years*-long window, in start order."""
    if n_years == 0:
        return np.empty(0, dtype=float)
    perpetual, _ = _window_rates(sub_slices(returns, n_years))
    return perpetual


def all_swrs(returns: FloatSeries, n_years: int) -> np.ndarray:
    if n_years == 0:
        return np.empty(0, dtype=float)
    _, safe = _window_rates(sub_slices(returns, n_years))
    return safe


def min_pwr(returns: FloatSeries, n_years: int) -> tuple[Percent, int]:
    """Lowest PWR over every *n_years* window and the window's start index.

    ``n_years == 0`` returns ``(0, 0)``; windows longer than the series are a
    precondition failure.
    """
    if n_years == 0:
        return 0.0, 0
    rates = all_pwrs(returns, n_years)
    index = int(np.argmin(rates))
    return float(rates[index]), index


def min_swr(returns: FloatSeries, n_years: int) -> tuple[Percent, int]:
    if n_years == 0:
        return 0.0, 0
    rates = all_swrs(returns, n_years)
    index = int(np.argmin(rates))
    return float(rates[index]), index


def min_pwr_and_swr(returns: FloatSeries, n_years: int) -> tuple[Percent, Percent]:
    """Lowest PWR and lowest SWR over every *n_years* window, in one pass."""
    if n_years == 0:
        return 0.0, 0.0
    perpetual, safe = _window_rates(sub_slices(returns, n_years))
    return float(perpetual.min()), float(safe.min())


# ---------------------------------------------------------------------------
# Dependability
# ---------------------------------------------------------------------------


def start_date_sensitivity(
    returns: FloatSeries,
    n_years: int = START_DATE_SENSITIVITY_YEARS,
) -> Percent:
    """Spread between the best decade-over-decade improvement and the worst shortfall.

    Every *n_years* window is split in half; the CAGR of the second half minus
    the first is tracked. Result is ``best_improvement - worst_shortfall``.
    """
    half = n_years // 2
    worst_shortfall = 0.0
    best_improvement = 0.0
    for window in sub_slices(returns, n_years):
        first = cagr(window[:half])
        second = cagr(window[half:])
        diff = second - first
        if first > second:
            worst_shortfall = min(worst_shortfall, diff)
        else:
            best_improvement = max(best_improvement, diff)
    return best_improvement - worst_shortfall

