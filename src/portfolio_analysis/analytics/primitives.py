"""
Numeric primitives shared by the return analytics.

All functions accept any float sequence and work on float64 numpy arrays.
Windows produced by :func:`sub_slices` are read-only views onto the input.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from portfolio_analysis.common.errors import PreconditionError, require
from portfolio_analysis.common.percent import GrowthMultiplier, Percent

FloatSeries = Sequence[float] | np.ndarray


def as_series(values: FloatSeries) -> np.ndarray:
    """Return *values* as a 1-D float64 array (no copy when already one)."""
    return np.asarray(values, dtype=float).reshape(-1)


def total(values: FloatSeries) -> float:
    """Sum of the values, accumulated left to right."""
    acc = 0.0
    for x in as_series(values):
        acc += x
    return float(acc)


def product(values: FloatSeries) -> float:
    acc = 1.0
    for x in as_series(values):
        acc *= x
    return float(acc)


def mean(values: FloatSeries) -> float:
    """Arithmetic mean; NaN for an empty series."""
    arr = as_series(values)
    if arr.size == 0:
        return float("nan")
    return total(arr) / arr.size


def standard_deviation(values: FloatSeries) -> float:
    """Population standard deviation (divides by N, like STDEVP)."""
    arr = as_series(values)
    require(arr.size > 0, "returns list must not be empty")
    avg = total(arr) / arr.size
    squared = 0.0
    for x in arr:
        squared += (x - avg) ** 2
    return float(np.sqrt(squared / arr.size))


def harmonic_mean(values: FloatSeries) -> float:
    """Harmonic mean of strictly positive values; NaN for an empty series."""
    arr = as_series(values)
    if arr.size == 0:
        return float("nan")
    acc = 0.0
    for i, x in enumerate(arr):
        if x <= 0:
            raise PreconditionError(
                f"harmonic_mean requires inputs greater than zero (non-positive input), "
                f"but element #{i + 1} is {x}"
            )
        acc += 1 / x
    return arr.size / acc


def cumulative(returns: FloatSeries) -> GrowthMultiplier:
    """Cumulative growth multiplier of a Percent return series."""
    acc = 1.0
    for r in as_series(returns):
        acc *= r + 1
    return float(acc)


def cumulative_list(returns: FloatSeries) -> np.ndarray:
    """Cumulative growth after each year, always starting with ``1.0``."""
    arr = as_series(returns)
    out = np.empty(arr.size + 1, dtype=float)
    out[0] = 1.0
    np.cumprod(arr + 1, out=out[1:])
    return out


def minimum(values: FloatSeries) -> float:
    arr = as_series(values)
    require(arr.size > 0, "can't return the minimum of an empty series")
    return float(arr.min())


def sub_slices(values: FloatSeries, n: int) -> np.ndarray:
    """Every contiguous window of length *n*, as a read-only 2-D view.

    Yields ``len(values) - n + 1`` rows. Raises ``PreconditionError`` when *n*
    is negative or greater than the length of the series.
    """
    arr = as_series(values)
    length = arr.size
    if n < 0 or n > length:
        raise PreconditionError(
            f"n ({n}) cannot be greater than the length of the original slice ({length})"
        )
    if n == 0:
        windows = np.empty((length + 1, 0), dtype=float)
        windows.setflags(write=False)
        return windows
    return sliding_window_view(arr, n)


def slope(values: FloatSeries) -> Percent:
    """Least-squares slope of the series against its index."""
    arr = as_series(values)
    if arr.size < 2:
        return 0.0
    fitted_slope, _ = np.polyfit(np.arange(arr.size, dtype=float), arr, 1)
    return float(fitted_slope)
