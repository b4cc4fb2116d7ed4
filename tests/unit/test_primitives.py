"""Unit tests for portfolio_analysis.analytics.primitives."""

from __future__ import annotations

import math

import numpy as np
import pytest

from portfolio_analysis.analytics.primitives import (
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
from portfolio_analysis.common.errors import PreconditionError
from portfolio_analysis.common.percent import readable_percents, readable_returns
from portfolio_analysis.engines.combinations import series


class TestAggregates:
    """Tests for sums, products and means."""

    def test_total_and_product(self) -> None:
        assert total([]) == 0.0
        assert total([1.0, 2.0, 3.5]) == 6.5
        assert product([]) == 1.0
        assert product([2.0, 3.0, 0.5]) == 3.0

    def test_mean_of_empty_is_nan(self) -> None:
        assert math.isnan(mean([]))

    def test_mean(self) -> None:
        assert mean(readable_percents(1)) == 0.01
        assert mean(readable_percents(1, 2)) == pytest.approx(0.015)
        assert mean(readable_returns(series(0, 100, 1))) == pytest.approx(0.5)

    def test_minimum(self) -> None:
        assert minimum([3.0, -1.0, 2.0]) == -1.0
        with pytest.raises(PreconditionError):
            minimum([])


class TestStandardDeviation:
    """Population standard deviation."""

    @pytest.mark.parametrize(
        ("values", "expected"),
        [
            ([1], 0.0),
            ([1, 2], 0.5),
            ([1, 2, 3, 4], 1.118033988749895),
            ([1, -2, 3, -4], 2.692582403567252),
        ],
    )
    def test_known_values(self, values: list[float], expected: float) -> None:
        assert standard_deviation(values) == pytest.approx(expected, rel=1e-12)

    def test_golden_butterfly(self, gb_returns: np.ndarray) -> None:
        assert standard_deviation(gb_returns) == pytest.approx(0.08102969356581732, rel=1e-12)

    def test_empty_series_fails(self) -> None:
        with pytest.raises(PreconditionError):
            standard_deviation([])


class TestHarmonicMean:
    """Harmonic mean of positive values."""

    def test_empty_is_nan(self) -> None:
        assert math.isnan(harmonic_mean([]))

    def test_non_positive_input_fails(self) -> None:
        with pytest.raises(PreconditionError, match="non-positive input"):
            harmonic_mean([0])
        with pytest.raises(PreconditionError, match="element #2"):
            harmonic_mean([1, -1])

    @pytest.mark.parametrize(
        ("values", "expected"),
        [
            ([1], 1.0),
            ([1, 2], 1.3333333333333333),
            ([1, 2, 3, 4, 5], 2.18978102189781),
        ],
    )
    def test_known_values(self, values: list[float], expected: float) -> None:
        assert harmonic_mean(values) == pytest.approx(expected, rel=1e-12)

    @pytest.mark.parametrize("values", [[1.0, 2.0, 3.0, 4.0, 5.0], [0.5, 8.0], [1.2, 0.96, 1.1]])
    def test_below_arithmetic_mean(self, values: list[float]) -> None:
        """Test the harmonic mean is strictly below the mean of unequal values."""
        assert harmonic_mean(values) < mean(values)

    def test_equals_mean_of_constant_values(self) -> None:
        assert harmonic_mean([1.07] * 12) == pytest.approx(mean([1.07] * 12), rel=1e-12)

    def test_golden_butterfly_growth(self, gb_returns: np.ndarray) -> None:
        growth = cumulative_list(gb_returns)
        assert harmonic_mean(growth) <= mean(growth)


class TestCumulative:
    """Cumulative growth multipliers."""

    def test_cumulative(self) -> None:
        assert cumulative([]) == 1.0
        assert cumulative(readable_percents(20)) == pytest.approx(1.2)
        assert cumulative(readable_percents(20, -20)) == pytest.approx(0.96)

    def test_cumulative_list_starts_at_one(self) -> None:
        assert cumulative_list([]).tolist() == [1.0]
        assert cumulative_list(readable_percents(20)).tolist() == pytest.approx([1.0, 1.2])
        assert cumulative_list(readable_percents(20, -20)).tolist() == pytest.approx([1.0, 1.2, 0.96])

    def test_cumulative_list_matches_cumulative(self, gb_returns: np.ndarray) -> None:
        assert cumulative_list(gb_returns)[-1] == pytest.approx(cumulative(gb_returns), rel=1e-12)


class TestSubSlices:
    """Sliding windows over a series."""

    def test_windows(self) -> None:
        assert sub_slices([1, 2, 3], 2).tolist() == [[1, 2], [2, 3]]
        assert sub_slices([1, 2, 3], 3).tolist() == [[1, 2, 3]]
        assert sub_slices([1, 2, 3], 1).tolist() == [[1], [2], [3]]

    def test_window_count(self, gb_returns: np.ndarray) -> None:
        assert sub_slices(gb_returns, 30).shape == (22, 30)

    @pytest.mark.parametrize("values", [[], [1.0, 2.0]])
    def test_zero_width_windows(self, values: list[float]) -> None:
        """Test n=0 yields len+1 empty read-only windows, even for an empty series."""
        windows = sub_slices(values, 0)
        assert windows.shape == (len(values) + 1, 0)
        assert not windows.flags.writeable

    def test_windows_are_read_only_views(self) -> None:
        values = np.array([1.0, 2.0, 3.0])
        windows = sub_slices(values, 2)
        assert not windows.flags.writeable
        with pytest.raises(ValueError):
            windows[0, 0] = 9.0

    def test_window_longer_than_series_fails(self) -> None:
        with pytest.raises(PreconditionError, match="cannot be greater than"):
            sub_slices([1], 2)
        with pytest.raises(PreconditionError):
            sub_slices([1, 2], -1)


def test_slope() -> None:
    assert slope([]) == 0.0
    assert slope([5.0]) == 0.0
    assert slope([1.0, 2.0, 3.0]) == pytest.approx(1.0)
    assert slope([3.0, 1.0, -1.0]) == pytest.approx(-2.0)
