"""Unit tests for Percent helpers."""

from __future__ import annotations

import pytest

from portfolio_analysis.common.percent import (
    format_float,
    format_percent,
    format_percents,
    growth_multiplier,
    readable_percent,
    readable_percents,
    readable_returns,
)


def test_readable_percent() -> None:
    assert readable_percent(33) == 0.33
    assert readable_percent(100) == 1.0
    assert readable_percents(25, 50) == [0.25, 0.5]
    assert readable_returns([10, -5]).tolist() == [0.1, -0.05]


def test_growth_multiplier() -> None:
    assert growth_multiplier(0.05) == pytest.approx(1.05)
    assert growth_multiplier(-0.2) == pytest.approx(0.8)


class TestFormatting:
    """Readable rendering of percentages."""

    @pytest.mark.parametrize(
        ("value", "precision", "expected"),
        [
            (1.0, 2, "1"),
            (1.50, 2, "1.5"),
            (-0.0001, 2, "0"),
            (12.3456, 3, "12.346"),
        ],
    )
    def test_format_float_trims_zeros(self, value: float, precision: int, expected: str) -> None:
        assert format_float(value, precision) == expected

    def test_format_percent(self) -> None:
        assert format_percent(0.2) == "20%"
        assert format_percent(0.335) == "33.5%"
        assert format_percent(1 / 3) == "33.333333333333%"

    def test_format_percents(self) -> None:
        assert format_percents([0.2, 0.8]) == "[20% 80%]"
        assert format_percents([]) == "[]"
