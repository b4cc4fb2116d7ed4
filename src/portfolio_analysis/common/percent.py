"""Percent helpers.

A Percent is a plain float in fraction form (``1.0 == 100%``). Data files and
people use the readable 0-100 form; conversion happens explicitly at those
boundaries through :func:`readable_percent` / :func:`readable_percents`.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np

Percent = float

# A growth multiplier is centred on 1.0: a 5% return is a 1.05 multiplier.
GrowthMultiplier = float


def readable_percent(value: float) -> Percent:
    """Convert a readable percentage (0-100) to a Percent (0.00-1.00)."""
    return value / 100


def readable_percents(*values: float) -> list[Percent]:
    return [readable_percent(v) for v in values]


def readable_returns(values: Iterable[float]) -> np.ndarray:
    """Convert readable annual returns into a float64 Percent array."""
    return np.asarray(list(values), dtype=float) / 100


def growth_multiplier(p: Percent) -> GrowthMultiplier:
    return p + 1


def format_float(value: float, precision: int) -> str:
    """Fixed-point text with trailing zeros and a trailing point trimmed."""
    text = f"{value:.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text


def format_percent(p: Percent) -> str:
    """Render a Percent as e.g. ``33.5%`` (up to 12 fractional digits)."""
    return format_float(float(p) * 100, 12) + "%"


def format_percents(ps: Sequence[Percent]) -> str:
    return "[" + " ".join(format_percent(p) for p in ps) + "]"
