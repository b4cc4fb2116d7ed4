"""
Combination enumerators.

Two forms:

- :func:`combinations` pairs every non-empty subset of a small asset list
  with every allocation drawn from a cumulative percentage ladder. Results
  are materialised.
- :func:`enumerate_combinations` streams every k-of-n subset of a name
  list into one reusable buffer, for scans over hundreds of millions of
  subsets.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass

from portfolio_analysis.common.errors import PortfolioValidationError, PreconditionError
from portfolio_analysis.common.percent import Percent, format_percents, readable_percent

ALLOCATION_TOLERANCE = 1e-9


@dataclass(frozen=True)
class Combination:
    """Assets and their target allocations."""

    assets: tuple[str, ...]
    percentages: tuple[Percent, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "assets", tuple(self.assets))
        object.__setattr__(self, "percentages", tuple(float(p) for p in self.percentages))
        if len(self.assets) != len(self.percentages):
            raise PortfolioValidationError(
                f"lists must have the same length: assets ({len(self.assets)}), "
                f"percentages ({len(self.percentages)})"
            )

    def __str__(self) -> str:
        return f"[{' '.join(self.assets)}] {format_percents(self.percentages)}"

    def validate(self) -> None:
        """Raise ``PortfolioValidationError`` unless this is a complete allocation."""
        if not self.assets:
            raise PortfolioValidationError("a combination needs at least one asset")
        if len(set(self.assets)) != len(self.assets):
            raise PortfolioValidationError(f"duplicate assets in combination: {list(self.assets)}")
        check_allocations(self.percentages)


def check_allocations(percentages: Sequence[Percent]) -> None:
    total = math.fsum(percentages)
    if abs(total - 1.0) > ALLOCATION_TOLERANCE:
        raise PortfolioValidationError(f"percentages must sum to 100%, got {total!r}")


# ---------------------------------------------------------------------------
# Ladder enumeration
# ---------------------------------------------------------------------------


def combinations(assets: Sequence[str], ladder: Sequence[Percent]) -> list[Combination]:
    """Every subset of *assets* with every allocation along *ladder*.

    *ladder* is an increasing list of cumulative percentages ending at the
    full allocation, e.g. ``[0.25, 0.5, 0.75, 1.0]``. Each emitted subset
    takes a strictly increasing run of ladder entries ending at the top, which
    :func:`translate_percentages` turns into per-asset allocations.
    """
    assets = tuple(assets)
    ladder = tuple(ladder)
    memo: dict[tuple[int, int], list[tuple[tuple[str, ...], tuple[Percent, ...]]]] = {}

    def generate(a: int, p: int) -> list[tuple[tuple[str, ...], tuple[Percent, ...]]]:
        if a >= len(assets) or p >= len(ladder):
            return []
        key = (a, p)
        if key in memo:
            return memo[key]
        asset = assets[a]
        # every combination that skips this asset
        res = list(generate(a + 1, p))
        for i in range(p, len(ladder)):
            if i == len(ladder) - 1:
                res.append(((asset,), (ladder[i],)))
            for rest_assets, rest_pcts in generate(a + 1, i + 1):
                res.append(((asset,) + rest_assets, (ladder[i],) + rest_pcts))
        memo[key] = res
        return res

    return [
        Combination(names, translate_percentages(cumulative))
        for names, cumulative in generate(0, 0)
    ]


def translate_percentages(cumulative: Sequence[Percent]) -> tuple[Percent, ...]:
    """Turn cumulative ladder entries into allocations: ``[25, 50, 75, 100] -> [25, 25, 25, 25]``."""
    prev = 0.0
    res = []
    for p in cumulative:
        res.append(p - prev)
        prev = p
    return tuple(res)


def series(start: float, end: float, step: float) -> list[float]:
    """Inclusive arithmetic series from *start* to *end*."""
    if step <= 0:
        raise PreconditionError(f"step must be positive, got {step}")
    res = []
    i = 0
    value = start
    while value <= end + step * 1e-9:
        res.append(value)
        i += 1
        value = start + i * step
    return res


def series_range(step: float) -> list[float]:
    """Readable ladder ``step, 2*step, ... 100``; ``series_range(25) == [25, 50, 75, 100]``."""
    return series(step, 100, step)


def percent_ladder(step: float) -> list[Percent]:
    """Percent ladder from a readable step: ``percent_ladder(25) == [0.25, 0.5, 0.75, 1.0]``."""
    return [readable_percent(x) for x in series_range(step)]


def equal_weight_allocations(n: int) -> tuple[Percent, ...]:
    if n < 1:
        raise PreconditionError(f"n must be at least 1, got {n}")
    return tuple([1 / n] * n)


def parse_assets(text: str) -> list[str]:
    """Split a pipe-delimited asset list: ``"|TSM|GLD|"`` -> ``["TSM", "GLD"]``."""
    return [part.strip() for part in text.split("|") if part.strip()]


def consists_of(assets: Sequence[str], expected: Iterable[str] | Mapping[str, bool]) -> bool:
    """True when *assets* holds exactly the names in *expected*, in any order."""
    if isinstance(expected, Mapping):
        wanted = {name for name, flag in expected.items() if flag}
    else:
        wanted = set(expected)
    if len(assets) != len(wanted):
        return False
    return all(asset in wanted for asset in assets)


# ---------------------------------------------------------------------------
# Streaming k-of-n enumeration
# ---------------------------------------------------------------------------


class EnumerationSignal(enum.Enum):
    CONTINUE = "continue"
    STOP = "stop"


def enumerate_combinations(
    xs: Sequence[str],
    k: int,
    buffer: list[str],
    callback: Callable[[], EnumerationSignal | None],
) -> int:
    """Write every k-subset of *xs* into *buffer*, calling *callback* after each.

    Subsets come out in lexicographic index order. *buffer* holds the
    current subset only until *callback* returns; callers that keep it must
    copy. Returning ``EnumerationSignal.STOP`` ends the enumeration.
    Returns the number of subsets delivered.
    """
    n = len(xs)
    if n == 0 or k <= 0 or n < k:
        return 0
    if len(buffer) < k:
        raise PreconditionError(f"buffer holds {len(buffer)} names, need {k}")

    indices = list(range(k))
    for pos in range(k):
        buffer[pos] = xs[pos]

    count = 0
    while True:
        count += 1
        if callback() is EnumerationSignal.STOP:
            return count

        # rightmost index that can still move
        i = k - 1
        while i >= 0 and indices[i] == n - k + i:
            i -= 1
        if i < 0:
            return count
        indices[i] += 1
        buffer[i] = xs[indices[i]]
        for j in range(i + 1, k):
            indices[j] = indices[j - 1] + 1
            buffer[j] = xs[indices[j]]


def binomial(n: int, k: int) -> int:
    """Exact ``n choose k``."""
    if n < 0 or k < 0:
        raise PreconditionError("binomial: negative input")
    if n < k:
        raise PreconditionError("binomial: n < k")
    return math.comb(n, k)
