"""
Asset Registry - named annual real-return series.

Parses a tab-separated asset table once at startup and serves read-only
return series by name. Two table layouts are accepted:

- ``row``: header row ``Name<TAB>Symbol<TAB>YEAR1<TAB>YEAR2...`` followed by
  one asset per row.
- ``column``: the spreadsheet export, one asset per column; the table is
  transposed on read and then parsed as ``row``.

Returns in the table are readable percentages (``5.2`` means 5.2%) and are
stored as Percent fractions.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import pandas as pd

from portfolio_analysis.common.config_manager import AnalysisProfile
from portfolio_analysis.common.errors import AssetDataError, AssetNotFoundError, PortfolioValidationError
from portfolio_analysis.common.percent import readable_percent

logger = logging.getLogger(__name__)

TABLE_LAYOUTS = ("row", "column")


@dataclass(frozen=True)
class Asset:
    """Historical annual returns of one asset."""

    name: str
    symbol: str
    first_year: int
    last_year: int
    returns: np.ndarray = field(repr=False, compare=False)

    def __post_init__(self) -> None:
        returns = np.array(self.returns, dtype=float)
        returns.setflags(write=False)
        object.__setattr__(self, "returns", returns)
        if returns.size != self.last_year - self.first_year + 1:
            raise AssetDataError(
                f"asset {self.name!r}: {returns.size} returns do not span "
                f"{self.first_year}-{self.last_year}"
            )

    @property
    def years(self) -> int:
        return int(self.returns.size)

    def returns_starting_in(self, year: int) -> np.ndarray:
        """Returns from *year* onwards (clamped to the first year)."""
        if year < self.first_year:
            year = self.first_year
        if year > self.last_year:
            return self.returns[:0]
        return self.returns[year - self.first_year :]


class AssetRegistry:
    """Read-only mapping of asset name to :class:`Asset`."""

    def __init__(self, assets: Iterable[Asset]):
        by_name: dict[str, Asset] = {}
        for asset in assets:
            if asset.name in by_name:
                raise AssetDataError(f"duplicate asset name: {asset.name!r}")
            by_name[asset.name] = asset
        self._assets = by_name

    @classmethod
    def from_text(
        cls,
        text: str,
        *,
        layout: str = "row",
        profile: AnalysisProfile | None = None,
    ) -> "AssetRegistry":
        return cls(parse_asset_table(text, layout=layout, profile=profile))

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        *,
        layout: str = "row",
        profile: AnalysisProfile | None = None,
    ) -> "AssetRegistry":
        path = Path(path).expanduser()
        if not path.exists():
            raise AssetDataError(f"asset table not found: {path}")
        registry = cls.from_text(path.read_text(encoding="utf-8"), layout=layout, profile=profile)
        logger.info(
            "Loaded %d assets (%s-%s) from %s",
            len(registry),
            registry.first_year,
            registry.last_year,
            path,
        )
        return registry

    def __len__(self) -> int:
        return len(self._assets)

    def __contains__(self, name: object) -> bool:
        return name in self._assets

    def __iter__(self) -> Iterator[Asset]:
        return iter(self._assets.values())

    def __getitem__(self, name: str) -> Asset:
        return self.must_find(name)

    @property
    def first_year(self) -> int | None:
        return min((a.first_year for a in self), default=None)

    @property
    def last_year(self) -> int | None:
        return max((a.last_year for a in self), default=None)

    def names(self) -> list[str]:
        return sorted(self._assets)

    def find(self, name: str) -> Asset | None:
        return self._assets.get(name)

    def must_find(self, name: str) -> Asset:
        asset = self._assets.get(name)
        if asset is None:
            raise AssetNotFoundError(name)
        return asset

    def returns_starting_in(self, name: str, year: int) -> np.ndarray:
        return self.must_find(name).returns_starting_in(year)

    def aligned_returns(self, names: Sequence[str]) -> list[np.ndarray]:
        """Return series of *names* trimmed to the years they all cover.

        Every slice starts at the latest first year and ends at the earliest
        last year, so they align year for year.
        """
        assets = [self.must_find(name) for name in names]
        if not assets:
            return []
        first = max(a.first_year for a in assets)
        last = min(a.last_year for a in assets)
        if first > last:
            raise PortfolioValidationError(
                f"assets {list(names)} have no years in common ({first} > {last})"
            )
        return [a.returns[first - a.first_year : last - a.first_year + 1] for a in assets]


# ---------------------------------------------------------------------------
# Table parsing
# ---------------------------------------------------------------------------


def read_table(text: str, layout: str = "row") -> list[list[str]]:
    """Read TSV text into rows of stripped cells, transposing ``column`` tables."""
    if layout not in TABLE_LAYOUTS:
        raise AssetDataError(f"unknown table layout {layout!r}, expected one of {TABLE_LAYOUTS}")
    if not text.strip():
        raise AssetDataError("asset table is empty")

    width = max(line.count("\t") for line in text.splitlines()) + 1
    try:
        frame = pd.read_csv(
            io.StringIO(text),
            sep="\t",
            header=None,
            names=range(width),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
        )
    except (pd.errors.ParserError, ValueError) as exc:
        raise AssetDataError(f"failed to read asset table: {exc}") from exc

    frame = frame.fillna("").apply(lambda col: col.str.strip())
    if layout == "column":
        frame = frame.T
    return frame.values.tolist()


def parse_asset_table(
    text: str,
    *,
    layout: str = "row",
    profile: AnalysisProfile | None = None,
) -> list[Asset]:
    """Parse an asset table into validated assets.

    Raises ``AssetDataError`` when the year header is not a +1 sequence, a
    row is missing its name or symbol, a return cell is blank after the
    asset's first year or not numeric, an asset's history is shorter than the
    profile minimum, an asset does not run to the table's last year, or two
    assets share a name.
    """
    profile = profile or AnalysisProfile()
    rows = read_table(text, layout)
    years = _parse_years(rows[0][2:], profile)
    last_year = years[-1]

    assets: list[Asset] = []
    for i, row in enumerate(rows[1:], start=1):
        name, symbol = (row + ["", ""])[:2]
        if not any(row):
            break
        if not name or not symbol:
            raise AssetDataError(f"name or symbol should not be empty in row #{i}")
        name = profile.normalize_name(name)

        returns: list[float] = []
        first: int | None = None
        last = 0
        for j, cell in enumerate(row[2 : 2 + len(years)]):
            if cell == "":
                if first is not None:
                    raise AssetDataError(
                        f"row #{i}, year {years[j]}: blank return after the first year {first}"
                    )
                continue
            try:
                value = float(cell)
            except ValueError as exc:
                raise AssetDataError(f"row #{i}, year {years[j]}: not a number: {cell!r}") from exc
            returns.append(readable_percent(value))
            if first is None:
                first = years[j]
            last = years[j]

        if first is None:
            raise AssetDataError(f"row #{i} ({name}): no returns")
        if last != last_year:
            raise AssetDataError(
                f"row #{i} ({name}): data ends in {last}, all rows should run to {last_year}"
            )
        if len(returns) < profile.min_history_years:
            raise AssetDataError(
                f"row #{i} ({name}): {len(returns)} years of history, "
                f"expected at least {profile.min_history_years}"
            )
        assets.append(Asset(name=name, symbol=symbol, first_year=first, last_year=last, returns=returns))

    names = [a.name for a in assets]
    if len(set(names)) != len(names):
        duplicates = sorted({n for n in names if names.count(n) > 1})
        raise AssetDataError(f"duplicate asset names: {duplicates}")
    if not assets:
        raise AssetDataError("asset table has no asset rows")
    logger.debug("Parsed %d assets from a %s table", len(assets), layout)
    return assets


def _parse_years(cells: list[str], profile: AnalysisProfile) -> list[int]:
    # trailing empty header cells come from ragged rows
    while cells and cells[-1] == "":
        cells = cells[:-1]
    if not cells:
        raise AssetDataError("year header is empty")

    years: list[int] = []
    for i, cell in enumerate(cells):
        try:
            year = int(cell)
        except ValueError as exc:
            raise AssetDataError(f"year #{i + 1} is not an integer: {cell!r}") from exc
        if years and year != years[-1] + 1:
            raise AssetDataError(f"unexpected year #{i + 1}: should always be increasing by 1")
        years.append(year)

    if profile.first_year is not None and years[0] != profile.first_year:
        raise AssetDataError(f"unexpected first year: {years[0]}")
    if profile.last_year is not None and years[-1] != profile.last_year:
        raise AssetDataError(f"unexpected last year: {years[-1]}")
    return years
