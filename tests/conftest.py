"""Shared pytest fixtures for portfolio_analysis tests."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pytest

from portfolio_analysis import AnalysisProfile, AssetRegistry, Combination

TESTDATA_DIR = Path(__file__).resolve().parent / "testdata"

# Golden Butterfly (TSM SCV LTT STT GLD at 20% each) real returns, 1970-2020.
GOLDEN_BUTTERFLY_RETURNS = [
    -0.1533383268282135, 0.017318791285211466, 0.10068425974797353, 0.11372919971053391,
    -0.0172148539804938, -0.06461024302567049, 0.09360907230753582, 0.139978985084822,
    0.009677225905924784, 0.03404942084475439, 0.2372421712101816, 0.025928538460314007,
    -0.09709304924704815, 0.1973312916341973, 0.07495518258141035, -0.010392136396391902,
    0.18336903125620316, 0.14078544233466855, 0.00018309646857563727, 0.04669750085940259,
    0.08673884623758171, -0.08572038845018258, 0.1563762834314272, 0.061295238653148135,
    0.10983322532725735, -0.0465004614702163, 0.178993634975939, 0.052560744788289336,
    0.11162614426521761, 0.05817517787259961, 0.016929554860230407, 0.03104069332156112,
    0.017056422822255918, -0.0017220660217116823, 0.16666679718569166, 0.06405102737142347,
    0.03846823294327486, 0.09777651111177979, 0.04997737064863614, -0.06695505567337855,
    0.11050169878101092, 0.14604978374972077, 0.04114653873382587, 0.07603962935631807,
    0.04372680283039169, 0.08816734725542127, -0.04048477144240979, 0.07444466516990281,
    0.08438538586983815, -0.05602189725865632, 0.1534744248725398,
]

FIRST_YEAR = 1970
LAST_YEAR = 2020

# name as written in the table, symbol, first year with data
SYNTHETIC_ASSETS = [
    ("TSM (US)", "VTSMX", FIRST_YEAR),
    ("SCV", "DFSVX", FIRST_YEAR),
    ("LTT", "VUSTX", FIRST_YEAR),
    ("STT", "VFISX", FIRST_YEAR),
    ("GLD", "GLD", FIRST_YEAR),
    ("REIT", "VGSIX", 1980),
]


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--update-goldens",
        action="store_true",
        default=False,
        help="rewrite tests/testdata/*.golden from the current output",
    )


def make_asset_table(rows: list[tuple[str, str, list[str]]], years: range) -> str:
    """Row-layout TSV text for *rows* of (name, symbol, readable return cells)."""
    lines = ["\t".join(["Name", "Symbol", *(str(y) for y in years)])]
    for name, symbol, cells in rows:
        lines.append("\t".join([name, symbol, *cells]))
    return "\n".join(lines) + "\n"


@pytest.fixture
def gb_returns() -> np.ndarray:
    """Golden Butterfly annual real returns as a Percent array."""
    return np.array(GOLDEN_BUTTERFLY_RETURNS, dtype=float)


@pytest.fixture
def gb_combination() -> Combination:
    return Combination(("TSM", "SCV", "LTT", "STT", "GLD"), (0.2, 0.2, 0.2, 0.2, 0.2))


@pytest.fixture
def asset_table_text() -> str:
    """Deterministic row-layout asset table covering 1970-2020.

    Holds the Golden Butterfly series as asset ``GB``, five seeded random
    assets (``TSM (US)`` is aliased to ``TSM``) and ``REIT``, whose first ten
    years are blank.
    """
    years = range(FIRST_YEAR, LAST_YEAR + 1)
    rows: list[tuple[str, str, list[str]]] = [
        ("GB", "GB", [repr(r * 100) for r in GOLDEN_BUTTERFLY_RETURNS]),
    ]
    for idx, (name, symbol, first_year) in enumerate(SYNTHETIC_ASSETS):
        rng = np.random.default_rng(seed=2024 + idx)
        values = rng.normal(5.0, 12.0, len(years))
        cells = ["" if year < first_year else f"{value:.4f}" for year, value in zip(years, values)]
        rows.append((name, symbol, cells))
    return make_asset_table(rows, years)


@pytest.fixture
def profile() -> AnalysisProfile:
    return AnalysisProfile()


@pytest.fixture
def registry(asset_table_text: str, profile: AnalysisProfile) -> AssetRegistry:
    return AssetRegistry.from_text(asset_table_text, profile=profile)


@pytest.fixture
def asset_table_file(tmp_path: Path, asset_table_text: str) -> Path:
    path = tmp_path / "assets.tsv"
    path.write_text(asset_table_text, encoding="utf-8")
    return path


@pytest.fixture
def golden(request: pytest.FixtureRequest):
    """Compare text against ``tests/testdata/<Class>__<test>.golden``.

    Run pytest with ``--update-goldens`` to rewrite the file first.
    """
    name = request.node.nodeid.split("::", 1)[1].replace("::", "__")
    path = TESTDATA_DIR / f"{name}.golden"

    def check(actual: str) -> None:
        if request.config.getoption("--update-goldens"):
            TESTDATA_DIR.mkdir(exist_ok=True)
            path.write_text(actual + "\n", encoding="utf-8")
        assert path.exists(), f"missing golden file {path}; rerun with --update-goldens"
        assert path.read_text(encoding="utf-8").rstrip("\n") == actual

    return check


@pytest.fixture
def restore_root_logging():
    """Undo root logger changes made by ``configure_logging``."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
