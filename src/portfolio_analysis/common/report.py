"""Tabular views of portfolio stats for logging and diagnostics."""

from __future__ import annotations

from collections.abc import Iterable

import pandas as pd

from portfolio_analysis.engines.evaluator import METRIC_ATTRIBUTES, OVERALL_RANK, PortfolioStat

REPORT_COLUMNS = ["assets", "percentages", "rebalance_factor", *METRIC_ATTRIBUTES.values()]


def stats_to_frame(stats: Iterable[PortfolioStat], *, include_ranks: bool = True) -> pd.DataFrame:
    """One row per stat: holdings, metrics and (optionally) rank ordinals.

    Rank columns are named ``<Metric>Rank``; unranked stats show ordinal 0.
    """
    rows = []
    for stat in stats:
        row = {
            "assets": " ".join(stat.assets),
            "percentages": " ".join(f"{p * 100:g}%" for p in stat.percentages),
            "rebalance_factor": stat.rebalance_factor,
        }
        for attr in METRIC_ATTRIBUTES.values():
            row[attr] = getattr(stat, attr)
        if include_ranks:
            for name in (*METRIC_ATTRIBUTES, OVERALL_RANK):
                row[f"{name}Rank"] = stat.rank(name).ordinal
            row["overall_rank_score"] = stat.overall_rank_score
        rows.append(row)

    columns = list(REPORT_COLUMNS)
    if include_ranks:
        columns += [f"{name}Rank" for name in (*METRIC_ATTRIBUTES, OVERALL_RANK)]
        columns.append("overall_rank_score")
    return pd.DataFrame(rows, columns=columns)


def format_stats_table(stats: Iterable[PortfolioStat], *, include_ranks: bool = True) -> str:
    frame = stats_to_frame(stats, include_ranks=include_ranks)
    if frame.empty:
        return "(no portfolios)"
    return frame.to_string(index=False, float_format=lambda v: f"{v:.4f}")
