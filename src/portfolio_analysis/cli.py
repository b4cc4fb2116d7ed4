"""
Portfolio Analysis Command Line Interface.

Usage:
    portfolio-analysis --help
    portfolio-analysis --data assets.tsv info
    portfolio-analysis --data assets.tsv evaluate TSM,SCV,LTT,STT,GLD
    portfolio-analysis --data assets.tsv scan -k 3 --reference TSM,SCV,LTT,STT,GLD
    portfolio-analysis --data assets.tsv ladder TSM,LTT,GLD --step 10
"""

from __future__ import annotations

import argparse
import logging
import sys

from . import __version__
from .common.config_manager import ConfigError, ConfigManager
from .common.errors import PortfolioAnalysisError
from .common.percent import readable_percent
from .common.report import format_stats_table
from .data.registry import AssetRegistry
from .engines.combinations import Combination, combinations, equal_weight_allocations, parse_assets, percent_ladder
from .engines.evaluator import PortfolioStat, evaluate_combination
from .engines.pipeline import StreamingPipeline, evaluate_portfolios
from .engines.ranking import rank_portfolios_in_place
from .observability.logging import configure_logging
from .settings import AnalysisSettings

logger = logging.getLogger(__name__)


def _names(text: str) -> list[str]:
    if "|" in text:
        return parse_assets(text)
    return [part.strip() for part in text.split(",") if part.strip()]


def _combination(assets: str, percentages: str | None) -> Combination:
    names = _names(assets)
    if percentages:
        weights = tuple(readable_percent(float(p)) for p in percentages.split(","))
    else:
        weights = equal_weight_allocations(len(names))
    combination = Combination(names, weights)
    combination.validate()
    return combination


def _context(args):
    settings: AnalysisSettings = args.settings
    profile = ConfigManager.from_default_paths().load_profile(args.profile or settings.profile)
    data_file = args.data or settings.data_file
    if not data_file:
        raise ConfigError("no asset table given; pass --data or set PORTFOLIO_ANALYSIS_DATA_FILE")
    registry = AssetRegistry.from_file(data_file, layout=args.layout or settings.data_layout, profile=profile)
    return settings, profile, registry


def _print_top(stats: list[PortfolioStat], top: int) -> None:
    for stat in stats[:top]:
        print(stat)


def cmd_info(args) -> None:
    """Show package information and the loaded assets."""
    manager = ConfigManager.from_default_paths()
    print(f"Portfolio Analysis v{__version__}")
    print(f"Profiles: {', '.join(manager.list_available())}")
    if not (args.data or args.settings.data_file):
        return
    _, profile, registry = _context(args)
    print(f"\nProfile: {profile.name}")
    print(f"Assets ({len(registry)}, {registry.first_year}-{registry.last_year}):\n")
    for name in registry.names():
        asset = registry.must_find(name)
        print(f"  - {asset.name:<12} {asset.symbol:<10} {asset.first_year}-{asset.last_year}")


def cmd_evaluate(args) -> None:
    """Evaluate one allocation."""
    _, profile, registry = _context(args)
    combination = _combination(args.assets, args.percentages)
    stat = evaluate_combination(combination, registry, profile, rebalance_factor=args.rebalance_factor)
    print(stat)


def cmd_scan(args) -> None:
    """Scan every equal-weight k-asset portfolio, optionally against a reference."""
    settings, profile, registry = _context(args)
    if args.assets:
        names = _names(args.assets)
    else:
        names = list(settings.assets) or registry.names()

    reference = None
    if args.reference:
        reference = evaluate_combination(
            _combination(args.reference, args.reference_percentages), registry, profile
        )
        print(f"Reference: {reference}")

    pipeline = StreamingPipeline(
        registry,
        names,
        args.k,
        profile,
        reference=reference,
        workers=args.workers or settings.workers,
        batch_size=settings.batch_size,
        queue_capacity=settings.queue_capacity,
        progress_every=settings.progress_every,
    )
    stats = pipeline.collect()
    summary = pipeline.summary
    print(
        f"Evaluated {summary.evaluated} of {summary.total} portfolios in "
        f"{summary.elapsed_seconds:.1f}s, {summary.matched} kept"
    )
    if not stats:
        return
    if reference is not None:
        stats.append(reference)
    rank_portfolios_in_place(stats)
    _print_top(stats, args.top)


def cmd_ladder(args) -> None:
    """Rank every allocation of a small asset set along a percentage ladder."""
    settings, profile, registry = _context(args)
    combos = combinations(_names(args.assets), percent_ladder(args.step))
    print(f"Evaluating {len(combos)} combinations...")
    stats = evaluate_portfolios(combos, registry, profile, workers=args.workers or settings.workers)
    rank_portfolios_in_place(stats)
    if args.table:
        print(format_stats_table(stats[: args.top]))
    else:
        _print_top(stats, args.top)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portfolio-analysis",
        description="Portfolio Analysis - evaluate and rank asset allocations",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--data", help="Asset table (TSV)")
    parser.add_argument("--layout", choices=("row", "column"), help="Asset table layout")
    parser.add_argument("--profile", help="Analysis profile name")
    parser.add_argument("--log-level", help="Logging level")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    info_parser = subparsers.add_parser("info", help="Show profiles and assets")
    info_parser.set_defaults(func=cmd_info)

    evaluate_parser = subparsers.add_parser("evaluate", help="Evaluate one allocation")
    evaluate_parser.add_argument("assets", help="Comma- or pipe-separated asset names")
    evaluate_parser.add_argument("--percentages", help="Comma-separated readable percentages (default: equal)")
    evaluate_parser.add_argument("--rebalance-factor", type=float, default=1.0)
    evaluate_parser.set_defaults(func=cmd_evaluate)

    scan_parser = subparsers.add_parser("scan", help="Scan k-asset equal-weight portfolios")
    scan_parser.add_argument("-k", type=int, required=True, help="Assets per portfolio")
    scan_parser.add_argument(
        "--assets", help="Asset universe (default: PORTFOLIO_ANALYSIS_ASSETS, else every asset)"
    )
    scan_parser.add_argument("--reference", help="Keep only portfolios as good as this allocation")
    scan_parser.add_argument("--reference-percentages", help="Readable percentages for --reference")
    scan_parser.add_argument("--workers", type=int)
    scan_parser.add_argument("--top", type=int, default=20)
    scan_parser.set_defaults(func=cmd_scan)

    ladder_parser = subparsers.add_parser("ladder", help="Rank ladder allocations of a few assets")
    ladder_parser.add_argument("assets", help="Comma- or pipe-separated asset names")
    ladder_parser.add_argument("--step", type=float, default=10.0, help="Readable ladder step")
    ladder_parser.add_argument("--workers", type=int)
    ladder_parser.add_argument("--top", type=int, default=20)
    ladder_parser.add_argument("--table", action="store_true", help="Print a metrics table")
    ladder_parser.set_defaults(func=cmd_ladder)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    settings = AnalysisSettings.from_env()
    args.settings = settings
    configure_logging(
        (args.log_level or settings.log_level).upper(),
        json_format=args.json_logs or settings.log_json,
        log_file=settings.log_file,
    )

    try:
        args.func(args)
    except (PortfolioAnalysisError, ConfigError) as exc:
        logger.debug("command failed", exc_info=True)
        message = getattr(exc, "user_message", str(exc))
        print(f"error: {message}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
