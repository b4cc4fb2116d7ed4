"""Integration tests for complete evaluate-and-rank workflows."""

from __future__ import annotations

from contextlib import closing
from pathlib import Path

import pytest

from portfolio_analysis import (
    AssetRegistry,
    Combination,
    ConfigManager,
    StreamingPipeline,
    combinations,
    evaluate_combination,
    evaluate_portfolios,
    rank_portfolios_in_place,
    stats_to_frame,
)
from portfolio_analysis.engines.combinations import percent_ladder
from portfolio_analysis.engines.evaluator import METRIC_NAMES, OVERALL_RANK
from portfolio_analysis.engines.queries import as_good_or_better_ranked, best_by_each_ranking, find_one, holds_assets


class TestPipelineWorkflow:
    """Integration tests for end-to-end portfolio scans."""

    @pytest.mark.integration
    def test_ladder_evaluate_and_rank(self, asset_table_file: Path) -> None:
        """Test a ladder of allocations is evaluated and ranked from a file."""
        profile = ConfigManager.from_default_paths().load_profile("default")
        registry = AssetRegistry.from_file(asset_table_file, profile=profile)

        combos = combinations(["GB", "GLD", "LTT", "STT"], percent_ladder(20))
        stats = evaluate_portfolios(combos, registry, profile, workers=4)
        assert len(stats) == len(combos)

        rank_portfolios_in_place(stats)
        scores = [s.overall_rank_score for s in stats]
        assert scores == sorted(scores)
        assert stats[0].rank(OVERALL_RANK).ordinal == 1

        best = best_by_each_ranking(stats)
        assert set(best) == set(METRIC_NAMES)
        for name, stat in best.items():
            assert stat.rank(name).ordinal == 1

        frame = stats_to_frame(stats)
        assert len(frame) == len(stats)
        assert frame["OverallRankScoreRank"].is_monotonic_increasing

    @pytest.mark.integration
    def test_streaming_matches_batch(self, registry: AssetRegistry) -> None:
        """Test the streaming scan and the batch form agree on every portfolio."""
        names = registry.names()
        streamed = StreamingPipeline(registry, names, 3, workers=3, batch_size=7, queue_capacity=3).collect()

        batch = evaluate_portfolios(
            [Combination(s.assets, s.percentages) for s in streamed], registry, workers=2
        )
        assert len(streamed) == 35
        assert streamed == batch

    @pytest.mark.integration
    def test_scan_better_than_reference_then_rank(self, registry: AssetRegistry) -> None:
        """Test filtered scan results are ranked alongside the reference."""
        reference = evaluate_combination(Combination(["GB"], [1.0]), registry)
        stats = StreamingPipeline(registry, registry.names(), 2, reference=reference, workers=2).collect()
        for stat in stats:
            assert stat.as_good_or_better_than(reference)

        ranked = stats + [reference]
        rank_portfolios_in_place(ranked)
        ref = find_one(ranked, holds_assets("GB"))
        assert ref is reference
        for stat in stats:
            assert as_good_or_better_ranked(reference)(stat)

    @pytest.mark.integration
    def test_early_close_of_large_scan(self, registry: AssetRegistry) -> None:
        """Test abandoning a scan part-way releases the workers."""
        pipeline = StreamingPipeline(registry, registry.names(), 3, workers=4, batch_size=2, queue_capacity=1)
        taken = []
        with closing(iter(pipeline)) as results:
            for stat in results:
                taken.append(stat)
                if len(taken) == 5:
                    break
        assert len(taken) == 5
        assert not any(thread.is_alive() for thread in pipeline._threads)
        assert pipeline.summary.evaluated <= 35
