"""Unit tests for the batch and streaming evaluation pipelines."""

from __future__ import annotations

import itertools
import logging
import queue
import threading

import pytest

from portfolio_analysis.common.errors import (
    AssetNotFoundError,
    PipelineExecutionError,
    PortfolioValidationError,
    PreconditionError,
)
from portfolio_analysis.data.registry import Asset, AssetRegistry
from portfolio_analysis.engines.combinations import Combination, combinations, percent_ladder
from portfolio_analysis.engines.evaluator import evaluate_combination
from portfolio_analysis.engines.pipeline import (
    _DONE,
    StreamingPipeline,
    evaluate_portfolios,
    find_k_assets_better_than,
    merge_queues,
    segment_indexes,
)


class TestSegmentIndexes:
    """Contiguous work splits."""

    @pytest.mark.parametrize(
        ("count", "segments", "expected"),
        [
            (1000, 4, [250, 500, 750, 1000]),
            (7, 3, [2, 4, 7]),
            (1000, 3, [333, 666, 1000]),
            (1000, 7, [142, 285, 428, 571, 714, 857, 1000]),
            (2, 5, [1, 2]),
            (0, 4, []),
        ],
    )
    def test_segments(self, count: int, segments: int, expected: list[int]) -> None:
        assert segment_indexes(count, segments) == expected

    def test_zero_segments(self) -> None:
        with pytest.raises(PreconditionError, match="greater than zero"):
            segment_indexes(10, 0)


class TestEvaluatePortfolios:
    """Batch evaluation split across worker threads."""

    def test_preserves_input_order(self, registry: AssetRegistry) -> None:
        combos = combinations(["GB", "GLD", "LTT"], percent_ladder(25))
        stats = evaluate_portfolios(combos, registry, workers=3)
        assert len(stats) == len(combos)
        assert [s.combination for s in stats] == combos
        assert stats[5] == evaluate_combination(combos[5], registry)

    def test_empty(self, registry: AssetRegistry) -> None:
        assert evaluate_portfolios([], registry, workers=2) == []

    def test_first_error_is_raised(self, registry: AssetRegistry) -> None:
        combos = [Combination(["GB"], [1.0])] * 5 + [Combination(["GB", "NOPE"], [0.5, 0.5])]
        with pytest.raises(PipelineExecutionError, match="error in segment 2, perms offset 3") as info:
            evaluate_portfolios(combos, registry, workers=2)
        assert isinstance(info.value.__cause__, AssetNotFoundError)
        assert "perm #3" in str(info.value)

    def test_failure_log_names_the_segment(self, registry: AssetRegistry, caplog: pytest.LogCaptureFixture) -> None:
        combos = [Combination(["GB"], [1.0])] * 3 + [Combination(["GB", "NOPE"], [0.5, 0.5])]
        with pytest.raises(PipelineExecutionError):
            evaluate_portfolios(combos, registry, workers=2)
        failures = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert (failures[0].segment, failures[0].offset) == (2, 2)

    def test_duplicate_assets_fail_the_batch(self, registry: AssetRegistry) -> None:
        combos = [Combination(["GB"], [1.0]), Combination(["GB", "GB"], [0.5, 0.5])]
        with pytest.raises(PipelineExecutionError, match="duplicate assets") as info:
            evaluate_portfolios(combos, registry, workers=1)
        assert isinstance(info.value.__cause__, PortfolioValidationError)


class TestMergeQueues:
    """Fan-in of per-worker queues."""

    def test_merges_until_every_input_is_done(self) -> None:
        inputs: list[queue.Queue] = [queue.Queue(), queue.Queue()]
        for i, q in enumerate(inputs):
            for j in range(3):
                q.put((i, j))
            q.put(_DONE)
        out: queue.Queue = queue.Queue()
        finished = merge_queues(inputs, out, threading.Event())
        assert finished.wait(timeout=5)
        merged = []
        while not out.empty():
            merged.append(out.get())
        assert sorted(merged) == [(i, j) for i in range(2) for j in range(3)]

    def test_cancel_stops_the_merge(self) -> None:
        cancel = threading.Event()
        finished = merge_queues([queue.Queue()], queue.Queue(), cancel)
        cancel.set()
        assert finished.wait(timeout=5)


class TestStreamingPipeline:
    """Equal-weight k-of-n scans."""

    def test_every_subset_is_evaluated(self, registry: AssetRegistry) -> None:
        names = registry.names()
        pipeline = StreamingPipeline(registry, names, 2, workers=3, batch_size=4, queue_capacity=2)
        stats = pipeline.collect()
        assert sorted(s.assets for s in stats) == sorted(itertools.combinations(names, 2))
        assert all(s.percentages == (0.5, 0.5) for s in stats)
        summary = pipeline.summary
        assert (summary.total, summary.enumerated, summary.evaluated, summary.matched) == (21, 21, 21, 21)

    def test_results_match_direct_evaluation(self, registry: AssetRegistry) -> None:
        stats = StreamingPipeline(registry, ["GB", "GLD", "REIT"], 2, workers=2, batch_size=1).collect()
        for stat in stats:
            assert stat == evaluate_combination(stat.combination, registry)

    def test_reference_filter(self, registry: AssetRegistry) -> None:
        reference = evaluate_combination(Combination(["GB"], [1.0]), registry)
        names = registry.names()
        stats = find_k_assets_better_than(registry, names, 1, reference, workers=2)
        expected = [
            n for n in names
            if evaluate_combination(Combination([n], [1.0]), registry).as_good_or_better_than(reference)
        ]
        assert sorted(s.assets[0] for s in stats) == sorted(expected)
        assert "GB" in expected

    def test_fewer_names_than_k(self, registry: AssetRegistry) -> None:
        pipeline = StreamingPipeline(registry, ["GB"], 2, workers=2)
        assert pipeline.collect() == []
        assert pipeline.summary.total == 0

    def test_invalid_arguments(self, registry: AssetRegistry) -> None:
        with pytest.raises(PreconditionError):
            StreamingPipeline(registry, ["GB"], 0)
        with pytest.raises(PreconditionError):
            StreamingPipeline(registry, ["GB"], 1, batch_size=0)
        with pytest.raises(AssetNotFoundError):
            StreamingPipeline(registry, ["GB", "NOPE"], 1)

    def test_early_close_stops_every_thread(self, registry: AssetRegistry) -> None:
        pipeline = StreamingPipeline(registry, registry.names(), 3, workers=2, batch_size=1, queue_capacity=1)
        iterator = iter(pipeline)
        first = next(iterator)
        assert len(first.assets) == 3
        iterator.close()
        assert not any(thread.is_alive() for thread in pipeline._threads)
        assert pipeline.summary.matched == 1

    def test_worker_error_is_raised(self, registry: AssetRegistry, caplog: pytest.LogCaptureFixture) -> None:
        short = Asset("SHORT", "S", 2011, 2020, [0.01] * 10)
        broken = AssetRegistry([*registry, short])
        pipeline = StreamingPipeline(broken, broken.names(), 1, workers=2, batch_size=1)
        with pytest.raises(PipelineExecutionError, match="worker") as info:
            pipeline.collect()
        assert isinstance(info.value.__cause__, PreconditionError)
        assert not any(thread.is_alive() for thread in pipeline._threads)
        failures = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert failures[0].combination == broken.names().index("SHORT") + 1
        assert failures[0].worker in (0, 1)

    def test_logs_scan_events(self, registry: AssetRegistry, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="portfolio_analysis.engines.pipeline")
        StreamingPipeline(registry, ["GB", "GLD", "LTT"], 2, workers=1, progress_every=1).collect()
        messages = [record.getMessage() for record in caplog.records]
        assert any('"event": "scan_started"' in m for m in messages)
        assert any('"event": "scan_finished"' in m for m in messages)
        assert any("combination #3 of 3" in m for m in messages)
