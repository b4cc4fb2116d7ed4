"""
Parallel evaluation pipelines.

Two forms share :class:`~portfolio_analysis.engines.evaluator.PortfolioEvaluator`:

- :func:`evaluate_portfolios` (batch): splits a list of combinations into
  contiguous segments, one per worker, and returns stats in input order.
- :class:`StreamingPipeline` (scan): a producer thread enumerates k-of-n
  subsets into batches on a bounded queue; worker threads evaluate them
  (optionally keeping only stats as good or better than a reference) into
  per-worker queues, which are merged into one unordered result stream.

In both forms the first worker error wins: it is recorded under a lock and
the call raises ``PipelineExecutionError`` with that error as its cause. The
streaming form also cancels the producer and the other workers; the batch
form lets the remaining segments finish. No partial results are returned.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any

from portfolio_analysis.common.config_manager import AnalysisProfile
from portfolio_analysis.common.errors import PipelineExecutionError, PreconditionError
from portfolio_analysis.data.registry import AssetRegistry
from portfolio_analysis.engines.combinations import (
    Combination,
    EnumerationSignal,
    binomial,
    enumerate_combinations,
    equal_weight_allocations,
)
from portfolio_analysis.engines.evaluator import DEFAULT_PROFILE, PortfolioEvaluator, PortfolioStat
from portfolio_analysis.observability.logging import log_event
from portfolio_analysis.settings.settings import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_PROGRESS_EVERY,
    DEFAULT_QUEUE_CAPACITY,
    default_workers,
)

logger = logging.getLogger(__name__)

_POLL_SECONDS = 0.05
_DONE = object()
_CANCELLED = object()


def segment_indexes(count: int, segments: int) -> list[int]:
    """End index of each of *segments* near-equal contiguous runs over *count* items.

    ``segment_indexes(1000, 4) == [250, 500, 750, 1000]``. With no more items
    than segments every item gets its own run.
    """
    if segments < 1:
        raise PreconditionError(f"segments must be greater than zero but got {segments}")
    if count <= segments:
        return list(range(1, count + 1))
    step = count / segments
    return [int(i * step) for i in range(1, segments)] + [count]


# ---------------------------------------------------------------------------
# Batch form
# ---------------------------------------------------------------------------


def evaluate_portfolios(
    combinations: Sequence[Combination],
    registry: AssetRegistry,
    profile: AnalysisProfile = DEFAULT_PROFILE,
    *,
    workers: int | None = None,
    rebalance_factor: float = 1.0,
) -> list[PortfolioStat]:
    """Evaluate every combination in parallel, preserving input order."""
    combinations = list(combinations)
    if not combinations:
        return []
    bounds = segment_indexes(len(combinations), workers or default_workers())
    results: list[Any] = [None] * len(combinations)

    lock = threading.Lock()
    first_error: list[tuple[str, BaseException]] = []

    def run_segment(segment: int, start: int, end: int) -> None:
        evaluator = PortfolioEvaluator(registry, profile, rebalance_factor=rebalance_factor)
        try:
            stats = evaluator.evaluate_many(combinations[start:end])
        except Exception as exc:
            message = f"error in segment {segment}, perms offset {start}: {exc}"
            logger.error(message, extra={"segment": segment, "offset": start})
            with lock:
                if not first_error:
                    first_error.append((message, exc))
            return
        results[start:end] = stats

    started = time.perf_counter()
    with ThreadPoolExecutor(max_workers=len(bounds)) as executor:
        futures = []
        start = 0
        for segment, end in enumerate(bounds, start=1):
            futures.append(executor.submit(run_segment, segment, start, end))
            start = end
        for future in as_completed(futures):
            future.result()

    if first_error:
        message, cause = first_error[0]
        raise PipelineExecutionError(message) from cause

    elapsed = time.perf_counter() - started
    log_event(
        logger,
        "evaluate_portfolios_finished",
        portfolios=len(results),
        segments=len(bounds),
        elapsed_seconds=round(elapsed, 3),
    )
    return results


# ---------------------------------------------------------------------------
# Streaming form
# ---------------------------------------------------------------------------


def _put(q: queue.Queue, item: Any, cancel: threading.Event) -> bool:
    """Blocking put that gives up once *cancel* is set."""
    while not cancel.is_set():
        try:
            q.put(item, timeout=_POLL_SECONDS)
            return True
        except queue.Full:
            continue
    return False


def _get(q: queue.Queue, cancel: threading.Event) -> Any:
    """Blocking get that returns ``_CANCELLED`` once *cancel* is set."""
    while not cancel.is_set():
        try:
            return q.get(timeout=_POLL_SECONDS)
        except queue.Empty:
            continue
    return _CANCELLED


def merge_queues(
    inputs: Sequence[queue.Queue],
    out: queue.Queue,
    cancel: threading.Event,
) -> threading.Event:
    """Pump every input queue into *out* until each delivers ``_DONE``.

    Returns an event that is set once all inputs are exhausted (or the merge
    was cancelled) and nothing more will be put on *out*.
    """
    finished = threading.Event()

    def pump(source: queue.Queue) -> None:
        while True:
            item = _get(source, cancel)
            if item is _DONE or item is _CANCELLED:
                return
            if not _put(out, item, cancel):
                return

    pumps = [
        threading.Thread(target=pump, args=(source,), name=f"merge-{i}", daemon=True)
        for i, source in enumerate(inputs)
    ]
    for thread in pumps:
        thread.start()

    def close() -> None:
        for thread in pumps:
            thread.join()
        finished.set()

    threading.Thread(target=close, name="merge-close", daemon=True).start()
    return finished


@dataclass
class ScanSummary:
    total: int = 0
    enumerated: int = 0
    evaluated: int = 0
    matched: int = 0
    elapsed_seconds: float = 0.0

    @property
    def portfolios_per_second(self) -> float:
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.evaluated / self.elapsed_seconds


class StreamingPipeline:
    """Evaluate every equal-weight k-of-n portfolio of *names* across worker threads.

    Iterating yields stats in no particular order. With a *reference*, only
    stats as good or better than it on every metric are yielded. Closing the
    iterator early cancels the producer and workers.
    """

    def __init__(
        self,
        registry: AssetRegistry,
        names: Sequence[str],
        k: int,
        profile: AnalysisProfile = DEFAULT_PROFILE,
        *,
        reference: PortfolioStat | None = None,
        workers: int | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        queue_capacity: int = DEFAULT_QUEUE_CAPACITY,
        progress_every: int = DEFAULT_PROGRESS_EVERY,
        rebalance_factor: float = 1.0,
    ) -> None:
        if k < 1:
            raise PreconditionError(f"k must be at least 1, got {k}")
        if batch_size < 1:
            raise PreconditionError(f"batch_size must be at least 1, got {batch_size}")
        for name in names:
            registry.must_find(name)
        self.registry = registry
        self.names = list(names)
        self.k = k
        self.profile = profile
        self.reference = reference
        self.workers = workers or default_workers()
        self.batch_size = batch_size
        self.queue_capacity = queue_capacity
        self.progress_every = max(1, progress_every)
        self.rebalance_factor = rebalance_factor
        self.summary = ScanSummary()

        self._cancel = threading.Event()
        self._lock = threading.Lock()
        self._error: tuple[str, BaseException] | None = None
        self._threads: list[threading.Thread] = []

    def _fail(self, message: str, exc: BaseException, **context: Any) -> None:
        logger.error(message, extra=context)
        with self._lock:
            if self._error is None:
                self._error = (message, exc)
        self._cancel.set()

    def _produce(self, combos: queue.Queue) -> None:
        cancel = self._cancel
        total = self.summary.total
        buffer = [""] * self.k
        batch: list[tuple[str, ...]] = []
        offset = 0
        count = 0

        def on_combination() -> EnumerationSignal:
            nonlocal batch, offset, count
            if cancel.is_set():
                return EnumerationSignal.STOP
            count += 1
            if count % self.progress_every == 0:
                logger.info(
                    " - combination #%d of %d (%.1f%%)",
                    count,
                    total,
                    count / total * 100,
                    extra={"combination": count},
                )
            batch.append(tuple(buffer))
            if len(batch) == self.batch_size:
                if not _put(combos, (offset, batch), cancel):
                    return EnumerationSignal.STOP
                offset += len(batch)
                batch = []
            return EnumerationSignal.CONTINUE

        try:
            enumerate_combinations(self.names, self.k, buffer, on_combination)
            if batch:
                _put(combos, (offset, batch), cancel)
        except Exception as exc:
            self._fail(f"producer failed after {count} combinations: {exc}", exc, combination=count)
        finally:
            self.summary.enumerated = count
            for _ in range(self.workers):
                if not _put(combos, _DONE, cancel):
                    break

    def _work(self, worker: int, combos: queue.Queue, out: queue.Queue, counts: list[int]) -> None:
        cancel = self._cancel
        evaluator = PortfolioEvaluator(
            self.registry,
            self.profile,
            reference=self.reference,
            rebalance_factor=self.rebalance_factor,
        )
        weights = equal_weight_allocations(self.k)
        try:
            while True:
                item = _get(combos, cancel)
                if item is _DONE or item is _CANCELLED:
                    break
                offset, batch = item
                for j, names in enumerate(batch):
                    try:
                        stat = evaluator.evaluate(Combination(names, weights))
                    except Exception as exc:
                        index = offset + j + 1
                        self._fail(
                            f"worker {worker}, combination #{index}: {exc}",
                            exc,
                            worker=worker,
                            combination=index,
                        )
                        return
                    counts[worker] += 1
                    if stat is not None and not _put(out, stat, cancel):
                        return
        finally:
            _put(out, _DONE, cancel)

    def _start(self) -> threading.Event:
        n = len(self.names)
        self.summary = ScanSummary(total=binomial(n, self.k) if n >= self.k else 0)
        combos: queue.Queue = queue.Queue(maxsize=self.queue_capacity)
        outputs: list[queue.Queue] = [queue.Queue(maxsize=self.queue_capacity) for _ in range(self.workers)]
        self._results: queue.Queue = queue.Queue(maxsize=self.queue_capacity)
        self._counts = [0] * self.workers

        self._threads = [threading.Thread(target=self._produce, args=(combos,), name="enumerate", daemon=True)]
        for w in range(self.workers):
            self._threads.append(
                threading.Thread(
                    target=self._work,
                    args=(w, combos, outputs[w], self._counts),
                    name=f"evaluate-{w}",
                    daemon=True,
                )
            )
        log_event(
            logger,
            "scan_started",
            assets=len(self.names),
            k=self.k,
            total=self.summary.total,
            workers=self.workers,
            batch_size=self.batch_size,
            filtered=self.reference is not None,
        )
        for thread in self._threads:
            thread.start()
        return merge_queues(outputs, self._results, self._cancel)

    def __iter__(self) -> Iterator[PortfolioStat]:
        started = time.perf_counter()
        finished = self._start()
        completed = False
        try:
            while True:
                try:
                    stat = self._results.get(timeout=_POLL_SECONDS)
                except queue.Empty:
                    if finished.is_set() and self._results.empty():
                        break
                    continue
                self.summary.matched += 1
                yield stat
            completed = True
        finally:
            if not completed:
                self._cancel.set()
            for thread in self._threads:
                thread.join()
            self.summary.evaluated = sum(self._counts)
            self.summary.elapsed_seconds = time.perf_counter() - started

        if self._error is not None:
            message, cause = self._error
            raise PipelineExecutionError(message) from cause
        log_event(
            logger,
            "scan_finished",
            enumerated=self.summary.enumerated,
            evaluated=self.summary.evaluated,
            matched=self.summary.matched,
            elapsed_seconds=round(self.summary.elapsed_seconds, 3),
            portfolios_per_second=round(self.summary.portfolios_per_second, 1),
        )

    def collect(self) -> list[PortfolioStat]:
        return list(self)


def find_k_assets_better_than(
    registry: AssetRegistry,
    names: Sequence[str],
    k: int,
    reference: PortfolioStat | None,
    profile: AnalysisProfile = DEFAULT_PROFILE,
    **options: Any,
) -> list[PortfolioStat]:
    """Every equal-weight k-asset portfolio of *names* as good or better than *reference*."""
    return StreamingPipeline(registry, names, k, profile, reference=reference, **options).collect()
