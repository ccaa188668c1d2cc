"""Benchmark harness for comparing selector sets.

Design by Contract (P1 - MANDATORY):
- Elapsed time MUST be non-negative (crash if negative)
- Counts and rounds MUST be non-negative (crash if negative)
- Labels MUST be non-empty
- Fail-fast on violations

Memory tracking via psutil shows what memoized derived columns cost.
"""

import json
import math
import threading
import time
from collections import defaultdict
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import psutil
from beartype import beartype
from loguru import logger

from profile_selectors._selectors import SelectorSet
from profile_selectors._types import SampleIndexRange


class ComponentTimer:
    """Context manager for timing code blocks with memory tracking.

    Args:
        track_memory: If True, track memory usage via psutil (default: True)

    Attributes:
        elapsed: Time elapsed in seconds (MUST be >= 0)
        memory_delta: Change in process RSS (MB)
        peak_memory: Process RSS at the end of the block (MB)

    Design by Contract:
        - elapsed >= 0 (crashes if negative; perf_counter is monotonic)
        - memory_delta can be negative (memory released)
    """

    @beartype
    def __init__(self, track_memory: bool = True) -> None:
        self.track_memory = track_memory
        self.elapsed: float = 0.0
        self.memory_delta: float = 0.0
        self.peak_memory: float = 0.0
        self._start: float = 0.0
        self._start_memory: float = 0.0

    def __enter__(self) -> "ComponentTimer":
        self._start = time.perf_counter()
        if self.track_memory:
            self._start_memory = psutil.Process().memory_info().rss / 1024**2
        return self

    def __exit__(self, *args: Any) -> None:
        self.elapsed = time.perf_counter() - self._start
        assert self.elapsed >= 0, f"Elapsed time cannot be negative: {self.elapsed:.6f}s"

        if self.track_memory:
            end_memory = psutil.Process().memory_info().rss / 1024**2
            self.memory_delta = end_memory - self._start_memory
            self.peak_memory = end_memory


def _format_throughput(ns_per_sample: float) -> str:
    if math.isnan(ns_per_sample):
        return "-"
    if ns_per_sample >= 1e6:
        return f"{ns_per_sample / 1e6:.2f}ms/smp"
    if ns_per_sample >= 1e3:
        return f"{ns_per_sample / 1e3:.2f}us/smp"
    return f"{ns_per_sample:.1f}ns/smp"


class BenchmarkSession:
    """Collects throughput figures for several selector sets.

    Thread-safe for concurrent record() calls.

    Example:
        session = compare_selectors(profile, {"v3-basic": make_selectors("v3-basic")}, ranges)
        session.print_summary("Columnar strategies")
    """

    def __init__(self) -> None:
        self.category_breakdown_throughputs: dict[str, float] = {}
        self.heaviest_stack_throughputs: dict[str, float] = {}
        self.timings: dict[str, list[float]] = defaultdict(list)
        self.counts: dict[str, list[int]] = defaultdict(list)
        self.memory_deltas: dict[str, list[float]] = defaultdict(list)
        self.peak_memory: dict[str, list[float]] = defaultdict(list)
        self._lock = threading.Lock()

    @beartype
    def record(
        self,
        label: str,
        category_breakdown_throughput: float,
        heaviest_stack_throughput: float,
        elapsed: float,
        count: int,
        memory_delta: float = 0.0,
        peak_memory: float = 0.0,
    ) -> None:
        """Record one run of a selector set (thread-safe).

        Args:
            label: Selector set name (e.g. "v3-basic")
            category_breakdown_throughput: Smoothed ns/sample after the run
            heaviest_stack_throughput: Smoothed ns/sample after the run
            elapsed: Wall time of the run in seconds (MUST be >= 0)
            count: Samples processed during the run (MUST be >= 0)
            memory_delta: Change in RSS over the run in MB
            peak_memory: RSS at the end of the run in MB
        """
        assert label, "Benchmark label must be non-empty"
        assert elapsed >= 0, f"Elapsed time must be non-negative: {elapsed}"
        assert count >= 0, f"Count must be non-negative: {count}"

        with self._lock:
            self.category_breakdown_throughputs[label] = category_breakdown_throughput
            self.heaviest_stack_throughputs[label] = heaviest_stack_throughput
            self.timings[label].append(elapsed)
            self.counts[label].append(count)
            if memory_delta != 0.0:
                self.memory_deltas[label].append(memory_delta)
            if peak_memory != 0.0:
                self.peak_memory[label].append(peak_memory)

    def get_results(self) -> dict[str, dict[str, float]]:
        """Get aggregated results per selector set.

        Returns:
            Mapping of label to metrics with keys category_breakdown_ns,
            heaviest_stack_ns, total_time, total_count and optionally
            memory_delta, peak_memory.
        """
        results: dict[str, dict[str, float]] = {}
        for label in self.timings:
            result: dict[str, float] = {
                "category_breakdown_ns": self.category_breakdown_throughputs[label],
                "heaviest_stack_ns": self.heaviest_stack_throughputs[label],
                "total_time": sum(self.timings[label]),
                "total_count": float(sum(self.counts[label])),
            }
            if self.memory_deltas.get(label):
                result["memory_delta"] = sum(self.memory_deltas[label])
            if self.peak_memory.get(label):
                result["peak_memory"] = max(self.peak_memory[label])
            results[label] = result
        return results

    def fastest(self, metric: str = "category_breakdown_ns") -> str | None:
        """Label with the lowest ns/sample for ``metric``, ignoring NaN."""
        candidates = {
            label: metrics[metric]
            for label, metrics in self.get_results().items()
            if not math.isnan(metrics[metric])
        }
        if not candidates:
            return None
        return min(candidates, key=candidates.__getitem__)

    @beartype
    def log_checkpoint(self, checkpoint_name: str) -> None:
        """Log a condensed snapshot of the results so far via loguru."""
        results = self.get_results()
        if not results:
            logger.info(f"[CHECKPOINT: {checkpoint_name}] No benchmark data yet")
            return

        total_time = sum(m["total_time"] for m in results.values())
        logger.info(f"[CHECKPOINT: {checkpoint_name}] Total elapsed: {total_time:.2f}s")
        for label, metrics in results.items():
            line = (
                f"  {label}: breakdown {_format_throughput(metrics['category_breakdown_ns'])}, "
                f"heaviest {_format_throughput(metrics['heaviest_stack_ns'])}"
            )
            if "memory_delta" in metrics:
                delta = metrics["memory_delta"]
                sign = "+" if delta >= 0 else ""
                line += f", Δ={sign}{delta:.1f}MB"
            logger.info(line)

    @beartype
    def print_summary(self, title: str = "SELECTOR THROUGHPUT") -> None:
        """Log a formatted table of every recorded selector set."""
        results = self.get_results()
        has_memory = any("memory_delta" in m or "peak_memory" in m for m in results.values())
        width = 120 if has_memory else 98

        logger.info("")
        logger.info("=" * width)
        logger.info(f"{title:^{width}}")
        logger.info("=" * width)
        header = (
            f"{'Selector set':<32} {'Breakdown':>14} {'Heaviest':>14} "
            f"{'Time':>10} {'Samples':>12}"
        )
        if has_memory:
            header += f" {'Mem Δ':>10} {'Peak':>10}"
        logger.info(header)
        logger.info("-" * width)

        total_time = 0.0
        for label, metrics in results.items():
            total_time += metrics["total_time"]
            line = (
                f"{label:<32} "
                f"{_format_throughput(metrics['category_breakdown_ns']):>14} "
                f"{_format_throughput(metrics['heaviest_stack_ns']):>14} "
                f"{metrics['total_time']:>9.3f}s "
                f"{metrics['total_count']:>12.0f}"
            )
            if has_memory:
                mem_delta = metrics.get("memory_delta", 0.0)
                peak_mem = metrics.get("peak_memory", 0.0)
                mem_delta_str = f"{mem_delta:>8.1f}MB" if mem_delta != 0.0 else f"{'-':>10}"
                peak_mem_str = f"{peak_mem:>8.1f}MB" if peak_mem != 0.0 else f"{'-':>10}"
                line += f" {mem_delta_str:>10} {peak_mem_str:>10}"
            logger.info(line)

        logger.info("=" * width)
        logger.info(f"{'TOTAL':^32} {total_time:>39.3f}s")
        logger.info("=" * width)
        logger.info("")

    @beartype
    def flush_to_file(self, path: Path) -> None:
        """Write current results to a JSON file (thread-safe).

        NaN throughputs are written as null.
        """
        with self._lock:
            results = {
                label: {key: (None if math.isnan(value) else value) for key, value in metrics.items()}
                for label, metrics in self.get_results().items()
            }
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                json.dump(results, f, indent=2)


@beartype
def compare_selectors(
    profile: Any,
    selector_sets: Mapping[str, SelectorSet],
    index_ranges: Iterable[SampleIndexRange],
    rounds: int = 1,
    session: BenchmarkSession | None = None,
    track_memory: bool = True,
) -> BenchmarkSession:
    """Run every selector set over the same selections and record throughputs.

    All selector sets must accept ``profile``'s representation.

    Args:
        profile: Profile to aggregate
        selector_sets: Label -> selector set; each keeps its own accumulators
        index_ranges: Selections to run, replayed ``rounds`` times
        rounds: Number of passes over ``index_ranges`` (MUST be >= 0)
        session: Session to record into; a new one is created when None
        track_memory: If True, record RSS delta and peak via psutil

    Returns:
        The session holding one entry per selector set.
    """
    assert rounds >= 0, f"Rounds must be non-negative: {rounds}"
    session = session if session is not None else BenchmarkSession()
    ranges = list(index_ranges)

    for label, selectors in selector_sets.items():
        processed = 0
        with ComponentTimer(track_memory=track_memory) as timer:
            for _ in range(rounds):
                for index_range in ranges:
                    selectors.get_info_for_profile(profile, index_range)
                    processed += index_range.length
        session.record(
            label,
            selectors.category_breakdown_accumulator.average(),
            selectors.heaviest_stack_accumulator.average(),
            elapsed=timer.elapsed,
            count=processed,
            memory_delta=timer.memory_delta,
            peak_memory=timer.peak_memory,
        )
        logger.debug(f"Benchmarked {label}: {processed} samples in {timer.elapsed:.3f}s")

    return session
