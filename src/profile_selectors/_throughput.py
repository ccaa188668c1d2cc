"""Sliding-window throughput measurement.

Design by Contract:
- Item counts MUST be non-negative (crash if negative)
- A zero item count times the operation but records nothing
- average() is NaN until the first sample is recorded (no hidden default)
"""

import math
import time
from collections import deque
from collections.abc import Callable
from typing import TypeVar

from beartype import beartype

T = TypeVar("T")

THROUGHPUT_WINDOW = 10


class ThroughputAccumulator:
    """Average of the last ten throughput samples, in nanoseconds per item.

    Usage:
        accumulator = ThroughputAccumulator()
        breakdown = accumulator.measure(len(samples), lambda: aggregate(samples))
        print(f"{accumulator.average():.1f} ns/sample")

    Design by Contract:
        - At most THROUGHPUT_WINDOW values are retained (oldest evicted first)
        - average() of an empty accumulator is NaN; callers that only ever
          measure empty selections will see NaN, which is intentional
    """

    def __init__(self) -> None:
        self._queue: deque[float] = deque()
        self._sum: float = 0.0

    def _add(self, value: float) -> None:
        self._queue.append(value)
        self._sum += value
        if len(self._queue) > THROUGHPUT_WINDOW:
            self._sum -= self._queue.popleft()

    @property
    def count(self) -> int:
        return len(self._queue)

    def average(self) -> float:
        """Average of the retained throughputs (NaN before any recording)."""
        if not self._queue:
            return math.nan
        return self._sum / len(self._queue)

    @beartype
    def measure(self, item_count: int, operation: Callable[[], T]) -> T:
        """Time ``operation`` and record its per-item cost.

        Args:
            item_count: Number of items the operation processes (MUST be >= 0).
                When 0, the call is timed but nothing is recorded.
            operation: Zero-argument callable to run.

        Returns:
            Whatever ``operation`` returned.
        """
        assert item_count >= 0, f"Item count must be non-negative: {item_count}"

        start = time.perf_counter_ns()
        result = operation()
        end = time.perf_counter_ns()

        if item_count != 0:
            self._add((end - start) / item_count)
        return result
