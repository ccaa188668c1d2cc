"""SelectorSet: one contract over every representation and strategy.

A selector set bundles the pure selector functions of one representation with
a pair of ThroughputAccumulators, so a caller can switch representation or
aggregation strategy without changing call sites.

Subclasses choose what is timed by splitting each aggregation in two:
- ``_accumulate_*`` runs inside ThroughputAccumulator.measure
- ``_finish_*`` runs afterwards, outside the timed region
"""

from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from profile_selectors._throughput import ThroughputAccumulator
from profile_selectors._types import (
    CategoryBreakdown,
    ProfileInfo,
    SampleIndexRange,
    Stack,
    TimeRange,
)


class SelectorSet(ABC):
    """Selectors plus the throughput accumulators they report through.

    Each instance owns its accumulators; they keep averaging across repeated
    get_info_for_profile() calls. Instances are not meant to be shared
    between threads.
    """

    def __init__(self) -> None:
        self.category_breakdown_accumulator = ThroughputAccumulator()
        self.heaviest_stack_accumulator = ThroughputAccumulator()

    @abstractmethod
    def compute_base_range(self, profile: Any) -> TimeRange: ...

    @abstractmethod
    def compute_profile_graph(self, profile: Any) -> np.ndarray: ...

    @abstractmethod
    def convert_time_range_to_sample_index_range(
        self, profile: Any, time_range: TimeRange
    ) -> SampleIndexRange: ...

    @abstractmethod
    def _sample_count(self, profile: Any) -> int: ...

    @abstractmethod
    def _compute_total(self, profile: Any, index_range: SampleIndexRange) -> float: ...

    @abstractmethod
    def _accumulate_categories(self, profile: Any, index_range: SampleIndexRange) -> Any: ...

    @abstractmethod
    def _accumulate_heaviest_stack(self, profile: Any, index_range: SampleIndexRange) -> Any: ...

    def _prepare(self, profile: Any) -> None:
        """Hook for fetching derived columns before any timing starts."""

    def _finish_categories(self, profile: Any, accumulated: Any) -> CategoryBreakdown:
        return accumulated

    def _finish_heaviest_stack(self, profile: Any, accumulated: Any) -> Stack | None:
        return accumulated

    def get_info_for_profile(self, profile: Any, index_range: SampleIndexRange) -> ProfileInfo:
        """Aggregate the selected samples and report smoothed throughputs.

        Args:
            profile: Profile in this selector set's representation
            index_range: Selected samples, usually from
                convert_time_range_to_sample_index_range()

        Returns:
            ProfileInfo for the selection. Throughput fields are NaN until a
            non-empty selection has been measured at least once.
        """
        selected_sample_count = index_range.length
        self._prepare(profile)
        total = self._compute_total(profile, index_range)

        accumulated_categories = self.category_breakdown_accumulator.measure(
            selected_sample_count,
            lambda: self._accumulate_categories(profile, index_range),
        )
        category_breakdown = self._finish_categories(profile, accumulated_categories)

        accumulated_stack = self.heaviest_stack_accumulator.measure(
            selected_sample_count,
            lambda: self._accumulate_heaviest_stack(profile, index_range),
        )
        heaviest_stack = self._finish_heaviest_stack(profile, accumulated_stack)

        return ProfileInfo(
            overall_sample_count=self._sample_count(profile),
            selected_sample_count=selected_sample_count,
            total=total,
            category_breakdown=category_breakdown,
            category_breakdown_throughput=self.category_breakdown_accumulator.average(),
            heaviest_stack=heaviest_stack,
            heaviest_stack_throughput=self.heaviest_stack_accumulator.average(),
        )
