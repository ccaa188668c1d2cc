"""profile-selectors: Profile aggregation strategies and their throughput.

Provides:
- denormalized, normalized, columnar: three layouts of the same profile data,
  each with its own selector functions
- SelectorSet: uniform contract over every layout/strategy, reporting
  smoothed ns/sample throughput for category breakdown and heaviest stack
- make_selectors: format name -> fresh SelectorSet
- ThroughputAccumulator: sliding-window (last 10) throughput average
- bisection_left / bisection_left_by_key: leftmost-insertion binary search
- compare_selectors / BenchmarkSession: run several selector sets side by side

Usage:
    from profile_selectors import make_selectors, TimeRange

    selectors = make_selectors("v3-memoized-numpy-inputs")
    index_range = selectors.convert_time_range_to_sample_index_range(
        profile, TimeRange(start=10.0, end=250.0)
    )
    info = selectors.get_info_for_profile(profile, index_range)
    print(info.category_breakdown, info.category_breakdown_throughput)
"""

from profile_selectors import columnar, denormalized, normalized
from profile_selectors._bisect import bisection_left, bisection_left_by_key
from profile_selectors._graph import GRAPH_RESOLUTION
from profile_selectors._harness import BenchmarkSession, ComponentTimer, compare_selectors
from profile_selectors._memo import memoize_one
from profile_selectors._registry import (
    DEFAULT_FORMAT,
    FORMAT_REPRESENTATIONS,
    SELECTOR_FACTORIES,
    make_selectors,
)
from profile_selectors._selectors import SelectorSet
from profile_selectors._throughput import THROUGHPUT_WINDOW, ThroughputAccumulator
from profile_selectors._types import (
    CategoryBreakdown,
    ProfileInfo,
    SampleIndexRange,
    Stack,
    StackFrame,
    TimeRange,
)

__all__ = [
    "DEFAULT_FORMAT",
    "FORMAT_REPRESENTATIONS",
    "GRAPH_RESOLUTION",
    "SELECTOR_FACTORIES",
    "THROUGHPUT_WINDOW",
    "BenchmarkSession",
    "CategoryBreakdown",
    "ComponentTimer",
    "ProfileInfo",
    "SampleIndexRange",
    "SelectorSet",
    "Stack",
    "StackFrame",
    "ThroughputAccumulator",
    "TimeRange",
    "bisection_left",
    "bisection_left_by_key",
    "columnar",
    "compare_selectors",
    "denormalized",
    "make_selectors",
    "memoize_one",
    "normalized",
]

__version__ = "0.1.0"
