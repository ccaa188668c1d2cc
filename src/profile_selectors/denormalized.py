"""Denormalized representation: every sample carries its full stack.

Stacks are duplicated per sample, so there is no shared stack index. The
heaviest-stack search keys its accumulation by the stack tuple itself, which
hashes structurally: two samples with identical frame sequences share a
bucket.
"""

from dataclasses import dataclass

import numpy as np
from beartype import beartype
from loguru import logger

from profile_selectors._bisect import bisection_left_by_key
from profile_selectors._graph import bucket_max_depths
from profile_selectors._selectors import SelectorSet
from profile_selectors._types import (
    CategoryBreakdown,
    Number,
    SampleIndexRange,
    Stack,
    TimeRange,
)


@beartype
@dataclass(frozen=True)
class Sample:
    time: Number
    stack: Stack
    weight: Number


@beartype
@dataclass(frozen=True)
class Profile:
    """Samples sorted ascending by time."""

    samples: list[Sample]


@beartype
def compute_base_range(profile: Profile) -> TimeRange:
    assert profile.samples, "Profile must contain at least one sample"
    return TimeRange(start=profile.samples[0].time, end=profile.samples[-1].time)


@beartype
def compute_profile_graph(profile: Profile) -> np.ndarray:
    base_range = compute_base_range(profile)
    times = np.fromiter((sample.time for sample in profile.samples), dtype=np.float64)
    # The leaf-to-root tuple holds the root at depth 0.
    depths = np.fromiter((len(sample.stack) - 1 for sample in profile.samples), dtype=np.int32)
    return bucket_max_depths(times, depths, base_range)


@beartype
def convert_time_range_to_sample_index_range(
    profile: Profile, time_range: TimeRange
) -> SampleIndexRange:
    samples = profile.samples
    return SampleIndexRange(
        start=bisection_left_by_key(samples, lambda sample: sample.time, time_range.start),
        end=bisection_left_by_key(samples, lambda sample: sample.time, time_range.end),
    )


@beartype
def compute_total(profile: Profile, index_range: SampleIndexRange) -> float:
    abs_sum = 0.0
    samples = profile.samples
    for i in range(index_range.start, index_range.end):
        abs_sum += abs(samples[i].weight)
    return abs_sum


@beartype
def compute_category_breakdown(
    profile: Profile, index_range: SampleIndexRange
) -> CategoryBreakdown:
    breakdown: CategoryBreakdown = {}
    samples = profile.samples
    for i in range(index_range.start, index_range.end):
        sample = samples[i]
        category = sample.stack[0].category
        breakdown[category] = breakdown.get(category, 0.0) + sample.weight
    return breakdown


@beartype
def compute_heaviest_stack(profile: Profile, index_range: SampleIndexRange) -> Stack | None:
    """Stack with the greatest positive accumulated weight in the range.

    Ties go to the stack that reached the maximum first. Stacks whose weight
    never rises above 0 are never reported, so an all-negative range yields
    None.
    """
    stack_weights: dict[Stack, float] = {}
    heaviest_stack_weight = 0.0
    heaviest_stack: Stack | None = None
    samples = profile.samples
    for i in range(index_range.start, index_range.end):
        sample = samples[i]
        stack_weight = stack_weights.get(sample.stack, 0.0) + sample.weight
        stack_weights[sample.stack] = stack_weight
        if stack_weight > heaviest_stack_weight:
            heaviest_stack_weight = stack_weight
            heaviest_stack = sample.stack
    return heaviest_stack


class DenormalizedSelectors(SelectorSet):
    def compute_base_range(self, profile: Profile) -> TimeRange:
        return compute_base_range(profile)

    def compute_profile_graph(self, profile: Profile) -> np.ndarray:
        return compute_profile_graph(profile)

    def convert_time_range_to_sample_index_range(
        self, profile: Profile, time_range: TimeRange
    ) -> SampleIndexRange:
        return convert_time_range_to_sample_index_range(profile, time_range)

    def _sample_count(self, profile: Profile) -> int:
        return len(profile.samples)

    def _compute_total(self, profile: Profile, index_range: SampleIndexRange) -> float:
        return compute_total(profile, index_range)

    def _accumulate_categories(
        self, profile: Profile, index_range: SampleIndexRange
    ) -> CategoryBreakdown:
        return compute_category_breakdown(profile, index_range)

    def _accumulate_heaviest_stack(
        self, profile: Profile, index_range: SampleIndexRange
    ) -> Stack | None:
        return compute_heaviest_stack(profile, index_range)


def make_selectors_v1() -> DenormalizedSelectors:
    logger.debug("Creating denormalized selector set")
    return DenormalizedSelectors()
