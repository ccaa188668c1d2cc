"""Normalized representation: samples reference shared tables by index.

Stacks form a tree through parent indices only. Every parent index is
strictly less than the index of the node that references it, so a single
forward pass over the stack table sees each parent before its children.

Three category-breakdown strategies are provided and return the same mapping:
- string-keyed dict, accumulating by category name
- index-keyed dict, translated to names once at the end
- dense per-category array, translated to names once at the end
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
    StackFrame,
    TimeRange,
)


@beartype
@dataclass(frozen=True)
class Sample:
    time: Number
    stack_index: int
    weight: Number


@beartype
@dataclass(frozen=True)
class StackNode:
    parent_stack_index: int | None
    frame_index: int


@beartype
@dataclass(frozen=True)
class Frame:
    name: str
    category_index: int


@beartype
@dataclass(frozen=True)
class Profile:
    """Samples sorted ascending by time, plus the tables they index into."""

    samples: list[Sample]
    stacks: list[StackNode]
    frames: list[Frame]
    categories: list[str]


@beartype
def compute_base_range(profile: Profile) -> TimeRange:
    assert profile.samples, "Profile must contain at least one sample"
    return TimeRange(start=profile.samples[0].time, end=profile.samples[-1].time)


def compute_stack_depths(profile: Profile) -> np.ndarray:
    """Depth of every stack-table entry; roots have depth 0."""
    stack_depths = np.zeros(len(profile.stacks), dtype=np.int32)
    for i, node in enumerate(profile.stacks):
        parent = node.parent_stack_index
        stack_depths[i] = 0 if parent is None else stack_depths[parent] + 1
    return stack_depths


@beartype
def compute_profile_graph(profile: Profile) -> np.ndarray:
    stack_depths = compute_stack_depths(profile)
    base_range = compute_base_range(profile)
    times = np.fromiter((sample.time for sample in profile.samples), dtype=np.float64)
    stack_indexes = np.fromiter(
        (sample.stack_index for sample in profile.samples), dtype=np.intp
    )
    return bucket_max_depths(times, stack_depths[stack_indexes], base_range)


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


def compute_category_breakdown_with_string_key_map(
    profile: Profile, index_range: SampleIndexRange
) -> CategoryBreakdown:
    breakdown: CategoryBreakdown = {}
    samples, stacks, frames, categories = (
        profile.samples,
        profile.stacks,
        profile.frames,
        profile.categories,
    )
    for i in range(index_range.start, index_range.end):
        sample = samples[i]
        frame_index = stacks[sample.stack_index].frame_index
        category = categories[frames[frame_index].category_index]
        breakdown[category] = breakdown.get(category, 0.0) + sample.weight
    return breakdown


def compute_category_breakdown_with_index_key_map(
    profile: Profile, index_range: SampleIndexRange
) -> CategoryBreakdown:
    by_index: dict[int, float] = {}
    samples, stacks, frames = profile.samples, profile.stacks, profile.frames
    for i in range(index_range.start, index_range.end):
        sample = samples[i]
        frame_index = stacks[sample.stack_index].frame_index
        category_index = frames[frame_index].category_index
        by_index[category_index] = by_index.get(category_index, 0.0) + sample.weight
    return {
        profile.categories[category_index]: weight
        for category_index, weight in by_index.items()
    }


def compute_category_breakdown_with_dense_array(
    profile: Profile, index_range: SampleIndexRange
) -> CategoryBreakdown:
    category_count = len(profile.categories)
    weights = [0.0] * category_count
    hits = [False] * category_count
    samples, stacks, frames = profile.samples, profile.stacks, profile.frames
    for i in range(index_range.start, index_range.end):
        sample = samples[i]
        frame_index = stacks[sample.stack_index].frame_index
        category_index = frames[frame_index].category_index
        weights[category_index] += sample.weight
        hits[category_index] = True
    return {
        name: weights[category_index]
        for category_index, name in enumerate(profile.categories)
        if hits[category_index]
    }


def compute_heaviest_stack_index_with_map(
    profile: Profile, index_range: SampleIndexRange
) -> int | None:
    stack_weights: dict[int, float] = {}
    heaviest_stack_weight = 0.0
    heaviest_stack_index: int | None = None
    samples = profile.samples
    for i in range(index_range.start, index_range.end):
        sample = samples[i]
        stack_weight = stack_weights.get(sample.stack_index, 0.0) + sample.weight
        stack_weights[sample.stack_index] = stack_weight
        if stack_weight > heaviest_stack_weight:
            heaviest_stack_weight = stack_weight
            heaviest_stack_index = sample.stack_index
    return heaviest_stack_index


def compute_heaviest_stack_index_with_dense_array(
    profile: Profile, index_range: SampleIndexRange
) -> int | None:
    stack_weights = [0.0] * len(profile.stacks)
    heaviest_stack_weight = 0.0
    heaviest_stack_index: int | None = None
    samples = profile.samples
    for i in range(index_range.start, index_range.end):
        sample = samples[i]
        stack_weight = stack_weights[sample.stack_index] + sample.weight
        stack_weights[sample.stack_index] = stack_weight
        if stack_weight > heaviest_stack_weight:
            heaviest_stack_weight = stack_weight
            heaviest_stack_index = sample.stack_index
    return heaviest_stack_index


def convert_stack_index_to_stack(profile: Profile, stack_index: int | None) -> Stack | None:
    """Walk parent links from ``stack_index`` to the root, leaf frame first."""
    if stack_index is None:
        return None
    frames: list[StackFrame] = []
    current: int | None = stack_index
    while current is not None:
        node = profile.stacks[current]
        frame = profile.frames[node.frame_index]
        frames.append(StackFrame(name=frame.name, category=profile.categories[frame.category_index]))
        current = node.parent_stack_index
    return tuple(frames)


class NormalizedSelectors(SelectorSet):
    """Base for the normalized strategies.

    Heaviest-stack timing includes converting the winning index to a Stack.
    """

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

    def _accumulate_heaviest_stack(
        self, profile: Profile, index_range: SampleIndexRange
    ) -> Stack | None:
        return convert_stack_index_to_stack(
            profile, compute_heaviest_stack_index_with_map(profile, index_range)
        )


class NormalizedBasicSelectors(NormalizedSelectors):
    def _accumulate_categories(
        self, profile: Profile, index_range: SampleIndexRange
    ) -> CategoryBreakdown:
        return compute_category_breakdown_with_string_key_map(profile, index_range)


class NormalizedCategoryIndexKeySelectors(NormalizedSelectors):
    def _accumulate_categories(
        self, profile: Profile, index_range: SampleIndexRange
    ) -> CategoryBreakdown:
        return compute_category_breakdown_with_index_key_map(profile, index_range)


class NormalizedDenseArraySelectors(NormalizedSelectors):
    def _accumulate_categories(
        self, profile: Profile, index_range: SampleIndexRange
    ) -> CategoryBreakdown:
        return compute_category_breakdown_with_dense_array(profile, index_range)

    def _accumulate_heaviest_stack(
        self, profile: Profile, index_range: SampleIndexRange
    ) -> Stack | None:
        return convert_stack_index_to_stack(
            profile, compute_heaviest_stack_index_with_dense_array(profile, index_range)
        )


def make_selectors_v2_basic() -> NormalizedBasicSelectors:
    logger.debug("Creating normalized selector set (string-keyed categories)")
    return NormalizedBasicSelectors()


def make_selectors_v2_category_index_key() -> NormalizedCategoryIndexKeySelectors:
    logger.debug("Creating normalized selector set (index-keyed categories)")
    return NormalizedCategoryIndexKeySelectors()


def make_selectors_v2_dense_arrays() -> NormalizedDenseArraySelectors:
    logger.debug("Creating normalized selector set (dense arrays)")
    return NormalizedDenseArraySelectors()
