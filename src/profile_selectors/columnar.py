"""Columnar representation: every table is a set of parallel columns.

Strategies, from least to most preprocessed:
- basic: dense accumulation straight off the raw columns
- memoized sample categories: a per-sample category column is derived once
  per profile and reused across calls
- memoized numpy inputs: stack, weight and category columns are derived once
  as numpy arrays (int32 / float64 / smallest unsigned int)
- vectorized: the memoized numpy columns aggregated with numpy primitives
  instead of a Python loop

Derived columns live in memoize_one slots owned by each selector set and are
fetched before timing starts, so throughput figures measure only the
aggregation itself.
"""

from dataclasses import dataclass

import numpy as np
from beartype import beartype
from loguru import logger

from profile_selectors._bisect import bisection_left
from profile_selectors._graph import bucket_max_depths
from profile_selectors._memo import memoize_one
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
class SampleTable:
    time_column: list[Number]
    stack_index_column: list[int]
    weight_column: list[Number]

    @property
    def length(self) -> int:
        return len(self.time_column)


@beartype
@dataclass(frozen=True)
class StackTable:
    parent_stack_index_column: list[int | None]
    frame_index_column: list[int]

    @property
    def length(self) -> int:
        return len(self.frame_index_column)


@beartype
@dataclass(frozen=True)
class FrameTable:
    name_column: list[str]
    category_index_column: list[int]

    @property
    def length(self) -> int:
        return len(self.name_column)


@beartype
@dataclass(frozen=True)
class Profile:
    sample_table: SampleTable
    stack_table: StackTable
    frame_table: FrameTable
    categories: list[str]


@dataclass(frozen=True)
class DenseCategoryWeights:
    """Per-category accumulation indexed by category index.

    ``hits`` marks which categories occurred in the range, so a category whose
    weights cancel to 0 is still reported while absent ones are not.
    """

    weights: list[float] | np.ndarray
    hits: list[bool] | np.ndarray


@beartype
def compute_base_range(profile: Profile) -> TimeRange:
    sample_table = profile.sample_table
    assert sample_table.length > 0, "Profile must contain at least one sample"
    return TimeRange(start=sample_table.time_column[0], end=sample_table.time_column[-1])


def compute_stack_depths(profile: Profile) -> np.ndarray:
    """Depth of every stack-table entry; roots have depth 0."""
    parent_column = profile.stack_table.parent_stack_index_column
    stack_depths = np.zeros(profile.stack_table.length, dtype=np.int32)
    for i, parent in enumerate(parent_column):
        stack_depths[i] = 0 if parent is None else stack_depths[parent] + 1
    return stack_depths


@beartype
def compute_profile_graph(profile: Profile) -> np.ndarray:
    stack_depths = compute_stack_depths(profile)
    base_range = compute_base_range(profile)
    sample_table = profile.sample_table
    times = np.asarray(sample_table.time_column, dtype=np.float64)
    stack_indexes = np.asarray(sample_table.stack_index_column, dtype=np.intp)
    return bucket_max_depths(times, stack_depths[stack_indexes], base_range)


@beartype
def convert_time_range_to_sample_index_range(
    profile: Profile, time_range: TimeRange
) -> SampleIndexRange:
    time_column = profile.sample_table.time_column
    return SampleIndexRange(
        start=bisection_left(time_column, time_range.start),
        end=bisection_left(time_column, time_range.end),
    )


def compute_total_basic(profile: Profile, index_range: SampleIndexRange) -> float:
    abs_sum = 0.0
    weight_column = profile.sample_table.weight_column
    for i in range(index_range.start, index_range.end):
        abs_sum += abs(weight_column[i])
    return abs_sum


def compute_total_numpy(weight_column: np.ndarray, index_range: SampleIndexRange) -> float:
    abs_sum = 0.0
    for i in range(index_range.start, index_range.end):
        abs_sum += abs(weight_column[i])
    return float(abs_sum)


def compute_total_vectorized(weight_column: np.ndarray, index_range: SampleIndexRange) -> float:
    return float(np.abs(weight_column[index_range.start:index_range.end]).sum())


def compute_category_breakdown_basic(
    profile: Profile, index_range: SampleIndexRange
) -> DenseCategoryWeights:
    category_count = len(profile.categories)
    weights = [0.0] * category_count
    hits = [False] * category_count
    stack_index_column = profile.sample_table.stack_index_column
    weight_column = profile.sample_table.weight_column
    frame_index_column = profile.stack_table.frame_index_column
    category_index_column = profile.frame_table.category_index_column
    for i in range(index_range.start, index_range.end):
        frame_index = frame_index_column[stack_index_column[i]]
        category_index = category_index_column[frame_index]
        weights[category_index] += weight_column[i]
        hits[category_index] = True
    return DenseCategoryWeights(weights=weights, hits=hits)


def compute_category_breakdown_with_sample_categories(
    category_count: int,
    sample_categories: list[int],
    weight_column: list[Number],
    index_range: SampleIndexRange,
) -> DenseCategoryWeights:
    weights = [0.0] * category_count
    hits = [False] * category_count
    for i in range(index_range.start, index_range.end):
        category_index = sample_categories[i]
        weights[category_index] += weight_column[i]
        hits[category_index] = True
    return DenseCategoryWeights(weights=weights, hits=hits)


def compute_category_breakdown_with_numpy_sample_categories(
    category_count: int,
    sample_categories: np.ndarray,
    weight_column: np.ndarray,
    index_range: SampleIndexRange,
) -> DenseCategoryWeights:
    weights = np.zeros(category_count, dtype=np.float64)
    hits = np.zeros(category_count, dtype=np.bool_)
    for i in range(index_range.start, index_range.end):
        category_index = sample_categories[i]
        weights[category_index] += weight_column[i]
        hits[category_index] = True
    return DenseCategoryWeights(weights=weights, hits=hits)


def compute_category_breakdown_vectorized(
    category_count: int,
    sample_categories: np.ndarray,
    weight_column: np.ndarray,
    index_range: SampleIndexRange,
) -> DenseCategoryWeights:
    selected = slice(index_range.start, index_range.end)
    categories = sample_categories[selected]
    weights = np.bincount(categories, weights=weight_column[selected], minlength=category_count)
    hits = np.bincount(categories, minlength=category_count) > 0
    return DenseCategoryWeights(weights=weights, hits=hits)


def convert_dense_category_weights_to_breakdown(
    profile: Profile, dense: DenseCategoryWeights
) -> CategoryBreakdown:
    return {
        name: float(dense.weights[category_index])
        for category_index, name in enumerate(profile.categories)
        if dense.hits[category_index]
    }


def compute_heaviest_stack_index_with_lists(
    stack_count: int,
    sample_stacks: list[int],
    sample_weights: list[Number],
    index_range: SampleIndexRange,
) -> int | None:
    stack_weights = [0.0] * stack_count
    heaviest_stack_weight = 0.0
    heaviest_stack_index = -1
    for i in range(index_range.start, index_range.end):
        stack_index = sample_stacks[i]
        stack_weight = stack_weights[stack_index] + sample_weights[i]
        stack_weights[stack_index] = stack_weight
        if stack_weight > heaviest_stack_weight:
            heaviest_stack_weight = stack_weight
            heaviest_stack_index = stack_index
    return None if heaviest_stack_index == -1 else heaviest_stack_index


def compute_heaviest_stack_index_with_numpy(
    stack_count: int,
    sample_stacks: np.ndarray,
    sample_weights: np.ndarray,
    index_range: SampleIndexRange,
) -> int | None:
    stack_weights = np.zeros(stack_count, dtype=np.float64)
    heaviest_stack_weight = 0.0
    heaviest_stack_index = -1
    for i in range(index_range.start, index_range.end):
        stack_index = sample_stacks[i]
        stack_weight = stack_weights[stack_index] + sample_weights[i]
        stack_weights[stack_index] = stack_weight
        if stack_weight > heaviest_stack_weight:
            heaviest_stack_weight = stack_weight
            heaviest_stack_index = int(stack_index)
    return None if heaviest_stack_index == -1 else heaviest_stack_index


def compute_heaviest_stack_index_vectorized(
    sample_stacks: np.ndarray,
    sample_weights: np.ndarray,
    index_range: SampleIndexRange,
) -> int | None:
    """Vectorized form of the single-pass running-maximum search.

    The running weight of each sample's stack after that sample is a cumulative
    sum over that stack's own samples, in sample order, so it rounds exactly
    like the loop's per-stack accumulation. The loop's last update of the
    running maximum lands on the first sample whose running weight equals the
    overall maximum, which is exactly what argmax returns.
    """
    selected = slice(index_range.start, index_range.end)
    stacks = sample_stacks[selected]
    if len(stacks) == 0:
        return None
    weights = sample_weights[selected]

    order = np.argsort(stacks, kind="stable")
    sorted_stacks = stacks[order]
    sorted_weights = weights[order]

    # Each group is one stack's samples, still in sample order.
    group_boundaries = np.flatnonzero(sorted_stacks[1:] != sorted_stacks[:-1]) + 1
    running_sorted = np.concatenate(
        [np.cumsum(group) for group in np.split(sorted_weights, group_boundaries)]
    )

    running = np.empty_like(running_sorted)
    running[order] = running_sorted

    peak = int(np.argmax(running))
    if running[peak] <= 0:
        return None
    return int(stacks[peak])


def convert_stack_index_to_stack(profile: Profile, stack_index: int | None) -> Stack | None:
    """Walk parent links from ``stack_index`` to the root, leaf frame first."""
    if stack_index is None:
        return None
    stack_table, frame_table = profile.stack_table, profile.frame_table
    frames: list[StackFrame] = []
    current: int | None = stack_index
    while current is not None:
        frame_index = stack_table.frame_index_column[current]
        category_index = frame_table.category_index_column[frame_index]
        frames.append(
            StackFrame(
                name=frame_table.name_column[frame_index],
                category=profile.categories[category_index],
            )
        )
        current = stack_table.parent_stack_index_column[current]
    return tuple(frames)


def derive_sample_categories(profile: Profile) -> list[int]:
    """Leaf-frame category index of every sample."""
    frame_index_column = profile.stack_table.frame_index_column
    category_index_column = profile.frame_table.category_index_column
    return [
        category_index_column[frame_index_column[stack_index]]
        for stack_index in profile.sample_table.stack_index_column
    ]


def derive_sample_stacks(profile: Profile) -> np.ndarray:
    return np.asarray(profile.sample_table.stack_index_column, dtype=np.int32)


def derive_sample_weights(profile: Profile) -> np.ndarray:
    return np.asarray(profile.sample_table.weight_column, dtype=np.float64)


def _category_index_dtype(category_count: int) -> np.dtype:
    return np.min_scalar_type(max(category_count - 1, 0))


class ColumnarSelectors(SelectorSet):
    """Base for the columnar strategies.

    Only accumulation is timed; dense-to-dict conversion and stack
    reconstruction run outside the measured region.
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
        return profile.sample_table.length

    def _compute_total(self, profile: Profile, index_range: SampleIndexRange) -> float:
        return compute_total_basic(profile, index_range)

    def _accumulate_heaviest_stack(
        self, profile: Profile, index_range: SampleIndexRange
    ) -> int | None:
        return compute_heaviest_stack_index_with_lists(
            profile.stack_table.length,
            profile.sample_table.stack_index_column,
            profile.sample_table.weight_column,
            index_range,
        )

    def _finish_categories(
        self, profile: Profile, accumulated: DenseCategoryWeights
    ) -> CategoryBreakdown:
        return convert_dense_category_weights_to_breakdown(profile, accumulated)

    def _finish_heaviest_stack(self, profile: Profile, accumulated: int | None) -> Stack | None:
        return convert_stack_index_to_stack(profile, accumulated)


class ColumnarBasicSelectors(ColumnarSelectors):
    def _accumulate_categories(
        self, profile: Profile, index_range: SampleIndexRange
    ) -> DenseCategoryWeights:
        return compute_category_breakdown_basic(profile, index_range)


class ColumnarMemoizedSampleCategoriesSelectors(ColumnarSelectors):
    def __init__(self) -> None:
        super().__init__()
        self.get_sample_categories = memoize_one(derive_sample_categories)

    def _prepare(self, profile: Profile) -> None:
        self._sample_categories = self.get_sample_categories(profile)

    def _accumulate_categories(
        self, profile: Profile, index_range: SampleIndexRange
    ) -> DenseCategoryWeights:
        return compute_category_breakdown_with_sample_categories(
            len(profile.categories),
            self._sample_categories,
            profile.sample_table.weight_column,
            index_range,
        )


class ColumnarMemoizedNumpyInputsSelectors(ColumnarSelectors):
    def __init__(self) -> None:
        super().__init__()
        self.get_sample_stacks = memoize_one(derive_sample_stacks)
        self.get_sample_weights = memoize_one(derive_sample_weights)
        self.get_sample_categories = memoize_one(self._derive_sample_categories)

    def _derive_sample_categories(self, profile: Profile) -> np.ndarray:
        sample_stacks = self.get_sample_stacks(profile)
        frame_index_column = np.asarray(profile.stack_table.frame_index_column, dtype=np.intp)
        category_index_column = np.asarray(
            profile.frame_table.category_index_column, dtype=np.intp
        )
        sample_categories = category_index_column[frame_index_column[sample_stacks]]
        return sample_categories.astype(_category_index_dtype(len(profile.categories)))

    def _prepare(self, profile: Profile) -> None:
        self._sample_stacks = self.get_sample_stacks(profile)
        self._sample_weights = self.get_sample_weights(profile)
        self._sample_categories = self.get_sample_categories(profile)

    def _compute_total(self, profile: Profile, index_range: SampleIndexRange) -> float:
        return compute_total_numpy(self._sample_weights, index_range)

    def _accumulate_categories(
        self, profile: Profile, index_range: SampleIndexRange
    ) -> DenseCategoryWeights:
        return compute_category_breakdown_with_numpy_sample_categories(
            len(profile.categories),
            self._sample_categories,
            self._sample_weights,
            index_range,
        )

    def _accumulate_heaviest_stack(
        self, profile: Profile, index_range: SampleIndexRange
    ) -> int | None:
        return compute_heaviest_stack_index_with_numpy(
            profile.stack_table.length,
            self._sample_stacks,
            self._sample_weights,
            index_range,
        )


class ColumnarVectorizedSelectors(ColumnarMemoizedNumpyInputsSelectors):
    def _compute_total(self, profile: Profile, index_range: SampleIndexRange) -> float:
        return compute_total_vectorized(self._sample_weights, index_range)

    def _accumulate_categories(
        self, profile: Profile, index_range: SampleIndexRange
    ) -> DenseCategoryWeights:
        return compute_category_breakdown_vectorized(
            len(profile.categories),
            self._sample_categories,
            self._sample_weights,
            index_range,
        )

    def _accumulate_heaviest_stack(
        self, profile: Profile, index_range: SampleIndexRange
    ) -> int | None:
        return compute_heaviest_stack_index_vectorized(
            self._sample_stacks, self._sample_weights, index_range
        )


def make_selectors_v3_basic() -> ColumnarBasicSelectors:
    logger.debug("Creating columnar selector set (basic)")
    return ColumnarBasicSelectors()


def make_selectors_v3_memoized_sample_categories() -> ColumnarMemoizedSampleCategoriesSelectors:
    logger.debug("Creating columnar selector set (memoized sample categories)")
    return ColumnarMemoizedSampleCategoriesSelectors()


def make_selectors_v3_memoized_numpy_inputs() -> ColumnarMemoizedNumpyInputsSelectors:
    logger.debug("Creating columnar selector set (memoized numpy inputs)")
    return ColumnarMemoizedNumpyInputsSelectors()


def make_selectors_v3_vectorized() -> ColumnarVectorizedSelectors:
    logger.debug("Creating columnar selector set (vectorized)")
    return ColumnarVectorizedSelectors()
