"""Value types shared by every profile representation."""

from dataclasses import dataclass

Number = int | float

# Category name -> summed signed weight.
CategoryBreakdown = dict[str, float]


@dataclass(frozen=True)
class TimeRange:
    start: Number
    end: Number


@dataclass(frozen=True)
class SampleIndexRange:
    """Half-open range [start, end) of sample indices."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class StackFrame:
    name: str
    category: str


# Leaf frame first, root frame last.
Stack = tuple[StackFrame, ...]


@dataclass(frozen=True)
class ProfileInfo:
    """Aggregates for one selection, as returned by SelectorSet.get_info_for_profile.

    Attributes:
        overall_sample_count: Number of samples in the whole profile
        selected_sample_count: Number of samples in the selected index range
        total: Sum of absolute sample weights in the selection
        category_breakdown: Signed weight per leaf-frame category
        category_breakdown_throughput: Smoothed ns/sample of the breakdown
        heaviest_stack: Stack with the largest positive accumulated weight, or None
        heaviest_stack_throughput: Smoothed ns/sample of heaviest-stack detection
    """

    overall_sample_count: int
    selected_sample_count: int
    total: float
    category_breakdown: CategoryBreakdown
    category_breakdown_throughput: float
    heaviest_stack: Stack | None
    heaviest_stack_throughput: float
