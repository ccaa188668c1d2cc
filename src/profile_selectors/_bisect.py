"""Leftmost-insertion binary search over ascending sequences."""

from collections.abc import Callable, Sequence
from typing import Any


def _resolve_bounds(length: int, low: int | None, high: int | None) -> tuple[int, int]:
    low = 0 if low is None else low
    high = length if high is None else high
    if low < 0 or low > length or high < 0 or high > length:
        raise ValueError(
            f"low and high must lie within the sequence's range [0, {length}]: "
            f"low={low}, high={high}"
        )
    return low, high


def bisection_left(
    seq: Sequence[float],
    x: float,
    low: int | None = None,
    high: int | None = None,
) -> int:
    """Return the smallest index i in [low, high) with x <= seq[i], else high.

    Raises:
        ValueError: If low or high lies outside [0, len(seq)].
    """
    low, high = _resolve_bounds(len(seq), low, high)

    while low < high:
        mid = (low + high) >> 1
        if x <= seq[mid]:
            high = mid
        else:
            low = mid + 1

    return low


def bisection_left_by_key(
    seq: Sequence[Any],
    key: Callable[[Any], float],
    x: float,
    low: int | None = None,
    high: int | None = None,
) -> int:
    """Like bisection_left, but compares x against key(seq[i]).

    Raises:
        ValueError: If low or high lies outside [0, len(seq)].
    """
    low, high = _resolve_bounds(len(seq), low, high)

    while low < high:
        mid = (low + high) >> 1
        if x <= key(seq[mid]):
            high = mid
        else:
            low = mid + 1

    return low
