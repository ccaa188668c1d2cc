"""Call-depth density curve shared by every representation."""

import numpy as np
from loguru import logger

from profile_selectors._types import TimeRange

GRAPH_RESOLUTION = 800


def bucket_max_depths(
    times: np.ndarray,
    sample_depths: np.ndarray,
    base_range: TimeRange,
) -> np.ndarray:
    """Normalized per-bucket maximum stack depth.

    Each sample time is mapped linearly onto GRAPH_RESOLUTION equal buckets
    spanning [base_range.start, base_range.end). Samples landing outside the
    buckets (the one at exactly ``end``, or every sample when start == end)
    still count towards the global maximum but update no bucket.

    Args:
        times: Per-sample times, ascending
        sample_depths: Per-sample stack depth (root frame = 0)
        base_range: First and last sample time

    Returns:
        float32 array of length GRAPH_RESOLUTION with values in [0, 1], or all
        NaN when the deepest sampled stack has depth 0.
    """
    buckets = np.zeros(GRAPH_RESOLUTION, dtype=np.int32)
    max_depth = int(sample_depths.max())
    duration = base_range.end - base_range.start

    with np.errstate(divide="ignore", invalid="ignore"):
        positions = np.floor((times - base_range.start) / duration * GRAPH_RESOLUTION)
    in_range = np.isfinite(positions) & (positions >= 0) & (positions < GRAPH_RESOLUTION)
    np.maximum.at(buckets, positions[in_range].astype(np.intp), sample_depths[in_range])

    if max_depth == 0:
        logger.warning("Profile graph has maximum stack depth 0; graph values are NaN")

    with np.errstate(divide="ignore", invalid="ignore"):
        return (buckets / max_depth).astype(np.float32)
