"""Property-based tests for profile_selectors using Hypothesis.

These tests check that every representation and strategy agrees on arbitrary
sorted profiles, and that the search and accumulator utilities keep their
invariants for arbitrary inputs.
"""

import bisect
from unittest import mock

import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from profile_builders import all_representations
from profile_selectors import columnar
from profile_selectors import (
    FORMAT_REPRESENTATIONS,
    GRAPH_RESOLUTION,
    SELECTOR_FACTORIES,
    THROUGHPUT_WINDOW,
    SampleIndexRange,
    ThroughputAccumulator,
    TimeRange,
    bisection_left,
    make_selectors,
)

# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

FRAME_POOL = [
    ("main", "Other"),
    ("run", "JS"),
    ("parse", "JS"),
    ("layout", "Layout"),
    ("paint", "Graphics"),
    ("gc", "GC"),
]

frame = st.sampled_from(FRAME_POOL)

# Leaf first; depth 1..4.
stack = st.lists(frame, min_size=1, max_size=4)

# Integer-valued weights keep float sums exact regardless of accumulation order.
weight = st.integers(min_value=-20, max_value=20).map(float)

# Fractional and huge weights, where accumulation order changes the rounding.
float_weight = st.one_of(
    st.sampled_from([0.1, 0.2, 0.3, -0.1, -0.2, -0.3, 1e17, -1e17, 3.0]),
    st.floats(min_value=-1e3, max_value=1e3, allow_nan=False, allow_infinity=False),
)

sorted_times = st.lists(st.integers(min_value=0, max_value=1000), min_size=1, max_size=60).map(
    sorted
)


@st.composite
def profile_rows(draw, weights=weight):
    times = draw(sorted_times)
    return [(float(t), draw(stack), draw(weights)) for t in times]


@st.composite
def rows_and_range(draw, weights=weight):
    rows = draw(profile_rows(weights))
    start = draw(st.integers(min_value=0, max_value=len(rows)))
    end = draw(st.integers(min_value=start, max_value=len(rows)))
    return rows, SampleIndexRange(start, end)


# ---------------------------------------------------------------------------
# Bisection
# ---------------------------------------------------------------------------

class TestBisectionProperties:
    @given(seq=st.lists(st.integers(-50, 50)).map(sorted), x=st.integers(-60, 60))
    def test_matches_stdlib_bisect_left(self, seq, x):
        assert bisection_left(seq, x) == bisect.bisect_left(seq, x)

    @given(
        seq=st.lists(st.integers(-50, 50), min_size=1).map(sorted),
        x=st.integers(-60, 60),
        data=st.data(),
    )
    def test_matches_stdlib_within_bounds(self, seq, x, data):
        low = data.draw(st.integers(0, len(seq)))
        high = data.draw(st.integers(low, len(seq)))
        assert bisection_left(seq, x, low, high) == bisect.bisect_left(seq, x, low, high)


# ---------------------------------------------------------------------------
# Time range conversion
# ---------------------------------------------------------------------------

class TestTimeRangeProperties:
    @given(rows=profile_rows(), a=st.floats(-10, 1010), b=st.floats(-10, 1010))
    @settings(max_examples=50, deadline=None)
    def test_range_selects_exactly_samples_in_half_open_interval(self, rows, a, b):
        start, end = min(a, b), max(a, b)
        profiles = all_representations(rows)
        expected = [i for i, (t, _, _) in enumerate(rows) if start <= t < end]
        for format_name in SELECTOR_FACTORIES:
            selectors = make_selectors(format_name)
            profile = profiles[FORMAT_REPRESENTATIONS[format_name]]
            index_range = selectors.convert_time_range_to_sample_index_range(
                profile, TimeRange(start=start, end=end)
            )
            assert list(range(index_range.start, index_range.end)) == expected


# ---------------------------------------------------------------------------
# Cross-representation equivalence
# ---------------------------------------------------------------------------

class TestEquivalenceProperties:
    @given(case=rows_and_range())
    @settings(max_examples=75, deadline=None)
    def test_all_selector_sets_agree(self, case):
        rows, index_range = case
        profiles = all_representations(rows)

        infos = {}
        for format_name in SELECTOR_FACTORIES:
            profile = profiles[FORMAT_REPRESENTATIONS[format_name]]
            infos[format_name] = make_selectors(format_name).get_info_for_profile(
                profile, index_range
            )

        reference = infos["v1"]
        for info in infos.values():
            assert info.total == reference.total
            assert info.category_breakdown == reference.category_breakdown
            assert info.heaviest_stack == reference.heaviest_stack

    @given(case=rows_and_range(float_weight))
    @settings(max_examples=100, deadline=None)
    def test_all_selector_sets_agree_with_float_weights(self, case):
        """Per-stack sums round identically everywhere, so the heaviest stack is exact."""
        rows, index_range = case
        profiles = all_representations(rows)

        infos = {
            format_name: make_selectors(format_name).get_info_for_profile(
                profiles[FORMAT_REPRESENTATIONS[format_name]], index_range
            )
            for format_name in SELECTOR_FACTORIES
        }

        reference = infos["v1"]
        for info in infos.values():
            assert info.heaviest_stack == reference.heaviest_stack
            assert info.category_breakdown == pytest.approx(reference.category_breakdown)
            assert info.total == pytest.approx(reference.total)

    @given(
        cases=st.lists(
            st.tuples(st.integers(min_value=0, max_value=5), float_weight), min_size=1, max_size=40
        )
    )
    @settings(max_examples=200)
    def test_vectorized_heaviest_matches_loop_with_float_weights(self, cases):
        stacks = [stack_index for stack_index, _ in cases]
        weights = [w for _, w in cases]
        index_range = SampleIndexRange(0, len(cases))

        expected = columnar.compute_heaviest_stack_index_with_lists(6, stacks, weights, index_range)
        actual = columnar.compute_heaviest_stack_index_vectorized(
            np.asarray(stacks, dtype=np.int32), np.asarray(weights, dtype=np.float64), index_range
        )
        assert actual == expected

    @given(case=rows_and_range())
    @settings(max_examples=50, deadline=None)
    def test_breakdown_nets_to_signed_sum_and_total_bounds_it(self, case):
        rows, index_range = case
        info = make_selectors("v1").get_info_for_profile(all_representations(rows)["v1"], index_range)
        selected = rows[index_range.start:index_range.end]
        assert sum(info.category_breakdown.values()) == sum(w for _, _, w in selected)
        assert abs(sum(info.category_breakdown.values())) <= info.total

    @given(rows=profile_rows())
    @settings(max_examples=50, deadline=None)
    def test_graphs_agree_and_stay_in_unit_interval(self, rows):
        profiles = all_representations(rows)
        graphs = [
            make_selectors(name).compute_profile_graph(profiles[FORMAT_REPRESENTATIONS[name]])
            for name in ("v1", "v2-basic", "v3-basic")
        ]
        for graph in graphs:
            assert graph.shape == (GRAPH_RESOLUTION,)
            np.testing.assert_array_equal(graph, graphs[0])

        if max(len(frames) for _, frames, _ in rows) > 1:
            assert np.all((graphs[0] >= 0) & (graphs[0] <= 1))
        else:
            assert np.isnan(graphs[0]).all()


# ---------------------------------------------------------------------------
# ThroughputAccumulator: window invariants
# ---------------------------------------------------------------------------

class TestAccumulatorProperties:
    @given(
        measurements=st.lists(
            st.tuples(st.integers(0, 10**6), st.integers(0, 100)), min_size=1, max_size=40
        )
    )
    def test_average_reflects_last_ten_nonzero_counts(self, measurements):
        ticks = []
        for duration, _ in measurements:
            ticks.extend([0, duration])

        accumulator = ThroughputAccumulator()
        with mock.patch(
            "profile_selectors._throughput.time", **{"perf_counter_ns.side_effect": ticks}
        ):
            for _, count in measurements:
                accumulator.measure(count, lambda: None)

        recorded = [duration / count for duration, count in measurements if count != 0]
        window = recorded[-THROUGHPUT_WINDOW:]
        assert accumulator.count == len(window)
        if window:
            expected = sum(window) / len(window)
            assert abs(accumulator.average() - expected) <= 1e-6 * max(1.0, expected)
