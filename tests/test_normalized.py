import pytest

from profile_builders import make_denormalized, to_normalized
from profile_selectors import SampleIndexRange, StackFrame, normalized

BREAKDOWN_STRATEGIES = [
    normalized.compute_category_breakdown_with_string_key_map,
    normalized.compute_category_breakdown_with_index_key_map,
    normalized.compute_category_breakdown_with_dense_array,
]

HEAVIEST_STRATEGIES = [
    normalized.compute_heaviest_stack_index_with_map,
    normalized.compute_heaviest_stack_index_with_dense_array,
]


class TestCategoryBreakdown:
    @pytest.mark.parametrize("strategy", BREAKDOWN_STRATEGIES, ids=lambda f: f.__name__)
    def test_strategy_result(self, call_tree_profiles, strategy):
        profile = call_tree_profiles["v2"]
        assert strategy(profile, SampleIndexRange(0, 4)) == {
            "Other": 1.0,
            "JS": 4.0,
            "Layout": 2.0,
            "Graphics": -1.5,
        }

    @pytest.mark.parametrize("strategy", BREAKDOWN_STRATEGIES, ids=lambda f: f.__name__)
    def test_unused_category_is_omitted(self, call_tree_profiles, strategy):
        profile = call_tree_profiles["v2"]
        assert profile.categories[0] == "Idle"
        assert "Idle" not in strategy(profile, SampleIndexRange(0, 10))

    @pytest.mark.parametrize("strategy", BREAKDOWN_STRATEGIES, ids=lambda f: f.__name__)
    def test_empty_range(self, call_tree_profiles, strategy):
        assert strategy(call_tree_profiles["v2"], SampleIndexRange(5, 5)) == {}


class TestHeaviestStack:
    @pytest.mark.parametrize("strategy", HEAVIEST_STRATEGIES, ids=lambda f: f.__name__)
    def test_running_maximum(self, call_tree_profiles, strategy):
        profile = call_tree_profiles["v2"]
        assert strategy(profile, SampleIndexRange(0, 2)) == 1
        assert strategy(profile, SampleIndexRange(0, 10)) == 2

    @pytest.mark.parametrize("strategy", HEAVIEST_STRATEGIES, ids=lambda f: f.__name__)
    def test_all_non_positive_is_none(self, call_tree_profiles, strategy):
        profile = call_tree_profiles["v2"]
        assert strategy(profile, SampleIndexRange(3, 4)) is None
        assert strategy(profile, SampleIndexRange(6, 6)) is None


class TestStackTable:
    def test_depths_follow_parent_links(self, call_tree_profiles):
        depths = normalized.compute_stack_depths(call_tree_profiles["v2"])
        assert depths.tolist() == [0, 1, 2, 1, 2]

    def test_convert_stack_index_to_stack(self, call_tree_profiles):
        profile = call_tree_profiles["v2"]
        assert normalized.convert_stack_index_to_stack(profile, 4) == (
            StackFrame("gc", "GC"),
            StackFrame("run", "JS"),
            StackFrame("main", "Other"),
        )
        assert normalized.convert_stack_index_to_stack(profile, None) is None

    def test_shared_frames_are_not_duplicated(self, call_tree_profiles):
        profile = call_tree_profiles["v2"]
        assert [frame.name for frame in profile.frames] == ["main", "run", "layout", "paint", "gc"]


def test_empty_profile_base_range_asserts():
    with pytest.raises(AssertionError, match="at least one sample"):
        normalized.compute_base_range(to_normalized(make_denormalized([])))
