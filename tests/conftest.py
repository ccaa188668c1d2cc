import pytest

from profile_builders import all_representations

A = ("A", "c")

# Four samples of one single-frame stack.
SCENARIO_ROWS = [
    (0, [A], 5),
    (10, [A], -3),
    (20, [A], 5),
    (30, [A], 2),
]

MAIN = ("main", "Other")
RUN = ("run", "JS")
LAYOUT = ("layout", "Layout")
PAINT = ("paint", "Graphics")
GC = ("gc", "GC")

# Mixed-depth stacks over four categories; times contain duplicates.
CALL_TREE_ROWS = [
    (0.0, [MAIN], 1.0),
    (1.0, [RUN, MAIN], 4.0),
    (1.0, [LAYOUT, RUN, MAIN], 2.0),
    (2.5, [PAINT, MAIN], -1.5),
    (3.0, [LAYOUT, RUN, MAIN], 3.0),
    (4.0, [GC, RUN, MAIN], 0.5),
    (4.0, [RUN, MAIN], -2.0),
    (5.5, [PAINT, MAIN], 6.0),
    (7.0, [LAYOUT, RUN, MAIN], 1.0),
    (9.0, [MAIN], 0.25),
]


@pytest.fixture
def scenario_profiles():
    return all_representations(SCENARIO_ROWS)


@pytest.fixture
def call_tree_profiles():
    # "Idle" is never referenced by a frame.
    return all_representations(CALL_TREE_ROWS, categories=["Idle"])
