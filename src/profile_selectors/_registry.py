"""Format name -> selector-set factory.

The names follow the ``format`` page parameter; ``v1`` is the default.
"""

from collections.abc import Callable

from beartype import beartype

from profile_selectors import columnar, denormalized, normalized
from profile_selectors._selectors import SelectorSet

DEFAULT_FORMAT = "v1"

SELECTOR_FACTORIES: dict[str, Callable[[], SelectorSet]] = {
    "v1": denormalized.make_selectors_v1,
    "v2-basic": normalized.make_selectors_v2_basic,
    "v2-category-index-key": normalized.make_selectors_v2_category_index_key,
    "v2-dense-arrays": normalized.make_selectors_v2_dense_arrays,
    "v3-basic": columnar.make_selectors_v3_basic,
    "v3-memoized-sample-categories": columnar.make_selectors_v3_memoized_sample_categories,
    "v3-memoized-numpy-inputs": columnar.make_selectors_v3_memoized_numpy_inputs,
    "v3-vectorized": columnar.make_selectors_v3_vectorized,
}

# Which profile module each format expects.
FORMAT_REPRESENTATIONS = {
    name: name.split("-", 1)[0] for name in SELECTOR_FACTORIES
}


@beartype
def make_selectors(format_name: str = DEFAULT_FORMAT) -> SelectorSet:
    """Create a fresh selector set (with its own accumulators) for a format.

    Raises:
        KeyError: If ``format_name`` is not registered.
    """
    try:
        factory = SELECTOR_FACTORIES[format_name]
    except KeyError:
        known = ", ".join(sorted(SELECTOR_FACTORIES))
        raise KeyError(f"Unknown selector format {format_name!r}; expected one of: {known}") from None
    return factory()
