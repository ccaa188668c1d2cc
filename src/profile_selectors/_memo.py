"""Single-slot memoization keyed by argument identity."""

from collections.abc import Callable
from typing import Generic, TypeVar

from loguru import logger

K = TypeVar("K")
V = TypeVar("V")

_UNSET = object()


class memoize_one(Generic[K, V]):
    """Cache the result of ``compute`` for the most recent argument only.

    The slot is keyed by object identity (``is``), not equality: passing a
    different profile object, even an equal one, recomputes and replaces the
    slot. The cached argument is kept alive by the slot until it is replaced.

    Attributes:
        misses: Number of recomputations so far
    """

    def __init__(self, compute: Callable[[K], V]) -> None:
        self._compute = compute
        self._key: object = _UNSET
        self._value: V | None = None
        self.misses: int = 0

    def __call__(self, arg: K) -> V:
        if arg is not self._key:
            logger.debug(f"Recomputing {getattr(self._compute, '__name__', 'derived value')}")
            self._value = self._compute(arg)
            self._key = arg
            self.misses += 1
        return self._value  # type: ignore[return-value]

    def clear(self) -> None:
        self._key = _UNSET
        self._value = None
