from __future__ import annotations

import threading
from typing import Any, Callable

from .coercion import is_sequence_like
from .linalg_cache import inverse_of


def _cheap_shape(value: Any) -> tuple[int, int] | None:
    # Only the outer length and first row of a nested sequence are read.
    shape = getattr(value, "shape", None)
    if isinstance(shape, tuple):
        if len(shape) != 2:
            return None
        try:
            return int(shape[0]), int(shape[1])
        except (TypeError, ValueError):
            return None
    if is_sequence_like(value) and len(value) > 0 and is_sequence_like(value[0]):
        return len(value), len(value[0])
    return None


class CachedMatrix:
    """A matrix paired with a lazily computed, invalidate-on-write inverse.

    ``get``/``set`` read and replace the matrix; ``set`` always clears the
    cached inverse, even when the new value equals the old one.
    ``get_inverse``/``set_inverse`` expose the cache slot itself and never
    compute anything. ``set_inverse`` is meant to be called by
    :func:`pycachematrix.inverse_of` only.

    The stored matrix is kept by reference. Mutating it in place does not
    invalidate the cache; call ``set`` instead.
    """

    def __init__(self, value: Any, *, solver: Callable[..., Any] | None = None) -> None:
        if solver is not None and not callable(solver):
            raise TypeError(f"solver must be callable, got {type(solver).__name__}")
        self._value = value
        self._shape = _cheap_shape(value)
        self._cached_inverse: Any | None = None
        self._version = 0
        self._solver = solver
        self._lock = threading.RLock()

    def set(self, new_value: Any) -> None:
        with self._lock:
            self._value = new_value
            self._shape = _cheap_shape(new_value)
            self._cached_inverse = None
            self._version += 1

    def get(self) -> Any:
        return self._value

    def set_inverse(self, computed_inverse: Any) -> None:
        self._cached_inverse = computed_inverse

    def get_inverse(self) -> Any | None:
        return self._cached_inverse

    def invert(self, *args: Any, **kwargs: Any) -> Any:
        """Compute or retrieve the cached inverse."""
        return inverse_of(self, *args, **kwargs)

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def is_cached(self) -> bool:
        return self._cached_inverse is not None

    @property
    def version(self) -> int:
        return self._version

    @property
    def solver(self) -> Callable[..., Any] | None:
        return self._solver

    @property
    def shape(self) -> tuple[int, int] | None:
        return self._shape

    def __repr__(self) -> str:
        return f"CachedMatrix(shape={self.shape}, cached={self.is_cached}, version={self._version})"


def cache_matrix(value: Any, *, solver: Callable[..., Any] | None = None) -> CachedMatrix:
    return CachedMatrix(value, solver=solver)
