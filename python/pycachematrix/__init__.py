"""Matrix container with a memoized, invalidate-on-write inverse."""
from __future__ import annotations

from importlib.metadata import PackageNotFoundError as _PackageNotFoundError
from importlib.metadata import version as _dist_version
from typing import Any, Callable, ContextManager

try:
    __version__ = _dist_version("pycachematrix")
except _PackageNotFoundError:
    __version__ = "unknown"

from ._internal import observability as _observability
from ._internal import runtime as _runtime_mod
from ._internal.cached_matrix import CachedMatrix, cache_matrix
from ._internal.linalg import InvalidInputError, reciprocal_condition, solve
from ._internal.linalg_cache import CACHE_HIT_MESSAGE, inverse_of
from ._internal.warnings import PyCacheMatrixConfigWarning, PyCacheMatrixWarning

_runtime = _runtime_mod.default_instance()
_runtime.configure_logging()


def get_default_solver() -> Callable[..., Any]:
    """Inversion routine used by CachedMatrix instances created without one."""
    return _runtime.get_default_solver()


def set_default_solver(fn: Callable[..., Any] | None) -> Callable[..., Any]:
    """Replace the process-wide inversion routine; ``None`` restores :func:`solve`."""
    return _runtime.set_default_solver(fn)


def default_solver(fn: Callable[..., Any] | None) -> ContextManager[Callable[..., Any]]:
    return _runtime.temporary_default_solver(fn)


def cache_events() -> dict[str, int]:
    """Hit/miss/failure/discarded counters since start-up or the last clear."""
    return _observability.default_instance().counts()


def last_cache_event() -> dict[str, Any] | None:
    return _observability.default_instance().last()


def clear_cache_events() -> None:
    _observability.default_instance().clear()


__all__ = [
    "CACHE_HIT_MESSAGE",
    "CachedMatrix",
    "InvalidInputError",
    "PyCacheMatrixConfigWarning",
    "PyCacheMatrixWarning",
    "cache_events",
    "cache_matrix",
    "clear_cache_events",
    "default_solver",
    "get_default_solver",
    "inverse_of",
    "last_cache_event",
    "reciprocal_condition",
    "set_default_solver",
    "solve",
]
