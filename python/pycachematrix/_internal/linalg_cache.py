from __future__ import annotations

import contextlib
import logging
from typing import Any

from . import observability as _observability
from . import runtime as _runtime

logger = logging.getLogger(__name__)

CACHE_HIT_MESSAGE = "inverse already computed; returning cached result"


def _resolve_solver(cm: Any) -> Any:
    solver = getattr(cm, "solver", None)
    if solver is not None:
        return solver
    return _runtime.default_instance().get_default_solver()


def _cache_hit(cm: Any, inv: Any) -> Any:
    logger.info(CACHE_HIT_MESSAGE)
    _observability.default_instance().record("hit", cm, solver=_resolve_solver(cm))
    return inv


def inverse_of(cm: Any, *args: Any, **kwargs: Any) -> Any:
    """Return the inverse of ``cm``'s current matrix, computing it at most once.

    On a miss the inversion routine is called as ``solver(cm.get(), *args,
    **kwargs)`` and its result is stored with ``cm.set_inverse``. On a hit the
    stored object is returned and the extra arguments are ignored.

    Whatever the routine raises propagates unchanged and nothing is stored, so
    the next call retries.
    """

    inv = cm.get_inverse()
    if inv is not None:
        return _cache_hit(cm, inv)

    lock = getattr(cm, "lock", None)
    with lock if lock is not None else contextlib.nullcontext():
        # Another thread may have populated the cache while we waited.
        inv = cm.get_inverse()
        if inv is not None:
            return _cache_hit(cm, inv)

        solver = _resolve_solver(cm)
        version = getattr(cm, "version", None)
        logger.debug("computing inverse with %r", solver)
        try:
            inv = solver(cm.get(), *args, **kwargs)
        except Exception:
            _observability.default_instance().record("failure", cm, solver=solver)
            raise

        if version is not None and getattr(cm, "version", None) != version:
            # Matrix was replaced during the computation; the result belongs to
            # the old value.
            logger.debug("matrix changed while inverting; result not cached")
            _observability.default_instance().record("discarded", cm, solver=solver)
            return inv

        cm.set_inverse(inv)
        _observability.default_instance().record("miss", cm, solver=solver)
        return inv
