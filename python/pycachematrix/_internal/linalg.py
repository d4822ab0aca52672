"""Default inversion routine used by :func:`pycachematrix.inverse_of`.

``solve`` follows the shape of R's ``solve(a, b, tol)``: with ``b`` omitted it
returns the inverse of ``a``, otherwise the solution ``x`` of ``a @ x = b``.
All failures surface as :class:`InvalidInputError`.
"""
from __future__ import annotations

from typing import Any

import numpy as np

from .coercion import as_float_matrix


class InvalidInputError(np.linalg.LinAlgError, ValueError):
    """The matrix cannot be inverted (not 2D, not square, or singular)."""


def reciprocal_condition(a: np.ndarray) -> float:
    """Reciprocal 1-norm condition number; 0.0 for an exactly singular matrix."""
    with np.errstate(divide="ignore", invalid="ignore"):
        cond = float(np.linalg.cond(a, 1))
    if not np.isfinite(cond) or cond == 0.0:
        return 0.0
    return 1.0 / cond


def solve(a: Any, b: Any | None = None, *, tol: float | None = None) -> np.ndarray:
    try:
        a_arr = as_float_matrix(a)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(str(exc)) from exc

    rows, cols = a_arr.shape
    if rows != cols:
        raise InvalidInputError(f"Matrix must be square to be inverted, got shape ({rows}, {cols}).")

    if tol is not None:
        rcond = reciprocal_condition(a_arr)
        if rcond < float(tol):
            raise InvalidInputError(
                f"system is computationally singular: reciprocal condition number = {rcond:.6g}"
            )

    try:
        if b is None:
            return np.linalg.inv(a_arr)
        return np.linalg.solve(a_arr, np.asarray(b))
    except np.linalg.LinAlgError as exc:
        raise InvalidInputError(str(exc)) from exc
