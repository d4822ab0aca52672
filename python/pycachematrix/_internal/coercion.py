from __future__ import annotations

from collections.abc import Sequence as _SequenceABC
from typing import Any

import numpy as np


def is_sequence_like(value: Any) -> bool:
    if isinstance(value, np.ndarray):
        return value.ndim >= 1
    return isinstance(value, _SequenceABC) and not isinstance(value, (str, bytes, bytearray))


def _rows_from_matrix_like(candidate: Any) -> list[list[Any]] | None:
    rows_attr: Any = getattr(candidate, "rows", None)
    cols_attr: Any = getattr(candidate, "cols", None)
    get_attr: Any = getattr(candidate, "get", None)
    if not (callable(rows_attr) and callable(cols_attr) and callable(get_attr)):
        return None
    n_rows = int(rows_attr())
    n_cols = int(cols_attr())
    return [[get_attr(i, j) for j in range(n_cols)] for i in range(n_rows)]


def coerce_sequence_rows(candidate: Any) -> list[list[Any]]:
    if not is_sequence_like(candidate):
        raise TypeError("Matrix data must be provided as a nested sequence or a NumPy array.")
    rows = [list(row) if is_sequence_like(row) else row for row in candidate]
    if not rows:
        raise ValueError("Matrix data must not be empty.")
    width = None
    for row in rows:
        if not isinstance(row, list):
            raise TypeError("Each matrix row must be a sequence of entries.")
        if width is None:
            width = len(row)
        elif len(row) != width:
            raise ValueError("Matrix data must be rectangular (all rows the same length).")
    return rows


def as_float_matrix(candidate: Any) -> np.ndarray:
    """Return ``candidate`` as a 2D inexact (float or complex) ndarray.

    Accepts NumPy arrays (returned without a copy when already inexact), objects
    exposing ``rows()``/``cols()``/``get(i, j)``, and nested sequences. Shape is
    only checked for dimensionality; squareness is left to the caller.
    """

    if isinstance(candidate, np.ndarray):
        array = candidate
    else:
        rows = _rows_from_matrix_like(candidate)
        if rows is None:
            rows = coerce_sequence_rows(candidate)
        array = np.asarray(rows)

    if array.ndim != 2:
        raise ValueError(f"Matrix input must be two-dimensional, got ndim={array.ndim}.")
    if not np.issubdtype(array.dtype, np.inexact):
        array = array.astype(np.float64)
    return array
