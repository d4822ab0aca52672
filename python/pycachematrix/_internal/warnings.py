"""PyCacheMatrix warning categories.

These exist so users can filter/suppress PyCacheMatrix warnings without
catching all UserWarning.
"""


class PyCacheMatrixWarning(UserWarning):
    """Base warning category for all PyCacheMatrix user-facing warnings."""


class PyCacheMatrixConfigWarning(PyCacheMatrixWarning):
    """Configuration values that were ignored (e.g. an unknown log level)."""
