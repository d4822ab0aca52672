from __future__ import annotations

import logging
import os
import threading
import warnings
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from .linalg import solve
from .warnings import PyCacheMatrixConfigWarning

Solver = Callable[..., Any]

LOGGER_NAME = "pycachematrix"


def _check_solver(fn: Any) -> None:
    if not callable(fn):
        raise TypeError(f"solver must be callable, got {type(fn).__name__}")


class Runtime:
    def __init__(
        self,
        *,
        default_solver: Solver = solve,
        log_level_env_var: str = "PYCACHEMATRIX_LOG_LEVEL",
    ) -> None:
        self._builtin_solver = default_solver
        self._default_solver = default_solver
        self._log_level_env_var = log_level_env_var
        self._logging_configured = False
        self._lock = threading.Lock()

    def get_default_solver(self) -> Solver:
        return self._default_solver

    def set_default_solver(self, fn: Solver | None) -> Solver:
        if fn is None:
            fn = self._builtin_solver
        _check_solver(fn)
        with self._lock:
            self._default_solver = fn
        return fn

    @contextmanager
    def temporary_default_solver(self, fn: Solver | None) -> Iterator[Solver]:
        """Temporarily override the process-wide default solver.

        The default is process-global; this helper does not provide thread
        isolation.
        """

        prev = self._default_solver
        active = self.set_default_solver(fn)
        try:
            yield active
        finally:
            self.set_default_solver(prev)

    def log_level(self) -> int | None:
        raw = os.environ.get(self._log_level_env_var)
        if not raw:
            return None
        raw = raw.strip()
        if raw.isdigit():
            return int(raw)
        level = logging.getLevelName(raw.upper())
        if not isinstance(level, int):
            raise ValueError(f"{self._log_level_env_var}={raw!r} is not a logging level")
        return level

    def configure_logging(self) -> logging.Logger:
        """Attach the package handlers once.

        An unrecognised log level in the environment is reported with a
        warning and otherwise ignored.
        """

        logger = logging.getLogger(LOGGER_NAME)
        with self._lock:
            if self._logging_configured:
                return logger
            self._logging_configured = True

        logger.addHandler(logging.NullHandler())
        try:
            level = self.log_level()
        except ValueError as exc:
            warnings.warn(f"{exc}; ignoring it", PyCacheMatrixConfigWarning, stacklevel=2)
            level = None
        if level is not None:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s"))
            logger.addHandler(handler)
            logger.setLevel(level)
        return logger


_default_runtime = Runtime()


def default_instance() -> Runtime:
    return _default_runtime
