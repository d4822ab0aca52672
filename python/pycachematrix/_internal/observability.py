from __future__ import annotations

import threading
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Tuple

EVENTS: Tuple[str, ...] = ("hit", "miss", "failure", "discarded")


@dataclass
class CacheEventRecord:
    event: str
    shape: Tuple[int, ...] | None
    version: int
    solver: str | None
    timestamp: float


def _solver_label(fn: Any) -> str | None:
    if fn is None:
        return None
    name = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None)
    if name is None:
        return type(fn).__name__
    module = getattr(fn, "__module__", None)
    return f"{module}.{name}" if module else str(name)


class CacheObservability:
    def __init__(self) -> None:
        self._counts: Dict[str, int] = dict.fromkeys(EVENTS, 0)
        self._last: dict[str, Any] | None = None
        self._lock = threading.Lock()

    def clear(self) -> None:
        with self._lock:
            self._counts = dict.fromkeys(EVENTS, 0)
            self._last = None

    def record(self, event: str, matrix: Any, *, solver: Any = None) -> dict[str, Any]:
        if event not in self._counts:
            raise ValueError(f"unknown cache event {event!r}; expected one of {EVENTS}")
        record = CacheEventRecord(
            event=event,
            shape=getattr(matrix, "shape", None),
            version=int(getattr(matrix, "version", 0)),
            solver=_solver_label(solver),
            timestamp=time.time(),
        )
        payload = asdict(record)
        with self._lock:
            self._counts[event] += 1
            self._last = payload
        return payload

    def counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def last(self) -> dict[str, Any] | None:
        with self._lock:
            if self._last is None:
                return None
            return dict(self._last)


_default_observability = CacheObservability()


def default_instance() -> CacheObservability:
    return _default_observability
