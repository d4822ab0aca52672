import logging
import threading
import time

import numpy as np
import pytest

import pycachematrix
from pycachematrix import CachedMatrix, InvalidInputError, inverse_of


class CountingSolver:
    def __init__(self, fn=np.linalg.inv):
        self.fn = fn
        self.calls = []

    def __call__(self, matrix, *args, **kwargs):
        self.calls.append((matrix, args, kwargs))
        return self.fn(matrix)


@pytest.fixture(autouse=True)
def _clean_events():
    pycachematrix.clear_cache_events()
    yield
    pycachematrix.clear_cache_events()


def _random_invertible(n, seed):
    rng = np.random.default_rng(seed)
    return rng.random((n, n)) + np.eye(n) * n


@pytest.mark.parametrize("n,seed", [(1, 0), (4, 1), (16, 2)])
def test_inverse_times_matrix_is_identity(n, seed):
    a = _random_invertible(n, seed)
    cm = CachedMatrix(a)

    inv = inverse_of(cm)

    assert np.allclose(a @ inv, np.eye(n), atol=1e-10)


def test_second_call_hits_cache_without_calling_solver():
    solver = CountingSolver()
    cm = CachedMatrix(np.array([[1.0, 3.0], [2.0, 4.0]]), solver=solver)

    first = inverse_of(cm)
    second = inverse_of(cm)
    third = cm.invert()

    assert len(solver.calls) == 1
    assert second is first
    assert third is first
    assert np.array_equal(first, np.array([[-2.0, 1.5], [1.0, -0.5]]))


def test_set_invalidates_and_next_call_recomputes():
    solver = CountingSolver()
    a = np.array([[2.0, 0.0], [0.0, 4.0]])
    cm = CachedMatrix(a, solver=solver)

    inverse_of(cm)
    cm.set(a)
    assert cm.get_inverse() is None

    inverse_of(cm)
    assert len(solver.calls) == 2


def test_solver_receives_stored_matrix_and_forwarded_arguments():
    solver = CountingSolver()
    a = np.eye(3)
    cm = CachedMatrix(a, solver=solver)

    inverse_of(cm, "positional", tol=1e-9)

    matrix, args, kwargs = solver.calls[0]
    assert matrix is a
    assert args == ("positional",)
    assert kwargs == {"tol": 1e-9}


def test_extra_arguments_are_ignored_on_a_hit():
    solver = CountingSolver()
    cm = CachedMatrix(np.eye(2), solver=solver)

    first = inverse_of(cm, tol=1e-3)
    again = inverse_of(cm, tol=0.5)

    assert again is first
    assert len(solver.calls) == 1


def test_default_solver_forwards_b_and_tol():
    a = np.array([[4.0, 1.0], [2.0, 3.0]])
    b = np.array([1.0, 2.0])
    cm = CachedMatrix(a)

    x = inverse_of(cm, b, tol=1e-12)

    assert np.allclose(a @ x, b)


def test_failure_propagates_unmodified_and_caches_nothing():
    err = RuntimeError("boom")

    def failing(matrix):
        raise err

    cm = CachedMatrix(np.eye(2), solver=failing)
    with pytest.raises(RuntimeError) as excinfo:
        inverse_of(cm)

    assert excinfo.value is err
    assert cm.get_inverse() is None
    assert pycachematrix.cache_events()["failure"] == 1


def test_singular_matrix_then_valid_matrix_succeeds():
    cm = CachedMatrix(np.array([[1.0, 2.0], [2.0, 4.0]]))

    with pytest.raises(InvalidInputError):
        inverse_of(cm)
    assert cm.get_inverse() is None

    # Retrying without a set() goes back to the solver.
    with pytest.raises(np.linalg.LinAlgError):
        inverse_of(cm)

    cm.set(np.array([[1.0, 3.0], [2.0, 4.0]]))
    inv = inverse_of(cm)
    assert np.allclose(inv, [[-2.0, 1.5], [1.0, -0.5]])


def test_non_square_matrix_is_reported_by_solver():
    cm = CachedMatrix(np.ones((2, 3)))

    with pytest.raises(InvalidInputError, match="square"):
        inverse_of(cm)
    assert cm.get_inverse() is None


def test_repeated_calls_are_bit_identical():
    a = _random_invertible(8, 3)
    cm = CachedMatrix(a)

    results = [inverse_of(cm) for _ in range(5)]

    assert all(np.array_equal(r, results[0]) for r in results)
    assert pycachematrix.cache_events()["miss"] == 1
    assert pycachematrix.cache_events()["hit"] == 4


def test_cache_hit_logs_notice(caplog):
    cm = CachedMatrix(np.eye(2))
    inverse_of(cm)

    with caplog.at_level(logging.INFO, logger="pycachematrix"):
        inverse_of(cm)

    assert pycachematrix.CACHE_HIT_MESSAGE in caplog.messages


def test_cache_miss_does_not_log_hit_notice(caplog):
    cm = CachedMatrix(np.eye(2))

    with caplog.at_level(logging.INFO, logger="pycachematrix"):
        inverse_of(cm)

    assert pycachematrix.CACHE_HIT_MESSAGE not in caplog.messages


def test_solver_that_replaces_the_matrix_does_not_poison_the_cache():
    holder = {}

    def replacing(matrix):
        holder["cm"].set(np.eye(2) * 2.0)
        return np.linalg.inv(matrix)

    cm = CachedMatrix(np.eye(2), solver=replacing)
    holder["cm"] = cm

    inv = inverse_of(cm)

    assert np.array_equal(inv, np.eye(2))
    assert cm.get_inverse() is None
    assert pycachematrix.cache_events()["discarded"] == 1


def test_duck_typed_cache_object_without_lock():
    class Plain:
        def __init__(self, value):
            self.value = value
            self.inverse = None

        def get(self):
            return self.value

        def set_inverse(self, inv):
            self.inverse = inv

        def get_inverse(self):
            return self.inverse

    obj = Plain(np.array([[2.0]]))

    assert np.array_equal(inverse_of(obj), [[0.5]])
    assert np.array_equal(obj.inverse, [[0.5]])


def test_single_computation_under_concurrency():
    calls = {"n": 0}
    calls_lock = threading.Lock()

    def slow_solver(matrix):
        with calls_lock:
            calls["n"] += 1
        time.sleep(0.05)
        return np.linalg.inv(matrix)

    cm = CachedMatrix(np.array([[1.0, 3.0], [2.0, 4.0]]), solver=slow_solver)

    n = 8
    barrier = threading.Barrier(n)
    results = [None] * n

    def worker(i: int):
        barrier.wait()
        results[i] = inverse_of(cm)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert calls["n"] == 1
    assert all(r is results[0] for r in results)


class ArrayConversionCounter:
    def __init__(self, data):
        self._data = np.asarray(data, dtype=float)
        self.conversions = 0

    def __array__(self, dtype=None, copy=None):
        self.conversions += 1
        return self._data if dtype is None else self._data.astype(dtype)


def test_cache_hit_does_not_convert_stored_value():
    value = ArrayConversionCounter([[1.0, 3.0], [2.0, 4.0]])
    cm = CachedMatrix(value, solver=lambda m: np.linalg.inv(np.asarray(m)))
    assert value.conversions == 0

    first = inverse_of(cm)
    after_miss = value.conversions

    for _ in range(5):
        assert inverse_of(cm) is first
    repr(cm)

    assert value.conversions == after_miss
    assert pycachematrix.cache_events()["hit"] == 5
