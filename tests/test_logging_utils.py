import logging

import numpy as np

from sketch_solver import Constraint, ConstraintEntity
from sketch_solver.logging_utils import _safe_repr, apply_debug_logging, debug_log_call

logger = logging.getLogger("tests.logging_utils")


def test_debug_log_call_records_entry_and_exit(caplog):
    @debug_log_call(logger)
    def add(a, b):
        return a + b

    with caplog.at_level(logging.DEBUG, logger="tests.logging_utils"):
        assert add(1, b=2) == 3

    messages = [record.getMessage() for record in caplog.records]
    assert any(m.startswith("-> ") and "add" in m and "b=2" in m for m in messages)
    assert any(m.startswith("<- ") and m.endswith("= 3") for m in messages)


def test_debug_log_call_is_silent_above_debug(caplog):
    @debug_log_call(logger)
    def noop():
        return None

    with caplog.at_level(logging.INFO, logger="tests.logging_utils"):
        noop()

    assert caplog.records == []


def test_apply_debug_logging_wraps_functions_and_methods():
    namespace = {"__name__": "fake_module"}

    def helper():
        return 1

    class Thing:
        def method(self):
            return 2

    helper.__module__ = "fake_module"
    Thing.__module__ = "fake_module"
    Thing.method.__module__ = "fake_module"
    namespace.update(helper=helper, Thing=Thing)

    apply_debug_logging(namespace, logger=logger, skip={"Thing.method"})

    assert getattr(namespace["helper"], "_debug_logging_wrapped", False)
    assert not getattr(Thing.__dict__["method"], "_debug_logging_wrapped", False)
    assert namespace["helper"]() == 1


def test_safe_repr_summarizes_arrays_and_records():
    big = np.arange(100, dtype=float)

    assert _safe_repr(big) == "ndarray(shape=(100,), dtype=float64, min=0, max=99)"
    assert "values=" in _safe_repr(np.array([1.0, 2.0]))
    assert _safe_repr(ConstraintEntity("p", "point", position=(0, 0))).startswith("<point 'p'")
    assert _safe_repr(Constraint("d", "distance", ["a", "b"], active=False)).endswith("inactive>")
