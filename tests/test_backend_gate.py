import threading
import time

from homegrown.identity.gate import BackendGate, GateState


def test_ready_gate_returns_immediately():
    gate = BackendGate.ready()
    assert gate.is_settled()
    assert gate.wait(timeout=0) is GateState.READY


def test_unsettled_gate_times_out_as_not_ready():
    gate = BackendGate()
    started = time.monotonic()
    assert gate.wait(timeout=0.05) is GateState.NOT_READY
    assert time.monotonic() - started < 1.0
    assert not gate.is_settled()


def test_waiter_is_released_when_backend_comes_up():
    gate = BackendGate()
    timer = threading.Timer(0.05, gate.set_ready)
    timer.start()
    try:
        assert gate.wait(timeout=5.0) is GateState.READY
    finally:
        timer.cancel()


def test_failed_gate_reports_not_ready():
    gate = BackendGate()
    gate.set_failed(RuntimeError("schema bootstrap failed"))
    assert gate.wait(timeout=0) is GateState.NOT_READY


def test_gate_settles_only_once():
    gate = BackendGate()
    gate.set_ready()
    gate.set_failed(RuntimeError("late failure"))
    gate.set_ready()
    assert gate.wait(timeout=0) is GateState.READY
