"""Unit tests for testmeta.messages.gate: CompletionGate."""
from __future__ import annotations

import logging
import threading

import pytest

from testmeta.messages.gate import CompletionGate


class TestCompletionGateSignal:
    def test_starts_armed(self) -> None:
        gate = CompletionGate()
        assert not gate.is_signaled
        assert not gate.is_closed

    def test_first_signal_performs_transition(self) -> None:
        gate = CompletionGate()
        assert gate.signal() is True
        assert gate.is_signaled

    def test_second_signal_is_a_no_op(self) -> None:
        gate = CompletionGate()
        gate.signal()
        assert gate.signal() is False
        assert gate.is_signaled

    def test_signal_after_close_is_ignored(self) -> None:
        gate = CompletionGate()
        gate.close()
        assert gate.signal() is False
        assert not gate.is_signaled

    def test_logs_signal(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="testmeta.messages.gate"):
            CompletionGate("assembly").signal()
        assert "Completion gate 'assembly' signaled" in caplog.text


class TestCompletionGateWait:
    def test_wait_times_out_while_armed(self) -> None:
        assert CompletionGate().wait(timeout=0.01) is False

    def test_wait_returns_immediately_once_signaled(self) -> None:
        gate = CompletionGate()
        gate.signal()
        assert gate.wait(timeout=0) is True

    def test_wait_is_released_by_another_thread(self) -> None:
        gate = CompletionGate()
        signaller = threading.Timer(0.05, gate.signal)
        signaller.start()
        try:
            assert gate.wait(timeout=5) is True
        finally:
            signaller.cancel()

    def test_wait_after_close_raises(self) -> None:
        gate = CompletionGate("closed-gate")
        gate.close()
        with pytest.raises(RuntimeError, match="closed-gate"):
            gate.wait(timeout=0)


class TestCompletionGateLifecycle:
    def test_context_manager_closes(self) -> None:
        with CompletionGate() as gate:
            assert not gate.is_closed
        assert gate.is_closed

    def test_close_is_idempotent(self) -> None:
        gate = CompletionGate()
        gate.close()
        gate.close()
        assert gate.is_closed

    def test_repr_reports_state(self) -> None:
        gate = CompletionGate("run")
        assert "armed" in repr(gate)
        gate.signal()
        assert "signaled" in repr(gate)
        gate.close()
        assert "closed" in repr(gate)
