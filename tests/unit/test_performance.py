"""Unit tests for the slow-evaluation logging decorator."""

from __future__ import annotations

import logging

from ctrlboard.utils.performance import log_slow_operations


class TestLogSlowOperations:
    def test_returns_result_and_keeps_name(self):
        @log_slow_operations(threshold_ms=10_000)
        def add(a, b):
            return a + b

        assert add(2, 3) == 5
        assert add.__name__ == "add"

    def test_warns_above_threshold(self, caplog):
        @log_slow_operations(threshold_ms=-1)
        def evaluate():
            return "done"

        with caplog.at_level(logging.WARNING, logger="ctrlboard.utils.performance"):
            evaluate()

        assert "Slow evaluation detected: evaluate" in caplog.text

    def test_quiet_below_threshold(self, caplog):
        @log_slow_operations(threshold_ms=10_000)
        def evaluate():
            return None

        with caplog.at_level(logging.WARNING, logger="ctrlboard.utils.performance"):
            evaluate()

        assert caplog.text == ""

    def test_exceptions_propagate(self):
        @log_slow_operations(threshold_ms=10_000)
        def broken():
            raise ValueError("boom")

        try:
            broken()
        except ValueError as e:
            assert str(e) == "boom"
        else:
            raise AssertionError("ValueError not raised")
