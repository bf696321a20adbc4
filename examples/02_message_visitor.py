#!/usr/bin/env python3
"""Example: Reporting with a message visitor

Feeds a short run of test-lifecycle messages to a completion visitor
from a worker thread, counts outcomes, and waits for the run to finish.

Usage:
    python examples/02_message_visitor.py

Requirements:
    pip install testmeta
"""
from __future__ import annotations

import threading
from collections import Counter

from testmeta.messages import CompletionVisitor, variants

RUN = [
    variants.TestAssemblyStarting(assembly_name="checkout.tests"),
    variants.TestPassed(display_name="test_card_accepted", execution_time=0.12),
    variants.TestFailed(
        display_name="test_card_declined",
        exception_types=("AssertionError",),
        messages=("expected 402, got 500",),
    ),
    variants.TestSkipped(display_name="test_wallet", reason="wallet sandbox offline"),
    variants.TestAssemblyFinished(
        assembly_name="checkout.tests", tests_total=3, tests_failed=1, tests_skipped=1
    ),
]


class SummaryVisitor(CompletionVisitor[variants.TestAssemblyFinished]):
    def __init__(self) -> None:
        super().__init__(variants.TestAssemblyFinished)
        self.outcomes: Counter[str] = Counter()

    def visit_test_passed(self, message: variants.TestPassed) -> bool:
        self.outcomes["passed"] += 1
        return True

    def visit_test_failed(self, message: variants.TestFailed) -> bool:
        self.outcomes["failed"] += 1
        print(f"  FAIL {message.display_name}: {message.messages[0]}")
        return True

    def visit_test_skipped(self, message: variants.TestSkipped) -> bool:
        self.outcomes["skipped"] += 1
        print(f"  SKIP {message.display_name}: {message.reason}")
        return True


def main() -> None:
    with SummaryVisitor() as visitor:
        runner = threading.Thread(target=lambda: [visitor.on_message(m) for m in RUN])
        runner.start()

        if not visitor.wait(timeout=5):
            print("Run did not finish in time")
            return
        runner.join()
        print(f"Outcomes: {dict(visitor.outcomes)}")


if __name__ == "__main__":
    main()
