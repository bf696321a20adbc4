#!/usr/bin/env python3
"""Example: Quickstart: testmeta annotations

Declare annotations on a small class hierarchy, read them back with
inheritance-aware merging, and inspect the raw declarations.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install testmeta
"""
from __future__ import annotations

import testmeta
from testmeta.annotations import Annotation, annotate, annotation_usage, typed


@annotation_usage(allow_multiple=True)
class Trait(Annotation):
    def __init__(self, name: str, value: str) -> None:
        self.name = name
        self.value = value


class Timeout(Annotation):
    retries: int = 0

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds


@annotate(Trait, "Category", "Integration")
@annotate(Timeout, typed(30.0, float), retries=2)
class BaseCheckoutTests:
    pass


@annotate(Trait, "Owner", "payments")
class CardCheckoutTests(BaseCheckoutTests):
    pass


def main() -> None:
    print(f"testmeta version: {testmeta.__version__}")

    # Step 1: Multi-use traits merge down the hierarchy, nearest first
    for info in testmeta.annotations_of(CardCheckoutTests, Trait):
        print(f"  {info.annotation.name} = {info.annotation.value}")

    # Step 2: Single-use annotations are inherited when not overridden
    (timeout,) = testmeta.annotations_of(CardCheckoutTests, Timeout)
    print(f"Timeout: {timeout.annotation.seconds}s, retries={timeout.annotation.retries}")

    # Step 3: The declaration behind each instance stays available
    print(f"Declared as: {timeout.descriptor}")
    print(f"Constructor arguments: {timeout.constructor_arguments()}")

    # Step 4: Lookups by alias go through the type registry
    policies = testmeta.annotations_of(Trait, "annotation-usage")
    print(f"Trait usage policy: {policies[0]}")


if __name__ == "__main__":
    main()
