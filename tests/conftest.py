"""Shared test fixtures for testmeta.

Fixtures defined here are available to all tests in the suite without
needing an explicit import. Add project-wide fixtures here; keep
domain-specific fixtures close to the tests that use them.
"""
from __future__ import annotations

import pytest

from testmeta.messages import variants


@pytest.fixture()
def package_name() -> str:
    """Return the importable package name for assertions."""
    return "testmeta"


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "0.1.0"


@pytest.fixture()
def passed_message() -> variants.TestPassed:
    """Return a fully populated ``TestPassed`` message."""
    return variants.TestPassed(
        assembly_name="checkout.tests",
        collection_name="default",
        class_name="LoginTests",
        method_name="test_login",
        test_case="LoginTests.test_login",
        display_name="test_login",
        execution_time=0.25,
    )


@pytest.fixture()
def assembly_finished() -> variants.TestAssemblyFinished:
    """Return the message that usually completes a run."""
    return variants.TestAssemblyFinished(
        assembly_name="checkout.tests",
        tests_total=3,
        tests_failed=1,
        execution_time=1.5,
    )
