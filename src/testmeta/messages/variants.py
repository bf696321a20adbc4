"""Test-lifecycle message variants.

Each variant is a frozen, keyword-only dataclass describing one phase or
outcome of test discovery and execution.  Variants carry data only; they
are routed to handlers by :mod:`testmeta.messages.dispatch`.

Context fields are shared through a small base hierarchy (assembly →
collection → class → method → test case → test) so that, for example,
every test-level message also carries its assembly name.  The bases are
not variants themselves and have no handlers.
"""
from __future__ import annotations

from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Bases and shared shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class MessageSinkMessage:
    """Base class of every message."""

    # Keeps pytest from collecting the Test* variants as test classes.
    __test__ = False


@dataclass(frozen=True, kw_only=True)
class TestAssemblyMessage(MessageSinkMessage):
    assembly_name: str = ""


@dataclass(frozen=True, kw_only=True)
class TestCollectionMessage(TestAssemblyMessage):
    collection_name: str = ""


@dataclass(frozen=True, kw_only=True)
class TestClassMessage(TestCollectionMessage):
    class_name: str = ""


@dataclass(frozen=True, kw_only=True)
class TestMethodMessage(TestClassMessage):
    method_name: str = ""


@dataclass(frozen=True, kw_only=True)
class TestCaseMessage(TestMethodMessage):
    test_case: str = ""


@dataclass(frozen=True, kw_only=True)
class TestMessage(TestCaseMessage):
    display_name: str = ""


@dataclass(frozen=True, kw_only=True)
class TestResultMessage(TestMessage):
    """Outcome of running a single test."""

    execution_time: float = 0.0
    output: str = ""


@dataclass(frozen=True, kw_only=True)
class FailureInformation(MessageSinkMessage):
    """Exception details; one entry per exception in the cause chain."""

    exception_types: tuple[str, ...] = ()
    messages: tuple[str, ...] = ()
    stack_traces: tuple[str, ...] = ()


@dataclass(frozen=True, kw_only=True)
class ExecutionMetrics(MessageSinkMessage):
    """Totals reported when a scope finishes running."""

    tests_total: int = 0
    tests_failed: int = 0
    tests_skipped: int = 0
    execution_time: float = 0.0


@dataclass(frozen=True)
class ExecutionSummaryEntry:
    """Per-assembly totals inside a :class:`TestExecutionSummary`."""

    assembly_name: str
    total: int = 0
    failed: int = 0
    skipped: int = 0
    errors: int = 0
    time: float = 0.0


# ---------------------------------------------------------------------------
# Runner-level variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class TestAssemblyDiscoveryFinished(TestAssemblyMessage):
    test_cases_discovered: int = 0
    test_cases_to_run: int = 0


@dataclass(frozen=True, kw_only=True)
class TestAssemblyDiscoveryStarting(TestAssemblyMessage):
    parallel: bool = False


@dataclass(frozen=True, kw_only=True)
class TestAssemblyExecutionFinished(TestAssemblyMessage, ExecutionMetrics):
    pass


@dataclass(frozen=True, kw_only=True)
class TestAssemblyExecutionStarting(TestAssemblyMessage):
    max_parallel_threads: int = 0


@dataclass(frozen=True, kw_only=True)
class TestExecutionSummary(MessageSinkMessage):
    elapsed_clock_time: float = 0.0
    summaries: tuple[ExecutionSummaryEntry, ...] = ()


# ---------------------------------------------------------------------------
# Framework variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class AfterTestFinished(TestMessage):
    annotation_name: str = ""


@dataclass(frozen=True, kw_only=True)
class AfterTestStarting(TestMessage):
    annotation_name: str = ""


@dataclass(frozen=True, kw_only=True)
class BeforeTestFinished(TestMessage):
    annotation_name: str = ""


@dataclass(frozen=True, kw_only=True)
class BeforeTestStarting(TestMessage):
    annotation_name: str = ""


@dataclass(frozen=True, kw_only=True)
class DiagnosticMessage(MessageSinkMessage):
    message: str = ""


@dataclass(frozen=True, kw_only=True)
class DiscoveryCompleteMessage(MessageSinkMessage):
    pass


@dataclass(frozen=True, kw_only=True)
class ErrorMessage(FailureInformation):
    pass


@dataclass(frozen=True, kw_only=True)
class TestAssemblyCleanupFailure(TestAssemblyMessage, FailureInformation):
    pass


@dataclass(frozen=True, kw_only=True)
class TestAssemblyFinished(TestAssemblyMessage, ExecutionMetrics):
    pass


@dataclass(frozen=True, kw_only=True)
class TestAssemblyStarting(TestAssemblyMessage):
    test_environment: str = ""
    test_framework_display_name: str = ""


@dataclass(frozen=True, kw_only=True)
class TestCaseCleanupFailure(TestCaseMessage, FailureInformation):
    pass


@dataclass(frozen=True, kw_only=True)
class TestCaseDiscoveryMessage(TestCaseMessage):
    pass


@dataclass(frozen=True, kw_only=True)
class TestCaseFinished(TestCaseMessage, ExecutionMetrics):
    pass


@dataclass(frozen=True, kw_only=True)
class TestOutput(TestMessage):
    output: str = ""


@dataclass(frozen=True, kw_only=True)
class TestCaseStarting(TestCaseMessage):
    pass


@dataclass(frozen=True, kw_only=True)
class TestClassCleanupFailure(TestClassMessage, FailureInformation):
    pass


@dataclass(frozen=True, kw_only=True)
class TestClassConstructionFinished(TestMessage):
    pass


@dataclass(frozen=True, kw_only=True)
class TestClassConstructionStarting(TestMessage):
    pass


@dataclass(frozen=True, kw_only=True)
class TestClassDisposeFinished(TestMessage):
    pass


@dataclass(frozen=True, kw_only=True)
class TestClassDisposeStarting(TestMessage):
    pass


@dataclass(frozen=True, kw_only=True)
class TestClassFinished(TestClassMessage, ExecutionMetrics):
    pass


@dataclass(frozen=True, kw_only=True)
class TestClassStarting(TestClassMessage):
    pass


@dataclass(frozen=True, kw_only=True)
class TestCleanupFailure(TestMessage, FailureInformation):
    pass


@dataclass(frozen=True, kw_only=True)
class TestCollectionCleanupFailure(TestCollectionMessage, FailureInformation):
    pass


@dataclass(frozen=True, kw_only=True)
class TestCollectionFinished(TestCollectionMessage, ExecutionMetrics):
    pass


@dataclass(frozen=True, kw_only=True)
class TestCollectionStarting(TestCollectionMessage):
    pass


@dataclass(frozen=True, kw_only=True)
class TestFailed(TestResultMessage, FailureInformation):
    pass


@dataclass(frozen=True, kw_only=True)
class TestFinished(TestResultMessage):
    pass


@dataclass(frozen=True, kw_only=True)
class TestMethodCleanupFailure(TestMethodMessage, FailureInformation):
    pass


@dataclass(frozen=True, kw_only=True)
class TestMethodFinished(TestMethodMessage, ExecutionMetrics):
    pass


@dataclass(frozen=True, kw_only=True)
class TestMethodStarting(TestMethodMessage):
    pass


@dataclass(frozen=True, kw_only=True)
class TestPassed(TestResultMessage):
    pass


@dataclass(frozen=True, kw_only=True)
class TestSkipped(TestResultMessage):
    reason: str = ""


@dataclass(frozen=True, kw_only=True)
class TestStarting(TestMessage):
    pass


RUNNER_VARIANTS: tuple[type[MessageSinkMessage], ...] = (
    TestAssemblyDiscoveryFinished,
    TestAssemblyDiscoveryStarting,
    TestAssemblyExecutionFinished,
    TestAssemblyExecutionStarting,
    TestExecutionSummary,
)

FRAMEWORK_VARIANTS: tuple[type[MessageSinkMessage], ...] = (
    AfterTestFinished,
    AfterTestStarting,
    BeforeTestFinished,
    BeforeTestStarting,
    DiagnosticMessage,
    DiscoveryCompleteMessage,
    ErrorMessage,
    TestAssemblyCleanupFailure,
    TestAssemblyFinished,
    TestAssemblyStarting,
    TestCaseCleanupFailure,
    TestCaseDiscoveryMessage,
    TestCaseFinished,
    TestOutput,
    TestCaseStarting,
    TestClassCleanupFailure,
    TestClassConstructionFinished,
    TestClassConstructionStarting,
    TestClassDisposeFinished,
    TestClassDisposeStarting,
    TestClassFinished,
    TestClassStarting,
    TestCleanupFailure,
    TestCollectionCleanupFailure,
    TestCollectionFinished,
    TestCollectionStarting,
    TestFailed,
    TestFinished,
    TestMethodCleanupFailure,
    TestMethodFinished,
    TestMethodStarting,
    TestPassed,
    TestSkipped,
    TestStarting,
)

ALL_VARIANTS: tuple[type[MessageSinkMessage], ...] = RUNNER_VARIANTS + FRAMEWORK_VARIANTS
