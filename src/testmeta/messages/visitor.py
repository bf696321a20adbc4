"""Message visitors.

:class:`TestMessageVisitor` routes each incoming message to its
``visit_*`` handlers through a :class:`~testmeta.messages.dispatch.HandlerRegistry`.
Every handler returns ``True`` by default; override the ones you care
about and return ``False`` to ask the sender to stop.

:class:`CompletionVisitor` additionally signals a one-shot
:class:`~testmeta.messages.gate.CompletionGate` when a message of its
completion type arrives, so another thread can block until a run is over.

Usage
-----
::

    class Printer(CompletionVisitor):
        def visit_test_failed(self, message):
            print("FAIL", message.display_name)
            return True

    with Printer(TestAssemblyFinished) as printer:
        runner.run(sink=printer.on_message)
        printer.wait()
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from types import TracebackType
from typing import ClassVar, Generic, TypeVar

from testmeta.messages import variants
from testmeta.messages.dispatch import DEFAULT_HANDLERS, HandlerRegistry
from testmeta.messages.gate import CompletionGate

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=variants.MessageSinkMessage)


class TestMessageVisitor:
    """Base visitor with one overridable handler per message variant.

    Subclasses may replace :attr:`handlers` with an extended registry;
    every slot must name a method the subclass provides.
    """

    __test__ = False

    handlers: ClassVar[HandlerRegistry] = DEFAULT_HANDLERS

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        missing = [
            b.method_name for b in cls.handlers if not callable(getattr(cls, b.method_name, None))
        ]
        if missing:
            raise TypeError(
                f"{cls.__qualname__} has no handler method(s) for registry "
                f"{cls.handlers.name!r}: {', '.join(missing)}"
            )

    def on_message(self, message: variants.MessageSinkMessage) -> bool:
        """Dispatch ``message`` to every applicable handler.

        Returns
        -------
        bool
            ``False`` if any handler asked to stop, ``True`` otherwise.
        """
        return self.handlers.dispatch(self, message)

    @staticmethod
    def visit_if(
        message: variants.MessageSinkMessage,
        variant: type[M],
        callback: Callable[[M], bool],
    ) -> bool:
        """Call ``callback`` if ``message`` is a ``variant``; otherwise return ``True``."""
        if isinstance(message, variant):
            return callback(message)
        return True

    # ------------------------------------------------------------------
    # Runner-level handlers
    # ------------------------------------------------------------------

    def visit_test_assembly_discovery_finished(self, message: variants.TestAssemblyDiscoveryFinished) -> bool:
        return True

    def visit_test_assembly_discovery_starting(self, message: variants.TestAssemblyDiscoveryStarting) -> bool:
        return True

    def visit_test_assembly_execution_finished(self, message: variants.TestAssemblyExecutionFinished) -> bool:
        return True

    def visit_test_assembly_execution_starting(self, message: variants.TestAssemblyExecutionStarting) -> bool:
        return True

    def visit_test_execution_summary(self, message: variants.TestExecutionSummary) -> bool:
        return True

    # ------------------------------------------------------------------
    # Framework handlers
    # ------------------------------------------------------------------

    def visit_after_test_finished(self, message: variants.AfterTestFinished) -> bool:
        return True

    def visit_after_test_starting(self, message: variants.AfterTestStarting) -> bool:
        return True

    def visit_before_test_finished(self, message: variants.BeforeTestFinished) -> bool:
        return True

    def visit_before_test_starting(self, message: variants.BeforeTestStarting) -> bool:
        return True

    def visit_diagnostic_message(self, message: variants.DiagnosticMessage) -> bool:
        return True

    def visit_discovery_complete_message(self, message: variants.DiscoveryCompleteMessage) -> bool:
        return True

    def visit_error_message(self, message: variants.ErrorMessage) -> bool:
        return True

    def visit_test_assembly_cleanup_failure(self, message: variants.TestAssemblyCleanupFailure) -> bool:
        return True

    def visit_test_assembly_finished(self, message: variants.TestAssemblyFinished) -> bool:
        return True

    def visit_test_assembly_starting(self, message: variants.TestAssemblyStarting) -> bool:
        return True

    def visit_test_case_cleanup_failure(self, message: variants.TestCaseCleanupFailure) -> bool:
        return True

    def visit_test_case_discovery_message(self, message: variants.TestCaseDiscoveryMessage) -> bool:
        return True

    def visit_test_case_finished(self, message: variants.TestCaseFinished) -> bool:
        return True

    def visit_test_output(self, message: variants.TestOutput) -> bool:
        return True

    def visit_test_case_starting(self, message: variants.TestCaseStarting) -> bool:
        return True

    def visit_test_class_cleanup_failure(self, message: variants.TestClassCleanupFailure) -> bool:
        return True

    def visit_test_class_construction_finished(self, message: variants.TestClassConstructionFinished) -> bool:
        return True

    def visit_test_class_construction_starting(self, message: variants.TestClassConstructionStarting) -> bool:
        return True

    def visit_test_class_dispose_finished(self, message: variants.TestClassDisposeFinished) -> bool:
        return True

    def visit_test_class_dispose_starting(self, message: variants.TestClassDisposeStarting) -> bool:
        return True

    def visit_test_class_finished(self, message: variants.TestClassFinished) -> bool:
        return True

    def visit_test_class_starting(self, message: variants.TestClassStarting) -> bool:
        return True

    def visit_test_cleanup_failure(self, message: variants.TestCleanupFailure) -> bool:
        return True

    def visit_test_collection_cleanup_failure(self, message: variants.TestCollectionCleanupFailure) -> bool:
        return True

    def visit_test_collection_finished(self, message: variants.TestCollectionFinished) -> bool:
        return True

    def visit_test_collection_starting(self, message: variants.TestCollectionStarting) -> bool:
        return True

    def visit_test_failed(self, message: variants.TestFailed) -> bool:
        return True

    def visit_test_finished(self, message: variants.TestFinished) -> bool:
        return True

    def visit_test_method_cleanup_failure(self, message: variants.TestMethodCleanupFailure) -> bool:
        return True

    def visit_test_method_finished(self, message: variants.TestMethodFinished) -> bool:
        return True

    def visit_test_method_starting(self, message: variants.TestMethodStarting) -> bool:
        return True

    def visit_test_passed(self, message: variants.TestPassed) -> bool:
        return True

    def visit_test_skipped(self, message: variants.TestSkipped) -> bool:
        return True

    def visit_test_starting(self, message: variants.TestStarting) -> bool:
        return True


class CompletionVisitor(TestMessageVisitor, Generic[M]):
    """A visitor that signals when a message of ``completion_type`` arrives.

    Parameters
    ----------
    completion_type:
        The variant (or any base of it) that marks the end of the run,
        typically :class:`~testmeta.messages.variants.TestAssemblyFinished`.
    """

    def __init__(self, completion_type: type[M]) -> None:
        self._completion_type = completion_type
        self._gate = CompletionGate(completion_type.__name__)
        self._local = threading.local()

    @property
    def completion_type(self) -> type[M]:
        return self._completion_type

    @property
    def finished(self) -> CompletionGate:
        """The gate signaled when the completion message has been handled."""
        return self._gate

    def on_message(self, message: variants.MessageSinkMessage) -> bool:
        """Dispatch ``message``, then signal completion if it matches.

        The gate is signaled only after every handler has run; a handler
        that raises leaves the gate armed.
        """
        self._local.depth = getattr(self._local, "depth", 0) + 1
        try:
            result = super().on_message(message)
        finally:
            self._local.depth -= 1
        if isinstance(message, self._completion_type) and self._gate.signal():
            logger.debug(
                "%s received completion message %s",
                type(self).__qualname__,
                type(message).__qualname__,
            )
        return result

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the completion message has been handled.

        Returns
        -------
        bool
            ``True`` if completion was signaled before ``timeout`` seconds.

        Raises
        ------
        RuntimeError
            If called from a handler of this visitor, or after :meth:`close`.
        """
        if getattr(self._local, "depth", 0):
            raise RuntimeError(
                f"{type(self).__qualname__}.wait() called while dispatching on the same thread; "
                "it would never be signaled"
            )
        return self._gate.wait(timeout)

    def close(self) -> None:
        self._gate.close()

    def __enter__(self) -> "CompletionVisitor[M]":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
