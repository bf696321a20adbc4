"""Unit tests for testmeta.messages.visitor: TestMessageVisitor and CompletionVisitor."""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

import pytest

from testmeta.messages import variants
from testmeta.messages.dispatch import DEFAULT_HANDLERS, HandlerRegistry, handler_name
from testmeta.messages.variants import ALL_VARIANTS, MessageSinkMessage
from testmeta.messages.visitor import CompletionVisitor, TestMessageVisitor


class FailureCounter(TestMessageVisitor):
    def __init__(self) -> None:
        self.failures: list[str] = []

    def visit_test_failed(self, message: variants.TestFailed) -> bool:
        self.failures.append(message.display_name)
        return len(self.failures) < 2


@dataclass(frozen=True, kw_only=True)
class CustomProgress(MessageSinkMessage):
    percent: int = 0


# ===========================================================================
# TestMessageVisitor
# ===========================================================================


class TestDefaultHandlers:
    def test_has_a_handler_for_every_variant(self) -> None:
        for variant in ALL_VARIANTS:
            assert callable(getattr(TestMessageVisitor, handler_name(variant)))

    @pytest.mark.parametrize("variant", ALL_VARIANTS, ids=lambda v: v.__name__)
    def test_every_variant_continues_by_default(self, variant: type[MessageSinkMessage]) -> None:
        assert TestMessageVisitor().on_message(variant()) is True

    def test_unknown_message_continues(self) -> None:
        assert TestMessageVisitor().on_message(CustomProgress(percent=10)) is True

    def test_uses_default_registry(self) -> None:
        assert TestMessageVisitor.handlers is DEFAULT_HANDLERS

    def test_is_not_collected_by_pytest(self) -> None:
        assert TestMessageVisitor.__test__ is False


class TestOverriddenHandlers:
    def test_override_receives_message(self) -> None:
        visitor = FailureCounter()
        visitor.on_message(variants.TestFailed(display_name="test_a"))
        assert visitor.failures == ["test_a"]

    def test_override_can_ask_to_stop(self) -> None:
        visitor = FailureCounter()
        assert visitor.on_message(variants.TestFailed(display_name="a")) is True
        assert visitor.on_message(variants.TestFailed(display_name="b")) is False

    def test_other_variants_still_use_defaults(self) -> None:
        visitor = FailureCounter()
        assert visitor.on_message(variants.TestPassed(display_name="a")) is True
        assert visitor.failures == []


class TestExtendedRegistry:
    def test_subclass_with_extra_slot(self) -> None:
        class ProgressVisitor(TestMessageVisitor):
            handlers: ClassVar[HandlerRegistry] = DEFAULT_HANDLERS.extend(CustomProgress)

            def __init__(self) -> None:
                self.seen: list[int] = []

            def visit_custom_progress(self, message: CustomProgress) -> bool:
                self.seen.append(message.percent)
                return True

        visitor = ProgressVisitor()
        visitor.on_message(CustomProgress(percent=50))
        assert visitor.seen == [50]

    def test_missing_handler_method_fails_at_class_creation(self) -> None:
        with pytest.raises(TypeError, match="visit_custom_progress"):

            class Incomplete(TestMessageVisitor):
                handlers: ClassVar[HandlerRegistry] = DEFAULT_HANDLERS.extend(CustomProgress)


class TestVisitIf:
    def test_calls_callback_for_matching_type(self) -> None:
        seen: list[str] = []

        def callback(message: variants.TestSkipped) -> bool:
            seen.append(message.reason)
            return False

        result = TestMessageVisitor.visit_if(variants.TestSkipped(reason="flaky"), variants.TestSkipped, callback)
        assert result is False
        assert seen == ["flaky"]

    def test_other_types_continue(self) -> None:
        def callback(message: variants.TestSkipped) -> bool:
            raise AssertionError("must not be called")

        assert TestMessageVisitor.visit_if(variants.TestPassed(), variants.TestSkipped, callback) is True


# ===========================================================================
# CompletionVisitor
# ===========================================================================


class TestCompletionVisitor:
    def test_not_finished_initially(self) -> None:
        visitor = CompletionVisitor(variants.TestAssemblyFinished)
        assert not visitor.finished.is_signaled
        assert visitor.completion_type is variants.TestAssemblyFinished

    def test_completion_message_signals(
        self, assembly_finished: variants.TestAssemblyFinished
    ) -> None:
        visitor = CompletionVisitor(variants.TestAssemblyFinished)
        assert visitor.on_message(assembly_finished) is True
        assert visitor.wait(timeout=0) is True

    def test_other_messages_do_not_signal(self, passed_message: variants.TestPassed) -> None:
        visitor = CompletionVisitor(variants.TestAssemblyFinished)
        visitor.on_message(passed_message)
        assert visitor.wait(timeout=0.01) is False

    def test_subtype_of_completion_type_signals(self) -> None:
        visitor = CompletionVisitor(variants.TestAssemblyMessage)
        visitor.on_message(variants.TestAssemblyStarting())
        assert visitor.finished.is_signaled

    def test_handlers_run_before_signal(self) -> None:
        observed: list[bool] = []

        class Watching(CompletionVisitor[variants.TestAssemblyFinished]):
            def visit_test_assembly_finished(self, message: variants.TestAssemblyFinished) -> bool:
                observed.append(self.finished.is_signaled)
                return False

        visitor = Watching(variants.TestAssemblyFinished)
        assert visitor.on_message(variants.TestAssemblyFinished()) is False
        assert observed == [False]
        assert visitor.finished.is_signaled

    def test_raising_handler_leaves_gate_armed(self) -> None:
        class Raising(CompletionVisitor[variants.TestAssemblyFinished]):
            def visit_test_assembly_finished(self, message: variants.TestAssemblyFinished) -> bool:
                raise RuntimeError("reporter crashed")

        visitor = Raising(variants.TestAssemblyFinished)
        with pytest.raises(RuntimeError):
            visitor.on_message(variants.TestAssemblyFinished())
        assert not visitor.finished.is_signaled

    def test_wait_from_handler_raises(self) -> None:
        errors: list[RuntimeError] = []

        class Impatient(CompletionVisitor[variants.TestAssemblyFinished]):
            def visit_test_passed(self, message: variants.TestPassed) -> bool:
                try:
                    self.wait(timeout=0)
                except RuntimeError as exc:
                    errors.append(exc)
                return True

        visitor = Impatient(variants.TestAssemblyFinished)
        visitor.on_message(variants.TestPassed())
        assert len(errors) == 1
        assert "while dispatching" in str(errors[0])
        # The guard is released once dispatch returns.
        assert visitor.wait(timeout=0) is False

    def test_wait_after_close_raises(self) -> None:
        with CompletionVisitor(variants.TestAssemblyFinished) as visitor:
            pass
        with pytest.raises(RuntimeError):
            visitor.wait(timeout=0)
