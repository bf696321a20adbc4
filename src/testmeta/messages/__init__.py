"""Test-lifecycle messages and the visitors that consume them."""
from __future__ import annotations

from testmeta.messages.dispatch import (
    DEFAULT_HANDLERS,
    HandlerBinding,
    HandlerRegistry,
    dispatch_table,
    handler_name,
)
from testmeta.messages.gate import CompletionGate
from testmeta.messages.variants import (
    ALL_VARIANTS,
    FRAMEWORK_VARIANTS,
    RUNNER_VARIANTS,
    MessageSinkMessage,
)
from testmeta.messages.visitor import CompletionVisitor, TestMessageVisitor

__all__ = [
    "ALL_VARIANTS",
    "CompletionGate",
    "CompletionVisitor",
    "DEFAULT_HANDLERS",
    "FRAMEWORK_VARIANTS",
    "HandlerBinding",
    "HandlerRegistry",
    "MessageSinkMessage",
    "RUNNER_VARIANTS",
    "TestMessageVisitor",
    "dispatch_table",
    "handler_name",
]
