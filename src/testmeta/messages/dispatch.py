"""Dispatch Table Builder & Cache.

A :class:`HandlerRegistry` is a fixed, ordered list of capability slots,
each binding one message variant to the name of a handler method.  The
first time a concrete message type is dispatched, the registry scans
every slot in declaration order and keeps each one whose variant the
type is a subclass of.  The resulting table is cached per concrete type,
so later dispatches perform no type inspection at all.

A message type that inherits from several variants gets every matching
slot, not just the first.

Registries are immutable.  :meth:`HandlerRegistry.extend` returns a new
registry with its own cache, so two visitors configured with different
slots never share tables.

Usage
-----
::

    from testmeta.messages.dispatch import DEFAULT_HANDLERS

    table = DEFAULT_HANDLERS.table_for(TestPassed)
    [binding.method_name for binding in table]
    # ['visit_test_passed']
"""
from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass

from testmeta.cache import LazyCache
from testmeta.messages.variants import ALL_VARIANTS, MessageSinkMessage

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def handler_name(variant: type) -> str:
    """Return the conventional handler method name, e.g. ``visit_test_passed``."""
    return "visit_" + _CAMEL_BOUNDARY.sub("_", variant.__name__).lower()


@dataclass(frozen=True)
class HandlerBinding:
    """One capability slot: messages of ``variant`` go to ``method_name``."""

    variant: type[MessageSinkMessage]
    method_name: str

    def bind(self, target: object) -> Callable[[MessageSinkMessage], bool]:
        """Return the handler method of ``target`` for this slot."""
        return getattr(target, self.method_name)


class HandlerRegistry:
    """Ordered capability slots plus their per-type dispatch table cache.

    Parameters
    ----------
    bindings:
        Capability slots in the order their handlers must run.
    name:
        A human-readable name for this registry (used in log messages).
    """

    def __init__(self, bindings: Iterable[HandlerBinding], name: str = "handlers") -> None:
        self._bindings: tuple[HandlerBinding, ...] = tuple(bindings)
        self._name = name
        self._tables: LazyCache[type, tuple[HandlerBinding, ...]] = LazyCache(
            f"{name} dispatch-table"
        )

    @classmethod
    def for_variants(
        cls, variants: Iterable[type[MessageSinkMessage]], name: str = "handlers"
    ) -> "HandlerRegistry":
        """Build a registry binding each variant to its conventional handler name."""
        return cls((HandlerBinding(v, handler_name(v)) for v in variants), name=name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def bindings(self) -> tuple[HandlerBinding, ...]:
        return self._bindings

    def extend(
        self,
        variant: type[MessageSinkMessage],
        method_name: str | None = None,
        name: str | None = None,
    ) -> "HandlerRegistry":
        """Return a new registry with one more slot appended.

        The new registry starts with an empty table cache.
        """
        binding = HandlerBinding(variant, method_name or handler_name(variant))
        return HandlerRegistry((*self._bindings, binding), name=name or self._name)

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def table_for(self, message_type: type) -> tuple[HandlerBinding, ...]:
        """Return the ordered slots that apply to ``message_type``.

        Built on first request and shared by every later dispatch of that
        exact type.  Concurrent first requests may each build the table,
        but all of them receive the same cached tuple.
        """
        return self._tables.get_or_compute(message_type, self._build_table)

    def _build_table(self, message_type: type) -> tuple[HandlerBinding, ...]:
        table = tuple(b for b in self._bindings if issubclass(message_type, b.variant))
        logger.debug(
            "Built dispatch table for %s in %r: %s",
            message_type.__qualname__,
            self._name,
            [b.method_name for b in table] or "no handlers",
        )
        return table

    def dispatch(self, target: object, message: MessageSinkMessage) -> bool:
        """Run every handler of ``target`` that applies to ``message``.

        Handlers run in slot order and all of them run, whatever earlier
        handlers returned.

        Returns
        -------
        bool
            The logical AND of all handler results; ``True`` when no
            handler applies.
        """
        results = [binding.bind(target)(message) for binding in self.table_for(type(message))]
        return all(results)

    def __iter__(self) -> Iterator[HandlerBinding]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        return f"HandlerRegistry(name={self._name!r}, bindings={len(self._bindings)})"


DEFAULT_HANDLERS = HandlerRegistry.for_variants(ALL_VARIANTS, name="test-messages")


def dispatch_table(message_type: type) -> tuple[HandlerBinding, ...]:
    """Return the dispatch table of ``message_type`` in ``DEFAULT_HANDLERS``."""
    return DEFAULT_HANDLERS.table_for(message_type)
