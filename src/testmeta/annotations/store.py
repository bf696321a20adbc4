"""Annotation Metadata Store: declarations attached directly to an element.

Declarations live in the element's own ``__dict__`` under
``DECLARATIONS_ATTRIBUTE`` so that a subclass never sees its ancestors'
declarations through attribute inheritance.  Walking ancestors is the
collector's job.

Usage
-----
::

    from testmeta.annotations import Annotation, annotate, declared_annotations

    class Category(Annotation):
        def __init__(self, name: str) -> None:
            self.name = name

    @annotate(Category, "smoke")
    class LoginTests:
        ...

    declared_annotations(LoginTests)
    # (AnnotationDescriptor(annotation_type=Category, ...),)
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import Any, TypeVar

from testmeta.annotations.descriptors import Annotation, AnnotationDescriptor
from testmeta.cache import LazyCache
from testmeta.errors import AnnotationUsageError

logger = logging.getLogger(__name__)

E = TypeVar("E")

DECLARATIONS_ATTRIBUTE = "__testmeta_annotations__"

_DECLARED: LazyCache[Any, tuple[AnnotationDescriptor, ...]] = LazyCache(
    "declared-annotations"
)


def iter_declarations(element: object) -> Iterator[AnnotationDescriptor]:
    """Yield the descriptors declared directly on ``element``, uncached."""
    own = getattr(element, "__dict__", None)
    if not own:
        return
    yield from own.get(DECLARATIONS_ATTRIBUTE, ())


def declared_annotations(element: object) -> tuple[AnnotationDescriptor, ...]:
    """Return the descriptors declared directly on ``element``.

    The result is computed once per element and shared by every later
    call.  Ancestor declarations are never included.

    Parameters
    ----------
    element:
        A class or function.

    Returns
    -------
    tuple[AnnotationDescriptor, ...]
        Descriptors in source order (top-most decorator first).
    """
    return _DECLARED.get_or_compute(element, _read_declarations)


def _read_declarations(element: object) -> tuple[AnnotationDescriptor, ...]:
    return tuple(iter_declarations(element))


def declare(
    element: E,
    descriptor: AnnotationDescriptor,
    *,
    prepend: bool = False,
) -> E:
    """Attach ``descriptor`` to ``element`` and return ``element``.

    Parameters
    ----------
    element:
        The class or function receiving the declaration.
    descriptor:
        The declaration to record.
    prepend:
        Insert before existing declarations instead of after them.
        Decorators apply bottom-up, so :func:`annotate` prepends to keep
        source order.

    Raises
    ------
    AnnotationUsageError
        If ``element`` already declares an annotation of the same type and
        that type does not allow multiple declarations.
    """
    from testmeta.annotations.usage import resolve_usage

    existing = tuple(iter_declarations(element))
    if not resolve_usage(descriptor.annotation_type).allow_multiple and any(
        d.annotation_type is descriptor.annotation_type for d in existing
    ):
        raise AnnotationUsageError(descriptor.annotation_type, element)

    if element in _DECLARED:
        logger.warning(
            "Annotation %s declared on %r after its declarations were cached; "
            "cached lookups will not include it.",
            descriptor,
            element,
        )

    updated = (descriptor, *existing) if prepend else (*existing, descriptor)
    setattr(element, DECLARATIONS_ATTRIBUTE, updated)
    logger.debug("Declared %s on %r", descriptor, element)
    return element


def annotate(
    annotation_type: type[Annotation], /, *args: Any, **named: Any
) -> Callable[[E], E]:
    """Return a decorator that declares an annotation on a class or function.

    Positional arguments become constructor arguments and keyword
    arguments become named (member) assignments.  Use :func:`typed` to
    declare an argument type different from the value's runtime type.

    Raises
    ------
    TypeError
        If ``annotation_type`` is not an :class:`Annotation` subclass.

    Example
    -------
    ::

        @annotate(Trait, "Category", "Integration", skip="flaky on CI")
        def test_checkout() -> None:
            ...
    """
    descriptor = AnnotationDescriptor.create(annotation_type, args, named)

    def decorator(element: E) -> E:
        return declare(element, descriptor, prepend=True)

    return decorator
