"""Inherited Annotation Collector.

``annotations_of(element, annotation_type)`` walks from ``element`` up
through its ancestors (the class's ``__mro__``; functions have none) and
collects declarations of ``annotation_type`` or any of its subclasses.

Within one level, results are sorted by the declared annotation type's
name.  Levels are never merged or re-sorted: a descendant's results
always come before its ancestor's.  Whether the walk continues past a
level is decided by the annotation type's usage policy:

- ``inherited=False`` stops after the element itself;
- ``allow_multiple=False`` stops at the first level with a declaration
  ("nearest wins");
- ``allow_multiple=True`` accumulates across the whole hierarchy.

Results are :class:`AnnotationInfo` wrappers that materialize their
annotation on first access, so one broken declaration never prevents
reading its siblings.
"""
from __future__ import annotations

import threading
from typing import Any, TypeVar

from testmeta.annotations.descriptors import Annotation, AnnotationDescriptor
from testmeta.annotations.instantiator import (
    annotated_field_names,
    constructor_arguments,
    is_settable_member,
    materialize,
)
from testmeta.annotations.resolution import resolve_annotation_type
from testmeta.annotations.store import declared_annotations
from testmeta.annotations.usage import resolve_usage
from testmeta.errors import MemberNotFoundError

T = TypeVar("T")


class AnnotationInfo:
    """One declared annotation, materialized lazily.

    Parameters
    ----------
    descriptor:
        The raw declaration.
    declaring_element:
        The class or function that carries the declaration.
    """

    def __init__(self, descriptor: AnnotationDescriptor, declaring_element: object) -> None:
        self._descriptor = descriptor
        self._declaring_element = declaring_element
        self._annotation: Annotation | None = None
        self._lock = threading.Lock()

    @property
    def descriptor(self) -> AnnotationDescriptor:
        return self._descriptor

    @property
    def declaring_element(self) -> object:
        return self._declaring_element

    @property
    def annotation_type(self) -> type[Annotation]:
        """The declared annotation type."""
        return self._descriptor.annotation_type

    @property
    def annotation(self) -> Annotation:
        """The materialized annotation, constructed on first access.

        Raises
        ------
        InstantiationError
            If the declaration cannot be materialized.  Nothing is cached,
            so every access reports the failure again.
        """
        instance = self._annotation
        if instance is None:
            with self._lock:
                if self._annotation is None:
                    self._annotation = materialize(self._descriptor)
                instance = self._annotation
        return instance

    def constructor_arguments(self) -> list[Any]:
        """Return the converted constructor arguments, in declaration order."""
        return constructor_arguments(self._descriptor)

    def get_named_argument(self, name: str, expected_type: type[T] | None = None) -> T:
        """Return the value of member ``name`` on the materialized annotation.

        Raises
        ------
        MemberNotFoundError
            If ``name`` is not a settable member of the annotation's type.
        TypeError
            If ``expected_type`` is given and the value is not an instance of it.
        """
        return named_member(self.annotation, name, expected_type)

    def get_annotations(self, annotation_type: str | type[Annotation]) -> list["AnnotationInfo"]:
        """Return the annotations declared on this annotation's own type.

        Parameters
        ----------
        annotation_type:
            An annotation type, a qualified name, or a registered alias.
        """
        if isinstance(annotation_type, str):
            annotation_type = resolve_annotation_type(annotation_type)
        return annotations_of(type(self.annotation), annotation_type)

    def __str__(self) -> str:
        return str(self.annotation)

    def __repr__(self) -> str:
        owner = getattr(self._declaring_element, "__qualname__", self._declaring_element)
        return f"AnnotationInfo({self._descriptor} on {owner})"


def ancestry(element: object) -> tuple[object, ...]:
    """Return ``element`` followed by its ancestors, nearest first."""
    if isinstance(element, type):
        return element.__mro__
    return (element,)


def annotations_of(element: object, annotation_type: type[Annotation]) -> list[AnnotationInfo]:
    """Collect the annotations of ``annotation_type`` that apply to ``element``.

    Parameters
    ----------
    element:
        A class or function.
    annotation_type:
        The annotation type to collect; subclasses match too.

    Returns
    -------
    list[AnnotationInfo]
        Results for ``element`` first, then each contributing ancestor in
        order.  Each level is sorted by declared annotation type name.
    """
    policy = resolve_usage(annotation_type)
    results: list[AnnotationInfo] = []
    for level in ancestry(element):
        local = [
            AnnotationInfo(descriptor, level)
            for descriptor in declared_annotations(level)
            if issubclass(descriptor.annotation_type, annotation_type)
        ]
        local.sort(key=lambda info: info.descriptor.type_name)
        results.extend(local)
        if not (policy.inherited and (policy.allow_multiple or not local)):
            break
    return results


def annotations_by_name(element: object, annotation_type_name: str) -> list[AnnotationInfo]:
    """Like :func:`annotations_of`, with the annotation type given by name or alias."""
    return annotations_of(element, resolve_annotation_type(annotation_type_name))


def annotation_instances(element: object, annotation_type: type[Annotation]) -> list[Annotation]:
    """Materialize every annotation :func:`annotations_of` finds.

    Raises
    ------
    InstantiationError
        On the first declaration that cannot be materialized.
    """
    return [info.annotation for info in annotations_of(element, annotation_type)]


def named_member(instance: object, name: str, expected_type: type[T] | None = None) -> T:
    """Return member ``name`` of a materialized annotation.

    Raises
    ------
    MemberNotFoundError
        If ``name`` is not a settable member of ``type(instance)``.
    TypeError
        If ``expected_type`` is given and the value does not match it.
    """
    if not is_settable_member(type(instance), name, instance):
        raise MemberNotFoundError(name, type(instance))
    try:
        value = getattr(instance, name)
    except AttributeError:
        # Annotated fields that were never assigned read as None.
        if name not in annotated_field_names(type(instance)):
            raise
        value = None
    if expected_type is not None and value is not None and not isinstance(value, expected_type):
        raise TypeError(
            f"Member {name!r} of {type(instance).__qualname__} is "
            f"{type(value).__name__}, not {expected_type.__name__}"
        )
    return value
