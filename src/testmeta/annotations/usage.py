"""Usage Policy Resolver: inheritance and multiplicity rules per annotation type.

An annotation type declares its policy by carrying an
:class:`AnnotationUsage` annotation::

    @annotation_usage(inherited=True, allow_multiple=True)
    class Trait(Annotation):
        ...

Policies are looked up on the annotation type and then on its bases,
nearest first, so a subclass of ``Trait`` shares ``Trait``'s policy
unless it declares its own.  Types without a declaration get
``DEFAULT_USAGE_POLICY``.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar, cast

from testmeta.annotations.descriptors import Annotation, AnnotationDescriptor
from testmeta.annotations.instantiator import materialize
from testmeta.annotations.store import annotate, declared_annotations
from testmeta.cache import LazyCache

A = TypeVar("A", bound=type[Annotation])


@dataclass(frozen=True)
class UsagePolicy:
    """Inheritance and multiplicity rules for one annotation type.

    Parameters
    ----------
    inherited:
        Whether declarations on an ancestor apply to its descendants.
    allow_multiple:
        Whether several declarations may coexist on one element, and
        whether inherited declarations accumulate across levels.
    """

    inherited: bool = True
    allow_multiple: bool = False


DEFAULT_USAGE_POLICY = UsagePolicy(inherited=True, allow_multiple=False)


class AnnotationUsage(Annotation):
    """Annotation declaring the :class:`UsagePolicy` of an annotation type."""

    def __init__(self, inherited: bool = True, allow_multiple: bool = False) -> None:
        self.inherited = inherited
        self.allow_multiple = allow_multiple

    def to_policy(self) -> UsagePolicy:
        return UsagePolicy(inherited=self.inherited, allow_multiple=self.allow_multiple)


def annotation_usage(
    inherited: bool = True, allow_multiple: bool = False
) -> Callable[[A], A]:
    """Class decorator declaring the usage policy of an annotation type."""
    return annotate(AnnotationUsage, inherited=inherited, allow_multiple=allow_multiple)


_POLICIES: LazyCache[type, UsagePolicy] = LazyCache("usage-policy")


def resolve_usage(annotation_type: type[Annotation]) -> UsagePolicy:
    """Return the usage policy of ``annotation_type``, computing it on first use."""
    return _POLICIES.get_or_compute(annotation_type, _read_policy)


def _read_policy(annotation_type: type) -> UsagePolicy:
    for klass in annotation_type.__mro__:
        descriptor = _find_usage(declared_annotations(klass))
        if descriptor is not None:
            # materialize only returns instances of the declared AnnotationUsage subtype.
            usage = cast(AnnotationUsage, materialize(descriptor))
            return usage.to_policy()
    return DEFAULT_USAGE_POLICY


def _find_usage(
    descriptors: tuple[AnnotationDescriptor, ...],
) -> AnnotationDescriptor | None:
    for descriptor in descriptors:
        if issubclass(descriptor.annotation_type, AnnotationUsage):
            return descriptor
    return None
