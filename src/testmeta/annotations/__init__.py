"""Annotation metadata adapter.

Declare annotations on classes and functions, then read them back as
live, typed instances with inheritance-aware merging.

Example
-------
::

    from testmeta.annotations import Annotation, annotate, annotation_usage, annotations_of

    @annotation_usage(allow_multiple=True)
    class Trait(Annotation):
        def __init__(self, name: str, value: str) -> None:
            self.name = name
            self.value = value

    @annotate(Trait, "Category", "Smoke")
    class BaseTests: ...

    @annotate(Trait, "Owner", "payments")
    class CheckoutTests(BaseTests): ...

    [str(info) for info in annotations_of(CheckoutTests, Trait)]
    # ["Trait(name='Owner', value='payments')", "Trait(name='Category', value='Smoke')"]
"""
from __future__ import annotations

from testmeta.annotations.collector import (
    AnnotationInfo,
    ancestry,
    annotation_instances,
    annotations_by_name,
    annotations_of,
    named_member,
)
from testmeta.annotations.descriptors import (
    Annotation,
    AnnotationDescriptor,
    NamedArgument,
    TypedArgument,
    constructor,
    typed,
)
from testmeta.annotations.instantiator import materialize
from testmeta.annotations.registry import ANNOTATION_TYPES, AnnotationTypeRegistry
from testmeta.annotations.resolution import resolve_annotation_type, resolve_type
from testmeta.annotations.serializer import AnnotationSerializer
from testmeta.annotations.store import annotate, declare, declared_annotations
from testmeta.annotations.usage import (
    DEFAULT_USAGE_POLICY,
    AnnotationUsage,
    UsagePolicy,
    annotation_usage,
    resolve_usage,
)

__all__ = [
    "Annotation",
    "AnnotationDescriptor",
    "AnnotationInfo",
    "AnnotationSerializer",
    "AnnotationTypeRegistry",
    "AnnotationUsage",
    "ANNOTATION_TYPES",
    "DEFAULT_USAGE_POLICY",
    "NamedArgument",
    "TypedArgument",
    "UsagePolicy",
    "ancestry",
    "annotate",
    "annotation_instances",
    "annotation_usage",
    "annotations_by_name",
    "annotations_of",
    "constructor",
    "declare",
    "declared_annotations",
    "materialize",
    "named_member",
    "resolve_annotation_type",
    "resolve_type",
    "resolve_usage",
    "typed",
]
