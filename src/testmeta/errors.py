"""Error types for the annotation adapter.

Every error carries enough context (annotation type, argument position,
member name) for a test author to locate the offending declaration.
Each class also subclasses the built-in exception it specialises so that
callers can catch either.
"""
from __future__ import annotations


def _qualified_name(obj: object) -> str:
    module = getattr(obj, "__module__", None)
    qualname = getattr(obj, "__qualname__", None) or repr(obj)
    return f"{module}.{qualname}" if module else qualname


class InstantiationError(TypeError):
    """Raised when an annotation cannot be materialized from its descriptor.

    Parameters
    ----------
    annotation_type:
        The annotation type that failed to materialize.
    reason:
        Human-readable description of what went wrong.
    argument_index:
        0-based position of the offending constructor argument, if any.
    member_name:
        Name of the offending named argument, if any.
    """

    def __init__(
        self,
        annotation_type: type,
        reason: str,
        argument_index: int | None = None,
        member_name: str | None = None,
    ) -> None:
        self.annotation_type = annotation_type
        self.reason = reason
        self.argument_index = argument_index
        self.member_name = member_name

        location = ""
        if argument_index is not None:
            location = f" (constructor argument {argument_index})"
        elif member_name is not None:
            location = f" (named argument {member_name!r})"
        super().__init__(
            f"Cannot instantiate annotation {_qualified_name(annotation_type)}"
            f"{location}: {reason}"
        )


class MemberNotFoundError(LookupError):
    """Raised when a named member is absent on a materialized annotation."""

    def __init__(self, member_name: str, instance_type: type) -> None:
        self.member_name = member_name
        self.type_name = _qualified_name(instance_type)
        super().__init__(
            f"Could not find member {member_name!r} on instance of {self.type_name}"
        )


class AnnotationUsageError(ValueError):
    """Raised when a single-use annotation type is declared twice on one element."""

    def __init__(self, annotation_type: type, element: object) -> None:
        self.annotation_type = annotation_type
        self.element_name = _qualified_name(element)
        super().__init__(
            f"Annotation {_qualified_name(annotation_type)} is already declared on "
            f"{self.element_name} and its usage policy does not allow multiple "
            "declarations. Declare it once, or mark the annotation type with "
            "annotation_usage(allow_multiple=True)."
        )


class TypeResolutionError(LookupError):
    """Raised when a qualified type name cannot be resolved to a type."""

    def __init__(self, qualified_name: str, reason: str) -> None:
        self.qualified_name = qualified_name
        self.reason = reason
        super().__init__(f"Cannot resolve type {qualified_name!r}: {reason}")


__all__ = [
    "InstantiationError",
    "MemberNotFoundError",
    "AnnotationUsageError",
    "TypeResolutionError",
]
