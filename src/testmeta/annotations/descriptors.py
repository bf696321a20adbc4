"""Annotation types and their raw, un-instantiated descriptors.

An *annotation type* is any subclass of :class:`Annotation`.  Declaring
an annotation on a class or function records an
:class:`AnnotationDescriptor`: the annotation type, the constructor
arguments, and the named arguments, each paired with its *declared*
type.  Declared types matter because the raw value may be stored in an
underlying representation, e.g. ``typed(2, Color)`` stores the integer
``2`` for an argument whose declared type is the enum ``Color``.

Descriptors are frozen; materializing them into live annotation
instances is the job of :mod:`testmeta.annotations.instantiator`.
"""
from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from testmeta.annotations.conversion import element_type, is_sequence_type, type_name

F = TypeVar("F", bound=Callable[..., Any])

CONSTRUCTOR_MARKER = "__annotation_constructor__"


class Annotation:
    """Base class for every annotation type.

    Subclasses define an ``__init__`` (and optionally extra
    :func:`constructor` classmethods) whose annotated parameter types are
    matched against the declared argument types of a descriptor.
    Public attributes and properties with setters can be assigned by
    named arguments.

    Example
    -------
    ::

        class Trait(Annotation):
            def __init__(self, name: str, value: str) -> None:
                self.name = name
                self.value = value
                self.skip: str | None = None
    """

    def __repr__(self) -> str:
        members = ", ".join(
            f"{key}={value!r}"
            for key, value in vars(self).items()
            if not key.startswith("_")
        )
        return f"{type(self).__name__}({members})"


def constructor(func: F) -> F:
    """Mark a classmethod as an alternative constructor for materialization.

    Works above or below ``@classmethod``::

        class Timeout(Annotation):
            def __init__(self, seconds: float) -> None: ...

            @constructor
            @classmethod
            def from_minutes(cls, minutes: int) -> "Timeout":
                return cls(minutes * 60.0)
    """
    target = func.__func__ if isinstance(func, classmethod) else func
    setattr(target, CONSTRUCTOR_MARKER, True)
    return func


@dataclass(frozen=True)
class TypedArgument:
    """One argument value together with its declared type.

    Parameters
    ----------
    argument_type:
        The declared type, e.g. ``int``, ``Color`` or ``list[Color]``.
    value:
        The raw value.  For arguments declared as a list or tuple type this
        is a tuple of nested ``TypedArgument`` objects, one per element.
    """

    argument_type: Any
    value: Any

    @property
    def is_nested(self) -> bool:
        """Return True if ``value`` is a tuple of typed sub-arguments."""
        return isinstance(self.value, tuple) and all(
            isinstance(item, TypedArgument) for item in self.value
        )

    def __str__(self) -> str:
        return f"{type_name(self.argument_type)}({self.value!r})"


@dataclass(frozen=True)
class NamedArgument:
    """A ``member_name = value`` assignment applied after construction."""

    member_name: str
    typed_value: TypedArgument


@dataclass(frozen=True)
class AnnotationDescriptor:
    """Immutable record of one annotation declaration.

    Parameters
    ----------
    annotation_type:
        The declared annotation type.
    constructor_arguments:
        Ordered positional arguments with their declared types.
    named_arguments:
        Ordered member assignments.
    """

    annotation_type: type[Annotation]
    constructor_arguments: tuple[TypedArgument, ...] = ()
    named_arguments: tuple[NamedArgument, ...] = ()

    @classmethod
    def create(
        cls,
        annotation_type: type[Annotation],
        args: Sequence[Any] = (),
        named: Mapping[str, Any] | None = None,
    ) -> "AnnotationDescriptor":
        """Build a descriptor, inferring declared types where none are given.

        Raises
        ------
        TypeError
            If ``annotation_type`` is not an :class:`Annotation` subclass.
        """
        if not (isinstance(annotation_type, type) and issubclass(annotation_type, Annotation)):
            raise TypeError(
                f"Cannot declare {annotation_type!r}: "
                f"it must be a subclass of {Annotation.__name__}."
            )
        return cls(
            annotation_type=annotation_type,
            constructor_arguments=tuple(typed(arg) for arg in args),
            named_arguments=tuple(
                NamedArgument(member_name=name, typed_value=typed(value))
                for name, value in (named or {}).items()
            ),
        )

    @property
    def type_name(self) -> str:
        """The declared annotation type's ``__name__``; the sort key within one level."""
        return self.annotation_type.__name__

    def __str__(self) -> str:
        parts = [str(arg) for arg in self.constructor_arguments]
        parts.extend(f"{n.member_name}={n.typed_value}" for n in self.named_arguments)
        return f"@{self.type_name}({', '.join(parts)})"


def typed(value: Any, argument_type: Any = None) -> TypedArgument:
    """Pair ``value`` with a declared type.

    When ``argument_type`` is omitted it is inferred from the value: a list
    whose elements share one type ``T`` becomes ``list[T]`` (``tuple[T, ...]``
    for tuples), mixed sequences use ``object`` elements, and ``None`` is
    declared as ``object``.  Values declared as a list or tuple type are
    expanded into nested typed arguments; any other declaration keeps the
    value, and its container, as given.
    """
    if isinstance(value, TypedArgument):
        return value
    if argument_type is None:
        argument_type = _infer_type(value)
    if isinstance(value, (list, tuple)) and is_sequence_type(argument_type):
        value = tuple(
            typed(item, _item_type(argument_type, index))
            for index, item in enumerate(value)
        )
    return TypedArgument(argument_type=argument_type, value=value)


def _item_type(declared: Any, index: int) -> Any:
    item_type = element_type(declared, index)
    # object elements keep their own runtime type
    return None if item_type is object else item_type


def _infer_type(value: Any) -> Any:
    if value is None:
        return object
    if isinstance(value, list):
        return list[_common_type(value)]  # type: ignore[misc]
    if isinstance(value, tuple):
        return tuple[_common_type(value), ...]  # type: ignore[misc]
    return type(value)


def _common_type(items: Sequence[Any]) -> Any:
    kinds = {_infer_type(item) for item in items}
    return kinds.pop() if len(kinds) == 1 else object
