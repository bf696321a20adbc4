"""Value coercion helpers for annotation arguments.

Declared argument types are ordinary Python type expressions: plain
classes, ``Enum`` subclasses, and sequence types such as ``list[int]``,
``tuple[Color, ...]`` or ``tuple[int, str]``.  The helpers here answer
questions about those types and coerce raw values into them.
"""
from __future__ import annotations

import enum
import types
import typing
from typing import Any

_SEQUENCE_ORIGINS: tuple[type, ...] = (list, tuple)


def is_plain_class(declared: object) -> bool:
    """Return True for a class that is not a parameterised generic like ``list[int]``."""
    return isinstance(declared, type) and typing.get_origin(declared) is None


def is_enum_type(declared: object) -> bool:
    """Return True if ``declared`` is an ``Enum`` subclass."""
    return is_plain_class(declared) and issubclass(declared, enum.Enum)  # type: ignore[arg-type]


def is_sequence_type(declared: object) -> bool:
    """Return True if ``declared`` describes a list or tuple."""
    if declared in _SEQUENCE_ORIGINS:
        return True
    return typing.get_origin(declared) in _SEQUENCE_ORIGINS


def is_union_type(declared: object) -> bool:
    """Return True for ``X | Y`` and ``typing.Union`` / ``Optional`` hints."""
    return typing.get_origin(declared) in (typing.Union, types.UnionType)


def sequence_origin(declared: object) -> type:
    """Return the concrete container class (``list`` or ``tuple``) of ``declared``."""
    origin = typing.get_origin(declared)
    if origin in _SEQUENCE_ORIGINS:
        return origin
    if declared in _SEQUENCE_ORIGINS:
        return declared  # type: ignore[return-value]
    raise TypeError(f"{type_name(declared)} is not a sequence type")


def element_type(declared: object, index: int = 0) -> object:
    """Return the declared type of element ``index`` of a sequence type.

    ``list[T]`` and ``tuple[T, ...]`` yield ``T`` for every index,
    ``tuple[A, B]`` yields the positional type, and bare or unparameterised
    sequences yield ``object``.
    """
    args = typing.get_args(declared)
    if not args:
        return object
    if typing.get_origin(declared) is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return args[0]
        if index < len(args):
            return args[index]
        return object
    return args[0]


def type_name(declared: object) -> str:
    """Return a short, readable name for a declared type."""
    if isinstance(declared, type) and not typing.get_args(declared):
        return declared.__name__
    return repr(declared).replace("typing.", "")


def coerce_enum(value: Any, enum_type: type[enum.Enum]) -> enum.Enum:
    """Convert ``value`` to a member of ``enum_type``.

    Conversion tries, in order: an existing member, a member name, the
    underlying value, and a numeric string.  For ``Flag`` enums a
    comma-separated list of names is OR-ed together.

    Raises
    ------
    ValueError
        If ``value`` does not identify a member.
    """
    if isinstance(value, enum_type):
        return value

    text = str(value).strip()
    members = enum_type.__members__
    if text in members:
        return members[text]

    if issubclass(enum_type, enum.Flag) and "," in text:
        names = [part.strip() for part in text.split(",")]
        if all(name in members for name in names):
            combined = members[names[0]]
            for name in names[1:]:
                combined |= members[name]
            return combined

    try:
        return enum_type(value)
    except ValueError:
        pass

    try:
        return enum_type(int(text))
    except ValueError:
        raise ValueError(
            f"{value!r} is not a valid name or value of {enum_type.__name__}"
        ) from None


def coerce_sequence(value: Any, declared: object) -> list[Any] | tuple[Any, ...]:
    """Coerce an iterable into the container and element types of ``declared``.

    Parameters
    ----------
    value:
        Any non-string iterable.
    declared:
        A sequence type, e.g. ``list[Color]`` or ``tuple[int, ...]``.

    Returns
    -------
    list | tuple
        A new container of ``declared``'s origin with every element
        coerced to its declared element type.

    Raises
    ------
    TypeError
        If ``value`` is not iterable or an element cannot be coerced.
    ValueError
        If an enum element does not identify a member.
    """
    if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
        raise TypeError(
            f"Cannot convert {type(value).__name__} value {value!r} to {type_name(declared)}"
        )

    origin = sequence_origin(declared)
    items = list(value)
    args = typing.get_args(declared)
    if origin is tuple and args and args[-1] is not Ellipsis and len(args) != len(items):
        raise TypeError(
            f"Expected {len(args)} element(s) for {type_name(declared)}, got {len(items)}"
        )

    converted = [
        coerce_element(item, element_type(declared, index))
        for index, item in enumerate(items)
    ]
    return tuple(converted) if origin is tuple else converted


def coerce_element(value: Any, declared: object) -> Any:
    """Coerce a single sequence element to ``declared``."""
    if value is None or declared in (object, Any):
        return value
    if is_enum_type(declared):
        return coerce_enum(value, declared)  # type: ignore[arg-type]
    if is_sequence_type(declared):
        return coerce_sequence(value, declared)
    if is_union_type(declared):
        return value
    if is_plain_class(declared):
        if isinstance(value, declared):  # type: ignore[arg-type]
            return value
        if declared is float and isinstance(value, int) and not isinstance(value, bool):
            return float(value)
        raise TypeError(
            f"Cannot convert {type(value).__name__} value {value!r} to {type_name(declared)}"
        )
    return value
