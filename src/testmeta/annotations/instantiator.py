"""Annotation Instantiator: descriptor -> live annotation instance.

Materialization runs in three steps:

1. Convert every constructor argument from its raw stored form into a
   value of its declared type (nested typed sequences are flattened,
   enum values are looked up by name or value, sequences are coerced to
   their declared container and element types).
2. Pick the constructor whose parameter hints match the *declared*
   argument types.  Matching on declared types rather than the converted
   values keeps overload selection stable when an enum is stored as its
   underlying value.
3. Assign each named argument to a settable member of the new instance.

Every failure is reported as :class:`~testmeta.errors.InstantiationError`
naming the annotation type and the offending argument or member.
"""
from __future__ import annotations

import collections.abc
import inspect
import logging
import re
import typing
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from testmeta.annotations.conversion import (
    coerce_enum,
    coerce_sequence,
    element_type,
    is_enum_type,
    is_plain_class,
    is_sequence_type,
    is_union_type,
    sequence_origin,
    type_name,
)
from testmeta.annotations.descriptors import (
    CONSTRUCTOR_MARKER,
    Annotation,
    AnnotationDescriptor,
    TypedArgument,
)
from testmeta.errors import InstantiationError

logger = logging.getLogger(__name__)

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)

# Match scores for one parameter against one declared argument type.
_WILDCARD = 0
_ASSIGNABLE = 1
_EXACT = 2


# ---------------------------------------------------------------------------
# Argument conversion
# ---------------------------------------------------------------------------


def convert_argument(argument: TypedArgument) -> Any:
    """Convert one typed argument into a value of its declared type."""
    value = argument.value
    declared = argument.argument_type

    if argument.is_nested:
        value = [convert_argument(item) for item in value]
    elif value is not None and type(value) is not declared and is_enum_type(declared):
        value = coerce_enum(value, declared)

    if value is not None and type(value) is not declared and is_sequence_type(declared):
        value = coerce_sequence(value, declared)

    return value


def convert_arguments(arguments: Iterable[TypedArgument]) -> list[Any]:
    """Convert an ordered sequence of typed arguments.

    Raises
    ------
    TypeError, ValueError
        If a value cannot be coerced to its declared type.
    """
    return [convert_argument(argument) for argument in arguments]


def constructor_arguments(descriptor: AnnotationDescriptor) -> list[Any]:
    """Return the converted constructor arguments of ``descriptor``.

    Raises
    ------
    InstantiationError
        If an argument cannot be converted; ``argument_index`` names it.
    """
    args: list[Any] = []
    for index, argument in enumerate(descriptor.constructor_arguments):
        try:
            args.append(convert_argument(argument))
        except (TypeError, ValueError) as exc:
            raise InstantiationError(
                descriptor.annotation_type, str(exc), argument_index=index
            ) from exc
    return args


# ---------------------------------------------------------------------------
# Constructor selection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Constructor:
    name: str
    factory: Callable[..., Any]
    parameters: tuple[inspect.Parameter, ...]
    variadic: inspect.Parameter | None
    hints: dict[str, Any]

    def score(self, declared: tuple[Any, ...]) -> int | None:
        required = sum(1 for p in self.parameters if p.default is inspect.Parameter.empty)
        if len(declared) < required:
            return None
        if len(declared) > len(self.parameters) and self.variadic is None:
            return None

        total = 0
        for index, declared_type in enumerate(declared):
            parameter = (
                self.parameters[index] if index < len(self.parameters) else self.variadic
            )
            if parameter is None:
                return None
            hint = self.hints.get(parameter.name, parameter.annotation)
            score = _match(hint, declared_type)
            if score is None:
                return None
            total += score
        return total

    def signature(self) -> str:
        params = [
            type_name(self.hints.get(p.name, p.annotation))
            if p.annotation is not inspect.Parameter.empty
            else p.name
            for p in self.parameters
        ]
        return f"{self.name}({', '.join(params)})"


def _type_hints(func: Callable[..., Any], owner: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(func)
    except Exception:  # noqa: BLE001
        pass
    # Resolve hints one by one so a single unresolvable name only affects its own parameter.
    globalns = getattr(func, "__globals__", {})
    localns = dict(vars(owner))
    hints: dict[str, Any] = {}
    for name, hint in inspect.get_annotations(func).items():
        if isinstance(hint, str):
            try:
                hint = eval(hint, globalns, localns)  # noqa: S307
            except Exception:  # noqa: BLE001
                # Names local to an enclosing function stay as text; see _match_text.
                pass
        hints[name] = hint
    return hints


def _describe(
    name: str, factory: Callable[..., Any], func: Callable[..., Any], owner: type
) -> _Constructor:
    if func is object.__init__:
        return _Constructor(name, factory, (), None, {})
    params = list(inspect.signature(func).parameters.values())[1:]  # drop self / cls
    return _Constructor(
        name=name,
        factory=factory,
        parameters=tuple(p for p in params if p.kind in _POSITIONAL_KINDS),
        variadic=next(
            (p for p in params if p.kind is inspect.Parameter.VAR_POSITIONAL), None
        ),
        hints=_type_hints(func, owner),
    )


def _constructors(annotation_type: type[Annotation]) -> list[_Constructor]:
    candidates = [
        _describe("__init__", annotation_type, annotation_type.__init__, annotation_type)
    ]
    for name, attr in vars(annotation_type).items():
        if isinstance(attr, classmethod) and getattr(attr.__func__, CONSTRUCTOR_MARKER, False):
            candidates.append(
                _describe(name, getattr(annotation_type, name), attr.__func__, annotation_type)
            )
    return candidates


def _declared_elements(declared: Any) -> list[Any]:
    return [arg for arg in typing.get_args(declared) if arg is not Ellipsis] or [object]


def _is_abstract_collection(hint_origin: Any, declared: Any) -> bool:
    return (
        isinstance(hint_origin, type)
        and hint_origin.__module__ == collections.abc.__name__
        and is_sequence_type(declared)
        and issubclass(sequence_origin(declared), hint_origin)
    )


def _match(hint: Any, declared: Any) -> int | None:
    if declared is object:
        return _WILDCARD
    if hint is inspect.Parameter.empty or hint is Any or hint is object:
        return _WILDCARD
    if isinstance(hint, str):
        return _match_text(hint, declared)
    if hint == declared:
        return _EXACT
    if is_union_type(hint):
        scores = [s for s in (_match(m, declared) for m in typing.get_args(hint)) if s is not None]
        return _ASSIGNABLE if scores else None
    if is_plain_class(hint) and is_plain_class(declared) and issubclass(declared, hint):
        return _ASSIGNABLE
    if hint is float and declared is int:
        return _ASSIGNABLE
    if (
        is_sequence_type(hint)
        and is_sequence_type(declared)
        and sequence_origin(hint) is sequence_origin(declared)
    ):
        # Elements of an untyped or empty sequence are checked on coercion.
        if not typing.get_args(hint) or element_type(declared) is object:
            return _ASSIGNABLE
    if _is_abstract_collection(typing.get_origin(hint) or hint, declared):
        hint_args = typing.get_args(hint)
        if not hint_args or element_type(declared) is object or all(
            _match(hint_args[0], item) is not None for item in _declared_elements(declared)
        ):
            return _ASSIGNABLE
    return None


# ---------------------------------------------------------------------------
# Hints that could not be evaluated
# ---------------------------------------------------------------------------

_QUALIFIER = re.compile(r"\b(?:\w+\.)+(?=\w)")


def _short_name(declared: Any) -> str:
    """Spell ``declared`` the way a source hint would, e.g. ``list[Color]``."""
    if declared is Ellipsis:
        return "..."
    if declared is type(None):
        return "None"
    if is_union_type(declared):
        return "|".join(_short_name(arg) for arg in typing.get_args(declared))
    origin = typing.get_origin(declared)
    args = typing.get_args(declared)
    if origin is None or not args:
        return getattr(declared, "__name__", repr(declared))
    return f"{_short_name(origin)}[{','.join(_short_name(arg) for arg in args)}]"


def _split_top_level(text: str, separator: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    start = 0
    for index, char in enumerate(text):
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
        elif char == separator and depth == 0:
            parts.append(text[start:index])
            start = index + 1
    parts.append(text[start:])
    return parts


def _match_text(hint: str, declared: Any) -> int | None:
    """Match a hint that is still source text against a declared type, by name."""
    text = _QUALIFIER.sub("", hint.replace(" ", ""))
    if text in ("Any", "object"):
        return _WILDCARD

    options = _split_top_level(text, "|")
    if len(options) > 1:
        if any(_match_text(option, declared) is not None for option in options):
            return _ASSIGNABLE
        return None

    if text == _short_name(declared):
        return _EXACT
    if is_plain_class(declared) and text in {klass.__name__ for klass in declared.__mro__}:
        return _ASSIGNABLE
    if text == "float" and declared is int:
        return _ASSIGNABLE

    head, _, inner = text.partition("[")
    if not is_sequence_type(declared):
        return None
    container = sequence_origin(declared)
    abstract = getattr(collections.abc, head, None)
    if head.lower() != container.__name__ and not (
        isinstance(abstract, type) and issubclass(container, abstract)
    ):
        return None
    if not inner or element_type(declared) is object:
        return _ASSIGNABLE
    items = _split_top_level(inner[:-1], ",")
    if len(items) == 1 or items[-1] == "...":
        if all(_match_text(items[0], item) is not None for item in _declared_elements(declared)):
            return _ASSIGNABLE
    return None


def select_constructor(
    annotation_type: type[Annotation], declared: tuple[Any, ...]
) -> _Constructor:
    """Return the constructor of ``annotation_type`` matching ``declared`` types.

    Raises
    ------
    InstantiationError
        If no constructor matches or several match equally well.
    """
    scored = [
        (score, candidate)
        for candidate in _constructors(annotation_type)
        if (score := candidate.score(declared)) is not None
    ]
    wanted = f"({', '.join(type_name(d) for d in declared)})"
    if not scored:
        available = ", ".join(c.signature() for c in _constructors(annotation_type))
        raise InstantiationError(
            annotation_type,
            f"no constructor accepts argument types {wanted}; available: {available}",
        )

    best = max(score for score, _ in scored)
    winners = [candidate for score, candidate in scored if score == best]
    if len(winners) > 1:
        names = ", ".join(c.signature() for c in winners)
        raise InstantiationError(
            annotation_type,
            f"argument types {wanted} match several constructors equally: {names}",
        )
    return winners[0]


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


def annotated_field_names(instance_type: type) -> set[str]:
    """Return the names annotated as fields anywhere in ``instance_type``'s MRO."""
    names: set[str] = set()
    for klass in instance_type.__mro__:
        names.update(inspect.get_annotations(klass))
    return names


def is_settable_member(instance_type: type, name: str, instance: object = None) -> bool:
    """Return True if ``name`` is a public, writable member of ``instance_type``.

    Members are properties with setters, data descriptors, annotated
    fields, plain (non-callable) class attributes, and attributes present
    on ``instance``.  Names are matched exactly.
    """
    if not name or name.startswith("_"):
        return False

    for klass in instance_type.__mro__:
        if name in vars(klass):
            attr = vars(klass)[name]
            if isinstance(attr, property):
                return attr.fset is not None
            if isinstance(attr, (classmethod, staticmethod)) or inspect.isfunction(attr):
                return False
            if hasattr(type(attr), "__set__"):
                return True
            return not callable(attr)

    if name in annotated_field_names(instance_type):
        return True
    return name in getattr(instance, "__dict__", {})


# ---------------------------------------------------------------------------
# Materialization
# ---------------------------------------------------------------------------


def materialize(descriptor: AnnotationDescriptor) -> Annotation:
    """Construct a fully populated annotation instance from ``descriptor``.

    Parameters
    ----------
    descriptor:
        The raw declaration to materialize.

    Returns
    -------
    Annotation
        A new instance of ``descriptor.annotation_type``.

    Raises
    ------
    InstantiationError
        If an argument cannot be converted, no single constructor matches
        the declared argument types, the constructor itself fails, or a
        named argument targets a missing or read-only member.
    """
    annotation_type = descriptor.annotation_type
    args = constructor_arguments(descriptor)

    declared = tuple(a.argument_type for a in descriptor.constructor_arguments)
    chosen = select_constructor(annotation_type, declared)
    try:
        instance = chosen.factory(*args)
    except Exception as exc:
        raise InstantiationError(
            annotation_type, f"{chosen.signature()} raised {type(exc).__name__}: {exc}"
        ) from exc
    if not isinstance(instance, annotation_type):
        raise InstantiationError(
            annotation_type,
            f"{chosen.signature()} returned {type(instance).__name__}, "
            f"not {annotation_type.__name__}",
        )

    for named in descriptor.named_arguments:
        name = named.member_name
        if not is_settable_member(type(instance), name, instance):
            raise InstantiationError(
                annotation_type,
                f"{type(instance).__name__} has no settable member {name!r}",
                member_name=name,
            )
        try:
            value = convert_argument(named.typed_value)
            setattr(instance, name, value)
        except (AttributeError, TypeError, ValueError) as exc:
            raise InstantiationError(annotation_type, str(exc), member_name=name) from exc

    logger.debug("Materialized %s via %s", descriptor, chosen.name)
    return instance
