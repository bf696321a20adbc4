"""Qualified-name -> object resolution.

Accepted forms:

- ``"package.module:Outer.Inner"``: explicit module / attribute split;
- ``"package.module.Name"``: the longest importable module prefix wins;
- ``"int"``: a builtin name;
- for annotation types only, an alias registered in ``ANNOTATION_TYPES``.

Successful resolutions are cached; failures are not, so a name that
becomes importable later resolves on the next call.
"""
from __future__ import annotations

import builtins
import importlib
from types import ModuleType
from typing import Any

from testmeta.annotations.descriptors import Annotation
from testmeta.annotations.registry import ANNOTATION_TYPES
from testmeta.cache import LazyCache
from testmeta.errors import TypeResolutionError

_RESOLVED: LazyCache[str, Any] = LazyCache("resolved-names")


def resolve_object(qualified_name: str) -> Any:
    """Import and return the object named by ``qualified_name``.

    Raises
    ------
    TypeResolutionError
        If no module prefix can be imported or an attribute is missing.
    """
    return _RESOLVED.get_or_compute(qualified_name.strip(), _import_object)


def resolve_type(qualified_name: str) -> type:
    """Resolve ``qualified_name`` and check that it names a class."""
    obj = resolve_object(qualified_name)
    if not isinstance(obj, type):
        raise TypeResolutionError(qualified_name, f"{obj!r} is not a class")
    return obj


def resolve_annotation_type(name: str) -> type[Annotation]:
    """Resolve an alias or qualified name to an ``Annotation`` subclass."""
    if name in ANNOTATION_TYPES:
        return ANNOTATION_TYPES.get(name)
    cls = resolve_type(name)
    if not issubclass(cls, Annotation):
        raise TypeResolutionError(name, f"{cls.__qualname__} is not an Annotation subclass")
    return cls


def _import_object(name: str) -> Any:
    if not name:
        raise TypeResolutionError(name, "the name is empty")

    if ":" in name:
        module_name, _, attribute_path = name.partition(":")
        if not _importable(name, module_name):
            raise TypeResolutionError(name, f"module {module_name!r} not found")
        return _walk(name, importlib.import_module(module_name), attribute_path.split("."))

    parts = name.split(".")
    for split in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:split])
        if _importable(name, module_name):
            return _walk(name, importlib.import_module(module_name), parts[split:])

    if len(parts) == 1 and hasattr(builtins, name):
        return getattr(builtins, name)
    raise TypeResolutionError(name, "no importable module prefix")


def _importable(name: str, module_name: str) -> bool:
    try:
        importlib.import_module(module_name)
    except ModuleNotFoundError as exc:
        missing = exc.name or ""
        if module_name == missing or module_name.startswith(f"{missing}."):
            return False
        raise TypeResolutionError(name, f"importing {module_name!r} failed: {exc}") from exc
    except ImportError as exc:
        raise TypeResolutionError(name, f"importing {module_name!r} failed: {exc}") from exc
    return True


def _walk(name: str, root: ModuleType, path: list[str]) -> Any:
    obj: Any = root
    for attribute in path:
        try:
            obj = getattr(obj, attribute)
        except AttributeError:
            raise TypeResolutionError(
                name, f"{getattr(obj, '__name__', obj)!r} has no attribute {attribute!r}"
            ) from None
    return obj
