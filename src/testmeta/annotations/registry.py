"""Alias registry for annotation types.

Annotation types can always be looked up by their qualified name
(``"package.module:ClassName"``).  The registry adds short aliases so
collaborators can write ``annotations_by_name(cls, "trait")`` instead.
Third-party packages contribute aliases by declaring entry-points in
their own ``pyproject.toml`` under the "testmeta.annotations" group.

Example
-------
Register an annotation type with the decorator::

    from testmeta.annotations import ANNOTATION_TYPES, Annotation

    @ANNOTATION_TYPES.register("trait")
    class Trait(Annotation):
        def __init__(self, name: str, value: str) -> None: ...

Load all installed aliases via entry-points::

    ANNOTATION_TYPES.load_entrypoints()

Retrieve a type by alias::

    cls = ANNOTATION_TYPES.get("trait")
"""
from __future__ import annotations

import importlib.metadata
import logging
import threading
from collections.abc import Callable
from typing import TypeVar

from testmeta.annotations.descriptors import Annotation
from testmeta.annotations.usage import AnnotationUsage

logger = logging.getLogger(__name__)

A = TypeVar("A", bound=Annotation)

ENTRY_POINT_GROUP = "testmeta.annotations"


class AnnotationTypeNotFoundError(KeyError):
    """Raised when a requested alias is not in the registry."""

    def __init__(self, alias: str, registry_name: str) -> None:
        self.alias = alias
        self.registry_name = registry_name
        super().__init__(
            f"Annotation type {alias!r} is not registered in the {registry_name!r} registry. "
            "Check that the package is installed and its entry-points are declared, "
            "or use a qualified name such as 'package.module:ClassName'."
        )


class AnnotationTypeAlreadyRegisteredError(ValueError):
    """Raised when attempting to register an alias that already exists."""

    def __init__(self, alias: str, registry_name: str) -> None:
        self.alias = alias
        self.registry_name = registry_name
        super().__init__(
            f"Annotation type {alias!r} is already registered in the {registry_name!r} registry. "
            "Use a unique alias or explicitly deregister the existing entry first."
        )


class AnnotationTypeRegistry:
    """Thread-safe mapping of short aliases to annotation types.

    Parameters
    ----------
    name:
        A human-readable name for this registry (used in error messages).
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._types: dict[str, type[Annotation]] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, alias: str) -> Callable[[type[A]], type[A]]:
        """Return a class decorator that registers the decorated annotation type.

        Raises
        ------
        AnnotationTypeAlreadyRegisteredError
            If ``alias`` is already in use in this registry.
        TypeError
            If the decorated class does not subclass ``Annotation``.
        """

        def decorator(cls: type[A]) -> type[A]:
            self.register_type(alias, cls)
            return cls

        return decorator

    def register_type(self, alias: str, cls: type[Annotation]) -> None:
        """Register ``cls`` under ``alias`` without decorator syntax.

        Raises
        ------
        AnnotationTypeAlreadyRegisteredError
            If ``alias`` is already registered.
        TypeError
            If ``cls`` is not a subclass of ``Annotation``.
        """
        if not (isinstance(cls, type) and issubclass(cls, Annotation)):
            raise TypeError(
                f"Cannot register {cls!r} under {alias!r}: "
                f"it must be a subclass of {Annotation.__name__}."
            )
        with self._lock:
            if alias in self._types:
                raise AnnotationTypeAlreadyRegisteredError(alias, self._name)
            self._types[alias] = cls
        logger.debug(
            "Registered annotation type %r -> %s in registry %r",
            alias,
            cls.__qualname__,
            self._name,
        )

    def deregister(self, alias: str) -> None:
        """Remove an alias from the registry.

        Raises
        ------
        AnnotationTypeNotFoundError
            If ``alias`` is not currently registered.
        """
        with self._lock:
            if alias not in self._types:
                raise AnnotationTypeNotFoundError(alias, self._name)
            del self._types[alias]
        logger.debug("Deregistered annotation type %r from registry %r", alias, self._name)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, alias: str) -> type[Annotation]:
        """Return the annotation type registered under ``alias``.

        Raises
        ------
        AnnotationTypeNotFoundError
            If no type is registered under ``alias``.
        """
        try:
            return self._types[alias]
        except KeyError:
            raise AnnotationTypeNotFoundError(alias, self._name) from None

    def list_aliases(self) -> list[str]:
        """Return all registered aliases in alphabetical order."""
        return sorted(self._types)

    def items(self) -> list[tuple[str, type[Annotation]]]:
        """Return ``(alias, type)`` pairs in alphabetical order of alias."""
        return sorted(self._types.items())

    def __contains__(self, alias: object) -> bool:
        return alias in self._types

    def __len__(self) -> int:
        return len(self._types)

    def __repr__(self) -> str:
        return (
            f"AnnotationTypeRegistry(name={self._name!r}, "
            f"aliases={self.list_aliases()})"
        )

    # ------------------------------------------------------------------
    # Entry-point loading
    # ------------------------------------------------------------------

    def load_entrypoints(self, group: str = ENTRY_POINT_GROUP) -> None:
        """Discover and register annotation types declared as entry-points.

        Aliases that are already registered are skipped, which makes
        repeated calls idempotent.  Entry-points that fail to import or do
        not name an ``Annotation`` subclass are logged and skipped.

        Example
        -------
        In a downstream package's ``pyproject.toml``::

            [project.entry-points."testmeta.annotations"]
            trait = "my_package.annotations:Trait"
        """
        for ep in importlib.metadata.entry_points(group=group):
            if ep.name in self._types:
                logger.debug(
                    "Entry-point %r already registered in %r; skipping.",
                    ep.name,
                    self._name,
                )
                continue
            try:
                cls = ep.load()
            except Exception:
                logger.exception(
                    "Failed to load entry-point %r from group %r; skipping.",
                    ep.name,
                    group,
                )
                continue
            try:
                self.register_type(ep.name, cls)
            except (AnnotationTypeAlreadyRegisteredError, TypeError):
                logger.warning(
                    "Entry-point %r loaded but could not be registered "
                    "in registry %r; skipping.",
                    ep.name,
                    self._name,
                )


ANNOTATION_TYPES = AnnotationTypeRegistry("annotation-types")
ANNOTATION_TYPES.register_type("annotation-usage", AnnotationUsage)
