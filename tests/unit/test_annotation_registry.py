"""Unit tests for testmeta.annotations.registry: AnnotationTypeRegistry,
error types, entry-point loading, and all public methods.
"""
from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import pytest

from annotated_samples import Marker, Trait
from testmeta.annotations.descriptors import Annotation
from testmeta.annotations.registry import (
    ANNOTATION_TYPES,
    AnnotationTypeAlreadyRegisteredError,
    AnnotationTypeNotFoundError,
    AnnotationTypeRegistry,
)
from testmeta.annotations.usage import AnnotationUsage


class NotAnAnnotation:
    """Does NOT subclass Annotation; used for error path testing."""


def _fresh_registry(name: str = "test") -> AnnotationTypeRegistry:
    """Return a new empty registry for each test."""
    return AnnotationTypeRegistry(name)


# ===========================================================================
# Error types
# ===========================================================================


class TestAnnotationTypeNotFoundError:
    def test_is_key_error(self) -> None:
        with pytest.raises(KeyError):
            raise AnnotationTypeNotFoundError("trait", "my-registry")

    def test_has_alias_and_registry_name(self) -> None:
        error = AnnotationTypeNotFoundError("trait", "my-registry")
        assert error.alias == "trait"
        assert error.registry_name == "my-registry"

    def test_message_contains_alias(self) -> None:
        assert "trait" in str(AnnotationTypeNotFoundError("trait", "my-registry"))


class TestAnnotationTypeAlreadyRegisteredError:
    def test_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            raise AnnotationTypeAlreadyRegisteredError("trait", "my-registry")

    def test_has_alias_attribute(self) -> None:
        assert AnnotationTypeAlreadyRegisteredError("dup", "r").alias == "dup"


# ===========================================================================
# Registration
# ===========================================================================


class TestRegister:
    def test_empty_registry(self) -> None:
        registry = _fresh_registry()
        assert len(registry) == 0
        assert registry.list_aliases() == []

    def test_decorator_registers_and_returns_class(self) -> None:
        registry = _fresh_registry()

        @registry.register("local")
        class Local(Annotation):
            pass

        assert registry.get("local") is Local

    def test_register_type(self) -> None:
        registry = _fresh_registry()
        registry.register_type("trait", Trait)
        assert "trait" in registry

    def test_duplicate_alias_raises(self) -> None:
        registry = _fresh_registry()
        registry.register_type("trait", Trait)
        with pytest.raises(AnnotationTypeAlreadyRegisteredError):
            registry.register_type("trait", Marker)

    def test_non_annotation_raises_type_error(self) -> None:
        with pytest.raises(TypeError, match="subclass of Annotation"):
            _fresh_registry().register_type("bad", NotAnAnnotation)  # type: ignore[arg-type]

    def test_instance_raises_type_error(self) -> None:
        with pytest.raises(TypeError):
            _fresh_registry().register_type("bad", Marker())  # type: ignore[arg-type]

    def test_logs_registration(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="testmeta.annotations.registry"):
            _fresh_registry().register_type("logged-trait", Trait)
        assert "logged-trait" in caplog.text


class TestDeregister:
    def test_removes_alias(self) -> None:
        registry = _fresh_registry()
        registry.register_type("trait", Trait)
        registry.deregister("trait")
        assert "trait" not in registry

    def test_unknown_alias_raises(self) -> None:
        with pytest.raises(AnnotationTypeNotFoundError):
            _fresh_registry().deregister("ghost")


# ===========================================================================
# Lookup
# ===========================================================================


class TestLookup:
    def test_get_unknown_raises(self) -> None:
        with pytest.raises(AnnotationTypeNotFoundError):
            _fresh_registry().get("ghost")

    def test_list_aliases_sorted(self) -> None:
        registry = _fresh_registry()
        registry.register_type("zeta", Trait)
        registry.register_type("alpha", Marker)
        assert registry.list_aliases() == ["alpha", "zeta"]
        assert registry.items() == [("alpha", Marker), ("zeta", Trait)]

    def test_repr(self) -> None:
        registry = _fresh_registry("annotations")
        registry.register_type("trait", Trait)
        assert "annotations" in repr(registry)
        assert "trait" in repr(registry)

    def test_default_registry_knows_annotation_usage(self) -> None:
        assert ANNOTATION_TYPES.get("annotation-usage") is AnnotationUsage


# ===========================================================================
# load_entrypoints
# ===========================================================================


class TestLoadEntrypoints:
    def test_empty_group_does_nothing(self) -> None:
        registry = _fresh_registry()
        with patch(
            "testmeta.annotations.registry.importlib.metadata.entry_points",
            return_value=[],
        ):
            registry.load_entrypoints("testmeta.empty")
        assert len(registry) == 0

    def test_registers_valid_type(self) -> None:
        registry = _fresh_registry()

        mock_ep = MagicMock()
        mock_ep.name = "trait"
        mock_ep.load.return_value = Trait

        with patch(
            "testmeta.annotations.registry.importlib.metadata.entry_points",
            return_value=[mock_ep],
        ):
            registry.load_entrypoints()

        assert registry.get("trait") is Trait

    def test_skips_already_registered(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = _fresh_registry()
        registry.register_type("trait", Trait)

        mock_ep = MagicMock()
        mock_ep.name = "trait"

        with patch(
            "testmeta.annotations.registry.importlib.metadata.entry_points",
            return_value=[mock_ep],
        ):
            with caplog.at_level(logging.DEBUG, logger="testmeta.annotations.registry"):
                registry.load_entrypoints()

        mock_ep.load.assert_not_called()
        assert "already registered" in caplog.text

    def test_load_failure_is_logged_and_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = _fresh_registry()

        mock_ep = MagicMock()
        mock_ep.name = "broken"
        mock_ep.load.side_effect = ImportError("no module named broken_pkg")

        with patch(
            "testmeta.annotations.registry.importlib.metadata.entry_points",
            return_value=[mock_ep],
        ):
            with caplog.at_level(logging.ERROR, logger="testmeta.annotations.registry"):
                registry.load_entrypoints()

        assert len(registry) == 0
        assert "broken" in caplog.text

    def test_wrong_type_is_warned_and_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = _fresh_registry()

        mock_ep = MagicMock()
        mock_ep.name = "not-annotation"
        mock_ep.load.return_value = NotAnAnnotation

        with patch(
            "testmeta.annotations.registry.importlib.metadata.entry_points",
            return_value=[mock_ep],
        ):
            with caplog.at_level(logging.WARNING, logger="testmeta.annotations.registry"):
                registry.load_entrypoints()

        assert len(registry) == 0
        assert "not-annotation" in caplog.text

    def test_is_idempotent(self) -> None:
        registry = _fresh_registry()

        mock_ep = MagicMock()
        mock_ep.name = "trait"
        mock_ep.load.return_value = Trait

        with patch(
            "testmeta.annotations.registry.importlib.metadata.entry_points",
            return_value=[mock_ep],
        ):
            registry.load_entrypoints()
            registry.load_entrypoints()

        assert len(registry) == 1
