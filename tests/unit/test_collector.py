"""Unit tests for testmeta.annotations.collector: inherited lookup."""
from __future__ import annotations

import pytest

from annotated_samples import (
    AlphaTrait,
    BaseSuite,
    DerivedSuite,
    Exploding,
    LocalOnly,
    Marker,
    MixedSuite,
    OverridingSuite,
    Painted,
    Sample,
    SortedSuite,
    Trait,
    ZuluTrait,
    annotated_function,
    plain_function,
)
from testmeta.annotations.collector import (
    AnnotationInfo,
    ancestry,
    annotation_instances,
    annotations_by_name,
    annotations_of,
    named_member,
)
from testmeta.annotations.descriptors import Annotation
from testmeta.annotations.usage import AnnotationUsage
from testmeta.errors import InstantiationError, MemberNotFoundError, TypeResolutionError


def _only(element: object, annotation_type: type[Annotation]) -> AnnotationInfo:
    (info,) = annotations_of(element, annotation_type)
    return info


# ===========================================================================
# annotations_of: ordering and policy
# ===========================================================================


class TestAnnotationsOfOrdering:
    def test_same_level_sorted_by_type_name(self) -> None:
        types = [info.annotation_type for info in annotations_of(SortedSuite, Trait)]
        assert types == [AlphaTrait, Trait, ZuluTrait]

    def test_subclass_filter(self) -> None:
        infos = annotations_of(SortedSuite, ZuluTrait)
        assert [info.annotation_type for info in infos] == [ZuluTrait]

    def test_descendant_before_ancestor(self) -> None:
        infos = annotations_of(DerivedSuite, Trait)
        assert [str(info) for info in infos] == [
            "Trait(name='Owner', value='payments')",
            "Trait(name='Category', value='Smoke')",
        ]
        assert [info.declaring_element for info in infos] == [DerivedSuite, BaseSuite]


class TestAnnotationsOfPolicy:
    def test_not_inherited_ignores_ancestors(self) -> None:
        assert annotations_of(DerivedSuite, LocalOnly) == []

    def test_not_inherited_still_reads_own_level(self) -> None:
        assert _only(BaseSuite, LocalOnly).annotation.note == "base only"

    def test_single_use_inherits_when_not_overridden(self) -> None:
        info = _only(DerivedSuite, Marker)
        assert info.declaring_element is BaseSuite
        assert info.annotation.label == "base"

    def test_single_use_nearest_declaration_wins(self) -> None:
        info = _only(OverridingSuite, Marker)
        assert info.declaring_element is OverridingSuite
        assert info.annotation.label == "derived"

    def test_no_declarations(self) -> None:
        assert annotations_of(plain_function, Marker) == []

    def test_function_element(self) -> None:
        assert _only(annotated_function, Marker).annotation.label == "function"

    def test_functions_have_no_ancestors(self) -> None:
        assert ancestry(annotated_function) == (annotated_function,)

    def test_class_ancestry_is_the_mro(self) -> None:
        assert ancestry(DerivedSuite) == (DerivedSuite, BaseSuite, object)

    def test_multiple_inheritance_follows_mro(self) -> None:
        class Combined(OverridingSuite, DerivedSuite):
            pass

        assert _only(Combined, Marker).declaring_element is OverridingSuite
        owners = [info.declaring_element for info in annotations_of(Combined, Trait)]
        assert owners == [DerivedSuite, BaseSuite]

    def test_by_name(self) -> None:
        infos = annotations_by_name(DerivedSuite, "annotated_samples:Trait")
        assert len(infos) == 2

    def test_by_unknown_name(self) -> None:
        with pytest.raises(TypeResolutionError):
            annotations_by_name(DerivedSuite, "annotated_samples:Missing")


# ===========================================================================
# AnnotationInfo
# ===========================================================================


class TestAnnotationInfo:
    def test_materializes_once(self) -> None:
        info = _only(MixedSuite, Sample)
        assert info.annotation is info.annotation

    def test_constructor_arguments(self) -> None:
        assert _only(MixedSuite, Sample).constructor_arguments() == [42, "x"]

    def test_named_argument(self) -> None:
        assert _only(MixedSuite, Sample).get_named_argument("flag") is True

    def test_named_argument_with_expected_type(self) -> None:
        assert _only(MixedSuite, Sample).get_named_argument("flag", bool) is True

    def test_named_argument_type_mismatch(self) -> None:
        with pytest.raises(TypeError, match="not str"):
            _only(MixedSuite, Sample).get_named_argument("flag", str)

    def test_missing_named_argument(self) -> None:
        with pytest.raises(MemberNotFoundError) as exc_info:
            _only(MixedSuite, Sample).get_named_argument("DoesNotExist")
        assert exc_info.value.member_name == "DoesNotExist"
        assert exc_info.value.type_name == "annotated_samples.Sample"
        assert "DoesNotExist" in str(exc_info.value)

    def test_missing_named_argument_is_a_lookup_error(self) -> None:
        with pytest.raises(LookupError):
            _only(MixedSuite, Sample).get_named_argument("DoesNotExist")

    def test_broken_sibling_does_not_block_others(self) -> None:
        infos = annotations_of(MixedSuite, Annotation)
        assert [info.annotation_type for info in infos] == [Exploding, Painted, Sample]
        with pytest.raises(InstantiationError):
            infos[0].annotation
        assert infos[1].annotation.color.name == "GREEN"
        assert infos[2].annotation.number == 42

    def test_failure_is_reported_again(self) -> None:
        info = _only(MixedSuite, Exploding)
        for _ in range(2):
            with pytest.raises(InstantiationError):
                info.annotation

    def test_annotations_on_annotation_type(self) -> None:
        (usage,) = annotations_of(DerivedSuite, Trait)[0].get_annotations(AnnotationUsage)
        assert usage.annotation_type is AnnotationUsage
        assert usage.declaring_element is Trait

    def test_annotations_inherited_by_annotation_subtype(self) -> None:
        (usage,) = _only(SortedSuite, ZuluTrait).get_annotations(AnnotationUsage)
        assert usage.declaring_element is Trait

    def test_undecorated_annotation_type_has_no_annotations(self) -> None:
        assert _only(DerivedSuite, Marker).get_annotations(AnnotationUsage) == []

    def test_annotations_on_annotation_type_by_alias(self) -> None:
        (usage,) = annotations_of(SortedSuite, AlphaTrait)[0].get_annotations("annotation-usage")
        assert usage.get_named_argument("allow_multiple") is True

    def test_repr_names_owner(self) -> None:
        assert "DerivedSuite" in repr(annotations_of(DerivedSuite, Trait)[0])


# ===========================================================================
# Helpers
# ===========================================================================


class TestHelpers:
    def test_annotation_instances(self) -> None:
        instances = annotation_instances(DerivedSuite, Trait)
        assert [t.name for t in instances] == ["Owner", "Category"]

    def test_annotation_instances_propagates_failures(self) -> None:
        with pytest.raises(InstantiationError):
            annotation_instances(MixedSuite, Exploding)

    def test_named_member_none_skips_type_check(self) -> None:
        marker = Marker()
        marker.label = None  # type: ignore[assignment]
        assert named_member(marker, "label", str) is None


class Deferred(Annotation):
    note: str

    @property
    def detail(self) -> str:
        raise AttributeError("detail is not loaded")

    @detail.setter
    def detail(self, value: str) -> None:
        self._detail = value


class TestNamedMemberAccess:
    def test_unassigned_annotated_field_reads_as_none(self) -> None:
        assert named_member(Deferred(), "note") is None

    def test_getter_attribute_error_propagates(self) -> None:
        with pytest.raises(AttributeError, match="not loaded"):
            named_member(Deferred(), "detail")
