"""Report serialization for declared and materialized annotations.

Converts descriptors, :class:`AnnotationInfo` results and usage policies
into plain dict/list structures that map naturally to both JSON and
YAML.  The output is a report format for tooling and the CLI; it is not
read back.

Usage
-----
::

    from testmeta.annotations import AnnotationSerializer, annotations_of

    serializer = AnnotationSerializer()
    infos = annotations_of(LoginTests, Trait)
    print(serializer.to_yaml(infos))
"""
from __future__ import annotations

import enum
import json
from collections.abc import Iterable

import yaml

from testmeta.annotations.collector import AnnotationInfo
from testmeta.annotations.conversion import type_name
from testmeta.annotations.descriptors import AnnotationDescriptor, TypedArgument
from testmeta.annotations.usage import UsagePolicy
from testmeta.errors import InstantiationError


def qualified_name(obj: object) -> str:
    """Return ``module:qualname`` for classes and functions, ``repr`` otherwise."""
    qualname = getattr(obj, "__qualname__", None)
    module = getattr(obj, "__module__", None)
    if qualname is None or module is None:
        return repr(obj)
    return f"{module}:{qualname}"


class AnnotationSerializer:
    """Converts annotation metadata to JSON-compatible structures."""

    # ------------------------------------------------------------------
    # Serialization (metadata -> dict)
    # ------------------------------------------------------------------

    def descriptor_to_dict(self, descriptor: AnnotationDescriptor) -> dict[str, object]:
        """Serialize a raw declaration."""
        return {
            "kind": "AnnotationDescriptor",
            "type": qualified_name(descriptor.annotation_type),
            "constructor_arguments": [
                self._argument_to_dict(arg) for arg in descriptor.constructor_arguments
            ],
            "named_arguments": [
                {"member": named.member_name, **self._argument_to_dict(named.typed_value)}
                for named in descriptor.named_arguments
            ],
        }

    def info_to_dict(self, info: AnnotationInfo) -> dict[str, object]:
        """Serialize a collected annotation, materializing it.

        A declaration that fails to materialize is reported with an
        ``"error"`` entry instead of ``"members"``.
        """
        data: dict[str, object] = {
            "kind": "Annotation",
            "type": qualified_name(info.annotation_type),
            "declared_on": qualified_name(info.declaring_element),
            "descriptor": self.descriptor_to_dict(info.descriptor),
        }
        try:
            annotation = info.annotation
        except InstantiationError as exc:
            data["error"] = str(exc)
            return data
        data["members"] = {
            key: self._value(value)
            for key, value in vars(annotation).items()
            if not key.startswith("_")
        }
        return data

    def policy_to_dict(self, annotation_type: type, policy: UsagePolicy) -> dict[str, object]:
        return {
            "kind": "UsagePolicy",
            "type": qualified_name(annotation_type),
            "inherited": policy.inherited,
            "allow_multiple": policy.allow_multiple,
        }

    def _argument_to_dict(self, argument: TypedArgument) -> dict[str, object]:
        if argument.is_nested:
            value: object = [self._argument_to_dict(item) for item in argument.value]
        else:
            value = self._value(argument.value)
        return {"type": type_name(argument.argument_type), "value": value}

    def _value(self, value: object) -> object:
        if isinstance(value, enum.Enum):
            return f"{type(value).__name__}.{value.name}"
        if isinstance(value, (list, tuple)):
            return [self._value(item) for item in value]
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        return repr(value)

    # ------------------------------------------------------------------
    # Formats
    # ------------------------------------------------------------------

    def to_list(self, infos: Iterable[AnnotationInfo]) -> list[dict[str, object]]:
        return [self.info_to_dict(info) for info in infos]

    def to_json(self, infos: Iterable[AnnotationInfo], indent: int | None = None) -> str:
        """Serialize collected annotations to a JSON string."""
        return json.dumps(self.to_list(infos), indent=indent, ensure_ascii=False)

    def to_yaml(self, infos: Iterable[AnnotationInfo]) -> str:
        """Serialize collected annotations to a YAML string."""
        return yaml.dump(self.to_list(infos), default_flow_style=False, allow_unicode=True)
