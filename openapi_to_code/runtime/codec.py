"""
JSON codec driven by a type graph.

Decodes JSON-compatible payloads into ``Record``/``UnionValue`` trees and
encodes them back, applying the presence rules of every field:

- required: must be present and non-null
- optional: omitted when absent, a null payload decodes as absent
- required nullable: always encoded, absent encodes as null
- optional nullable: absent, null and value are kept apart

Payload validation beyond shape (patterns, ranges, formats) is not done.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ..errors import DecodeError, EncodeError
from ..pipeline.analyzer.type_graph import TypeGraph
from ..pipeline.schema_ast.nodes import (
    AdditionalPropertiesKind,
    AliasNode,
    ArrayNode,
    EnumNode,
    Field,
    ObjectNode,
    PresenceState,
    ReferenceNode,
    ScalarKind,
    ScalarNode,
    UnionNode,
)
from .record import FieldState, Record
from .union import UnionValue

ZeroPredicate = Callable[[Any], bool]


def is_empty(value: Any) -> bool:
    """Empty in the omit-if-empty sense: null, false, 0, "" or an empty collection."""
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    if isinstance(value, Record):
        return not value.values and not value.additional_properties
    if isinstance(value, UnionValue):
        return value.to_json() is None
    return False


def _type_label(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _matches_scalar(kind: ScalarKind, value: Any) -> bool:
    if kind == ScalarKind.DYNAMIC:
        return True
    if kind == ScalarKind.STRING:
        return isinstance(value, str)
    if kind == ScalarKind.BOOLEAN:
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    if kind == ScalarKind.INTEGER:
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    return isinstance(value, (int, float))


class GraphCodec:
    """Decodes and encodes payloads for the types of one graph."""

    def __init__(self, graph: TypeGraph, zero_predicates: dict[str, ZeroPredicate] | None = None):
        """
        Initialize the codec.

        Args:
            graph: The type graph
            zero_predicates: Named predicates for fields with x-zero-value-predicate
        """
        self.graph = graph
        self.zero_predicates = dict(zero_predicates or {})

    def union(self, type_name: str, package: str = "") -> UnionValue:
        """Empty value of a named union type."""
        node = self.graph.resolve(self.graph.type_named(type_name, package).node_id)
        if not isinstance(node, UnionNode):
            raise TypeError(f"{type_name} is not a union type")
        return UnionValue(self, node)

    # Decoding

    def decode(self, type_name: str, payload: Any, package: str = "") -> Any:
        """
        Decode a payload as a named type.

        Args:
            type_name: Final type name
            payload: JSON-compatible value (as returned by json.loads)
            package: Package owning the type

        Returns:
            Record, UnionValue, list, dict or scalar

        Raises:
            DecodeError: If the payload does not have the type's shape
        """
        return self.decode_node(self.graph.type_named(type_name, package).node_id, payload)

    def decode_node(self, node_id: int, payload: Any, location: str = "$") -> Any:
        node = self.graph.get(node_id)
        if isinstance(node, ReferenceNode):
            return self.decode_node(node.to, payload, location)
        if payload is None:
            if self.graph.is_nullable(node_id) or (isinstance(node, ScalarNode) and node.kind == ScalarKind.DYNAMIC):
                return None
            union = self._union_behind(node_id)
            if union is not None:
                return UnionValue(self, union)
            raise DecodeError("null is not allowed", location)
        if isinstance(node, AliasNode):
            if node.override_type:
                return payload
            return self.decode_node(node.target, payload, location)

        if isinstance(node, ScalarNode):
            if not _matches_scalar(node.kind, payload):
                raise DecodeError(f"expected {node.kind.value}, got {_type_label(payload)}", location)
            return payload
        if isinstance(node, EnumNode):
            if not node.has_value(payload):
                raise DecodeError(f"{payload!r} is not one of {list(node.values)!r}", location)
            return payload
        if isinstance(node, ArrayNode):
            if not isinstance(payload, list):
                raise DecodeError(f"expected array, got {_type_label(payload)}", location)
            return [self._decode_element(node, item, f"{location}[{index}]") for index, item in enumerate(payload)]
        if isinstance(node, ObjectNode):
            if not isinstance(payload, dict):
                raise DecodeError(f"expected object, got {_type_label(payload)}", location)
            if not node.name and not node.fields:
                return self._decode_map(node, payload, location)
            return self._decode_record(node, payload, location)
        if isinstance(node, UnionNode):
            return UnionValue(self, node).from_json(payload, location)
        raise DecodeError(f"cannot decode {type(node).__name__}", location)

    def _union_behind(self, node_id: int) -> UnionNode | None:
        """Union a node stands for; null decodes to an empty value of it."""
        node = self.graph.get(node_id)
        if isinstance(node, AliasNode) and node.override_type:
            return None
        node = self.graph.resolve(node_id)
        return node if isinstance(node, UnionNode) else None

    def _decode_element(self, node: ArrayNode, item: Any, location: str) -> Any:
        if item is None and node.element_nullable:
            return None
        return self.decode_node(node.element, item, location)

    def _decode_map(self, node: ObjectNode, payload: dict[str, Any], location: str) -> dict[str, Any]:
        ap = node.additional_properties
        if ap.kind == AdditionalPropertiesKind.TYPED:
            return {key: self.decode_node(ap.schema, value, f"{location}.{key}") for key, value in payload.items()}
        if ap.kind == AdditionalPropertiesKind.ANY:
            return dict(payload)
        return {}

    def _decode_record(self, node: ObjectNode, payload: dict[str, Any], location: str) -> Record:
        record = Record(node.name, package=node.package)
        declared = set()
        for f in node.fields:
            declared.add(f.name)
            if f.ignored:
                continue
            field_location = f"{location}.{f.name}"
            presence = f.presence
            if f.name not in payload:
                if presence in (PresenceState.REQUIRED, PresenceState.REQUIRED_NULLABLE):
                    raise DecodeError("missing required property", field_location)
                continue
            value = payload[f.name]
            if value is None:
                if presence == PresenceState.REQUIRED:
                    union = self._union_behind(f.schema)
                    if union is not None:
                        record.values[f.name] = UnionValue(self, union)
                        continue
                    raise DecodeError("null is not allowed for a required property", field_location)
                if presence == PresenceState.OPTIONAL:
                    continue
                record.values[f.name] = None
                continue
            record.values[f.name] = self.decode_node(f.schema, value, field_location)

        ap = node.additional_properties
        for key, value in payload.items():
            if key in declared:
                continue
            if ap.kind == AdditionalPropertiesKind.TYPED:
                record.additional_properties[key] = self.decode_node(ap.schema, value, f"{location}.{key}")
            elif ap.kind == AdditionalPropertiesKind.ANY:
                record.additional_properties[key] = value
        return record

    # Encoding

    def encode(self, value: Any, type_name: str | None = None, package: str = "") -> Any:
        """
        Encode a value to its JSON-compatible form.

        Args:
            value: Record, UnionValue, list, dict or scalar
            type_name: Type to encode as (defaults to the record's own type)
            package: Package owning the type

        Raises:
            EncodeError: If the value does not fit the type, or a required field is unset
        """
        if type_name is None:
            if isinstance(value, Record):
                type_name, package = value.type_name, value.package
            elif isinstance(value, UnionValue):
                return value.to_json()
            else:
                raise EncodeError("A type name is required to encode a plain value")
        return self.encode_node(self.graph.type_named(type_name, package).node_id, value)

    def encode_node(self, node_id: int, value: Any, location: str = "$") -> Any:
        node = self.graph.get(node_id)
        if isinstance(node, ReferenceNode):
            return self.encode_node(node.to, value, location)
        if value is None:
            if self.graph.is_nullable(node_id) or (isinstance(node, ScalarNode) and node.kind == ScalarKind.DYNAMIC):
                return None
            raise EncodeError("null is not allowed", location)
        if isinstance(node, AliasNode):
            if node.override_type:
                return value
            return self.encode_node(node.target, value, location)

        if isinstance(node, ScalarNode):
            if not _matches_scalar(node.kind, value):
                raise EncodeError(f"expected {node.kind.value}, got {_type_label(value)}", location)
            return value
        if isinstance(node, EnumNode):
            if not node.has_value(value):
                raise EncodeError(f"{value!r} is not one of {list(node.values)!r}", location)
            return value
        if isinstance(node, ArrayNode):
            if not isinstance(value, (list, tuple)):
                raise EncodeError(f"expected array, got {_type_label(value)}", location)
            return [
                None if item is None and node.element_nullable else self.encode_node(node.element, item, f"{location}[{index}]")
                for index, item in enumerate(value)
            ]
        if isinstance(node, ObjectNode):
            if isinstance(value, Record):
                return self._encode_record(node, value, location)
            if isinstance(value, dict) and not node.fields:
                return self._encode_map(node, value, location)
            raise EncodeError(f"expected a {node.name or 'record'} record, got {_type_label(value)}", location)
        if isinstance(node, UnionNode):
            if not isinstance(value, UnionValue):
                raise EncodeError(f"expected a {node.name or 'union'} union value, got {_type_label(value)}", location)
            return value.to_json()
        raise EncodeError(f"cannot encode {type(node).__name__}", location)

    def _encode_map(self, node: ObjectNode, value: dict[str, Any], location: str) -> dict[str, Any]:
        ap = node.additional_properties
        if ap.kind == AdditionalPropertiesKind.TYPED:
            return {key: self.encode_node(ap.schema, item, f"{location}.{key}") for key, item in value.items()}
        if ap.kind == AdditionalPropertiesKind.ANY or not value:
            return dict(value)
        raise EncodeError("object does not allow additional properties", location)

    def _encode_record(self, node: ObjectNode, record: Record, location: str) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for f in node.fields:
            if f.ignored:
                continue
            field_location = f"{location}.{f.name}"
            state = record.state(f.name)
            presence = f.presence

            if presence == PresenceState.REQUIRED and state != FieldState.VALUE:
                raise EncodeError(f"required property is {state.value}", field_location)
            if state == FieldState.ABSENT:
                if presence == PresenceState.REQUIRED_NULLABLE:
                    out[f.name] = None
                elif presence == PresenceState.OPTIONAL and f.omit_empty is False:
                    out[f.name] = None
                continue
            if state == FieldState.NULL:
                if presence == PresenceState.OPTIONAL:
                    if f.omit_empty is False:
                        out[f.name] = None
                    continue
                if not f.omit_empty:
                    out[f.name] = None
                continue

            value = record.values[f.name]
            if f.omit_empty and is_empty(value):
                continue
            if f.omit_zero and self._is_zero(f, value, field_location):
                continue
            out[f.name] = self.encode_node(f.schema, value, field_location)

        if record.additional_properties:
            ap = node.additional_properties
            if ap.kind == AdditionalPropertiesKind.TYPED:
                for key, item in record.additional_properties.items():
                    out[key] = self.encode_node(ap.schema, item, f"{location}.{key}")
            elif ap.kind == AdditionalPropertiesKind.ANY:
                out.update(record.additional_properties)
            else:
                raise EncodeError(f"{node.name or 'record'} does not allow additional properties", location)
        return out

    def _is_zero(self, f: Field, value: Any, location: str) -> bool:
        if f.zero_predicate is None:
            return is_empty(value)
        predicate = self.zero_predicates.get(f.zero_predicate)
        if predicate is None:
            raise EncodeError(f"Unknown zero-value predicate {f.zero_predicate!r}", location)
        return bool(predicate(value))
