"""
Frozen type graph handed to emitters.

Phase 7 of the pipeline: fixes the representation contract of every field
and freezes the arena. After construction no node, field or variant can be
modified.
"""

from __future__ import annotations

from typing import Any

from ..config import TypeGraphConfig
from ..schema_ast.nodes import (
    AliasNode,
    ArrayNode,
    EnumNode,
    Field,
    NodeArena,
    ObjectNode,
    ReferenceNode,
    Representation,
    ScalarNode,
    SchemaNode,
    UnionNode,
)


def field_representation(f: Field, config: TypeGraphConfig) -> Representation:
    """
    Wrapping contract of a field value.

    Args:
        f: The field
        config: Pipeline configuration

    Returns:
        VALUE for a plain value, OPTIONAL for a pointer-like wrapper,
        NULLABLE for an explicit nullable wrapper
    """
    if config.nullable_type and f.nullable:
        return Representation.NULLABLE
    if f.skip_optional_pointer or (config.prefer_skip_optional_pointer and f.skip_optional_pointer is not False):
        return Representation.VALUE
    if not f.required or f.nullable:
        return Representation.OPTIONAL
    if (f.read_only or f.write_only) and not config.disable_required_readonly_as_pointer:
        # Required readOnly/writeOnly fields are missing in one direction
        return Representation.OPTIONAL
    return Representation.VALUE


class TypeGraph:
    """Immutable, emission-ready graph of named and structural types."""

    def __init__(self, arena: NodeArena, config: TypeGraphConfig | None = None):
        self.config = config or TypeGraphConfig()
        for node in arena:
            for f in getattr(node, "fields", ()):
                f.representation = field_representation(f, self.config)

        self._arena = arena
        self._named = [arena[entry.node_id] for entry in sorted(arena.entries, key=lambda e: e.order)]
        self._by_name = {(node.package, node.name): node for node in self._named}
        arena.freeze()

    @property
    def nodes(self) -> tuple[SchemaNode, ...]:
        return tuple(self._arena)

    @property
    def named_types(self) -> tuple[SchemaNode, ...]:
        """Named types in allocation order."""
        return tuple(self._named)

    @property
    def enums(self) -> tuple[EnumNode, ...]:
        return tuple(node for node in self._named if isinstance(node, EnumNode))

    def get(self, node_id: int) -> SchemaNode:
        return self._arena[node_id]

    def resolve(self, node_id: int) -> SchemaNode:
        """Follow aliases and references to the defining node."""
        return self._arena.resolve(node_id)

    def type_named(self, name: str, package: str = "") -> SchemaNode:
        """
        Named type by its final name.

        Raises:
            KeyError: If no type of that name exists in the package
        """
        try:
            return self._by_name[(package, name)]
        except KeyError:
            raise KeyError(f"No type named {name!r} in package {package!r}") from None

    def is_nullable(self, node_id: int) -> bool:
        return self._arena.is_nullable(node_id)

    def __len__(self) -> int:
        return len(self._arena)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypeGraph):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None

    # Serialization

    def to_dict(self) -> dict[str, Any]:
        """Deterministic JSON-compatible form of the whole graph."""
        return {
            "types": [{"name": node.name, "package": node.package, "node": node.node_id} for node in self._named],
            "nodes": [self._node_dict(node) for node in self._arena],
        }

    def _node_dict(self, node: SchemaNode) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": node.node_id,
            "kind": type(node).__name__.removesuffix("Node").lower(),
            "path": str(node.path) if node.path is not None else None,
        }
        if node.name:
            d["name"] = node.name
            d["package"] = node.package
        if node.nullable:
            d["nullable"] = True
        if node.deprecated:
            d["deprecated"] = True
        if node.description:
            d["description"] = node.description

        if isinstance(node, ScalarNode):
            d["scalar"] = node.kind.value
            if node.format:
                d["format"] = node.format
        elif isinstance(node, EnumNode):
            d["scalar"] = node.kind.value
            d["constants"] = [{"name": c.name, "value": c.value} for c in node.constants]
        elif isinstance(node, ArrayNode):
            d["element"] = node.element
            d["element_nullable"] = node.element_nullable
        elif isinstance(node, ObjectNode):
            d["fields"] = [self._field_dict(f) for f in node.fields]
            d["additional_properties"] = {"kind": node.additional_properties.kind.value, "schema": node.additional_properties.schema}
        elif isinstance(node, UnionNode):
            d["mode"] = node.mode
            d["variants"] = [
                {"name": v.name, "schema": v.schema, "ref": str(v.ref) if v.ref is not None else None, "discriminator_values": list(v.discriminator_values)}
                for v in node.variants
            ]
            if node.discriminator is not None:
                d["discriminator"] = node.discriminator.property_name
            d["probe_order"] = list(node.probe_order)
            if node.fields:
                d["fields"] = [self._field_dict(f) for f in node.fields]
        elif isinstance(node, AliasNode):
            if node.override_type:
                d["override_type"] = node.override_type
                if node.override_import:
                    d["override_import"] = node.override_import
            else:
                d["target"] = node.target
        elif isinstance(node, ReferenceNode):
            d["to"] = node.to
        return d

    @staticmethod
    def _field_dict(f: Field) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": f.name,
            "identifier": f.identifier,
            "schema": f.schema,
            "presence": f.presence.value,
            "representation": f.representation.value,
        }
        for flag in ("read_only", "write_only", "deprecated", "omit_zero", "ignored"):
            if getattr(f, flag):
                d[flag] = True
        if f.omit_empty is not None:
            d["omit_empty"] = f.omit_empty
        if f.zero_predicate:
            d["zero_predicate"] = f.zero_predicate
        if f.extra_tags:
            d["extra_tags"] = dict(f.extra_tags)
        if f.deprecated_reason:
            d["deprecated_reason"] = f.deprecated_reason
        if f.description:
            d["description"] = f.description
        return d
