"""
Composition merger for allOf.

Flattens every object with pending allOf members into one record: fields
in encounter order, required as the union of every level, and
additionalProperties reduced pairwise left to right.
"""

from __future__ import annotations

import dataclasses
import logging

from ...errors import CyclicSchemaError, SchemaMergeError
from ..loader.reference_resolver import SchemaPath
from ..schema_ast.nodes import (
    AdditionalProperties,
    AdditionalPropertiesKind,
    AliasNode,
    Field,
    NodeArena,
    ObjectNode,
    ScalarKind,
    ScalarNode,
    SchemaNode,
    order_fields,
)

logger = logging.getLogger(__name__)

ANY = AdditionalPropertiesKind.ANY
TYPED = AdditionalPropertiesKind.TYPED
UNSPECIFIED = AdditionalPropertiesKind.UNSPECIFIED
FORBIDDEN = AdditionalPropertiesKind.FORBIDDEN


def merge_additional_properties(
    acc: AdditionalProperties,
    nxt: AdditionalProperties,
    arena: NodeArena | None = None,
    path: SchemaPath | None = None,
) -> AdditionalProperties:
    """
    Merge two additionalProperties modes (row = accumulator, column = next member).

    |             | Any      | Typed(S) | Unspecified | Forbidden |
    |-------------|----------|----------|-------------|-----------|
    | Any         | Any      | Typed(S) | Any         | Forbidden |
    | Typed(T)    | Typed(T) | error    | Typed(T)    | Forbidden |
    | Unspecified | Any      | Typed(S) | Unspecified | Forbidden |
    | Forbidden   | Forbidden| Forbidden| Forbidden   | Forbidden |

    Two typed modes merge only when they name the same schema.

    Args:
        acc: Mode accumulated so far
        nxt: Mode of the next member
        arena: Used to compare typed schemas through aliases
        path: Path reported on error

    Returns:
        The merged mode

    Raises:
        SchemaMergeError: For two distinct typed schemas
    """
    if acc.kind == FORBIDDEN or nxt.kind == FORBIDDEN:
        return AdditionalProperties.forbidden()
    if acc.kind == TYPED and nxt.kind == TYPED:
        if _same_schema(acc.schema, nxt.schema, arena):
            return acc
        raise SchemaMergeError("Cannot merge two different typed additionalProperties schemas", path)
    if acc.kind == TYPED:
        return acc
    if nxt.kind == TYPED:
        return nxt
    if acc.kind == ANY or nxt.kind == ANY:
        return AdditionalProperties.any()
    return AdditionalProperties.unspecified()


def _same_schema(left: int | None, right: int | None, arena: NodeArena | None) -> bool:
    if left == right:
        return True
    if arena is None or left is None or right is None:
        return False
    return arena.resolve(left) is arena.resolve(right)


class CompositionMerger:
    """Flattens allOf compositions into plain objects."""

    def __init__(self, arena: NodeArena):
        self.arena = arena
        self._merged: set[int] = set()
        self._in_progress: list[int] = []

    def merge_all(self) -> None:
        """Merge every object that still has allOf members."""
        for node in self.arena:
            if isinstance(node, ObjectNode) and node.all_of:
                self.merge(node)

    def merge(self, node: ObjectNode) -> None:
        """
        Merge the allOf members of one object into it.

        Nested compositions are flattened first, so deep allOf chains end
        up as one concrete record.

        Args:
            node: Object with pending allOf members
        """
        if node.node_id in self._merged or not node.all_of:
            return
        if node.node_id in self._in_progress:
            raise CyclicSchemaError("allOf composition includes itself", node.path)
        self._in_progress.append(node.node_id)
        try:
            self._merge(node)
        finally:
            self._in_progress.pop()
        self._merged.add(node.node_id)

    def _merge(self, node: ObjectNode) -> None:
        merged: dict[str, Field] = {}
        required: list[str] = []
        additional: AdditionalProperties | None = None

        for member_id in node.all_of:
            member = self._member_object(member_id, node)
            if member is None:
                continue
            for f in member.fields:
                if f.name in merged:
                    existing = merged[f.name]
                    existing.required = existing.required or f.required
                else:
                    merged[f.name] = dataclasses.replace(f)
            for name in member.required:
                if name not in required:
                    required.append(name)
            if additional is None:
                additional = member.additional_properties
            else:
                additional = merge_additional_properties(additional, member.additional_properties, self.arena, member.path)

        # Properties declared next to allOf: the local schema wins, required is OR-ed
        for f in node.fields:
            if f.name in merged:
                existing = merged[f.name]
                local = dataclasses.replace(f)
                local.required = existing.required or f.required
                merged[f.name] = local
            else:
                merged[f.name] = dataclasses.replace(f)
        for name in node.required:
            if name not in required:
                required.append(name)

        if additional is None:
            additional = node.additional_properties
        else:
            additional = merge_additional_properties(additional, node.additional_properties, self.arena, node.path)

        for f in merged.values():
            f.required = f.required or f.name in required

        node.fields = order_fields(list(merged.values()))
        node.required = required
        node.additional_properties = additional
        node.all_of = []
        logger.debug("Merged allOf at %s into %d fields", node.path, len(node.fields))

    def _member_object(self, member_id: int, owner: ObjectNode) -> ObjectNode | None:
        """Resolve an allOf member to the object it contributes, None for annotation-only members."""
        seen = set()
        member: SchemaNode = self.arena[member_id]
        while isinstance(member, AliasNode) and member.target is not None:
            if member.node_id in seen:
                raise CyclicSchemaError("allOf member is an alias of itself", member.path)
            seen.add(member.node_id)
            member = self.arena[member.target]

        if isinstance(member, ScalarNode) and member.kind == ScalarKind.DYNAMIC and member.empty:
            return None
        if not isinstance(member, ObjectNode):
            kind = type(member).__name__.removesuffix("Node").lower()
            raise SchemaMergeError(f"allOf member must be an object, got {kind}", member.path or owner.path)
        if member.all_of:
            self.merge(member)
        return member
