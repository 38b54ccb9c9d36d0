"""
Union resolver for oneOf/anyOf.

Attaches discriminator values to variants (several values may select the
same variant) and computes the order in which variants are tried when a
payload carries no discriminator.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ...errors import UnionResolutionError
from ..config import ProbeOrder
from ..loader.reference_resolver import SchemaPath
from ..schema_ast.nodes import ArrayNode, EnumNode, NodeArena, ObjectNode, ScalarKind, ScalarNode, UnionNode, Variant

logger = logging.getLogger(__name__)


class UnionResolver:
    """Resolves discriminator mappings and probe order of every union."""

    def __init__(self, arena: NodeArena, probe_order: ProbeOrder = ProbeOrder.DECLARATION):
        self.arena = arena
        self.probe_order = probe_order

    def resolve_all(self) -> None:
        for node in self.arena:
            if isinstance(node, UnionNode):
                self.resolve(node)

    def resolve(self, node: UnionNode) -> None:
        """
        Resolve one union.

        Args:
            node: The union node

        Raises:
            UnionResolutionError: If a mapping target is not one of the variants,
                or a mapping is declared next to inline variants
        """
        if node.discriminator is not None:
            self._map_discriminator(node)
        node.probe_order = self._probe_order(node)
        logger.debug("Resolved union at %s: %d variants", node.path, len(node.variants))

    def _map_discriminator(self, node: UnionNode) -> None:
        mapping = node.discriminator.mapping
        if mapping and any(variant.ref is None for variant in node.variants):
            raise UnionResolutionError(
                "discriminator.mapping is ambiguous when oneOf/anyOf has inline members; reference every member instead",
                node.path,
            )

        for value, target in mapping.items():
            variant = self._variant_for(node, target)
            if variant is None:
                raise UnionResolutionError(f"discriminator mapping {value!r} points at {target}, which is not a member of the union", node.path)
            if value not in variant.discriminator_values:
                variant.discriminator_values.append(value)

        # Unmapped referenced members are selected by their component name
        for variant in node.variants:
            if not variant.discriminator_values and variant.ref is not None:
                variant.discriminator_values.append(variant.ref.tokens[-1] if variant.ref.tokens else Path(variant.ref.document).stem)

    def _variant_for(self, node: UnionNode, target: SchemaPath) -> Variant | None:
        target_id = self.arena.node_at(target)
        for variant in node.variants:
            if variant.ref == target:
                return variant
        if target_id is None:
            return None
        resolved = self.arena.resolve(target_id)
        for variant in node.variants:
            if variant.schema == target_id or self.arena.resolve(variant.schema) is resolved:
                return variant
        return None

    def _probe_order(self, node: UnionNode) -> list[int]:
        indices = list(range(len(node.variants)))
        if self.probe_order == ProbeOrder.DECLARATION:
            return indices
        return sorted(indices, key=lambda index: self._specificity(node.variants[index].schema) + (index,))

    def _specificity(self, node_id: int) -> tuple[int, int]:
        """Sort key: records before collections before enums before scalars; more required fields first."""
        node = self.arena.resolve(node_id)
        if isinstance(node, ObjectNode):
            return 0, -len(node.required)
        if isinstance(node, UnionNode):
            return 1, 0
        if isinstance(node, ArrayNode):
            return 2, 0
        if isinstance(node, EnumNode):
            return 3, 0
        if isinstance(node, ScalarNode) and node.kind != ScalarKind.DYNAMIC:
            return 4, 0
        return 5, 0
