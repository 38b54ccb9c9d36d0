"""
Cycle breaker.

Depth-first traversal with an on-path (grey) set. An edge to a node that is
still on the current path closes a cycle and is rewritten to point at a
``ReferenceNode``, so every cycle in the finished graph passes through an
explicit back-edge.
"""

from __future__ import annotations

import logging

from ...errors import CyclicSchemaError
from ..schema_ast.nodes import AliasNode, NodeArena, ReferenceNode, UnionNode

logger = logging.getLogger(__name__)

WHITE, GREY, BLACK = 0, 1, 2


class CycleBreaker:
    """Rewrites back-edges of recursive schemas as reference nodes."""

    def __init__(self, arena: NodeArena):
        self.arena = arena
        self._color: dict[int, int] = {}
        self._references: dict[int, int] = {}

    def break_cycles(self) -> int:
        """
        Break every cycle of the arena.

        Named roots are visited first, in allocation order, so the back-edge
        of a recursive type always lands on the edge that leads back to the
        first-declared type of the cycle.

        Returns:
            Number of rewritten edges

        Raises:
            CyclicSchemaError: For a cycle made only of aliases and unions
        """
        rewritten = 0
        roots = [entry.node_id for entry in sorted(self.arena.entries, key=lambda e: e.order)]
        roots.extend(node.node_id for node in self.arena)
        for node_id in roots:
            if self._color.get(node_id, WHITE) == WHITE:
                rewritten += self._visit(node_id)
        if rewritten:
            logger.debug("Rewrote %d back-edges as references", rewritten)
        return rewritten

    def _visit(self, start: int) -> int:
        rewritten = 0
        path: list[int] = [start]
        self._color[start] = GREY
        stack = [(start, iter(self.arena[start].child_refs()))]

        while stack:
            node_id, children = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                path.pop()
                self._color[node_id] = BLACK
                continue

            color = self._color.get(child, WHITE)
            if color == WHITE:
                self._color[child] = GREY
                path.append(child)
                stack.append((child, iter(self.arena[child].child_refs())))
            elif color == GREY and child in self.arena[node_id].child_refs():
                self._check_breakable(path[path.index(child) :])
                self.arena[node_id].replace_child(child, self._reference_to(child))
                rewritten += 1
                logger.debug("Back-edge %s -> %s", self.arena[node_id].path, self.arena[child].path)
        return rewritten

    def _check_breakable(self, cycle: list[int]) -> None:
        """A cycle needs an object or array to hold the reference; a union only selects among its variants."""
        if all(isinstance(self.arena[node_id], (AliasNode, UnionNode)) for node_id in cycle):
            raise CyclicSchemaError("Schema refers to itself without any object or array in between", self.arena[cycle[0]].path)

    def _reference_to(self, target: int) -> int:
        if target not in self._references:
            node = self.arena[target]
            reference = ReferenceNode(path=node.path, to=target, name=node.name, package=node.package)
            self._references[target] = self.arena.add(reference)
            self._color[self._references[target]] = BLACK
        return self._references[target]
