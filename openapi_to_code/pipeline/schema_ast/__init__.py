"""
Schema AST module.

Contains the IR node definitions and the normalizer that builds them
from raw OpenAPI schemas.
"""

from __future__ import annotations

from .nodes import (
    AdditionalProperties,
    AdditionalPropertiesKind,
    AliasNode,
    ArrayNode,
    EnumConstant,
    EnumNode,
    Field,
    NodeArena,
    ObjectNode,
    PresenceState,
    ReferenceNode,
    Representation,
    ScalarKind,
    ScalarNode,
    SchemaNode,
    UnionNode,
    Variant,
)
from .normalizer import SchemaNormalizer

__all__ = [
    "SchemaNode",
    "ScalarNode",
    "ScalarKind",
    "EnumNode",
    "EnumConstant",
    "ArrayNode",
    "ObjectNode",
    "UnionNode",
    "Variant",
    "AliasNode",
    "ReferenceNode",
    "Field",
    "PresenceState",
    "Representation",
    "AdditionalProperties",
    "AdditionalPropertiesKind",
    "NodeArena",
    "SchemaNormalizer",
]
