"""
Pipeline - OpenAPI document to type graph.

This module provides a multi-phase architecture for turning an OpenAPI
document into an emission-ready type graph:

1. Phase 1 (Loader): Load documents and resolve $ref
2. Phase 2 (Normalizer): Build IR nodes from raw schemas
3. Phase 3 (Merger): Flatten allOf compositions
4. Phase 4 (Union Resolver): Discriminators and probe order
5. Phase 5 (Name Allocator): Unique identifiers
6. Phase 6 (Cycle Breaker): Reference back-edges
7. Phase 7 (Type Graph): Freeze
"""

from __future__ import annotations

from .analyzer import TypeGraph
from .config import ProbeOrder, TypeGraphConfig
from .generator import PipelineGenerator

__all__ = [
    "PipelineGenerator",
    "TypeGraph",
    "TypeGraphConfig",
    "ProbeOrder",
]
