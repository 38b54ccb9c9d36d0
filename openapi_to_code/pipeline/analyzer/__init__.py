"""
Analyzer module.

Contains allOf merging, union resolution, name allocation, cycle breaking
and the frozen type graph.
"""

from __future__ import annotations

from .cycles import CycleBreaker
from .merger import CompositionMerger, merge_additional_properties
from .name_allocator import NameAllocator
from .type_graph import TypeGraph
from .union_resolver import UnionResolver

__all__ = [
    "CompositionMerger",
    "merge_additional_properties",
    "UnionResolver",
    "NameAllocator",
    "CycleBreaker",
    "TypeGraph",
]
