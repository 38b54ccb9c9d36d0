"""
Runtime support: decode and encode JSON payloads with a type graph.
"""

from __future__ import annotations

from .codec import GraphCodec
from .record import UNSET, FieldState, Record
from .union import UnionValue

__all__ = [
    "GraphCodec",
    "Record",
    "FieldState",
    "UNSET",
    "UnionValue",
]
