"""OpenAPI to Code

A Python package that turns OpenAPI 3.0/3.1 documents into a resolved,
name-collision-free type graph ready for code emission, with a runtime
codec for the resulting types.
"""

__version__ = "1.0.1"
__author__ = "François Lagunas"

from .errors import (
    CodecError,
    CyclicSchemaError,
    DecodeError,
    EncodeError,
    ExtensionValueError,
    FrozenGraphError,
    InvalidSchemaError,
    NameCollisionExhausted,
    NotSetError,
    RefResolutionError,
    SchemaMergeError,
    TypeGraphError,
    UnionResolutionError,
)
from .pipeline import PipelineGenerator, ProbeOrder, TypeGraph, TypeGraphConfig
from .runtime import GraphCodec, Record, UnionValue

__all__ = [
    "PipelineGenerator",
    "TypeGraph",
    "TypeGraphConfig",
    "ProbeOrder",
    "GraphCodec",
    "Record",
    "UnionValue",
    "TypeGraphError",
    "RefResolutionError",
    "SchemaMergeError",
    "UnionResolutionError",
    "NameCollisionExhausted",
    "CyclicSchemaError",
    "InvalidSchemaError",
    "ExtensionValueError",
    "FrozenGraphError",
    "CodecError",
    "DecodeError",
    "EncodeError",
    "NotSetError",
]
