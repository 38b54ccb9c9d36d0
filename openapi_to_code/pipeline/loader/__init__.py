"""Document loading and $ref resolution."""

from .document_loader import DocumentLoader
from .reference_resolver import (
    COMPONENT_SECTIONS,
    Operation,
    ReferenceResolver,
    ResolvedSpec,
    SchemaPath,
)

__all__ = [
    "COMPONENT_SECTIONS",
    "DocumentLoader",
    "Operation",
    "ReferenceResolver",
    "ResolvedSpec",
    "SchemaPath",
]
