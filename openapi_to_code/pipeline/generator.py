"""
Pipeline generator: runs every phase from document to type graph.

1. Reference Resolver: load the root document, dereference $ref
2. Schema Normalizer: raw schemas -> IR nodes
3. Composition Merger: flatten allOf
4. Union Resolver: discriminator mappings and probe order
5. Name Allocator: type names, field identifiers, variants, enum constants
6. Cycle Breaker: back-edges -> reference nodes
7. Type Graph: freeze
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from ..utils import get_name_normalizer
from .analyzer.cycles import CycleBreaker
from .analyzer.merger import CompositionMerger
from .analyzer.name_allocator import NameAllocator
from .analyzer.type_graph import TypeGraph
from .analyzer.union_resolver import UnionResolver
from .config import TypeGraphConfig
from .loader import DocumentLoader, ReferenceResolver
from .schema_ast.normalizer import SchemaNormalizer

logger = logging.getLogger(__name__)


class PipelineGenerator:
    """Builds a type graph from an OpenAPI document."""

    def __init__(
        self,
        document: dict[str, Any] | str | Path,
        config: TypeGraphConfig | None = None,
        language: str = "go",
        location: str | Path | None = None,
    ):
        """
        Initialize the generator.

        Args:
            document: Parsed root document, or the path of a JSON/YAML file
            config: Pipeline configuration
            language: Target language whose reserved words are avoided ("go", "python" or "cs")
            location: Where a parsed document is considered to live; external
                references are resolved relative to it (defaults to the working directory)
        """
        self.document = document
        self.config = config or TypeGraphConfig()
        self.language = language
        self.location = location
        self.loader = DocumentLoader()

    def generate(self) -> TypeGraph:
        """
        Run the full pipeline.

        Returns:
            The frozen type graph

        Raises:
            TypeGraphError: On the first error of any phase; no partial graph is returned
        """
        if isinstance(self.document, dict):
            root_key = self.loader.register(self.document, self.location or "openapi.json")
        else:
            root_key, _ = self.loader.load(self.document)
        normalize_name = get_name_normalizer(self.config.name_normalizer, self.config.additional_initialisms)

        # Phase 1: Resolve references
        spec = ReferenceResolver(self.loader, root_key, self.config.import_mapping).resolve()

        # Phase 2: Normalize schemas
        arena = SchemaNormalizer(spec, self.config, normalize_name).normalize()

        # Phase 3: Flatten allOf
        CompositionMerger(arena).merge_all()

        # Phase 4: Resolve unions
        UnionResolver(arena, self.config.union_probe_order).resolve_all()

        # Phase 5: Allocate names
        NameAllocator(arena, self.config, self.language, normalize_name).allocate()

        # Phase 6: Break cycles
        CycleBreaker(arena).break_cycles()

        # Phase 7: Freeze
        graph = TypeGraph(arena, self.config)
        logger.debug("Built type graph: %d nodes, %d named types", len(graph), len(graph.named_types))
        return graph
