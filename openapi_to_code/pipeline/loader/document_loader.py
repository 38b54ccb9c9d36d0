"""
Load OpenAPI documents from the local filesystem.

JSON files are parsed with the json module, anything else with PyYAML
(YAML being a superset of JSON). Documents are cached by absolute path so
that every external reference to the same file shares one parsed tree.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from ...errors import RefResolutionError

logger = logging.getLogger(__name__)


class DocumentLoader:
    """Parses and caches documents by absolute path."""

    def __init__(self):
        self._documents: dict[str, Any] = {}

    @staticmethod
    def key_for(location: str | Path) -> str:
        """Absolute, normalized path used as the cache key of a document."""
        return str(Path(location).resolve())

    def register(self, document: dict[str, Any], location: str | Path) -> str:
        """
        Register an already-parsed document under a location.

        External references from the document are resolved relative to
        the directory of ``location``.

        Args:
            document: The parsed document
            location: Path the document is considered to live at

        Returns:
            The cache key of the document
        """
        key = self.key_for(location)
        self._documents[key] = document
        return key

    def load(self, location: str | Path) -> tuple[str, Any]:
        """
        Load a document, reusing the cached copy when present.

        Args:
            location: Path to a JSON or YAML file

        Returns:
            Tuple of (cache key, parsed document)
        """
        key = self.key_for(location)
        if key in self._documents:
            return key, self._documents[key]

        path = Path(key)
        if not path.is_file():
            raise RefResolutionError(f"Document not found: {location}")
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise RefResolutionError(f"Failed to read document {location}: {exc}") from exc

        document = self._parse(content, path)
        logger.debug("Loaded document %s", key)
        self._documents[key] = document
        return key, document

    def get(self, key: str) -> Any:
        """Return a document that was already loaded or registered."""
        return self._documents[key]

    def _parse(self, content: str, path: Path) -> Any:
        """Parse content as JSON for .json files and as YAML otherwise."""
        try:
            if path.suffix.lower() == ".json":
                document = json.loads(content)
            else:
                document = yaml.safe_load(content)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise RefResolutionError(f"Failed to parse document {path}: {exc}") from exc

        if not isinstance(document, dict):
            raise RefResolutionError(f"Document {path} must be a JSON/YAML object (got {type(document).__name__})")
        return document
