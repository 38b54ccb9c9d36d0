"""
Reference resolver for $ref resolution.

Dereferences local, cross-file and cross-package JSON references and walks
every schema reachable from the root document. Cyclic references are
tolerated: the walk keeps a visited set keyed by schema path.
"""

from __future__ import annotations

import logging
import os
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ...errors import RefResolutionError
from .document_loader import DocumentLoader

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

# Component sections that define named types, in allocation order
COMPONENT_SECTIONS = ("schemas", "parameters", "responses", "requestBodies", "headers")

# Keywords whose value is a list of sub-schemas
_SCHEMA_LIST_KEYWORDS = ("allOf", "oneOf", "anyOf")


def escape_token(token: str) -> str:
    """Escape a JSON pointer token (RFC 6901)."""
    return token.replace("~", "~0").replace("/", "~1")


def unescape_token(token: str) -> str:
    """Unescape a JSON pointer token (RFC 6901)."""
    return token.replace("~1", "/").replace("~0", "~")


@dataclass(frozen=True, order=True)
class SchemaPath:
    """Location of a raw schema node: originating document plus JSON pointer."""

    # Document label, relative to the root document's directory
    document: str

    # JSON pointer inside the document ("" for the whole document)
    pointer: str = ""

    # Package owning the document (empty for the root package)
    package: str = field(default="", compare=False)

    @property
    def tokens(self) -> list[str]:
        """Unescaped pointer tokens."""
        if not self.pointer:
            return []
        return [unescape_token(token) for token in self.pointer[1:].split("/")]

    def child(self, *tokens: str | int) -> SchemaPath:
        """Path of a node below this one."""
        suffix = "".join("/" + escape_token(str(token)) for token in tokens)
        return SchemaPath(self.document, self.pointer + suffix, self.package)

    def __str__(self) -> str:
        text = f"{self.document}#{self.pointer}"
        if self.package:
            return f"{text} (package {self.package})"
        return text


@dataclass
class Operation:
    """An operation of the root document, with its parameters dereferenced."""

    operation_id: str
    method: str
    route: str
    path: SchemaPath
    raw: dict[str, Any]
    tags: list[str] = field(default_factory=list)

    # (path, parameter object) pairs: path-level first, overridden by operation-level
    parameters: list[tuple[SchemaPath, dict[str, Any]]] = field(default_factory=list)


def iter_subschemas(path: SchemaPath, raw: Any) -> list[tuple[SchemaPath, Any]]:
    """Direct sub-schemas of a raw schema node, in declaration order."""
    if not isinstance(raw, dict):
        return []
    children = []
    properties = raw.get("properties")
    if isinstance(properties, dict):
        for name, prop in properties.items():
            children.append((path.child("properties", name), prop))
    items = raw.get("items")
    if isinstance(items, dict):
        children.append((path.child("items"), items))
    elif isinstance(items, list):
        for index, item in enumerate(items):
            children.append((path.child("items", index), item))
    additional = raw.get("additionalProperties")
    if isinstance(additional, dict):
        children.append((path.child("additionalProperties"), additional))
    for keyword in _SCHEMA_LIST_KEYWORDS:
        members = raw.get(keyword)
        if isinstance(members, list):
            for index, member in enumerate(members):
                children.append((path.child(keyword, index), member))
    not_schema = raw.get("not")
    if isinstance(not_schema, dict):
        children.append((path.child("not"), not_schema))
    return children


def mapping_ref(value: str) -> str:
    """Turn a discriminator mapping value into a $ref (bare names are component schemas)."""
    if "#" in value or "/" in value or value.endswith((".json", ".yaml", ".yml")):
        return value
    return f"#/components/schemas/{escape_token(value)}"


def select_content(content: Any) -> tuple[str, Any] | None:
    """Pick the media type used to type a body: application/json, then any JSON type, then the first."""
    if not isinstance(content, dict):
        return None
    with_schema = [(ct, media) for ct, media in content.items() if isinstance(media, dict) and "schema" in media]
    if not with_schema:
        return None
    for ct, media in with_schema:
        if ct.split(";")[0].strip().lower() == "application/json":
            return ct, media
    for ct, media in with_schema:
        if "json" in ct.lower():
            return ct, media
    return with_schema[0]


class ReferenceResolver:
    """Resolves $ref to actual definitions, loading external documents on demand."""

    def __init__(self, loader: DocumentLoader, root_key: str, import_mapping: dict[str, str] | None = None):
        """
        Initialize the resolver.

        Args:
            loader: Loader holding (or able to load) every document
            root_key: Cache key of the root document
            import_mapping: Document location (relative to the root document) -> package name
        """
        self.loader = loader
        self.root_key = root_key
        self.root_dir = Path(root_key).parent
        self._labels: dict[str, str] = {}
        self._keys: dict[str, str] = {}
        self.import_mapping = {posixpath.normpath(location): package for location, package in (import_mapping or {}).items()}
        self.root = SchemaPath(self._label(root_key))

    def _label(self, key: str) -> str:
        if key not in self._labels:
            label = Path(os.path.relpath(key, self.root_dir)).as_posix()
            self._labels[key] = label
            self._keys[label] = key
        return self._labels[key]

    def package_of(self, document: str) -> str:
        """Package owning a document ("" and "-" both mean the root package)."""
        if document == self.root.document:
            return ""
        package = self.import_mapping.get(posixpath.normpath(document), "")
        return "" if package == "-" else package

    def path(self, document: str, pointer: str = "") -> SchemaPath:
        """Build a SchemaPath carrying the owning package."""
        return SchemaPath(document, pointer, self.package_of(document))

    def document(self, label: str) -> Any:
        """Raw document for a label."""
        return self.loader.get(self._keys[label])

    def lookup(self, path: SchemaPath) -> Any:
        """
        Navigate to the raw node a path points at.

        Args:
            path: The schema path

        Returns:
            The raw node

        Raises:
            RefResolutionError: If a pointer token does not exist
        """
        current: Any = self.document(path.document)
        for token in path.tokens:
            if isinstance(current, dict):
                if token not in current:
                    raise RefResolutionError(f"Cannot resolve pointer: key {token!r} not found", path)
                current = current[token]
            elif isinstance(current, list):
                try:
                    current = current[int(token)]
                except (ValueError, IndexError) as exc:
                    raise RefResolutionError(f"Cannot resolve pointer: invalid array index {token!r}", path) from exc
            else:
                raise RefResolutionError(f"Cannot resolve pointer: cannot navigate into {type(current).__name__}", path)
        return current

    def dereference(self, ref: Any, base: SchemaPath) -> tuple[SchemaPath, Any]:
        """
        Resolve a single $ref relative to the node that contains it.

        Args:
            ref: The $ref value (e.g. "#/components/schemas/Pet" or "common.yaml#/components/schemas/Id")
            base: Path of the node holding the $ref

        Returns:
            Tuple of (target path, raw target node)
        """
        target = self.ref_target(ref, base)
        return target, self.lookup(target)

    def ref_target(self, ref: Any, base: SchemaPath) -> SchemaPath:
        """
        Path a $ref points at, loading the external document it names.

        Raises:
            RefResolutionError: For a malformed or remote $ref, or an external
                document that cannot be read; the error carries ``base``
        """
        if not isinstance(ref, str):
            raise RefResolutionError(f"$ref must be a string, got {type(ref).__name__}", base)
        if "://" in ref:
            raise RefResolutionError(f"Remote $ref not supported: {ref}", base)

        location, _, fragment = ref.partition("#")
        if fragment and not fragment.startswith("/"):
            raise RefResolutionError(f"Only JSON pointer fragments are supported: {ref}", base)

        if location:
            base_dir = Path(self._keys[base.document]).parent
            try:
                key, _ = self.loader.load(base_dir / location)
            except RefResolutionError as exc:
                raise RefResolutionError(f"$ref {ref!r}: {exc.message}", base) from exc
            document = self._label(key)
        else:
            document = base.document

        return self.path(document, fragment)

    def follow(self, path: SchemaPath, raw: Any) -> tuple[SchemaPath, Any]:
        """Follow a chain of $ref objects (parameters, responses...) to the final object."""
        seen = set()
        while isinstance(raw, dict) and "$ref" in raw:
            if path in seen:
                raise RefResolutionError("Circular $ref chain", path)
            seen.add(path)
            path, raw = self.dereference(raw["$ref"], path)
        return path, raw

    @property
    def version(self) -> tuple[int, int]:
        """OpenAPI version of the root document as (major, minor)."""
        declared = str(self.document(self.root.document).get("openapi", "3.0"))
        parts = declared.split(".")
        try:
            return int(parts[0]), int(parts[1]) if len(parts) > 1 else 0
        except ValueError:
            return 3, 0

    def component_schemas(self, section: str) -> list[tuple[str, SchemaPath, Any]]:
        """
        Schemas declared by a component section of the root document.

        Parameters and headers contribute their ``schema``; responses and
        request bodies the schema of their selected media type.

        Returns:
            (component name, schema path, raw schema) triples in declaration order
        """
        components = self.document(self.root.document).get("components") or {}
        declared = components.get(section) or {}
        result = []
        for name, raw in declared.items():
            path = self.root.child("components", section, name)
            if section == "schemas":
                result.append((name, path, raw))
                continue
            path, raw = self.follow(path, raw)
            located = self.object_schema(path, raw)
            if located is not None:
                result.append((name, *located))
        return result

    def object_schema(self, path: SchemaPath, raw: Any) -> tuple[SchemaPath, Any] | None:
        """Schema of a parameter, header, response or request body object."""
        if not isinstance(raw, dict):
            return None
        if "schema" in raw:
            return path.child("schema"), raw["schema"]
        selected = select_content(raw.get("content"))
        if selected is None:
            return None
        content_type, media = selected
        return path.child("content", content_type, "schema"), media["schema"]

    def operations(self) -> list[Operation]:
        """Operations of the root document, in declaration order."""
        paths = self.document(self.root.document).get("paths") or {}
        operations = []
        for route, item in paths.items():
            item_path, item = self.follow(self.root.child("paths", route), item)
            if not isinstance(item, dict):
                continue
            shared = self._parameters(item_path, item)
            for method in HTTP_METHODS:
                raw = item.get(method)
                if not isinstance(raw, dict):
                    continue
                op_path = item_path.child(method)
                parameters = dict(shared)
                parameters.update(self._parameters(op_path, raw))
                operations.append(
                    Operation(
                        operation_id=raw.get("operationId") or f"{method} {route}",
                        method=method,
                        route=route,
                        path=op_path,
                        raw=raw,
                        tags=list(raw.get("tags") or []),
                        parameters=list(parameters.values()),
                    )
                )
        return operations

    def _parameters(self, path: SchemaPath, raw: dict[str, Any]) -> dict[tuple[str, str], tuple[SchemaPath, dict[str, Any]]]:
        result = {}
        for index, param in enumerate(raw.get("parameters") or []):
            param_path, param = self.follow(path.child("parameters", index), param)
            if isinstance(param, dict):
                result[(param.get("name", ""), param.get("in", ""))] = (param_path, param)
        return result

    def operation_schemas(self, operation: Operation) -> list[tuple[SchemaPath, Any]]:
        """Every schema an operation declares (parameters, request bodies, responses)."""
        found = []
        for param_path, param in operation.parameters:
            located = self.object_schema(param_path, param)
            if located is not None:
                found.append(located)
        body = operation.raw.get("requestBody")
        if body is not None:
            body_path, body = self.follow(operation.path.child("requestBody"), body)
            found.extend(self._content_schemas(body_path, body))
        for status, response in (operation.raw.get("responses") or {}).items():
            response_path, response = self.follow(operation.path.child("responses", str(status)), response)
            found.extend(self._content_schemas(response_path, response))
        return found

    def _content_schemas(self, path: SchemaPath, raw: Any) -> list[tuple[SchemaPath, Any]]:
        if not isinstance(raw, dict):
            return []
        content = raw.get("content") or {}
        return [(path.child("content", ct, "schema"), media["schema"]) for ct, media in content.items() if isinstance(media, dict) and "schema" in media]

    def resolve(self) -> ResolvedSpec:
        """
        Walk every schema reachable from the root document.

        Returns:
            ResolvedSpec holding the map of schema path -> raw schema node
        """
        nodes: dict[SchemaPath, Any] = {}
        roots = []
        for section in COMPONENT_SECTIONS:
            roots.extend((path, raw) for _, path, raw in self.component_schemas(section))
        for operation in self.operations():
            roots.extend(self.operation_schemas(operation))
        for path, raw in roots:
            self._walk(path, raw, nodes)
        logger.debug("Resolved %d schema nodes from %s", len(nodes), self.root.document)
        return ResolvedSpec(self, nodes)

    def reachable(self, roots: list[tuple[SchemaPath, Any]]) -> set[SchemaPath]:
        """Paths of every schema reachable from the given (path, raw schema) roots."""
        nodes: dict[SchemaPath, Any] = {}
        for path, raw in roots:
            self._walk(path, raw, nodes)
        return set(nodes)

    def _walk(self, path: SchemaPath, raw: Any, nodes: dict[SchemaPath, Any]) -> None:
        """Depth-first walk with a visited set, so cycles terminate."""
        stack = [(path, raw)]
        while stack:
            path, raw = stack.pop()
            if path in nodes:
                continue
            nodes[path] = raw
            if not isinstance(raw, dict):
                continue
            if "$ref" in raw:
                stack.append(self.dereference(raw["$ref"], path))
                continue
            children = iter_subschemas(path, raw)
            discriminator = raw.get("discriminator")
            if isinstance(discriminator, dict):
                for value in (discriminator.get("mapping") or {}).values():
                    children.append(self.dereference(mapping_ref(value), path))
            stack.extend(reversed(children))


@dataclass
class ResolvedSpec:
    """Every raw schema node reachable from the root document, keyed by path."""

    resolver: ReferenceResolver
    nodes: dict[SchemaPath, Any] = field(default_factory=dict)

    @property
    def root(self) -> SchemaPath:
        return self.resolver.root

    @property
    def version(self) -> tuple[int, int]:
        return self.resolver.version

    def __contains__(self, path: SchemaPath) -> bool:
        return path in self.nodes

    def __getitem__(self, path: SchemaPath) -> Any:
        if path in self.nodes:
            return self.nodes[path]
        return self.resolver.lookup(path)

    def dereference(self, ref: Any, base: SchemaPath) -> tuple[SchemaPath, Any]:
        """Resolve a $ref to its target path and the raw node recorded for it."""
        target = self.resolver.ref_target(ref, base)
        return target, self[target]

    def follow(self, path: SchemaPath, raw: Any) -> tuple[SchemaPath, Any]:
        return self.resolver.follow(path, raw)
