"""
Schema normalizer: raw schema dicts -> IR nodes.

Walks component sections and operations of the resolved document and
builds one arena node per schema path. A node is allocated before its
children are visited, so references back to a schema that is still being
built simply reuse its id. Every schema that needs a type name is
registered as a ``NamedEntry`` for the name allocator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ...errors import CyclicSchemaError, InvalidSchemaError, SchemaMergeError
from ...utils import NameNormalizer, schema_name_to_type_name
from ..config import TypeGraphConfig
from ..loader.reference_resolver import COMPONENT_SECTIONS, Operation, ResolvedSpec, SchemaPath, mapping_ref
from .extensions import TypeExtensions, collect_extensions, read_field_extensions, read_type_extensions
from .nodes import (
    AdditionalProperties,
    AliasNode,
    ArrayNode,
    DiscriminatorSpec,
    EnumNode,
    Field,
    NamedEntry,
    Namespace,
    NodeArena,
    ObjectNode,
    ScalarKind,
    ScalarNode,
    UnionNode,
    Variant,
    order_fields,
    same_literal,
)
from .nullable import is_null_schema, is_nullable, split_nullable

logger = logging.getLogger(__name__)

_SCALAR_TYPES = {
    "string": ScalarKind.STRING,
    "integer": ScalarKind.INTEGER,
    "number": ScalarKind.NUMBER,
    "boolean": ScalarKind.BOOLEAN,
}

# Pointer tokens left out of names derived from a path
_POINTER_SKIP = {"components", "schemas", "properties", "definitions", "$defs", "content", "schema"}

_CONTENT_TYPE_TAGS = {
    "application/json": "JSON",
    "application/x-www-form-urlencoded": "Formdata",
    "multipart/form-data": "Multipart",
    "text/plain": "Text",
    "application/octet-stream": "Octet",
}


@dataclass(frozen=True)
class NameContext:
    """Where an inline schema sits: nearest named ancestor plus the name parts since then."""

    parent: NamedEntry | None = None
    parts: tuple[str, ...] = ()

    # allOf members are merged away and never get their own name
    anonymous: bool = False

    def child(self, *parts: str) -> NameContext:
        return NameContext(self.parent, self.parts + parts)

    def as_member(self) -> NameContext:
        return NameContext(self.parent, self.parts, anonymous=True)


@dataclass(frozen=True)
class RootInfo:
    """A schema in a naming position: component or operation-derived."""

    namespace: Namespace
    parts: tuple[str, ...]
    order: tuple


def content_type_tag(content_type: str, normalize: NameNormalizer) -> str:
    """Short name of a media type used in operation-derived names ("application/json" -> "JSON")."""
    base = content_type.split(";")[0].strip().lower()
    if base in _CONTENT_TYPE_TAGS:
        return _CONTENT_TYPE_TAGS[base]
    if base.endswith("+json"):
        return normalize(base.split("/")[-1][: -len("+json")]) + "JSON"
    return normalize(base)


class SchemaNormalizer:
    """Builds the node arena from a resolved document."""

    def __init__(self, spec: ResolvedSpec, config: TypeGraphConfig, normalize_name: NameNormalizer):
        """
        Initialize the normalizer.

        Args:
            spec: The resolved document
            config: Pipeline configuration
            normalize_name: Casing strategy used for name candidates
        """
        self.spec = spec
        self.config = config
        self.normalize_name = normalize_name
        self.version = spec.version
        self.arena = NodeArena()
        self._roots: dict[SchemaPath, RootInfo] = {}
        self._ref_chain: set[SchemaPath] = set()
        self._external_roots = 0
        self._inline_sequence = 0
        self._operation_sequence = 0

    def normalize(self) -> NodeArena:
        """
        Normalize every component and operation schema.

        Returns:
            The populated node arena
        """
        resolver = self.spec.resolver
        sections = self.config.include_components or list(COMPONENT_SECTIONS)

        reachable = self._reachable_from_operations() if self.config.prune_unused_components else None

        declared = []
        pruned = 0
        for section_index, section in enumerate(COMPONENT_SECTIONS):
            if section not in sections:
                continue
            for declaration_index, (name, path, raw) in enumerate(resolver.component_schemas(section)):
                if path in self._roots:
                    continue
                if reachable is not None and path not in reachable:
                    pruned += 1
                    continue
                self._roots[path] = RootInfo(Namespace(section), (self._type_name(name),), (0, section_index, declaration_index))
                declared.append((path, raw))

        if pruned:
            logger.debug("Pruned %d components unused by the selected operations", pruned)
        for path, raw in declared:
            self._schema(path, raw, NameContext())

        if self.config.generate_operation_types:
            for index, operation in enumerate(self._selected_operations()):
                self._operation(index, operation)

        self._propagate_nullability()
        logger.debug("Normalized %d nodes, %d named entries", len(self.arena), len(self.arena.entries))
        return self.arena

    def _type_name(self, name: str) -> str:
        return schema_name_to_type_name(name, self.normalize_name)

    def _reachable_from_operations(self) -> set[SchemaPath]:
        resolver = self.spec.resolver
        roots = []
        for operation in self._selected_operations():
            roots.extend(resolver.operation_schemas(operation))
        return resolver.reachable(roots)

    # Operations

    def _selected_operations(self) -> list[Operation]:
        config = self.config
        selected = []
        for operation in self.spec.resolver.operations():
            if config.include_operation_ids and operation.operation_id not in config.include_operation_ids:
                continue
            if operation.operation_id in config.exclude_operation_ids:
                continue
            if config.include_tags and not set(operation.tags) & set(config.include_tags):
                continue
            if set(operation.tags) & set(config.exclude_tags):
                continue
            selected.append(operation)
        return selected

    def _operation(self, index: int, operation: Operation) -> None:
        """Normalize the schemas of one operation, naming those declared inline."""
        resolver = self.spec.resolver
        base = self._type_name(operation.operation_id)

        for param_path, param in operation.parameters:
            located = resolver.object_schema(param_path, param)
            if located is not None:
                candidate = base + self._type_name(str(param.get("name", ""))) + "Parameter"
                self._operation_schema(index, *located, candidate, always_named=False)

        body = operation.raw.get("requestBody")
        if body is not None:
            body_path, body = resolver.follow(operation.path.child("requestBody"), body)
            for content_type, schema_path, schema in self._content(body_path, body):
                candidate = base + content_type_tag(content_type, self.normalize_name) + "RequestBody"
                self._operation_schema(index, schema_path, schema, candidate, always_named=True)

        for status, response in (operation.raw.get("responses") or {}).items():
            status = str(status)
            response_path, response = resolver.follow(operation.path.child("responses", status), response)
            status_tag = status if status[:1].isdigit() else self._type_name(status)
            for content_type, schema_path, schema in self._content(response_path, response):
                candidate = base + status_tag + content_type_tag(content_type, self.normalize_name) + "Response"
                self._operation_schema(index, schema_path, schema, candidate, always_named=False)

    def _content(self, path: SchemaPath, raw: Any) -> list[tuple[str, SchemaPath, Any]]:
        if not isinstance(raw, dict):
            return []
        content = raw.get("content") or {}
        return [(ct, path.child("content", ct, "schema"), media["schema"]) for ct, media in content.items() if isinstance(media, dict) and "schema" in media]

    def _operation_schema(self, index: int, path: SchemaPath, raw: Any, candidate: str, always_named: bool) -> None:
        if self.arena.node_at(path) is not None:
            return
        if always_named or self._is_nameable(raw):
            self._operation_sequence += 1
            root = RootInfo(Namespace.OPERATION, (candidate,), (2, index, self._operation_sequence))
            self._schema(path, raw, NameContext(), root)
        else:
            self._schema(path, raw, NameContext(None, (candidate,)))

    def _is_nameable(self, raw: Any) -> bool:
        """Whether an inline schema defines a type of its own (record, enum or union)."""
        if not isinstance(raw, dict) or "$ref" in raw:
            return False
        raw, _ = split_nullable(raw, self.version)
        if "x-type" in raw or "x-go-type" in raw:
            return False
        if "x-type-name" in raw or "x-go-type-name" in raw:
            return True
        if "enum" in raw or "const" in raw or raw.get("properties") or raw.get("allOf"):
            return True
        for keyword in ("oneOf", "anyOf"):
            if len(raw.get(keyword) or []) > 1:
                return True
        return isinstance(raw.get("type"), list) and len(raw["type"]) > 1

    # Schemas

    def _root_info(self, path: SchemaPath) -> RootInfo | None:
        """Naming information for a component reached by reference."""
        if path in self._roots:
            return self._roots[path]
        tokens = path.tokens
        if not tokens and path.document != self.spec.root.document:
            section, name = "schemas", Path(path.document).stem
        elif len(tokens) == 3 and tokens[:2] == ["components", "schemas"]:
            section, name = "schemas", tokens[2]
        elif len(tokens) == 4 and tokens[0] == "components" and tokens[1] in ("parameters", "headers") and tokens[3] == "schema":
            section, name = tokens[1], tokens[2]
        elif len(tokens) == 6 and tokens[0] == "components" and tokens[1] in ("responses", "requestBodies") and tokens[3:6:2] == ["content", "schema"]:
            section, name = tokens[1], tokens[2]
        else:
            return None
        self._external_roots += 1
        info = RootInfo(Namespace(section), (self._type_name(name),), (1, self._external_roots))
        self._roots[path] = info
        return info

    def _ref_context(self, path: SchemaPath) -> NameContext:
        """Name context of a non-component schema reached by reference."""
        tokens = [token for token in path.tokens if token not in _POINTER_SKIP]
        if not tokens:
            tokens = [Path(path.document).stem]
        parts = [token if token.isdigit() else self._type_name(token) for token in tokens]
        return NameContext(None, ("".join(parts),))

    def _schema(self, path: SchemaPath, raw: Any, context: NameContext, root: RootInfo | None = None) -> int:
        """
        Node id for the schema at ``path``, building it on first use.

        Args:
            path: Schema path
            raw: Raw schema at that path
            context: Name context for inline schemas
            root: Naming information when the schema sits in a naming position

        Returns:
            The node id
        """
        existing = self.arena.node_at(path)
        if existing is not None:
            return existing
        if root is None:
            root = self._root_info(path)
        if root is None and isinstance(raw, dict) and "$ref" in raw:
            if path in self._ref_chain:
                raise CyclicSchemaError("$ref chain refers back to itself", path)
            self._ref_chain.add(path)
            try:
                target_path, target_raw = self.spec.dereference(raw["$ref"], path)
                target = self._schema(target_path, target_raw, self._ref_context(target_path))
            finally:
                self._ref_chain.discard(path)
            self.arena.bind(path, target)
            return target
        return self._build(path, raw, context, root)

    def _build(self, path: SchemaPath, raw: Any, context: NameContext, root: RootInfo | None) -> int:
        if isinstance(raw, bool):
            if not raw:
                raise InvalidSchemaError("Schema 'false' accepts no value", path)
            raw = {}
        if not isinstance(raw, dict):
            raise InvalidSchemaError(f"Schema must be an object or a boolean, got {type(raw).__name__}", path)

        type_ext = read_type_extensions(raw, path)

        if "$ref" in raw:
            node = AliasNode(path=path, extensions=collect_extensions(raw), nullable=raw.get("nullable") is True)
            node_id = self.arena.add(node, path)
            self._register(node_id, context, root, type_ext)
            target_path, target_raw = self.spec.dereference(raw["$ref"], path)
            node.target = self._schema(target_path, target_raw, self._ref_context(target_path))
            return node_id

        source = raw
        raw, nullable = split_nullable(raw, self.version)
        common = {
            "path": path,
            "nullable": nullable,
            "description": raw.get("description") or "",
            "deprecated": raw.get("deprecated") is True,
            "extensions": collect_extensions(raw),
        }

        if type_ext.override_type:
            node = AliasNode(override_type=type_ext.override_type, override_import=type_ext.override_import, **common)
            node_id = self.arena.add(node, path)
            if root is not None:
                self._register(node_id, context, root, type_ext)
            return node_id

        union_keyword = next((keyword for keyword in ("oneOf", "anyOf") if keyword in raw), None)
        all_of = raw.get("allOf")
        if all_of is not None:
            if not isinstance(all_of, list) or not all_of:
                raise InvalidSchemaError("allOf must be a non-empty list", path)
            if union_keyword is not None:
                raise SchemaMergeError(f"allOf combined with {union_keyword} is not supported", path)
            if len(all_of) == 1 and not self._declares_object_members(raw):
                return self._passthrough(path, path.child("allOf", 0), all_of[0], common, context, root, type_ext)
            return self._object(path, raw, common, context, root, type_ext)

        if union_keyword is not None:
            members = raw[union_keyword]
            if not isinstance(members, list):
                raise InvalidSchemaError(f"{union_keyword} must be a list", path)
            indexed = [(index, member) for index, member in enumerate(source[union_keyword]) if not is_null_schema(member)]
            if not indexed:
                return self._scalar(path, ScalarKind.DYNAMIC, "", common, context, root, type_ext, empty=True)
            if len(indexed) == 1 and not raw.get("properties"):
                index, member = indexed[0]
                return self._passthrough(path, path.child(union_keyword, index), member, common, context, root, type_ext)
            return self._union(path, raw, union_keyword, indexed, common, context, root, type_ext)

        if "enum" in raw or "const" in raw:
            return self._enum(path, raw, common, context, root, type_ext)

        declared = raw.get("type")
        if isinstance(declared, list):
            return self._type_union(path, raw, declared, common, context, root, type_ext)
        if declared == "array" or (declared is None and "items" in raw):
            return self._array(path, raw, common, context, root, type_ext)
        if declared == "object" or (declared is None and self._declares_object_members(raw)):
            return self._object(path, raw, common, context, root, type_ext)
        if declared in _SCALAR_TYPES:
            return self._scalar(path, _SCALAR_TYPES[declared], raw.get("format") or "", common, context, root, type_ext)
        if declared is None:
            return self._scalar(path, ScalarKind.DYNAMIC, raw.get("format") or "", common, context, root, type_ext, empty=True)
        raise InvalidSchemaError(f"Unknown schema type {declared!r}", path)

    @staticmethod
    def _declares_object_members(raw: dict[str, Any]) -> bool:
        return bool(raw.get("properties")) or "required" in raw or "additionalProperties" in raw

    def _register(self, node_id: int, context: NameContext, root: RootInfo | None, type_ext: TypeExtensions) -> NamedEntry:
        """Request a type name for a node."""
        node = self.arena[node_id]
        package = node.path.package if node.path is not None else ""
        if root is not None:
            entry = NamedEntry(node_id, root.namespace, parts=root.parts, package=package, path=node.path, order=root.order)
        else:
            self._inline_sequence += 1
            entry = NamedEntry(
                node_id,
                Namespace.INLINE,
                parts=context.parts,
                parent=context.parent,
                package=package,
                path=node.path,
                order=(3, self._inline_sequence),
            )
        if type_ext.type_name:
            entry.parts = (type_ext.type_name,)
            entry.parent = None
            entry.override = True
        self.arena.entries.append(entry)
        return entry

    def _named_context(self, node_id: int, context: NameContext, root: RootInfo | None, type_ext: TypeExtensions, nameable: bool) -> NameContext:
        """Register the node when it gets a name and return the context for its children."""
        if root is not None or type_ext.type_name or (nameable and not context.anonymous):
            return NameContext(self._register(node_id, context, root, type_ext))
        return NameContext(context.parent, context.parts)

    def _passthrough(
        self,
        path: SchemaPath,
        member_path: SchemaPath,
        member: Any,
        common: dict[str, Any],
        context: NameContext,
        root: RootInfo | None,
        type_ext: TypeExtensions,
    ) -> int:
        """A composition with a single member is that member (a named alias when referenced)."""
        if isinstance(member, dict) and "$ref" in member:
            if root is None and not type_ext.type_name:
                target = self._schema(member_path, member, context)
                self.arena.bind(path, target)
                return target
            node = AliasNode(**common)
            node_id = self.arena.add(node, path)
            self._register(node_id, context, root, type_ext)
            node.target = self._schema(member_path, member, context)
            return node_id

        node_id = self._schema(member_path, member, context, root)
        self.arena.bind(path, node_id)
        node = self.arena[node_id]
        node.nullable = node.nullable or common["nullable"]
        return node_id

    def _scalar(
        self,
        path: SchemaPath,
        kind: ScalarKind,
        fmt: str,
        common: dict[str, Any],
        context: NameContext,
        root: RootInfo | None,
        type_ext: TypeExtensions,
        empty: bool = False,
    ) -> int:
        node_id = self.arena.add(ScalarNode(kind=kind, format=fmt, empty=empty, **common), path)
        self._named_context(node_id, context, root, type_ext, nameable=False)
        return node_id

    def _enum(self, path: SchemaPath, raw: dict[str, Any], common: dict[str, Any], context: NameContext, root: RootInfo | None, type_ext: TypeExtensions) -> int:
        declared_values = raw["enum"] if "enum" in raw else [raw["const"]]
        if not isinstance(declared_values, list) or not declared_values:
            raise InvalidSchemaError("enum must be a non-empty list", path)
        # Duplicates are dropped together with their x-enum-varnames entry
        declared_names = list(type_ext.enum_var_names or [])
        values, member_names = [], []
        for index, value in enumerate(declared_values):
            if any(same_literal(seen, value) for seen in values):
                continue
            values.append(value)
            if index < len(declared_names):
                member_names.append(declared_names[index])

        node = EnumNode(kind=self._enum_kind(raw.get("type"), values), values=values, member_names=member_names, **common)
        node_id = self.arena.add(node, path)
        self._named_context(node_id, context, root, type_ext, nameable=True)
        return node_id

    @staticmethod
    def _enum_kind(declared: Any, values: list[Any]) -> ScalarKind:
        if declared in _SCALAR_TYPES:
            return _SCALAR_TYPES[declared]
        if all(isinstance(value, bool) for value in values):
            return ScalarKind.BOOLEAN
        if all(isinstance(value, int) and not isinstance(value, bool) for value in values):
            return ScalarKind.INTEGER
        if all(isinstance(value, (int, float)) and not isinstance(value, bool) for value in values):
            return ScalarKind.NUMBER
        if all(isinstance(value, str) for value in values):
            return ScalarKind.STRING
        return ScalarKind.DYNAMIC

    def _array(self, path: SchemaPath, raw: dict[str, Any], common: dict[str, Any], context: NameContext, root: RootInfo | None, type_ext: TypeExtensions) -> int:
        node = ArrayNode(**common)
        node_id = self.arena.add(node, path)
        children = self._named_context(node_id, context, root, type_ext, nameable=False)

        items = raw.get("items")
        if items is None:
            node.element = self.arena.add(ScalarNode(path=path.child("items"), kind=ScalarKind.DYNAMIC, empty=True))
        elif isinstance(items, list):
            raise InvalidSchemaError("Tuple-style items are not supported", path)
        else:
            node.element = self._schema(path.child("items"), items, children.child("Item"))
            node.element_nullable = is_nullable(items, self.version)
        return node_id

    def _object(self, path: SchemaPath, raw: dict[str, Any], common: dict[str, Any], context: NameContext, root: RootInfo | None, type_ext: TypeExtensions) -> int:
        node = ObjectNode(**common)
        node_id = self.arena.add(node, path)
        nameable = bool(raw.get("properties")) or bool(raw.get("allOf"))
        children = self._named_context(node_id, context, root, type_ext, nameable)

        node.required = self._required(path, raw)
        node.fields = order_fields(self._fields(path, raw, children, node.required))
        node.additional_properties = self._additional_properties(path, raw, children)
        node.all_of = [self._schema(path.child("allOf", index), member, children.as_member()) for index, member in enumerate(raw.get("allOf") or [])]
        return node_id

    @staticmethod
    def _required(path: SchemaPath, raw: dict[str, Any]) -> list[str]:
        required = raw.get("required") or []
        if not isinstance(required, list) or not all(isinstance(name, str) for name in required):
            raise InvalidSchemaError("required must be a list of property names", path)
        result = []
        for name in required:
            if name not in result:
                result.append(name)
        return result

    def _fields(self, path: SchemaPath, raw: dict[str, Any], context: NameContext, required: list[str]) -> list[Field]:
        """One Field per declared property, in declaration order."""
        properties = raw.get("properties") or {}
        if not isinstance(properties, dict):
            raise InvalidSchemaError("properties must be an object", path)

        fields = []
        for name, prop in properties.items():
            prop_path = path.child("properties", name)
            ext = read_field_extensions(prop, prop_path)
            schema_id = self._schema(prop_path, prop, context.child(self._type_name(name)))
            declared = prop if isinstance(prop, dict) else {}
            fields.append(
                Field(
                    name=name,
                    schema=schema_id,
                    required=name in required,
                    nullable=is_nullable(prop, self.version),
                    read_only=declared.get("readOnly") is True,
                    write_only=declared.get("writeOnly") is True,
                    deprecated=declared.get("deprecated") is True,
                    description=declared.get("description") or "",
                    override_identifier=ext.field_name,
                    omit_empty=ext.omit_empty,
                    omit_zero=ext.omit_zero,
                    zero_predicate=ext.zero_predicate,
                    ignored=ext.ignored,
                    extra_tags=ext.extra_tags,
                    skip_optional_pointer=ext.skip_optional_pointer,
                    order=ext.order,
                    deprecated_reason=ext.deprecated_reason,
                )
            )
        return fields

    def _additional_properties(self, path: SchemaPath, raw: dict[str, Any], context: NameContext) -> AdditionalProperties:
        if "additionalProperties" not in raw:
            return AdditionalProperties.unspecified()
        value = raw["additionalProperties"]
        if value is False:
            return AdditionalProperties.forbidden()
        if value is True or value == {}:
            return AdditionalProperties.any()
        if not isinstance(value, dict):
            raise InvalidSchemaError("additionalProperties must be a boolean or a schema", path)
        target = self._schema(path.child("additionalProperties"), value, context.child("AdditionalProperties"))
        node = self.arena[target]
        if "$ref" not in value and isinstance(node, ScalarNode) and node.empty:
            return AdditionalProperties.any()
        return AdditionalProperties.typed(target)

    def _union(
        self,
        path: SchemaPath,
        raw: dict[str, Any],
        keyword: str,
        members: list[tuple[int, Any]],
        common: dict[str, Any],
        context: NameContext,
        root: RootInfo | None,
        type_ext: TypeExtensions,
    ) -> int:
        node = UnionNode(mode=keyword, **common)
        node_id = self.arena.add(node, path)
        children = self._named_context(node_id, context, root, type_ext, nameable=True)

        for index, member in members:
            member_path = path.child(keyword, index)
            ref = None
            if isinstance(member, dict) and "$ref" in member:
                ref = self.spec.dereference(member["$ref"], member_path)[0]
            schema_id = self._schema(member_path, member, children.child(str(index)))
            node.variants.append(Variant(schema=schema_id, ref=ref))

        node.fields = order_fields(self._fields(path, raw, children, self._required(path, raw)))
        node.discriminator = self._discriminator(path, raw)
        return node_id

    def _type_union(self, path: SchemaPath, raw: dict[str, Any], declared: list[Any], common: dict[str, Any], context: NameContext, root: RootInfo | None, type_ext: TypeExtensions) -> int:
        """A type array with several non-null types becomes a oneOf over those types."""
        members = []
        for index, type_name in enumerate(declared):
            if type_name not in _SCALAR_TYPES and type_name not in ("array", "object"):
                raise InvalidSchemaError(f"Unknown schema type {type_name!r}", path)
            member = {key: value for key, value in raw.items() if key != "type" and not key.startswith("x-")}
            member["type"] = type_name
            members.append((index, member))

        node = UnionNode(mode="oneOf", **common)
        node_id = self.arena.add(node, path)
        children = self._named_context(node_id, context, root, type_ext, nameable=True)
        for index, member in members:
            node.variants.append(Variant(schema=self._schema(path.child("type", index), member, children.child(str(index)))))
        return node_id

    def _discriminator(self, path: SchemaPath, raw: dict[str, Any]) -> DiscriminatorSpec | None:
        declared = raw.get("discriminator")
        if declared is None:
            return None
        if not isinstance(declared, dict) or not isinstance(declared.get("propertyName"), str):
            raise InvalidSchemaError("discriminator must declare a propertyName", path)
        mapping = {}
        for value, target in (declared.get("mapping") or {}).items():
            if not isinstance(target, str):
                raise InvalidSchemaError(f"discriminator mapping for {value!r} must be a string", path)
            mapping[str(value)] = self.spec.dereference(mapping_ref(target), path.child("discriminator", "mapping", str(value)))[0]
        return DiscriminatorSpec(property_name=declared["propertyName"], mapping=mapping)

    def _propagate_nullability(self) -> None:
        """A field or element is nullable when its schema, or a schema it aliases, is."""
        for node in self.arena:
            if isinstance(node, (ObjectNode, UnionNode)):
                for f in node.fields:
                    if not f.nullable and self.arena.is_nullable(f.schema):
                        f.nullable = True
            elif isinstance(node, ArrayNode):
                if not node.element_nullable and self.arena.is_nullable(node.element):
                    node.element_nullable = True
