"""
IR node definitions for normalized schemas.

Nodes live in a ``NodeArena`` and point at each other by integer id, so
recursive schemas need no self-referential values. Nodes stay mutable while
the analyzer phases merge and rename them, and are frozen once the type
graph is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from types import MappingProxyType
from typing import Any

from ...errors import CyclicSchemaError, FrozenGraphError
from ..loader.reference_resolver import SchemaPath


class ScalarKind(str, Enum):
    """Kind of a scalar or enum node."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DYNAMIC = "dynamic"  # untyped value


class PresenceState(str, Enum):
    """How a field may appear in a payload."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    REQUIRED_NULLABLE = "required_nullable"
    OPTIONAL_NULLABLE = "optional_nullable"

    @staticmethod
    def of(required: bool, nullable: bool) -> PresenceState:
        if required:
            return PresenceState.REQUIRED_NULLABLE if nullable else PresenceState.REQUIRED
        return PresenceState.OPTIONAL_NULLABLE if nullable else PresenceState.OPTIONAL


class Representation(str, Enum):
    """Wrapping used by the emitter for a field value."""

    VALUE = "value"  # plain value
    OPTIONAL = "optional"  # pointer / Optional[...]
    NULLABLE = "nullable"  # explicit nullable wrapper


class AdditionalPropertiesKind(str, Enum):
    """Policy for object keys that are not declared as properties."""

    FORBIDDEN = "forbidden"  # additionalProperties: false
    UNSPECIFIED = "unspecified"  # not declared, handled like FORBIDDEN
    ANY = "any"  # additionalProperties: true or {}
    TYPED = "typed"  # additionalProperties: <schema>


@dataclass(frozen=True)
class AdditionalProperties:
    """additionalProperties mode of an object, with the value schema when typed."""

    kind: AdditionalPropertiesKind = AdditionalPropertiesKind.UNSPECIFIED
    schema: int | None = None

    @staticmethod
    def forbidden() -> AdditionalProperties:
        return AdditionalProperties(AdditionalPropertiesKind.FORBIDDEN)

    @staticmethod
    def unspecified() -> AdditionalProperties:
        return AdditionalProperties(AdditionalPropertiesKind.UNSPECIFIED)

    @staticmethod
    def any() -> AdditionalProperties:
        return AdditionalProperties(AdditionalPropertiesKind.ANY)

    @staticmethod
    def typed(schema: int) -> AdditionalProperties:
        return AdditionalProperties(AdditionalPropertiesKind.TYPED, schema)

    @property
    def allows_extra(self) -> bool:
        """Whether undeclared keys are kept."""
        return self.kind in (AdditionalPropertiesKind.ANY, AdditionalPropertiesKind.TYPED)


class Namespace(str, Enum):
    """Naming namespace a type name is requested from."""

    SCHEMA = "schemas"
    PARAMETER = "parameters"
    RESPONSE = "responses"
    REQUEST_BODY = "requestBodies"
    HEADER = "headers"
    OPERATION = "operations"
    INLINE = "inline"

    @property
    def suffix(self) -> str:
        """Qualifier appended when the bare name is taken by another namespace."""
        return _NAMESPACE_SUFFIXES[self]


_NAMESPACE_SUFFIXES = {
    Namespace.SCHEMA: "Schema",
    Namespace.PARAMETER: "Parameter",
    Namespace.RESPONSE: "Response",
    Namespace.REQUEST_BODY: "RequestBody",
    Namespace.HEADER: "Header",
    Namespace.OPERATION: "",
    Namespace.INLINE: "",
}


class Freezable:
    """Mixin that rejects attribute assignment once ``freeze()`` was called."""

    _frozen = False

    def __setattr__(self, name: str, value: Any) -> None:
        if self._frozen:
            raise FrozenGraphError(f"Cannot set {name!r} on a frozen {type(self).__name__}", getattr(self, "path", None))
        super().__setattr__(name, value)

    def freeze(self) -> None:
        """Turn list/dict attributes into read-only containers and lock the object."""
        if self._frozen:
            return
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, list):
                for item in value:
                    if isinstance(item, Freezable):
                        item.freeze()
                object.__setattr__(self, f.name, tuple(value))
            elif isinstance(value, dict):
                object.__setattr__(self, f.name, MappingProxyType(dict(value)))
            elif isinstance(value, Freezable):
                value.freeze()
        object.__setattr__(self, "_frozen", True)


@dataclass(eq=False)
class Field(Freezable):
    """A property of an object or union."""

    # JSON property name
    name: str = ""

    # Node id of the property schema
    schema: int = -1

    required: bool = False
    nullable: bool = False
    read_only: bool = False
    write_only: bool = False
    deprecated: bool = False
    description: str = ""

    # Allocated identifier (set by the name allocator)
    identifier: str = ""

    # Vendor extension driven behaviour
    override_identifier: str | None = None
    omit_empty: bool | None = None  # None = decided by presence
    omit_zero: bool = False
    zero_predicate: str | None = None
    ignored: bool = False
    extra_tags: dict[str, str] = field(default_factory=dict)
    skip_optional_pointer: bool | None = None
    order: int | None = None
    deprecated_reason: str | None = None

    # Wrapping contract (set when the type graph is built)
    representation: Representation = Representation.VALUE

    @property
    def presence(self) -> PresenceState:
        return PresenceState.of(self.required, self.nullable)


@dataclass(eq=False)
class Variant(Freezable):
    """A member of a oneOf/anyOf union."""

    # Variant name, unique within the union (set by the name allocator)
    name: str = ""

    schema: int = -1

    # Path of the referenced component, None for inline members
    ref: SchemaPath | None = None

    # Discriminator values selecting this variant, in mapping order
    discriminator_values: list[str] = field(default_factory=list)


@dataclass(eq=False)
class DiscriminatorSpec(Freezable):
    """discriminator.propertyName plus the declared mapping (value -> target path)."""

    property_name: str = ""
    mapping: dict[str, SchemaPath] = field(default_factory=dict)


@dataclass(eq=False)
class SchemaNode(Freezable):
    """Base class for all IR nodes."""

    # Originating schema location (for error messages)
    path: SchemaPath | None = None

    # Position in the arena
    node_id: int = -1

    nullable: bool = False
    description: str = ""
    deprecated: bool = False

    # Raw vendor extensions (x-* keys)
    extensions: dict[str, Any] = field(default_factory=dict)

    # Final type name and owning package, empty for structural nodes
    name: str = ""
    package: str = ""

    @property
    def qualified_name(self) -> str:
        if self.package and self.name:
            return f"{self.package}.{self.name}"
        return self.name

    def child_refs(self) -> list[int]:
        """Node ids this node points at."""
        return []

    def replace_child(self, old: int, new: int) -> None:
        """Repoint every edge to ``old`` at ``new``."""
        pass


@dataclass(eq=False)
class ScalarNode(SchemaNode):
    """A string, integer, number, boolean or dynamic value."""

    kind: ScalarKind = ScalarKind.DYNAMIC
    format: str = ""

    # True for a schema without any type information ({} or annotations only)
    empty: bool = False


@dataclass(eq=False)
class EnumConstant(Freezable):
    """A sanitized enum constant name paired with its literal value."""

    name: str = ""
    value: Any = None


def same_literal(a: Any, b: Any) -> bool:
    """JSON equality of two literals: booleans never equal numbers."""
    return a == b and isinstance(a, bool) == isinstance(b, bool)


@dataclass(eq=False)
class EnumNode(SchemaNode):
    """A scalar restricted to a list of literal values."""

    kind: ScalarKind = ScalarKind.STRING
    values: list[Any] = field(default_factory=list)

    # Constant names from x-enum-varnames / x-enumNames, aligned with values
    member_names: list[str] = field(default_factory=list)

    # Allocated constants (set by the name allocator)
    constants: list[EnumConstant] = field(default_factory=list)

    def has_value(self, value: Any) -> bool:
        """Whether value is one of the literals (true and 1 are different values)."""
        return any(same_literal(literal, value) for literal in self.values)


@dataclass(eq=False)
class ArrayNode(SchemaNode):
    """An array of one element type."""

    element: int = -1
    element_nullable: bool = False

    def child_refs(self) -> list[int]:
        return [self.element]

    def replace_child(self, old: int, new: int) -> None:
        if self.element == old:
            self.element = new


@dataclass(eq=False)
class ObjectNode(SchemaNode):
    """An object with declared fields and an additionalProperties policy."""

    fields: list[Field] = field(default_factory=list)
    additional_properties: AdditionalProperties = field(default_factory=AdditionalProperties)
    required: list[str] = field(default_factory=list)

    # Pending allOf members, emptied by the composition merger
    all_of: list[int] = field(default_factory=list)

    @property
    def is_map(self) -> bool:
        """An object without fields whose keys are all additional properties."""
        return not self.fields and not self.all_of and self.additional_properties.allows_extra

    def field_named(self, name: str) -> Field | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def child_refs(self) -> list[int]:
        refs = [f.schema for f in self.fields]
        refs.extend(self.all_of)
        if self.additional_properties.schema is not None:
            refs.append(self.additional_properties.schema)
        return refs

    def replace_child(self, old: int, new: int) -> None:
        for f in self.fields:
            if f.schema == old:
                f.schema = new
        self.all_of = [new if member == old else member for member in self.all_of]
        if self.additional_properties.schema == old:
            self.additional_properties = AdditionalProperties.typed(new)


@dataclass(eq=False)
class UnionNode(SchemaNode):
    """A oneOf/anyOf union with a closed set of variants."""

    mode: str = "oneOf"  # "oneOf" or "anyOf"
    variants: list[Variant] = field(default_factory=list)
    discriminator: DiscriminatorSpec | None = None

    # Properties declared alongside oneOf/anyOf
    fields: list[Field] = field(default_factory=list)

    # Variant indices in decoding probe order (set by the union resolver)
    probe_order: list[int] = field(default_factory=list)

    def variant_named(self, name: str) -> Variant | None:
        for variant in self.variants:
            if variant.name == name:
                return variant
        return None

    def child_refs(self) -> list[int]:
        return [v.schema for v in self.variants] + [f.schema for f in self.fields]

    def replace_child(self, old: int, new: int) -> None:
        for variant in self.variants:
            if variant.schema == old:
                variant.schema = new
        for f in self.fields:
            if f.schema == old:
                f.schema = new


@dataclass(eq=False)
class AliasNode(SchemaNode):
    """A pure rename of another node, or an externally supplied type."""

    target: int | None = None

    # x-type / x-type-import overrides
    override_type: str | None = None
    override_import: str | None = None

    def child_refs(self) -> list[int]:
        return [] if self.target is None else [self.target]

    def replace_child(self, old: int, new: int) -> None:
        if self.target == old:
            self.target = new


@dataclass(eq=False)
class ReferenceNode(SchemaNode):
    """Back-edge breaking a cycle: the value is held by reference to ``to``."""

    to: int = -1


@dataclass(eq=False)
class NamedEntry:
    """
    A request for a type name.

    Root entries (components, operation-derived) carry their full candidate
    in ``parts``; inline entries carry the suffix parts appended to their
    parent's final name.
    """

    node_id: int
    namespace: Namespace
    parts: tuple[str, ...] = ()
    parent: NamedEntry | None = None
    package: str = ""
    path: SchemaPath | None = None

    # Allocation order key: (phase, ...)
    order: tuple = ()

    # x-type-name given: the candidate is used verbatim
    override: bool = False

    # Final name (set by the name allocator)
    name: str = ""

    @property
    def candidate(self) -> str:
        prefix = self.parent.name if self.parent is not None else ""
        return prefix + "".join(self.parts)


class NodeArena:
    """Owns every IR node, addressed by stable integer id."""

    def __init__(self):
        self._nodes: list[SchemaNode] = []
        self._by_path: dict[SchemaPath, int] = {}
        self.entries: list[NamedEntry] = []

    def add(self, node: SchemaNode, path: SchemaPath | None = None) -> int:
        """
        Append a node and return its id.

        Args:
            node: The node to own
            path: If given, later lookups of this path return the node

        Returns:
            The node id
        """
        node.node_id = len(self._nodes)
        self._nodes.append(node)
        if path is not None:
            self._by_path[path] = node.node_id
        return node.node_id

    def bind(self, path: SchemaPath, node_id: int) -> None:
        """Make ``path`` resolve to an existing node."""
        self._by_path[path] = node_id

    def node_at(self, path: SchemaPath) -> int | None:
        return self._by_path.get(path)

    def get(self, node_id: int) -> SchemaNode:
        return self._nodes[node_id]

    def __getitem__(self, node_id: int) -> SchemaNode:
        return self._nodes[node_id]

    def __iter__(self):
        return iter(list(self._nodes))

    def __len__(self) -> int:
        return len(self._nodes)

    def resolve(self, node_id: int) -> SchemaNode:
        """Follow aliases and references to the node that defines the shape."""
        seen = set()
        node = self._nodes[node_id]
        while True:
            if isinstance(node, AliasNode) and node.target is not None:
                next_id = node.target
            elif isinstance(node, ReferenceNode):
                next_id = node.to
            else:
                return node
            if node.node_id in seen:
                raise CyclicSchemaError("Schema is an alias of itself", node.path)
            seen.add(node.node_id)
            node = self._nodes[next_id]

    def is_nullable(self, node_id: int) -> bool:
        """Whether the node, or any alias on the way to its definition, allows null."""
        seen = set()
        node = self._nodes[node_id]
        while True:
            if node.nullable:
                return True
            if isinstance(node, AliasNode) and node.target is not None:
                next_id = node.target
            elif isinstance(node, ReferenceNode):
                next_id = node.to
            else:
                return False
            if node.node_id in seen:
                raise CyclicSchemaError("Schema is an alias of itself", node.path)
            seen.add(node.node_id)
            node = self._nodes[next_id]

    def freeze(self) -> None:
        for node in self._nodes:
            node.freeze()


def order_fields(fields: list[Field]) -> list[Field]:
    """Stable sort by x-order; fields without one keep their relative position after the ordered ones."""
    unordered = len(fields)
    return sorted(fields, key=lambda f: f.order if f.order is not None else unordered)
