"""
Name allocator for types, fields, union variants and enum constants.

All naming state of one run lives in a ``NameAllocator`` instance. Type
names are allocated per package in a fixed order: component sections
(schemas, parameters, responses, request bodies, headers), then components
reached through external documents, then operation-derived names, then
inline schemas parent before child. The first occurrence of a name keeps
it; a later one from another namespace gets that namespace's suffix, and
any remaining collision a numeric suffix starting at 2.
"""

from __future__ import annotations

import itertools
import keyword
import logging
import re
from collections.abc import Iterable, Iterator
from typing import Any

from ...errors import NameCollisionExhausted
from ...utils import NameNormalizer, get_name_normalizer, schema_name_to_type_name, transliterate, whitespace_words
from ..config import TypeGraphConfig
from ..loader.reference_resolver import SchemaPath
from ..schema_ast.nodes import (
    ArrayNode,
    EnumConstant,
    EnumNode,
    NamedEntry,
    NodeArena,
    ObjectNode,
    ScalarNode,
    UnionNode,
    Variant,
)

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Go keywords and predeclared identifiers
GO_RESERVED_WORDS = {
    "break",
    "case",
    "chan",
    "const",
    "continue",
    "default",
    "defer",
    "else",
    "fallthrough",
    "for",
    "func",
    "go",
    "goto",
    "if",
    "import",
    "interface",
    "map",
    "package",
    "range",
    "return",
    "select",
    "struct",
    "switch",
    "type",
    "var",
    "any",
    "bool",
    "byte",
    "comparable",
    "complex64",
    "complex128",
    "error",
    "float32",
    "float64",
    "int",
    "int8",
    "int16",
    "int32",
    "int64",
    "rune",
    "string",
    "uint",
    "uint8",
    "uint16",
    "uint32",
    "uint64",
    "uintptr",
    "true",
    "false",
    "iota",
    "nil",
}

# C# reserved keywords
CS_RESERVED_WORDS = {
    "abstract",
    "as",
    "base",
    "bool",
    "break",
    "byte",
    "case",
    "catch",
    "char",
    "checked",
    "class",
    "const",
    "continue",
    "decimal",
    "default",
    "delegate",
    "do",
    "double",
    "else",
    "enum",
    "event",
    "explicit",
    "extern",
    "false",
    "finally",
    "fixed",
    "float",
    "for",
    "foreach",
    "goto",
    "if",
    "implicit",
    "in",
    "int",
    "interface",
    "internal",
    "is",
    "lock",
    "long",
    "namespace",
    "new",
    "null",
    "object",
    "operator",
    "out",
    "override",
    "params",
    "private",
    "protected",
    "public",
    "readonly",
    "ref",
    "return",
    "sbyte",
    "sealed",
    "short",
    "sizeof",
    "stackalloc",
    "static",
    "string",
    "struct",
    "switch",
    "this",
    "throw",
    "true",
    "try",
    "typeof",
    "uint",
    "ulong",
    "unchecked",
    "unsafe",
    "ushort",
    "using",
    "virtual",
    "void",
    "volatile",
    "while",
}

RESERVED_WORDS = {
    "go": GO_RESERVED_WORDS,
    "python": set(keyword.kwlist) | set(keyword.softkwlist),
    "cs": CS_RESERVED_WORDS,
}


def numbered(base: str) -> Iterator[str]:
    """base, base2, base3, ..."""
    yield base
    for n in itertools.count(2):
        yield f"{base}{n}"


def sanitize_enum_value(value: Any, normalize: NameNormalizer) -> str:
    """
    Constant name for an enum literal.

    Leading and trailing whitespace is spelled out with positional markers,
    so " Foo", "Foo " and "Foo" never share a name.

    Examples:
        "" -> "Empty"
        "1Foo" -> "N1Foo"
        " Foo " -> "LeadingSpaceFooTrailingSpace"
        "foo_bar" -> "FooBar"
        -1 -> "Minus1"
    """
    if isinstance(value, bool):
        return "True" if value else "False"
    if value is None:
        return "Null"
    if not isinstance(value, str):
        return transliterate(str(value))
    if value == "":
        return "Empty"

    core = value.strip()
    if not core:
        return whitespace_words(value)
    leading = value[: len(value) - len(value.lstrip())]
    trailing = value[len(value.rstrip()) :]

    name = normalize(core)
    if not name:
        name = transliterate(core)
    elif name[0].isdigit():
        name = "N" + name
    if leading:
        name = "Leading" + whitespace_words(leading) + name
    if trailing:
        name = name + "Trailing" + whitespace_words(trailing)
    return name


def transliterate_enum_value(value: Any) -> str:
    """Collision fallback: every character without an identifier form becomes its marker word."""
    if isinstance(value, str):
        return transliterate(value)
    return transliterate(str(value))


class NameAllocator:
    """Allocates every identifier of one pipeline run."""

    def __init__(self, arena: NodeArena, config: TypeGraphConfig | None = None, language: str = "go", normalize_name: NameNormalizer | None = None):
        """
        Initialize the allocator.

        Args:
            arena: Node arena with its named entries
            config: Pipeline configuration
            language: Target language whose reserved words are avoided ("go", "python" or "cs")
            normalize_name: Casing strategy (defaults to the configured one)
        """
        if language not in RESERVED_WORDS:
            raise ValueError(f"Unknown language {language!r}, expected one of {sorted(RESERVED_WORDS)}")
        self.arena = arena
        self.config = config or TypeGraphConfig()
        self.language = language
        self.reserved = RESERVED_WORDS[language]
        self.normalize_name = normalize_name or get_name_normalizer(self.config.name_normalizer, self.config.additional_initialisms)
        self.max_attempts = self.config.max_name_attempts

        # package -> type name -> entry holding it
        self.type_names: dict[str, dict[str, NamedEntry]] = {}

    def allocate(self) -> None:
        """Run every allocation step."""
        self.allocate_type_names()
        self.allocate_field_identifiers()
        self.allocate_variant_names()
        self.allocate_enum_constants()
        self._fill_implicit_discriminator_values()

    def _first_free(self, candidates: Iterable[str], taken: Any, path: SchemaPath | None, what: str) -> str:
        """
        First candidate not in ``taken``.

        Raises:
            NameCollisionExhausted: If ``max_name_attempts`` candidates are all taken
        """
        first = None
        for attempt, candidate in enumerate(candidates, start=1):
            if first is None:
                first = candidate
            if attempt > self.max_attempts:
                raise NameCollisionExhausted(f"No unique {what} for {first!r} after {self.max_attempts} attempts", path)
            if candidate not in taken:
                return candidate
        raise NameCollisionExhausted(f"No unique {what} for {first!r}", path)

    def _identifier(self, text: str) -> str:
        """A valid identifier for text, keeping it verbatim when it already is one."""
        if not _IDENTIFIER.match(text):
            text = schema_name_to_type_name(text, self.normalize_name)
        return text

    # Types

    def allocate_type_names(self) -> None:
        for entry in sorted(self.arena.entries, key=lambda e: e.order):
            entry.name = self._type_name(entry)
            node = self.arena[entry.node_id]
            node.name = entry.name
            node.package = entry.package

    def _type_name(self, entry: NamedEntry) -> str:
        base = self._identifier(entry.candidate or "Empty")
        if base in self.reserved:
            base += "Type"

        taken = self.type_names.setdefault(entry.package, {})
        holder = taken.get(base)
        qualified = base
        if holder is not None and holder.namespace != entry.namespace and entry.namespace.suffix:
            qualified = base + entry.namespace.suffix

        candidates = itertools.chain([base], numbered(qualified) if qualified != base else itertools.islice(numbered(base), 1, None))
        name = self._first_free(candidates, taken, entry.path, "type name")
        if name != base:
            logger.debug("Type name %s is taken, using %s for %s", base, name, entry.path)
        taken[name] = entry
        return name

    # Fields

    def allocate_field_identifiers(self) -> None:
        for node in self.arena:
            if isinstance(node, (ObjectNode, UnionNode)):
                used = set()
                if isinstance(node, ObjectNode) and node.additional_properties.allows_extra:
                    used.add("AdditionalProperties")
                for f in node.fields:
                    base = self._identifier(f.override_identifier) if f.override_identifier else schema_name_to_type_name(f.name, self.normalize_name)
                    if base in self.reserved:
                        base += "_"
                    f.identifier = self._first_free(numbered(base), used, node.path, "field identifier")
                    used.add(f.identifier)

    # Union variants

    def allocate_variant_names(self) -> None:
        for node in self.arena:
            if isinstance(node, UnionNode):
                used = set()
                for index, variant in enumerate(node.variants):
                    variant.name = self._first_free(numbered(self._variant_base(node, index, variant)), used, node.path, "variant name")
                    used.add(variant.name)

    def _variant_base(self, union: UnionNode, index: int, variant: Variant) -> str:
        """A variant is named after its type; structural members after their shape."""
        node = self.arena[variant.schema]
        if node.name:
            return node.name
        resolved = self.arena.resolve(variant.schema)
        if resolved.name:
            return resolved.name
        if isinstance(resolved, ScalarNode):
            if resolved.format:
                return schema_name_to_type_name(resolved.format, self.normalize_name)
            return resolved.kind.value.capitalize()
        if isinstance(resolved, ArrayNode):
            return "Array"
        if isinstance(resolved, ObjectNode):
            return "Map"
        return f"{union.name}{index}"

    def _fill_implicit_discriminator_values(self) -> None:
        """Inline members of a discriminated union are selected by their variant name."""
        for node in self.arena:
            if isinstance(node, UnionNode) and node.discriminator is not None:
                for variant in node.variants:
                    if not variant.discriminator_values:
                        variant.discriminator_values.append(variant.name)

    # Enum constants

    def allocate_enum_constants(self) -> None:
        """
        Allocate constant names of every enum.

        An enum gets all of its constants prefixed with its type name when
        prefixing is configured, when a constant equals a type name (its own
        included), or when a constant is shared with another enum of the
        same package.
        """
        enums = [node for node in self.arena if isinstance(node, EnumNode)]
        for node in enums:
            node.constants = self._enum_constants(node)

        owners: dict[tuple[str, str], int] = {}
        for node in enums:
            for constant in node.constants:
                key = (node.package, constant.name)
                owners[key] = owners.get(key, 0) + 1

        for node in enums:
            type_names = self.type_names.get(node.package, {})
            if (
                self.config.always_prefix_enum_values
                or any(constant.name in type_names for constant in node.constants)
                or any(owners[(node.package, constant.name)] > 1 for constant in node.constants)
            ):
                logger.debug("Prefixing constants of enum %s with its type name", node.name)
                for constant in node.constants:
                    constant.name = node.name + constant.name

        used: dict[str, set[str]] = {package: set(names) for package, names in self.type_names.items()}
        for node in enums:
            package_used = used.setdefault(node.package, set())
            for constant in node.constants:
                constant.name = self._first_free(numbered(constant.name), package_used, node.path, "enum constant")
                package_used.add(constant.name)

    def _enum_constants(self, node: EnumNode) -> list[EnumConstant]:
        used: set[str] = set()
        constants = []
        for index, value in enumerate(node.values):
            if index < len(node.member_names):
                name = self._first_free(numbered(self._identifier(node.member_names[index])), used, node.path, "enum constant")
            else:
                name = self._enum_value_name(value, used, node.path)
            used.add(name)
            constants.append(EnumConstant(name=name, value=value))
        return constants

    def _enum_value_name(self, value: Any, used: set[str], path: SchemaPath | None) -> str:
        primary = sanitize_enum_value(value, self.normalize_name)
        if primary in self.reserved:
            primary += "_"
        if primary not in used:
            return primary
        fallback = transliterate_enum_value(value)
        return self._first_free(itertools.chain([primary], numbered(fallback)), used, path, "enum constant")
