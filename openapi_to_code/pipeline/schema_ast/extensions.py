"""
Vendor extension handling.

Every extension has a canonical key; the x-go-* spelling is accepted as an
alias so documents written for Go generators keep working.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ...errors import ExtensionValueError
from ..loader.reference_resolver import SchemaPath

# Canonical key -> accepted keys, canonical first
EXTENSION_ALIASES = {
    "x-type": ("x-type", "x-go-type"),
    "x-type-import": ("x-type-import", "x-go-type-import"),
    "x-field-name": ("x-field-name", "x-go-name"),
    "x-type-name": ("x-type-name", "x-go-type-name"),
    "x-skip-optional-pointer": ("x-skip-optional-pointer", "x-go-type-skip-optional-pointer"),
    "x-ignore": ("x-ignore", "x-go-json-ignore"),
    "x-omitempty": ("x-omitempty",),
    "x-omitzero": ("x-omitzero",),
    "x-zero-value-predicate": ("x-zero-value-predicate",),
    "x-extra-tags": ("x-extra-tags", "x-oapi-codegen-extra-tags"),
    "x-order": ("x-order",),
    "x-enum-varnames": ("x-enum-varnames", "x-enumNames"),
    "x-deprecated-reason": ("x-deprecated-reason",),
}


def collect_extensions(raw: dict[str, Any]) -> dict[str, Any]:
    """All x-* keys of a raw schema, in declaration order."""
    return {key: value for key, value in raw.items() if isinstance(key, str) and key.startswith("x-")}


def get_extension(raw: dict[str, Any], canonical: str, default: Any = None) -> Any:
    """Value of an extension under its canonical key or any alias."""
    for key in EXTENSION_ALIASES.get(canonical, (canonical,)):
        if key in raw:
            return raw[key]
    return default


def _expect(value: Any, expected: type | tuple[type, ...], key: str, path: SchemaPath | None) -> Any:
    if value is None:
        return None
    # bool is an int subclass, x-order must not accept it
    if expected is int and isinstance(value, bool):
        raise ExtensionValueError(f"{key} must be an integer, got {value!r}", path)
    if expected is int and isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, expected):
        names = expected.__name__ if isinstance(expected, type) else " or ".join(t.__name__ for t in expected)
        raise ExtensionValueError(f"{key} must be {names}, got {type(value).__name__}", path)
    return value


@dataclass
class FieldExtensions:
    """Extensions read from a property schema."""

    field_name: str | None = None
    skip_optional_pointer: bool | None = None
    ignored: bool = False
    omit_empty: bool | None = None
    omit_zero: bool = False
    zero_predicate: str | None = None
    extra_tags: dict[str, str] = field(default_factory=dict)
    order: int | None = None
    deprecated_reason: str | None = None


@dataclass
class TypeExtensions:
    """Extensions read from a schema that defines a type."""

    type_name: str | None = None
    override_type: str | None = None
    override_import: str | None = None
    enum_var_names: list[str] | None = None


def read_field_extensions(raw: Any, path: SchemaPath | None = None) -> FieldExtensions:
    """
    Read and validate the field-level extensions of a property schema.

    Args:
        raw: Raw property schema (may be a $ref object carrying extensions)
        path: Path of the property, used in errors

    Returns:
        FieldExtensions
    """
    if not isinstance(raw, dict):
        return FieldExtensions()

    extra_tags = _expect(get_extension(raw, "x-extra-tags"), dict, "x-extra-tags", path) or {}
    for tag, value in extra_tags.items():
        if not isinstance(value, str):
            raise ExtensionValueError(f"x-extra-tags value for {tag!r} must be a string", path)

    return FieldExtensions(
        field_name=_expect(get_extension(raw, "x-field-name"), str, "x-field-name", path),
        skip_optional_pointer=_expect(get_extension(raw, "x-skip-optional-pointer"), bool, "x-skip-optional-pointer", path),
        ignored=bool(_expect(get_extension(raw, "x-ignore"), bool, "x-ignore", path)),
        omit_empty=_expect(get_extension(raw, "x-omitempty"), bool, "x-omitempty", path),
        omit_zero=bool(_expect(get_extension(raw, "x-omitzero"), bool, "x-omitzero", path)),
        zero_predicate=_expect(get_extension(raw, "x-zero-value-predicate"), str, "x-zero-value-predicate", path),
        # Sorted by tag name
        extra_tags={tag: extra_tags[tag] for tag in sorted(extra_tags)},
        order=_expect(get_extension(raw, "x-order"), int, "x-order", path),
        deprecated_reason=_expect(get_extension(raw, "x-deprecated-reason"), str, "x-deprecated-reason", path),
    )


def read_type_extensions(raw: Any, path: SchemaPath | None = None) -> TypeExtensions:
    """Read and validate the type-level extensions of a schema."""
    if not isinstance(raw, dict):
        return TypeExtensions()

    override_import = get_extension(raw, "x-type-import")
    if isinstance(override_import, dict):
        if not isinstance(override_import.get("path"), str):
            raise ExtensionValueError("x-type-import must carry a string 'path'", path)
        override_import = override_import["path"]
    else:
        override_import = _expect(override_import, str, "x-type-import", path)

    var_names = _expect(get_extension(raw, "x-enum-varnames"), list, "x-enum-varnames", path)
    if var_names is not None:
        if not all(isinstance(name, str) for name in var_names):
            raise ExtensionValueError("x-enum-varnames entries must be strings", path)
        values = raw.get("enum")
        if isinstance(values, list) and len(var_names) != len([value for value in values if value is not None]):
            raise ExtensionValueError(f"x-enum-varnames has {len(var_names)} names for {len(values)} enum values", path)

    return TypeExtensions(
        type_name=_expect(get_extension(raw, "x-type-name"), str, "x-type-name", path),
        override_type=_expect(get_extension(raw, "x-type"), str, "x-type", path),
        override_import=override_import,
        enum_var_names=var_names,
    )
