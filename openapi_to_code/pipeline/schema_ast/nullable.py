"""
Nullability detection for OpenAPI 3.0 and 3.1 schemas.

OpenAPI 3.0 marks a schema nullable with ``nullable: true``. OpenAPI 3.1
drops that keyword in favour of JSON Schema: a "null" entry in a type array,
a null enum value, or a oneOf/anyOf member of type null.
"""

from __future__ import annotations

from typing import Any

OPENAPI_3_1 = (3, 1)


def is_null_schema(raw: Any) -> bool:
    """Whether a raw schema only accepts null."""
    if not isinstance(raw, dict) or "$ref" in raw:
        return False
    declared = raw.get("type")
    if declared == "null" or declared == ["null"]:
        return True
    return raw.get("enum") == [None]


def split_nullable(raw: dict[str, Any], version: tuple[int, int]) -> tuple[dict[str, Any], bool]:
    """
    Separate the null alternative from a schema.

    Args:
        raw: Raw schema
        version: OpenAPI version of the document as (major, minor)

    Returns:
        Tuple of (schema without its null alternatives, whether null is allowed).
        The input is never modified.
    """
    nullable = False
    result = raw

    def copy() -> dict[str, Any]:
        nonlocal result
        if result is raw:
            result = dict(raw)
        return result

    if version < OPENAPI_3_1 and raw.get("nullable") is True:
        nullable = True

    declared = raw.get("type")
    if isinstance(declared, list) and "null" in declared:
        nullable = True
        remaining = [t for t in declared if t != "null"]
        if len(remaining) == 1:
            copy()["type"] = remaining[0]
        elif remaining:
            copy()["type"] = remaining
        else:
            copy().pop("type")
    elif declared == "null" and len(raw) > 1:
        nullable = True
        copy().pop("type")

    values = raw.get("enum")
    if isinstance(values, list) and None in values:
        nullable = True
        copy()["enum"] = [value for value in values if value is not None]

    for keyword in ("oneOf", "anyOf"):
        members = raw.get(keyword)
        if isinstance(members, list) and any(is_null_schema(member) for member in members):
            nullable = True
            copy()[keyword] = [member for member in members if not is_null_schema(member)]

    return result, nullable


def is_nullable(raw: Any, version: tuple[int, int]) -> bool:
    """Whether a raw schema (or $ref object) itself allows null."""
    if not isinstance(raw, dict):
        return False
    if is_null_schema(raw):
        return True
    if "$ref" in raw:
        return raw.get("nullable") is True
    return split_nullable(raw, version)[1]
