"""
Error types raised while building and using a type graph.

Every pipeline error carries the schema path it originated from, so the
caller can point at the offending document location.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .pipeline.loader.reference_resolver import SchemaPath


class TypeGraphError(Exception):
    """
    Base class for every error that aborts type graph construction.

    Args:
        message: Human-readable error description
        path: Schema path the error originated from (if known)
    """

    def __init__(self, message: str, path: SchemaPath | str | None = None):
        self.message = message
        self.path = path
        if path is not None:
            super().__init__(f"{message} (at {path})")
        else:
            super().__init__(message)


class RefResolutionError(TypeGraphError):
    """A $ref cannot be resolved or points somewhere that is not allowed."""

    pass


class SchemaMergeError(TypeGraphError):
    """
    allOf members cannot be merged.

    Raised for members that are not objects and for two incompatible
    typed additionalProperties schemas.
    """

    pass


class UnionResolutionError(TypeGraphError):
    """A oneOf/anyOf discriminator cannot be matched to its variants."""

    pass


class NameCollisionExhausted(TypeGraphError):
    """No unique identifier was found within the configured number of attempts."""

    pass


class CyclicSchemaError(TypeGraphError):
    """A schema cycle cannot be broken with a reference (e.g. an alias pointing at itself)."""

    pass


class InvalidSchemaError(TypeGraphError):
    """A schema node has a shape the normalizer does not understand."""

    pass


class ExtensionValueError(TypeGraphError):
    """A vendor extension carries a value of the wrong type."""

    pass


class FrozenGraphError(TypeGraphError):
    """A node of a finished type graph was modified."""

    pass


class CodecError(Exception):
    """
    Base class for errors raised while decoding or encoding payloads.

    Args:
        message: Human-readable error description
        location: JSON location inside the payload (e.g. "$.children[0].name")
    """

    def __init__(self, message: str, location: str = "$"):
        self.message = message
        self.location = location
        super().__init__(f"{message} (at {location})")


class DecodeError(CodecError):
    """A payload does not match the shape of the requested type."""

    pass


class EncodeError(CodecError):
    """A value cannot be encoded, e.g. a required field is unset."""

    pass


class NotSetError(CodecError):
    """A union variant was requested that is not currently set."""

    pass
