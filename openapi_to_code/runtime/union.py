"""
Runtime value of a oneOf/anyOf union.

A ``UnionValue`` keeps the JSON form of the union next to the decoded
variant values. Constructors encode immediately, so ``to_json`` always
returns what was set; accessors return decoded values.
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any

from ..errors import DecodeError, EncodeError, NotSetError, UnionResolutionError
from ..pipeline.schema_ast.nodes import UnionNode, Variant

if TYPE_CHECKING:
    from .codec import GraphCodec

logger = logging.getLogger(__name__)


class UnionValue:
    """A value of a union type: one variant for oneOf, any number for anyOf."""

    def __init__(self, codec: GraphCodec, node: UnionNode):
        self.codec = codec
        self.node = node

        # Variant name -> decoded value, in the order they were set
        self._values: dict[str, Any] = {}

        # JSON form of the union, None when nothing is set
        self._raw: Any = None

    @property
    def variant_names(self) -> list[str]:
        """Names of the variants currently set."""
        return list(self._values)

    def _variant(self, name: str) -> Variant:
        variant = self.node.variant_named(name)
        if variant is None:
            raise UnionResolutionError(f"Union {self.node.name or '<inline>'} has no variant {name!r}", self.node.path)
        return variant

    # Constructors

    def from_variant(self, name: str, value: Any) -> UnionValue:
        """
        Set a variant.

        For oneOf the variant replaces whatever was set; for anyOf it is
        added, and its JSON object is merged into the union's object. The
        discriminator property is filled in when the value does not carry it.

        Args:
            name: Variant name
            value: Variant value (Record, scalar, list...)

        Returns:
            self, for chaining
        """
        variant = self._variant(name)
        encoded = self.codec.encode_node(variant.schema, value)
        discriminator = self.node.discriminator
        if discriminator is not None and isinstance(encoded, dict) and discriminator.property_name not in encoded and variant.discriminator_values:
            encoded[discriminator.property_name] = variant.discriminator_values[0]

        if self.node.mode == "oneOf" or self._raw is None:
            if self.node.mode == "oneOf":
                self._values = {}
            self._raw = encoded
        elif isinstance(self._raw, dict) and isinstance(encoded, dict):
            self._raw = {**self._raw, **encoded}
        else:
            raise EncodeError(f"Cannot combine variant {name!r} with the variants already set in anyOf {self.node.name or '<inline>'}")
        self._values[name] = value
        return self

    def from_json(self, payload: Any, location: str = "$") -> UnionValue:
        """
        Decode a payload.

        A discriminator property selects the variant directly. Without one,
        variants are tried in probe order: oneOf keeps the first that
        decodes, anyOf keeps every one that does.

        Raises:
            UnionResolutionError: For an unknown discriminator value
            DecodeError: If no variant decodes the payload
        """
        self._values = {}
        self._raw = copy.deepcopy(payload)
        if payload is None:
            return self

        if self.discriminator() is not None:
            variant = self._variant_for_discriminator()
            self._values[variant.name] = self.codec.decode_node(variant.schema, payload, location)
            return self

        errors = []
        for index in self.node.probe_order or range(len(self.node.variants)):
            variant = self.node.variants[index]
            try:
                decoded = self.codec.decode_node(variant.schema, payload, location)
            except DecodeError as exc:
                errors.append(f"{variant.name}: {exc.message}")
                continue
            self._values[variant.name] = decoded
            if self.node.mode == "oneOf":
                break

        if not self._values:
            raise DecodeError(f"Payload matches no variant of {self.node.name or 'union'} ({'; '.join(errors)})", location)
        logger.debug("Decoded %s as %s", self.node.name, ", ".join(self._values))
        return self

    # Accessors

    def as_variant(self, name: str) -> Any:
        """
        Decoded value of a variant.

        Raises:
            NotSetError: If the variant is not set
        """
        self._variant(name)
        if name not in self._values:
            raise NotSetError(f"Variant {name!r} of {self.node.name or 'union'} is not set")
        return self._values[name]

    def discriminator(self) -> str | None:
        """Discriminator property of the JSON form, None when missing."""
        if self.node.discriminator is None or not isinstance(self._raw, dict):
            return None
        value = self._raw.get(self.node.discriminator.property_name)
        return value if isinstance(value, str) else None

    def value_by_discriminator(self) -> Any:
        """
        Decode the variant selected by the discriminator.

        Raises:
            UnionResolutionError: If the union has no discriminator, or the
                value is neither mapped nor a variant name
        """
        variant = self._variant_for_discriminator()
        if variant.name in self._values:
            return self._values[variant.name]
        return self.codec.decode_node(variant.schema, self._raw)

    def _variant_for_discriminator(self) -> Variant:
        value = self.discriminator()
        if value is None:
            raise UnionResolutionError(f"Union {self.node.name or '<inline>'} has no discriminator value", self.node.path)
        for variant in self.node.variants:
            if value in variant.discriminator_values:
                return variant
        variant = self.node.variant_named(value)
        if variant is None:
            raise UnionResolutionError(f"Unknown discriminator value {value!r}", self.node.path)
        return variant

    def to_json(self) -> Any:
        """JSON form of the union (None when nothing is set)."""
        return copy.deepcopy(self._raw)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnionValue):
            return NotImplemented
        return self.node is other.node and self._raw == other._raw and self._values == other._values

    __hash__ = None

    def __repr__(self) -> str:
        return f"UnionValue({self.node.name or '<inline>'}, {self._values!r})"
