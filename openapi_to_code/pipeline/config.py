"""
Configuration for the type graph pipeline.

Loaded from a JSON or YAML file, or built from a dictionary.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import yaml

from ..errors import TypeGraphError
from ..utils import NameNormalizer
from .loader.reference_resolver import COMPONENT_SECTIONS


class ProbeOrder(str, Enum):
    """Order in which union variants are tried when decoding without a discriminator."""

    DECLARATION = "declaration"  # document order
    SPECIFICITY = "specificity"  # objects first, more required fields first


@dataclass
class TypeGraphConfig:
    """Configuration options for type graph construction."""

    # Component sections that produce named types (empty = all)
    include_components: list[str] = field(default_factory=lambda: list(COMPONENT_SECTIONS))

    # Operation filters for operation-derived types
    include_operation_ids: list[str] = field(default_factory=list)
    exclude_operation_ids: list[str] = field(default_factory=list)
    include_tags: list[str] = field(default_factory=list)
    exclude_tags: list[str] = field(default_factory=list)

    # Synthesize types for schemas declared inline in operations
    generate_operation_types: bool = True

    # Drop components that no selected operation reaches
    prune_unused_components: bool = False

    # Identifier casing strategy ("ToCamelCase", "ToCamelCaseWithDigits", "ToCamelCaseWithInitialisms")
    name_normalizer: str | NameNormalizer = "ToCamelCase"
    additional_initialisms: list[str] = field(default_factory=list)

    # Prefix every enum constant with its type name
    always_prefix_enum_values: bool = False

    # Field representation options
    prefer_skip_optional_pointer: bool = False
    nullable_type: bool = False
    disable_required_readonly_as_pointer: bool = False

    # Union decoding probe order
    union_probe_order: ProbeOrder = ProbeOrder.DECLARATION

    # Upper bound on candidates tried for one identifier
    max_name_attempts: int = 100

    # Document location (relative to the root document) -> package name
    import_mapping: dict[str, str] = field(default_factory=dict)

    @staticmethod
    def from_dict(d: dict) -> TypeGraphConfig:
        """Create a config from a dictionary."""
        config = TypeGraphConfig()
        for k, v in d.items():
            if k == "union_probe_order":
                config.union_probe_order = ProbeOrder(v)
            elif k == "include_components":
                unknown = [section for section in v if section not in COMPONENT_SECTIONS]
                if unknown:
                    raise TypeGraphError(f"Unknown component sections {unknown}, expected some of {list(COMPONENT_SECTIONS)}")
                config.include_components = list(v)
            elif hasattr(config, k):
                setattr(config, k, v)
        return config

    @staticmethod
    def from_file(path: str | Path) -> TypeGraphConfig:
        """Load a config from a JSON or YAML file."""
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise TypeGraphError(f"Configuration file {path} must contain an object")
        return TypeGraphConfig.from_dict(data)

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "include_components": self.include_components,
            "include_operation_ids": self.include_operation_ids,
            "exclude_operation_ids": self.exclude_operation_ids,
            "include_tags": self.include_tags,
            "exclude_tags": self.exclude_tags,
            "generate_operation_types": self.generate_operation_types,
            "prune_unused_components": self.prune_unused_components,
            "name_normalizer": self.name_normalizer if isinstance(self.name_normalizer, str) else self.name_normalizer.__name__,
            "additional_initialisms": self.additional_initialisms,
            "always_prefix_enum_values": self.always_prefix_enum_values,
            "prefer_skip_optional_pointer": self.prefer_skip_optional_pointer,
            "nullable_type": self.nullable_type,
            "disable_required_readonly_as_pointer": self.disable_required_readonly_as_pointer,
            "union_probe_order": self.union_probe_order.value,
            "max_name_attempts": self.max_name_attempts,
            "import_mapping": self.import_mapping,
        }
