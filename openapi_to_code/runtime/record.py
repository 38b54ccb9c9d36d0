"""
Record values decoded from and encoded to JSON objects.

A ``Record`` tells apart the three states a property can be in: absent
(the key is missing), explicitly null, and set to a value.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class _Unset:
    """Sentinel returned for absent properties."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


class FieldState(str, Enum):
    """State of one property of a record."""

    ABSENT = "absent"
    NULL = "null"
    VALUE = "value"


class Record:
    """
    A value of a named object type.

    Properties are keyed by their JSON name. A missing key is absent, a
    ``None`` value is an explicit null.
    """

    def __init__(self, type_name: str, values: dict[str, Any] | None = None, additional_properties: dict[str, Any] | None = None, package: str = ""):
        self.type_name = type_name
        self.package = package
        self.values: dict[str, Any] = dict(values or {})
        self.additional_properties: dict[str, Any] = dict(additional_properties or {})

    def get(self, name: str) -> Any:
        """Value of a property, ``UNSET`` when absent."""
        return self.values.get(name, UNSET)

    def set(self, name: str, value: Any) -> None:
        """Set a property (``None`` sets an explicit null)."""
        if value is UNSET:
            self.unset(name)
        else:
            self.values[name] = value

    def unset(self, name: str) -> None:
        self.values.pop(name, None)

    def state(self, name: str) -> FieldState:
        if name not in self.values:
            return FieldState.ABSENT
        if self.values[name] is None:
            return FieldState.NULL
        return FieldState.VALUE

    def is_set(self, name: str) -> bool:
        return name in self.values

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return (
            self.type_name == other.type_name
            and self.package == other.package
            and self.values == other.values
            and self.additional_properties == other.additional_properties
        )

    __hash__ = None

    def __repr__(self) -> str:
        extra = f", additional_properties={self.additional_properties!r}" if self.additional_properties else ""
        return f"Record({self.type_name!r}, {self.values!r}{extra})"
