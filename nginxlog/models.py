"""
Core data models for log format templates and parsed records.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, ItemsView, List, Mapping

from dataclasses_json import dataclass_json

from .errors import FieldNotFound, FieldParseError

# ASCII digits only; no whitespace, underscores or other Unicode digits
INT_VALUE = re.compile(r"[+-]?[0-9]+")
FLOAT_VALUE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:e[+-]?[0-9]+)?|inf|infinity|nan)", re.IGNORECASE)


class SegmentKind(Enum):
    """Kinds of template segments."""
    LITERAL = "literal"
    FIELD = "field"

    def __str__(self) -> str:
        return self.value


@dataclass
class Segment:
    """A piece of a format string: literal text or a `$name` field reference."""
    kind: SegmentKind
    text: str  # literal text, or the field name without `$`
    start: int  # offset in the format string
    end: int
    adjacent: bool = False  # field followed directly by another field

    @property
    def is_field(self) -> bool:
        return self.kind is SegmentKind.FIELD

    def __str__(self) -> str:
        if self.is_field:
            return f"${self.text}"
        return self.text


@dataclass_json
@dataclass
class Record:
    """
    A parsed log line: field name to string value.

    Values are always stored as strings; numeric interpretation happens
    on read and is never cached.
    """
    fields: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_fields(cls, fields: Mapping[str, str]) -> 'Record':
        """Create a record from an existing mapping."""
        return cls(dict(fields))

    def get(self, name: str) -> str:
        """
        Get a field value as a string.

        Raises:
            FieldNotFound: if the record has no such field.
        """
        try:
            return self.fields[name]
        except KeyError:
            raise FieldNotFound(name) from None

    def get_int(self, name: str) -> int:
        """Get a field value as an integer."""
        value = self.get(name)
        try:
            if not INT_VALUE.fullmatch(value):
                raise ValueError(f"invalid integer literal: {value!r}")
            return int(value)
        except ValueError as e:
            raise FieldParseError(name, value, "int") from e

    def get_float(self, name: str) -> float:
        """Get a field value as a float."""
        value = self.get(name)
        try:
            if not FLOAT_VALUE.fullmatch(value):
                raise ValueError(f"invalid float literal: {value!r}")
            return float(value)
        except ValueError as e:
            raise FieldParseError(name, value, "float") from e

    def set(self, name: str, value: str) -> None:
        self.fields[name] = value

    def set_float(self, name: str, value: float) -> None:
        """Store a float rounded to two decimal places."""
        self.fields[name] = f"{value:.2f}"

    def set_uint(self, name: str, value: int) -> None:
        """Store a non-negative integer."""
        if value < 0:
            raise ValueError(f"unsigned value expected for field '{name}', got {value}")
        self.fields[name] = str(int(value))

    def merge(self, other: 'Record') -> None:
        """Copy all fields of `other` into this record, overwriting collisions."""
        self.fields.update(other.fields)

    def fields_hash(self, names: Iterable[str]) -> str:
        """
        Build a deterministic grouping key over the given field names.

        Items keep the order of `names` and look like `'name'=value`, joined
        by `;`. Names missing from the record render as NULL.
        """
        return ";".join(f"'{name}'={self.fields.get(name, 'NULL')}" for name in names)

    def project(self, names: Iterable[str]) -> 'Record':
        """Return a new record with exactly `names`; missing ones become empty strings."""
        return Record({name: self.fields.get(name, "") for name in names})

    def names(self) -> List[str]:
        return list(self.fields)

    def items(self) -> ItemsView[str, str]:
        return self.fields.items()

    def is_empty(self) -> bool:
        return not self.fields

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, name: object) -> bool:
        return name in self.fields
