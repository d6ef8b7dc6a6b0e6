"""
Runtime-typed message tree.

A GenericMessage is an ordered collection of named fields whose shape is only
known once a message type has been discovered on the ROS graph. Each field is
one of:

- SimpleField: a single scalar value, or a nested GenericMessage
- ArrayField: a fixed number of homogeneous elements
- SequenceField: a resizable, unbounded list of homogeneous elements
- BoundedSequenceField: a resizable list capped at max_len elements

Field order is the schema declaration order and is the dimension used by
field paths: index i always means the i-th declared field.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union


# =============================================================================
# Scalar Kinds
# =============================================================================


class ScalarKind(Enum):
    """Element kinds, named after their rosidl type strings."""

    FLOAT = "float"
    DOUBLE = "double"
    LONG_DOUBLE = "long double"
    CHAR = "char"
    WCHAR = "wchar"
    BOOLEAN = "boolean"
    OCTET = "octet"
    UINT8 = "uint8"
    INT8 = "int8"
    UINT16 = "uint16"
    INT16 = "int16"
    UINT32 = "uint32"
    INT32 = "int32"
    UINT64 = "uint64"
    INT64 = "int64"
    STRING = "string"
    BOUNDED_STRING = "bounded string"
    WSTRING = "wstring"
    BOUNDED_WSTRING = "bounded wstring"
    MESSAGE = "message"


# Inclusive ranges for integer kinds
INTEGER_RANGES: Dict[ScalarKind, Tuple[int, int]] = {
    ScalarKind.OCTET: (0, 2**8 - 1),
    ScalarKind.UINT8: (0, 2**8 - 1),
    ScalarKind.INT8: (-(2**7), 2**7 - 1),
    ScalarKind.UINT16: (0, 2**16 - 1),
    ScalarKind.INT16: (-(2**15), 2**15 - 1),
    ScalarKind.UINT32: (0, 2**32 - 1),
    ScalarKind.INT32: (-(2**31), 2**31 - 1),
    ScalarKind.UINT64: (0, 2**64 - 1),
    ScalarKind.INT64: (-(2**63), 2**63 - 1),
}

FLOAT_KINDS = (ScalarKind.FLOAT, ScalarKind.DOUBLE, ScalarKind.LONG_DOUBLE)

CHAR_KINDS = (ScalarKind.CHAR, ScalarKind.WCHAR)

STRING_KINDS = (
    ScalarKind.STRING,
    ScalarKind.BOUNDED_STRING,
    ScalarKind.WSTRING,
    ScalarKind.BOUNDED_WSTRING,
)


def is_text_kind(kind: ScalarKind) -> bool:
    """Return True for strings and single characters, both held as Python str."""
    return kind in STRING_KINDS or kind in CHAR_KINDS


def zero_value(kind: ScalarKind, prototype: Optional["GenericMessage"] = None) -> Any:
    """Return the value used when a field is created or a sequence grows."""
    if kind is ScalarKind.MESSAGE:
        if prototype is None:
            raise ValueError("A message element needs a prototype to be created")
        return prototype.copy()
    if kind in FLOAT_KINDS:
        return 0.0
    if kind is ScalarKind.BOOLEAN:
        return False
    if is_text_kind(kind):
        return ""
    return 0


def format_value(kind: ScalarKind, value: Any) -> str:
    """Return the display text for a scalar: strings quoted, booleans lowercase."""
    if kind is ScalarKind.BOOLEAN:
        return "true" if value else "false"
    if kind in STRING_KINDS:
        return f'"{value}"'
    if kind in CHAR_KINDS:
        return f"'{value}'"
    return str(value)


def edit_text(kind: ScalarKind, value: Any) -> str:
    """Return the plain text used to seed an edit buffer."""
    if kind is ScalarKind.BOOLEAN:
        return "true" if value else "false"
    return str(value)


# =============================================================================
# Interface Type
# =============================================================================


@dataclass(frozen=True)
class InterfaceType:
    """Fully qualified interface name, e.g. nav_msgs/msg/Odometry."""

    package_name: str
    category: str
    type_name: str

    @classmethod
    def parse(cls, name: str) -> "InterfaceType":
        """Accept both 'pkg/msg/Type' and the short 'pkg/Type' spelling."""
        parts = [p for p in name.strip().split("/") if p]
        if len(parts) == 3:
            return cls(parts[0], parts[1], parts[2])
        if len(parts) == 2:
            return cls(parts[0], "msg", parts[1])
        raise ValueError(f"Invalid interface type name: '{name}'")

    def __str__(self) -> str:
        return f"{self.package_name}/{self.category}/{self.type_name}"


# =============================================================================
# Field Nodes
# =============================================================================


@dataclass
class SimpleField:
    """A single scalar, or a nested message when kind is MESSAGE."""

    kind: ScalarKind
    value: Any
    max_len: Optional[int] = None  # bounded strings only


@dataclass
class ContainerField:
    """Common shape of arrays and sequences.

    prototype is the default element used to grow a container of messages.
    """

    kind: ScalarKind
    values: List[Any] = field(default_factory=list)
    prototype: Optional["GenericMessage"] = None

    def __len__(self) -> int:
        return len(self.values)

    def new_element(self) -> Any:
        return zero_value(self.kind, self.prototype)


@dataclass
class ArrayField(ContainerField):
    """Fixed-length container."""


@dataclass
class SequenceField(ContainerField):
    """Unbounded, resizable container."""


@dataclass
class BoundedSequenceField(ContainerField):
    """Resizable container whose length never exceeds max_len."""

    max_len: int = 0


GenericField = Union[SimpleField, ArrayField, SequenceField, BoundedSequenceField]


def is_message_field(node: GenericField) -> bool:
    return isinstance(node, SimpleField) and node.kind is ScalarKind.MESSAGE


# =============================================================================
# Message Container
# =============================================================================


class GenericMessage:
    """Ordered name -> field mapping plus the interface type it was built from."""

    def __init__(
        self,
        type_name: InterfaceType,
        fields: Optional[Dict[str, GenericField]] = None,
    ):
        self.type_name = type_name
        self.fields: Dict[str, GenericField] = dict(fields or {})

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def __getitem__(self, name: str) -> GenericField:
        return self.fields[name]

    def __contains__(self, name: str) -> bool:
        return name in self.fields

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GenericMessage):
            return NotImplemented
        return self.type_name == other.type_name and list(self.fields.items()) == list(
            other.fields.items()
        )

    def __repr__(self) -> str:
        return f"GenericMessage({self.type_name}, {len(self.fields)} fields)"

    def items(self) -> List[Tuple[str, GenericField]]:
        return list(self.fields.items())

    def names(self) -> List[str]:
        return list(self.fields)

    def field_at(self, index: int) -> Tuple[str, GenericField]:
        """Return (name, field) of the index-th declared field."""
        if index < 0 or index >= len(self.fields):
            raise IndexError(index)
        # Dicts keep insertion order, which is the schema order
        return list(self.fields.items())[index]

    def copy(self) -> "GenericMessage":
        return copy.deepcopy(self)


@dataclass
class MessageMetadata:
    """Receipt information delivered alongside every decoded sample."""

    received_time: float = 0.0
