"""
Field path addressing over a GenericMessage.

A field path is a list of non-negative integers. The first index picks a
declared field of the message. A container field consumes one more index as
the element selector. Nested messages, either as a field value or as a
container element, consume the remainder recursively.

All lookups raise a FieldPathError subclass on failure and never modify the
tree.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence, Union

from ros2tui.generic_message import (
    ArrayField,
    BoundedSequenceField,
    ContainerField,
    GenericMessage,
    ScalarKind,
    SequenceField,
    SimpleField,
)

FieldPath = List[int]


# =============================================================================
# Errors
# =============================================================================


class FieldPathError(Exception):
    """Base class for addressing and editing failures."""


class PathEmpty(FieldPathError):
    """A message node was addressed with no remaining path."""


class IndexOutOfBounds(FieldPathError):
    """An index exceeds the current field or element count."""


class UnsupportedField(FieldPathError):
    """The addressed node cannot be mutated this way."""


class ParseFailure(FieldPathError):
    """Edit text does not match the target scalar kind."""


# =============================================================================
# Classification
# =============================================================================


class FieldCategory(Enum):
    BASE = "base"
    MESSAGE = "message"
    ARRAY = "array"
    SEQUENCE = "sequence"
    BOUNDED_SEQUENCE = "bounded_sequence"


def category_of(node) -> FieldCategory:
    if isinstance(node, SimpleField):
        if node.kind is ScalarKind.MESSAGE:
            return FieldCategory.MESSAGE
        return FieldCategory.BASE
    if isinstance(node, BoundedSequenceField):
        return FieldCategory.BOUNDED_SEQUENCE
    if isinstance(node, SequenceField):
        return FieldCategory.SEQUENCE
    if isinstance(node, ArrayField):
        return FieldCategory.ARRAY
    raise TypeError(f"Not a field node: {node!r}")


def _lookup(msg: GenericMessage, index: int):
    if index < 0 or index >= len(msg):
        raise IndexOutOfBounds(f"Field index {index} out of range ({len(msg)} fields)")
    return msg.field_at(index)[1]


def classify(msg: GenericMessage, path: Sequence[int]) -> FieldCategory:
    """Return the category of the node at path.

    The empty path is the message itself. An element of a message container
    is a MESSAGE; an element of a scalar container is BASE and nothing below
    it is addressable.
    """
    if not path:
        return FieldCategory.MESSAGE
    node = _lookup(msg, path[0])
    rest = path[1:]
    if not rest:
        return category_of(node)

    if isinstance(node, SimpleField):
        if node.kind is ScalarKind.MESSAGE:
            return classify(node.value, rest)
        raise IndexOutOfBounds(f"Scalar field {path[0]} has no children")

    element = rest[0]
    if element < 0 or element >= len(node.values):
        raise IndexOutOfBounds(
            f"Element index {element} out of range ({len(node.values)} elements)"
        )
    if node.kind is ScalarKind.MESSAGE:
        if len(rest) == 1:
            return FieldCategory.MESSAGE
        return classify(node.values[element], rest[1:])
    if len(rest) > 1:
        raise IndexOutOfBounds("Scalar container elements have no children")
    return FieldCategory.BASE


def has_field(msg: GenericMessage, path: Sequence[int]) -> bool:
    """True when path addresses an existing node (the empty path always does)."""
    try:
        classify(msg, path)
    except FieldPathError:
        return False
    return True


# =============================================================================
# References
# =============================================================================


@dataclass(frozen=True)
class FieldValue:
    """Read-only view of an addressed leaf or container."""

    kind: ScalarKind
    value: Any
    category: FieldCategory
    max_len: Optional[int] = None


class ScalarRef:
    """Mutable handle on a single scalar leaf.

    The leaf is either a SimpleField or one element of a scalar container.
    """

    def __init__(self, owner: Union[SimpleField, ContainerField], index: Optional[int] = None):
        self.owner = owner
        self.index = index

    @property
    def kind(self) -> ScalarKind:
        return self.owner.kind

    def get(self) -> Any:
        if self.index is None:
            return self.owner.value
        return self.owner.values[self.index]

    def set(self, value: Any):
        if self.index is None:
            self.owner.value = value
        else:
            self.owner.values[self.index] = value


class ContainerRef:
    """Mutable handle on a whole container, used for length changes."""

    def __init__(self, container: ContainerField):
        self.container = container

    @property
    def kind(self) -> ScalarKind:
        return self.container.kind

    @property
    def resizable(self) -> bool:
        return not isinstance(self.container, ArrayField)

    def __len__(self) -> int:
        return len(self.container.values)

    def resize(self, length: int) -> int:
        """Set the element count and return the resulting length.

        Arrays never change. Bounded sequences clamp to their max_len and
        unbounded sequences floor at zero. New elements take the kind's zero
        value, or a copy of the prototype for message elements.
        """
        values = self.container.values
        if not self.resizable:
            return len(values)
        length = max(0, length)
        if isinstance(self.container, BoundedSequenceField):
            length = min(length, self.container.max_len)
        if length > len(values):
            if self.container.kind is ScalarKind.MESSAGE and self.container.prototype is None:
                raise UnsupportedField("No default element available for this sequence")
            values.extend(self.container.new_element() for _ in range(length - len(values)))
        else:
            del values[length:]
        return len(values)

    def grow(self) -> int:
        return self.resize(len(self) + 1)

    def shrink(self) -> int:
        return self.resize(len(self) - 1)


MutableRef = Union[ScalarRef, ContainerRef]


def _resolve(msg: GenericMessage, path: Sequence[int]):
    """Walk path and return (owner, element_index) of the addressed node.

    element_index is None for SimpleFields and for containers addressed as a
    whole.
    """
    if not path:
        raise PathEmpty("A message is not a leaf")
    node = _lookup(msg, path[0])
    rest = path[1:]

    if isinstance(node, SimpleField):
        if node.kind is ScalarKind.MESSAGE:
            return _resolve(node.value, rest)
        if rest:
            raise IndexOutOfBounds(f"Scalar field {path[0]} has no children")
        return node, None

    if not rest:
        return node, None
    element = rest[0]
    if element < 0 or element >= len(node.values):
        raise IndexOutOfBounds(
            f"Element index {element} out of range ({len(node.values)} elements)"
        )
    if node.kind is ScalarKind.MESSAGE:
        return _resolve(node.values[element], rest[1:])
    if len(rest) > 1:
        raise IndexOutOfBounds("Scalar container elements have no children")
    return node, element


def read(msg: GenericMessage, path: Sequence[int]) -> FieldValue:
    """Resolve path to a leaf value or, for a container path, the whole list."""
    owner, element = _resolve(msg, path)
    if isinstance(owner, SimpleField):
        return FieldValue(owner.kind, owner.value, FieldCategory.BASE, owner.max_len)
    if element is not None:
        return FieldValue(owner.kind, owner.values[element], FieldCategory.BASE)
    max_len = owner.max_len if isinstance(owner, BoundedSequenceField) else None
    return FieldValue(owner.kind, list(owner.values), category_of(owner), max_len)


def mutable(msg: GenericMessage, path: Sequence[int]) -> MutableRef:
    """Resolve path to a ScalarRef for a leaf or a ContainerRef for a container."""
    owner, element = _resolve(msg, path)
    if isinstance(owner, ContainerField) and element is None:
        return ContainerRef(owner)
    if owner.kind is ScalarKind.LONG_DOUBLE:
        raise UnsupportedField("long double values cannot be edited")
    return ScalarRef(owner, element)


# =============================================================================
# Path Helpers
# =============================================================================


def deepest_path(msg: GenericMessage, path: Sequence[int]) -> Optional[FieldPath]:
    """Expand an under-specified path to the last addressable node below it.

    Wherever an index is missing the last field or last element is taken.
    Returns None when nothing is addressable there.
    """
    if len(msg) == 0:
        return None
    if not path:
        return deepest_path(msg, [len(msg) - 1])

    index = path[0]
    if index < 0 or index >= len(msg):
        return None
    node = msg.field_at(index)[1]

    if isinstance(node, SimpleField):
        if node.kind is ScalarKind.MESSAGE:
            inner = deepest_path(node.value, path[1:])
            return [index] + inner if inner is not None else None
        return [index] if len(path) == 1 else None

    values = node.values
    if node.kind is ScalarKind.MESSAGE:
        element = path[1] if len(path) >= 2 else len(values) - 1
        if element < 0 or element >= len(values):
            return None
        inner = deepest_path(values[element], path[2:])
        if inner is None:
            # An element of a type without fields is a line of its own
            if len(path) <= 2 and len(values[element]) == 0:
                return [index, element]
            return None
        return [index, element] + inner

    if len(path) >= 2 and path[1] >= len(values):
        return None
    if len(path) == 2:
        return [index, path[1]]
    if not values:
        return None
    return [index, len(values) - 1]


def field_name_path(msg: GenericMessage, path: Sequence[int]) -> str:
    """Return a dotted label for a path, e.g. pose.covariance[3]."""
    parts: List[str] = []
    current = msg
    i = 0
    while i < len(path) and current is not None:
        if path[i] < 0 or path[i] >= len(current):
            break
        name, node = current.field_at(path[i])
        parts.append(name if not parts else "." + name)
        i += 1
        current = None
        if isinstance(node, SimpleField):
            if node.kind is ScalarKind.MESSAGE:
                current = node.value
            continue
        if i < len(path):
            parts.append(f"[{path[i]}]")
            if node.kind is ScalarKind.MESSAGE and 0 <= path[i] < len(node.values):
                current = node.values[path[i]]
            i += 1
    return "".join(parts)


def numeric_value(msg: GenericMessage, path: Sequence[int]) -> Optional[float]:
    """Return the plot value of a node: numbers as float, booleans 0/1, lengths otherwise."""
    try:
        value = read(msg, path)
    except FieldPathError:
        return None
    if value.category is not FieldCategory.BASE:
        return float(len(value.value))
    if value.kind is ScalarKind.BOOLEAN:
        return 1.0 if value.value else 0.0
    if isinstance(value.value, str):
        return float(len(value.value))
    try:
        return float(value.value)
    except (TypeError, ValueError):
        return None
