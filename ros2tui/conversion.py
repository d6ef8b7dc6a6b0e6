"""
Conversion between rclpy message instances and GenericMessage trees.

Message classes describe their fields through get_fields_and_field_types(),
which returns rosidl type strings such as:

    int32, double[36], sequence<double>, sequence<int32, 5>,
    string<=10, geometry_msgs/Pose, sequence<geometry_msgs/Point, 3>

Nested message classes are looked up through a resolver callable, by default
rosidl_runtime_py.utilities.get_message.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from rosidl_runtime_py.utilities import get_message

from ros2tui.generic_message import (
    FLOAT_KINDS,
    INTEGER_RANGES,
    ArrayField,
    BoundedSequenceField,
    ContainerField,
    GenericField,
    GenericMessage,
    InterfaceType,
    ScalarKind,
    SequenceField,
    SimpleField,
    zero_value,
)

logger = logging.getLogger(__name__)

Resolver = Callable[[str], type]

_SEQUENCE_RE = re.compile(r"^sequence<(?P<element>.+?)(?:,\s*(?P<bound>\d+))?>$")
_ARRAY_RE = re.compile(r"^(?P<element>.+)\[(?P<size>\d+)\]$")
_BOUNDED_STRING_RE = re.compile(r"^(?P<base>w?string)<=(?P<bound>\d+)$")

_ALIASES = {
    "byte": ScalarKind.OCTET,
    "float32": ScalarKind.FLOAT,
    "float64": ScalarKind.DOUBLE,
    "bool": ScalarKind.BOOLEAN,
}


# =============================================================================
# Type Strings
# =============================================================================


@dataclass(frozen=True)
class FieldType:
    """Parsed rosidl type string."""

    container: str  # "simple", "array", "sequence" or "bounded_sequence"
    kind: ScalarKind
    size: Optional[int] = None  # array length or sequence bound
    message_type: Optional[str] = None  # nested message, e.g. geometry_msgs/Pose
    string_bound: Optional[int] = None


def _parse_element(text: str) -> Tuple[ScalarKind, Optional[str], Optional[int]]:
    text = text.strip()
    match = _BOUNDED_STRING_RE.match(text)
    if match:
        kind = ScalarKind.BOUNDED_STRING if match["base"] == "string" else ScalarKind.BOUNDED_WSTRING
        return kind, None, int(match["bound"])
    if "/" in text:
        return ScalarKind.MESSAGE, text, None
    if text in _ALIASES:
        return _ALIASES[text], None, None
    try:
        return ScalarKind(text), None, None
    except ValueError:
        raise ValueError(f"Unknown field type '{text}'")


def parse_field_type(type_string: str) -> FieldType:
    type_string = type_string.strip()
    match = _SEQUENCE_RE.match(type_string)
    if match:
        kind, message_type, string_bound = _parse_element(match["element"])
        if match["bound"] is not None:
            return FieldType("bounded_sequence", kind, int(match["bound"]), message_type, string_bound)
        return FieldType("sequence", kind, None, message_type, string_bound)
    match = _ARRAY_RE.match(type_string)
    if match:
        kind, message_type, string_bound = _parse_element(match["element"])
        return FieldType("array", kind, int(match["size"]), message_type, string_bound)
    kind, message_type, string_bound = _parse_element(type_string)
    return FieldType("simple", kind, None, message_type, string_bound)


def interface_type_of(msg_class: type) -> InterfaceType:
    """Return the interface type of a generated class, e.g. nav_msgs.msg._odometry.Odometry."""
    parts = msg_class.__module__.split(".")
    category = parts[1] if len(parts) > 1 else "msg"
    return InterfaceType(parts[0], category, msg_class.__name__)


def _resolve(resolve: Resolver, type_name: str) -> type:
    # get_message wants the full pkg/msg/Type spelling
    return resolve(str(InterfaceType.parse(type_name)))


# =============================================================================
# Scalar Values
# =============================================================================


def _to_python(kind: ScalarKind, value: Any) -> Any:
    """Normalize an rclpy scalar (numpy scalar, bytes, ...) to a plain Python value."""
    if kind is ScalarKind.OCTET and isinstance(value, (bytes, bytearray)):
        return value[0] if value else 0
    if kind in INTEGER_RANGES:
        return int(value)
    if kind in FLOAT_KINDS:
        return float(value)
    if kind is ScalarKind.BOOLEAN:
        return bool(value)
    if kind in (ScalarKind.CHAR, ScalarKind.WCHAR) and isinstance(value, int):
        return chr(value)
    return value


def _from_python(kind: ScalarKind, value: Any) -> Any:
    """Undo _to_python: octets go back to single bytes."""
    if kind is ScalarKind.OCTET:
        return bytes([value])
    return value


# =============================================================================
# Class -> Tree
# =============================================================================


def generic_from_class(msg_class: type, resolve: Resolver = get_message) -> GenericMessage:
    """Build a tree of zero values matching msg_class's schema."""
    fields: Dict[str, GenericField] = {}
    for name, type_string in msg_class.get_fields_and_field_types().items():
        fields[name] = _zero_field(parse_field_type(type_string), resolve)
    return GenericMessage(interface_type_of(msg_class), fields)


def _zero_field(field_type: FieldType, resolve: Resolver) -> GenericField:
    prototype = None
    if field_type.kind is ScalarKind.MESSAGE:
        prototype = generic_from_class(_resolve(resolve, field_type.message_type), resolve)

    if field_type.container == "simple":
        value = prototype if prototype is not None else zero_value(field_type.kind)
        return SimpleField(field_type.kind, value, field_type.string_bound)
    if field_type.container == "array":
        values = [zero_value(field_type.kind, prototype) for _ in range(field_type.size)]
        return ArrayField(field_type.kind, values, prototype)
    if field_type.container == "bounded_sequence":
        return BoundedSequenceField(field_type.kind, [], prototype, field_type.size)
    return SequenceField(field_type.kind, [], prototype)


# =============================================================================
# Instance -> Tree
# =============================================================================


class MessageConverter:
    """Converts rclpy messages to trees, caching per-class schema lookups."""

    def __init__(self, resolve: Resolver = get_message):
        self.resolve = resolve
        self._types: Dict[type, Dict[str, FieldType]] = {}
        self._prototypes: Dict[str, GenericMessage] = {}

    def field_types(self, msg_class: type) -> Dict[str, FieldType]:
        if msg_class not in self._types:
            self._types[msg_class] = {
                name: parse_field_type(type_string)
                for name, type_string in msg_class.get_fields_and_field_types().items()
            }
        return self._types[msg_class]

    def prototype(self, message_type: str) -> GenericMessage:
        if message_type not in self._prototypes:
            msg_class = _resolve(self.resolve, message_type)
            self._prototypes[message_type] = generic_from_class(msg_class, self.resolve)
        return self._prototypes[message_type]

    def to_generic(self, msg: Any) -> GenericMessage:
        msg_class = type(msg)
        fields: Dict[str, GenericField] = {}
        for name, field_type in self.field_types(msg_class).items():
            fields[name] = self._field_to_generic(field_type, getattr(msg, name))
        return GenericMessage(interface_type_of(msg_class), fields)

    def _field_to_generic(self, field_type: FieldType, value: Any) -> GenericField:
        kind = field_type.kind
        if field_type.container == "simple":
            if kind is ScalarKind.MESSAGE:
                return SimpleField(kind, self.to_generic(value))
            return SimpleField(kind, _to_python(kind, value), field_type.string_bound)

        if kind is ScalarKind.MESSAGE:
            prototype = self.prototype(field_type.message_type)
            values = [self.to_generic(element) for element in value]
        else:
            prototype = None
            values = [_to_python(kind, element) for element in value]
        if field_type.container == "array":
            return ArrayField(kind, values, prototype)
        if field_type.container == "bounded_sequence":
            return BoundedSequenceField(kind, values, prototype, field_type.size)
        return SequenceField(kind, values, prototype)

    # -- Tree -> Instance -----------------------------------------------------

    def to_message(self, generic: GenericMessage, msg_class: Optional[type] = None) -> Any:
        """Build an rclpy message instance from a tree."""
        if msg_class is None:
            msg_class = _resolve(self.resolve, str(generic.type_name))
        msg = msg_class()
        field_types = self.field_types(msg_class)
        for name, node in generic.fields.items():
            field_type = field_types.get(name)
            if field_type is None:
                logger.warning(f"Field '{name}' is not part of {msg_class.__name__}, skipped")
                continue
            setattr(msg, name, self._field_to_message(field_type, node, getattr(msg, name)))
        return msg

    def _field_to_message(self, field_type: FieldType, node: GenericField, current: Any) -> Any:
        kind = field_type.kind
        if isinstance(node, SimpleField):
            if kind is ScalarKind.MESSAGE:
                return self.to_message(node.value, type(current))
            return _from_python(kind, node.value)

        if not isinstance(node, ContainerField):
            raise TypeError(f"Unsupported field node {type(node).__name__}")
        if kind is ScalarKind.MESSAGE:
            element_class = _resolve(self.resolve, field_type.message_type)
            return [self.to_message(element, element_class) for element in node.values]
        return [_from_python(kind, value) for value in node.values]


def message_to_generic(msg: Any, resolve: Resolver = get_message) -> GenericMessage:
    return MessageConverter(resolve).to_generic(msg)


def generic_to_message(generic: GenericMessage, msg_class: Optional[type] = None, resolve: Resolver = get_message) -> Any:
    return MessageConverter(resolve).to_message(generic, msg_class)
