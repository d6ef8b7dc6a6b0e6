"""
Row layout of a message tree.

The heights computed here must agree line for line with message_widget's
paint routine: callers reserve space and clip with them.
"""

import math
from typing import Sequence, Union

from ros2tui.generic_message import (
    STRING_KINDS,
    ContainerField,
    GenericField,
    GenericMessage,
    ScalarKind,
    SimpleField,
)

# Fixed column width of one value in a scalar grid
CELL_WIDTH = 10

# Indentation of nested messages and message elements
INDENT = 2


def cells_per_row(width: int) -> int:
    return max(1, width // CELL_WIDTH)


def message_height(msg: GenericMessage, width: int) -> int:
    """Count the rows needed by all fields of msg (a message has no header of its own)."""
    return sum(field_height(node, width) for node in msg.fields.values())


def element_height(element: GenericMessage, width: int) -> int:
    """Count the rows of one message element inside a container of the given width.

    An element of a type without fields still takes its "- " line.
    """
    return max(1, message_height(element, width - INDENT))


def field_height(node: GenericField, width: int) -> int:
    if isinstance(node, SimpleField):
        if node.kind is ScalarKind.MESSAGE:
            return 1 + message_height(node.value, width - INDENT)
        return 1
    return 1 + container_body_height(node, width)


def container_body_height(node: ContainerField, width: int) -> int:
    """Count the rows below a container's header line."""
    if node.kind is ScalarKind.MESSAGE:
        return sum(element_height(element, width) for element in node.values)
    if node.kind in STRING_KINDS:
        return len(node.values)
    return math.ceil(len(node.values) / cells_per_row(width))


def height(node: Union[GenericMessage, GenericField], width: int) -> int:
    if isinstance(node, GenericMessage):
        return message_height(node, width)
    return field_height(node, width)


# =============================================================================
# Selection and Scrolling
# =============================================================================


def selection_height(msg: GenericMessage, path: Sequence[int], width: int) -> int:
    """Count the rows from the top of msg down to and including the selected line."""
    if not path:
        return 0
    rows = 0
    for i, node in enumerate(msg.fields.values()):
        if i != path[0]:
            rows += field_height(node, width)
            continue
        return rows + _field_selection_height(node, path[1:], width)
    return rows


def _field_selection_height(node: GenericField, rest: Sequence[int], width: int) -> int:
    if isinstance(node, SimpleField):
        if node.kind is ScalarKind.MESSAGE and rest:
            return 1 + selection_height(node.value, rest, width - INDENT)
        return 1
    if not rest:
        return 1

    element = rest[0]
    if node.kind is ScalarKind.MESSAGE:
        rows = 1
        for j in range(min(element, len(node.values))):
            rows += element_height(node.values[j], width)
        if element < len(node.values) and rest[1:]:
            # The element's first field shares the "- " line
            return rows + selection_height(node.values[element], rest[1:], width - INDENT)
        return rows + 1
    if node.kind in STRING_KINDS:
        return 1 + element + 1
    return 1 + element // cells_per_row(width) + 1


def scroll_offset(msg: GenericMessage, path: Sequence[int], width: int, area_height: int) -> int:
    """Return the first visible row that keeps the selection near the middle of the area."""
    selected = selection_height(msg, path, width)
    total = message_height(msg, width)
    return max(0, min(selected - area_height // 2, total - area_height))
