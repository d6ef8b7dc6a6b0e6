"""
Paint a message tree into a character region.

Painting goes into a CharBuffer owned by the caller. Every cell carries a
symbolic style that the terminal front end maps onto curses attributes, which
keeps this module free of any terminal dependency.

Line structure mirrors layout.py exactly:

    header:
      stamp:
        sec: 0
        nanosec: 0
      frame_id: ""
    covariance: 36 elements
    0.0       0.0       0.0       0.0
    points: 2 elements (max: 5)
    - x: 0.0
      y: 0.0
"""

from typing import List, NamedTuple, Optional, Sequence

from ros2tui.editor import validate
from ros2tui.generic_message import (
    STRING_KINDS,
    BoundedSequenceField,
    ContainerField,
    GenericField,
    GenericMessage,
    ScalarKind,
    SimpleField,
    format_value,
)
from ros2tui.layout import (
    CELL_WIDTH,
    INDENT,
    cells_per_row,
    element_height,
    field_height,
    message_height,
    scroll_offset,
)

# Cell styles
NORMAL = "normal"
HEADER = "header"
SELECTED = "selected"
VALID = "valid"
INVALID = "invalid"


class Rect(NamedTuple):
    x: int
    y: int
    width: int
    height: int


class CharBuffer:
    """Fixed-size grid of characters, each with a style."""

    def __init__(self, width: int, height: int):
        self.width = max(0, width)
        self.height = max(0, height)
        self.chars: List[List[str]] = [[" "] * self.width for _ in range(self.height)]
        self.styles: List[List[str]] = [[NORMAL] * self.width for _ in range(self.height)]

    def put(self, x: int, y: int, text: str, style: str = NORMAL, max_width: Optional[int] = None):
        """Write text at (x, y), clipped to max_width and to the buffer."""
        if y < 0 or y >= self.height:
            return
        if max_width is not None:
            text = text[: max(0, max_width)]
        for offset, char in enumerate(text):
            col = x + offset
            if col < 0:
                continue
            if col >= self.width:
                break
            self.chars[y][col] = char
            self.styles[y][col] = style

    def line(self, y: int) -> str:
        return "".join(self.chars[y])

    def lines(self) -> List[str]:
        return [self.line(y) for y in range(self.height)]

    def spans(self, y: int) -> List[tuple]:
        """Split row y into (column, text, style) runs for the terminal front end."""
        runs = []
        start = 0
        for col in range(1, self.width + 1):
            if col == self.width or self.styles[y][col] != self.styles[y][start]:
                runs.append((start, "".join(self.chars[y][start:col]), self.styles[y][start]))
                start = col
        return runs

    def blit(self, source: "CharBuffer", area: Rect, offset: int = 0):
        """Copy rows offset.. of source into area of this buffer."""
        for row in range(area.height):
            src_y = row + offset
            if src_y >= source.height:
                break
            dst_y = area.y + row
            if dst_y < 0 or dst_y >= self.height:
                continue
            for col in range(min(area.width, source.width)):
                dst_x = area.x + col
                if 0 <= dst_x < self.width:
                    self.chars[dst_y][dst_x] = source.chars[src_y][col]
                    self.styles[dst_y][dst_x] = source.styles[src_y][col]


# =============================================================================
# Painting
# =============================================================================


def _sub_selection(selection: Optional[Sequence[int]], index: int) -> Optional[Sequence[int]]:
    """Return the selection relative to child index, or None if the child is not on it."""
    if selection and selection[0] == index:
        return selection[1:]
    return None


def _edit_style(kind: ScalarKind, edit: str) -> str:
    return VALID if validate(kind, edit) else INVALID


def paint_fields(
    buf: CharBuffer,
    area: Rect,
    msg: GenericMessage,
    selection: Optional[Sequence[int]] = None,
    edit: Optional[str] = None,
):
    """Paint every field of msg top to bottom, clipping at the area's bottom."""
    y = area.y
    remaining = area.height
    for i, (name, node) in enumerate(msg.fields.items()):
        if remaining <= 0:
            break
        child_selection = _sub_selection(selection, i)
        rows = min(field_height(node, area.width), remaining)
        paint_field(
            buf,
            Rect(area.x, y, area.width, rows),
            name,
            node,
            child_selection,
            edit if child_selection is not None else None,
        )
        y += rows
        remaining -= rows


def paint_field(
    buf: CharBuffer,
    area: Rect,
    name: str,
    node: GenericField,
    selection: Optional[Sequence[int]] = None,
    edit: Optional[str] = None,
):
    """Paint one named field; selection is relative to this field."""
    if area.width <= 0 or area.height <= 0:
        return
    style = SELECTED if selection is not None else NORMAL

    if isinstance(node, SimpleField):
        label = f"{name}: "
        buf.put(area.x, area.y, label, style, area.width)
        if node.kind is ScalarKind.MESSAGE:
            paint_fields(
                buf,
                Rect(area.x + INDENT, area.y + 1, area.width - INDENT, area.height - 1),
                node.value,
                selection,
                edit,
            )
            return
        value_x = area.x + len(label)
        value_width = area.width - len(label)
        if edit is not None and selection is not None and not selection:
            buf.put(value_x, area.y, edit, _edit_style(node.kind, edit), value_width)
        else:
            buf.put(value_x, area.y, format_value(node.kind, node.value), style, value_width)
        return

    _paint_container(buf, area, name, node, selection, edit)


def _paint_container(
    buf: CharBuffer,
    area: Rect,
    name: str,
    node: ContainerField,
    selection: Optional[Sequence[int]],
    edit: Optional[str],
):
    style = SELECTED if selection is not None else NORMAL
    label = f"{name}:"
    count = f" {len(node.values)} elements"
    if isinstance(node, BoundedSequenceField):
        count += f" (max: {node.max_len})"
    buf.put(area.x, area.y, label, style, area.width)
    buf.put(area.x + len(label), area.y, count, HEADER, area.width - len(label))

    y = area.y + 1
    bottom = area.y + area.height
    if y >= bottom:
        return

    if node.kind is ScalarKind.MESSAGE:
        for j, element in enumerate(node.values):
            if y >= bottom:
                break
            element_selection = _sub_selection(selection, j)
            rows = min(element_height(element, area.width), bottom - y)
            buf.put(area.x, y, "- ", SELECTED if element_selection is not None else NORMAL)
            paint_fields(
                buf,
                Rect(area.x + INDENT, y, area.width - INDENT, rows),
                element,
                element_selection,
                edit if element_selection is not None else None,
            )
            y += rows
        return

    if node.kind in STRING_KINDS:
        for j, value in enumerate(node.values):
            if y >= bottom:
                break
            element_selection = _sub_selection(selection, j)
            item_style = SELECTED if element_selection is not None else NORMAL
            buf.put(area.x, y, "- ", item_style, area.width)
            if element_selection is not None and edit is not None:
                buf.put(area.x + 2, y, edit, _edit_style(node.kind, edit), area.width - 2)
            else:
                buf.put(area.x + 2, y, format_value(node.kind, value), item_style, area.width - 2)
            y += 1
        return

    per_row = cells_per_row(area.width)
    for j, value in enumerate(node.values):
        row, column = divmod(j, per_row)
        cell_y = y + row
        if cell_y >= bottom:
            break
        cell_x = area.x + column * CELL_WIDTH
        element_selection = _sub_selection(selection, j)
        if element_selection is not None and edit is not None:
            text, cell_style = edit, _edit_style(node.kind, edit)
        else:
            text = format_value(node.kind, value)
            cell_style = SELECTED if element_selection is not None else NORMAL
        buf.put(cell_x, cell_y, text, cell_style, min(CELL_WIDTH - 1, area.x + area.width - cell_x))


class MessageWidget:
    """A message tree with an optional cursor and edit buffer.

    Rendering auto-scrolls so the selected line stays near the middle of the
    area; rows outside the area are clipped.
    """

    def __init__(
        self,
        message: GenericMessage,
        selection: Optional[Sequence[int]] = None,
        edit: Optional[str] = None,
    ):
        self.message = message
        self.selection = list(selection) if selection is not None else None
        self.edit = edit
        self.scroll = 0

    def height(self, width: int) -> int:
        return message_height(self.message, width)

    def paint(self, buf: CharBuffer, area: Rect, auto_scroll: bool = True):
        if area.width <= 0 or area.height <= 0:
            return
        if auto_scroll:
            self.scroll = scroll_offset(
                self.message, self.selection or [], area.width, area.height
            )
        # Paint into a taller scratch region, then copy the visible window
        scratch = CharBuffer(area.width, area.height + self.scroll)
        paint_fields(
            scratch,
            Rect(0, 0, area.width, scratch.height),
            self.message,
            self.selection,
            self.edit,
        )
        buf.blit(scratch, area, self.scroll)


def paint_message(
    buf: CharBuffer,
    area: Rect,
    message: GenericMessage,
    cursor_path: Optional[Sequence[int]] = None,
    edit: Optional[str] = None,
) -> int:
    """Paint message into area of buf and return the scroll offset used."""
    widget = MessageWidget(message, cursor_path, edit)
    widget.paint(buf, area)
    return widget.scroll
