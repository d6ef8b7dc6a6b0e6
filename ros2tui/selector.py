"""Four-directional cursor movement over a GenericMessage."""

from typing import List, Sequence

from ros2tui.field_path import FieldPath, deepest_path, has_field
from ros2tui.generic_message import GenericMessage


def down(msg: GenericMessage, path: Sequence[int]) -> FieldPath:
    """Move to the next line in rendering order: first child, else next sibling, else outward."""
    if len(msg) == 0:
        return []
    if not path:
        return [0]

    result = list(path) + [0]
    if has_field(msg, result):
        return result
    result.pop()

    result[-1] += 1
    while result and not has_field(msg, result):
        result.pop()
        if result:
            result[-1] += 1
    return result


def up(msg: GenericMessage, path: Sequence[int]) -> FieldPath:
    """Move to the previous line in rendering order.

    Moving to the previous sibling lands on that sibling's deepest node; at
    the first sibling the cursor moves to the parent.
    """
    if len(msg) == 0:
        return []
    if not path:
        return [len(msg) - 1]

    result = list(path)
    if result[-1] > 0:
        result[-1] -= 1
        expanded = deepest_path(msg, result)
        return expanded if expanded is not None else result

    result.pop()
    return result


def left(msg: GenericMessage, path: Sequence[int]) -> FieldPath:
    if len(msg) == 0:
        return []
    if not path:
        return [len(msg) - 1]

    result = list(path)
    if len(result) == 1 and result[0] > 0:
        result[0] -= 1
        return result

    result.pop()
    return result


def right(msg: GenericMessage, path: Sequence[int]) -> FieldPath:
    if len(msg) == 0:
        return []
    if not path:
        return [0]
    # Past the last top-level field the selection clears
    if len(path) == 1 and path[0] + 1 > len(msg) - 1:
        return []

    result = list(path)
    result[-1] += 1
    if has_field(msg, result):
        return result
    return list(path)


def last_field_path(msg: GenericMessage) -> FieldPath:
    if len(msg) == 0:
        return []
    return deepest_path(msg, []) or []


_MOVES = {"up": up, "down": down, "left": left, "right": right}


class MessageSelector:
    """Cursor state over one message tree.

    The tree may be swapped for a newer sample of the same type; the cursor
    keeps its path as long as that path still exists.
    """

    def __init__(self, message: GenericMessage, path: Sequence[int] = ()):
        self.message = message
        self.path: List[int] = list(path)

    def set_message(self, message: GenericMessage):
        self.message = message
        if not has_field(message, self.path):
            self.path = []

    def navigate(self, direction: str) -> FieldPath:
        """Move the cursor; a move to a missing path leaves it unchanged."""
        move = _MOVES.get(direction)
        if move is None:
            raise ValueError(f"Unknown direction '{direction}'")
        candidate = move(self.message, self.path)
        if has_field(self.message, candidate):
            self.path = candidate
        return list(self.path)
