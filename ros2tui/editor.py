"""
Edit engine for the publish-side message tree.

Edits are staged as text, validated against the addressed scalar kind and only
written once validation passes. A failed commit never touches the tree and
keeps the staged text so it can be corrected.
"""

import logging
import math
import re
from typing import Any, Optional, Sequence

from ros2tui.field_path import (
    ContainerRef,
    FieldPath,
    FieldPathError,
    ParseFailure,
    PathEmpty,
    ScalarRef,
    UnsupportedField,
    field_name_path,
    mutable,
)
from ros2tui.generic_message import (
    CHAR_KINDS,
    INTEGER_RANGES,
    STRING_KINDS,
    GenericMessage,
    ScalarKind,
    edit_text,
)

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT32_MAX = 3.4028234663852886e38


# =============================================================================
# Validation
# =============================================================================


def validate(kind: ScalarKind, text: str) -> bool:
    """Check that text parses as a value of kind."""
    if kind in INTEGER_RANGES:
        if not _INTEGER_RE.fullmatch(text):
            return False
        low, high = INTEGER_RANGES[kind]
        # Unsigned kinds reject a minus sign, "-0" included
        if low == 0 and text.startswith("-"):
            return False
        return low <= int(text) <= high
    if kind in (ScalarKind.FLOAT, ScalarKind.DOUBLE):
        if not text or any(c.isspace() for c in text) or "_" in text:
            return False
        try:
            float(text)
        except ValueError:
            return False
        return True
    if kind is ScalarKind.BOOLEAN:
        return text.lower() in ("true", "false")
    if kind in CHAR_KINDS:
        return len(text) == 1
    if kind in STRING_KINDS:
        return True
    # long double and nested messages have no text form
    return False


def parse_value(kind: ScalarKind, text: str) -> Any:
    """Convert validated text to the Python value stored in the tree."""
    if not validate(kind, text):
        raise ParseFailure(f"'{text}' is not a valid {kind.value}")
    if kind in INTEGER_RANGES:
        return int(text)
    if kind is ScalarKind.FLOAT:
        value = float(text)
        # Values beyond float32 range saturate to infinity
        if math.isfinite(value) and abs(value) > _FLOAT32_MAX:
            return math.copysign(math.inf, value)
        return value
    if kind is ScalarKind.DOUBLE:
        return float(text)
    if kind is ScalarKind.BOOLEAN:
        return text.lower() == "true"
    return text


# =============================================================================
# Edit Engine
# =============================================================================


class EditEngine:
    """Stages text edits and container resizes against one message tree."""

    def __init__(self, message: GenericMessage):
        self.message = message
        self.editing = False
        self.buffer = ""
        self.path: FieldPath = []

    # -- text editing ---------------------------------------------------------

    def _leaf(self, path: Sequence[int]) -> ScalarRef:
        try:
            ref = mutable(self.message, path)
        except PathEmpty:
            raise UnsupportedField("Messages cannot be edited as text")
        if not isinstance(ref, ScalarRef):
            raise UnsupportedField("Only scalar fields can be edited")
        return ref

    def begin_edit(self, path: Sequence[int]) -> str:
        """Start editing the leaf at path and stage its current value."""
        ref = self._leaf(path)
        self.path = list(path)
        self.buffer = edit_text(ref.kind, ref.get())
        self.editing = True
        return self.buffer

    def cancel_edit(self):
        self.editing = False
        self.buffer = ""

    def type_char(self, char: str):
        if self.editing:
            self.buffer += char

    def backspace(self):
        if self.editing:
            self.buffer = self.buffer[:-1]

    def current_kind(self) -> Optional[ScalarKind]:
        if not self.editing:
            return None
        try:
            return self._leaf(self.path).kind
        except FieldPathError:
            return None

    def is_valid(self) -> bool:
        kind = self.current_kind()
        return kind is not None and validate(kind, self.buffer)

    def commit(self, path: Sequence[int], text: str) -> Any:
        """Write text to the leaf at path.

        Resolve, validate and write happen strictly in that order so a
        failure leaves the tree untouched.
        """
        ref = self._leaf(path)
        value = parse_value(ref.kind, text)
        ref.set(value)
        logger.debug(f"Set {field_name_path(self.message, path)} = {value!r}")
        return value

    def commit_edit(self, text: Optional[str] = None) -> Any:
        """Commit the staged buffer (or text) to the path being edited.

        On failure the editing state and buffer are preserved.
        """
        if not self.editing:
            raise UnsupportedField("No edit in progress")
        if text is not None:
            self.buffer = text
        value = self.commit(self.path, self.buffer)
        self.editing = False
        self.buffer = ""
        return value

    # -- container length -----------------------------------------------------

    def _container(self, path: Sequence[int]) -> ContainerRef:
        ref = mutable(self.message, path)
        if not isinstance(ref, ContainerRef):
            raise UnsupportedField("Only arrays and sequences have a length")
        return ref

    def resize(self, path: Sequence[int], length: int) -> int:
        return self._container(path).resize(length)

    def grow(self, path: Sequence[int]) -> int:
        """Append one default element; a no-op on arrays and full bounded sequences."""
        return self._container(path).grow()

    def shrink(self, path: Sequence[int]) -> int:
        """Drop the last element; a no-op on arrays and empty sequences."""
        return self._container(path).shrink()

    def enclosing_container(self, path: Sequence[int]) -> Optional[FieldPath]:
        """Find the nearest path at or above path that addresses a container."""
        for n in range(len(path), 0, -1):
            candidate = list(path[:n])
            try:
                self._container(candidate)
            except FieldPathError:
                continue
            return candidate
        return None
