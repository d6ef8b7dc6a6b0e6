#!/usr/bin/env python3
"""
ros2tui - Interactive terminal tool for ROS 2 topics, nodes and messages.

Uses curses (standard library) for the terminal interface.
Requires PyYAML for configuration loading.
Falls back to simple text mode when no TTY is available.

Message types are discovered at runtime, so every message is handled as a
GenericMessage tree that can be browsed, plotted and edited field by field.

Views (one tab each):
- Topics: list of topics with Echo / Pub / Hz actions
- Nodes: node list with publishers, subscribers, services and clients
- Echo: live message tree with cursor navigation and auto-scroll
- Publisher: editable message tree published on demand
- Hz: braille plot of a topic's message frequency
- Live plot: braille plot of numeric fields picked from echo views
"""

import argparse
import curses
import logging
import os
import signal
import sys
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from rclpy.executors import MultiThreadedExecutor
import rclpy

from ros2tui.config import SIMPLE_MODE_REFRESH_INTERVAL, load_config
from ros2tui.editor import EditEngine
from ros2tui.field_path import FieldPathError, field_name_path
from ros2tui.generic_message import GenericMessage
from ros2tui.message_widget import (
    HEADER,
    INVALID,
    SELECTED,
    VALID,
    CharBuffer,
    MessageWidget,
    Rect,
)
from ros2tui.plot import BrailleCanvas, axis_labels, plot_series, value_bounds
from ros2tui.ros_connection import NodeId, NodeInfo, RosConnection, TransportError
from ros2tui.sample_cell import HzWindow, LatestSample, ValueWindow
from ros2tui.selector import MessageSelector

logger = logging.getLogger(__name__)

# =============================================================================
# Keys
# =============================================================================

KEY_ESC = 27
KEY_TAB = 9
ENTER_KEYS = (curses.KEY_ENTER, 10, 13)
BACKSPACE_KEYS = (curses.KEY_BACKSPACE, 127, 8)

# Seconds a status line message stays visible
STATUS_MSG_TIMEOUT = 3.0

# Seconds to wait for a topic to show up in discovery on startup
TOPIC_DISCOVERY_TIMEOUT = 3.0

# Key -> navigation direction shared by the message views
NAVIGATION_KEYS = {
    curses.KEY_UP: "up",
    ord("k"): "up",
    curses.KEY_DOWN: "down",
    ord("j"): "down",
    curses.KEY_LEFT: "left",
    ord("h"): "left",
    curses.KEY_RIGHT: "right",
    ord("l"): "right",
}


def is_printable(key: int) -> bool:
    return 32 <= key < 127


# =============================================================================
# Views
# =============================================================================


class View:
    """One tab of the TUI."""

    name = "View"
    shortcuts: List[Tuple[str, str]] = []

    def __init__(self, app: "Ros2TUI"):
        self.app = app

    def title(self) -> str:
        return self.name

    def handle_key(self, key: int) -> bool:
        """Return True when the key was consumed by the view."""
        return False

    def draw(self, y: int, x: int, h: int, w: int):
        pass

    def simple_lines(self, width: int) -> List[str]:
        """Render the view as plain text for simple (non-TTY) mode."""
        return []

    def close(self):
        pass


class TopicListView(View):
    """Topic list with an action selector for the highlighted topic."""

    name = "Topics"
    ACTIONS = ("Echo", "Pub", "Hz")
    shortcuts = [
        ("j/k", "Move in the topic list"),
        ("h/l", "Select action (Echo, Pub, Hz)"),
        ("Enter", "Run the action on the topic"),
    ]

    def __init__(self, app: "Ros2TUI"):
        super().__init__(app)
        self.topics: List[Tuple[str, str]] = []
        self.selected = 0
        self.scroll = 0
        self.action = 0
        self._last_refresh = 0.0

    def refresh(self, force: bool = False):
        now = time.time()
        if not force and now - self._last_refresh < self.app.graph_refresh_interval:
            return
        self._last_refresh = now
        previous = self.topics[self.selected][0] if self.topics else None
        self.topics = self.app.node.list_topics()
        # Keep the highlighted topic when the list changes underneath it
        names = [name for name, _ in self.topics]
        if previous in names:
            self.selected = names.index(previous)
        self.selected = max(0, min(self.selected, len(self.topics) - 1))

    def handle_key(self, key: int) -> bool:
        if key in (curses.KEY_DOWN, ord("j")):
            if self.topics:
                self.selected = (self.selected + 1) % len(self.topics)
        elif key in (curses.KEY_UP, ord("k")):
            if self.topics:
                self.selected = (self.selected - 1) % len(self.topics)
        elif key in (curses.KEY_RIGHT, ord("l")):
            self.action = min(self.action + 1, len(self.ACTIONS) - 1)
        elif key in (curses.KEY_LEFT, ord("h")):
            self.action = max(self.action - 1, 0)
        elif key in ENTER_KEYS:
            if not self.topics:
                return True
            topic, type_name = self.topics[self.selected]
            action = self.ACTIONS[self.action]
            if action == "Echo":
                self.app.open_echo(topic, type_name)
            elif action == "Pub":
                self.app.open_publisher(topic, type_name)
            else:
                self.app.open_hz(topic, type_name)
        else:
            return False
        return True

    def draw(self, y: int, x: int, h: int, w: int):
        self.refresh()
        self.app.draw_box(y, x, h, w, "Topic List")
        # Action selector in the box title
        col = x + 14
        for i, action in enumerate(self.ACTIONS):
            attr = curses.A_REVERSE | curses.A_BOLD if i == self.action else curses.A_DIM
            self.app.safe_addstr(y, col, f" {action} ", attr)
            col += len(action) + 3

        if not self.topics:
            self.app.safe_addstr(
                y + h // 2, x + 2, "No topics discovered yet", curses.color_pair(Ros2TUI.COLOR_WARN)
            )
            return

        visible = max(1, h - 2)
        if self.selected < self.scroll:
            self.scroll = self.selected
        elif self.selected >= self.scroll + visible:
            self.scroll = self.selected - visible + 1

        name_w = max(len(name) for name, _ in self.topics) + 2
        row = y + 1
        for i in range(self.scroll, min(self.scroll + visible, len(self.topics))):
            name, type_name = self.topics[i]
            is_sel = i == self.selected
            marker = ">" if is_sel else " "
            line = f"{marker} {name:<{name_w}}{type_name}"
            attr = curses.A_REVERSE | curses.A_BOLD if is_sel else 0
            self.app.safe_addstr(row, x + 1, line[: w - 2].ljust(w - 2), attr)
            row += 1

    def simple_lines(self, width: int) -> List[str]:
        self.refresh(force=True)
        if not self.topics:
            return ["  No topics discovered yet"]
        return [f"  {name:<40} {type_name}" for name, type_name in self.topics]


class NodeListView(View):
    """Node list on the left, endpoints of the selected node on the right."""

    name = "Nodes"
    shortcuts = [
        ("j/k", "Move in the node list or details"),
        ("l", "Focus the details panel"),
        ("h", "Focus the node list"),
    ]

    def __init__(self, app: "Ros2TUI"):
        super().__init__(app)
        self.nodes: List[NodeId] = []
        self.info: Optional[NodeInfo] = None
        self.selected = 0
        self.selected_detail = 0
        self.details_focused = False
        self._last_refresh = 0.0

    def refresh(self, force: bool = False):
        now = time.time()
        if not force and now - self._last_refresh < self.app.graph_refresh_interval:
            return
        self._last_refresh = now
        previous = self.nodes[self.selected] if self.nodes else None
        self.nodes = self.app.node.list_nodes()
        if previous in self.nodes:
            self.selected = self.nodes.index(previous)
        self.selected = max(0, min(self.selected, len(self.nodes) - 1))
        self.info = self.app.node.node_info(self.nodes[self.selected]) if self.nodes else None

    def detail_rows(self) -> List[Tuple[str, bool]]:
        """Return the (text, is_header) rows of the details panel."""
        if self.info is None:
            return []
        rows = []
        for section, entries in self.info.sections():
            rows.append((f"{section} ({len(entries)})", True))
            for name in sorted(entries):
                rows.append((f"  {name} [{', '.join(entries[name])}]", False))
        return rows

    def _select_node(self, index: int):
        self.selected = index
        self.selected_detail = 0
        self.info = self.app.node.node_info(self.nodes[index])

    def handle_key(self, key: int) -> bool:
        if key in (curses.KEY_DOWN, ord("j"), curses.KEY_UP, ord("k")):
            step = 1 if key in (curses.KEY_DOWN, ord("j")) else -1
            if self.details_focused:
                count = len(self.detail_rows())
                self.selected_detail = max(0, min(self.selected_detail + step, count - 1))
            elif self.nodes:
                self._select_node((self.selected + step) % len(self.nodes))
        elif key in (curses.KEY_RIGHT, ord("l")):
            self.details_focused = True
        elif key in (curses.KEY_LEFT, ord("h")):
            self.details_focused = False
        else:
            return False
        return True

    def draw(self, y: int, x: int, h: int, w: int):
        self.refresh()
        left_w = min(40, max(20, w // 3))
        right_w = w - left_w
        self.app.draw_box(y, x, h, left_w, "Nodes")
        self.app.draw_box(y, x + left_w, h, right_w, "Details")

        if not self.nodes:
            self.app.safe_addstr(
                y + 2, x + 2, "No nodes discovered yet", curses.color_pair(Ros2TUI.COLOR_WARN)
            )
            return

        visible = max(1, h - 2)
        scroll = max(0, self.selected - visible + 1)
        row = y + 1
        for i in range(scroll, min(scroll + visible, len(self.nodes))):
            is_sel = i == self.selected
            attr = curses.A_REVERSE if is_sel else 0
            if is_sel and not self.details_focused:
                attr |= curses.A_BOLD
            self.app.safe_addstr(row, x + 1, self.nodes[i].full_name[: left_w - 2].ljust(left_w - 2), attr)
            row += 1

        rows = self.detail_rows()
        scroll = max(0, self.selected_detail - visible + 1)
        row = y + 1
        for i in range(scroll, min(scroll + visible, len(rows))):
            text, is_header = rows[i]
            if is_header:
                attr = curses.color_pair(Ros2TUI.COLOR_INFO) | curses.A_BOLD
            else:
                attr = 0
            if self.details_focused and i == self.selected_detail:
                attr |= curses.A_REVERSE
            self.app.safe_addstr(row, x + left_w + 1, text[: right_w - 2], attr)
            row += 1

    def simple_lines(self, width: int) -> List[str]:
        self.refresh(force=True)
        return [f"  {node.full_name}" for node in self.nodes] or ["  No nodes discovered yet"]


class MessageView(View):
    """Shared drawing of a message tree with a cursor."""

    def __init__(self, app: "Ros2TUI"):
        super().__init__(app)
        self.selector: Optional[MessageSelector] = None
        self.widget: Optional[MessageWidget] = None

    def draw_message(
        self,
        message: GenericMessage,
        y: int,
        x: int,
        h: int,
        w: int,
        edit: Optional[str] = None,
    ):
        area = Rect(0, 0, w, h)
        buf = CharBuffer(w, h)
        self.widget = MessageWidget(message, self.selector.path if self.selector else None, edit)
        self.widget.paint(buf, area)
        self.app.draw_char_buffer(buf, y, x)

    def navigate(self, key: int) -> bool:
        direction = NAVIGATION_KEYS.get(key)
        if direction is None or self.selector is None:
            return False
        self.selector.navigate(direction)
        return True

    def selection_label(self) -> str:
        if self.selector is None or not self.selector.path:
            return ""
        return field_name_path(self.selector.message, self.selector.path)


class EchoView(MessageView):
    """Latest message received on a topic."""

    name = "Echo"
    shortcuts = [
        ("arrows/hjkl", "Move the field cursor"),
        ("p", "Plot the selected field"),
        ("space", "Pause / resume updates"),
    ]

    def __init__(self, app: "Ros2TUI", topic: str, type_name: str):
        super().__init__(app)
        self.topic = topic
        self.type_name = type_name
        self.cell = LatestSample()
        self.paused = False
        self.message: Optional[GenericMessage] = None
        self.subscription = app.node.subscribe(topic, self.cell.put, type_name)

    def title(self) -> str:
        return f"Echo {self.topic}"

    def _update(self):
        if self.paused:
            return
        message, _ = self.cell.get()
        if message is None:
            return
        self.message = message
        if self.selector is None:
            self.selector = MessageSelector(message)
        else:
            self.selector.set_message(message)

    def handle_key(self, key: int) -> bool:
        if self.navigate(key):
            return True
        if key == ord(" "):
            self.paused = not self.paused
            self.app.set_status("Paused" if self.paused else "Resumed")
            return True
        if key == ord("p"):
            if self.selector is None or not self.selector.path:
                self.app.set_status("Select a field to plot")
                return True
            self.app.request_plot(self.topic, self.type_name, list(self.selector.path), self.selection_label())
            return True
        return False

    def draw(self, y: int, x: int, h: int, w: int):
        self._update()
        title = f"{self.topic} [{self.type_name}]"
        if self.paused:
            title += " (paused)"
        self.app.draw_box(y, x, h, w, title)
        count = self.cell.count
        self.app.safe_addstr(y + h - 1, x + 2, f" {count} msgs {self.selection_label()} ", curses.A_DIM)
        if self.message is None:
            self.app.safe_addstr(
                y + h // 2, x + 2, "Waiting for messages...", curses.color_pair(Ros2TUI.COLOR_WARN)
            )
            return
        self.draw_message(self.message, y + 1, x + 1, h - 2, w - 2)

    def simple_lines(self, width: int) -> List[str]:
        self._update()
        lines = [f"[{self.topic}] {self.type_name}"]
        if self.message is None:
            return lines + ["  (waiting for messages)"]
        buf = CharBuffer(width, MessageWidget(self.message).height(width))
        MessageWidget(self.message).paint(buf, Rect(0, 0, buf.width, buf.height), auto_scroll=False)
        return lines + [line.rstrip() for line in buf.lines()]

    def close(self):
        self.app.node.unsubscribe(self.subscription)
        self.cell.close()


class PublisherView(MessageView):
    """Editable message tree published to a topic on demand."""

    name = "Publisher"
    shortcuts = [
        ("arrows/hjkl", "Move the field cursor"),
        ("Enter", "Edit the selected value / commit the edit"),
        ("Esc", "Cancel the edit"),
        ("a", "Append an element to the selected sequence"),
        ("d", "Remove the last element of the selected sequence"),
        ("p", "Publish the message"),
    ]

    def __init__(self, app: "Ros2TUI", topic: str, type_name: str):
        super().__init__(app)
        self.topic = topic
        self.type_name = type_name
        self.message = app.node.message_template(type_name)
        self.publish = app.node.create_generic_publisher(topic, type_name)
        self.editor = EditEngine(self.message)
        self.selector = MessageSelector(self.message)
        self.sent = 0

    def title(self) -> str:
        return f"Pub {self.topic}"

    def _handle_edit_key(self, key: int):
        if key in ENTER_KEYS:
            try:
                self.editor.commit_edit()
            except FieldPathError as e:
                self.app.set_status(f"Invalid value: {e}")
        elif key == KEY_ESC:
            self.editor.cancel_edit()
        elif key in BACKSPACE_KEYS:
            self.editor.backspace()
        elif is_printable(key):
            self.editor.type_char(chr(key))

    def _resize(self, grow: bool):
        path = self.editor.enclosing_container(self.selector.path)
        if path is None:
            self.app.set_status("Select a sequence to resize")
            return
        try:
            length = self.editor.grow(path) if grow else self.editor.shrink(path)
        except FieldPathError as e:
            self.app.set_status(str(e))
            return
        self.app.set_status(f"{field_name_path(self.message, path)}: {length} elements")
        # Elements removed from under the cursor
        self.selector.set_message(self.message)

    def handle_key(self, key: int) -> bool:
        if self.editor.editing:
            # Every key belongs to the edit buffer while editing
            self._handle_edit_key(key)
            return True
        if self.navigate(key):
            return True
        if key in ENTER_KEYS:
            try:
                self.editor.begin_edit(self.selector.path)
            except FieldPathError:
                self.app.set_status("Select a value to edit")
        elif key == ord("a"):
            self._resize(grow=True)
        elif key == ord("d"):
            self._resize(grow=False)
        elif key == ord("p"):
            try:
                self.publish(self.message)
            except Exception as e:
                logger.error(f"Failed to publish on {self.topic}: {e}")
                self.app.show_error(f"Failed to publish on {self.topic}: {e}")
                return True
            self.sent += 1
            self.app.set_status(f"Published on {self.topic} ({self.sent})")
        else:
            return False
        return True

    def draw(self, y: int, x: int, h: int, w: int):
        title = f"{self.topic} [{self.type_name}]"
        if self.editor.editing:
            title += " (editing)"
        self.app.draw_box(y, x, h, w, title)
        self.app.safe_addstr(y + h - 1, x + 2, f" {self.sent} sent {self.selection_label()} ", curses.A_DIM)
        edit = self.editor.buffer if self.editor.editing else None
        self.draw_message(self.message, y + 1, x + 1, h - 2, w - 2, edit)

    def simple_lines(self, width: int) -> List[str]:
        return [f"[{self.topic}] publisher, {self.sent} sent"]


@dataclass
class PlotLine:
    topic: str
    label: str
    window: Any
    subscription: Any


class PlotView(View):
    """Common braille chart for the Hz and live plot views."""

    shortcuts = [
        ("h", "Increase the time window"),
        ("l", "Decrease the time window"),
    ]

    def __init__(self, app: "Ros2TUI"):
        super().__init__(app)
        self.lines: List[PlotLine] = []
        self.max_duration = app.plot_max_duration

    def handle_key(self, key: int) -> bool:
        if key in (curses.KEY_LEFT, ord("h")):
            self.max_duration += 1.0
            for line in self.lines:
                line.window.increase_duration()
        elif key in (curses.KEY_RIGHT, ord("l")):
            if self.max_duration > 1.0:
                self.max_duration -= 1.0
            for line in self.lines:
                line.window.decrease_duration()
        else:
            return False
        return True

    def draw(self, y: int, x: int, h: int, w: int):
        self.app.draw_box(y, x, h, w, self.title())
        now = time.time()
        series = [(line.label, line.window.snapshot()) for line in self.lines]
        self.app.draw_plot(y + 1, x + 1, h - 2, w - 2, series, (now - self.max_duration, now))

    def close(self):
        for line in self.lines:
            self.app.node.unsubscribe(line.subscription)


class HzPlotView(PlotView):
    """Message rate of one or more topics on a shared time axis."""

    name = "Hz"

    def add_line(self, topic: str, type_name: str):
        window = HzWindow(self.app.hz_window_size, self.max_duration)
        subscription = self.app.node.subscribe(topic, window.on_message, type_name)
        self.lines.append(PlotLine(topic, topic, window, subscription))

    def title(self) -> str:
        rates = ", ".join(f"{line.topic} {line.window.current_hz:.2f} Hz" for line in self.lines)
        return f"Hz {rates} - {self.max_duration:.0f}s"

    def simple_lines(self, width: int) -> List[str]:
        return [f"  {line.topic:<40} {line.window.current_hz:8.2f} Hz" for line in self.lines]


class LivePlotView(PlotView):
    name = "Plot"

    def add_line(self, topic: str, type_name: str, path: Sequence[int], label: str):
        window = ValueWindow(path, self.max_duration)
        subscription = self.app.node.subscribe(topic, window.on_message, type_name)
        self.lines.append(PlotLine(topic, f"{topic} {label}", window, subscription))

    def title(self) -> str:
        return f"Live Data - {self.max_duration:.0f}s"

    def simple_lines(self, width: int) -> List[str]:
        lines = []
        for line in self.lines:
            points = line.window.snapshot()
            value = f"{points[-1][1]:.3f}" if points else "---"
            lines.append(f"  {line.label:<50} {value}")
        return lines


# =============================================================================
# Popups
# =============================================================================


class ErrorPopup:
    def __init__(self, message: str):
        self.message = message

    def handle_key(self, key: int) -> bool:
        """Return True when the popup should close."""
        return key in ENTER_KEYS or key == KEY_ESC

    def draw(self, app: "Ros2TUI", max_y: int, max_x: int):
        box_w = min(max_x - 4, max(40, len(self.message) + 6))
        inner = box_w - 4
        lines = [self.message[i : i + inner] for i in range(0, len(self.message), inner)] or [""]
        box_h = len(lines) + 4
        box_y = max(0, max_y // 2 - box_h // 2)
        box_x = max(0, max_x // 2 - box_w // 2)
        app.clear_area(box_y, box_x, box_h, box_w)
        app.draw_box(box_y, box_x, box_h, box_w, "Error")
        for i, text in enumerate(lines):
            app.safe_addstr(box_y + 1 + i, box_x + 2, text, curses.color_pair(Ros2TUI.COLOR_CRIT) | curses.A_BOLD)
        app.safe_addstr(box_y + box_h - 2, box_x + 2, "Enter/Esc to close", curses.A_DIM)


class SelectPlotPopup:
    """Pick one of the open plot views, or a new one, to receive a line."""

    def __init__(self, title: str, candidates: List[Tuple[int, str]]):
        self.title = title
        self.candidates = candidates
        self.selected = 0

    def confirm(self, app: "Ros2TUI", view_index: Optional[int]):
        raise NotImplementedError

    def handle_key(self, key: int, app: "Ros2TUI") -> bool:
        if key == KEY_ESC:
            return True
        if key in (curses.KEY_UP, ord("k")):
            self.selected = max(0, self.selected - 1)
        elif key in (curses.KEY_DOWN, ord("j")):
            # The extra last entry is "new plot"
            self.selected = min(len(self.candidates), self.selected + 1)
        elif key in ENTER_KEYS:
            view_index = self.candidates[self.selected][0] if self.selected < len(self.candidates) else None
            self.confirm(app, view_index)
            return True
        return False

    def draw(self, app: "Ros2TUI", max_y: int, max_x: int):
        entries = [name for _, name in self.candidates] + ["+ New plot"]
        box_w = min(max_x - 4, max(36, max(len(e) for e in entries) + 8))
        box_h = len(entries) + 4
        box_y = max(0, max_y // 2 - box_h // 2)
        box_x = max(0, max_x // 2 - box_w // 2)
        app.clear_area(box_y, box_x, box_h, box_w)
        app.draw_box(box_y, box_x, box_h, box_w, self.title)
        for i, entry in enumerate(entries):
            marker = ">" if i == self.selected else " "
            attr = curses.A_REVERSE | curses.A_BOLD if i == self.selected else 0
            app.safe_addstr(box_y + 1 + i, box_x + 2, f"{marker} {entry:<{box_w - 8}}", attr)
        app.safe_addstr(box_y + box_h - 2, box_x + 2, "Up/Down:select  Enter:confirm  Esc:cancel", curses.A_DIM)


class AddLinePopup(SelectPlotPopup):
    """Send a message field to an existing live plot or a new one."""

    def __init__(self, topic: str, type_name: str, path: List[int], label: str, candidates: List[Tuple[int, str]]):
        super().__init__(f"Plot {label}", candidates)
        self.topic = topic
        self.type_name = type_name
        self.path = path
        self.label = label

    def confirm(self, app: "Ros2TUI", view_index: Optional[int]):
        app.add_plot_line(view_index, self.topic, self.type_name, self.path, self.label)


class AddHzPopup(SelectPlotPopup):
    """Send a topic's message rate to an existing Hz plot or a new one."""

    def __init__(self, topic: str, type_name: str, candidates: List[Tuple[int, str]]):
        super().__init__(f"Hz {topic}", candidates)
        self.topic = topic
        self.type_name = type_name

    def confirm(self, app: "Ros2TUI", view_index: Optional[int]):
        app.add_hz_line(view_index, self.topic, self.type_name)


# =============================================================================
# TUI
# =============================================================================


class Ros2TUI:
    """Curses-based TUI hosting a set of tabbed views."""

    # Color pair indices
    COLOR_OK = 1
    COLOR_WARN = 2
    COLOR_CRIT = 3
    COLOR_INFO = 4
    # Plot lines cycle through these pairs
    COLOR_PLOT_BASE = 5
    PLOT_COLORS = (
        curses.COLOR_RED,
        curses.COLOR_GREEN,
        curses.COLOR_YELLOW,
        curses.COLOR_BLUE,
        curses.COLOR_MAGENTA,
        curses.COLOR_CYAN,
    )

    def __init__(self, node: RosConnection, config: Optional[Dict[str, Any]] = None):
        self.node = node
        self.config = config if config is not None else node.config
        self.running = True
        self.stdscr = None
        self.views: List[View] = []
        self.active = 0
        self.popup: Any = None
        self.show_help = False

        self._status_msg = ""
        self._status_msg_time = 0.0

        settings = self.config["settings"]
        self.refresh_ms = settings["refresh_ms"]
        self.REFRESH_MIN_MS = settings["refresh_min_ms"]
        self.REFRESH_MAX_MS = settings["refresh_max_ms"]
        self.REFRESH_STEP_MS = settings["refresh_step_ms"]
        self.hz_window_size = settings["hz_window_size"]
        self.plot_max_duration = settings["plot_max_duration"]
        self.graph_refresh_interval = settings["graph_refresh_interval"]

    # =========================================================================
    # Drawing helpers
    # =========================================================================

    def safe_addstr(self, y: int, x: int, text: str, attr=0):
        """Safely add string, handling screen boundaries."""
        if self.stdscr is None:
            return
        max_y, max_x = self.stdscr.getmaxyx()
        if y < 0 or y >= max_y or x < 0:
            return
        available = max_x - x - 1
        if available <= 0:
            return
        try:
            self.stdscr.addstr(y, x, text[:available], attr)
        except curses.error:
            pass

    def draw_box(self, y: int, x: int, h: int, w: int, title: str = ""):
        """Draw a box with optional title using ASCII characters."""
        if h < 2 or w < 2:
            return
        self.safe_addstr(y, x, "+" + "-" * (w - 2) + "+")
        if title:
            self.safe_addstr(y, x + 2, f" {title} "[: max(0, w - 4)], curses.A_BOLD)
        for i in range(1, h - 1):
            self.safe_addstr(y + i, x, "|")
            self.safe_addstr(y + i, x + w - 1, "|")
        self.safe_addstr(y + h - 1, x, "+" + "-" * (w - 2) + "+")

    def clear_area(self, y: int, x: int, h: int, w: int):
        for i in range(h):
            self.safe_addstr(y + i, x, " " * w)

    def style_attr(self, style: str) -> int:
        """Map a message widget cell style to a curses attribute."""
        if style == SELECTED:
            return curses.A_REVERSE | curses.A_BOLD
        if style == VALID:
            return curses.color_pair(self.COLOR_OK) | curses.A_REVERSE | curses.A_BOLD
        if style == INVALID:
            return curses.color_pair(self.COLOR_CRIT) | curses.A_REVERSE | curses.A_BOLD
        if style == HEADER:
            return curses.A_DIM
        return 0

    def draw_char_buffer(self, buf: CharBuffer, y: int, x: int):
        for row in range(buf.height):
            for col, text, style in buf.spans(row):
                if text.strip() or style != "normal":
                    self.safe_addstr(y + row, x + col, text, self.style_attr(style))

    def draw_plot(
        self,
        y: int,
        x: int,
        h: int,
        w: int,
        series: List[Tuple[str, List[Tuple[float, float]]]],
        x_bounds: Tuple[float, float],
    ):
        """Draw a braille chart with y labels on the left and a legend underneath."""
        label_w = 9
        chart_h = h - 2  # x labels + legend
        chart_w = w - label_w
        if chart_h < 2 or chart_w < 4:
            return
        y_bounds = value_bounds([points for _, points in series])

        labels = axis_labels(y_bounds[0], y_bounds[1], 3)
        for label, row in zip(labels, (y + chart_h - 1, y + chart_h // 2, y)):
            self.safe_addstr(row, x, label.rjust(label_w - 1)[: label_w - 1], curses.A_DIM)

        for i, (_, points) in enumerate(series):
            canvas = BrailleCanvas(chart_w, chart_h)
            plot_series(canvas, points, x_bounds, y_bounds)
            attr = curses.color_pair(self.COLOR_PLOT_BASE + i % len(self.PLOT_COLORS)) | curses.A_BOLD
            for row, text in enumerate(canvas.rows()):
                for col, ch in enumerate(text):
                    if ch != " ":
                        self.safe_addstr(y + row, x + label_w + col, ch, attr)

        duration = x_bounds[1] - x_bounds[0]
        self.safe_addstr(y + chart_h, x + label_w, f"-{duration:.0f}s", curses.A_DIM)
        self.safe_addstr(y + chart_h, x + w - 4, "now", curses.A_DIM)

        col = x + label_w
        for i, (label, points) in enumerate(series):
            attr = curses.color_pair(self.COLOR_PLOT_BASE + i % len(self.PLOT_COLORS)) | curses.A_BOLD
            value = f" {points[-1][1]:.3f}" if points else ""
            entry = f"# {label}{value}  "
            self.safe_addstr(y + chart_h + 1, col, entry, attr)
            col += len(entry)

    def draw_tabs(self, max_x: int):
        """Draw the title bar listing every open view."""
        self.safe_addstr(0, 0, " " * max_x, curses.A_REVERSE)
        col = 0
        head = " ros2tui | "
        self.safe_addstr(0, col, head, curses.A_REVERSE | curses.A_BOLD)
        col += len(head)
        for i, view in enumerate(self.views):
            text = f" {i + 1}:{view.title()} "
            attr = curses.A_BOLD if i == self.active else curses.A_REVERSE
            self.safe_addstr(0, col, text, attr)
            col += len(text) + 1

    def draw_footer(self, max_y: int, max_x: int):
        now_t = time.time()
        if self._status_msg and (now_t - self._status_msg_time < STATUS_MSG_TIMEOUT):
            self.safe_addstr(
                max_y - 1,
                0,
                f" {self._status_msg} ".ljust(max_x),
                curses.color_pair(self.COLOR_INFO) | curses.A_REVERSE | curses.A_BOLD,
            )
            return
        self._status_msg = ""
        domain_id = os.environ.get("ROS_DOMAIN_ID", "0")
        status = (
            f" {time.strftime('%H:%M:%S')} | DOM:{domain_id} | {self.refresh_ms}ms"
            " | Tab:next view  x:close  ?:help  q:quit "
        )
        self.safe_addstr(max_y - 1, 0, status.ljust(max_x), curses.A_REVERSE)

    def draw_help_dialog(self):
        """Draw a centered help dialog listing the shortcuts of the active view."""
        if self.stdscr is None:
            return
        max_y, max_x = self.stdscr.getmaxyx()

        shortcuts = [
            ("q", "Quit the application"),
            ("Tab", "Next view"),
            ("S-Tab", "Previous view"),
            ("x", "Close the current view"),
            ("?", "Toggle this help dialog"),
            ("+/-", "Slower / faster refresh"),
        ]
        view = self.active_view()
        if view is not None:
            shortcuts += [("", "")] + list(view.shortcuts)

        max_desc_len = max(len(desc) for _, desc in shortcuts)
        box_w = min(max_x - 4, max_desc_len + 20)
        box_h = len(shortcuts) + 6
        box_y = max(0, max_y // 2 - box_h // 2)
        box_x = max(0, max_x // 2 - box_w // 2)

        self.clear_area(box_y, box_x, box_h, box_w)
        self.draw_box(box_y, box_x, box_h, box_w, "HELP - Keyboard Shortcuts")

        row = box_y + 1
        self.safe_addstr(row, box_x + 2, f"  {'Key':<12} {'Action'}", curses.A_BOLD)
        row += 1
        self.safe_addstr(row, box_x + 2, "-" * (box_w - 4))
        row += 1
        for key_str, desc in shortcuts:
            self.safe_addstr(row, box_x + 4, key_str, curses.color_pair(self.COLOR_INFO) | curses.A_BOLD)
            self.safe_addstr(row, box_x + 16, desc)
            row += 1
        row += 1
        self.safe_addstr(row, box_x + 2, "Press ? or Esc to close", curses.A_DIM)

    # =========================================================================
    # View management
    # =========================================================================

    def active_view(self) -> Optional[View]:
        if not self.views:
            return None
        return self.views[self.active]

    def set_status(self, message: str):
        self._status_msg = message
        self._status_msg_time = time.time()

    def show_error(self, message: str):
        self.popup = ErrorPopup(message)

    def open_view(self, view: View):
        self.views.append(view)
        self.active = len(self.views) - 1

    def _resolve_type(self, topic: str, type_name: Optional[str]) -> str:
        if type_name:
            return type_name
        # Discovery can lag behind startup
        deadline = time.time() + TOPIC_DISCOVERY_TIMEOUT
        while True:
            try:
                return self.node.get_topic_type(topic)
            except TransportError:
                if time.time() >= deadline:
                    raise
                time.sleep(0.1)

    def open_echo(self, topic: str, type_name: Optional[str] = None):
        try:
            self.open_view(EchoView(self, topic, self._resolve_type(topic, type_name)))
        except TransportError as e:
            self.show_error(str(e))

    def open_publisher(self, topic: str, type_name: Optional[str] = None):
        if not type_name:
            type_name = self.config["publisher"]["default_type"]
        try:
            self.open_view(PublisherView(self, topic, type_name))
        except TransportError as e:
            self.show_error(str(e))

    def open_hz(self, topic: str, type_name: Optional[str] = None):
        """Plot the rate of topic, asking which Hz plot gets it once one is open."""
        try:
            type_name = self._resolve_type(topic, type_name)
        except TransportError as e:
            self.show_error(str(e))
            return
        candidates = [(i, view.title()) for i, view in enumerate(self.views) if isinstance(view, HzPlotView)]
        if not candidates:
            self.add_hz_line(None, topic, type_name)
            return
        self.popup = AddHzPopup(topic, type_name, candidates)

    def add_hz_line(self, view_index: Optional[int], topic: str, type_name: str):
        view = HzPlotView(self) if view_index is None else self.views[view_index]
        try:
            view.add_line(topic, type_name)
        except TransportError as e:
            self.show_error(str(e))
            return
        if view_index is None:
            self.open_view(view)
        else:
            self.active = view_index

    def request_plot(self, topic: str, type_name: str, path: List[int], label: str):
        """Ask which live plot should receive the field, or create the first one."""
        candidates = [(i, view.title()) for i, view in enumerate(self.views) if isinstance(view, LivePlotView)]
        if not candidates:
            self.add_plot_line(None, topic, type_name, path, label)
            return
        self.popup = AddLinePopup(topic, type_name, path, label, candidates)

    def add_plot_line(self, view_index: Optional[int], topic: str, type_name: str, path: List[int], label: str):
        view = LivePlotView(self) if view_index is None else self.views[view_index]
        try:
            view.add_line(topic, type_name, path, label)
        except TransportError as e:
            self.show_error(str(e))
            return
        if view_index is None:
            self.open_view(view)
        else:
            self.active = view_index

    def close_active_view(self):
        if len(self.views) <= 1:
            self.set_status("Cannot close the last view")
            return
        view = self.views.pop(self.active)
        view.close()
        self.active = min(self.active, len(self.views) - 1)

    def close_all_views(self):
        for view in self.views:
            view.close()
        self.views = []

    # =========================================================================
    # Input
    # =========================================================================

    def handle_key(self, key: int):
        if key == -1:
            return
        if self.popup is not None:
            popup = self.popup
            if isinstance(popup, SelectPlotPopup):
                done = popup.handle_key(key, self)
            else:
                done = popup.handle_key(key)
            # A failed confirm replaces the popup with an error
            if done and self.popup is popup:
                self.popup = None
            return
        if self.show_help:
            if key in (ord("?"), KEY_ESC):
                self.show_help = False
            return

        view = self.active_view()
        if view is not None and view.handle_key(key):
            return

        if key == ord("q"):
            self.running = False
        elif key == KEY_TAB and self.views:
            self.active = (self.active + 1) % len(self.views)
        elif key == curses.KEY_BTAB and self.views:
            self.active = (self.active - 1) % len(self.views)
        elif key == ord("x"):
            self.close_active_view()
        elif key == ord("?"):
            self.show_help = True
        elif ord("1") <= key <= ord("9"):
            index = key - ord("1")
            if index < len(self.views):
                self.active = index
        elif key in (ord("+"), ord("=")):
            # Increase refresh interval (slower updates)
            self.refresh_ms = min(self.refresh_ms + self.REFRESH_STEP_MS, self.REFRESH_MAX_MS)
            if self.stdscr is not None:
                self.stdscr.timeout(self.refresh_ms)
        elif key in (ord("-"), ord("_")):
            # Decrease refresh interval (faster updates)
            self.refresh_ms = max(self.refresh_ms - self.REFRESH_STEP_MS, self.REFRESH_MIN_MS)
            if self.stdscr is not None:
                self.stdscr.timeout(self.refresh_ms)

    # =========================================================================
    # Main loops
    # =========================================================================

    def run_curses(self, stdscr):
        """Main curses loop."""
        self.stdscr = stdscr
        curses.curs_set(0)  # Hide cursor
        stdscr.nodelay(True)  # Non-blocking input
        stdscr.timeout(self.refresh_ms)
        # Esc should not wait for an escape sequence
        curses.set_escdelay(25)

        curses.start_color()
        curses.use_default_colors()
        curses.init_pair(self.COLOR_OK, curses.COLOR_GREEN, -1)
        curses.init_pair(self.COLOR_WARN, curses.COLOR_YELLOW, -1)
        curses.init_pair(self.COLOR_CRIT, curses.COLOR_RED, -1)
        curses.init_pair(self.COLOR_INFO, curses.COLOR_CYAN, -1)
        for i, color in enumerate(self.PLOT_COLORS):
            curses.init_pair(self.COLOR_PLOT_BASE + i, color, -1)

        while self.running:
            try:
                # erase() instead of clear() to avoid flicker
                stdscr.erase()
                max_y, max_x = stdscr.getmaxyx()

                self.draw_tabs(max_x)
                view = self.active_view()
                if view is not None:
                    view.draw(1, 0, max_y - 2, max_x)
                if self.show_help:
                    self.draw_help_dialog()
                if self.popup is not None:
                    self.popup.draw(self, max_y, max_x)
                self.draw_footer(max_y, max_x)

                stdscr.refresh()
                self.handle_key(stdscr.getch())

            except curses.error:
                pass
            except KeyboardInterrupt:
                self.running = False

    def run_simple(self):
        """Simple text output mode for non-TTY environments."""
        print("ROS2TUI - Simple Mode (no TTY detected)")
        print("=" * 70)
        print("Press Ctrl+C to exit\n")

        while self.running:
            try:
                print("\033[2J\033[H", end="")
                print("=" * 70)
                view = self.active_view()
                print(f" ROS2TUI - {view.title() if view else ''} - Simple Mode")
                print("=" * 70)
                if view is not None:
                    for line in view.simple_lines(80):
                        print(line)
                if self.popup is not None and isinstance(self.popup, ErrorPopup):
                    print(f"\nERROR: {self.popup.message}")
                print("\n" + "=" * 70)
                domain_id = os.environ.get("ROS_DOMAIN_ID", "0")
                print(f"Updated: {time.strftime('%H:%M:%S')} | ROS_DOMAIN_ID: {domain_id}")

                time.sleep(SIMPLE_MODE_REFRESH_INTERVAL)

            except KeyboardInterrupt:
                self.running = False
                break

    def run(self):
        """Run the TUI - uses curses if TTY available, otherwise simple text."""
        if os.isatty(sys.stdout.fileno()):
            try:
                curses.wrapper(self.run_curses)
            except curses.error as e:
                print(f"Curses error: {e}, falling back to simple mode")
                self.run_simple()
        else:
            self.run_simple()

    def stop(self):
        """Stop the TUI."""
        self.running = False


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ros2tui",
        description="Interactive terminal tool for ROS 2 topics, nodes and messages",
    )
    parser.add_argument(
        "-d",
        "--domain-id",
        type=int,
        default=None,
        metavar="ID",
        help="Set the ROS_DOMAIN_ID (0-232). Overrides the environment variable.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default="default",
        metavar="NAME",
        help="Configuration to load: config/<NAME>.yaml in the package, or a file path.",
    )
    commands = parser.add_subparsers(dest="command")

    topic = commands.add_parser("topic", help="Topic views")
    topic_commands = topic.add_subparsers(dest="topic_command")
    topic_commands.add_parser("list", help="List topics")
    echo = topic_commands.add_parser("echo", help="Show the messages of a topic")
    echo.add_argument("name", help="Topic name")
    pub = topic_commands.add_parser("pub", help="Edit and publish messages on a topic")
    pub.add_argument("name", help="Topic name")
    pub.add_argument("type", nargs="?", default=None, help="Message type, e.g. std_msgs/msg/String")
    hz = topic_commands.add_parser("hz", help="Plot the message rate of a topic")
    hz.add_argument("name", help="Topic name")

    node = commands.add_parser("node", help="Node views")
    node_commands = node.add_subparsers(dest="node_command")
    node_commands.add_parser("list", help="List nodes")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    # Parse only known args so ROS args (e.g. --ros-args) pass through
    known, _ = build_parser().parse_known_args(argv)
    return known


def open_initial_views(tui: Ros2TUI, cli_args: argparse.Namespace):
    """Open the views requested on the command line; the topic list is always first."""
    tui.open_view(TopicListView(tui))
    if cli_args.command == "node":
        tui.open_view(NodeListView(tui))
    elif cli_args.command == "topic":
        if cli_args.topic_command == "echo":
            tui.open_echo(cli_args.name)
        elif cli_args.topic_command == "pub":
            tui.open_publisher(cli_args.name, cli_args.type)
        elif cli_args.topic_command == "hz":
            tui.open_hz(cli_args.name)


def main(args=None):
    """Main entry point."""
    cli_args = parse_args()

    if cli_args.domain_id is not None:
        if not 0 <= cli_args.domain_id <= 232:
            print(f"Error: domain-id must be 0-232, got {cli_args.domain_id}")
            sys.exit(1)
        os.environ["ROS_DOMAIN_ID"] = str(cli_args.domain_id)

    config = load_config(cli_args.config)

    rclpy.init(args=args)
    node = RosConnection(config)
    tui = Ros2TUI(node, config)

    # Handle SIGINT and SIGTERM for clean shutdown
    def signal_handler(sig, frame):
        tui.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    # Run ROS spinner in background
    executor = MultiThreadedExecutor()
    executor.add_node(node)
    spin_thread = threading.Thread(target=executor.spin, daemon=True)
    spin_thread.start()

    try:
        open_initial_views(tui, cli_args)
        tui.run()
    finally:
        tui.stop()
        tui.close_all_views()
        executor.shutdown()
        node.destroy_node()
        rclpy.shutdown()


if __name__ == "__main__":
    main()
