from ros2tui.generic_message import (
    ArrayField,
    GenericMessage,
    InterfaceType,
    ScalarKind,
    SequenceField,
    SimpleField,
)
from ros2tui.layout import height
from ros2tui.message_widget import (
    HEADER,
    INVALID,
    NORMAL,
    SELECTED,
    VALID,
    CharBuffer,
    MessageWidget,
    Rect,
    paint_field,
    paint_message,
)


def make_message(**fields):
    return GenericMessage(InterfaceType.parse("test_msgs/msg/Sample"), fields)


def test_char_buffer_clips():
    buf = CharBuffer(5, 2)
    buf.put(3, 0, "abcdef")
    buf.put(0, 5, "ignored")
    buf.put(-1, 1, "xyz")
    assert buf.lines() == ["   ab", "yz   "]


def test_char_buffer_spans():
    buf = CharBuffer(6, 1)
    buf.put(0, 0, "ab", SELECTED)
    buf.put(2, 0, "cd")
    assert buf.spans(0) == [(0, "ab", SELECTED), (2, "cd  ", NORMAL)]


def test_simple_field_line():
    buf = CharBuffer(20, 1)
    paint_field(buf, Rect(0, 0, 20, 1), "simple_field", SimpleField(ScalarKind.INT32, 42))
    assert buf.line(0) == "simple_field: 42    "


def test_scalar_grid_cells():
    buf = CharBuffer(50, 2)
    paint_field(buf, Rect(0, 0, 50, 2), "values", ArrayField(ScalarKind.INT32, [1, 22, 333]))
    assert buf.line(0).rstrip() == "values: 3 elements"
    row = buf.line(1)
    assert row[0] == "1"
    assert row[10:12] == "22"
    assert row[20:23] == "333"
    assert buf.styles[0][8] == HEADER


def test_long_values_truncated_to_cell():
    buf = CharBuffer(30, 2)
    paint_field(buf, Rect(0, 0, 30, 2), "v", ArrayField(ScalarKind.DOUBLE, [0.123456789012, 1.0]))
    assert buf.line(1)[:10] == "0.1234567 "
    assert buf.line(1)[10:13] == "1.0"


def test_string_quoting_and_booleans():
    msg = make_message(
        name=SimpleField(ScalarKind.STRING, "robot"),
        ok=SimpleField(ScalarKind.BOOLEAN, False),
    )
    buf = CharBuffer(20, 2)
    paint_message(buf, Rect(0, 0, 20, 2), msg)
    assert buf.lines() == ['name: "robot"       ', "ok: false           "]


def test_odometry_renders_layout_height(odom):
    widget = MessageWidget(odom)
    buf = CharBuffer(50, widget.height(50))
    widget.paint(buf, Rect(0, 0, 50, buf.height), auto_scroll=False)
    lines = [line.rstrip() for line in buf.lines()]
    assert len(lines) == height(odom, 50)
    assert lines[0] == "header:"
    assert lines[1] == "  stamp:"
    assert lines[2] == "    sec: 0"
    assert lines[4] == '  frame_id: ""'
    assert lines[5] == 'child_frame_id: ""'
    assert lines[17] == "  covariance: 36 elements"
    assert lines[18].startswith("  0.0       0.0")


def test_message_sequence_elements(path_msg):
    buf = CharBuffer(40, height(path_msg, 40))
    paint_message(buf, Rect(0, 0, 40, buf.height), path_msg)
    lines = [line.rstrip() for line in buf.lines()]
    assert lines[1] == "points: 1 elements"
    assert lines[2] == "- x: 0.0"
    assert lines[3] == "  y: 0.0"
    assert lines[5] == "ids: 2 elements (max: 3)"
    assert lines[7] == "labels: 2 elements"
    assert lines[8] == '- "a"'


def test_selection_highlights_path(odom):
    buf = CharBuffer(50, 10)
    paint_message(buf, Rect(0, 0, 50, 10), odom, [0, 0, 1])
    # Ancestors and the selected leaf carry the selection style
    assert buf.styles[0][0] == SELECTED
    assert buf.styles[1][2] == SELECTED
    assert buf.styles[3][4] == SELECTED
    assert buf.styles[2][4] == NORMAL
    assert buf.styles[5][0] == NORMAL


def test_edit_text_replaces_value(odom):
    buf = CharBuffer(50, 10)
    paint_message(buf, Rect(0, 0, 50, 10), odom, [0, 0, 0], edit="12")
    assert buf.line(2).rstrip() == "    sec: 12"
    assert buf.styles[2][9] == VALID

    paint_message(buf, Rect(0, 0, 50, 10), odom, [0, 0, 0], edit="1x")
    assert buf.styles[2][9] == INVALID


def test_auto_scroll_keeps_selection_visible(odom):
    buf = CharBuffer(50, 10)
    scroll = paint_message(buf, Rect(0, 0, 50, 10), odom, [3, 1, 35])
    assert scroll == 37
    assert buf.line(9).rstrip().startswith("  0.0")
    assert buf.styles[9][2 + 3 * 10] == SELECTED


def test_paint_inside_offset_area():
    msg = make_message(a=SimpleField(ScalarKind.INT8, 1), b=SimpleField(ScalarKind.INT8, 2))
    buf = CharBuffer(10, 4)
    paint_message(buf, Rect(2, 1, 6, 1), msg)
    assert buf.lines() == [" " * 10, "  a: 1    ", " " * 10, " " * 10]


def test_fieldless_elements_keep_their_marker():
    empty = GenericMessage(InterfaceType.parse("std_msgs/msg/Empty"))
    msg = make_message(
        items=SequenceField(ScalarKind.MESSAGE, [empty.copy(), empty.copy()], empty),
        after=SimpleField(ScalarKind.INT32, 5),
    )
    buf = CharBuffer(30, height(msg, 30))
    paint_message(buf, Rect(0, 0, 30, buf.height), msg, [0, 1])
    assert [line.rstrip() for line in buf.lines()] == ["items: 2 elements", "-", "-", "after: 5"]
    assert buf.styles[2][0] == SELECTED
    assert buf.styles[1][0] == NORMAL


def test_string_element_edit_keeps_marker(path_msg):
    buf = CharBuffer(40, height(path_msg, 40))
    paint_message(buf, Rect(0, 0, 40, buf.height), path_msg, [3, 0], edit="zz")
    assert buf.line(8).rstrip() == "- zz"
    assert buf.styles[8][0] == SELECTED
    assert buf.styles[8][2] == VALID
    assert buf.line(9).rstrip() == '- "b"'
