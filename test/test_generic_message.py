import pytest

from ros2tui.generic_message import (
    ArrayField,
    GenericMessage,
    InterfaceType,
    ScalarKind,
    SequenceField,
    SimpleField,
    format_value,
    is_message_field,
    zero_value,
)


def test_interface_type_parse_long_and_short_forms():
    assert InterfaceType.parse("nav_msgs/msg/Odometry") == InterfaceType("nav_msgs", "msg", "Odometry")
    assert InterfaceType.parse("nav_msgs/Odometry") == InterfaceType("nav_msgs", "msg", "Odometry")
    assert str(InterfaceType.parse("std_srvs/srv/Trigger")) == "std_srvs/srv/Trigger"


def test_interface_type_parse_rejects_bare_name():
    with pytest.raises(ValueError):
        InterfaceType.parse("Odometry")


def test_fields_keep_declaration_order(odom):
    assert odom.names() == ["header", "child_frame_id", "pose", "twist"]
    assert odom.field_at(2)[0] == "pose"
    assert len(odom) == 4
    assert "twist" in odom
    assert list(odom) == odom.names()


def test_field_at_out_of_range(odom):
    with pytest.raises(IndexError):
        odom.field_at(4)
    with pytest.raises(IndexError):
        odom.field_at(-1)


def test_copy_is_deep(odom):
    clone = odom.copy()
    assert clone == odom
    clone["pose"].value["covariance"].values[0] = 5.0
    assert odom["pose"].value["covariance"].values[0] == 0.0
    assert clone != odom


def test_zero_values():
    assert zero_value(ScalarKind.DOUBLE) == 0.0
    assert zero_value(ScalarKind.BOOLEAN) is False
    assert zero_value(ScalarKind.STRING) == ""
    assert zero_value(ScalarKind.CHAR) == ""
    assert zero_value(ScalarKind.UINT64) == 0


def test_zero_value_message_needs_prototype():
    with pytest.raises(ValueError):
        zero_value(ScalarKind.MESSAGE)
    prototype = GenericMessage(InterfaceType.parse("std_msgs/Empty"))
    element = zero_value(ScalarKind.MESSAGE, prototype)
    assert element == prototype
    assert element is not prototype


def test_new_element_copies_prototype(path_msg):
    points = path_msg["points"]
    element = points.new_element()
    assert element == points.prototype
    assert element is not points.prototype


def test_format_value():
    assert format_value(ScalarKind.STRING, "hi") == '"hi"'
    assert format_value(ScalarKind.CHAR, "c") == "'c'"
    assert format_value(ScalarKind.BOOLEAN, True) == "true"
    assert format_value(ScalarKind.INT32, -4) == "-4"


def test_is_message_field(odom):
    assert is_message_field(odom["header"])
    assert not is_message_field(odom["child_frame_id"])
    assert not is_message_field(SequenceField(ScalarKind.MESSAGE))
    assert not is_message_field(ArrayField(ScalarKind.INT8, [0]))
    assert not is_message_field(SimpleField(ScalarKind.INT8, 0))
