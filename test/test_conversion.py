import pytest

pytest.importorskip("rosidl_runtime_py")

from ros2tui.conversion import (  # noqa: E402
    MessageConverter,
    generic_from_class,
    generic_to_message,
    interface_type_of,
    message_to_generic,
    parse_field_type,
)
from ros2tui.generic_message import (  # noqa: E402
    ArrayField,
    BoundedSequenceField,
    InterfaceType,
    ScalarKind,
    SequenceField,
    SimpleField,
)


class Point:
    __module__ = "fake_msgs.msg._point"

    _fields_and_field_types = {"x": "double", "y": "double"}

    def __init__(self, x=0.0, y=0.0):
        self.x = x
        self.y = y

    @classmethod
    def get_fields_and_field_types(cls):
        return dict(cls._fields_and_field_types)


class Route:
    __module__ = "fake_msgs.msg._route"

    _fields_and_field_types = {
        "name": "string<=16",
        "origin": "fake_msgs/Point",
        "waypoints": "sequence<fake_msgs/Point>",
        "corners": "fake_msgs/Point[2]",
        "ids": "sequence<int32, 3>",
        "weights": "double[3]",
        "active": "boolean",
        "code": "octet",
    }

    def __init__(self):
        self.name = ""
        self.origin = Point()
        self.waypoints = []
        self.corners = [Point(), Point()]
        self.ids = []
        self.weights = [0.0, 0.0, 0.0]
        self.active = False
        self.code = b"\x00"

    @classmethod
    def get_fields_and_field_types(cls):
        return dict(cls._fields_and_field_types)


CLASSES = {"fake_msgs/msg/Point": Point, "fake_msgs/msg/Route": Route}


def resolve(name):
    return CLASSES[name]


@pytest.mark.parametrize(
    "type_string, container, kind, size",
    [
        ("int32", "simple", ScalarKind.INT32, None),
        ("float64", "simple", ScalarKind.DOUBLE, None),
        ("double[36]", "array", ScalarKind.DOUBLE, 36),
        ("sequence<double>", "sequence", ScalarKind.DOUBLE, None),
        ("sequence<int32, 5>", "bounded_sequence", ScalarKind.INT32, 5),
        ("string<=10", "simple", ScalarKind.BOUNDED_STRING, None),
        ("wstring", "simple", ScalarKind.WSTRING, None),
        ("geometry_msgs/Pose", "simple", ScalarKind.MESSAGE, None),
        ("sequence<geometry_msgs/Point, 3>", "bounded_sequence", ScalarKind.MESSAGE, 3),
        ("geometry_msgs/Point[4]", "array", ScalarKind.MESSAGE, 4),
    ],
)
def test_parse_field_type(type_string, container, kind, size):
    field_type = parse_field_type(type_string)
    assert field_type.container == container
    assert field_type.kind is kind
    assert field_type.size == size


def test_parse_field_type_details():
    assert parse_field_type("string<=10").string_bound == 10
    assert parse_field_type("sequence<string<=4>").string_bound == 4
    assert parse_field_type("geometry_msgs/Pose").message_type == "geometry_msgs/Pose"
    with pytest.raises(ValueError):
        parse_field_type("quaternion")


def test_interface_type_of():
    assert interface_type_of(Route) == InterfaceType("fake_msgs", "msg", "Route")


def test_generic_from_class_builds_zero_tree():
    tree = generic_from_class(Route, resolve)
    assert tree.names() == list(Route._fields_and_field_types)
    assert tree["name"] == SimpleField(ScalarKind.BOUNDED_STRING, "", 16)
    assert tree["origin"].value.names() == ["x", "y"]
    assert isinstance(tree["waypoints"], SequenceField)
    assert tree["waypoints"].prototype.names() == ["x", "y"]
    assert isinstance(tree["corners"], ArrayField)
    assert len(tree["corners"]) == 2
    assert isinstance(tree["ids"], BoundedSequenceField)
    assert tree["ids"].max_len == 3
    assert tree["weights"].values == [0.0, 0.0, 0.0]


def test_message_to_generic():
    msg = Route()
    msg.name = "loop"
    msg.origin = Point(1.0, 2.0)
    msg.waypoints = [Point(3.0, 4.0)]
    msg.ids = [7, 8]
    msg.active = True
    msg.code = b"\x05"

    tree = message_to_generic(msg, resolve)
    assert tree.type_name == InterfaceType("fake_msgs", "msg", "Route")
    assert tree["name"].value == "loop"
    assert tree["origin"].value["y"].value == 2.0
    assert tree["waypoints"].values[0]["x"].value == 3.0
    # Message sequences can grow from their prototype
    assert tree["waypoints"].prototype["x"].value == 0.0
    assert tree["ids"].values == [7, 8]
    assert tree["active"].value is True
    assert tree["code"].value == 5


def test_generic_to_message():
    tree = generic_from_class(Route, resolve)
    tree["name"].value = "square"
    tree["origin"].value["x"].value = 1.5
    tree["waypoints"].values.append(tree["waypoints"].new_element())
    tree["waypoints"].values[0]["y"].value = 2.5
    tree["ids"].values = [1, 2, 3]
    tree["code"].value = 9

    msg = generic_to_message(tree, resolve=resolve)
    assert isinstance(msg, Route)
    assert msg.name == "square"
    assert isinstance(msg.origin, Point)
    assert msg.origin.x == 1.5
    assert len(msg.waypoints) == 1
    assert isinstance(msg.waypoints[0], Point)
    assert msg.waypoints[0].y == 2.5
    assert msg.ids == [1, 2, 3]
    assert msg.code == b"\x09"


def test_unknown_fields_are_skipped():
    converter = MessageConverter(resolve)
    tree = converter.to_generic(Point(1.0, 2.0))
    tree.fields["z"] = SimpleField(ScalarKind.DOUBLE, 3.0)
    msg = converter.to_message(tree, Point)
    assert (msg.x, msg.y) == (1.0, 2.0)
    assert not hasattr(msg, "z")


def test_converter_caches_prototypes():
    calls = []

    def counting_resolve(name):
        calls.append(name)
        return CLASSES[name]

    converter = MessageConverter(counting_resolve)
    msg = Route()
    converter.to_generic(msg)
    converter.to_generic(msg)
    assert calls.count("fake_msgs/msg/Point") == 1


def test_unknown_field_node_is_rejected():
    converter = MessageConverter(resolve)
    tree = converter.to_generic(Point(1.0, 2.0))
    tree.fields["x"] = 1.0
    with pytest.raises(TypeError):
        converter.to_message(tree, Point)
