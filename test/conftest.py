"""Hand-built message trees shared by the tests."""

import pytest

from ros2tui.generic_message import (
    ArrayField,
    BoundedSequenceField,
    GenericMessage,
    InterfaceType,
    ScalarKind,
    SequenceField,
    SimpleField,
)


def message(type_name, **fields):
    return GenericMessage(InterfaceType.parse(type_name), fields)


def nested(msg):
    return SimpleField(ScalarKind.MESSAGE, msg)


def doubles(type_name, *names):
    return message(type_name, **{name: SimpleField(ScalarKind.DOUBLE, 0.0) for name in names})


def header():
    stamp = message(
        "builtin_interfaces/msg/Time",
        sec=SimpleField(ScalarKind.INT32, 0),
        nanosec=SimpleField(ScalarKind.UINT32, 0),
    )
    return message(
        "std_msgs/msg/Header",
        stamp=nested(stamp),
        frame_id=SimpleField(ScalarKind.STRING, ""),
    )


def odometry():
    """Build a tree with the field layout of nav_msgs/msg/Odometry."""
    pose = message(
        "geometry_msgs/msg/Pose",
        position=nested(doubles("geometry_msgs/msg/Point", "x", "y", "z")),
        orientation=nested(doubles("geometry_msgs/msg/Quaternion", "x", "y", "z", "w")),
    )
    twist = message(
        "geometry_msgs/msg/Twist",
        linear=nested(doubles("geometry_msgs/msg/Vector3", "x", "y", "z")),
        angular=nested(doubles("geometry_msgs/msg/Vector3", "x", "y", "z")),
    )
    return message(
        "nav_msgs/msg/Odometry",
        header=nested(header()),
        child_frame_id=SimpleField(ScalarKind.STRING, ""),
        pose=nested(
            message(
                "geometry_msgs/msg/PoseWithCovariance",
                pose=nested(pose),
                covariance=ArrayField(ScalarKind.DOUBLE, [0.0] * 36),
            )
        ),
        twist=nested(
            message(
                "geometry_msgs/msg/TwistWithCovariance",
                twist=nested(twist),
                covariance=ArrayField(ScalarKind.DOUBLE, [0.0] * 36),
            )
        ),
    )


def path_message():
    """Build a tree with sequences of scalars, strings and messages, one of them bounded."""
    point = doubles("geometry_msgs/msg/Point", "x", "y", "z")
    return message(
        "test_msgs/msg/Path",
        name=SimpleField(ScalarKind.STRING, "route"),
        points=SequenceField(ScalarKind.MESSAGE, [point.copy()], point),
        ids=BoundedSequenceField(ScalarKind.INT32, [1, 2], None, 3),
        labels=SequenceField(ScalarKind.STRING, ["a", "b"]),
        enabled=SimpleField(ScalarKind.BOOLEAN, True),
        flag=SimpleField(ScalarKind.CHAR, "x"),
        precise=SimpleField(ScalarKind.LONG_DOUBLE, 0.0),
    )


def candidate_paths(msg, prefix=()):
    """Yield every addressable path of msg plus one out-of-range index per level."""
    for i in range(len(msg) + 1):
        path = list(prefix) + [i]
        yield path
        if i == len(msg):
            continue
        node = msg.field_at(i)[1]
        if isinstance(node, SimpleField):
            if node.kind is ScalarKind.MESSAGE:
                yield from candidate_paths(node.value, path)
            else:
                yield path + [0]
            continue
        for j in range(len(node.values) + 1):
            element_path = path + [j]
            yield element_path
            if j == len(node.values):
                continue
            if node.kind is ScalarKind.MESSAGE:
                yield from candidate_paths(node.values[j], element_path)
            else:
                yield element_path + [0]


@pytest.fixture
def all_paths():
    return candidate_paths


@pytest.fixture
def odom():
    return odometry()


@pytest.fixture
def path_msg():
    return path_message()


@pytest.fixture
def empty_msg():
    return message("std_msgs/msg/Empty")
