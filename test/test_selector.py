import pytest

from ros2tui.field_path import FieldCategory, classify, has_field
from ros2tui.generic_message import (
    GenericMessage,
    InterfaceType,
    ScalarKind,
    SequenceField,
    SimpleField,
)
from ros2tui.selector import MessageSelector, down, last_field_path, left, right, up


def test_down_walks_rendering_order(odom):
    expected = [[0], [0, 0], [0, 0, 0], [0, 0, 1], [0, 1], [1], [2], [2, 0], [2, 0, 0]]
    path = []
    for step in expected:
        path = down(odom, path)
        assert path == step


def test_down_enters_scalar_container(odom):
    assert down(odom, [2, 1]) == [2, 1, 0]
    assert down(odom, [2, 1, 0]) == [2, 1, 1]


def test_down_leaves_container_after_last_element(odom):
    assert down(odom, [2, 1, 35]) == [3]


def test_down_past_last_line_clears(odom):
    assert down(odom, [3, 1, 35]) == []


def test_up_walks_back_through_deepest_nodes(odom):
    expected = [[2, 0, 1], [2, 0, 0, 2], [2, 0, 0, 1], [2, 0, 0, 0], [2, 0, 0], [2, 0], [2]]
    path = [2, 0, 1, 0]
    for step in expected:
        path = up(odom, path)
        assert path == step


def test_up_lands_on_last_element_of_previous_container(odom):
    assert up(odom, [3]) == [2, 1, 35]


def test_up_from_first_field(odom):
    assert up(odom, [0]) == []
    assert up(odom, []) == [3]


def test_left_and_right_move_between_siblings(odom):
    assert right(odom, [2, 1, 4]) == [2, 1, 5]
    assert left(odom, [2, 1, 5]) == [2, 1]
    assert left(odom, [2]) == [1]
    assert left(odom, [0]) == []
    # Past the last sibling the cursor stays
    assert right(odom, [2, 1, 35]) == [2, 1, 35]
    assert right(odom, [3]) == []
    assert right(odom, []) == [0]


def test_empty_message_always_gives_empty_path(empty_msg):
    for move in (up, down, left, right):
        assert move(empty_msg, []) == []
        assert move(empty_msg, [3]) == []
    assert last_field_path(empty_msg) == []


def test_last_field_path(odom):
    assert last_field_path(odom) == [3, 1, 35]


def test_selector_navigate(odom):
    selector = MessageSelector(odom)
    assert selector.navigate("down") == [0]
    assert selector.navigate("right") == [1]
    assert selector.navigate("up") == [0, 1]
    assert selector.path == [0, 1]


def test_selector_unknown_direction(odom):
    with pytest.raises(ValueError):
        MessageSelector(odom).navigate("sideways")


def test_selector_keeps_path_across_samples(odom, path_msg):
    selector = MessageSelector(odom, [2, 1, 3])
    selector.set_message(odom.copy())
    assert selector.path == [2, 1, 3]
    selector.set_message(path_msg)
    assert selector.path == []


@pytest.mark.parametrize("fixture", ["odom", "path_msg"])
def test_up_undoes_down_on_every_leaf(fixture, all_paths, request):
    msg = request.getfixturevalue(fixture)
    leaves = [
        path
        for path in all_paths(msg)
        if has_field(msg, path) and classify(msg, path) is FieldCategory.BASE
    ]
    assert leaves
    for path in leaves:
        following = down(msg, path)
        if not following:
            # Only the last line of the tree steps back out to the root
            assert path == leaves[-1]
            continue
        assert up(msg, following) == path, path


def test_up_lands_on_last_element_of_message_sequence(path_msg):
    assert up(path_msg, [2]) == [1, 0, 2]


def test_up_onto_fieldless_element():
    empty = GenericMessage(InterfaceType.parse("std_msgs/msg/Empty"))
    msg = GenericMessage(
        InterfaceType.parse("test_msgs/msg/Empties"),
        {
            "items": SequenceField(ScalarKind.MESSAGE, [empty.copy(), empty.copy()], empty),
            "after": SimpleField(ScalarKind.INT32, 5),
        },
    )
    assert down(msg, [0, 1]) == [1]
    assert up(msg, [1]) == [0, 1]
