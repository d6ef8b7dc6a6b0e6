import math

from ros2tui.plot import BrailleCanvas, axis_labels, plot_series, value_bounds


def test_empty_canvas_is_blank():
    assert BrailleCanvas(3, 2).rows() == ["   ", "   "]


def test_set_pixel_maps_to_braille_dots():
    canvas = BrailleCanvas(2, 1)
    canvas.set_pixel(0, 0)
    canvas.set_pixel(1, 3)
    canvas.set_pixel(2, 1)
    # Outside the canvas
    canvas.set_pixel(4, 0)
    canvas.set_pixel(0, 4)
    assert canvas.rows() == [chr(0x2800 | 0x01 | 0x80) + chr(0x2800 | 0x02)]


def test_line_sets_every_pixel():
    canvas = BrailleCanvas(2, 1)
    canvas.line(0, 0, 3, 0)
    assert canvas.rows() == [chr(0x2800 | 0x09) * 2]


def test_value_bounds():
    assert value_bounds([]) == (0.0, 10.0)
    assert value_bounds([[]]) == (0.0, 10.0)
    assert value_bounds([[(0.0, 5.0), (1.0, 5.0)]]) == (4.0, 6.0)
    assert value_bounds([[(0.0, -1.0)], [(0.0, 3.0), (1.0, math.nan)]]) == (-1.0, 3.0)


def test_plot_series_spans_canvas():
    canvas = BrailleCanvas(4, 2)
    plot_series(canvas, [(0.0, 0.0), (1.0, 1.0)], (0.0, 1.0), (0.0, 1.0))
    rows = canvas.rows()
    # Bottom-left to top-right
    assert rows[0][0] == " "
    assert rows[0][3] != " "
    assert rows[1][0] != " "
    assert rows[1][3] == " "


def test_plot_series_ignores_degenerate_bounds():
    canvas = BrailleCanvas(4, 2)
    plot_series(canvas, [(0.0, 0.0), (1.0, 1.0)], (1.0, 1.0), (0.0, 1.0))
    assert canvas.rows() == ["    ", "    "]


def test_axis_labels():
    assert axis_labels(0.0, 10.0, 3) == ["0.0", "5.0", "10.0"]
    assert axis_labels(2.0, 2.0, 1) == ["2.0"]
