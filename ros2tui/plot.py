"""Braille line plots for the Hz and live data views."""

import math
from typing import List, Sequence, Tuple

# Bit for each dot of a braille cell, indexed [dot_y][dot_x]
_BRAILLE_DOT = [
    [0x01, 0x08],
    [0x02, 0x10],
    [0x04, 0x20],
    [0x40, 0x80],
]

Point = Tuple[float, float]


class BrailleCanvas:
    """Character grid where every cell holds a 2x4 block of dots."""

    def __init__(self, width: int, height: int):
        self.width = max(0, width)
        self.height = max(0, height)
        self.cells: List[List[int]] = [[0] * self.width for _ in range(self.height)]

    @property
    def px_width(self) -> int:
        return self.width * 2

    @property
    def px_height(self) -> int:
        return self.height * 4

    def set_pixel(self, px: int, py: int):
        if 0 <= px < self.px_width and 0 <= py < self.px_height:
            self.cells[py // 4][px // 2] |= _BRAILLE_DOT[py % 4][px % 2]

    def line(self, x0: int, y0: int, x1: int, y1: int):
        """Set every pixel on the segment between two pixels."""
        steps = max(abs(x1 - x0), abs(y1 - y0), 1)
        for i in range(steps + 1):
            t = i / steps
            self.set_pixel(round(x0 + (x1 - x0) * t), round(y0 + (y1 - y0) * t))

    def rows(self) -> List[str]:
        return ["".join(chr(0x2800 + bits) if bits else " " for bits in row) for row in self.cells]


def value_bounds(series: Sequence[Sequence[Point]]) -> Tuple[float, float]:
    """Return the y range covering all series, widened when flat or empty."""
    values = [y for points in series for _, y in points if math.isfinite(y)]
    if not values:
        return 0.0, 10.0
    low, high = min(values), max(values)
    if abs(high - low) < 0.001:
        low -= 1.0
        high += 1.0
    return low, high


def plot_series(
    canvas: BrailleCanvas,
    points: Sequence[Point],
    x_bounds: Tuple[float, float],
    y_bounds: Tuple[float, float],
):
    """Draw points as connected segments, scaled into the canvas."""
    x_min, x_max = x_bounds
    y_min, y_max = y_bounds
    if canvas.px_width == 0 or canvas.px_height == 0 or x_max <= x_min or y_max <= y_min:
        return
    x_scale = (canvas.px_width - 1) / (x_max - x_min)
    y_scale = (canvas.px_height - 1) / (y_max - y_min)

    previous = None
    for x, y in points:
        if not math.isfinite(y):
            previous = None
            continue
        px = int(round((x - x_min) * x_scale))
        # Screen rows grow downwards
        py = int(round((y_max - y) * y_scale))
        if previous is not None:
            canvas.line(previous[0], previous[1], px, py)
        else:
            canvas.set_pixel(px, py)
        previous = (px, py)


def axis_labels(low: float, high: float, count: int = 6) -> List[str]:
    if count < 2:
        return [f"{low:.1f}"]
    step = (high - low) / (count - 1)
    return [f"{low + i * step:.1f}" for i in range(count)]
