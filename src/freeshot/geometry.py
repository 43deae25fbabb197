"""Polygon geometry for lasso selections.

Points are raster-space float coordinates. A polygon is any ordered sequence
of points; edges join consecutive points and an implicit closing edge joins
the last point back to the first.
"""

import math
from dataclasses import dataclass
from typing import Iterator, NamedTuple, Sequence


class Point(NamedTuple):
    x: float
    y: float


Polygon = Sequence[Point]

# A polygon needs at least this many vertices to enclose any area.
MIN_POLYGON_POINTS = 3


@dataclass(frozen=True)
class BoundingBox:
    """Integer pixel box, min inclusive, max exclusive."""

    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @property
    def width(self) -> int:
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        return self.max_y - self.min_y

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def clip(self, width: int, height: int) -> "BoundingBox":
        """Clamp the box to a width x height raster."""
        return BoundingBox(
            min_x=min(max(self.min_x, 0), width),
            min_y=min(max(self.min_y, 0), height),
            max_x=min(max(self.max_x, 0), width),
            max_y=min(max(self.max_y, 0), height),
        )

    def to_dict(self) -> dict:
        return {
            "x": self.min_x,
            "y": self.min_y,
            "width": self.width,
            "height": self.height,
        }


def edges(polygon: Polygon) -> Iterator[tuple[Point, Point]]:
    """Yield (p1, p2) for every edge, including the closing edge."""
    count = len(polygon)
    for i in range(count):
        yield polygon[i], polygon[(i + 1) % count]


def edge_x_at(p1: Point, p2: Point, y: float) -> float:
    """X coordinate where edge p1-p2 meets the horizontal line at y."""
    return p1.x + (y - p1.y) * (p2.x - p1.x) / (p2.y - p1.y)


def point_in_polygon(point: Point, polygon: Polygon) -> bool:
    """Even-odd ray casting membership test.

    An empty polygon means no selection has started, so every point is
    inside. One or two points cannot enclose area, so nothing is inside.
    """
    if len(polygon) == 0:
        return True
    if len(polygon) < MIN_POLYGON_POINTS:
        return False

    x, y = point
    inside = False
    for p1, p2 in edges(polygon):
        if (p1.y > y) != (p2.y > y):
            if edge_x_at(p1, p2, y) > x:
                inside = not inside
    return inside


def bounding_box(polygon: Polygon) -> BoundingBox:
    """Integer bounding box of the polygon's vertices.

    Minimums are floored and maximums truncated toward zero, matching the
    pixel extent used when cropping.
    """
    xs = [p.x for p in polygon if math.isfinite(p.x)]
    ys = [p.y for p in polygon if math.isfinite(p.y)]
    if not xs or not ys:
        return BoundingBox(0, 0, 0, 0)
    return BoundingBox(
        min_x=math.floor(min(xs)),
        min_y=math.floor(min(ys)),
        max_x=math.trunc(max(xs)),
        max_y=math.trunc(max(ys)),
    )
