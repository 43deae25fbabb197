"""Polygon mask rasterization.

Two interchangeable strategies turn a polygon into a boolean inside/outside
mask of shape (height, width):

- scanline: even-odd span fill, O(height * edges). Used for live preview
  dimming and for crop extraction.
- point: the ray casting test evaluated at every pixel. Slower, kept for
  validation and single-point queries.

Both sample pixel (x, y) at its integer coordinate and fill spans half-open,
so for any polygon they produce identical masks.
"""

import functools
import logging
import math
from typing import Protocol

import numpy as np

from .geometry import MIN_POLYGON_POINTS, Polygon, edge_x_at, edges

log = logging.getLogger(__name__)

Mask = np.ndarray


def _compare(a: float, b: float) -> int:
    if a < b:
        return -1
    if a > b:
        return 1
    # Equal, or unordered because one side is NaN
    return 0


_intersection_key = functools.cmp_to_key(_compare)


def _check_args(polygon: Polygon, width: int, height: int) -> None:
    if len(polygon) < MIN_POLYGON_POINTS:
        raise ValueError(
            f"Polygon needs at least {MIN_POLYGON_POINTS} points to rasterize, got {len(polygon)}"
        )
    if width < 0 or height < 0:
        raise ValueError(f"Invalid mask size {width}x{height}")


def scanline_intersections(polygon: Polygon, y: float) -> list[float]:
    """Sorted x positions where the polygon's edges cross scanline y.

    Edges are half-open in y (lower end included, upper end excluded), so a
    vertex shared by two edges is counted once and horizontal edges never
    count.
    """
    xs = []
    for p1, p2 in edges(polygon):
        if (p1.y <= y and p2.y > y) or (p2.y <= y and p1.y > y):
            xs.append(edge_x_at(p1, p2, y))
    xs.sort(key=_intersection_key)
    return xs


def _span(start: float, end: float, width: int) -> tuple[int, int]:
    """Pixel range [first, stop) covered by a span, clipped to the row."""
    first = math.ceil(min(max(start, 0.0), float(width)))
    stop = math.ceil(min(max(end, 0.0), float(width)))
    return first, stop


def scanline_mask(polygon: Polygon, width: int, height: int) -> Mask:
    """Rasterize a polygon with the even-odd scanline rule.

    Pixel x on row y is inside when it lies in [x0, x1) for a pair of
    consecutive intersections (x0, x1) of that row.

    Raises:
        ValueError: If the polygon has fewer than 3 points
    """
    _check_args(polygon, width, height)
    mask = np.zeros((height, width), dtype=bool)

    ys = [p.y for p in polygon if math.isfinite(p.y)]
    if not ys or width == 0 or height == 0:
        return mask

    top = max(0, math.ceil(min(ys)))
    bottom = min(height - 1, math.floor(max(ys)))

    for y in range(top, bottom + 1):
        xs = scanline_intersections(polygon, y)
        for start, end in zip(xs[0::2], xs[1::2]):
            if math.isnan(start) or math.isnan(end):
                continue
            first, stop = _span(start, end, width)
            if stop > first:
                mask[y, first:stop] = True

    return mask


def point_test_mask(polygon: Polygon, width: int, height: int) -> Mask:
    """Rasterize a polygon by ray casting from every pixel.

    Vectorised per edge: each edge toggles the pixels whose rightward ray it
    crosses.

    Raises:
        ValueError: If the polygon has fewer than 3 points
    """
    _check_args(polygon, width, height)
    inside = np.zeros((height, width), dtype=bool)
    if width == 0 or height == 0:
        return inside

    row_y = np.arange(height, dtype=np.float64)
    col_x = np.arange(width, dtype=np.float64)

    with np.errstate(divide="ignore", invalid="ignore"):
        for p1, p2 in edges(polygon):
            crosses = (p1.y > row_y) != (p2.y > row_y)
            if not crosses.any():
                continue
            x_i = p1.x + (row_y - p1.y) * (p2.x - p1.x) / (p2.y - p1.y)
            inside ^= crosses[:, None] & (x_i[:, None] > col_x[None, :])

    return inside


class MaskRasterizer(Protocol):
    """Capability interface for mask strategies."""

    name: str

    def compute_mask(self, polygon: Polygon, dims: tuple[int, int]) -> Mask:
        """Return a (height, width) bool mask for a polygon of 3+ points."""
        ...


class ScanlineRasterizer:
    name = "scanline"

    def compute_mask(self, polygon: Polygon, dims: tuple[int, int]) -> Mask:
        width, height = dims
        return scanline_mask(polygon, width, height)


class PointTestRasterizer:
    name = "point"

    def compute_mask(self, polygon: Polygon, dims: tuple[int, int]) -> Mask:
        width, height = dims
        return point_test_mask(polygon, width, height)


RASTERIZERS = {
    ScanlineRasterizer.name: ScanlineRasterizer,
    PointTestRasterizer.name: PointTestRasterizer,
}


def get_rasterizer(name: str = "scanline") -> MaskRasterizer:
    """Create a rasterizer by name ("scanline" or "point")."""
    try:
        factory = RASTERIZERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown rasterizer '{name}', expected one of: {', '.join(sorted(RASTERIZERS))}"
        ) from None
    log.debug("Using %s rasterizer", name)
    return factory()
