import math

import numpy as np
import pytest

from freeshot.geometry import Point, point_in_polygon
from freeshot.mask import (
    PointTestRasterizer,
    ScanlineRasterizer,
    get_rasterizer,
    point_test_mask,
    scanline_intersections,
    scanline_mask,
)

SQUARE = [Point(10, 10), Point(10, 20), Point(20, 20), Point(20, 10)]
TRIANGLE = [Point(3.5, 2.25), Point(27.1, 8.6), Point(10.3, 26.9)]
ARROW = [
    Point(4, 14.5),
    Point(14, 4),
    Point(14, 10),
    Point(26.5, 10),
    Point(26.5, 19),
    Point(14, 19),
    Point(14, 25),
]
BOWTIE = [Point(0, 0), Point(20, 20), Point(20, 0), Point(0, 20)]


def test_square_fills_half_open_box():
    mask = scanline_mask(SQUARE, 30, 30)
    ys, xs = np.mgrid[0:30, 0:30]
    expected = (xs >= 10) & (xs < 20) & (ys >= 10) & (ys < 20)
    assert mask.shape == (30, 30)
    assert mask.dtype == bool
    assert np.array_equal(mask, expected)


def test_bowtie_even_odd():
    mask = scanline_mask(BOWTIE, 20, 20)
    # Left and right lobes
    assert mask[5, 2]
    assert mask[15, 2]
    assert mask[5, 17]
    assert mask[15, 17]
    # Between the lobes, above and below the pinch
    assert not mask[5, 10]
    assert not mask[15, 10]
    assert not mask[2, 10]
    # Top row is a zero-width span at both lobes
    assert not mask[0].any()


@pytest.mark.parametrize("polygon", [SQUARE, TRIANGLE, ARROW, BOWTIE], ids=["square", "triangle", "arrow", "bowtie"])
def test_scanline_agrees_with_point_tester(polygon):
    width, height = 32, 30
    mask = scanline_mask(polygon, width, height)
    for y in range(height):
        for x in range(width):
            assert mask[y, x] == point_in_polygon(Point(x, y), polygon), (x, y)


@pytest.mark.parametrize("polygon", [SQUARE, TRIANGLE, ARROW, BOWTIE], ids=["square", "triangle", "arrow", "bowtie"])
def test_point_test_mask_matches_scanline(polygon):
    assert np.array_equal(point_test_mask(polygon, 32, 30), scanline_mask(polygon, 32, 30))


def test_concave_notch_is_outside():
    mask = scanline_mask(ARROW, 32, 30)
    # Inside the shaft and the head
    assert mask[15, 20]
    assert mask[14, 8]
    # The notch between head and shaft
    assert not mask[7, 20]
    assert not mask[22, 20]


def test_rasterizing_twice_is_identical():
    first = scanline_mask(ARROW, 40, 40)
    second = scanline_mask(ARROW, 40, 40)
    assert np.array_equal(first, second)
    assert first.tobytes() == second.tobytes()


def test_polygon_outside_target_is_clipped():
    polygon = [Point(-10, -10), Point(50, -10), Point(50, 5), Point(-10, 5)]
    mask = scanline_mask(polygon, 20, 20)
    assert mask[:5].all()
    assert not mask[5:].any()


def test_polygon_entirely_off_raster():
    polygon = [Point(100, 100), Point(120, 100), Point(120, 120)]
    assert not scanline_mask(polygon, 20, 20).any()


def test_fractional_span_ends():
    polygon = [Point(2.5, 0), Point(7.5, 0), Point(7.5, 3), Point(2.5, 3)]
    mask = scanline_mask(polygon, 10, 5)
    # ceil(2.5) = 3 .. last pixel floor(7.5) = 7
    assert np.array_equal(np.flatnonzero(mask[1]), [3, 4, 5, 6, 7])
    assert not mask[3].any()


def test_intersections_are_sorted():
    assert scanline_intersections(BOWTIE, 5) == [0, 5, 15, 20]


def test_horizontal_edges_are_ignored():
    xs = scanline_intersections(SQUARE, 10)
    assert xs == [10, 20]


def test_nan_vertices_do_not_crash():
    polygon = [Point(2, 2), Point(math.nan, 10), Point(15, 15), Point(15, 2)]
    mask = scanline_mask(polygon, 20, 20)
    assert mask.shape == (20, 20)


@pytest.mark.parametrize("polygon", [[], [Point(1, 1)], [Point(1, 1), Point(5, 5)]])
def test_degenerate_polygons_are_rejected(polygon):
    with pytest.raises(ValueError):
        scanline_mask(polygon, 10, 10)
    with pytest.raises(ValueError):
        point_test_mask(polygon, 10, 10)


def test_zero_sized_target():
    assert scanline_mask(SQUARE, 0, 0).shape == (0, 0)
    assert point_test_mask(SQUARE, 0, 5).shape == (5, 0)


def test_rasterizer_strategies():
    scanline = get_rasterizer("scanline")
    point = get_rasterizer("point")
    assert isinstance(scanline, ScanlineRasterizer)
    assert isinstance(point, PointTestRasterizer)
    assert np.array_equal(
        scanline.compute_mask(TRIANGLE, (30, 30)),
        point.compute_mask(TRIANGLE, (30, 30)),
    )


def test_unknown_rasterizer():
    with pytest.raises(ValueError, match="Unknown rasterizer"):
        get_rasterizer("flood")
