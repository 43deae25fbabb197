import numpy as np
import pytest

from freeshot.crop import extract_crop
from freeshot.errors import FreeshotError, SelectionTooSmall
from freeshot.geometry import BoundingBox, Point
from freeshot.mask import PointTestRasterizer

TRIANGLE = [Point(0, 0), Point(10, 0), Point(0, 10)]


def test_triangle_crop(raster_factory):
    raster = raster_factory(20, 20)
    crop = extract_crop(raster, TRIANGLE)

    assert crop.bbox == BoundingBox(0, 0, 10, 10)
    assert (crop.width, crop.height) == (10, 10)

    out = crop.raster.pixels
    for y in range(10):
        for x in range(10):
            if x + y < 10:
                assert np.array_equal(out[y, x], raster.pixels[y, x]), (x, y)
            else:
                assert not out[y, x].any(), (x, y)


def test_crop_is_relative_to_bounding_box(raster_factory):
    raster = raster_factory(40, 40)
    square = [Point(12.5, 8.2), Point(12.5, 20), Point(30, 20), Point(30, 8.2)]
    crop = extract_crop(raster, square)

    assert crop.bbox == BoundingBox(12, 8, 30, 20)
    out = crop.raster.pixels
    # Pixel (13, 9) of the source lands at (1, 1)
    assert np.array_equal(out[1, 1], raster.pixels[9, 13])
    # Column 12 is left of the polygon edge at 12.5
    assert not out[:, 0].any()
    # Row 8 is above the polygon edge at 8.2
    assert not out[0].any()


def test_crop_clips_to_raster(raster_factory):
    raster = raster_factory(20, 20)
    polygon = [Point(-5, -5), Point(25, -5), Point(25, 8), Point(-5, 8)]
    crop = extract_crop(raster, polygon)
    assert crop.bbox == BoundingBox(0, 0, 20, 8)
    assert np.array_equal(crop.raster.pixels, raster.pixels[:8])


def test_crop_with_point_rasterizer_matches(raster_factory):
    raster = raster_factory(20, 20)
    scanline = extract_crop(raster, TRIANGLE)
    point = extract_crop(raster, TRIANGLE, PointTestRasterizer())
    assert scanline.raster.to_bytes() == point.raster.to_bytes()


@pytest.mark.parametrize("polygon", [[], [Point(1, 1)], [Point(1, 1), Point(9, 9)]])
def test_degenerate_polygon_reports_too_small(raster_factory, polygon):
    raster = raster_factory(20, 20)
    with pytest.raises(SelectionTooSmall) as excinfo:
        extract_crop(raster, polygon)
    assert excinfo.value.point_count == len(polygon)
    assert excinfo.value.raster.is_empty
    assert isinstance(excinfo.value, FreeshotError)


def test_collinear_polygon_reports_too_small(raster_factory):
    raster = raster_factory(20, 20)
    with pytest.raises(SelectionTooSmall):
        extract_crop(raster, [Point(2, 5), Point(8, 5), Point(14, 5)])


def test_selection_off_raster_reports_too_small(raster_factory):
    raster = raster_factory(20, 20)
    with pytest.raises(SelectionTooSmall):
        extract_crop(raster, [Point(30, 30), Point(40, 30), Point(40, 40)])
