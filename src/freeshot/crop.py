"""Crop extraction for finished lasso selections."""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .errors import SelectionTooSmall
from .geometry import MIN_POLYGON_POINTS, BoundingBox, Polygon, bounding_box
from .mask import MaskRasterizer, ScanlineRasterizer
from .raster import Raster

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Crop:
    """A cropped, alpha-masked selection and where it came from."""

    raster: Raster
    bbox: BoundingBox

    @property
    def width(self) -> int:
        return self.raster.width

    @property
    def height(self) -> int:
        return self.raster.height


def extract_crop(
    raster: Raster,
    polygon: Polygon,
    rasterizer: Optional[MaskRasterizer] = None,
) -> Crop:
    """Cut the polygon's bounding box out of the raster.

    The mask is computed over the full raster so spans are identical to the
    preview. Pixels inside the box but outside the polygon are left fully
    transparent.

    Args:
        raster: Captured frame
        polygon: Finished selection polygon
        rasterizer: Mask strategy (defaults to scanline)

    Returns:
        Crop with the bounding-box-sized raster

    Raises:
        SelectionTooSmall: If the polygon has fewer than 3 points or its
            bounding box covers no pixels of the raster
    """
    if len(polygon) < MIN_POLYGON_POINTS:
        raise SelectionTooSmall(len(polygon))

    bbox = bounding_box(polygon).clip(raster.width, raster.height)
    if bbox.is_empty:
        raise SelectionTooSmall(
            len(polygon),
            f"Selection too small ({bbox.width}x{bbox.height} pixels)",
        )

    rasterizer = rasterizer or ScanlineRasterizer()
    mask = rasterizer.compute_mask(polygon, raster.size)

    rows = slice(bbox.min_y, bbox.max_y)
    cols = slice(bbox.min_x, bbox.max_x)
    source = raster.pixels[rows, cols]
    inside = mask[rows, cols]

    pixels = np.zeros_like(source)
    pixels[inside] = source[inside]

    log.debug(
        "Cropped %dx%d at (%d, %d), %d pixels inside",
        bbox.width, bbox.height, bbox.min_x, bbox.min_y, int(inside.sum()),
    )
    return Crop(raster=Raster(pixels), bbox=bbox)
