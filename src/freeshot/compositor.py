"""Frame compositing for the live selection preview."""

from typing import Optional

import numpy as np

from .geometry import MIN_POLYGON_POINTS, Polygon
from .mask import Mask, MaskRasterizer
from .raster import Raster


def _target(raster: Raster, out: Optional[np.ndarray]) -> np.ndarray:
    if out is None:
        return np.empty_like(raster.pixels)
    if out.shape != raster.pixels.shape or out.dtype != np.uint8:
        raise ValueError(
            f"Frame buffer {out.shape}/{out.dtype} does not match raster "
            f"{raster.pixels.shape}/uint8"
        )
    return out


def composite(raster: Raster, mask: Optional[Mask], out: Optional[np.ndarray] = None) -> np.ndarray:
    """Write the preview frame for a raster and selection mask.

    RGB is copied unchanged. Alpha is kept where the mask is True and
    halved (integer division) elsewhere, which renders everything outside
    the selection translucent. A None mask copies the raster as-is.

    Args:
        raster: Captured frame
        mask: (height, width) bool mask, or None for no selection
        out: Optional (height, width, 4) uint8 buffer written in place

    Returns:
        The frame buffer (``out`` when given)
    """
    frame = _target(raster, out)
    source = raster.pixels
    frame[...] = source

    if mask is None:
        return frame

    if mask.shape != source.shape[:2]:
        raise ValueError(f"Mask shape {mask.shape} does not match raster {source.shape[:2]}")

    alpha = source[..., 3]
    frame[..., 3] = np.where(mask, alpha, alpha // 2)
    return frame


def compose_frame(
    raster: Raster,
    polygon: Polygon,
    rasterizer: MaskRasterizer,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Composite the current polygon over the raster.

    Polygons that cannot enclose area yet (fewer than 3 points) leave the
    whole frame at full opacity.
    """
    if len(polygon) < MIN_POLYGON_POINTS:
        return composite(raster, None, out)
    mask = rasterizer.compute_mask(polygon, raster.size)
    return composite(raster, mask, out)
