"""Lasso selection state machine.

A session starts IDLE. Pointer-down clears the polygon and enters
SELECTING; pointer motion appends vertices, at most one per throttle
interval; pointer-up returns to IDLE and extracts the crop. A new gesture
may follow in the same session.
"""

import logging
import time
from enum import Enum
from typing import Callable, Optional

import numpy as np

from .compositor import compose_frame
from .crop import Crop, extract_crop
from .geometry import Point
from .mask import MaskRasterizer, ScanlineRasterizer
from .raster import Raster
from .surface import DisplaySurface

log = logging.getLogger(__name__)

DEFAULT_THROTTLE_MS = 100


class SelectionState(Enum):
    IDLE = "idle"
    SELECTING = "selecting"


class SelectionSession:
    """Accumulates a lasso polygon over one captured raster."""

    def __init__(
        self,
        raster: Raster,
        rasterizer: Optional[MaskRasterizer] = None,
        throttle_ms: int = DEFAULT_THROTTLE_MS,
        clock: Callable[[], int] = time.monotonic_ns,
    ):
        """Initialize a session.

        Args:
            raster: The captured frame, owned by this session
            rasterizer: Mask strategy for preview and crop (default: scanline)
            throttle_ms: Minimum interval between accepted vertices
            clock: Monotonic time source in integer nanoseconds
        """
        self.raster = raster
        self.rasterizer = rasterizer or ScanlineRasterizer()
        self.throttle_ms = throttle_ms
        self._clock = clock

        self.state = SelectionState.IDLE
        self._points: list[Point] = []
        self._last_sample_ns: Optional[int] = None
        self.cursor: Optional[Point] = None

    @property
    def selecting(self) -> bool:
        return self.state is SelectionState.SELECTING

    @property
    def polygon(self) -> tuple[Point, ...]:
        return tuple(self._points)

    def _throttle_ns(self) -> int:
        return round(self.throttle_ms * 1_000_000)

    def press(self, x: float, y: float) -> bool:
        """Handle pointer-down. Returns whether a redraw is needed (never)."""
        if self.selecting:
            log.debug("Pointer down during selection, restarting gesture")
        self._points.clear()
        self.cursor = Point(float(x), float(y))
        self.state = SelectionState.SELECTING
        return False

    def move(self, x: float, y: float) -> bool:
        """Handle pointer motion.

        Returns:
            True if a vertex was accepted and the preview must be redrawn
        """
        self.cursor = Point(float(x), float(y))
        if not self.selecting:
            log.debug("Cursor at (%.1f, %.1f)", x, y)
            return False

        now = self._clock()
        if self._last_sample_ns is not None and now - self._last_sample_ns < self._throttle_ns():
            return False

        self._last_sample_ns = now
        self._points.append(self.cursor)
        return True

    def release(self, x: float, y: float) -> Optional[Crop]:
        """Handle pointer-up and extract the selection.

        The polygon is used exactly as accumulated; the release position is
        not added as a vertex.

        Returns:
            The crop, or None if no gesture was in progress

        Raises:
            SelectionTooSmall: If the polygon cannot enclose any pixels. The
                session is already back to IDLE when this is raised.
        """
        self.cursor = Point(float(x), float(y))
        if not self.selecting:
            return None

        self.state = SelectionState.IDLE
        log.debug("Selection finished with %d points", len(self._points))
        return extract_crop(self.raster, self._points, self.rasterizer)

    def cancel(self) -> None:
        """Abandon the current gesture and clear the polygon."""
        self._points.clear()
        self.state = SelectionState.IDLE

    def render(self, surface: DisplaySurface) -> np.ndarray:
        """Composite the current selection into the surface's frame buffer."""
        frame = surface.frame(self.raster.width, self.raster.height)
        return compose_frame(self.raster, self._points, self.rasterizer, out=frame)
