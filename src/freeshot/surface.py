"""Display surface lifecycle.

The preview window does not own a pixel buffer until it is first asked to
draw. The surface is therefore either Detached or Attached; the draw handler
resolves it on every redraw and the compositor writes into the attached
frame.
"""

import logging
from dataclasses import dataclass, field
from typing import Union

import numpy as np

from .errors import SurfaceError
from .raster import CHANNELS

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Detached:
    """No display buffer allocated yet."""
    pass


@dataclass
class Attached:
    """Display buffer allocated for a width x height frame."""

    width: int
    height: int
    frame: np.ndarray = field(repr=False)


SurfaceState = Union[Detached, Attached]


class DisplaySurface:
    """Owns the RGBA backing buffer handed to the window each redraw."""

    def __init__(self):
        self.state: SurfaceState = Detached()

    @property
    def attached(self) -> bool:
        return isinstance(self.state, Attached)

    def attach(self, width: int, height: int) -> Attached:
        """Allocate the backing buffer.

        Raises:
            SurfaceError: If the size is invalid or allocation fails
        """
        if width <= 0 or height <= 0:
            raise SurfaceError(f"Cannot allocate a {width}x{height} display buffer")
        try:
            frame = np.zeros((height, width, CHANNELS), dtype=np.uint8)
        except (MemoryError, ValueError) as e:
            raise SurfaceError(f"Could not allocate {width}x{height} display buffer: {e}") from e

        self.state = Attached(width=width, height=height, frame=frame)
        log.debug("Display surface attached: %dx%d", width, height)
        return self.state

    def frame(self, width: int, height: int) -> np.ndarray:
        """Return the backing buffer for a frame of the given size.

        Attaches on first use and reallocates if the size changed.
        """
        state = self.state
        if isinstance(state, Attached) and (state.width, state.height) == (width, height):
            return state.frame
        return self.attach(width, height).frame

    def detach(self) -> None:
        self.state = Detached()
