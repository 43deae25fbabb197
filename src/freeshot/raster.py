"""RGBA raster value type.

A Raster is a row-major grid of 8-bit RGBA pixels with its origin at the
top-left corner. The backing numpy array has shape (height, width, 4) and
is marked read-only, so a captured frame cannot be modified in place.
"""

from dataclasses import dataclass

import numpy as np

CHANNELS = 4


@dataclass(frozen=True, eq=False)
class Raster:
    """Immutable RGBA8 image."""

    pixels: np.ndarray

    def __post_init__(self):
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Raster pixels must be uint8, got {self.pixels.dtype}")
        if self.pixels.ndim != 3 or self.pixels.shape[2] != CHANNELS:
            raise ValueError(f"Raster pixels must have shape (h, w, 4), got {self.pixels.shape}")
        self.pixels.flags.writeable = False

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        """Return the RGBA value at (x, y). Raises IndexError when out of bounds."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} raster")
        r, g, b, a = self.pixels[y, x]
        return (int(r), int(g), int(b), int(a))

    def to_bytes(self) -> bytes:
        """Packed RGBA bytes, 4 bytes per pixel, row-major."""
        return self.pixels.tobytes()

    @classmethod
    def empty(cls) -> "Raster":
        return cls(np.zeros((0, 0, CHANNELS), dtype=np.uint8))

    @classmethod
    def blank(cls, width: int, height: int) -> "Raster":
        """Fully transparent raster of the given size."""
        return cls(np.zeros((height, width, CHANNELS), dtype=np.uint8))

    @classmethod
    def from_array(cls, array: np.ndarray) -> "Raster":
        """Copy an (h, w, 4) uint8 array into a new raster."""
        return cls(np.array(array, dtype=np.uint8, copy=True))

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> "Raster":
        """Build a raster from packed RGBA bytes."""
        expected = width * height * CHANNELS
        if width < 0 or height < 0:
            raise ValueError(f"Invalid raster size {width}x{height}")
        if len(data) != expected:
            raise ValueError(f"Expected {expected} bytes for {width}x{height} RGBA, got {len(data)}")
        array = np.frombuffer(data, dtype=np.uint8).reshape(height, width, CHANNELS)
        return cls(array.copy())

    @classmethod
    def from_buffer(cls, width: int, height: int, data: bytes, rowstride: int) -> "Raster":
        """Build a raster from a strided RGBA buffer (e.g. GdkPixbuf pixel data).

        The last row of such buffers is often not padded out to the full
        rowstride, so a short final row is accepted.
        """
        row_bytes = width * CHANNELS
        if rowstride < row_bytes:
            raise ValueError(f"Rowstride {rowstride} smaller than row size {row_bytes}")
        if height == 0 or width == 0:
            return cls.blank(width, height)
        minimum = rowstride * (height - 1) + row_bytes
        if len(data) < minimum:
            raise ValueError(f"Buffer too short: need {minimum} bytes, got {len(data)}")

        buf = np.frombuffer(data, dtype=np.uint8)
        full = rowstride * height
        if len(buf) < full:
            buf = np.concatenate([buf, np.zeros(full - len(buf), dtype=np.uint8)])
        rows = buf[:full].reshape(height, rowstride)[:, :row_bytes]
        return cls(rows.reshape(height, width, CHANNELS).copy())
