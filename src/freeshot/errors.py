"""Exception types shared across the package."""

from .raster import Raster


class FreeshotError(Exception):
    """Base class for all Freeshot errors."""
    pass


class CaptureError(FreeshotError):
    """Raised when the screen cannot be captured."""
    pass


class SurfaceError(FreeshotError):
    """Raised when the display surface cannot be allocated or presented."""
    pass


class ClipboardError(FreeshotError):
    """Raised when the image cannot be published to the clipboard."""
    pass


class SaveError(FreeshotError):
    """Raised when a delivered selection cannot be written to disk."""
    pass


class SelectionTooSmall(FreeshotError):
    """Raised when a finished selection cannot enclose any pixels.

    ``raster`` holds the empty result for callers that want one regardless.
    """

    def __init__(self, point_count: int, message: str = ""):
        self.point_count = point_count
        self.raster = Raster.empty()
        super().__init__(message or f"Selection too small ({point_count} points)")
