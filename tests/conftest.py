import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

# Make the package importable without installing it.
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from freeshot.raster import Raster  # noqa: E402


def gradient_raster(width: int, height: int) -> Raster:
    """Raster where every pixel is distinct and alpha varies."""
    ys, xs = np.mgrid[0:height, 0:width]
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[..., 0] = xs % 256
    pixels[..., 1] = ys % 256
    pixels[..., 2] = (xs + ys) % 256
    pixels[..., 3] = 255 - (xs * 7 + ys * 3) % 200
    return Raster(pixels)


@pytest.fixture
def raster_factory():
    return gradient_raster


class FakeClock:
    """Manually advanced monotonic clock, in integer nanoseconds."""

    def __init__(self, start_ns: int = 1_000_000_000_000):
        self.now = start_ns

    def __call__(self) -> int:
        return self.now

    def advance_ms(self, ms: int) -> None:
        self.now += ms * 1_000_000


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def _quiet_events(monkeypatch):
    """Keep structured events off stderr during tests."""
    from freeshot import emit

    monkeypatch.setattr(emit, "_stderr_enabled", False)
    monkeypatch.setattr(emit, "_handlers", [])
