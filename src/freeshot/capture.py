"""Screen capture.

Uses the wayland-capture binary to grab one monitor into a temporary PNG,
then decodes it into an RGBA Raster. The temporary file never outlives the
call.
"""

import json
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Optional, Union

from .config import Config, get_config
from .errors import CaptureError
from .raster import Raster

log = logging.getLogger(__name__)

__all__ = ["CaptureError", "capture_monitor", "list_outputs", "resolve_output"]


def list_outputs(config: Optional[Config] = None) -> list[dict]:
    """List all available outputs.

    Returns:
        List of output dicts with keys: name, description, width, height, x, y
    """
    config = config or get_config()
    try:
        result = subprocess.run(
            [config.wayland_capture, "--list", "--json"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            data = json.loads(result.stdout)
            return data.get("outputs", [])
        log.warning("Could not list outputs: %s", result.stderr.strip())
    except (OSError, subprocess.TimeoutExpired, json.JSONDecodeError) as e:
        log.warning("Could not list outputs: %s", e)
    return []


def resolve_output(
    monitor: Union[int, str, None],
    config: Optional[Config] = None,
) -> str:
    """Turn a monitor index or name into a wayland output name.

    Args:
        monitor: Index into the output list, an output name, or None for
            the first output

    Raises:
        CaptureError: If no monitors are found or the index is out of range
    """
    if isinstance(monitor, str) and not monitor.isdigit():
        return monitor

    outputs = list_outputs(config)
    if not outputs:
        raise CaptureError("No monitors found")

    index = int(monitor) if monitor is not None else 0
    if not 0 <= index < len(outputs):
        raise CaptureError(f"Monitor {index} not found ({len(outputs)} available)")

    name = outputs[index].get("name")
    if not name:
        raise CaptureError(f"Monitor {index} has no output name")
    return name


def _load_png(path: Path) -> Raster:
    """Decode a PNG into an RGBA raster through GdkPixbuf."""
    import gi
    gi.require_version("GdkPixbuf", "2.0")
    from gi.repository import GdkPixbuf, GLib

    try:
        pixbuf = GdkPixbuf.Pixbuf.new_from_file(str(path))
    except GLib.Error as e:
        raise CaptureError(f"Could not decode capture: {e.message}") from e

    if not pixbuf.get_has_alpha():
        pixbuf = pixbuf.add_alpha(False, 0, 0, 0)

    return Raster.from_buffer(
        pixbuf.get_width(),
        pixbuf.get_height(),
        pixbuf.get_pixels(),
        pixbuf.get_rowstride(),
    )


def capture_monitor(
    monitor: Union[int, str, None] = None,
    config: Optional[Config] = None,
) -> Raster:
    """Capture the current frame of one monitor.

    Args:
        monitor: Monitor index or output name. If None, uses config.monitor.
        config: Configuration object. If None, uses global config.

    Returns:
        The captured frame

    Raises:
        CaptureError: If capture fails
    """
    config = config or get_config()
    output_name = resolve_output(config.monitor if monitor is None else monitor, config)

    tmp = tempfile.NamedTemporaryFile(suffix=".png", delete=False)
    temp_path = Path(tmp.name)
    tmp.close()

    try:
        result = subprocess.run(
            [config.wayland_capture, "--output", output_name, "--output-file", str(temp_path)],
            capture_output=True,
            text=True,
            timeout=10,
        )
        if result.returncode != 0:
            raise CaptureError(f"Screen capture failed: {result.stderr.strip()}")

        raster = _load_png(temp_path)
        log.debug("Captured %s: %dx%d", output_name, raster.width, raster.height)
        return raster

    except subprocess.TimeoutExpired:
        raise CaptureError("Screen capture timed out")
    except FileNotFoundError:
        raise CaptureError(f"wayland-capture not found: {config.wayland_capture}")
    finally:
        temp_path.unlink(missing_ok=True)
