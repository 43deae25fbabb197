"""Delivery of finished selections.

Handles:
- Publishing to the clipboard
- Optionally saving to disk
- Desktop notifications
- Sound feedback
- JSON output for scripting
"""

import json
import logging
import subprocess
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import Config, get_config
from .emit import emit
from .errors import ClipboardError, SaveError
from .hooks import notify_delivered
from .raster import Raster

log = logging.getLogger(__name__)


@dataclass
class OutputOptions:
    """Options for output handling."""

    output_path: Optional[Path] = None  # Also save to this path
    save: bool = False  # Save to output_dir when no output_path is given

    clipboard: bool = True
    notification: bool = True
    sound: bool = True

    stdout: bool = False  # Print path to stdout
    json_output: bool = False  # Output JSON metadata

    # Silent mode - for scripting
    silent: bool = False  # Disables clipboard/notification/sound

    def __post_init__(self):
        if self.silent:
            self.clipboard = False
            self.notification = False
            self.sound = False

    @classmethod
    def from_config(cls, config: Config, **overrides) -> "OutputOptions":
        options = {
            "save": config.save_to_disk,
            "clipboard": config.enable_clipboard,
            "notification": config.enable_notification,
            "sound": config.enable_sound,
        }
        options.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**options)


@dataclass
class OutputResult:
    """Result of delivering a selection."""

    path: Optional[Path]
    width: int
    height: int
    timestamp: str
    clipboard: bool = False

    def to_dict(self) -> dict:
        return {
            "path": str(self.path) if self.path else None,
            "width": self.width,
            "height": self.height,
            "timestamp": self.timestamp,
            "clipboard": self.clipboard,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def _pixbuf(raster: Raster):
    import gi
    gi.require_version("GdkPixbuf", "2.0")
    from gi.repository import GdkPixbuf, GLib

    return GdkPixbuf.Pixbuf.new_from_bytes(
        GLib.Bytes.new(raster.to_bytes()),
        GdkPixbuf.Colorspace.RGB,
        True,
        8,
        raster.width,
        raster.height,
        raster.width * 4,
    )


def _encode_png(raster: Raster) -> bytes:
    """Encode a raster as PNG bytes using GdkPixbuf."""
    ok, data = _pixbuf(raster).save_to_bufferv("png", [], [])
    if not ok:
        raise ValueError("PNG encoding failed")
    return bytes(data)


def _write_png(raster: Raster, path: Path) -> None:
    from gi.repository import GLib

    try:
        _pixbuf(raster).savev(str(path), "png", [], [])
    except GLib.Error as e:
        raise SaveError(f"Could not write {path}: {e.message}") from e


def publish_image(raster: Raster, config: Optional[Config] = None) -> None:
    """Put an RGBA image on the clipboard as image/png.

    Raises:
        ClipboardError: If the image is empty or the clipboard is unavailable
    """
    config = config or get_config()
    if raster.is_empty:
        raise ClipboardError("Refusing to publish an empty image")

    try:
        png = _encode_png(raster)
    except Exception as e:
        raise ClipboardError(f"Could not encode image: {e}") from e

    try:
        subprocess.run(
            [config.clipboard_command, "-t", "image/png"],
            input=png,
            check=True,
            capture_output=True,
            timeout=5,
        )
    except FileNotFoundError:
        raise ClipboardError(f"Clipboard command not found: {config.clipboard_command}")
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.decode(errors="replace").strip() if e.stderr else ""
        raise ClipboardError(f"Clipboard command failed ({e.returncode}): {stderr}")
    except subprocess.TimeoutExpired:
        raise ClipboardError("Clipboard command timed out")

    log.debug("Copied %dx%d image to clipboard", raster.width, raster.height)


def _play_sound():
    """Play camera shutter sound."""
    try:
        subprocess.Popen(
            ["canberra-gtk-play", "-i", "screen-capture"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as e:
        log.debug("Could not play sound: %s", e)


def _show_notification(result: OutputResult):
    """Show desktop notification."""
    where = f"Saved to {result.path.name}" if result.path else "Copied to clipboard"
    try:
        import gi
        gi.require_version("Notify", "0.7")
        from gi.repository import Notify
        Notify.init("Freeshot")
        notification = Notify.Notification.new(
            "Selection Captured",
            f"{where}\n{result.width}x{result.height} pixels",
            "camera-photo",
        )
        notification.set_urgency(Notify.Urgency.LOW)
        notification.show()
    except Exception as e:
        log.debug("Could not show notification: %s", e)


def _resolve_output_path(options: OutputOptions, config: Config) -> Optional[Path]:
    if options.output_path:
        options.output_path.parent.mkdir(parents=True, exist_ok=True)
        return options.output_path
    if options.save:
        config.output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        return config.output_dir / f"freeshot_{timestamp}.png"
    return None


def deliver(
    raster: Raster,
    options: Optional[OutputOptions] = None,
    config: Optional[Config] = None,
) -> OutputResult:
    """Deliver a cropped selection.

    The clipboard is published first; if it fails nothing else happens, so
    the user can retry the gesture. A failed save is logged and reported as
    an error.handled event, and delivery continues without a path.

    Args:
        raster: Cropped, masked selection
        options: Output options
        config: Configuration object

    Returns:
        OutputResult with the saved path (if any) and metadata

    Raises:
        ClipboardError: If publishing to the clipboard fails
    """
    options = options or OutputOptions()
    config = config or get_config()

    if options.clipboard:
        publish_image(raster, config)

    output_path = None
    try:
        output_path = _resolve_output_path(options, config)
        if output_path:
            _write_png(raster, output_path)
    except (OSError, SaveError) as e:
        # The clipboard already has the image; report and carry on
        log.error("Could not save selection: %s", e)
        emit("error.handled", {
            "error_type": type(e).__name__,
            "message": str(e),
            "stage": "save",
        })
        output_path = None

    result = OutputResult(
        path=output_path,
        width=raster.width,
        height=raster.height,
        timestamp=datetime.now().isoformat(),
        clipboard=options.clipboard,
    )

    if options.sound:
        _play_sound()

    if options.notification:
        _show_notification(result)

    emit("artifact.created", {
        "file_path": str(output_path) if output_path else None,
        "file_type": "selection",
        "metadata": {
            "width": result.width,
            "height": result.height,
            "clipboard": result.clipboard,
            "timestamp": result.timestamp,
        },
    })

    notify_delivered(result, config)

    if options.json_output:
        print(result.to_json(), flush=True)
    elif options.stdout and output_path:
        print(str(output_path), flush=True)
    else:
        log.info("Selection delivered: %dx%d%s", result.width, result.height,
                 f" -> {output_path}" if output_path else "")

    return result
