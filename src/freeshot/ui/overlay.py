"""Lasso preview window."""

import logging
import signal
from typing import Optional

import cairo
import gi
gi.require_version("Gtk", "3.0")
gi.require_version("Gdk", "3.0")
gi.require_version("GdkPixbuf", "2.0")
from gi.repository import Gtk, Gdk, GdkPixbuf, GLib

from ..config import Config, get_config
from ..emit import emit
from ..errors import SurfaceError
from ..finish import finish_selection
from ..mask import get_rasterizer
from ..output import OutputOptions, OutputResult
from ..raster import Raster
from ..selection import SelectionSession
from ..surface import DisplaySurface
from .drawing import draw_instructions, draw_lasso_path, draw_notice

log = logging.getLogger(__name__)


def _frame_to_pixbuf(frame) -> GdkPixbuf.Pixbuf:
    """Wrap a composited RGBA frame for presenting."""
    height, width = frame.shape[:2]
    try:
        return GdkPixbuf.Pixbuf.new_from_bytes(
            GLib.Bytes.new(frame.tobytes()),
            GdkPixbuf.Colorspace.RGB,
            True,
            8,
            width,
            height,
            width * 4,
        )
    except GLib.Error as e:
        raise SurfaceError(f"Could not present {width}x{height} frame: {e.message}") from e


class LassoWindow(Gtk.Window):
    """Preview window showing the captured frame with the lasso applied."""

    def __init__(
        self,
        raster: Raster,
        config: Optional[Config] = None,
        options: Optional[OutputOptions] = None,
        operation_id: Optional[str] = None,
    ):
        super().__init__(title="Freeshot")
        self.config = config or get_config()
        self.options = options or OutputOptions.from_config(self.config)
        self.operation_id = operation_id

        self.session = SelectionSession(
            raster,
            rasterizer=get_rasterizer(self.config.rasterizer),
            throttle_ms=self.config.throttle_ms,
        )
        self.surface = DisplaySurface()
        self.scale = self.config.preview_scale
        self.exit_code = 0
        self.result: Optional[OutputResult] = None
        self._notice: Optional[str] = None
        self._closed = False

        width = max(1, int(raster.width * self.scale))
        height = max(1, int(raster.height * self.scale))
        self.set_default_size(width, height)
        log.debug("Preview window %dx%d for %dx%d frame", width, height, raster.width, raster.height)

        self.drawing_area = Gtk.DrawingArea()
        self.drawing_area.connect("draw", self._on_draw)
        self.add(self.drawing_area)

        self.drawing_area.set_events(
            Gdk.EventMask.BUTTON_PRESS_MASK
            | Gdk.EventMask.BUTTON_RELEASE_MASK
            | Gdk.EventMask.POINTER_MOTION_MASK
        )
        self.drawing_area.connect("button-press-event", self._on_button_press)
        self.drawing_area.connect("button-release-event", self._on_button_release)
        self.drawing_area.connect("motion-notify-event", self._on_motion)
        self.connect("key-press-event", self._on_key_press)
        self.connect("delete-event", self._on_delete)

        self.show_all()

    def _to_raster(self, x: float, y: float) -> tuple[float, float]:
        return x / self.scale, y / self.scale

    def _update_scale(self) -> None:
        alloc = self.drawing_area.get_allocation()
        raster = self.session.raster
        if alloc.width > 0 and alloc.height > 0:
            self.scale = min(alloc.width / raster.width, alloc.height / raster.height)

    def _on_draw(self, widget, cr):
        self._update_scale()

        try:
            frame = self.session.render(self.surface)
            pixbuf = _frame_to_pixbuf(frame)
        except SurfaceError as e:
            self._fail(e)
            return True

        # Dimmed pixels blend toward black
        cr.set_source_rgb(0, 0, 0)
        cr.paint()

        cr.save()
        cr.scale(self.scale, self.scale)
        Gdk.cairo_set_source_pixbuf(cr, pixbuf, 0, 0)
        cr.get_source().set_filter(cairo.FILTER_GOOD)
        cr.paint()
        cr.restore()

        draw_lasso_path(cr, self.session.polygon, self.scale, closed=not self.session.selecting)
        draw_instructions(cr)

        if self._notice:
            alloc = widget.get_allocation()
            draw_notice(cr, self._notice, alloc.width, alloc.height)

        return False

    def _on_button_press(self, widget, event):
        if event.button == 3:  # Right-click cancels
            self._cancel()
            return True

        if event.button == 1:
            self._notice = None
            self.session.press(*self._to_raster(event.x, event.y))
        return True

    def _on_motion(self, widget, event):
        if self.session.move(*self._to_raster(event.x, event.y)):
            widget.queue_draw()
        return True

    def _on_button_release(self, widget, event):
        if event.button != 1:
            return True

        outcome = finish_selection(
            self.session,
            *self._to_raster(event.x, event.y),
            options=self.options,
            config=self.config,
            operation_id=self.operation_id,
        )
        if outcome.notice:
            self._notice = outcome.notice
            widget.queue_draw()
        if not outcome.finished:
            return True

        self.result = outcome.result
        self._cleanup_and_exit()
        return True

    def _on_key_press(self, widget, event):
        if event.keyval == Gdk.KEY_Escape:
            self._cancel()
        return True

    def _on_delete(self, widget, event):
        self._cancel()
        return True

    def _cancel(self):
        log.debug("Selection cancelled")
        self.session.cancel()
        self._cleanup_and_exit()

    def _fail(self, error: SurfaceError):
        log.error("Display surface failed: %s", error)
        emit("error.handled", {
            "error_type": "SurfaceError",
            "message": str(error),
            "stage": "display",
        })
        self.exit_code = 1
        self._cleanup_and_exit()

    def _cleanup_and_exit(self):
        """Release the surface and close the window."""
        if self._closed:
            return
        self._closed = True
        self.surface.detach()
        self.hide()
        self.destroy()
        Gtk.main_quit()


def run_interactive(
    raster: Raster,
    config: Optional[Config] = None,
    options: Optional[OutputOptions] = None,
    operation_id: Optional[str] = None,
) -> int:
    """Run the lasso preview window over a captured frame.

    Args:
        raster: Captured frame
        config: Configuration object
        options: Output options for the finished selection
        operation_id: Id of the capture operation, for events

    Returns:
        Exit code (0 for success or cancel, 1 on display failure)
    """
    config = config or get_config()

    GLib.set_prgname("freeshot")
    GLib.set_application_name("Freeshot")

    window = LassoWindow(raster, config, options, operation_id)

    def _on_signal():
        GLib.idle_add(window._cancel)
        return True

    for signum in (signal.SIGINT, signal.SIGTERM):
        GLib.unix_signal_add(GLib.PRIORITY_HIGH, signum, _on_signal)

    Gtk.main()
    return window.exit_code
