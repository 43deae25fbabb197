"""Cairo drawing helpers for the lasso preview window."""

from typing import Sequence

import cairo

from ..geometry import Point


def draw_lasso_path(cr: cairo.Context, points: Sequence[Point], scale: float, closed: bool = False):
    """Stroke the lasso through the accepted vertices.

    Points are in raster coordinates; the context is in window coordinates.
    """
    if len(points) < 2:
        return

    cr.save()
    cr.new_path()
    cr.move_to(points[0].x * scale, points[0].y * scale)
    for p in points[1:]:
        cr.line_to(p.x * scale, p.y * scale)
    if closed:
        cr.close_path()

    # Black outline
    cr.set_source_rgb(0, 0, 0)
    cr.set_line_width(3)
    cr.stroke_preserve()

    # Blue center
    cr.set_source_rgb(0.3, 0.6, 1.0)
    cr.set_line_width(1.5)
    cr.stroke()
    cr.restore()


def draw_instructions(cr: cairo.Context, x: int = 20, y: int = 30):
    """Draw help instructions in the corner."""
    instructions = [
        "Drag: Draw selection",
        "Release: Copy to clipboard",
        "ESC/Right-click: Cancel",
    ]

    cr.select_font_face("sans-serif", cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_NORMAL)
    cr.set_font_size(14)

    for instruction in instructions:
        extents = cr.text_extents(instruction)
        # Background
        cr.set_source_rgba(0, 0, 0, 0.7)
        cr.rectangle(x - 5, y - extents.height - 2, extents.width + 10, extents.height + 6)
        cr.fill()
        # Text
        cr.set_source_rgb(1, 1, 1)
        cr.move_to(x, y)
        cr.show_text(instruction)
        y += 22


def draw_notice(cr: cairo.Context, text: str, width: int, height: int):
    """Draw a centered notice, e.g. when a selection is too small."""
    cr.select_font_face("sans-serif", cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_BOLD)
    cr.set_font_size(18)
    extents = cr.text_extents(text)

    text_x = width / 2 - extents.width / 2
    text_y = height / 2 + extents.height / 2

    cr.set_source_rgba(0.6, 0, 0, 0.85)
    cr.rectangle(
        text_x - 10,
        text_y - extents.height - 10,
        extents.width + 20,
        extents.height + 20,
    )
    cr.fill()

    cr.set_source_rgb(1, 1, 1)
    cr.move_to(text_x, text_y)
    cr.show_text(text)
