"""Pointer-release handling for the lasso window.

Kept free of GTK so the window's recoverable-error policy can be exercised
without a display: a too-small selection or a clipboard failure leaves the
window open with a notice, a delivered selection closes it.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import Config
from .crop import Crop
from .emit import emit
from .errors import ClipboardError, SelectionTooSmall
from .output import OutputOptions, OutputResult, deliver
from .selection import SelectionSession

log = logging.getLogger(__name__)

TOO_SMALL_NOTICE = "Selection too small"
CLIPBOARD_NOTICE = "Clipboard unavailable, draw again to retry"


@dataclass
class ReleaseOutcome:
    """What the window should do after a pointer release."""

    crop: Optional[Crop] = None
    result: Optional[OutputResult] = None
    notice: Optional[str] = None

    @property
    def finished(self) -> bool:
        """True once the selection was delivered and the window can close."""
        return self.result is not None


def finish_selection(
    session: SelectionSession,
    x: float,
    y: float,
    options: OutputOptions,
    config: Config,
    operation_id: Optional[str] = None,
) -> ReleaseOutcome:
    """Complete the gesture at (x, y) and deliver the crop.

    Args:
        session: Selection session receiving the release
        x, y: Release position in raster coordinates
        options: Output options for the finished selection
        config: Configuration object
        operation_id: Id of the capture operation, for events

    Returns:
        ReleaseOutcome; ``notice`` is set when the user should draw again
    """
    try:
        crop = session.release(x, y)
    except SelectionTooSmall as e:
        log.warning("%s", e)
        emit("error.handled", {
            "error_type": "SelectionTooSmall",
            "message": str(e),
            "stage": "selection",
        })
        return ReleaseOutcome(notice=TOO_SMALL_NOTICE)

    if crop is None:
        return ReleaseOutcome()

    emit("selection.completed", {
        "operation_id": operation_id,
        "points": len(session.polygon),
        "bbox": crop.bbox.to_dict(),
    })

    try:
        result = deliver(crop.raster, options, config)
    except ClipboardError as e:
        log.error("Clipboard publish failed: %s", e)
        emit("error.handled", {
            "error_type": "ClipboardError",
            "message": str(e),
            "stage": "output",
        })
        return ReleaseOutcome(crop=crop, notice=CLIPBOARD_NOTICE)

    return ReleaseOutcome(crop=crop, result=result)
