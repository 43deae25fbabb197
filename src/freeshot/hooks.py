"""User hook scripts run after a selection is delivered.

Directory structure (hooks_dir from config, under the platformdirs config dir):
    <hooks_dir>/
    └── on_deliver.d/
        ├── 10-upload.sh
        └── 20-ocr.sh

Scripts run in sorted order, detached, each receiving:
    path width height timestamp
where path is "-" when the crop only went to the clipboard.
"""

import logging
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .config import Config
    from .output import OutputResult

log = logging.getLogger(__name__)


def find_hooks(hooks_dir: Optional[Path], event: str) -> list[Path]:
    """Executable scripts in <hooks_dir>/<event>.d, sorted by name."""
    if not hooks_dir:
        return []

    event_dir = hooks_dir / f"{event}.d"
    if not event_dir.is_dir():
        return []

    scripts = []
    for f in sorted(event_dir.iterdir()):
        if not f.is_file() or f.name.startswith("."):
            continue
        if not f.stat().st_mode & 0o111:
            log.debug("Skipping non-executable: %s", f)
            continue
        scripts.append(f)
    return scripts


def run_hooks(hooks_dir: Optional[Path], event: str, *args) -> int:
    """Start every hook script for an event without waiting for it.

    Returns:
        Number of scripts started
    """
    started = 0
    for script in find_hooks(hooks_dir, event):
        try:
            subprocess.Popen(
                [str(script)] + [str(a) for a in args],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
            started += 1
            log.debug("Hook executed: %s", script.name)
        except OSError as e:
            log.warning("Hook %s failed: %s", script.name, e)
    return started


def notify_delivered(result: "OutputResult", config: "Config") -> int:
    """Run on_deliver hooks for a delivered crop."""
    return run_hooks(
        config.hooks_dir,
        "on_deliver",
        result.path if result.path else "-",
        result.width,
        result.height,
        result.timestamp,
    )
