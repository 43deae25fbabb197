"""
Structured event emitter.

Default transport: one JSON line per event on stderr, next to regular log
lines. Extra transports are plain callables registered with add_handler().

Event format:
    {"event_type": "...", "timestamp": "...", "source": {"tool": "..."}, "data": {...}}
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict], None]

# Event type -> (lifecycle point, data fields)
EVENT_CATALOG: Dict[str, tuple[str, list[str]]] = {
    "config.resolved": ("config.loaded", ["config_path", "source"]),
    "operation.started": ("operation.started", ["operation_type", "operation_id", "monitor"]),
    "selection.completed": ("selection.completed", ["operation_id", "points", "bbox"]),
    "artifact.created": ("artifact.created", ["file_path", "file_type", "metadata"]),
    "error.handled": ("error.occurred", ["error_type", "message", "stage"]),
    "shutdown": ("shutdown", []),
}

LIFECYCLE_POINTS = [
    "startup",
    "config.loaded",
    "operation.started",
    "selection.completed",
    "artifact.created",
    "error.occurred",
    "shutdown",
]

_handlers: List[EventHandler] = []
_source: str = "unknown"
_stderr_enabled: bool = True


def configure(source: str, stderr: bool = True) -> None:
    """Set the source name for emitted events. Call once at startup.

    Args:
        source: Source identifier for events
        stderr: Whether to write events to stderr (off for scripting)
    """
    global _source, _stderr_enabled
    _source = source
    _stderr_enabled = stderr


def add_handler(handler: EventHandler) -> None:
    _handlers.append(handler)


def remove_handler(handler: EventHandler) -> None:
    if handler in _handlers:
        _handlers.remove(handler)


def event_catalog() -> list[dict]:
    return [
        {"event_type": name, "lifecycle_point": point, "data_fields": fields}
        for name, (point, fields) in EVENT_CATALOG.items()
    ]


def emit(
    event_type: str,
    data: Dict[str, Any],
    source: Optional[str] = None,
) -> dict:
    """Emit a structured event to stderr and every registered handler.

    A failing handler is logged and skipped; emitting never raises.

    Returns:
        The event dict that was emitted
    """
    event = {
        "event_type": event_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": {
            "tool": source or _source,
        },
        "data": data,
    }

    if _stderr_enabled:
        try:
            print(json.dumps(event, default=str), file=sys.stderr, flush=True)
        except (TypeError, ValueError, OSError) as exc:
            logger.debug("Could not write event %s: %s", event_type, exc)

    for handler in list(_handlers):
        try:
            handler(event)
        except Exception as exc:
            logger.debug("Event handler error: %s", exc)

    return event
