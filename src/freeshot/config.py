"""Configuration management for Freeshot.

Configuration priority (highest to lowest):
1. CLI overrides (passed to load_config)
2. Environment variables (FREESHOT_*)
3. Config file (~/.config/freeshot/config.yaml)
4. Built-in defaults
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Union

import yaml
from platformdirs import user_config_dir

from .mask import RASTERIZERS

log = logging.getLogger(__name__)

ENV_PREFIX = "FREESHOT"
CONFIG_DIR = Path(user_config_dir("freeshot"))
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.yaml"

# The preview window opens at two thirds of the captured frame.
DEFAULT_PREVIEW_SCALE = 10 / 15


@dataclass
class Config:
    """Freeshot configuration."""

    # Binary paths
    wayland_capture: str = "wayland-capture"
    clipboard_command: str = "wl-copy"

    # Capture
    monitor: Union[int, str] = 0

    # Selection
    throttle_ms: int = 100
    rasterizer: str = "scanline"
    preview_scale: float = DEFAULT_PREVIEW_SCALE

    # Output
    output_dir: Path = field(default_factory=lambda: Path.home() / "Pictures" / "screenshots")
    save_to_disk: bool = False
    enable_clipboard: bool = True
    enable_notification: bool = True
    enable_sound: bool = True

    # Hooks
    hooks_dir: Optional[Path] = field(default_factory=lambda: CONFIG_DIR / "hooks")

    def __post_init__(self):
        if isinstance(self.output_dir, str):
            self.output_dir = Path(self.output_dir)
        if isinstance(self.hooks_dir, str):
            self.hooks_dir = Path(self.hooks_dir)
        # Numeric strings from env/CLI select a monitor by index
        if isinstance(self.monitor, str) and self.monitor.isdigit():
            self.monitor = int(self.monitor)


PATH_KEYS = {"output_dir", "hooks_dir"}


def _env(name: str) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}_{name}")


def _config_path_from_env() -> Optional[Path]:
    value = _env("CONFIG") or _env("CONFIG_PATH")
    if value:
        return Path(value).expanduser()
    return None


def _load_config_file(path: Path, strict: bool = False) -> dict:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        if strict:
            raise ValueError(f"Failed to parse config file {path}: {exc}")
        return {}

    if not isinstance(data, dict):
        if strict:
            raise ValueError(f"Config file {path} must be a mapping")
        return {}

    return data


def _expand_path(value: Any) -> Any:
    if value is None:
        return value
    return str(Path(value).expanduser())


def config_defaults() -> dict:
    """Built-in defaults, in the same shape as config_to_dict()."""
    return config_to_dict(Config())


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes", "on")


# FREESHOT_<NAME> -> (config key, converter)
ENV_OVERRIDES: dict[str, tuple[str, Callable[[str], Any]]] = {
    "WAYLAND_CAPTURE": ("wayland_capture", str),
    "CLIPBOARD_COMMAND": ("clipboard_command", str),
    "MONITOR": ("monitor", str),
    "THROTTLE_MS": ("throttle_ms", int),
    "RASTERIZER": ("rasterizer", str),
    "PREVIEW_SCALE": ("preview_scale", float),
    "OUTPUT_DIR": ("output_dir", _expand_path),
    "HOOKS_DIR": ("hooks_dir", _expand_path),
    "SAVE_TO_DISK": ("save_to_disk", _parse_bool),
    "ENABLE_CLIPBOARD": ("enable_clipboard", _parse_bool),
    "ENABLE_NOTIFICATION": ("enable_notification", _parse_bool),
    "ENABLE_SOUND": ("enable_sound", _parse_bool),
}


def _load_env_overrides() -> dict:
    overrides: dict[str, Any] = {}
    for name, (key, convert) in ENV_OVERRIDES.items():
        raw = _env(name)
        if raw is None:
            continue
        try:
            overrides[key] = convert(raw)
        except ValueError:
            # Unparseable numbers fall back to lower-priority sources
            continue
    return overrides


def resolve_config_path(config_path: Optional[Path] = None) -> Path:
    return config_path or _config_path_from_env() or DEFAULT_CONFIG_PATH


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[dict] = None,
    strict: bool = False,
) -> Config:
    """Load configuration from all sources."""
    resolved_path = resolve_config_path(config_path)

    config_dict = config_defaults()
    file_config = _load_config_file(resolved_path, strict=strict)
    config_dict.update({k: v for k, v in file_config.items() if k in config_dict})
    config_dict.update(_load_env_overrides())

    if overrides:
        for key, value in overrides.items():
            if value is not None:
                config_dict[key] = value

    for key in PATH_KEYS:
        if key in config_dict and config_dict[key] is not None:
            config_dict[key] = _expand_path(config_dict[key])

    defaults = config_defaults()
    for key in _invalid_keys(config_dict):
        if strict:
            raise ValueError(f"Invalid config value {key}={config_dict[key]!r}")
        log.warning("Ignoring invalid %s=%r, using %r", key, config_dict[key], defaults[key])
        config_dict[key] = defaults[key]

    return Config(**config_dict)


# Global config instance (lazy loaded)
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def config_schema() -> dict:
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": {
            "wayland_capture": {"type": "string"},
            "clipboard_command": {"type": "string"},
            "monitor": {"type": ["integer", "string"], "minimum": 0},
            "throttle_ms": {"type": "integer", "minimum": 0},
            "rasterizer": {"type": "string", "enum": sorted(RASTERIZERS)},
            "preview_scale": {"type": "number", "exclusiveMinimum": 0, "maximum": 4},
            "output_dir": {"type": "string"},
            "save_to_disk": {"type": "boolean"},
            "enable_clipboard": {"type": "boolean"},
            "enable_notification": {"type": "boolean"},
            "enable_sound": {"type": "boolean"},
            "hooks_dir": {"type": ["string", "null"]},
        },
        "additionalProperties": False,
    }


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _matches(value: Any, expected: str) -> bool:
    if expected == "string":
        return isinstance(value, str)
    if expected == "integer":
        return _is_int(value)
    if expected == "number":
        return _is_number(value)
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "null":
        return value is None
    return False


def validate_config_dict(data: Any) -> list[str]:
    errors: list[str] = []
    if not isinstance(data, dict):
        return ["Config must be a mapping/object"]

    props = config_schema()["properties"]

    for key in data.keys():
        if key not in props:
            errors.append(f"Unknown config key: {key}")

    for key, value in data.items():
        if key not in props:
            continue
        expected = props[key]["type"]
        if isinstance(expected, list):
            if not any(_matches(value, t) for t in expected):
                errors.append(f"{key} must be one of types: {', '.join(expected)}")
                continue
        elif not _matches(value, expected):
            errors.append(f"{key} must be {'an' if expected == 'integer' else 'a'} {expected}")
            continue

        if key == "rasterizer" and value not in RASTERIZERS:
            errors.append(f"rasterizer must be one of: {', '.join(sorted(RASTERIZERS))}")
        if key == "throttle_ms" and value < 0:
            errors.append("throttle_ms must be >= 0")
        if key == "monitor" and _is_int(value) and value < 0:
            errors.append("monitor must be >= 0")
        if key == "preview_scale" and not (0 < value <= 4):
            errors.append("preview_scale must be > 0 and <= 4")

    return errors


# Checked on load; bad values here would break the selection window
CHECKED_KEYS = ("monitor", "throttle_ms", "rasterizer", "preview_scale")


def _invalid_keys(config_dict: dict) -> list[str]:
    return [
        key for key in CHECKED_KEYS
        if validate_config_dict({key: config_dict[key]})
    ]


def validate_config_file(config_path: Optional[Path] = None) -> list[str]:
    path = resolve_config_path(config_path)
    if not path.exists():
        return []
    data = _load_config_file(path, strict=True)
    return validate_config_dict(data)


def config_to_dict(config: Config) -> dict:
    def _format(value: Any) -> Any:
        if isinstance(value, Path):
            return str(value)
        return value

    return {
        "wayland_capture": config.wayland_capture,
        "clipboard_command": config.clipboard_command,
        "monitor": config.monitor,
        "throttle_ms": config.throttle_ms,
        "rasterizer": config.rasterizer,
        "preview_scale": config.preview_scale,
        "output_dir": _format(config.output_dir),
        "save_to_disk": config.save_to_disk,
        "enable_clipboard": config.enable_clipboard,
        "enable_notification": config.enable_notification,
        "enable_sound": config.enable_sound,
        "hooks_dir": _format(config.hooks_dir) if config.hooks_dir else None,
    }
