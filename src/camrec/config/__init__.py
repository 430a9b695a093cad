"""Configuration loading and camera registry."""

from camrec.config.loader import (
    ConfigError,
    ConfigErrorCode,
    load_config,
    load_config_from_dict,
)
from camrec.config.registry import MAX_CAMERA_SLOTS, load_cameras

__all__ = [
    "ConfigError",
    "ConfigErrorCode",
    "MAX_CAMERA_SLOTS",
    "load_cameras",
    "load_config",
    "load_config_from_dict",
]
