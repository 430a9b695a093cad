"""Settings file loading."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from camrec.models.config import RecorderConfig

logger = logging.getLogger(__name__)


class ConfigErrorCode(str, Enum):
    FILE_NOT_FOUND = "CONFIG_FILE_NOT_FOUND"
    YAML_INVALID = "CONFIG_YAML_INVALID"
    EMPTY_FILE = "CONFIG_EMPTY_FILE"
    ROOT_NOT_MAPPING = "CONFIG_ROOT_NOT_MAPPING"
    VALIDATION_FAILED = "CONFIG_VALIDATION_FAILED"
    UNKNOWN = "CONFIG_UNKNOWN"


class ConfigError(Exception):
    """Settings could not be read or did not validate."""

    def __init__(
        self,
        message: str,
        *,
        code: ConfigErrorCode = ConfigErrorCode.UNKNOWN,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.path = path
        self.__cause__ = cause


def load_config(path: Path | None = None) -> RecorderConfig:
    """Build settings from an optional YAML file plus `CAMREC_*` variables.

    Values in the file win over environment variables and `.env`.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    if path is None:
        return load_config_from_dict({})

    data = _read_mapping(path)
    config = _validate(data, path)
    logger.info("Config loaded from %s", path)
    return config


def load_config_from_dict(data: dict[str, Any]) -> RecorderConfig:
    """Validate settings given as a mapping (tests, programmatic use)."""
    return _validate(data, None)


def _read_mapping(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError(
            f"Config file not found: {path}",
            code=ConfigErrorCode.FILE_NOT_FOUND,
            path=path,
            cause=exc,
        ) from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(
            f"Invalid YAML in {path}: {exc}",
            code=ConfigErrorCode.YAML_INVALID,
            path=path,
            cause=exc,
        ) from exc

    if data is None:
        raise ConfigError(f"Config file is empty: {path}", code=ConfigErrorCode.EMPTY_FILE, path=path)
    if not isinstance(data, dict):
        raise ConfigError(
            f"Config must be a YAML mapping, got {type(data).__name__}",
            code=ConfigErrorCode.ROOT_NOT_MAPPING,
            path=path,
        )
    return data


def _validate(data: dict[str, Any], path: Path | None) -> RecorderConfig:
    try:
        return RecorderConfig(**data)
    except ValidationError as exc:
        raise ConfigError(
            format_validation_error(exc, path),
            code=ConfigErrorCode.VALIDATION_FAILED,
            path=path,
            cause=exc,
        ) from exc


def format_validation_error(exc: ValidationError, path: Path | None = None) -> str:
    """Render one `  section -> field: message` line per pydantic error."""
    header = f"Config validation failed ({path}):" if path else "Config validation failed:"
    lines = [header]
    for error in exc.errors():
        location = " -> ".join(str(part) for part in error["loc"]) or "(root)"
        lines.append(f"  {location}: {error['msg']}")
    return "\n".join(lines)
