"""Console logging with per-camera labels.

Every record carries a `camera_name` attribute. Supervisors run as separate
asyncio tasks, so the label lives in a context variable that each task sets
for itself.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
from contextvars import ContextVar

DEFAULT_CONSOLE_FORMAT = (
    "%(asctime)s %(levelname)s [%(camera_name)s] %(module)s %(pathname)s:%(lineno)d %(message)s"
)
QUIET_LOGGERS = ("uvicorn.access", "asyncio")

_CURRENT_CAMERA_NAME: ContextVar[str] = ContextVar("camrec_camera_name", default="-")
# Attributes every LogRecord has; anything else came in through `extra=`.
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "taskName",
    "color_message",
    "camera_name",
}


def set_camera_name(name: str | None) -> None:
    """Label records logged from the current task (or thread) with `name`."""
    _CURRENT_CAMERA_NAME.set(name or "-")


class CameraNameFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "camera_name", None):
            record.camera_name = _CURRENT_CAMERA_NAME.get()
        return True


class ExtrasJsonFormatter(logging.Formatter):
    """Standard line, followed by `extra=` fields as indented JSON."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = {k: v for k, v in vars(record).items() if k not in _RESERVED_ATTRS}
        if not extras:
            return line
        return line + "\n" + json.dumps(extras, indent=2, default=str, sort_keys=True)


def configure_logging(*, log_level: str = "INFO") -> None:
    """Send all logging to stdout at `log_level`.

    `CONSOLE_LOG_FORMAT` replaces the default line format.
    """
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "camera": {"()": "camrec.logging_setup.CameraNameFilter"},
            },
            "formatters": {
                "console": {
                    "()": "camrec.logging_setup.ExtrasJsonFormatter",
                    "format": os.getenv("CONSOLE_LOG_FORMAT", DEFAULT_CONSOLE_FORMAT),
                },
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "level": str(log_level).upper(),
                    "formatter": "console",
                    "filters": ["camera"],
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {"level": "DEBUG", "handlers": ["stdout"]},
        }
    )
    logging.captureWarnings(True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
