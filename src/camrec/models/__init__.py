"""Data models."""

from camrec.models.camera import Camera, CameraPublic
from camrec.models.config import RecorderConfig

__all__ = ["Camera", "CameraPublic", "RecorderConfig"]
