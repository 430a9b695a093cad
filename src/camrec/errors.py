"""Error hierarchy for the camrec recorder."""

from __future__ import annotations

from pathlib import Path


class RecorderError(Exception):
    """Base exception for all recorder errors.

    Preserves stack traces via exception chaining.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause
        self.__cause__ = cause


class CameraDirectoryError(RecorderError):
    """Camera recording directory could not be created (fatal at startup)."""

    def __init__(self, camera_id: str, path: Path, cause: Exception) -> None:
        super().__init__(
            f"Cannot create recording directory for {camera_id}: {path}",
            cause=cause,
        )
        self.camera_id = camera_id
        self.path = path


class SegmentStoreError(RecorderError):
    """Listing a camera directory failed for a reason other than absence."""

    def __init__(self, camera_id: str, cause: Exception) -> None:
        super().__init__(f"Failed to list recordings for {camera_id}", cause=cause)
        self.camera_id = camera_id


class TranscoderLaunchError(RecorderError):
    """The external transcoding process could not be spawned."""

    def __init__(self, camera_id: str, cause: Exception) -> None:
        super().__init__(f"Failed to launch transcoder for {camera_id}: {cause}", cause=cause)
        self.camera_id = camera_id
