"""On-disk recording layout: one directory per camera, timestamped segments.

Segment files are named ``<YYYY-MM-DD>_<HH-MM-SS>.<ext>``. The fields are
fixed-width and zero-padded, so lexical order is chronological order. The
filesystem is the only source of truth: nothing is cached in memory and every
query rescans the camera directory.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from camrec.errors import CameraDirectoryError, SegmentStoreError

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H-%M-%S"
SEGMENT_SEPARATOR = "_"
DATE_LENGTH = 10
# strftime pattern handed to the segment muxer.
SEGMENT_STRFTIME = f"{DATE_FORMAT}{SEGMENT_SEPARATOR}{TIME_FORMAT}"


@dataclass(frozen=True, slots=True)
class Segment:
    """One recording chunk, derived from its filename."""

    camera_id: str
    captured_at: datetime
    path: Path

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def date(self) -> str:
        return self.captured_at.strftime(DATE_FORMAT)


class SegmentStoreLayout:
    """Directory-per-camera segment store rooted at `root`."""

    def __init__(self, root: Path, *, extension: str = "mp4") -> None:
        self._root = Path(root)
        self._extension = extension.lstrip(".")

    @property
    def root(self) -> Path:
        return self._root

    @property
    def extension(self) -> str:
        return self._extension

    @property
    def suffix(self) -> str:
        return f".{self._extension}"

    def camera_dir(self, camera_id: str) -> Path | None:
        """Return the directory for a camera id, or None if the id is unsafe."""
        if not _is_safe_camera_id(camera_id):
            return None
        return self._root / camera_id

    def segment_pattern(self, camera_id: str) -> Path:
        """Output path pattern for the segment muxer (strftime placeholders)."""
        camera_dir = self.camera_dir(camera_id)
        if camera_dir is None:
            raise ValueError(f"Invalid camera id: {camera_id!r}")
        return camera_dir / f"{SEGMENT_STRFTIME}{self.suffix}"

    def ensure_camera_directory(self, camera_id: str) -> Path:
        """Create the camera directory (recursively, idempotent).

        Raises:
            CameraDirectoryError: If the directory cannot be created.
        """
        camera_dir = self.camera_dir(camera_id)
        if camera_dir is None:
            raise CameraDirectoryError(
                camera_id,
                self._root / str(camera_id),
                ValueError(f"Invalid camera id: {camera_id!r}"),
            )
        try:
            camera_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CameraDirectoryError(camera_id, camera_dir, exc) from exc
        if not os.access(camera_dir, os.W_OK | os.X_OK):
            raise CameraDirectoryError(
                camera_id,
                camera_dir,
                PermissionError(f"Directory not writable: {camera_dir}"),
            )
        return camera_dir

    def list_dates(self, camera_id: str) -> list[str]:
        """Return distinct segment dates, newest first.

        Returns an empty list when the camera directory does not exist.
        """
        dates: set[str] = set()
        for filename in self._scan(camera_id):
            date_part = filename.split(SEGMENT_SEPARATOR, 1)[0]
            if len(date_part) == DATE_LENGTH:
                dates.add(date_part)
        return sorted(dates, reverse=True)

    def list_segments(self, camera_id: str, date: str | None = None) -> list[str]:
        """Return segment filenames for a camera.

        With a date filter the result is chronological (for sequential
        playback); without one it is newest first.
        """
        filenames = list(self._scan(camera_id))
        if date:
            filenames = [name for name in filenames if name.startswith(date)]
            filenames.sort()
        else:
            filenames.sort(reverse=True)
        return filenames

    def iter_segments(self, camera_id: str, date: str | None = None) -> list[Segment]:
        """Return parsed segments (unparseable names skipped) in listing order."""
        camera_dir = self.camera_dir(camera_id)
        if camera_dir is None:
            return []
        segments: list[Segment] = []
        for filename in self.list_segments(camera_id, date):
            captured_at = parse_captured_at(filename)
            if captured_at is None:
                continue
            segments.append(Segment(camera_id, captured_at, camera_dir / filename))
        return segments

    def _scan(self, camera_id: str) -> list[str]:
        camera_dir = self.camera_dir(camera_id)
        if camera_dir is None:
            return []
        names: list[str] = []
        try:
            with os.scandir(camera_dir) as entries:
                for entry in entries:
                    if not entry.name.endswith(self.suffix) or entry.name.startswith("."):
                        continue
                    try:
                        if not entry.is_file():
                            continue
                    except OSError:
                        # Entry vanished while the writer rotated it.
                        continue
                    names.append(entry.name)
        except (FileNotFoundError, NotADirectoryError):
            return []
        except OSError as exc:
            logger.error("Failed to scan %s: %s", camera_dir, exc, exc_info=True)
            raise SegmentStoreError(camera_id, exc) from exc
        return names


def parse_captured_at(filename: str) -> datetime | None:
    """Parse the capture timestamp from a segment filename."""
    stem = filename.split(".", 1)[0]
    try:
        return datetime.strptime(stem, SEGMENT_STRFTIME)
    except ValueError:
        return None


def _is_safe_camera_id(camera_id: str) -> bool:
    if not camera_id or camera_id in (".", ".."):
        return False
    return "/" not in camera_id and "\\" not in camera_id and "\x00" not in camera_id
