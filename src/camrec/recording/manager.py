"""Owns one recording supervisor per configured camera."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from camrec.models.camera import Camera
from camrec.models.config import RecorderConfig
from camrec.recording.clock import Clock
from camrec.recording.command import build_session_profile, redact_text
from camrec.recording.supervisor import RecordingSupervisor, SessionSnapshot
from camrec.recording.transcoder import FfmpegTranscoder, Transcoder
from camrec.storage.layout import SegmentStoreLayout

logger = logging.getLogger(__name__)


class RecordingManager:
    """Creates camera directories and runs supervisors in registry order."""

    def __init__(
        self,
        cameras: Sequence[Camera],
        layout: SegmentStoreLayout,
        config: RecorderConfig,
        *,
        transcoder: Transcoder | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._cameras = list(cameras)
        self._layout = layout
        self._config = config
        self._transcoder = transcoder or FfmpegTranscoder(redact=self._redact_sources)
        self._clock = clock
        self._supervisors: dict[str, RecordingSupervisor] = {}
        self._running = False

    @property
    def supervisors(self) -> list[RecordingSupervisor]:
        return list(self._supervisors.values())

    @property
    def running(self) -> bool:
        return self._running

    def get(self, camera_id: str) -> RecordingSupervisor | None:
        return self._supervisors.get(camera_id)

    def prepare(self) -> None:
        """Create every camera directory and build supervisors.

        Raises:
            CameraDirectoryError: If any directory cannot be created.
        """
        for camera in self._cameras:
            self._layout.ensure_camera_directory(camera.id)
            if camera.id in self._supervisors:
                continue
            profile = build_session_profile(camera, self._layout, self._config)
            self._supervisors[camera.id] = RecordingSupervisor(
                camera,
                profile.command(),
                transcoder=self._transcoder,
                config=self._config.supervisor,
                clock=self._clock,
            )

    async def start(self) -> None:
        """Start all supervisors. Directories exist before any supervisor runs."""
        if self._running:
            logger.warning("RecordingManager already started")
            return
        self.prepare()
        for supervisor in self._supervisors.values():
            await supervisor.start()
        self._running = True
        logger.info("Found %d cameras defined; supervisors started", len(self._supervisors))

    async def shutdown(self) -> None:
        """Stop all supervisors concurrently."""
        if not self._supervisors:
            self._running = False
            return
        results = await asyncio.gather(
            *(supervisor.shutdown() for supervisor in self._supervisors.values()),
            return_exceptions=True,
        )
        for supervisor, result in zip(self._supervisors.values(), results, strict=True):
            if isinstance(result, BaseException):
                logger.error(
                    "Supervisor shutdown failed for %s: %s",
                    supervisor.camera.id,
                    result,
                    exc_info=result,
                )
        self._running = False

    def snapshots(self) -> list[SessionSnapshot]:
        return [supervisor.snapshot() for supervisor in self._supervisors.values()]

    def _redact_sources(self, text: str) -> str:
        return redact_text(text, [camera.source_address for camera in self._cameras])
