"""Recorder process: settings, cameras, supervisors and the HTTP API."""

from __future__ import annotations

import asyncio
import logging
import signal
import time
from collections.abc import Mapping
from pathlib import Path

from camrec.api import APIServer, create_app
from camrec.config import load_cameras, load_config
from camrec.models.camera import Camera
from camrec.models.config import RecorderConfig
from camrec.recording.manager import RecordingManager
from camrec.recording.supervisor import SessionSnapshot
from camrec.recording.transcoder import Transcoder
from camrec.storage.layout import SegmentStoreLayout

logger = logging.getLogger(__name__)

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Application:
    """Owns every long-lived component of the recorder.

    `run()` blocks until `request_shutdown()` is called or SIGINT/SIGTERM
    arrives, then stops the API before the supervisors.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
        transcoder: Transcoder | None = None,
    ) -> None:
        """Create an unstarted application.

        Args:
            config_path: Optional YAML settings file
            env: Mapping holding the camera source slots (default: os.environ)
            transcoder: Process launcher override (default: ffmpeg subprocess)
        """
        self._config_path = config_path
        self._env = env
        self._transcoder = transcoder

        self._config: RecorderConfig | None = None
        self._cameras: list[Camera] = []
        self._layout: SegmentStoreLayout | None = None
        self._manager: RecordingManager | None = None
        self._api_server: APIServer | None = None
        self._started_at: float | None = None

        self._stop_requested = asyncio.Event()
        self._stopping = False

    async def run(self) -> None:
        """Start recording every configured camera and serve until stopped.

        Raises:
            ConfigError: If settings cannot be loaded.
            CameraDirectoryError: If a camera directory cannot be created.
        """
        self._config = load_config(self._config_path)
        logger.info("Starting camrec (recordings: %s)", self._config.recordings_dir)
        self._build()

        loop = asyncio.get_running_loop()
        for sig in _STOP_SIGNALS:
            loop.add_signal_handler(sig, self._on_signal, sig)
        try:
            if self._api_server is not None:
                await self._api_server.start()
            self._started_at = time.monotonic()
            await self.manager.start()
            logger.info("Recording %d camera(s)", len(self._cameras))
            await self._stop_requested.wait()
        finally:
            for sig in _STOP_SIGNALS:
                loop.remove_signal_handler(sig)
            await self.shutdown()

    def _build(self) -> None:
        config = self.config
        self._cameras = load_cameras(self._env, config=config)
        if not self._cameras:
            logger.warning("No camera sources configured (RTSP_SOURCE_1..6 or RTSP_SOURCE)")

        self._layout = SegmentStoreLayout(
            Path(config.recordings_dir),
            extension=config.recording.extension,
        )
        self._manager = RecordingManager(
            self._cameras,
            self._layout,
            config,
            transcoder=self._transcoder,
        )
        # Directories must exist before the API mounts them or a supervisor writes.
        self._manager.prepare()

        if config.server.enabled:
            self._api_server = APIServer(
                create_app(self),
                host=config.server.host,
                port=config.server.port,
            )

    def _on_signal(self, sig: signal.Signals) -> None:
        if self._stopping:
            logger.warning("Already stopping; ignoring %s", sig.name)
            return
        logger.info("%s received, stopping", sig.name)
        self.request_shutdown()

    def request_shutdown(self) -> None:
        self._stopping = True
        self._stop_requested.set()

    async def shutdown(self) -> None:
        """Stop the API, then every supervisor and its process."""
        if self._api_server is not None:
            await self._api_server.stop()
        if self._manager is not None:
            await self._manager.shutdown()
        logger.info("camrec stopped")

    @property
    def config(self) -> RecorderConfig:
        if self._config is None:
            raise RuntimeError("Config not loaded")
        return self._config

    @property
    def cameras(self) -> list[Camera]:
        return list(self._cameras)

    @property
    def layout(self) -> SegmentStoreLayout:
        if self._layout is None:
            raise RuntimeError("Segment store not initialized")
        return self._layout

    @property
    def manager(self) -> RecordingManager:
        if self._manager is None:
            raise RuntimeError("Recording manager not initialized")
        return self._manager

    @property
    def uptime_seconds(self) -> float:
        if self._started_at is None:
            return 0.0
        return time.monotonic() - self._started_at

    def session_snapshots(self) -> list[SessionSnapshot]:
        return self._manager.snapshots() if self._manager is not None else []
