"""Per-camera recording session supervisor.

Each supervisor is a strictly sequential state machine running in its own
asyncio task: launch the transcoder, wait for the next lifecycle
observation, react, wait out a backoff delay, and relaunch. It only stops
when the process shuts down.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from camrec.errors import TranscoderLaunchError
from camrec.logging_setup import set_camera_name
from camrec.models.camera import Camera
from camrec.models.config import SupervisorConfig
from camrec.recording.clock import Clock, SystemClock
from camrec.recording.command import format_cmd, redact_command, redact_text
from camrec.recording.transcoder import (
    LifecycleEvent,
    LifecycleKind,
    Transcoder,
    TranscoderHandle,
)

logger = logging.getLogger(__name__)


class SessionStatus(StrEnum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    FAILED = "failed"


@dataclass(slots=True)
class RecordingSession:
    """Runtime state of one camera; mutated only by its supervisor task."""

    camera_id: str
    status: SessionStatus = SessionStatus.STOPPED
    process_handle: TranscoderHandle | None = None
    restart_attempt: int = 0
    total_restarts: int = 0
    last_error: str | None = None
    last_transition_at: float | None = None
    permanent_failure: bool = False


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Read-only view of a session for health reporting."""

    camera_id: str
    status: SessionStatus
    restart_attempt: int
    total_restarts: int
    last_error: str | None
    pid: int | None
    last_transition_at: float | None
    permanent_failure: bool

    @property
    def is_healthy(self) -> bool:
        return self.status == SessionStatus.RUNNING


class RestartPolicy:
    """Per-cause restart delays, fixed or exponential with a cap."""

    def __init__(self, config: SupervisorConfig) -> None:
        self._config = config

    def delay_for(self, cause: LifecycleKind, attempt: int) -> float:
        """Return the delay before restart `attempt` (1-based)."""
        if cause == LifecycleKind.ENDED:
            base = self._config.end_restart_delay_s
        else:
            base = self._config.error_restart_delay_s
        if self._config.backoff == "fixed":
            return base
        exponent = max(attempt - 1, 0)
        return min(base * (self._config.backoff_factor**exponent), self._config.backoff_max_s)

    def exhausted(self, attempt: int) -> bool:
        max_attempts = self._config.max_attempts
        return max_attempts > 0 and attempt >= max_attempts


class RecordingSupervisor:
    """Owns the transcoder process for one camera and restarts it forever."""

    def __init__(
        self,
        camera: Camera,
        command: Sequence[str],
        *,
        transcoder: Transcoder,
        config: SupervisorConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._camera = camera
        self._command = list(command)
        self._transcoder = transcoder
        self._config = config or SupervisorConfig()
        self._policy = RestartPolicy(self._config)
        self._clock = clock or SystemClock()
        self._session = RecordingSession(camera_id=camera.id)
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def camera(self) -> Camera:
        return self._camera

    @property
    def session(self) -> RecordingSession:
        return self._session

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    async def start(self) -> None:
        """Start supervising in a background task."""
        if self._task is not None:
            logger.warning("Supervisor for %s already started", self._camera.id)
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(
            self._run_wrapper(),
            name=f"supervisor-{self._camera.id}",
        )

    async def shutdown(self, timeout: float | None = None) -> None:
        """Stop supervising, terminating the live process."""
        task = self._task
        if task is None:
            return

        self._stop_event.set()
        wait_s = timeout or (self._config.stop_timeout_s + 5.0)
        if not task.done():
            try:
                await asyncio.wait_for(asyncio.shield(task), timeout=wait_s)
            except asyncio.TimeoutError:
                logger.warning("Supervisor shutdown timed out for %s, cancelling", self._camera.id)
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        if self._task is task:
            self._task = None
        logger.info("Supervisor stopped: %s", self._camera.id)

    def snapshot(self) -> SessionSnapshot:
        session = self._session
        handle = session.process_handle
        last_error = session.last_error
        if last_error is not None:
            last_error = redact_text(last_error, [self._camera.source_address])
        return SessionSnapshot(
            camera_id=session.camera_id,
            status=session.status,
            restart_attempt=session.restart_attempt,
            total_restarts=session.total_restarts,
            last_error=last_error,
            pid=handle.pid if handle is not None else None,
            last_transition_at=session.last_transition_at,
            permanent_failure=session.permanent_failure,
        )

    async def _run_wrapper(self) -> None:
        try:
            await self._run()
        except Exception as exc:
            logger.exception("Supervisor for %s stopped unexpectedly", self._camera.id)
            self._session.last_error = str(exc)
            # Nothing relaunches this camera any more.
            self._session.permanent_failure = True
            self._transition(SessionStatus.FAILED)

    async def _run(self) -> None:
        set_camera_name(self._camera.name)

        if not self._camera.source_address.strip():
            self._session.last_error = "source address not configured"
            self._session.permanent_failure = True
            self._transition(SessionStatus.FAILED)
            logger.error("Source address not set for %s. Recording disabled.", self._camera.name)
            return

        while not self._stop_event.is_set():
            cause = await self._run_session()
            if cause is None or self._stop_event.is_set():
                return

            if self._policy.exhausted(self._session.restart_attempt):
                self._session.permanent_failure = True
                self._transition(SessionStatus.FAILED)
                logger.error(
                    "Giving up on %s after %d consecutive restart attempts",
                    self._camera.name,
                    self._session.restart_attempt,
                )
                return

            self._session.restart_attempt += 1
            delay = self._policy.delay_for(cause, self._session.restart_attempt)
            logger.info(
                "Restarting %s in %.1fs (cause=%s, attempt=%d)",
                self._camera.name,
                delay,
                cause.value,
                self._session.restart_attempt,
            )
            if await self._sleep_or_stop(delay):
                return
            self._session.total_restarts += 1

    async def _run_session(self) -> LifecycleKind | None:
        """Run one transcoder process to termination.

        Returns the terminal cause, or None when shutdown interrupted it.
        """
        self._transition(SessionStatus.STARTING)
        logger.info(
            "Starting recording for %s: %s",
            self._camera.name,
            format_cmd(redact_command(self._command)),
        )

        try:
            handle = await self._transcoder.launch(self._command, camera_id=self._camera.id)
        except TranscoderLaunchError as exc:
            self._on_error(LifecycleEvent(LifecycleKind.ERROR, message=str(exc)))
            return LifecycleKind.ERROR

        self._session.process_handle = handle
        try:
            while not self._stop_event.is_set():
                event = await self._next_event_or_stop(handle)
                if event is None:
                    return None

                match event.kind:
                    case LifecycleKind.STARTED:
                        self._session.restart_attempt = 0
                        self._transition(SessionStatus.RUNNING)
                        logger.info(
                            "Transcoder running for %s (PID: %s)",
                            self._camera.name,
                            handle.pid,
                        )
                    case LifecycleKind.DIAGNOSTIC:
                        logger.debug("ffmpeg: %s", event.message)
                    case LifecycleKind.ERROR:
                        self._on_error(event)
                        return LifecycleKind.ERROR
                    case LifecycleKind.ENDED:
                        self._transition(SessionStatus.STOPPED)
                        logger.info("Transcoder for %s ended cleanly", self._camera.name)
                        return LifecycleKind.ENDED
            return None
        finally:
            await handle.terminate(self._config.stop_timeout_s)
            self._session.process_handle = None

    def _on_error(self, event: LifecycleEvent) -> None:
        message = redact_text(event.message or "unknown error", [self._camera.source_address])
        self._session.last_error = message
        self._transition(SessionStatus.FAILED)
        logger.error("Transcoder error for %s: %s", self._camera.name, message)

    async def _next_event_or_stop(self, handle: TranscoderHandle) -> LifecycleEvent | None:
        event_task = asyncio.ensure_future(handle.next_event())
        stop_task = asyncio.ensure_future(self._stop_event.wait())
        try:
            await asyncio.wait({event_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (event_task, stop_task):
                if not task.done():
                    task.cancel()
        if event_task.done() and not event_task.cancelled():
            return event_task.result()
        return None

    async def _sleep_or_stop(self, delay: float) -> bool:
        """Wait out a backoff delay. Returns True if shutdown interrupted it."""
        sleep_task = asyncio.ensure_future(self._clock.sleep(delay))
        stop_task = asyncio.ensure_future(self._stop_event.wait())
        try:
            await asyncio.wait({sleep_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleep_task, stop_task):
                if not task.done():
                    task.cancel()
        return self._stop_event.is_set()

    def _transition(self, status: SessionStatus) -> None:
        previous = self._session.status
        self._session.status = status
        self._session.last_transition_at = self._clock.now()
        logger.debug(
            "Session %s: %s -> %s",
            self._camera.id,
            previous.value,
            status.value,
        )
