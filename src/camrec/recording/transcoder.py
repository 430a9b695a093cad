"""External transcoding process and its lifecycle observations.

The process is observed through a small set of lifecycle events delivered on
an asyncio queue: STARTED once ffmpeg reports output progress on stdout,
DIAGNOSTIC for each stderr line, then exactly one terminal ERROR or ENDED.
A process that stays alive without producing output is never reported started.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from camrec.errors import TranscoderLaunchError

logger = logging.getLogger(__name__)

# `-progress` keys carrying the output position; ffmpeg writes N/A before the first packet.
_PROGRESS_KEYS = frozenset({"out_time_us", "out_time_ms"})


class LifecycleKind(StrEnum):
    STARTED = "started"
    DIAGNOSTIC = "diagnostic"
    ERROR = "error"
    ENDED = "ended"


@dataclass(frozen=True, slots=True)
class LifecycleEvent:
    kind: LifecycleKind
    message: str | None = None
    exit_code: int | None = None

    @property
    def is_terminal(self) -> bool:
        return self.kind in (LifecycleKind.ERROR, LifecycleKind.ENDED)


class TranscoderHandle(Protocol):
    @property
    def pid(self) -> int | None: ...

    async def next_event(self) -> LifecycleEvent: ...

    async def terminate(self, timeout_s: float) -> None: ...


class Transcoder(Protocol):
    async def launch(self, command: Sequence[str], *, camera_id: str) -> TranscoderHandle: ...


class FfmpegTranscoder:
    """Spawns ffmpeg as an asyncio subprocess."""

    def __init__(self, *, redact: Callable[[str], str] | None = None) -> None:
        self._redact = redact or (lambda text: text)

    async def launch(self, command: Sequence[str], *, camera_id: str) -> FfmpegProcessHandle:
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise TranscoderLaunchError(camera_id, exc) from exc
        return FfmpegProcessHandle(process, redact=self._redact)


def made_progress(line: str) -> bool:
    """True for a `-progress` line showing a positive output position."""
    key, sep, value = line.partition("=")
    if not sep or key.strip() not in _PROGRESS_KEYS:
        return False
    try:
        return int(value.strip()) > 0
    except ValueError:
        return False


async def _read_lines(stream: asyncio.StreamReader) -> AsyncIterator[str]:
    while True:
        try:
            raw = await stream.readline()
        except ValueError:
            # Over-long line without newline; buffer was discarded.
            continue
        if not raw:
            return
        yield raw.decode(errors="replace").rstrip()


class FfmpegProcessHandle:
    """Owns one ffmpeg process and turns its lifecycle into events."""

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        *,
        redact: Callable[[str], str],
    ) -> None:
        self._process = process
        self._redact = redact
        self._events: asyncio.Queue[LifecycleEvent] = asyncio.Queue()
        self._last_diagnostic: str | None = None
        self._reported_started = False
        self._watcher = asyncio.create_task(self._watch())

    @property
    def pid(self) -> int | None:
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        return self._process.returncode

    async def next_event(self) -> LifecycleEvent:
        return await self._events.get()

    async def terminate(self, timeout_s: float) -> None:
        """Stop the process if still running, then release the watcher task."""
        process = self._process
        if process.returncode is None:
            try:
                process.terminate()
                await asyncio.wait_for(process.wait(), timeout=timeout_s)
            except ProcessLookupError:
                pass
            except asyncio.TimeoutError:
                logger.warning("Transcoder did not terminate, killing (PID: %s)", process.pid)
                try:
                    process.kill()
                    await asyncio.wait_for(process.wait(), timeout=2.0)
                except ProcessLookupError:
                    pass
                except asyncio.TimeoutError:
                    logger.error("Failed to reap transcoder process (PID: %s)", process.pid)
        if not self._watcher.done():
            self._watcher.cancel()
        await asyncio.gather(self._watcher, return_exceptions=True)

    async def _watch(self) -> None:
        # Both pipes are drained to EOF before the exit is reported, so the
        # terminal event is always the last one queued.
        await asyncio.gather(self._read_progress(), self._read_diagnostics())
        code = await self._process.wait()
        if code == 0:
            self._events.put_nowait(LifecycleEvent(LifecycleKind.ENDED, exit_code=code))
            return
        last_line = self._last_diagnostic or "no diagnostic output"
        self._events.put_nowait(
            LifecycleEvent(
                LifecycleKind.ERROR,
                message=f"ffmpeg exited with code {code}: {last_line}",
                exit_code=code,
            )
        )

    async def _read_progress(self) -> None:
        stream = self._process.stdout
        if stream is None:
            return
        async for line in _read_lines(stream):
            if not self._reported_started and made_progress(line):
                self._reported_started = True
                self._events.put_nowait(LifecycleEvent(LifecycleKind.STARTED))

    async def _read_diagnostics(self) -> None:
        stream = self._process.stderr
        if stream is None:
            return
        async for line in _read_lines(stream):
            text = self._redact(line)
            if not text:
                continue
            self._last_diagnostic = text
            self._events.put_nowait(LifecycleEvent(LifecycleKind.DIAGNOSTIC, message=text))
