"""ffmpeg invocation for a recording session.

One decode of the source feeds two outputs: a video-only stream-copied live
republish, and a stream-copied segment sequence whose files each start with
reset timestamps.
"""

from __future__ import annotations

import logging
import shlex
from collections.abc import Sequence

from pydantic import BaseModel, Field

from camrec.models.camera import Camera
from camrec.models.config import RecorderConfig
from camrec.storage.layout import SegmentStoreLayout

logger = logging.getLogger(__name__)


class SessionProfile(BaseModel):
    """Locked ffmpeg invocation for one camera."""

    model_config = {"extra": "forbid", "frozen": True}

    ffmpeg_bin: str = "ffmpeg"
    global_args: list[str] = Field(default_factory=list)
    input_url: str
    ffmpeg_input_args: list[str] = Field(default_factory=list)
    publish_url: str | None = None
    publish_output_args: list[str] = Field(default_factory=list)
    segment_pattern: str
    segment_output_args: list[str]

    def command(self) -> list[str]:
        cmd = [self.ffmpeg_bin, *self.global_args, *self.ffmpeg_input_args, "-i", self.input_url]
        if self.publish_url is not None:
            cmd.extend(self.publish_output_args)
            cmd.append(self.publish_url)
        cmd.extend(self.segment_output_args)
        cmd.append(self.segment_pattern)
        return cmd


def build_session_profile(
    camera: Camera,
    layout: SegmentStoreLayout,
    config: RecorderConfig,
) -> SessionProfile:
    """Build the two-output invocation for a camera."""
    stream = config.stream
    user_flags = list(stream.input_flags)

    # Progress on stdout is how the transcoder handle detects a started session.
    global_args = ["-hide_banner", "-nostdin", "-nostats", "-progress", "pipe:1"]
    # If user supplies -loglevel in input flags, we don't add ours.
    if "-loglevel" not in user_flags:
        global_args.extend(["-loglevel", stream.loglevel])

    input_args: list[str] = []
    if camera.source_address.lower().startswith(("rtsp://", "rtsps://")):
        input_args.extend(["-rtsp_transport", stream.rtsp_transport])
    if stream.use_wallclock_timestamps:
        input_args.extend(["-use_wallclock_as_timestamps", "1"])
    if "-fflags" not in user_flags:
        input_args.extend(["-fflags", "+genpts"])
    input_args.extend(user_flags)

    publish_url: str | None = None
    publish_args: list[str] = []
    if config.publish.enabled:
        publish_url = f"{config.publish.base_url.rstrip('/')}/{camera.publish_path}"
        publish_args = ["-c:v", "copy"]
        if config.publish_audio_for(camera.id):
            publish_args.extend(["-c:a", "copy"])
        else:
            publish_args.append("-an")
        publish_args.extend(["-f", config.publish.format])

    segment_args = [
        "-c",
        "copy",
        "-f",
        "segment",
        "-segment_time",
        str(config.recording.segment_seconds),
        "-strftime",
        "1",
        "-reset_timestamps",
        "1",
    ]

    return SessionProfile(
        ffmpeg_bin=stream.ffmpeg_bin,
        global_args=global_args,
        input_url=camera.source_address,
        ffmpeg_input_args=input_args,
        publish_url=publish_url,
        publish_output_args=publish_args,
        segment_pattern=str(layout.segment_pattern(camera.id)),
        segment_output_args=segment_args,
    )


def redact_url(url: str) -> str:
    if "://" not in url:
        return url
    scheme, rest = url.split("://", 1)
    authority, sep, tail = rest.partition("/")
    if "@" not in authority:
        return url
    _creds, host = authority.rsplit("@", 1)
    return f"{scheme}://***:***@{host}{sep}{tail}"


def redact_text(text: str, urls: Sequence[str]) -> str:
    """Replace every occurrence of the given URLs with their redacted form."""
    for url in urls:
        if url:
            text = text.replace(url, redact_url(url))
    return text


def redact_command(cmd: Sequence[str]) -> list[str]:
    return [redact_url(str(arg)) if "://" in str(arg) else str(arg) for arg in cmd]


def format_cmd(cmd: Sequence[str]) -> str:
    try:
        return shlex.join([str(x) for x in cmd])
    except Exception as exc:
        logger.warning("Failed to format command with shlex.join: %s", exc, exc_info=True)
        return " ".join([str(x) for x in cmd])
