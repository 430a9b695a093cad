"""Recording session supervision."""

from camrec.recording.manager import RecordingManager
from camrec.recording.supervisor import (
    RecordingSession,
    RecordingSupervisor,
    RestartPolicy,
    SessionSnapshot,
    SessionStatus,
)
from camrec.recording.transcoder import FfmpegTranscoder, LifecycleEvent, LifecycleKind

__all__ = [
    "FfmpegTranscoder",
    "LifecycleEvent",
    "LifecycleKind",
    "RecordingManager",
    "RecordingSession",
    "RecordingSupervisor",
    "RestartPolicy",
    "SessionSnapshot",
    "SessionStatus",
]
