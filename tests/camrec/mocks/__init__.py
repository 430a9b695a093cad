"""Mock implementations for testing."""

from tests.camrec.mocks.clock import FakeClock
from tests.camrec.mocks.segments import touch_segments
from tests.camrec.mocks.transcoder import FakeHandle, FakeTranscoder, ended, error, started

__all__ = [
    "FakeClock",
    "FakeHandle",
    "FakeTranscoder",
    "ended",
    "error",
    "started",
    "touch_segments",
]
