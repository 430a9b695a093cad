"""camrec continuous multi-camera recorder."""

__version__ = "0.1.0"

# Export commonly used types
from camrec.errors import RecorderError
from camrec.models.camera import Camera
from camrec.storage.layout import Segment, SegmentStoreLayout

__all__ = [
    "Camera",
    "RecorderError",
    "Segment",
    "SegmentStoreLayout",
    "__version__",
]
