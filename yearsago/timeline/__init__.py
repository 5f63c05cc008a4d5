"""
"Years ago" memory timeline for a home-screen widget host.

The host owns rendering and scheduling; this package only reads shared storage:
- ``featured_<key>.txt`` files hold one epoch-seconds timestamp each
- ``featured.jpg`` is the single image every entry shows
"""

from .errors import ImageMissing, RecordUnreadable, StorageUnavailable, TimelineError
from .generator import generate, placeholder, snapshot
from .models import DisplayEntry, MemoryRecord, SharedImage, StorageConfig, Timeline

__all__ = [
    "DisplayEntry",
    "ImageMissing",
    "MemoryRecord",
    "RecordUnreadable",
    "SharedImage",
    "StorageConfig",
    "StorageUnavailable",
    "Timeline",
    "TimelineError",
    "generate",
    "placeholder",
    "snapshot",
]
