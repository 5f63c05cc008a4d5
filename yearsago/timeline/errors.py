from __future__ import annotations

from pathlib import Path
from typing import Optional


class TimelineError(Exception):
    """Base class for recoverable storage problems met while building a timeline."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class StorageUnavailable(TimelineError):
    """The storage root is missing, not a directory, or cannot be listed."""


class RecordUnreadable(TimelineError):
    """A record file cannot be read or does not hold a usable timestamp."""


class ImageMissing(TimelineError):
    """The shared image is absent or cannot be decoded."""
