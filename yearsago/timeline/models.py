from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import NamedTuple, Optional, Tuple


@dataclass(frozen=True)
class StorageConfig:
    root: Path
    image_filename: str = "featured.jpg"
    record_prefix: str = "featured_"
    record_suffix: str = ".txt"
    snapshot_filename: str = "featured_date.txt"

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", Path(self.root))

    @property
    def image_path(self) -> Path:
        return self.root / self.image_filename

    @property
    def snapshot_path(self) -> Path:
        return self.root / self.snapshot_filename

    def is_record_name(self, name: str) -> bool:
        if len(name) < len(self.record_prefix) + len(self.record_suffix):
            return False
        return name.startswith(self.record_prefix) and name.endswith(self.record_suffix)

    def record_key(self, name: str) -> str:
        return name[len(self.record_prefix): len(name) - len(self.record_suffix)]


@dataclass(frozen=True)
class MemoryRecord:
    key: str
    path: Path
    timestamp: float


@dataclass(frozen=True)
class SharedImage:
    path: Path
    data: bytes
    width: int
    height: int
    format: Optional[str] = None

    def __repr__(self) -> str:
        return f"SharedImage(path={str(self.path)!r}, size={self.width}x{self.height}, format={self.format!r})"


@dataclass(frozen=True)
class DisplayEntry:
    scheduled_at: datetime
    image: Optional[SharedImage]
    years_ago_label: str
    formatted_date: str

    @property
    def has_image(self) -> bool:
        return self.image is not None


class Timeline(NamedTuple):
    entries: Tuple[DisplayEntry, ...]
    next_refresh_at: datetime
