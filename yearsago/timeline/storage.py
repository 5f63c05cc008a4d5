from __future__ import annotations

import logging
import re
import stat
from io import BytesIO
from pathlib import Path
from typing import List

from PIL import Image, UnidentifiedImageError

from .errors import ImageMissing, RecordUnreadable, StorageUnavailable
from .models import MemoryRecord, SharedImage, StorageConfig

logger = logging.getLogger(__name__)

# One decimal number, optionally signed, fractional or with an exponent. No nan/inf, no underscores.
_TIMESTAMP_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def list_record_files(storage: StorageConfig) -> List[Path]:
    """
    Return the record files under the storage root, sorted by filename.

    The order is plain string order, so callers must zero-pad numeric keys.
    """
    try:
        names = [p.name for p in storage.root.iterdir()]
    except OSError as e:
        raise StorageUnavailable(f"Cannot list storage root {storage.root}: {e}", path=storage.root) from e

    matched = sorted(name for name in names if storage.is_record_name(name))
    logger.debug("Found %d record file(s) out of %d entries", len(matched), len(names))
    return [storage.root / name for name in matched]


def parse_timestamp(text: str) -> float:
    value = text.strip()
    if not _TIMESTAMP_RE.fullmatch(value):
        raise ValueError(f"not a decimal timestamp: {text!r}")
    timestamp = float(value)
    if timestamp in (float("inf"), float("-inf")):
        raise ValueError(f"timestamp out of range: {text!r}")
    return timestamp


def read_record(storage: StorageConfig, path: Path) -> MemoryRecord:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise RecordUnreadable(f"Cannot read record {path.name}: {e}", path=path) from e

    try:
        timestamp = parse_timestamp(text)
    except ValueError as e:
        raise RecordUnreadable(f"Bad record {path.name}: {e}", path=path) from e

    return MemoryRecord(key=storage.record_key(path.name), path=path, timestamp=timestamp)


def load_shared_image(storage: StorageConfig) -> SharedImage:
    path = storage.image_path
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ImageMissing(f"Shared image not available at {path}: {e}", path=path) from e

    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            width, height = img.size
            fmt = img.format
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageMissing(f"Shared image at {path} cannot be decoded: {e}", path=path) from e

    return SharedImage(path=path, data=data, width=width, height=height, format=fmt)


def ensure_storage_root(storage: StorageConfig) -> None:
    try:
        is_dir = stat.S_ISDIR(storage.root.stat().st_mode)
    except OSError as e:
        raise StorageUnavailable(f"Storage root {storage.root} is not accessible: {e}", path=storage.root) from e
    if not is_dir:
        raise StorageUnavailable(f"Storage root {storage.root} is not a directory", path=storage.root)
