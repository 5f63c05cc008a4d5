from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from yearsago.utils.logging_setup import log_context

from .errors import ImageMissing, RecordUnreadable, StorageUnavailable
from .formatting import (
    FALLBACK_DATE,
    FALLBACK_LABEL,
    calendar_year_difference,
    elapsed_years,
    format_date_nicely,
    timestamp_to_datetime,
    years_ago_label,
)
from .models import DisplayEntry, MemoryRecord, SharedImage, StorageConfig, Timeline
from .storage import ensure_storage_root, list_record_files, load_shared_image, read_record

logger = logging.getLogger(__name__)

ONE_HOUR = timedelta(hours=1)

PLACEHOLDER_LABEL = "4 Years Ago"
PLACEHOLDER_DATE = "April 5th, 2021"


def _resolve_now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now().astimezone()


def shift(moment: datetime, delta: timedelta) -> datetime:
    """Add ``delta`` as elapsed time; aware datetimes keep exact spacing across DST changes."""
    if moment.tzinfo is None:
        return moment + delta
    return (moment.astimezone(timezone.utc) + delta).astimezone(moment.tzinfo)


def _record_moment(record: MemoryRecord, now: datetime) -> datetime:
    try:
        return timestamp_to_datetime(record.timestamp, now.tzinfo)
    except (OverflowError, OSError, ValueError) as e:
        raise RecordUnreadable(f"Record {record.path.name} timestamp {record.timestamp} is out of range: {e}", path=record.path) from e


def _load_image_or_none(storage: StorageConfig) -> Optional[SharedImage]:
    try:
        return load_shared_image(storage)
    except ImageMissing as e:
        logger.info("%s; entries will carry no image", e)
        return None


def fallback_entry(now: datetime, image: Optional[SharedImage] = None) -> DisplayEntry:
    return DisplayEntry(
        scheduled_at=now,
        image=image,
        years_ago_label=FALLBACK_LABEL,
        formatted_date=FALLBACK_DATE,
    )


def placeholder(now: Optional[datetime] = None) -> DisplayEntry:
    """Static sample entry a host can show before any real data has loaded."""
    return DisplayEntry(
        scheduled_at=_resolve_now(now),
        image=None,
        years_ago_label=PLACEHOLDER_LABEL,
        formatted_date=PLACEHOLDER_DATE,
    )


def entry_for_record(
    storage: StorageConfig,
    path: Path,
    now: datetime,
    scheduled_at: datetime,
    image: Optional[SharedImage],
) -> DisplayEntry:
    record = read_record(storage, path)
    moment = _record_moment(record, now)
    return DisplayEntry(
        scheduled_at=scheduled_at,
        image=image,
        years_ago_label=years_ago_label(calendar_year_difference(now, moment)),
        formatted_date=format_date_nicely(moment),
    )


def generate(
    storage: StorageConfig,
    now: Optional[datetime] = None,
    *,
    stride: timedelta = ONE_HOUR,
    refresh_after: timedelta = ONE_HOUR,
    trigger: str = "timeline",
) -> Timeline:
    """
    Build the carousel of entries for the records currently in storage.

    Entry ``i`` (in filename order) is scheduled at ``now + i * stride``. Storage
    and record problems never escape: an unusable directory or an empty result
    yields a single fallback entry, and bad records are skipped.
    """
    if stride <= timedelta(0) or refresh_after <= timedelta(0):
        raise ValueError("stride and refresh_after must be positive")

    now = _resolve_now(now)
    with log_context(storage_root=storage.root, trigger=trigger):
        try:
            record_files = list_record_files(storage)
        except StorageUnavailable as e:
            logger.warning("%s; serving fallback entry", e)
            return Timeline((fallback_entry(now),), shift(now, refresh_after))

        image = _load_image_or_none(storage)

        entries: List[DisplayEntry] = []
        for index, path in enumerate(record_files):
            try:
                entries.append(entry_for_record(storage, path, now, shift(now, index * stride), image))
            except RecordUnreadable as e:
                logger.warning("Skipping record: %s", e)

        if not entries:
            logger.info("No usable records among %d file(s); serving fallback entry", len(record_files))
            return Timeline((fallback_entry(now),), shift(now, refresh_after))

        next_refresh_at = shift(entries[-1].scheduled_at, refresh_after)
        logger.info(
            "Generated %d entr%s from %d record file(s); next refresh at %s",
            len(entries),
            "y" if len(entries) == 1 else "ies",
            len(record_files),
            next_refresh_at.isoformat(),
        )
        return Timeline(tuple(entries), next_refresh_at)


def snapshot(storage: StorageConfig, now: Optional[datetime] = None, *, trigger: str = "snapshot") -> DisplayEntry:
    """
    Single preview entry built from the snapshot record.

    Unlike ``generate`` this counts whole elapsed years (anniversaries), never below zero.
    """
    now = _resolve_now(now)
    with log_context(storage_root=storage.root, trigger=trigger):
        try:
            ensure_storage_root(storage)
        except StorageUnavailable as e:
            logger.warning("%s; serving fallback entry", e)
            return fallback_entry(now)

        image = _load_image_or_none(storage)
        try:
            record = read_record(storage, storage.snapshot_path)
            moment = _record_moment(record, now)
        except RecordUnreadable as e:
            logger.info("Snapshot record unusable: %s", e)
            return fallback_entry(now, image=image)

        return DisplayEntry(
            scheduled_at=now,
            image=image,
            years_ago_label=years_ago_label(max(elapsed_years(moment, now), 0)),
            formatted_date=format_date_nicely(moment),
        )
