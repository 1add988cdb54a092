"""
Orphaned object detection.

A PersistError leaves an uploaded video in the bucket with no record
pointing at it. The sweep compares bucket contents against the keys
referenced by video records.

An ingest uploads before it saves the record, so a young object with no
record may still be in flight. Only objects older than a minimum age are
candidates.
"""
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Set, Tuple

from tubely.media.aspect import AspectClass

# Only keys under the video prefixes are candidates
VIDEO_KEY_PREFIXES = tuple(f"{aspect.value}/" for aspect in AspectClass)

DEFAULT_MIN_AGE = timedelta(minutes=60)


def is_video_key(key: str) -> bool:
    return key.startswith(VIDEO_KEY_PREFIXES)


def find_orphaned_keys(
    objects: Iterable[Tuple[str, datetime]],
    referenced_keys: Set[str],
    min_age: timedelta = DEFAULT_MIN_AGE,
    now: Optional[datetime] = None
) -> List[str]:
    """
    Return video object keys that no record references, in listing order.

    Args:
        objects: (key, last_modified) pairs present in the bucket
        referenced_keys: Keys stored on video records
        min_age: Objects modified more recently than this are skipped
        now: Reference time (default: current UTC time)

    Returns:
        Orphaned keys
    """
    cutoff = (now or datetime.now(timezone.utc)) - min_age
    return [
        key for key, last_modified in objects
        if is_video_key(key)
        and key not in referenced_keys
        and last_modified <= cutoff
    ]
