"""Date-bucketed path layout shared by the journal and social stores.

Records live at ``<root>/<YYYY-MM-DD>/<HH-MM-SS-micros>-<8 hex>.md``.
Names sort chronologically within a bucket. No collision check is made.
"""

import uuid
from collections.abc import Iterator
from datetime import date, datetime
from pathlib import Path

from pulse.config.settings import EMBEDDING_SUFFIX, RECORD_SUFFIX

BUCKET_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H-%M-%S-%f"


def date_bucket_name(created_at: datetime) -> str:
    return created_at.strftime(BUCKET_FORMAT)


def record_filename(record_id: uuid.UUID, created_at: datetime) -> str:
    return f"{created_at.strftime(TIME_FORMAT)}-{str(record_id)[:8]}{RECORD_SUFFIX}"


def record_path(root: Path | str, record_id: uuid.UUID, created_at: datetime) -> Path:
    """
    Compute the file path for a record.

    Args:
        root: Store root directory
        record_id: Record identifier
        created_at: Record creation timestamp

    Returns:
        Path of the record's markdown file under its date bucket
    """
    return (
        Path(root)
        / date_bucket_name(created_at)
        / record_filename(record_id, created_at)
    )


def sidecar_path(md_path: Path | str) -> Path:
    """Path of the embedding sidecar that accompanies a record file."""
    return Path(md_path).with_suffix(EMBEDDING_SUFFIX)


def parse_bucket_date(name: str) -> date | None:
    """Return the date encoded in a bucket directory name, or None."""
    try:
        return datetime.strptime(name, BUCKET_FORMAT).date()
    except ValueError:
        return None


def iter_date_buckets(root: Path | str) -> Iterator[Path]:
    """Yield bucket directories directly under root, oldest first."""
    root = Path(root)
    if not root.is_dir():
        return
    for child in sorted(root.iterdir()):
        if child.is_dir():
            yield child


def iter_record_files(bucket: Path) -> Iterator[Path]:
    """Yield the record files inside one bucket directory."""
    try:
        children = sorted(bucket.iterdir())
    except OSError:
        return
    for child in children:
        if child.suffix == RECORD_SUFFIX and child.is_file():
            yield child
