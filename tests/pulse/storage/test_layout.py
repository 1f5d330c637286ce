import uuid
from datetime import date, datetime
from pathlib import Path

from pulse.storage.layout import (
    iter_date_buckets,
    iter_record_files,
    parse_bucket_date,
    record_path,
    sidecar_path,
)

"""
test_layout.py
--------------
Validate the date-bucketed record layout:

1. Records live at <root>/YYYY-MM-DD/HH-MM-SS-micros-<8 hex>.md
2. Embedding sidecars share the record's stem with an .embedding suffix
3. Bucket scans skip stray files and missing roots
"""

RECORD_ID = uuid.UUID("6f1c2d3e-0000-4000-8000-000000000000")


def test_record_path_format(tmp_path: Path):
    created = datetime(2025, 1, 28, 9, 15, 2, 123456)

    path = record_path(tmp_path, RECORD_ID, created)

    assert path == tmp_path / "2025-01-28" / "09-15-02-123456-6f1c2d3e.md"


def test_record_path_is_deterministic(tmp_path: Path):
    created = datetime(2025, 1, 28, 9, 15, 2, 5)

    assert record_path(tmp_path, RECORD_ID, created) == record_path(
        tmp_path, RECORD_ID, created
    )
    # micros are zero padded
    assert record_path(tmp_path, RECORD_ID, created).name.startswith(
        "09-15-02-000005-"
    )


def test_sidecar_path():
    md = Path("/j/2025-01-28/09-15-02-123456-6f1c2d3e.md")

    assert sidecar_path(md) == Path("/j/2025-01-28/09-15-02-123456-6f1c2d3e.embedding")


def test_parse_bucket_date():
    assert parse_bucket_date("2025-01-28") == date(2025, 1, 28)
    assert parse_bucket_date("posts") is None
    assert parse_bucket_date("2025-13-01") is None


def test_iter_date_buckets_missing_root(tmp_path: Path):
    assert list(iter_date_buckets(tmp_path / "absent")) == []


def test_iter_skips_files_and_non_records(tmp_path: Path):
    bucket = tmp_path / "2025-01-28"
    bucket.mkdir()
    (tmp_path / "stray.md").write_text("x")
    (bucket / "b.md").write_text("x")
    (bucket / "a.md").write_text("x")
    (bucket / "a.embedding").write_text("{}")
    (bucket / ".a.md.123.tmp").write_text("x")

    buckets = list(iter_date_buckets(tmp_path))

    assert buckets == [bucket]
    assert [p.name for p in iter_record_files(bucket)] == ["a.md", "b.md"]
