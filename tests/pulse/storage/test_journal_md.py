import uuid
from datetime import timedelta
from pathlib import Path

import pytest

from pulse.models import JournalEntry, now
from pulse.storage import InvalidFormat, JournalMDStore, PathViolation, StorageIOError
from pulse.storage.journal_md import render_entry

"""
test_journal_md.py
------------------
Tests for the dual-root markdown journal store.
"""


def test_write_routes_by_type(journal_store, make_entry, project_root, user_root):
    project = make_entry({"project_notes": "p"}, "project")
    user = make_entry({"feelings": "u"}, "user")

    assert Path(project.file_path).is_relative_to(project_root)
    assert Path(user.file_path).is_relative_to(user_root)
    assert Path(project.file_path).parent.parent == project_root


def test_write_returns_path_and_sets_file_path(journal_store):
    entry = JournalEntry.new({"feelings": "fine"}, "user")

    path = journal_store.write_entry(entry)

    assert path.exists()
    assert entry.file_path == str(path)
    assert path.name.endswith(f"-{str(entry.id)[:8]}.md")


def test_read_round_trip(journal_store, make_entry):
    entry = make_entry({"feelings": "a", "world_knowledge": "b"})

    read = journal_store.read_entry(entry.file_path)

    assert read.id == entry.id
    assert read.sections == entry.sections
    assert read.created_at == entry.created_at
    assert read.type == "user"


def test_list_both_merges_newest_first(journal_store, make_entry):
    make_entry({"feelings": "u-old"}, "user", minutes_ago=30)
    make_entry({"project_notes": "p-mid"}, "project", minutes_ago=20)
    make_entry({"feelings": "u-new"}, "user", minutes_ago=10)
    make_entry({"project_notes": "p-newest"}, "project", minutes_ago=0)

    entries = journal_store.list_entries("both")

    contents = [next(iter(e.sections.values())) for e in entries]
    assert contents == ["p-newest", "u-new", "p-mid", "u-old"]
    times = [e.created_at for e in entries]
    assert times == sorted(times, reverse=True)


def test_empty_type_means_both(journal_store, make_entry):
    make_entry({"feelings": "u"}, "user")
    make_entry({"project_notes": "p"}, "project")

    assert len(journal_store.list_entries("")) == 2


def test_list_single_root(journal_store, make_entry):
    make_entry({"feelings": "u"}, "user")
    make_entry({"project_notes": "p"}, "project")

    project_entries = journal_store.list_entries("project")

    assert [e.type for e in project_entries] == ["project"]


def test_list_invalid_type(journal_store):
    with pytest.raises(ValueError):
        journal_store.list_entries("team")


def test_limit_returns_newest(journal_store, make_entry):
    for i in range(5):
        make_entry({"feelings": f"entry {i}"}, minutes_ago=i)

    entries = journal_store.list_entries("user", limit=3)

    assert [e.sections["feelings"] for e in entries] == ["entry 0", "entry 1", "entry 2"]


def test_days_prunes_old_buckets(journal_store, user_root):
    recent = JournalEntry(
        id=uuid.uuid4(), sections={"feelings": "today"}, created_at=now()
    )
    old = JournalEntry(
        id=uuid.uuid4(),
        sections={"feelings": "long ago"},
        created_at=now() - timedelta(days=3),
    )
    journal_store.write_entry(recent)
    journal_store.write_entry(old)

    assert len(journal_store.list_entries("user", days=0)) == 2

    entries = journal_store.list_entries("user", days=1)

    assert [e.sections["feelings"] for e in entries] == ["today"]


def test_days_skips_unparseable_bucket_names(journal_store, make_entry, user_root):
    make_entry({"feelings": "kept"})
    stray = user_root / "notes"
    stray.mkdir()
    undated = JournalEntry.new({"feelings": "undated"})
    (stray / "x.md").write_text(render_entry(undated))

    entries = journal_store.list_entries("user", days=7)

    assert [e.sections["feelings"] for e in entries] == ["kept"]


def test_missing_roots_list_empty(tmp_path):
    store = JournalMDStore(tmp_path / "nope-p", tmp_path / "nope-u")

    assert store.list_entries() == []


def test_corrupt_files_are_skipped(journal_store, make_entry, user_root):
    entry = make_entry({"feelings": "good"})
    bucket = Path(entry.file_path).parent
    (bucket / "00-00-00-000000-deadbeef.md").write_text("no frontmatter here")
    (bucket / "00-00-00-000001-deadbeef.md").write_text(
        "---\nid: not-a-uuid\ndate: nope\n---\n\n## Feelings\nbad\n"
    )

    entries = journal_store.list_entries()

    assert [e.id for e in entries] == [entry.id]


def test_read_outside_roots_is_rejected(journal_store, tmp_path):
    outside = tmp_path / "outside.md"
    outside.write_text("---\nid: x\n---\n\n")

    with pytest.raises(PathViolation):
        journal_store.read_entry(outside)


def test_read_traversal_is_rejected(journal_store, make_entry, user_root, tmp_path):
    make_entry({"feelings": "inside"})
    secret = tmp_path / "home" / "secret.md"
    secret.write_text("top secret")

    with pytest.raises(PathViolation):
        journal_store.read_entry(str(user_root / ".." / "secret.md"))


def test_read_root_itself_is_rejected(journal_store, make_entry, user_root):
    make_entry({"feelings": "inside"})

    with pytest.raises(PathViolation):
        journal_store.read_entry(user_root)


def test_read_inside_after_violation(journal_store, make_entry, tmp_path):
    entry = make_entry({"feelings": "inside"})

    with pytest.raises(PathViolation):
        journal_store.read_entry(tmp_path / "elsewhere.md")

    assert journal_store.read_entry(entry.file_path).sections == {"feelings": "inside"}


def test_read_missing_file_inside_root(journal_store, user_root):
    with pytest.raises(StorageIOError):
        journal_store.read_entry(user_root / "2025-01-01" / "missing.md")


def test_roots_order(journal_store, project_root, user_root):
    assert journal_store.roots("both") == [user_root, project_root]
    assert journal_store.roots("project") == [project_root]


def test_read_non_utf8_entry(journal_store, make_entry):
    entry = make_entry({"feelings": "fine"})
    Path(entry.file_path).write_bytes(b"---\nid: \xff\xfe\n---\n")

    with pytest.raises(InvalidFormat):
        journal_store.read_entry(entry.file_path)


def test_list_skips_non_utf8_entry(journal_store, make_entry):
    kept = make_entry({"feelings": "kept"})
    broken = make_entry({"feelings": "broken"}, minutes_ago=1)
    Path(broken.file_path).write_bytes(b"\xff")

    assert [e.id for e in journal_store.list_entries()] == [kept.id]
