import logging
from datetime import date, timedelta
from pathlib import Path

from pulse.models import VALID_SECTIONS, JournalEntry, now, section_key, section_title
from pulse.storage.atomic import atomic_write
from pulse.storage.errors import InvalidFormat, PathViolation, StorageIOError
from pulse.storage.frontmatter import (
    format_time,
    load_meta,
    parse_time,
    parse_uuid,
    render_frontmatter,
)
from pulse.storage.journal_store import JournalStore
from pulse.storage.layout import (
    iter_date_buckets,
    iter_record_files,
    parse_bucket_date,
    record_path,
)

JOURNAL_TYPES = ("project", "user", "both")


class JournalMDStore(JournalStore):
    """
    Stores journal entries as markdown files under two roots.

    Project entries go to the project-local root, everything else to the
    user-global root. Listing merges both.
    """

    def __init__(self, project_path: Path | str, user_path: Path | str):
        self.project_path = Path(project_path)
        self.user_path = Path(user_path)
        self.logger = logging.getLogger(__name__)

    def root_for(self, entry_type: str) -> Path:
        """Root directory an entry of the given type is written to."""
        return self.project_path if entry_type == "project" else self.user_path

    def roots(self, entry_type: str = "both") -> list[Path]:
        """
        Roots selected by a type filter.

        Raises:
            ValueError: If entry_type is not project, user or both
        """
        entry_type = entry_type or "both"
        if entry_type not in JOURNAL_TYPES:
            raise ValueError(
                f"Invalid entry type: {entry_type} (expected project, user or both)"
            )

        selected = []
        if entry_type in ("user", "both"):
            selected.append(self.user_path)
        if entry_type in ("project", "both"):
            selected.append(self.project_path)
        return selected

    def write_entry(self, entry: JournalEntry) -> Path:
        path = record_path(self.root_for(entry.type), entry.id, entry.created_at)
        atomic_write(path, render_entry(entry))

        entry.file_path = str(path)
        self.logger.debug(f"Wrote {entry.type} entry {entry.short_id} to {path}")
        return path

    def read_entry(self, path: Path | str) -> JournalEntry:
        resolved = Path(path).expanduser().resolve()

        if not any(
            _is_inside(resolved, root) for root in (self.project_path, self.user_path)
        ):
            raise PathViolation(f"path {str(path)!r} is outside journal roots")

        try:
            content = resolved.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageIOError(f"Failed to read entry {path}: {e}") from e
        except UnicodeDecodeError as e:
            raise InvalidFormat(f"Entry {path} is not valid UTF-8: {e}") from e

        return parse_entry(content, resolved)

    def list_entries(
        self, entry_type: str = "both", limit: int = 0, days: int = 0
    ) -> list[JournalEntry]:
        cutoff = (now() - timedelta(days=days)).date() if days > 0 else None

        entries: list[JournalEntry] = []
        for root in self.roots(entry_type):
            entries.extend(self._scan_root(root, cutoff))

        entries.sort(key=lambda e: e.created_at, reverse=True)

        if limit > 0:
            entries = entries[:limit]
        return entries

    def _scan_root(self, root: Path, cutoff: date | None) -> list[JournalEntry]:
        """Decode every entry under root, pruning buckets older than cutoff."""
        entries = []
        for bucket in iter_date_buckets(root):
            if cutoff is not None:
                bucket_date = parse_bucket_date(bucket.name)
                if bucket_date is None or bucket_date < cutoff:
                    continue

            for file_path in iter_record_files(bucket):
                try:
                    content = file_path.read_text(encoding="utf-8")
                    entries.append(parse_entry(content, file_path))
                except (OSError, UnicodeDecodeError, InvalidFormat) as e:
                    self.logger.debug(f"Skipping {file_path}: {e}")
        return entries


def _is_inside(path: Path, root: Path) -> bool:
    """True when path lies strictly below root."""
    return root.expanduser().resolve() in path.parents


def render_sections(sections: dict[str, str]) -> str:
    """Render sections as markdown headings in canonical order."""
    parts = []
    for name in VALID_SECTIONS:
        text = sections.get(name)
        if not text:
            continue
        parts.append(f"\n## {section_title(name)}\n{text}\n")
    return "".join(parts)


def parse_sections(body: str) -> dict[str, str]:
    """Split a markdown body on ``## `` headings into a section map."""
    sections: dict[str, str] = {}
    current: str | None = None
    lines: list[str] = []

    for line in body.split("\n"):
        if line.startswith("## "):
            if current is not None:
                sections[current] = "\n".join(lines).strip()
            current = section_key(line[3:])
            lines = []
        elif current is not None:
            lines.append(line)

    if current is not None:
        sections[current] = "\n".join(lines).strip()

    return sections


def render_entry(entry: JournalEntry) -> str:
    meta = {
        "id": str(entry.id),
        "date": format_time(entry.created_at),
        "type": entry.type,
    }
    return render_frontmatter(meta, render_sections(entry.sections))


def parse_entry(content: str, path: Path | str = "") -> JournalEntry:
    """
    Decode a journal entry file.

    Raises:
        InvalidFormat: If the metadata block, id or date is invalid
    """
    meta, body = load_meta(content)

    return JournalEntry(
        id=parse_uuid(meta.get("id")),
        sections=parse_sections(body),
        created_at=parse_time(meta.get("date")),
        type=str(meta.get("type") or ""),
        file_path=str(path),
    )
