"""
Core record types for pulse: journal entries, social posts and embeddings.

Journal entries are split into named sections drawn from a fixed set.
Social posts form single-level threads through ``parent_post_id``.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

# Canonical order is also the render order on disk.
VALID_SECTIONS: tuple[str, ...] = (
    "feelings",
    "project_notes",
    "user_context",
    "technical_insights",
    "world_knowledge",
)

ENTRY_TYPES: tuple[str, ...] = ("project", "user", "remote")


class InvalidSection(ValueError):
    """Raised when a section name is not one of VALID_SECTIONS."""


def is_valid_section(name: str) -> bool:
    return name in VALID_SECTIONS


def section_title(name: str) -> str:
    """Convert a snake_case section name to a Title Case heading."""
    return " ".join(part[:1].upper() + part[1:] for part in name.split("_"))


def section_key(heading: str) -> str:
    """Convert a Title Case heading back to its snake_case key."""
    return "_".join(heading.lower().split())


def now() -> datetime:
    """Current local time, timezone aware."""
    return datetime.now().astimezone()


@dataclass
class JournalEntry:
    """A private journal entry with named sections."""

    id: uuid.UUID
    sections: dict[str, str]
    created_at: datetime
    type: str = "user"
    file_path: str = ""

    @classmethod
    def new(cls, sections: dict[str, str], entry_type: str = "user") -> "JournalEntry":
        """
        Create an entry with a fresh id and timestamp.

        Args:
            sections: Mapping of section name to text
            entry_type: "project", "user" or "remote"

        Returns:
            New JournalEntry holding only the non-empty sections

        Raises:
            InvalidSection: If any key is not a recognised section
            ValueError: If no section has content
        """
        unknown = [name for name in sections if not is_valid_section(name)]
        if unknown:
            raise InvalidSection(
                f"unknown section(s): {', '.join(unknown)}. "
                f"Valid sections: {', '.join(VALID_SECTIONS)}"
            )
        if entry_type not in ENTRY_TYPES:
            raise ValueError(f"Invalid entry type: {entry_type}")

        kept = {name: text for name, text in sections.items() if text}
        if not kept:
            raise ValueError(
                f"at least one section is required ({', '.join(VALID_SECTIONS)})"
            )

        return cls(id=uuid.uuid4(), sections=kept, created_at=now(), type=entry_type)

    @property
    def short_id(self) -> str:
        return str(self.id)[:8]


@dataclass
class SocialPost:
    """A social post, optionally replying to a thread root."""

    id: uuid.UUID
    author_name: str
    content: str
    created_at: datetime
    tags: list[str] = field(default_factory=list)
    parent_post_id: uuid.UUID | None = None
    synced: bool = False

    @classmethod
    def new(
        cls,
        author_name: str,
        content: str,
        tags: list[str] | None = None,
        parent_post_id: uuid.UUID | None = None,
    ) -> "SocialPost":
        return cls(
            id=uuid.uuid4(),
            author_name=author_name,
            content=content,
            created_at=now(),
            tags=list(tags or []),
            parent_post_id=parent_post_id,
        )

    @property
    def short_id(self) -> str:
        return str(self.id)[:8]

    @property
    def is_thread_root(self) -> bool:
        return self.parent_post_id is None


@dataclass
class Embedding:
    """Vector embedding stored in a sidecar next to a journal entry."""

    vector: list[float]
    text: str
    sections: list[str]
    timestamp: int
    path: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "vector": [float(v) for v in self.vector],
            "text": self.text,
            "sections": list(self.sections),
            "timestamp": int(self.timestamp),
            "path": self.path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Embedding":
        if not isinstance(data, dict):
            raise ValueError("embedding data must be an object")
        return cls(
            vector=[float(v) for v in data.get("vector") or []],
            text=data.get("text", ""),
            sections=list(data.get("sections") or []),
            timestamp=int(data.get("timestamp", 0)),
            path=data.get("path", ""),
        )
