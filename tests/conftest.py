import hashlib
import re
import uuid
from datetime import timedelta
from pathlib import Path

import pytest

from pulse.embeddings import Embedder
from pulse.models import JournalEntry, SocialPost, now
from pulse.storage import JournalMDStore, SocialMDStore

"""
conftest.py
-----------
Shared fixtures: temporary store roots and a deterministic embedder.
"""

PULSE_ENV_VARS = (
    "PULSE_API_KEY",
    "PULSE_TEAM_ID",
    "PULSE_API_URL",
    "PULSE_JOURNAL_PROJECT_PATH",
    "PULSE_JOURNAL_USER_PATH",
    "PULSE_EMBEDDINGS",
    "PULSE_EMBEDDING_MODEL",
    "PULSE_LOG_LEVEL",
)


class HashEmbedder(Embedder):
    """Bag-of-words embedder that hashes each word into a fixed bucket."""

    def __init__(self, dim: int = 64):
        self.dim = dim
        self.calls: list[str] = []

    @property
    def dimension(self) -> int:
        return self.dim

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        vector = [0.0] * self.dim
        for word in re.findall(r"\w+", text.lower()):
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % self.dim
            vector[bucket] += 1.0
        return vector


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's PULSE_* variables out of the tests."""
    for name in PULSE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    return tmp_path / "project" / ".private-journal"


@pytest.fixture
def user_root(tmp_path: Path) -> Path:
    return tmp_path / "home" / ".private-journal"


@pytest.fixture
def journal_store(project_root: Path, user_root: Path) -> JournalMDStore:
    return JournalMDStore(project_root, user_root)


@pytest.fixture
def social_store(tmp_path: Path) -> SocialMDStore:
    return SocialMDStore(tmp_path / "social")


@pytest.fixture
def embedder() -> HashEmbedder:
    return HashEmbedder()


@pytest.fixture
def make_entry(journal_store: JournalMDStore):
    """Write a journal entry created a given number of minutes ago."""

    def _make(
        sections: dict[str, str],
        entry_type: str = "user",
        minutes_ago: float = 0,
    ) -> JournalEntry:
        entry = JournalEntry(
            id=uuid.uuid4(),
            sections=sections,
            created_at=now() - timedelta(minutes=minutes_ago),
            type=entry_type,
        )
        journal_store.write_entry(entry)
        return entry

    return _make


@pytest.fixture
def make_post(social_store: SocialMDStore):
    """Write a social post created a given number of minutes ago."""

    def _make(
        content: str,
        author: str = "alice",
        tags: list[str] | None = None,
        parent: SocialPost | None = None,
        minutes_ago: float = 0,
    ) -> SocialPost:
        post = SocialPost(
            id=uuid.uuid4(),
            author_name=author,
            content=content,
            created_at=now() - timedelta(minutes=minutes_ago),
            tags=list(tags or []),
            parent_post_id=parent.id if parent else None,
        )
        social_store.create_post(post)
        return post

    return _make
