from abc import ABC, abstractmethod
from pathlib import Path

from pulse.models import JournalEntry


class JournalStore(ABC):
    """
    Abstract base class defining the contract for journal entry persistence.

    The markdown store is the only backend today; alternative backends
    (e.g. database-backed) implement the same interface.
    """

    @abstractmethod
    def write_entry(self, entry: JournalEntry) -> Path:
        """
        Persist a journal entry and record its path on the entry.

        Args:
            entry: Entry to write

        Returns:
            Path the entry was written to
        """
        pass

    @abstractmethod
    def read_entry(self, path: Path | str) -> JournalEntry:
        """
        Read a journal entry from a file path inside the store.

        Args:
            path: Path to the entry file

        Returns:
            The decoded entry
        """
        pass

    @abstractmethod
    def list_entries(
        self, entry_type: str = "both", limit: int = 0, days: int = 0
    ) -> list[JournalEntry]:
        """
        List journal entries, newest first.

        Args:
            entry_type: "project", "user" or "both"
            limit: Maximum number of entries (0 = no limit)
            days: How far back to look (0 = no limit)

        Returns:
            Entries sorted by creation time descending
        """
        pass

    @abstractmethod
    def roots(self, entry_type: str = "both") -> list[Path]:
        """
        Directories holding entries of the given type.

        Embedding search scans these for sidecar files.

        Raises:
            ValueError: If entry_type is not project, user or both
        """
        pass

    def close(self) -> None:
        """Release any resources held by the store."""
        pass

    def __enter__(self) -> "JournalStore":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
