from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from pulse.config.settings import DEFAULT_LIMIT
from pulse.models import SocialPost


@dataclass
class ListPostsOptions:
    """Filtering and pagination for listing posts."""

    limit: int = DEFAULT_LIMIT
    offset: int = 0
    agent_filter: str = ""
    tag_filter: str = ""
    thread_id: str = ""  # thread root id; matches the root and its replies


class SocialStore(ABC):
    """
    Abstract base class defining the contract for social post persistence
    and the active posting identity.
    """

    @abstractmethod
    def create_post(self, post: SocialPost) -> Path:
        """Persist a social post and return the file it was written to."""
        pass

    @abstractmethod
    def list_posts(self, opts: ListPostsOptions | None = None) -> list[SocialPost]:
        """Return posts matching the filter options, newest first."""
        pass

    @abstractmethod
    def get_identity(self) -> str:
        """Return the active author handle, or "" when unset."""
        pass

    @abstractmethod
    def set_identity(self, name: str) -> None:
        """Persist the active author handle."""
        pass

    @abstractmethod
    def mark_synced(self, post_id: str) -> None:
        """
        Mark a post as synced with the remote API.

        Raises:
            NotFound: If no stored post has this id
        """
        pass

    def close(self) -> None:
        """Release any resources held by the store."""
        pass

    def __enter__(self) -> "SocialStore":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
