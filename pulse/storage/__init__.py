from .errors import (
    InvalidFormat,
    NotFound,
    PathViolation,
    PulseError,
    RemoteError,
    StorageIOError,
)
from .journal_md import JournalMDStore
from .journal_store import JournalStore
from .remote_client import RemoteClient
from .social_md import SocialMDStore
from .social_store import ListPostsOptions, SocialStore

__all__ = [
    # Contracts
    "JournalStore",
    "SocialStore",
    "ListPostsOptions",
    # Markdown backends
    "JournalMDStore",
    "SocialMDStore",
    "RemoteClient",
    # Errors
    "PulseError",
    "NotFound",
    "InvalidFormat",
    "PathViolation",
    "StorageIOError",
    "RemoteError",
]
