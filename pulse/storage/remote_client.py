"""HTTP client for the remote team journal and social API.

The remote is optional. Callers write locally first and treat a
RemoteError as a warning, never as a reason to undo the local write.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

import httpx

from pulse.config.settings import REMOTE_TIMEOUT
from pulse.models import JournalEntry, SocialPost
from pulse.storage.errors import RemoteError
from pulse.storage.social_store import ListPostsOptions

logger = logging.getLogger(__name__)

NIL_UUID = uuid.UUID(int=0)
EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


class RemoteClient:
    """
    Client for the remote social API.

    Args:
        api_url: Base API URL; a trailing "/" or "/v1" is dropped
        api_key: Key sent in the x-api-key header
        team_id: Team the journal entries and posts belong to
        timeout: Request timeout in seconds
        transport: Optional httpx transport (used by tests)
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        team_id: str,
        timeout: float = REMOTE_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        api_url = api_url.rstrip("/")
        if api_url.endswith("/v1"):
            api_url = api_url[: -len("/v1")]

        self.api_url = api_url
        self.team_id = team_id
        self._client = httpx.Client(
            base_url=api_url,
            headers={"x-api-key": api_key},
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RemoteClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteError(f"remote API request failed: {e}") from e

        if response.status_code >= 400:
            raise RemoteError(
                f"remote API returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response

    def _json(self, response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise RemoteError(f"failed to decode response: {e}") from e
        if not isinstance(data, dict):
            raise RemoteError("failed to decode response: expected an object")
        return data

    def create_journal_entry(
        self, sections: dict[str, str], timestamp: datetime
    ) -> None:
        """Post the full, unsplit section map of a journal write."""
        payload = {
            "team_id": self.team_id,
            "timestamp": int(timestamp.timestamp() * 1000),
            "sections": sections,
        }
        self._request("POST", f"/teams/{self.team_id}/journal/entries", json=payload)
        logger.debug(f"Synced journal entry ({', '.join(sections)}) to remote")

    def read_journal_entries(self, limit: int = 0) -> list[JournalEntry]:
        """
        Fetch journal entries from the remote, typed "remote".

        Raises:
            RemoteError: If the request fails or an entry has an unexpected shape
        """
        params = {"limit": limit} if limit > 0 else None
        response = self._request(
            "GET", f"/teams/{self.team_id}/journal/entries", params=params
        )

        entries = []
        for item in _items(self._json(response), "entries"):
            try:
                entries.append(_entry_from_item(item))
            except (TypeError, ValueError, OverflowError, OSError) as e:
                raise RemoteError(f"malformed journal entry in response: {e}") from e
        return entries

    def create_post(self, post: SocialPost) -> None:
        """Send a social post to the remote."""
        payload: dict[str, Any] = {
            "content": post.content,
            "author": post.author_name,
        }
        if post.tags:
            payload["tags"] = list(post.tags)
        if post.parent_post_id is not None:
            payload["parentPostId"] = str(post.parent_post_id)

        self._request("POST", f"/teams/{self.team_id}/posts", json=payload)
        logger.debug(f"Synced post {post.short_id} to remote")

    def read_posts(self, opts: ListPostsOptions | None = None) -> list[SocialPost]:
        """
        Fetch posts from the remote feed.

        Raises:
            RemoteError: If the request fails or a post has an unexpected shape
        """
        opts = opts or ListPostsOptions()
        params: dict[str, Any] = {}
        if opts.limit > 0:
            params["limit"] = opts.limit
        if opts.offset > 0:
            params["offset"] = opts.offset
        if opts.agent_filter:
            params["agent"] = opts.agent_filter
        if opts.tag_filter:
            params["tag"] = opts.tag_filter
        if opts.thread_id:
            params["thread_id"] = opts.thread_id

        response = self._request("GET", f"/teams/{self.team_id}/posts", params=params)

        posts = []
        for item in _items(self._json(response), "posts"):
            try:
                posts.append(_post_from_item(item))
            except (TypeError, ValueError, OverflowError, OSError) as e:
                raise RemoteError(f"malformed post in response: {e}") from e
        return posts


def _items(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    items = data.get(key) or []
    if not isinstance(items, list):
        raise RemoteError(f"failed to decode response: {key!r} is not a list")
    for item in items:
        if not isinstance(item, dict):
            raise RemoteError(
                f"failed to decode response: {key!r} item is not an object"
            )
    return items


def _entry_from_item(item: dict[str, Any]) -> JournalEntry:
    created_at = EPOCH
    if timestamp := item.get("timestamp"):
        if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
            raise TypeError(f"timestamp must be a number, got {timestamp!r}")
        created_at = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)

    sections = item.get("sections") or {}
    if not isinstance(sections, dict):
        raise TypeError(f"sections must be an object, got {sections!r}")

    return JournalEntry(
        id=_parse_uuid(item.get("id")) or NIL_UUID,
        sections={str(k): str(v) for k, v in sections.items()},
        created_at=created_at,
        type="remote",
    )


def _post_from_item(item: dict[str, Any]) -> SocialPost:
    created_at = EPOCH
    created = item.get("createdAt") or {}
    if not isinstance(created, dict):
        raise TypeError(f"createdAt must be an object, got {created!r}")
    if seconds := created.get("_seconds"):
        created_at = datetime.fromtimestamp(
            seconds + created.get("_nanoseconds", 0) / 1e9, tz=timezone.utc
        )

    tags = item.get("tags") or []
    if not isinstance(tags, list):
        raise TypeError(f"tags must be a list, got {tags!r}")

    return SocialPost(
        id=_parse_uuid(item.get("postId")) or NIL_UUID,
        author_name=str(item.get("author") or ""),
        content=str(item.get("content") or ""),
        created_at=created_at,
        tags=[str(tag) for tag in tags],
        parent_post_id=_parse_uuid(item.get("parentPostId")),
        synced=True,
    )


def _parse_uuid(value: Any) -> uuid.UUID | None:
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None
