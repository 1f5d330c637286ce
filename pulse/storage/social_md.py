import logging
from collections.abc import Iterator
from pathlib import Path

import yaml

from pulse.config.settings import DEFAULT_LIMIT, IDENTITY_FILENAME, POSTS_DIRNAME
from pulse.models import SocialPost
from pulse.storage.atomic import atomic_write
from pulse.storage.errors import InvalidFormat, NotFound, StorageIOError
from pulse.storage.frontmatter import (
    format_time,
    load_meta,
    parse_time,
    parse_uuid,
    render_frontmatter,
)
from pulse.storage.layout import iter_date_buckets, iter_record_files, record_path
from pulse.storage.social_store import ListPostsOptions, SocialStore


class SocialMDStore(SocialStore):
    """
    Stores social posts as markdown files in a single data directory.

    Layout:
        <data_dir>/posts/YYYY-MM-DD/HH-MM-SS-micros-<8 hex>.md
        <data_dir>/_identity.yaml
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir)
        self.logger = logging.getLogger(__name__)

    @property
    def posts_dir(self) -> Path:
        return self.data_dir / POSTS_DIRNAME

    @property
    def identity_path(self) -> Path:
        return self.data_dir / IDENTITY_FILENAME

    def create_post(self, post: SocialPost) -> Path:
        path = record_path(self.posts_dir, post.id, post.created_at)
        atomic_write(path, render_post(post))
        self.logger.debug(f"Wrote post {post.short_id} to {path}")
        return path

    def list_posts(self, opts: ListPostsOptions | None = None) -> list[SocialPost]:
        opts = opts or ListPostsOptions()

        posts = [post for _, post in self._iter_posts() if _matches(post, opts)]
        posts.sort(key=lambda p: p.created_at, reverse=True)

        if opts.offset > 0:
            if opts.offset >= len(posts):
                return []
            posts = posts[opts.offset :]

        limit = opts.limit if opts.limit > 0 else DEFAULT_LIMIT
        return posts[:limit]

    def get_identity(self) -> str:
        path = self.identity_path
        if not path.exists():
            return ""

        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise StorageIOError(f"Failed to read identity file {path}: {e}") from e
        except UnicodeDecodeError as e:
            raise InvalidFormat(f"Identity file {path} is not valid UTF-8: {e}") from e
        except yaml.YAMLError as e:
            raise InvalidFormat(f"Failed to parse identity file {path}: {e}") from e

        if data is None:
            return ""
        if not isinstance(data, dict):
            raise InvalidFormat(f"Identity file {path} is not a mapping")
        return str(data.get("agent_name") or "")

    def set_identity(self, name: str) -> None:
        content = yaml.safe_dump({"agent_name": name}, sort_keys=False)
        atomic_write(self.identity_path, content, mode=0o600)
        self.logger.info(f"Identity set to {name}")

    def mark_synced(self, post_id: str) -> None:
        for path in self._iter_post_files():
            try:
                meta, body = load_meta(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, InvalidFormat) as e:
                self.logger.debug(f"Skipping {path}: {e}")
                continue

            if str(meta.get("id")) != post_id:
                continue

            meta["synced"] = True
            atomic_write(path, render_frontmatter(meta, body))
            self.logger.debug(f"Marked post {post_id} synced at {path}")
            return

        raise NotFound(f"post {post_id} not found")

    def _iter_post_files(self) -> Iterator[Path]:
        for bucket in iter_date_buckets(self.posts_dir):
            yield from iter_record_files(bucket)

    def _iter_posts(self) -> Iterator[tuple[Path, SocialPost]]:
        """Yield every decodable post, skipping corrupt files."""
        for path in self._iter_post_files():
            try:
                yield path, parse_post(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, InvalidFormat) as e:
                self.logger.debug(f"Skipping {path}: {e}")


def _matches(post: SocialPost, opts: ListPostsOptions) -> bool:
    if opts.agent_filter and post.author_name != opts.agent_filter:
        return False
    if opts.tag_filter and opts.tag_filter not in post.tags:
        return False
    if opts.thread_id:
        parent = str(post.parent_post_id) if post.parent_post_id else ""
        if parent != opts.thread_id and str(post.id) != opts.thread_id:
            return False
    return True


def render_post(post: SocialPost) -> str:
    meta = {"id": str(post.id), "author": post.author_name}
    if post.tags:
        meta["tags"] = list(post.tags)
    meta["created_at"] = format_time(post.created_at)
    if post.parent_post_id is not None:
        meta["parent_post_id"] = str(post.parent_post_id)
    meta["synced"] = post.synced
    return render_frontmatter(meta, post.content + "\n")


def parse_post(content: str) -> SocialPost:
    """
    Decode a social post file.

    Raises:
        InvalidFormat: If the metadata block, id or timestamp is invalid
    """
    meta, body = load_meta(content)

    parent_post_id = None
    if meta.get("parent_post_id"):
        try:
            parent_post_id = parse_uuid(meta["parent_post_id"])
        except InvalidFormat:
            parent_post_id = None

    tags = meta.get("tags") or []
    if not isinstance(tags, list):
        tags = [tags]

    return SocialPost(
        id=parse_uuid(meta.get("id")),
        author_name=str(meta.get("author") or ""),
        content=body.strip(),
        created_at=parse_time(meta.get("created_at")),
        tags=[str(tag) for tag in tags],
        parent_post_id=parent_post_id,
        synced=bool(meta.get("synced", False)),
    )
