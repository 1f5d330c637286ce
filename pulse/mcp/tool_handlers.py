import logging
import uuid
from typing import Any

import mcp.types as types

from pulse.config.settings import DEFAULT_DAYS, DEFAULT_LIMIT
from pulse.embeddings import (
    Embedder,
    SearchOptions,
    search_with_embeddings,
    write_embedding,
)
from pulse.models import VALID_SECTIONS, JournalEntry, SocialPost, now, section_title
from pulse.storage import (
    JournalStore,
    ListPostsOptions,
    PulseError,
    RemoteClient,
    SocialStore,
)

"""
MCP tool handlers for journal and social operations.

This module contains the business logic for all MCP tools,
keeping server.py focused on protocol handling.
"""

TIME_DISPLAY = "%Y-%m-%d %H:%M:%S"


class ToolError(Exception):
    """A tool call failed; the message is returned to the client as error text."""


def _text(text: str) -> list[types.TextContent]:
    return [types.TextContent(type="text", text=text)]


def _int_arg(arguments: dict[str, Any], key: str, default: int) -> int:
    """Read an integer argument, falling back to default when unset or <= 0."""
    value = arguments.get(key)
    if value is None:
        return default
    try:
        value = int(value)
    except (TypeError, ValueError) as e:
        raise ToolError(f"invalid {key}: {value!r}") from e
    return value if value > 0 else default


def _format_sections(sections: dict[str, str]) -> str:
    parts = []
    for name in VALID_SECTIONS:
        if name in sections:
            parts.append(f"\n## {section_title(name)}\n{sections[name]}\n")
    # Headings that are not canonical sections keep file order
    for name, content in sections.items():
        if name not in VALID_SECTIONS:
            parts.append(f"\n## {section_title(name)}\n{content}\n")
    return "".join(parts)


def _ordered_names(sections: dict[str, str]) -> list[str]:
    return [name for name in VALID_SECTIONS if name in sections]


class ToolHandlers:
    """
    Tool implementations bound to a set of stores.

    Args:
        journal: Journal store used by the journal tools
        social: Social store used by the social tools
        remote: Optional remote client; writes are synced after the local write
        embedder: Optional embedder; enables sidecar writes and semantic search
    """

    def __init__(
        self,
        journal: JournalStore,
        social: SocialStore,
        remote: RemoteClient | None = None,
        embedder: Embedder | None = None,
    ):
        self.journal = journal
        self.social = social
        self.remote = remote
        self.embedder = embedder
        self.logger = logging.getLogger(__name__)

    async def handle_process_thoughts(
        self, arguments: dict | None
    ) -> list[types.TextContent]:
        """Handle the process_thoughts tool."""
        arguments = arguments or {}

        unknown = [key for key in arguments if key not in VALID_SECTIONS]
        if unknown:
            raise ToolError(
                f"unknown section(s): {', '.join(unknown)}. "
                f"Valid sections: {', '.join(VALID_SECTIONS)}"
            )

        all_sections = {
            key: value
            for key, value in arguments.items()
            if isinstance(value, str) and value
        }
        if not all_sections:
            raise ToolError(
                f"at least one section is required ({', '.join(VALID_SECTIONS)})"
            )

        project_sections = {
            k: v for k, v in all_sections.items() if k == "project_notes"
        }
        user_sections = {k: v for k, v in all_sections.items() if k != "project_notes"}

        result_parts = []
        timestamp = now()

        for entry_type, sections in (
            ("project", project_sections),
            ("user", user_sections),
        ):
            if not sections:
                continue

            entry = JournalEntry.new(sections, entry_type)
            try:
                path = self.journal.write_entry(entry)
            except PulseError as e:
                raise ToolError(f"failed to write {entry_type} entry: {e}") from e

            result_parts.append(
                f"[{entry_type}] {', '.join(_ordered_names(sections))}\nPath: {path}"
            )

            if self.embedder is not None:
                try:
                    write_embedding(path, self.embedder, entry.sections)
                except Exception as e:
                    self.logger.warning(f"Failed to embed entry {path}: {e}")
                    result_parts.append(f"Warning: embedding failed: {e}")

        if self.remote is not None:
            try:
                self.remote.create_journal_entry(all_sections, timestamp)
            except PulseError as e:
                self.logger.warning(f"Remote journal sync failed: {e}")
                result_parts.append(f"Warning: remote sync failed: {e}")

        return _text("Journal entry written:\n" + "\n".join(result_parts))

    async def handle_search_journal(
        self, arguments: dict | None
    ) -> list[types.TextContent]:
        """Handle the search_journal tool."""
        arguments = arguments or {}

        query = arguments.get("query")
        if not query:
            raise ToolError("query is required")

        limit = _int_arg(arguments, "limit", DEFAULT_LIMIT)
        entry_type = arguments.get("type") or "both"
        sections = list(arguments.get("sections") or [])

        if self.embedder is not None:
            return self._semantic_search(query, limit, entry_type, sections)

        try:
            entries = self.journal.list_entries(entry_type, 0, 0)
        except (PulseError, ValueError) as e:
            raise ToolError(f"failed to list entries: {e}") from e

        query_lower = query.lower()
        results = []
        for entry in entries:
            if len(results) >= limit:
                break
            for name, content in entry.sections.items():
                if sections and name not in sections:
                    continue
                if query_lower in content.lower():
                    results.append(entry)
                    break

        if not results:
            return _text("No matching entries found.")

        blocks = []
        for entry in results:
            blocks.append(
                f"Entry: {entry.file_path}\n"
                f"Date: {entry.created_at.strftime(TIME_DISPLAY)}\n"
                f"Type: {entry.type}\n" + _format_sections(entry.sections)
            )
        return _text("\n---\n".join(blocks))

    def _semantic_search(
        self, query: str, limit: int, entry_type: str, sections: list[str]
    ) -> list[types.TextContent]:
        try:
            roots = self.journal.roots(entry_type)
        except ValueError as e:
            raise ToolError(str(e)) from e

        opts = SearchOptions(limit=limit, sections=sections)
        results = search_with_embeddings(self.embedder, roots, query, opts)

        if not results:
            return _text("No matching entries found.")

        blocks = []
        for result in results:
            blocks.append(
                f"Entry: {result.path}\n"
                f"Score: {result.score:.3f}\n"
                f"Sections: {', '.join(result.sections)}\n\n{result.text}"
            )
        return _text("\n---\n".join(blocks))

    async def handle_read_journal_entry(
        self, arguments: dict | None
    ) -> list[types.TextContent]:
        """Handle the read_journal_entry tool."""
        path = (arguments or {}).get("path")
        if not path:
            raise ToolError("path is required")

        try:
            entry = self.journal.read_entry(path)
        except PulseError as e:
            raise ToolError(f"failed to read entry: {e}") from e

        return _text(
            f"Date: {entry.created_at.strftime(TIME_DISPLAY)}\n"
            f"Type: {entry.type}\n" + _format_sections(entry.sections)
        )

    async def handle_list_recent_entries(
        self, arguments: dict | None
    ) -> list[types.TextContent]:
        """Handle the list_recent_entries tool."""
        arguments = arguments or {}
        days = _int_arg(arguments, "days", DEFAULT_DAYS)
        limit = _int_arg(arguments, "limit", DEFAULT_LIMIT)
        entry_type = arguments.get("type") or "both"

        try:
            entries = self.journal.list_entries(entry_type, limit, days)
        except (PulseError, ValueError) as e:
            raise ToolError(f"failed to list entries: {e}") from e

        if not entries:
            return _text("No recent entries found.")

        lines = [
            f"- {entry.created_at.strftime(TIME_DISPLAY)} [{entry.type}] "
            f"({', '.join(_ordered_names(entry.sections))}) {entry.file_path}"
            for entry in entries
        ]
        return _text("\n".join(lines))

    async def handle_login(self, arguments: dict | None) -> list[types.TextContent]:
        """Handle the login tool."""
        agent_name = (arguments or {}).get("agent_name")
        if not agent_name:
            raise ToolError("agent_name is required")

        try:
            self.social.set_identity(agent_name)
        except PulseError as e:
            raise ToolError(f"failed to set identity: {e}") from e

        return _text(f"Logged in as {agent_name}")

    async def handle_create_post(
        self, arguments: dict | None
    ) -> list[types.TextContent]:
        """Handle the create_post tool."""
        arguments = arguments or {}

        content = arguments.get("content")
        if not content:
            raise ToolError("content is required")

        try:
            identity = self.social.get_identity()
        except PulseError as e:
            raise ToolError(f"failed to get identity: {e}") from e
        if not identity:
            raise ToolError("not logged in - use the login tool first")

        parent_post_id = None
        if raw_parent := arguments.get("parent_post_id"):
            try:
                parent_post_id = uuid.UUID(str(raw_parent))
            except ValueError as e:
                raise ToolError(f"invalid parent_post_id: {raw_parent}") from e

        post = SocialPost.new(
            identity, content, list(arguments.get("tags") or []), parent_post_id
        )
        try:
            self.social.create_post(post)
        except PulseError as e:
            raise ToolError(f"failed to create post: {e}") from e

        if self.remote is not None:
            try:
                self.remote.create_post(post)
            except PulseError as e:
                self.logger.warning(f"Remote post sync failed: {e}")
                return _text(
                    f"Post created locally (ID: {post.short_id}) "
                    f"but remote sync failed: {e}"
                )

            try:
                self.social.mark_synced(str(post.id))
            except PulseError as e:
                self.logger.warning(f"Post {post.short_id} synced but not marked: {e}")

        return _text(f"Post created (ID: {post.short_id})")

    async def handle_read_posts(
        self, arguments: dict | None
    ) -> list[types.TextContent]:
        """Handle the read_posts tool."""
        arguments = arguments or {}

        opts = ListPostsOptions(
            limit=_int_arg(arguments, "limit", DEFAULT_LIMIT),
            offset=_int_arg(arguments, "offset", 0),
            agent_filter=arguments.get("agent_filter") or "",
            tag_filter=arguments.get("tag_filter") or "",
            thread_id=arguments.get("thread_id") or "",
        )

        try:
            posts = self.social.list_posts(opts)
        except PulseError as e:
            raise ToolError(f"failed to list posts: {e}") from e

        if not posts:
            return _text("No posts found.")

        return _text("".join(format_post(post) for post in posts))


def format_post(post: SocialPost) -> str:
    """Render a post as a feed item."""
    header = f"---\n@{post.author_name} [{post.created_at.strftime(TIME_DISPLAY)}]"
    if post.tags:
        header += " #" + " #".join(post.tags)
    if post.parent_post_id is not None:
        header += f" (reply to {str(post.parent_post_id)[:8]})"
    return f"{header}\n{post.content}\n"
