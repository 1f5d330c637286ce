"""pulse CLI - private journal and team social feed."""

import asyncio
import uuid
from pathlib import Path

import click

from pulse.config import DEFAULT_DAYS, DEFAULT_LIMIT, load_config
from pulse.config.settings import APP_VERSION
from pulse.embeddings import SearchOptions, search_with_embeddings, write_embedding
from pulse.factory import Services, create_services
from pulse.mcp.server import create_server, run_server
from pulse.mcp.tool_handlers import TIME_DISPLAY, format_post
from pulse.models import VALID_SECTIONS, JournalEntry, SocialPost
from pulse.storage import ListPostsOptions, PulseError, RemoteError
from pulse.utils.logging_setup import set_logger

TYPE_CHOICE = click.Choice(["project", "user", "both"])


def _truncate(text: str, max_len: int = 100) -> str:
    return text if len(text) <= max_len else text[:max_len] + "..."


def _merge_remote(
    services: Services, entries: list[JournalEntry], limit: int = 0
) -> list[JournalEntry]:
    """Merge remote journal entries into a local list, newest first."""
    if services.remote is None:
        return entries

    try:
        remote_entries = services.remote.read_journal_entries(limit)
    except RemoteError as e:
        click.echo(f"Warning: failed to fetch remote entries: {e}", err=True)
        return entries

    merged = sorted(entries + remote_entries, key=lambda e: e.created_at, reverse=True)
    if limit > 0:
        merged = merged[:limit]
    return merged


@click.group()
@click.version_option(APP_VERSION)
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to the config file",
)
@click.pass_context
def cli(ctx: click.Context, config_file: Path | None):
    """pulse - private journal and team social feed."""
    if ctx.obj is None:
        set_logger()
        try:
            config = load_config(config_file)
        except ValueError as e:
            raise click.ClickException(str(e))
        ctx.obj = create_services(config)
        ctx.call_on_close(ctx.obj.close)


@cli.group()
def journal():
    """Write, search, list, and read private journal entries."""
    pass


@journal.command("write")
@click.option("--feelings", default="", help="Feelings section content")
@click.option("--project-notes", default="", help="Project notes section content")
@click.option("--user-context", default="", help="User context section content")
@click.option(
    "--technical-insights", default="", help="Technical insights section content"
)
@click.option("--world-knowledge", default="", help="World knowledge section content")
@click.option(
    "--type",
    "entry_type",
    type=click.Choice(["project", "user"]),
    default="user",
    help="Journal to write to",
)
@click.pass_obj
def journal_write(services: Services, entry_type: str, **sections: str):
    """Write a journal entry with one or more sections."""
    sections = {name: text for name, text in sections.items() if text}
    if not sections:
        raise click.UsageError(
            "at least one section is required (--feelings, --project-notes, "
            "--user-context, --technical-insights, --world-knowledge)"
        )

    entry = JournalEntry.new(sections, entry_type)
    try:
        path = services.journal.write_entry(entry)
    except PulseError as e:
        raise click.ClickException(f"failed to write entry: {e}")

    if services.embedder is not None:
        try:
            write_embedding(path, services.embedder, entry.sections)
        except Exception as e:
            click.echo(f"Warning: failed to write embedding: {e}", err=True)

    click.echo(f"Journal entry written: {path}")
    click.echo(
        f"Sections: {', '.join(n for n in VALID_SECTIONS if n in entry.sections)}"
    )


@journal.command("list")
@click.option("--limit", default=DEFAULT_LIMIT, show_default=True, help="Maximum number of entries to show")
@click.option("--days", default=DEFAULT_DAYS, show_default=True, help="Number of days back to search")
@click.option("--type", "entry_type", type=TYPE_CHOICE, default="both", show_default=True)
@click.pass_obj
def journal_list(services: Services, limit: int, days: int, entry_type: str):
    """List recent journal entries, newest first."""
    try:
        entries = services.journal.list_entries(entry_type, limit, days)
    except PulseError as e:
        raise click.ClickException(f"failed to list entries: {e}")

    entries = _merge_remote(services, entries, limit)

    if not entries:
        click.echo("No entries found.")
        return

    for entry in entries:
        names = ", ".join(n for n in VALID_SECTIONS if n in entry.sections)
        click.echo(
            f"{entry.created_at.strftime(TIME_DISPLAY)} [{entry.type}] "
            f"({names}) {entry.file_path}"
        )


@journal.command("search")
@click.argument("query")
@click.option("--limit", default=DEFAULT_LIMIT, show_default=True, help="Maximum number of results")
@click.option("--type", "entry_type", type=TYPE_CHOICE, default="both", show_default=True)
@click.option(
    "--section",
    "sections",
    multiple=True,
    type=click.Choice(VALID_SECTIONS),
    help="Only match these sections (repeatable)",
)
@click.pass_obj
def journal_search(
    services: Services, query: str, limit: int, entry_type: str, sections: tuple
):
    """Search journal entries."""
    if services.embedder is not None:
        opts = SearchOptions(limit=limit, sections=list(sections))
        results = search_with_embeddings(
            services.embedder, services.journal.roots(entry_type), query, opts
        )
        if not results:
            click.echo("No matching entries found.")
            return
        for result in results:
            click.echo(f"--- {result.score:.3f} {result.path}")
            click.echo(f"  {_truncate(result.text)}\n")
        return

    try:
        entries = services.journal.list_entries(entry_type, 0, 0)
    except PulseError as e:
        raise click.ClickException(f"failed to list entries: {e}")

    entries = _merge_remote(services, entries)

    query_lower = query.lower()
    count = 0
    for entry in entries:
        if count >= limit:
            break

        matched = any(
            query_lower in content.lower()
            for name, content in entry.sections.items()
            if not sections or name in sections
        )
        if not matched:
            continue

        count += 1
        click.echo(
            f"--- {entry.created_at.strftime(TIME_DISPLAY)} [{entry.type}] {entry.file_path}"
        )
        for name, content in entry.sections.items():
            click.echo(f"  ## {name}\n  {_truncate(content)}")
        click.echo()

    if count == 0:
        click.echo("No matching entries found.")


@journal.command("read")
@click.argument("path")
@click.pass_obj
def journal_read(services: Services, path: str):
    """Read a journal entry by file path."""
    try:
        entry = services.journal.read_entry(path)
    except PulseError as e:
        raise click.ClickException(f"failed to read entry: {e}")

    click.echo(f"Date: {entry.created_at.strftime(TIME_DISPLAY)}")
    click.echo(f"Type: {entry.type}")
    click.echo()
    for name in VALID_SECTIONS:
        if content := entry.sections.get(name):
            click.echo(f"## {name}\n{content}\n")


@cli.group()
def social():
    """Create posts, read feeds, and manage social identity."""
    pass


@social.command("login")
@click.argument("name")
@click.pass_obj
def social_login(services: Services, name: str):
    """Set the agent name used for posting."""
    try:
        services.social.set_identity(name)
    except PulseError as e:
        raise click.ClickException(f"failed to set identity: {e}")
    click.echo(f"Logged in as {name}")


@social.command("whoami")
@click.pass_obj
def social_whoami(services: Services):
    """Show the current agent name."""
    try:
        identity = services.social.get_identity()
    except PulseError as e:
        raise click.ClickException(f"failed to get identity: {e}")
    click.echo(identity or "Not logged in.")


@social.command("post")
@click.argument("content")
@click.option("--tags", default="", help="Comma-separated tags")
@click.option("--reply-to", default="", help="Parent post ID for threading")
@click.pass_obj
def social_post(services: Services, content: str, tags: str, reply_to: str):
    """Create a new post with optional tags."""
    try:
        identity = services.social.get_identity()
    except PulseError as e:
        raise click.ClickException(f"failed to get identity: {e}")
    if not identity:
        raise click.ClickException(
            "not logged in - run 'pulse social login <name>' first"
        )

    parent_post_id = None
    if reply_to:
        try:
            parent_post_id = uuid.UUID(reply_to)
        except ValueError:
            raise click.BadParameter(
                f"invalid parent post ID: {reply_to}", param_hint="--reply-to"
            )

    tag_list = [tag.strip() for tag in tags.split(",") if tag.strip()]
    post = SocialPost.new(identity, content, tag_list, parent_post_id)
    try:
        services.social.create_post(post)
    except PulseError as e:
        raise click.ClickException(f"failed to create post: {e}")

    if services.remote is not None:
        try:
            services.remote.create_post(post)
            services.social.mark_synced(str(post.id))
        except PulseError as e:
            click.echo(f"Warning: remote sync failed: {e}", err=True)

    click.echo(f"Post created (ID: {post.short_id})")


@social.command("feed")
@click.option("--limit", default=DEFAULT_LIMIT, show_default=True, help="Maximum number of posts to show")
@click.option("--offset", default=0, help="Number of posts to skip")
@click.option("--author", default="", help="Filter by author name")
@click.option("--tag", default="", help="Filter by tag")
@click.option("--thread", "thread_id", default="", help="Show one thread by root post ID")
@click.pass_obj
def social_feed(
    services: Services, limit: int, offset: int, author: str, tag: str, thread_id: str
):
    """List social posts, newest first."""
    opts = ListPostsOptions(
        limit=limit,
        offset=offset,
        agent_filter=author,
        tag_filter=tag,
        thread_id=thread_id,
    )

    try:
        if services.remote is not None:
            posts = services.remote.read_posts(opts)
        else:
            posts = services.social.list_posts(opts)
    except PulseError as e:
        raise click.ClickException(f"failed to list posts: {e}")

    if not posts:
        click.echo("No posts found.")
        return

    for post in posts:
        click.echo(format_post(post))


@cli.command("mcp")
@click.pass_obj
def mcp_command(services: Services):
    """Run the MCP server over stdio."""
    server = create_server(
        services.journal,
        services.social,
        remote=services.remote,
        embedder=services.embedder,
    )
    asyncio.run(run_server(server))


if __name__ == "__main__":
    cli()
