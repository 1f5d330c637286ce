import logging

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from pulse.config.settings import APP_NAME, APP_VERSION, DEFAULT_DAYS, DEFAULT_LIMIT
from pulse.embeddings import Embedder
from pulse.factory import create_services
from pulse.mcp.tool_handlers import ToolError, ToolHandlers
from pulse.models import VALID_SECTIONS
from pulse.storage import JournalStore, RemoteClient, SocialStore
from pulse.utils.logging_setup import set_logger

logger = logging.getLogger(__name__)

SECTION_DESCRIPTIONS = {
    "feelings": "Your private space to be completely honest about what you're feeling and thinking.",
    "project_notes": "Private technical laboratory for capturing insights about the current project.",
    "user_context": "Private field notes about working with your human collaborator.",
    "technical_insights": "Private software engineering notebook for broader learnings.",
    "world_knowledge": "Private learning journal for everything else interesting or useful.",
}

TYPE_SCHEMA = {
    "type": "string",
    "enum": ["project", "user", "both"],
}


def list_tools() -> list[types.Tool]:
    """Tool definitions exposed by the server."""
    return [
        types.Tool(
            name="process_thoughts",
            description=(
                "Write to your private journal. At least one section is required. "
                f"Sections: {', '.join(VALID_SECTIONS)}. Routing is automatic: "
                "project_notes goes to project journal, all others go to user journal."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    name: {"type": "string", "description": SECTION_DESCRIPTIONS[name]}
                    for name in VALID_SECTIONS
                },
            },
        ),
        types.Tool(
            name="search_journal",
            description="Search through your private journal entries. Returns matching entries ranked by relevance.",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Search query text"},
                    "limit": {
                        "type": "number",
                        "description": f"Maximum number of results (default {DEFAULT_LIMIT})",
                    },
                    "type": {
                        **TYPE_SCHEMA,
                        "description": "Search in project-specific, user-global, or both (default: both)",
                    },
                    "sections": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Filter by section types",
                    },
                },
                "required": ["query"],
            },
        ),
        types.Tool(
            name="read_journal_entry",
            description="Read the full content of a specific journal entry by file path.",
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {
                        "type": "string",
                        "description": "File path to the journal entry",
                    }
                },
                "required": ["path"],
            },
        ),
        types.Tool(
            name="list_recent_entries",
            description="Get recent journal entries, newest first.",
            inputSchema={
                "type": "object",
                "properties": {
                    "days": {
                        "type": "number",
                        "description": f"Number of days back to search (default: {DEFAULT_DAYS})",
                    },
                    "limit": {
                        "type": "number",
                        "description": f"Maximum number of entries to return (default: {DEFAULT_LIMIT})",
                    },
                    "type": {
                        **TYPE_SCHEMA,
                        "description": "List project-specific, user-global, or both (default: both)",
                    },
                },
            },
        ),
        types.Tool(
            name="login",
            description="Authenticate and set your unique agent identity for the social media session.",
            inputSchema={
                "type": "object",
                "properties": {
                    "agent_name": {
                        "type": "string",
                        "description": "Your unique social media handle/username.",
                        "minLength": 1,
                    }
                },
                "required": ["agent_name"],
            },
        ),
        types.Tool(
            name="create_post",
            description="Create a new post or reply within the team.",
            inputSchema={
                "type": "object",
                "properties": {
                    "content": {
                        "type": "string",
                        "description": "The content of the post.",
                        "minLength": 1,
                    },
                    "tags": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Optional tags for the post",
                    },
                    "parent_post_id": {
                        "type": "string",
                        "description": "ID of the post to reply to (optional)",
                    },
                },
                "required": ["content"],
            },
        ),
        types.Tool(
            name="read_posts",
            description="Retrieve posts from the social feed with optional filtering.",
            inputSchema={
                "type": "object",
                "properties": {
                    "limit": {
                        "type": "number",
                        "description": f"Maximum number of posts to retrieve (default {DEFAULT_LIMIT})",
                    },
                    "offset": {
                        "type": "number",
                        "description": "Number of posts to skip (default 0)",
                    },
                    "agent_filter": {
                        "type": "string",
                        "description": "Filter posts by author name",
                    },
                    "tag_filter": {
                        "type": "string",
                        "description": "Filter posts by tag",
                    },
                    "thread_id": {
                        "type": "string",
                        "description": "Get posts in a specific thread",
                    },
                },
            },
        ),
    ]


def create_server(
    journal: JournalStore,
    social: SocialStore,
    remote: RemoteClient | None = None,
    embedder: Embedder | None = None,
) -> Server:
    """
    Create an MCP server exposing the journal and social tools.

    Args:
        journal: Journal store backing the journal tools
        social: Social store backing the social tools
        remote: Optional remote client for write-then-sync
        embedder: Optional embedder for semantic search

    Returns:
        Configured low-level MCP server
    """
    if journal is None:
        raise ValueError("journal store is required")
    if social is None:
        raise ValueError("social store is required")

    server: Server = Server(APP_NAME)
    handlers = ToolHandlers(journal, social, remote=remote, embedder=embedder)
    dispatch = {
        "process_thoughts": handlers.handle_process_thoughts,
        "search_journal": handlers.handle_search_journal,
        "read_journal_entry": handlers.handle_read_journal_entry,
        "list_recent_entries": handlers.handle_list_recent_entries,
        "login": handlers.handle_login,
        "create_post": handlers.handle_create_post,
        "read_posts": handlers.handle_read_posts,
    }

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return list_tools()

    @server.call_tool()
    async def handle_call_tool(
        name: str, arguments: dict | None
    ) -> list[types.TextContent]:
        """
        Handle tool execution requests.

        A raised exception is turned into an error result by the server.
        """
        handler = dispatch.get(name)
        if handler is None:
            raise ToolError(f"Unknown tool: {name}")

        try:
            return await handler(arguments)
        except ToolError as e:
            logger.info(f"Tool {name} failed: {e}")
            raise
        except Exception as e:
            logger.exception(f"Error executing {name}")
            raise ToolError(f"Error executing {name}: {e}") from e

    return server


async def run_server(server: Server) -> None:
    """Serve over stdin/stdout until the client disconnects."""
    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            InitializationOptions(
                server_name=APP_NAME,
                server_version=APP_VERSION,
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
            ),
        )


async def main() -> None:
    """Main server function with proper resource cleanup."""
    set_logger()
    services = create_services()
    server = create_server(
        services.journal,
        services.social,
        remote=services.remote,
        embedder=services.embedder,
    )

    logger.info(f"Starting {APP_NAME} MCP server")
    try:
        await run_server(server)
    finally:
        services.close()
