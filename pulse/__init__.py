import asyncio

from .mcp import server


def main() -> None:
    """Main entry point for the package."""
    asyncio.run(server.main())


__all__ = ["main", "server"]
