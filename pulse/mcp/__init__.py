from .server import create_server, list_tools, main, run_server
from .tool_handlers import ToolError, ToolHandlers

__all__ = [
    "create_server",
    "list_tools",
    "main",
    "run_server",
    "ToolError",
    "ToolHandlers",
]
