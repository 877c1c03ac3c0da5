"""MCP and HTTP adapters for the Bigboost tools."""

from .bridge import registry_to_handlers, tool_to_handler
from .server import BigboostServer, HTTPToolServer, MCPServer, ToolServer, Transport, create_server

__all__ = [
    "ToolServer", "MCPServer", "HTTPToolServer", "Transport",
    "BigboostServer", "create_server",
    "tool_to_handler", "registry_to_handlers",
]
