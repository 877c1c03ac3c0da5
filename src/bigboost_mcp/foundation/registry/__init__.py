"""Tool registry and response envelope."""

from bigboost_mcp.foundation.content import TextContent, ToolResponse, format_response, render_json

from .registry import Handler, RegisteredTool, ToolMetadata, ToolRegistry, register_tool

__all__ = [
    "ToolRegistry", "RegisteredTool", "ToolMetadata", "Handler", "register_tool",
    "TextContent", "ToolResponse", "format_response", "render_json",
]
