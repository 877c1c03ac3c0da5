"""Bigboost MCP - Model Context Protocol server for the BigDataCorp Bigboost API.

Exposes person and company lookups (CPF, CNPJ, phone, email) as MCP tools,
with local token-bucket admission control, provider status classification
and uniform error rendering.

Quick Start:
    >>> from bigboost_mcp import create_server, get_settings
    >>>
    >>> server = create_server(get_settings())  # reads BIGBOOST_* env vars
    >>> server.run()                            # stdio transport

Direct invocation (no protocol):
    >>> response = await server.registry.invoke("consultaPessoa", {"cpf": "123.456.789-01"})
    >>> print(response.text)

REST endpoints:
    >>> server.run("http", port=3000)
    # GET /api/tools, POST /api {"name": ..., "parameters": {...}}, GET /status
"""

__version__ = "1.0.0"

from .ext.mcp import BigboostServer, HTTPToolServer, MCPServer, create_server
from .foundation.config import BigboostSettings, get_settings
from .foundation.errors import (
    BigboostError,
    DatasetUnavailableError,
    ProviderStatusError,
    RateLimitExceededError,
    StatusCodeCategory,
    TransportError,
    UnknownError,
    ValidationError,
    classify,
    format_error,
    is_error,
)
from .foundation.registry import ToolRegistry, ToolResponse, register_tool
from .io import QueryGateway, validate_tags
from .runtime import RateLimiter, configure_logging, get_logger
from .tools import register_query_tools

__all__ = [
    "__version__",
    # Server
    "create_server", "BigboostServer", "MCPServer", "HTTPToolServer",
    # Config
    "BigboostSettings", "get_settings",
    # Errors
    "BigboostError", "ValidationError", "ProviderStatusError", "RateLimitExceededError",
    "DatasetUnavailableError", "TransportError", "UnknownError",
    "StatusCodeCategory", "classify", "is_error", "format_error",
    # Registry
    "ToolRegistry", "ToolResponse", "register_tool", "register_query_tools",
    # Gateway
    "QueryGateway", "validate_tags", "RateLimiter",
    # Logging
    "configure_logging", "get_logger",
]
