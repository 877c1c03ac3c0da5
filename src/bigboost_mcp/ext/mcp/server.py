"""Protocol servers exposing the Bigboost tools.

Provides two adapters over the same ``ToolRegistry``:

1. **FastMCP** - Full MCP protocol (stdio, SSE, streamable HTTP)
2. **HTTP/REST** - Plain JSON endpoints for web backends

Example - MCP over stdio:
    >>> server = create_server(get_settings())
    >>> server.run()

Example - REST endpoints:
    >>> app = create_server(settings).http_server().app  # Starlette ASGI app
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

import uvicorn
from fastmcp import FastMCP
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from bigboost_mcp.foundation.registry import ToolRegistry
from bigboost_mcp.io import QueryGateway
from bigboost_mcp.runtime import BoundLogger, RateLimiter, get_logger
from bigboost_mcp.tools import register_query_tools

from .bridge import tool_to_handler

if TYPE_CHECKING:
    import httpx

    from bigboost_mcp.foundation.config import BigboostSettings

Transport = Literal["stdio", "sse", "streamable-http"]


# ═══════════════════════════════════════════════════════════════════════════════
# Abstract Server Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class ToolServer(ABC):
    """Abstract base for tool server implementations.

    Subclasses implement different transport/protocol adapters over the
    same registry; tool invocation always goes through ``ToolRegistry.invoke``.
    """

    __slots__ = ("_name", "_registry", "_log")

    def __init__(self, name: str, registry: ToolRegistry, *, log: BoundLogger | None = None) -> None:
        self._name = name
        self._registry = registry
        self._log = log or get_logger("bigboost.server", server=name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @abstractmethod
    async def serve(self, **kwargs: Any) -> None:
        """Serve until cancelled or shut down."""
        ...

    def run(self, **kwargs: Any) -> None:
        """Start the server (blocking)."""
        asyncio.run(self.serve(**kwargs))

    def list_tools(self) -> list[dict[str, object]]:
        """List all available tools with their input schemas."""
        return [
            {"name": tool.name, "description": tool.metadata.description, "schema": tool.input_schema()}
            for tool in self._registry
        ]


# ═══════════════════════════════════════════════════════════════════════════════
# FastMCP Adapter (Full MCP Protocol)
# ═══════════════════════════════════════════════════════════════════════════════


class MCPServer(ToolServer):
    """FastMCP-backed server for MCP clients.

    Example:
        >>> server = MCPServer("mcp-server-bigboost", registry)
        >>> server.run(transport="sse", port=8080)
    """

    __slots__ = ("_mcp",)

    def __init__(self, name: str, registry: ToolRegistry, *, log: BoundLogger | None = None) -> None:
        super().__init__(name, registry, log=log)
        self._mcp = FastMCP(self._name)
        self._register_tools()

    def _register_tools(self) -> None:
        for tool in self._registry:
            self._mcp.tool(name=tool.name, description=tool.metadata.description)(tool_to_handler(tool))

    async def serve(
        self,
        transport: Transport = "stdio",
        *,
        host: str = "127.0.0.1",
        port: int = 3000,
    ) -> None:
        """Serve the MCP protocol.

        Args:
            transport: "stdio" (CLI), "sse" (HTTP), "streamable-http"
            host: Host for HTTP transports
            port: Port for HTTP transports
        """
        self._log.info("starting MCP server", transport=transport, tools=len(self._registry))
        if transport == "stdio":
            await self._mcp.run_async()
        else:
            await self._mcp.run_async(transport=transport, host=host, port=port)

    @property
    def fastmcp(self) -> FastMCP:
        """Access underlying FastMCP instance."""
        return self._mcp


# ═══════════════════════════════════════════════════════════════════════════════
# HTTP REST Adapter (Web Backends)
# ═══════════════════════════════════════════════════════════════════════════════


class HTTPToolServer(ToolServer):
    """HTTP/REST server for web backend integration.

    Endpoints:
    - GET  /api/tools → List tools with schemas
    - POST /api       → Invoke tool, body ``{"name": ..., "parameters": {...}}``
    - GET  /status    → Liveness and tool count

    Example:
        >>> server = HTTPToolServer("api", registry)
        >>> server.run(host="0.0.0.0", port=3000)
    """

    __slots__ = ("_app", "_started")

    def __init__(self, name: str, registry: ToolRegistry, *, log: BoundLogger | None = None) -> None:
        super().__init__(name, registry, log=log)
        self._started = time.monotonic()
        self._app = self._create_app()

    def _create_app(self) -> Starlette:
        async def list_tools(request: Request) -> JSONResponse:
            return JSONResponse(self.list_tools())

        async def invoke_tool(request: Request) -> JSONResponse:
            try:
                body = await request.json()
            except ValueError:
                return JSONResponse({"error": "Corpo da requisição inválido"}, status_code=400)
            if not isinstance(body, dict) or not body.get("name"):
                return JSONResponse({"error": "Nome da ferramenta não especificado"}, status_code=400)

            name = str(body["name"])
            if name not in self._registry:
                return JSONResponse({"error": f"Ferramenta '{name}' não encontrada"}, status_code=404)

            params = body.get("parameters")
            response = await self._registry.invoke(name, params if isinstance(params, dict) else {})
            return JSONResponse(response.model_dump(mode="json", by_alias=True))

        async def status(request: Request) -> JSONResponse:
            return JSONResponse({
                "status": "online",
                "toolsCount": len(self._registry),
                "uptime": round(time.monotonic() - self._started, 3),
            })

        routes = [
            Route("/api", invoke_tool, methods=["POST"]),
            Route("/api/tools", list_tools, methods=["GET"]),
            Route("/status", status, methods=["GET"]),
        ]
        return Starlette(routes=routes)

    async def serve(self, host: str = "127.0.0.1", port: int = 3000) -> None:
        """Serve the REST endpoints with uvicorn."""
        self._log.info("starting HTTP server", host=host, port=port, tools=len(self._registry))
        await uvicorn.Server(uvicorn.Config(self._app, host=host, port=port)).serve()

    @property
    def app(self) -> Starlette:
        """Access ASGI app for embedding in larger applications."""
        return self._app


# ═══════════════════════════════════════════════════════════════════════════════
# Composition Root
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True)
class BigboostServer:
    """Wired application: one rate limiter, one gateway, one registry."""

    settings: BigboostSettings
    registry: ToolRegistry
    gateway: QueryGateway
    log: BoundLogger

    def mcp_server(self) -> MCPServer:
        return MCPServer(self.settings.server.name, self.registry, log=self.log)

    def http_server(self) -> HTTPToolServer:
        return HTTPToolServer(self.settings.server.name, self.registry, log=self.log)

    def run(self, transport: str | None = None, *, host: str | None = None, port: int | None = None) -> None:
        """Run with the given transport, falling back to configured values (blocking)."""
        asyncio.run(self.serve(transport, host=host, port=port))

    async def serve(self, transport: str | None = None, *, host: str | None = None, port: int | None = None) -> None:
        """Serve on one event loop; the gateway's HTTP client is closed on the way out."""
        cfg = self.settings.server
        transport = transport or cfg.transport
        host, port = host or cfg.host, port or cfg.port
        async with self.gateway:
            if transport == "http":
                await self.http_server().serve(host=host, port=port)
            else:
                await self.mcp_server().serve(transport=transport, host=host, port=port)  # type: ignore[arg-type]
            self.log.info("server stopped", transport=transport)


def create_server(
    settings: BigboostSettings,
    *,
    limiter: RateLimiter | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    log: BoundLogger | None = None,
) -> BigboostServer:
    """Build the logger, rate limiter, gateway and registry, and register all tools."""
    log = log or get_logger("bigboost", server=settings.server.name)
    gateway = QueryGateway.from_settings(
        settings,
        limiter=limiter or RateLimiter.from_settings(settings.rate_limit),
        transport=transport,
        log=log.bind(component="gateway"),
    )
    registry = ToolRegistry(log=log.bind(component="registry"))
    register_query_tools(registry, gateway)
    log.debug("server composed", tools=len(registry), base_url=settings.http.base_url)
    return BigboostServer(settings=settings, registry=registry, gateway=gateway, log=log)
