"""Central registry for tool discovery and invocation.

The registry provides:
- Tool registration and lookup by name
- Schema-validated invocation that always yields a content envelope
- JSON schemas for protocol adapters

Every failure raised while validating arguments or running a handler is
caught here, logged, and rendered through ``format_error``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from bigboost_mcp.foundation.content import ToolResponse, format_response
from bigboost_mcp.foundation.errors import BigboostError, UnknownError, ValidationError, format_error
from bigboost_mcp.runtime import BoundLogger, get_logger, log_context

TParams = TypeVar("TParams", bound=BaseModel)
Handler = Callable[[TParams], Awaitable[object]]


class ToolMetadata(BaseModel):
    """Metadata describing a tool.

    Attributes:
        name: Unique identifier exposed to protocol callers (e.g. "consultaPessoa")
        description: What the tool does (shown to the model for selection)
        category: Grouping category (e.g. "pessoas", "empresas")
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., pattern=r"^[A-Za-z][A-Za-z0-9_]*$")
    description: str = Field(..., min_length=10)
    category: str = Field(default="consulta")


@dataclass(frozen=True, slots=True)
class RegisteredTool(Generic[TParams]):
    """A tool bound to its params schema and async handler."""

    metadata: ToolMetadata
    params_schema: type[TParams]
    handler: Handler[TParams]
    log: BoundLogger = field(default_factory=lambda: get_logger("bigboost.registry"))

    @property
    def name(self) -> str:
        return self.metadata.name

    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the params model with pydantic titles stripped."""
        schema = self.params_schema.model_json_schema()
        schema.pop("title", None)
        for prop in schema.get("properties", {}).values():
            prop.pop("title", None)
        return schema

    async def invoke(self, arguments: Mapping[str, Any] | None = None) -> ToolResponse:
        """Validate arguments, run the handler and wrap the outcome. Never raises.

        Everything logged while the handler runs carries ``tool=<name>``.
        """
        with log_context(tool=self.name):
            return await self._invoke(arguments)

    async def _invoke(self, arguments: object) -> ToolResponse:
        log = self.log
        if arguments is None:
            arguments = {}
        try:
            params = self.params_schema.model_validate(dict(arguments) if isinstance(arguments, Mapping) else arguments)
        except pydantic.ValidationError as e:
            err = ValidationError.from_pydantic(e)
            log.warning("invalid parameters", error=err.message)
            return ToolResponse(content=[format_error(err)], is_error=True)

        try:
            result = await self.handler(params)
            content = format_response(result)
        except BigboostError as e:
            log.warning("tool failed", kind=str(e.kind), error=e.message)
            return ToolResponse(content=[format_error(e)], is_error=True)
        except Exception as e:
            log.exception("tool raised unexpectedly", error=str(e) or type(e).__name__)
            return ToolResponse(content=[format_error(e)], is_error=True)

        log.debug("tool completed")
        return ToolResponse(content=[content])


class ToolRegistry:
    """Central registry for all available tools.

    Example:
        >>> registry = ToolRegistry()
        >>> register_tool(registry, "consultaPessoa", "Consulta dados de pessoa", CpfParams, handler)
        >>> response = await registry.invoke("consultaPessoa", {"cpf": "123.456.789-01"})
        >>> response.content[0].text
    """

    __slots__ = ("_tools", "_log")

    def __init__(self, *, log: BoundLogger | None = None) -> None:
        self._tools: dict[str, RegisteredTool[Any]] = {}
        self._log = log or get_logger("bigboost.registry")

    @property
    def log(self) -> BoundLogger:
        return self._log

    def register(self, tool: RegisteredTool[Any]) -> None:
        """Register a tool. Raises ValueError on duplicate names."""
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' already registered. Use unregister() first.")
        self._tools[tool.name] = tool
        self._log.debug("tool registered", tool=tool.name, category=tool.metadata.category)

    def unregister(self, name: str) -> bool:
        """Remove a tool by name. Returns True if found."""
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> RegisteredTool[Any] | None:
        return self._tools.get(name)

    def list_tools(self, category: str | None = None) -> list[ToolMetadata]:
        """Metadata of registered tools, optionally filtered by category."""
        return [t.metadata for t in self._tools.values() if category is None or t.metadata.category == category]

    def clear(self) -> None:
        self._tools.clear()

    async def invoke(self, name: str, arguments: Mapping[str, Any] | None = None) -> ToolResponse:
        """Invoke a tool by name. Unknown names yield a formatted error, never an exception."""
        if (tool := self._tools.get(name)) is None:
            self._log.warning("unknown tool requested", tool=name)
            return ToolResponse(content=[format_error(UnknownError(f"Ferramenta '{name}' não encontrada"))], is_error=True)
        return await tool.invoke(arguments)

    def __getitem__(self, name: str) -> RegisteredTool[Any]:
        """Get tool by name, raises KeyError if not found."""
        return self._tools[name]

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[RegisteredTool[Any]]:
        return iter(self._tools.values())

    def __repr__(self) -> str:
        return f"ToolRegistry(tools={list(self._tools)})"


def register_tool(
    registry: ToolRegistry,
    name: str,
    description: str,
    params_schema: type[TParams],
    handler: Handler[TParams],
    *,
    category: str = "consulta",
    log: BoundLogger | None = None,
) -> RegisteredTool[TParams]:
    """Wrap ``handler`` so its result or failure always becomes text content, and register it.

    Raises:
        ValueError: name already registered
        pydantic.ValidationError: invalid name or a description under 10 characters
    """
    tool = RegisteredTool(
        metadata=ToolMetadata(name=name, description=description, category=category),
        params_schema=params_schema,
        handler=handler,
        log=log or registry.log,
    )
    registry.register(tool)
    return tool
