"""Bridge between registered tools and MCP tool primitives.

FastMCP derives a tool's input schema from the handler's signature and
rejects ``**kwargs`` handlers, so the handler is given a synthetic
keyword-only signature built from the params model.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Annotated, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from bigboost_mcp.foundation.registry import RegisteredTool, ToolRegistry


def tool_to_handler(tool: RegisteredTool[Any]) -> Callable[..., Awaitable[str]]:
    """Convert a registered tool to an MCP-compatible handler.

    The handler forwards its keyword arguments to ``tool.invoke`` and
    returns the text of the resulting content envelope. It never raises.
    """

    async def handler(**kwargs: Any) -> str:
        response = await tool.invoke(kwargs)
        return response.text

    annotations = _extract_annotations(tool.params_schema)
    handler.__name__ = tool.name
    handler.__doc__ = tool.metadata.description
    handler.__annotations__ = {**annotations, "return": str}
    handler.__signature__ = _signature(tool.params_schema, annotations)  # type: ignore[attr-defined]
    return handler


def _extract_annotations(schema: type[BaseModel]) -> dict[str, Any]:
    """Extract field annotations from the params model, validators stripped.

    Field descriptions are carried over so they reach the published schema.
    """
    return {
        name: Annotated[info.annotation or str, Field(description=info.description)] if info.description
        else info.annotation or str
        for name, info in schema.model_fields.items()
    }


def _signature(schema: type[BaseModel], annotations: dict[str, Any]) -> inspect.Signature:
    params = [
        inspect.Parameter(
            name,
            inspect.Parameter.KEYWORD_ONLY,
            default=inspect.Parameter.empty if info.is_required() else info.default,
            annotation=annotations[name],
        )
        for name, info in schema.model_fields.items()
    ]
    return inspect.Signature(params, return_annotation=str)


def registry_to_handlers(registry: ToolRegistry) -> dict[str, Callable[..., Awaitable[str]]]:
    """Convert all registry tools to MCP handlers keyed by tool name."""
    return {tool.name: tool_to_handler(tool) for tool in registry}
