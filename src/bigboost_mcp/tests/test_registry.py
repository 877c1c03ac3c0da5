"""Tests for the tool registry and the registration contract."""

from __future__ import annotations

import orjson
import pydantic
import pytest
from pydantic import BaseModel, Field

from bigboost_mcp.foundation.errors import ProviderStatusError
from bigboost_mcp.foundation.registry import ToolRegistry, ToolResponse, format_response, register_tool
from bigboost_mcp.runtime import BoundLogger
from bigboost_mcp.runtime.observability import MemoryRenderer


class EchoParams(BaseModel):
    text: str = Field(..., min_length=1, description="Text to echo")
    times: int = Field(default=1, ge=1)


async def echo(params: EchoParams) -> dict:
    return {"echo": params.text * params.times}


@pytest.fixture
def registry(log: BoundLogger) -> ToolRegistry:
    reg = ToolRegistry(log=log)
    register_tool(reg, "echo", "Echoes the given text back", EchoParams, echo, category="util")
    return reg


def _body(response: ToolResponse) -> dict:
    assert len(response.content) == 1
    assert response.content[0].type == "text"
    return orjson.loads(response.content[0].text)


# ═════════════════════════════════════════════════════════════════════════════
# Registration
# ═════════════════════════════════════════════════════════════════════════════


def test_register_and_lookup(registry: ToolRegistry) -> None:
    assert "echo" in registry
    assert len(registry) == 1
    assert registry["echo"].metadata.category == "util"
    assert registry.get("missing") is None
    assert [t.name for t in registry] == ["echo"]


def test_duplicate_name_rejected(registry: ToolRegistry) -> None:
    with pytest.raises(ValueError, match="already registered"):
        register_tool(registry, "echo", "Another echo implementation", EchoParams, echo)


def test_short_description_rejected(registry: ToolRegistry) -> None:
    with pytest.raises(pydantic.ValidationError):
        register_tool(registry, "short", "Too short", EchoParams, echo)


def test_list_tools_filters_by_category(registry: ToolRegistry) -> None:
    register_tool(registry, "echo2", "Echoes the text twice over", EchoParams, echo, category="other")

    assert [m.name for m in registry.list_tools()] == ["echo", "echo2"]
    assert [m.name for m in registry.list_tools("other")] == ["echo2"]


def test_unregister_and_clear(registry: ToolRegistry) -> None:
    assert registry.unregister("echo") is True
    assert registry.unregister("echo") is False

    register_tool(registry, "echo", "Echoes the given text back", EchoParams, echo)
    registry.clear()
    assert len(registry) == 0


def test_input_schema_strips_titles(registry: ToolRegistry) -> None:
    schema = registry["echo"].input_schema()

    assert "title" not in schema
    assert schema["required"] == ["text"]
    assert schema["properties"]["text"] == {"type": "string", "minLength": 1, "description": "Text to echo"}


# ═════════════════════════════════════════════════════════════════════════════
# Invocation Contract
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_success_is_formatted_as_text(registry: ToolRegistry) -> None:
    response = await registry.invoke("echo", {"text": "ab", "times": 2})

    assert response.is_error is False
    assert _body(response) == {"echo": "abab"}


@pytest.mark.asyncio
async def test_invalid_arguments_become_validation_error(registry: ToolRegistry) -> None:
    response = await registry.invoke("echo", {"times": 0})

    assert response.is_error is True
    fields = {f["field"] for f in _body(response)["error"]["fields"]}
    assert fields == {"text", "times"}


@pytest.mark.asyncio
async def test_missing_arguments(registry: ToolRegistry) -> None:
    response = await registry.invoke("echo")
    assert response.is_error is True


@pytest.mark.parametrize("arguments", [["text", "x"], "text=x", 42])
@pytest.mark.asyncio
async def test_non_mapping_arguments_become_validation_error(registry: ToolRegistry, arguments: object) -> None:
    response = await registry.invoke("echo", arguments)  # type: ignore[arg-type]

    assert response.is_error is True
    assert "fields" in _body(response)["error"]


@pytest.mark.asyncio
async def test_unknown_tool(registry: ToolRegistry) -> None:
    response = await registry.invoke("nope", {})

    assert response.is_error is True
    assert _body(response) == {"error": {"message": "Ferramenta 'nope' não encontrada"}}


@pytest.mark.asyncio
async def test_taxonomy_error_is_formatted_and_logged(log: BoundLogger, logs: MemoryRenderer) -> None:
    async def failing(params: EchoParams) -> dict:
        raise ProviderStatusError(-1001, "Login inválido")

    registry = ToolRegistry(log=log)
    register_tool(registry, "failing", "Always fails at the provider", EchoParams, failing)

    response = await registry.invoke("failing", {"text": "x"})

    assert _body(response) == {"error": {"code": -1001, "message": "Login inválido", "category": "LOGIN"}}
    assert "tool failed" in logs.events("warning")


@pytest.mark.asyncio
async def test_unexpected_exception_never_escapes(log: BoundLogger, logs: MemoryRenderer) -> None:
    async def broken(params: EchoParams) -> dict:
        raise KeyError("missing")

    registry = ToolRegistry(log=log)
    register_tool(registry, "broken", "Raises a programming error", EchoParams, broken)

    response = await registry.invoke("broken", {"text": "x"})

    assert response.is_error is True
    assert _body(response) == {"error": {"message": "'missing'"}}
    entry = next(e for e in logs.entries if e.level == "error")
    assert entry.context["tool"] == "broken"
    assert "KeyError" in entry.context["exc_info"]


@pytest.mark.asyncio
async def test_unserializable_result_is_reported(log: BoundLogger) -> None:
    async def opaque(params: EchoParams) -> object:
        return object()

    registry = ToolRegistry(log=log)
    register_tool(registry, "opaque", "Returns something unrenderable", EchoParams, opaque)

    response = await registry.invoke("opaque", {"text": "x"})

    assert response.is_error is True
    assert "error" in _body(response)


# ═════════════════════════════════════════════════════════════════════════════
# Response Envelope
# ═════════════════════════════════════════════════════════════════════════════


def test_format_response_dumps_models() -> None:
    content = format_response({"params": EchoParams(text="a"), "tags": ("x",)})
    assert orjson.loads(content.text) == {"params": {"text": "a", "times": 1}, "tags": ["x"]}


def test_response_serializes_error_flag_alias() -> None:
    response = ToolResponse(content=[format_response({"ok": True})], is_error=False)
    dumped = response.model_dump(by_alias=True)

    assert dumped["isError"] is False
    assert dumped["content"][0]["type"] == "text"


# ═════════════════════════════════════════════════════════════════════════════
# Log Scoping
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_handler_logs_carry_tool_name(log: BoundLogger, logs: MemoryRenderer) -> None:
    """Test loggers the handler owns pick up the invoked tool's name."""
    other = BoundLogger(context={"logger": "gateway"}, _renderer=logs)

    async def chatty(params: EchoParams) -> dict:
        other.info("inside handler")
        return {}

    registry = ToolRegistry(log=log)
    register_tool(registry, "chatty", "Logs from its own logger", EchoParams, chatty)

    await registry.invoke("chatty", {"text": "x"})
    other.info("after invocation")

    inside, after = (next(e for e in logs.entries if e.event == ev) for ev in ("inside handler", "after invocation"))
    assert inside.context == {"logger": "gateway", "tool": "chatty"}
    assert "tool" not in after.context
