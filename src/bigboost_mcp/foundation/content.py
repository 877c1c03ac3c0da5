"""Protocol content shapes and JSON rendering.

Tool results and errors both leave the server as a single ``text`` content
item holding pretty-printed JSON.
"""

from __future__ import annotations

from typing import Literal

import orjson
from pydantic import BaseModel, ConfigDict, Field

_JSON_OPTIONS = orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS


class TextContent(BaseModel):
    """A ``{"type": "text", "text": ...}`` content item."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ToolResponse(BaseModel):
    """Envelope returned for every tool invocation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    content: list[TextContent] = Field(default_factory=list)
    is_error: bool = Field(default=False, serialization_alias="isError")

    @property
    def text(self) -> str:
        """Concatenated text of all content items."""
        return "\n".join(c.text for c in self.content)


def _default(obj: object) -> object:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", by_alias=True)
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def render_json(value: object) -> str:
    """Serialize with 2-space indentation, keeping non-ASCII text as-is."""
    return orjson.dumps(value, default=_default, option=_JSON_OPTIONS).decode()


def format_response(value: object) -> TextContent:
    """Render a successful tool result as text content."""
    return TextContent(text=render_json(value))
