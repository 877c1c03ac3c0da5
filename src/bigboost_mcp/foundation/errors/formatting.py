"""Render any raised value as protocol text content.

``format_error`` is the single place errors become caller-visible. It coerces
its input into the taxonomy and matches over the variants.
"""

from __future__ import annotations

from ..content import TextContent, render_json
from .errors import (
    UNKNOWN_ERROR_MESSAGE,
    BigboostError,
    DatasetUnavailableError,
    ProviderStatusError,
    RateLimitExceededError,
    TransportError,
    UnknownError,
    ValidationError,
    to_bigboost_error,
)
from .types import JsonDict


def error_payload(err: BigboostError) -> JsonDict:
    """Build the ``error`` object for a taxonomy variant."""
    match err:
        case ProviderStatusError():
            return {"code": err.code, "message": err.message, "category": str(err.category)}
        case ValidationError():
            return {
                "message": err.message,
                "fields": [{"field": i.field, "message": i.message} for i in err.issues],
            }
        case TransportError():
            return {"message": err.message, "status": err.status}
        case RateLimitExceededError() | DatasetUnavailableError() | UnknownError():
            return {"message": err.message}
        case _:
            return {"message": err.message}


def format_error(value: object) -> TextContent:
    """Render ``{"error": {...}}`` for any raised value. Never raises."""
    try:
        payload = error_payload(to_bigboost_error(value))
        return TextContent(text=render_json({"error": payload}))
    except Exception:
        return TextContent(text=render_json({"error": {"message": UNKNOWN_ERROR_MESSAGE}}))
