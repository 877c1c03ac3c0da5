"""Unified error handling for provider queries.

- StatusCodeCategory / classify / is_error: provider status code bands
- BigboostError and its variants: the closed error taxonomy
- process_status_codes / check_dataset_availability: response inspection
- format_error: render any raised value as protocol text content
"""

from .codes import StatusCodeCategory, classify, is_error
from .errors import (
    DATASET_UNAVAILABLE,
    UNKNOWN_DATASET,
    UNKNOWN_ERROR_MESSAGE,
    BigboostError,
    DatasetUnavailableError,
    ErrorKind,
    ProviderStatusError,
    RateLimitExceededError,
    TransportError,
    UnknownError,
    ValidationError,
    check_dataset_availability,
    process_status_codes,
    to_bigboost_error,
)
from .formatting import error_payload, format_error
from .types import FieldIssue, JsonDict, StatusEntry

__all__ = [
    # Status codes
    "StatusCodeCategory", "classify", "is_error",
    # Taxonomy
    "BigboostError", "ErrorKind", "ValidationError", "ProviderStatusError",
    "RateLimitExceededError", "DatasetUnavailableError", "TransportError", "UnknownError",
    "to_bigboost_error",
    # Response inspection
    "process_status_codes", "check_dataset_availability",
    "DATASET_UNAVAILABLE", "UNKNOWN_DATASET", "UNKNOWN_ERROR_MESSAGE",
    # Formatting
    "format_error", "error_payload",
    # Types
    "StatusEntry", "FieldIssue", "JsonDict",
]
