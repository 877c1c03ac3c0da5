"""I/O - provider gateway and request payload validation."""

from .gateway import PROVIDER_RETRY_AFTER_MS, QueryGateway, extract_statuses
from .tags import MAX_TAGS, Tags, validate_tags

__all__ = [
    "QueryGateway", "extract_statuses", "PROVIDER_RETRY_AFTER_MS",
    "validate_tags", "Tags", "MAX_TAGS",
]
