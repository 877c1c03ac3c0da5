"""Query gateway - the single path from a tool to the Bigboost API.

Each call runs the same pipeline:

1. Admission through the shared ``RateLimiter``
2. Payload assembly, merging validated caller tags as ``Tags``
3. HTTP POST to the provider endpoint
4. Response inspection: dataset entitlement first, then status codes
5. Raw provider body returned unchanged

Failures surface as ``BigboostError`` variants; anything else (programming
errors) propagates untouched.

Example:
    >>> gateway = QueryGateway.from_settings(get_settings())
    >>> body = await gateway.execute_query("/pessoas", {"q": "doc{12345678901}", "Datasets": "basic_data"})
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from bigboost_mcp.foundation.errors import (
    RateLimitExceededError,
    StatusEntry,
    TransportError,
    check_dataset_availability,
    process_status_codes,
)
from bigboost_mcp.runtime import BoundLogger, RateLimiter, get_logger

from .tags import validate_tags

if TYPE_CHECKING:
    from bigboost_mcp.foundation.config import BigboostSettings

PROVIDER_RETRY_AFTER_MS = 60_000
NO_RESPONSE_STATUS = 500


def _status_items(body: Mapping[str, Any]) -> list[tuple[object, str | None]]:
    """Raw status items paired with the dataset implied by their position."""
    items: list[tuple[object, str | None]] = []
    if isinstance(listed := body.get("status"), list):
        items.extend((entry, None) for entry in listed)
    match body.get("Status"):
        case dict() as per_dataset:
            for dataset, entries in per_dataset.items():
                for entry in entries if isinstance(entries, list) else [entries]:
                    items.append((entry, str(dataset)))
        case list() as listed_upper:
            items.extend((entry, None) for entry in listed_upper)
    return items


def extract_statuses(body: object, *, log: BoundLogger | None = None) -> list[StatusEntry]:
    """Normalise the provider's status report into ``StatusEntry`` values.

    Handles the ``status`` list form and the per-dataset ``Status`` mapping.
    Items without an integer code are skipped.
    """
    if not isinstance(body, Mapping):
        return []
    entries: list[StatusEntry] = []
    for raw, dataset in _status_items(body):
        try:
            entry = StatusEntry.model_validate(raw)
        except PydanticValidationError:
            if log:
                log.debug("ignoring malformed status entry", entry=repr(raw))
            continue
        if dataset is not None and entry.dataset is None:
            entry = entry.model_copy(update={"dataset": dataset})
        entries.append(entry)
    return entries


def _upstream_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, Mapping):
        for key in ("message", "Message"):
            if isinstance(msg := data.get(key), str) and msg:
                return msg
    return f"Request failed with status code {response.status_code}"


def _retry_after_ms(response: httpx.Response) -> int:
    header = response.headers.get("Retry-After", "")
    seconds = int(header) if header.isdigit() else 0
    return seconds * 1000 if seconds > 0 else PROVIDER_RETRY_AFTER_MS


class QueryGateway:
    """Orchestrates one outbound provider call per ``execute_query``.

    The gateway owns no global state: the rate limiter, HTTP client and
    logger are injected by the composition root.
    """

    __slots__ = ("_client", "_limiter", "_log")

    def __init__(
        self,
        client: httpx.AsyncClient,
        limiter: RateLimiter,
        *,
        log: BoundLogger | None = None,
    ) -> None:
        self._client = client
        self._limiter = limiter
        self._log = log or get_logger("bigboost.gateway")

    @classmethod
    def from_settings(
        cls,
        settings: BigboostSettings,
        *,
        limiter: RateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        log: BoundLogger | None = None,
    ) -> QueryGateway:
        """Build a gateway with an httpx client configured for the provider."""
        client = httpx.AsyncClient(
            base_url=settings.http.base_url,
            headers={
                "accept": "application/json",
                "content-type": "application/json",
                "user-agent": settings.http.user_agent,
                **settings.auth.headers(),
            },
            timeout=settings.http.timeout,
            transport=transport,
        )
        return cls(client, limiter or RateLimiter.from_settings(settings.rate_limit), log=log)

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    async def execute_query(
        self,
        endpoint: str,
        payload: Mapping[str, Any],
        tags: Mapping[str, str] | None = None,
    ) -> Any:
        """Run a provider query and return the raw response body.

        Args:
            endpoint: Provider path, e.g. ``/pessoas``
            payload: Query body (``q``, ``Datasets``, optional ``Limit``/``dateformat``)
            tags: Optional caller tags attached for traceability

        Raises:
            RateLimitExceededError: local bucket empty, or provider answered 429
            ValidationError: tags violate provider rules
            DatasetUnavailableError: caller not entitled to a requested dataset
            ProviderStatusError: provider reported a negative status code
            TransportError: non-2xx answer or network failure
        """
        if wait_ms := self._limiter.acquire():
            self._log.warning("local rate limit reached", endpoint=endpoint, wait_ms=wait_ms)
            raise RateLimitExceededError(wait_ms)

        body = dict(payload)
        if tags is not None:
            body["Tags"] = validate_tags(tags)

        log = self._log.bind(endpoint=endpoint, datasets=body.get("Datasets"))
        start = time.perf_counter()
        try:
            response = await self._client.post(endpoint, json=body)
        except httpx.RequestError as e:
            log.error("provider unreachable", error=str(e) or type(e).__name__)
            raise TransportError(NO_RESPONSE_STATUS, str(e) or type(e).__name__) from e

        duration_ms = round((time.perf_counter() - start) * 1000, 1)
        if response.status_code == 429:
            log.warning("provider rate limit reached", duration_ms=duration_ms)
            raise RateLimitExceededError(_retry_after_ms(response))
        if not response.is_success:
            log.warning("provider error response", status=response.status_code, duration_ms=duration_ms)
            raise TransportError(response.status_code, _upstream_message(response))

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(response.status_code, "Resposta inválida do provedor (JSON malformado)") from e

        statuses = extract_statuses(data, log=log)
        check_dataset_availability(statuses)
        process_status_codes(statuses)

        log.info("provider query completed", status=response.status_code, duration_ms=duration_ms)
        return data

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> QueryGateway:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()
