"""Tests for the query gateway against a fake provider."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from bigboost_mcp.foundation.errors import (
    DatasetUnavailableError,
    ProviderStatusError,
    RateLimitExceededError,
    StatusCodeCategory,
    TransportError,
    ValidationError,
)
from bigboost_mcp.io import QueryGateway, extract_statuses
from bigboost_mcp.runtime.observability import MemoryRenderer
from bigboost_mcp.tests.conftest import FakeProvider

PAYLOAD = {"q": "doc{12345678901}", "Datasets": "basic_data"}
MakeGateway = Callable[..., QueryGateway]


# ═════════════════════════════════════════════════════════════════════════════
# Success Path
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_returns_raw_body(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    """Test the provider body comes back unmodified."""
    body = {"Result": [{"BasicData": {"Name": "FULANO"}}], "Status": {"basic_data": [{"Code": 0, "Message": "OK"}]},
            "QueryId": "abc"}
    provider.body = body

    result = await make_gateway(provider).execute_query("/pessoas", PAYLOAD)

    assert result == body


@pytest.mark.asyncio
async def test_posts_payload_with_auth_headers(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    await make_gateway(provider).execute_query("/pessoas", PAYLOAD)

    request = provider.last
    assert request.method == "POST"
    assert str(request.url) == "https://provider.test/pessoas"
    assert request.headers["AccessToken"] == "test-token"
    assert request.headers["TokenId"] == "test-id"
    assert request.headers["accept"] == "application/json"
    assert provider.last_json == PAYLOAD


@pytest.mark.asyncio
async def test_merges_tags(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    await make_gateway(provider).execute_query("/pessoas", PAYLOAD, {"cliente": "acme"})

    assert provider.last_json == {**PAYLOAD, "Tags": {"cliente": "acme"}}


@pytest.mark.asyncio
async def test_invalid_tags_never_reach_provider(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    with pytest.raises(ValidationError):
        await make_gateway(provider).execute_query("/pessoas", PAYLOAD, {"centro-custo": "x"})

    assert provider.requests == []


@pytest.mark.asyncio
async def test_logs_completed_query(provider: FakeProvider, make_gateway: MakeGateway, logs: MemoryRenderer) -> None:
    await make_gateway(provider).execute_query("/pessoas", PAYLOAD)

    entry = next(e for e in logs.entries if e.event == "provider query completed")
    assert entry.context["endpoint"] == "/pessoas"
    assert entry.context["datasets"] == "basic_data"


# ═════════════════════════════════════════════════════════════════════════════
# Provider Status Inspection
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_dataset_unavailable_wins_over_status_code(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    """Test the sentinel is reported as an entitlement gap, not a generic status error."""
    provider.body = {"status": [{"code": -1500, "message": "DATASET UNAVAILABLE", "dataset": "basic_data"}]}

    with pytest.raises(DatasetUnavailableError) as exc_info:
        await make_gateway(provider).execute_query("/pessoas", PAYLOAD)

    assert exc_info.value.dataset == "basic_data"
    assert '"basic_data"' in exc_info.value.message


@pytest.mark.asyncio
async def test_dataset_unavailable_in_per_dataset_status(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    provider.body = {"Status": {"registration_data": [{"Code": -1500, "Message": "DATASET UNAVAILABLE"}]}}

    with pytest.raises(DatasetUnavailableError) as exc_info:
        await make_gateway(provider).execute_query("/empresas", PAYLOAD)

    assert exc_info.value.dataset == "registration_data"


@pytest.mark.asyncio
async def test_negative_status_raises_provider_error(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    provider.body = {"Status": {"basic_data": [{"Code": -101, "Message": "Documento inválido"}]}}

    with pytest.raises(ProviderStatusError) as exc_info:
        await make_gateway(provider).execute_query("/pessoas", PAYLOAD)

    err = exc_info.value
    assert (err.code, err.message, err.category, err.dataset) == (
        -101, "Documento inválido", StatusCodeCategory.INPUT_DATA, "basic_data",
    )


@pytest.mark.asyncio
async def test_null_status_message_still_raises(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    """Test a null message does not hide the error code."""
    provider.body = {"status": [{"code": -1200, "message": None, "dataset": "basic_data"}]}

    with pytest.raises(ProviderStatusError) as exc_info:
        await make_gateway(provider).execute_query("/pessoas", PAYLOAD)

    assert (exc_info.value.code, exc_info.value.message, exc_info.value.dataset) == (-1200, "", "basic_data")


def test_extract_statuses_handles_both_shapes() -> None:
    body = {
        "status": [{"code": 0, "message": "OK", "dataset": "a"}],
        "Status": {"b": [{"Code": -1001, "Message": "login"}], "c": {"Code": 1, "Message": "x"}},
    }

    entries = extract_statuses(body)

    assert [(e.code, e.dataset) for e in entries] == [(0, "a"), (-1001, "b"), (1, "c")]


@pytest.mark.parametrize("body", [[], "text", None, {"Status": "weird"}, {"status": {"code": -1}}])
def test_extract_statuses_ignores_unexpected_shapes(body: object) -> None:
    assert extract_statuses(body) == []


def test_extract_statuses_skips_entries_without_code() -> None:
    body = {"status": [{"message": "sem código"}, {"code": "-1", "message": "texto"}, {"code": -101, "message": "m"}]}

    assert [e.code for e in extract_statuses(body)] == [-101]


# ═════════════════════════════════════════════════════════════════════════════
# Transport Failures
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_provider_429_uses_fallback_wait(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    provider.status_code = 429

    with pytest.raises(RateLimitExceededError) as exc_info:
        await make_gateway(provider).execute_query("/pessoas", PAYLOAD)

    assert exc_info.value.wait_time_ms == 60_000
    assert exc_info.value.message.endswith("60 segundos.")


@pytest.mark.asyncio
async def test_provider_429_honors_retry_after(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    provider.status_code, provider.headers = 429, {"Retry-After": "5"}

    with pytest.raises(RateLimitExceededError) as exc_info:
        await make_gateway(provider).execute_query("/pessoas", PAYLOAD)

    assert exc_info.value.wait_time_ms == 5_000


@pytest.mark.parametrize("retry_after", ["0", "soon", ""])
@pytest.mark.asyncio
async def test_provider_429_ignores_unusable_retry_after(
    provider: FakeProvider, make_gateway: MakeGateway, retry_after: str,
) -> None:
    provider.status_code, provider.headers = 429, {"Retry-After": retry_after}

    with pytest.raises(RateLimitExceededError) as exc_info:
        await make_gateway(provider).execute_query("/pessoas", PAYLOAD)

    assert exc_info.value.wait_time_ms == 60_000


@pytest.mark.asyncio
async def test_http_error_carries_upstream_message(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    provider.status_code, provider.body = 500, {"message": "Falha interna"}

    with pytest.raises(TransportError) as exc_info:
        await make_gateway(provider).execute_query("/pessoas", PAYLOAD)

    assert (exc_info.value.status, exc_info.value.upstream) == (500, "Falha interna")
    assert exc_info.value.message == "Erro na consulta (500): Falha interna"


@pytest.mark.asyncio
async def test_http_error_without_body(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    provider.status_code, provider.body = 404, b""

    with pytest.raises(TransportError) as exc_info:
        await make_gateway(provider).execute_query("/pessoas", PAYLOAD)

    assert exc_info.value.status == 404
    assert exc_info.value.upstream == "Request failed with status code 404"


@pytest.mark.asyncio
async def test_network_error_becomes_transport_error(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    provider.error = httpx.ConnectError("conexão recusada")

    with pytest.raises(TransportError) as exc_info:
        await make_gateway(provider).execute_query("/pessoas", PAYLOAD)

    assert (exc_info.value.status, exc_info.value.upstream) == (500, "conexão recusada")


@pytest.mark.asyncio
async def test_timeout_becomes_transport_error(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    provider.error = httpx.ReadTimeout("")

    with pytest.raises(TransportError) as exc_info:
        await make_gateway(provider).execute_query("/pessoas", PAYLOAD)

    assert exc_info.value.upstream == "ReadTimeout"


@pytest.mark.asyncio
async def test_malformed_json_body(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    provider.body = b"<html>not json</html>"

    with pytest.raises(TransportError) as exc_info:
        await make_gateway(provider).execute_query("/pessoas", PAYLOAD)

    assert exc_info.value.status == 200


@pytest.mark.asyncio
async def test_programming_errors_propagate(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    provider.error = RuntimeError("bug")

    with pytest.raises(RuntimeError, match="bug"):
        await make_gateway(provider).execute_query("/pessoas", PAYLOAD)


# ═════════════════════════════════════════════════════════════════════════════
# Local Admission
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_local_rate_limit_blocks_before_transport(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    gateway = make_gateway(provider, max_requests=1, window_ms=10_000)

    await gateway.execute_query("/pessoas", PAYLOAD)
    with pytest.raises(RateLimitExceededError) as exc_info:
        await gateway.execute_query("/pessoas", PAYLOAD)

    assert exc_info.value.wait_time_ms == 10_000
    assert len(provider.requests) == 1


@pytest.mark.asyncio
async def test_aclose_closes_client(provider: FakeProvider, make_gateway: MakeGateway) -> None:
    async with make_gateway(provider) as gateway:
        await gateway.execute_query("/pessoas", PAYLOAD)

    with pytest.raises(RuntimeError):
        await gateway.execute_query("/pessoas", PAYLOAD)
