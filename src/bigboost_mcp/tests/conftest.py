"""Shared fixtures: fake clock, in-memory logs, dummy credentials, fake provider."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
import orjson
import pytest

from bigboost_mcp.foundation.config import AuthSettings, BigboostSettings, HttpSettings, clear_settings_cache
from bigboost_mcp.io import QueryGateway
from bigboost_mcp.runtime import BoundLogger, RateLimiter
from bigboost_mcp.runtime.observability import MemoryRenderer

BASE_URL = "https://provider.test"


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@dataclass
class FakeProvider:
    """``httpx.MockTransport`` handler answering every request the same way."""

    status_code: int = 200
    body: Any = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    error: Exception | None = None
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, (bytes, str)):
            return httpx.Response(self.status_code, content=self.body, headers=self.headers)
        return httpx.Response(self.status_code, json=self.body, headers=self.headers)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_json(self) -> dict[str, Any]:
        return orjson.loads(self.last.content)


@pytest.fixture(autouse=True)
def _fresh_settings() -> Any:
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def logs() -> MemoryRenderer:
    return MemoryRenderer()


@pytest.fixture
def log(logs: MemoryRenderer) -> BoundLogger:
    return BoundLogger(context={"logger": "test"}, _renderer=logs)


@pytest.fixture
def settings() -> BigboostSettings:
    return BigboostSettings(
        auth=AuthSettings(access_token="test-token", token_id="test-id"),
        http=HttpSettings(base_url=BASE_URL),
    )


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def make_gateway(
    settings: BigboostSettings, clock: FakeClock, log: BoundLogger,
) -> Callable[..., QueryGateway]:
    """Build a gateway wired to a fake provider and the fake clock."""

    def factory(handler: Callable[[httpx.Request], httpx.Response], *, max_requests: int = 100,
                window_ms: int = 60_000) -> QueryGateway:
        limiter = RateLimiter(max_requests=max_requests, window_ms=window_ms, clock=clock)
        return QueryGateway.from_settings(settings, limiter=limiter, transport=httpx.MockTransport(handler), log=log)

    return factory
