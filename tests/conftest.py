"""Shared fixtures: fake clock, mock endpoint, and wired components."""

import json
from typing import Callable, List

import httpx
import pytest

from tourboard.cache import DispatchCache
from tourboard.config import EndpointConfig, FallbackConfig
from tourboard.dispatcher import Dispatcher
from tourboard.rate_limiter import RateLimiter


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeEndpoint:
    """
    Scripted board endpoint for httpx.MockTransport.

    Responds with the queued status codes in order, then 200.
    """

    def __init__(self, statuses: List[int] = None, clock: Callable[[], float] = None):
        self.statuses = list(statuses or [])
        self.clock = clock
        self.requests: List[httpx.Request] = []
        self.request_times: List[float] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.clock is not None:
            self.request_times.append(self.clock())
        status = self.statuses.pop(0) if self.statuses else 200
        if status == 304:
            return httpx.Response(304)
        return httpx.Response(status, json={"status": status})

    @property
    def bodies(self) -> list:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(fake_clock: FakeClock) -> RateLimiter:
    return RateLimiter(16.0, clock=fake_clock, sleep=fake_clock.sleep)


@pytest.fixture
def endpoint_config() -> EndpointConfig:
    return EndpointConfig(url="https://board.test/", api_key="secret-key", api_key_env="")


@pytest.fixture
def make_dispatcher(rate_limiter, endpoint_config, fake_clock):
    """Factory: dispatcher wired to a FakeEndpoint scripted with statuses."""

    def factory(statuses: List[int] = None, template: str = "{header}\n{time}"):
        endpoint = FakeEndpoint(statuses, clock=fake_clock)
        client = httpx.AsyncClient(transport=httpx.MockTransport(endpoint))
        dispatcher = Dispatcher(
            client=client,
            rate_limiter=rate_limiter,
            endpoint=endpoint_config,
            fallback=FallbackConfig(template=template),
            clock=lambda: 0.0,
        )
        return dispatcher, endpoint

    return factory


@pytest.fixture
def cache(tmp_path) -> DispatchCache:
    return DispatchCache(tmp_path / "cache.json", duration=3600.0)
