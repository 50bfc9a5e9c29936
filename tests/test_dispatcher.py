"""Tests for dispatch, response classification and the 400 fallback."""

import time

import httpx
import numpy as np
import pytest

from tourboard.config import EndpointConfig
from tourboard.dispatcher import (
    Dispatcher,
    DispatchStatus,
    DispatchTransportError,
    FailureReason,
    build_fallback_text,
)
from tourboard.grid import sanitize
from tourboard.layout import HeaderComposer, LineFormatter
from tourboard.validation import GridValidationError


@pytest.fixture
def grid() -> np.ndarray:
    return sanitize(
        [
            HeaderComposer().compose_header("STAGE 12"),
            LineFormatter().format("1. POGACAR"),
        ]
    )


@pytest.mark.asyncio
async def test_success_posts_grid_with_key_header(make_dispatcher, grid):
    dispatcher, endpoint = make_dispatcher([200])

    outcome = await dispatcher.dispatch(grid)

    assert outcome.status is DispatchStatus.SUCCESS
    assert outcome.ok
    assert outcome.response == {"status": 200}
    assert len(endpoint.requests) == 1

    request = endpoint.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://board.test/"
    assert request.headers["X-Vestaboard-Read-Write-Key"] == "secret-key"
    assert endpoint.bodies[0] == grid.tolist()


@pytest.mark.asyncio
async def test_304_is_unchanged_success(make_dispatcher, grid):
    dispatcher, endpoint = make_dispatcher([304])

    outcome = await dispatcher.dispatch(grid)

    assert outcome.status is DispatchStatus.UNCHANGED
    assert outcome.ok and outcome.unchanged
    assert outcome.reason is None
    assert len(endpoint.requests) == 1


@pytest.mark.asyncio
async def test_503_fails_without_retry(make_dispatcher, grid):
    dispatcher, endpoint = make_dispatcher([503])

    outcome = await dispatcher.dispatch(grid)

    assert outcome.status is DispatchStatus.FAILED
    assert outcome.reason is FailureReason.SERVER_THROTTLED
    assert outcome.status_code == 503
    assert len(endpoint.requests) == 1


@pytest.mark.asyncio
async def test_400_triggers_exactly_one_fallback(make_dispatcher, grid):
    dispatcher, endpoint = make_dispatcher([400, 200])

    outcome = await dispatcher.dispatch(grid)

    assert outcome.status is DispatchStatus.SUCCESS
    assert outcome.fallback_used
    assert len(endpoint.requests) == 2
    assert endpoint.bodies[1] == {"text": "STAGE 12\n" + time.strftime("%H:%M:%S", time.localtime(0.0))}


@pytest.mark.asyncio
async def test_failed_fallback_is_not_retried(make_dispatcher, grid):
    dispatcher, endpoint = make_dispatcher([400, 400, 200])

    outcome = await dispatcher.dispatch(grid)

    assert outcome.status is DispatchStatus.FAILED
    assert outcome.reason is FailureReason.FALLBACK_FAILED
    assert outcome.fallback_used
    assert len(endpoint.requests) == 2
    assert outcome.to_dict() == {
        "status": "failed",
        "reason": "fallback_failed",
        "status_code": 400,
        "detail": "Fallback HTTP 400",
        "fallback_used": True,
    }


@pytest.mark.asyncio
async def test_fallback_acquires_rate_limiter(make_dispatcher, grid, fake_clock):
    dispatcher, endpoint = make_dispatcher([400, 200])

    await dispatcher.dispatch(grid)

    first, second = endpoint.request_times
    assert second - first >= 16.0


@pytest.mark.asyncio
async def test_400_on_test_dispatch_has_no_fallback(make_dispatcher, grid):
    dispatcher, endpoint = make_dispatcher([400])

    outcome = await dispatcher.dispatch(grid, is_test=True)

    assert outcome.status is DispatchStatus.FAILED
    assert outcome.reason is FailureReason.PAYLOAD_REJECTED
    assert not outcome.fallback_used
    assert len(endpoint.requests) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 404, 429, 500])
async def test_other_errors_fail_without_retry(make_dispatcher, grid, status):
    dispatcher, endpoint = make_dispatcher([status])

    outcome = await dispatcher.dispatch(grid)

    assert outcome.status is DispatchStatus.FAILED
    assert outcome.reason is FailureReason.HTTP_ERROR
    assert outcome.status_code == status
    assert len(endpoint.requests) == 1


@pytest.mark.asyncio
async def test_malformed_grid_never_reaches_network(make_dispatcher):
    dispatcher, endpoint = make_dispatcher()

    with pytest.raises(GridValidationError):
        await dispatcher.dispatch([[0] * 22] * 5)
    with pytest.raises(GridValidationError):
        await dispatcher.dispatch(np.full((6, 22), 80))

    assert endpoint.requests == []


@pytest.mark.asyncio
async def test_transport_error_raises(rate_limiter, endpoint_config, grid):
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
    dispatcher = Dispatcher(client, rate_limiter, endpoint_config)

    with pytest.raises(DispatchTransportError):
        await dispatcher.dispatch(grid)


@pytest.mark.asyncio
async def test_transport_error_during_fallback_is_failure(rate_limiter, endpoint_config, grid):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(400)
        raise httpx.ReadTimeout("timed out", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    dispatcher = Dispatcher(client, rate_limiter, endpoint_config)

    outcome = await dispatcher.dispatch(grid)

    assert outcome.reason is FailureReason.FALLBACK_FAILED
    assert len(calls) == 2


def test_api_key_from_environment(monkeypatch):
    monkeypatch.setenv("BOARD_KEY_TEST", "from-env")
    endpoint = EndpointConfig(api_key="from-file", api_key_env="BOARD_KEY_TEST")
    assert endpoint.resolve_api_key() == "from-env"

    monkeypatch.delenv("BOARD_KEY_TEST")
    assert endpoint.resolve_api_key() == "from-file"


def test_build_fallback_text_uses_header_and_first_line(grid):
    text = build_fallback_text(grid, "{header} / {first_line}")
    assert text == "STAGE 12 / 1. POGACAR"
