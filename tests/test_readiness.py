"""Readiness probing against a mocked HTTP transport."""

import httpx
import pytest

from aidflow_smoke.core.exceptions import ServerNotReadyError
from aidflow_smoke.runtime.readiness import LIVENESS_PATH, is_ready_status, probe_timeout_s, wait_for_server

BASE_URL = "http://localhost:5058"


def transport_returning(*outcomes):
    """Transport answering with the given statuses (or raising exceptions) in order."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        outcome = outcomes[min(len(seen), len(outcomes) - 1)]
        seen.append(str(request.url))
        if outcome == "refused":
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(outcome)

    transport = httpx.MockTransport(handler)
    transport.seen = seen
    return transport


@pytest.mark.parametrize("status, ready", [(200, True), (204, True), (401, True), (404, True), (499, True), (500, False), (503, False)])
def test_ready_status_range(status, ready):
    assert is_ready_status(status) is ready


@pytest.mark.parametrize("timeout_ms, expected", [(60_000, 5.0), (5_000, 5.0), (1_000, 1.0), (150, 0.15)])
def test_probe_timeout_never_exceeds_budget(timeout_ms, expected):
    assert probe_timeout_s(timeout_ms) == pytest.approx(expected)


@pytest.mark.asyncio
async def test_hung_probe_times_out_within_budget():
    read_timeouts = []

    def handler(request: httpx.Request) -> httpx.Response:
        read_timeouts.append(request.extensions["timeout"]["read"])
        raise httpx.ReadTimeout("hung", request=request)

    with pytest.raises(ServerNotReadyError):
        await wait_for_server(BASE_URL, 150, interval_ms=20, transport=httpx.MockTransport(handler))

    assert read_timeouts
    assert all(t == pytest.approx(0.15) for t in read_timeouts)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [200, 401, 404])
async def test_any_client_or_success_status_means_ready(status):
    transport = transport_returning(status)

    await wait_for_server(BASE_URL, 1000, interval_ms=10, transport=transport)

    assert transport.seen == [f"{BASE_URL}{LIVENESS_PATH}"]


@pytest.mark.asyncio
async def test_connection_refused_is_retried():
    transport = transport_returning("refused", "refused", 401)

    await wait_for_server(BASE_URL, 2000, interval_ms=10, transport=transport)

    assert len(transport.seen) == 3


@pytest.mark.asyncio
async def test_server_errors_are_retried():
    transport = transport_returning(503, 200)

    await wait_for_server(BASE_URL, 2000, interval_ms=10, transport=transport)

    assert len(transport.seen) == 2


@pytest.mark.asyncio
async def test_timeout_carries_url_and_budget():
    transport = transport_returning("refused")

    with pytest.raises(ServerNotReadyError) as exc_info:
        await wait_for_server(BASE_URL + "/", 150, interval_ms=20, transport=transport)

    err = exc_info.value
    assert err.url == f"{BASE_URL}{LIVENESS_PATH}"
    assert err.timeout_ms == 150
    assert err.kind == "provisioning"
    assert str(err) == f"Server not ready within 150ms: {BASE_URL}{LIVENESS_PATH}"
