import logging

import httpx

from aidflow_smoke.core.exceptions import PollTimeoutError, ServerNotReadyError
from aidflow_smoke.runtime.polling import poll_until

logger = logging.getLogger(__name__)

LIVENESS_PATH = "/api/auth/me"
MAX_PROBE_TIMEOUT_S = 5.0


def is_ready_status(status: int) -> bool:
    # 401 from the auth route still proves the server accepts connections.
    return 200 <= status < 500


def probe_timeout_s(timeout_ms: int) -> float:
    # A single hung request must not outlive the whole readiness budget.
    return min(MAX_PROBE_TIMEOUT_S, timeout_ms / 1000)


async def wait_for_server(
    base_url: str,
    timeout_ms: int = 60_000,
    *,
    interval_ms: int = 500,
    path: str = LIVENESS_PATH,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """Block until the server answers the liveness route or the budget runs out.

    Args:
        base_url: Origin of the application under test
        timeout_ms: Total readiness budget
        interval_ms: Delay between probes
        path: Route probed on every attempt
        transport: Optional httpx transport (tests inject a mock here)

    Raises:
        ServerNotReadyError: If no 2xx-4xx answer arrived before the deadline
    """
    url = f"{base_url.rstrip('/')}{path}"
    logger.info(f"Waiting for server at {url} (timeout {timeout_ms}ms)")

    async with httpx.AsyncClient(transport=transport, timeout=probe_timeout_s(timeout_ms)) as client:

        async def _probe() -> bool:
            response = await client.get(url)
            if not is_ready_status(response.status_code):
                logger.debug(f"Liveness probe got {response.status_code}, retrying")
                return False
            return True

        try:
            await poll_until(
                _probe,
                interval_s=interval_ms / 1000,
                timeout_s=timeout_ms / 1000,
                description=f"server at {url}",
            )
        except PollTimeoutError:
            raise ServerNotReadyError(url, timeout_ms) from None

    logger.info(f"✅ Server ready at {base_url}")
