import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    retry_if_result,
    stop_after_delay,
    wait_fixed,
)

from aidflow_smoke.core.exceptions import PollTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def poll_until(
    probe: Callable[[], Awaitable[T]],
    *,
    interval_s: float,
    timeout_s: float,
    description: str,
) -> T:
    """Call ``probe`` every ``interval_s`` until it returns a truthy value.

    Exceptions raised by the probe count as "not yet"; only the deadline ends
    the loop. The truthy value is returned.

    Raises:
        PollTimeoutError: If no truthy value was seen within ``timeout_s``.
    """
    attempts = 0
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_delay(timeout_s),
            wait=wait_fixed(interval_s),
            retry=retry_if_exception_type(Exception) | retry_if_result(lambda value: not value),
        ):
            attempts += 1
            with attempt:
                result = await probe()
            if not attempt.retry_state.outcome.failed:
                attempt.retry_state.set_result(result)
    except RetryError as e:
        last = e.last_attempt
        if last.failed:
            logger.debug(f"Last probe for {description} raised: {last.exception()}")
        raise PollTimeoutError(description, timeout_s) from None

    logger.debug(f"{description} satisfied after {attempts} attempt(s)")
    return result
