import asyncio
from typing import Any, Awaitable, Callable, TypeVar
from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt, wait_exponential
from artha_ai.config import RETRY_BASE_DELAY
from artha_ai.utils.logging_config import logger

T = TypeVar("T")

_STATUS_ATTRS = ("status", "status_code", "code")


def failure_status(error: BaseException | None) -> int | None:
    """Find an HTTP-like status code on an exception or anything it was raised from."""
    seen = set()
    while error is not None and id(error) not in seen:
        seen.add(id(error))
        for attr in _STATUS_ATTRS:
            value = getattr(error, attr, None)
            if isinstance(value, int) and not isinstance(value, bool):
                return value
        error = error.__cause__ or error.__context__
    return None


def is_transient(error: BaseException | None) -> bool:
    """Rate limits (429) and server errors (5xx) are worth retrying."""
    status = failure_status(error)
    return status is not None and (status == 429 or status >= 500)


def _should_retry(retry_state: RetryCallState) -> bool:
    if not retry_state.outcome.failed:
        return False
    error = retry_state.outcome.exception()
    if not isinstance(error, Exception):
        # Cancellation and interpreter exits are never retried
        return False
    # A permanent failure on the very first attempt is raised straight away
    if retry_state.attempt_number == 1 and not is_transient(error):
        return False
    return True


def _log_before_retry(retry_state: RetryCallState):
    """Log retry attempts."""
    error = retry_state.outcome.exception()
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        f"Upstream call failed (attempt {retry_state.attempt_number}, status {failure_status(error)}): "
        f"{error!r}; retrying in {wait:.1f}s"
    )


async def fetch_with_retry(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = RETRY_BASE_DELAY,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Run an upstream coroutine with bounded exponential backoff.

    Waits base_delay * 2**attempt_index between attempts, without jitter.
    A non-transient failure on the first attempt is raised immediately.
    Once attempts run out the last exception is re-raised unchanged.

    Args:
        fn: Zero-argument coroutine factory, called once per attempt
        max_attempts: Total number of attempts
        base_delay: Delay before the first retry, in seconds
        sleep: Awaitable sleep function, replaceable in tests

    Returns:
        The result of the first successful attempt
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, exp_base=2, min=0),
        retry=_should_retry,
        before_sleep=_log_before_retry,
        sleep=sleep,
        reraise=True,
    )
    return await retrying(fn)
