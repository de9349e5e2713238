"""
Retry Strategies using Tenacity.

Retries belong to the storage I/O layer only: the ledger itself never
retries an operation.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from awaylog.core.logging import get_logger

logger = get_logger("retry")

DEFAULT_ATTEMPTS = 3


def is_transient_error(exception: BaseException) -> bool:
    """Check if exception is a transient network/infrastructure error."""
    if isinstance(exception, (ConnectionError, TimeoutError)):
        return True
    msg = str(exception).lower()
    return any(
        x in msg
        for x in [
            "timeout",
            "timed out",
            "connection refused",
            "connection reset",
            "busy loading",
        ]
    )


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(f"Retrying storage call (attempt {retry_state.attempt_number}): {exc}")


async def execute_with_retry(
    func: Callable[..., Awaitable[Any]],
    *args: Any,
    attempts: int = DEFAULT_ATTEMPTS,
    transient: Callable[[BaseException], bool] = is_transient_error,
    **kwargs: Any,
) -> Any:
    """Execute an async function, retrying transient failures with backoff."""
    async for attempt in AsyncRetrying(
        retry=retry_if_exception(transient),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
        stop=stop_after_attempt(attempts),
        reraise=True,
        before_sleep=_log_retry,
    ):
        with attempt:
            return await func(*args, **kwargs)
