"""Polling helpers for long-running vendor operations."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.stop import stop_base
from tenacity.wait import wait_base

from .retry import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_MAX_ATTEMPTS,
    DEFAULT_POLL_MAX_INTERVAL_SECONDS,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PollTimeoutError(TimeoutError):
    """Raised when the stop strategy ends polling before completion."""

    def __init__(self, description: str, attempts: int) -> None:
        super().__init__(
            f"{description} did not complete after {attempts} poll attempts"
        )
        self.description = description
        self.attempts = attempts


def default_wait(
    interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    max_interval: float = DEFAULT_POLL_MAX_INTERVAL_SECONDS,
) -> wait_base:
    return wait_exponential(multiplier=interval, min=interval, max=max_interval)


def default_stop(max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS) -> stop_base:
    return stop_after_attempt(max(1, max_attempts))


async def poll_until_done(
    fetch: Callable[[], Awaitable[T]],
    *,
    is_done: Callable[[T], bool],
    wait: Optional[wait_base] = None,
    stop: Optional[stop_base] = None,
    description: str = "operation",
) -> T:
    """Call ``fetch`` until ``is_done`` accepts its result and return it.

    Attempts are strictly sequential: the next fetch is issued only after the
    previous result has been inspected and the ``wait`` strategy has elapsed.
    Exceptions raised by ``fetch`` are not retried; they propagate to the
    caller unchanged. When ``stop`` ends the loop first,
    :class:`PollTimeoutError` is raised.
    """

    def _log_pending(retry_state) -> None:
        logger.debug(
            "%s still running, polling again",
            description,
            extra={"attempt": retry_state.attempt_number},
        )

    retrying = AsyncRetrying(
        retry=retry_if_result(lambda result: not is_done(result)),
        wait=wait or default_wait(),
        stop=stop or default_stop(),
        before_sleep=_log_pending,
    )

    async def _attempt() -> T:
        return await fetch()

    try:
        return await retrying(_attempt)
    except RetryError as exc:
        raise PollTimeoutError(
            description, exc.last_attempt.attempt_number
        ) from None
