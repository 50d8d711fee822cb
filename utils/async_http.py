"""Shared asynchronous HTTP client utilities."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from .retry import DEFAULT_MAX_ATTEMPTS, INITIAL_BACKOFF_SECONDS, MAX_BACKOFF_SECONDS

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_READ_TIMEOUT = 20.0
DEFAULT_TOTAL_TIMEOUT = 30.0


def _log_retry(retry_state) -> None:
    if retry_state.attempt_number > 1:
        logger.warning(
            "Retrying HTTP request after exception",
            extra={"attempt": retry_state.attempt_number},
        )


class AsyncHTTP:
    """Wrapper around :class:`httpx.AsyncClient` with shared retry policy.

    Only transport failures (:class:`httpx.HTTPError` raised by the client)
    are retried. Responses with an error status are handed back unchanged so
    callers can map them onto their own error types.
    """

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        follow_redirects: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        total_timeout = timeout or DEFAULT_TOTAL_TIMEOUT
        self._client = httpx.AsyncClient(
            base_url=base_url or "",
            headers=dict(headers or {}),
            timeout=httpx.Timeout(
                total_timeout,
                connect=DEFAULT_CONNECT_TIMEOUT,
                read=DEFAULT_READ_TIMEOUT,
            ),
            follow_redirects=follow_redirects,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    @retry(
        reraise=True,
        stop=stop_after_attempt(DEFAULT_MAX_ATTEMPTS),
        # Jittered exponential backoff using Tenacity's built-in helper
        wait=wait_random_exponential(
            multiplier=INITIAL_BACKOFF_SECONDS, max=MAX_BACKOFF_SECONDS
        ),
        retry=retry_if_exception_type(httpx.HTTPError),
        before=_log_retry,
    )
    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Optional[Any] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        logger.debug("AsyncHTTP request", extra={"method": method, "url": url})
        kwargs: dict[str, Any] = {"params": params, "json": json, "headers": headers}
        if timeout is not None:
            kwargs["timeout"] = timeout
        response = await self._client.request(method, url, **kwargs)
        return response

