"""httpx async transport wrapper that waits out gateway rate limits."""

from __future__ import annotations

import asyncio
import logging
import time

import httpx

_LOG = logging.getLogger(__name__)

_RATE_LIMITED = 429


class RateLimitTransport(httpx.AsyncBaseTransport):
    """Wraps an httpx async transport and replays requests rejected with HTTP 429.

    A 429 pauses **all** concurrent requests until its ``Retry-After`` delay
    has elapsed, then the request is replayed (up to *max_retries* times).
    Connection failures and 5xx responses pass straight through: reads are
    single-attempt and the caller decides whether to re-invoke.
    """

    def __init__(
        self,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        max_retries: int = 3,
    ) -> None:
        self._transport = transport or httpx.AsyncHTTPTransport()
        self._max_retries = max_retries

        self._rate_limit_lock = asyncio.Lock()
        self._rate_limit_clear = asyncio.Event()
        self._rate_limit_clear.set()
        self._rate_limit_pause_until = 0.0

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        attempt = 0
        while True:
            await self._rate_limit_clear.wait()
            response = await self._transport.handle_async_request(request)
            if response.status_code != _RATE_LIMITED or attempt >= self._max_retries:
                return response

            attempt += 1
            retry_after = self._parse_retry_after(response)
            await response.aclose()
            _LOG.warning("Quest gateway rate limited; retrying in %.1fs (attempt %d)", retry_after, attempt)
            await self._apply_rate_limit_pause(retry_after)

    async def aclose(self) -> None:
        await self._transport.aclose()

    # ------------------------------------------------------------------
    # Rate-limit helpers
    # ------------------------------------------------------------------

    async def _apply_rate_limit_pause(self, retry_after: float) -> None:
        now = time.monotonic()
        async with self._rate_limit_lock:
            until = now + max(0.0, retry_after)
            if until > self._rate_limit_pause_until:
                self._rate_limit_pause_until = until
                self._rate_limit_clear.clear()

        await asyncio.sleep(max(0.0, self._rate_limit_pause_until - time.monotonic()))

        async with self._rate_limit_lock:
            if time.monotonic() >= self._rate_limit_pause_until:
                self._rate_limit_clear.set()

    @staticmethod
    def _parse_retry_after(response: httpx.Response) -> float:
        raw = response.headers.get("Retry-After")
        if raw is None:
            return 1.0
        try:
            return max(0.0, float(raw))
        except ValueError:
            return 1.0
