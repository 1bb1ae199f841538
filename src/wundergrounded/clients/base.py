"""Async HTTP transport and token bucket rate limiter.

These are the two network-facing collaborators of the request orchestrator:
- RateLimiter grants tokens from a budget that refills over an interval
- HttpTransport performs one GET and returns the parsed JSON body

Usage:
    limiter = RateLimiter(tokens_per_interval=10, interval="minute")
    await limiter.remove_tokens(1)

    async with HttpTransport(timeout=10) as transport:
        body = await transport.get("http://api.wunderground.com/api/KEY/conditions/q/94107.json")
"""

import asyncio
import logging
from typing import Any

import httpx

from wundergrounded.config import INTERVALS
from wundergrounded.errors import TransportError

logger = logging.getLogger(__name__)


class RateLimiter:
    """Token bucket rate limiter for async operations.

    The bucket starts full with ``tokens_per_interval`` tokens and refills
    continuously at ``tokens_per_interval`` per ``interval``. Callers asking
    for more tokens than are available are suspended until the bucket has
    refilled enough. Requests are served in arrival order.

    Args:
        tokens_per_interval: Bucket capacity and refill amount per interval
        interval: One of second, minute, hour, day (or sec, min, hr)
    """

    def __init__(self, tokens_per_interval: int = 10, interval: str = "minute") -> None:
        if tokens_per_interval < 1:
            raise ValueError(f"tokens_per_interval must be >= 1, got {tokens_per_interval}")
        interval = interval.lower()
        if interval not in INTERVALS:
            raise ValueError(f"interval must be one of {sorted(INTERVALS)}, got '{interval}'")

        self.tokens_per_interval = tokens_per_interval
        self.interval = interval
        self.rate = tokens_per_interval / INTERVALS[interval]  # tokens per second
        self.tokens: float = float(tokens_per_interval)
        self.updated_at: float = 0.0
        self._initialized: bool = False
        self._lock = asyncio.Lock()

    def _refill(self, now: float) -> None:
        elapsed = now - self.updated_at
        self.tokens = min(self.tokens_per_interval, self.tokens + elapsed * self.rate)
        self.updated_at = now

    async def remove_tokens(self, count: int = 1) -> None:
        """Take ``count`` tokens, waiting if necessary."""
        if count > self.tokens_per_interval:
            raise ValueError(
                f"Requested {count} tokens but the bucket only holds {self.tokens_per_interval}"
            )

        async with self._lock:
            loop = asyncio.get_running_loop()

            if not self._initialized:
                self.updated_at = loop.time()
                self._initialized = True

            self._refill(loop.time())
            while self.tokens < count:
                wait_time = (count - self.tokens) / self.rate
                logger.debug("Rate limiting: sleeping for %.2f seconds", wait_time)
                await asyncio.sleep(wait_time)
                self._refill(loop.time())

            self.tokens -= count

    async def acquire(self) -> None:
        """Take a single token."""
        await self.remove_tokens(1)


class HttpTransport:
    """Async GET transport over a pooled httpx client.

    The underlying client is opened on first use (or on ``async with``)
    and must be released with ``aclose()``. Every failure is raised as
    ``TransportError``; nothing is retried.

    Args:
        timeout: Request timeout in seconds (default: 30)
        headers: Default headers for all requests
    """

    def __init__(
        self,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.timeout = timeout
        self.headers = headers or {}
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HttpTransport":
        """Async context manager entry."""
        self._open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.aclose()

    def _open(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self.headers,
                timeout=self.timeout,
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
            )
        return self._client

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(self, url: str) -> Any:
        """GET ``url`` and return the parsed JSON body.

        Args:
            url: Fully resolved request URL

        Returns:
            Parsed JSON body

        Raises:
            TransportError: On network errors, timeouts, a malformed URL, a
                status other than 200, or a body that is not JSON
        """
        client = self._open()
        logger.debug("GET %s", url)

        try:
            response = await client.get(url)
        except httpx.TimeoutException as e:
            logger.error("Request timeout for %s: %s", url, e)
            raise TransportError(f"Request timeout: {e}")
        except httpx.HTTPError as e:
            logger.error("Network error for %s: %s", url, e)
            raise TransportError(f"Network error: {e}")
        except Exception as e:
            logger.error("Unexpected error for %s: %s", url, e)
            raise TransportError(f"Unexpected error: {e}")

        logger.debug("Response: %d for %s", response.status_code, url)

        if response.status_code != 200:
            error_body = response.text[:500]
            logger.error("API error: %d %s - %s", response.status_code, url, error_body)
            raise TransportError(
                message=f"API request failed: {response.status_code}",
                status_code=response.status_code,
                response_body=error_body,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error("Failed to parse JSON response: %s", e)
            raise TransportError(
                message=f"Invalid JSON response: {e}",
                status_code=response.status_code,
                response_body=response.text[:500],
            )
