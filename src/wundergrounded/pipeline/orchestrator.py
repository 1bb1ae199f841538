"""Request orchestrator: feature queue -> URL -> cache -> limiter -> transport.

The orchestrator turns the queued features plus one query into exactly one
request cycle:

1. Check the callback, the query, the API key and the queue
2. Drain the queue and fix the canonical URL
3. Serve from the response cache when possible (no token is spent)
4. Take one token from the rate limiter
5. GET the URL and classify the result
6. Cache successful bodies and hand one Outcome to the callback

Steps 1 and 2 always run synchronously in the caller, so feature calls made
after ``request()`` returns go into the next batch, never the one in flight.

Callbacks are called as ``callback(error, data)``. ``error`` is None on
success; see ``wundergrounded.errors`` for what it holds otherwise.
Coroutine callbacks are awaited.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import quote

from wundergrounded.cache import MemoryStore
from wundergrounded.clients.base import HttpTransport, RateLimiter
from wundergrounded.config import settings
from wundergrounded.errors import (
    EmptyQueue,
    MissingAPIKey,
    MissingQuery,
    ProgrammingError,
    ProviderError,
    TransportError,
    WundergroundError,
)
from wundergrounded.pipeline.queue import FeatureQueue

logger = logging.getLogger(__name__)

Callback = Callable[[Any, Any], Any]

# Characters the provider uses inside queries (state/city, lat,lon, pws:ID)
_QUERY_SAFE = "/,:"

PROVIDER_ERROR_MESSAGE = "An error occurred while communicating with the Weather Underground API."


def build_url(base_url: str, api_key: str, features: list[str], query: str) -> str:
    """Canonical request URL, also used as the cache key.

    Example:
        build_url("http://api.wunderground.com/api", "KEY", ["conditions", "forecast"], "94107")
        -> "http://api.wunderground.com/api/KEY/conditions/forecast/q/94107.json"
    """
    path = "/".join(features)
    return f"{base_url.rstrip('/')}/{api_key}/{path}/q/{quote(query, safe=_QUERY_SAFE)}.json"


def provider_error(body: Any) -> Any | None:
    """Return the ``response.error`` payload of a body, or None."""
    if not isinstance(body, dict):
        return None
    response = body.get("response")
    if not isinstance(response, dict):
        return None
    return response.get("error")


@dataclass(frozen=True)
class ResolvedRequest:
    """Features and query fixed for one request cycle."""

    features: tuple[str, ...]
    query: str
    url: str


@dataclass(frozen=True)
class Outcome:
    """The single result handed to a callback."""

    error: Any
    data: Any

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> Any:
        """Return the data on success, raise the error otherwise.

        Provider error payloads are raised as ``ProviderError``.
        """
        if self.error is None:
            return self.data
        if isinstance(self.error, BaseException):
            raise self.error
        raise ProviderError(self.data, payload=self.error)


@dataclass
class OrchestratorConfig:
    """Per-instance settings, changed only through the fluent setters."""

    api_key: str | None = None
    debug: bool = False
    cache_enabled: bool = False
    ttl_seconds: int = 300
    sweep_interval_seconds: int = 30
    limiter_enabled: bool = False
    tokens_per_interval: int = 10
    interval: str = "minute"


class RequestOrchestrator:
    """Stateful request builder with optional caching and rate limiting.

    Every public method returns the instance so calls can be chained.
    Collaborators can be injected; by default the transport is an
    ``HttpTransport`` and caching and rate limiting are off until
    ``cache()`` / ``limit()`` are called.

    Args:
        api_key: API key (default: WUNDERGROUND_API_KEY from settings)
        debug: Emit request trace lines (default: from settings)
        base_url: API root (default: from settings)
        transport: Object with ``async get(url)``
        cache_store: Object with ``get(key)`` / ``set(key, value)``; enables caching
        limiter: Object with ``async remove_tokens(count)``; enables rate limiting
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        debug: bool | None = None,
        base_url: str | None = None,
        transport: Any | None = None,
        cache_store: Any | None = None,
        limiter: Any | None = None,
    ) -> None:
        self.config = OrchestratorConfig(
            api_key=api_key if api_key is not None else settings.api_key,
            debug=settings.debug if debug is None else debug,
            ttl_seconds=settings.cache_ttl_seconds,
            sweep_interval_seconds=settings.cache_sweep_seconds,
            tokens_per_interval=settings.rate_limit,
            interval=settings.rate_interval,
        )
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self.queue = FeatureQueue()
        self._transport = transport if transport is not None else HttpTransport(timeout=settings.timeout)
        self._cache = cache_store
        self._limiter = limiter
        self.config.cache_enabled = cache_store is not None
        self.config.limiter_enabled = limiter is not None
        self._inflight: set[asyncio.Future] = set()

    # -- configuration ---------------------------------------------------

    def api_key(self, value: str | None) -> "RequestOrchestrator":
        self.config.api_key = value
        return self

    def cache(
        self,
        ttl_seconds: int | None = None,
        sweep_seconds: int | None = None,
    ) -> "RequestOrchestrator":
        """Enable response caching.

        Args:
            ttl_seconds: Seconds a response stays cached (default: 300)
            sweep_seconds: Seconds between expiry sweeps (default: 30)
        """
        store = MemoryStore(
            ttl_seconds=ttl_seconds or settings.cache_ttl_seconds,
            sweep_interval_seconds=sweep_seconds or settings.cache_sweep_seconds,
        )
        self._cache = store
        self.config.ttl_seconds = store.ttl_seconds
        self.config.sweep_interval_seconds = store.sweep_interval_seconds
        self.config.cache_enabled = True
        self._trace(
            "client",
            f"Enabling results cache; seconds in cache = {self.config.ttl_seconds}, "
            f"seconds between eviction checks = {self.config.sweep_interval_seconds}.",
        )
        return self

    def limit(
        self,
        count: int | None = None,
        interval: str | None = None,
    ) -> "RequestOrchestrator":
        """Enable request throttling.

        Args:
            count: Requests allowed per interval (default: 10)
            interval: second, minute, hour or day (default: minute)
        """
        limiter = RateLimiter(
            tokens_per_interval=count or settings.rate_limit,
            interval=interval or settings.rate_interval,
        )
        self._limiter = limiter
        self.config.tokens_per_interval = limiter.tokens_per_interval
        self.config.interval = limiter.interval
        self.config.limiter_enabled = True
        self._trace(
            "client",
            f"Enabling request throttling; max {self.config.tokens_per_interval} "
            f"requests made per {self.config.interval}.",
        )
        return self

    def debug(self, value: bool = True) -> "RequestOrchestrator":
        """Toggle request trace lines.

        Traces are logged at INFO on the ``wundergrounded.pipeline.orchestrator``
        logger. Nothing is printed unless logging is configured to show INFO,
        e.g. ``logging.basicConfig(level=logging.INFO)``.
        """
        self.config.debug = bool(value)
        return self

    @property
    def cache_store(self) -> Any | None:
        return self._cache

    @property
    def limiter(self) -> Any | None:
        return self._limiter

    # -- queue -----------------------------------------------------------

    def enqueue(self, token: str) -> "RequestOrchestrator":
        self.queue.enqueue(token)
        return self

    # -- execution -------------------------------------------------------

    def request(self, query: str, callback: Callback) -> "RequestOrchestrator":
        """Send every queued feature for ``query`` in one call.

        Failed preconditions are delivered to ``callback`` before this
        returns. Otherwise the network part runs as a background task on the
        running event loop; use ``await wait()`` to wait for it, or
        ``await execute(...)`` to run the cycle inline.

        Raises:
            ProgrammingError: If ``callback`` is not callable
            RuntimeError: If a request is ready to send but no event loop is
                running; the queue is left untouched
        """
        begun = self._begin(query, callback, needs_loop=True)
        if isinstance(begun, Outcome):
            self._notify(callback, begun)
        else:
            self._track(asyncio.ensure_future(self._dispatch(begun, callback)))
        return self

    async def execute(self, query: str, callback: Callback) -> Outcome:
        """Run one full request cycle and return its Outcome.

        The callback is still called, exactly once, before this returns.

        Raises:
            ProgrammingError: If ``callback`` is not callable
        """
        begun = self._begin(query, callback)
        if isinstance(begun, Outcome):
            result = callback(begun.error, begun.data)
            if inspect.isawaitable(result):
                await result
            return begun
        return await self._dispatch(begun, callback)

    async def wait(self) -> None:
        """Wait for every request started with ``request()`` to finish.

        Re-raises the first exception a callback raised, if any.
        """
        while self._inflight:
            await asyncio.gather(*list(self._inflight))

    @property
    def pending(self) -> int:
        """Number of request cycles still in flight."""
        return len(self._inflight)

    def _begin(
        self, query: str, callback: Callback, needs_loop: bool = False
    ) -> ResolvedRequest | Outcome:
        if not callable(callback):
            raise ProgrammingError(
                "No callback supplied for the request, make sure to supply a callback."
            )
        if not query:
            return self._failure(
                MissingQuery("No query was supplied for the request, make sure to supply a query.")
            )
        if not self.config.api_key:
            return self._failure(
                MissingAPIKey("An API key must be set via .api_key(...) prior to making any requests.")
            )
        if not self.queue:
            return self._empty_queue()
        if needs_loop:
            asyncio.get_running_loop()

        # Another thread may have drained the queue since the check above
        features = tuple(self.queue.drain_all())
        if not features:
            return self._empty_queue()
        url = build_url(self.base_url, self.config.api_key, list(features), query)
        return ResolvedRequest(features=features, query=query, url=url)

    async def _dispatch(self, resolved: ResolvedRequest, callback: Callback) -> Outcome:
        outcome = await self._fetch(resolved.url)
        result = callback(outcome.error, outcome.data)
        if inspect.isawaitable(result):
            await result
        return outcome

    async def _fetch(self, url: str) -> Outcome:
        if self._cache is not None:
            cached = self._cache.get(url)
            if cached is not None:
                self._trace(url, "Returning cached response.")
                return Outcome(error=None, data=cached)

        if self._limiter is not None:
            await self._limiter.remove_tokens(1)

        self._trace(url, "Making request to Wunderground API...")
        try:
            body = await self._transport.get(url)
        except TransportError as e:
            self._trace(url, "Request failed!")
            return Outcome(error=e, data=f"Received an error when trying to connect to {url}: {e}")

        payload = provider_error(body)
        if payload is not None:
            self._trace(url, "Request failed!")
            return Outcome(error=payload, data=PROVIDER_ERROR_MESSAGE)

        if self._cache is not None:
            self._trace(url, "Caching API response...")
            self._cache.set(url, body)

        self._trace(url, "Returning API response.")
        return Outcome(error=None, data=body)

    # -- helpers ---------------------------------------------------------

    def _failure(self, error: WundergroundError) -> Outcome:
        return Outcome(error=error, data=str(error))

    def _empty_queue(self) -> Outcome:
        return self._failure(
            EmptyQueue(
                "No requests were queued up, make sure to queue up requests "
                "prior to calling .request(...)"
            )
        )

    def _notify(self, callback: Callback, outcome: Outcome) -> None:
        result = callback(outcome.error, outcome.data)
        if inspect.isawaitable(result):
            self._track(asyncio.ensure_future(result))

    def _track(self, future: asyncio.Future) -> None:
        self._inflight.add(future)
        future.add_done_callback(self._inflight.discard)

    def _trace(self, url: str, message: str) -> None:
        if self.config.debug:
            logger.info("[%s] %s", url, message)

    # -- lifecycle -------------------------------------------------------

    async def aclose(self) -> None:
        """Release the transport's connection pool."""
        close = getattr(self._transport, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "RequestOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(queued={self.queue.snapshot()!r}, "
            f"cache={self.config.cache_enabled}, limit={self.config.limiter_enabled})"
        )
