"""Base leave API client with TTL cache, timeout race and bounded retry.

Provides ``BaseLeaveAPIClient`` -- the async HTTP client for the
spreadsheet-backed leave API.  The API is a single GET endpoint; the
``action`` query parameter selects the operation and every other parameter
is passed through as a query string value.

Request policy:
    * Identical ``(endpoint, params)`` calls inside the freshness window are
      answered from ``TTLCache`` without touching the network.
    * Every network attempt is raced against ``request_timeout``.
    * Network failures (transport error, non-2xx, unparsable body, timeout)
      are retried by ``RetryPolicy`` with linear backoff.
    * ``success: false`` bodies raise ``ApplicationError`` at once and are
      neither retried nor cached.
"""

from __future__ import annotations

import asyncio
import ipaddress
import json
import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable, Hashable
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

import httpx

from _constants import (
    CACHE_MAXSIZE,
    FRESHNESS_WINDOW,
    MAX_RETRIES,
    REQUEST_TIMEOUT,
    RETRY_BASE_DELAY,
)
from clients._errors import ApplicationError, NetworkError, RequestTimeoutError
from clients._loading import DEFAULT_MESSAGE, LoadingIndicator

__all__ = [
    "BaseLeaveAPIClient",
    "CacheEntry",
    "CacheKey",
    "RequestOptions",
    "RetryPolicy",
    "TTLCache",
    "make_cache_key",
]

logger = logging.getLogger("leave_mcp.client")

CacheKey = tuple[str, tuple[tuple[str, str], ...]]


def _canonical(value: Any) -> str:
    """Render a parameter value exactly as it goes on the wire."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def make_cache_key(endpoint: str, params: dict[str, Any] | None = None) -> CacheKey:
    """Build the structured cache key for *endpoint* and *params*.

    Parameters are sorted by name and ``None`` values are dropped, so the
    key is independent of argument order and equals the query actually sent.
    """
    items = tuple(
        (str(name), _canonical(value))
        for name, value in sorted((params or {}).items())
        if value is not None
    )
    return (endpoint, items)


# ---------------------------------------------------------------------------
# TTLCache
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CacheEntry[T]:
    key: Hashable
    data: T
    stored_at: float


class TTLCache[T]:
    """Bounded LRU cache with a per-entry freshness window.

    An entry is fresh while ``now - stored_at < ttl``.  Stale entries are
    dropped when looked up or replaced by the next store; nothing sweeps
    them in the background.  Clock source: :func:`time.monotonic`.

    Sync methods (``_get``/``_put``/``clear``/``__len__``) are NOT async-safe.
    Use ``aget``/``aput``/``aclear`` for concurrent async access within a
    single event loop.
    """

    __slots__ = ("_data", "_lock", "_maxsize", "_ttl")

    def __init__(self, maxsize: int = CACHE_MAXSIZE, ttl: float = FRESHNESS_WINDOW) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")
        if ttl <= 0:
            raise ValueError("ttl must be > 0")
        self._maxsize = maxsize
        self._ttl = ttl
        self._data: OrderedDict[Hashable, CacheEntry[T]] = OrderedDict()
        self._lock = asyncio.Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    def _entry(self, key: Hashable) -> CacheEntry[T] | None:
        """Return the fresh entry for *key*, evicting it if stale."""
        entry = self._data.get(key)
        if entry is None:
            return None
        if time.monotonic() - entry.stored_at >= self._ttl:
            del self._data[key]
            return None
        self._data.move_to_end(key)
        return entry

    def _get(self, key: Hashable) -> T | None:
        entry = self._entry(key)
        return None if entry is None else entry.data

    def _put(self, key: Hashable, value: T) -> None:
        """Replace the entry for *key*.  Evicts the LRU entry if at capacity."""
        if key in self._data:
            del self._data[key]
        elif len(self._data) >= self._maxsize:
            self._data.popitem(last=False)
        self._data[key] = CacheEntry(key=key, data=value, stored_at=time.monotonic())

    async def aget(self, key: Hashable) -> T | None:
        async with self._lock:
            return self._get(key)

    async def aput(self, key: Hashable, value: T) -> None:
        async with self._lock:
            self._put(key, value)

    async def aclear(self) -> None:
        async with self._lock:
            self._data.clear()

    def clear(self) -> None:
        """Sync clear -- NOT lock-protected.  For use in tests/setup only."""
        self._data.clear()

    def __len__(self) -> int:
        """Return count of fresh entries (read-only, no eviction)."""
        now = time.monotonic()
        return sum(1 for e in self._data.values() if now - e.stored_at < self._ttl)


# ---------------------------------------------------------------------------
# Request policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RequestOptions:
    """Per-call options for :meth:`BaseLeaveAPIClient.request`.

    ``refresh`` skips the cache lookup but still stores the fresh response.
    ``use_cache=False`` skips both, for calls that must never be memoized.
    """

    show_loading: bool = True
    loading_message: str = DEFAULT_MESSAGE
    use_cache: bool = True
    refresh: bool = False


@dataclass
class _InFlight:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    waiters: int = 0


@dataclass(frozen=True)
class RetryPolicy:
    """Linear backoff: retry *n* waits ``base_delay * n`` seconds."""

    max_retries: int = MAX_RETRIES
    base_delay: float = RETRY_BASE_DELAY
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, compare=False)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")

    @property
    def attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, retry: int) -> float:
        return self.base_delay * retry


# ---------------------------------------------------------------------------
# BaseLeaveAPIClient
# ---------------------------------------------------------------------------


class BaseLeaveAPIClient:
    """Async client for the leave API's single GET endpoint.

    Concurrent calls for the same key are independent unless ``coalesce``
    is set, in which case later callers wait for the first one and read its
    cached result.
    """

    def __init__(
        self,
        base_url: str,
        *,
        ttl: float = FRESHNESS_WINDOW,
        request_timeout: float = REQUEST_TIMEOUT,
        retry: RetryPolicy | None = None,
        loading: LoadingIndicator | None = None,
        coalesce: bool = False,
        cache_maxsize: int = CACHE_MAXSIZE,
    ) -> None:
        parsed = urlparse(base_url)
        host = (parsed.hostname or "").lower()

        if parsed.scheme != "https" and not self._is_loopback(host):
            raise ValueError(
                f"Non-HTTPS base_url is only permitted for localhost. Got: {base_url}"
            )
        if request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")

        self._base_url: str = base_url.rstrip("/")
        self._request_timeout = request_timeout
        self._retry = retry or RetryPolicy()
        self._loading = loading or LoadingIndicator()
        self._coalesce = coalesce
        self._cache: TTLCache[dict[str, Any]] = TTLCache(maxsize=cache_maxsize, ttl=ttl)
        self._inflight: dict[CacheKey, _InFlight] = {}
        # Apps Script answers every exec call with a redirect to the content host.
        self._http: httpx.AsyncClient = httpx.AsyncClient(
            follow_redirects=True,
            timeout=httpx.Timeout(request_timeout),
            verify=True,
        )

    @property
    def loading(self) -> LoadingIndicator:
        return self._loading

    @property
    def retry(self) -> RetryPolicy:
        return self._retry

    async def close(self) -> None:
        """Close the underlying httpx client."""
        await self._http.aclose()

    async def __aenter__(self) -> BaseLeaveAPIClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    @staticmethod
    def _is_loopback(host: str) -> bool:
        """Check if host is a loopback address (localhost, 127.x.x.x, ::1, etc.)."""
        if host in ("localhost",):
            return True
        stripped = host.strip("[]")
        try:
            return ipaddress.ip_address(stripped).is_loopback
        except ValueError:
            return False

    # -- public API ---------------------------------------------------------

    def build_url(self, endpoint: str, params: dict[str, Any] | None = None) -> str:
        """Return the absolute GET URL for *endpoint* without requesting it."""
        _, items = make_cache_key(endpoint, params)
        return str(httpx.URL(self._base_url, params={"action": endpoint, **dict(items)}))

    async def request(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        options: RequestOptions | None = None,
    ) -> dict[str, Any]:
        """Return the JSON body for *endpoint*, from cache when fresh.

        Raises:
            ApplicationError: The API answered ``success: false``.
            NetworkError: Every attempt failed (includes timeouts).
        """
        options = options or RequestOptions()
        key = make_cache_key(endpoint, params)

        if not options.use_cache or options.refresh:
            return await self._fetch(key, options)

        cached = await self._cache.aget(key)
        if cached is not None:
            logger.debug("Cache hit for %s", endpoint)
            return cached

        if self._coalesce:
            return await self._fetch_coalesced(key, options)
        return await self._fetch(key, options)

    async def invalidate(self) -> None:
        """Drop every cached response."""
        await self._cache.aclear()

    # -- internals ----------------------------------------------------------

    async def _fetch_coalesced(self, key: CacheKey, options: RequestOptions) -> dict[str, Any]:
        if key not in self._inflight:
            self._inflight[key] = _InFlight()
        inflight = self._inflight[key]
        inflight.waiters += 1

        try:
            async with inflight.lock:
                # Another coroutine may have populated the cache while we waited.
                cached = await self._cache.aget(key)
                if cached is not None:
                    return cached
                return await self._fetch(key, options)
        finally:
            # Dropped only once no caller holds or awaits the lock.
            inflight.waiters -= 1
            if inflight.waiters == 0:
                self._inflight.pop(key, None)

    async def _fetch(self, key: CacheKey, options: RequestOptions) -> dict[str, Any]:
        endpoint, items = key
        scope = (
            self._loading.scope(options.loading_message)
            if options.show_loading
            else nullcontext()
        )
        with scope:
            data = await self._send_with_retry(endpoint, dict(items))
        if options.use_cache:
            await self._cache.aput(key, data)
        return data

    async def _send_with_retry(self, endpoint: str, params: dict[str, str]) -> dict[str, Any]:
        retries = 0
        while True:
            try:
                return await self._send(endpoint, params)
            except NetworkError as exc:
                if retries >= self._retry.max_retries:
                    logger.error(
                        "Leave API %s failed after %d attempts: %s",
                        endpoint,
                        retries + 1,
                        exc,
                    )
                    raise
                retries += 1
                delay = self._retry.delay_for(retries)
                logger.warning(
                    "Leave API %s attempt %d/%d failed: %s (retrying in %.1fs)",
                    endpoint,
                    retries,
                    self._retry.attempts,
                    exc,
                    delay,
                )
                await self._retry.sleep(delay)

    async def _send(self, endpoint: str, params: dict[str, str]) -> dict[str, Any]:
        """Perform one attempt.  Never retries."""
        query = {"action": endpoint, **params}
        try:
            response = await asyncio.wait_for(
                self._http.get(self._base_url, params=query),
                timeout=self._request_timeout,
            )
        except (TimeoutError, httpx.TimeoutException) as exc:
            raise RequestTimeoutError(
                f"{endpoint} timed out after {self._request_timeout:g}s"
            ) from exc
        except httpx.TransportError as exc:
            raise NetworkError(f"{endpoint} transport error: {exc}") from exc

        if not response.is_success:
            raise NetworkError(
                f"{endpoint} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise NetworkError(
                f"{endpoint} returned invalid JSON", status_code=response.status_code
            ) from exc
        if not isinstance(data, dict):
            raise NetworkError(
                f"{endpoint} returned unexpected payload type {type(data).__name__}",
                status_code=response.status_code,
            )

        if data.get("success") is False:
            message = str(data.get("message") or "Request was rejected by the server.")
            logger.info("Leave API %s rejected: %s", endpoint, message)
            raise ApplicationError(message, data)
        return data
