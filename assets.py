"""Versioned offline cache for the portal's static shell.

``OfflineAssetCache`` pre-fetches a fixed manifest of static assets into a
cache generation named after the current version, serves every later
request cache-first, and deletes older generations on activation.

Lifecycle::

    new --install()--> installed --activate()--> activated
      \\--install() fails--> failed
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal

import httpx

__all__ = [
    "AssetCacheGeneration",
    "AssetInstallError",
    "CacheStorage",
    "CachedResponse",
    "OfflineAssetCache",
]

logger = logging.getLogger("leave_mcp.assets")

AssetCacheState = Literal["new", "installed", "activated", "failed"]


class AssetInstallError(RuntimeError):
    """A manifest asset could not be fetched; nothing was stored."""


@dataclass(frozen=True)
class CachedResponse:
    url: str
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    content: bytes = b""

    @property
    def media_type(self) -> str | None:
        return self.headers.get("content-type")

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> CachedResponse:
        return cls(
            url=str(response.request.url),
            status_code=response.status_code,
            headers={k.lower(): v for k, v in response.headers.items()},
            content=response.content,
        )


class AssetCacheGeneration:
    """One named snapshot of cached responses, keyed by exact URL."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: dict[str, CachedResponse] = {}

    def match(self, url: str) -> CachedResponse | None:
        return self._entries.get(url)

    def put(self, url: str, response: CachedResponse) -> None:
        self._entries[url] = response

    def urls(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class CacheStorage:
    """All cache generations known to this process."""

    def __init__(self) -> None:
        self._generations: dict[str, AssetCacheGeneration] = {}

    def open(self, name: str) -> AssetCacheGeneration:
        """Return the generation called *name*, creating it if needed."""
        if name not in self._generations:
            self._generations[name] = AssetCacheGeneration(name)
        return self._generations[name]

    def has(self, name: str) -> bool:
        return name in self._generations

    def keys(self) -> list[str]:
        return list(self._generations)

    def delete(self, name: str) -> bool:
        return self._generations.pop(name, None) is not None


class OfflineAssetCache:
    """Cache-first server for a versioned manifest of static assets."""

    def __init__(
        self,
        storage: CacheStorage,
        version: str,
        manifest: Iterable[str],
        base_url: str,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        if not version:
            raise ValueError("version must not be empty")
        self._storage = storage
        self._version = version
        self._base_url = httpx.URL(base_url)
        self._manifest = [self.resolve(url) for url in manifest]
        self._http = http or httpx.AsyncClient(follow_redirects=True, timeout=30.0)
        self._owns_http = http is None
        self.state: AssetCacheState = "new"

    @property
    def version(self) -> str:
        return self._version

    @property
    def manifest(self) -> list[str]:
        return list(self._manifest)

    def resolve(self, url: str) -> str:
        """Return *url* as an absolute URL string relative to ``base_url``."""
        return str(self._base_url.join(url))

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # -- lifecycle ------------------------------------------------------------

    async def _fetch_for_install(self, url: str) -> CachedResponse:
        try:
            response = await self._http.get(url)
        except httpx.TransportError as exc:
            raise AssetInstallError(f"Failed to fetch {url}: {exc}") from exc
        if not response.is_success:
            raise AssetInstallError(f"Failed to fetch {url}: HTTP {response.status_code}")
        return CachedResponse.from_httpx(response)

    async def install(self) -> None:
        """Populate the current generation with every manifest asset.

        All-or-nothing: if any fetch fails nothing is stored and
        :class:`AssetInstallError` propagates.
        """
        logger.info("Installing asset cache %s (%d assets)", self._version, len(self._manifest))
        try:
            responses = await asyncio.gather(
                *(self._fetch_for_install(url) for url in self._manifest)
            )
        except AssetInstallError:
            self.state = "failed"
            raise

        generation = self._storage.open(self._version)
        for url, response in zip(self._manifest, responses, strict=True):
            generation.put(url, response)
        self.state = "installed"

    async def activate(self) -> list[str]:
        """Delete every generation except the current one.

        Returns the names of the deleted generations.
        """
        deleted: list[str] = []
        for name in self._storage.keys():
            if name != self._version:
                logger.info("Deleting old asset cache: %s", name)
                self._storage.delete(name)
                deleted.append(name)
        self.state = "activated"
        return deleted

    # -- steady state -----------------------------------------------------------

    async def fetch(self, url: str) -> CachedResponse:
        """Serve *url* from the current generation, else from the network.

        Network responses are returned but never stored.  A transport
        failure on a miss propagates as :class:`httpx.TransportError`.
        """
        absolute = self.resolve(url)
        if self._storage.has(self._version):
            cached = self._storage.open(self._version).match(absolute)
            if cached is not None:
                return cached
        logger.debug("Asset cache miss: %s", absolute)
        response = await self._http.get(absolute)
        return CachedResponse.from_httpx(response)
