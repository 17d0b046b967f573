"""Leave Portal MCP Server — FastMCP v3.

Exposes the employee leave portal (login, dashboard, leave requests,
admin reporting) via the Model Context Protocol.  All dynamic data comes
from the spreadsheet-backed leave API through the caching, retrying
request layer in ``clients``; the static page shell is served cache-first
from the offline asset cache.
"""

from __future__ import annotations

import importlib.metadata
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastmcp import FastMCP
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from _constants import (
    ASSET_CACHE_VERSION,
    ASSET_MANIFEST,
    DEFAULT_API_URL,
    FRESHNESS_WINDOW,
    MAX_RETRIES,
    REQUEST_TIMEOUT,
    RETRY_BASE_DELAY,
)
from assets import AssetInstallError, CacheStorage, OfflineAssetCache
from clients import LeaveClientRegistry, get_registry, set_registry
from clients._base import BaseLeaveAPIClient, RetryPolicy
from clients._loading import LoadingIndicator
from session import SessionStore, default_session_path
from tools import load_domains

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logger = logging.getLogger("leave_mcp.server")

# Configure logging; LOG_LEVEL env var overrides the default INFO level.
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

LEAVE_API_URL: str = os.environ.get("LEAVE_API_URL", DEFAULT_API_URL)
REQUEST_TIMEOUT_S: float = float(os.environ.get("REQUEST_TIMEOUT", REQUEST_TIMEOUT))
CACHE_TTL_S: float = float(os.environ.get("CACHE_TTL", FRESHNESS_WINDOW))
MAX_RETRY_COUNT: int = int(os.environ.get("MAX_RETRIES", MAX_RETRIES))
RETRY_DELAY_S: float = float(os.environ.get("RETRY_BASE_DELAY", RETRY_BASE_DELAY))
COALESCE_REQUESTS: bool = os.environ.get("COALESCE_REQUESTS", "").lower().strip() == "true"

# Host of the static page shell; the offline cache is disabled when unset.
ASSET_BASE_URL: str = os.environ.get("ASSET_BASE_URL", "").strip()
ASSET_VERSION: str = os.environ.get("ASSET_CACHE_VERSION", ASSET_CACHE_VERSION)

try:
    _APP_VERSION: str = importlib.metadata.version("leave-mcp")
except importlib.metadata.PackageNotFoundError:
    _APP_VERSION = os.environ.get("APP_VERSION", "dev")


def build_registry() -> LeaveClientRegistry:
    """Construct the per-lifecycle context from the environment."""
    base = BaseLeaveAPIClient(
        LEAVE_API_URL,
        ttl=CACHE_TTL_S,
        request_timeout=REQUEST_TIMEOUT_S,
        retry=RetryPolicy(max_retries=MAX_RETRY_COUNT, base_delay=RETRY_DELAY_S),
        loading=LoadingIndicator(),
        coalesce=COALESCE_REQUESTS,
    )
    assets = (
        OfflineAssetCache(CacheStorage(), ASSET_VERSION, ASSET_MANIFEST, ASSET_BASE_URL)
        if ASSET_BASE_URL
        else None
    )
    return LeaveClientRegistry(
        base=base,
        session=SessionStore(default_session_path()),
        assets=assets,
    )


async def prepare_offline_assets(assets: OfflineAssetCache) -> bool:
    """Install then activate *assets*.  Failure only disables offline support."""
    try:
        await assets.install()
    except AssetInstallError as exc:
        logger.warning("Offline asset cache %s not installed: %s", assets.version, exc)
        return False
    deleted = await assets.activate()
    logger.info("Offline asset cache %s active (removed %d old)", assets.version, len(deleted))
    return True


@asynccontextmanager
async def _lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Manage application resources during server lifecycle."""
    registry = build_registry()
    set_registry(registry)
    logger.info("Leave MCP server %s starting up (api=%s)", _APP_VERSION, LEAVE_API_URL)
    if registry.assets is not None:
        await prepare_offline_assets(registry.assets)
    try:
        yield
    finally:
        logger.info("Leave MCP server shutting down")
        set_registry(None)
        await registry.close()


mcp = FastMCP(name="leave-mcp", lifespan=_lifespan)
ENABLED_DOMAINS: list[str] = load_domains(mcp)


# ---------------------------------------------------------------------------
# Security headers middleware (defense-in-depth for HTTP responses)
# ---------------------------------------------------------------------------


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject hardening headers into every HTTP response."""

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers.setdefault("Cache-Control", "no-store")
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


# Starlette Middleware descriptor passed to mcp.run()/mcp.http_app() at startup.
_security_middleware = Middleware(SecurityHeadersMiddleware)


# ---------------------------------------------------------------------------
# HTTP routes
# ---------------------------------------------------------------------------


@mcp.custom_route("/health", methods=["GET"])
async def health_check(request: Request) -> JSONResponse:
    """Return 200 OK with the busy indicator and offline cache state."""
    try:
        registry = get_registry()
    except RuntimeError:
        return JSONResponse({"status": "starting"})
    return JSONResponse(
        {
            "status": "ok",
            "busy": registry.loading.visible,
            "busy_message": registry.loading.message,
            "assets": registry.assets.state if registry.assets else "disabled",
        }
    )


@mcp.custom_route("/shell/{path:path}", methods=["GET"])
async def shell_asset(request: Request) -> Response:
    """Serve a static shell asset cache-first."""
    assets = get_registry().assets
    if assets is None:
        return JSONResponse({"error": "Offline shell is not configured."}, status_code=404)
    path = "/" + request.path_params.get("path", "")
    try:
        cached = await assets.fetch(path)
    except httpx.TransportError as exc:
        logger.warning("Shell asset %s unavailable: %s", path, exc)
        return JSONResponse({"error": "Asset unavailable."}, status_code=502)
    return Response(
        content=cached.content,
        status_code=cached.status_code,
        media_type=cached.media_type,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    mcp.run(
        transport="http",
        host=os.environ.get("MCP_HOST", "127.0.0.1"),
        port=int(os.environ.get("MCP_PORT", "8100")),
        stateless_http=True,
        middleware=[_security_middleware],
    )
