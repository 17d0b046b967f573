"""Shared constants for the leave portal MCP server."""

from __future__ import annotations

DEFAULT_API_URL: str = (
    "https://script.google.com/macros/s/"
    "AKfycbzeJUBkDWV6CAMHnlkPzycrI6tydLEtc88enoNhxj51sFXoL4AbGXQW0qJ3-yVuCH-onA/exec"
)

# Request layer defaults.
FRESHNESS_WINDOW: float = 300.0
REQUEST_TIMEOUT: float = 10.0
MAX_RETRIES: int = 3
RETRY_BASE_DELAY: float = 1.0
CACHE_MAXSIZE: int = 500

# Tool input limits.
MAX_LEAVE_REASON_LEN: int = 2000
MAX_LEAVE_DAYS: int = 90
MAX_EMPLOYEE_ID_LEN: int = 64
EXPORT_TYPES: frozenset[str] = frozenset({"excel", "pdf"})

# Offline asset cache.
ASSET_CACHE_VERSION: str = "leave-management-v2.1.0"
ASSET_MANIFEST: tuple[str, ...] = (
    "/",
    "/index.html",
    "/dashboard.html",
    "/admin.html",
    "/profile.html",
    "/request-leave.html",
    "/style.css",
    "/loading-animations.css",
    "/script.js",
    "/manifest.json",
    "https://cdn.jsdelivr.net/npm/chart.js",
    "https://via.placeholder.com/120",
)
