"""Pytest configuration for leave MCP server tests.

Sets required environment variables before any test module imports
server.py, which reads its configuration and registers tools at module
level.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

os.environ.setdefault("LEAVE_API_URL", "https://leave.example.com/exec")
os.environ.setdefault("ENABLED_DOMAINS", "leaves,admin")
os.environ.setdefault("ENABLE_ADMIN_TOOLS", "true")

import pytest
from fastmcp.tools.function_tool import FunctionTool

import server as server_module
from clients import set_registry
from clients._loading import LoadingIndicator
from session import SessionStore

API_URL = "https://leave.example.com/exec"

EMPLOYEE: dict[str, Any] = {
    "employeeId": "E1",
    "fullName": "Somchai Jaidee",
    "role": "employee",
    "department": "Finance",
}
ADMIN: dict[str, Any] = {
    "employeeId": "A1",
    "fullName": "Malee Srisuk",
    "role": "admin",
    "department": "HR",
}


# ---------------------------------------------------------------------------
# Shared test helpers — used by test_tools_leaves.py, test_tools_admin.py
# ---------------------------------------------------------------------------


def get_tool_fn(name: str):
    """Get a registered tool's underlying async function by name.

    Looks up the tool in ``mcp.local_provider._components``.
    Raises ``KeyError`` with available tool names if not found.
    """
    lp = server_module.mcp.local_provider
    for comp in lp._components.values():
        if isinstance(comp, FunctionTool) and comp.name == name:
            return comp.fn
    available = sorted(
        comp.name for comp in lp._components.values() if isinstance(comp, FunctionTool)
    )
    raise KeyError(f"Tool {name!r} not found. Available: {available}")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def session(tmp_path: Path) -> SessionStore:
    return SessionStore(tmp_path / "session.json")


@pytest.fixture
def mock_registry(session: SessionStore) -> MagicMock:
    """Registry with mocked domain clients and a real session store."""
    registry = MagicMock()
    registry.session = session
    registry.loading = LoadingIndicator()
    registry.assets = None
    registry.leaves = AsyncMock()
    registry.admin = MagicMock()
    registry.admin.get_dashboard = AsyncMock()
    return registry


@pytest.fixture(autouse=True)
def _cleanup_registry():
    """Ensure registry is cleaned up after each test."""
    yield
    set_registry(None)
