"""Tests for the feature flag domain loader (tools/__init__.py)."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from fastmcp import FastMCP
from fastmcp.tools.function_tool import FunctionTool


def _get_tool_names(mcp: FastMCP) -> list[str]:
    """Extract registered tool names from a FastMCP instance."""
    lp = mcp.local_provider
    return [
        comp.name for comp in lp._components.values() if isinstance(comp, FunctionTool)
    ]


class TestLoadDomains:
    def test_server_loads_configured_domains(self) -> None:
        import server as srv

        tool_names = _get_tool_names(srv.mcp)
        assert any(name.startswith("leaves_") for name in tool_names)
        assert any(name.startswith("admin_") for name in tool_names)

    def test_default_is_leaves_only(self) -> None:
        from tools import load_domains

        test_mcp = FastMCP(name="test")
        env = os.environ.copy()
        env.pop("ENABLED_DOMAINS", None)
        with patch.dict(os.environ, env, clear=True):
            loaded = load_domains(test_mcp)
        assert loaded == ["leaves"]
        assert sorted(_get_tool_names(test_mcp)) == [
            "leaves_get_dashboard",
            "leaves_get_profile",
            "leaves_login",
            "leaves_logout",
            "leaves_submit",
            "leaves_whoami",
        ]

    def test_empty_enabled_domains_exits(self) -> None:
        from tools import load_domains

        with patch.dict(os.environ, {"ENABLED_DOMAINS": ""}):
            with pytest.raises(SystemExit):
                load_domains(FastMCP(name="test"))

    def test_unknown_domain_only_exits(self) -> None:
        from tools import load_domains

        with patch.dict(os.environ, {"ENABLED_DOMAINS": "nonexistent"}):
            with pytest.raises(SystemExit):
                load_domains(FastMCP(name="test"))

    def test_admin_without_flag_exits(self) -> None:
        from tools import load_domains

        env = os.environ.copy()
        env.pop("ENABLE_ADMIN_TOOLS", None)
        env["ENABLED_DOMAINS"] = "leaves,admin"
        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(SystemExit):
                load_domains(FastMCP(name="test"))

    def test_admin_with_flag(self) -> None:
        from tools import load_domains

        test_mcp = FastMCP(name="test")
        with patch.dict(os.environ, {"ENABLED_DOMAINS": "admin", "ENABLE_ADMIN_TOOLS": "true"}):
            loaded = load_domains(test_mcp)
        assert loaded == ["admin"]
        assert sorted(_get_tool_names(test_mcp)) == ["admin_export_report", "admin_get_dashboard"]
