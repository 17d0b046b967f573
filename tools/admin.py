"""Admin MCP tools — organisation dashboard and report export."""

from __future__ import annotations

import logging
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from _auth import require_admin, tool_error_handler
from _constants import EXPORT_TYPES
from charts import leave_type_chart
from clients import get_registry
from tools.leaves import validate_date_range

logger = logging.getLogger("leave_mcp.server")

__all__ = ["register"]


def register(mcp: FastMCP) -> None:
    """Register all admin tools on the given FastMCP instance."""

    @mcp.tool
    @tool_error_handler("Failed to fetch admin dashboard. Please try again.")
    async def admin_get_dashboard(
        department: str | None = None,
        refresh: bool = False,
    ) -> dict[str, Any]:
        """Get organisation-wide leave statistics.

        Args:
            department: Restrict the figures to one department.
            refresh: Bypass the five-minute response cache.
        """
        user = require_admin()
        data = await get_registry().admin.get_dashboard(
            str(user["employeeId"]),
            str(user["role"]),
            department.strip() if department else None,
            refresh=refresh,
        )
        payload = {k: v for k, v in data.items() if k != "success"}
        if "byType" in data:
            payload["charts"] = {"by_type": leave_type_chart(data["byType"])}
        return {"status": "success", "data": payload}

    @mcp.tool
    @tool_error_handler("Failed to prepare report export. Please try again.")
    async def admin_export_report(
        report_type: str,
        start_date: str,
        end_date: str,
        department: str = "",
    ) -> dict[str, Any]:
        """Get a download link for a leave report.

        Args:
            report_type: 'excel' or 'pdf'.
            start_date: Report start, YYYY-MM-DD.
            end_date: Report end, YYYY-MM-DD.
            department: Department filter; empty for all departments.
        """
        report_type = report_type.strip().lower()
        if report_type not in EXPORT_TYPES:
            raise ToolError(f"report_type must be one of {sorted(EXPORT_TYPES)}, got: {report_type!r}")
        validate_date_range(start_date, end_date)

        user = require_admin()
        url = get_registry().admin.export_url(report_type, start_date, end_date, department.strip())
        logger.info(
            "EXPORT user=%s type=%s start=%s end=%s department=%s",
            user["employeeId"], report_type, start_date, end_date, department or "*",
        )
        return {"status": "success", "data": {"download_url": url}}
