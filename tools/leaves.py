"""Leaves MCP tools — login, dashboard, profile and leave requests."""

from __future__ import annotations

import logging
import re
from datetime import date as date_type
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from _auth import require_user, tool_error_handler
from _constants import MAX_EMPLOYEE_ID_LEN, MAX_LEAVE_DAYS, MAX_LEAVE_REASON_LEN
from charts import build_dashboard
from clients import get_registry

logger = logging.getLogger("leave_mcp.server")

__all__ = ["register", "validate_date_range", "validate_date_str"]

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_date_str(value: str, name: str = "date") -> date_type:
    """Validate that *value* is strictly YYYY-MM-DD and return it parsed."""
    if not _DATE_RE.match(value):
        raise ToolError(f"{name} must be in YYYY-MM-DD format, got: {value!r}")
    try:
        return date_type.fromisoformat(value)
    except ValueError as exc:
        raise ToolError(f"{name} is not a valid date: {value!r}") from exc


def validate_date_range(start_date: str, end_date: str) -> int:
    """Validate an inclusive date range and return its length in days."""
    start = validate_date_str(start_date, "start_date")
    end = validate_date_str(end_date, "end_date")
    if end < start:
        raise ToolError("end_date must be on or after start_date.")
    return (end - start).days + 1


def register(mcp: FastMCP) -> None:
    """Register all leaves tools on the given FastMCP instance."""

    # ------------------------------------------------------------------
    # Session tools
    # ------------------------------------------------------------------

    @mcp.tool
    @tool_error_handler("Login failed. Please try again.")
    async def leaves_login(employee_id: str, password: str) -> dict[str, Any]:
        """Sign in with an employee ID and password.

        Args:
            employee_id: Employee ID as printed on the staff card.
            password: Portal password.
        """
        employee_id = employee_id.strip()
        if not employee_id or not password:
            raise ToolError("employee_id and password are required.")
        if len(employee_id) > MAX_EMPLOYEE_ID_LEN:
            raise ToolError(f"employee_id too long (max {MAX_EMPLOYEE_ID_LEN} characters)")

        registry = get_registry()
        result = await registry.leaves.login(employee_id, password)
        user = result.get("user")
        if not isinstance(user, dict) or not user.get("employeeId"):
            raise ToolError("The server did not return a user record.")

        registry.session.save(user)
        logger.info("LOGIN user=%s role=%s", user.get("employeeId"), user.get("role"))
        return {
            "status": "success",
            "data": {
                "user": user,
                "landing_page": "admin" if user.get("role") == "admin" else "dashboard",
            },
        }

    @mcp.tool
    @tool_error_handler("Logout failed. Please try again.")
    async def leaves_logout() -> dict[str, Any]:
        """Sign out and forget the stored user."""
        session = get_registry().session
        user = session.load_user()
        session.clear()
        if user is not None:
            logger.info("LOGOUT user=%s", user.get("employeeId"))
        return {"status": "success"}

    @mcp.tool
    @tool_error_handler("Failed to read the current session. Please try again.")
    async def leaves_whoami() -> dict[str, Any]:
        """Return the signed-in user and when they logged in."""
        user = require_user()
        login_time = get_registry().session.login_time()
        return {
            "status": "success",
            "data": {
                "user": user,
                "login_time": login_time.isoformat() if login_time else None,
            },
        }

    # ------------------------------------------------------------------
    # Read tools
    # ------------------------------------------------------------------

    @mcp.tool
    @tool_error_handler("Failed to fetch leave summary. Please try again.")
    async def leaves_get_dashboard(refresh: bool = False) -> dict[str, Any]:
        """Get leave balances, history charts and records for the signed-in user.

        Args:
            refresh: Bypass the five-minute response cache.
        """
        user = require_user()
        data = await get_registry().leaves.get_summary(
            str(user["employeeId"]), str(user.get("role", "")), refresh=refresh
        )
        return {"status": "success", "data": build_dashboard(data, user)}

    @mcp.tool
    @tool_error_handler("Failed to fetch profile. Please try again.")
    async def leaves_get_profile(refresh: bool = False) -> dict[str, Any]:
        """Get the signed-in user's profile.

        Args:
            refresh: Bypass the five-minute response cache.
        """
        user = require_user()
        data = await get_registry().leaves.get_profile(str(user["employeeId"]), refresh=refresh)
        return {"status": "success", "data": data.get("profile", data)}

    # ------------------------------------------------------------------
    # Write tools
    # ------------------------------------------------------------------

    @mcp.tool
    @tool_error_handler("Failed to submit leave request. Please try again.")
    async def leaves_submit(
        leave_type: str,
        start_date: str,
        end_date: str,
        reason: str,
        half_day: bool = False,
    ) -> dict[str, Any]:
        """Submit a leave request for the signed-in user.

        Args:
            leave_type: Leave type name (e.g. 'sick', 'vacation').
            start_date: First day of leave, YYYY-MM-DD.
            end_date: Last day of leave, YYYY-MM-DD.
            reason: Reason for the leave.
            half_day: Request a half day. Only valid for single-day leave.
        """
        leave_type = leave_type.strip()
        if not leave_type:
            raise ToolError("leave_type is required.")
        if not reason.strip():
            raise ToolError("reason is required.")
        if len(reason) > MAX_LEAVE_REASON_LEN:
            raise ToolError(f"Reason too long (max {MAX_LEAVE_REASON_LEN} characters)")
        day_count = validate_date_range(start_date, end_date)
        if day_count > MAX_LEAVE_DAYS:
            raise ToolError(
                f"Leave spans {day_count} days, exceeding the maximum of {MAX_LEAVE_DAYS} days."
            )
        if half_day and day_count != 1:
            raise ToolError("half_day is only allowed when start_date equals end_date.")

        user = require_user()
        result = await get_registry().leaves.submit(
            str(user["employeeId"]),
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            half_day=half_day,
        )
        logger.info(
            "WRITE_OP tool=leaves_submit user=%s type=%s start=%s end=%s days=%s",
            user["employeeId"], leave_type, start_date, end_date, day_count,
        )
        return {"status": "success", "data": result}
