"""Domain client for employee leave actions.

Uses composition: holds a reference to :class:`BaseLeaveAPIClient` and
delegates all network I/O through ``self._base.request()``.
"""

from __future__ import annotations

from typing import Any

from clients._base import BaseLeaveAPIClient, RequestOptions

__all__ = ["LeavesClient"]


class LeavesClient:
    """Employee-facing operations on the leave API."""

    def __init__(self, base: BaseLeaveAPIClient) -> None:
        self._base = base

    # -- authentication -----------------------------------------------------

    async def login(self, employee_id: str, password: str) -> dict[str, Any]:
        """Verify credentials.  Never cached."""
        return await self._base.request(
            "login",
            {"employeeId": employee_id, "password": password},
            RequestOptions(loading_message="Signing in...", use_cache=False),
        )

    # -- read methods -------------------------------------------------------

    async def get_summary(
        self, employee_id: str, role: str, *, refresh: bool = False
    ) -> dict[str, Any]:
        """Get balances, history and records for the dashboard."""
        return await self._base.request(
            "leaveSummary",
            {"employeeId": employee_id, "role": role},
            RequestOptions(loading_message="Loading leave summary...", refresh=refresh),
        )

    async def get_profile(self, employee_id: str, *, refresh: bool = False) -> dict[str, Any]:
        return await self._base.request(
            "getProfile",
            {"employeeId": employee_id},
            RequestOptions(loading_message="Loading profile...", refresh=refresh),
        )

    # -- write methods ------------------------------------------------------

    async def submit(
        self,
        employee_id: str,
        leave_type: str,
        start_date: str,
        end_date: str,
        reason: str,
        half_day: bool = False,
    ) -> dict[str, Any]:
        """Submit a leave request."""
        params: dict[str, Any] = {
            "employeeId": employee_id,
            "leaveType": leave_type,
            "startDate": start_date,
            "endDate": end_date,
            "reason": reason,
            "halfDay": half_day,
        }
        return await self._base.request(
            "submitLeave",
            params,
            RequestOptions(loading_message="Submitting leave request...", use_cache=False),
        )
