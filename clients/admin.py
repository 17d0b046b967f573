"""Domain client for administrative reporting."""

from __future__ import annotations

from typing import Any

from clients._base import BaseLeaveAPIClient, RequestOptions

__all__ = ["AdminClient"]


class AdminClient:
    """Organisation-wide dashboard and report export."""

    def __init__(self, base: BaseLeaveAPIClient) -> None:
        self._base = base

    async def get_dashboard(
        self,
        employee_id: str,
        role: str,
        department: str | None = None,
        *,
        refresh: bool = False,
    ) -> dict[str, Any]:
        """Get aggregate leave statistics, optionally for one department."""
        return await self._base.request(
            "adminDashboard",
            {"employeeId": employee_id, "role": role, "department": department},
            RequestOptions(loading_message="Loading admin dashboard...", refresh=refresh),
        )

    def export_url(
        self,
        report_type: str,
        start_date: str,
        end_date: str,
        department: str = "",
    ) -> str:
        """Return the download URL of a report.

        The export action answers with a file rather than JSON, so it is
        handed to the caller as a link instead of being requested here.
        """
        return self._base.build_url(
            "export",
            {
                "type": report_type,
                "start": start_date,
                "end": end_date,
                "department": department,
            },
        )
