"""Tests for clients/leaves.py and clients/admin.py.

The domain clients are thin: verify each one sends the right action and
parameters through the real ``BaseLeaveAPIClient`` with respx.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
import respx

from clients._base import BaseLeaveAPIClient
from clients._errors import ApplicationError
from clients.admin import AdminClient
from clients.leaves import LeavesClient

API_URL = "https://leave.example.com/exec"


@pytest_asyncio.fixture
async def base() -> AsyncGenerator[BaseLeaveAPIClient, None]:
    c = BaseLeaveAPIClient(API_URL)
    yield c
    await c.close()


@pytest.fixture
def leaves(base: BaseLeaveAPIClient) -> LeavesClient:
    return LeavesClient(base)


@pytest.fixture
def admin(base: BaseLeaveAPIClient) -> AdminClient:
    return AdminClient(base)


class TestLogin:
    @respx.mock
    async def test_sends_credentials(self, leaves: LeavesClient) -> None:
        route = respx.get(API_URL).mock(
            return_value=httpx.Response(
                200, json={"success": True, "user": {"employeeId": "E1", "role": "employee"}}
            )
        )
        result = await leaves.login("E1", "secret")
        assert result["user"]["employeeId"] == "E1"
        params = route.calls.last.request.url.params
        assert params["action"] == "login"
        assert params["employeeId"] == "E1"
        assert params["password"] == "secret"

    @respx.mock
    async def test_rejected_login_raises_once(self, leaves: LeavesClient) -> None:
        route = respx.get(API_URL).mock(
            return_value=httpx.Response(200, json={"success": False, "message": "invalid"})
        )
        with pytest.raises(ApplicationError, match="invalid"):
            await leaves.login("E1", "x")
        assert route.call_count == 1

    @respx.mock
    async def test_login_never_cached(self, leaves: LeavesClient) -> None:
        route = respx.get(API_URL).mock(
            return_value=httpx.Response(200, json={"success": True, "user": {"employeeId": "E1"}})
        )
        await leaves.login("E1", "x")
        await leaves.login("E1", "x")
        assert route.call_count == 2


class TestReads:
    @respx.mock
    async def test_summary_params_and_cache(self, leaves: LeavesClient) -> None:
        route = respx.get(API_URL).mock(
            return_value=httpx.Response(200, json={"success": True, "summary": {"sick": 2}})
        )
        await leaves.get_summary("E1", "employee")
        await leaves.get_summary("E1", "employee")
        assert route.call_count == 1
        params = route.calls.last.request.url.params
        assert params["action"] == "leaveSummary"
        assert params["role"] == "employee"

    @respx.mock
    async def test_summary_refresh_bypasses_cache(self, leaves: LeavesClient) -> None:
        route = respx.get(API_URL).mock(
            side_effect=[
                httpx.Response(200, json={"success": True, "remaining": 10}),
                httpx.Response(200, json={"success": True, "remaining": 7}),
            ]
        )
        assert (await leaves.get_summary("E1", "employee"))["remaining"] == 10
        refreshed = await leaves.get_summary("E1", "employee", refresh=True)
        assert refreshed["remaining"] == 7
        # The refreshed body replaced the cached one.
        again = await leaves.get_summary("E1", "employee")
        assert again["remaining"] == 7
        assert route.call_count == 2

    @respx.mock
    async def test_profile(self, leaves: LeavesClient) -> None:
        route = respx.get(API_URL).mock(
            return_value=httpx.Response(200, json={"success": True, "profile": {"fullName": "A"}})
        )
        result = await leaves.get_profile("E1")
        assert result["profile"]["fullName"] == "A"
        assert route.calls.last.request.url.params["action"] == "getProfile"


class TestSubmit:
    @respx.mock
    async def test_submit_params(self, leaves: LeavesClient) -> None:
        route = respx.get(API_URL).mock(
            return_value=httpx.Response(200, json={"success": True, "requestId": "R9"})
        )
        result = await leaves.submit(
            "E1", "sick", "2026-10-19", "2026-10-19", "flu", half_day=True
        )
        assert result["requestId"] == "R9"
        params = route.calls.last.request.url.params
        assert params["action"] == "submitLeave"
        assert params["leaveType"] == "sick"
        assert params["startDate"] == "2026-10-19"
        assert params["endDate"] == "2026-10-19"
        assert params["reason"] == "flu"
        assert params["halfDay"] == "true"

    @respx.mock
    async def test_submit_never_cached(self, leaves: LeavesClient) -> None:
        route = respx.get(API_URL).mock(return_value=httpx.Response(200, json={"success": True}))
        await leaves.submit("E1", "sick", "2026-10-19", "2026-10-19", "flu")
        await leaves.submit("E1", "sick", "2026-10-19", "2026-10-19", "flu")
        assert route.call_count == 2


class TestAdmin:
    @respx.mock
    async def test_dashboard_omits_empty_department(self, admin: AdminClient) -> None:
        route = respx.get(API_URL).mock(return_value=httpx.Response(200, json={"success": True}))
        await admin.get_dashboard("A1", "admin")
        params = route.calls.last.request.url.params
        assert params["action"] == "adminDashboard"
        assert "department" not in params

    @respx.mock
    async def test_dashboard_department_filter(self, admin: AdminClient) -> None:
        route = respx.get(API_URL).mock(return_value=httpx.Response(200, json={"success": True}))
        await admin.get_dashboard("A1", "admin", "HR")
        assert route.calls.last.request.url.params["department"] == "HR"

    def test_export_url(self, admin: AdminClient) -> None:
        url = httpx.URL(admin.export_url("excel", "2026-01-01", "2026-01-31", "HR"))
        assert url.params["action"] == "export"
        assert url.params["type"] == "excel"
        assert url.params["start"] == "2026-01-01"
        assert url.params["end"] == "2026-01-31"
        assert url.params["department"] == "HR"
