"""Tests for charts.py."""

from __future__ import annotations

import pytest

from charts import build_dashboard, leave_history_chart, leave_type_chart

USER = {"employeeId": "E1", "fullName": "Somchai Jaidee", "role": "employee", "password": "x"}


class TestHistoryChart:
    def test_line_chart_from_series(self) -> None:
        chart = leave_history_chart({"years": [2024, 2025], "days": [8, 11]})
        assert chart["type"] == "line"
        assert chart["data"]["labels"] == [2024, 2025]
        assert chart["data"]["datasets"][0]["data"] == [8, 11]
        assert chart["options"]["plugins"]["legend"]["display"] is False

    def test_missing_history_renders_empty(self) -> None:
        chart = leave_history_chart(None)
        assert chart["data"]["labels"] == []
        assert chart["data"]["datasets"][0]["data"] == []

    def test_mismatched_lengths_rejected(self) -> None:
        with pytest.raises(ValueError, match="differ in length"):
            leave_history_chart({"years": [2024, 2025], "days": [8]})


class TestTypeChart:
    def test_bar_chart_from_series(self) -> None:
        chart = leave_type_chart({"types": ["sick", "vacation"], "counts": [2, 5]})
        assert chart["type"] == "bar"
        assert chart["data"]["labels"] == ["sick", "vacation"]
        assert chart["data"]["datasets"][0]["data"] == [2, 5]


class TestBuildDashboard:
    def test_full_response(self) -> None:
        data = {
            "success": True,
            "summary": {"sick": {"used": 2, "remaining": 28}},
            "history": {"years": [2025], "days": [4]},
            "byType": {"types": ["sick"], "counts": [4]},
            "records": [{"id": "R1", "status": "approved"}],
        }
        dashboard = build_dashboard(data, USER)
        assert dashboard["user"] == {
            "employeeId": "E1",
            "fullName": "Somchai Jaidee",
            "role": "employee",
        }
        assert dashboard["summary"] == data["summary"]
        assert dashboard["charts"]["history"]["data"]["labels"] == [2025]
        assert dashboard["charts"]["by_type"]["data"]["labels"] == ["sick"]
        assert dashboard["records"] == data["records"]

    def test_sparse_response(self) -> None:
        dashboard = build_dashboard({"success": True}, USER)
        assert dashboard["summary"] == {}
        assert dashboard["records"] == []
        assert dashboard["charts"]["history"]["data"]["labels"] == []
