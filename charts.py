"""Chart.js configurations and dashboard assembly from API responses."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

__all__ = ["build_dashboard", "leave_history_chart", "leave_type_chart"]

HISTORY_COLOR = "#4f8cff"
HISTORY_FILL = "rgba(79,140,255,0.09)"
TYPE_COLOR = "#38e6c0"


def _series(source: Any, labels_key: str, values_key: str) -> tuple[list[Any], list[Any]]:
    if not isinstance(source, dict):
        return [], []
    labels: Sequence[Any] = source.get(labels_key) or []
    values: Sequence[Any] = source.get(values_key) or []
    if len(labels) != len(values):
        raise ValueError(
            f"{labels_key} and {values_key} differ in length ({len(labels)} != {len(values)})"
        )
    return list(labels), list(values)


def leave_history_chart(history: dict[str, Any] | None) -> dict[str, Any]:
    """Line chart of days taken per year from ``{years, days}``."""
    years, days = _series(history, "years", "days")
    return {
        "type": "line",
        "data": {
            "labels": years,
            "datasets": [
                {
                    "label": "Leave days",
                    "data": days,
                    "borderColor": HISTORY_COLOR,
                    "tension": 0.3,
                    "fill": True,
                    "backgroundColor": HISTORY_FILL,
                }
            ],
        },
        "options": {"responsive": True, "plugins": {"legend": {"display": False}}},
    }


def leave_type_chart(by_type: dict[str, Any] | None) -> dict[str, Any]:
    """Bar chart of total days per leave type from ``{types, counts}``."""
    types, counts = _series(by_type, "types", "counts")
    return {
        "type": "bar",
        "data": {
            "labels": types,
            "datasets": [{"label": "Total days", "data": counts, "backgroundColor": TYPE_COLOR}],
        },
        "options": {"responsive": True},
    }


def build_dashboard(data: dict[str, Any], user: dict[str, Any]) -> dict[str, Any]:
    """Shape a ``leaveSummary`` response into what the dashboard shows.

    Missing series render as empty charts; mismatched series raise
    ``ValueError``.
    """
    records = data.get("records")
    return {
        "user": {
            "employeeId": user.get("employeeId"),
            "fullName": user.get("fullName"),
            "role": user.get("role"),
        },
        "summary": data.get("summary") or {},
        "charts": {
            "history": leave_history_chart(data.get("history")),
            "by_type": leave_type_chart(data.get("byType")),
        },
        "records": records if isinstance(records, list) else [],
    }
