"""Persistent login session for the leave portal.

Holds the signed-in user's record and login time in a small JSON file so
the identity survives server restarts until an explicit logout.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

__all__ = ["SessionStore", "default_session_path"]

logger = logging.getLogger("leave_mcp.server")

_USER_KEY = "user"
_LOGIN_TIME_KEY = "loginTime"


def default_session_path() -> Path:
    """Return ``SESSION_FILE`` or ``~/.leave-mcp/session.json``."""
    configured = os.environ.get("SESSION_FILE")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".leave-mcp" / "session.json"


class SessionStore:
    """File-backed store for the ``user`` record and ``loginTime``."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed session file %s", self._path)
            return {}
        return data

    def save(self, user: dict[str, Any], login_time: datetime | None = None) -> None:
        """Persist *user* as the signed-in identity."""
        if not user.get("employeeId"):
            raise ValueError("user record must contain an employeeId")
        login_time = login_time or datetime.now(UTC)
        payload = {_USER_KEY: user, _LOGIN_TIME_KEY: login_time.isoformat()}

        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        # Owner-only from creation; a stale temp file could carry wider bits.
        tmp.unlink(missing_ok=True)
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        os.replace(tmp, self._path)

    def load_user(self) -> dict[str, Any] | None:
        user = self._read().get(_USER_KEY)
        return user if isinstance(user, dict) and user.get("employeeId") else None

    def login_time(self) -> datetime | None:
        raw = self._read().get(_LOGIN_TIME_KEY)
        if not isinstance(raw, str):
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            return None

    def is_admin(self) -> bool:
        user = self.load_user()
        return user is not None and user.get("role") == "admin"

    def clear(self) -> None:
        """Forget the signed-in user (logout)."""
        self._path.unlink(missing_ok=True)
