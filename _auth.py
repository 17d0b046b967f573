"""Shared session and error-handling helpers for MCP tools."""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

from fastmcp.exceptions import ToolError

from clients import get_registry
from clients._errors import NetworkError

logger = logging.getLogger("leave_mcp.server")

UNREACHABLE_MESSAGE = "Unable to reach the leave server. Please try again later."

P = ParamSpec("P")
R = TypeVar("R")


def tool_error_handler(
    error_message: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator that wraps MCP tool functions with standard error handling.

    Converts PermissionError and ValueError (which includes
    ApplicationError) to ToolError preserving the message, reports
    exhausted retries with a generic "cannot reach server" message, and
    catches all other exceptions with *error_message*.
    """

    def decorator(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await fn(*args, **kwargs)
            except ToolError:
                raise
            except NetworkError as exc:
                logger.warning("%s: leave server unreachable: %s", fn.__name__, exc)
                raise ToolError(UNREACHABLE_MESSAGE) from exc
            except PermissionError as exc:
                raise ToolError(str(exc)) from exc
            except ValueError as exc:
                raise ToolError(str(exc)) from exc
            except Exception:
                logger.exception("%s failed", fn.__name__)
                raise ToolError(error_message) from None

        return wrapper

    return decorator


def require_user() -> dict[str, Any]:
    """Return the signed-in user record.

    Raises:
        PermissionError: If nobody is logged in.
    """
    user = get_registry().session.load_user()
    if user is None:
        raise PermissionError("Please log in first.")
    return user


def require_admin() -> dict[str, Any]:
    """Return the signed-in user record if it has the admin role."""
    user = require_user()
    if user.get("role") != "admin":
        raise PermissionError("Administrator access is required.")
    return user
