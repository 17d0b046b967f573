"""Busy indicator shared by every API call of one server lifecycle."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

__all__ = ["LoadingIndicator"]

logger = logging.getLogger("leave_mcp.client")

DEFAULT_MESSAGE = "Loading..."


class LoadingIndicator:
    """Reference-counted "request in progress" flag.

    Overlapping calls each hold a scope; the indicator stays visible until
    the last one exits. The message is always the most recent one shown.
    """

    def __init__(self) -> None:
        self._depth = 0
        self._message: str | None = None

    @property
    def visible(self) -> bool:
        return self._depth > 0

    @property
    def message(self) -> str | None:
        return self._message if self.visible else None

    def show(self, message: str = DEFAULT_MESSAGE) -> None:
        self._depth += 1
        self._message = message
        logger.debug("Loading indicator shown (depth=%d): %s", self._depth, message)

    def hide(self) -> None:
        if self._depth == 0:
            return
        self._depth -= 1
        if self._depth == 0:
            self._message = None
            logger.debug("Loading indicator hidden")

    @contextmanager
    def scope(self, message: str = DEFAULT_MESSAGE) -> Iterator[None]:
        """Show the indicator for the duration of the block."""
        self.show(message)
        try:
            yield
        finally:
            self.hide()
