"""Client registry for the leave portal.

The registry is the single context object built once per server lifecycle:
it owns the HTTP transport, the domain clients, the shared loading
indicator, the login session and the offline asset cache.

Provides get_registry() / set_registry(). Tests inject mocks via
set_registry().
"""

from __future__ import annotations

from dataclasses import dataclass, field

from assets import OfflineAssetCache
from clients._base import BaseLeaveAPIClient
from clients._loading import LoadingIndicator
from clients.admin import AdminClient
from clients.leaves import LeavesClient
from session import SessionStore

__all__ = ["LeaveClientRegistry", "get_registry", "set_registry"]


@dataclass
class LeaveClientRegistry:
    """Holds the collaborators shared by every tool. One per server lifecycle."""

    base: BaseLeaveAPIClient
    session: SessionStore
    assets: OfflineAssetCache | None = None
    leaves: LeavesClient = field(init=False)
    admin: AdminClient = field(init=False)

    def __post_init__(self) -> None:
        self.leaves = LeavesClient(self.base)
        self.admin = AdminClient(self.base)

    @property
    def loading(self) -> LoadingIndicator:
        return self.base.loading

    async def close(self) -> None:
        await self.base.close()
        if self.assets is not None:
            await self.assets.close()


_registry: LeaveClientRegistry | None = None


def get_registry() -> LeaveClientRegistry:
    """Return the active registry, or raise if not initialized."""
    if _registry is None:
        raise RuntimeError("LeaveClientRegistry not initialized. Server lifespan has not started.")
    return _registry


def set_registry(registry: LeaveClientRegistry | None) -> None:
    """Set (or clear) the global registry. Used by lifespan and tests."""
    global _registry
    _registry = registry
