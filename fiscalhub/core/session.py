"""Session context: identity, effective role, capability flags and live caches.

One SessionContext exists per signed-in identity. init() resolves the role and
loads the flags once; every permission check in the session reads those.
teardown() unsubscribes every live collection and resets to an anonymous state.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fiscalhub.application.dtos.capability import CapabilityFlags
from fiscalhub.application.dtos.identity import Identity
from fiscalhub.application.dtos.result import ApiListResult, RemoteResponse
from fiscalhub.application.interfaces.backend import IChangeFeed, IRowStore
from fiscalhub.application.query import RowQuery
from fiscalhub.application.services.capability_policy import CapabilityPolicy
from fiscalhub.application.services.live_collection import LiveCollection
from fiscalhub.application.services.retry_executor import RetryExecutor
from fiscalhub.application.services.role_resolver import RoleResolver
from fiscalhub.core.constants import TABLE_APP_PERMISSIONS, TABLE_USER_ROLES
from fiscalhub.domain.enums import Action, EffectiveRole
from fiscalhub.domain.exceptions import SessionNotActiveException

logger = logging.getLogger(__name__)


async def load_capability_flags(store: IRowStore, executor: RetryExecutor) -> CapabilityFlags:
    """Read the single flags row (lowest id). Failure or absence gives all-false flags."""

    async def _load() -> RemoteResponse[dict[str, Any] | None]:
        return await store.execute(
            RowQuery.on(TABLE_APP_PERMISSIONS).select("*").order("id").limit(1).maybe_single()
        )

    result = await executor.execute(_load)
    if not result.success:
        logger.warning("Capability flags unavailable, using defaults: %s", result.error)
        return CapabilityFlags()
    return CapabilityFlags.from_row(result.data)


class SessionContext:
    """Per-identity session state shared by the views of one signed-in user."""

    def __init__(
        self,
        store: IRowStore,
        executor: RetryExecutor,
        *,
        feed: IChangeFeed | None = None,
        realtime_enabled: bool = True,
    ) -> None:
        self._store = store
        self._executor = executor
        self._feed = feed
        self._realtime_enabled = realtime_enabled
        self.identity: Identity | None = None
        self.role: EffectiveRole = EffectiveRole.NONE
        self.flags: CapabilityFlags = CapabilityFlags()
        self._collections: dict[str, LiveCollection[Any]] = {}

    @property
    def active(self) -> bool:
        return self.identity is not None

    @property
    def policy(self) -> CapabilityPolicy:
        return CapabilityPolicy(self.role, self.flags)

    @property
    def executor(self) -> RetryExecutor:
        return self._executor

    async def init(self, identity: Identity) -> SessionContext:
        """Resolve the effective role and load capability flags for identity."""
        self.identity = identity
        self.role = await self._resolve_role(identity.id)
        self.flags = await load_capability_flags(self._store, self._executor)
        logger.info("Session started for %s with role %s", identity.id, self.role.value)
        return self

    async def reload_flags(self) -> CapabilityFlags:
        """Re-read flags (e.g. after an admin saved them)."""
        self.flags = await load_capability_flags(self._store, self._executor)
        return self.flags

    def can(self, action: Action) -> bool:
        if not self.active:
            return False
        return self.policy.can(action)

    def require(self, action: Action) -> None:
        """Raise SessionNotActiveException or AuthorizationException when not allowed."""
        if not self.active:
            raise SessionNotActiveException()
        self.policy.require(action)

    def open_collection(
        self,
        key: str,
        loader: Callable[[], Awaitable[ApiListResult[Any]]],
        **options: Any,
    ) -> LiveCollection[Any]:
        """Return the session's LiveCollection for key, creating it on first use.

        options are passed to LiveCollection (table, to_item, row_filter, sort_key, ...).
        """
        if not self.active:
            raise SessionNotActiveException()
        existing = self._collections.get(key)
        if existing is not None and not existing.collection.closed:
            return existing
        options.setdefault("feed", self._feed)
        live: LiveCollection[Any] = LiveCollection(key, loader, **options)
        self._collections[key] = live
        return live

    async def mount_collection(
        self,
        key: str,
        loader: Callable[[], Awaitable[ApiListResult[Any]]],
        **options: Any,
    ) -> LiveCollection[Any]:
        """open_collection() and mount it if it is not mounted yet."""
        live = self.open_collection(key, loader, **options)
        if not live.mounted:
            await live.mount(realtime_enabled=self._realtime_enabled)
        return live

    def collection(self, key: str) -> LiveCollection[Any] | None:
        return self._collections.get(key)

    async def close_collection(self, key: str) -> None:
        live = self._collections.pop(key, None)
        if live is not None:
            await live.unmount()

    async def teardown(self) -> None:
        """Unmount every collection and reset to an anonymous session."""
        for key in list(self._collections):
            await self.close_collection(key)
        if self.identity is not None:
            logger.info("Session ended for %s", self.identity.id)
        self.identity = None
        self.role = EffectiveRole.NONE
        self.flags = CapabilityFlags()

    async def _resolve_role(self, identity_id: str) -> EffectiveRole:
        async def _roles() -> RemoteResponse[list[dict[str, Any]]]:
            return await self._store.execute(
                RowQuery.on(TABLE_USER_ROLES).select("user_id, role").eq("user_id", identity_id)
            )

        result = await self._executor.execute_list(_roles)
        if not result.success:
            logger.warning("Role lookup failed for %s: %s", identity_id, result.error)
            return EffectiveRole.NONE
        return RoleResolver.resolve(row.get("role") for row in result.data)
