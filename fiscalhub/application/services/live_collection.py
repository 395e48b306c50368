"""LiveCollection: the cached collection behind one mounted list view.

Lifecycle:
    live = LiveCollection(key, loader, table=..., feed=...)
    await live.mount()            # subscribe, then fetch (events during any fetch are replayed)
    await live.apply_mutation(r)  # after a successful create/update, once
    await live.unmount()          # unsubscribe; in-flight fetch results are dropped
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from fiscalhub.application.dtos.result import ApiListResult, ApiResult
from fiscalhub.application.interfaces.backend import IChangeFeed
from fiscalhub.application.services.realtime_reconciler import (
    CachedCollection,
    RealtimeReconciler,
    RowMapper,
    as_row,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LiveCollection(Generic[T]):
    """Initial fetch through RetryExecutor plus realtime patches, for one view."""

    def __init__(
        self,
        key: str,
        loader: Callable[[], Awaitable[ApiListResult[T]]],
        *,
        table: str | None = None,
        feed: IChangeFeed | None = None,
        to_item: RowMapper = as_row,
        row_filter: Callable[[dict[str, Any]], bool] | None = None,
        sort_key: Callable[[T], Any] | None = None,
        reverse: bool = False,
    ) -> None:
        self.key = key
        self._loader = loader
        self.collection: CachedCollection[T] = CachedCollection(
            sort_key=sort_key, reverse=reverse
        )
        self.reconciler: RealtimeReconciler[T] | None = None
        if feed is not None and table is not None:
            self.reconciler = RealtimeReconciler(
                feed, table, self.collection, to_item=to_item, row_filter=row_filter
            )
        self._mounted = False

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def items(self) -> list[T]:
        return self.collection.items

    async def mount(self, *, realtime_enabled: bool = True) -> ApiListResult[T]:
        """Subscribe (if enabled) and load the initial snapshot."""
        if self.collection.closed:
            raise RuntimeError(f"Collection {self.key!r} was unmounted; create a new one")
        self._mounted = True
        if self.reconciler is not None and realtime_enabled:
            self.reconciler.start()
        return await self.refresh()

    async def refresh(self) -> ApiListResult[T]:
        """Re-fetch the snapshot; a result arriving after unmount is dropped.

        Changes delivered while the fetch is in flight are replayed over the
        new snapshot.
        """
        self.collection.begin_load()
        landed = False
        try:
            result = await self._loader()
            if result.success:
                landed = True
                if not self.collection.load(result.data):
                    logger.debug("Dropping stale load for unmounted collection %s", self.key)
        finally:
            if not landed:
                self.collection.abandon_load()
        return result

    async def set_realtime_enabled(self, enabled: bool) -> None:
        if self.reconciler is not None and not self.collection.closed:
            await self.reconciler.set_enabled(enabled)

    def apply_mutation(self, result: ApiResult[T]) -> bool:
        """Merge a successful create/update result into the cache (once)."""
        if not result.success or result.data is None:
            return False
        return self.collection.upsert(result.data)

    def apply_removal(self, key: str, result: ApiResult[Any]) -> bool:
        """Drop key from the cache after a successful delete."""
        if not result.success:
            return False
        return self.collection.remove(key)

    async def unmount(self) -> None:
        """Unsubscribe and close the cache; later writes are ignored."""
        if self.reconciler is not None:
            await self.reconciler.stop()
        self.collection.close()
        self._mounted = False
