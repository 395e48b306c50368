"""Realtime cache reconciliation: keep a cached list consistent with a change feed.

Merge rules (apply_change), idempotent under duplicate delivery and tolerant of
gaps since delivery is at-least-once:

- insert: id present -> replace in place; absent -> prepend.
- update: id present -> replace in place; absent -> prepend (recovers a missed insert).
- delete: remove the id; absent -> no-op.

Mutation results from the user's own calls go through the same upsert path, so
whichever of (mutation result, realtime event) arrives first wins the slot and
the later one converges it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from typing import Any, Generic, TypeVar

from fiscalhub.application.dtos.realtime import ChangeEvent
from fiscalhub.application.interfaces.backend import IChangeFeed
from fiscalhub.domain.enums import ChangeKind

logger = logging.getLogger(__name__)

T = TypeVar("T")

RowMapper = Callable[[dict[str, Any]], Any]
Listener = Callable[[list[Any]], None]


def item_id(item: Any) -> str:
    """Id of a cached item (mapping with 'id' or object with .id), as string."""
    raw = item["id"] if isinstance(item, Mapping) else item.id
    return str(raw)


def as_row(row: dict[str, Any]) -> Any:
    return row


def apply_change(
    items: Sequence[T],
    event: ChangeEvent,
    to_item: RowMapper = as_row,
) -> list[T]:
    """Return a new list with event merged into items. Pure; items is not mutated."""
    row = event.row
    target = str(row["id"])
    if event.kind is ChangeKind.DELETE:
        return [i for i in items if item_id(i) != target]
    new_item = to_item(row)
    merged = list(items)
    for index, existing in enumerate(merged):
        if item_id(existing) == target:
            merged[index] = new_item
            return merged
    return [new_item, *merged]


def _dedupe(items: Iterable[T]) -> list[T]:
    """Keep the first position of each id with the last value seen for it."""
    positions: dict[str, int] = {}
    result: list[T] = []
    for item in items:
        key = item_id(item)
        if key in positions:
            result[positions[key]] = item
        else:
            positions[key] = len(result)
            result.append(item)
    return result


class CachedCollection(Generic[T]):
    """Ordered, id-keyed, in-memory list owned by one mounted view.

    - No duplicate ids.
    - Insertion order, unless sort_key is given (then stable-sorted after each change).
    - Changes applied while a snapshot fetch is in flight (the initial one or a
      refresh started with begin_load) are buffered and replayed on top of the
      snapshot when it lands.
    - Once closed (view unmounted), every write is ignored.
    """

    def __init__(
        self,
        items: Iterable[T] | None = None,
        *,
        sort_key: Callable[[T], Any] | None = None,
        reverse: bool = False,
    ) -> None:
        self._sort_key = sort_key
        self._reverse = reverse
        self._items: list[T] = []
        self._pending: list[tuple[ChangeEvent, RowMapper]] = []
        self._listeners: list[Listener] = []
        self._closed = False
        self._loads_in_flight = 0
        self._loaded = items is not None
        if items is not None:
            self._items = self._ordered(_dedupe(items))

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def items(self) -> list[T]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __contains__(self, key: object) -> bool:
        return any(item_id(i) == str(key) for i in self._items)

    def get(self, key: str) -> T | None:
        for item in self._items:
            if item_id(item) == str(key):
                return item
        return None

    def ids(self) -> list[str]:
        return [item_id(i) for i in self._items]

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def begin_load(self) -> None:
        """Mark a snapshot fetch as in flight; changes from now on are replayed over it."""
        if not self._closed:
            self._loads_in_flight += 1

    def abandon_load(self) -> None:
        """The fetch started with begin_load failed; stop recording changes for it."""
        self._finish_load()

    def load(self, items: Iterable[T]) -> bool:
        """Set the snapshot, then replay changes buffered while it was fetched."""
        if self._closed:
            return False
        snapshot = _dedupe(items)
        for event, to_item in self._pending:
            snapshot = apply_change(snapshot, event, to_item)
        self._loaded = True
        self._finish_load()
        self._set(snapshot)
        return True

    def apply(self, event: ChangeEvent, to_item: RowMapper = as_row) -> bool:
        """Merge one change event. Returns False if ignored (closed)."""
        if self._closed:
            return False
        if self._loaded:
            self._set(apply_change(self._items, event, to_item))
        if not self._loaded or self._loads_in_flight:
            self._pending.append((event, to_item))
        return True

    def upsert(self, item: T) -> bool:
        """Apply a successful mutation result with insert semantics."""
        return self.apply(ChangeEvent(ChangeKind.INSERT, new_row={"id": item_id(item)}), lambda _row: item)

    def remove(self, key: str) -> bool:
        return self.apply(ChangeEvent(ChangeKind.DELETE, old_row={"id": str(key)}))

    def close(self) -> None:
        """Detach: drop listeners and pending changes; later writes are no-ops."""
        self._closed = True
        self._loads_in_flight = 0
        self._pending.clear()
        self._listeners.clear()

    def _finish_load(self) -> None:
        # Overlapping fetches share the buffer until the last one lands; before
        # the first snapshot the buffer is kept for the next fetch.
        if self._loads_in_flight:
            self._loads_in_flight -= 1
        if self._loaded and not self._loads_in_flight:
            self._pending.clear()

    def _ordered(self, items: list[T]) -> list[T]:
        if self._sort_key is None:
            return items
        return sorted(items, key=self._sort_key, reverse=self._reverse)

    def _set(self, items: list[T]) -> None:
        self._items = self._ordered(items)
        snapshot = list(self._items)
        for listener in list(self._listeners):
            listener(snapshot)


class RealtimeReconciler(Generic[T]):
    """Consumes one table's change feed and merges events into a CachedCollection.

    The subscription is a cancellable task: start() when the view mounts and
    is enabled, stop() on unmount or when the enabling condition goes false.
    row_filter scopes a shared table to the view (e.g. folders of one client);
    a row that stops matching is removed from the cache.
    """

    def __init__(
        self,
        feed: IChangeFeed,
        table: str,
        collection: CachedCollection[T],
        *,
        to_item: RowMapper = as_row,
        row_filter: Callable[[dict[str, Any]], bool] | None = None,
    ) -> None:
        self.feed = feed
        self.table = table
        self.collection = collection
        self._to_item = to_item
        self._row_filter = row_filter
        self._task: asyncio.Task[None] | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def handle(self, event: ChangeEvent) -> bool:
        """Apply one event to the collection. Returns False if ignored."""
        if self.collection.closed:
            return False
        if (
            event.kind is not ChangeKind.DELETE
            and self._row_filter is not None
            and not self._row_filter(event.row)
        ):
            return self.collection.remove(str(event.row["id"]))
        return self.collection.apply(event, self._to_item)

    def start(self) -> None:
        """Start consuming (idempotent). Must be called from a running loop."""
        if self.active:
            return
        self._task = asyncio.create_task(
            self._consume(), name=f"realtime:{self.table}"
        )

    async def stop(self) -> None:
        """Cancel the subscription task and wait for the channel to close."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def set_enabled(self, enabled: bool) -> None:
        if enabled:
            self.start()
        else:
            await self.stop()

    async def _consume(self) -> None:
        stream = self.feed.subscribe(self.table)
        try:
            async for event in stream:
                try:
                    self.handle(event)
                except (KeyError, ValueError, TypeError):
                    logger.exception("Dropping malformed change event on %s", self.table)
        except Exception:
            logger.exception("Realtime subscription on %s failed", self.table)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
