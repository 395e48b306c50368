"""Tests for apply_change, CachedCollection and RealtimeReconciler."""

import itertools
from dataclasses import dataclass

import pytest

from fiscalhub.application.dtos.realtime import ChangeEvent
from fiscalhub.application.services.realtime_reconciler import (
    CachedCollection,
    RealtimeReconciler,
    apply_change,
    item_id,
)
from fiscalhub.domain.enums import ChangeKind
from tests.fakes import InMemoryChangeFeed, settle


def insert(id_: str, **values: object) -> ChangeEvent:
    return ChangeEvent(ChangeKind.INSERT, new_row={"id": id_, **values})


def update(id_: str, **values: object) -> ChangeEvent:
    return ChangeEvent(ChangeKind.UPDATE, new_row={"id": id_, **values})


def delete(id_: str) -> ChangeEvent:
    return ChangeEvent(ChangeKind.DELETE, old_row={"id": id_})


def ids(items: list[dict]) -> list[str]:
    return [item_id(i) for i in items]


class TestApplyChange:
    """Merge rules: upsert-or-prepend for insert/update, idempotent delete."""

    def test_insert_new_prepends(self) -> None:
        assert ids(apply_change([{"id": "a"}], insert("b"))) == ["b", "a"]

    def test_insert_existing_replaces_in_place(self) -> None:
        items = [{"id": "a", "name": "old"}, {"id": "b"}]
        merged = apply_change(items, insert("a", name="new"))
        assert merged == [{"id": "a", "name": "new"}, {"id": "b"}]

    def test_update_existing_replaces(self) -> None:
        merged = apply_change([{"id": "a"}, {"id": "b", "n": 1}], update("b", n=2))
        assert merged == [{"id": "a"}, {"id": "b", "n": 2}]

    def test_update_missing_prepends(self) -> None:
        assert ids(apply_change([{"id": "a"}], update("z"))) == ["z", "a"]

    def test_delete_present_and_absent(self) -> None:
        assert apply_change([{"id": "a"}, {"id": "b"}], delete("a")) == [{"id": "b"}]
        assert apply_change([{"id": "b"}], delete("a")) == [{"id": "b"}]

    def test_input_not_mutated(self) -> None:
        items = [{"id": "a"}]
        apply_change(items, insert("b"))
        assert items == [{"id": "a"}]

    def test_ids_compared_as_strings(self) -> None:
        assert apply_change([{"id": 1}], delete("1")) == []

    def test_to_item_mapper(self) -> None:
        @dataclass(frozen=True)
        class Row:
            id: str

        merged = apply_change([Row("a")], insert("b"), lambda r: Row(r["id"]))
        assert merged == [Row("b"), Row("a")]

    def test_duplicate_delivery_is_idempotent(self) -> None:
        """Applying any event twice gives the same list as applying it once."""
        base = [{"id": "a", "v": 0}, {"id": "b", "v": 0}]
        for event in (insert("c", v=1), update("a", v=2), update("x", v=3), delete("b"), delete("q")):
            once = apply_change(base, event)
            assert apply_change(once, event) == once

    def test_replays_converge_to_delivered_state(self) -> None:
        """Any sequence, with each event delivered twice in a row, keeps ids unique."""
        events = [insert("a", v=1), insert("b", v=1), update("a", v=2), delete("b"), update("c", v=1)]
        for perm in itertools.permutations(events, 3):
            items: list[dict] = []
            for event in perm:
                items = apply_change(apply_change(items, event), event)
            assert len(ids(items)) == len(set(ids(items)))


class TestCachedCollection:
    def test_initial_items_deduped(self) -> None:
        col = CachedCollection([{"id": "a", "v": 1}, {"id": "b"}, {"id": "a", "v": 2}])
        assert col.items == [{"id": "a", "v": 2}, {"id": "b"}]
        assert col.loaded

    def test_events_before_load_are_replayed(self) -> None:
        col: CachedCollection[dict] = CachedCollection()
        assert not col.loaded
        col.apply(insert("new"))
        col.apply(delete("gone"))
        col.apply(update("a", v=9))
        assert col.items == []
        col.load([{"id": "a", "v": 1}, {"id": "gone"}])
        assert col.items == [{"id": "new"}, {"id": "a", "v": 9}]

    def test_events_during_reload_apply_now_and_replay_on_snapshot(self) -> None:
        col = CachedCollection([{"id": "1"}, {"id": "2"}])
        col.begin_load()
        col.apply(delete("2"))
        assert col.items == [{"id": "1"}]
        col.load([{"id": "1"}, {"id": "2"}])
        assert col.items == [{"id": "1"}]

        col.apply(insert("3"))
        col.load([{"id": "1"}])
        assert col.items == [{"id": "1"}]

    def test_abandoned_load_stops_buffering(self) -> None:
        col = CachedCollection([{"id": "a"}])
        col.begin_load()
        col.apply(insert("b"))
        col.abandon_load()
        assert col.items == [{"id": "b"}, {"id": "a"}]
        col.load([{"id": "a"}])
        assert col.items == [{"id": "a"}]

    def test_closed_collection_ignores_writes(self) -> None:
        col = CachedCollection([{"id": "a"}])
        col.close()
        assert col.apply(insert("b")) is False
        assert col.load([{"id": "z"}]) is False
        assert col.upsert({"id": "c"}) is False
        assert col.remove("a") is False
        assert col.items == [{"id": "a"}]

    def test_upsert_and_remove(self) -> None:
        col = CachedCollection([{"id": "a", "n": 1}])
        col.upsert({"id": "b", "n": 1})
        col.upsert({"id": "a", "n": 2})
        assert col.items == [{"id": "b", "n": 1}, {"id": "a", "n": 2}]
        col.remove("b")
        assert col.ids() == ["a"]
        assert "a" in col
        assert col.get("a") == {"id": "a", "n": 2}
        assert col.get("b") is None

    def test_mutation_result_and_event_converge(self) -> None:
        """Own mutation result and its realtime echo leave one entry, in either order."""
        first = CachedCollection([{"id": "x"}])
        first.upsert({"id": "c1", "name": "Acme"})
        first.apply(insert("c1", name="Acme"))

        second = CachedCollection([{"id": "x"}])
        second.apply(insert("c1", name="Acme"))
        second.upsert({"id": "c1", "name": "Acme"})

        assert first.items == second.items == [{"id": "c1", "name": "Acme"}, {"id": "x"}]

    def test_sort_key(self) -> None:
        col = CachedCollection([{"id": "b", "n": 2}, {"id": "a", "n": 1}], sort_key=lambda r: r["n"])
        col.apply(insert("c", n=0))
        assert col.ids() == ["c", "a", "b"]

    def test_listeners(self) -> None:
        col = CachedCollection([{"id": "a"}])
        seen: list[list[str]] = []
        unsubscribe = col.subscribe(lambda items: seen.append(ids(items)))
        col.apply(insert("b"))
        unsubscribe()
        col.apply(insert("c"))
        assert seen == [["b", "a"]]


class TestRealtimeReconciler:
    async def test_consumes_feed(self) -> None:
        feed = InMemoryChangeFeed()
        col = CachedCollection([{"id": "a"}])
        reconciler = RealtimeReconciler(feed, "clients", col)
        reconciler.start()
        await settle()
        assert reconciler.active
        assert feed.subscriber_count("clients") == 1

        feed.emit("clients", insert("b"))
        feed.emit("clients", insert("b"))
        feed.emit("clients", delete("a"))
        feed.emit("folders", insert("other-table"))
        await settle()
        assert col.ids() == ["b"]

        await reconciler.stop()
        assert not reconciler.active
        assert feed.subscriber_count("clients") == 0

    async def test_start_is_idempotent(self) -> None:
        feed = InMemoryChangeFeed()
        reconciler = RealtimeReconciler(feed, "clients", CachedCollection([]))
        reconciler.start()
        reconciler.start()
        await settle()
        assert feed.subscriber_count("clients") == 1
        await reconciler.stop()
        await reconciler.stop()

    async def test_row_filter_removes_rows_leaving_scope(self) -> None:
        feed = InMemoryChangeFeed()
        col = CachedCollection([{"id": "f1", "client_id": "c1"}])
        reconciler = RealtimeReconciler(
            feed, "folders", col, row_filter=lambda r: r.get("client_id") == "c1"
        )
        reconciler.start()
        await settle()
        feed.emit("folders", insert("f2", client_id="c2"))
        feed.emit("folders", update("f1", client_id="c2"))
        await settle()
        assert col.items == []
        await reconciler.stop()

    async def test_malformed_event_is_dropped(self) -> None:
        feed = InMemoryChangeFeed()
        col = CachedCollection([{"id": "a"}])
        reconciler = RealtimeReconciler(feed, "clients", col)
        reconciler.start()
        await settle()
        feed.emit("clients", ChangeEvent(ChangeKind.INSERT, new_row={"name": "no id"}))
        feed.emit("clients", insert("b"))
        await settle()
        assert col.ids() == ["b", "a"]
        await reconciler.stop()

    async def test_events_after_close_are_ignored(self) -> None:
        feed = InMemoryChangeFeed()
        col = CachedCollection([{"id": "a"}])
        reconciler = RealtimeReconciler(feed, "clients", col)
        col.close()
        assert reconciler.handle(insert("b")) is False
        assert col.ids() == ["a"]

    async def test_set_enabled(self) -> None:
        feed = InMemoryChangeFeed()
        reconciler = RealtimeReconciler(feed, "clients", CachedCollection([]))
        await reconciler.set_enabled(True)
        await settle()
        assert feed.subscriber_count("clients") == 1
        await reconciler.set_enabled(False)
        assert feed.subscriber_count("clients") == 0


@pytest.mark.parametrize("kind", [ChangeKind.INSERT, ChangeKind.UPDATE])
def test_apply_change_requires_row(kind: ChangeKind) -> None:
    with pytest.raises(ValueError):
        apply_change([], ChangeEvent(kind))
