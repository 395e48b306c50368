"""Tests for RedisChangeFeed (mock redis client injected)."""

import asyncio
import json
from typing import Any

import redis.asyncio as redis

from fiscalhub.application.dtos.realtime import ChangeEvent
from fiscalhub.core.config import Settings
from fiscalhub.domain.enums import ChangeKind
from fiscalhub.infrastructure.messaging.redis_change_feed import RedisChangeFeed
from tests.fakes import settle


class MockPubSub:
    def __init__(self, broker: "MockRedis") -> None:
        self.broker = broker
        self.queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self.channels: list[str] = []
        self.closed = False

    async def subscribe(self, channel: str) -> None:
        self.channels.append(channel)
        self.broker.subscribers.setdefault(channel, []).append(self)
        self.queue.put_nowait({"type": "subscribe", "channel": channel, "data": 1})

    async def unsubscribe(self, channel: str) -> None:
        self.channels.remove(channel)
        self.broker.subscribers[channel].remove(self)

    async def aclose(self) -> None:
        self.closed = True

    async def listen(self):
        while True:
            yield await self.queue.get()


class MockRedis:
    def __init__(self, fail_publish: bool = False) -> None:
        self.subscribers: dict[str, list[MockPubSub]] = {}
        self.published: list[tuple[str, str]] = []
        self.fail_publish = fail_publish
        self.closed = False
        self.pubsubs: list[MockPubSub] = []

    async def publish(self, channel: str, data: str) -> int:
        if self.fail_publish:
            raise redis.ConnectionError("down")
        self.published.append((channel, data))
        for sub in self.subscribers.get(channel, []):
            sub.queue.put_nowait({"type": "message", "channel": channel, "data": data})
        return len(self.subscribers.get(channel, []))

    def pubsub(self) -> MockPubSub:
        pubsub = MockPubSub(self)
        self.pubsubs.append(pubsub)
        return pubsub

    async def aclose(self) -> None:
        self.closed = True


def make_feed(client: MockRedis | None = None) -> RedisChangeFeed:
    return RedisChangeFeed(redis_client=client, settings=Settings(realtime_channel_prefix="rt"))


async def test_publish_serializes_wire_shape() -> None:
    client = MockRedis()
    feed = make_feed(client)
    assert feed.is_available()
    ok = await feed.publish("clients", ChangeEvent(ChangeKind.INSERT, new_row={"id": "c1"}))
    assert ok
    channel, data = client.published[0]
    assert channel == "rt:clients"
    assert json.loads(data) == {"eventType": "INSERT", "new": {"id": "c1"}, "old": {}}


async def test_publish_failure_returns_false() -> None:
    feed = make_feed(MockRedis(fail_publish=True))
    assert await feed.publish("clients", ChangeEvent(ChangeKind.DELETE, old_row={"id": "c1"})) is False


async def test_unavailable_feed() -> None:
    feed = make_feed(None)
    assert not feed.is_available()
    assert await feed.publish("clients", ChangeEvent(ChangeKind.DELETE, old_row={"id": "c1"})) is False
    events = [e async for e in feed.subscribe("clients")]
    assert events == []


async def test_subscribe_yields_events_and_skips_garbage() -> None:
    client = MockRedis()
    feed = make_feed(client)
    stream = feed.subscribe("folders")
    first = asyncio.ensure_future(stream.__anext__())
    await settle()

    await client.publish("rt:folders", "not json")
    await client.publish("rt:folders", json.dumps({"new": {"id": "x"}}))
    await feed.publish("folders", ChangeEvent(ChangeKind.UPDATE, new_row={"id": "f1", "name": "2024"}))

    event = await first
    assert event == ChangeEvent(ChangeKind.UPDATE, new_row={"id": "f1", "name": "2024"})

    await stream.aclose()
    pubsub = client.pubsubs[0]
    assert pubsub.closed
    assert pubsub.channels == []


async def test_disconnect_closes_client() -> None:
    client = MockRedis()
    feed = make_feed(client)
    await feed.disconnect()
    assert client.closed
    assert not feed.is_available()
