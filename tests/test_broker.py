from __future__ import annotations

from typing import Any

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from tgrelay.bus.broker import RedisBroker
from tgrelay.errors import DeliveryError


class StubPubSub:
    def __init__(self, frames: list[dict[str, Any]]):
        self._frames = frames
        self.topics: list[str] = []
        self.closed = False

    async def subscribe(self, *topics: str) -> None:
        self.topics.extend(topics)

    async def listen(self):
        for frame in self._frames:
            yield frame

    async def aclose(self) -> None:
        self.closed = True


class StubRedis:
    def __init__(self, frames: list[dict[str, Any]] | None = None, fail: bool = False):
        self.published: list[tuple[str, str]] = []
        self.pubsubs: list[StubPubSub] = []
        self._frames = frames or []
        self._fail = fail
        self.closed = False

    async def publish(self, channel: str, message: str) -> int:
        if self._fail:
            raise RedisConnectionError("connection refused")
        self.published.append((channel, message))
        return 1

    def pubsub(self) -> StubPubSub:
        ps = StubPubSub(self._frames)
        self.pubsubs.append(ps)
        return ps

    async def aclose(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_publish_forwards_to_redis() -> None:
    client = StubRedis()
    await RedisBroker(client).publish("telegram-message", '{"a":1}')
    assert client.published == [("telegram-message", '{"a":1}')]


@pytest.mark.asyncio
async def test_publish_failure_raises_delivery_error() -> None:
    with pytest.raises(DeliveryError):
        await RedisBroker(StubRedis(fail=True)).publish("t", "m")


@pytest.mark.asyncio
async def test_subscribe_yields_only_message_payloads() -> None:
    client = StubRedis(
        frames=[
            {"type": "subscribe", "channel": "telegram-send", "data": 1},
            {"type": "message", "channel": "telegram-send", "data": '{"chatId":1}'},
            {"type": "message", "channel": "telegram-send", "data": b'{"chatId":2}'},
        ]
    )
    broker = RedisBroker(client)

    received = [m async for m in broker.subscribe("telegram-send")]

    assert received == ['{"chatId":1}', '{"chatId":2}']
    assert client.pubsubs[0].topics == ["telegram-send"]
    assert client.pubsubs[0].closed is True


@pytest.mark.asyncio
async def test_close_closes_client() -> None:
    client = StubRedis()
    await RedisBroker(client).close()
    assert client.closed is True


def test_from_url_builds_client_without_connecting() -> None:
    broker = RedisBroker.from_url("redis://localhost:6379/0")
    assert broker._client is not None
