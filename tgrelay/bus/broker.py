"""Pub/sub broker interface and its Redis implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator

import redis.asyncio as aioredis
from loguru import logger
from redis.exceptions import RedisError

from tgrelay.errors import DeliveryError


class Broker(ABC):
    """Abstract publish/subscribe broker."""

    @abstractmethod
    async def publish(self, topic: str, message: str) -> None:
        """Publish one message. Raises DeliveryError on failure."""

    @abstractmethod
    def subscribe(self, *topics: str) -> AsyncIterator[str]:
        """Return an async iterator over message payloads on the topics."""

    async def close(self) -> None:
        pass


class RedisBroker(Broker):
    """Broker backed by Redis pub/sub."""

    def __init__(self, client: Any):
        self._client = client
        self._pubsubs: list[Any] = []

    @classmethod
    def from_url(cls, url: str) -> RedisBroker:
        return cls(aioredis.from_url(url, decode_responses=True))

    async def publish(self, topic: str, message: str) -> None:
        try:
            receivers = await self._client.publish(topic, message)
        except RedisError as e:
            raise DeliveryError(f"publish to '{topic}' failed: {e}") from e
        logger.debug(f"Broker <- [{topic}] {len(message)} chars ({receivers} receiver(s))")

    async def subscribe(self, *topics: str) -> AsyncIterator[str]:
        pubsub = self._client.pubsub()
        self._pubsubs.append(pubsub)
        await pubsub.subscribe(*topics)
        logger.info(f"Subscribed to {', '.join(topics)}")
        try:
            async for frame in pubsub.listen():
                if frame.get("type") != "message":
                    continue
                data = frame.get("data")
                if isinstance(data, bytes):
                    data = data.decode("utf-8", errors="replace")
                logger.debug(f"Broker -> [{frame.get('channel')}] {len(data)} chars")
                yield data
        finally:
            if pubsub in self._pubsubs:
                self._pubsubs.remove(pubsub)
                await pubsub.aclose()

    async def close(self) -> None:
        for pubsub in list(self._pubsubs):
            try:
                await pubsub.aclose()
            except RedisError as e:
                logger.warning(f"Error closing subscription: {e}")
        self._pubsubs.clear()
        await self._client.aclose()
