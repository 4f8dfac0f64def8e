"""Relay loop: platform updates -> events topic, commands topic -> platform."""

from __future__ import annotations

import asyncio
import time
from typing import Any, AsyncIterator, Callable

from loguru import logger

from tgrelay.bus.broker import Broker
from tgrelay.bus.codec import decode_send_request, encode_event
from tgrelay.bus.events import EventPayload
from tgrelay.channels.base import BaseChannel
from tgrelay.errors import DeliveryError, ExtractionError, MalformedPayloadError, ValidationError
from tgrelay.relay.extractor import extract
from tgrelay.relay.taxonomy import classify

_UPDATE = "update"
_COMMAND = "command"
_END = object()


async def _next(stream: AsyncIterator[Any], delay: float = 0.0) -> Any:
    if delay:
        await asyncio.sleep(delay)
    try:
        return await stream.__anext__()
    except StopAsyncIteration:
        return _END


class RelayLoop:
    """Multiplexes the platform update stream and the broker command stream.

    Each update is classified and published in its own task so a slow publish
    never stalls update intake. Commands are decoded and delivered in-line,
    one at a time.
    """

    def __init__(
        self,
        channel: BaseChannel,
        broker: Broker,
        events_topic: str = "telegram-message",
        commands_topic: str = "telegram-send",
        publish_timeout: float = 2.0,
        reopen_delay: float = 1.0,
        clock: Callable[[], float] = time.time,
    ):
        self.channel = channel
        self.broker = broker
        self.events_topic = events_topic
        self.commands_topic = commands_topic
        self.publish_timeout = publish_timeout
        self.reopen_delay = reopen_delay
        self._clock = clock
        self._running = False
        self._reads: dict[asyncio.Task, str] = {}
        self._update_tasks: set[asyncio.Task] = set()

    async def run(self) -> None:
        openers: dict[str, Callable[[], AsyncIterator[Any]]] = {
            _UPDATE: lambda: aiter(self.channel.updates()),
            _COMMAND: lambda: aiter(self.broker.subscribe(self.commands_topic)),
        }
        streams = {kind: open_stream() for kind, open_stream in openers.items()}
        self._running = True
        for kind in streams:
            self._arm(kind, streams[kind])
        logger.info(f"Relay loop started (events -> '{self.events_topic}', commands <- '{self.commands_topic}')")

        try:
            while self._running and self._reads:
                done, _ = await asyncio.wait(self._reads, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    kind = self._reads.pop(task, None)
                    if kind is None or task.cancelled():
                        continue
                    try:
                        item = task.result()
                    except Exception as e:
                        logger.error(f"{kind} stream failed, reopening in {self.reopen_delay}s: {e}")
                        if self._running:
                            streams[kind] = openers[kind]()
                            self._arm(kind, streams[kind], delay=self.reopen_delay)
                        continue
                    if item is _END:
                        logger.info(f"{kind} stream ended")
                        continue
                    if kind == _UPDATE:
                        self.dispatch_update(item)
                    else:
                        await self.handle_command(item)
                    if self._running:
                        self._arm(kind, streams[kind])
        finally:
            self._running = False
            await self._cancel_reads()
            for stream in streams.values():
                aclose = getattr(stream, "aclose", None)
                if aclose is not None:
                    await aclose()
            logger.info("Relay loop stopped")

    async def stop(self) -> None:
        self._running = False
        await self._cancel_reads()
        tasks = list(self._update_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def dispatch_update(self, update: Any) -> asyncio.Task:
        """Fire-and-forget classification + publish of one update."""
        task = asyncio.create_task(self.handle_update(update))
        self._update_tasks.add(task)
        task.add_done_callback(self._update_tasks.discard)
        return task

    async def handle_update(self, update: Any) -> None:
        try:
            await asyncio.wait_for(self._classify_and_publish(update), timeout=self.publish_timeout)
        except ExtractionError as e:
            logger.debug(f"Dropping update: {e}")
        except asyncio.TimeoutError:
            logger.warning(
                f"Publish to '{self.events_topic}' abandoned after {self.publish_timeout}s deadline"
            )
        except DeliveryError as e:
            logger.error(f"Unable to publish to '{self.events_topic}' topic: {e}")

    async def handle_command(self, data: str) -> None:
        """Decode, validate and deliver one send-request. Bad payloads are dropped."""
        try:
            request = decode_send_request(data)
        except (MalformedPayloadError, ValidationError) as e:
            logger.warning(f"Unable to get message from '{self.commands_topic}' topic: {e}")
            return
        if request.is_reply:
            await self.channel.reply_to(request.chat_id, request.reply_to_message_id, request.text)
        else:
            await self.channel.send(request.chat_id, request.text)

    async def _classify_and_publish(self, update: Any) -> None:
        msg = extract(update)
        payload = EventPayload(
            sender_id=msg.sender_id,
            chat_id=msg.chat_id,
            message_id=msg.message_id,
            text=msg.text,
            categories=classify(msg),
            timestamp=int(self._clock()),
        )
        logger.debug(f"Classified message {msg.message_id} in chat {msg.chat_id}: {payload.categories}")
        await self.broker.publish(self.events_topic, encode_event(payload))

    def _arm(self, kind: str, stream: AsyncIterator[Any], delay: float = 0.0) -> None:
        self._reads[asyncio.create_task(_next(stream, delay))] = kind

    async def _cancel_reads(self) -> None:
        reads = list(self._reads)
        self._reads.clear()
        for task in reads:
            task.cancel()
        await asyncio.gather(*reads, return_exceptions=True)
