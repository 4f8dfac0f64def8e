"""Telegram channel using python-telegram-bot."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator

from loguru import logger
from telegram import ReplyParameters, Update
from telegram.ext import Application, ContextTypes, TypeHandler

from tgrelay.channels.base import BaseChannel
from tgrelay.config import TelegramConfig

ALLOWED_UPDATES = ["message", "edited_message"]


class TelegramChannel(BaseChannel):
    """Telegram channel using long polling."""

    name = "telegram"

    def __init__(self, config: TelegramConfig, queue_maxsize: int = 200):
        super().__init__(config)
        self.config: TelegramConfig = config
        self._app: Application | None = None
        self._queue: asyncio.Queue[Update | None] = asyncio.Queue(maxsize=queue_maxsize)

    async def start(self) -> None:
        self._running = True
        builder = Application.builder().token(self.config.token)
        if self.config.proxy:
            builder = builder.proxy(self.config.proxy).get_updates_proxy(self.config.proxy)
        self._app = builder.build()
        self._app.add_handler(TypeHandler(Update, self._on_update))

        logger.info("Starting Telegram bot (polling)...")
        await self._app.initialize()
        await self._app.start()

        bot_info = await self._app.bot.get_me()
        logger.info(f"Authorized on account @{bot_info.username}")

        await self._app.updater.start_polling(
            timeout=self.config.poll_timeout,
            allowed_updates=ALLOWED_UPDATES,
        )

    async def stop(self) -> None:
        self._running = False
        if not self._queue.full():
            self._queue.put_nowait(None)
        if self._app:
            logger.info("Stopping Telegram bot...")
            await self._app.updater.stop()
            await self._app.stop()
            await self._app.shutdown()
            self._app = None

    async def updates(self) -> AsyncIterator[Update]:
        while True:
            update = await self._queue.get()
            if update is None:
                return
            yield update

    async def send(self, chat_id: int, text: str) -> None:
        await self._send_message(chat_id, text)

    async def reply_to(self, chat_id: int, message_id: int, text: str) -> None:
        await self._send_message(chat_id, text, reply_to=message_id)

    async def _send_message(self, chat_id: int, text: str, reply_to: int | None = None) -> None:
        if not self._app:
            logger.debug("Telegram: send called but app is None")
            return
        kind = "reply" if reply_to else "message"
        logger.debug(f"Telegram: sending {kind} ({len(text)} chars) to chat_id={chat_id}")
        try:
            await self._app.bot.send_message(
                chat_id=chat_id,
                text=text,
                reply_parameters=ReplyParameters(message_id=reply_to) if reply_to else None,
            )
        except Exception as e:
            logger.error(f"Error when sending a {kind}: {e}")

    async def _on_update(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if self.config.debug:
            logger.debug(f"Telegram update: {update.to_dict()}")
        await self._queue.put(update)
