"""tgrelay - Entry point. Starts the Telegram <-> broker relay."""

import asyncio
import signal
import sys

from loguru import logger

from tgrelay.bus.broker import Broker, RedisBroker
from tgrelay.channels.base import BaseChannel
from tgrelay.config import Config, load_config
from tgrelay.errors import ConfigError
from tgrelay.relay.loop import RelayLoop
from tgrelay.utils.logger import setup_logging


class RelayApp:
    """Main application: wires channel, broker and relay loop."""

    def __init__(
        self,
        config: Config,
        channel: BaseChannel | None = None,
        broker: Broker | None = None,
    ):
        self.config = config
        if channel is None:
            from tgrelay.channels.telegram import TelegramChannel
            channel = TelegramChannel(config.telegram, queue_maxsize=config.relay.update_queue_size)
        self.channel = channel
        self.broker = broker or RedisBroker.from_url(config.broker.url)
        self.loop = RelayLoop(
            channel=self.channel,
            broker=self.broker,
            events_topic=config.broker.events_topic,
            commands_topic=config.broker.commands_topic,
            publish_timeout=config.relay.publish_timeout,
            reopen_delay=config.relay.reopen_delay,
        )

    async def start(self) -> None:
        logger.info("tgrelay starting...")
        await self.channel.start()
        try:
            await self.loop.run()
        except asyncio.CancelledError:
            pass

    async def stop(self) -> None:
        logger.info("tgrelay stopping...")
        await self.loop.stop()
        try:
            await self.channel.stop()
        except Exception as e:
            logger.error(f"Error stopping {self.channel.name}: {e}")
        try:
            await self.broker.close()
        except Exception as e:
            logger.error(f"Error closing broker: {e}")
        logger.info("tgrelay stopped")


def _print_usage() -> None:
    print("Usage:")
    print("  tgrelay [run] [config_path]   Run the relay in the foreground")
    print("  tgrelay check [config_path]   Validate configuration and exit")
    print()
    print("TELEGRAM_BOT_TOKEN, REDIS_URL and TGRELAY_LOG_LEVEL override the config file.")


def _load(config_path: str) -> Config:
    config = load_config(config_path)
    config.require_credentials()
    return config


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = sys.argv[1:] if argv is None else argv

    if args and args[0] in {"-h", "--help", "help"}:
        _print_usage()
        return 0

    command = "run"
    if args and args[0] in {"run", "check"}:
        command, args = args[0], args[1:]
    config_path = args[0] if args else "config.yaml"

    setup_logging()
    try:
        config = _load(config_path)
        setup_logging(config.log_level)
    except ConfigError as e:
        logger.error(str(e))
        return 1

    if command == "check":
        logger.info(
            f"Configuration OK (events -> '{config.broker.events_topic}', "
            f"commands <- '{config.broker.commands_topic}')"
        )
        return 0

    app = RelayApp(config)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    stop_tasks: list[asyncio.Task] = []

    def shutdown():
        logger.info("Shutdown signal received")
        if not stop_tasks:
            stop_tasks.append(loop.create_task(app.stop()))

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, shutdown)

    try:
        loop.run_until_complete(app.start())
        # start() returns as soon as the relay loop stops; finish the teardown
        for task in stop_tasks:
            loop.run_until_complete(task)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        loop.run_until_complete(app.stop())
    finally:
        loop.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
