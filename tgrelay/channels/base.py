"""Base channel interface for chat platforms."""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator


class BaseChannel(ABC):
    """Abstract chat platform client: an update stream plus send and reply."""

    name: str = "base"

    def __init__(self, config: Any):
        self.config = config
        self._running = False

    @abstractmethod
    async def start(self) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass

    @abstractmethod
    def updates(self) -> AsyncIterator[Any]:
        """Async iterator over raw platform updates."""

    @abstractmethod
    async def send(self, chat_id: int, text: str) -> None:
        """Best-effort send. Failures are logged, never raised."""

    @abstractmethod
    async def reply_to(self, chat_id: int, message_id: int, text: str) -> None:
        """Best-effort threaded reply. Failures are logged, never raised."""

    @property
    def is_running(self) -> bool:
        return self._running
