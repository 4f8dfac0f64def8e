"""tgrelay - Telegram <-> pub/sub message relay."""

__version__ = "0.1.0"
