"""Logging setup."""

import sys

from loguru import logger

from tgrelay.errors import ConfigError


def setup_logging(level: str = "INFO") -> None:
    level = level.upper()
    try:
        logger.level(level)
    except ValueError as e:
        raise ConfigError(f"invalid log level '{level}'") from e
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> - <level>{message}</level>",
    )
