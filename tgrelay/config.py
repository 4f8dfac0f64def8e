"""Configuration schema and loader."""

import os
from pathlib import Path

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from tgrelay.errors import ConfigError

# Environment variable -> (section, field)
ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "TELEGRAM_BOT_TOKEN": ("telegram", "token"),
    "REDIS_URL": ("broker", "url"),
    "TGRELAY_LOG_LEVEL": (None, "log_level"),
}


class TelegramConfig(BaseModel):
    token: str = ""
    poll_timeout: int = Field(default=60, ge=0)
    proxy: str | None = None
    debug: bool = False  # log every raw update at DEBUG


class BrokerConfig(BaseModel):
    url: str = ""
    events_topic: str = "telegram-message"
    commands_topic: str = "telegram-send"


class RelayConfig(BaseModel):
    publish_timeout: float = Field(default=2.0, gt=0)
    reopen_delay: float = Field(default=1.0, ge=0)
    update_queue_size: int = Field(default=200, ge=1)


class Config(BaseModel):
    """Root configuration."""
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    broker: BrokerConfig = Field(default_factory=BrokerConfig)
    relay: RelayConfig = Field(default_factory=RelayConfig)
    log_level: str = "INFO"

    def require_credentials(self) -> None:
        """Raise ConfigError naming every missing required value."""
        missing = []
        if not self.telegram.token:
            missing.append("telegram bot token (TELEGRAM_BOT_TOKEN)")
        if not self.broker.url:
            missing.append("broker url (REDIS_URL)")
        if missing:
            raise ConfigError(f"missing required configuration: {', '.join(missing)}")


def apply_env_overrides(config: Config, environ: dict[str, str] | None = None) -> None:
    """Overlay non-empty environment variables onto the config (mutates in place)."""
    env = os.environ if environ is None else environ
    for var, (section, key) in ENV_OVERRIDES.items():
        value = env.get(var)
        if not value:
            continue
        target = getattr(config, section) if section else config
        setattr(target, key, value)
        logger.debug(f"Config: {var} overrides {section + '.' if section else ''}{key}")


def load_config(path: str | Path = "config.yaml", environ: dict[str, str] | None = None) -> Config:
    """Load config from YAML file, then apply environment overrides."""
    p = Path(path).expanduser()
    if p.exists():
        try:
            with open(p.resolve()) as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ConfigError(f"{p}: expected a mapping at the top level")
            config = Config(**data)
        except yaml.YAMLError as e:
            raise ConfigError(f"{p}: invalid YAML: {e}") from e
        except ValidationError as e:
            raise ConfigError(f"{p}: invalid configuration: {e}") from e
    else:
        config = Config()
    apply_env_overrides(config, environ)
    return config
