"""FastAPI dependency injection configuration."""

from functools import lru_cache

from caption_relay.common import setup_logging

from .config import AppConfig, load_config
from .infrastructure import RabbitMQTokenProvider
from .infrastructure.interfaces import TokenProvider

logger = setup_logging()


@lru_cache
def get_config() -> AppConfig:
    """Returns the application configuration, loaded once."""
    return load_config()


@lru_cache
def get_token_provider() -> TokenProvider:
    """Returns the configured token provider."""
    config = get_config()
    return RabbitMQTokenProvider(config.token, config.channels)
