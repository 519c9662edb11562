"""Application configuration loaded from environment variables."""

import os

from pydantic import BaseModel

from caption_relay.common.config import (
    ChannelConfig,
    load_channel_config,
    require_env,
)


class TokenConfig(BaseModel, frozen=True):
    """Signing configuration for RabbitMQ OAuth 2.0 access tokens."""

    signing_key: str
    key_id: str = "caption-relay"
    ttl_seconds: int = 3600
    audience: str = "rabbitmq"
    virtual_host: str = "/"


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    token: TokenConfig
    channels: ChannelConfig


def load_config() -> AppConfig:
    """
    Loads configuration from environment variables.

    Raises:
        ConfigurationError: If TOKEN_SIGNING_KEY is missing.
    """
    required = require_env("TOKEN_SIGNING_KEY")

    return AppConfig(
        token=TokenConfig(
            signing_key=required["TOKEN_SIGNING_KEY"],
            key_id=os.getenv("TOKEN_KEY_ID", "caption-relay"),
            ttl_seconds=int(os.getenv("TOKEN_TTL_SECONDS", "3600")),
            audience=os.getenv("TOKEN_AUDIENCE", "rabbitmq"),
            virtual_host=os.getenv("RABBITMQ_VHOST", "/"),
        ),
        channels=load_channel_config(),
    )
