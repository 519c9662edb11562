"""Shared configuration models for infrastructure components."""

import os

from pydantic import BaseModel

from caption_relay.common.exceptions import ConfigurationError


class RabbitMQConfig(BaseModel, frozen=True):
    """RabbitMQ connection configuration."""

    host: str
    user: str
    password: str
    port: int = 5672
    virtual_host: str = "/"


class ChannelConfig(BaseModel, frozen=True):
    """Names of the two pub/sub channels."""

    request_channel: str = "request-channel"
    broadcast_channel: str = "broadcast-channel"


class AudioFormatConfig(BaseModel, frozen=True):
    """The single audio encoding every client must produce."""

    encoding: str = "linear16"
    sample_rate: int = 16000
    channels: int = 1


def require_env(*names: str) -> dict[str, str]:
    """
    Reads required environment variables.

    Raises:
        ConfigurationError: If any of the variables is unset or empty.
    """
    values = {name: os.getenv(name, "") for name in names}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError(missing)
    return values


def load_rabbitmq_config(user: str = "", password: str = "") -> RabbitMQConfig:
    """Loads RabbitMQ connection settings from environment variables."""
    return RabbitMQConfig(
        host=os.getenv("RABBITMQ_HOST", "rabbitmq"),
        port=int(os.getenv("RABBITMQ_PORT", "5672")),
        virtual_host=os.getenv("RABBITMQ_VHOST", "/"),
        user=user,
        password=password,
    )


def load_channel_config() -> ChannelConfig:
    """Loads channel names from environment variables."""
    return ChannelConfig(
        request_channel=os.getenv("REQUEST_CHANNEL", "request-channel"),
        broadcast_channel=os.getenv("BROADCAST_CHANNEL", "broadcast-channel"),
    )


def load_audio_format_config() -> AudioFormatConfig:
    """Loads the audio encoding profile from environment variables."""
    return AudioFormatConfig(
        encoding=os.getenv("AUDIO_ENCODING", "linear16"),
        sample_rate=int(os.getenv("AUDIO_SAMPLE_RATE", "16000")),
        channels=int(os.getenv("AUDIO_CHANNELS", "1")),
    )
