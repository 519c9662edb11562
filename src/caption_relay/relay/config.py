"""Application configuration loaded from environment variables."""

import os

from pydantic import BaseModel

from caption_relay.common.config import (
    AudioFormatConfig,
    ChannelConfig,
    RabbitMQConfig,
    load_audio_format_config,
    load_channel_config,
    load_rabbitmq_config,
    require_env,
)


class DeepgramConfig(BaseModel, frozen=True):
    """Deepgram live transcription configuration."""

    api_key: str
    model: str = "nova-2"
    language: str = "en"
    punctuate: bool = True
    smart_format: bool = True


class SessionConfig(BaseModel, frozen=True):
    """Supervision of participant sessions. An idle timeout of 0 disables the sweep."""

    idle_timeout_seconds: float = 60.0
    sweep_interval_seconds: float = 10.0


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    rabbitmq: RabbitMQConfig
    channels: ChannelConfig
    audio: AudioFormatConfig
    deepgram: DeepgramConfig
    sessions: SessionConfig


def load_config() -> AppConfig:
    """
    Loads configuration from environment variables.

    Raises:
        ConfigurationError: If a provider credential is missing.
    """
    required = require_env("DEEPGRAM_API_KEY", "RABBITMQ_USER", "RABBITMQ_PASSWORD")

    return AppConfig(
        rabbitmq=load_rabbitmq_config(
            user=required["RABBITMQ_USER"],
            password=required["RABBITMQ_PASSWORD"],
        ),
        channels=load_channel_config(),
        audio=load_audio_format_config(),
        deepgram=DeepgramConfig(
            api_key=required["DEEPGRAM_API_KEY"],
            model=os.getenv("DEEPGRAM_MODEL", "nova-2"),
            language=os.getenv("DEEPGRAM_LANGUAGE", "en"),
        ),
        sessions=SessionConfig(
            idle_timeout_seconds=float(
                os.getenv("SESSION_IDLE_TIMEOUT_SECONDS", "60")
            ),
            sweep_interval_seconds=float(
                os.getenv("SESSION_SWEEP_INTERVAL_SECONDS", "10")
            ),
        ),
    )
