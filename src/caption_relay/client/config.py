"""Application configuration loaded from environment variables."""

import os

from pydantic import BaseModel

from caption_relay.common.config import (
    ChannelConfig,
    RabbitMQConfig,
    load_channel_config,
)


class AudioCaptureConfig(BaseModel, frozen=True):
    """Microphone capture settings. Samples are always 16-bit PCM (linear16)."""

    sample_rate: int = 16000
    channels: int = 1
    chunk_seconds: float = 1.0
    device: int | None = None


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    token_url: str = "http://localhost:8000/api/token"
    broker_host: str = "localhost"
    broker_port: int = 5672
    virtual_host: str = "/"
    channels: ChannelConfig
    audio: AudioCaptureConfig

    def broker_config(self, client_id: str, token: str) -> RabbitMQConfig:
        """Connection settings authenticating as client_id with the issued token."""
        return RabbitMQConfig(
            host=self.broker_host,
            port=self.broker_port,
            virtual_host=self.virtual_host,
            user=client_id,
            password=token,
        )


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    device = os.getenv("AUDIO_DEVICE", "")

    return AppConfig(
        token_url=os.getenv("TOKEN_URL", "http://localhost:8000/api/token"),
        broker_host=os.getenv("RABBITMQ_HOST", "localhost"),
        broker_port=int(os.getenv("RABBITMQ_PORT", "5672")),
        virtual_host=os.getenv("RABBITMQ_VHOST", "/"),
        channels=load_channel_config(),
        audio=AudioCaptureConfig(
            sample_rate=int(os.getenv("AUDIO_SAMPLE_RATE", "16000")),
            channels=int(os.getenv("AUDIO_CHANNELS", "1")),
            chunk_seconds=float(os.getenv("AUDIO_CHUNK_SECONDS", "1.0")),
            device=int(device) if device else None,
        ),
    )
