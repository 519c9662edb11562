"""Dependency injection configuration for the transcription relay service."""

from deepgram import DeepgramClient, LiveOptions

from caption_relay.common import setup_logging
from caption_relay.common.infrastructure import RabbitMQPubSub
from caption_relay.common.rabbitmq import open_connection

from .config import AppConfig, load_config
from .handlers import TranscriptionSessionManager
from .infrastructure import DeepgramTranscriber
from .worker import Worker

logger = setup_logging()


def build_live_options(config: AppConfig) -> LiveOptions:
    """The one session configuration every participant gets."""
    return LiveOptions(
        model=config.deepgram.model,
        language=config.deepgram.language,
        punctuate=config.deepgram.punctuate,
        smart_format=config.deepgram.smart_format,
        encoding=config.audio.encoding,
        sample_rate=config.audio.sample_rate,
        channels=config.audio.channels,
    )


def get_worker(config: AppConfig | None = None) -> Worker:
    """Returns a worker wired to RabbitMQ and Deepgram."""
    config = config or load_config()

    # RabbitMQ setup
    connection = open_connection(config.rabbitmq)
    broker = RabbitMQPubSub(connection)
    broker.setup([config.channels.request_channel, config.channels.broadcast_channel])

    # Deepgram setup
    transcriber = DeepgramTranscriber(
        DeepgramClient(config.deepgram.api_key),
        build_live_options(config),
        dispatch=broker.call_soon_threadsafe,
    )

    manager = TranscriptionSessionManager(
        broker,
        transcriber,
        config.channels,
        idle_timeout=config.sessions.idle_timeout_seconds,
    )
    logger.info(
        "Relay configured",
        extra={
            "request_channel": config.channels.request_channel,
            "broadcast_channel": config.channels.broadcast_channel,
            "encoding": config.audio.encoding,
        },
    )
    return Worker(broker, manager, config.sessions)
