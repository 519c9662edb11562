"""
Caption Client.

Streams the microphone to the relay and prints live captions for everyone
in the room.
"""

import argparse
import sys

import sounddevice as sd
from pika.exceptions import AMQPConnectionError

from caption_relay.common import setup_logging
from caption_relay.common.infrastructure import RabbitMQPubSub
from caption_relay.common.rabbitmq import open_connection

from .audio_capture import AudioCapturePublisher
from .config import load_config
from .exceptions import AudioCaptureError, TokenFetchError
from .token_client import fetch_token
from .transcript_display import TranscriptDisplay

logger = setup_logging()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="caption-client",
        description="Stream microphone audio and print live captions.",
    )
    parser.add_argument("--token-url", help="Credential endpoint URL")
    parser.add_argument("--device", type=int, help="Input device index")
    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="List audio devices and exit",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None):
    """Fetches a token, joins the room and captions until interrupted."""
    args = parse_args(argv)
    if args.list_devices:
        print(sd.query_devices())
        return

    config = load_config()
    if args.token_url:
        config = config.model_copy(update={"token_url": args.token_url})
    if args.device is not None:
        config = config.model_copy(
            update={"audio": config.audio.model_copy(update={"device": args.device})}
        )

    try:
        token = fetch_token(config.token_url)
    except TokenFetchError:
        sys.exit(1)

    try:
        connection = open_connection(
            config.broker_config(token.client_id, token.token)
        )
    except AMQPConnectionError:
        sys.exit(1)

    broker = RabbitMQPubSub(connection)

    display = TranscriptDisplay()
    broker.subscribe_all(config.channels.broadcast_channel, display.on_message)

    capture = AudioCapturePublisher(
        broker,
        broker.call_soon_threadsafe,
        token.client_id,
        config.channels,
        config.audio,
        stream_factory=sd.RawInputStream,
    )

    try:
        capture.start()
        broker.consume()
    except AudioCaptureError:
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted, leaving the room")
    finally:
        capture.stop()
        broker.close()


if __name__ == "__main__":
    main()
