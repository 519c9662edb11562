"""Microphone capture that publishes fixed-duration chunks to the request channel."""

from collections.abc import Callable
from functools import partial
from typing import Any

from caption_relay.common import (
    ChannelConfig,
    EventPublishError,
    setup_logging,
)
from caption_relay.common.infrastructure.interfaces import MessagePublisher

from .config import AudioCaptureConfig
from .exceptions import AudioCaptureError

logger = setup_logging()

Scheduler = Callable[[Callable[[], None]], None]


class AudioCapturePublisher:
    """Publishes raw 16-bit PCM chunks under the participant's identity.

    The stream callback runs on the audio thread, so every publish is handed
    to the broker loop through schedule.
    """

    def __init__(
        self,
        publisher: MessagePublisher,
        schedule: Scheduler,
        client_id: str,
        channels: ChannelConfig,
        audio: AudioCaptureConfig,
        stream_factory: Callable[..., Any],
    ):
        self._publisher = publisher
        self._schedule = schedule
        self._client_id = client_id
        self._channels = channels
        self._audio = audio
        self._stream_factory = stream_factory
        self._stream = None

    @property
    def is_capturing(self) -> bool:
        return self._stream is not None

    def start(self) -> None:
        """
        Opens the input stream, announces presence, then starts producing chunks.

        Raises:
            AudioCaptureError: If already capturing, the device cannot be opened
                or presence cannot be announced.
        """
        if self._stream is not None:
            raise AudioCaptureError("capture already started")

        try:
            stream = self._stream_factory(
                samplerate=self._audio.sample_rate,
                channels=self._audio.channels,
                dtype="int16",
                blocksize=int(self._audio.sample_rate * self._audio.chunk_seconds),
                device=self._audio.device,
                callback=self._on_audio,
            )
        except Exception as e:
            logger.exception(
                "Failed to open audio input stream",
                extra={"device": self._audio.device},
            )
            raise AudioCaptureError("cannot open input stream", e) from e

        try:
            self._publisher.enter_presence(
                self._channels.request_channel, self._client_id
            )
        except EventPublishError as e:
            logger.exception(
                "Failed to announce presence", extra={"client_id": self._client_id}
            )
            stream.close()
            raise AudioCaptureError("cannot announce presence", e) from e

        self._stream = stream
        stream.start()

        logger.info(
            "Audio capture started",
            extra={
                "client_id": self._client_id,
                "sample_rate": self._audio.sample_rate,
                "chunk_seconds": self._audio.chunk_seconds,
            },
        )

    def stop(self) -> None:
        """Halts capture and announces departure. Does nothing when not capturing."""
        stream, self._stream = self._stream, None
        if stream is None:
            return

        stream.stop()
        stream.close()
        try:
            self._publisher.leave_presence(
                self._channels.request_channel, self._client_id
            )
        except EventPublishError:
            logger.exception(
                "Failed to announce departure", extra={"client_id": self._client_id}
            )
            return
        logger.info("Audio capture stopped", extra={"client_id": self._client_id})

    def _on_audio(self, indata, frames, time_info, status) -> None:
        if status:
            logger.warning("Audio input status", extra={"status": str(status)})

        chunk = bytes(indata)
        if not chunk:
            return
        self._schedule(partial(self._publish_chunk, chunk))

    def _publish_chunk(self, chunk: bytes) -> None:
        try:
            self._publisher.publish(
                self._channels.request_channel,
                self._client_id,
                chunk,
                client_id=self._client_id,
            )
        except EventPublishError:
            logger.exception(
                "Failed to publish audio chunk", extra={"client_id": self._client_id}
            )
