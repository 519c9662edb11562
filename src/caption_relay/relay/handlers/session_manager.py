"""Bridges participant presence on the request channel to live transcription sessions."""

import time
from collections.abc import Callable, Mapping
from functools import partial
from typing import Any

from caption_relay.common import (
    ChannelConfig,
    ChannelMessage,
    EventPublishError,
    PresenceAction,
    PresenceEvent,
    Subscription,
    SubscriptionError,
    setup_logging,
)
from caption_relay.common.infrastructure.interfaces import PubSubBroker
from caption_relay.relay.domain import (
    ParticipantSession,
    SessionRegistry,
    TeardownReason,
    TranscriptFragment,
    extract_transcript,
)
from caption_relay.relay.exceptions import (
    TranscriptionSendError,
    TranscriptionSessionError,
)
from caption_relay.relay.infrastructure.interfaces import (
    TranscriptionService,
    TranscriptionSession,
)

logger = setup_logging()


class TranscriptionSessionManager:
    """Owns one transcription session per participant present on the request channel.

    Presence enter opens a session and subscribes to the participant's audio
    subject; transcripts are republished on the broadcast channel under the
    participant's identity. Leave, provider close, provider error, idle
    timeout and shutdown all release the participant through _teardown.
    """

    def __init__(
        self,
        broker: PubSubBroker,
        transcription_service: TranscriptionService,
        channels: ChannelConfig,
        idle_timeout: float = 0,
        clock: Callable[[], float] = time.monotonic,
        registry: SessionRegistry | None = None,
    ):
        self._broker = broker
        self._transcription_service = transcription_service
        self._channels = channels
        self._idle_timeout = idle_timeout
        self._clock = clock
        self._registry = registry or SessionRegistry()
        self._presence_subscriptions: list[Subscription] = []

    def start(self) -> None:
        """Subscribes to presence enter and leave events on the request channel."""
        request_channel = self._channels.request_channel
        self._presence_subscriptions = [
            self._broker.subscribe_presence(
                request_channel, PresenceAction.ENTER, self.on_enter
            ),
            self._broker.subscribe_presence(
                request_channel, PresenceAction.LEAVE, self.on_leave
            ),
        ]
        logger.info(
            "Listening for participants", extra={"channel": request_channel}
        )

    def active_participants(self) -> list[str]:
        return self._registry.participants()

    def on_enter(self, event: PresenceEvent) -> None:
        """Opens a fresh session for the participant, replacing any existing one."""
        participant_id = event.client_id
        logger.info("New member joined", extra={"participant_id": participant_id})

        previous = self._registry.get(participant_id)
        if previous is not None:
            self._teardown(participant_id, previous.session, TeardownReason.REPLACED)

        session: TranscriptionSession | None = None
        # Exits reported before open_session returns; applied once registered.
        early_exits: list[TeardownReason] = []

        def on_transcript(payload: Mapping[str, Any]) -> None:
            self._on_transcript(participant_id, session, payload)

        def on_error(error: Any) -> None:
            if session is None:
                early_exits.append(TeardownReason.PROVIDER_ERROR)
            self._on_error(participant_id, session, error)

        def on_close() -> None:
            if session is None:
                early_exits.append(TeardownReason.PROVIDER_CLOSED)
            self._on_close(participant_id, session)

        try:
            session = self._transcription_service.open_session(
                participant_id, on_transcript, on_error, on_close
            )
        except TranscriptionSessionError:
            logger.exception(
                "Failed to open transcription session",
                extra={"participant_id": participant_id},
            )
            return

        entry = ParticipantSession(
            participant_id=participant_id,
            session=session,
            last_activity=self._clock(),
        )
        self._registry.register(entry)

        try:
            entry.subscription = self._broker.subscribe(
                self._channels.request_channel,
                participant_id,
                partial(self._forward_audio, participant_id, session),
            )
        except (SubscriptionError, ValueError):
            logger.exception(
                "Failed to subscribe to participant audio",
                extra={"participant_id": participant_id},
            )
            self._teardown(
                participant_id, session, TeardownReason.SUBSCRIPTION_FAILED
            )
            return

        if early_exits:
            self._teardown(participant_id, session, early_exits[0])

    def on_leave(self, event: PresenceEvent) -> None:
        logger.info("Member left", extra={"participant_id": event.client_id})
        self._teardown(event.client_id, None, TeardownReason.LEAVE)

    def reap_idle(self) -> list[str]:
        """Releases sessions without audio or transcripts for longer than the idle timeout."""
        if self._idle_timeout <= 0:
            return []

        released = []
        for entry in self._registry.idle(self._clock(), self._idle_timeout):
            if self._teardown(
                entry.participant_id, entry.session, TeardownReason.IDLE_TIMEOUT
            ):
                released.append(entry.participant_id)
        return released

    def shutdown(self) -> None:
        """Stops listening for presence and releases every session."""
        for subscription in self._presence_subscriptions:
            try:
                self._broker.unsubscribe(subscription)
            except SubscriptionError:
                logger.exception("Failed to remove presence subscription")
        self._presence_subscriptions = []

        for participant_id in self._registry.participants():
            self._teardown(participant_id, None, TeardownReason.SHUTDOWN)

    def _forward_audio(
        self,
        participant_id: str,
        session: TranscriptionSession,
        message: ChannelMessage,
    ) -> None:
        entry = self._registry.get(participant_id)
        if entry is None or entry.session is not session:
            return

        if not session.is_ready():
            entry.dropped_chunks += 1
            logger.debug(
                "Dropping audio chunk, session not ready",
                extra={"participant_id": participant_id, "state": session.state.value},
            )
            return

        try:
            session.send(message.data)
        except TranscriptionSendError:
            logger.exception(
                "Failed to forward audio chunk",
                extra={"participant_id": participant_id},
            )
            return

        entry.forwarded_chunks += 1
        self._registry.touch(participant_id, session, self._clock())

    def _on_transcript(
        self,
        participant_id: str,
        session: TranscriptionSession | None,
        payload: Mapping[str, Any],
    ) -> None:
        text = extract_transcript(payload)
        if not text:
            return

        fragment = TranscriptFragment(participant_id=participant_id, text=text)
        try:
            self._broker.publish(
                self._channels.broadcast_channel,
                fragment.participant_id,
                fragment.text,
                client_id=fragment.participant_id,
            )
        except EventPublishError:
            logger.exception(
                "Failed to publish transcript",
                extra={"participant_id": participant_id},
            )
            return

        if session is not None:
            self._registry.touch(participant_id, session, self._clock())

    def _on_error(
        self, participant_id: str, session: TranscriptionSession | None, error: Any
    ) -> None:
        logger.error(
            "Transcription session error",
            extra={"participant_id": participant_id, "error": str(error)},
        )
        if session is not None:
            self._teardown(participant_id, session, TeardownReason.PROVIDER_ERROR)

    def _on_close(
        self, participant_id: str, session: TranscriptionSession | None
    ) -> None:
        logger.info("Connection closed", extra={"participant_id": participant_id})
        if session is not None:
            self._teardown(participant_id, session, TeardownReason.PROVIDER_CLOSED)

    def _teardown(
        self,
        participant_id: str,
        session: TranscriptionSession | None,
        reason: TeardownReason,
    ) -> bool:
        """Releases the participant's entry once; later calls for it are no-ops."""
        entry = self._registry.release(participant_id, session)
        if entry is None:
            return False

        if entry.subscription is not None:
            try:
                self._broker.unsubscribe(entry.subscription)
            except SubscriptionError:
                logger.exception(
                    "Failed to remove audio subscription",
                    extra={"participant_id": participant_id},
                )

        entry.session.close()

        logger.info(
            "Transcription session released",
            extra={
                "participant_id": participant_id,
                "reason": reason.value,
                "forwarded_chunks": entry.forwarded_chunks,
                "dropped_chunks": entry.dropped_chunks,
            },
        )
        return True
