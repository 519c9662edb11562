"""Shared fakes for the pub/sub broker and the transcription provider."""

from collections.abc import Callable

import pytest

from caption_relay.common import (
    ChannelConfig,
    ChannelMessage,
    PresenceAction,
    PresenceEvent,
    Subscription,
)
from caption_relay.common.infrastructure.interfaces import PubSubBroker
from caption_relay.common.infrastructure.rabbitmq_pubsub import (
    data_routing_key,
    presence_binding_key,
    presence_routing_key,
    topic_matches,
)
from caption_relay.relay.domain import SessionState
from caption_relay.relay.exceptions import TranscriptionSessionError
from caption_relay.relay.infrastructure.interfaces import (
    TranscriptionService,
    TranscriptionSession,
)


class FakeBroker(PubSubBroker):
    """In-memory broker: callbacks run synchronously, timers are recorded."""

    def __init__(self):
        self.published: list[tuple[str, str, bytes | str, str | None]] = []
        self.presence: list[tuple[str, PresenceAction, str]] = []
        self.timers: list[tuple[float, Callable[[], None]]] = []
        self.declared: list[str] = []
        self.subscriptions: dict[str, tuple[Subscription, Callable]] = {}
        self.publish_error: Exception | None = None
        self.consume_error: BaseException | None = None
        self.on_consume: Callable[[], None] | None = None
        self.closed = False

    def setup(self, channels):
        self.declared.extend(channels)

    def publish(self, channel, name, data, client_id=None):
        if self.publish_error is not None:
            raise self.publish_error
        self.published.append((channel, name, data, client_id))

    def enter_presence(self, channel, client_id):
        if self.publish_error is not None:
            raise self.publish_error
        self.presence.append((channel, PresenceAction.ENTER, client_id))

    def leave_presence(self, channel, client_id):
        if self.publish_error is not None:
            raise self.publish_error
        self.presence.append((channel, PresenceAction.LEAVE, client_id))

    def subscribe(self, channel, name, callback):
        return self._add(channel, data_routing_key(name), callback)

    def subscribe_all(self, channel, callback):
        return self._add(channel, "data.*", callback)

    def subscribe_presence(self, channel, action, callback):
        return self._add(channel, presence_binding_key(action), callback)

    def unsubscribe(self, subscription):
        self.subscriptions.pop(subscription.id, None)

    def call_soon_threadsafe(self, callback):
        callback()

    def call_later(self, delay, callback):
        self.timers.append((delay, callback))

    def consume(self):
        if self.on_consume is not None:
            self.on_consume()
        if self.consume_error is not None:
            raise self.consume_error

    def stop(self):
        pass

    def close(self):
        self.closed = True

    def bound(self, channel: str, routing_key: str) -> int:
        return sum(
            1
            for subscription, _ in self.subscriptions.values()
            if subscription.channel == channel
            and subscription.routing_key == routing_key
        )

    def emit_presence(self, channel: str, action: PresenceAction, client_id: str):
        event = PresenceEvent(action=action, client_id=client_id)
        self._dispatch(channel, presence_routing_key(action, client_id), event)

    def emit_message(self, channel: str, name: str, data: bytes):
        message = ChannelMessage(channel=channel, name=name, data=data, client_id=name)
        self._dispatch(channel, data_routing_key(name), message)

    def _add(self, channel, routing_key, callback):
        subscription = Subscription(channel=channel, routing_key=routing_key)
        self.subscriptions[subscription.id] = (subscription, callback)
        return subscription

    def _dispatch(self, channel, routing_key, payload):
        for subscription, callback in list(self.subscriptions.values()):
            if subscription.channel == channel and topic_matches(
                subscription.routing_key, routing_key
            ):
                callback(payload)


class FakeSession(TranscriptionSession):
    def __init__(self, participant_id, state, on_transcript, on_error, on_close):
        self._participant_id = participant_id
        self._state = state
        self.sent: list[bytes] = []
        self.close_calls = 0
        self._on_transcript = on_transcript
        self._on_error = on_error
        self._on_close = on_close

    @property
    def participant_id(self):
        return self._participant_id

    @property
    def state(self):
        return self._state

    def activate(self):
        self._state = SessionState.ACTIVE

    def send(self, audio):
        self.sent.append(audio)

    def close(self):
        self.close_calls += 1
        self._state = SessionState.CLOSED

    def emit_transcript(self, payload):
        self._on_transcript(payload)

    def emit_error(self, error):
        self._on_error(error)

    def emit_close(self):
        self._state = SessionState.CLOSED
        self._on_close()


class FakeTranscriptionService(TranscriptionService):
    def __init__(self, initial_state: SessionState = SessionState.ACTIVE):
        self.initial_state = initial_state
        self.sessions: list[FakeSession] = []
        self.fail = False
        self.closes_while_opening = False
        self.errors_while_opening = False

    def open_session(self, participant_id, on_transcript, on_error, on_close):
        if self.fail:
            raise TranscriptionSessionError(participant_id)
        session = FakeSession(
            participant_id, self.initial_state, on_transcript, on_error, on_close
        )
        self.sessions.append(session)
        if self.errors_while_opening:
            session.emit_error(RuntimeError("rejected during handshake"))
        if self.closes_while_opening:
            session.emit_close()
        return session

    def sessions_for(self, participant_id: str) -> list[FakeSession]:
        return [s for s in self.sessions if s.participant_id == participant_id]


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def channels():
    return ChannelConfig()


@pytest.fixture
def broker():
    return FakeBroker()


@pytest.fixture
def transcription_service():
    return FakeTranscriptionService()


@pytest.fixture
def clock():
    return FakeClock()
