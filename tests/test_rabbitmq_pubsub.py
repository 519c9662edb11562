import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from caption_relay.common import (
    EventPublishError,
    PresenceAction,
    SubscriptionError,
)
from caption_relay.common.infrastructure import RabbitMQPubSub
from caption_relay.common.infrastructure.rabbitmq_pubsub import (
    data_routing_key,
    topic_matches,
)
from caption_relay.relay.handlers import TranscriptionSessionManager


@pytest.fixture
def connection():
    connection = MagicMock()
    connection.channel.return_value.queue_declare.return_value.method.queue = (
        "amq.gen-1"
    )
    return connection


@pytest.fixture
def channel(connection):
    return connection.channel.return_value


@pytest.fixture
def pubsub(connection):
    return RabbitMQPubSub(connection)


def deliver(channel, exchange, routing_key, body, headers=None):
    on_message = channel.basic_consume.call_args.kwargs["on_message_callback"]
    method = SimpleNamespace(exchange=exchange, routing_key=routing_key)
    properties = SimpleNamespace(headers=headers)
    on_message(channel, method, properties, body)


def test_setup_declares_topic_exchanges(pubsub, channel):
    pubsub.setup(["request-channel", "broadcast-channel"])

    declared = [c.kwargs["exchange"] for c in channel.exchange_declare.call_args_list]
    assert declared == ["request-channel", "broadcast-channel"]
    assert channel.exchange_declare.call_args.kwargs["exchange_type"] == "topic"


def test_publish_text_sets_content_type_and_client_header(pubsub, channel):
    pubsub.publish("broadcast-channel", "alice", "hello", client_id="alice")

    kwargs = channel.basic_publish.call_args.kwargs
    assert kwargs["exchange"] == "broadcast-channel"
    assert kwargs["routing_key"] == "data.alice"
    assert kwargs["body"] == b"hello"
    assert kwargs["properties"].content_type == "text/plain; charset=utf-8"
    assert kwargs["properties"].headers == {"client_id": "alice"}


def test_publish_bytes_is_sent_unchanged(pubsub, channel):
    pubsub.publish("request-channel", "alice", b"\x00\xff")

    kwargs = channel.basic_publish.call_args.kwargs
    assert kwargs["body"] == b"\x00\xff"
    assert kwargs["properties"].content_type == "application/octet-stream"
    assert kwargs["properties"].headers is None


def test_publish_failure_raises_event_publish_error(pubsub, channel):
    channel.basic_publish.side_effect = RuntimeError("connection lost")

    with pytest.raises(EventPublishError) as exc_info:
        pubsub.publish("broadcast-channel", "alice", "hello")

    assert exc_info.value.routing_key == "data.alice"
    assert isinstance(exc_info.value.cause, RuntimeError)


def test_presence_is_published_as_json(pubsub, channel):
    pubsub.enter_presence("request-channel", "alice")

    kwargs = channel.basic_publish.call_args.kwargs
    assert kwargs["routing_key"] == "presence.enter.alice"
    body = json.loads(kwargs["body"])
    assert body["action"] == "enter"
    assert body["client_id"] == "alice"


@pytest.mark.parametrize("name", ["", "a.b", "*", "#"])
def test_invalid_names_are_rejected(name):
    with pytest.raises(ValueError):
        data_routing_key(name)


def test_subscribe_binds_each_routing_key_once(pubsub, channel):
    pubsub.subscribe("request-channel", "alice", lambda m: None)
    pubsub.subscribe("request-channel", "alice", lambda m: None)
    pubsub.subscribe("request-channel", "bob", lambda m: None)

    channel.queue_declare.assert_called_once_with(
        queue="", exclusive=True, auto_delete=True
    )
    bound = [c.kwargs["routing_key"] for c in channel.queue_bind.call_args_list]
    assert bound == ["data.alice", "data.bob"]


def test_unsubscribe_last_handler_unbinds(pubsub, channel):
    first = pubsub.subscribe("request-channel", "alice", lambda m: None)
    second = pubsub.subscribe("request-channel", "alice", lambda m: None)

    pubsub.unsubscribe(first)
    channel.queue_unbind.assert_not_called()

    pubsub.unsubscribe(second)
    channel.queue_unbind.assert_called_once_with(
        queue="amq.gen-1", exchange="request-channel", routing_key="data.alice"
    )

    pubsub.unsubscribe(second)
    channel.queue_unbind.assert_called_once()


def test_bind_failure_raises_subscription_error(pubsub, channel):
    channel.queue_bind.side_effect = RuntimeError("access refused")

    with pytest.raises(SubscriptionError):
        pubsub.subscribe("request-channel", "alice", lambda m: None)


def test_data_messages_reach_matching_handlers(pubsub, channel):
    alice_messages, all_messages = [], []
    pubsub.subscribe("broadcast-channel", "alice", alice_messages.append)
    pubsub.subscribe_all("broadcast-channel", all_messages.append)

    deliver(channel, "broadcast-channel", "data.alice", b"hi", {"client_id": "alice"})
    deliver(channel, "broadcast-channel", "data.bob", b"hey")

    assert [m.text for m in alice_messages] == ["hi"]
    assert [(m.name, m.text) for m in all_messages] == [("alice", "hi"), ("bob", "hey")]
    assert alice_messages[0].client_id == "alice"


def test_presence_messages_are_parsed(pubsub, channel):
    events = []
    pubsub.subscribe_presence("request-channel", PresenceAction.ENTER, events.append)

    deliver(
        channel,
        "request-channel",
        "presence.enter.alice",
        b'{"action": "enter", "client_id": "alice"}',
    )

    assert events[0].client_id == "alice"
    assert events[0].action is PresenceAction.ENTER


def test_presence_subscription_binds_every_identity(pubsub, channel):
    pubsub.subscribe_presence("request-channel", PresenceAction.LEAVE, print)

    channel.queue_bind.assert_called_once_with(
        queue="amq.gen-1", exchange="request-channel", routing_key="presence.leave.*"
    )


@pytest.mark.parametrize(
    "routing_key,body",
    [
        ("presence.leave.mallory", b'{"action": "leave", "client_id": "bob"}'),
        ("presence.leave.mallory", b'{"action": "enter", "client_id": "mallory"}'),
        ("presence.leave.mallory", b'{"action": "leave", "client_id": "bob.x"}'),
    ],
)
def test_presence_for_another_identity_is_dropped(
    pubsub, channel, caplog, routing_key, body
):
    events = []
    pubsub.subscribe_presence("request-channel", PresenceAction.LEAVE, events.append)

    deliver(channel, "request-channel", routing_key, body, {"client_id": "mallory"})

    assert events == []
    assert "Presence identity mismatch" in caplog.text


def test_malformed_presence_is_dropped(pubsub, channel, caplog):
    events = []
    pubsub.subscribe_presence("request-channel", PresenceAction.ENTER, events.append)

    deliver(channel, "request-channel", "presence.enter.alice", b"not json")

    assert events == []
    assert "Invalid presence message" in caplog.text


def test_failing_handler_does_not_block_others(pubsub, channel):
    received = []

    def broken(message):
        raise RuntimeError("boom")

    pubsub.subscribe("request-channel", "alice", broken)
    pubsub.subscribe("request-channel", "alice", received.append)

    deliver(channel, "request-channel", "data.alice", b"chunk")

    assert [m.data for m in received] == [b"chunk"]


def test_loop_helpers_delegate_to_connection(pubsub, connection, channel):
    callback = MagicMock()

    pubsub.call_soon_threadsafe(callback)
    pubsub.call_later(5, callback)
    pubsub.stop()

    connection.add_callback_threadsafe.assert_any_call(callback)
    connection.add_callback_threadsafe.assert_any_call(channel.stop_consuming)
    connection.call_later.assert_called_once_with(5, callback)


@pytest.mark.parametrize(
    "pattern,routing_key,expected",
    [
        ("data.alice", "data.alice", True),
        ("data.*", "data.bob", True),
        ("data.*", "presence.enter", False),
        ("presence.enter", "presence.leave", False),
        ("data.*", "data", False),
    ],
)
def test_topic_matches(pattern, routing_key, expected):
    assert topic_matches(pattern, routing_key) is expected


def test_spoofed_leave_does_not_release_another_participant(
    pubsub, channel, channels, transcription_service
):
    manager = TranscriptionSessionManager(pubsub, transcription_service, channels)
    manager.start()
    deliver(
        channel,
        "request-channel",
        "presence.enter.bob",
        b'{"action": "enter", "client_id": "bob"}',
    )

    deliver(
        channel,
        "request-channel",
        "presence.leave.mallory",
        b'{"action": "leave", "client_id": "bob"}',
        {"client_id": "mallory"},
    )

    assert manager.active_participants() == ["bob"]
    assert transcription_service.sessions[0].close_calls == 0
