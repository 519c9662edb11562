"""RabbitMQ implementation of the PubSubBroker interface.

Each pub/sub channel is a topic exchange named after the channel. Data
messages travel on ``data.<name>`` and presence announcements on
``presence.<action>.<client_id>``. The announcing identity is taken from the
routing key, which access tokens restrict to the token's own client id. A subscriber owns one exclusive, server-named queue per
channel and binds a routing key for every distinct subscription.
"""

from collections.abc import Callable

import pika
from pika.adapters.blocking_connection import BlockingConnection
from pydantic import ValidationError

from caption_relay.common.exceptions import EventPublishError, SubscriptionError
from caption_relay.common.infrastructure.interfaces import PubSubBroker
from caption_relay.common.logging import setup_logging
from caption_relay.common.models import (
    ChannelMessage,
    MessageCallback,
    PresenceAction,
    PresenceCallback,
    PresenceEvent,
    Subscription,
)

logger = setup_logging()

DATA_PREFIX = "data"
PRESENCE_PREFIX = "presence"
AUDIO_CONTENT_TYPE = "application/octet-stream"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
PRESENCE_CONTENT_TYPE = "application/json"


def validate_name(name: str) -> str:
    """Rejects names that cannot be a single routing key word."""
    if not name or any(char in name for char in ".*#"):
        raise ValueError(f"Invalid message name '{name}'")
    return name


def data_routing_key(name: str) -> str:
    """Maps a message name to its routing key."""
    return f"{DATA_PREFIX}.{validate_name(name)}"


def presence_routing_key(action: PresenceAction, client_id: str) -> str:
    """Maps a presence announcement by client_id to its routing key."""
    return f"{PRESENCE_PREFIX}.{action.value}.{validate_name(client_id)}"


def presence_binding_key(action: PresenceAction) -> str:
    """Pattern matching announcements of one action by any client."""
    return f"{PRESENCE_PREFIX}.{action.value}.*"


def topic_matches(pattern: str, routing_key: str) -> bool:
    """Topic match for patterns made of exact words and single-word "*" wildcards."""
    pattern_words = pattern.split(".")
    key_words = routing_key.split(".")
    return len(pattern_words) == len(key_words) and all(
        expected in ("*", actual) for expected, actual in zip(pattern_words, key_words)
    )


class RabbitMQPubSub(PubSubBroker):
    """Pub/sub broker implementation using RabbitMQ topic exchanges."""

    def __init__(self, connection: BlockingConnection):
        self._connection = connection
        self._channel = connection.channel()
        self._queues: dict[str, str] = {}
        self._handlers: dict[tuple[str, str], dict[str, Callable]] = {}

    def setup(self, channels: list[str]) -> None:
        """Declares a durable topic exchange for every channel."""
        for channel in channels:
            self._channel.exchange_declare(
                exchange=channel,
                exchange_type="topic",
                durable=True,
            )
        logger.info("Channels declared", extra={"channels": channels})

    def publish(
        self,
        channel: str,
        name: str,
        data: bytes | str,
        client_id: str | None = None,
    ) -> None:
        if isinstance(data, str):
            body, content_type = data.encode("utf-8"), TEXT_CONTENT_TYPE
        else:
            body, content_type = bytes(data), AUDIO_CONTENT_TYPE
        self._basic_publish(
            channel, data_routing_key(name), body, content_type, client_id
        )

    def enter_presence(self, channel: str, client_id: str) -> None:
        self._publish_presence(channel, PresenceAction.ENTER, client_id)

    def leave_presence(self, channel: str, client_id: str) -> None:
        self._publish_presence(channel, PresenceAction.LEAVE, client_id)

    def subscribe(
        self, channel: str, name: str, callback: MessageCallback
    ) -> Subscription:
        return self._add_handler(channel, data_routing_key(name), callback)

    def subscribe_all(self, channel: str, callback: MessageCallback) -> Subscription:
        return self._add_handler(channel, f"{DATA_PREFIX}.*", callback)

    def subscribe_presence(
        self, channel: str, action: PresenceAction, callback: PresenceCallback
    ) -> Subscription:
        return self._add_handler(channel, presence_binding_key(action), callback)

    def unsubscribe(self, subscription: Subscription) -> None:
        key = (subscription.channel, subscription.routing_key)
        handlers = self._handlers.get(key)
        if handlers is None or handlers.pop(subscription.id, None) is None:
            return
        if handlers:
            return

        del self._handlers[key]
        try:
            self._channel.queue_unbind(
                queue=self._queues[subscription.channel],
                exchange=subscription.channel,
                routing_key=subscription.routing_key,
            )
        except Exception as e:
            logger.exception(
                "Failed to unbind subscription",
                extra={
                    "channel": subscription.channel,
                    "routing_key": subscription.routing_key,
                },
            )
            raise SubscriptionError(
                subscription.channel, subscription.routing_key, cause=e
            ) from e

    def call_soon_threadsafe(self, callback: Callable[[], None]) -> None:
        self._connection.add_callback_threadsafe(callback)

    def call_later(self, delay: float, callback: Callable[[], None]) -> None:
        self._connection.call_later(delay, callback)

    def consume(self) -> None:
        logger.info("Started consuming", extra={"queues": list(self._queues.values())})
        self._channel.start_consuming()

    def stop(self) -> None:
        self._connection.add_callback_threadsafe(self._channel.stop_consuming)

    def close(self) -> None:
        if self._connection.is_open:
            self._connection.close()
            logger.info("RabbitMQ connection closed")

    def _publish_presence(
        self, channel: str, action: PresenceAction, client_id: str
    ) -> None:
        event = PresenceEvent(action=action, client_id=client_id)
        self._basic_publish(
            channel,
            presence_routing_key(action, client_id),
            event.model_dump_json().encode("utf-8"),
            PRESENCE_CONTENT_TYPE,
            client_id,
        )
        logger.info(
            "Presence announced",
            extra={"channel": channel, "action": action.value, "client_id": client_id},
        )

    def _basic_publish(
        self,
        channel: str,
        routing_key: str,
        body: bytes,
        content_type: str,
        client_id: str | None,
    ) -> None:
        properties = pika.BasicProperties(
            content_type=content_type,
            headers={"client_id": client_id} if client_id else None,
        )
        try:
            self._channel.basic_publish(
                exchange=channel,
                routing_key=routing_key,
                body=body,
                properties=properties,
            )
            logger.debug(
                "Message published",
                extra={"channel": channel, "routing_key": routing_key, "size": len(body)},
            )
        except Exception as e:
            logger.exception(
                "Failed to publish message",
                extra={"channel": channel, "routing_key": routing_key},
            )
            raise EventPublishError(routing_key, cause=e) from e

    def _add_handler(
        self, channel: str, routing_key: str, callback: Callable
    ) -> Subscription:
        key = (channel, routing_key)
        if key not in self._handlers:
            queue = self._ensure_queue(channel)
            try:
                self._channel.queue_bind(
                    queue=queue, exchange=channel, routing_key=routing_key
                )
            except Exception as e:
                logger.exception(
                    "Failed to bind subscription",
                    extra={"channel": channel, "routing_key": routing_key},
                )
                raise SubscriptionError(channel, routing_key, cause=e) from e
            self._handlers[key] = {}

        subscription = Subscription(channel=channel, routing_key=routing_key)
        self._handlers[key][subscription.id] = callback
        return subscription

    def _ensure_queue(self, channel: str) -> str:
        queue = self._queues.get(channel)
        if queue is None:
            result = self._channel.queue_declare(
                queue="", exclusive=True, auto_delete=True
            )
            queue = result.method.queue
            self._channel.basic_consume(
                queue=queue,
                on_message_callback=self._on_message,
                auto_ack=True,
            )
            self._queues[channel] = queue
        return queue

    def _on_message(self, ch, method, properties, body: bytes) -> None:
        handlers = self._matching_handlers(method.exchange, method.routing_key)
        if not handlers:
            return

        prefix, _, name = method.routing_key.partition(".")
        if prefix == PRESENCE_PREFIX:
            payload = self._parse_presence(method.routing_key, body)
            if payload is None:
                return
        else:
            headers = (properties.headers if properties else None) or {}
            payload = ChannelMessage(
                channel=method.exchange,
                name=name,
                data=body,
                client_id=headers.get("client_id"),
            )

        for handler in handlers:
            try:
                handler(payload)
            except Exception:
                logger.exception(
                    "Message handler failed",
                    extra={"channel": method.exchange, "routing_key": method.routing_key},
                )

    def _parse_presence(self, routing_key: str, body: bytes) -> PresenceEvent | None:
        """
        Returns the announcement on routing_key, or None when it is malformed
        or its body names another action or identity than the routing key.
        """
        try:
            event = PresenceEvent.model_validate_json(body)
        except ValidationError as e:
            logger.exception(
                "Invalid presence message",
                extra={"routing_key": routing_key, "error": str(e)},
            )
            return None

        try:
            expected = presence_routing_key(event.action, event.client_id)
        except ValueError:
            expected = None
        if routing_key != expected:
            logger.warning(
                "Presence identity mismatch",
                extra={"routing_key": routing_key, "client_id": event.client_id},
            )
            return None
        return event

    def _matching_handlers(self, exchange: str, routing_key: str) -> list[Callable]:
        return [
            handler
            for (channel, pattern), handlers in self._handlers.items()
            if channel == exchange and topic_matches(pattern, routing_key)
            for handler in handlers.values()
        ]
