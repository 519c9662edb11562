"""Abstract interfaces for pub/sub broker operations."""

from abc import ABC, abstractmethod
from collections.abc import Callable

from caption_relay.common.models import (
    MessageCallback,
    PresenceAction,
    PresenceCallback,
    Subscription,
)


class MessagePublisher(ABC):
    """Abstract base class for publishing messages to a channel."""

    @abstractmethod
    def publish(
        self,
        channel: str,
        name: str,
        data: bytes | str,
        client_id: str | None = None,
    ) -> None:
        """
        Publishes a named data message to a channel.

        Args:
            channel: The channel to publish on.
            name: The message name subscribers filter on.
            data: Raw bytes, or text encoded as UTF-8.
            client_id: Identity of the publishing participant, if any.

        Raises:
            EventPublishError: If publishing fails.
        """

    @abstractmethod
    def enter_presence(self, channel: str, client_id: str) -> None:
        """Announces that client_id is present on the channel."""

    @abstractmethod
    def leave_presence(self, channel: str, client_id: str) -> None:
        """Announces that client_id has left the channel."""


class PubSubBroker(MessagePublisher, ABC):
    """Abstract base class for full pub/sub operations (publish + subscribe + loop)."""

    @abstractmethod
    def setup(self, channels: list[str]) -> None:
        """Declares the given channels on the broker."""

    @abstractmethod
    def subscribe(
        self, channel: str, name: str, callback: MessageCallback
    ) -> Subscription:
        """
        Subscribes to data messages with the given name on a channel.

        Args:
            channel: The channel to listen on.
            name: The message name to receive.
            callback: Called with each ChannelMessage on the loop thread.

        Returns:
            A Subscription handle for unsubscribe().

        Raises:
            SubscriptionError: If the broker rejects the subscription.
        """

    @abstractmethod
    def subscribe_all(self, channel: str, callback: MessageCallback) -> Subscription:
        """Subscribes to every data message on a channel, whatever its name."""

    @abstractmethod
    def subscribe_presence(
        self, channel: str, action: PresenceAction, callback: PresenceCallback
    ) -> Subscription:
        """Subscribes to presence events of one action on a channel."""

    @abstractmethod
    def unsubscribe(self, subscription: Subscription) -> None:
        """Removes a subscription. Unknown or already removed handles are ignored."""

    @abstractmethod
    def call_soon_threadsafe(self, callback: Callable[[], None]) -> None:
        """Schedules callback on the loop thread. Safe to call from any thread."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> None:
        """Schedules callback on the loop thread after delay seconds."""

    @abstractmethod
    def consume(self) -> None:
        """Runs the event loop, dispatching messages until stop() is called."""

    @abstractmethod
    def stop(self) -> None:
        """Stops the event loop. Safe to call from any thread."""

    @abstractmethod
    def close(self) -> None:
        """Closes the underlying connection."""
