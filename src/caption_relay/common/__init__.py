from caption_relay.common.config import (
    AudioFormatConfig,
    ChannelConfig,
    RabbitMQConfig,
)
from caption_relay.common.exceptions import (
    ConfigurationError,
    EventPublishError,
    SubscriptionError,
)
from caption_relay.common.logging import setup_logging
from caption_relay.common.models import (
    ChannelMessage,
    PresenceAction,
    PresenceEvent,
    Subscription,
)

__all__ = [
    "setup_logging",
    "ConfigurationError",
    "EventPublishError",
    "SubscriptionError",
    "AudioFormatConfig",
    "ChannelConfig",
    "RabbitMQConfig",
    "ChannelMessage",
    "PresenceAction",
    "PresenceEvent",
    "Subscription",
]
