from caption_relay.common.infrastructure.interfaces.pubsub import (
    MessagePublisher,
    PubSubBroker,
)

__all__ = [
    "MessagePublisher",
    "PubSubBroker",
]
