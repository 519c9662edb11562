"""Exceptions shared by every service."""


class ConfigurationError(Exception):
    """Raised when required configuration is missing at startup."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(
            f"Missing required environment variables: {', '.join(missing)}"
        )


class EventPublishError(Exception):
    """Raised when publishing a message to the pub/sub broker fails."""

    def __init__(self, routing_key: str, cause: Exception | None = None):
        self.routing_key = routing_key
        self.cause = cause
        super().__init__(f"Failed to publish message with routing key '{routing_key}'")


class SubscriptionError(Exception):
    """Raised when binding or unbinding a channel subscription fails."""

    def __init__(self, channel: str, routing_key: str, cause: Exception | None = None):
        self.channel = channel
        self.routing_key = routing_key
        self.cause = cause
        super().__init__(
            f"Failed to update subscription '{routing_key}' on channel '{channel}'"
        )
