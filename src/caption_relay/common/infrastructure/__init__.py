"""Infrastructure layer exports."""

from .rabbitmq_pubsub import RabbitMQPubSub

__all__ = ["RabbitMQPubSub"]
