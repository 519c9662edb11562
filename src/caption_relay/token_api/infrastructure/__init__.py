"""Concrete implementations of infrastructure interfaces."""

from .rabbitmq_token_provider import RabbitMQTokenProvider

__all__ = ["RabbitMQTokenProvider"]
