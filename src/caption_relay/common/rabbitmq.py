import logging

import pika
from pika.adapters.blocking_connection import BlockingConnection

from caption_relay.common.config import RabbitMQConfig

logger = logging.getLogger(__name__)


def open_connection(config: RabbitMQConfig) -> BlockingConnection:
    """
    Establishes a new blocking connection to RabbitMQ.

    Heartbeats are disabled; the connection lives for the whole process and
    its loop is never blocked by provider calls.

    Args:
        config (RabbitMQConfig): Host, port, virtual host and credentials.

    Returns:
        BlockingConnection: The open connection.
    """
    credentials = pika.PlainCredentials(config.user, config.password)
    parameters = pika.ConnectionParameters(
        host=config.host,
        port=config.port,
        virtual_host=config.virtual_host,
        credentials=credentials,
        heartbeat=0,
    )

    try:
        return pika.BlockingConnection(parameters)
    except Exception as e:
        logger.exception(
            "Failed to connect to RabbitMQ",
            extra={"host": config.host, "username": config.user},
        )
        raise e
