"""RabbitMQ OAuth 2.0 implementation of the TokenProvider interface."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from urllib.parse import quote

import jwt

from caption_relay.common import ChannelConfig, setup_logging
from caption_relay.common.infrastructure.rabbitmq_pubsub import (
    PRESENCE_PREFIX,
    data_routing_key,
)
from caption_relay.token_api.config import TokenConfig
from caption_relay.token_api.response_models import TokenRequest

from .interfaces import TokenProvider

logger = setup_logging()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RabbitMQTokenProvider(TokenProvider):
    """Issues HS256 JWTs accepted by the RabbitMQ OAuth 2.0 auth backend."""

    def __init__(
        self,
        config: TokenConfig,
        channels: ChannelConfig,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._config = config
        self._channels = channels
        self._clock = clock

    def create_token_request(self, client_id: str) -> TokenRequest:
        """
        Signs a token whose scopes only allow the client to publish its own
        audio and presence, and to read the broadcast channel.
        """
        issued_at = self._clock().replace(microsecond=0)
        expires_at = issued_at + timedelta(seconds=self._config.ttl_seconds)
        capability = self.capability(client_id)

        claims = {
            "sub": client_id,
            "client_id": client_id,
            "aud": [self._config.audience],
            "iat": issued_at,
            "exp": expires_at,
            "scope": capability,
        }

        try:
            token = jwt.encode(
                claims,
                self._config.signing_key,
                algorithm="HS256",
                headers={"kid": self._config.key_id},
            )
        except Exception:
            logger.exception("Token signing failed", extra={"client_id": client_id})
            raise

        logger.info(
            "Token issued",
            extra={"client_id": client_id, "expires_at": expires_at.isoformat()},
        )
        return TokenRequest(
            client_id=client_id,
            token=token,
            issued_at=issued_at,
            expires_at=expires_at,
            capability=capability,
        )

    def capability(self, client_id: str) -> list[str]:
        """Scopes in RabbitMQ syntax: <audience>.<permission>:<vhost>/<resource>/<routing key>."""
        prefix = self._config.audience
        vhost = quote(self._config.virtual_host, safe="")
        request_channel = self._channels.request_channel
        broadcast_channel = self._channels.broadcast_channel

        return [
            f"{prefix}.configure:{vhost}/amq.gen-*",
            f"{prefix}.write:{vhost}/amq.gen-*",
            f"{prefix}.read:{vhost}/amq.gen-*",
            f"{prefix}.write:{vhost}/{request_channel}/{data_routing_key(client_id)}",
            f"{prefix}.write:{vhost}/{request_channel}/{PRESENCE_PREFIX}.*.{client_id}",
            f"{prefix}.read:{vhost}/{broadcast_channel}/*",
        ]
