"""Abstract interface for pub/sub token issuance."""

from abc import ABC, abstractmethod

from caption_relay.token_api.response_models import TokenRequest


class TokenProvider(ABC):
    """Abstract base class for pub/sub credential authorities."""

    @abstractmethod
    def create_token_request(self, client_id: str) -> TokenRequest:
        """
        Creates a signed, time-limited token scoped to client_id.

        Args:
            client_id: The participant identity the token is bound to.

        Returns:
            The provider's token payload.
        """
        pass
