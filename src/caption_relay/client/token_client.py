"""Fetches pub/sub credentials from the token API."""

import httpx

from caption_relay.common import setup_logging
from caption_relay.token_api.response_models import TokenRequest

from .exceptions import TokenFetchError

logger = setup_logging()


def fetch_token(
    url: str, client: httpx.Client | None = None, timeout: float = 10.0
) -> TokenRequest:
    """
    Requests a token for a new participant identity.

    Raises:
        TokenFetchError: On transport errors, non-2xx responses or an
            unexpected response body.
    """
    http = client or httpx.Client(timeout=timeout)
    try:
        response = http.get(url)
        response.raise_for_status()
        token = TokenRequest.model_validate(response.json())
    except (httpx.HTTPError, ValueError) as e:
        logger.exception("Token request failed", extra={"url": url})
        raise TokenFetchError(url, e) from e
    finally:
        if client is None:
            http.close()

    logger.info(
        "Token received",
        extra={"client_id": token.client_id, "expires_at": token.expires_at.isoformat()},
    )
    return token
