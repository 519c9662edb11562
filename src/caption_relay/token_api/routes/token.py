"""Pub/sub credential endpoint."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends

from caption_relay.common import setup_logging
from caption_relay.token_api.dependencies import get_token_provider
from caption_relay.token_api.infrastructure.interfaces import TokenProvider
from caption_relay.token_api.response_models import TokenRequest

logger = setup_logging()

router = APIRouter(prefix="/api", tags=["token"])

TokenProviderDep = Annotated[TokenProvider, Depends(get_token_provider)]


@router.get("/token", response_model=TokenRequest)
def issue_token(provider: TokenProviderDep) -> TokenRequest:
    """
    Issues a short-lived pub/sub token for a fresh participant identity.

    Provider failures are not translated.
    """
    client_id = uuid.uuid4().hex
    logger.info("Received token request", extra={"client_id": client_id})
    return provider.create_token_request(client_id)
