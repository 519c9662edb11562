"""Extraction of transcript text from provider events."""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from caption_relay.common.logging import setup_logging

from .models import TranscriptPayload

logger = setup_logging()


def extract_transcript(payload: Mapping[str, Any] | None) -> str | None:
    """
    Returns the first alternative's transcript of a provider event.

    Payloads without a channel, without alternatives, or with an empty
    transcript yield None. Malformed payloads are not errors.
    """
    if not payload:
        return None

    try:
        parsed = TranscriptPayload.model_validate(payload)
    except ValidationError:
        logger.debug("Ignoring transcript event without channel data")
        return None

    if not parsed.channel.alternatives:
        return None

    return parsed.channel.alternatives[0].transcript or None
