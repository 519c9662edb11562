"""Domain layer exports."""

from .models import (
    ParticipantSession,
    SessionState,
    TeardownReason,
    TranscriptFragment,
)
from .session_registry import SessionRegistry
from .transcript_parser import extract_transcript

__all__ = [
    "ParticipantSession",
    "SessionState",
    "TeardownReason",
    "TranscriptFragment",
    "SessionRegistry",
    "extract_transcript",
]
