"""Infrastructure interface exports."""

from .transcription_service import (
    CloseHandler,
    ErrorHandler,
    TranscriptHandler,
    TranscriptionService,
    TranscriptionSession,
)

__all__ = [
    "CloseHandler",
    "ErrorHandler",
    "TranscriptHandler",
    "TranscriptionService",
    "TranscriptionSession",
]
