"""Handler layer exports."""

from .session_manager import TranscriptionSessionManager

__all__ = ["TranscriptionSessionManager"]
