"""Infrastructure layer exports."""

from .deepgram_transcriber import DeepgramSession, DeepgramTranscriber

__all__ = ["DeepgramSession", "DeepgramTranscriber"]
