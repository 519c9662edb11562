"""Custom exceptions for the transcription relay service."""


class TranscriptionSessionError(Exception):
    """Raised when a live transcription session cannot be opened."""

    def __init__(self, participant_id: str, cause: Exception | None = None):
        self.participant_id = participant_id
        self.cause = cause
        super().__init__(
            f"Failed to open transcription session for participant '{participant_id}'"
        )


class TranscriptionSendError(Exception):
    """Raised when sending audio to a live transcription session fails."""

    def __init__(self, participant_id: str, cause: Exception | None = None):
        self.participant_id = participant_id
        self.cause = cause
        super().__init__(
            f"Failed to send audio for participant '{participant_id}'"
        )
