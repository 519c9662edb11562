"""Custom exceptions for the caption client."""


class TokenFetchError(Exception):
    """Raised when the credential endpoint cannot provide a token."""

    def __init__(self, url: str, cause: Exception | None = None):
        self.url = url
        self.cause = cause
        super().__init__(f"Failed to fetch a pub/sub token from '{url}'")


class AudioCaptureError(Exception):
    """Raised when the microphone stream cannot be started."""

    def __init__(self, reason: str, cause: Exception | None = None):
        self.reason = reason
        self.cause = cause
        super().__init__(f"Audio capture failed: {reason}")
