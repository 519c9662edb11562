"""Abstract interfaces for live transcription backends."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from caption_relay.relay.domain.models import SessionState

TranscriptHandler = Callable[[Mapping[str, Any]], None]
ErrorHandler = Callable[[Any], None]
CloseHandler = Callable[[], None]


class TranscriptionSession(ABC):
    """A provider-managed streaming connection for one participant."""

    @property
    @abstractmethod
    def participant_id(self) -> str:
        """Identity of the participant owning this session."""

    @property
    @abstractmethod
    def state(self) -> SessionState:
        """Current lifecycle state."""

    def is_ready(self) -> bool:
        """Whether the session currently accepts audio."""
        return self.state is SessionState.ACTIVE

    @abstractmethod
    def send(self, audio: bytes) -> None:
        """
        Sends one audio chunk, unmodified, to the provider.

        Raises:
            TranscriptionSendError: If the provider rejects the data.
        """

    @abstractmethod
    def close(self) -> None:
        """Closes the session. Closing a closed session does nothing."""


class TranscriptionService(ABC):
    """Abstract base class for live transcription backends."""

    @abstractmethod
    def open_session(
        self,
        participant_id: str,
        on_transcript: TranscriptHandler,
        on_error: ErrorHandler,
        on_close: CloseHandler,
    ) -> TranscriptionSession:
        """
        Opens a live transcription session for a participant.

        The handlers are attached before the session starts and are invoked
        on the broker loop thread.

        Args:
            participant_id: The participant whose audio the session receives.
            on_transcript: Called with each transcript event payload.
            on_error: Called with the provider error.
            on_close: Called when the provider closes the session.

        Returns:
            The new session, initially in the OPENING state.

        Raises:
            TranscriptionSessionError: If the session cannot be created.
        """
