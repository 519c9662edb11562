"""Deepgram implementation of the TranscriptionService interface."""

from collections.abc import Callable
from functools import partial
from threading import Lock, Thread

from deepgram import DeepgramClient, LiveOptions, LiveTranscriptionEvents

from caption_relay.common.logging import setup_logging
from caption_relay.relay.domain.models import SessionState
from caption_relay.relay.exceptions import (
    TranscriptionSendError,
    TranscriptionSessionError,
)

from .interfaces import (
    CloseHandler,
    ErrorHandler,
    TranscriptHandler,
    TranscriptionService,
    TranscriptionSession,
)

logger = setup_logging()

Dispatcher = Callable[[Callable[[], None]], None]


class DeepgramSession(TranscriptionSession):
    """One Deepgram live websocket bound to a participant.

    Deepgram invokes event handlers on its own receiver thread; they are handed
    to the broker loop through dispatch. Connecting and finishing block on the
    network, so both run on short-lived daemon threads.
    """

    def __init__(
        self,
        participant_id: str,
        connection,
        options: LiveOptions,
        dispatch: Dispatcher,
        on_transcript: TranscriptHandler,
        on_error: ErrorHandler,
        on_close: CloseHandler,
    ):
        self._participant_id = participant_id
        self._connection = connection
        self._options = options
        self._dispatch = dispatch
        self._on_transcript = on_transcript
        self._on_error = on_error
        self._on_close = on_close
        self._state = SessionState.OPENING
        self._lock = Lock()

        connection.on(LiveTranscriptionEvents.Transcript, self._handle_transcript)
        connection.on(LiveTranscriptionEvents.Error, self._handle_error)
        connection.on(LiveTranscriptionEvents.Close, self._handle_close)

    @property
    def participant_id(self) -> str:
        return self._participant_id

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    def start(self) -> None:
        """Connects in the background; the session becomes ACTIVE once connected."""
        Thread(
            target=self._run_start,
            name=f"deepgram-start-{self._participant_id}",
            daemon=True,
        ).start()

    def send(self, audio: bytes) -> None:
        try:
            sent = self._connection.send(audio)
        except Exception as e:
            raise TranscriptionSendError(self._participant_id, e) from e
        if sent is False:
            raise TranscriptionSendError(self._participant_id)

    def close(self) -> None:
        with self._lock:
            if self._state is SessionState.CLOSED:
                return
            was_active = self._state is SessionState.ACTIVE
            self._state = SessionState.CLOSED

        # An OPENING session is finished by _run_start once connect returns.
        if was_active:
            Thread(
                target=self._finish,
                name=f"deepgram-finish-{self._participant_id}",
                daemon=True,
            ).start()

    def _run_start(self) -> None:
        try:
            started = self._connection.start(self._options)
        except Exception as e:
            logger.exception(
                "Deepgram connection failed",
                extra={"participant_id": self._participant_id},
            )
            self._fail(TranscriptionSessionError(self._participant_id, e))
            return

        if not started:
            self._fail(TranscriptionSessionError(self._participant_id))
            return

        with self._lock:
            closed_while_opening = self._state is SessionState.CLOSED
            if not closed_while_opening:
                self._state = SessionState.ACTIVE

        if closed_while_opening:
            self._finish()
            return

        logger.info(
            "Deepgram session active", extra={"participant_id": self._participant_id}
        )

    def _fail(self, error: Exception) -> None:
        with self._lock:
            self._state = SessionState.CLOSED
        self._dispatch(partial(self._on_error, error))

    def _finish(self) -> None:
        try:
            self._connection.finish()
        except Exception:
            logger.exception(
                "Deepgram finish failed",
                extra={"participant_id": self._participant_id},
            )

    def _handle_transcript(self, _client, result=None, **kwargs) -> None:
        payload = result.to_dict() if hasattr(result, "to_dict") else result
        self._dispatch(partial(self._on_transcript, payload))

    def _handle_error(self, _client, error=None, **kwargs) -> None:
        self._dispatch(partial(self._on_error, error))

    def _handle_close(self, _client, *args, **kwargs) -> None:
        with self._lock:
            self._state = SessionState.CLOSED
        self._dispatch(self._on_close)


class DeepgramTranscriber(TranscriptionService):
    """Opens Deepgram live transcription sessions with one fixed configuration."""

    def __init__(
        self, client: DeepgramClient, options: LiveOptions, dispatch: Dispatcher
    ):
        self._client = client
        self._options = options
        self._dispatch = dispatch

    def open_session(
        self,
        participant_id: str,
        on_transcript: TranscriptHandler,
        on_error: ErrorHandler,
        on_close: CloseHandler,
    ) -> TranscriptionSession:
        try:
            connection = self._client.listen.websocket.v("1")
        except Exception as e:
            logger.exception(
                "Failed to create Deepgram connection",
                extra={"participant_id": participant_id},
            )
            raise TranscriptionSessionError(participant_id, e) from e

        session = DeepgramSession(
            participant_id,
            connection,
            self._options,
            self._dispatch,
            on_transcript,
            on_error,
            on_close,
        )
        session.start()

        logger.info(
            "Deepgram session opening", extra={"participant_id": participant_id}
        )
        return session
