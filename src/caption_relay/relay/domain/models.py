"""Domain models for the transcription relay."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel

from caption_relay.common.models import Subscription

if TYPE_CHECKING:
    from caption_relay.relay.infrastructure.interfaces import TranscriptionSession


class SessionState(str, Enum):
    """Lifecycle of one provider transcription session."""

    OPENING = "opening"
    ACTIVE = "active"
    CLOSED = "closed"


class TeardownReason(str, Enum):
    """Why a participant's session was released."""

    LEAVE = "leave"
    PROVIDER_CLOSED = "provider_closed"
    PROVIDER_ERROR = "provider_error"
    IDLE_TIMEOUT = "idle_timeout"
    REPLACED = "replaced"
    SUBSCRIPTION_FAILED = "subscription_failed"
    SHUTDOWN = "shutdown"


class TranscriptFragment(BaseModel, frozen=True):
    """Recognized text attributed to the speaking participant."""

    participant_id: str
    text: str


class Alternative(BaseModel):
    """One recognition hypothesis."""

    transcript: str = ""


class TranscriptChannel(BaseModel):
    """Per audio channel recognition results."""

    alternatives: list[Alternative]


class TranscriptPayload(BaseModel):
    """The part of a provider transcript event the relay reads."""

    channel: TranscriptChannel


@dataclass(eq=False)
class ParticipantSession:
    """Registry entry tying a participant to its session and audio subscription."""

    participant_id: str
    session: "TranscriptionSession"
    last_activity: float
    subscription: Subscription | None = None
    forwarded_chunks: int = field(default=0)
    dropped_chunks: int = field(default=0)
