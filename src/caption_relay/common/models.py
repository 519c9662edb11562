"""Messages exchanged over the pub/sub channels."""

from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


class PresenceAction(str, Enum):
    """Presence transitions announced on a channel."""

    ENTER = "enter"
    LEAVE = "leave"


class PresenceEvent(BaseModel, frozen=True):
    """A participant entering or leaving a channel."""

    action: PresenceAction
    client_id: str = Field(min_length=1)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ChannelMessage(BaseModel, frozen=True):
    """A named data message received on a channel."""

    channel: str
    name: str
    data: bytes
    client_id: str | None = None

    @property
    def text(self) -> str:
        return self.data.decode("utf-8")


class Subscription(BaseModel, frozen=True):
    """Handle returned by a subscribe call, used to unsubscribe."""

    channel: str
    routing_key: str
    id: str = Field(default_factory=lambda: uuid4().hex)


PresenceCallback = Callable[[PresenceEvent], None]
MessageCallback = Callable[[ChannelMessage], None]
