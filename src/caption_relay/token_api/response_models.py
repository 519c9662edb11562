"""Response models for the token API."""

from datetime import datetime

from pydantic import BaseModel


class TokenRequest(BaseModel):
    """A signed, time-limited pub/sub credential scoped to one participant."""

    client_id: str
    token: str
    issued_at: datetime
    expires_at: datetime
    capability: list[str]
