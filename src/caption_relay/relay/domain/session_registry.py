"""Identity to session registry, the single source of truth for active sessions."""

import threading

from .models import ParticipantSession


class SessionRegistry:
    """Maps participant identities to their live session entries.

    Every mutation happens under one lock, so concurrent exit paths release a
    given entry at most once.
    """

    def __init__(self):
        self._entries: dict[str, ParticipantSession] = {}
        self._lock = threading.Lock()

    def register(self, entry: ParticipantSession) -> ParticipantSession | None:
        """Stores entry and returns the entry it displaced, if any."""
        with self._lock:
            previous = self._entries.get(entry.participant_id)
            self._entries[entry.participant_id] = entry
            return previous

    def get(self, participant_id: str) -> ParticipantSession | None:
        with self._lock:
            return self._entries.get(participant_id)

    def release(
        self, participant_id: str, session: object | None = None
    ) -> ParticipantSession | None:
        """
        Removes and returns the entry for participant_id.

        When session is given, the entry is removed only if it still holds
        that session. Returns None when nothing was removed.
        """
        with self._lock:
            entry = self._entries.get(participant_id)
            if entry is None:
                return None
            if session is not None and entry.session is not session:
                return None
            del self._entries[participant_id]
            return entry

    def touch(self, participant_id: str, session: object, now: float) -> None:
        with self._lock:
            entry = self._entries.get(participant_id)
            if entry is not None and entry.session is session:
                entry.last_activity = now

    def idle(self, now: float, timeout: float) -> list[ParticipantSession]:
        """Returns entries whose last activity is older than timeout seconds."""
        with self._lock:
            return [
                entry
                for entry in self._entries.values()
                if now - entry.last_activity > timeout
            ]

    def participants(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, participant_id: object) -> bool:
        with self._lock:
            return participant_id in self._entries
