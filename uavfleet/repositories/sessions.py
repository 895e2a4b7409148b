from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class StoredSession:
    token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[float] = None
    user_json: Optional[str] = None


class SessionRepo(ABC):
    """Repository interface for the persisted auth session."""

    @abstractmethod
    def load(self) -> Optional[StoredSession]:
        """Return the saved session, or None when logged out."""

    @abstractmethod
    def save(self, session: StoredSession) -> None:
        """Persist ``session``, replacing any previous one."""

    @abstractmethod
    def clear(self) -> None:
        """Forget the saved session."""


class InMemorySessionRepo(SessionRepo):
    """Non-persistent repo for callers that do not want a session file."""

    def __init__(self) -> None:
        self._session: Optional[StoredSession] = None

    def load(self) -> Optional[StoredSession]:
        return self._session

    def save(self, session: StoredSession) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None
