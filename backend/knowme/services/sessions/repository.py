import copy
from abc import ABC, abstractmethod
from typing import Dict

from knowme.errors import ConcurrentUpdateError, SessionNotFoundError

from .game_session import GameSession


class SessionRepository(ABC):
    """Loads and stores whole game session aggregates.

    ``save`` must reject a session whose ``version`` is no longer the stored
    one, so that two writers racing on the same session cannot both win.
    """

    @abstractmethod
    def get(self, session_id: str) -> GameSession:
        """Return the stored session or raise ``SessionNotFoundError``."""

    @abstractmethod
    def add(self, session: GameSession) -> None:
        """Store a new session and set its initial version."""

    @abstractmethod
    def save(self, session: GameSession) -> None:
        """Store changes to a known session and bump its version."""


class InMemorySessionRepository(SessionRepository):
    """Keeps detached copies of every session in a dict."""

    def __init__(self):
        self._sessions: Dict[str, GameSession] = {}

    def get(self, session_id: str) -> GameSession:
        stored = self._sessions.get(session_id)
        if stored is None:
            raise SessionNotFoundError(session_id)
        return copy.deepcopy(stored)

    def add(self, session: GameSession) -> None:
        session.version = 1
        self._store(session)

    def save(self, session: GameSession) -> None:
        stored = self._sessions.get(session.id)
        if stored is None:
            raise SessionNotFoundError(session.id)
        if stored.version != session.version:
            raise ConcurrentUpdateError(session.id, session.version, stored.version)
        session.version += 1
        self._store(session)

    def _store(self, session: GameSession) -> None:
        snapshot = copy.deepcopy(session)
        snapshot.pending_events = []
        self._sessions[session.id] = snapshot
