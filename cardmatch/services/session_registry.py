"""
In-memory session registry.

Each session is stored with the EventLog it publishes to, so HTTP callers
can be handed the events produced by their own request. The registry is
capped; when full it evicts finished sessions first and refuses new ones
otherwise.
"""

import logging
import random
import uuid
from dataclasses import dataclass

from cardmatch.config import Distribution, Settings, settings
from cardmatch.engine.session import GameSession
from cardmatch.engine.state_machine import GameState
from cardmatch.models.events import EventLog
from cardmatch.models.failure import FailureKind, KnownError
from cardmatch.models.theme import Theme

logger = logging.getLogger(__name__)


class SessionNotFoundError(KnownError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Session '{session_id}' not found",
            suggestion="Start a new session with POST /sessions.",
            status_code=404,
        )


class SessionLimitError(KnownError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(
            kind=FailureKind.BUDGET_EXCEEDED,
            message="Too many active sessions",
            detail=f"limit: {limit}",
            suggestion="Finish or reset an existing session and try again.",
            status_code=429,
        )


@dataclass
class SessionEntry:
    id: str
    session: GameSession
    events: EventLog


class SessionRegistry:
    def __init__(self, config: Settings | None = None, seed: int | None = None) -> None:
        self.config = config or settings
        self._entries: dict[str, SessionEntry] = {}
        self._seed = seed

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._entries

    def _make_room(self) -> None:
        if len(self._entries) < self.config.max_sessions:
            return

        finished = [
            entry.id
            for entry in self._entries.values()
            if entry.session.state in (GameState.FINISHED, GameState.ERROR, GameState.IDLE)
        ]
        if not finished:
            logger.warning("SESSION_LIMIT_REACHED", extra={"limit": self.config.max_sessions})
            raise SessionLimitError(self.config.max_sessions)

        evicted = finished[0]
        del self._entries[evicted]
        logger.info("SESSION_EVICTED", extra={"session_id": evicted})

    def create(
        self,
        theme: Theme,
        level: int | None = None,
        distribution: Distribution | None = None,
    ) -> SessionEntry:
        """
        Create and start a session.

        Raises:
            SessionLimitError: If the registry is full of live sessions
            CatalogValidationError: If the theme yields no playable selection
        """
        self._make_room()

        events = EventLog()
        rng = random.Random(self._seed) if self._seed is not None else None
        session = GameSession(
            theme,
            level=level,
            distribution=distribution,
            sink=events,
            rng=rng,
            config=self.config,
        )
        session.start()

        entry = SessionEntry(id=uuid.uuid4().hex, session=session, events=events)
        self._entries[entry.id] = entry
        return entry

    def get(self, session_id: str) -> SessionEntry:
        entry = self._entries.get(session_id)
        if entry is None:
            raise SessionNotFoundError(session_id)
        return entry

    def discard(self, session_id: str) -> None:
        entry = self._entries.pop(session_id, None)
        if entry is None:
            raise SessionNotFoundError(session_id)
        entry.session.reset()

    def clear(self) -> None:
        for entry in self._entries.values():
            entry.session.reset()
        self._entries.clear()


_registry: SessionRegistry | None = None


def get_session_registry() -> SessionRegistry:
    """FastAPI dependency returning the process-wide session registry."""
    global _registry
    if _registry is None:
        _registry = SessionRegistry()
    return _registry
