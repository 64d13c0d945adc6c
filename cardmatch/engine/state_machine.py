"""
Game Session State Machine.

    IDLE → LOADING → READY → PLAYING ⇄ CHECKING → FINISHED
                       ↘ ERROR ↙ (from LOADING / READY / PLAYING / CHECKING)

Illegal transitions raise InvalidTransitionError; they are never coerced.
PLAYING is the only state that accepts player input. CHECKING is the
processing gate that keeps overlapping match attempts out.
"""

import logging
from enum import Enum

from cardmatch.models.failure import FailureKind, KnownError

logger = logging.getLogger(__name__)


class GameState(str, Enum):
    IDLE = "IDLE"
    LOADING = "LOADING"
    READY = "READY"
    PLAYING = "PLAYING"
    CHECKING = "CHECKING"
    FINISHED = "FINISHED"
    ERROR = "ERROR"


TRANSITIONS: dict[GameState, frozenset[GameState]] = {
    GameState.IDLE: frozenset({GameState.LOADING, GameState.ERROR}),
    GameState.LOADING: frozenset({GameState.READY, GameState.ERROR}),
    GameState.READY: frozenset({GameState.PLAYING, GameState.ERROR}),
    GameState.PLAYING: frozenset({GameState.CHECKING, GameState.FINISHED, GameState.ERROR}),
    GameState.CHECKING: frozenset({GameState.PLAYING, GameState.FINISHED, GameState.ERROR}),
    GameState.FINISHED: frozenset({GameState.IDLE}),
    GameState.ERROR: frozenset({GameState.IDLE, GameState.LOADING}),
}


class InvalidTransitionError(KnownError):
    """Raised when a transition is not in the transition table."""

    def __init__(self, current: GameState, target: GameState):
        self.current = current
        self.target = target
        super().__init__(
            kind=FailureKind.INVALID_TRANSITION,
            message=f"Cannot move from {current.value} to {target.value}",
            detail=f"allowed: {sorted(state.value for state in TRANSITIONS[current])}",
            status_code=409,
        )


class GameStateMachine:
    """Holds the current state and the ordered history of accepted states."""

    def __init__(self) -> None:
        self._state = GameState.IDLE
        self._history: list[GameState] = [GameState.IDLE]

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def history(self) -> tuple[GameState, ...]:
        return tuple(self._history)

    def can_transition(self, target: GameState) -> bool:
        return target in TRANSITIONS[self._state]

    def transition(self, target: GameState) -> None:
        if not self.can_transition(target):
            logger.warning(
                "INVALID_TRANSITION",
                extra={"from_state": self._state.value, "to_state": target.value},
            )
            raise InvalidTransitionError(self._state, target)

        logger.debug(
            "STATE_TRANSITION",
            extra={"from_state": self._state.value, "to_state": target.value},
        )
        self._state = target
        self._history.append(target)

    def can_interact(self) -> bool:
        return self._state is GameState.PLAYING

    def is_processing(self) -> bool:
        return self._state is GameState.CHECKING

    def reset(self) -> None:
        """Hard reset to IDLE, bypassing the table (session teardown only)."""
        self._state = GameState.IDLE
        self._history = [GameState.IDLE]
