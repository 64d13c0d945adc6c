"""
Game Session: orchestrates one play-through of a theme.

The session owns the board and the reservoir exclusively. Renderers get a
snapshot at deal time and discrete events afterwards; input layers call
`attempt_match` with two card ids.

Reentrancy:
    The CHECKING state is entered synchronously, before the first await,
    the moment an attempt is accepted. Any attempt arriving while it is set
    is dropped (IGNORED), not queued. Score and combo change immediately;
    the board changes only after the reveal delay. A watchdog releases the
    gate if the normal path never completes.

Cancellation:
    `reset()` bumps the session epoch. A cycle that wakes up under a stale
    epoch returns without touching the new board.
"""

import asyncio
import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from cardmatch.config import Distribution, Settings, distribution_for_level, settings
from cardmatch.engine.board import Board
from cardmatch.engine.checker import RejectionReason, check_match
from cardmatch.engine.refill import refill_board
from cardmatch.engine.reservoir import (
    InitializerStrategy,
    Reservoir,
    build_reservoir,
    deal_board,
)
from cardmatch.engine.scoring import ScoringRules, apply_correct, apply_incorrect, apply_partial
from cardmatch.engine.selector import select_pairs
from cardmatch.engine.state_machine import GameState, GameStateMachine
from cardmatch.models.card import Card
from cardmatch.models.events import (
    BoardDealt,
    BoardSnapshot,
    EventSink,
    MatchMade,
    MatchMissed,
    ProgressUpdated,
    SessionEvent,
    SessionFinished,
)
from cardmatch.models.failure import CatalogValidationError
from cardmatch.models.stats import SessionResults, SessionStats
from cardmatch.models.theme import PairId, Theme, parse_theme

logger = logging.getLogger(__name__)


class AttemptStatus(str, Enum):
    MATCH = "match"
    PARTIAL_MATCH = "partial_match"
    MISMATCH = "mismatch"
    REJECTED = "rejected"
    IGNORED = "ignored"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class AttemptResult:
    status: AttemptStatus
    state: GameState
    rejection: RejectionReason | None = None
    pair_id: PairId | None = None
    description: str | None = None
    events: tuple[SessionEvent, ...] = ()


def _discard(_event: SessionEvent) -> None:
    return None


def scoring_rules_from(config: Settings) -> ScoringRules:
    return ScoringRules(
        base=config.score_correct,
        penalty=config.score_penalty,
        combo_threshold=config.combo_threshold,
        bonus_unit=config.combo_bonus_unit,
    )


class GameSession:
    """One play-through of a theme at a given difficulty."""

    def __init__(
        self,
        theme: Theme,
        *,
        level: int | None = None,
        distribution: Distribution | None = None,
        sink: EventSink | None = None,
        rng: random.Random | None = None,
        config: Settings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.theme = theme
        self.config = config or settings
        self.level = level if level is not None else self.config.default_difficulty_level
        self.distribution = distribution or distribution_for_level(self.level)

        self._sink: EventSink = sink or _discard
        self._rng = rng or random.Random()
        self._clock = clock
        self._rules = scoring_rules_from(self.config)

        self._machine = GameStateMachine()
        self._board = Board(capacity=self.config.board_capacity)
        self._reservoir = Reservoir()
        self._cards: dict[str, Card] = {}
        self._stats = SessionStats()

        self._epoch = 0
        self._pending: list[Card] | None = None
        self._attempt_events: list[SessionEvent] | None = None
        self._watchdog: asyncio.TimerHandle | None = None
        self._started_at: float | None = None
        self._ended_at: float | None = None

    @classmethod
    def from_catalog(cls, raw: Any, **kwargs: Any) -> "GameSession":
        """
        Validate a raw theme document and create a session for it.

        Raises:
            CatalogValidationError: If the document is unusable; no session is created
        """
        config: Settings = kwargs.get("config") or settings
        theme = parse_theme(
            raw,
            min_pairs=config.min_pairs,
            min_recommended_pairs=config.min_recommended_pairs,
        )
        return cls(theme, **kwargs)

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    @property
    def state(self) -> GameState:
        return self._machine.state

    @property
    def history(self) -> tuple[GameState, ...]:
        return self._machine.history

    @property
    def stats(self) -> SessionStats:
        return self._stats

    @property
    def board(self) -> Board:
        return self._board

    @property
    def reservoir(self) -> Reservoir:
        return self._reservoir

    def card(self, card_id: str) -> Card | None:
        return self._cards.get(card_id)

    def snapshot(self) -> BoardSnapshot:
        return self._board.snapshot()

    def results(self) -> SessionResults:
        duration = 0
        if self._started_at is not None:
            end = self._ended_at if self._ended_at is not None else self._clock()
            duration = int(end - self._started_at)

        return SessionResults(
            score=self._stats.score,
            correct=self._stats.correct_answers,
            incorrect=self._stats.incorrect_answers,
            accuracy=self._stats.accuracy,
            max_combo=self._stats.max_combo,
            duration=duration,
            completed=self._stats.is_complete,
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> BoardSnapshot:
        """
        Select pairs, build the reservoir, deal the board and begin play.

        Returns:
            The initial board

        Raises:
            CatalogValidationError: If no pair can be selected
            InvalidTransitionError: If the session is not IDLE or ERROR
        """
        self._machine.transition(GameState.LOADING)

        try:
            selection = select_pairs(self.theme.pairs, self.distribution, self._rng)
            if not selection.selections:
                raise CatalogValidationError(
                    "No pairs could be selected for this difficulty",
                    detail=f"requested {self.distribution.total}",
                )
            reservoir = build_reservoir(selection.selections, self.theme.mode, self._rng)
            board = deal_board(
                reservoir,
                capacity=self.config.board_capacity,
                rng=self._rng,
                strategy=InitializerStrategy(self.config.initializer_strategy),
                max_attempts=self.config.max_initializer_attempts,
            )
        except Exception:
            self._machine.transition(GameState.ERROR)
            raise

        self._reservoir = reservoir
        self._board = board
        self._cards = {card.id: card for card in (*board, *reservoir.left, *reservoir.right)}
        self._stats = SessionStats(total_pairs=len(selection))

        self._machine.transition(GameState.READY)
        snapshot = board.snapshot()
        self._emit(BoardDealt(board=snapshot))

        self._machine.transition(GameState.PLAYING)
        self._started_at = self._clock()
        self._ended_at = None

        logger.info(
            "SESSION_STARTED",
            extra={
                "theme_title": self.theme.title,
                "level": self.level,
                "total_pairs": self._stats.total_pairs,
                "mode": self.theme.mode.value,
            },
        )
        return snapshot

    def reset(self) -> None:
        """
        Tear the session down to IDLE.

        Clears the processing gate, drains both pools and discards the
        board synchronously; any cycle still in flight is orphaned.
        """
        self._epoch += 1
        self._disarm_watchdog()
        self._pending = None
        self._attempt_events = None
        self._reservoir.drain()
        self._board.clear()
        self._cards = {}
        self._stats = SessionStats()
        self._machine.reset()
        self._started_at = None
        self._ended_at = None
        logger.info("SESSION_RESET", extra={"theme_title": self.theme.title})

    def restart(self) -> BoardSnapshot:
        self.reset()
        return self.start()

    # =========================================================================
    # PLAYER INPUT
    # =========================================================================

    async def attempt_match(self, card_id_a: str, card_id_b: str) -> AttemptResult:
        """
        Compare two cards chosen by the player.

        Never raises: rejected, ignored and failed attempts are reported in
        the returned AttemptResult. `AttemptResult.events` holds only the
        events this attempt produced, even if the session is reset and
        re-dealt while it waits out the reveal delay.
        """
        if not self._machine.can_interact():
            logger.debug("MATCH_ATTEMPT_IGNORED", extra={"state": self.state.value})
            return AttemptResult(status=AttemptStatus.IGNORED, state=self.state)

        # Gate closes here, before any suspension point
        self._machine.transition(GameState.CHECKING)
        epoch = self._epoch
        events: list[SessionEvent] = []
        self._attempt_events = events
        self._arm_watchdog(epoch)

        try:
            result = await self._evaluate(card_id_a, card_id_b, epoch)
        except Exception:
            logger.exception(
                "MATCH_PROCESSING_FAILED",
                extra={"card_a": card_id_a, "card_b": card_id_b},
            )
            if epoch == self._epoch:
                self._pending = None
                self._enter_error()
            result = AttemptResult(status=AttemptStatus.ERROR, state=self.state)
        finally:
            if epoch == self._epoch:
                self._disarm_watchdog()
            if self._attempt_events is events:
                self._attempt_events = None

        return replace(result, events=tuple(events))

    async def _evaluate(self, card_id_a: str, card_id_b: str, epoch: int) -> AttemptResult:
        check = check_match(self._board, self._cards, card_id_a, card_id_b)

        if not check.valid:
            logger.info(
                "MATCH_ATTEMPT_REJECTED",
                extra={"reason": check.rejection.value if check.rejection else None},
            )
            self._machine.transition(GameState.PLAYING)
            return AttemptResult(
                status=AttemptStatus.REJECTED,
                state=self.state,
                rejection=check.rejection,
            )

        left, right = check.left, check.right
        if left is None or right is None:
            raise ValueError("Accepted match check is missing a card")

        if check.is_match:
            status = self._apply_match(left, right, check.description)
            delay = self.config.match_reveal_delay
        else:
            status = self._apply_mismatch(left, right)
            delay = self.config.mismatch_reveal_delay

        await asyncio.sleep(delay)

        if epoch != self._epoch:
            logger.debug("STALE_CYCLE_DROPPED", extra={"epoch": epoch})
            return AttemptResult(status=status, state=self.state, pair_id=check.pair_id)

        self._complete_cycle()
        return AttemptResult(
            status=status,
            state=self.state,
            pair_id=check.pair_id,
            description=check.description,
        )

    # =========================================================================
    # OUTCOME APPLICATION (synchronous, before the reveal delay)
    # =========================================================================

    def _apply_match(self, left: Card, right: Card, description: str | None) -> AttemptStatus:
        if left.progress is None:
            raise ValueError(f"Left card {left.id} has no completion progress")

        left.progress.record(right.id)
        right.mark_matched()
        before = self._stats.score

        if left.progress.is_complete:
            left.mark_matched()
            self._stats = apply_correct(self._stats, self._rules)
            self._pending = [left, right]
            status = AttemptStatus.MATCH
        else:
            self._stats = apply_partial(self._stats, self._rules)
            self._pending = [right]
            status = AttemptStatus.PARTIAL_MATCH

        self._emit(
            MatchMade(
                card_ids=(left.id, right.id),
                pair_id=left.pair_id,
                description=description,
                completed=status is AttemptStatus.MATCH,
                points=self._stats.score - before,
                score=self._stats.score,
                combo=self._stats.combo,
            )
        )
        if status is AttemptStatus.PARTIAL_MATCH:
            self._emit(
                ProgressUpdated(
                    card_id=left.id,
                    found_matches=left.progress.found,
                    required_matches=left.progress.required,
                )
            )

        logger.debug(
            "MATCH_APPLIED",
            extra={
                "pair_id": left.pair_id,
                "completed": status is AttemptStatus.MATCH,
                "score": self._stats.score,
                "combo": self._stats.combo,
            },
        )
        return status

    def _apply_mismatch(self, left: Card, right: Card) -> AttemptStatus:
        before = self._stats.score
        self._stats = apply_incorrect(self._stats, self._rules)
        self._pending = []

        self._emit(
            MatchMissed(
                card_ids=(left.id, right.id),
                penalty=before - self._stats.score,
                score=self._stats.score,
                combo=self._stats.combo,
            )
        )
        return AttemptStatus.MISMATCH

    # =========================================================================
    # BOARD MUTATION (after the reveal delay)
    # =========================================================================

    def _complete_cycle(self) -> None:
        pending, self._pending = self._pending, None
        if pending:
            for change in refill_board(self._board, self._reservoir, pending):
                self._emit(change)

        if self._stats.is_complete:
            self._finish()
        else:
            self._machine.transition(GameState.PLAYING)

    def _finish(self) -> None:
        self._machine.transition(GameState.FINISHED)
        self._ended_at = self._clock()
        results = self.results()
        self._emit(SessionFinished(results=results))
        logger.info(
            "SESSION_FINISHED",
            extra={
                "theme_title": self.theme.title,
                "score": results.score,
                "accuracy": results.accuracy,
                "duration": results.duration,
            },
        )

    def _enter_error(self) -> None:
        if self._machine.can_transition(GameState.ERROR):
            self._machine.transition(GameState.ERROR)

    # =========================================================================
    # WATCHDOG
    # =========================================================================

    def _arm_watchdog(self, epoch: int) -> None:
        self._disarm_watchdog()
        loop = asyncio.get_running_loop()
        self._watchdog = loop.call_later(
            self.config.processing_timeout,
            self._on_processing_timeout,
            epoch,
        )

    def _disarm_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None

    def _on_processing_timeout(self, epoch: int) -> None:
        if epoch != self._epoch or not self._machine.is_processing():
            return

        logger.error(
            "PROCESSING_GATE_TIMEOUT",
            extra={"timeout": self.config.processing_timeout, "epoch": epoch},
        )
        # Orphan the in-flight cycle, then finish its work here
        self._epoch += 1
        self._watchdog = None
        try:
            self._complete_cycle()
        except Exception:
            logger.exception("FORCED_RELEASE_FAILED", extra={"epoch": epoch})
            self._enter_error()

    def _emit(self, event: SessionEvent) -> None:
        if self._attempt_events is not None:
            self._attempt_events.append(event)
        self._sink(event)
