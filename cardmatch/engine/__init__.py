"""
The pair reservoir and board-refill engine.

Selection → reservoir → guaranteed deal → match check → scoring → refill,
orchestrated by GameSession under the session state machine.
"""

from cardmatch.engine.board import DEFAULT_CAPACITY, Board, any_playable
from cardmatch.engine.checker import MatchCheck, RejectionReason, check_match
from cardmatch.engine.refill import refill_board
from cardmatch.engine.reservoir import (
    InitializerStrategy,
    Reservoir,
    build_cards,
    build_reservoir,
    deal_board,
    shares_pair_id,
)
from cardmatch.engine.scoring import (
    DEFAULT_RULES,
    MatchOutcome,
    ScoringRules,
    apply_correct,
    apply_incorrect,
    apply_outcome,
    apply_partial,
    combo_bonus,
    replay_outcomes,
)
from cardmatch.engine.selector import PICKING_ORDER, Selection, SelectionResult, select_pairs
from cardmatch.engine.session import AttemptResult, AttemptStatus, GameSession
from cardmatch.engine.state_machine import (
    TRANSITIONS,
    GameState,
    GameStateMachine,
    InvalidTransitionError,
)

__all__ = [
    # Selection
    "PICKING_ORDER",
    "Selection",
    "SelectionResult",
    "select_pairs",
    # Reservoir and deal
    "InitializerStrategy",
    "Reservoir",
    "build_cards",
    "build_reservoir",
    "deal_board",
    "shares_pair_id",
    # Board
    "DEFAULT_CAPACITY",
    "Board",
    "any_playable",
    # Match checking
    "MatchCheck",
    "RejectionReason",
    "check_match",
    # Refill
    "refill_board",
    # Scoring
    "DEFAULT_RULES",
    "MatchOutcome",
    "ScoringRules",
    "apply_correct",
    "apply_incorrect",
    "apply_outcome",
    "apply_partial",
    "combo_bonus",
    "replay_outcomes",
    # State machine
    "TRANSITIONS",
    "GameState",
    "GameStateMachine",
    "InvalidTransitionError",
    # Session
    "AttemptResult",
    "AttemptStatus",
    "GameSession",
]
