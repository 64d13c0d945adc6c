"""
Match checker.

Correctness is pair identity and nothing else: tier and description never
influence the verdict. The checker never mutates anything.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from cardmatch.engine.board import Board
from cardmatch.models.card import Card, CardState, Side
from cardmatch.models.theme import PairId


class RejectionReason(str, Enum):
    """Why a selection is not a valid match attempt."""

    NOT_FOUND = "NOT_FOUND"
    NOT_ACTIVE = "NOT_ACTIVE"
    SAME_SIDE = "SAME_SIDE"


@dataclass(frozen=True, slots=True)
class MatchCheck:
    valid: bool
    is_match: bool = False
    pair_id: PairId | None = None
    description: str | None = None
    rejection: RejectionReason | None = None
    left: Card | None = None
    right: Card | None = None

    @classmethod
    def rejected(cls, reason: RejectionReason) -> "MatchCheck":
        return cls(valid=False, rejection=reason)


def _lookup(card_id: str, board: Board, cards: Mapping[str, Card]) -> Card | None:
    card = board.find(card_id)
    if card is not None:
        return card
    # Matched cards are off the board but still known to the session
    known = cards.get(card_id)
    if known is not None and known.state is CardState.MATCHED:
        return known
    return None


def check_match(
    board: Board,
    cards: Mapping[str, Card],
    card_id_a: str,
    card_id_b: str,
) -> MatchCheck:
    """
    Evaluate a proposed pairing of two cards.

    Args:
        board: Current board
        cards: Every card of the session, by id
        card_id_a: First selected card
        card_id_b: Second selected card

    Returns:
        MatchCheck; `valid` is False with a RejectionReason when the
        selection is not a legal attempt
    """
    first = _lookup(card_id_a, board, cards)
    second = _lookup(card_id_b, board, cards)

    if first is None or second is None:
        return MatchCheck.rejected(RejectionReason.NOT_FOUND)

    if not (first.is_active and second.is_active):
        return MatchCheck.rejected(RejectionReason.NOT_ACTIVE)

    if first.side is second.side:
        return MatchCheck.rejected(RejectionReason.SAME_SIDE)

    left, right = (first, second) if first.side is Side.LEFT else (second, first)
    is_match = left.pair_id == right.pair_id

    return MatchCheck(
        valid=True,
        is_match=is_match,
        pair_id=left.pair_id,
        description=right.description if is_match else None,
        left=left,
        right=right,
    )
