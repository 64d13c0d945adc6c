"""
Refill Strategy: replace vacated slots while keeping a match on the board.

Left slots are refilled first, arbitrarily. Right slots are then refilled
with the invariant in mind: if the board (without the vacated slot) still
holds a playable match, the next pool card is drawn; otherwise the pool is
searched for a partner of an active left card, preferring a left card
inserted in this same cycle. An empty pool removes the slot for good.

When the right pool is already empty the right side cannot repair the
board, so the left draw takes over the search instead.

INVARIANT: after a cycle the board holds a playable match, unless both
pools are empty (terminal thinning phase).
"""

import logging
from collections.abc import Iterable

from cardmatch.engine.board import Board, any_playable
from cardmatch.engine.reservoir import Reservoir
from cardmatch.models.card import Card, Side
from cardmatch.models.events import BoardChange, CardRemoved, CardReplaced, CardView

logger = logging.getLogger(__name__)


def _active_lefts(board: Board) -> list[Card]:
    return [card for card in board.left if card.is_active]


def _active_rights(board: Board, excluding: Card) -> list[Card]:
    return [card for card in board.right if card.is_active and card.id != excluding.id]


def _pick_left(board: Board, reservoir: Reservoir, vacated: Card) -> Card:
    if not reservoir.is_empty(Side.RIGHT):
        return reservoir.draw(Side.LEFT)

    lefts = [card for card in _active_lefts(board) if card.id != vacated.id]
    rights = [card for card in board.right if card.is_active]
    if any_playable(lefts, rights):
        return reservoir.draw(Side.LEFT)

    wanted = {card.pair_id for card in rights}
    partner = reservoir.draw_first(Side.LEFT, lambda c: c.pair_id in wanted)
    if partner is not None:
        logger.debug("COMPATIBLE_LEFT_DRAWN", extra={"card_id": partner.id})
        return partner
    return reservoir.draw(Side.LEFT)


def _pick_right(
    board: Board,
    reservoir: Reservoir,
    vacated: Card,
    inserted_lefts: list[Card],
) -> Card:
    if any_playable(_active_lefts(board), _active_rights(board, vacated)):
        return reservoir.draw(Side.RIGHT)

    fresh_ids = {card.pair_id for card in inserted_lefts if card.is_active}
    if fresh_ids:
        partner = reservoir.draw_first(Side.RIGHT, lambda c: c.pair_id in fresh_ids)
        if partner is not None:
            logger.debug("COMPATIBLE_RIGHT_DRAWN", extra={"card_id": partner.id, "fresh": True})
            return partner

    active_ids = {card.pair_id for card in _active_lefts(board)}
    partner = reservoir.draw_first(Side.RIGHT, lambda c: c.pair_id in active_ids)
    if partner is not None:
        logger.debug("COMPATIBLE_RIGHT_DRAWN", extra={"card_id": partner.id, "fresh": False})
        return partner

    logger.warning(
        "NO_COMPATIBLE_RIGHT_IN_POOL",
        extra={"left_pair_ids": sorted(str(pair_id) for pair_id in active_ids)},
    )
    return reservoir.draw(Side.RIGHT)


def _vacate(board: Board, old: Card, replacement: Card | None) -> BoardChange:
    if replacement is None:
        board.remove(old)
        return CardRemoved(side=old.side, card_id=old.id)
    slot = board.replace(old, replacement)
    return CardReplaced(
        side=old.side,
        slot=slot,
        old_card_id=old.id,
        new_card=CardView.of(replacement),
    )


def refill_board(
    board: Board,
    reservoir: Reservoir,
    vacated: Iterable[Card],
) -> list[BoardChange]:
    """
    Resolve every vacated slot with a replacement or a removal.

    Args:
        board: Board still holding the vacated (matched) cards
        reservoir: Pools to draw from
        vacated: Cards leaving the board

    Returns:
        Board changes in the order they were applied
    """
    leaving = list(vacated)
    changes: list[BoardChange] = []
    inserted_lefts: list[Card] = []

    for old in (card for card in leaving if card.side is Side.LEFT):
        replacement = None
        if not reservoir.is_empty(Side.LEFT):
            replacement = _pick_left(board, reservoir, old)
            inserted_lefts.append(replacement)
        changes.append(_vacate(board, old, replacement))

    for old in (card for card in leaving if card.side is Side.RIGHT):
        replacement = None
        if not reservoir.is_empty(Side.RIGHT):
            replacement = _pick_right(board, reservoir, old, inserted_lefts)
        changes.append(_vacate(board, old, replacement))

    if not reservoir.exhausted and board.left and not board.has_playable_match():
        logger.error(
            "MATCH_GUARANTEE_VIOLATED",
            extra={
                "left_pair_ids": [card.pair_id for card in board.left],
                "right_pair_ids": [card.pair_id for card in board.right],
                "left_pool": len(reservoir.left),
                "right_pool": len(reservoir.right),
            },
        )

    logger.debug(
        "BOARD_REFILLED",
        extra={
            "changes": len(changes),
            "left_pool": len(reservoir.left),
            "right_pool": len(reservoir.right),
        },
    )

    return changes
