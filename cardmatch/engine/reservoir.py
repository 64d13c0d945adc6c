"""
Reservoir and Match-Guarantee Initializer.

The reservoir holds the not-yet-visible cards of a session, one ordered pool
per side. The two pools are shuffled independently: the refill strategy
relies on their order being uncorrelated.

Two initializer strategies are available:

- constructive (default): take the first C left cards, pull one partner for
  each of their pair ids out of the right pool, pad, then shuffle the right
  column. Bounded O(C · |pool|) cost.
- retry: reshuffle the right pool until the first C cards of each side
  share a pair id, bounded by `max_attempts`.

INVARIANT: after dealing, the board holds at least one playable match
unless the catalog makes that impossible (logged as an anomaly, never raised).
"""

import logging
import random
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from cardmatch.engine.board import DEFAULT_CAPACITY, Board
from cardmatch.engine.selector import Selection
from cardmatch.models.card import Card, CompletionProgress, Side
from cardmatch.models.theme import MatchMode

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 100


class InitializerStrategy(str, Enum):
    CONSTRUCTIVE = "constructive"
    RETRY = "retry"


@dataclass
class Reservoir:
    """Off-board backlog of cards, one pool per side."""

    left: list[Card] = field(default_factory=list)
    right: list[Card] = field(default_factory=list)

    def pool(self, side: Side) -> list[Card]:
        return self.left if side is Side.LEFT else self.right

    def is_empty(self, side: Side) -> bool:
        return not self.pool(side)

    @property
    def exhausted(self) -> bool:
        return not self.left and not self.right

    def draw(self, side: Side) -> Card:
        """Take the next card in shuffle order."""
        return self.pool(side).pop(0)

    def draw_first(self, side: Side, predicate: Callable[[Card], bool]) -> Card | None:
        """Take the first card satisfying `predicate`, or None."""
        pool = self.pool(side)
        for index, card in enumerate(pool):
            if predicate(card):
                return pool.pop(index)
        return None

    def reshuffle(self, side: Side, rng: random.Random) -> None:
        rng.shuffle(self.pool(side))

    def drain(self) -> None:
        self.left.clear()
        self.right.clear()


def shares_pair_id(lefts: Iterable[Card], rights: Iterable[Card]) -> bool:
    """State-agnostic overlap test used before cards are on the board."""
    return not {card.pair_id for card in lefts}.isdisjoint(card.pair_id for card in rights)


def build_cards(selections: Iterable[Selection], mode: MatchMode) -> tuple[list[Card], list[Card]]:
    """
    Create the left and right cards for a session, in selection order.

    In one-to-many mode every variant of a selected pair becomes a right card
    and the left card requires all of them; otherwise only the selected
    variant is used.
    """
    lefts: list[Card] = []
    rights: list[Card] = []

    for index, selection in enumerate(selections):
        pair = selection.pair
        if mode is MatchMode.ONE_TO_MANY:
            variants = pair.variants()
        else:
            variants = (selection.variant,)

        lefts.append(
            Card(
                id=f"left-{index}",
                pair_id=pair.id,
                side=Side.LEFT,
                text=pair.left,
                description=pair.description,
                progress=CompletionProgress(required=len(variants)),
            )
        )
        for variant_index, variant in enumerate(variants):
            rights.append(
                Card(
                    id=f"right-{index}-{variant_index}",
                    pair_id=pair.id,
                    side=Side.RIGHT,
                    text=variant.text,
                    description=variant.description or pair.description,
                    difficulty=variant.difficulty,
                )
            )

    return lefts, rights


def build_reservoir(
    selections: Iterable[Selection],
    mode: MatchMode,
    rng: random.Random | None = None,
) -> Reservoir:
    """
    Build both pools from the selector's output and shuffle them independently.

    Card ids are reassigned from the shuffled pool positions, so an id says
    nothing about which cards pair up.
    """
    rng = rng or random.Random()
    lefts, rights = build_cards(selections, mode)
    rng.shuffle(lefts)
    rng.shuffle(rights)
    for position, card in enumerate(lefts):
        card.id = f"left-{position}"
    for position, card in enumerate(rights):
        card.id = f"right-{position}"
    return Reservoir(left=lefts, right=rights)


def _deal_constructive(reservoir: Reservoir, board: Board, rng: random.Random) -> None:
    capacity = board.capacity

    lefts = [reservoir.draw(Side.LEFT) for _ in range(min(capacity, len(reservoir.left)))]
    for card in lefts:
        board.place(card)

    rights: list[Card] = []
    for pair_id in dict.fromkeys(card.pair_id for card in lefts):
        if len(rights) >= capacity:
            break
        partner = reservoir.draw_first(Side.RIGHT, lambda c, pid=pair_id: c.pair_id == pid)
        if partner is not None:
            rights.append(partner)

    while len(rights) < capacity and not reservoir.is_empty(Side.RIGHT):
        rights.append(reservoir.draw(Side.RIGHT))

    # Partners were pulled in left order; hide that correlation
    rng.shuffle(rights)
    for card in rights:
        board.place(card)


def _deal_retry(
    reservoir: Reservoir,
    board: Board,
    rng: random.Random,
    max_attempts: int,
) -> None:
    capacity = board.capacity
    attempts = 0

    while not shares_pair_id(reservoir.left[:capacity], reservoir.right[:capacity]):
        if attempts >= max_attempts:
            logger.warning(
                "MATCH_GUARANTEE_EXHAUSTED",
                extra={"attempts": attempts, "capacity": capacity},
            )
            break
        reservoir.reshuffle(Side.RIGHT, rng)
        attempts += 1

    if attempts:
        logger.debug("RIGHT_POOL_RESHUFFLED", extra={"attempts": attempts})

    for side in (Side.LEFT, Side.RIGHT):
        for _ in range(min(capacity, len(reservoir.pool(side)))):
            board.place(reservoir.draw(side))


def deal_board(
    reservoir: Reservoir,
    capacity: int = DEFAULT_CAPACITY,
    rng: random.Random | None = None,
    strategy: InitializerStrategy = InitializerStrategy.CONSTRUCTIVE,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> Board:
    """
    Fill a fresh board from the reservoir with a guaranteed playable match.

    Args:
        reservoir: Shuffled pools; dealt cards are removed from them
        capacity: Cards per side
        rng: Random source
        strategy: Constructive search or bounded retry
        max_attempts: Retry bound (retry strategy only)

    Returns:
        The dealt Board
    """
    if capacity < 1:
        raise ValueError("Board capacity must be at least 1")

    rng = rng or random.Random()
    board = Board(capacity=capacity)

    if strategy is InitializerStrategy.RETRY:
        _deal_retry(reservoir, board, rng, max_attempts)
    else:
        _deal_constructive(reservoir, board, rng)

    if board.left and board.right and not board.has_playable_match():
        logger.error(
            "MATCH_GUARANTEE_VIOLATED",
            extra={
                "left_pair_ids": [card.pair_id for card in board.left],
                "right_pair_ids": [card.pair_id for card in board.right],
            },
        )

    logger.debug(
        "BOARD_DEALT",
        extra={
            "left": len(board.left),
            "right": len(board.right),
            "left_pool": len(reservoir.left),
            "right_pool": len(reservoir.right),
        },
    )

    return board
