from dataclasses import dataclass, field
from enum import Enum

from cardmatch.models.theme import Difficulty, PairId


class Side(str, Enum):
    LEFT = "left"
    RIGHT = "right"


class CardState(str, Enum):
    """Lifecycle of a card: pool → active → matched, never backwards."""

    POOL = "pool"
    ACTIVE = "active"
    MATCHED = "matched"


@dataclass(slots=True)
class CompletionProgress:
    """
    How many right-hand cards a left card still needs.

    Simple pairs require exactly one completion; one-to-many pairs require
    one per right variant.
    """

    required: int = 1
    found: int = 0
    matched_right_ids: set[str] = field(default_factory=set)

    @property
    def is_complete(self) -> bool:
        return self.found >= self.required

    def record(self, right_card_id: str) -> None:
        self.matched_right_ids.add(right_card_id)
        self.found += 1


@dataclass(slots=True)
class Card:
    """
    A playable instance of one side of a pair.

    Attributes:
        id: Session-unique card identifier
        pair_id: Identity of the owning pair; two cards match iff these are equal
        side: Which column the card lives in
        text: Display text
        description: Shown on a successful match (right cards)
        difficulty: Tier of the right variant (right cards only)
        state: Lifecycle state
        progress: Completion tracking (left cards only)
    """

    id: str
    pair_id: PairId
    side: Side
    text: str
    description: str | None = None
    difficulty: Difficulty | None = None
    state: CardState = CardState.POOL
    progress: CompletionProgress | None = None

    @property
    def is_active(self) -> bool:
        return self.state is CardState.ACTIVE

    def activate(self) -> None:
        if self.state is not CardState.POOL:
            raise ValueError(f"Card {self.id} cannot be activated from {self.state.value}")
        self.state = CardState.ACTIVE

    def mark_matched(self) -> None:
        if self.state is not CardState.ACTIVE:
            raise ValueError(f"Card {self.id} cannot be matched from {self.state.value}")
        self.state = CardState.MATCHED


def can_pair(left: Card, right: Card) -> bool:
    """
    True if `left` and `right` form a playable match right now.

    Both must be active, share a pair id, and the right card must not
    already have been counted against the left card.
    """
    if not (left.is_active and right.is_active):
        return False
    if left.pair_id != right.pair_id:
        return False
    if left.progress is not None and right.id in left.progress.matched_right_ids:
        return False
    return True
