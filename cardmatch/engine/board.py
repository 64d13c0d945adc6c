"""
Board: the bounded, visible window of active cards.

The board only changes through the initializer and the refill strategy.
Callers outside the engine read it through `snapshot()`.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field

from cardmatch.models.card import Card, Side, can_pair
from cardmatch.models.events import BoardSnapshot, CardView

DEFAULT_CAPACITY = 6


def any_playable(lefts: list[Card], rights: list[Card]) -> bool:
    """True if at least one left/right combination is a playable match."""
    return any(can_pair(left, right) for left in lefts for right in rights)


@dataclass
class Board:
    capacity: int = DEFAULT_CAPACITY
    left: list[Card] = field(default_factory=list)
    right: list[Card] = field(default_factory=list)

    def cards(self, side: Side) -> list[Card]:
        return self.left if side is Side.LEFT else self.right

    def __iter__(self) -> Iterator[Card]:
        yield from self.left
        yield from self.right

    def __len__(self) -> int:
        return len(self.left) + len(self.right)

    def find(self, card_id: str) -> Card | None:
        for card in self:
            if card.id == card_id:
                return card
        return None

    def slot_of(self, card: Card) -> int:
        for index, candidate in enumerate(self.cards(card.side)):
            if candidate.id == card.id:
                return index
        raise KeyError(card.id)

    def place(self, card: Card) -> None:
        """Append a pool card to its side and activate it."""
        column = self.cards(card.side)
        if len(column) >= self.capacity:
            raise ValueError(f"{card.side.value} column is full")
        card.activate()
        column.append(card)

    def replace(self, old: Card, new: Card) -> int:
        """Put `new` into the slot held by `old`; returns the slot index."""
        slot = self.slot_of(old)
        new.activate()
        self.cards(old.side)[slot] = new
        return slot

    def remove(self, card: Card) -> None:
        """Drop a slot permanently; the column shrinks."""
        column = self.cards(card.side)
        column.pop(self.slot_of(card))

    def has_playable_match(self, excluding: Card | None = None) -> bool:
        rights = [card for card in self.right if excluding is None or card.id != excluding.id]
        lefts = [card for card in self.left if excluding is None or card.id != excluding.id]
        return any_playable(lefts, rights)

    def playable_pairs(self) -> list[tuple[Card, Card]]:
        return [
            (left, right) for left in self.left for right in self.right if can_pair(left, right)
        ]

    def snapshot(self) -> BoardSnapshot:
        return BoardSnapshot(
            left=tuple(CardView.of(card) for card in self.left),
            right=tuple(CardView.of(card) for card in self.right),
        )

    def clear(self) -> None:
        self.left.clear()
        self.right.clear()
