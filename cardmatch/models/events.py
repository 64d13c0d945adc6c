"""
Outbound session events.

The session never renders anything. It publishes discrete events to an
injected sink: one full deal, then incremental replace/remove instructions,
match/mismatch notifications and a terminal finish event. Card views never
carry the pair id.
"""

from collections.abc import Callable
from dataclasses import dataclass

from cardmatch.models.card import Card, Side
from cardmatch.models.stats import SessionResults
from cardmatch.models.theme import Difficulty, PairId


@dataclass(frozen=True, slots=True)
class CardView:
    """Read-only projection of a card for the renderer."""

    id: str
    side: Side
    text: str
    difficulty: Difficulty | None = None
    found_matches: int | None = None
    required_matches: int | None = None

    @classmethod
    def of(cls, card: Card) -> "CardView":
        progress = card.progress
        return cls(
            id=card.id,
            side=card.side,
            text=card.text,
            difficulty=card.difficulty,
            found_matches=progress.found if progress else None,
            required_matches=progress.required if progress else None,
        )


@dataclass(frozen=True, slots=True)
class BoardSnapshot:
    left: tuple[CardView, ...]
    right: tuple[CardView, ...]


@dataclass(frozen=True, slots=True)
class BoardDealt:
    """Initial board contents, published once per deal."""

    board: BoardSnapshot


@dataclass(frozen=True, slots=True)
class CardReplaced:
    side: Side
    slot: int
    old_card_id: str
    new_card: CardView


@dataclass(frozen=True, slots=True)
class CardRemoved:
    side: Side
    card_id: str


BoardChange = CardReplaced | CardRemoved


@dataclass(frozen=True, slots=True)
class ProgressUpdated:
    """A left card moved closer to completion but stays on the board."""

    card_id: str
    found_matches: int
    required_matches: int


@dataclass(frozen=True, slots=True)
class MatchMade:
    card_ids: tuple[str, str]
    pair_id: PairId
    description: str | None
    completed: bool
    points: int
    score: int
    combo: int


@dataclass(frozen=True, slots=True)
class MatchMissed:
    card_ids: tuple[str, str]
    penalty: int
    score: int
    combo: int


@dataclass(frozen=True, slots=True)
class SessionFinished:
    results: SessionResults


SessionEvent = (
    BoardDealt
    | CardReplaced
    | CardRemoved
    | ProgressUpdated
    | MatchMade
    | MatchMissed
    | SessionFinished
)

EventSink = Callable[[SessionEvent], None]


class EventLog:
    """An EventSink that keeps every event it receives, in order."""

    def __init__(self) -> None:
        self.events: list[SessionEvent] = []

    def __call__(self, event: SessionEvent) -> None:
        self.events.append(event)

    def __len__(self) -> int:
        return len(self.events)

    def of_type(self, event_type: type) -> list[SessionEvent]:
        return [event for event in self.events if isinstance(event, event_type)]
