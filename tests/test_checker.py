"""Tests for the match checker."""

from cardmatch.engine.board import Board
from cardmatch.engine.checker import RejectionReason, check_match
from cardmatch.models.card import Card, CompletionProgress, Side
from cardmatch.models.theme import Difficulty


def _left(card_id: str, pair_id: int) -> Card:
    return Card(
        id=card_id,
        pair_id=pair_id,
        side=Side.LEFT,
        text=card_id,
        progress=CompletionProgress(),
    )


def _right(card_id: str, pair_id: int, description: str | None = None) -> Card:
    return Card(
        id=card_id,
        pair_id=pair_id,
        side=Side.RIGHT,
        text=card_id,
        description=description,
        difficulty=Difficulty.HARD,
    )


class TestCheckMatch:
    def setup_method(self) -> None:
        self.board = Board(capacity=3)
        self.l1 = _left("l1", 1)
        self.l2 = _left("l2", 2)
        self.r1 = _right("r1", 1, description="one")
        self.r2 = _right("r2", 2)
        for card in (self.l1, self.l2, self.r1, self.r2):
            self.board.place(card)
        self.pooled = _right("r3", 3)
        self.cards = {card.id: card for card in (self.l1, self.l2, self.r1, self.r2, self.pooled)}

    def test_matching_pair(self) -> None:
        check = check_match(self.board, self.cards, "l1", "r1")

        assert check.valid
        assert check.is_match
        assert check.pair_id == 1
        assert check.description == "one"

    def test_order_does_not_matter(self) -> None:
        check = check_match(self.board, self.cards, "r1", "l1")

        assert check.is_match
        assert check.left is self.l1
        assert check.right is self.r1

    def test_mismatch(self) -> None:
        check = check_match(self.board, self.cards, "l1", "r2")

        assert check.valid
        assert not check.is_match
        assert check.description is None

    def test_same_side(self) -> None:
        check = check_match(self.board, self.cards, "l1", "l2")

        assert not check.valid
        assert check.rejection is RejectionReason.SAME_SIDE

    def test_unknown_card(self) -> None:
        check = check_match(self.board, self.cards, "l1", "nope")

        assert not check.valid
        assert check.rejection is RejectionReason.NOT_FOUND

    def test_pool_card_is_not_found(self) -> None:
        check = check_match(self.board, self.cards, "l1", "r3")

        assert check.rejection is RejectionReason.NOT_FOUND

    def test_matched_card_is_not_active(self) -> None:
        self.r1.mark_matched()
        self.board.remove(self.r1)

        check = check_match(self.board, self.cards, "l1", "r1")

        assert not check.valid
        assert check.rejection is RejectionReason.NOT_ACTIVE

    def test_deterministic_and_pure(self) -> None:
        first = check_match(self.board, self.cards, "l2", "r2")
        second = check_match(self.board, self.cards, "l2", "r2")

        assert first == second
        assert self.l2.is_active and self.r2.is_active
        assert self.l2.progress is not None and self.l2.progress.found == 0

    def test_difficulty_does_not_affect_verdict(self) -> None:
        easy = _right("r1-easy", 1)
        easy.difficulty = Difficulty.EASY
        self.board.replace(self.r1, easy)
        self.cards[easy.id] = easy

        assert check_match(self.board, self.cards, "l1", "r1-easy").is_match
