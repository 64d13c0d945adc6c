"""
Tests for the reservoir and the match-guarantee initializer.

INVARIANT: a freshly dealt board holds at least one playable match.
"""

import random

import pytest

from cardmatch.config import Distribution
from cardmatch.engine.reservoir import (
    InitializerStrategy,
    Reservoir,
    build_cards,
    build_reservoir,
    deal_board,
    shares_pair_id,
)
from cardmatch.engine.selector import select_pairs
from cardmatch.models.card import Card, CardState, Side
from cardmatch.models.theme import MatchMode


def _card(side: Side, pair_id: int) -> Card:
    prefix = "l" if side is Side.LEFT else "r"
    return Card(id=f"{prefix}{pair_id}", pair_id=pair_id, side=side, text=f"{prefix}{pair_id}")


def _disjoint_head_reservoir(pairs: int = 12, capacity: int = 6) -> Reservoir:
    """Pools whose first `capacity` cards share no pair id."""
    lefts = [_card(Side.LEFT, pair_id) for pair_id in range(pairs)]
    right_order = list(range(capacity, pairs)) + list(range(capacity))
    rights = [_card(Side.RIGHT, pair_id) for pair_id in right_order]
    return Reservoir(left=lefts, right=rights)


class TestReservoir:
    def test_draw_takes_from_the_front(self) -> None:
        reservoir = _disjoint_head_reservoir()

        card = reservoir.draw(Side.LEFT)

        assert card.pair_id == 0
        assert len(reservoir.left) == 11

    def test_draw_first_matching(self) -> None:
        reservoir = _disjoint_head_reservoir()

        card = reservoir.draw_first(Side.RIGHT, lambda c: c.pair_id == 2)

        assert card is not None and card.pair_id == 2
        assert all(c.pair_id != 2 for c in reservoir.right)

    def test_draw_first_without_match_returns_none(self) -> None:
        reservoir = _disjoint_head_reservoir()

        assert reservoir.draw_first(Side.RIGHT, lambda c: c.pair_id == 99) is None
        assert len(reservoir.right) == 12

    def test_drain(self) -> None:
        reservoir = _disjoint_head_reservoir()

        reservoir.drain()

        assert reservoir.exhausted

    def test_shares_pair_id(self) -> None:
        lefts = [_card(Side.LEFT, 1), _card(Side.LEFT, 2)]

        assert shares_pair_id(lefts, [_card(Side.RIGHT, 2)])
        assert not shares_pair_id(lefts, [_card(Side.RIGHT, 3)])


class TestBuildCards:
    def test_one_to_one_uses_selected_variant(self, simple_theme, rng) -> None:
        selection = select_pairs(simple_theme.pairs, Distribution(easy=3), rng)

        lefts, rights = build_cards(selection.selections, MatchMode.ONE_TO_ONE)

        assert len(lefts) == len(rights) == 3
        assert all(card.state is CardState.POOL for card in (*lefts, *rights))
        assert all(card.progress is not None and card.progress.required == 1 for card in lefts)

    def test_one_to_many_uses_every_variant(self, multi_theme, rng) -> None:
        selection = select_pairs(multi_theme.pairs, Distribution(easy=3), rng)

        lefts, rights = build_cards(selection.selections, MatchMode.ONE_TO_MANY)

        assert len(lefts) == 3
        assert len(rights) == 5
        author = next(card for card in lefts if card.pair_id == "author")
        assert author.progress is not None and author.progress.required == 3

    def test_right_description_falls_back_to_pair(self, multi_theme, rng) -> None:
        selection = select_pairs(multi_theme.pairs, Distribution(easy=3), rng)

        _, rights = build_cards(selection.selections, MatchMode.ONE_TO_MANY)
        texts = {card.text: card.description for card in rights}

        assert texts["Resurrection"] == "1899"
        assert texts["Emma"] is None

    def test_reservoir_ids_do_not_reveal_pairs(self, simple_theme, rng) -> None:
        selection = select_pairs(simple_theme.pairs, Distribution(easy=5), rng)

        reservoir = build_reservoir(selection.selections, MatchMode.ONE_TO_ONE, rng)

        assert [card.id for card in reservoir.left] == [f"left-{i}" for i in range(5)]
        assert [card.id for card in reservoir.right] == [f"right-{i}" for i in range(5)]


class TestConstructiveInitializer:
    def test_disjoint_heads_still_produce_a_match(self) -> None:
        reservoir = _disjoint_head_reservoir()

        board = deal_board(reservoir, capacity=6, rng=random.Random(0))

        assert len(board.left) == 6
        assert len(board.right) == 6
        assert board.has_playable_match()
        assert len(reservoir.left) == 6
        assert len(reservoir.right) == 6

    def test_dealt_cards_are_active(self) -> None:
        reservoir = _disjoint_head_reservoir()

        board = deal_board(reservoir, capacity=6, rng=random.Random(0))

        assert all(card.state is CardState.ACTIVE for card in board)
        assert all(card.state is CardState.POOL for card in (*reservoir.left, *reservoir.right))

    def test_small_catalog_fits_on_board(self) -> None:
        reservoir = Reservoir(
            left=[_card(Side.LEFT, i) for i in range(3)],
            right=[_card(Side.RIGHT, i) for i in (2, 0, 1)],
        )

        board = deal_board(reservoir, capacity=6)

        assert len(board.left) == 3
        assert len(board.right) == 3
        assert reservoir.exhausted

    @pytest.mark.parametrize("seed", range(10))
    def test_every_seed_yields_a_match(self, simple_theme, seed: int) -> None:
        rng = random.Random(seed)
        selection = select_pairs(simple_theme.pairs, Distribution(easy=5, medium=5, hard=5), rng)
        reservoir = build_reservoir(selection.selections, MatchMode.ONE_TO_ONE, rng)

        board = deal_board(reservoir, capacity=6, rng=rng)

        assert board.has_playable_match()

    def test_invalid_capacity(self) -> None:
        with pytest.raises(ValueError):
            deal_board(_disjoint_head_reservoir(), capacity=0)


class TestRetryInitializer:
    def test_disjoint_heads_are_reshuffled(self) -> None:
        reservoir = _disjoint_head_reservoir()

        board = deal_board(
            reservoir,
            capacity=6,
            rng=random.Random(42),
            strategy=InitializerStrategy.RETRY,
            max_attempts=100,
        )

        assert board.has_playable_match()

    def test_exhaustion_is_logged_not_raised(self, caplog) -> None:
        reservoir = Reservoir(
            left=[_card(Side.LEFT, i) for i in range(3)],
            right=[_card(Side.RIGHT, i) for i in range(10, 13)],
        )

        board = deal_board(
            reservoir,
            capacity=6,
            rng=random.Random(0),
            strategy=InitializerStrategy.RETRY,
            max_attempts=3,
        )

        messages = [record.getMessage() for record in caplog.records]
        assert "MATCH_GUARANTEE_EXHAUSTED" in messages
        assert "MATCH_GUARANTEE_VIOLATED" in messages
        assert len(board.left) == 3
        assert not board.has_playable_match()
