import random
from typing import Any

import pytest

from cardmatch.config import Settings
from cardmatch.models.theme import Theme, parse_theme


@pytest.fixture
def fast_settings() -> Settings:
    """Settings with no reveal delays, so cycles complete on the next loop turn."""
    return Settings(
        match_reveal_delay=0.0,
        mismatch_reveal_delay=0.0,
        processing_timeout=5.0,
    )


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


def make_simple_document(count: int = 15, mode: str = "one-to-one") -> dict[str, Any]:
    """A simple-pair catalog with tiers spread as 1,2,3,1,2,3,..."""
    return {
        "id": "numbers",
        "title": "Numbers",
        "type": mode,
        "pairs": [
            {
                "id": index,
                "left": f"L{index}",
                "right": f"R{index}",
                "description": f"pair {index}",
                "difficulty": index % 3 + 1,
            }
            for index in range(count)
        ],
    }


@pytest.fixture
def document_factory():
    return make_simple_document


@pytest.fixture
def simple_document() -> dict[str, Any]:
    return make_simple_document()


@pytest.fixture
def simple_theme(simple_document: dict[str, Any]) -> Theme:
    return parse_theme(simple_document)


@pytest.fixture
def multi_document() -> dict[str, Any]:
    """One-to-many catalog: 'author' has three works, the rest have one."""
    return {
        "id": "authors",
        "title": "Authors",
        "type": "one-to-many",
        "pairs": [
            {
                "id": "author",
                "left": "Tolstoy",
                "rights": [
                    {"text": "War and Peace", "difficulty": 1},
                    {"text": "Anna Karenina", "difficulty": 1},
                    {"text": "Resurrection", "difficulty": 1, "description": "1899"},
                ],
            },
            {"id": "b", "left": "Austen", "rights": [{"text": "Emma", "difficulty": 1}]},
            {"id": "c", "left": "Orwell", "rights": [{"text": "1984", "difficulty": 1}]},
        ],
    }


@pytest.fixture
def multi_theme(multi_document: dict[str, Any]) -> Theme:
    return parse_theme(multi_document)
