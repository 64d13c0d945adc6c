"""
Theme Catalog: the read-only source of semantic pairs.

A theme document lists pairs in one of two shapes:

    simple:        {"id": 1, "left": "H2O", "right": "Water", "description": "..."}
    one-to-many:   {"id": 1, "left": "Tolstoy",
                    "rights": [{"text": "War and Peace", "difficulty": 1}, ...]}

Both shapes are parsed into a tagged union so the engine never branches on
field presence. `parse_theme` is the trust boundary: everything past it may
assume a well-formed catalog.
"""

import logging
from enum import Enum, IntEnum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    ValidationError,
    field_validator,
)

from cardmatch.models.failure import CatalogValidationError

logger = logging.getLogger(__name__)

PairId = int | str

# Hard floor below which a theme is rejected
MIN_PAIRS = 3
# Themes smaller than this are accepted with a warning
MIN_RECOMMENDED_PAIRS = 6


class Difficulty(IntEnum):
    """Difficulty tier of a right-hand variant."""

    EASY = 1
    MEDIUM = 2
    HARD = 3


class MatchMode(str, Enum):
    """How many right-hand cards a left card needs before it is resolved."""

    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"


class RightVariant(BaseModel):
    """One right-hand answer for a pair."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1)
    difficulty: Difficulty
    description: str | None = None


class _PairBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: PairId
    left: str = Field(..., min_length=1)
    description: str | None = None

    @field_validator("id")
    @classmethod
    def _id_not_blank(cls, value: PairId) -> PairId:
        if isinstance(value, str) and not value.strip():
            raise ValueError("pair id must not be blank")
        return value


class SimplePair(_PairBase):
    """A pair with exactly one right-hand value."""

    right: str = Field(..., min_length=1)
    difficulty: Difficulty = Difficulty.EASY

    def variants(self) -> tuple[RightVariant, ...]:
        return (
            RightVariant(
                text=self.right,
                difficulty=self.difficulty,
                description=self.description,
            ),
        )


class MultiRightPair(_PairBase):
    """A pair exposing several right-hand variants with their own tiers."""

    rights: tuple[RightVariant, ...] = Field(..., min_length=1)

    def variants(self) -> tuple[RightVariant, ...]:
        return self.rights


def _pair_shape(value: Any) -> str:
    if isinstance(value, dict):
        return "multi" if "rights" in value else "simple"
    return "multi" if isinstance(value, MultiRightPair) else "simple"


Pair = SimplePair | MultiRightPair

PairEntry = Annotated[
    Annotated[SimplePair, Tag("simple")] | Annotated[MultiRightPair, Tag("multi")],
    Discriminator(_pair_shape),
]


class ColumnLabel(BaseModel):
    """Display label for one column of the board."""

    title: str = ""


class Theme(BaseModel):
    """A validated theme document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str | None = None
    title: str = Field(..., min_length=1)
    description: str | None = None
    left_column: ColumnLabel = Field(default_factory=ColumnLabel, alias="leftColumn")
    right_column: ColumnLabel = Field(default_factory=ColumnLabel, alias="rightColumn")
    mode: MatchMode = Field(default=MatchMode.ONE_TO_ONE, alias="type")
    pairs: tuple[PairEntry, ...]

    def available_tiers(self) -> dict[Difficulty, int]:
        """Count of right variants per tier across the whole catalog."""
        counts = {tier: 0 for tier in Difficulty}
        for pair in self.pairs:
            for variant in pair.variants():
                counts[variant.difficulty] += 1
        return counts


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue["loc"])
        parts.append(f"{location}: {issue['msg']}")
    return "; ".join(parts)


def parse_theme(
    raw: Any,
    min_pairs: int = MIN_PAIRS,
    min_recommended_pairs: int = MIN_RECOMMENDED_PAIRS,
) -> Theme:
    """
    Validate a raw theme document and return a Theme.

    Args:
        raw: Decoded JSON document
        min_pairs: Themes with fewer pairs are rejected
        min_recommended_pairs: Themes with fewer pairs are accepted with a warning

    Raises:
        CatalogValidationError: If the document cannot be used to start a game
    """
    if not isinstance(raw, dict):
        raise CatalogValidationError(
            "Theme document must be an object",
            detail=f"got {type(raw).__name__}",
        )

    pairs = raw.get("pairs")
    if not isinstance(pairs, list):
        raise CatalogValidationError("Theme field 'pairs' must be an array")
    if not pairs:
        raise CatalogValidationError("Theme contains no pairs")
    if len(pairs) < min_pairs:
        raise CatalogValidationError(
            f"Theme has too few pairs: {len(pairs)}",
            detail=f"minimum is {min_pairs}",
        )

    for index, pair in enumerate(pairs):
        if not isinstance(pair, dict):
            raise CatalogValidationError(f"Pair {index} must be an object")
        if pair.get("id") is None:
            raise CatalogValidationError(f"Pair {index} has no id")
        if not pair.get("left"):
            raise CatalogValidationError(f"Pair {index} has no left value")
        if "rights" in pair:
            if not isinstance(pair["rights"], list) or not pair["rights"]:
                raise CatalogValidationError(f"Pair {index} has an empty rights array")
        elif not pair.get("right"):
            raise CatalogValidationError(f"Pair {index} has neither right nor rights")

    try:
        theme = Theme.model_validate(raw)
    except ValidationError as e:
        raise CatalogValidationError(
            "Theme document is malformed",
            detail=_format_validation_error(e),
        ) from e

    seen: set[PairId] = set()
    for pair in theme.pairs:
        if pair.id in seen:
            raise CatalogValidationError(
                "Theme contains duplicate pair ids",
                detail=f"duplicate id: {pair.id!r}",
            )
        seen.add(pair.id)

    if len(theme.pairs) < min_recommended_pairs:
        logger.warning(
            "SMALL_CATALOG",
            extra={
                "theme_title": theme.title,
                "pair_count": len(theme.pairs),
                "recommended": min_recommended_pairs,
            },
        )

    return theme
