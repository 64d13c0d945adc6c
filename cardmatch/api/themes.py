"""
Theme API endpoints.

Lists the theme catalog and describes a single theme. Pair contents are
never exposed here; they are only revealed through play.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from cardmatch.models.theme import MatchMode
from cardmatch.services.theme_library import ThemeLibrary, ThemeSummary, get_theme_library

router = APIRouter(prefix="/themes", tags=["themes"])


class ThemeResponse(BaseModel):
    """Response model for a single theme."""

    id: str
    title: str
    description: str | None = None
    mode: MatchMode
    pair_count: int
    tiers: dict[str, int] = Field(default_factory=dict)
    left_title: str = ""
    right_title: str = ""


class ThemeListResponse(BaseModel):
    """Response model for the theme catalog."""

    themes: list[ThemeResponse]
    count: int


def _summary_to_response(summary: ThemeSummary) -> ThemeResponse:
    return ThemeResponse(
        id=summary.id,
        title=summary.title,
        description=summary.description,
        mode=summary.mode,
        pair_count=summary.pair_count,
        tiers={tier.name.lower(): count for tier, count in summary.tiers.items()},
    )


@router.get("", response_model=ThemeListResponse)
async def list_themes(
    library: Annotated[ThemeLibrary, Depends(get_theme_library)],
) -> ThemeListResponse:
    """List every loadable theme. Broken theme files are left out."""
    themes = [_summary_to_response(summary) for summary in library.list_themes()]
    return ThemeListResponse(themes=themes, count=len(themes))


@router.get("/{theme_id}", response_model=ThemeResponse)
async def get_theme(
    theme_id: str,
    library: Annotated[ThemeLibrary, Depends(get_theme_library)],
) -> ThemeResponse:
    """
    Describe a theme.

    Returns 400 for a malformed id, 404 if the theme does not exist and
    422 if its file is not a usable catalog.
    """
    theme = library.get(theme_id)
    return ThemeResponse(
        id=theme_id,
        title=theme.title,
        description=theme.description,
        mode=theme.mode,
        pair_count=len(theme.pairs),
        tiers={tier.name.lower(): count for tier, count in theme.available_tiers().items()},
        left_title=theme.left_column.title,
        right_title=theme.right_column.title,
    )
