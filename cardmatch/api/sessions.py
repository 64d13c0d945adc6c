"""
Session API endpoints.

Starts games, takes match attempts and reports board state and results.
Each match response carries the events that attempt produced, so a client
can animate the board without diffing snapshots.
"""

from dataclasses import asdict
from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from cardmatch.config import Distribution
from cardmatch.engine.session import AttemptStatus, GameSession
from cardmatch.engine.state_machine import GameState
from cardmatch.models.events import (
    BoardDealt,
    BoardSnapshot,
    CardRemoved,
    CardReplaced,
    CardView,
    MatchMade,
    MatchMissed,
    ProgressUpdated,
    SessionEvent,
    SessionFinished,
)
from cardmatch.services.session_registry import (
    SessionEntry,
    SessionRegistry,
    get_session_registry,
)
from cardmatch.services.theme_library import ThemeLibrary, get_theme_library

router = APIRouter(prefix="/sessions", tags=["sessions"])

EVENT_TYPES: dict[type, str] = {
    BoardDealt: "board_dealt",
    CardReplaced: "card_replaced",
    CardRemoved: "card_removed",
    ProgressUpdated: "progress_updated",
    MatchMade: "match_made",
    MatchMissed: "match_missed",
    SessionFinished: "session_finished",
}


class DistributionRequest(BaseModel):
    """Explicit per-tier selection counts."""

    easy: int = Field(default=0, ge=0)
    medium: int = Field(default=0, ge=0)
    hard: int = Field(default=0, ge=0)


class CreateSessionRequest(BaseModel):
    """Request to start a new game."""

    theme_id: str
    level: int | None = None
    distribution: DistributionRequest | None = None


class MatchRequest(BaseModel):
    """Two card ids chosen by the player, in any order."""

    card_a: str
    card_b: str


class CardResponse(BaseModel):
    """A card as shown to the player. Never includes the pair id."""

    id: str
    side: str
    text: str
    difficulty: int | None = None
    found_matches: int | None = None
    required_matches: int | None = None


class BoardResponse(BaseModel):
    left: list[CardResponse]
    right: list[CardResponse]


class StatsResponse(BaseModel):
    score: int
    correct_answers: int
    incorrect_answers: int
    combo: int
    max_combo: int
    matched_pairs: int
    total_pairs: int
    accuracy: int


class SessionResponse(BaseModel):
    """Current view of a session."""

    id: str
    theme_id: str | None
    level: int
    state: GameState
    board: BoardResponse
    stats: StatsResponse


class EventResponse(BaseModel):
    type: str
    data: dict[str, Any] = Field(default_factory=dict)


class MatchResponse(BaseModel):
    """Outcome of one match attempt."""

    status: AttemptStatus
    state: GameState
    rejection: str | None = None
    description: str | None = None
    events: list[EventResponse] = Field(default_factory=list)


class ResultsResponse(BaseModel):
    score: int
    correct: int
    incorrect: int
    accuracy: int
    max_combo: int
    duration: int
    completed: bool


def _card_response(view: CardView) -> CardResponse:
    return CardResponse(
        id=view.id,
        side=view.side.value,
        text=view.text,
        difficulty=int(view.difficulty) if view.difficulty is not None else None,
        found_matches=view.found_matches,
        required_matches=view.required_matches,
    )


def _board_response(snapshot: BoardSnapshot) -> BoardResponse:
    return BoardResponse(
        left=[_card_response(view) for view in snapshot.left],
        right=[_card_response(view) for view in snapshot.right],
    )


def _session_response(entry: SessionEntry) -> SessionResponse:
    session: GameSession = entry.session
    stats = session.stats
    return SessionResponse(
        id=entry.id,
        theme_id=session.theme.id,
        level=session.level,
        state=session.state,
        board=_board_response(session.snapshot()),
        stats=StatsResponse(
            score=stats.score,
            correct_answers=stats.correct_answers,
            incorrect_answers=stats.incorrect_answers,
            combo=stats.combo,
            max_combo=stats.max_combo,
            matched_pairs=stats.matched_pairs,
            total_pairs=stats.total_pairs,
            accuracy=stats.accuracy,
        ),
    )


def event_to_response(event: SessionEvent) -> EventResponse:
    """Flatten a session event into a JSON-friendly payload."""
    return EventResponse(type=EVENT_TYPES[type(event)], data=asdict(event))


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    request: CreateSessionRequest,
    library: Annotated[ThemeLibrary, Depends(get_theme_library)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> SessionResponse:
    """
    Start a game on a theme.

    An explicit distribution overrides the level. Returns 404 for an
    unknown theme and 429 when too many sessions are live.
    """
    theme = library.get(request.theme_id)
    if theme.id is None:
        theme = theme.model_copy(update={"id": request.theme_id})

    distribution = None
    if request.distribution is not None:
        distribution = Distribution(
            easy=request.distribution.easy,
            medium=request.distribution.medium,
            hard=request.distribution.hard,
        )

    entry = registry.create(theme, level=request.level, distribution=distribution)
    return _session_response(entry)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> SessionResponse:
    return _session_response(registry.get(session_id))


@router.post("/{session_id}/match", response_model=MatchResponse)
async def attempt_match(
    session_id: str,
    request: MatchRequest,
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> MatchResponse:
    """
    Submit two cards.

    The response is sent after the reveal delay, once the board has been
    refilled. Attempts made while another is being checked are ignored.
    """
    entry = registry.get(session_id)
    result = await entry.session.attempt_match(request.card_a, request.card_b)

    return MatchResponse(
        status=result.status,
        state=result.state,
        rejection=result.rejection.value if result.rejection else None,
        description=result.description,
        events=[event_to_response(event) for event in result.events],
    )


@router.post("/{session_id}/reset", response_model=SessionResponse)
async def reset_session(
    session_id: str,
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> SessionResponse:
    """Abandon the current game and deal a fresh board on the same theme."""
    entry = registry.get(session_id)
    entry.session.restart()
    return _session_response(entry)


@router.get("/{session_id}/results", response_model=ResultsResponse)
async def get_results(
    session_id: str,
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> ResultsResponse:
    results = registry.get(session_id).session.results()
    return ResultsResponse(**asdict(results))
