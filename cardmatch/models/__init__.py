from cardmatch.models.card import Card, CardState, CompletionProgress, Side, can_pair
from cardmatch.models.events import (
    BoardChange,
    BoardDealt,
    BoardSnapshot,
    CardRemoved,
    CardReplaced,
    CardView,
    EventLog,
    EventSink,
    MatchMade,
    MatchMissed,
    ProgressUpdated,
    SessionEvent,
    SessionFinished,
)
from cardmatch.models.failure import (
    STANDARD_MESSAGES,
    STANDARD_SUGGESTIONS,
    ApiResponse,
    CatalogValidationError,
    FailureDetail,
    FailureKind,
    KnownError,
    OutcomeType,
    create_known_failure,
    create_unknown_failure,
    finalize_response,
)
from cardmatch.models.stats import SessionResults, SessionStats
from cardmatch.models.theme import (
    MIN_PAIRS,
    MIN_RECOMMENDED_PAIRS,
    ColumnLabel,
    Difficulty,
    MatchMode,
    MultiRightPair,
    Pair,
    PairId,
    RightVariant,
    SimplePair,
    Theme,
    parse_theme,
)

__all__ = [
    "ApiResponse",
    "BoardChange",
    "BoardDealt",
    "BoardSnapshot",
    "Card",
    "CardRemoved",
    "CardReplaced",
    "CardState",
    "CardView",
    "CatalogValidationError",
    "ColumnLabel",
    "CompletionProgress",
    "Difficulty",
    "EventLog",
    "EventSink",
    "FailureDetail",
    "FailureKind",
    "KnownError",
    "MIN_PAIRS",
    "MIN_RECOMMENDED_PAIRS",
    "MatchMade",
    "MatchMissed",
    "MatchMode",
    "MultiRightPair",
    "OutcomeType",
    "Pair",
    "PairId",
    "ProgressUpdated",
    "RightVariant",
    "STANDARD_MESSAGES",
    "STANDARD_SUGGESTIONS",
    "SessionEvent",
    "SessionFinished",
    "SessionResults",
    "SessionStats",
    "Side",
    "SimplePair",
    "Theme",
    "can_pair",
    "create_known_failure",
    "create_unknown_failure",
    "finalize_response",
    "parse_theme",
]
