"""
cardmatch services.

Catalog delivery and session ownership around the engine.
"""

from cardmatch.services.session_registry import (
    SessionEntry,
    SessionLimitError,
    SessionNotFoundError,
    SessionRegistry,
    get_session_registry,
)
from cardmatch.services.theme_library import (
    THEME_ID_PATTERN,
    InvalidThemeIdError,
    ThemeLibrary,
    ThemeNotFoundError,
    ThemeSummary,
    get_theme_library,
    validate_theme_id,
)

__all__ = [
    # Theme library
    "THEME_ID_PATTERN",
    "InvalidThemeIdError",
    "ThemeLibrary",
    "ThemeNotFoundError",
    "ThemeSummary",
    "get_theme_library",
    "validate_theme_id",
    # Session registry
    "SessionEntry",
    "SessionLimitError",
    "SessionNotFoundError",
    "SessionRegistry",
    "get_session_registry",
]
