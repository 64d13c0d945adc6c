"""
Theme library service.

Themes live as `<theme-id>.json` files in a single directory. Ids are
restricted to letters, digits and hyphens so that an id can never escape
the directory. Parsed themes are cached; theme files are read-only data.
"""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from cardmatch.config import Settings, settings
from cardmatch.models.failure import CatalogValidationError, FailureKind, KnownError
from cardmatch.models.theme import Difficulty, MatchMode, Theme, parse_theme

logger = logging.getLogger(__name__)

THEME_ID_PATTERN = re.compile(r"[a-z0-9-]+", re.IGNORECASE)


class InvalidThemeIdError(KnownError):
    def __init__(self, theme_id: str):
        self.theme_id = theme_id
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message="Theme id contains invalid characters",
            detail=f"theme_id={theme_id!r}",
            suggestion="Use only letters, digits and hyphens.",
            status_code=400,
        )


class ThemeNotFoundError(KnownError):
    def __init__(self, theme_id: str):
        self.theme_id = theme_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Theme '{theme_id}' not found",
            suggestion="List available themes with GET /themes.",
            status_code=404,
        )


@dataclass(frozen=True, slots=True)
class ThemeSummary:
    id: str
    title: str
    description: str | None
    pair_count: int
    mode: MatchMode
    tiers: dict[Difficulty, int]


def validate_theme_id(theme_id: str) -> str:
    if not theme_id or not THEME_ID_PATTERN.fullmatch(theme_id):
        raise InvalidThemeIdError(theme_id)
    return theme_id


class ThemeLibrary:
    """Loads and caches theme documents from a directory."""

    def __init__(self, themes_dir: Path, config: Settings | None = None) -> None:
        self.themes_dir = Path(themes_dir)
        self.config = config or settings
        self._cache: dict[str, Theme] = {}

    def available_ids(self) -> list[str]:
        if not self.themes_dir.is_dir():
            logger.warning("THEMES_DIR_MISSING", extra={"themes_dir": str(self.themes_dir)})
            return []
        return sorted(
            path.stem
            for path in self.themes_dir.glob("*.json")
            if path.is_file() and THEME_ID_PATTERN.fullmatch(path.stem)
        )

    def get(self, theme_id: str) -> Theme:
        """
        Load a theme by id.

        Raises:
            InvalidThemeIdError: If the id has disallowed characters
            ThemeNotFoundError: If no file exists for the id
            CatalogValidationError: If the file is not a usable theme
        """
        validate_theme_id(theme_id)

        cached = self._cache.get(theme_id)
        if cached is not None:
            return cached

        path = self.themes_dir / f"{theme_id}.json"
        if not path.is_file():
            raise ThemeNotFoundError(theme_id)

        try:
            with open(path, encoding="utf-8") as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            raise CatalogValidationError(
                "Theme file is not valid JSON",
                detail=f"{path.name}: line {e.lineno}",
            ) from e
        except UnicodeDecodeError as e:
            raise CatalogValidationError(
                "Theme file is not valid JSON",
                detail=f"{path.name}: not UTF-8 at byte {e.start}",
            ) from e
        except OSError as e:
            raise CatalogValidationError(
                "Theme file could not be read",
                detail=f"{path.name}: {e.strerror or type(e).__name__}",
            ) from e

        theme = parse_theme(
            raw,
            min_pairs=self.config.min_pairs,
            min_recommended_pairs=self.config.min_recommended_pairs,
        )
        if theme.id is None:
            theme = theme.model_copy(update={"id": theme_id})

        self._cache[theme_id] = theme
        logger.info(
            "THEME_LOADED",
            extra={"theme_id": theme_id, "pair_count": len(theme.pairs)},
        )
        return theme

    def list_themes(self) -> list[ThemeSummary]:
        """Summaries of every loadable theme; broken files are skipped with a warning."""
        result: list[ThemeSummary] = []
        for theme_id in self.available_ids():
            try:
                theme = self.get(theme_id)
            except (CatalogValidationError, ThemeNotFoundError) as e:
                logger.warning(
                    "THEME_SKIPPED",
                    extra={"theme_id": theme_id, "reason": e.message, "detail": e.detail},
                )
                continue
            result.append(
                ThemeSummary(
                    id=theme_id,
                    title=theme.title,
                    description=theme.description,
                    pair_count=len(theme.pairs),
                    mode=theme.mode,
                    tiers=theme.available_tiers(),
                )
            )
        return result

    def clear_cache(self) -> None:
        self._cache.clear()


_library: ThemeLibrary | None = None


def get_theme_library() -> ThemeLibrary:
    """FastAPI dependency returning the process-wide theme library."""
    global _library
    if _library is None:
        _library = ThemeLibrary(settings.themes_dir)
    return _library
