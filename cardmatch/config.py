from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "cardmatch"
    debug: bool = False

    themes_dir: Path = Path("data/themes")

    # Board geometry (cards per side)
    board_capacity: int = 6

    # Presentation waits before the board is mutated (seconds)
    match_reveal_delay: float = 1.0
    mismatch_reveal_delay: float = 0.8

    # Last-resort release of a stuck CHECKING state (seconds)
    processing_timeout: float = 5.0

    initializer_strategy: Literal["constructive", "retry"] = "constructive"
    max_initializer_attempts: int = 100

    default_difficulty_level: int = 2

    score_correct: int = 50
    score_penalty: int = 10
    combo_threshold: int = 5
    combo_bonus_unit: int = 10

    min_pairs: int = 3
    min_recommended_pairs: int = 6

    max_sessions: int = 256


settings = Settings()


# =============================================================================
# DIFFICULTY POLICY
# =============================================================================


@dataclass(frozen=True, slots=True)
class Distribution:
    """Requested number of selections per difficulty tier."""

    easy: int = 0
    medium: int = 0
    hard: int = 0

    def __post_init__(self) -> None:
        if min(self.easy, self.medium, self.hard) < 0:
            raise ValueError("Distribution counts must be non-negative")

    @property
    def total(self) -> int:
        return self.easy + self.medium + self.hard


DIFFICULTY_DISTRIBUTIONS: dict[int, Distribution] = {
    1: Distribution(easy=8, medium=2, hard=0),
    2: Distribution(easy=4, medium=8, hard=2),
    3: Distribution(easy=2, medium=6, hard=10),
}

# Level used when an unknown level is requested
FALLBACK_DIFFICULTY_LEVEL = 2


def distribution_for_level(level: int) -> Distribution:
    """Look up the tier distribution for a difficulty level (unknown → level 2)."""
    return DIFFICULTY_DISTRIBUTIONS.get(level, DIFFICULTY_DISTRIBUTIONS[FALLBACK_DIFFICULTY_LEVEL])
