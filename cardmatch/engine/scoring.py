"""
Scoring and combo engine.

Pure functions from an outcome to the next SessionStats value. Nothing in
this module holds state; `replay_outcomes` folds a whole history.

Rules:
- Correct match: +base, +combo bonus once the streak reaches the threshold
- Partial match (one-to-many, left card not yet complete): +base only,
  combo and correct answers untouched
- Incorrect match: −penalty (floored at 0), combo reset to 0
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import Enum

from cardmatch.models.stats import SessionStats


class MatchOutcome(str, Enum):
    CORRECT = "correct"
    PARTIAL = "partial"
    INCORRECT = "incorrect"


@dataclass(frozen=True, slots=True)
class ScoringRules:
    base: int = 50
    penalty: int = 10
    combo_threshold: int = 5
    bonus_unit: int = 10


DEFAULT_RULES = ScoringRules()


def combo_bonus(combo: int, rules: ScoringRules = DEFAULT_RULES) -> int:
    """Bonus for reaching `combo`; 0 below the threshold, then linear."""
    if combo < rules.combo_threshold:
        return 0
    return (combo - rules.combo_threshold + 1) * rules.bonus_unit


def apply_correct(stats: SessionStats, rules: ScoringRules = DEFAULT_RULES) -> SessionStats:
    combo = stats.combo + 1
    return replace(
        stats,
        score=stats.score + rules.base + combo_bonus(combo, rules),
        correct_answers=stats.correct_answers + 1,
        matched_pairs=stats.matched_pairs + 1,
        combo=combo,
        max_combo=max(stats.max_combo, combo),
    )


def apply_partial(stats: SessionStats, rules: ScoringRules = DEFAULT_RULES) -> SessionStats:
    return replace(stats, score=stats.score + rules.base)


def apply_incorrect(stats: SessionStats, rules: ScoringRules = DEFAULT_RULES) -> SessionStats:
    return replace(
        stats,
        score=max(0, stats.score - rules.penalty),
        incorrect_answers=stats.incorrect_answers + 1,
        combo=0,
    )


def apply_outcome(
    stats: SessionStats,
    outcome: MatchOutcome,
    rules: ScoringRules = DEFAULT_RULES,
) -> SessionStats:
    if outcome is MatchOutcome.CORRECT:
        return apply_correct(stats, rules)
    if outcome is MatchOutcome.PARTIAL:
        return apply_partial(stats, rules)
    return apply_incorrect(stats, rules)


def replay_outcomes(
    outcomes: Iterable[MatchOutcome],
    total_pairs: int = 0,
    rules: ScoringRules = DEFAULT_RULES,
) -> SessionStats:
    stats = SessionStats(total_pairs=total_pairs)
    for outcome in outcomes:
        stats = apply_outcome(stats, outcome, rules)
    return stats
