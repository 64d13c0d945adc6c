from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SessionStats:
    """
    Running counters for one session.

    Instances are immutable; the scoring engine returns a new value for
    every validated outcome.
    """

    score: int = 0
    correct_answers: int = 0
    incorrect_answers: int = 0
    combo: int = 0
    max_combo: int = 0
    matched_pairs: int = 0
    total_pairs: int = 0

    @property
    def attempts(self) -> int:
        return self.correct_answers + self.incorrect_answers

    @property
    def accuracy(self) -> int:
        """Percentage of correct answers, rounded; 100 before any attempt."""
        if self.attempts == 0:
            return 100
        return round(self.correct_answers / self.attempts * 100)

    @property
    def is_complete(self) -> bool:
        return self.total_pairs > 0 and self.matched_pairs == self.total_pairs


@dataclass(frozen=True, slots=True)
class SessionResults:
    """Final statistics published when a session finishes."""

    score: int
    correct: int
    incorrect: int
    accuracy: int
    max_combo: int
    duration: int
    completed: bool
