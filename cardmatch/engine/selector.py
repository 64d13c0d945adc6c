"""
Difficulty Selector: choose which pairs enter a session.

Every (pair, right variant) combination is bucketed by the variant's tier.
Tiers are filled hardest first so that scarce hard-tier demand is met
before an easy-tier pass can consume the shared left values. Once a pair
is accepted, every other variant of that pair is purged from all buckets:
a left value contributes exactly one selection.

INVARIANTS:
- No pair id appears twice in the output
- Output length ≤ requested total; a shortfall is reported, never raised
"""

import logging
import random
from collections.abc import Iterable
from dataclasses import dataclass, field

from cardmatch.config import Distribution
from cardmatch.models.theme import Difficulty, Pair, PairId, RightVariant

logger = logging.getLogger(__name__)

# Hardest first
PICKING_ORDER: tuple[Difficulty, ...] = (Difficulty.HARD, Difficulty.MEDIUM, Difficulty.EASY)


@dataclass(frozen=True, slots=True)
class Selection:
    """A pair chosen for the session, with the variant that won its slot."""

    pair: Pair
    variant: RightVariant

    @property
    def pair_id(self) -> PairId:
        return self.pair.id


@dataclass
class SelectionResult:
    selections: list[Selection] = field(default_factory=list)
    shortfall: dict[Difficulty, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.selections)

    @property
    def has_shortfall(self) -> bool:
        return any(missing > 0 for missing in self.shortfall.values())


def _requested(distribution: Distribution, tier: Difficulty) -> int:
    if tier is Difficulty.HARD:
        return distribution.hard
    if tier is Difficulty.MEDIUM:
        return distribution.medium
    return distribution.easy


def _bucket_variants(
    pairs: Iterable[Pair],
    rng: random.Random,
) -> dict[Difficulty, list[Selection]]:
    buckets: dict[Difficulty, list[Selection]] = {tier: [] for tier in Difficulty}
    for pair in pairs:
        for variant in pair.variants():
            buckets[variant.difficulty].append(Selection(pair=pair, variant=variant))

    for bucket in buckets.values():
        rng.shuffle(bucket)

    return buckets


def select_pairs(
    pairs: Iterable[Pair],
    distribution: Distribution,
    rng: random.Random | None = None,
) -> SelectionResult:
    """
    Pick pairs for a session according to a per-tier distribution.

    Args:
        pairs: Catalog pairs (simple or multi-right)
        distribution: Requested count per tier
        rng: Random source (injected for reproducibility)

    Returns:
        SelectionResult; its length, not the request, is authoritative
    """
    rng = rng or random.Random()
    buckets = _bucket_variants(pairs, rng)

    result = SelectionResult()
    claimed: set[PairId] = set()

    for tier in PICKING_ORDER:
        wanted = _requested(distribution, tier)
        if wanted == 0:
            continue

        picked = 0
        for candidate in list(buckets[tier]):
            if picked >= wanted:
                break
            if candidate.pair_id in claimed:
                continue

            result.selections.append(candidate)
            claimed.add(candidate.pair_id)
            picked += 1

            for other_tier in Difficulty:
                buckets[other_tier] = [
                    entry for entry in buckets[other_tier] if entry.pair_id != candidate.pair_id
                ]

        if picked < wanted:
            result.shortfall[tier] = wanted - picked
            logger.warning(
                "SELECTION_SHORTFALL",
                extra={
                    "tier": tier.name.lower(),
                    "requested": wanted,
                    "selected": picked,
                },
            )

    logger.debug(
        "PAIRS_SELECTED",
        extra={"requested": distribution.total, "selected": len(result.selections)},
    )

    return result
