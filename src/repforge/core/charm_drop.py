"""
Charm drops after a completed exercise.

1. Quality tier (0-3) from rep-range adherence and whether any set was a PR
2. Drop roll: tier base chance plus PR, adherence and pity modifiers
3. Rarity roll: common/rare/epic thresholds shifted toward better rarity
   by tier, PR and adherence
4. Gating: the rolled rarity is capped by the highest level among the
   muscles the exercise worked

All randomness comes from the caller's random.Random, so a seeded
generator reproduces the same drops.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from .catalog.base import CharmDefinition
from .catalog.registry import charms_by_rarity, can_drop
from .config import ScoringConfig, resolve_config
from .models import RARITY_ORDER

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExerciseDropContext:
    """A completed exercise as the drop roll sees it."""

    goal: str
    set_reps: tuple[int, ...]
    pr_hit: bool
    muscles: tuple[str, ...]  # 1-3 muscles, primary first
    muscle_levels: Mapping[str, int] = field(default_factory=dict)  # Lowercase keys
    sets_since_last_charm: int = 0

    def __post_init__(self) -> None:
        if self.sets_since_last_charm < 0:
            raise ValueError("sets_since_last_charm must be non-negative")


@dataclass(frozen=True)
class CharmDrop:
    """
    Outcome of one drop evaluation.

    sets_to_add_to_pity is what the caller adds to its pity counter: zero
    after a drop (the counter resets), otherwise the exercise's set count.
    """

    eligible: bool
    quality_tier: int
    did_drop: bool
    rarity: str | None
    sets_to_add_to_pity: int
    adherence: float = 0.0
    drop_chance: float = 0.0
    pity_bonus: float = 0.0
    rolled_rarity: str | None = None
    gating_level: int = 0


def rep_range_adherence(set_reps: Sequence[int], goal: str, config: ScoringConfig | None = None) -> float:
    """Fraction of sets whose reps fall inside the goal's rep range."""
    if not set_reps:
        return 0.0
    rep_range = resolve_config(config).rep_range(goal)
    return sum(1 for r in set_reps if rep_range.contains(r)) / len(set_reps)


def quality_tier(adherence: float, pr_hit: bool, config: ScoringConfig | None = None) -> int:
    """
    Tier 3: PR and high adherence
    Tier 2: PR and decent adherence, or high adherence alone
    Tier 1: PR or decent adherence
    Tier 0: anything else
    """
    cfg = resolve_config(config)
    decent = adherence >= cfg.drop_adherence_decent
    high = adherence >= cfg.drop_adherence_high
    if pr_hit and high:
        return 3
    if (pr_hit and decent) or high:
        return 2
    if pr_hit or decent:
        return 1
    return 0


def drop_chance(tier: int, adherence: float, pr_hit: bool, config: ScoringConfig | None = None) -> float:
    """Drop probability before pity, capped at 1."""
    cfg = resolve_config(config)
    chance = cfg.drop_chance_by_tier[tier]
    if pr_hit:
        chance += cfg.drop_pr_bonus
    chance += adherence * cfg.drop_adherence_max_bonus
    return min(chance, 1.0)


def rarity_thresholds(
    tier: int,
    adherence: float,
    pr_hit: bool,
    config: ScoringConfig | None = None,
) -> tuple[float, float]:
    """(common, rare) cumulative thresholds for the rarity roll."""
    cfg = resolve_config(config)
    shift = tier * cfg.rarity_tier_shift
    if pr_hit:
        shift += cfg.rarity_pr_shift
    shift += adherence * cfg.rarity_adherence_max_shift
    common = max(0.1, cfg.rarity_common_threshold - shift)
    rare = min(0.99, cfg.rarity_rare_threshold - shift * 0.5)
    return common, rare


def gating_level(muscles: Sequence[str], muscle_levels: Mapping[str, int]) -> int:
    """Highest level among the exercise's muscles (0 when unknown)."""
    return max((muscle_levels.get(m.lower(), 0) for m in muscles), default=0)


def max_allowed_rarity(level: int, config: ScoringConfig | None = None) -> str:
    cfg = resolve_config(config)
    if level >= cfg.epic_min_muscle_level:
        return "epic"
    if level >= cfg.rare_min_muscle_level:
        return "rare"
    return "common"


def evaluate_charm_drop(
    context: ExerciseDropContext,
    rng: random.Random,
    config: ScoringConfig | None = None,
) -> CharmDrop:
    """
    Decide whether a charm drops for a completed exercise.

    Args:
        context: The completed exercise
        rng: Source of randomness (two draws on a drop, one otherwise)

    Returns:
        CharmDrop with the rarity after gating
    """
    cfg = resolve_config(config)
    sets_logged = len(context.set_reps)
    if sets_logged < cfg.drop_min_sets:
        return CharmDrop(
            eligible=False,
            quality_tier=0,
            did_drop=False,
            rarity=None,
            sets_to_add_to_pity=sets_logged,
        )

    adherence = rep_range_adherence(context.set_reps, context.goal, cfg)
    tier = quality_tier(adherence, context.pr_hit, cfg)
    chance = drop_chance(tier, adherence, context.pr_hit, cfg)

    pity_bonus = 0.0
    total_since_charm = context.sets_since_last_charm + sets_logged
    if total_since_charm > cfg.drop_pity_threshold:
        pity_bonus = (total_since_charm - cfg.drop_pity_threshold) * cfg.drop_pity_bonus_per_set
        chance = min(chance + pity_bonus, 1.0)

    did_drop = rng.random() < chance
    if not did_drop:
        return CharmDrop(
            eligible=True,
            quality_tier=tier,
            did_drop=False,
            rarity=None,
            sets_to_add_to_pity=sets_logged,
            adherence=adherence,
            drop_chance=chance,
            pity_bonus=pity_bonus,
        )

    common, rare = rarity_thresholds(tier, adherence, context.pr_hit, cfg)
    roll = rng.random()
    rolled = "common" if roll < common else "rare" if roll < rare else "epic"

    level = gating_level(context.muscles, context.muscle_levels)
    allowed = max_allowed_rarity(level, cfg)
    final = rolled
    if RARITY_ORDER.index(rolled) > RARITY_ORDER.index(allowed):
        final = allowed
        logger.debug("Charm drop downgraded %s -> %s (muscle level %d)", rolled, allowed, level)

    return CharmDrop(
        eligible=True,
        quality_tier=tier,
        did_drop=True,
        rarity=final,
        sets_to_add_to_pity=0,
        adherence=adherence,
        drop_chance=chance,
        pity_bonus=pity_bonus,
        rolled_rarity=rolled,
        gating_level=level,
    )


def pick_charm(
    rarity: str,
    user_level: int,
    rng: random.Random,
    catalog: Mapping[str, CharmDefinition] | None = None,
) -> CharmDefinition | None:
    """
    Choose a charm of *rarity* that may drop at *user_level*.

    Returns None when the catalog has no such charm.
    """
    candidates = [c for c in charms_by_rarity(rarity, catalog) if can_drop(c, user_level)]
    if not candidates:
        return None
    return rng.choice(candidates)
