"""
Configuration constants for the scoring & progression engine.

All adjustable parameters are centralized here for easy tuning.  The same
values ship in the bundled scoring.yaml; core/engine/config_loader.py builds a
ScoringConfig from YAML (with user overrides) at startup, while DEFAULT_CONFIG
below is built from these constants without touching the filesystem.
"""

from dataclasses import dataclass, field
from typing import Final, Literal

GoalBucket = Literal["strength", "hypertrophy", "endurance"]
GOAL_BUCKETS: Final[tuple[str, ...]] = ("strength", "hypertrophy", "endurance")
DEFAULT_GOAL: Final[str] = "hypertrophy"

# =============================================================================
# REP RANGES BY GOAL BUCKET
# =============================================================================


@dataclass(frozen=True)
class RepRange:
    """Inclusive target rep range for one goal bucket."""

    min_reps: int
    max_reps: int

    def contains(self, reps: int) -> bool:
        return self.min_reps <= reps <= self.max_reps


GOAL_REP_RANGES: Final[dict[str, RepRange]] = {
    "strength": RepRange(min_reps=1, max_reps=6),
    "hypertrophy": RepRange(min_reps=6, max_reps=12),
    "endurance": RepRange(min_reps=12, max_reps=50),
}

# PR comparison rule per goal bucket (see core/records.py for the comparators)
PR_COMPARATORS: Final[dict[str, str]] = {
    "strength": "load",  # raw effective load
    "hypertrophy": "e1rm",  # Epley estimate from load x reps
    "endurance": "volume",  # load x reps
}

# =============================================================================
# BASE POINTS
# =============================================================================

BODYWEIGHT_FACTOR: Final[float] = 0.65  # Fraction of BW counted as load
COMPOUND_BASE_FACTOR: Final[float] = 1.2  # Base points scale for multi-muscle lifts

# =============================================================================
# ADDITIVE BONUSES
# =============================================================================

REP_RANGE_BONUS: Final[float] = 0.10  # +10% inside the goal's rep range
OVERLOAD_BONUS: Final[float] = 0.15  # +15% on a new best, flat rate

STREAK_MIN_DAYS: Final[int] = 2  # No streak bonus below this
STREAK_BONUS_MAX: Final[float] = 0.50  # Asymptote of the streak curve
STREAK_HALF_LIFE_DAYS: Final[float] = 7.0  # Days to cover half the remaining gap

# (min workouts this week for the muscle, bonus); highest matching tier wins
WEEKLY_CONSISTENCY_TIERS: Final[tuple[tuple[int, float], ...]] = (
    (2, 0.05),
    (3, 0.10),
)

# =============================================================================
# VOLUME SCALING (junk-volume penalty, applied last)
# =============================================================================

VOLUME_FULL_CREDIT_SETS: Final[int] = 4  # Sets per muscle before the penalty starts
VOLUME_PENALTY_PER_SET: Final[float] = 0.10  # Credit lost per set past the threshold
VOLUME_MIN_MULTIPLIER: Final[float] = 0.40  # Floor of the penalty curve

POINTS_ROUNDING_DIGITS: Final[int] = 6  # Guard digits before flooring

# =============================================================================
# MUSCLE LEVELING
# =============================================================================

LEVEL_BASE: Final[int] = 12
LEVEL_GROWTH_RATE: Final[float] = 1.25  # XP to reach level L = floor(12 * 1.25^L)
MAX_LEVEL: Final[int] = 25

DECAY_GRACE_DAYS: Final[float] = 7.0  # No decay within this idle window
DECAY_DAYS_PER_LEVEL: Final[float] = 7.0  # One level bar of XP lost per this many idle days
DECAY_MIN_LEVEL: Final[int] = 1  # Decay never drops a trained muscle below this

# =============================================================================
# MUSCLE XP PER SET
# =============================================================================

XP_BASE_PER_SET: Final[int] = 8
XP_SPLITS: Final[tuple[tuple[float, ...], ...]] = (
    (1.0,),
    (0.75, 0.25),
    (0.60, 0.25, 0.15),
)
XP_FULL_VALUE_SETS: Final[int] = 15  # Rolling 7-day sets at full value
XP_REDUCED_VALUE_SETS: Final[int] = 25  # ... then reduced up to this count
XP_FULL_MULTIPLIER: Final[float] = 1.0
XP_REDUCED_MULTIPLIER: Final[float] = 0.5
XP_MINIMAL_MULTIPLIER: Final[float] = 0.2
XP_PR_MULTIPLIER: Final[float] = 2.0

# =============================================================================
# WORKOUT COMPLETION
# =============================================================================

COMPLETION_MIN_SETS: Final[int] = 3
COMPLETION_MIN_EXERCISES: Final[int] = 1
COMPLETION_MIN_MINUTES: Final[int] = 10
COMPLETION_MAX_MINUTES: Final[int] = 240  # Marathon sessions earn nothing
COMPLETION_BASE_BONUS: Final[int] = 50
COMPLETION_SET_TIERS: Final[tuple[tuple[int, int], ...]] = ((10, 25), (20, 25))
COMPLETION_DURATION_TIERS: Final[tuple[tuple[int, int], ...]] = ((30, 25), (60, 25))
COMPLETION_PER_EXTRA_EXERCISE: Final[int] = 10
COMPLETION_MAX_EXTRA_EXERCISES: Final[int] = 5

STREAK_WINDOW_DAYS: Final[int] = 3  # Max gap between workouts that keeps a streak

# =============================================================================
# CHARM DROPS
# =============================================================================

DROP_MIN_SETS: Final[int] = 2  # Exercises with fewer sets never roll
DROP_PITY_THRESHOLD: Final[int] = 8  # Sets without a drop before pity starts
DROP_PITY_BONUS_PER_SET: Final[float] = 0.15
DROP_ADHERENCE_DECENT: Final[float] = 0.5
DROP_ADHERENCE_HIGH: Final[float] = 0.8
DROP_CHANCE_BY_TIER: Final[tuple[float, ...]] = (0.12, 0.20, 0.32, 0.45)
DROP_PR_BONUS: Final[float] = 0.08
DROP_ADHERENCE_MAX_BONUS: Final[float] = 0.08  # Scaled by adherence fraction
RARITY_COMMON_THRESHOLD: Final[float] = 0.75  # Cumulative roll thresholds at tier 0
RARITY_RARE_THRESHOLD: Final[float] = 0.95
RARITY_TIER_SHIFT: Final[float] = 0.05
RARITY_PR_SHIFT: Final[float] = 0.02
RARITY_ADHERENCE_MAX_SHIFT: Final[float] = 0.02
RARE_MIN_MUSCLE_LEVEL: Final[int] = 6  # Gating by highest involved muscle level
EPIC_MIN_MUSCLE_LEVEL: Final[int] = 16

# =============================================================================
# EXERCISE RECOMMENDATION
# =============================================================================

EQUIPMENT_WEIGHTS: Final[dict[str, float]] = {
    "barbell": 15.0,
    "dumbbell": 15.0,
    "bodyweight": 12.0,
    "cable": 8.0,
    "machine": 5.0,
}
MUSCLE_NEED_MAX: Final[float] = 100.0
USAGE_SCORE_MAX: Final[float] = 50.0
COMPOUND_SCORE: Final[float] = 10.0
ALREADY_DONE_PENALTY: Final[float] = -50.0
RECOMMENDATION_LIMIT: Final[int] = 15


@dataclass(frozen=True)
class ScoringConfig:
    """
    Every tunable the engine reads, as one immutable value.

    Engine functions accept ``config=None`` and fall back to DEFAULT_CONFIG,
    so callers only pass one when they loaded overrides from YAML.
    """

    rep_ranges: dict[str, RepRange] = field(default_factory=lambda: dict(GOAL_REP_RANGES))
    pr_comparators: dict[str, str] = field(default_factory=lambda: dict(PR_COMPARATORS))

    bodyweight_factor: float = BODYWEIGHT_FACTOR
    compound_base_factor: float = COMPOUND_BASE_FACTOR

    rep_range_bonus: float = REP_RANGE_BONUS
    overload_bonus: float = OVERLOAD_BONUS
    streak_min_days: int = STREAK_MIN_DAYS
    streak_bonus_max: float = STREAK_BONUS_MAX
    streak_half_life_days: float = STREAK_HALF_LIFE_DAYS
    weekly_consistency_tiers: tuple[tuple[int, float], ...] = WEEKLY_CONSISTENCY_TIERS

    volume_full_credit_sets: int = VOLUME_FULL_CREDIT_SETS
    volume_penalty_per_set: float = VOLUME_PENALTY_PER_SET
    volume_min_multiplier: float = VOLUME_MIN_MULTIPLIER
    points_rounding_digits: int = POINTS_ROUNDING_DIGITS

    level_base: int = LEVEL_BASE
    level_growth_rate: float = LEVEL_GROWTH_RATE
    max_level: int = MAX_LEVEL
    decay_grace_days: float = DECAY_GRACE_DAYS
    decay_days_per_level: float = DECAY_DAYS_PER_LEVEL
    decay_min_level: int = DECAY_MIN_LEVEL

    xp_base_per_set: int = XP_BASE_PER_SET
    xp_splits: tuple[tuple[float, ...], ...] = XP_SPLITS
    xp_full_value_sets: int = XP_FULL_VALUE_SETS
    xp_reduced_value_sets: int = XP_REDUCED_VALUE_SETS
    xp_full_multiplier: float = XP_FULL_MULTIPLIER
    xp_reduced_multiplier: float = XP_REDUCED_MULTIPLIER
    xp_minimal_multiplier: float = XP_MINIMAL_MULTIPLIER
    xp_pr_multiplier: float = XP_PR_MULTIPLIER

    completion_min_sets: int = COMPLETION_MIN_SETS
    completion_min_exercises: int = COMPLETION_MIN_EXERCISES
    completion_min_minutes: int = COMPLETION_MIN_MINUTES
    completion_max_minutes: int = COMPLETION_MAX_MINUTES
    completion_base_bonus: int = COMPLETION_BASE_BONUS
    completion_set_tiers: tuple[tuple[int, int], ...] = COMPLETION_SET_TIERS
    completion_duration_tiers: tuple[tuple[int, int], ...] = COMPLETION_DURATION_TIERS
    completion_per_extra_exercise: int = COMPLETION_PER_EXTRA_EXERCISE
    completion_max_extra_exercises: int = COMPLETION_MAX_EXTRA_EXERCISES
    streak_window_days: int = STREAK_WINDOW_DAYS

    drop_min_sets: int = DROP_MIN_SETS
    drop_pity_threshold: int = DROP_PITY_THRESHOLD
    drop_pity_bonus_per_set: float = DROP_PITY_BONUS_PER_SET
    drop_adherence_decent: float = DROP_ADHERENCE_DECENT
    drop_adherence_high: float = DROP_ADHERENCE_HIGH
    drop_chance_by_tier: tuple[float, ...] = DROP_CHANCE_BY_TIER
    drop_pr_bonus: float = DROP_PR_BONUS
    drop_adherence_max_bonus: float = DROP_ADHERENCE_MAX_BONUS
    rarity_common_threshold: float = RARITY_COMMON_THRESHOLD
    rarity_rare_threshold: float = RARITY_RARE_THRESHOLD
    rarity_tier_shift: float = RARITY_TIER_SHIFT
    rarity_pr_shift: float = RARITY_PR_SHIFT
    rarity_adherence_max_shift: float = RARITY_ADHERENCE_MAX_SHIFT
    rare_min_muscle_level: int = RARE_MIN_MUSCLE_LEVEL
    epic_min_muscle_level: int = EPIC_MIN_MUSCLE_LEVEL

    equipment_weights: dict[str, float] = field(default_factory=lambda: dict(EQUIPMENT_WEIGHTS))
    muscle_need_max: float = MUSCLE_NEED_MAX
    usage_score_max: float = USAGE_SCORE_MAX
    compound_score: float = COMPOUND_SCORE
    already_done_penalty: float = ALREADY_DONE_PENALTY
    recommendation_limit: int = RECOMMENDATION_LIMIT

    def rep_range(self, goal: str) -> RepRange:
        """Return the target rep range for *goal*, raising ValueError if unknown."""
        if goal not in self.rep_ranges:
            valid = ", ".join(self.rep_ranges)
            raise ValueError(f"Unknown goal bucket '{goal}'. Valid goals: {valid}")
        return self.rep_ranges[goal]


DEFAULT_CONFIG: Final[ScoringConfig] = ScoringConfig()


def resolve_config(config: ScoringConfig | None) -> ScoringConfig:
    """Return *config*, or DEFAULT_CONFIG when None."""
    return DEFAULT_CONFIG if config is None else config
