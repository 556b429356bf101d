"""
Set points calculator.

Turns one logged set into points:

    base  = floor(effective_load * reps * compound_factor)
    final = floor((base * (1 + sum(additive)) + sum(flat)) * prod(tail))

Additive bonuses (rep range, progressive overload, streak, weekly
consistency and additive charms) are summed first.  The multiplicative tail
holds multiplicative charm effects in equip order followed by volume
scaling, which is always applied last.  The result is rounded to a fixed
number of guard digits before flooring so identical inputs always give
identical points.
"""

import math
from typing import Iterable

from .config import ScoringConfig, resolve_config
from .models import ExerciseBaseline, PointBonus, PointsResult, SetContext
from .records import check_for_pr, effective_load


def _pct(value: float) -> str:
    return f"{value:+.0%}"


def calculate_base_points(ctx: SetContext, config: ScoringConfig | None = None) -> int:
    """
    Base points for a set before any bonus.

    base = effective_load * reps, times the compound factor for multi-muscle
    exercises, floored to an integer.
    """
    cfg = resolve_config(config)
    volume = effective_load(ctx, cfg) * ctx.reps
    if ctx.is_compound:
        volume *= cfg.compound_base_factor
    return max(0, math.floor(round(volume, cfg.points_rounding_digits)))


def streak_bonus(current_streak: int, config: ScoringConfig | None = None) -> float:
    """
    Additive bonus for a workout streak.

    Zero below the minimum streak; above it the bonus climbs towards
    STREAK_BONUS_MAX, closing half the remaining gap every half-life:

        bonus = max * (1 - 0.5 ** ((streak - min + 1) / half_life))

    Args:
        current_streak: Consecutive-workout streak supplied by the caller

    Returns:
        Bonus fraction (0.0 to STREAK_BONUS_MAX), rounded to 4 decimals
    """
    cfg = resolve_config(config)
    if current_streak < 0:
        raise ValueError("current_streak must be non-negative")
    if current_streak < cfg.streak_min_days:
        return 0.0
    exponent = (current_streak - cfg.streak_min_days + 1) / cfg.streak_half_life_days
    return round(cfg.streak_bonus_max * (1.0 - 0.5 ** exponent), 4)


def weekly_consistency_bonus(weekly_sessions: int, config: ScoringConfig | None = None) -> float:
    """Bonus for training the same muscle several times this week (highest tier wins)."""
    cfg = resolve_config(config)
    bonus = 0.0
    for min_sessions, tier_bonus in cfg.weekly_consistency_tiers:
        if weekly_sessions >= min_sessions:
            bonus = max(bonus, tier_bonus)
    return bonus


def volume_scaling_multiplier(muscle_set_number: int, config: ScoringConfig | None = None) -> float:
    """
    Diminishing-returns factor for the n-th set of a muscle in one workout.

    Sets up to VOLUME_FULL_CREDIT_SETS keep full credit; each later set loses
    VOLUME_PENALTY_PER_SET more, never below VOLUME_MIN_MULTIPLIER.

    Args:
        muscle_set_number: 1-based position among the muscle's sets this workout

    Returns:
        Factor in [VOLUME_MIN_MULTIPLIER, 1.0]
    """
    cfg = resolve_config(config)
    over = muscle_set_number - cfg.volume_full_credit_sets
    if over <= 0:
        return 1.0
    return round(max(cfg.volume_min_multiplier, 1.0 - cfg.volume_penalty_per_set * over), 4)


def max_additive_bonus(config: ScoringConfig | None = None) -> float:
    """Largest additive total the built-in bonuses can reach (charms excluded)."""
    cfg = resolve_config(config)
    weekly = max((b for _, b in cfg.weekly_consistency_tiers), default=0.0)
    return cfg.rep_range_bonus + cfg.overload_bonus + cfg.streak_bonus_max + weekly


def compose_points(
    base_points: int,
    bonuses: Iterable[PointBonus],
    config: ScoringConfig | None = None,
) -> int:
    """
    Fold a bonus list into final points.

    Additive entries are summed with math.fsum, flat points are added, then
    multiplicative entries are applied in list order.  Never negative.
    """
    cfg = resolve_config(config)
    bonuses = list(bonuses)
    additive = math.fsum(b.multiplier for b in bonuses if b.placement == "additive")
    flat = sum(b.flat_points for b in bonuses)

    total = base_points * (1.0 + additive) + flat
    for b in bonuses:
        if b.placement == "multiplicative":
            total *= b.factor
    return max(0, math.floor(round(total, cfg.points_rounding_digits)))


def compute_points(
    ctx: SetContext,
    baseline: ExerciseBaseline | None,
    current_streak: int,
    charm_bonuses: Iterable[PointBonus] = (),
    config: ScoringConfig | None = None,
) -> PointsResult:
    """
    Score one logged set.

    Args:
        ctx: The set and its in-workout context
        baseline: Stored best for (exercise, goal bucket), or None
        current_streak: Workout streak supplied by the caller
        charm_bonuses: Entries produced by charm_effects.resolve_charm_bonuses
        config: Scoring configuration (DEFAULT_CONFIG when None)

    Returns:
        PointsResult with bonuses in presentation order
    """
    cfg = resolve_config(config)
    base = calculate_base_points(ctx, cfg)
    load = effective_load(ctx, cfg)
    bonuses: list[PointBonus] = []

    rep_range = cfg.rep_range(ctx.goal)
    if rep_range.contains(ctx.reps):
        bonuses.append(
            PointBonus(
                kind="rep_range",
                multiplier=cfg.rep_range_bonus,
                description=(
                    f"{ctx.reps} reps in {ctx.goal} range "
                    f"{rep_range.min_reps}-{rep_range.max_reps} {_pct(cfg.rep_range_bonus)}"
                ),
            )
        )

    pr = check_for_pr(load, ctx.reps, ctx.goal, baseline, cfg)
    if pr.is_pr:
        reason = "First recorded set" if baseline is None else "New personal best"
        bonuses.append(
            PointBonus(
                kind="progressive_overload",
                multiplier=cfg.overload_bonus,
                description=f"{reason} {_pct(cfg.overload_bonus)}",
            )
        )

    streak = streak_bonus(current_streak, cfg)
    if streak > 0:
        bonuses.append(
            PointBonus(
                kind="workout_streak",
                multiplier=streak,
                description=f"{current_streak} workout streak {_pct(streak)}",
            )
        )

    weekly = weekly_consistency_bonus(ctx.weekly_muscle_sessions, cfg)
    if weekly > 0:
        bonuses.append(
            PointBonus(
                kind="weekly_consistency",
                multiplier=weekly,
                description=(
                    f"{ctx.muscle_group} trained {ctx.weekly_muscle_sessions}x this week "
                    f"{_pct(weekly)}"
                ),
            )
        )

    charm_list = list(charm_bonuses)
    bonuses.extend(b for b in charm_list if b.placement == "additive")
    bonuses.extend(b for b in charm_list if b.placement == "multiplicative")

    volume = volume_scaling_multiplier(ctx.muscle_set_number, cfg)
    if volume < 1.0:
        bonuses.append(
            PointBonus(
                kind="volume_scaling",
                multiplier=round(volume - 1.0, 4),
                description=(
                    f"Set {ctx.muscle_set_number} for {ctx.muscle_group} "
                    f"{_pct(volume - 1.0)}"
                ),
                placement="multiplicative",
            )
        )

    final = compose_points(base, bonuses, cfg)
    return PointsResult(
        base_points=base,
        bonuses=tuple(bonuses),
        final_points=final,
        is_pr=pr.is_pr,
    )
