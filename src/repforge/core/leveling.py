"""
Muscle leveling engine.

Levels follow a geometric curve: reaching level L from L-1 costs
floor(LEVEL_BASE * LEVEL_GROWTH_RATE^L) XP, and xp_for_level(L) is the
cumulative total.  Gains walk the curve upward only.  Decay moves a muscle
down one level bar per DECAY_DAYS_PER_LEVEL idle days past a grace window,
always measured from the state at last_trained_at, so the decayed level
depends only on that state and the current time.  A muscle at MAX_LEVEL
is mastered and never decays.

The curve is evaluated with exact rational arithmetic so level thresholds
never depend on float rounding.
"""

import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta
from fractions import Fraction
from typing import Literal, Mapping, Sequence

from .config import ScoringConfig, resolve_config
from .models import LevelSegment, MuscleProgress, MuscleXpAward

logger = logging.getLogger(__name__)

DecayStatus = Literal["active", "resting", "decaying"]


# =============================================================================
# CURVE
# =============================================================================


def level_requirement(level: int, config: ScoringConfig | None = None) -> int:
    """XP needed to go from level-1 to *level* (0 for level <= 0)."""
    cfg = resolve_config(config)
    if level <= 0:
        return 0
    return math.floor(cfg.level_base * Fraction(cfg.level_growth_rate) ** level)


def xp_for_level(level: int, config: ScoringConfig | None = None) -> int:
    """
    Cumulative XP threshold of *level*.

    xp_for_level(0) == 0 and the sequence is strictly increasing.

    Raises:
        ValueError: If level is negative
    """
    if level < 0:
        raise ValueError("level must be non-negative")
    cfg = resolve_config(config)
    return sum(level_requirement(i, cfg) for i in range(1, level + 1))


def xp_to_next_level(level: int, config: ScoringConfig | None = None) -> int:
    """Size of the level bar at *level* (0 once MAX_LEVEL is reached)."""
    cfg = resolve_config(config)
    if level >= cfg.max_level:
        return 0
    return level_requirement(level + 1, cfg)


def level_from_total_xp(total_xp: int, config: ScoringConfig | None = None) -> tuple[int, int]:
    """
    Map cumulative XP to (level, xp_in_level).

    XP beyond the MAX_LEVEL threshold is absorbed: the result is
    (MAX_LEVEL, 0).
    """
    cfg = resolve_config(config)
    if total_xp < 0:
        raise ValueError("total_xp must be non-negative")
    return _walk_up(0, total_xp, cfg)


def level_progress(progress: MuscleProgress, config: ScoringConfig | None = None) -> float:
    """Fraction (0-1) of the current level bar that is filled."""
    bar = xp_to_next_level(progress.level, config)
    if bar <= 0:
        return 1.0
    return min(1.0, progress.xp_in_level / bar)


def _walk_up(level: int, xp: int, cfg: ScoringConfig) -> tuple[int, int]:
    while level < cfg.max_level:
        need = xp_to_next_level(level, cfg)
        if xp < need:
            break
        xp -= need
        level += 1
    if level >= cfg.max_level:
        return cfg.max_level, 0
    return level, xp


# =============================================================================
# GAIN
# =============================================================================


def apply_gain(
    progress: MuscleProgress | None,
    points_earned: int,
    muscle_group: str,
    trained_at: datetime | None = None,
    config: ScoringConfig | None = None,
) -> MuscleProgress:
    """
    Add XP to a muscle and recompute its level.

    Args:
        progress: Current state, or None for an untrained muscle
        points_earned: XP to add (>= 0); zero returns progress unchanged
        muscle_group: Muscle the XP belongs to
        trained_at: When the set was logged; a time after last_trained_at
            restarts the decay clock, an earlier one leaves it alone

    Returns:
        New MuscleProgress (level never decreases)

    Raises:
        ValueError: On negative XP or a muscle_group mismatch
    """
    cfg = resolve_config(config)
    if points_earned < 0:
        raise ValueError("points_earned must be non-negative")
    progress = _start_state(progress, muscle_group)
    if points_earned == 0:
        return progress

    level, xp = _walk_up(progress.level, progress.xp_in_level + points_earned, cfg)
    if level > progress.level:
        logger.debug("%s leveled up: %d -> %d", muscle_group, progress.level, level)

    clock_moves = trained_at is not None and (
        progress.last_trained_at is None or trained_at > progress.last_trained_at
    )
    trained_level, trained_xp = progress.trained_level, progress.trained_xp_in_level
    if clock_moves:
        # The gained state is the new decay anchor
        trained_level = trained_xp = None
    elif trained_level is not None:
        trained_level, trained_xp = _walk_up(trained_level, trained_xp + points_earned, cfg)

    return replace(
        progress,
        level=level,
        xp_in_level=xp,
        total_xp=progress.total_xp + points_earned,
        last_trained_at=trained_at if clock_moves else progress.last_trained_at,
        trained_level=trained_level,
        trained_xp_in_level=trained_xp,
    )


def _start_state(progress: MuscleProgress | None, muscle_group: str | None) -> MuscleProgress:
    if progress is None:
        if muscle_group is None:
            raise ValueError("muscle_group is required when progress is None")
        return MuscleProgress(muscle_group=muscle_group)
    if muscle_group is not None and progress.muscle_group.lower() != muscle_group.lower():
        raise ValueError(
            f"Progress belongs to '{progress.muscle_group}', not '{muscle_group}'"
        )
    return progress


def project_gain(
    progress: MuscleProgress | None,
    points_earned: int,
    muscle_group: str | None = None,
    config: ScoringConfig | None = None,
) -> list[LevelSegment]:
    """
    Split an XP gain into per-level animation segments.

    The last segment ends in exactly the state apply_gain() would produce.
    Each crossed level boundary gets its own leveled-up segment.

    Args:
        progress: Start state, or None for an untrained muscle
        points_earned: XP to add (>= 0)
        muscle_group: Required when progress is None; must match
            progress.muscle_group otherwise

    Returns:
        Segments in animation order (empty for a zero gain)

    Raises:
        ValueError: On negative XP or a muscle_group mismatch
    """
    cfg = resolve_config(config)
    if points_earned < 0:
        raise ValueError("points_earned must be non-negative")
    progress = _start_state(progress, muscle_group)
    if points_earned == 0:
        return []

    level, xp, remaining = progress.level, progress.xp_in_level, points_earned
    segments: list[LevelSegment] = []

    while remaining > 0 and level < cfg.max_level:
        bar = xp_to_next_level(level, cfg)
        need = bar - xp
        if remaining >= need:
            segments.append(LevelSegment(level, level + 1, xp / bar, 1.0, True, need))
            remaining -= need
            level += 1
            xp = 0
        else:
            segments.append(
                LevelSegment(level, level, xp / bar, (xp + remaining) / bar, False, remaining)
            )
            xp += remaining
            remaining = 0

    if remaining > 0:
        segments.append(LevelSegment(level, level, 1.0, 1.0, False, remaining))
    return segments


# =============================================================================
# DECAY
# =============================================================================


def apply_decay(
    progress: MuscleProgress,
    now: datetime,
    config: ScoringConfig | None = None,
) -> MuscleProgress:
    """
    Lower a muscle's level for idle time.

    Every DECAY_DAYS_PER_LEVEL days past the grace window cost exactly one
    level, and partial periods cost the same share of the level bar being
    crossed.  The result is computed from the state as of last_trained_at
    (trained_level/trained_xp_in_level when an earlier pass already lowered
    it), so it depends only on that state and *now*: daily, monthly and
    repeated calls all agree.  Decay never goes below DECAY_MIN_LEVEL (or
    below 0 XP for a muscle that never reached it).

    Args:
        progress: Stored state
        now: Current time supplied by the caller

    Returns:
        Decayed MuscleProgress (progress itself when nothing changes)
    """
    cfg = resolve_config(config)
    if progress.last_trained_at is None or progress.level >= cfg.max_level:
        return progress

    if progress.trained_level is not None:
        base_level, base_xp = progress.trained_level, progress.trained_xp_in_level
    else:
        base_level, base_xp = progress.level, progress.xp_in_level
    if base_level >= cfg.max_level:
        return progress

    overdue = now - progress.last_trained_at - timedelta(days=cfg.decay_grace_days)
    if overdue <= timedelta(0) and progress.trained_level is None:
        return progress
    tick = timedelta(microseconds=1)
    period = timedelta(days=cfg.decay_days_per_level)
    periods = Fraction(max(overdue, timedelta(0)) // tick, period // tick)

    # Position on the curve in level units: level + filled share of its bar
    bar = xp_to_next_level(base_level, cfg)
    start = base_level + Fraction(min(base_xp, bar - 1), bar)
    position = max(Fraction(min(base_level, cfg.decay_min_level)), start - periods)
    level = math.floor(position)
    xp = math.floor((position - level) * xp_to_next_level(level, cfg))

    if (level, xp) == (progress.level, progress.xp_in_level):
        return progress
    logger.debug(
        "Decay on %s: %.2f periods overdue, level %d -> %d",
        progress.muscle_group, float(periods), base_level, level,
    )
    return replace(
        progress,
        level=level,
        xp_in_level=xp,
        trained_level=base_level,
        trained_xp_in_level=base_xp,
    )


def decay_status(
    progress: MuscleProgress,
    now: datetime,
    config: ScoringConfig | None = None,
) -> DecayStatus:
    """
    Display status of a muscle.

    active: trained within the grace window (or never trained / mastered)
    resting: past the grace window, still within the first decay period
    decaying: idle long enough to be losing a level bar or more
    """
    cfg = resolve_config(config)
    if progress.last_trained_at is None or progress.level >= cfg.max_level:
        return "active"
    idle_days = (now - progress.last_trained_at).total_seconds() / 86400.0
    if idle_days <= cfg.decay_grace_days:
        return "active"
    if idle_days <= cfg.decay_grace_days + cfg.decay_days_per_level:
        return "resting"
    return "decaying"


# =============================================================================
# XP PER SET
# =============================================================================


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def diminishing_multiplier(rolling_7day_sets: int, config: ScoringConfig | None = None) -> float:
    """XP multiplier for a muscle given its set count over the last 7 days."""
    cfg = resolve_config(config)
    if rolling_7day_sets <= cfg.xp_full_value_sets:
        return cfg.xp_full_multiplier
    if rolling_7day_sets <= cfg.xp_reduced_value_sets:
        return cfg.xp_reduced_multiplier
    return cfg.xp_minimal_multiplier


def xp_split(muscle_count: int, config: ScoringConfig | None = None) -> tuple[float, ...]:
    """XP split fractions for 1, 2 or 3+ muscles (primary first)."""
    cfg = resolve_config(config)
    if muscle_count <= 0:
        return ()
    return cfg.xp_splits[min(muscle_count, len(cfg.xp_splits)) - 1]


def set_muscle_xp(
    muscles: Sequence[str],
    rolling_7day_counts: Mapping[str, int],
    is_pr: bool,
    config: ScoringConfig | None = None,
) -> list[MuscleXpAward]:
    """
    XP awards for one logged set.

    final = round(round(XP_BASE_PER_SET * split) * diminishing * pr)

    Args:
        muscles: Muscles worked, primary first (only the first three count)
        rolling_7day_counts: Sets per muscle (lowercase keys) in the last 7 days
        is_pr: Whether the set was a PR

    Returns:
        One award per muscle, in input order
    """
    cfg = resolve_config(config)
    used = list(muscles)[: len(cfg.xp_splits)]
    splits = xp_split(len(used), cfg)
    pr_multiplier = cfg.xp_pr_multiplier if is_pr else 1.0

    awards: list[MuscleXpAward] = []
    for muscle, fraction in zip(used, splits):
        split = _round_half_up(cfg.xp_base_per_set * fraction)
        dim = diminishing_multiplier(rolling_7day_counts.get(muscle.lower(), 0), cfg)
        awards.append(
            MuscleXpAward(
                muscle_group=muscle,
                base_xp=cfg.xp_base_per_set,
                split_xp=split,
                diminishing_multiplier=dim,
                pr_multiplier=pr_multiplier,
                final_xp=_round_half_up(split * dim * pr_multiplier),
            )
        )
    return awards
