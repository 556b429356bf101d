"""
Workout-completion bonus and streak continuity.

The completion bonus depends only on the shape of the finished session
(sets, duration, exercise variety).  Sessions that are too small or
outside the plausible duration window earn nothing.
"""

from datetime import datetime

from .config import ScoringConfig, resolve_config
from .models import CompletionBonus, WorkoutStats


def completion_bonus(stats: WorkoutStats, config: ScoringConfig | None = None) -> CompletionBonus:
    """
    Compute the one-time bonus for ending a workout.

    bonus = base
          + set tiers reached (10, 20 sets)
          + per exercise beyond the first (capped)
          + duration tiers reached (30, 60 minutes)

    Zero below the minimum sets/exercises/duration and above the maximum
    duration.  Monotonic in total_sets and exercise_count.

    Args:
        stats: Aggregate session statistics

    Returns:
        CompletionBonus with the total and its named components
    """
    cfg = resolve_config(config)

    if (
        stats.total_sets < cfg.completion_min_sets
        or stats.exercise_count < cfg.completion_min_exercises
        or stats.duration_minutes < cfg.completion_min_minutes
        or stats.duration_minutes > cfg.completion_max_minutes
    ):
        return CompletionBonus(bonus_points=0)

    components: dict[str, int] = {"base": cfg.completion_base_bonus}

    volume = sum(bonus for min_sets, bonus in cfg.completion_set_tiers if stats.total_sets >= min_sets)
    if volume:
        components["volume"] = volume

    extra = min(max(0, stats.exercise_count - 1), cfg.completion_max_extra_exercises)
    if extra:
        components["variety"] = extra * cfg.completion_per_extra_exercise

    duration = sum(
        bonus for minutes, bonus in cfg.completion_duration_tiers if stats.duration_minutes >= minutes
    )
    if duration:
        components["duration"] = duration

    return CompletionBonus(bonus_points=sum(components.values()), components=components)


def should_extend_streak(
    last_workout_at: datetime | None,
    now: datetime,
    config: ScoringConfig | None = None,
) -> bool:
    """
    Whether a workout at *now* keeps the streak alive.

    The first ever workout starts a streak; afterwards a gap of at most
    STREAK_WINDOW_DAYS whole days keeps it going.
    """
    cfg = resolve_config(config)
    if last_workout_at is None:
        return True
    days_since = (now - last_workout_at).days
    return days_since <= cfg.streak_window_days


def next_streak(
    current_streak: int,
    last_workout_at: datetime | None,
    now: datetime,
    config: ScoringConfig | None = None,
) -> int:
    """Streak value after a workout at *now* (restarts at 1 when broken)."""
    if should_extend_streak(last_workout_at, now, config):
        return current_streak + 1
    return 1
