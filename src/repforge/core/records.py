"""
Personal-record detection.

A set is a PR when its comparison score beats the stored baseline for the
same exercise and goal bucket.  The comparison rule per goal bucket comes
from ScoringConfig.pr_comparators; callers persist the new baseline
themselves after a positive check.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from .config import ScoringConfig, resolve_config
from .models import ExerciseBaseline, SetContext

logger = logging.getLogger(__name__)


def estimate_one_rep_max(load: float, reps: int) -> float:
    """
    Estimate a one-rep max with the Epley formula.

    1RM = load * (1 + reps / 30), and exactly load for a single rep.

    Args:
        load: Effective load lifted
        reps: Reps completed

    Returns:
        Estimated 1RM (0.0 for zero reps or zero load)
    """
    if reps <= 0 or load <= 0:
        return 0.0
    if reps == 1:
        return float(load)
    return load * (1.0 + reps / 30.0)


def _compare_load(load: float, reps: int) -> float:
    return float(load)


def _compare_volume(load: float, reps: int) -> float:
    return float(load) * reps


PR_COMPARATOR_FUNCS: dict[str, Callable[[float, int], float]] = {
    "load": _compare_load,
    "e1rm": estimate_one_rep_max,
    "volume": _compare_volume,
}


@dataclass(frozen=True)
class PRCheck:
    """Result of a PR check."""

    is_pr: bool
    score: float
    previous_score: float | None


def effective_load(ctx: SetContext, config: ScoringConfig | None = None) -> float:
    """
    Load used for scoring and PR comparison.

    Weighted sets use the bar weight; bodyweight sets count a fixed fraction
    of the lifter's bodyweight.
    """
    cfg = resolve_config(config)
    if ctx.kind == "bodyweight":
        return ctx.bodyweight_kg * cfg.bodyweight_factor
    return float(ctx.weight_kg or 0.0)


def comparison_score(
    load: float,
    reps: int,
    goal: str,
    config: ScoringConfig | None = None,
) -> float:
    """Score a (load, reps) pair under the goal bucket's PR comparison rule."""
    cfg = resolve_config(config)
    rule = cfg.pr_comparators.get(goal)
    if rule is None:
        raise ValueError(f"No PR comparator configured for goal bucket '{goal}'")
    return PR_COMPARATOR_FUNCS[rule](load, reps)


def check_for_pr(
    effective_load: float,
    reps: int,
    goal: str,
    baseline: ExerciseBaseline | None,
    config: ScoringConfig | None = None,
) -> PRCheck:
    """
    Compare a set against the stored best for its exercise and goal bucket.

    No baseline means this is the first recorded attempt, which counts as a
    PR so the caller can bootstrap the baseline.

    Args:
        effective_load: Load of the new set (see effective_load())
        reps: Reps of the new set
        goal: Goal bucket of the current workout
        baseline: Stored best, or None if nothing was recorded yet

    Returns:
        PRCheck with is_pr and both comparison scores

    Raises:
        ValueError: If reps is not positive or the goal has no comparator
    """
    if reps <= 0:
        raise ValueError("reps must be positive")
    score = comparison_score(effective_load, reps, goal, config)

    if baseline is None:
        return PRCheck(is_pr=True, score=score, previous_score=None)

    previous = comparison_score(baseline.effective_load, baseline.reps, goal, config)
    is_pr = score > previous
    if is_pr:
        logger.debug(
            "PR on %s (%s): %.2f > %.2f", baseline.exercise_id, goal, score, previous
        )
    return PRCheck(is_pr=is_pr, score=score, previous_score=previous)


def next_baseline(
    exercise_id: str,
    goal: str,
    effective_load: float,
    reps: int,
    current: ExerciseBaseline | None,
    config: ScoringConfig | None = None,
) -> ExerciseBaseline:
    """
    Return the baseline the caller should store after logging a set.

    The current baseline is returned unchanged unless the set is a PR.
    """
    check = check_for_pr(effective_load, reps, goal, current, config)
    if not check.is_pr and current is not None:
        return current
    return ExerciseBaseline(
        exercise_id=exercise_id,
        goal=goal,
        effective_load=effective_load,
        reps=reps,
    )
