"""
Workout rune resolver.

Runes apply once, when a workout ends, to the points earned by its sets:

    rune_bonus = floor(workout_points * sum(percent)) + sum(flat)
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping

from .catalog.base import RuneDefinition
from .catalog.registry import get_rune

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkoutRuneContext:
    """Aggregates of a finished workout."""

    exercise_count: int
    total_sets: int
    pr_count: int
    muscle_group_count: int
    workouts_this_week: int  # This one included
    base_points: int  # Sum of the workout's set points


@dataclass(frozen=True)
class RuneEffect:
    percent_bonus: float
    flat_bonus: int
    reason: str

    @property
    def triggered(self) -> bool:
        return self.percent_bonus > 0 or self.flat_bonus > 0


@dataclass(frozen=True)
class RuneEvaluation:
    rune_id: str
    rune_name: str
    effect: RuneEffect


@dataclass(frozen=True)
class RuneBonuses:
    """Every equipped rune's evaluation plus the combined bonus."""

    evaluations: list[RuneEvaluation] = field(default_factory=list)
    total_percent_bonus: float = 0.0
    total_flat_bonus: int = 0
    bonus_points: int = 0


def _exercise_count(rune: RuneDefinition, ctx: WorkoutRuneContext) -> RuneEffect:
    threshold = int(rune.param("threshold", 3))
    extra = max(0, ctx.exercise_count - threshold)
    if extra == 0:
        return RuneEffect(0.0, 0, f"Only {ctx.exercise_count} exercises (need {threshold + 1}+)")
    pct = round(extra * rune.percent_bonus, 4)
    return RuneEffect(pct, 0, f"{ctx.exercise_count} exercises (+{extra} beyond {threshold})")


def _weekly_consistency(rune: RuneDefinition, ctx: WorkoutRuneContext) -> RuneEffect:
    need = int(rune.param("min_workouts", 3))
    if ctx.workouts_this_week >= need:
        return RuneEffect(rune.percent_bonus, rune.flat_bonus, f"{ctx.workouts_this_week} workouts this week")
    return RuneEffect(0.0, 0, f"Only {ctx.workouts_this_week} workouts this week (need {need}+)")


def _pr_count(rune: RuneDefinition, ctx: WorkoutRuneContext) -> RuneEffect:
    if ctx.pr_count == 0:
        return RuneEffect(0.0, 0, "No PRs this workout")
    plural = "s" if ctx.pr_count != 1 else ""
    return RuneEffect(
        rune.percent_bonus,
        ctx.pr_count * rune.flat_bonus,
        f"Hit {ctx.pr_count} PR{plural}",
    )


def _total_volume(rune: RuneDefinition, ctx: WorkoutRuneContext) -> RuneEffect:
    need = int(rune.param("min_sets", 10))
    if ctx.total_sets >= need:
        return RuneEffect(rune.percent_bonus, rune.flat_bonus, f"{ctx.total_sets} total sets")
    return RuneEffect(0.0, 0, f"Only {ctx.total_sets} sets (need {need}+)")


def _muscle_variety(rune: RuneDefinition, ctx: WorkoutRuneContext) -> RuneEffect:
    need = int(rune.param("min_muscle_groups", 3))
    if ctx.muscle_group_count >= need:
        return RuneEffect(
            rune.percent_bonus, rune.flat_bonus, f"Trained {ctx.muscle_group_count} muscle groups"
        )
    return RuneEffect(0.0, 0, f"Only {ctx.muscle_group_count} muscle groups (need {need}+)")


RUNE_EFFECTS: dict[str, Callable[[RuneDefinition, WorkoutRuneContext], RuneEffect]] = {
    "exercise_count": _exercise_count,
    "weekly_consistency": _weekly_consistency,
    "pr_count": _pr_count,
    "total_volume": _total_volume,
    "muscle_variety": _muscle_variety,
}


def resolve_rune_bonuses(
    equipped_ids: Iterable[str],
    context: WorkoutRuneContext,
    catalog: Mapping[str, RuneDefinition] | None = None,
) -> RuneBonuses:
    """
    Evaluate equipped runes against a finished workout.

    Unknown and repeated ids are skipped.

    Returns:
        RuneBonuses; bonus_points is what the caller adds to the workout
    """
    seen: set[str] = set()
    evaluations: list[RuneEvaluation] = []
    for rune_id in equipped_ids:
        if rune_id in seen:
            continue
        seen.add(rune_id)
        rune = get_rune(rune_id, catalog)
        fn = RUNE_EFFECTS.get(rune.effect_type) if rune is not None else None
        if rune is None or fn is None:
            logger.debug("Skipping unknown rune '%s'", rune_id)
            continue
        evaluations.append(RuneEvaluation(rune.item_id, rune.name, fn(rune, context)))

    triggered = [e.effect for e in evaluations if e.effect.triggered]
    pct = math.fsum(e.percent_bonus for e in triggered)
    flat = sum(e.flat_bonus for e in triggered)
    return RuneBonuses(
        evaluations=evaluations,
        total_percent_bonus=pct,
        total_flat_bonus=flat,
        bonus_points=math.floor(round(context.base_points * pct, 6)) + flat,
    )
