"""
Exercise recommendation scorer.

score = muscle_need + usage + equipment + compound + already_done

muscle_need falls as the exercise's muscles pile up recent sets (relative
to the most-trained muscle in the workload map), usage rewards exercises
the user logs often, equipment encodes a free-weights-first preference,
compound is a flat tie-break, and already_done softly pushes exercises
logged this session to the bottom.  Ties keep input order.
"""

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from .config import ScoringConfig, resolve_config
from .models import Exercise, ScoredExercise
from .muscles import equipment_category, is_multi_muscle, muscle_tags


@dataclass(frozen=True)
class RecommendationContext:
    """
    Precomputed aggregates for one recommendation pass.

    muscle_workload: sets per muscle (lowercase keys) over the last 7 days
    exercise_usage: lifetime sets per exercise id
    completed_exercise_ids: exercises already logged this session
    """

    muscle_workload: Mapping[str, int] = field(default_factory=dict)
    exercise_usage: Mapping[str, int] = field(default_factory=dict)
    completed_exercise_ids: frozenset[str] = frozenset()


def score_exercise(
    exercise: Exercise,
    context: RecommendationContext,
    max_workload: int,
    max_usage: int,
    config: ScoringConfig | None = None,
) -> ScoredExercise:
    """Score one exercise against pool-wide maxima (both >= 1)."""
    cfg = resolve_config(config)

    muscles = muscle_tags(exercise)
    workload = [context.muscle_workload.get(m.lower(), 0) for m in muscles]
    avg_workload = sum(workload) / len(workload) if workload else 0.0
    muscle_need = cfg.muscle_need_max - (avg_workload / max_workload) * cfg.muscle_need_max

    usage = context.exercise_usage.get(exercise.exercise_id, 0)
    usage_score = min(usage / max_usage, 1.0) * cfg.usage_score_max

    equipment_score = cfg.equipment_weights.get(equipment_category(exercise), 0.0)
    compound_score = cfg.compound_score if is_multi_muscle(exercise) else 0.0
    already_done = (
        cfg.already_done_penalty if exercise.exercise_id in context.completed_exercise_ids else 0.0
    )

    return ScoredExercise(
        exercise=exercise,
        score=muscle_need + usage_score + equipment_score + compound_score + already_done,
        muscle_need_score=muscle_need,
        usage_score=usage_score,
        equipment_score=equipment_score,
        compound_score=compound_score,
        already_done_score=already_done,
    )


def score_exercises(
    exercises: Sequence[Exercise],
    context: RecommendationContext,
    config: ScoringConfig | None = None,
) -> list[ScoredExercise]:
    """
    Rank a candidate pool, best first.

    Args:
        exercises: Candidate pool in display order
        context: Workload, usage and session aggregates

    Returns:
        ScoredExercise list sorted by score descending (stable on ties)
    """
    max_workload = max([1, *context.muscle_workload.values()])
    max_usage = max([1, *context.exercise_usage.values()])
    scored = [score_exercise(ex, context, max_workload, max_usage, config) for ex in exercises]
    return sorted(scored, key=lambda s: s.score, reverse=True)


def recommend_exercises(
    exercises: Sequence[Exercise],
    workout_muscle_groups: Sequence[str],
    context: RecommendationContext,
    limit: int | None = None,
    config: ScoringConfig | None = None,
) -> list[ScoredExercise]:
    """
    Top recommendations for a workout type.

    An empty workout_muscle_groups means full body (no filtering); otherwise
    only exercises whose primary muscle is listed are considered.
    """
    cfg = resolve_config(config)
    if workout_muscle_groups:
        wanted = {m.lower() for m in workout_muscle_groups}
        pool = [ex for ex in exercises if ex.muscle_group.lower() in wanted]
    else:
        pool = list(exercises)
    ranked = score_exercises(pool, context, cfg)
    return ranked[: cfg.recommendation_limit if limit is None else limit]
