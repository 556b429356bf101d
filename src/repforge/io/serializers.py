"""
JSON serialization for scoring and progression models.

Handles conversion between dataclasses and JSON-compatible dicts, and
parsing of the workout and catalog files the CLI reads.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from ..core.config import DEFAULT_GOAL, GOAL_BUCKETS, ScoringConfig
from ..core.models import (
    CompletionBonus,
    Exercise,
    ExerciseBaseline,
    LevelSegment,
    MuscleProgress,
    MuscleXpAward,
    PointBonus,
    PointsResult,
    ScoredExercise,
    SetContext,
)
from ..core.session import WorkoutSession


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_datetime(value: str | None, name: str) -> datetime | None:
    """
    Parse an ISO-8601 timestamp.

    Raises:
        ValidationError: If the string is not ISO-8601
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as e:
        raise ValidationError(f"Invalid {name}: {value!r}. Expected ISO-8601") from e


def validate_goal(goal: str) -> str:
    """
    Validate a goal bucket name.

    Raises:
        ValidationError: If goal is not a known bucket
    """
    if goal not in GOAL_BUCKETS:
        raise ValidationError(f"Invalid goal: {goal}. Must be one of {GOAL_BUCKETS}")
    return goal


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Raises:
        ValidationError: If value is negative
    """
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def validate_positive(value: int | float, name: str) -> int | float:
    """
    Validate that a value is positive.

    Raises:
        ValidationError: If value is not positive
    """
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return value


def _require(data: dict[str, Any], *names: str) -> None:
    if not isinstance(data, dict):
        raise ValidationError(f"Expected a mapping, got {type(data).__name__}")
    missing = [n for n in names if n not in data]
    if missing:
        raise ValidationError(f"Missing fields: {', '.join(missing)}")


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


# =============================================================================
# SETS AND BASELINES
# =============================================================================


def set_context_to_dict(ctx: SetContext) -> dict[str, Any]:
    d: dict[str, Any] = {
        "exercise_id": ctx.exercise_id,
        "kind": ctx.kind,
        "is_compound": ctx.is_compound,
        "muscle_group": ctx.muscle_group,
        "weight_kg": ctx.weight_kg,
        "reps": ctx.reps,
        "exercise_set_number": ctx.exercise_set_number,
        "muscle_set_number": ctx.muscle_set_number,
        "bodyweight_kg": ctx.bodyweight_kg,
        "goal": ctx.goal,
        "weekly_muscle_sessions": ctx.weekly_muscle_sessions,
    }
    if ctx.secondary_muscles:
        d["secondary_muscles"] = list(ctx.secondary_muscles)
    return d


def dict_to_set_context(data: dict[str, Any]) -> SetContext:
    """
    Convert dict to SetContext.

    Ordinal positions default to 1 (first set of the exercise and muscle).

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, "exercise_id", "muscle_group", "reps", "bodyweight_kg")
    kind = data.get("kind", "weighted")
    weight = data.get("weight_kg")
    validate_positive(data["reps"], "reps")
    validate_positive(data["bodyweight_kg"], "bodyweight_kg")
    if weight is not None:
        validate_non_negative(weight, "weight_kg")
    validate_goal(data.get("goal", DEFAULT_GOAL))

    try:
        return SetContext(
            exercise_id=str(data["exercise_id"]),
            kind=kind,
            is_compound=bool(data.get("is_compound", False)),
            muscle_group=str(data["muscle_group"]),
            weight_kg=float(weight) if weight is not None else None,
            reps=int(data["reps"]),
            exercise_set_number=int(data.get("exercise_set_number", 1)),
            muscle_set_number=int(data.get("muscle_set_number", 1)),
            bodyweight_kg=float(data["bodyweight_kg"]),
            goal=data.get("goal", DEFAULT_GOAL),
            weekly_muscle_sessions=int(data.get("weekly_muscle_sessions", 0)),
            secondary_muscles=tuple(data.get("secondary_muscles", ())),
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e


def baseline_to_dict(baseline: ExerciseBaseline) -> dict[str, Any]:
    return {
        "exercise_id": baseline.exercise_id,
        "goal": baseline.goal,
        "effective_load": baseline.effective_load,
        "reps": baseline.reps,
    }


def dict_to_baseline(data: dict[str, Any]) -> ExerciseBaseline:
    """
    Convert dict to ExerciseBaseline.

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, "exercise_id", "goal", "effective_load", "reps")
    validate_goal(data["goal"])
    validate_non_negative(data["effective_load"], "effective_load")
    validate_positive(data["reps"], "reps")
    return ExerciseBaseline(
        exercise_id=str(data["exercise_id"]),
        goal=data["goal"],
        effective_load=float(data["effective_load"]),
        reps=int(data["reps"]),
    )


# =============================================================================
# RESULTS
# =============================================================================


def point_bonus_to_dict(bonus: PointBonus) -> dict[str, Any]:
    d: dict[str, Any] = {
        "kind": bonus.kind,
        "multiplier": bonus.multiplier,
        "description": bonus.description,
        "placement": bonus.placement,
    }
    if bonus.flat_points:
        d["flat_points"] = bonus.flat_points
    if bonus.source_id is not None:
        d["source_id"] = bonus.source_id
    return d


def dict_to_point_bonus(data: dict[str, Any]) -> PointBonus:
    _require(data, "kind", "multiplier", "description")
    placement = data.get("placement", "additive")
    if placement not in ("additive", "multiplicative"):
        raise ValidationError(f"Invalid placement: {placement}")
    return PointBonus(
        kind=data["kind"],
        multiplier=float(data["multiplier"]),
        description=str(data["description"]),
        placement=placement,
        flat_points=int(data.get("flat_points", 0)),
        source_id=data.get("source_id"),
    )


def points_result_to_dict(result: PointsResult) -> dict[str, Any]:
    return {
        "base_points": result.base_points,
        "final_points": result.final_points,
        "is_pr": result.is_pr,
        "bonuses": [point_bonus_to_dict(b) for b in result.bonuses],
    }


def dict_to_points_result(data: dict[str, Any]) -> PointsResult:
    _require(data, "base_points", "final_points")
    validate_non_negative(data["base_points"], "base_points")
    validate_non_negative(data["final_points"], "final_points")
    return PointsResult(
        base_points=int(data["base_points"]),
        bonuses=tuple(dict_to_point_bonus(b) for b in data.get("bonuses", [])),
        final_points=int(data["final_points"]),
        is_pr=bool(data.get("is_pr", False)),
    )


def completion_to_dict(bonus: CompletionBonus) -> dict[str, Any]:
    return {"bonus_points": bonus.bonus_points, "components": dict(bonus.components)}


def xp_award_to_dict(award: MuscleXpAward) -> dict[str, Any]:
    return {
        "muscle_group": award.muscle_group,
        "split_xp": award.split_xp,
        "diminishing_multiplier": award.diminishing_multiplier,
        "pr_multiplier": award.pr_multiplier,
        "final_xp": award.final_xp,
    }


def level_segment_to_dict(segment: LevelSegment) -> dict[str, Any]:
    return {
        "start_level": segment.start_level,
        "end_level": segment.end_level,
        "start_progress": round(segment.start_progress, 4),
        "end_progress": round(segment.end_progress, 4),
        "leveled_up": segment.leveled_up,
        "xp_applied": segment.xp_applied,
    }


def scored_exercise_to_dict(scored: ScoredExercise) -> dict[str, Any]:
    return {
        "exercise_id": scored.exercise.exercise_id,
        "name": scored.exercise.name,
        "score": round(scored.score, 2),
        "muscle_need": round(scored.muscle_need_score, 2),
        "usage": round(scored.usage_score, 2),
        "equipment": scored.equipment_score,
        "compound": scored.compound_score,
        "already_done": scored.already_done_score,
    }


# =============================================================================
# PROGRESS AND CATALOG
# =============================================================================


def muscle_progress_to_dict(progress: MuscleProgress) -> dict[str, Any]:
    return {
        "muscle_group": progress.muscle_group,
        "level": progress.level,
        "xp_in_level": progress.xp_in_level,
        "total_xp": progress.total_xp,
        "last_trained_at": _iso(progress.last_trained_at),
        "trained_level": progress.trained_level,
        "trained_xp_in_level": progress.trained_xp_in_level,
    }


def dict_to_muscle_progress(data: dict[str, Any]) -> MuscleProgress:
    """
    Convert dict to MuscleProgress.

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, "muscle_group")
    for name in ("level", "xp_in_level", "total_xp"):
        validate_non_negative(data.get(name, 0), name)
    trained_level = data.get("trained_level")
    trained_xp = data.get("trained_xp_in_level")
    if (trained_level is None) != (trained_xp is None):
        raise ValidationError("trained_level and trained_xp_in_level must be given together")
    if trained_level is not None:
        validate_non_negative(trained_level, "trained_level")
        validate_non_negative(trained_xp, "trained_xp_in_level")
    return MuscleProgress(
        muscle_group=str(data["muscle_group"]),
        level=int(data.get("level", 0)),
        xp_in_level=int(data.get("xp_in_level", 0)),
        total_xp=int(data.get("total_xp", 0)),
        last_trained_at=validate_datetime(data.get("last_trained_at"), "last_trained_at"),
        trained_level=None if trained_level is None else int(trained_level),
        trained_xp_in_level=None if trained_xp is None else int(trained_xp),
    )


def exercise_to_dict(exercise: Exercise) -> dict[str, Any]:
    d: dict[str, Any] = {
        "exercise_id": exercise.exercise_id,
        "name": exercise.name,
        "muscle_group": exercise.muscle_group,
        "exercise_type": exercise.exercise_type,
        "is_compound": exercise.is_compound,
    }
    if exercise.equipment:
        d["equipment"] = list(exercise.equipment)
    if exercise.secondary_muscles:
        d["secondary_muscles"] = list(exercise.secondary_muscles)
    return d


def dict_to_exercise(data: dict[str, Any]) -> Exercise:
    """
    Convert dict to Exercise.

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, "exercise_id", "name", "muscle_group")
    exercise_type = data.get("exercise_type", "weighted")
    if exercise_type not in ("weighted", "bodyweight"):
        raise ValidationError(f"Invalid exercise_type: {exercise_type}")
    return Exercise(
        exercise_id=str(data["exercise_id"]),
        name=str(data["name"]),
        muscle_group=str(data["muscle_group"]),
        exercise_type=exercise_type,
        equipment=tuple(data.get("equipment", ())),
        is_compound=bool(data.get("is_compound", False)),
        secondary_muscles=tuple(data.get("secondary_muscles", ())),
    )


def load_data_file(path: Path) -> Any:
    """
    Read a JSON or YAML input file (chosen by extension).

    Raises:
        ValidationError: If the file is missing or cannot be parsed
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            if path.suffix.lower() == ".json":
                return json.load(fh)
            return yaml.safe_load(fh)
    except OSError as e:
        raise ValidationError(f"Cannot read {path}: {e}") from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValidationError(f"Cannot parse {path}: {e}") from e


# =============================================================================
# WORKOUT FILES
# =============================================================================


@dataclass(frozen=True)
class LoggedExercise:
    """One exercise of a workout file and its (reps, weight_kg) sets."""

    exercise: Exercise
    sets: list[tuple[int, float | None]] = field(default_factory=list)


@dataclass(frozen=True)
class WorkoutLog:
    """A parsed workout file, ready to replay through a WorkoutSession."""

    session: WorkoutSession
    exercises: list[LoggedExercise]
    ended_at: datetime


def _dict_to_logged_set(data: Any) -> tuple[int, float | None]:
    if isinstance(data, int):
        return validate_positive(data, "reps"), None
    _require(data, "reps")
    validate_positive(data["reps"], "reps")
    weight = data.get("weight_kg")
    if weight is not None:
        validate_non_negative(weight, "weight_kg")
        weight = float(weight)
    return int(data["reps"]), weight


def dict_to_workout_log(data: dict[str, Any], config: ScoringConfig | None = None) -> WorkoutLog:
    """
    Convert a workout file to a WorkoutLog.

    Expected shape (YAML or JSON):

        goal: hypertrophy
        bodyweight_kg: 80
        started_at: 2026-01-05T18:00:00
        ended_at: 2026-01-05T19:05:00
        current_streak: 3                # optional
        last_workout_at: ...             # optional
        equipped_charms: [momentum]      # optional
        equipped_runes: [volume_king]    # optional
        baselines: [{exercise_id, goal, effective_load, reps}]
        muscle_progress: [{muscle_group, level, xp_in_level, ...}]
        exercises:
          - exercise: {exercise_id, name, muscle_group, ...}
            sets: [{reps: 8, weight_kg: 100}, 10]

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, "bodyweight_kg", "started_at", "ended_at", "exercises")
    goal = validate_goal(data.get("goal", DEFAULT_GOAL))
    validate_positive(data["bodyweight_kg"], "bodyweight_kg")
    validate_non_negative(data.get("current_streak", 0), "current_streak")
    started_at = validate_datetime(data["started_at"], "started_at")
    ended_at = validate_datetime(data["ended_at"], "ended_at")
    if ended_at < started_at:
        raise ValidationError("ended_at is before started_at")

    baselines = [dict_to_baseline(b) for b in data.get("baselines") or []]
    progress = [dict_to_muscle_progress(p) for p in data.get("muscle_progress") or []]

    exercises: list[LoggedExercise] = []
    for entry in data["exercises"]:
        _require(entry, "exercise", "sets")
        exercises.append(
            LoggedExercise(
                exercise=dict_to_exercise(entry["exercise"]),
                sets=[_dict_to_logged_set(s) for s in entry["sets"]],
            )
        )

    try:
        session = WorkoutSession(
            goal=goal,
            bodyweight_kg=float(data["bodyweight_kg"]),
            started_at=started_at,
            current_streak=int(data.get("current_streak", 0)),
            last_workout_at=validate_datetime(data.get("last_workout_at"), "last_workout_at"),
            baselines={(b.exercise_id, b.goal): b for b in baselines},
            muscle_progress={p.muscle_group: p for p in progress},
            equipped_charms=data.get("equipped_charms") or (),
            equipped_runes=data.get("equipped_runes") or (),
            weekly_muscle_sessions=data.get("weekly_muscle_sessions"),
            rolling_7day_sets=data.get("rolling_7day_sets"),
            workouts_this_week=int(data.get("workouts_this_week", 0)),
            config=config,
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e
    return WorkoutLog(session=session, exercises=exercises, ended_at=ended_at)
