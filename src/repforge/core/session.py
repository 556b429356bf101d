"""
Workout session controller.

WorkoutSession is the single writer for one workout: it owns the baselines,
muscle progress and per-workout counters the engine functions read, feeds
each logged set through charms, scoring and leveling, and closes the
workout with the completion bonus and runes.  The engine functions
themselves stay pure; everything stateful lives here.
"""

import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Mapping

from .catalog.base import CharmDefinition, RuneDefinition
from .charm_drop import CharmDrop, ExerciseDropContext, evaluate_charm_drop
from .charm_effects import charm_context_for_set, resolve_charm_bonuses
from .completion import completion_bonus, next_streak
from .config import ScoringConfig, resolve_config
from .leveling import apply_decay, apply_gain, project_gain, set_muscle_xp
from .models import (
    CompletionBonus,
    Exercise,
    ExerciseBaseline,
    LevelSegment,
    MuscleProgress,
    MuscleXpAward,
    PointsResult,
    SetContext,
    WorkoutStats,
)
from .muscles import muscle_tags
from .points import compute_points
from .records import check_for_pr, effective_load, next_baseline
from .rune_effects import RuneBonuses, WorkoutRuneContext, resolve_rune_bonuses

logger = logging.getLogger(__name__)

BaselineKey = tuple[str, str]  # (exercise_id, goal)


@dataclass(frozen=True)
class LoggedSet:
    """Everything one logged set produced."""

    context: SetContext
    result: PointsResult
    xp_awards: tuple[MuscleXpAward, ...]
    level_segments: dict[str, list[LevelSegment]]  # Keyed by muscle, lowercase


@dataclass(frozen=True)
class WorkoutSummary:
    """Totals of a finished workout."""

    stats: WorkoutStats
    set_points: int
    completion: CompletionBonus
    runes: RuneBonuses
    total_points: int
    streak: int
    pr_count: int
    muscle_progress: dict[str, MuscleProgress] = field(default_factory=dict)


class WorkoutSession:
    """
    One workout in progress.

    Args:
        goal: Goal bucket of the workout
        bodyweight_kg: Lifter's bodyweight, used for bodyweight sets
        started_at: Session start; stored progress is decayed to this time
        current_streak: Workout streak before this session
        last_workout_at: End of the previous workout, None for the first
        baselines: Stored bests keyed by (exercise_id, goal)
        muscle_progress: Stored progress keyed by muscle (any case)
        equipped_charms: Charm ids in equip order
        equipped_runes: Rune ids in equip order
        weekly_muscle_sessions: Earlier workouts this week per muscle
        rolling_7day_sets: Sets per muscle over the last 7 days
        workouts_this_week: Earlier workouts this week
        sets_since_last_charm: Pity counter for charm drops
    """

    def __init__(
        self,
        goal: str,
        bodyweight_kg: float,
        started_at: datetime,
        current_streak: int = 0,
        last_workout_at: datetime | None = None,
        baselines: Mapping[BaselineKey, ExerciseBaseline] | None = None,
        muscle_progress: Mapping[str, MuscleProgress] | None = None,
        equipped_charms: Iterable[str] = (),
        equipped_runes: Iterable[str] = (),
        weekly_muscle_sessions: Mapping[str, int] | None = None,
        rolling_7day_sets: Mapping[str, int] | None = None,
        workouts_this_week: int = 0,
        sets_since_last_charm: int = 0,
        config: ScoringConfig | None = None,
        charm_catalog: Mapping[str, CharmDefinition] | None = None,
        rune_catalog: Mapping[str, RuneDefinition] | None = None,
    ) -> None:
        self.config = resolve_config(config)
        self.config.rep_range(goal)
        if bodyweight_kg <= 0:
            raise ValueError("bodyweight_kg must be positive")

        self.goal = goal
        self.bodyweight_kg = bodyweight_kg
        self.started_at = started_at
        self.current_streak = current_streak
        self.last_workout_at = last_workout_at
        self.equipped_charms = tuple(equipped_charms)
        self.equipped_runes = tuple(equipped_runes)
        self.workouts_this_week = workouts_this_week
        self.sets_since_last_charm = sets_since_last_charm
        self.charm_catalog = charm_catalog
        self.rune_catalog = rune_catalog

        self.baselines: dict[BaselineKey, ExerciseBaseline] = dict(baselines or {})
        self.muscle_progress: dict[str, MuscleProgress] = {
            m.lower(): apply_decay(p, started_at, self.config)
            for m, p in (muscle_progress or {}).items()
        }
        self.weekly_muscle_sessions = {k.lower(): v for k, v in (weekly_muscle_sessions or {}).items()}
        self.rolling_7day_sets: Counter[str] = Counter(
            {k.lower(): v for k, v in (rolling_7day_sets or {}).items()}
        )

        self.logged: list[LoggedSet] = []
        self.set_points = 0
        self.pr_count = 0
        self.finished = False
        self._exercise_reps: dict[str, list[int]] = {}
        self._exercise_prs: dict[str, bool] = {}
        self._muscle_sets: Counter[str] = Counter()

    def log_set(
        self,
        exercise: Exercise,
        reps: int,
        weight_kg: float | None = None,
        logged_at: datetime | None = None,
    ) -> LoggedSet:
        """
        Score one set and apply its muscle XP.

        Raises:
            ValueError: On invalid set data or a finished session
        """
        if self.finished:
            raise ValueError("Cannot log a set on a finished session")
        cfg = self.config
        logged_at = logged_at or self.started_at
        primary = exercise.muscle_group.lower()
        muscles = muscle_tags(exercise)
        previous_reps = self._exercise_reps.get(exercise.exercise_id, [])

        ctx = SetContext(
            exercise_id=exercise.exercise_id,
            kind=exercise.exercise_type,
            is_compound=exercise.is_compound,
            muscle_group=exercise.muscle_group,
            weight_kg=weight_kg,
            reps=reps,
            exercise_set_number=len(previous_reps) + 1,
            muscle_set_number=self._muscle_sets[primary] + 1,
            bodyweight_kg=self.bodyweight_kg,
            goal=self.goal,
            weekly_muscle_sessions=self.weekly_muscle_sessions.get(primary, 0) + 1,
            secondary_muscles=tuple(muscles[1:]),
        )

        key = (exercise.exercise_id, self.goal)
        baseline = self.baselines.get(key)
        load = effective_load(ctx, cfg)
        pr = check_for_pr(load, reps, self.goal, baseline, cfg)
        relative = None
        if baseline is not None and baseline.effective_load > 0:
            relative = load / baseline.effective_load

        charm_ctx = charm_context_for_set(ctx, previous_reps, pr.is_pr, self.current_streak, relative)
        charm_bonuses = resolve_charm_bonuses(self.equipped_charms, charm_ctx, self.charm_catalog, cfg)
        result = compute_points(ctx, baseline, self.current_streak, charm_bonuses, cfg)
        self.baselines[key] = next_baseline(exercise.exercise_id, self.goal, load, reps, baseline, cfg)

        awards = set_muscle_xp(muscles, self.rolling_7day_sets, result.is_pr, cfg)
        segments: dict[str, list[LevelSegment]] = {}
        for award in awards:
            name = award.muscle_group.lower()
            current = self.muscle_progress.get(name)
            segments[name] = project_gain(current, award.final_xp, award.muscle_group, cfg)
            self.muscle_progress[name] = apply_gain(
                current, award.final_xp, award.muscle_group, trained_at=logged_at, config=cfg
            )
            self.rolling_7day_sets[name] += 1

        self._exercise_reps.setdefault(exercise.exercise_id, []).append(reps)
        self._exercise_prs[exercise.exercise_id] = self._exercise_prs.get(exercise.exercise_id, False) or result.is_pr
        self._muscle_sets[primary] += 1
        self.set_points += result.final_points
        if result.is_pr:
            self.pr_count += 1

        logged = LoggedSet(ctx, result, tuple(awards), segments)
        self.logged.append(logged)
        logger.debug(
            "Logged %s x%d: %d pts (base %d)",
            exercise.exercise_id, reps, result.final_points, result.base_points,
        )
        return logged

    def complete_exercise(self, exercise: Exercise, rng: random.Random) -> CharmDrop:
        """Roll for a charm drop after finishing an exercise and update the pity counter."""
        muscles = tuple(muscle_tags(exercise))
        drop = evaluate_charm_drop(
            ExerciseDropContext(
                goal=self.goal,
                set_reps=tuple(self._exercise_reps.get(exercise.exercise_id, ())),
                pr_hit=self._exercise_prs.get(exercise.exercise_id, False),
                muscles=muscles,
                muscle_levels={m: p.level for m, p in self.muscle_progress.items()},
                sets_since_last_charm=self.sets_since_last_charm,
            ),
            rng,
            self.config,
        )
        if drop.did_drop:
            self.sets_since_last_charm = 0
        else:
            self.sets_since_last_charm += drop.sets_to_add_to_pity
        return drop

    def finish(self, ended_at: datetime) -> WorkoutSummary:
        """
        Close the workout.

        total = set points + completion bonus + rune bonus
        """
        if self.finished:
            raise ValueError("Session already finished")
        if ended_at < self.started_at:
            raise ValueError("ended_at is before started_at")
        self.finished = True

        stats = WorkoutStats(
            total_sets=len(self.logged),
            duration_minutes=int((ended_at - self.started_at).total_seconds() // 60),
            exercise_count=len(self._exercise_reps),
        )
        completion = completion_bonus(stats, self.config)
        runes = resolve_rune_bonuses(
            self.equipped_runes,
            WorkoutRuneContext(
                exercise_count=stats.exercise_count,
                total_sets=stats.total_sets,
                pr_count=self.pr_count,
                muscle_group_count=len(self._muscle_sets),
                workouts_this_week=self.workouts_this_week + 1,
                base_points=self.set_points,
            ),
            self.rune_catalog,
        )
        total = self.set_points + completion.bonus_points + runes.bonus_points
        streak = next_streak(self.current_streak, self.last_workout_at, ended_at, self.config)
        logger.debug(
            "Workout finished: %d sets, %d pts (completion %d, runes %d), streak %d",
            stats.total_sets, total, completion.bonus_points, runes.bonus_points, streak,
        )
        return WorkoutSummary(
            stats=stats,
            set_points=self.set_points,
            completion=completion,
            runes=runes,
            total_points=total,
            streak=streak,
            pr_count=self.pr_count,
            muscle_progress=dict(self.muscle_progress),
        )
