"""
Data models for repforge.

All records crossing the engine boundary are frozen dataclasses: the engine
receives plain data and returns new values, it never mutates its inputs.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from .config import DEFAULT_GOAL, GOAL_BUCKETS, GoalBucket

ExerciseKind = Literal["weighted", "bodyweight"]
BonusKind = Literal[
    "rep_range",
    "progressive_overload",
    "workout_streak",
    "volume_scaling",
    "weekly_consistency",
    "charm",
]
Placement = Literal["additive", "multiplicative"]
Rarity = Literal["common", "rare", "epic"]
RARITY_ORDER: tuple[str, ...] = ("common", "rare", "epic")


def _validate_goal(goal: str) -> None:
    if goal not in GOAL_BUCKETS:
        raise ValueError(f"Invalid goal bucket: {goal}")


@dataclass(frozen=True)
class SetContext:
    """
    One logged set plus the in-workout context needed to score it.

    exercise_set_number is the set's 1-based position within its exercise for
    this workout; muscle_set_number is its 1-based position among all sets
    worked for the primary muscle in this workout.
    """

    exercise_id: str
    kind: ExerciseKind
    is_compound: bool
    muscle_group: str
    weight_kg: float | None  # None for bodyweight sets
    reps: int
    exercise_set_number: int
    muscle_set_number: int
    bodyweight_kg: float
    goal: GoalBucket = DEFAULT_GOAL
    weekly_muscle_sessions: int = 0  # Workouts this week that trained muscle_group
    secondary_muscles: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.kind not in ("weighted", "bodyweight"):
            raise ValueError(f"Invalid exercise kind: {self.kind}")
        if self.reps <= 0:
            raise ValueError("reps must be positive")
        if self.kind == "weighted":
            if self.weight_kg is None:
                raise ValueError("weight_kg is required for a weighted set")
            if self.weight_kg < 0:
                raise ValueError("weight_kg must be non-negative")
        elif self.weight_kg is not None:
            raise ValueError("weight_kg must be None for a bodyweight set")
        if self.bodyweight_kg <= 0:
            raise ValueError("bodyweight_kg must be positive")
        if self.exercise_set_number < 1:
            raise ValueError("exercise_set_number must be at least 1")
        if self.muscle_set_number < 1:
            raise ValueError("muscle_set_number must be at least 1")
        if self.weekly_muscle_sessions < 0:
            raise ValueError("weekly_muscle_sessions must be non-negative")
        _validate_goal(self.goal)

    @property
    def muscle_group_count(self) -> int:
        """Number of distinct muscles the exercise works (primary included)."""
        others = {m.lower() for m in self.secondary_muscles} - {self.muscle_group.lower()}
        return 1 + len(others)


@dataclass(frozen=True)
class ExerciseBaseline:
    """
    Best set seen so far for one exercise within one goal bucket.

    Read-only input to scoring; replaced by the caller after a confirmed PR
    (see records.next_baseline).
    """

    exercise_id: str
    goal: GoalBucket
    effective_load: float
    reps: int

    def __post_init__(self) -> None:
        _validate_goal(self.goal)
        if self.effective_load < 0:
            raise ValueError("effective_load must be non-negative")
        if self.reps <= 0:
            raise ValueError("reps must be positive")


@dataclass(frozen=True)
class PointBonus:
    """
    A single contribution to a set's points.

    multiplier is the signed fractional delta: +0.10 reads "+10%", -0.2 on a
    multiplicative entry means the set keeps 80%.  Additive entries are summed
    before the multiplicative tail is applied.
    """

    kind: BonusKind
    multiplier: float
    description: str
    placement: Placement = "additive"
    flat_points: int = 0
    source_id: str | None = None  # Charm id for charm-sourced bonuses

    @property
    def factor(self) -> float:
        """Multiplicative factor this entry represents (1 + multiplier)."""
        return 1.0 + self.multiplier


@dataclass(frozen=True)
class PointsResult:
    """Outcome of scoring one set; stored verbatim by the caller."""

    base_points: int
    bonuses: tuple[PointBonus, ...]
    final_points: int
    is_pr: bool = False

    @property
    def additive_total(self) -> float:
        """Sum of the additive multipliers."""
        return sum(b.multiplier for b in self.bonuses if b.placement == "additive")

    @property
    def tail_factor(self) -> float:
        """Product of every multiplicative factor, in application order."""
        product = 1.0
        for b in self.bonuses:
            if b.placement == "multiplicative":
                product *= b.factor
        return product

    @property
    def volume_multiplier(self) -> float:
        """Volume-scaling factor for this set (1.0 when no penalty applied)."""
        for b in self.bonuses:
            if b.kind == "volume_scaling":
                return b.factor
        return 1.0

    def bonus(self, kind: str) -> PointBonus | None:
        """Return the first bonus of the given kind, or None."""
        for b in self.bonuses:
            if b.kind == kind:
                return b
        return None


@dataclass(frozen=True)
class MuscleProgress:
    """
    Leveling state of one muscle group.

    total_xp is lifetime XP and never decreases.  level and xp_in_level are
    the current (possibly decayed) values; trained_level and
    trained_xp_in_level keep the state as of last_trained_at once decay has
    lowered it, so every decay pass starts from the same point.  Both are
    None while nothing has decayed.
    """

    muscle_group: str
    level: int = 0
    xp_in_level: int = 0
    total_xp: int = 0
    last_trained_at: datetime | None = None
    trained_level: int | None = None
    trained_xp_in_level: int | None = None

    def __post_init__(self) -> None:
        """Validate progress data."""
        if self.level < 0:
            raise ValueError("level must be non-negative")
        if self.xp_in_level < 0:
            raise ValueError("xp_in_level must be non-negative")
        if self.total_xp < 0:
            raise ValueError("total_xp must be non-negative")
        if (self.trained_level is None) != (self.trained_xp_in_level is None):
            raise ValueError("trained_level and trained_xp_in_level must be set together")
        if self.trained_level is not None and (self.trained_level < 0 or self.trained_xp_in_level < 0):
            raise ValueError("trained_level and trained_xp_in_level must be non-negative")


@dataclass(frozen=True)
class LevelSegment:
    """
    One animation step of a muscle XP gain.

    Progress values are fractions (0-1) of the level bar.  A gain that
    crosses N level boundaries yields N leveled-up segments and, if XP is
    left over, one final partial segment.
    """

    start_level: int
    end_level: int
    start_progress: float
    end_progress: float
    leveled_up: bool
    xp_applied: int


@dataclass(frozen=True)
class MuscleXpAward:
    """XP earned by one muscle from one set."""

    muscle_group: str
    base_xp: int
    split_xp: int
    diminishing_multiplier: float
    pr_multiplier: float
    final_xp: int


@dataclass(frozen=True)
class Exercise:
    """Catalog entry for one exercise."""

    exercise_id: str
    name: str
    muscle_group: str
    exercise_type: ExerciseKind = "weighted"
    equipment: tuple[str, ...] = ()
    is_compound: bool = False
    secondary_muscles: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScoredExercise:
    """An exercise with its recommendation score and the parts it came from."""

    exercise: Exercise
    score: float
    muscle_need_score: float
    usage_score: float
    equipment_score: float
    compound_score: float
    already_done_score: float


@dataclass(frozen=True)
class WorkoutStats:
    """Aggregate shape of a finished session."""

    total_sets: int
    duration_minutes: int
    exercise_count: int

    def __post_init__(self) -> None:
        if self.total_sets < 0:
            raise ValueError("total_sets must be non-negative")
        if self.duration_minutes < 0:
            raise ValueError("duration_minutes must be non-negative")
        if self.exercise_count < 0:
            raise ValueError("exercise_count must be non-negative")


@dataclass(frozen=True)
class CompletionBonus:
    """Workout-completion bonus with its named components."""

    bonus_points: int
    components: dict[str, int] = field(default_factory=dict)
