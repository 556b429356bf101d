"""
Unit tests for the set points calculator.

Values are hand-computed from the formulas in repforge.core.points so the
tests double as worked examples.
"""

import math

import pytest

from repforge.core.config import (
    OVERLOAD_BONUS,
    REP_RANGE_BONUS,
    STREAK_BONUS_MAX,
)
from repforge.core.models import ExerciseBaseline, PointBonus, SetContext
from repforge.core.points import (
    calculate_base_points,
    compose_points,
    compute_points,
    max_additive_bonus,
    streak_bonus,
    volume_scaling_multiplier,
    weekly_consistency_bonus,
)

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _ctx(
    weight: float | None = 100.0,
    reps: int = 8,
    *,
    goal: str = "hypertrophy",
    compound: bool = False,
    set_number: int = 1,
    muscle_set_number: int = 1,
    weekly: int = 0,
    bw: float = 80.0,
) -> SetContext:
    return SetContext(
        exercise_id="bench",
        kind="weighted" if weight is not None else "bodyweight",
        is_compound=compound,
        muscle_group="Chest",
        weight_kg=weight,
        reps=reps,
        exercise_set_number=set_number,
        muscle_set_number=muscle_set_number,
        bodyweight_kg=bw,
        goal=goal,
        weekly_muscle_sessions=weekly,
    )


def _heavier_baseline(goal: str = "hypertrophy") -> ExerciseBaseline:
    return ExerciseBaseline(exercise_id="bench", goal=goal, effective_load=110.0, reps=8)


# ---------------------------------------------------------------------------
# Base points
# ---------------------------------------------------------------------------


class TestBasePoints:
    def test_weighted_is_load_times_reps(self):
        assert calculate_base_points(_ctx(100.0, 8)) == 800

    def test_bodyweight_uses_fraction_of_bodyweight(self):
        # 80 kg * 0.65 = 52 kg per rep
        assert calculate_base_points(_ctx(None, 10, bw=80.0)) == 520

    def test_compound_factor(self):
        assert calculate_base_points(_ctx(100.0, 8, compound=True)) == 960

    def test_fractional_weight_is_floored(self):
        assert calculate_base_points(_ctx(22.5, 3)) == 67


# ---------------------------------------------------------------------------
# Bonus curves
# ---------------------------------------------------------------------------


class TestStreakBonus:
    def test_zero_below_minimum(self):
        assert streak_bonus(0) == 0.0
        assert streak_bonus(1) == 0.0

    def test_first_qualifying_day(self):
        # 0.5 * (1 - 0.5 ** (1/7)) = 0.04714...
        assert streak_bonus(2) == pytest.approx(0.0471)

    def test_monotonic_and_saturating(self):
        values = [streak_bonus(s) for s in range(0, 120)]
        assert all(a <= b for a, b in zip(values, values[1:]))
        assert values[-1] <= STREAK_BONUS_MAX

    def test_negative_streak_rejected(self):
        with pytest.raises(ValueError):
            streak_bonus(-1)


class TestWeeklyConsistency:
    def test_tiers(self):
        assert weekly_consistency_bonus(0) == 0.0
        assert weekly_consistency_bonus(1) == 0.0
        assert weekly_consistency_bonus(2) == pytest.approx(0.05)
        assert weekly_consistency_bonus(3) == pytest.approx(0.10)
        assert weekly_consistency_bonus(7) == pytest.approx(0.10)


class TestVolumeScaling:
    def test_full_credit_through_fourth_set(self):
        assert [volume_scaling_multiplier(n) for n in range(1, 5)] == [1.0] * 4

    def test_fifth_and_sixth(self):
        assert volume_scaling_multiplier(5) == pytest.approx(0.9)
        assert volume_scaling_multiplier(6) == pytest.approx(0.8)

    def test_floor(self):
        assert volume_scaling_multiplier(10) == pytest.approx(0.4)
        assert volume_scaling_multiplier(30) == pytest.approx(0.4)


# ---------------------------------------------------------------------------
# compute_points
# ---------------------------------------------------------------------------


class TestComputePoints:
    def test_first_set_scenario(self):
        """100kg x 8 in hypertrophy range, no baseline, no streak, no charms."""
        result = compute_points(_ctx(100.0, 8), baseline=None, current_streak=0)

        assert result.base_points == 800
        assert result.is_pr is True
        assert result.bonus("rep_range") is not None
        assert result.bonus("progressive_overload") is not None
        assert result.bonus("workout_streak") is None
        assert result.volume_multiplier == 1.0
        expected = 800 + math.floor(800 * (REP_RANGE_BONUS + OVERLOAD_BONUS))
        assert result.final_points == expected == 1000

    def test_bonus_presentation_order(self):
        result = compute_points(
            _ctx(100.0, 8, muscle_set_number=6, weekly=3), baseline=None, current_streak=5
        )
        kinds = [b.kind for b in result.bonuses]
        assert kinds == [
            "rep_range",
            "progressive_overload",
            "workout_streak",
            "weekly_consistency",
            "volume_scaling",
        ]

    def test_no_overload_when_baseline_is_heavier(self):
        result = compute_points(_ctx(100.0, 8), _heavier_baseline(), current_streak=0)
        assert result.is_pr is False
        assert result.bonus("progressive_overload") is None
        assert result.final_points == 880

    def test_out_of_range_reps_get_no_rep_bonus(self):
        result = compute_points(_ctx(100.0, 3), _heavier_baseline(), current_streak=0)
        assert result.bonus("rep_range") is None
        assert result.final_points == 300

    def test_sixth_set_scaled_below_fifth(self):
        fifth = compute_points(_ctx(muscle_set_number=5), _heavier_baseline(), 0)
        sixth = compute_points(_ctx(muscle_set_number=6), _heavier_baseline(), 0)
        assert sixth.volume_multiplier < 1.0
        assert sixth.volume_multiplier < fifth.volume_multiplier
        assert sixth.final_points < fifth.final_points

    def test_volume_penalty_strictly_reduces(self):
        fresh = compute_points(_ctx(muscle_set_number=1), _heavier_baseline(), 0)
        late = compute_points(_ctx(muscle_set_number=7), _heavier_baseline(), 0)
        assert late.final_points < fresh.final_points
        assert late.final_points == 616

    def test_deterministic(self):
        ctx = _ctx(62.5, 11, compound=True, muscle_set_number=5, weekly=2)
        runs = [compute_points(ctx, _heavier_baseline(), 4) for _ in range(5)]
        assert all(r == runs[0] for r in runs)

    def test_never_negative_and_bounded(self):
        cap = 1.0 + max_additive_bonus()
        for weight in (0.0, 2.5, 40.0, 100.0, 212.5):
            for reps in (1, 5, 8, 12, 20):
                for streak in (0, 2, 10, 60):
                    for n in (1, 5, 9):
                        ctx = _ctx(weight, reps, muscle_set_number=n, weekly=3)
                        result = compute_points(ctx, None, streak)
                        assert result.final_points >= 0
                        assert isinstance(result.final_points, int)
                        assert result.final_points <= result.base_points * cap

    def test_zero_weight_scores_zero(self):
        result = compute_points(_ctx(0.0, 8), None, 0)
        assert result.base_points == 0
        assert result.final_points == 0

    def test_unknown_goal_rejected(self):
        with pytest.raises(ValueError):
            _ctx(goal="power")


class TestCharmComposition:
    def test_additive_charm_joins_the_pool(self):
        charm = PointBonus(kind="charm", multiplier=0.10, description="First Rep", source_id="first_rep")
        result = compute_points(_ctx(), None, 0, charm_bonuses=[charm])
        assert result.additive_total == pytest.approx(0.35)
        assert result.final_points == 1080

    def test_flat_points_scaled_by_tail(self):
        flat = PointBonus(kind="charm", multiplier=0.0, description="Iron Will", flat_points=25)
        result = compute_points(_ctx(muscle_set_number=6), None, 0, charm_bonuses=[flat])
        # (800 * 1.25 + 25) * 0.8
        assert result.final_points == 820

    def test_multiplicative_charm_before_volume_scaling(self):
        mult = PointBonus(
            kind="charm", multiplier=0.20, description="Volume Master", placement="multiplicative"
        )
        result = compute_points(_ctx(muscle_set_number=6), _heavier_baseline(), 0, charm_bonuses=[mult])
        assert [b.kind for b in result.bonuses][-2:] == ["charm", "volume_scaling"]
        assert result.tail_factor == pytest.approx(1.2 * 0.8)
        # 880 * 1.2 * 0.8
        assert result.final_points == 844


class TestComposePoints:
    def test_empty_bonus_list_is_base(self):
        assert compose_points(500, []) == 500

    def test_negative_total_clamped(self):
        penalty = PointBonus(kind="charm", multiplier=-2.0, description="test")
        assert compose_points(100, [penalty]) == 0
