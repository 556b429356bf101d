"""Tests for the workout rune resolver."""

import pytest

from repforge.core.catalog import RuneDefinition
from repforge.core.rune_effects import WorkoutRuneContext, resolve_rune_bonuses


def _workout(
    exercises: int = 3,
    sets: int = 9,
    prs: int = 0,
    muscles: int = 2,
    workouts: int = 1,
    points: int = 1000,
) -> WorkoutRuneContext:
    return WorkoutRuneContext(
        exercise_count=exercises,
        total_sets=sets,
        pr_count=prs,
        muscle_group_count=muscles,
        workouts_this_week=workouts,
        base_points=points,
    )


class TestRuneEffects:
    def test_nothing_equipped(self):
        result = resolve_rune_bonuses([], _workout())
        assert result.bonus_points == 0
        assert result.evaluations == []

    def test_conditions_not_met(self):
        ids = ["endurance", "consistency", "pr_hunter", "volume_king", "full_body"]
        result = resolve_rune_bonuses(ids, _workout())
        assert [e.rune_id for e in result.evaluations] == ids
        assert not any(e.effect.triggered for e in result.evaluations)
        assert result.bonus_points == 0

    def test_pr_hunter_flat_per_pr(self):
        result = resolve_rune_bonuses(["pr_hunter"], _workout(prs=2))
        assert result.total_flat_bonus == 5000
        assert result.bonus_points == 5000

    def test_volume_king(self):
        assert resolve_rune_bonuses(["volume_king"], _workout(sets=10)).bonus_points == 200

    def test_endurance_scales_per_extra_exercise(self):
        result = resolve_rune_bonuses(["endurance"], _workout(exercises=5))
        assert result.total_percent_bonus == pytest.approx(0.10)
        assert result.bonus_points == 100

    def test_consistency_counts_this_workout(self):
        assert resolve_rune_bonuses(["consistency"], _workout(workouts=3)).bonus_points == 150

    def test_full_body(self):
        assert resolve_rune_bonuses(["full_body"], _workout(muscles=3)).bonus_points == 250

    def test_percentages_sum_before_flooring(self):
        result = resolve_rune_bonuses(["volume_king", "endurance"], _workout(exercises=5, sets=10))
        assert result.bonus_points == 300

    def test_percent_and_flat_combine(self):
        result = resolve_rune_bonuses(["volume_king", "pr_hunter"], _workout(sets=12, prs=1, points=1234))
        # floor(1234 * 0.2) + 2500
        assert result.bonus_points == 246 + 2500

    def test_unknown_and_duplicate_ids_skipped(self):
        result = resolve_rune_bonuses(["volume_king", "mystery", "volume_king"], _workout(sets=10))
        assert len(result.evaluations) == 1
        assert result.bonus_points == 200

    def test_custom_catalog(self):
        catalog = {
            "grind": RuneDefinition(
                item_id="grind",
                name="Grind",
                description="test",
                rarity="rare",
                effect_type="total_volume",
                percent_bonus=0.5,
                params={"min_sets": 20},
            )
        }
        assert resolve_rune_bonuses(["grind"], _workout(sets=19), catalog).bonus_points == 0
        assert resolve_rune_bonuses(["grind"], _workout(sets=20), catalog).bonus_points == 500
