"""
Integration tests for WorkoutSession: sets flow through PR detection,
charms, scoring and muscle XP, and finish() adds the completion bonus,
runes and the new streak.
"""

import random
from datetime import datetime, timedelta

import pytest

from repforge.core.leveling import xp_for_level
from repforge.core.models import Exercise, ExerciseBaseline, MuscleProgress
from repforge.core.session import WorkoutSession

T0 = datetime(2026, 3, 2, 18, 0)

BENCH = Exercise("bench", "Bench Press", "Chest", equipment=("barbell",))
ROW = Exercise("row", "Barbell Row", "Back", equipment=("barbell",), is_compound=True)
CURL = Exercise("curl", "Dumbbell Curl", "Biceps", equipment=("dumbbell",))


def _session(**kwargs) -> WorkoutSession:
    kwargs.setdefault("goal", "hypertrophy")
    kwargs.setdefault("bodyweight_kg", 80.0)
    kwargs.setdefault("started_at", T0)
    return WorkoutSession(**kwargs)


class TestLogSet:
    def test_first_set_bootstraps_baseline(self):
        session = _session()
        logged = session.log_set(BENCH, 8, 100.0)
        assert logged.result.is_pr is True
        assert logged.result.final_points == 1000
        assert session.baselines[("bench", "hypertrophy")] == ExerciseBaseline("bench", "hypertrophy", 100.0, 8)

    def test_repeat_set_is_not_pr(self):
        session = _session()
        session.log_set(BENCH, 8, 100.0)
        second = session.log_set(BENCH, 8, 100.0)
        assert second.result.is_pr is False
        assert second.result.final_points == 880
        assert second.context.exercise_set_number == 2
        assert second.context.muscle_set_number == 2

    def test_first_workout_of_week_gets_no_weekly_bonus(self):
        logged = _session().log_set(BENCH, 8, 100.0)
        assert logged.context.weekly_muscle_sessions == 1
        assert logged.result.bonus("weekly_consistency") is None

    def test_weekly_sessions_count_this_workout(self):
        logged = _session(weekly_muscle_sessions={"Chest": 2}).log_set(BENCH, 8, 100.0)
        assert logged.result.bonus("weekly_consistency").multiplier == pytest.approx(0.10)

    def test_muscle_xp_applied(self):
        session = _session()
        first = session.log_set(BENCH, 8, 100.0)
        # PR doubles 8 XP: level 1 needs 15
        assert first.xp_awards[0].final_xp == 16
        assert session.muscle_progress["chest"].level == 1
        assert session.muscle_progress["chest"].xp_in_level == 1
        assert first.level_segments["chest"][0].leveled_up is True

        session.log_set(BENCH, 8, 100.0)
        assert session.muscle_progress["chest"].xp_in_level == 9
        assert session.rolling_7day_sets["chest"] == 2

    def test_compound_splits_xp(self):
        logged = _session().log_set(ROW, 8, 80.0)
        assert [(a.muscle_group, a.final_xp) for a in logged.xp_awards] == [("Back", 12), ("Biceps", 4)]
        assert set(logged.level_segments) == {"back", "biceps"}

    def test_volume_scaling_per_muscle(self):
        session = _session(baselines={("bench", "hypertrophy"): ExerciseBaseline("bench", "hypertrophy", 200.0, 8)})
        results = [session.log_set(BENCH, 8, 100.0).result for _ in range(6)]
        assert [r.volume_multiplier for r in results[:4]] == [1.0] * 4
        assert results[5].final_points < results[4].final_points < results[3].final_points

    def test_charm_applies(self):
        session = _session(equipped_charms=["first_rep"])
        first = session.log_set(BENCH, 8, 100.0)
        second = session.log_set(BENCH, 8, 100.0)
        assert first.result.final_points == 1080
        assert second.result.bonus("charm") is None

    def test_stored_progress_decayed_at_start(self):
        stored = MuscleProgress(
            "Chest", level=3, xp_in_level=10, total_xp=xp_for_level(3) + 10,
            last_trained_at=T0 - timedelta(days=8),
        )
        session = _session(muscle_progress={"Chest": stored})
        assert session.muscle_progress["chest"].xp_in_level == 5

    def test_invalid_set_rejected(self):
        with pytest.raises(ValueError):
            _session().log_set(BENCH, 0, 100.0)
        with pytest.raises(ValueError):
            _session().log_set(BENCH, 8, None)

    def test_invalid_session(self):
        with pytest.raises(ValueError):
            _session(goal="power")
        with pytest.raises(ValueError):
            _session(bodyweight_kg=0)


class TestFinish:
    def test_totals(self):
        session = _session()
        for _ in range(3):
            session.log_set(BENCH, 8, 100.0)
        summary = session.finish(T0 + timedelta(minutes=30))

        assert summary.set_points == 1000 + 880 + 880
        assert summary.completion.bonus_points == 75
        assert summary.runes.bonus_points == 0
        assert summary.total_points == 2835
        assert summary.streak == 1
        assert summary.pr_count == 1
        assert summary.stats.exercise_count == 1

    def test_runes_applied(self):
        session = _session(equipped_runes=["pr_hunter", "full_body"])
        for ex in (BENCH, ROW, CURL):
            session.log_set(ex, 8, 40.0)
        summary = session.finish(T0 + timedelta(minutes=20))
        # Three PRs and three primary muscles
        assert summary.pr_count == 3
        assert summary.runes.total_flat_bonus == 7500
        assert summary.runes.total_percent_bonus == pytest.approx(0.25)
        assert summary.total_points == (
            summary.set_points + summary.completion.bonus_points + summary.runes.bonus_points
        )

    def test_streak_continues(self):
        session = _session(current_streak=4, last_workout_at=T0 - timedelta(days=2))
        session.log_set(BENCH, 8, 100.0)
        assert session.finish(T0 + timedelta(minutes=5)).streak == 5

    def test_streak_breaks(self):
        session = _session(current_streak=4, last_workout_at=T0 - timedelta(days=6))
        assert session.finish(T0 + timedelta(minutes=5)).streak == 1

    def test_finished_session_is_closed(self):
        session = _session()
        session.finish(T0)
        with pytest.raises(ValueError):
            session.finish(T0)
        with pytest.raises(ValueError):
            session.log_set(BENCH, 8, 100.0)

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            _session().finish(T0 - timedelta(minutes=1))


class TestCompleteExercise:
    def test_single_set_feeds_pity(self):
        session = _session(sets_since_last_charm=3)
        session.log_set(BENCH, 8, 100.0)
        drop = session.complete_exercise(BENCH, random.Random(7))
        assert drop.eligible is False
        assert session.sets_since_last_charm == 4

    def test_drop_resets_pity(self):
        session = _session(sets_since_last_charm=40)
        for _ in range(3):
            session.log_set(BENCH, 8, 100.0)
        drop = session.complete_exercise(BENCH, random.Random(7))
        # Far past the pity threshold the drop is guaranteed
        assert drop.did_drop is True
        assert drop.rarity == "common"
        assert session.sets_since_last_charm == 0
