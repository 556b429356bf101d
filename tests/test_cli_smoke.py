"""
Minimal smoke tests for the repforge CLI.

Tests basic functionality:
- App runs and shows help
- A single set is scored
- The leveling curve is listed
- Charms and runes are listed
- A workout file is replayed
- A catalog is ranked
"""

import json

import pytest
import yaml
from typer.testing import CliRunner

from repforge.cli.main import app


runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep a developer's ~/.repforge overrides out of the tests."""
    monkeypatch.setenv("HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def workout_file(tmp_path):
    """A two-exercise workout in YAML."""
    path = tmp_path / "workout.yaml"
    path.write_text(yaml.safe_dump({
        "goal": "hypertrophy",
        "bodyweight_kg": 80,
        "started_at": "2026-03-02T18:00:00",
        "ended_at": "2026-03-02T18:40:00",
        "equipped_charms": ["first_rep"],
        "equipped_runes": ["pr_hunter"],
        "exercises": [
            {
                "exercise": {
                    "exercise_id": "bench",
                    "name": "Barbell Bench Press",
                    "muscle_group": "Chest",
                    "equipment": ["barbell"],
                    "is_compound": True,
                },
                "sets": [{"reps": 8, "weight_kg": 100}, {"reps": 8, "weight_kg": 100}],
            },
            {
                "exercise": {"exercise_id": "row", "name": "Cable Row", "muscle_group": "Back"},
                "sets": [{"reps": 10, "weight_kg": 60}, {"reps": 10, "weight_kg": 60}],
            },
        ],
    }), encoding="utf-8")
    return path


@pytest.fixture
def catalog_file(tmp_path):
    """An exercise catalog with recent workload."""
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({
        "exercises": [
            {"exercise_id": "bench", "name": "Bench Press", "muscle_group": "Chest", "equipment": ["barbell"]},
            {"exercise_id": "row", "name": "Row", "muscle_group": "Back", "equipment": ["barbell"]},
            {"exercise_id": "curl", "name": "Curl", "muscle_group": "Biceps", "equipment": ["dumbbell"]},
        ],
        "muscle_workload": {"chest": 12},
        "completed": ["curl"],
    }), encoding="utf-8")
    return path


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        """Test that app runs and shows help."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "score" in result.output
        assert "replay" in result.output

    def test_score_json(self):
        """Test score returns the worked example as JSON."""
        result = runner.invoke(app, ["score", "--reps", "8", "--weight", "100", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["base_points"] == 800
        assert data["final_points"] == 1000
        assert data["is_pr"] is True
        assert [b["kind"] for b in data["bonuses"]] == ["rep_range", "progressive_overload"]

    def test_score_with_charm_and_baseline(self):
        """Test score applies an equipped charm and a stored baseline."""
        result = runner.invoke(app, [
            "score", "-r", "8", "-w", "100",
            "--baseline-load", "110", "--baseline-reps", "8",
            "--charm", "first_rep", "--json",
        ])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["is_pr"] is False
        # 800 * (1 + 0.10 + 0.10)
        assert data["final_points"] == 960

    def test_score_table(self):
        """Test score renders the bonus table."""
        result = runner.invoke(app, ["score", "--reps", "5", "--weight", "60", "--set-number", "6"])
        assert result.exit_code == 0
        assert "volume_scaling" in result.output

    def test_score_invalid_set(self):
        """Test score rejects zero reps."""
        result = runner.invoke(app, ["score", "--reps", "0", "--weight", "100"])
        assert result.exit_code == 1

    def test_score_unknown_goal(self):
        """Test score rejects an unknown goal bucket."""
        result = runner.invoke(app, ["score", "--reps", "5", "--weight", "100", "--goal", "power"])
        assert result.exit_code == 1

    def test_levels_json(self):
        """Test levels lists the curve and resolves an XP total."""
        result = runner.invoke(app, ["levels", "--xp", "85", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["max_level"] == 25
        assert data["levels"][0] == {"level": 1, "xp_required": 15, "cumulative_xp": 15}
        assert data["reached"] == {"level": 4, "xp_in_level": 0, "xp_to_next_level": 36}

    def test_levels_negative_xp(self):
        """Test levels rejects negative XP."""
        result = runner.invoke(app, ["levels", "--xp=-1"])
        assert result.exit_code == 1

    def test_charms_json(self):
        """Test charms lists the bundled catalog."""
        result = runner.invoke(app, ["charms", "--json"])
        assert result.exit_code == 0
        ids = {c["id"] for c in json.loads(result.output)}
        assert {"momentum", "iron_will", "rage_mode"} <= ids

    def test_charms_by_level(self):
        """Test charms --level filters to droppable items."""
        result = runner.invoke(app, ["charms", "--level", "30", "--json"])
        assert result.exit_code == 0
        assert {c["rarity"] for c in json.loads(result.output)} == {"epic"}

    def test_runes_table(self):
        """Test charms --runes renders the rune table."""
        result = runner.invoke(app, ["charms", "--runes"])
        assert result.exit_code == 0
        assert "Runes" in result.output

    def test_replay_json(self, workout_file):
        """Test replay totals a workout file."""
        result = runner.invoke(app, ["replay", str(workout_file), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert len(data["sets"]) == 4
        assert data["pr_count"] == 2
        assert data["rune_points"] == 5000
        assert data["total_points"] == (
            data["set_points"] + data["completion"]["bonus_points"] + data["rune_points"]
        )
        assert data["streak"] == 1
        assert data["charm_drops"] == []
        assert {(b["exercise_id"], b["effective_load"], b["reps"]) for b in data["baselines"]} == {
            ("bench", 100.0, 8),
            ("row", 60.0, 10),
        }
        assert data["sets"][0]["xp_awards"][0]["muscle_group"] == "Chest"

    def test_replay_with_seed(self, workout_file):
        """Test replay rolls one charm drop per exercise when seeded."""
        first = runner.invoke(app, ["replay", str(workout_file), "--seed", "3", "--json"])
        second = runner.invoke(app, ["replay", str(workout_file), "--seed", "3", "--json"])
        assert first.exit_code == 0
        assert len(json.loads(first.output)["charm_drops"]) == 2
        assert first.output == second.output

    def test_replay_table(self, workout_file):
        """Test replay renders its human-readable summary."""
        result = runner.invoke(app, ["replay", str(workout_file)])
        assert result.exit_code == 0
        assert "Total" in result.output

    def test_replay_missing_file(self, tmp_path):
        """Test replay reports an unreadable file."""
        result = runner.invoke(app, ["replay", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1

    def test_recommend_json(self, catalog_file):
        """Test recommend ranks untrained muscles first and done exercises lower."""
        result = runner.invoke(app, ["recommend", str(catalog_file), "--json"])
        assert result.exit_code == 0
        ranked = [s["exercise_id"] for s in json.loads(result.output)]
        assert ranked == ["row", "curl", "bench"]

    def test_recommend_filter(self, catalog_file):
        """Test recommend limits the pool to the requested muscles."""
        result = runner.invoke(app, ["recommend", str(catalog_file), "-m", "chest", "--json"])
        assert result.exit_code == 0
        assert [s["exercise_id"] for s in json.loads(result.output)] == ["bench"]

    def test_bad_user_config_exits(self, isolated_home):
        """Test an inconsistent ~/.repforge/scoring.yaml stops the command."""
        user_dir = isolated_home / ".repforge"
        user_dir.mkdir()
        (user_dir / "scoring.yaml").write_text("leveling:\n  MAX_LEVEL: 0\n", encoding="utf-8")
        result = runner.invoke(app, ["levels"])
        assert result.exit_code == 1
        assert "Invalid scoring config" in result.output
