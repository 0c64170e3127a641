"""
Minimal smoke tests for the fitness-cycle CLI.

Tests basic functionality:
- App runs and shows help
- A cycle can be started, inspected and reset
- Exercises can be marked and unmarked
- Sets can be logged and summarized
"""

import json

import pytest
from typer.testing import CliRunner

from fitness_cycle.cli.main import app
from fitness_cycle.core.catalog import registry
from fitness_cycle.core.engine.config_loader import DATA_DIR_ENV


runner = CliRunner()


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """A fresh data directory, with HOME pointing away from real user overrides."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv(DATA_DIR_ENV, raising=False)
    monkeypatch.setattr(registry, "_CATALOG", None)
    return tmp_path / "data"


def invoke(data_dir, *args):
    return runner.invoke(app, [*args, "--data-dir", str(data_dir)])


def invoke_json(data_dir, *args):
    result = invoke(data_dir, *args, "--json")
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "fitness-cycle" in result.output or "cycle" in result.output.lower()

    def test_start_and_status(self, data_dir):
        result = invoke(data_dir, "start", "--date", "2024-01-01")
        assert result.exit_code == 0, result.output
        assert "Started cycle 1" in result.output

        data = invoke_json(data_dir, "status")
        assert data["state"] == "active"
        assert data["cycle"]["cycle_number"] == 1
        assert data["cycle"]["start_date"] == "2024-01-01"
        assert data["completed_day_count"] == 0

    def test_second_start_fails(self, data_dir):
        assert invoke(data_dir, "start").exit_code == 0
        result = invoke(data_dir, "start")
        assert result.exit_code == 1
        assert "already active" in result.output

    def test_status_without_cycle(self, data_dir):
        data = invoke_json(data_dir, "status")
        assert data["cycle"] is None

    def test_plan_has_thirty_days(self, data_dir):
        invoke(data_dir, "start", "--date", "2024-01-01", "-f", "3x/week")

        data = invoke_json(data_dir, "plan")

        assert data["cycle_number"] == 1
        assert len(data["days"]) == 30
        assert data["days"][0]["slot"] == "Arms"
        assert data["days"][0]["date"] == "2024-01-01"
        assert data["days"][1]["date"] == "2024-01-03"

    def test_plan_requires_cycle(self, data_dir):
        result = invoke(data_dir, "plan")
        assert result.exit_code == 1

    def test_mark_and_unmark(self, data_dir):
        invoke(data_dir, "start", "--date", "2024-01-01")
        first = invoke_json(data_dir, "plan", "--day", "0")["days"][0]["exercises"][0]["name"]

        marked = invoke_json(data_dir, "mark", "0", first)
        assert marked["completed_days"] == 1
        assert marked["days_completed"] == 1

        plan = invoke_json(data_dir, "plan", "--day", "0")
        assert plan["days"][0]["exercises"][0]["done"] is True

        unmarked = invoke_json(data_dir, "unmark", "0", first)
        assert unmarked["completed_days"] == 0
        assert unmarked["days_completed"] == 1

    def test_mark_unknown_exercise_fails(self, data_dir):
        invoke(data_dir, "start")
        result = invoke(data_dir, "mark", "0", "Moon Jump")
        assert result.exit_code == 1
        assert "not planned" in result.output

    def test_reset(self, data_dir):
        invoke(data_dir, "start")
        result = invoke(data_dir, "reset", "--force")
        assert result.exit_code == 0, result.output
        assert invoke_json(data_dir, "status")["state"] == "no_active_cycle"

    def test_history_empty(self, data_dir):
        data = invoke_json(data_dir, "history")
        assert data["cycles"] == []
        assert data["total_completed_cycles"] == 0

    def test_schedule(self, data_dir):
        data = invoke_json(data_dir, "schedule", "--date", "2024-01-01", "-f", "3x/week", "-n", "4")
        assert data["dates"] == ["2024-01-01", "2024-01-03", "2024-01-05", "2024-01-08"]

    def test_log_set_and_stats(self, data_dir):
        result = invoke(data_dir, "log-set", "Squat", "-s", "10@60,8@60")
        assert result.exit_code == 0, result.output

        data = invoke_json(data_dir, "stats")

        assert data["total_volume"] == 1080.0
        groups = {g["muscle_group"]: g for g in data["muscle_groups"]}
        assert groups["quads"]["total_volume"] == 1080.0
        assert groups["quads"]["total_sets"] == 2

    def test_stats_invalid_period(self, data_dir):
        result = invoke(data_dir, "stats", "--period", "decade")
        assert result.exit_code == 1

    def test_log_set_invalid_sets(self, data_dir):
        result = invoke(data_dir, "log-set", "Squat", "-s", "heavy")
        assert result.exit_code == 1

    def test_migrate_up_to_date(self, data_dir):
        data = invoke_json(data_dir, "migrate")
        assert data["performed"] is False

    def test_invalid_user(self, data_dir):
        result = invoke(data_dir, "status", "--user", "../evil")
        assert result.exit_code == 1

    def test_stats_daily_volume(self, data_dir):
        invoke(data_dir, "log-set", "Squat", "-s", "10@60", "--date", "2024-01-01")
        invoke(data_dir, "log-set", "Squat", "-s", "5@60", "--date", "2024-01-02")

        data = invoke_json(data_dir, "stats")
        assert data["daily_volume"] == [
            {"date": "2024-01-01", "volume": 600.0},
            {"date": "2024-01-02", "volume": 300.0},
        ]

        result = invoke(data_dir, "stats", "--daily")
        assert result.exit_code == 0, result.output
        assert "Daily Volume" in result.output

    def test_adapt_requires_cycle(self, data_dir):
        result = invoke(data_dir, "adapt")
        assert result.exit_code == 1
        assert "No active cycle" in result.output

    def test_adapt_reports_every_planned_exercise(self, data_dir):
        invoke(data_dir, "start", "--date", "2024-01-01")
        planned = {
            e["name"]
            for d in invoke_json(data_dir, "plan")["days"]
            for e in d["exercises"]
        }

        data = invoke_json(data_dir, "adapt", "--dry-run")

        assert data["applied"] is False
        assert {e["exercise"] for e in data["exercises"]} == planned
        assert all(e["change"] in ("no_history", "unchanged") for e in data["exercises"])

    def test_measure_and_body(self, data_dir):
        logged = invoke_json(
            data_dir, "measure", "weight=80", "height=180", "--date", "2024-01-01"
        )["measurements"]
        assert [m["parameter"] for m in logged] == ["weight", "height", "bmi"]
        assert logged[2]["calculated"] is True

        invoke(data_dir, "measure", "weight=79", "--date", "2024-01-08")
        data = invoke_json(data_dir, "body")

        latest = {m["parameter"]: m["value"] for m in data["latest"]}
        assert latest["weight"] == 79.0
        trends = {t["parameter"]: t for t in data["trends"]}
        assert trends["weight"]["slope_per_week"] == -1.0
        assert trends["weight"]["measurement_count"] == 2

    def test_measure_invalid_values(self, data_dir):
        assert invoke(data_dir, "measure", "wingspan=180").exit_code == 1
        assert invoke(data_dir, "measure", "weight=80", "--sex", "x").exit_code == 1

    def test_body_empty(self, data_dir):
        result = invoke(data_dir, "body")
        assert result.exit_code == 0, result.output
        assert "No body measurements" in result.output
