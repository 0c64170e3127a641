"""
Tests for adaptive weight progression.
"""

import pytest

from fitness_cycle.core.config import MS_PER_DAY
from fitness_cycle.core.models import ExerciseStats, WeightChange
from fitness_cycle.core.progression import (
    adaptive_weight,
    parse_target_reps,
    recent_sets,
    round_to_standard_weight,
    weight_progression,
)

from conftest import MONDAY

USER = "alice"


def _sets(name: str, weight: float, *reps: int, day: int = 0) -> list[ExerciseStats]:
    return [
        ExerciseStats(name, MONDAY + day * MS_PER_DAY, weight, r, set_number=i)
        for i, r in enumerate(reps, 1)
    ]


class TestRounding:
    """Standard dumbbell / barbell weights."""

    @pytest.mark.parametrize(
        "weight,expected",
        [
            (11.25, 11.25),
            (43.75, 45.0),
            (41.25, 40.0),
            (61.25, 60.0),
            (16.25, 15.0),  # tie goes to the lighter weight
            (0.0, 1.25),
            (104.0, 105.0),
            (103.75, 102.5),
        ],
    )
    def test_round(self, weight, expected):
        assert round_to_standard_weight(weight) == expected


class TestTargetReps:
    @pytest.mark.parametrize(
        "reps,expected",
        [("10", 10.0), ("8-12", 10.0), ("12,10,8", 10.0), ("15", 15.0)],
    )
    def test_parse(self, reps, expected):
        assert parse_target_reps(reps) == expected

    @pytest.mark.parametrize("reps", ["", "max", "8-10-12"])
    def test_unusable(self, reps):
        assert parse_target_reps(reps) is None


class TestAdaptiveWeight:
    """Average of the last two sets against the target."""

    def test_recent_sets_are_the_latest(self):
        log = _sets("Squat", 50, 10, 10, day=0) + _sets("Squat", 55, 8, 9, day=1) + _sets("Row", 30, 12)
        assert [(s.weight, s.reps) for s in recent_sets(log, "Squat")] == [(55, 8), (55, 9)]

    def test_needs_two_sets(self):
        assert adaptive_weight(_sets("Squat", 40, 20), 10) is None

    def test_two_reps_above_target_adds_a_step(self):
        assert adaptive_weight(_sets("Bench Press", 42.5, 13, 11), 10) == 45.0

    def test_below_margin(self):
        assert adaptive_weight(_sets("Bench Press", 42.5, 12, 11), 10) is None


class TestWeightProgression:
    """Per-exercise result with the direction of the change."""

    def test_no_load(self):
        result = weight_progression("Pull-Up", None, _sets("Pull-Up", 0, 15, 15), "10")
        assert result.change is WeightChange.UNCHANGED
        assert result.new_weight is None

    def test_no_history(self):
        result = weight_progression("Squat", 60.0, _sets("Squat", 60, 12), "10")
        assert result.change is WeightChange.NO_HISTORY
        assert result.new_weight == 60.0

    def test_increased(self):
        result = weight_progression("Bench Press", 40.0, _sets("Bench Press", 42.5, 12, 13), "10")
        assert result.change is WeightChange.INCREASED
        assert (result.old_weight, result.new_weight) == (40.0, 45.0)

    def test_decreased(self):
        result = weight_progression("Bench Press", 50.0, _sets("Bench Press", 40, 12, 12), "10")
        assert result.change is WeightChange.DECREASED
        assert result.new_weight == 40.0

    def test_already_at_earned_weight(self):
        result = weight_progression("Bench Press", 45.0, _sets("Bench Press", 42.5, 12, 13), "10")
        assert result.change is WeightChange.UNCHANGED
        assert result.new_weight == 45.0

    def test_target_not_beaten(self):
        result = weight_progression("Bench Press", 40.0, _sets("Bench Press", 40, 10, 11), "8-12")
        assert result.change is WeightChange.UNCHANGED
        assert result.new_weight == 40.0


class TestEngineProgression:
    """Adaptive weights in plans built and updated by the engine."""

    def _bench_weights(self, engine) -> set[float]:
        plan = engine.plan(USER)
        return {e.recommended_weight for d in plan.days for e in d.exercises if e.name == "Bench Press"}

    def test_new_cycle_uses_logged_sets(self, engine):
        for s in _sets("Bench Press", 42.5, 13, 12):
            engine.log_set(USER, s.exercise_name, s.weight, s.reps, date=s.date, set_number=s.set_number)

        engine.start_cycle(USER, start_date=MONDAY)

        assert self._bench_weights(engine) == {45.0}

    def test_apply_updates_every_plan_day(self, engine):
        engine.start_cycle(USER, start_date=MONDAY)
        for s in _sets("Bench Press", 42.5, 13, 12):
            engine.log_set(USER, s.exercise_name, s.weight, s.reps, date=s.date, set_number=s.set_number)

        results = {r.exercise_name: r for r in engine.apply_weight_progression(USER)}

        assert results["Bench Press"].change is WeightChange.INCREASED
        assert results["Squat"].change is WeightChange.NO_HISTORY
        assert self._bench_weights(engine) == {45.0}

    def test_dry_run_leaves_plan(self, engine):
        engine.start_cycle(USER, start_date=MONDAY)
        for s in _sets("Bench Press", 42.5, 13, 12):
            engine.log_set(USER, s.exercise_name, s.weight, s.reps, date=s.date, set_number=s.set_number)

        results = engine.apply_weight_progression(USER, dry_run=True)

        assert any(r.change is WeightChange.INCREASED for r in results)
        assert self._bench_weights(engine) == {40.0}

    def test_without_cycle(self, engine):
        assert engine.apply_weight_progression(USER) is None
