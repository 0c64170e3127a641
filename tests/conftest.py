"""Shared fixtures: small hand-built catalogs, a temporary store and an engine."""

from datetime import date

import pytest

from fitness_cycle.core.catalog.base import ExerciseCatalog, ExerciseDescriptor, SlotDefinition
from fitness_cycle.core.engine.training_engine import TrainingEngine
from fitness_cycle.core.schedule import to_millis
from fitness_cycle.io.user_store import UserStore

# 2024-01-01 is a Monday
MONDAY = to_millis(date(2024, 1, 1))


def ex(name: str, *groups: str, weight: float | None = None) -> ExerciseDescriptor:
    return ExerciseDescriptor(name=name, muscle_groups=groups, recommended_weight=weight)


def full_body_catalog() -> ExerciseCatalog:
    """One slot, so every plan day contains Squat."""
    return ExerciseCatalog(
        slots=(
            SlotDefinition(
                name="Full Body",
                exercises_per_day=2,
                exercises=(
                    ex("Squat", "quads", "glutes", weight=60.0),
                    ex("Bench Press", "chest", "triceps", weight=40.0),
                ),
            ),
        )
    )


def split_catalog() -> ExerciseCatalog:
    """Two alternating slots with more candidates than daily places."""
    return ExerciseCatalog(
        slots=(
            SlotDefinition(
                name="Upper",
                exercises_per_day=2,
                exercises=(
                    ex("Bench Press", "chest", "triceps", weight=40.0),
                    ex("Barbell Row", "back", "biceps", weight=30.0),
                    ex("Overhead Press", "shoulders", weight=25.0),
                    ex("Pull-Up", "back", "biceps"),
                ),
            ),
            SlotDefinition(
                name="Lower",
                exercises_per_day=2,
                exercises=(
                    ex("Squat", "quads", "glutes", weight=60.0),
                    ex("Deadlift", "hamstrings", "back", weight=80.0),
                    ex("Lunge", "quads", "glutes", weight=10.0),
                ),
            ),
        )
    )


@pytest.fixture
def store(tmp_path) -> UserStore:
    return UserStore(tmp_path / "data")


@pytest.fixture
def engine(store) -> TrainingEngine:
    return TrainingEngine(store, full_body_catalog())


@pytest.fixture
def split_engine(store) -> TrainingEngine:
    return TrainingEngine(store, split_catalog())
