"""
Collaborator interfaces for the training engine.

The engine depends only on these protocols: a per-user persistence store
and a read-only exercise catalog. io.user_store.UserStore and
core.catalog.ExerciseCatalog are the shipped implementations.
"""

from contextlib import AbstractContextManager
from typing import Protocol

from ..catalog.base import ExerciseDescriptor
from ..models import (
    BodyMeasurement,
    CompletionDocument,
    CompletionKey,
    Cycle,
    CycleExerciseHistory,
    CycleHistoryEntry,
    ExerciseStats,
    WorkoutPlan,
)


class CycleStore(Protocol):
    """
    Per-user persistence for cycle records, completion markers and logs.

    Every method is keyed by username; records are never shared across
    users. Missing or unreadable documents load as None / empty.
    """

    def lock(self, username: str) -> AbstractContextManager[None]:
        """
        Exclusive hold on the user's records, re-entrant within a thread.

        Every store instance over the same storage hands out the same lock,
        so sequences of calls made under it are atomic across instances.
        """
        ...

    def load_cycle(self, username: str) -> Cycle | None:
        """Return the user's single cycle record, active or completed."""
        ...

    def save_cycle(self, username: str, cycle: Cycle) -> None:
        ...

    def delete_cycle(self, username: str) -> None:
        ...

    def load_cycle_history(self, username: str) -> list[CycleHistoryEntry]:
        """Return archived cycles in append order."""
        ...

    def append_cycle_history(self, username: str, entry: CycleHistoryEntry) -> None:
        ...

    def load_completion_markers(self, username: str) -> set[CompletionKey]:
        """Return the structured markers as stored, without migrating legacy keys."""
        ...

    def set_completion_marker(self, username: str, key: CompletionKey) -> None:
        ...

    def clear_completion_marker(self, username: str, key: CompletionKey) -> None:
        ...

    def clear_completion(self, username: str) -> None:
        """Remove every marker, keeping the document at the current schema version."""
        ...

    def load_completion_document(self, username: str) -> CompletionDocument | None:
        ...

    def save_completion_document(self, username: str, document: CompletionDocument) -> None:
        """Replace the completion document in one atomic write."""
        ...

    def load_plan(self, username: str) -> WorkoutPlan | None:
        ...

    def save_plan(self, username: str, plan: WorkoutPlan) -> None:
        ...

    def delete_plan(self, username: str) -> None:
        ...

    def load_exercise_stats_log(self, username: str) -> list[ExerciseStats]:
        """Return every logged set, oldest first."""
        ...

    def append_exercise_stats(self, username: str, stats: ExerciseStats) -> None:
        ...

    def clear_exercise_stats(self, username: str) -> None:
        ...

    def load_cycle_exercise_history(self, username: str) -> list[CycleExerciseHistory]:
        """Return per-cycle exercise usage ordered by cycle number."""
        ...

    def append_cycle_exercise_history(self, username: str, entry: CycleExerciseHistory) -> None:
        ...

    def load_body_measurements(self, username: str) -> list[BodyMeasurement]:
        """Return every body measurement, oldest first."""
        ...

    def append_body_measurements(self, username: str, measurements: list[BodyMeasurement]) -> None:
        ...


class ExerciseCatalogPort(Protocol):
    """Static slot -> candidates and exercise -> muscle-group lookups."""

    def slot_sequence(self) -> list[str]:
        """Slot names in the order they are assigned to consecutive plan days."""
        ...

    def candidates_for(self, slot: str) -> list[ExerciseDescriptor]:
        ...

    def exercises_per_day(self, slot: str) -> int:
        ...

    def muscle_groups_for(self, exercise_name: str) -> list[str]:
        ...

    def muscle_lookup(self) -> dict[str, list[str]]:
        ...
