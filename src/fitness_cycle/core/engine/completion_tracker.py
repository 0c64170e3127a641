"""
Store-backed completion tracking.

Marks and un-marks exercises on plan days and forwards the resulting day
count to the cycle state machine. The mark -> recount -> progress sequence
runs under the user's lock, as does the one-time legacy key migration.
"""

import logging

from ..completion import (
    day_completion_status,
    get_completed_day_count,
    migrate_legacy_keys as convert_legacy_keys,
    parse_legacy_key,
)
from ..config import COMPLETION_SCHEMA_VERSION
from ..models import (
    CompletionDocument,
    CompletionKey,
    CycleState,
    DayCompletionStatus,
    MigrationReport,
    ProgressUpdate,
)
from .cycle_state import CycleStateMachine, state_of

logger = logging.getLogger(__name__)


def _rejected(username: str, message: str) -> ProgressUpdate:
    logger.info("%s: %s", username, message)
    return ProgressUpdate(ok=False, error=message)


class CompletionTracker:
    """Completion markers of every user of one store."""

    def __init__(self, cycles: CycleStateMachine):
        self.cycles = cycles
        self.store = cycles.store

    def migrate_legacy_keys(self, username: str) -> MigrationReport:
        """
        Convert legacy string markers to structured keys, once.

        The converted markers and the new schema version are written in a
        single document, so a finished migration is never repeated.
        Name-only keys need the current plan to find their day; without a
        plan the migration is deferred and nothing is written.
        """
        with self.store.lock(username):
            doc = self.store.load_completion_document(username)
            if doc is None:
                return MigrationReport(performed=False)
            if doc.schema_version >= COMPLETION_SCHEMA_VERSION and not doc.legacy_keys:
                return MigrationReport(performed=False)

            plan = self.store.load_plan(username)
            needs_plan = any(
                not isinstance(parse_legacy_key(raw), CompletionKey) for raw in doc.legacy_keys
            )
            if plan is None and needs_plan:
                logger.info("%s: no workout plan yet, deferring completion migration", username)
                return MigrationReport(performed=False, deferred=True)

            converted, unresolved = convert_legacy_keys(doc.legacy_keys, plan)
            for raw in unresolved:
                logger.warning("%s: dropping unresolvable completion key %r", username, raw)

            self.store.save_completion_document(
                username,
                CompletionDocument(
                    schema_version=COMPLETION_SCHEMA_VERSION,
                    markers=doc.markers | converted,
                ),
            )

        logger.info(
            "%s: migrated %d legacy completion keys (%d dropped)",
            username,
            len(converted),
            len(unresolved),
        )
        return MigrationReport(performed=True, migrated=len(converted), dropped=len(unresolved))

    def get_completed_set(self, username: str) -> set[CompletionKey]:
        """Return the user's completion markers, migrating legacy keys first."""
        self.migrate_legacy_keys(username)
        return self.store.load_completion_markers(username)

    def completed_day_count(self, username: str) -> int:
        return get_completed_day_count(self.store.load_plan(username), self.get_completed_set(username))

    def day_status(self, username: str) -> DayCompletionStatus:
        return day_completion_status(self.store.load_plan(username), self.get_completed_set(username))

    def mark_exercise(
        self,
        username: str,
        day_index: int,
        exercise_name: str,
        completed: bool = True,
        now: int | None = None,
    ) -> ProgressUpdate:
        """
        Mark (or un-mark) one exercise on one plan day.

        The exercise must be planned on that day of the active cycle.
        After the marker changes, the touched-day count is forwarded to the
        state machine; un-marking never lowers the cycle's progress.

        Args:
            username: Owner of the cycle
            day_index: 0-based plan day
            exercise_name: Exercise planned on that day
            completed: True to mark, False to remove the marker
            now: Completion time used if the cycle finishes (epoch ms)
        """
        with self.store.lock(username):
            cycle = self.store.load_cycle(username)
            if state_of(cycle) is not CycleState.ACTIVE:
                return _rejected(username, "No active cycle")

            plan = self.store.load_plan(username)
            if plan is None or plan.cycle_number != cycle.cycle_number:
                return _rejected(username, "No workout plan for the active cycle")

            day = plan.day(day_index)
            if day is None:
                return _rejected(
                    username,
                    f"Day {day_index} is outside the plan (0-{len(plan.days) - 1})",
                )
            if not day.has_exercise(exercise_name):
                return _rejected(username, f"{exercise_name!r} is not planned on day {day_index}")

            self.migrate_legacy_keys(username)
            key = CompletionKey(day_index, exercise_name)
            if completed:
                self.store.set_completion_marker(username, key)
            else:
                self.store.clear_completion_marker(username, key)

            count = get_completed_day_count(plan, self.store.load_completion_markers(username))
            outcome = self.cycles.record_progress(username, count, now=now)

        return ProgressUpdate(
            ok=outcome.ok,
            completed_days=count,
            cycle=outcome.cycle,
            cycle_completed=outcome.archived is not None,
            archived=outcome.archived,
            error=outcome.error,
        )
