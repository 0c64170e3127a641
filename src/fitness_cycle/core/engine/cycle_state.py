"""
Cycle state machine.

A user has at most one stored cycle record. It moves through

    NO_ACTIVE_CYCLE --start--> ACTIVE --complete--> COMPLETED --start--> ACTIVE
                                  |
                                  +--reset--> NO_ACTIVE_CYCLE

COMPLETED is transient: the record has been archived to the cycle history
and the next start replaces it. Every transition runs under the user's
lock; a violated precondition returns CycleOutcome(ok=False) and leaves the
store untouched.
"""

import logging

from ..config import (
    DAYS_IN_CYCLE,
    DAYS_IN_MICROCYCLE,
    DEFAULT_FREQUENCY,
    MS_PER_DAY,
    NEXT_CYCLE_DELAY_DAYS,
)
from ..models import (
    Cycle,
    CycleHistoryEntry,
    CycleHistorySummary,
    CycleOutcome,
    CycleState,
    WorkoutPlan,
)
from ..rotation import build_workout_plan
from ..schedule import next_monday, now_millis, start_of_day
from .ports import CycleStore, ExerciseCatalogPort

logger = logging.getLogger(__name__)


def state_of(cycle: Cycle | None) -> CycleState:
    """Classify a stored cycle record."""
    if cycle is None:
        return CycleState.NO_ACTIVE_CYCLE
    if cycle.completed_date is None:
        return CycleState.ACTIVE
    return CycleState.COMPLETED


def _failure(username: str, message: str) -> CycleOutcome:
    logger.info("%s: %s", username, message)
    return CycleOutcome(ok=False, error=message)


class CycleStateMachine:
    """
    Owns the cycle lifecycle of every user of one store.

    Args:
        store: Persistence collaborator
        catalog: Exercise catalog consulted when a new plan is built
        default_frequency: Used when a transition is not given a frequency
        recency_window: History entries consulted by the rotator (None = all)
    """

    def __init__(
        self,
        store: CycleStore,
        catalog: ExerciseCatalogPort,
        default_frequency: str = DEFAULT_FREQUENCY,
        recency_window: int | None = None,
    ):
        self.store = store
        self.catalog = catalog
        self.default_frequency = default_frequency
        self.recency_window = recency_window

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_current_cycle(self, username: str) -> Cycle | None:
        """Return the stored cycle record (active or just completed), or None."""
        return self.store.load_cycle(username)

    def get_state(self, username: str) -> CycleState:
        return state_of(self.store.load_cycle(username))

    def get_plan(self, username: str) -> WorkoutPlan | None:
        return self.store.load_plan(username)

    def get_cycle_history(self, username: str) -> list[CycleHistoryEntry]:
        return self.store.load_cycle_history(username)

    def history_summary(self, username: str) -> CycleHistorySummary:
        """Aggregate the user's archived cycles."""
        history = self.store.load_cycle_history(username)
        if not history:
            return CycleHistorySummary(0, 0, 0.0)
        return CycleHistorySummary(
            total_completed_cycles=len(history),
            total_training_days=sum(h.days_completed for h in history),
            average_completion_percentage=(
                sum(h.completion_percentage for h in history) / len(history)
            ),
        )

    def _next_cycle_number(self, username: str, cycle: Cycle | None) -> int:
        """One past the highest cycle number the user has ever been assigned."""
        seen = [0]
        if cycle is not None:
            seen.append(cycle.cycle_number)
        seen.extend(h.cycle_number for h in self.store.load_cycle_history(username))
        seen.extend(h.cycle_number for h in self.store.load_cycle_exercise_history(username))
        return max(seen) + 1

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(
        self,
        username: str,
        start_date: int | None = None,
        frequency: str | None = None,
    ) -> CycleOutcome:
        """
        Start a new cycle and build its workout plan.

        Allowed when the user has no cycle or only a completed one. Any
        completion markers from the previous cycle are cleared.

        Args:
            username: Owner of the cycle
            start_date: First day of the cycle (epoch ms, default today);
                normalized to local midnight
            frequency: Weekly frequency used to schedule plan days
        """
        freq = frequency or self.default_frequency
        with self.store.lock(username):
            current = self.store.load_cycle(username)
            if state_of(current) is CycleState.ACTIVE:
                return _failure(
                    username,
                    f"Cycle {current.cycle_number} is already active; "
                    "complete or reset it first",
                )

            number = self._next_cycle_number(username, current)
            start = start_of_day(start_date if start_date is not None else now_millis())
            plan, usage = build_workout_plan(
                number,
                start,
                freq,
                self.catalog,
                self.store.load_cycle_exercise_history(username),
                recency_window=self.recency_window,
                stats_log=self.store.load_exercise_stats_log(username),
            )

            cycle = Cycle(cycle_number=number, start_date=start)
            self.store.clear_completion(username)
            self.store.save_plan(username, plan)
            self.store.append_cycle_exercise_history(username, usage)
            self.store.save_cycle(username, cycle)

        logger.info("%s: started cycle %d (%s, %s)", username, number, freq, plan.pool_id)
        return CycleOutcome(ok=True, cycle=cycle, plan=plan)

    def record_progress(
        self,
        username: str,
        days_completed: int,
        now: int | None = None,
    ) -> CycleOutcome:
        """
        Raise the active cycle's completed-day count.

        The count never decreases and is capped at the cycle length. The
        microcycle counter follows it. Reaching the cycle length completes
        the cycle.
        """
        with self.store.lock(username):
            cycle = self.store.load_cycle(username)
            if state_of(cycle) is not CycleState.ACTIVE:
                return _failure(username, "No active cycle")

            days = min(cycle.total_days, max(cycle.days_completed, days_completed))
            microcycles = days // DAYS_IN_MICROCYCLE
            changed = days != cycle.days_completed
            cycle.days_completed = days
            if microcycles > cycle.completed_microcycles:
                cycle.completed_microcycles = microcycles
                changed = True
            if changed:
                self.store.save_cycle(username, cycle)
                logger.debug("%s: cycle %d at %d days", username, cycle.cycle_number, days)

            if days >= cycle.total_days:
                return self.complete(username, completed_date=now)

        return CycleOutcome(ok=True, cycle=cycle)

    def complete(
        self,
        username: str,
        completed_date: int | None = None,
        force: bool = False,
    ) -> CycleOutcome:
        """
        Archive the active cycle.

        Requires every day of the cycle to be completed unless force is set.
        The archived entry is appended at most once per cycle number.
        """
        with self.store.lock(username):
            cycle = self.store.load_cycle(username)
            if state_of(cycle) is not CycleState.ACTIVE:
                return _failure(username, "No active cycle")
            if not force and cycle.days_completed < cycle.total_days:
                return _failure(
                    username,
                    f"Cycle {cycle.cycle_number} has {cycle.days_completed} of "
                    f"{cycle.total_days} days completed",
                )

            stamp = completed_date if completed_date is not None else now_millis()
            entry = CycleHistoryEntry(
                cycle_number=cycle.cycle_number,
                start_date=cycle.start_date,
                completed_date=stamp,
                days_completed=cycle.days_completed,
            )
            archived = self.store.load_cycle_history(username)
            if not any(h.cycle_number == cycle.cycle_number for h in archived):
                self.store.append_cycle_history(username, entry)
            cycle.completed_date = stamp
            self.store.save_cycle(username, cycle)

        logger.info("%s: completed cycle %d", username, cycle.cycle_number)
        return CycleOutcome(ok=True, cycle=cycle, archived=entry)

    def reset(self, username: str) -> CycleOutcome:
        """Abandon the active cycle. Nothing is archived."""
        with self.store.lock(username):
            cycle = self.store.load_cycle(username)
            if state_of(cycle) is not CycleState.ACTIVE:
                return _failure(username, "No active cycle to reset")
            self.store.delete_plan(username)
            self.store.clear_completion(username)
            self.store.delete_cycle(username)

        logger.info("%s: reset cycle %d", username, cycle.cycle_number)
        return CycleOutcome(ok=True, cycle=cycle)

    # ------------------------------------------------------------------
    # Lifecycle helpers
    # ------------------------------------------------------------------

    def initialize(
        self,
        username: str,
        frequency: str | None = None,
        now: int | None = None,
    ) -> CycleOutcome:
        """
        Make sure the user has an active cycle with a plan.

        Starts a cycle when there is none (or only a completed one). An
        active cycle of a non-standard length, left over from older data,
        is force-completed and replaced. A missing plan is rebuilt.
        """
        now = now if now is not None else now_millis()
        with self.store.lock(username):
            cycle = self.store.load_cycle(username)
            if state_of(cycle) is not CycleState.ACTIVE:
                return self.start(username, start_date=now, frequency=frequency)

            if cycle.total_days != DAYS_IN_CYCLE:
                logger.info(
                    "%s: cycle %d has legacy length %d, replacing it",
                    username,
                    cycle.cycle_number,
                    cycle.total_days,
                )
                self.complete(username, completed_date=now, force=True)
                return self.start(username, start_date=now, frequency=frequency)

            plan = self.store.load_plan(username)
            if plan is None or plan.cycle_number != cycle.cycle_number:
                plan = self._rebuild_plan(username, cycle, frequency or self.default_frequency)

        return CycleOutcome(ok=True, cycle=cycle, plan=plan)

    def _rebuild_plan(self, username: str, cycle: Cycle, frequency: str) -> WorkoutPlan:
        """Rebuild the plan of the active cycle from the history before it."""
        usage = self.store.load_cycle_exercise_history(username)
        earlier = [h for h in usage if h.cycle_number < cycle.cycle_number]
        plan, entry = build_workout_plan(
            cycle.cycle_number,
            cycle.start_date,
            frequency,
            self.catalog,
            earlier,
            recency_window=self.recency_window,
            total_days=cycle.total_days,
            stats_log=self.store.load_exercise_stats_log(username),
        )
        self.store.save_plan(username, plan)
        if not any(h.cycle_number == cycle.cycle_number for h in usage):
            self.store.append_cycle_exercise_history(username, entry)
        logger.warning("%s: rebuilt missing plan for cycle %d", username, cycle.cycle_number)
        return plan

    def start_next_cycle_if_due(
        self,
        username: str,
        frequency: str | None = None,
        now: int | None = None,
    ) -> CycleOutcome | None:
        """
        Start the next cycle once a completed one has rested long enough.

        The new cycle begins on the next Monday. Returns None when nothing
        is due.
        """
        now = now if now is not None else now_millis()
        with self.store.lock(username):
            cycle = self.store.load_cycle(username)
            if state_of(cycle) is not CycleState.COMPLETED:
                return None
            if now - cycle.completed_date < NEXT_CYCLE_DELAY_DAYS * MS_PER_DAY:
                return None
            return self.start(username, start_date=next_monday(now), frequency=frequency)
