"""
Training engine facade.

Wires the store, the catalog and the cycle/completion components together
and exposes the read-side statistics. The CLI talks to this class only.

Data flow:
    mark_exercise -> CompletionTracker records the marker
                  -> CycleStateMachine re-evaluates day / cycle completion
                  -> completed cycles are archived to the history
    start_cycle   -> the exercise rotator builds the next plan, with weights
                     adapted to the logged sets
    statistics    -> recomputed from the full stats log on every call
"""

import logging
from collections.abc import Mapping

from .. import body, statistics
from ..config import (
    BALANCE_TOLERANCE,
    DAYS_IN_CYCLE,
    DEFAULT_FREQUENCY,
    STALE_GROUP_DAYS,
    SUPPORTED_SEXES,
    TREND_HORIZON_DAYS,
)
from ..models import (
    BodyMeasurement,
    BodyParameter,
    BodyParameterTrend,
    CompletionKey,
    Cycle,
    CycleHistoryEntry,
    CycleHistorySummary,
    CycleOutcome,
    CycleState,
    DayCompletionStatus,
    ExerciseProgress,
    ExerciseStats,
    Insight,
    MigrationReport,
    MuscleGroupSummary,
    ProgressUpdate,
    WeightProgression,
    WorkoutPlan,
)
from ..progression import weight_progression
from ..schedule import generate_schedule, now_millis
from .completion_tracker import CompletionTracker
from .config_loader import EngineSettings
from .cycle_state import CycleStateMachine
from .ports import CycleStore, ExerciseCatalogPort

logger = logging.getLogger(__name__)


class TrainingEngine:
    """
    Entry point for cycle tracking and progress statistics.

    Args:
        store: Per-user persistence
        catalog: Exercise catalog
        settings: Tunables (frequency default, rotation window, insight
            thresholds); defaults apply when omitted
    """

    def __init__(
        self,
        store: CycleStore,
        catalog: ExerciseCatalogPort,
        settings: EngineSettings | None = None,
    ):
        self.store = store
        self.catalog = catalog
        self.settings = settings
        self.cycles = CycleStateMachine(
            store,
            catalog,
            default_frequency=settings.default_frequency if settings else DEFAULT_FREQUENCY,
            recency_window=settings.recency_window if settings else None,
        )
        self.completion = CompletionTracker(self.cycles)

    # ------------------------------------------------------------------
    # Cycle lifecycle
    # ------------------------------------------------------------------

    def start_cycle(
        self,
        username: str,
        start_date: int | None = None,
        frequency: str | None = None,
    ) -> CycleOutcome:
        return self.cycles.start(username, start_date=start_date, frequency=frequency)

    def initialize(self, username: str, frequency: str | None = None, now: int | None = None) -> CycleOutcome:
        return self.cycles.initialize(username, frequency=frequency, now=now)

    def record_progress(self, username: str, days_completed: int) -> CycleOutcome:
        return self.cycles.record_progress(username, days_completed)

    def complete_cycle(self, username: str, completed_date: int | None = None) -> CycleOutcome:
        return self.cycles.complete(username, completed_date=completed_date)

    def reset_cycle(self, username: str) -> CycleOutcome:
        return self.cycles.reset(username)

    def start_next_cycle_if_due(
        self,
        username: str,
        frequency: str | None = None,
        now: int | None = None,
    ) -> CycleOutcome | None:
        return self.cycles.start_next_cycle_if_due(username, frequency=frequency, now=now)

    def current_cycle(self, username: str) -> Cycle | None:
        return self.cycles.get_current_cycle(username)

    def state(self, username: str) -> CycleState:
        return self.cycles.get_state(username)

    def plan(self, username: str) -> WorkoutPlan | None:
        return self.cycles.get_plan(username)

    def cycle_history(self, username: str) -> list[CycleHistoryEntry]:
        return self.cycles.get_cycle_history(username)

    def history_summary(self, username: str) -> CycleHistorySummary:
        return self.cycles.history_summary(username)

    @staticmethod
    def schedule(
        start_date: int,
        frequency: str = DEFAULT_FREQUENCY,
        total_days: int = DAYS_IN_CYCLE,
    ) -> list[int]:
        return generate_schedule(start_date, frequency, total_days)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def mark_exercise(
        self,
        username: str,
        day_index: int,
        exercise_name: str,
        completed: bool = True,
        now: int | None = None,
    ) -> ProgressUpdate:
        return self.completion.mark_exercise(username, day_index, exercise_name, completed, now=now)

    def completed_set(self, username: str) -> set[CompletionKey]:
        return self.completion.get_completed_set(username)

    def completed_day_count(self, username: str) -> int:
        return self.completion.completed_day_count(username)

    def day_status(self, username: str) -> DayCompletionStatus:
        return self.completion.day_status(username)

    def migrate_completion(self, username: str) -> MigrationReport:
        return self.completion.migrate_legacy_keys(username)

    # ------------------------------------------------------------------
    # Exercise stats
    # ------------------------------------------------------------------

    def log_set(
        self,
        username: str,
        exercise_name: str,
        weight: float,
        reps: int,
        date: int | None = None,
        set_number: int = 1,
        sets: int = 1,
        avg_heart_rate: int | None = None,
        calories_burned: int | None = None,
    ) -> ExerciseStats:
        """
        Append one set to the user's stats log.

        Raises:
            ValueError: If the values are out of range
        """
        entry = ExerciseStats(
            exercise_name=exercise_name,
            date=date if date is not None else now_millis(),
            weight=weight,
            reps=reps,
            set_number=set_number,
            sets=sets,
            avg_heart_rate=avg_heart_rate,
            calories_burned=calories_burned,
        )
        if not self.catalog.muscle_groups_for(exercise_name):
            logger.info("%s: %r is not in the catalog; it will not count toward muscle groups",
                        username, exercise_name)
        self.store.append_exercise_stats(username, entry)
        return entry

    def stats_log(self, username: str) -> list[ExerciseStats]:
        return self.store.load_exercise_stats_log(username)

    def clear_stats(self, username: str) -> None:
        self.store.clear_exercise_stats(username)

    def total_volume(self, username: str) -> float:
        return statistics.total_volume(self.stats_log(username))

    def muscle_group_summary(
        self,
        username: str,
        period_days: int = 0,
        now: int | None = None,
    ) -> list[MuscleGroupSummary]:
        return statistics.per_muscle_group_summary(
            self.stats_log(username),
            self.catalog.muscle_lookup(),
            now if now is not None else now_millis(),
            period_days=period_days,
        )

    def insights(
        self,
        username: str,
        period_days: int = 0,
        now: int | None = None,
    ) -> list[Insight]:
        summaries = self.muscle_group_summary(username, period_days=period_days, now=now)
        return statistics.generate_insights(
            summaries,
            stale_days=self.settings.stale_group_days if self.settings else STALE_GROUP_DAYS,
            balance_tolerance=(
                self.settings.balance_tolerance if self.settings else BALANCE_TOLERANCE
            ),
            period_days=period_days,
        )

    def exercise_progress(self, username: str, exercise_name: str) -> ExerciseProgress | None:
        return statistics.exercise_progress(self.stats_log(username), exercise_name)

    def volume_by_day(self, username: str) -> list[tuple[int, float]]:
        return statistics.volume_by_day(self.stats_log(username))

    # ------------------------------------------------------------------
    # Adaptive weights
    # ------------------------------------------------------------------

    def apply_weight_progression(
        self,
        username: str,
        dry_run: bool = False,
    ) -> list[WeightProgression] | None:
        """
        Review every exercise of the active plan against the stats log.

        Weights that changed are written to every plan day carrying the
        exercise, unless dry_run is set.

        Returns:
            One result per planned exercise in plan order, or None if the
            user has no active cycle with a plan
        """
        with self.store.lock(username):
            cycle = self.store.load_cycle(username)
            plan = self.store.load_plan(username)
            if cycle is None or not cycle.is_active:
                return None
            if plan is None or plan.cycle_number != cycle.cycle_number:
                return None

            stats_log = self.store.load_exercise_stats_log(username)
            results: dict[str, WeightProgression] = {}
            for day in plan.days:
                for exercise in day.exercises:
                    if exercise.name not in results:
                        results[exercise.name] = weight_progression(
                            exercise.name, exercise.recommended_weight, stats_log, exercise.reps
                        )

            changed = {
                name: r.new_weight for name, r in results.items() if r.new_weight != r.old_weight
            }
            if changed and not dry_run:
                for day in plan.days:
                    for exercise in day.exercises:
                        if exercise.name in changed:
                            exercise.recommended_weight = changed[exercise.name]
                self.store.save_plan(username, plan)
                logger.info("%s: adjusted weights of %s", username, ", ".join(sorted(changed)))

        return list(results.values())

    # ------------------------------------------------------------------
    # Body measurements
    # ------------------------------------------------------------------

    def log_body_measurements(
        self,
        username: str,
        values: Mapping[BodyParameter, float],
        date: int | None = None,
        sex: str | None = None,
    ) -> list[BodyMeasurement]:
        """
        Record body measurements taken together, plus what they allow to derive.

        Args:
            username: Owner of the measurements
            values: Entered values by parameter
            date: Measurement time (epoch ms, default now)
            sex: "male" or "female", enables the body-fat estimate

        Returns:
            Entered measurements followed by the derived ones

        Raises:
            ValueError: If no value is given, a value is out of range or
                sex is not supported
        """
        if not values:
            raise ValueError("At least one body parameter is required")
        if sex is not None and sex not in SUPPORTED_SEXES:
            raise ValueError(f"sex must be one of {', '.join(SUPPORTED_SEXES)}, got {sex!r}")

        stamp = date if date is not None else now_millis()
        entered = [BodyMeasurement(parameter, float(value), stamp) for parameter, value in values.items()]
        measurements = entered + body.derived_measurements(values, stamp, sex=sex)
        self.store.append_body_measurements(username, measurements)
        logger.debug("%s: logged %d body measurements", username, len(measurements))
        return measurements

    def body_measurements(
        self,
        username: str,
        parameter: BodyParameter | None = None,
    ) -> list[BodyMeasurement]:
        measurements = self.store.load_body_measurements(username)
        if parameter is None:
            return measurements
        return [m for m in measurements if m.parameter is parameter]

    def latest_body_measurements(self, username: str) -> dict[BodyParameter, BodyMeasurement]:
        return body.latest_measurements(self.store.load_body_measurements(username))

    def body_trend(
        self,
        username: str,
        parameter: BodyParameter,
        horizon_days: int = TREND_HORIZON_DAYS,
    ) -> BodyParameterTrend | None:
        return body.parameter_trend(
            self.store.load_body_measurements(username), parameter, horizon_days=horizon_days
        )

    def body_trends(
        self,
        username: str,
        horizon_days: int = TREND_HORIZON_DAYS,
    ) -> list[BodyParameterTrend]:
        """Trends of every measured parameter, in BodyParameter order."""
        measurements = self.store.load_body_measurements(username)
        trends = (body.parameter_trend(measurements, p, horizon_days=horizon_days) for p in BodyParameter)
        return [t for t in trends if t is not None]
