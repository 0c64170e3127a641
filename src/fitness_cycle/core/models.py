"""
Data models for fitness-cycle.

All core dataclasses representing cycles, plans, completion markers and
logged exercise results and body measurements. Timestamps are epoch milliseconds throughout.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple

from .config import BODY_PARAMETER_RANGES, DAYS_IN_CYCLE


class CycleState(Enum):
    """Lifecycle state of a user's stored cycle record."""

    NO_ACTIVE_CYCLE = "no_active_cycle"
    ACTIVE = "active"
    COMPLETED = "completed"  # transient: archived, next start moves to ACTIVE


@dataclass
class Cycle:
    """
    One 30-day training block for one user.

    A cycle is active while completed_date is None. Once stamped it is
    reachable only through the cycle history.
    """

    cycle_number: int
    start_date: int
    completed_date: int | None = None
    days_completed: int = 0
    completed_microcycles: int = 0
    total_days: int = DAYS_IN_CYCLE

    def __post_init__(self) -> None:
        """Validate cycle data."""
        if self.cycle_number < 1:
            raise ValueError("cycle_number must be positive")
        if self.total_days < 1:
            raise ValueError("total_days must be positive")
        if not 0 <= self.days_completed <= self.total_days:
            raise ValueError(
                f"days_completed must be in [0, {self.total_days}], got {self.days_completed}"
            )
        if self.completed_microcycles < 0:
            raise ValueError("completed_microcycles must be non-negative")

    @property
    def is_active(self) -> bool:
        return self.completed_date is None

    @property
    def progress(self) -> float:
        """Fraction of the cycle completed (0.0 - 1.0)."""
        return self.days_completed / self.total_days

    @property
    def remaining_days(self) -> int:
        return max(self.total_days - self.days_completed, 0)


@dataclass(frozen=True)
class CycleHistoryEntry:
    """Archived record of a completed cycle."""

    cycle_number: int
    start_date: int
    completed_date: int
    days_completed: int

    @property
    def completion_percentage(self) -> float:
        return self.days_completed / DAYS_IN_CYCLE


@dataclass(frozen=True)
class CycleHistorySummary:
    """Aggregate view over a user's completed cycles."""

    total_completed_cycles: int
    total_training_days: int
    average_completion_percentage: float


@dataclass
class CycleExerciseHistory:
    """
    Exercises assigned to each muscle-group slot during one cycle.

    used_exercises maps slot name (e.g. "Chest & Back") to the names of the
    exercises drawn from that slot's catalog.
    """

    cycle_number: int
    start_date: int
    used_exercises: dict[str, set[str]] = field(default_factory=dict)
    pool_id: str = "pool_A"

    def used_for_slot(self, slot: str) -> set[str]:
        return self.used_exercises.get(slot, set())

    def total_unique_exercises(self) -> int:
        return sum(len(names) for names in self.used_exercises.values())

    def has_used(self, exercise_name: str) -> bool:
        return any(exercise_name in names for names in self.used_exercises.values())


@dataclass
class PlannedExercise:
    """One exercise prescribed on a plan day."""

    name: str
    sets: int = 3
    reps: str = "10"  # "10", "8-12" or "12,10,8"
    recommended_weight: float | None = None
    muscle_groups: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("exercise name must be non-empty")
        if self.sets < 1:
            raise ValueError("sets must be positive")


@dataclass
class WorkoutDay:
    """A single plan day: one slot, its exercises and its scheduled date."""

    day_index: int
    slot: str
    exercises: list[PlannedExercise] = field(default_factory=list)
    scheduled_date: int | None = None

    def exercise_names(self) -> list[str]:
        return [e.name for e in self.exercises]

    def has_exercise(self, exercise_name: str) -> bool:
        return any(e.name == exercise_name for e in self.exercises)


@dataclass
class WorkoutPlan:
    """The workout plan generated for one cycle."""

    cycle_number: int
    frequency: str
    pool_id: str
    days: list[WorkoutDay] = field(default_factory=list)

    def day(self, day_index: int) -> WorkoutDay | None:
        if 0 <= day_index < len(self.days):
            return self.days[day_index]
        return None

    def first_day_with(self, exercise_name: str) -> int | None:
        """Return the index of the first day that contains exercise_name."""
        for day in self.days:
            if day.has_exercise(exercise_name):
                return day.day_index
        return None


class CompletionKey(NamedTuple):
    """Completion marker key: an exercise on a specific plan day."""

    day_index: int
    exercise_name: str


@dataclass(frozen=True)
class DayCompletionStatus:
    """Plan days split by how many of their exercises are marked done."""

    fully_completed: frozenset[int]
    partially_completed: frozenset[int]


@dataclass
class CompletionDocument:
    """
    Persisted completion state of one user.

    markers and schema_version live in the same document so that a
    migration can bump the version in the same write that converts the
    keys. legacy_keys holds raw keys from the old string format that have
    not been converted yet.
    """

    schema_version: int
    markers: set[CompletionKey] = field(default_factory=set)
    legacy_keys: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class MigrationReport:
    """Outcome of a legacy completion-key migration pass."""

    performed: bool
    migrated: int = 0
    dropped: int = 0
    deferred: bool = False


@dataclass
class ExerciseStats:
    """
    One logged set.

    volume is derived from weight and reps and is never stored.
    """

    exercise_name: str
    date: int
    weight: float
    reps: int
    set_number: int = 1
    sets: int = 1
    avg_heart_rate: int | None = None
    calories_burned: int | None = None

    def __post_init__(self) -> None:
        """Validate set data."""
        if not self.exercise_name:
            raise ValueError("exercise_name must be non-empty")
        if self.weight < 0:
            raise ValueError("weight must be non-negative")
        if self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.set_number < 1:
            raise ValueError("set_number must be positive")
        if self.sets < 1:
            raise ValueError("sets must be positive")

    @property
    def volume(self) -> float:
        return self.weight * self.reps


@dataclass(frozen=True)
class MuscleGroupSummary:
    """Per-muscle-group aggregate derived from the exercise stats log."""

    muscle_group: str
    total_volume: float
    total_sets: int
    exercise_count: int
    max_weight: float
    percentage: float  # share of total volume across all groups, 0-100
    days_since_last_workout: int  # DAYS_NEVER when the group was never trained
    average_weekly_frequency: float
    exercise_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class Insight:
    """Advisory statement about training balance."""

    kind: str  # "most_trained" | "least_trained" | "needs_attention" | "balanced"
    message: str
    muscle_group: str | None = None


@dataclass(frozen=True)
class ExerciseProgress:
    """Progress of one exercise over the logged period."""

    exercise_name: str
    start_date: int
    end_date: int
    max_weight: float
    min_weight: float
    average_weight: float
    total_volume: float
    total_sets: int
    total_reps: int
    weight_change: float
    weight_change_percentage: float

    @property
    def is_improved(self) -> bool:
        return self.weight_change > 0


class WeightChange(Enum):
    """Direction of an adaptive weight recommendation."""

    INCREASED = "increased"
    DECREASED = "decreased"
    UNCHANGED = "unchanged"
    NO_HISTORY = "no_history"


@dataclass(frozen=True)
class WeightProgression:
    """Recommended weight of one planned exercise after reviewing its logged sets."""

    exercise_name: str
    old_weight: float | None
    new_weight: float | None
    change: WeightChange
    reason: str


class BodyParameter(Enum):
    """
    Tracked body measurement.

    weight and muscle_mass are in kg, body_fat in percent, bmi is unitless
    and every other parameter is a length in cm.
    """

    WEIGHT = "weight"
    HEIGHT = "height"
    CHEST = "chest"
    WAIST = "waist"
    HIPS = "hips"
    BICEPS = "biceps"
    THIGH = "thigh"
    CALF = "calf"
    NECK = "neck"
    SHOULDERS = "shoulders"
    BODY_FAT = "body_fat"
    BMI = "bmi"
    MUSCLE_MASS = "muscle_mass"

    @property
    def unit(self) -> str:
        if self in (BodyParameter.WEIGHT, BodyParameter.MUSCLE_MASS):
            return "kg"
        if self is BodyParameter.BODY_FAT:
            return "%"
        if self is BodyParameter.BMI:
            return ""
        return "cm"

    @property
    def valid_range(self) -> tuple[float, float]:
        return BODY_PARAMETER_RANGES[self.value]


@dataclass(frozen=True)
class BodyMeasurement:
    """
    One body measurement.

    calculated is True for values derived from other measurements
    (BMI, body fat, muscle mass) rather than entered by the user.
    """

    parameter: BodyParameter
    value: float
    date: int
    calculated: bool = False

    def __post_init__(self) -> None:
        low, high = self.parameter.valid_range
        if not low <= self.value <= high:
            raise ValueError(
                f"{self.parameter.value} must be in [{low:g}, {high:g}], got {self.value:g}"
            )


@dataclass(frozen=True)
class BodyParameterTrend:
    """Change of one body parameter over the logged period, with a linear projection."""

    parameter: BodyParameter
    start_date: int
    end_date: int
    start_value: float
    current_value: float
    min_value: float
    max_value: float
    average_value: float
    total_change: float
    change_percentage: float
    slope_per_week: float
    projected_value: float
    projection_date: int
    measurement_count: int


@dataclass
class CycleOutcome:
    """
    Result of a cycle state transition.

    ok=False means a precondition was violated and nothing was changed;
    error explains why.
    """

    ok: bool
    cycle: Cycle | None = None
    plan: WorkoutPlan | None = None
    archived: CycleHistoryEntry | None = None
    error: str | None = None


@dataclass
class ProgressUpdate:
    """Result of marking or un-marking an exercise."""

    ok: bool
    completed_days: int = 0
    cycle: Cycle | None = None
    cycle_completed: bool = False
    archived: CycleHistoryEntry | None = None
    error: str | None = None
