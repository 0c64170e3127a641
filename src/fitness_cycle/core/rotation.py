"""
Exercise pool rotation and plan assembly.

Selects exercises for each muscle-group slot of a new cycle so that a user
is not shown the same exercises in the same slot cycle after cycle, then
lays the selections out over the cycle's plan days.
"""

import logging
from collections.abc import Sequence

from .catalog.base import ExerciseCatalog, ExerciseDescriptor
from .config import (
    CYCLES_PER_WEIGHT_STEP,
    DAYS_IN_CYCLE,
    POOL_ROTATION_SIZE,
    WEIGHT_STEP_KG,
)
from .models import CycleExerciseHistory, ExerciseStats, PlannedExercise, WorkoutDay, WorkoutPlan
from .progression import weight_progression
from .schedule import generate_schedule

logger = logging.getLogger(__name__)


def determine_pool_id(cycle_number: int) -> str:
    """
    Return the pool variant used for a cycle: pool_A, pool_B, pool_C, pool_A, ...

    Args:
        cycle_number: 1-based cycle number

    Returns:
        Pool identifier string
    """
    pool_index = (cycle_number - 1) % POOL_ROTATION_SIZE
    return f"pool_{chr(ord('A') + pool_index)}"


def weight_increment_for_cycle(cycle_number: int) -> float:
    """Extra kg added to recommended weights: +2 kg per completed group of 3 cycles."""
    return ((cycle_number - 1) // CYCLES_PER_WEIGHT_STEP) * WEIGHT_STEP_KG


def _recent_history(
    history: list[CycleExerciseHistory],
    recency_window: int | None,
) -> list[CycleExerciseHistory]:
    """Return history ordered by cycle number, limited to the last recency_window entries."""
    ordered = sorted(history, key=lambda h: h.cycle_number)
    if recency_window is not None:
        if recency_window <= 0:
            return []
        ordered = ordered[-recency_window:]
    return ordered


def last_used_cycles(
    slot: str,
    history: list[CycleExerciseHistory],
) -> dict[str, int]:
    """Map each exercise used in a slot to the latest cycle number it appeared in."""
    last_used: dict[str, int] = {}
    for entry in history:
        for name in entry.used_for_slot(slot):
            last_used[name] = max(last_used.get(name, 0), entry.cycle_number)
    return last_used


def select_exercises_for_slot(
    slot: str,
    catalog_for_slot: list[ExerciseDescriptor],
    history: list[CycleExerciseHistory],
    count: int,
    recency_window: int | None = None,
) -> list[ExerciseDescriptor]:
    """
    Pick `count` exercises for a slot, minimising repetition across cycles.

    Exercises never used in the slot (within the recency window) come first,
    in catalog order.  Any remaining places are filled from used exercises,
    least recently used first; ties keep catalog order.

    Args:
        slot: Slot name, e.g. "Chest & Back"
        catalog_for_slot: Ordered candidate pool for the slot
        history: The user's per-cycle exercise history
        count: Number of exercises wanted
        recency_window: Number of most recent history entries to consider
            (None = all)

    Returns:
        Selected exercises; all candidates if the pool is smaller than count
    """
    if count <= 0:
        return []

    if len(catalog_for_slot) < count:
        logger.warning(
            "Slot %r has %d candidate exercises, %d requested; using all of them",
            slot,
            len(catalog_for_slot),
            count,
        )
        return list(catalog_for_slot)

    last_used = last_used_cycles(slot, _recent_history(history, recency_window))

    fresh = [ex for ex in catalog_for_slot if ex.name not in last_used]
    used = [ex for ex in catalog_for_slot if ex.name in last_used]
    # sorted() is stable, so equal cycle numbers keep catalog order
    used.sort(key=lambda ex: last_used[ex.name])

    return (fresh + used)[:count]


def record_slot_usage(
    used_exercises: dict[str, set[str]],
    slot: str,
    selected: list[ExerciseDescriptor],
) -> dict[str, set[str]]:
    """
    Return a copy of used_exercises with the selected names merged into slot.

    The slot's set only ever grows.
    """
    merged = {name: set(names) for name, names in used_exercises.items()}
    merged.setdefault(slot, set()).update(ex.name for ex in selected)
    return merged


def build_workout_plan(
    cycle_number: int,
    start_date: int,
    frequency: str,
    catalog: ExerciseCatalog,
    history: list[CycleExerciseHistory],
    recency_window: int | None = None,
    total_days: int = DAYS_IN_CYCLE,
    stats_log: Sequence[ExerciseStats] = (),
) -> tuple[WorkoutPlan, CycleExerciseHistory]:
    """
    Build the workout plan for a new cycle.

    Day i trains slot sequence[i % len(sequence)].  Each slot's exercises
    are selected once per cycle and repeated on every day of that slot.
    Recommended weights grow with the cycle number, unless the logged sets
    of an exercise have earned an adaptive weight, which replaces it.

    Args:
        cycle_number: Number of the cycle being started
        start_date: Cycle start (epoch ms)
        frequency: Weekly frequency label used to schedule plan days
        catalog: Exercise catalog
        history: The user's per-cycle exercise history so far
        recency_window: History entries consulted by the rotator
        total_days: Number of plan days
        stats_log: The user's logged sets, for adaptive weights

    Returns:
        (plan, exercise-history entry recording this cycle's selections)
    """
    sequence = catalog.slot_sequence()
    increment = weight_increment_for_cycle(cycle_number)

    selections: dict[str, list[ExerciseDescriptor]] = {}
    used: dict[str, set[str]] = {}
    for slot in sequence:
        if slot in selections:
            continue
        selected = select_exercises_for_slot(
            slot,
            catalog.candidates_for(slot),
            history,
            catalog.exercises_per_day(slot),
            recency_window,
        )
        selections[slot] = selected
        if selected:
            used = record_slot_usage(used, slot, selected)

    weights: dict[str, float | None] = {}
    for selected in selections.values():
        for ex in selected:
            base = ex.recommended_weight + increment if ex.recommended_weight is not None else None
            weights[ex.name] = weight_progression(ex.name, base, stats_log, ex.reps).new_weight

    dates = generate_schedule(start_date, frequency, total_days)
    days: list[WorkoutDay] = []
    for day_index in range(total_days):
        slot = sequence[day_index % len(sequence)] if sequence else ""
        exercises = [
            PlannedExercise(
                name=ex.name,
                sets=ex.sets,
                reps=ex.reps,
                recommended_weight=weights[ex.name],
                muscle_groups=list(ex.muscle_groups),
            )
            for ex in selections.get(slot, [])
        ]
        days.append(
            WorkoutDay(
                day_index=day_index,
                slot=slot,
                exercises=exercises,
                scheduled_date=dates[day_index],
            )
        )

    pool_id = determine_pool_id(cycle_number)
    plan = WorkoutPlan(
        cycle_number=cycle_number,
        frequency=frequency,
        pool_id=pool_id,
        days=days,
    )
    entry = CycleExerciseHistory(
        cycle_number=cycle_number,
        start_date=start_date,
        used_exercises=used,
        pool_id=pool_id,
    )
    return plan, entry
