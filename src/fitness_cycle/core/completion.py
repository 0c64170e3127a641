"""
Completion marker rules.

Pure functions mapping the set of completion markers onto plan days, plus
the one-time conversion of legacy string keys into structured keys.
"""

import logging
import re

from .models import CompletionKey, DayCompletionStatus, WorkoutPlan

logger = logging.getLogger(__name__)

# Legacy day-indexed key: "<dayIndex>_<exerciseName>"
_LEGACY_DAY_KEY = re.compile(r"^(\d+)_(.+)$")


def completed_day_indices(plan: WorkoutPlan | None, completed: set[CompletionKey]) -> set[int]:
    """
    Return the indices of plan days with at least one exercise marked done.

    A day counts as soon as any of its exercises has a marker; it does not
    need all of them.
    """
    if plan is None:
        return set()
    days: set[int] = set()
    for day in plan.days:
        if any(CompletionKey(day.day_index, name) in completed for name in day.exercise_names()):
            days.add(day.day_index)
    return days


def get_completed_day_count(plan: WorkoutPlan | None, completed: set[CompletionKey]) -> int:
    """Number of plan days touched by at least one completion marker."""
    return len(completed_day_indices(plan, completed))


def day_completion_status(
    plan: WorkoutPlan | None,
    completed: set[CompletionKey],
) -> DayCompletionStatus:
    """
    Split touched plan days into fully and partially completed.

    Days with no markers appear in neither set.
    """
    fully: set[int] = set()
    partially: set[int] = set()
    if plan is not None:
        for day in plan.days:
            names = day.exercise_names()
            done = sum(1 for name in names if CompletionKey(day.day_index, name) in completed)
            if done == 0:
                continue
            if done == len(names):
                fully.add(day.day_index)
            else:
                partially.add(day.day_index)
    return DayCompletionStatus(frozenset(fully), frozenset(partially))


def parse_legacy_key(raw: str) -> CompletionKey | str:
    """
    Parse a legacy completion key.

    Returns a CompletionKey for "<day>_<name>" keys, or the bare exercise
    name for keys that never carried a day index.
    """
    match = _LEGACY_DAY_KEY.match(raw)
    if match:
        return CompletionKey(int(match.group(1)), match.group(2))
    return raw


def migrate_legacy_keys(
    legacy_keys: list[str],
    plan: WorkoutPlan | None,
) -> tuple[set[CompletionKey], list[str]]:
    """
    Convert legacy string keys to structured completion keys.

    Name-only keys are assigned to the first plan day containing that
    exercise.

    Args:
        legacy_keys: Raw legacy keys
        plan: Current workout plan used to resolve day indices

    Returns:
        (converted keys, raw keys that could not be resolved)
    """
    converted: set[CompletionKey] = set()
    unresolved: list[str] = []

    for raw in legacy_keys:
        parsed = parse_legacy_key(raw)
        if isinstance(parsed, CompletionKey):
            converted.add(parsed)
            continue

        day_index = plan.first_day_with(parsed) if plan is not None else None
        if day_index is None:
            unresolved.append(raw)
            continue
        converted.add(CompletionKey(day_index, parsed))

    if unresolved:
        logger.debug("Unresolved legacy completion keys: %s", unresolved)
    return converted, unresolved
