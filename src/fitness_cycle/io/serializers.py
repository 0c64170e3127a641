"""
JSON serialization for cycle and progress data models.

Handles conversion between dataclasses and JSON-compatible dicts.
"""

import json
import re
from typing import Any

from ..core.config import COMPLETION_SCHEMA_VERSION, DAYS_IN_CYCLE
from ..core.models import (
    BodyMeasurement,
    BodyParameter,
    CompletionDocument,
    CompletionKey,
    Cycle,
    CycleExerciseHistory,
    CycleHistoryEntry,
    ExerciseStats,
    PlannedExercise,
    WorkoutDay,
    WorkoutPlan,
)

# Completion documents written before structured keys carry no version field.
LEGACY_COMPLETION_SCHEMA_VERSION = 1


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def _require(data: dict[str, Any], key: str) -> Any:
    """Return data[key] or raise ValidationError naming the missing field."""
    if not isinstance(data, dict):
        raise ValidationError(f"Expected an object, got {type(data).__name__}")
    if key not in data or data[key] is None:
        raise ValidationError(f"Missing field: {key}")
    return data[key]


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Args:
        value: Value to validate
        name: Name for error message

    Returns:
        The value if valid

    Raises:
        ValidationError: If value is negative or not a number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def validate_positive(value: int | float, name: str) -> int | float:
    """
    Validate that a value is positive.

    Raises:
        ValidationError: If value is not positive or not a number
    """
    validate_non_negative(value, name)
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return value


def validate_timestamp(value: Any, name: str) -> int:
    """Validate an epoch-millisecond timestamp."""
    validate_non_negative(value, name)
    return int(value)


# ---------------------------------------------------------------------------
# Cycle records
# ---------------------------------------------------------------------------


def cycle_to_dict(cycle: Cycle) -> dict[str, Any]:
    """Convert Cycle to JSON-compatible dict."""
    return {
        "cycle_number": cycle.cycle_number,
        "start_date": cycle.start_date,
        "completed_date": cycle.completed_date,
        "days_completed": cycle.days_completed,
        "completed_microcycles": cycle.completed_microcycles,
        "total_days": cycle.total_days,
    }


def dict_to_cycle(data: dict[str, Any]) -> Cycle:
    """
    Convert dict to Cycle.

    Records written before total_days existed default to the standard
    cycle length.

    Raises:
        ValidationError: If data is invalid
    """
    validate_positive(_require(data, "cycle_number"), "cycle_number")
    start = validate_timestamp(_require(data, "start_date"), "start_date")
    completed = data.get("completed_date")
    if completed is not None:
        completed = validate_timestamp(completed, "completed_date")

    try:
        return Cycle(
            cycle_number=int(data["cycle_number"]),
            start_date=start,
            completed_date=completed,
            days_completed=int(data.get("days_completed", 0)),
            completed_microcycles=int(data.get("completed_microcycles", 0)),
            total_days=int(data.get("total_days", DAYS_IN_CYCLE)),
        )
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid cycle record: {e}") from e


def history_entry_to_dict(entry: CycleHistoryEntry) -> dict[str, Any]:
    """Convert CycleHistoryEntry to JSON-compatible dict."""
    return {
        "cycle_number": entry.cycle_number,
        "start_date": entry.start_date,
        "completed_date": entry.completed_date,
        "days_completed": entry.days_completed,
    }


def dict_to_history_entry(data: dict[str, Any]) -> CycleHistoryEntry:
    """
    Convert dict to CycleHistoryEntry.

    Raises:
        ValidationError: If data is invalid
    """
    validate_positive(_require(data, "cycle_number"), "cycle_number")
    validate_non_negative(data.get("days_completed", 0), "days_completed")
    return CycleHistoryEntry(
        cycle_number=int(data["cycle_number"]),
        start_date=validate_timestamp(_require(data, "start_date"), "start_date"),
        completed_date=validate_timestamp(_require(data, "completed_date"), "completed_date"),
        days_completed=int(data.get("days_completed", 0)),
    )


def exercise_history_to_dict(entry: CycleExerciseHistory) -> dict[str, Any]:
    """
    Convert CycleExerciseHistory to JSON-compatible dict.

    Slot sets are written as sorted lists so documents diff cleanly.
    """
    return {
        "cycle_number": entry.cycle_number,
        "start_date": entry.start_date,
        "pool_id": entry.pool_id,
        "used_exercises": {
            slot: sorted(names) for slot, names in entry.used_exercises.items()
        },
    }


def dict_to_exercise_history(data: dict[str, Any]) -> CycleExerciseHistory:
    """
    Convert dict to CycleExerciseHistory.

    Raises:
        ValidationError: If data is invalid
    """
    validate_positive(_require(data, "cycle_number"), "cycle_number")
    raw_used = data.get("used_exercises") or {}
    if not isinstance(raw_used, dict):
        raise ValidationError("used_exercises must be an object")

    return CycleExerciseHistory(
        cycle_number=int(data["cycle_number"]),
        start_date=validate_timestamp(_require(data, "start_date"), "start_date"),
        used_exercises={str(slot): {str(n) for n in names} for slot, names in raw_used.items()},
        pool_id=str(data.get("pool_id", "pool_A")),
    )


# ---------------------------------------------------------------------------
# Workout plan
# ---------------------------------------------------------------------------


def planned_exercise_to_dict(exercise: PlannedExercise) -> dict[str, Any]:
    """Convert PlannedExercise to JSON-compatible dict."""
    d: dict[str, Any] = {
        "name": exercise.name,
        "sets": exercise.sets,
        "reps": exercise.reps,
        "muscle_groups": list(exercise.muscle_groups),
    }
    if exercise.recommended_weight is not None:
        d["recommended_weight"] = exercise.recommended_weight
    return d


def dict_to_planned_exercise(data: dict[str, Any]) -> PlannedExercise:
    """
    Convert dict to PlannedExercise.

    Raises:
        ValidationError: If data is invalid
    """
    name = _require(data, "name")
    weight = data.get("recommended_weight")
    if weight is not None:
        validate_non_negative(weight, "recommended_weight")
    try:
        return PlannedExercise(
            name=str(name),
            sets=int(data.get("sets", 3)),
            reps=str(data.get("reps", "10")),
            recommended_weight=float(weight) if weight is not None else None,
            muscle_groups=[str(g) for g in data.get("muscle_groups", [])],
        )
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid planned exercise: {e}") from e


def workout_plan_to_dict(plan: WorkoutPlan) -> dict[str, Any]:
    """Convert WorkoutPlan to JSON-compatible dict."""
    return {
        "cycle_number": plan.cycle_number,
        "frequency": plan.frequency,
        "pool_id": plan.pool_id,
        "days": [
            {
                "day_index": day.day_index,
                "slot": day.slot,
                "scheduled_date": day.scheduled_date,
                "exercises": [planned_exercise_to_dict(e) for e in day.exercises],
            }
            for day in plan.days
        ],
    }


def dict_to_workout_plan(data: dict[str, Any]) -> WorkoutPlan:
    """
    Convert dict to WorkoutPlan.

    Days must be numbered 0..n-1 in order.

    Raises:
        ValidationError: If data is invalid
    """
    validate_positive(_require(data, "cycle_number"), "cycle_number")
    days: list[WorkoutDay] = []
    for position, raw in enumerate(data.get("days") or []):
        day_index = _require(raw, "day_index")
        if day_index != position:
            raise ValidationError(f"Plan day {position} has day_index {day_index}")
        scheduled = raw.get("scheduled_date")
        days.append(
            WorkoutDay(
                day_index=int(day_index),
                slot=str(raw.get("slot", "")),
                exercises=[dict_to_planned_exercise(e) for e in raw.get("exercises") or []],
                scheduled_date=(
                    validate_timestamp(scheduled, "scheduled_date")
                    if scheduled is not None
                    else None
                ),
            )
        )

    return WorkoutPlan(
        cycle_number=int(data["cycle_number"]),
        frequency=str(data.get("frequency", "")),
        pool_id=str(data.get("pool_id", "pool_A")),
        days=days,
    )


# ---------------------------------------------------------------------------
# Completion markers
# ---------------------------------------------------------------------------


def completion_document_to_dict(document: CompletionDocument) -> dict[str, Any]:
    """
    Convert CompletionDocument to JSON-compatible dict.

    Markers are sorted by (day_index, exercise_name).
    """
    d: dict[str, Any] = {
        "schema_version": document.schema_version,
        "markers": [
            {"day_index": key.day_index, "exercise": key.exercise_name}
            for key in sorted(document.markers)
        ],
    }
    if document.legacy_keys:
        d["legacy_keys"] = list(document.legacy_keys)
    return d


def _is_truthy_flag(value: Any) -> bool:
    """Legacy documents stored flags as booleans or the strings "true"/"false"."""
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def dict_to_completion_document(data: dict[str, Any]) -> CompletionDocument:
    """
    Convert dict to CompletionDocument.

    A document without schema_version is the legacy flat format: a mapping
    of raw key -> "true".  Its set keys are returned as legacy_keys and
    left for the migration to convert.

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError("Completion document must be an object")

    if "schema_version" not in data:
        legacy = [str(k) for k, v in data.items() if _is_truthy_flag(v)]
        return CompletionDocument(
            schema_version=LEGACY_COMPLETION_SCHEMA_VERSION,
            legacy_keys=legacy,
        )

    version = data["schema_version"]
    validate_positive(version, "schema_version")
    if version > COMPLETION_SCHEMA_VERSION:
        raise ValidationError(f"Unsupported completion schema_version {version}")

    markers: set[CompletionKey] = set()
    for raw in data.get("markers") or []:
        day_index = _require(raw, "day_index")
        validate_non_negative(day_index, "day_index")
        name = str(_require(raw, "exercise"))
        if not name:
            raise ValidationError("Completion marker has an empty exercise name")
        markers.add(CompletionKey(int(day_index), name))

    return CompletionDocument(
        schema_version=int(version),
        markers=markers,
        legacy_keys=[str(k) for k in data.get("legacy_keys") or []],
    )


# ---------------------------------------------------------------------------
# Exercise stats log
# ---------------------------------------------------------------------------


def exercise_stats_to_dict(stats: ExerciseStats) -> dict[str, Any]:
    """
    Convert ExerciseStats to JSON-compatible dict.

    Volume is derived and never written.
    """
    d: dict[str, Any] = {
        "exercise_name": stats.exercise_name,
        "date": stats.date,
        "weight": stats.weight,
        "reps": stats.reps,
        "set_number": stats.set_number,
        "sets": stats.sets,
    }
    if stats.avg_heart_rate is not None:
        d["avg_heart_rate"] = stats.avg_heart_rate
    if stats.calories_burned is not None:
        d["calories_burned"] = stats.calories_burned
    return d


def dict_to_exercise_stats(data: dict[str, Any]) -> ExerciseStats:
    """
    Convert dict to ExerciseStats.

    Raises:
        ValidationError: If data is invalid
    """
    name = str(_require(data, "exercise_name"))
    weight = validate_non_negative(_require(data, "weight"), "weight")
    reps = validate_non_negative(_require(data, "reps"), "reps")
    heart_rate = data.get("avg_heart_rate")
    calories = data.get("calories_burned")

    try:
        return ExerciseStats(
            exercise_name=name,
            date=validate_timestamp(_require(data, "date"), "date"),
            weight=float(weight),
            reps=int(reps),
            set_number=int(data.get("set_number", 1)),
            sets=int(data.get("sets", 1)),
            avg_heart_rate=int(heart_rate) if heart_rate is not None else None,
            calories_burned=int(calories) if calories is not None else None,
        )
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid exercise stats: {e}") from e


def stats_to_json_line(stats: ExerciseStats) -> str:
    """
    Serialize one logged set to a single JSON line.

    Returns:
        JSON string (single line, no trailing newline)
    """
    return json.dumps(exercise_stats_to_dict(stats), separators=(",", ":"))


def json_line_to_stats(line: str) -> ExerciseStats:
    """
    Deserialize a JSON line to ExerciseStats.

    Raises:
        ValidationError: If JSON is invalid or data validation fails
    """
    try:
        data = json.loads(line.strip())
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e

    return dict_to_exercise_stats(data)


# ---------------------------------------------------------------------------
# Body measurements
# ---------------------------------------------------------------------------


def body_measurement_to_dict(measurement: BodyMeasurement) -> dict[str, Any]:
    """Convert BodyMeasurement to JSON-compatible dict."""
    return {
        "parameter": measurement.parameter.value,
        "value": measurement.value,
        "date": measurement.date,
        "calculated": measurement.calculated,
    }


def dict_to_body_measurement(data: dict[str, Any]) -> BodyMeasurement:
    """
    Convert dict to BodyMeasurement.

    Raises:
        ValidationError: If the parameter is unknown or the value out of range
    """
    raw = _require(data, "parameter")
    try:
        parameter = BodyParameter(raw)
    except ValueError as e:
        raise ValidationError(f"Unknown body parameter: {raw!r}") from e
    value = validate_positive(_require(data, "value"), "value")

    try:
        return BodyMeasurement(
            parameter=parameter,
            value=float(value),
            date=validate_timestamp(_require(data, "date"), "date"),
            calculated=bool(data.get("calculated", False)),
        )
    except ValueError as e:
        raise ValidationError(f"Invalid body measurement: {e}") from e


def body_measurement_to_json_line(measurement: BodyMeasurement) -> str:
    return json.dumps(body_measurement_to_dict(measurement), separators=(",", ":"))


def json_line_to_body_measurement(line: str) -> BodyMeasurement:
    """
    Deserialize a JSON line to BodyMeasurement.

    Raises:
        ValidationError: If JSON is invalid or data validation fails
    """
    try:
        data = json.loads(line.strip())
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e

    return dict_to_body_measurement(data)


# ---------------------------------------------------------------------------
# CLI input
# ---------------------------------------------------------------------------


def parse_sets_string(sets_str: str) -> list[tuple[int, float]]:
    """
    Parse a logged-sets string.

    Formats (comma-separated sets):
        reps@kg     e.g. "10@60"        canonical
        reps kg     e.g. "10 60"        space-separated
        reps        e.g. "12"           bodyweight, weight=0
        NxM@kg      e.g. "10x3@60"      N reps x M sets, same weight

    Args:
        sets_str: Sets string to parse

    Returns:
        List of (reps, weight_kg) tuples, one per set

    Raises:
        ValidationError: If format is invalid
    """
    if not sets_str or not sets_str.strip():
        raise ValidationError("Sets string cannot be empty")

    sets: list[tuple[int, float]] = []
    parts = [p.strip() for p in sets_str.split(",") if p.strip()]

    for part in parts:
        match_multi = re.match(r"^(\d+)\s*[xX×]\s*(\d+)(?:\s*@\s*(\d+\.?\d*))?$", part)
        match_at = re.match(r"^(\d+)\s*@\s*(\d+\.?\d*)$", part)
        match_sp = re.match(r"^(\d+)\s+(\d+\.?\d*)$", part)
        match_bare = re.match(r"^(\d+)$", part)

        if match_multi:
            reps = int(match_multi.group(1))
            n_sets = int(match_multi.group(2))
            weight = float(match_multi.group(3) or 0.0)
            if n_sets < 1:
                raise ValidationError(f"Set count must be positive: '{part}'")
            sets.extend([(reps, weight)] * n_sets)
            continue
        if match_at:
            reps, weight = int(match_at.group(1)), float(match_at.group(2))
        elif match_sp:
            reps, weight = int(match_sp.group(1)), float(match_sp.group(2))
        elif match_bare:
            reps, weight = int(match_bare.group(1)), 0.0
        else:
            raise ValidationError(
                f"Invalid set format: '{part}'.\n"
                f"Use: reps@kg (e.g. 10@60), reps kg (e.g. 10 60),\n"
                f"     reps (e.g. 12) or repsxsets@kg (e.g. 10x3@60)."
            )
        sets.append((reps, weight))

    if not sets:
        raise ValidationError("No valid sets found in sets string")

    return sets


def parse_body_values(pairs: list[str]) -> dict[BodyParameter, float]:
    """
    Parse "parameter=value" pairs, e.g. ["weight=80", "waist=85.5"].

    Raises:
        ValidationError: If a pair is malformed, names an unknown parameter,
            repeats a parameter or is out of range
    """
    values: dict[BodyParameter, float] = {}
    for pair in pairs:
        name, sep, raw = pair.partition("=")
        if not sep:
            raise ValidationError(f"Invalid measurement '{pair}'. Use parameter=value, e.g. weight=80")
        try:
            parameter = BodyParameter(name.strip().lower())
        except ValueError as e:
            known = ", ".join(p.value for p in BodyParameter)
            raise ValidationError(f"Unknown body parameter '{name}'. Known: {known}") from e
        if parameter in values:
            raise ValidationError(f"{parameter.value} given more than once")
        try:
            value = float(raw)
        except ValueError as e:
            raise ValidationError(f"Invalid value for {parameter.value}: '{raw}'") from e
        low, high = parameter.valid_range
        if not low <= value <= high:
            raise ValidationError(f"{parameter.value} must be in [{low:g}, {high:g}], got {value:g}")
        values[parameter] = value
    return values
