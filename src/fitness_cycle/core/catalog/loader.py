"""
YAML -> ExerciseCatalog loader.

Loads the slot catalog from the bundled ``src/fitness_cycle/catalog.yaml``.

User overrides: place a ``catalog.yaml`` in ``~/.fitness-cycle/``.  It is
deep-merged over the bundled catalog, so only changed keys need to be
listed.  Slots are keyed by name: an override slot with an existing name
replaces individual fields (an ``exercises`` list replaces the whole pool);
a new name adds a slot after the bundled ones.

Usage (internal, called by registry.py):
    from .loader import load_catalog_from_yaml
    catalog = load_catalog_from_yaml()   # ExerciseCatalog or None on failure
"""

from __future__ import annotations

import os
import warnings
from pathlib import Path

import yaml

from .base import ExerciseCatalog, ExerciseDescriptor, SlotDefinition

_REQUIRED_SLOT_FIELDS: frozenset[str] = frozenset({"exercises_per_day", "exercises"})
_REQUIRED_EXERCISE_FIELDS: frozenset[str] = frozenset({"name", "muscle_groups"})


def exercise_from_dict(d: dict) -> ExerciseDescriptor:
    """Convert a raw dict (from YAML) to an ExerciseDescriptor.

    Raises ValueError if a required field is absent.
    """
    missing = _REQUIRED_EXERCISE_FIELDS - set(d)
    if missing:
        raise ValueError(f"exercise missing fields: {sorted(missing)}")

    weight = d.get("recommended_weight")
    return ExerciseDescriptor(
        name=str(d["name"]),
        muscle_groups=tuple(str(g) for g in d["muscle_groups"]),
        sets=int(d.get("sets", 3)),
        reps=str(d.get("reps", "10")),
        recommended_weight=float(weight) if weight is not None else None,
    )


def slot_from_dict(name: str, d: dict) -> SlotDefinition:
    """Convert a raw slot dict to a SlotDefinition.

    Raises ValueError on missing fields or duplicate exercise names.
    """
    missing = _REQUIRED_SLOT_FIELDS - set(d)
    if missing:
        raise ValueError(f"slot '{name}' missing fields: {sorted(missing)}")

    exercises = tuple(exercise_from_dict(e) for e in d["exercises"] or [])
    names = [e.name for e in exercises]
    if len(names) != len(set(names)):
        raise ValueError(f"slot '{name}' lists an exercise more than once")

    per_day = int(d["exercises_per_day"])
    if per_day < 1:
        raise ValueError(f"slot '{name}' exercises_per_day must be positive")

    return SlotDefinition(name=name, exercises_per_day=per_day, exercises=exercises)


def catalog_from_dict(d: dict) -> ExerciseCatalog:
    """Convert a full raw catalog dict to an ExerciseCatalog.

    Raises ValueError if the catalog has no slots or the sequence names an
    unknown slot.
    """
    raw_slots = d.get("slots") or {}
    if not isinstance(raw_slots, dict) or not raw_slots:
        raise ValueError("catalog defines no slots")

    slots = tuple(slot_from_dict(str(name), body or {}) for name, body in raw_slots.items())
    known = {s.name for s in slots}

    sequence = tuple(str(s) for s in d.get("sequence") or [])
    unknown = [s for s in sequence if s not in known]
    if unknown:
        raise ValueError(f"sequence names unknown slots: {unknown}")

    return ExerciseCatalog(slots=slots, sequence=sequence)


def _load_yaml_file(path: Path) -> dict:
    """Load a YAML file; return {} on any error."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"fitness-cycle: cannot read {path} ({exc})", stacklevel=2)
        return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def get_bundled_catalog_path() -> Path | None:
    """Return path to the bundled catalog.yaml, or None if not found."""
    # loader.py lives at src/fitness_cycle/core/catalog/loader.py
    # three levels up -> src/fitness_cycle/
    candidate = Path(__file__).parent.parent.parent / "catalog.yaml"
    return candidate if candidate.is_file() else None


def get_user_catalog_path() -> Path | None:
    """Return ~/.fitness-cycle/catalog.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".fitness-cycle" / "catalog.yaml"
    return p if p.is_file() else None


def load_catalog_from_yaml(
    bundled_path: Path | None = None,
    user_path: Path | None = None,
) -> ExerciseCatalog | None:
    """Return the ExerciseCatalog built from bundled YAML plus user overrides.

    Args:
        bundled_path: Base catalog file (default: the bundled catalog.yaml)
        user_path: Override file (default: ~/.fitness-cycle/catalog.yaml if present)

    Returns None (rather than raising) so the registry can report the
    failure in one place.
    """
    bundled_path = bundled_path or get_bundled_catalog_path()
    user_path = user_path or get_user_catalog_path()

    raw: dict = {}
    if bundled_path is not None:
        raw = _load_yaml_file(bundled_path)

    if user_path is not None:
        user_raw = _load_yaml_file(user_path)
        if user_raw:
            raw = _deep_merge(raw, user_raw)

    if not raw:
        return None

    try:
        return catalog_from_dict(raw)
    except (ValueError, TypeError) as exc:
        warnings.warn(f"fitness-cycle: invalid exercise catalog ({exc})", stacklevel=2)
        return None
