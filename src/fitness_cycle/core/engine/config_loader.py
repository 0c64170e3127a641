"""
YAML -> typed engine settings loader.

Loads settings from config.yaml (bundled with the package) and optionally
merges user overrides from ~/.fitness-cycle/config.yaml.

Usage:
    from fitness_cycle.core.engine.config_loader import load_settings
    settings = load_settings()
    store = UserStore(settings.data_dir)

If the bundled YAML cannot be parsed, every field falls back to the Python
defaults from config.py (no crash).  If the user override file exists but
has parse errors, a warning is emitted and the file is ignored.
"""

from __future__ import annotations

import os
import warnings
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ..config import (
    BALANCE_TOLERANCE,
    DEFAULT_FREQUENCY,
    DEFAULT_RECENCY_WINDOW,
    STALE_GROUP_DAYS,
)

DATA_DIR_ENV = "FITNESS_CYCLE_HOME"
DEFAULT_DATA_DIR = "~/.fitness-cycle/data"


@dataclass(frozen=True)
class EngineSettings:
    """Runtime-tunable engine settings."""

    data_dir: Path
    default_frequency: str = DEFAULT_FREQUENCY
    recency_window: int | None = DEFAULT_RECENCY_WINDOW
    stale_group_days: int = STALE_GROUP_DAYS
    balance_tolerance: float = BALANCE_TOLERANCE


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; return {} on any error."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"fitness-cycle: ignoring {path} ({exc})", stacklevel=2)
        return {}


def _setting(section: dict[str, Any], key: str, convert: Callable[[Any], Any], default: Any) -> Any:
    """Convert one setting; warn and use the default when the value does not fit."""
    value = section.get(key, default)
    if value is None:
        return default
    try:
        return convert(value)
    except (TypeError, ValueError):
        warnings.warn(
            f"fitness-cycle: invalid {key} {value!r}, using default {default!r}",
            stacklevel=3,
        )
        return default


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    section = config.get(name) or {}
    if not isinstance(section, dict):
        warnings.warn(f"fitness-cycle: ignoring {name} section (expected a mapping)", stacklevel=3)
        return {}
    return section


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled config.yaml, or None if not found."""
    candidate = Path(__file__).parent.parent.parent / "config.yaml"
    return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return ~/.fitness-cycle/config.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".fitness-cycle" / "config.yaml"
    return p if p.exists() else None


def load_config() -> dict[str, Any]:
    """
    Load and merge raw configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/fitness_cycle/config.yaml
    2. User override at ~/.fitness-cycle/config.yaml

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = get_user_yaml_path()
    if user is not None:
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            config = _deep_merge(config, user_cfg)

    return config


def settings_from_config(config: dict[str, Any]) -> EngineSettings:
    """
    Build EngineSettings from a raw config dict, falling back to defaults.

    A value of the wrong type (e.g. recency_window: all) emits a warning
    and the default for that field is used.
    """
    engine = _section(config, "engine")
    insights = _section(config, "insights")

    data_dir = os.environ.get(DATA_DIR_ENV) or engine.get("data_dir") or DEFAULT_DATA_DIR

    return EngineSettings(
        data_dir=Path(str(data_dir)).expanduser(),
        default_frequency=str(engine.get("default_frequency") or DEFAULT_FREQUENCY),
        recency_window=_setting(engine, "recency_window", int, DEFAULT_RECENCY_WINDOW),
        stale_group_days=_setting(insights, "stale_group_days", int, STALE_GROUP_DAYS),
        balance_tolerance=_setting(insights, "balance_tolerance", float, BALANCE_TOLERANCE),
    )


def load_settings() -> EngineSettings:
    """Load EngineSettings from bundled + user YAML and the environment."""
    return settings_from_config(load_config())
