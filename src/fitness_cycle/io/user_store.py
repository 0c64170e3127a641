"""
JSON-file storage for per-user cycle data.

Each user gets one directory under the data directory:

    <data_dir>/<username>/
        cycle.json                    current cycle record (active or completed)
        cycle_history.json            archived cycles, append-only
        cycle_exercise_history.json   exercises used per cycle, append-only
        completion.json               completion markers + schema_version
        plan.json                     workout plan of the current cycle
        exercise_stats.jsonl          logged sets, one JSON object per line
        body_measurements.jsonl       body measurements, one JSON object per line

JSON documents are replaced atomically (temporary file + rename), so a
reader sees either the previous or the new version. Missing or corrupt
documents load as None / empty and are logged.

Read-modify-write updates (history appends, marker changes, log appends)
run under the user's lock, which is shared with every other store and
process using the same data directory.
"""

import json
import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, TypeVar

from ..core.config import COMPLETION_SCHEMA_VERSION
from ..core.engine.config_loader import load_settings
from ..core.engine.locks import UserLocks
from ..core.models import (
    BodyMeasurement,
    CompletionDocument,
    CompletionKey,
    Cycle,
    CycleExerciseHistory,
    CycleHistoryEntry,
    ExerciseStats,
    WorkoutPlan,
)
from .serializers import (
    ValidationError,
    body_measurement_to_json_line,
    completion_document_to_dict,
    cycle_to_dict,
    dict_to_completion_document,
    dict_to_cycle,
    dict_to_exercise_history,
    dict_to_history_entry,
    dict_to_workout_plan,
    exercise_history_to_dict,
    history_entry_to_dict,
    json_line_to_body_measurement,
    json_line_to_stats,
    stats_to_json_line,
    workout_plan_to_dict,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

CYCLE_FILE = "cycle.json"
CYCLE_HISTORY_FILE = "cycle_history.json"
EXERCISE_HISTORY_FILE = "cycle_exercise_history.json"
COMPLETION_FILE = "completion.json"
PLAN_FILE = "plan.json"
STATS_FILE = "exercise_stats.jsonl"
BODY_FILE = "body_measurements.jsonl"


def validate_username(username: str) -> str:
    """
    Validate a username for use as a directory name.

    Raises:
        ValidationError: If username is empty, contains a path separator
            or starts with a dot
    """
    if not isinstance(username, str) or not username.strip():
        raise ValidationError("Username must be a non-empty string")
    if "/" in username or "\\" in username or "\x00" in username:
        raise ValidationError(f"Invalid username: {username!r}")
    if username.startswith("."):
        raise ValidationError(f"Username must not start with a dot: {username!r}")
    return username


class UserStore:
    """
    Per-user JSON document store.

    Implements the CycleStore interface used by the training engine.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the store.

        Args:
            data_dir: Root directory holding one subdirectory per user
        """
        self.data_dir = Path(data_dir)
        self.locks = UserLocks(self.data_dir)

    def user_dir(self, username: str) -> Path:
        return self.data_dir / validate_username(username)

    def exists(self, username: str) -> bool:
        """Check if any data has been stored for the user."""
        return self.user_dir(username).is_dir()

    def lock(self, username: str) -> AbstractContextManager[None]:
        """Exclusive, re-entrant hold on the user's documents."""
        return self.locks.for_user(validate_username(username))

    def list_users(self) -> list[str]:
        if not self.data_dir.is_dir():
            return []
        return sorted(p.name for p in self.data_dir.iterdir() if p.is_dir() and not p.name.startswith("."))

    # ------------------------------------------------------------------
    # Low-level document access
    # ------------------------------------------------------------------

    def _path(self, username: str, filename: str) -> Path:
        return self.user_dir(username) / filename

    def _write_json(self, path: Path, data: Any) -> None:
        """Replace path with data in one atomic rename."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile("w", dir=path.parent, delete=False, encoding="utf-8", suffix=".tmp") as tmp:
            temp_path = Path(tmp.name)
            try:
                json.dump(data, tmp, indent=2)
            except BaseException:
                tmp.close()
                temp_path.unlink(missing_ok=True)
                raise
        try:
            temp_path.replace(path)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise

    def _read_json(self, path: Path) -> Any | None:
        """Return the parsed document, or None if it is missing or unreadable."""
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable document %s: %s", path, e)
            return None

    def _load_record(self, path: Path, convert: Callable[[dict], T]) -> T | None:
        data = self._read_json(path)
        if data is None:
            return None
        try:
            return convert(data)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring invalid document %s: %s", path, e)
            return None

    def _load_list(self, path: Path, convert: Callable[[dict], T]) -> list[T]:
        """Load a JSON array, skipping entries that fail validation."""
        data = self._read_json(path)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning("Ignoring %s: expected a list", path)
            return []
        items: list[T] = []
        for i, raw in enumerate(data):
            try:
                items.append(convert(raw))
            except (ValidationError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping entry %d in %s: %s", i, path, e)
        return items

    def _delete(self, path: Path) -> None:
        path.unlink(missing_ok=True)

    # ------------------------------------------------------------------
    # Cycle record
    # ------------------------------------------------------------------

    def load_cycle(self, username: str) -> Cycle | None:
        return self._load_record(self._path(username, CYCLE_FILE), dict_to_cycle)

    def save_cycle(self, username: str, cycle: Cycle) -> None:
        self._write_json(self._path(username, CYCLE_FILE), cycle_to_dict(cycle))

    def delete_cycle(self, username: str) -> None:
        self._delete(self._path(username, CYCLE_FILE))

    # ------------------------------------------------------------------
    # Cycle history
    # ------------------------------------------------------------------

    def load_cycle_history(self, username: str) -> list[CycleHistoryEntry]:
        return self._load_list(self._path(username, CYCLE_HISTORY_FILE), dict_to_history_entry)

    def append_cycle_history(self, username: str, entry: CycleHistoryEntry) -> None:
        with self.lock(username):
            history = self.load_cycle_history(username)
            history.append(entry)
            self._write_json(
                self._path(username, CYCLE_HISTORY_FILE),
                [history_entry_to_dict(h) for h in history],
            )

    def load_cycle_exercise_history(self, username: str) -> list[CycleExerciseHistory]:
        """Return per-cycle exercise usage, ordered by cycle number."""
        history = self._load_list(
            self._path(username, EXERCISE_HISTORY_FILE), dict_to_exercise_history
        )
        history.sort(key=lambda h: h.cycle_number)
        return history

    def append_cycle_exercise_history(self, username: str, entry: CycleExerciseHistory) -> None:
        with self.lock(username):
            history = self.load_cycle_exercise_history(username)
            history.append(entry)
            self._write_json(
                self._path(username, EXERCISE_HISTORY_FILE),
                [exercise_history_to_dict(h) for h in history],
            )

    # ------------------------------------------------------------------
    # Completion markers
    # ------------------------------------------------------------------

    def load_completion_document(self, username: str) -> CompletionDocument | None:
        return self._load_record(
            self._path(username, COMPLETION_FILE), dict_to_completion_document
        )

    def save_completion_document(self, username: str, document: CompletionDocument) -> None:
        self._write_json(
            self._path(username, COMPLETION_FILE),
            completion_document_to_dict(document),
        )

    def load_completion_markers(self, username: str) -> set[CompletionKey]:
        doc = self.load_completion_document(username)
        return set(doc.markers) if doc is not None else set()

    def set_completion_marker(self, username: str, key: CompletionKey) -> None:
        with self.lock(username):
            doc = self.load_completion_document(username)
            if doc is None:
                doc = CompletionDocument(schema_version=COMPLETION_SCHEMA_VERSION)
            if key in doc.markers:
                return
            doc.markers.add(key)
            self.save_completion_document(username, doc)

    def clear_completion_marker(self, username: str, key: CompletionKey) -> None:
        with self.lock(username):
            doc = self.load_completion_document(username)
            if doc is None or key not in doc.markers:
                return
            doc.markers.discard(key)
            self.save_completion_document(username, doc)

    def clear_completion(self, username: str) -> None:
        """Remove all markers; the empty document is written at the current version."""
        self.save_completion_document(
            username, CompletionDocument(schema_version=COMPLETION_SCHEMA_VERSION)
        )

    # ------------------------------------------------------------------
    # Workout plan
    # ------------------------------------------------------------------

    def load_plan(self, username: str) -> WorkoutPlan | None:
        return self._load_record(self._path(username, PLAN_FILE), dict_to_workout_plan)

    def save_plan(self, username: str, plan: WorkoutPlan) -> None:
        self._write_json(self._path(username, PLAN_FILE), workout_plan_to_dict(plan))

    def delete_plan(self, username: str) -> None:
        self._delete(self._path(username, PLAN_FILE))

    # ------------------------------------------------------------------
    # Exercise stats log
    # ------------------------------------------------------------------

    def load_exercise_stats_log(self, username: str) -> list[ExerciseStats]:
        """
        Load every logged set, oldest first.

        Lines that fail to parse are skipped individually.
        """
        path = self._path(username, STATS_FILE)
        if not path.exists():
            return []

        entries: list[ExerciseStats] = []
        with open(path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                if not line.strip():
                    continue
                try:
                    entries.append(json_line_to_stats(line))
                except ValidationError as e:
                    logger.warning("Skipping line %d in %s: %s", line_num, path, e)

        entries.sort(key=lambda s: s.date)
        return entries

    def append_exercise_stats(self, username: str, stats: ExerciseStats) -> None:
        path = self._path(username, STATS_FILE)
        with self.lock(username):
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(stats_to_json_line(stats) + "\n")

    def clear_exercise_stats(self, username: str) -> None:
        """Clear the stats log (dangerous - use with caution)."""
        path = self._path(username, STATS_FILE)
        with self.lock(username):
            if path.exists():
                path.write_text("")

    # ------------------------------------------------------------------
    # Body measurements
    # ------------------------------------------------------------------

    def load_body_measurements(self, username: str) -> list[BodyMeasurement]:
        """Load every body measurement, oldest first; bad lines are skipped."""
        path = self._path(username, BODY_FILE)
        if not path.exists():
            return []

        entries: list[BodyMeasurement] = []
        with open(path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                if not line.strip():
                    continue
                try:
                    entries.append(json_line_to_body_measurement(line))
                except ValidationError as e:
                    logger.warning("Skipping line %d in %s: %s", line_num, path, e)

        entries.sort(key=lambda m: m.date)
        return entries

    def append_body_measurements(self, username: str, measurements: list[BodyMeasurement]) -> None:
        if not measurements:
            return
        path = self._path(username, BODY_FILE)
        with self.lock(username):
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                for m in measurements:
                    f.write(body_measurement_to_json_line(m) + "\n")


def get_default_data_dir() -> Path:
    """Return the configured data directory (config.yaml / FITNESS_CYCLE_HOME)."""
    return load_settings().data_dir


def get_default_store() -> UserStore:
    """
    Get a UserStore rooted at the configured data directory.

    Returns:
        UserStore instance
    """
    return UserStore(get_default_data_dir())
