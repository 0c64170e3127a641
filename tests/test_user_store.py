"""
Tests for the JSON-file user store and the serializers behind it.
"""

import json
import threading

import pytest

from fitness_cycle.core.config import COMPLETION_SCHEMA_VERSION
from fitness_cycle.core.models import (
    BodyMeasurement,
    BodyParameter,
    CompletionKey,
    Cycle,
    CycleExerciseHistory,
    CycleHistoryEntry,
    ExerciseStats,
)
from fitness_cycle.core.rotation import build_workout_plan
from fitness_cycle.io.serializers import (
    ValidationError,
    dict_to_completion_document,
    dict_to_cycle,
    parse_sets_string,
)
from fitness_cycle.io.user_store import UserStore, validate_username

from conftest import MONDAY, split_catalog

USER = "alice"


class TestUsernames:
    """Usernames become directory names."""

    @pytest.mark.parametrize("name", ["", "   ", "../evil", "a/b", "a\\b", ".hidden"])
    def test_invalid(self, name):
        with pytest.raises(ValidationError):
            validate_username(name)

    def test_valid(self):
        assert validate_username("alice.smith_1") == "alice.smith_1"

    def test_store_rejects_invalid(self, store):
        with pytest.raises(ValidationError):
            store.load_cycle("../alice")


class TestDocuments:
    """Round-trips through the files on disk."""

    def test_missing_documents(self, store):
        assert store.load_cycle(USER) is None
        assert store.load_plan(USER) is None
        assert store.load_cycle_history(USER) == []
        assert store.load_completion_markers(USER) == set()
        assert store.load_exercise_stats_log(USER) == []
        assert not store.exists(USER)

    def test_cycle_round_trip(self, store):
        cycle = Cycle(cycle_number=3, start_date=MONDAY, days_completed=12, completed_microcycles=1)
        store.save_cycle(USER, cycle)
        assert store.load_cycle(USER) == cycle
        assert store.list_users() == [USER]

    def test_plan_round_trip(self, store):
        plan, usage = build_workout_plan(1, MONDAY, "3x/week", split_catalog(), [])
        store.save_plan(USER, plan)
        store.append_cycle_exercise_history(USER, usage)

        assert store.load_plan(USER) == plan
        assert store.load_cycle_exercise_history(USER) == [usage]

    def test_exercise_history_sorted_by_cycle(self, store):
        for n in (2, 1):
            store.append_cycle_exercise_history(
                USER, CycleExerciseHistory(cycle_number=n, start_date=MONDAY)
            )
        assert [h.cycle_number for h in store.load_cycle_exercise_history(USER)] == [1, 2]

    def test_history_is_appended(self, store):
        for n in (1, 2):
            store.append_cycle_history(USER, CycleHistoryEntry(n, MONDAY, MONDAY + n, 30))
        assert [h.cycle_number for h in store.load_cycle_history(USER)] == [1, 2]

    def test_no_temp_files_left(self, store):
        store.save_cycle(USER, Cycle(cycle_number=1, start_date=MONDAY))
        store.save_cycle(USER, Cycle(cycle_number=1, start_date=MONDAY, days_completed=2))
        assert sorted(p.name for p in store.user_dir(USER).iterdir()) == ["cycle.json"]

    def test_failed_write_removes_temp_file_and_keeps_old_document(self, store):
        store.save_cycle(USER, Cycle(cycle_number=1, start_date=MONDAY))
        path = store.user_dir(USER) / "cycle.json"

        with pytest.raises(TypeError):
            store._write_json(path, {"cycle_number": object()})

        assert sorted(p.name for p in store.user_dir(USER).iterdir()) == ["cycle.json"]
        assert store.load_cycle(USER).cycle_number == 1


class TestLocking:
    """Stores over one directory share each user's lock."""

    def test_second_store_waits_for_the_first(self, store):
        other = UserStore(store.data_dir)
        entered = threading.Event()

        def hold_other():
            with other.lock(USER):
                entered.set()

        with store.lock(USER):
            worker = threading.Thread(target=hold_other)
            worker.start()
            assert not entered.wait(0.2)
        worker.join(timeout=5)

        assert entered.is_set()

    def test_other_users_are_not_blocked(self, store):
        entered = threading.Event()

        def hold_bob():
            with UserStore(store.data_dir).lock("bob"):
                entered.set()

        with store.lock(USER):
            worker = threading.Thread(target=hold_bob)
            worker.start()
            assert entered.wait(5)
        worker.join(timeout=5)

    def test_lock_is_reentrant(self, store):
        with store.lock(USER):
            store.set_completion_marker(USER, CompletionKey(0, "Squat"))
        assert store.load_completion_markers(USER) == {CompletionKey(0, "Squat")}

    def test_lock_files_are_not_users(self, store):
        with store.lock(USER):
            pass
        assert store.list_users() == []


class TestBodyMeasurements:
    """body_measurements.jsonl."""

    def test_append_and_load_sorted(self, store):
        store.append_body_measurements(USER, [BodyMeasurement(BodyParameter.WEIGHT, 81.0, MONDAY + 10)])
        store.append_body_measurements(USER, [
            BodyMeasurement(BodyParameter.WEIGHT, 82.0, MONDAY),
            BodyMeasurement(BodyParameter.BMI, 25.3, MONDAY, calculated=True),
        ])

        loaded = store.load_body_measurements(USER)

        assert [m.value for m in loaded] == [82.0, 25.3, 81.0]
        assert loaded[1].calculated is True

    def test_bad_lines_skipped(self, store):
        path = store.user_dir(USER) / "body_measurements.jsonl"
        path.parent.mkdir(parents=True)
        path.write_text(
            '{"parameter": "weight", "value": 80, "date": 1}\n'
            '{"parameter": "wingspan", "value": 180, "date": 1}\n'
            '{"parameter": "weight", "value": 900, "date": 1}\n'
            "not json\n"
        )
        assert [m.value for m in store.load_body_measurements(USER)] == [80.0]

    def test_missing_file(self, store):
        assert store.load_body_measurements(USER) == []


class TestCorruptDocuments:
    """Unreadable records load as absent."""

    def _write(self, store, filename: str, text: str) -> None:
        path = store.user_dir(USER) / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)

    def test_bad_json(self, store):
        self._write(store, "cycle.json", "{not json")
        assert store.load_cycle(USER) is None

    def test_invalid_values(self, store):
        self._write(store, "cycle.json", json.dumps({"cycle_number": 1, "start_date": 0, "days_completed": 99}))
        assert store.load_cycle(USER) is None

    def test_history_skips_bad_entries(self, store):
        self._write(store, "cycle_history.json", json.dumps([
            {"cycle_number": 1, "start_date": 0, "completed_date": 5, "days_completed": 30},
            {"cycle_number": "one"},
        ]))
        assert [h.cycle_number for h in store.load_cycle_history(USER)] == [1]

    def test_history_not_a_list(self, store):
        self._write(store, "cycle_history.json", json.dumps({"cycle_number": 1}))
        assert store.load_cycle_history(USER) == []

    def test_stats_log_skips_bad_lines(self, store):
        store.append_exercise_stats(USER, ExerciseStats("Squat", MONDAY, 60.0, 10))
        with open(store.user_dir(USER) / "exercise_stats.jsonl", "a") as f:
            f.write("garbage\n")
            f.write(json.dumps({"exercise_name": "Squat", "date": MONDAY, "weight": -5, "reps": 3}) + "\n")
        store.append_exercise_stats(USER, ExerciseStats("Curl", MONDAY + 1, 10.0, 12))

        log = store.load_exercise_stats_log(USER)

        assert [s.exercise_name for s in log] == ["Squat", "Curl"]

    def test_plan_with_bad_day_order(self, store):
        self._write(store, "plan.json", json.dumps({
            "cycle_number": 1,
            "days": [{"day_index": 1, "slot": "Upper", "exercises": []}],
        }))
        assert store.load_plan(USER) is None


class TestCompletionDocument:
    """completion.json formats."""

    def test_markers_round_trip(self, store):
        store.set_completion_marker(USER, CompletionKey(2, "Squat"))
        store.set_completion_marker(USER, CompletionKey(0, "Bench Press"))
        store.clear_completion_marker(USER, CompletionKey(2, "Squat"))

        assert store.load_completion_markers(USER) == {CompletionKey(0, "Bench Press")}
        data = json.loads((store.user_dir(USER) / "completion.json").read_text())
        assert data == {
            "schema_version": COMPLETION_SCHEMA_VERSION,
            "markers": [{"day_index": 0, "exercise": "Bench Press"}],
        }

    def test_clear_completion(self, store):
        store.set_completion_marker(USER, CompletionKey(2, "Squat"))
        store.clear_completion(USER)
        assert store.load_completion_markers(USER) == set()

    def test_legacy_document(self):
        doc = dict_to_completion_document({"Squat": "true", "1_Curl": "TRUE", "Row": "false"})
        assert doc.schema_version == 1
        assert doc.markers == set()
        assert doc.legacy_keys == ["Squat", "1_Curl"]

    def test_future_version_rejected(self):
        with pytest.raises(ValidationError):
            dict_to_completion_document({"schema_version": COMPLETION_SCHEMA_VERSION + 1})


class TestSerializers:
    """Field validation and the sets string parser."""

    def test_missing_total_days_defaults(self):
        cycle = dict_to_cycle({"cycle_number": 1, "start_date": MONDAY})
        assert cycle.total_days == 30

    def test_missing_field(self):
        with pytest.raises(ValidationError):
            dict_to_cycle({"start_date": MONDAY})

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("10@60", [(10, 60.0)]),
            ("10@60, 8@62.5", [(10, 60.0), (8, 62.5)]),
            ("10 40", [(10, 40.0)]),
            ("12", [(12, 0.0)]),
            ("5x3@100", [(5, 100.0)] * 3),
        ],
    )
    def test_parse_sets(self, text, expected):
        assert parse_sets_string(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "10@", "5x0@20"])
    def test_parse_sets_invalid(self, text):
        with pytest.raises(ValidationError):
            parse_sets_string(text)
