"""
Tests for the YAML exercise catalog: bundled data, user overrides, validation.
"""

import pytest

from fitness_cycle.core.catalog import registry
from fitness_cycle.core.catalog.loader import (
    catalog_from_dict,
    get_bundled_catalog_path,
    load_catalog_from_yaml,
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point HOME at an empty directory so no real user override is read."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


class TestBundledCatalog:
    """The catalog shipped with the package."""

    def test_loads(self):
        catalog = load_catalog_from_yaml()
        assert catalog is not None
        assert catalog.slot_sequence() == ["Arms", "Shoulders", "Chest & Back", "Legs & Core", "Cardio"]

    def test_every_slot_can_fill_a_day(self):
        catalog = load_catalog_from_yaml()
        for slot in catalog.slot_sequence():
            assert len(catalog.candidates_for(slot)) >= catalog.exercises_per_day(slot)

    def test_daily_counts(self):
        catalog = load_catalog_from_yaml()
        assert catalog.exercises_per_day("Arms") == 4
        assert catalog.exercises_per_day("Cardio") == 2

    def test_muscle_lookup(self):
        catalog = load_catalog_from_yaml()
        assert catalog.muscle_groups_for("Squat") == ["quads", "glutes"]
        assert catalog.muscle_lookup()["Squat"] == ["quads", "glutes"]
        assert catalog.muscle_groups_for("Moon Jump") == []

    def test_unknown_slot(self):
        catalog = load_catalog_from_yaml()
        assert catalog.candidates_for("Neck") == []
        assert catalog.exercises_per_day("Neck") == 0


class TestUserOverrides:
    """~/.fitness-cycle/catalog.yaml is deep-merged over the bundled file."""

    def test_override_changes_one_field(self, isolated_home):
        override = isolated_home / ".fitness-cycle" / "catalog.yaml"
        override.parent.mkdir()
        override.write_text("slots:\n  Cardio:\n    exercises_per_day: 1\n")

        catalog = load_catalog_from_yaml()

        assert catalog.exercises_per_day("Cardio") == 1
        assert len(catalog.candidates_for("Cardio")) == 4
        assert catalog.exercises_per_day("Arms") == 4

    def test_override_adds_slot(self, tmp_path):
        override = tmp_path / "extra.yaml"
        override.write_text(
            "slots:\n"
            "  Mobility:\n"
            "    exercises_per_day: 1\n"
            "    exercises:\n"
            "      - {name: Hip Opener, muscle_groups: [hips]}\n"
            "sequence: [Arms, Mobility]\n"
        )

        catalog = load_catalog_from_yaml(user_path=override)

        assert catalog.slot_sequence() == ["Arms", "Mobility"]
        assert catalog.candidates_for("Mobility")[0].name == "Hip Opener"

    def test_broken_override_is_ignored(self, tmp_path):
        override = tmp_path / "broken.yaml"
        override.write_text("slots: [unclosed\n")

        with pytest.warns(UserWarning):
            catalog = load_catalog_from_yaml(user_path=override)

        assert catalog is not None
        assert catalog.exercises_per_day("Cardio") == 2

    def test_invalid_override_fails_loading(self, tmp_path):
        override = tmp_path / "bad.yaml"
        override.write_text("sequence: [Arms, Neck]\n")

        with pytest.warns(UserWarning):
            assert load_catalog_from_yaml(user_path=override) is None


class TestCatalogValidation:
    """catalog_from_dict rejects malformed data."""

    def _slot(self, **overrides):
        body = {
            "exercises_per_day": 1,
            "exercises": [{"name": "Squat", "muscle_groups": ["quads"]}],
        }
        body.update(overrides)
        return {"slots": {"Legs": body}}

    def test_minimal(self):
        catalog = catalog_from_dict(self._slot())
        assert catalog.slot_sequence() == ["Legs"]
        assert catalog.candidates_for("Legs")[0].sets == 3

    def test_no_slots(self):
        with pytest.raises(ValueError):
            catalog_from_dict({"slots": {}})

    def test_duplicate_exercise(self):
        dup = [{"name": "Squat", "muscle_groups": ["quads"]}] * 2
        with pytest.raises(ValueError):
            catalog_from_dict(self._slot(exercises=dup))

    def test_non_positive_daily_count(self):
        with pytest.raises(ValueError):
            catalog_from_dict(self._slot(exercises_per_day=0))

    def test_missing_muscle_groups(self):
        with pytest.raises(ValueError):
            catalog_from_dict(self._slot(exercises=[{"name": "Squat"}]))


class TestRegistry:
    """Process-wide catalog access."""

    def test_loaded_once(self, monkeypatch):
        monkeypatch.setattr(registry, "_CATALOG", None)
        first = registry.get_catalog()
        assert registry.get_catalog() is first

    def test_failure_raises(self, monkeypatch):
        monkeypatch.setattr(registry, "_CATALOG", None)
        monkeypatch.setattr("fitness_cycle.core.catalog.loader.load_catalog_from_yaml", lambda: None)
        with pytest.raises(RuntimeError):
            registry.get_catalog()

    def test_bundled_path_exists(self):
        assert get_bundled_catalog_path() is not None
