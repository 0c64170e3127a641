"""
Base types for the exercise catalog.

ExerciseCatalog is the lookup structure the engine consults: for each
muscle-group slot, the ordered candidate exercises; for each exercise, the
muscle groups it trains. SlotDefinition and ExerciseDescriptor describe one
slot and one candidate respectively.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExerciseDescriptor:
    """One candidate exercise in a slot's pool."""

    name: str                           # e.g. "Barbell Curl"
    muscle_groups: tuple[str, ...]      # e.g. ("biceps", "forearms")
    sets: int = 3
    reps: str = "10"                    # "10", "8-12" or "12,10,8"
    recommended_weight: float | None = None  # kg; None for bodyweight / cardio


@dataclass(frozen=True)
class SlotDefinition:
    """A named muscle-group slot and its ordered candidate pool."""

    name: str                           # e.g. "Chest & Back"
    exercises_per_day: int
    exercises: tuple[ExerciseDescriptor, ...] = ()


@dataclass(frozen=True)
class ExerciseCatalog:
    """
    Slot -> candidates and exercise -> muscle-group lookups.

    sequence is the order in which slots are assigned to consecutive plan
    days; it defaults to the declaration order of the slots.
    """

    slots: tuple[SlotDefinition, ...]
    sequence: tuple[str, ...] = field(default=())

    def _slot(self, slot: str) -> SlotDefinition | None:
        for s in self.slots:
            if s.name == slot:
                return s
        return None

    def slot_sequence(self) -> list[str]:
        if self.sequence:
            return list(self.sequence)
        return [s.name for s in self.slots]

    def candidates_for(self, slot: str) -> list[ExerciseDescriptor]:
        """Return the ordered candidate list for a slot ([] for unknown slots)."""
        s = self._slot(slot)
        return list(s.exercises) if s is not None else []

    def exercises_per_day(self, slot: str) -> int:
        s = self._slot(slot)
        return s.exercises_per_day if s is not None else 0

    def muscle_groups_for(self, exercise_name: str) -> list[str]:
        """Return the muscle groups of an exercise ([] if not in the catalog)."""
        for s in self.slots:
            for ex in s.exercises:
                if ex.name == exercise_name:
                    return list(ex.muscle_groups)
        return []

    def muscle_lookup(self) -> dict[str, list[str]]:
        """Return {exercise name: muscle groups} across all slots."""
        lookup: dict[str, list[str]] = {}
        for s in self.slots:
            for ex in s.exercises:
                lookup.setdefault(ex.name, list(ex.muscle_groups))
        return lookup

    def all_muscle_groups(self) -> list[str]:
        """Return every muscle group mentioned in the catalog, in first-seen order."""
        groups: list[str] = []
        for s in self.slots:
            for ex in s.exercises:
                for g in ex.muscle_groups:
                    if g not in groups:
                        groups.append(g)
        return groups
