"""
Exercise catalog for fitness-cycle.

The catalog maps muscle-group slots to ordered candidate exercises and
exercises to the muscle groups they train.
"""

from .base import ExerciseCatalog, ExerciseDescriptor, SlotDefinition
from .registry import get_catalog

__all__ = [
    "ExerciseCatalog",
    "ExerciseDescriptor",
    "SlotDefinition",
    "get_catalog",
]
