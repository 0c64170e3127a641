"""
Exercise catalog registry.

The catalog is loaded once per process from ``src/fitness_cycle/catalog.yaml``
(plus ``~/.fitness-cycle/catalog.yaml`` overrides) on first use.  If loading
fails for any reason (parse error, missing field, no slots), a RuntimeError
is raised; the engine cannot build plans without a valid catalog.
"""

from .base import ExerciseCatalog

_CATALOG: ExerciseCatalog | None = None


def _build_catalog() -> ExerciseCatalog:
    from .loader import load_catalog_from_yaml

    loaded = load_catalog_from_yaml()
    if loaded is None:
        raise RuntimeError(
            "fitness-cycle: no exercise catalog could be loaded from YAML. "
            "Check that src/fitness_cycle/catalog.yaml is present and valid."
        )
    return loaded


def get_catalog() -> ExerciseCatalog:
    """
    Return the process-wide ExerciseCatalog, loading it on first call.

    Raises:
        RuntimeError: If the catalog cannot be loaded
    """
    global _CATALOG
    if _CATALOG is None:
        _CATALOG = _build_catalog()
    return _CATALOG
