"""Shared Typer app object, shared option types, and engine utility."""

from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.catalog import get_catalog
from ..core.engine.config_loader import load_settings
from ..core.engine.training_engine import TrainingEngine
from ..core.schedule import to_millis
from ..io.serializers import ValidationError
from ..io.user_store import UserStore, validate_username
from . import views

DEFAULT_USER = "default"

# Shared option types used across commands
UserOption = Annotated[
    str,
    typer.Option("--user", "-u", help="Username whose data to use"),
]
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-p", help="Data directory (default: from config / FITNESS_CYCLE_HOME)"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="fitness-cycle",
    help="30-day training cycles with exercise rotation and progress statistics.",
    no_args_is_help=True,
)


def get_store(data_dir: Path | None) -> UserStore:
    """Get a user store from path or the configured data directory."""
    if data_dir is None:
        data_dir = load_settings().data_dir
    return UserStore(data_dir)


def get_engine(data_dir: Path | None) -> TrainingEngine:
    """Build a TrainingEngine over the store and the bundled exercise catalog."""
    try:
        catalog = get_catalog()
    except RuntimeError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    return TrainingEngine(get_store(data_dir), catalog, load_settings())


def check_user(user: str) -> str:
    """Validate the --user option, exiting with an error if it is unusable."""
    try:
        return validate_username(user)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


def parse_date(value: str | None) -> int | None:
    """Parse a YYYY-MM-DD option to local-midnight epoch ms (None stays None)."""
    if value is None:
        return None
    try:
        return to_millis(datetime.strptime(value, "%Y-%m-%d").date())
    except ValueError:
        views.print_error(f"Invalid date: {value}. Expected YYYY-MM-DD")
        raise typer.Exit(1)
