"""
CLI entry point using Typer.

Provides commands for training cycle management:
- start: Start a new 30-day cycle and build its plan
- status: Show the current cycle
- plan: Show the workout plan with completion marks
- mark / unmark: Record exercise completion on a plan day
- reset: Abandon the active cycle
- history: Show completed cycles
- schedule: Preview workout dates for a frequency
- log-set: Log sets to the exercise stats log
- stats: Muscle-group volume, insights and daily volume
- adapt: Move planned weights to what the logged sets have earned
- measure: Record body measurements
- body: Latest body measurements and trend projections
- migrate: Convert old-format completion marks
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from . import views
from .app import app
from .commands import body, cycle, progress, stats  # noqa: F401  (registers commands)


def configure_logging(verbose: bool) -> None:
    """Route log records and warnings through Rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=views.err_console, show_path=verbose)],
        force=True,
    )
    logging.captureWarnings(True)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """
    30-day training cycles with exercise rotation and progress statistics.
    """
    configure_logging(verbose)


if __name__ == "__main__":
    app()
