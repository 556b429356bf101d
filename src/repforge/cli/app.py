"""Shared Typer app object, shared option types, and config utility."""

import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..core.config import ScoringConfig
from ..core.engine.config_loader import ConfigError, load_scoring_config
from . import views

# Shared --json option type used across all commands
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

GoalOption = Annotated[
    str,
    typer.Option("--goal", "-g", help="Goal bucket: strength, hypertrophy (default), endurance"),
]

app = typer.Typer(
    name="repforge",
    help="Scoring & progression calculator for lifting workouts.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show engine debug logs (PRs, level-ups, decay)"),
    ] = False,
) -> None:
    """
    Score sets, replay workouts and browse charms from the command line.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def get_config() -> ScoringConfig:
    """Load the scoring config, exiting with an error if it is inconsistent."""
    try:
        return load_scoring_config()
    except ConfigError as e:
        views.print_error(f"Invalid scoring config: {e}")
        raise typer.Exit(1)
