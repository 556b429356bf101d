"""
CLI entry point using Typer.

Provides commands for the scoring & progression engine:
- score: Score a single set with its bonuses
- replay: Run a logged workout file through a full session
- levels: Show the leveling curve
- charms: List the charm or rune catalog
- recommend: Rank catalog exercises for a workout
"""

from .app import app
from .commands import catalog, progress, scoring  # noqa: F401  (registers commands)

if __name__ == "__main__":
    app()
