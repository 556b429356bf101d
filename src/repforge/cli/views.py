"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of scoring and progression data.
"""

from rich.console import Console
from rich.table import Table

from ..core.catalog.base import CatalogItem
from ..core.models import LevelSegment, MuscleProgress, PointsResult, ScoredExercise

console = Console()


def format_points_table(result: PointsResult, title: str = "Set Points") -> Table:
    """
    Create a Rich table breaking a set's points into its bonuses.

    Args:
        result: Scored set

    Returns:
        Rich Table object
    """
    table = Table(title=title)
    table.add_column("Bonus", style="cyan")
    table.add_column("Placement", style="magenta")
    table.add_column("Effect", justify="right")
    table.add_column("Detail")

    table.add_row("base", "", str(result.base_points), "load x reps")
    for b in result.bonuses:
        effect = f"{b.multiplier:+.0%}" if b.multiplier else ""
        if b.flat_points:
            effect = f"{effect} +{b.flat_points}".strip()
        table.add_row(b.kind, b.placement, effect, b.description)
    table.add_row("[bold]final[/bold]", "", f"[bold]{result.final_points}[/bold]", "PR" if result.is_pr else "")
    return table


def format_level_table(rows: list[tuple[int, int, int]]) -> Table:
    """Table of (level, XP for that level, cumulative XP)."""
    table = Table(title="Leveling Curve")
    table.add_column("Level", justify="right", style="cyan")
    table.add_column("XP to reach", justify="right")
    table.add_column("Cumulative XP", justify="right", style="bold")
    for level, need, total in rows:
        table.add_row(str(level), str(need), str(total))
    return table


def format_progress_table(progress: list[MuscleProgress], bars: dict[str, int]) -> Table:
    """Table of muscle levels; bars maps lowercase muscle to its level bar size."""
    table = Table(title="Muscle Progress")
    table.add_column("Muscle", style="cyan")
    table.add_column("Level", justify="right", style="bold")
    table.add_column("XP", justify="right")
    table.add_column("Total XP", justify="right", style="dim")
    for p in sorted(progress, key=lambda p: (-p.level, p.muscle_group)):
        bar = bars.get(p.muscle_group.lower(), 0)
        xp = f"{p.xp_in_level}/{bar}" if bar else "MAX"
        table.add_row(p.muscle_group, str(p.level), xp, str(p.total_xp))
    return table


def format_segments(muscle: str, segments: list[LevelSegment]) -> str:
    """One-line summary of a gain's level segments, e.g. 'chest 3 -> 4 (+12 XP)'."""
    if not segments:
        return f"{muscle}: no XP"
    xp = sum(s.xp_applied for s in segments)
    start, end = segments[0].start_level, segments[-1].end_level
    if end > start:
        return f"[green]{muscle} {start} -> {end}[/green] (+{xp} XP)"
    return f"{muscle} L{end} {segments[-1].end_progress:.0%} (+{xp} XP)"


def format_recommendation_table(scored: list[ScoredExercise]) -> Table:
    """Table of ranked exercises with their score components."""
    table = Table(title="Recommended Exercises")
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Exercise", style="cyan")
    table.add_column("Score", justify="right", style="bold")
    table.add_column("Need", justify="right")
    table.add_column("Usage", justify="right")
    table.add_column("Equip", justify="right")
    table.add_column("Compound", justify="right")
    table.add_column("Done", justify="right", style="red")
    for i, s in enumerate(scored, 1):
        table.add_row(
            str(i),
            s.exercise.name,
            f"{s.score:.1f}",
            f"{s.muscle_need_score:.1f}",
            f"{s.usage_score:.1f}",
            f"{s.equipment_score:.0f}",
            f"{s.compound_score:.0f}",
            f"{s.already_done_score:.0f}" if s.already_done_score else "",
        )
    return table


_RARITY_STYLE = {"common": "white", "rare": "blue", "epic": "magenta"}


def format_catalog_table(items: list[CatalogItem], title: str) -> Table:
    """Table of charm or rune definitions."""
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Rarity")
    table.add_column("Levels", justify="right")
    table.add_column("Effect")
    for item in items:
        style = _RARITY_STYLE.get(item.rarity, "white")
        table.add_row(
            item.item_id,
            item.name,
            f"[{style}]{item.rarity}[/{style}]",
            f"{item.min_level}-{item.max_drop_level}",
            item.description,
        )
    return table


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")
