"""Progression commands: levels."""

import json
from typing import Annotated, Optional

import typer

from ...core.leveling import level_from_total_xp, level_requirement, xp_for_level, xp_to_next_level
from .. import views
from ..app import JsonOption, app, get_config


@app.command()
def levels(
    xp: Annotated[
        Optional[int],
        typer.Option("--xp", "-x", help="Show the level reached with this much lifetime XP"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show the leveling curve.
    """
    cfg = get_config()
    rows = [
        (level, level_requirement(level, cfg), xp_for_level(level, cfg))
        for level in range(1, cfg.max_level + 1)
    ]

    reached = None
    if xp is not None:
        if xp < 0:
            views.print_error("--xp must be non-negative")
            raise typer.Exit(1)
        reached = level_from_total_xp(xp, cfg)

    if json_out:
        out: dict = {
            "max_level": cfg.max_level,
            "levels": [{"level": lv, "xp_required": need, "cumulative_xp": total} for lv, need, total in rows],
        }
        if reached is not None:
            out["reached"] = {
                "level": reached[0],
                "xp_in_level": reached[1],
                "xp_to_next_level": xp_to_next_level(reached[0], cfg),
            }
        print(json.dumps(out, indent=2))
        return

    views.console.print()
    views.console.print(views.format_level_table(rows))
    if reached is not None:
        level, in_level = reached
        bar = xp_to_next_level(level, cfg)
        progress = f"{in_level}/{bar} XP into the next level" if bar else "mastered"
        views.console.print(f"{xp} XP -> level [bold]{level}[/bold] ({progress})")
    views.console.print()
