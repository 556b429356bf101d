"""Catalog commands: charms, recommend."""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer

from ...core.catalog.registry import CHARM_REGISTRY, RUNE_REGISTRY, charms_for_level, runes_for_level
from ...core.recommendation import RecommendationContext, recommend_exercises
from ...io.serializers import ValidationError, dict_to_exercise, load_data_file, scored_exercise_to_dict
from .. import views
from ..app import JsonOption, app, get_config


@app.command()
def charms(
    level: Annotated[
        Optional[int],
        typer.Option("--level", "-l", help="Only items that can drop at this user level"),
    ] = None,
    runes: Annotated[bool, typer.Option("--runes", help="List runes instead of charms")] = False,
    json_out: JsonOption = False,
) -> None:
    """
    List the charm (or rune) catalog.
    """
    if runes:
        items = runes_for_level(level) if level is not None else list(RUNE_REGISTRY.values())
    elif level is not None:
        items = charms_for_level(level)
    else:
        items = list(CHARM_REGISTRY.values())

    if json_out:
        print(json.dumps([
            {
                "id": i.item_id,
                "name": i.name,
                "rarity": i.rarity,
                "effect_type": i.effect_type,
                "min_level": i.min_level,
                "max_drop_level": i.max_drop_level,
                "percent_bonus": i.percent_bonus,
                "flat_bonus": i.flat_bonus,
            }
            for i in items
        ], indent=2))
        return

    views.console.print()
    views.console.print(views.format_catalog_table(items, "Runes" if runes else "Charms"))
    views.console.print()


@app.command()
def recommend(
    catalog_file: Annotated[Path, typer.Argument(help="Exercise catalog (YAML or JSON)")],
    muscles: Annotated[
        Optional[list[str]],
        typer.Option("--muscle", "-m", help="Workout muscle group (repeatable; omit for full body)"),
    ] = None,
    limit: Annotated[Optional[int], typer.Option("--limit", "-n", help="Number of results")] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Rank catalog exercises for a workout.

    The file holds 'exercises' plus optional 'muscle_workload' (sets per
    muscle over 7 days), 'exercise_usage' (lifetime sets per exercise) and
    'completed' (exercise ids already done this session).
    """
    cfg = get_config()
    try:
        data = load_data_file(catalog_file)
        if not isinstance(data, dict) or "exercises" not in data:
            raise ValidationError(f"{catalog_file} has no 'exercises' list")
        exercises = [dict_to_exercise(e) for e in data["exercises"]]
        context = RecommendationContext(
            muscle_workload={str(k).lower(): int(v) for k, v in (data.get("muscle_workload") or {}).items()},
            exercise_usage={str(k): int(v) for k, v in (data.get("exercise_usage") or {}).items()},
            completed_exercise_ids=frozenset(data.get("completed") or ()),
        )
    except (ValidationError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    ranked = recommend_exercises(exercises, muscles or [], context, limit=limit, config=cfg)

    if json_out:
        print(json.dumps([scored_exercise_to_dict(s) for s in ranked], indent=2))
        return

    views.console.print()
    if not ranked:
        views.print_warning("No exercises match the requested muscle groups.")
    else:
        views.console.print(views.format_recommendation_table(ranked))
    views.console.print()
