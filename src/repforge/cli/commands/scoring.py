"""Scoring commands: score, replay."""

import json
import random
from pathlib import Path
from typing import Annotated, Optional

import typer

from ...core.charm_effects import charm_context_for_set, resolve_charm_bonuses
from ...core.config import DEFAULT_GOAL
from ...core.leveling import xp_to_next_level
from ...core.models import ExerciseBaseline, SetContext
from ...core.points import compute_points
from ...core.records import check_for_pr, effective_load
from ...io.serializers import (
    ValidationError,
    baseline_to_dict,
    completion_to_dict,
    dict_to_workout_log,
    level_segment_to_dict,
    load_data_file,
    muscle_progress_to_dict,
    points_result_to_dict,
    xp_award_to_dict,
)
from .. import views
from ..app import GoalOption, JsonOption, app, get_config


@app.command()
def score(
    reps: Annotated[int, typer.Option("--reps", "-r", help="Reps completed")],
    weight: Annotated[
        Optional[float],
        typer.Option("--weight", "-w", help="Weight in kg (omit for a bodyweight set)"),
    ] = None,
    bodyweight: Annotated[float, typer.Option("--bodyweight", "-b", help="Bodyweight in kg")] = 80.0,
    goal: GoalOption = DEFAULT_GOAL,
    exercise_id: Annotated[str, typer.Option("--exercise", "-e", help="Exercise ID")] = "exercise",
    muscle: Annotated[str, typer.Option("--muscle", "-m", help="Primary muscle")] = "chest",
    compound: Annotated[bool, typer.Option("--compound", help="Multi-muscle exercise")] = False,
    set_number: Annotated[int, typer.Option("--set-number", help="Set position within the exercise")] = 1,
    muscle_set_number: Annotated[
        Optional[int],
        typer.Option("--muscle-set-number", help="Set position for the muscle (defaults to --set-number)"),
    ] = None,
    streak: Annotated[int, typer.Option("--streak", "-s", help="Current workout streak")] = 0,
    weekly_sessions: Annotated[
        int, typer.Option("--weekly-sessions", help="Workouts this week training the muscle")
    ] = 0,
    baseline_load: Annotated[
        Optional[float], typer.Option("--baseline-load", help="Best effective load so far")
    ] = None,
    baseline_reps: Annotated[int, typer.Option("--baseline-reps", help="Reps of that best set")] = 1,
    charms: Annotated[
        Optional[list[str]], typer.Option("--charm", "-c", help="Equipped charm ID (repeatable)")
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Score a single set.
    """
    cfg = get_config()
    try:
        ctx = SetContext(
            exercise_id=exercise_id,
            kind="weighted" if weight is not None else "bodyweight",
            is_compound=compound,
            muscle_group=muscle,
            weight_kg=weight,
            reps=reps,
            exercise_set_number=set_number,
            muscle_set_number=muscle_set_number or set_number,
            bodyweight_kg=bodyweight,
            goal=goal,
            weekly_muscle_sessions=weekly_sessions,
        )
        baseline = None
        if baseline_load is not None:
            baseline = ExerciseBaseline(exercise_id, goal, baseline_load, baseline_reps)

        load = effective_load(ctx, cfg)
        pr = check_for_pr(load, reps, goal, baseline, cfg)
        relative = load / baseline.effective_load if baseline and baseline.effective_load > 0 else None
        # Earlier sets of the exercise are assumed to match this one
        charm_ctx = charm_context_for_set(ctx, [reps] * (set_number - 1), pr.is_pr, streak, relative)
        bonuses = resolve_charm_bonuses(charms or [], charm_ctx, config=cfg)
        result = compute_points(ctx, baseline, streak, bonuses, cfg)
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(points_result_to_dict(result), indent=2))
        return

    views.console.print()
    views.console.print(views.format_points_table(result))
    views.console.print()


@app.command()
def replay(
    workout_file: Annotated[Path, typer.Argument(help="Workout file (YAML or JSON)")],
    seed: Annotated[
        Optional[int],
        typer.Option("--seed", help="Roll charm drops after each exercise with this RNG seed"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Replay a logged workout through the engine and show the totals.
    """
    cfg = get_config()
    try:
        log = dict_to_workout_log(load_data_file(workout_file), cfg)
        session = log.session
        rng = random.Random(seed) if seed is not None else None

        set_rows = []
        drops = []
        for entry in log.exercises:
            for reps, weight in entry.sets:
                logged = session.log_set(entry.exercise, reps, weight)
                set_rows.append((entry.exercise, logged))
            if rng is not None:
                drops.append((entry.exercise, session.complete_exercise(entry.exercise, rng)))
        summary = session.finish(log.ended_at)
    except (ValidationError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({
            "sets": [
                {
                    "exercise_id": ex.exercise_id,
                    "reps": logged.context.reps,
                    "weight_kg": logged.context.weight_kg,
                    "points": points_result_to_dict(logged.result),
                    "xp_awards": [xp_award_to_dict(a) for a in logged.xp_awards],
                    "xp": {m: [level_segment_to_dict(s) for s in segs] for m, segs in logged.level_segments.items()},
                }
                for ex, logged in set_rows
            ],
            "set_points": summary.set_points,
            "completion": completion_to_dict(summary.completion),
            "rune_points": summary.runes.bonus_points,
            "total_points": summary.total_points,
            "streak": summary.streak,
            "pr_count": summary.pr_count,
            "charm_drops": [
                {"exercise_id": ex.exercise_id, "dropped": d.did_drop, "rarity": d.rarity, "tier": d.quality_tier}
                for ex, d in drops
            ],
            "muscle_progress": [muscle_progress_to_dict(p) for p in summary.muscle_progress.values()],
            "baselines": [baseline_to_dict(b) for b in session.baselines.values()],
        }, indent=2))
        return

    views.console.print()
    for ex, logged in set_rows:
        weight_str = f"{logged.context.weight_kg:g}kg" if logged.context.weight_kg is not None else "BW"
        pr_str = " [bold yellow]PR[/bold yellow]" if logged.result.is_pr else ""
        views.console.print(
            f"{ex.name} {weight_str} x{logged.context.reps}: "
            f"[bold]{logged.result.final_points}[/bold] pts{pr_str}"
        )
        for muscle, segments in logged.level_segments.items():
            views.console.print("   " + views.format_segments(muscle, segments))
    views.console.print()

    for ex, drop in drops:
        if drop.did_drop:
            views.print_success(f"Charm drop after {ex.name}: {drop.rarity} (tier {drop.quality_tier})")
    if rng is not None and not any(d.did_drop for _, d in drops):
        views.print_info("No charm drops this workout.")

    bars = {m: xp_to_next_level(p.level, cfg) for m, p in summary.muscle_progress.items()}
    views.console.print(views.format_progress_table(list(summary.muscle_progress.values()), bars))
    views.console.print()

    views.console.print(f"Set points:       {summary.set_points}")
    views.console.print(f"Completion bonus: {summary.completion.bonus_points}")
    for ev in summary.runes.evaluations:
        mark = "[green]+[/green]" if ev.effect.triggered else "[dim]-[/dim]"
        views.console.print(f"  {mark} {ev.rune_name}: {ev.effect.reason}")
    views.console.print(f"Rune bonus:       {summary.runes.bonus_points}")
    views.console.print(f"[bold]Total:            {summary.total_points}[/bold]")
    views.console.print(f"Streak:           {summary.streak}")
    views.console.print()
