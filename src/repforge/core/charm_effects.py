"""
Charm modifier resolver.

Each charm effect type maps to one EffectRule: a predicate over a shared
CharmContext and the placement of the resulting bonus.  Charm definitions
only carry data (percent, flat points, thresholds), so a new charm of an
existing effect type is a new YAML file, while a new effect type needs one
predicate here plus a loader entry.

Triggered charms become PointBonus entries of kind "charm".  Every effect is
additive except volume_multiplier, which joins the multiplicative tail ahead
of volume scaling.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping

from .catalog.base import CharmDefinition
from .catalog.registry import get_charm
from .config import ScoringConfig, resolve_config
from .models import Placement, PointBonus, SetContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CharmContext:
    """
    What the resolver knows about the set being scored.

    set_reps holds the reps of every set of this exercise in the current
    workout, the set being scored included (so len(set_reps) is the set's
    position within the exercise).
    """

    goal: str
    set_reps: tuple[int, ...]
    is_compound: bool = False
    muscle_group_count: int = 1
    is_pr: bool = False
    current_streak: int = 0
    relative_intensity: float | None = None  # Effective load / baseline load

    def __post_init__(self) -> None:
        if not self.set_reps:
            raise ValueError("set_reps must include the set being scored")

    @property
    def sets_completed(self) -> int:
        return len(self.set_reps)


def charm_context_for_set(
    ctx: SetContext,
    previous_reps: Iterable[int],
    is_pr: bool,
    current_streak: int,
    relative_intensity: float | None = None,
) -> CharmContext:
    """Build the resolver context for *ctx* given the exercise's earlier sets."""
    return CharmContext(
        goal=ctx.goal,
        set_reps=(*previous_reps, ctx.reps),
        is_compound=ctx.is_compound,
        muscle_group_count=ctx.muscle_group_count,
        is_pr=is_pr,
        current_streak=current_streak,
        relative_intensity=relative_intensity,
    )


Predicate = Callable[[CharmDefinition, CharmContext, ScoringConfig], tuple[bool, str]]


@dataclass(frozen=True)
class EffectRule:
    """Condition and placement for one charm effect type."""

    predicate: Predicate
    placement: Placement = "additive"


@dataclass(frozen=True)
class CharmEvaluation:
    """One equipped charm checked against one set."""

    charm_id: str
    charm_name: str
    triggered: bool
    reason: str
    bonus: PointBonus | None = None


# =============================================================================
# PREDICATES
# =============================================================================


def _set_count(charm: CharmDefinition, ctx: CharmContext, cfg: ScoringConfig) -> tuple[bool, str]:
    need = int(charm.param("min_sets", 3))
    if ctx.sets_completed >= need:
        return True, f"Completed {ctx.sets_completed} sets ({need}+ required)"
    return False, f"Only {ctx.sets_completed} sets (need {need}+)"


def _pr(charm: CharmDefinition, ctx: CharmContext, cfg: ScoringConfig) -> tuple[bool, str]:
    return (True, "Hit a PR!") if ctx.is_pr else (False, "No PR on this set")


def _all_in_range(charm: CharmDefinition, ctx: CharmContext, cfg: ScoringConfig) -> tuple[bool, str]:
    rep_range = cfg.rep_range(ctx.goal)
    if all(rep_range.contains(r) for r in ctx.set_reps):
        return True, f"All {ctx.sets_completed} sets in {ctx.goal} rep range"
    return False, f"Not all sets in {ctx.goal} rep range"


def _compound(charm: CharmDefinition, ctx: CharmContext, cfg: ScoringConfig) -> tuple[bool, str]:
    need = int(charm.param("min_muscles", 2))
    if ctx.is_compound or ctx.muscle_group_count >= need:
        return True, f"Compound exercise ({ctx.muscle_group_count} muscles)"
    return False, "Single muscle exercise"


def _first_set(charm: CharmDefinition, ctx: CharmContext, cfg: ScoringConfig) -> tuple[bool, str]:
    if ctx.sets_completed == 1:
        return True, "First set of the exercise"
    return False, f"Set {ctx.sets_completed} of the exercise"


def _streak(charm: CharmDefinition, ctx: CharmContext, cfg: ScoringConfig) -> tuple[bool, str]:
    need = int(charm.param("min_streak", 3))
    if ctx.current_streak >= need:
        return True, f"{ctx.current_streak} workout streak"
    return False, f"Streak {ctx.current_streak} (need {need}+)"


def _late_set(charm: CharmDefinition, ctx: CharmContext, cfg: ScoringConfig) -> tuple[bool, str]:
    need = int(charm.param("min_set_number", 4))
    if ctx.sets_completed >= need:
        return True, f"Set {ctx.sets_completed} of the exercise"
    return False, f"Set {ctx.sets_completed} (bonus from set {need})"


def _heavy_set(charm: CharmDefinition, ctx: CharmContext, cfg: ScoringConfig) -> tuple[bool, str]:
    min_reps = int(charm.param("min_reps", 5))
    min_intensity = float(charm.param("min_relative_intensity", 0.85))
    reps = ctx.set_reps[-1]
    if ctx.relative_intensity is None:
        return False, "No baseline to judge weight against"
    if reps >= min_reps and ctx.relative_intensity >= min_intensity:
        return True, f"{reps} reps at {ctx.relative_intensity:.0%} of best"
    return False, f"{reps} reps at {ctx.relative_intensity:.0%} of best"


EFFECTS: dict[str, EffectRule] = {
    "set_count_bonus": EffectRule(_set_count),
    "pr_bonus": EffectRule(_pr),
    "overload_bonus": EffectRule(_pr),
    "rep_range_bonus": EffectRule(_all_in_range),
    "compound_bonus": EffectRule(_compound),
    "first_set_bonus": EffectRule(_first_set),
    "streak_bonus": EffectRule(_streak),
    "volume_multiplier": EffectRule(_late_set, placement="multiplicative"),
    "compound_mastery": EffectRule(_heavy_set),
}


# =============================================================================
# RESOLVER
# =============================================================================


def _charm_bonus(charm: CharmDefinition, rule: EffectRule, reason: str) -> PointBonus:
    parts = []
    if charm.percent_bonus:
        parts.append(f"{charm.percent_bonus:+.0%}")
    if charm.flat_bonus:
        parts.append(f"+{charm.flat_bonus} pts")
    return PointBonus(
        kind="charm",
        multiplier=charm.percent_bonus,
        description=f"{charm.name}: {reason} {' '.join(parts)}".rstrip(),
        placement=rule.placement,
        flat_points=charm.flat_bonus,
        source_id=charm.item_id,
    )


def evaluate_charms(
    equipped_ids: Iterable[str],
    context: CharmContext,
    catalog: Mapping[str, CharmDefinition] | None = None,
    config: ScoringConfig | None = None,
) -> list[CharmEvaluation]:
    """
    Check every equipped charm against one set.

    Unknown ids and repeated ids are skipped.  The result keeps equip order
    and includes charms whose condition failed, for display.

    Args:
        equipped_ids: Charm ids in equip order
        context: Resolver context for the set
        catalog: Charm catalog (CHARM_REGISTRY when None)

    Returns:
        One CharmEvaluation per distinct known charm
    """
    cfg = resolve_config(config)
    seen: set[str] = set()
    results: list[CharmEvaluation] = []

    for charm_id in equipped_ids:
        if charm_id in seen:
            continue
        seen.add(charm_id)

        charm = get_charm(charm_id, catalog)
        rule = EFFECTS.get(charm.effect_type) if charm is not None else None
        if charm is None or rule is None:
            logger.debug("Skipping unknown charm '%s'", charm_id)
            continue

        triggered, reason = rule.predicate(charm, context, cfg)
        results.append(
            CharmEvaluation(
                charm_id=charm.item_id,
                charm_name=charm.name,
                triggered=triggered,
                reason=reason,
                bonus=_charm_bonus(charm, rule, reason) if triggered else None,
            )
        )
    return results


def resolve_charm_bonuses(
    equipped_ids: Iterable[str],
    context: CharmContext,
    catalog: Mapping[str, CharmDefinition] | None = None,
    config: ScoringConfig | None = None,
) -> list[PointBonus]:
    """PointBonus entries of the triggered charms, in equip order."""
    return [
        e.bonus
        for e in evaluate_charms(equipped_ids, context, catalog, config)
        if e.bonus is not None
    ]
