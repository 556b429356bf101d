"""
Tests for the charm catalog and the per-set charm resolver.
"""

import pytest

from repforge.core.catalog import (
    CHARM_REGISTRY,
    RUNE_REGISTRY,
    CharmDefinition,
    can_drop,
    can_equip,
    charm_from_dict,
    charms_by_rarity,
    charms_for_level,
    get_charm,
)
from repforge.core.charm_effects import (
    CharmContext,
    charm_context_for_set,
    evaluate_charms,
    resolve_charm_bonuses,
)
from repforge.core.models import SetContext

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _charm(item_id: str, effect_type: str, *, pct: float = 0.1, flat: int = 0, **params) -> CharmDefinition:
    return CharmDefinition(
        item_id=item_id,
        name=item_id.replace("_", " ").title(),
        description="test charm",
        rarity="common",
        effect_type=effect_type,
        percent_bonus=pct,
        flat_bonus=flat,
        params=params,
    )


def _ctx(*reps: int, **kwargs) -> CharmContext:
    return CharmContext(goal=kwargs.pop("goal", "hypertrophy"), set_reps=reps or (8,), **kwargs)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class TestCatalog:
    def test_bundled_charms_loaded(self):
        for charm_id in ("momentum", "iron_will", "volume_master", "rage_mode", "perfect_form"):
            assert charm_id in CHARM_REGISTRY

    def test_bundled_runes_loaded(self):
        assert set(RUNE_REGISTRY) == {"endurance", "consistency", "pr_hunter", "volume_king", "full_body"}

    def test_unknown_id_is_none(self):
        assert get_charm("not_a_charm") is None

    def test_equip_vs_drop_window(self):
        epic = CHARM_REGISTRY["rage_mode"]
        assert not can_equip(epic, 9)
        assert can_equip(epic, 60)
        assert can_drop(epic, 10)
        assert not can_drop(epic, 51)

    def test_charms_for_level_sorted_by_rarity(self):
        charms = charms_for_level(12)
        ranks = [c.rarity_rank for c in charms]
        assert ranks == sorted(ranks)
        # Commons stop dropping after level 10
        assert all(c.rarity != "common" for c in charms)

    def test_charms_by_rarity(self):
        assert {c.item_id for c in charms_by_rarity("epic")} == {"rage_mode", "perfect_form"}

    def test_invalid_definitions_rejected(self):
        with pytest.raises(ValueError):
            _charm("x", "pr_bonus", pct=-0.1)
        with pytest.raises(ValueError):
            CharmDefinition("x", "X", "d", "legendary", "pr_bonus")
        with pytest.raises(ValueError):
            CharmDefinition("x", "X", "d", "rare", "pr_bonus", min_level=10, max_drop_level=5)

    def test_from_dict(self):
        charm = charm_from_dict({
            "id": "lucky",
            "name": "Lucky",
            "description": "d",
            "rarity": "rare",
            "effect_type": "streak_bonus",
            "percent_bonus": 0.2,
            "params": {"min_streak": 5},
        })
        assert charm.item_id == "lucky"
        assert charm.param("min_streak", 3) == 5
        assert charm.param("missing", 7) == 7

    def test_from_dict_rejects_unknown_effect(self):
        with pytest.raises(ValueError):
            charm_from_dict({
                "id": "x", "name": "X", "description": "d", "rarity": "common", "effect_type": "teleport",
            })

    def test_from_dict_requires_fields(self):
        with pytest.raises(ValueError, match="missing fields"):
            charm_from_dict({"id": "x", "name": "X"})


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class TestCharmContext:
    def test_requires_current_set(self):
        with pytest.raises(ValueError):
            CharmContext(goal="hypertrophy", set_reps=())

    def test_built_from_set_context(self):
        set_ctx = SetContext(
            "bench", "weighted", True, "Chest", 100.0, 8, 3, 3, 80.0,
            secondary_muscles=("Triceps", "Shoulders"),
        )
        ctx = charm_context_for_set(set_ctx, [10, 9], is_pr=False, current_streak=4)
        assert ctx.set_reps == (10, 9, 8)
        assert ctx.sets_completed == 3
        assert ctx.muscle_group_count == 3
        assert ctx.is_compound is True


class TestEffects:
    @pytest.mark.parametrize(
        "charm,context,expected",
        [
            (_charm("m", "set_count_bonus", min_sets=3), _ctx(8, 8), False),
            (_charm("m", "set_count_bonus", min_sets=3), _ctx(8, 8, 8), True),
            (_charm("p", "pr_bonus", pct=0.0, flat=25), _ctx(is_pr=True), True),
            (_charm("p", "pr_bonus", pct=0.0, flat=25), _ctx(), False),
            (_charm("o", "overload_bonus", pct=0.0, flat=100), _ctx(is_pr=True), True),
            (_charm("r", "rep_range_bonus"), _ctx(8, 10, 12), True),
            (_charm("r", "rep_range_bonus"), _ctx(8, 14), False),
            (_charm("c", "compound_bonus", min_muscles=2), _ctx(muscle_group_count=2), True),
            (_charm("c", "compound_bonus", min_muscles=2), _ctx(), False),
            (_charm("f", "first_set_bonus"), _ctx(8), True),
            (_charm("f", "first_set_bonus"), _ctx(8, 8), False),
            (_charm("s", "streak_bonus", min_streak=3), _ctx(current_streak=3), True),
            (_charm("s", "streak_bonus", min_streak=3), _ctx(current_streak=2), False),
            (_charm("v", "volume_multiplier", min_set_number=4), _ctx(8, 8, 8, 8), True),
            (_charm("v", "volume_multiplier", min_set_number=4), _ctx(8, 8, 8), False),
            (_charm("h", "compound_mastery", min_reps=5, min_relative_intensity=0.85),
             _ctx(6, relative_intensity=0.9), True),
            (_charm("h", "compound_mastery", min_reps=5, min_relative_intensity=0.85),
             _ctx(6, relative_intensity=0.8), False),
            (_charm("h", "compound_mastery", min_reps=5, min_relative_intensity=0.85),
             _ctx(6), False),
        ],
    )
    def test_trigger_conditions(self, charm, context, expected):
        (evaluation,) = evaluate_charms([charm.item_id], context, catalog={charm.item_id: charm})
        assert evaluation.triggered is expected
        assert (evaluation.bonus is not None) is expected
        assert evaluation.reason

    def test_only_volume_multiplier_is_multiplicative(self):
        catalog = {
            "v": _charm("v", "volume_multiplier", pct=0.2, min_set_number=1),
            "f": _charm("f", "first_set_bonus"),
        }
        bonuses = resolve_charm_bonuses(["v", "f"], _ctx(8), catalog=catalog)
        assert [(b.source_id, b.placement) for b in bonuses] == [
            ("v", "multiplicative"),
            ("f", "additive"),
        ]

    def test_bonus_carries_charm_values(self):
        catalog = {"iron": _charm("iron", "pr_bonus", pct=0.0, flat=25)}
        (bonus,) = resolve_charm_bonuses(["iron"], _ctx(is_pr=True), catalog=catalog)
        assert bonus.kind == "charm"
        assert bonus.flat_points == 25
        assert bonus.multiplier == 0.0
        assert "Iron" in bonus.description


class TestResolver:
    def test_unknown_ids_skipped(self):
        assert resolve_charm_bonuses(["nope", "also_nope"], _ctx()) == []

    def test_duplicates_count_once(self):
        bonuses = resolve_charm_bonuses(["first_rep", "first_rep"], _ctx(8))
        assert len(bonuses) == 1

    def test_equip_order_preserved(self):
        evaluations = evaluate_charms(["momentum", "first_rep", "iron_will"], _ctx(8, 8, 8))
        assert [e.charm_id for e in evaluations] == ["momentum", "first_rep", "iron_will"]
        assert [e.triggered for e in evaluations] == [True, False, False]

    def test_nothing_equipped(self):
        assert resolve_charm_bonuses([], _ctx()) == []
