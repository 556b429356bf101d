"""
Charm and rune registries.

Definitions are loaded from the bundled ``src/repforge/charms/`` and
``src/repforge/runes/`` YAML files at import time.  An empty charm catalog
is a RuntimeError: the application cannot start without it.

User overrides: place matching files in ``~/.repforge/charms/`` or
``~/.repforge/runes/``.
"""

from typing import Mapping

from .base import CatalogItem, CharmDefinition, RuneDefinition


def _build_charm_registry() -> dict[str, CharmDefinition]:
    from .loader import load_charms_from_yaml

    loaded = load_charms_from_yaml()
    if not loaded:
        raise RuntimeError(
            "repforge: no charm definitions could be loaded from YAML. "
            "Check that src/repforge/charms/*.yaml files are present and valid."
        )
    return loaded


def _build_rune_registry() -> dict[str, RuneDefinition]:
    from .loader import load_runes_from_yaml

    return load_runes_from_yaml()


CHARM_REGISTRY: dict[str, CharmDefinition] = _build_charm_registry()
RUNE_REGISTRY: dict[str, RuneDefinition] = _build_rune_registry()


def get_charm(
    charm_id: str,
    catalog: Mapping[str, CharmDefinition] | None = None,
) -> CharmDefinition | None:
    """
    Return the CharmDefinition for *charm_id*, or None when unknown.

    Unknown ids are a normal state (a charm retired from the catalog can
    still sit in a user's equip list), so this never raises.
    """
    return (CHARM_REGISTRY if catalog is None else catalog).get(charm_id)


def get_rune(
    rune_id: str,
    catalog: Mapping[str, RuneDefinition] | None = None,
) -> RuneDefinition | None:
    """Return the RuneDefinition for *rune_id*, or None when unknown."""
    return (RUNE_REGISTRY if catalog is None else catalog).get(rune_id)


def can_equip(item: CatalogItem, user_level: int) -> bool:
    """Whether a user at *user_level* may equip *item*."""
    return user_level >= item.min_level


def can_drop(item: CatalogItem, user_level: int) -> bool:
    """Whether *item* may still be awarded to a user at *user_level*."""
    return item.min_level <= user_level <= item.max_drop_level


def charms_for_level(
    user_level: int,
    catalog: Mapping[str, CharmDefinition] | None = None,
) -> list[CharmDefinition]:
    """Charms that may drop for a user at *user_level*, common first."""
    items = (CHARM_REGISTRY if catalog is None else catalog).values()
    return sorted(
        (c for c in items if can_drop(c, user_level)),
        key=lambda c: c.rarity_rank,
    )


def charms_by_rarity(
    rarity: str,
    catalog: Mapping[str, CharmDefinition] | None = None,
) -> list[CharmDefinition]:
    """All charms of one rarity tier, in catalog order."""
    items = (CHARM_REGISTRY if catalog is None else catalog).values()
    return [c for c in items if c.rarity == rarity]


def runes_for_level(
    user_level: int,
    catalog: Mapping[str, RuneDefinition] | None = None,
) -> list[RuneDefinition]:
    """Runes that may drop for a user at *user_level*, common first."""
    items = (RUNE_REGISTRY if catalog is None else catalog).values()
    return sorted(
        (r for r in items if can_drop(r, user_level)),
        key=lambda r: r.rarity_rank,
    )
