"""
Charm and rune catalogs for repforge.

Each item is described by a definition object loaded from bundled YAML.
"""

from .base import CatalogItem, CharmDefinition, RuneDefinition
from .loader import charm_from_dict, rune_from_dict
from .registry import (
    CHARM_REGISTRY,
    RUNE_REGISTRY,
    can_drop,
    can_equip,
    charms_by_rarity,
    charms_for_level,
    get_charm,
    get_rune,
    runes_for_level,
)

__all__ = [
    "CatalogItem",
    "CharmDefinition",
    "RuneDefinition",
    "charm_from_dict",
    "rune_from_dict",
    "CHARM_REGISTRY",
    "RUNE_REGISTRY",
    "can_drop",
    "can_equip",
    "charms_by_rarity",
    "charms_for_level",
    "get_charm",
    "get_rune",
    "runes_for_level",
]
