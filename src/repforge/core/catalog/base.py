"""
Base types for charm and rune definitions.

Charms modify individual sets; runes modify a finished workout.  Both are
immutable catalog data: what a user has equipped is external state the
engine only reads.
"""

from dataclasses import dataclass, field
from typing import Any, Literal

from ..models import RARITY_ORDER

CharmEffectType = Literal[
    "set_count_bonus",
    "pr_bonus",
    "rep_range_bonus",
    "compound_bonus",
    "first_set_bonus",
    "overload_bonus",
    "streak_bonus",
    "volume_multiplier",
    "compound_mastery",
]

RuneEffectType = Literal[
    "exercise_count",
    "weekly_consistency",
    "pr_count",
    "total_volume",
    "muscle_variety",
]


@dataclass(frozen=True)
class CatalogItem:
    """
    Fields shared by charms and runes.

    min_level gates equipping; max_drop_level caps the user level at which
    the item can still be awarded.
    """

    item_id: str
    name: str
    description: str
    rarity: str              # "common" | "rare" | "epic"
    effect_type: str
    min_level: int = 0
    max_drop_level: int = 10
    percent_bonus: float = 0.0   # Fraction, 0.10 = +10%
    flat_bonus: int = 0          # Points added regardless of set size
    params: dict[str, Any] = field(default_factory=dict)  # Effect thresholds

    def __post_init__(self) -> None:
        if self.rarity not in RARITY_ORDER:
            raise ValueError(f"Invalid rarity: {self.rarity}")
        if self.min_level < 0:
            raise ValueError("min_level must be non-negative")
        if self.max_drop_level < self.min_level:
            raise ValueError("max_drop_level must be >= min_level")
        if self.percent_bonus < 0:
            raise ValueError("percent_bonus must be non-negative")
        if self.flat_bonus < 0:
            raise ValueError("flat_bonus must be non-negative")

    @property
    def rarity_rank(self) -> int:
        """Position in common < rare < epic."""
        return RARITY_ORDER.index(self.rarity)

    def param(self, key: str, default: Any) -> Any:
        """Effect threshold from params, or *default* when not set."""
        return self.params.get(key, default)


@dataclass(frozen=True)
class CharmDefinition(CatalogItem):
    """A set-level modifier."""


@dataclass(frozen=True)
class RuneDefinition(CatalogItem):
    """A workout-level modifier, applied when the session ends."""
