"""
YAML → CharmDefinition / RuneDefinition loader.

Loads one definition per YAML file from the bundled ``src/repforge/charms/``
and ``src/repforge/runes/`` directories.

User overrides: place matching files in ``~/.repforge/charms/`` or
``~/.repforge/runes/``.  A user file is deep-merged over the bundled
definition, so only changed keys need to be listed.  A user file whose
stem matches no bundled file adds a new item.

Usage (internal, called by registry.py):
    from .loader import load_charms_from_yaml
    charms = load_charms_from_yaml()   # dict, empty when nothing loaded
"""

from __future__ import annotations

import os
import warnings
from pathlib import Path
from typing import Callable, TypeVar

import yaml

from ..engine.config_loader import _deep_merge
from .base import CatalogItem, CharmDefinition, RuneDefinition

T = TypeVar("T", bound=CatalogItem)

_REQUIRED_ITEM_FIELDS: frozenset[str] = frozenset(
    {
        "id",
        "name",
        "description",
        "rarity",
        "effect_type",
    }
)

_CHARM_EFFECT_TYPES: frozenset[str] = frozenset(
    {
        "set_count_bonus",
        "pr_bonus",
        "rep_range_bonus",
        "compound_bonus",
        "first_set_bonus",
        "overload_bonus",
        "streak_bonus",
        "volume_multiplier",
        "compound_mastery",
    }
)

_RUNE_EFFECT_TYPES: frozenset[str] = frozenset(
    {
        "exercise_count",
        "weekly_consistency",
        "pr_count",
        "total_volume",
        "muscle_variety",
    }
)


def _item_kwargs(d: dict, valid_effects: frozenset[str], label: str) -> dict:
    missing = _REQUIRED_ITEM_FIELDS - set(d)
    if missing:
        raise ValueError(f"{label} missing fields: {sorted(missing)}")
    effect_type = str(d["effect_type"])
    if effect_type not in valid_effects:
        raise ValueError(f"{label} has unknown effect_type '{effect_type}'")
    params = d.get("params") or {}
    if not isinstance(params, dict):
        raise ValueError(f"{label} params must be a mapping")
    return dict(
        item_id=str(d["id"]),
        name=str(d["name"]),
        description=str(d["description"]),
        rarity=str(d["rarity"]),
        effect_type=effect_type,
        min_level=int(d.get("min_level", 0)),
        max_drop_level=int(d.get("max_drop_level", 10)),
        percent_bonus=float(d.get("percent_bonus", 0.0)),
        flat_bonus=int(d.get("flat_bonus", 0)),
        params=dict(params),
    )


def charm_from_dict(d: dict) -> CharmDefinition:
    """Convert a raw dict (from YAML) to a CharmDefinition.

    Raises ValueError if a required field is absent or a value is invalid.
    """
    return CharmDefinition(**_item_kwargs(d, _CHARM_EFFECT_TYPES, "CharmDefinition"))


def rune_from_dict(d: dict) -> RuneDefinition:
    """Convert a raw dict (from YAML) to a RuneDefinition."""
    return RuneDefinition(**_item_kwargs(d, _RUNE_EFFECT_TYPES, "RuneDefinition"))


def _load_yaml_file(path: Path) -> dict:
    """Load a YAML file; warn and return {} when it cannot be read."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"repforge: cannot read {path} ({exc})", stacklevel=3)
        return {}
    return data if isinstance(data, dict) else {}


def _get_bundled_dir(kind: str) -> Path | None:
    # loader.py lives at src/repforge/core/catalog/loader.py
    # three levels up → src/repforge/
    candidate = Path(__file__).parent.parent.parent / kind
    return candidate if candidate.is_dir() else None


def _get_user_dir(kind: str) -> Path | None:
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".repforge" / kind
    return p if p.is_dir() else None


def _load_items(kind: str, from_dict: Callable[[dict], T]) -> dict[str, T]:
    bundled_dir = _get_bundled_dir(kind)
    user_dir = _get_user_dir(kind)

    stems: dict[str, Path | None] = {}
    if bundled_dir is not None:
        for p in sorted(bundled_dir.glob("*.yaml")):
            stems[p.stem] = p
    if user_dir is not None:
        for p in sorted(user_dir.glob("*.yaml")):
            stems.setdefault(p.stem, None)

    result: dict[str, T] = {}
    for stem, bundled_path in stems.items():
        raw = _load_yaml_file(bundled_path) if bundled_path is not None else {}
        if user_dir is not None:
            user_path = user_dir / f"{stem}.yaml"
            if user_path.exists():
                raw = _deep_merge(raw, _load_yaml_file(user_path))
        if not raw:
            continue
        try:
            item = from_dict(raw)
        except (ValueError, TypeError) as exc:
            warnings.warn(f"repforge: skipping {kind[:-1]} '{stem}': {exc}", stacklevel=2)
            continue
        result[item.item_id] = item
    return result


def load_charms_from_yaml() -> dict[str, CharmDefinition]:
    """Return {charm_id: CharmDefinition} from bundled and user YAML files."""
    return _load_items("charms", charm_from_dict)


def load_runes_from_yaml() -> dict[str, RuneDefinition]:
    """Return {rune_id: RuneDefinition} from bundled and user YAML files."""
    return _load_items("runes", rune_from_dict)
