"""
YAML → ScoringConfig loader.

Loads tunables from scoring.yaml (bundled with the package) and optionally
merges user overrides from ~/.repforge/scoring.yaml.

Usage:
    from repforge.core.engine.config_loader import load_scoring_config
    cfg = load_scoring_config()
    result = compute_points(ctx, baseline, streak, config=cfg)

A file that cannot be read or parsed produces a warning and is ignored, so
a broken override falls back to the bundled values.  The merged result is
validated; an inconsistent config raises ConfigError.
"""

from __future__ import annotations

import dataclasses
import os
import warnings
from pathlib import Path
from typing import Any

import yaml

from ..config import DEFAULT_CONFIG, GOAL_BUCKETS, RepRange, ScoringConfig
from ..leveling import level_requirement
from ..records import PR_COMPARATOR_FUNCS


class ConfigError(ValueError):
    """Raised when a scoring config is internally inconsistent."""


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; warn and return {} when unreadable."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"repforge: ignoring {path} ({exc})", stacklevel=3)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        warnings.warn(f"repforge: ignoring {path} (top level is not a mapping)", stacklevel=3)
        return {}
    return data


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _to_tuple(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return tuple(_to_tuple(v) for v in value)
    return value


def _coerce(name: str, value: Any) -> Any:
    """Convert a YAML value to the type of the matching ScoringConfig default."""
    default = getattr(DEFAULT_CONFIG, name)
    if isinstance(default, bool):
        return bool(value)
    if isinstance(default, int):
        if isinstance(value, float) and not value.is_integer():
            raise ConfigError(f"{name} must be a whole number (got {value})")
        return int(value)
    if isinstance(default, float):
        return float(value)
    if isinstance(default, tuple):
        return _to_tuple(value)
    if isinstance(default, dict):
        if not isinstance(value, dict):
            raise ConfigError(f"{name} must be a mapping")
        return dict(value)
    return value


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled scoring.yaml, or None if not found."""
    candidate = Path(__file__).parent.parent.parent / "scoring.yaml"
    return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return ~/.repforge/scoring.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".repforge" / "scoring.yaml"
    return p if p.exists() else None


def config_from_dict(raw: dict[str, Any]) -> ScoringConfig:
    """
    Build a ScoringConfig from a sectioned YAML mapping.

    rep_ranges and pr_comparators are top-level mappings keyed by goal
    bucket.  Every other section holds UPPER_CASE keys named after the
    constants in config.py.  Unknown keys are reported and skipped.

    Raises:
        ConfigError: If a value has the wrong shape
    """
    fields = {f.name for f in dataclasses.fields(ScoringConfig)}
    values: dict[str, Any] = {}

    for section, body in raw.items():
        if not isinstance(body, dict):
            raise ConfigError(f"Section '{section}' must be a mapping")

        if section == "rep_ranges":
            ranges = dict(DEFAULT_CONFIG.rep_ranges)
            for goal, bounds in body.items():
                try:
                    ranges[goal] = RepRange(min_reps=int(bounds["min"]), max_reps=int(bounds["max"]))
                except (KeyError, TypeError, ValueError) as exc:
                    raise ConfigError(f"Bad rep range for '{goal}': {exc}") from exc
            values["rep_ranges"] = ranges
            continue

        if section == "pr_comparators":
            comparators = dict(DEFAULT_CONFIG.pr_comparators)
            comparators.update({str(k): str(v) for k, v in body.items()})
            values["pr_comparators"] = comparators
            continue

        for key, value in body.items():
            name = str(key).lower()
            if name not in fields or name in ("rep_ranges", "pr_comparators"):
                warnings.warn(f"repforge: unknown config key {section}.{key}", stacklevel=2)
                continue
            try:
                values[name] = _coerce(name, value)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"Bad value for {section}.{key}: {exc}") from exc

    return dataclasses.replace(DEFAULT_CONFIG, **values)


def validate_scoring_config(cfg: ScoringConfig) -> ScoringConfig:
    """
    Check a config for internal consistency.

    Returns:
        cfg unchanged, so calls can be chained

    Raises:
        ConfigError: On the first inconsistency found
    """
    for goal in GOAL_BUCKETS:
        if goal not in cfg.rep_ranges:
            raise ConfigError(f"No rep range for goal bucket '{goal}'")
        rule = cfg.pr_comparators.get(goal)
        if rule is None:
            raise ConfigError(f"No PR comparator for goal bucket '{goal}'")
        if rule not in PR_COMPARATOR_FUNCS:
            valid = ", ".join(PR_COMPARATOR_FUNCS)
            raise ConfigError(f"Unknown PR comparator '{rule}' for '{goal}'. Valid: {valid}")

    for goal, rr in cfg.rep_ranges.items():
        if rr.min_reps < 1 or rr.min_reps > rr.max_reps:
            raise ConfigError(f"Invalid rep range for '{goal}': {rr.min_reps}-{rr.max_reps}")

    non_negative: list[tuple[str, float]] = [
        ("bodyweight_factor", cfg.bodyweight_factor),
        ("compound_base_factor", cfg.compound_base_factor),
        ("rep_range_bonus", cfg.rep_range_bonus),
        ("overload_bonus", cfg.overload_bonus),
        ("streak_bonus_max", cfg.streak_bonus_max),
        ("volume_penalty_per_set", cfg.volume_penalty_per_set),
        ("decay_grace_days", cfg.decay_grace_days),
        ("decay_min_level", cfg.decay_min_level),
        ("xp_base_per_set", cfg.xp_base_per_set),
        ("completion_base_bonus", cfg.completion_base_bonus),
        ("completion_per_extra_exercise", cfg.completion_per_extra_exercise),
    ]
    for tiers_name in ("weekly_consistency_tiers", "completion_set_tiers", "completion_duration_tiers"):
        non_negative.extend((tiers_name, bonus) for _, bonus in getattr(cfg, tiers_name))
    non_negative.extend((f"equipment_weights.{k}", w) for k, w in cfg.equipment_weights.items())
    for name, value in non_negative:
        if value < 0:
            raise ConfigError(f"{name} must be non-negative (got {value})")

    if not 0.0 < cfg.volume_min_multiplier <= 1.0:
        raise ConfigError("volume_min_multiplier must be in (0, 1]")
    if cfg.decay_days_per_level <= 0:
        raise ConfigError("decay_days_per_level must be positive")
    if cfg.streak_half_life_days <= 0:
        raise ConfigError("streak_half_life_days must be positive")
    if cfg.max_level < 1:
        raise ConfigError("max_level must be at least 1")

    if len(cfg.drop_chance_by_tier) != 4:
        raise ConfigError("drop_chance_by_tier needs one chance per quality tier (4)")
    for name, value in [
        ("drop_chance_by_tier", min(cfg.drop_chance_by_tier)),
        ("drop_pity_bonus_per_set", cfg.drop_pity_bonus_per_set),
        ("drop_pr_bonus", cfg.drop_pr_bonus),
        ("drop_adherence_max_bonus", cfg.drop_adherence_max_bonus),
        ("rarity_tier_shift", cfg.rarity_tier_shift),
        ("rarity_pr_shift", cfg.rarity_pr_shift),
        ("rarity_adherence_max_shift", cfg.rarity_adherence_max_shift),
    ]:
        if value < 0:
            raise ConfigError(f"{name} must be non-negative (got {value})")
    if not 0.0 <= cfg.rarity_common_threshold <= cfg.rarity_rare_threshold <= 1.0:
        raise ConfigError("rarity thresholds must satisfy 0 <= common <= rare <= 1")
    if cfg.rare_min_muscle_level > cfg.epic_min_muscle_level:
        raise ConfigError("rare_min_muscle_level must not exceed epic_min_muscle_level")

    # Strictly increasing cumulative curve <=> every level costs at least 1 XP
    for level in range(1, cfg.max_level + 1):
        if level_requirement(level, cfg) < 1:
            raise ConfigError(f"Leveling curve is not strictly increasing at level {level}")

    return cfg


def load_scoring_config() -> ScoringConfig:
    """
    Load, merge and validate the scoring config.

    Load order (later overrides earlier):
    1. Bundled src/repforge/scoring.yaml
    2. User override at ~/.repforge/scoring.yaml

    Returns:
        Validated ScoringConfig (DEFAULT_CONFIG values where YAML is silent)
    """
    raw: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        raw = _deep_merge(raw, _load_yaml_file(bundled))

    user = get_user_yaml_path()
    if user is not None:
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            raw = _deep_merge(raw, user_cfg)

    return validate_scoring_config(config_from_dict(raw))
