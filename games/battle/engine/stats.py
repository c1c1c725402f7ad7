# games/battle/engine/stats.py
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from .errors import InvalidCreatureData
from .models import BattleStats, Creature
from .rules import soft_cap
from ..content.balance import ATTRIBUTES, CAPS, DEFAULTS, RARITY_MULTIPLIERS

logger = logging.getLogger(__name__)


def _as_int(data: Mapping[str, Any], key: str, default: int = 0) -> int:
    value = data.get(key, default)
    if value is None:
        value = default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise InvalidCreatureData(f"'{key}' must be an integer, got {value!r}.")
    if parsed < 0:
        raise InvalidCreatureData(f"'{key}' must not be negative.")
    return parsed


def read_attributes(data: Mapping[str, Any]) -> Dict[str, float]:
    """Pull the five base attributes out of an attribute bag."""
    if not isinstance(data, Mapping):
        raise InvalidCreatureData("Creature data must be a mapping.")
    bag = data.get("stats")
    if not isinstance(bag, Mapping):
        raise InvalidCreatureData("Creature data is missing its base stats.")
    attributes: Dict[str, float] = {}
    for name in ATTRIBUTES:
        value = bag.get(name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidCreatureData(f"Base attribute '{name}' is missing or not a number.")
        attributes[name] = float(value)
    return attributes


def rarity_multiplier(rarity: str) -> float:
    if rarity not in RARITY_MULTIPLIERS:
        raise InvalidCreatureData(f"Unknown rarity '{rarity}'.")
    return RARITY_MULTIPLIERS[rarity]


def form_multiplier(form: int) -> float:
    return 1 + form * 0.25


def combination_multiplier(level: int) -> float:
    return 1 + level * 0.1


def specialty_multipliers(specialty_stats) -> Dict[str, float]:
    multipliers = {name: 1.0 for name in ATTRIBUTES}
    stats = [s for s in (specialty_stats or []) if s in multipliers]
    if len(stats) == 1:
        multipliers[stats[0]] = 1.8
    elif len(stats) >= 2:
        for name in stats:
            multipliers[name] = 1.4
    return multipliers


def _capped(key: str, raw: float) -> int:
    soft, hard = CAPS[key]
    return int(round(soft_cap(raw, soft, hard)))


def derive_stats(data: Mapping[str, Any]) -> BattleStats:
    """
    Derive battle stats from a creature's attribute bag.

    Combines the base attributes with form, rarity and combination level.
    Pure: the same bag always yields the same stats.
    """
    attrs = read_attributes(data)
    form = _as_int(data, "form")
    combination_level = _as_int(data, "combination_level")
    rarity = data.get("rarity") or "Common"
    boost = specialty_multipliers(data.get("specialty_stats"))

    energy = attrs["energy"]
    strength = attrs["strength"]
    magic = attrs["magic"]
    stamina = attrs["stamina"]
    speed = attrs["speed"]

    growth = form_multiplier(form) * combination_multiplier(combination_level)
    mult = growth * rarity_multiplier(rarity)

    energy_cost = data.get("energy_cost")
    if energy_cost is None:
        energy_cost = DEFAULTS["default_energy_cost"] + form

    stats = BattleStats(
        max_health=_capped("max_health", (50 + stamina * 4 * boost["stamina"] + energy * 1.5) * mult),
        physical_attack=_capped("physical_attack", (10 + strength * 2.5 * boost["strength"] + speed * 0.5) * mult),
        magical_attack=_capped("magical_attack", (10 + magic * 2.5 * boost["magic"] + energy * 0.5) * mult),
        physical_defense=_capped("physical_defense", (5 + stamina * 2 * boost["stamina"] + strength * 0.5) * mult),
        magical_defense=_capped("magical_defense", (5 + energy * 2 * boost["energy"] + magic * 0.5) * mult),
        initiative=_capped("initiative", (10 + speed * 2.5 * boost["speed"] + energy * 0.3) * growth),
        critical_chance=int(round(min(5 + speed * 0.6 * boost["speed"] + magic * 0.2, CAPS["critical_chance_max"]))),
        dodge_chance=int(round(min(3 + speed * 0.4 * boost["speed"] + stamina * 0.1, CAPS["dodge_chance_max"]))),
        energy_cost=_as_int({"energy_cost": energy_cost}, "energy_cost"),
    )
    logger.debug("Derived stats for %s: %s", data.get("species_name", "creature"), stats)
    return stats


def build_creature(data: Mapping[str, Any], owner: str = "") -> Creature:
    """Create a battle-ready creature at full health from a catalog entry."""
    if not isinstance(data, Mapping) or not data.get("id"):
        raise InvalidCreatureData("Creature data is missing an id.")
    stats = derive_stats(data)
    return Creature(
        id=str(data["id"]),
        species_name=str(data.get("species_name") or "Unknown"),
        form=_as_int(data, "form"),
        rarity=data.get("rarity") or "Common",
        combination_level=_as_int(data, "combination_level"),
        attributes=read_attributes(data),
        stats=stats,
        health=stats.max_health,
        owner=owner,
        specialty_stats=list(data.get("specialty_stats") or []),
    )
