# games/battle/engine/effects.py
from __future__ import annotations

from typing import Any, Dict, List, NamedTuple, Optional

from .models import Creature

EFFECT_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "stunned": {
        "type": "STUNNED",
        "name": "Stunned",
        "duration": 1,
        "prevent_actions": True,
    },
    "buff": {
        "type": "BUFF",
        "name": "Buff",
        "duration": 1,
        "prevent_actions": False,
    },
}

STUNNED_REASON = "Creature is stunned and cannot act this turn"
DEFEATED_REASON = "Creature has been defeated"


class ActCheck(NamedTuple):
    allowed: bool
    reason: Optional[str] = None


def build_effect(effect_id: str, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    if effect_id not in EFFECT_TEMPLATES:
        return {}
    effect = dict(EFFECT_TEMPLATES[effect_id])
    effect["id"] = effect_id
    if overrides:
        effect.update(overrides)
    return effect


def is_incapacitated(creature: Creature) -> bool:
    return any(
        effect.get("prevent_actions") and int(effect.get("duration", 0) or 0) > 0
        for effect in creature.effects
    )


def can_act(creature: Creature) -> ActCheck:
    """Defending never blocks acting; only stuns and defeat do."""
    if is_incapacitated(creature):
        return ActCheck(False, STUNNED_REASON)
    if creature.health <= 0:
        return ActCheck(False, DEFEATED_REASON)
    return ActCheck(True)


def apply_effect(
    creature: Creature,
    effect_id: str,
    duration: Optional[int] = None,
    turn: int = 0,
    overrides: Optional[Dict[str, Any]] = None,
) -> Creature:
    """Append a new effect entry. Same-type effects stack rather than merge."""
    extra = dict(overrides or {})
    if duration is not None:
        extra["duration"] = int(duration)
    extra["applied_turn"] = turn
    effect = build_effect(effect_id, extra)
    if not effect or int(effect.get("duration", 0) or 0) <= 0:
        return creature
    creature.effects.append(effect)
    creature.is_stunned = is_incapacitated(creature)
    return creature


def apply_stun(creature: Creature, duration: int = 1, turn: int = 0) -> Creature:
    return apply_effect(creature, "stunned", duration=duration, turn=turn)


def apply_buff(creature: Creature, stat: str, flat: int, duration: int, turn: int = 0,
               source: str = "") -> Creature:
    return apply_effect(
        creature,
        "buff",
        duration=duration,
        turn=turn,
        overrides={"stat": stat, "flat": int(flat), "source": source},
    )


def tick_durations(effects: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Decrement every duration; drop the ones that hit zero."""
    new_list: List[Dict[str, Any]] = []
    for e in effects:
        d = int(e.get("duration", 0) or 0) - 1
        if d > 0:
            e2 = dict(e)
            e2["duration"] = d
            new_list.append(e2)
    return new_list


def decay_turn_start(creature: Creature) -> Creature:
    creature.effects = tick_durations(creature.effects)
    creature.is_stunned = is_incapacitated(creature)
    return creature


def has_effect(creature: Creature, effect_id: str) -> bool:
    return any(effect.get("id") == effect_id for effect in creature.effects)


def cleanse(creature: Creature) -> int:
    """Strip every action-preventing effect; returns how many were removed."""
    before = len(creature.effects)
    creature.effects = [effect for effect in creature.effects if not effect.get("prevent_actions")]
    creature.is_stunned = is_incapacitated(creature)
    return before - len(creature.effects)


def modify_stat(creature: Creature, stat: str) -> int:
    """Base battle stat plus any active flat buffs, never below zero."""
    value = int(getattr(creature.stats, stat))
    for effect in creature.effects:
        if effect.get("type") != "BUFF" or effect.get("stat") != stat:
            continue
        value += int(effect.get("flat", 0) or 0)
    return max(0, value)
