# games/battle/engine/resolver.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from .dice import chance, rng_for
from .effects import apply_buff, apply_effect, can_act, cleanse, modify_stat
from .errors import IllegalAction, MalformedAction
from .models import BattleSide, BattleState, Creature
from .rules import base_damage, clamp, scale_damage, spell_mitigation
from .synergy import evaluate_synergies, total_bonus
from ..content.balance import (
    COSTS,
    DEFAULTS,
    SPELL_DEFENSE_CAP,
    SPELL_DEFENSE_DIVISOR,
    SPELL_MAGIC_SCALING,
)

logger = logging.getLogger(__name__)

ACTION_TYPES = ("deploy", "attack", "useTool", "useSpell", "defend", "endTurn", "forfeit")
ATTACK_TYPES = ("physical", "magical", "auto")

REQUIRED_FIELDS = {
    "deploy": ("creatureId",),
    "attack": ("creatureId", "targetId"),
    "useTool": ("creatureId", "toolId"),
    "useSpell": ("creatureId", "spellId"),
    "defend": ("creatureId",),
}


def parse_action(payload: Any) -> Dict[str, Any]:
    """Normalize a wire action; raises MalformedAction on a bad shape."""
    if not isinstance(payload, dict):
        raise MalformedAction("Action must be an object.")
    kind = payload.get("type")
    if kind not in ACTION_TYPES:
        raise MalformedAction(f"Unknown action type '{kind}'.")

    action: Dict[str, Any] = {"type": kind}
    for key in ("creatureId", "targetId", "toolId", "spellId", "attackType"):
        value = payload.get(key)
        if value is None or value == "":
            continue
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise MalformedAction(f"'{key}' must be a string.")
        action[key] = str(value)

    missing = [key for key in REQUIRED_FIELDS.get(kind, ()) if key not in action]
    if missing:
        raise MalformedAction(f"{kind} requires {', '.join(missing)}.")
    if action.get("attackType", "auto") not in ATTACK_TYPES:
        raise MalformedAction(f"Unknown attack type '{action['attackType']}'.")
    return action


def spell_cost(spell: Dict[str, Any]) -> int:
    return int(spell.get("energy_cost", COSTS["useSpell"]))


def action_cost(side: BattleSide, action: Dict[str, Any]) -> int:
    kind = action["type"]
    if kind == "deploy":
        creature = side.find_in_hand(action.get("creatureId"))
        return creature.stats.energy_cost if creature else 0
    if kind == "useSpell":
        spell = side.spells.get(action.get("spellId"))
        return spell_cost(spell) if spell else COSTS["useSpell"]
    return COSTS[kind]


def _energy_reason(side: BattleSide, cost: int) -> Optional[str]:
    if side.energy < cost:
        return f"Not enough energy ({side.energy}/{cost})."
    return None


def _actor_reason(side: BattleSide, action: Dict[str, Any]) -> Optional[str]:
    actor = side.find_on_field(action.get("creatureId"))
    if not actor:
        return "Creature is not on your field."
    check = can_act(actor)
    if not check.allowed:
        return check.reason
    return None


def check_action(state: BattleState, player: str, action: Dict[str, Any]) -> Optional[str]:
    """
    Single legality predicate for every action type.

    Returns None when the action may be resolved, otherwise the reason it
    is rejected. Energy and legality are checked together so a rejected
    action never spends anything.
    """
    kind = action["type"]
    if kind in ("endTurn", "forfeit"):
        return None

    side = state.sides[player]
    enemy = state.sides[state.opponent_of(player)]
    cost = action_cost(side, action)

    if kind == "deploy":
        creature = side.find_in_hand(action.get("creatureId"))
        if not creature:
            return "Creature is not in your hand."
        if len(side.field) >= side.field_capacity:
            return f"Field is full ({side.field_capacity} creatures)."
        check = can_act(creature)
        if not check.allowed:
            return check.reason
        return _energy_reason(side, cost)

    reason = _actor_reason(side, action)
    if reason:
        return reason
    actor = side.find_on_field(action["creatureId"])

    if kind == "attack":
        if not enemy.find_on_field(action.get("targetId")):
            return "Target is not on the opponent's field."
        return _energy_reason(side, cost)

    if kind == "defend":
        if actor.is_defending:
            return "Creature is already defending."
        return _energy_reason(side, cost)

    if kind == "useTool":
        tool_id = action.get("toolId")
        if tool_id not in side.tools:
            return "Tool is not in your loadout."
        if tool_id in side.used_tools:
            return "Tool has already been used this battle."
        if not side.find_on_field(action.get("targetId", actor.id)):
            return "Tool target is not on your field."
        return _energy_reason(side, cost)

    if kind == "useSpell":
        spell_id = action.get("spellId")
        spell = side.spells.get(spell_id)
        if not spell:
            return "Spell is not in your loadout."
        if spell_id in side.used_spells:
            return "Spell has already been cast this battle."
        targeting = spell.get("target", "enemy")
        if targeting == "enemy" and not enemy.find_on_field(action.get("targetId")):
            return "Spell target is not on the opponent's field."
        if targeting == "ally" and not side.find_on_field(action.get("targetId", actor.id)):
            return "Spell target is not on your field."
        if targeting == "all_enemies" and not enemy.field:
            return "No enemy creatures to target."
        return _energy_reason(side, cost)

    return f"Unsupported action '{kind}'."


def validate_action(state: BattleState, player: str, action: Dict[str, Any]) -> None:
    reason = check_action(state, player, action)
    if reason:
        raise IllegalAction(reason)


def available_actions(state: BattleState, player: str) -> List[Dict[str, Any]]:
    """Every action the player could legally submit right now."""
    if state.phase != "active" or player != state.active_player:
        return []
    side = state.sides[player]
    enemy = state.sides[state.opponent_of(player)]

    candidates: List[Dict[str, Any]] = [{"type": "endTurn"}]
    for creature in side.hand:
        candidates.append({"type": "deploy", "creatureId": creature.id})
    for actor in side.field:
        candidates.append({"type": "defend", "creatureId": actor.id})
        for target in enemy.field:
            candidates.append({"type": "attack", "creatureId": actor.id, "targetId": target.id})
        for tool_id in side.tools:
            for ally in side.field:
                candidates.append({"type": "useTool", "creatureId": actor.id, "toolId": tool_id, "targetId": ally.id})
        for spell_id, spell in side.spells.items():
            targeting = spell.get("target", "enemy")
            pool = side.field if targeting == "ally" else enemy.field
            if targeting == "all_enemies":
                candidates.append({"type": "useSpell", "creatureId": actor.id, "spellId": spell_id})
                continue
            for target in pool:
                candidates.append({"type": "useSpell", "creatureId": actor.id, "spellId": spell_id, "targetId": target.id})
    return [action for action in candidates if check_action(state, player, action) is None]


def label(creature: Creature) -> str:
    return f"{creature.owner}'s {creature.species_name}"


def apply_damage(target: Creature, amount: int) -> int:
    before = target.health
    target.health = clamp(target.health - max(0, amount), 0, target.stats.max_health)
    return before - target.health


def heal(target: Creature, amount: int) -> int:
    if target.health <= 0 or amount <= 0:
        return 0
    before = target.health
    target.health = clamp(target.health + amount, 0, target.stats.max_health)
    return target.health - before


def remove_defeated(side: BattleSide) -> List[Creature]:
    fallen = [c for c in side.field if c.health <= 0]
    if fallen:
        side.field = [c for c in side.field if c.health > 0]
    return fallen


def side_synergy_bonus(side: BattleSide) -> float:
    # recomputed per call: the field may have changed since the last action
    return total_bonus(evaluate_synergies(side.field, side.field_capacity))


def resolve_deploy(state: BattleState, player: str, action: Dict[str, Any]) -> str:
    side = state.sides[player]
    creature = side.find_in_hand(action["creatureId"])
    cost = creature.stats.energy_cost
    side.hand.remove(creature)
    side.field.append(creature)
    side.energy -= cost
    return f"{label(creature)} is deployed for {cost} energy."


def attack_damage(side: BattleSide, attacker: Creature, target: Creature,
                  kind: str = "auto") -> Tuple[str, int, float]:
    """Damage an attack would deal right now: (attack kind, damage, synergy bonus)."""
    if kind == "auto":
        physical = modify_stat(attacker, "physical_attack")
        magical = modify_stat(attacker, "magical_attack")
        kind = "physical" if physical >= magical else "magical"

    offense = modify_stat(attacker, f"{kind}_attack")
    defense = modify_stat(target, f"{kind}_defense")
    bonus = side_synergy_bonus(side)
    damage = scale_damage(
        base_damage(offense, defense, DEFAULTS["min_damage"]),
        bonus,
        target.is_defending,
        DEFAULTS["defend_multiplier"],
        DEFAULTS["min_damage"],
    )
    return kind, damage, bonus


def resolve_attack(state: BattleState, player: str, action: Dict[str, Any]) -> str:
    side = state.sides[player]
    enemy = state.sides[state.opponent_of(player)]
    attacker = side.find_on_field(action["creatureId"])
    target = enemy.find_on_field(action["targetId"])

    kind, damage, bonus = attack_damage(side, attacker, target, action.get("attackType", "auto"))
    dealt = apply_damage(target, damage)
    side.energy -= COSTS["attack"]

    line = f"{label(attacker)} attacks {label(target)} for {dealt} {kind} damage"
    if bonus:
        line += f" (+{round(bonus * 100)}% synergy)"
    if target.is_defending:
        line += " (defended)"
    if remove_defeated(enemy):
        line += f". {target.species_name} is defeated"
    return line + "."


def resolve_defend(state: BattleState, player: str, action: Dict[str, Any]) -> str:
    side = state.sides[player]
    actor = side.find_on_field(action["creatureId"])
    actor.is_defending = True
    side.energy -= COSTS["defend"]
    return f"{label(actor)} takes a defensive stance."


def resolve_tool(state: BattleState, player: str, action: Dict[str, Any]) -> str:
    side = state.sides[player]
    actor = side.find_on_field(action["creatureId"])
    target = side.find_on_field(action.get("targetId", actor.id))
    tool_id = action["toolId"]
    tool = side.tools[tool_id]

    parts = []
    if tool.get("cleanse"):
        removed = cleanse(target)
        parts.append(f"cleanses {removed} effect{'s' if removed != 1 else ''}")
    healed = heal(target, int(tool.get("heal", 0) or 0))
    if healed:
        parts.append(f"heals {healed} HP")
    for buff in tool.get("buffs", []) or []:
        apply_buff(target, buff["stat"], buff["flat"], buff["duration"], turn=state.turn, source=tool["name"])
        parts.append(f"{buff['flat']:+d} {buff['stat'].replace('_', ' ')}")
    gain = int(tool.get("energy_gain", 0) or 0)
    if gain:
        before = side.energy
        side.energy = min(side.energy + gain, side.energy_max)
        parts.append(f"restores {side.energy - before} energy")

    side.used_tools.add(tool_id)
    side.energy -= COSTS["useTool"]
    outcome = ", ".join(parts) if parts else "no effect"
    return f"{label(actor)} uses {tool['name']} on {label(target)}: {outcome}."


def resolve_spell(state: BattleState, player: str, action: Dict[str, Any]) -> str:
    side = state.sides[player]
    enemy = state.sides[state.opponent_of(player)]
    caster = side.find_on_field(action["creatureId"])
    spell_id = action["spellId"]
    spell = side.spells[spell_id]
    r = rng_for(state.seed, state.turn, len(state.log))

    targeting = spell.get("target", "enemy")
    if targeting == "all_enemies":
        targets = list(enemy.field)
    elif targeting == "ally":
        targets = [side.find_on_field(action.get("targetId", caster.id))]
    else:
        targets = [enemy.find_on_field(action["targetId"])]

    magic_power = 1 + SPELL_MAGIC_SCALING * caster.attributes.get("magic", 0)
    parts = []

    power = float(spell.get("power", 0) or 0)
    if power:
        raw = power * magic_power
        crit = spell.get("crit")
        if crit and chance(float(crit.get("chance", 0)), r):
            raw *= float(crit.get("multiplier", 1.0))
            parts.append("critical hit")
        bonus = side_synergy_bonus(side)
        total = 0
        for target in targets:
            mitigation = 1.0
            if not spell.get("armor_piercing"):
                mitigation = spell_mitigation(
                    modify_stat(target, "magical_defense"), SPELL_DEFENSE_DIVISOR, SPELL_DEFENSE_CAP
                )
            damage = scale_damage(
                raw * mitigation,
                bonus,
                target.is_defending,
                DEFAULTS["defend_multiplier"],
                DEFAULTS["min_damage"],
            )
            dealt = apply_damage(target, damage)
            total += dealt
            for entry in spell.get("target_effects", []) or []:
                if target.health > 0 and chance(float(entry.get("chance", 1.0)), r):
                    apply_effect(target, entry["id"], duration=entry.get("duration"), turn=state.turn)
                    parts.append(f"{target.species_name} is {entry['id']}")
        names = ", ".join(label(t) for t in targets)
        parts.insert(0, f"deals {total} damage to {names}")

    self_heal = int(round(float(spell.get("self_heal", 0) or 0) * magic_power))
    if self_heal:
        parts.append(f"drains {heal(caster, self_heal)} HP")

    heal_amount = int(round(float(spell.get("heal", 0) or 0) * magic_power))
    if heal_amount:
        for target in targets:
            parts.append(f"heals {label(target)} for {heal(target, heal_amount)} HP")

    for buff in spell.get("buffs", []) or []:
        for target in targets:
            apply_buff(target, buff["stat"], buff["flat"], buff["duration"], turn=state.turn, source=spell["name"])
        parts.append(f"{buff['flat']:+d} {buff['stat'].replace('_', ' ')}")

    fallen = remove_defeated(enemy)
    if fallen:
        parts.append(f"{', '.join(c.species_name for c in fallen)} defeated")

    side.used_spells.add(spell_id)
    side.energy -= spell_cost(spell)
    outcome = "; ".join(parts) if parts else "no effect"
    return f"{label(caster)} casts {spell['name']}: {outcome}."


RESOLVERS = {
    "deploy": resolve_deploy,
    "attack": resolve_attack,
    "defend": resolve_defend,
    "useTool": resolve_tool,
    "useSpell": resolve_spell,
}


def resolve(state: BattleState, player: str, action: Dict[str, Any]) -> str:
    """
    Execute exactly one in-turn action for the player.

    The action is validated first; on rejection nothing is mutated. On
    success exactly one log entry is appended and its message returned.
    endTurn and forfeit belong to the turn machine, not here.
    """
    handler = RESOLVERS.get(action["type"])
    if handler is None:
        raise IllegalAction(f"'{action['type']}' is not resolved by the action resolver.")
    validate_action(state, player, action)
    message = handler(state, player, action)
    state.add_log(message)
    logger.debug("Battle %s: %s", state.battle_id, message)
    return message
