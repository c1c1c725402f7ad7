# games/battle/engine/ai.py
from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional

from . import turns
from .dice import chance, rng_for
from .effects import has_effect, modify_stat
from .models import BattleState, Creature
from .resolver import attack_damage, available_actions
from .rules import spell_mitigation
from ..content.balance import (
    AI_PROFILES,
    RARITY_ORDER,
    SPELL_DEFENSE_CAP,
    SPELL_DEFENSE_DIVISOR,
    SPELL_MAGIC_SCALING,
)

logger = logging.getLogger(__name__)

# offsets the computer's rolls from the spell rolls made on the same turn
AI_SEED_SALT = 7919


def profile_for(difficulty: str) -> Dict[str, Any]:
    return AI_PROFILES.get(difficulty, AI_PROFILES["medium"])


def creature_power(creature: Creature) -> float:
    stats = creature.stats
    rank = RARITY_ORDER.index(creature.rarity) if creature.rarity in RARITY_ORDER else 0
    return (
        max(stats.physical_attack, stats.magical_attack)
        + (stats.physical_defense + stats.magical_defense) / 2
        + creature.health / 4
        + rank * 5
    )


def _wounded(creature: Creature) -> bool:
    return creature.health * 2 < creature.stats.max_health


def _spell_damage(caster: Creature, target: Creature, spell: Dict[str, Any]) -> int:
    # crits are left out; the estimate is the floor of what the cast deals
    raw = float(spell.get("power", 0) or 0) * (1 + SPELL_MAGIC_SCALING * caster.attributes.get("magic", 0))
    if not spell.get("armor_piercing"):
        raw *= spell_mitigation(modify_stat(target, "magical_defense"), SPELL_DEFENSE_DIVISOR, SPELL_DEFENSE_CAP)
    return int(raw)


def score_action(state: BattleState, player: str, action: Dict[str, Any], aggression: float) -> float:
    """
    Rough value of one legal action for the computer side.

    Kills beat deployments, deployments beat plain hits, and support is
    only worth playing on a wounded or stunned ally. Zero or less means
    the action is not worth its energy.
    """
    side = state.sides[player]
    enemy = state.sides[state.opponent_of(player)]
    kind = action["type"]

    if kind == "deploy":
        return 60 + creature_power(side.find_in_hand(action["creatureId"])) / 10

    actor = side.find_on_field(action["creatureId"])

    if kind == "attack":
        target = enemy.find_on_field(action["targetId"])
        _, damage, _ = attack_damage(side, actor, target, action.get("attackType", "auto"))
        if damage >= target.health:
            return 100 + creature_power(target) / 10
        return 20 + damage * aggression / 2

    if kind == "defend":
        if _wounded(actor) and enemy.field:
            return 10 + 40 * (1 - aggression)
        return 0

    if kind == "useTool":
        tool = side.tools[action["toolId"]]
        target = side.find_on_field(action.get("targetId", actor.id))
        if tool.get("cleanse") and has_effect(target, "stunned"):
            return 90
        if tool.get("heal") and _wounded(target):
            return 50
        if tool.get("buffs") and enemy.field:
            return 15
        return 5

    if kind == "useSpell":
        spell = side.spells[action["spellId"]]
        targeting = spell.get("target", "enemy")
        if targeting == "ally":
            target = side.find_on_field(action.get("targetId", actor.id))
            return 50 if _wounded(target) else 5
        targets = list(enemy.field) if targeting == "all_enemies" else [enemy.find_on_field(action["targetId"])]
        kills = 0
        total = 0
        for target in targets:
            damage = _spell_damage(actor, target, spell)
            total += damage
            if damage >= target.health:
                kills += 1
        return 20 + total * aggression / 2 + 40 * kills

    return 0


def choose_action(state: BattleState, player: str, rng: random.Random,
                  profile: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Pick one legal action; endTurn when nothing is worth doing."""
    profile = profile or profile_for(state.difficulty)
    options = [a for a in available_actions(state, player) if a["type"] != "endTurn"]
    if not options:
        return {"type": "endTurn"}
    if chance(profile["mistake_chance"], rng):
        return dict(rng.choice(options))

    best: Optional[Dict[str, Any]] = None
    best_score = 0.0
    for action in options:
        score = score_action(state, player, action, profile["aggression"])
        if score > best_score:
            best, best_score = action, score
    return best or {"type": "endTurn"}


def play_turn(state: BattleState, player: str, now: Optional[float] = None) -> List[Dict[str, Any]]:
    """
    Play the computer side's whole turn through turns.take_action.

    At most the profile's max_actions are taken, then the turn is ended
    unless the battle finished along the way. Returns the actions taken.
    """
    if state.phase != "active" or state.active_player != player:
        return []
    profile = profile_for(state.difficulty)
    rng = rng_for(state.seed + AI_SEED_SALT, state.turn, len(state.log))

    taken: List[Dict[str, Any]] = []
    while state.phase == "active" and len(taken) < profile["max_actions"]:
        action = choose_action(state, player, rng, profile)
        if action["type"] == "endTurn":
            break
        turns.take_action(state, player, action, now)
        taken.append(action)
    if state.phase == "active":
        turns.take_action(state, player, {"type": "endTurn"}, now)
        taken.append({"type": "endTurn"})

    logger.info("Battle %s: computer %s played %s", state.battle_id, player, [a["type"] for a in taken])
    return taken
