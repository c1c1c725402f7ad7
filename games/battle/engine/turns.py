# games/battle/engine/turns.py
from __future__ import annotations

import logging
import random
import time
from typing import Any, Dict, Mapping, Optional, Sequence

from .effects import decay_turn_start
from .errors import (
    BattleAlreadyCompleted,
    CatalogError,
    IllegalAction,
    InvalidBattleSetup,
    InvalidCreatureData,
    NotYourTurn,
    UnknownPlayer,
)
from .models import BattleSide, BattleState
from .resolver import parse_action, resolve
from .stats import build_creature
from ..content.balance import DEFAULTS, FIELD_CAPACITY, PLAYER_FIELD_CAPACITY
from ..content.spells import SPELLS
from ..content.tools import TOOLS

logger = logging.getLogger(__name__)


def _now(now: Optional[float]) -> float:
    return time.time() if now is None else now


def _loadout(ids: Optional[Sequence[str]], catalog: Mapping[str, Dict[str, Any]], kind: str,
             limit: int) -> Dict[str, Dict[str, Any]]:
    if ids is None:
        ids = []
    if not isinstance(ids, (list, tuple)):
        raise CatalogError(f"The {kind} loadout must be a list of ids.")
    chosen: Dict[str, Dict[str, Any]] = {}
    for item_id in ids[:limit]:
        if not isinstance(item_id, str) or item_id not in catalog:
            raise CatalogError(f"Unknown {kind} '{item_id}'.")
        chosen[item_id] = dict(catalog[item_id])
    return chosen


def build_side(player: str, selection: Mapping[str, Any], field_capacity: int) -> BattleSide:
    """Turn a player's selection into a side: hand, reserve deck and loadout."""
    if not isinstance(selection, Mapping):
        raise InvalidCreatureData(f"Selection for {player} must be a mapping.")
    bags = selection.get("creatures") or []
    if not isinstance(bags, (list, tuple)):
        raise InvalidCreatureData(f"Creatures for {player} must be a list.")
    bags = list(bags)[:DEFAULTS["max_creatures"]]
    if not bags:
        raise InvalidCreatureData(f"{player} has no creatures selected.")

    creatures = [build_creature(bag, owner=player) for bag in bags]
    ids = [c.id for c in creatures]
    if len(set(ids)) != len(ids):
        raise InvalidCreatureData(f"{player} selected the same creature twice.")

    hand_size = DEFAULTS["initial_hand_size"]
    return BattleSide(
        player=player,
        field_capacity=field_capacity,
        energy=DEFAULTS["starting_energy"],
        energy_max=DEFAULTS["energy_max"],
        hand=creatures[:hand_size],
        deck=creatures[hand_size:],
        tools=_loadout(selection.get("tools"), TOOLS, "tool", DEFAULTS["max_tools"]),
        spells=_loadout(selection.get("spells"), SPELLS, "spell", DEFAULTS["max_spells"]),
    )


def start_battle(
    battle_id: str,
    players: Sequence[str],
    selections: Mapping[str, Mapping[str, Any]],
    difficulty: str = "easy",
    now: Optional[float] = None,
    seed: Optional[int] = None,
    turn_time_ms: Optional[int] = None,
    ai_player: Optional[str] = None,
) -> BattleState:
    """
    Build a fresh battle: side A moves first on turn 1 with a full timer.

    Raises InvalidBattleSetup for a bad player list, difficulty, seed or
    selections shape, and InvalidCreatureData or CatalogError when a
    selection cannot be turned into a side; nothing is registered in that
    case.
    """
    if not isinstance(players, (list, tuple)) or not all(isinstance(p, str) and p for p in players):
        raise InvalidBattleSetup("Players must be a list of names.")
    players = list(players)
    if len(players) != 2 or players[0] == players[1]:
        raise InvalidBattleSetup("A battle needs exactly two distinct players.")
    if not isinstance(difficulty, str) or difficulty not in FIELD_CAPACITY:
        raise InvalidBattleSetup(f"Unknown difficulty '{difficulty}'.")
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        raise InvalidBattleSetup("Seed must be an integer.")
    if ai_player is not None and ai_player not in players:
        raise InvalidBattleSetup(f"Computer player '{ai_player}' is not in this battle.")
    if selections is None:
        selections = {}
    if not isinstance(selections, Mapping):
        raise InvalidBattleSetup("Selections must map each player to a loadout.")

    a, b = players
    sides = {
        a: build_side(a, selections.get(a), PLAYER_FIELD_CAPACITY),
        b: build_side(b, selections.get(b), FIELD_CAPACITY[difficulty]),
    }
    turn_time_ms = int(turn_time_ms or DEFAULTS["turn_time_ms"])
    state = BattleState(
        battle_id=battle_id,
        players=players,
        sides=sides,
        active_player=a,
        seed=random.randint(1, 10_000_000) if seed is None else seed,
        deadline=_now(now) + turn_time_ms / 1000.0,
        turn_time_ms=turn_time_ms,
        difficulty=difficulty,
        ai_player=ai_player,
    )
    state.add_log(f"Battle started: {a} vs {b}. {a} moves first.")
    logger.info("Battle %s created: %s vs %s (%s)", battle_id, a, b, difficulty)
    return state


def time_remaining_ms(state: BattleState, now: Optional[float] = None) -> int:
    if state.phase != "active":
        return 0
    return max(0, int(round((state.deadline - _now(now)) * 1000)))


def start_of_turn(side: BattleSide) -> None:
    for creature in side.field:
        creature.is_defending = False
        decay_turn_start(creature)
    side.energy = min(side.energy + DEFAULTS["energy_regen_per_turn"], side.energy_max)
    if side.deck and len(side.hand) < DEFAULTS["max_hand_size"]:
        side.hand.append(side.deck.pop(0))


def end_turn(state: BattleState, now: Optional[float] = None, reason: str = "endTurn") -> None:
    """Hand control to the other side and run its turn-start processing."""
    ending = state.active_player
    if reason == "timeout":
        state.add_log(f"{ending}'s time ran out (implicit endTurn).")
        logger.info("Battle %s: %s timed out on turn %s", state.battle_id, ending, state.turn)
    else:
        state.add_log(f"{ending} ends their turn.")

    state.active_player = state.opponent_of(ending)
    if state.active_player == state.players[0]:
        state.turn += 1
    start_of_turn(state.sides[state.active_player])
    state.deadline = _now(now) + state.turn_time_ms / 1000.0
    logger.info("Battle %s: turn %s passes to %s", state.battle_id, state.turn, state.active_player)


def complete(state: BattleState, winner: str, message: str, now: Optional[float] = None) -> None:
    state.phase = "completed"
    state.completed_at = _now(now)
    state.winner = winner
    state.rating_change = DEFAULTS["rating_change"]
    state.deadline = 0.0
    state.add_log(message)
    logger.info("Battle %s won by %s", state.battle_id, winner)


def check_winner(state: BattleState, last_actor: Optional[str] = None,
                 now: Optional[float] = None) -> Optional[str]:
    """Complete the battle when a side has neither hand nor field left."""
    if state.phase != "active":
        return state.winner
    defeated = [p for p in state.players if state.sides[p].is_defeated()]
    if not defeated:
        return None
    if len(defeated) == 2:
        winner = last_actor or state.active_player
    else:
        winner = state.opponent_of(defeated[0])
    loser = state.opponent_of(winner)
    complete(state, winner, f"{winner} wins! {loser} has no creatures left.", now)
    return winner


def require_player(state: BattleState, player: Any) -> None:
    if not isinstance(player, str) or player not in state.sides:
        raise UnknownPlayer(f"{player} is not part of this battle.")


def forfeit(state: BattleState, player: str, now: Optional[float] = None) -> str:
    if state.phase != "active":
        raise BattleAlreadyCompleted()
    require_player(state, player)
    winner = state.opponent_of(player)
    complete(state, winner, f"{player} forfeits. {winner} wins!", now)
    return winner


def expire_if_due(state: BattleState, now: Optional[float] = None) -> bool:
    """Force the implicit endTurn once the deadline has passed."""
    if state.phase != "active" or _now(now) < state.deadline:
        return False
    end_turn(state, now, reason="timeout")
    return True


def take_action(state: BattleState, player: str, payload: Any, now: Optional[float] = None) -> Dict[str, Any]:
    """
    Apply one submitted action for the player.

    Phase is checked before the payload is parsed. Forfeit is the one
    action accepted from the player who is not on turn.
    """
    require_player(state, player)
    if state.phase != "active":
        raise BattleAlreadyCompleted()
    action = parse_action(payload)
    if action["type"] == "forfeit":
        forfeit(state, player, now)
        return action
    if player != state.active_player:
        raise NotYourTurn()

    if action["type"] == "endTurn":
        end_turn(state, now)
        return action

    try:
        resolve(state, player, action)
    except InvalidCreatureData as exc:
        raise IllegalAction(exc.reason)
    check_winner(state, last_actor=player, now=now)
    return action

