# games/battle/snapshot.py
from typing import Any, Dict, Optional

from .engine.models import BattleSide, BattleState
from .engine.turns import time_remaining_ms
from .content.balance import DEFAULTS


def _loadout(items: Dict[str, Dict[str, Any]], used) -> list:
    return [
        {"id": item_id, "name": item["name"], "element": item.get("element")}
        for item_id, item in items.items()
        if item_id not in used
    ]


def _own_side(side: BattleSide) -> Dict[str, Any]:
    return {
        "player": side.player,
        "hand": [c.to_dict() for c in side.hand],
        "handCount": len(side.hand),
        "deckCount": len(side.deck),
        "field": [c.to_dict() for c in side.field],
        "energy": side.energy,
        "energyMax": side.energy_max,
        "fieldCapacity": side.field_capacity,
        "tools": _loadout(side.tools, side.used_tools),
        "spells": _loadout(side.spells, side.used_spells),
    }


def _opponent_side(side: BattleSide, is_computer: bool) -> Dict[str, Any]:
    # hand contents never leave the server; only the count does
    return {
        "player": side.player,
        "hand": {"hiddenCount": len(side.hand)},
        "deckCount": len(side.deck),
        "field": [c.to_dict() for c in side.field],
        "energy": side.energy,
        "energyMax": side.energy_max,
        "fieldCapacity": side.field_capacity,
        "isComputer": is_computer,
    }


def snapshot_for(state: BattleState, viewer: str, now: Optional[float] = None,
                 poll_interval_ms: Optional[int] = None) -> Dict[str, Any]:
    """
    Returns the battle as one player is allowed to see it.
    """
    active = state.phase == "active"
    rival = state.opponent_of(viewer)
    your_turn = active and state.active_player == viewer
    snap = {
        "battleId": state.battle_id,
        "isYourTurn": your_turn,
        "turn": state.turn,
        "timeRemaining": time_remaining_ms(state, now),
        "status": state.phase,
        "version": state.version,
        "pollInterval": poll_interval_ms or DEFAULTS["poll_interval_ms"],
        "shouldPoll": active and not your_turn,
        "side": _own_side(state.sides[viewer]),
        "opponent": _opponent_side(state.sides[rival], rival == state.ai_player),
        "battleLog": [dict(entry) for entry in state.log],
    }
    if state.winner:
        won = state.winner == viewer
        snap["result"] = {
            "winnerSide": state.winner,
            "isWinner": won,
            "ratingChange": state.rating_change if won else -state.rating_change,
        }
    return snap
