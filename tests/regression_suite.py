"""Automated regression suite for creature battle turn flow.

Drives BattleState through turns.take_action / expire_if_due end to end and
checks the resulting state, the way a PvP client sequence would.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Tuple

from games.battle.engine import ai, turns
from games.battle.engine.effects import STUNNED_REASON, apply_stun
from games.battle.engine.errors import BattleAlreadyCompleted, IllegalAction

from factories import T0, duel_on_field, make_battle, make_creature


def act(state, player: str, action: Dict[str, Any], now: float = T0) -> None:
    prior_log_len = len(state.log)
    turns.take_action(state, player, action, now)
    _assert_invariants(state)
    assert len(state.log) > prior_log_len, "every accepted action should be logged"


def expect_rejected(state, player: str, action: Dict[str, Any], error=IllegalAction) -> str:
    before = copy.deepcopy(state)
    try:
        turns.take_action(state, player, action, T0)
    except error as exc:
        assert state == before, "a rejected action must not mutate the battle"
        return exc.reason
    raise AssertionError(f"{action} should have been rejected")


def _assert_invariants(state) -> None:
    for player, side in state.sides.items():
        assert 0 <= side.energy <= side.energy_max, f"energy out of range for {player}"
        assert len(side.field) <= side.field_capacity, f"field over capacity for {player}"
        for creature in side.field:
            assert 0 < creature.health <= creature.stats.max_health, f"health out of range for {creature.id}"
            for effect in creature.effects:
                assert int(effect.get("duration", 0)) > 0, f"expired effect kept on {creature.id}"


def _health(state, player: str, cid: str) -> int:
    return state.sides[player].find_on_field(cid).health


def scenario_damage_and_defend() -> bool:
    state = duel_on_field(
        make_creature("x1", "alice", physical_attack=20),
        make_creature("y1", "bob", physical_defense=8),
    )
    act(state, "alice", {"type": "attack", "creatureId": "x1", "targetId": "y1"})
    assert _health(state, "bob", "y1") == 88, "20 attack vs 8 defense should deal 12"
    assert "12 physical damage" in state.log[-1]["message"]

    act(state, "alice", {"type": "endTurn"})
    act(state, "bob", {"type": "defend", "creatureId": "y1"})
    act(state, "bob", {"type": "endTurn"})
    assert state.sides["bob"].find_on_field("y1").is_defending, "defend should last until its owner's next turn"

    act(state, "alice", {"type": "attack", "creatureId": "x1", "targetId": "y1"})
    assert _health(state, "bob", "y1") == 82, "defending should halve the hit to 6"
    assert state.sides["alice"].energy == 9
    return True


def scenario_duplicate_deploy_rejected() -> bool:
    state = make_battle()
    act(state, "alice", {"type": "deploy", "creatureId": "a1"})
    assert state.sides["alice"].energy == 5
    reason = expect_rejected(state, "alice", {"type": "deploy", "creatureId": "a1"})
    assert reason == "Creature is not in your hand."
    assert [c.id for c in state.sides["alice"].field] == ["a1"]
    return True


def scenario_energy_never_negative() -> bool:
    state = make_battle()
    act(state, "alice", {"type": "deploy", "creatureId": "a1"})
    act(state, "alice", {"type": "deploy", "creatureId": "a2"})
    assert state.sides["alice"].energy == 0
    reason = expect_rejected(state, "alice", {"type": "deploy", "creatureId": "a3"})
    assert reason == "Not enough energy (0/5).", reason
    reason = expect_rejected(state, "alice", {"type": "defend", "creatureId": "a1"})
    assert reason == "Not enough energy (0/1).", reason
    return True


def scenario_stunned_can_only_end_turn() -> bool:
    state = duel_on_field()
    apply_stun(state.sides["alice"].field[0], duration=1)
    for action in (
        {"type": "attack", "creatureId": "x1", "targetId": "y1"},
        {"type": "defend", "creatureId": "x1"},
    ):
        assert expect_rejected(state, "alice", action) == STUNNED_REASON
    act(state, "alice", {"type": "endTurn"})
    act(state, "bob", {"type": "endTurn"})

    attacker = state.sides["alice"].find_on_field("x1")
    assert not attacker.effects and not attacker.is_stunned, "stun should decay at its owner's turn start"
    act(state, "alice", {"type": "attack", "creatureId": "x1", "targetId": "y1"})
    return True


def scenario_empty_side_loses() -> bool:
    state = duel_on_field(defender=make_creature("y1", "bob", health=5))
    act(state, "alice", {"type": "attack", "creatureId": "x1", "targetId": "y1"})
    assert not state.sides["bob"].field, "dead creatures should leave the field"
    assert state.phase == "completed"
    assert state.winner == "alice"
    assert state.log[-1]["message"].startswith("alice wins!")
    expect_rejected(state, "alice", {"type": "endTurn"}, error=BattleAlreadyCompleted)
    return True


def scenario_timeout_is_implicit_end_turn() -> bool:
    state = make_battle()
    assert not turns.expire_if_due(state, T0 + 59.9)
    assert turns.expire_if_due(state, T0 + 60.0)
    assert state.active_player == "bob"
    assert state.turn == 1
    assert "implicit endTurn" in state.log[-1]["message"]
    assert state.sides["bob"].energy == 13
    assert turns.time_remaining_ms(state, T0 + 60.0) == 60000
    return True


def scenario_turn_counter_and_draw() -> bool:
    state = make_battle(count=5)
    assert len(state.sides["alice"].hand) == 3 and len(state.sides["alice"].deck) == 2
    act(state, "alice", {"type": "endTurn"})
    assert state.turn == 1, "turn only advances when control returns to the first player"
    assert len(state.sides["bob"].hand) == 4
    act(state, "bob", {"type": "endTurn"})
    assert state.turn == 2
    assert len(state.sides["alice"].hand) == 4 and len(state.sides["alice"].deck) == 1
    assert state.sides["alice"].energy == 13
    return True


def scenario_synergy_drops_after_kill() -> bool:
    state = duel_on_field(
        make_creature("x1", "alice", species="Sparkit", physical_attack=48),
        make_creature("y2", "bob", max_health=200),
    )
    state.sides["alice"].field.append(make_creature("x2", "alice", species="Sparkit", health=5))

    act(state, "alice", {"type": "attack", "creatureId": "x1", "targetId": "y2"})
    assert _health(state, "bob", "y2") == 158, "species pair should add 5% to 40"
    act(state, "alice", {"type": "endTurn"})

    act(state, "bob", {"type": "attack", "creatureId": "y2", "targetId": "x2"})
    assert state.sides["alice"].find_on_field("x2") is None
    act(state, "bob", {"type": "endTurn"})

    act(state, "alice", {"type": "attack", "creatureId": "x1", "targetId": "y2"})
    assert _health(state, "bob", "y2") == 118, "synergy should be gone once the pair is broken"
    return True


def scenario_tool_cleanse_is_single_use() -> bool:
    state = duel_on_field(tools=["olympia_emblem"])
    stunned = state.sides["alice"].field[0]
    stunned.health = 50
    apply_stun(stunned, duration=2)
    state.sides["alice"].field.append(make_creature("x2", "alice"))

    act(state, "alice", {"type": "useTool", "creatureId": "x2", "toolId": "olympia_emblem", "targetId": "x1"})
    assert not stunned.is_stunned and stunned.health == 63
    reason = expect_rejected(
        state, "alice", {"type": "useTool", "creatureId": "x2", "toolId": "olympia_emblem", "targetId": "x1"}
    )
    assert reason == "Tool has already been used this battle."
    return True


def scenario_spell_rolls_are_seeded() -> bool:
    def play() -> Tuple[List[str], List[int]]:
        state = duel_on_field(spells=["shardstorm", "babylon_burst"])
        state.sides["bob"].field.append(make_creature("y2", "bob", max_health=150))
        state.sides["alice"].field.append(make_creature("x2", "alice"))
        act(state, "alice", {"type": "useSpell", "creatureId": "x1", "spellId": "shardstorm"})
        act(state, "alice", {"type": "useSpell", "creatureId": "x2", "spellId": "babylon_burst", "targetId": "y2"})
        return [entry["message"] for entry in state.log], [c.health for c in state.sides["bob"].field]

    assert play() == play(), "same seed and same actions should replay identically"
    return True


def scenario_computer_sides_play_by_the_rules() -> bool:
    state = make_battle(count=5, tools=["olympia_emblem"], spells=["shardstorm"], difficulty="hard", seed=21)
    for _ in range(20):
        if state.phase != "active":
            break
        mover = state.active_player
        taken = ai.play_turn(state, mover, T0)
        _assert_invariants(state)
        assert taken, "a computer turn always does something"
        if state.phase == "active":
            assert taken[-1] == {"type": "endTurn"}, "a computer turn ends by handing over"
            assert state.active_player != mover
    return True


SCENARIOS = [
    scenario_damage_and_defend,
    scenario_duplicate_deploy_rejected,
    scenario_energy_never_negative,
    scenario_stunned_can_only_end_turn,
    scenario_empty_side_loses,
    scenario_timeout_is_implicit_end_turn,
    scenario_turn_counter_and_draw,
    scenario_synergy_drops_after_kill,
    scenario_tool_cleanse_is_single_use,
    scenario_spell_rolls_are_seeded,
    scenario_computer_sides_play_by_the_rules,
]


def run_all() -> List[Tuple[str, bool, str]]:
    results: List[Tuple[str, bool, str]] = []
    for scenario in SCENARIOS:
        try:
            scenario()
            results.append((scenario.__name__, True, ""))
        except AssertionError as exc:
            results.append((scenario.__name__, False, str(exc)))
    return results
