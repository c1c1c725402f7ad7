# games/battle/sockets.py
import logging

from flask import request
from flask_socketio import emit, join_room, leave_room

from . import state
from .engine.errors import BattleError

logger = logging.getLogger(__name__)


def room_for(battle_id, player):
    return f"{battle_id}:{player}"


def push_snapshots(socketio, battle_id):
    """Send each player their own view; the opponent hand stays hidden."""
    battle = state.get_battle(battle_id)
    for player in battle.players:
        socketio.emit("pvp_snapshot", state.get_state(battle_id, player), to=room_for(battle_id, player))


def _seat_from(payload):
    payload = payload if isinstance(payload, dict) else {}
    seat = state.seat_for(request.sid) or (None, None)
    return payload.get("battleId") or seat[0], payload.get("player") or seat[1], payload


def _reject(exc):
    emit("pvp_rejected", {"error": exc.__class__.__name__, "reason": exc.reason})


def run_turn_timer(socketio, tick_seconds):
    """Background loop: release finished battles, then force overdue turns and push them."""
    while True:
        socketio.sleep(tick_seconds)
        state.reap_completed()
        for battle_id in state.expire_due_battles():
            try:
                push_snapshots(socketio, battle_id)
            except BattleError as exc:
                logger.warning("Timer push failed for %s: %s", battle_id, exc.reason)


def register_battle_socket_handlers(socketio):
    @socketio.on("pvp_join")
    def pvp_join(payload):
        battle_id, player, _ = _seat_from(payload)
        try:
            state.take_seat(request.sid, battle_id, player)
            snap = state.get_state(battle_id, player)
        except BattleError as exc:
            _reject(exc)
            return
        join_room(room_for(battle_id, player))
        emit("pvp_snapshot", snap)

    @socketio.on("pvp_action")
    def pvp_action(payload):
        battle_id, player, payload = _seat_from(payload)
        try:
            state.submit_action(battle_id, player, payload.get("action"))
        except BattleError as exc:
            _reject(exc)
            return
        push_snapshots(socketio, battle_id)

    @socketio.on("pvp_forfeit")
    def pvp_forfeit(payload=None):
        battle_id, player, _ = _seat_from(payload)
        try:
            state.forfeit(battle_id, player)
        except BattleError as exc:
            _reject(exc)
            return
        push_snapshots(socketio, battle_id)

    @socketio.on("disconnect")
    def pvp_disconnect(*args):
        seat = state.leave_seat(request.sid)
        if not seat:
            return
        # the battle keeps running; a reconnecting or polling client picks it up
        leave_room(room_for(*seat))
        logger.info("Player %s left socket room for battle %s", seat[1], seat[0])
