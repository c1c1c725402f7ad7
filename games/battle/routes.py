# games/battle/routes.py
from flask import Blueprint, jsonify, request

from . import state
from .engine.errors import (
    ActionRejected,
    BattleError,
    InvalidBattleSetup,
    MalformedAction,
    StateConflict,
    UnknownBattle,
    UnknownPlayer,
)

battle_bp = Blueprint("battle", __name__, url_prefix="/api/pvp")


def _error(exc: BattleError, status: int):
    return jsonify({"error": exc.__class__.__name__, "reason": exc.reason}), status


def _status_for(exc: BattleError) -> int:
    if isinstance(exc, UnknownBattle):
        return 404
    if isinstance(exc, (MalformedAction, UnknownPlayer)):
        return 400
    if isinstance(exc, InvalidBattleSetup):
        return 422
    if isinstance(exc, (ActionRejected, StateConflict)):
        return 409
    return 500


@battle_bp.errorhandler(BattleError)
def handle_battle_error(exc):
    return _error(exc, _status_for(exc))


def _body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise MalformedAction("Request body must be a JSON object.")
    return data


def _player_arg() -> str:
    player = request.args.get("player")
    if not player:
        raise MalformedAction("Query parameter 'player' is required.")
    return player


def _player_field(data: dict) -> str:
    player = data.get("player")
    if not player or not isinstance(player, str):
        raise MalformedAction("'player' must be a non-empty string.")
    return player


@battle_bp.route("/battle", methods=["POST"])
def create_battle():
    data = _body()
    battle = state.create_battle(
        data.get("players") or [],
        data.get("selections") or {},
        difficulty=data.get("difficulty") or "easy",
        battle_id=data.get("battleId"),
        seed=data.get("seed"),
        ai_player=data.get("aiPlayer"),
    )
    viewer = next(p for p in battle.players if p != battle.ai_player)
    return jsonify(state.get_state(battle.battle_id, viewer)), 201


@battle_bp.route("/battle/<battle_id>", methods=["GET"])
def get_battle(battle_id):
    return jsonify(state.get_state(battle_id, _player_arg()))


@battle_bp.route("/battle/<battle_id>/action", methods=["POST"])
def submit_action(battle_id):
    data = _body()
    player = _player_field(data)
    return jsonify(state.submit_action(battle_id, player, data.get("action")))


@battle_bp.route("/battle/<battle_id>/forfeit", methods=["POST"])
def forfeit(battle_id):
    data = _body()
    player = _player_field(data)
    return jsonify(state.forfeit(battle_id, player))


@battle_bp.route("/battle/<battle_id>/actions", methods=["GET"])
def list_actions(battle_id):
    return jsonify({"battleId": battle_id, "actions": state.list_actions(battle_id, _player_arg())})
