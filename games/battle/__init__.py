# games/battle/__init__.py
from . import state
from .routes import battle_bp
from .sockets import register_battle_socket_handlers, run_turn_timer


def init_battle(app, socketio):
    state.configure(
        turn_time_ms=app.config.get("BATTLE_TURN_TIME_MS"),
        poll_interval_ms=app.config.get("BATTLE_POLL_INTERVAL_MS"),
        completed_ttl_seconds=app.config.get("BATTLE_COMPLETED_TTL_SECONDS"),
    )
    app.register_blueprint(battle_bp)
    register_battle_socket_handlers(socketio)
    if app.config.get("BATTLE_TIMER_ENABLED", True):
        socketio.start_background_task(run_turn_timer, socketio, app.config.get("BATTLE_TIMER_TICK_SECONDS", 1.0))
