# games/app.py
import logging

from flask import Flask
from flask_socketio import SocketIO

from .battle import init_battle
from .battle.content.balance import DEFAULTS

socketio = SocketIO()

DEFAULT_CONFIG = {
    "BATTLE_TURN_TIME_MS": DEFAULTS["turn_time_ms"],
    "BATTLE_POLL_INTERVAL_MS": DEFAULTS["poll_interval_ms"],
    "BATTLE_TIMER_TICK_SECONDS": DEFAULTS["timer_tick_seconds"],
    "BATTLE_TIMER_ENABLED": True,
    "BATTLE_COMPLETED_TTL_SECONDS": DEFAULTS["completed_ttl_seconds"],
    "BATTLE_LOG_LEVEL": "INFO",
}


def create_app(config=None):
    app = Flask(__name__)
    app.config.update(DEFAULT_CONFIG)
    if config:
        app.config.update(config)

    logging.basicConfig(
        level=app.config["BATTLE_LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    socketio.init_app(app, async_mode="threading")
    init_battle(app, socketio)
    return app


if __name__ == "__main__":
    socketio.run(create_app(), host="0.0.0.0", port=5000, allow_unsafe_werkzeug=True)
