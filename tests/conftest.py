import pytest

from games.app import create_app
from games.battle import state


@pytest.fixture(autouse=True)
def fresh_registry():
    state.clear()
    state.configure(turn_time_ms=60000, poll_interval_ms=2000, lock_timeout=2.0, lock_retries=3,
                    completed_ttl_seconds=300)
    yield
    state.clear()


@pytest.fixture
def app():
    return create_app({"TESTING": True, "BATTLE_TIMER_ENABLED": False})


@pytest.fixture
def client(app):
    return app.test_client()
