# games/battle/state.py
import logging
import threading
import time
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .engine import ai, turns
from .engine.errors import (
    ActionRejected,
    IllegalAction,
    InvalidBattleSetup,
    StateConflict,
    UnknownBattle,
    UnknownPlayer,
)
from .engine.models import BattleState
from .engine.resolver import available_actions
from .content.balance import DEFAULTS
from .snapshot import snapshot_for

logger = logging.getLogger(__name__)

battles: Dict[str, BattleState] = {}
battle_locks: Dict[str, threading.Lock] = {}
# socket sid -> (battle_id, player); polling clients never appear here
seats: Dict[str, Tuple[str, str]] = {}
_registry_lock = threading.Lock()

settings: Dict[str, Any] = {
    "turn_time_ms": DEFAULTS["turn_time_ms"],
    "poll_interval_ms": DEFAULTS["poll_interval_ms"],
    "lock_timeout": 2.0,
    "lock_retries": 3,
    "completed_ttl_seconds": DEFAULTS["completed_ttl_seconds"],
}


def configure(turn_time_ms: Optional[int] = None, poll_interval_ms: Optional[int] = None,
              lock_timeout: Optional[float] = None, lock_retries: Optional[int] = None,
              completed_ttl_seconds: Optional[float] = None) -> None:
    if turn_time_ms is not None:
        settings["turn_time_ms"] = int(turn_time_ms)
    if poll_interval_ms is not None:
        settings["poll_interval_ms"] = int(poll_interval_ms)
    if lock_timeout is not None:
        settings["lock_timeout"] = float(lock_timeout)
    if lock_retries is not None:
        settings["lock_retries"] = int(lock_retries)
    if completed_ttl_seconds is not None:
        settings["completed_ttl_seconds"] = float(completed_ttl_seconds)


def clear() -> None:
    with _registry_lock:
        battles.clear()
        battle_locks.clear()
        seats.clear()


def create_battle(
    players: Sequence[str],
    selections: Mapping[str, Mapping[str, Any]],
    difficulty: str = "easy",
    battle_id: Optional[str] = None,
    now: Optional[float] = None,
    seed: Optional[int] = None,
    ai_player: Optional[str] = None,
) -> BattleState:
    if battle_id is not None and not isinstance(battle_id, str):
        raise InvalidBattleSetup("Battle id must be a string.")
    battle_id = battle_id or f"battle-{uuid.uuid4().hex[:12]}"
    state = turns.start_battle(
        battle_id,
        players,
        selections,
        difficulty=difficulty,
        now=now,
        seed=seed,
        turn_time_ms=settings["turn_time_ms"],
        ai_player=ai_player,
    )
    # a computer side A opens before anyone can see the battle
    _drive_ai(state, now)
    with _registry_lock:
        if battle_id in battles:
            raise InvalidBattleSetup(f"Battle '{battle_id}' already exists.")
        battles[battle_id] = state
        battle_locks[battle_id] = threading.Lock()
    return state


def get_battle(battle_id: str) -> BattleState:
    state = battles.get(battle_id) if isinstance(battle_id, str) else None
    if state is None:
        raise UnknownBattle(f"No battle '{battle_id}'.")
    return state


@contextmanager
def locked(battle_id: str) -> Iterator[BattleState]:
    """Hold the battle's lock; every mutation of one battle goes through here."""
    lock = battle_locks.get(battle_id) if isinstance(battle_id, str) else None
    if lock is None:
        raise UnknownBattle(f"No battle '{battle_id}'.")
    for attempt in range(settings["lock_retries"]):
        if lock.acquire(timeout=settings["lock_timeout"]):
            break
        logger.warning("Battle %s busy (attempt %s/%s)", battle_id, attempt + 1, settings["lock_retries"])
    else:
        raise StateConflict(f"Battle '{battle_id}' is busy, try again.")
    try:
        yield get_battle(battle_id)
    finally:
        lock.release()


def _check_player(state: BattleState, player: Any) -> None:
    turns.require_player(state, player)


def _check_human(state: BattleState, player: Any) -> None:
    _check_player(state, player)
    if player == state.ai_player:
        raise IllegalAction(f"{player} is played by the computer.")


def _drive_ai(state: BattleState, now: Optional[float]) -> bool:
    """Let the computer side play out its turn if it holds the turn."""
    if state.ai_player is None or state.phase != "active" or state.active_player != state.ai_player:
        return False
    ai.play_turn(state, state.ai_player, now)
    return True


def _expire(state: BattleState, now: Optional[float]) -> bool:
    if turns.expire_if_due(state, now):
        _drive_ai(state, now)
        state.version += 1
        return True
    return False


def view(state: BattleState, player: str, now: Optional[float] = None) -> Dict[str, Any]:
    return snapshot_for(state, player, now, settings["poll_interval_ms"])


def submit_action(battle_id: str, player: str, action: Any, now: Optional[float] = None) -> Dict[str, Any]:
    """
    Apply one action under the battle lock and return the player's view.

    A due timeout is applied first, so the turn check sees the real turn
    holder. Rejections propagate with the state untouched. When the action
    hands the turn to a computer side, its whole turn is played before the
    lock is released.
    """
    with locked(battle_id) as state:
        _check_human(state, player)
        _expire(state, now)
        try:
            turns.take_action(state, player, action, now)
        except ActionRejected as exc:
            logger.warning("Battle %s: rejected action from %s: %s", battle_id, player, exc.reason)
            raise
        _drive_ai(state, now)
        state.version += 1
        return view(state, player, now)


def get_state(battle_id: str, player: str, now: Optional[float] = None) -> Dict[str, Any]:
    with locked(battle_id) as state:
        _check_player(state, player)
        _expire(state, now)
        return view(state, player, now)


def list_actions(battle_id: str, player: str, now: Optional[float] = None) -> List[Dict[str, Any]]:
    with locked(battle_id) as state:
        _check_player(state, player)
        _expire(state, now)
        return available_actions(state, player)


def forfeit(battle_id: str, player: str, now: Optional[float] = None) -> Dict[str, Any]:
    with locked(battle_id) as state:
        _check_human(state, player)
        turns.forfeit(state, player, now)
        state.version += 1
        return view(state, player, now)


def expire_due_battles(now: Optional[float] = None) -> List[str]:
    """Force the implicit endTurn on every overdue battle; returns their ids."""
    expired = []
    for battle_id, battle in list(battles.items()):
        if battle.phase != "active":
            continue
        try:
            with locked(battle_id) as state:
                if _expire(state, now):
                    expired.append(battle_id)
        except (UnknownBattle, StateConflict) as exc:
            logger.warning("Skipping timer check for %s: %s", battle_id, exc.reason)
    return expired


def reap_completed(now: Optional[float] = None) -> List[str]:
    """Forget battles that finished more than completed_ttl_seconds ago."""
    now = time.time() if now is None else now
    ttl = settings["completed_ttl_seconds"]
    done = [
        battle_id
        for battle_id, battle in list(battles.items())
        if battle.phase == "completed" and now - battle.completed_at >= ttl
    ]
    for battle_id in done:
        cleanup_battle(battle_id)
        logger.info("Released finished battle %s", battle_id)
    return done


def cleanup_battle(battle_id: str) -> None:
    with _registry_lock:
        battles.pop(battle_id, None)
        battle_locks.pop(battle_id, None)
        for sid in [s for s, seat in seats.items() if seat[0] == battle_id]:
            seats.pop(sid, None)


def take_seat(sid: str, battle_id: str, player: str) -> None:
    _check_player(get_battle(battle_id), player)
    seats[sid] = (battle_id, player)


def seat_for(sid: str) -> Optional[Tuple[str, str]]:
    return seats.get(sid)


def leave_seat(sid: str) -> Optional[Tuple[str, str]]:
    return seats.pop(sid, None)
