# games/battle/engine/dice.py
import random


def rng_for(seed: int, turn: int, nonce: int = 0) -> random.Random:
    # deterministic per battle seed + turn + position in the battle log
    return random.Random(f"{seed}:{turn}:{nonce}")


def chance(probability: float, r: random.Random) -> bool:
    if probability <= 0:
        return False
    if probability >= 1:
        return True
    return r.random() < probability
