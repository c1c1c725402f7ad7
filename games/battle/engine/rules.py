# games/battle/engine/rules.py
import math


def clamp(x: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, x))


def soft_cap(value: float, soft: float, hard: float) -> float:
    # smooth diminishing returns between the soft and hard cap
    if value <= soft:
        return value
    span = hard - soft
    return soft + span * (1 - math.exp(-(value - soft) / span))


def base_damage(offense: int, defense: int, minimum: int = 1) -> int:
    return max(minimum, offense - defense)


def scale_damage(base: float, synergy_bonus: float, defending: bool,
                 defend_multiplier: float = 0.5, minimum: int = 1) -> int:
    """Additive synergy, then the defend reduction, floored and held at the minimum."""
    value = base * (1.0 + synergy_bonus)
    if defending:
        value *= defend_multiplier
    return max(minimum, int(math.floor(round(value, 6))))


def spell_mitigation(magical_defense: int, divisor: int, cap: float) -> float:
    return 1.0 - min(max(magical_defense, 0) / divisor, cap)
