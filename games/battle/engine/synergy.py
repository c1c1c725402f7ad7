# games/battle/engine/synergy.py
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from dataclasses import field as dc_field
from typing import Dict, List, Sequence

from .models import Creature
from ..content.balance import ATTRIBUTES, SYNERGY

STAT_PAIRS = [
    ("strength", "stamina", "fortress_formation", "Fortress Formation"),
    ("magic", "energy", "arcane_resonance", "Arcane Resonance"),
    ("speed", "strength", "blitz_assault", "Blitz Assault"),
    ("stamina", "energy", "enduring_will", "Enduring Will"),
    ("magic", "speed", "swift_casting", "Swift Casting"),
]


@dataclass
class SynergyResult:
    type: str
    label: str
    bonus: float
    creature_ids: List[str] = dc_field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "type": self.type,
            "label": self.label,
            "bonus": self.bonus,
            "creatureIds": list(self.creature_ids),
        }


def stat_category(creature: Creature) -> str:
    for stat in creature.specialty_stats:
        if stat in ATTRIBUTES:
            return stat
    # highest base attribute; ties go to the earlier attribute
    return max(ATTRIBUTES, key=lambda name: (creature.attributes.get(name, 0), -ATTRIBUTES.index(name)))


def _species(field: Sequence[Creature]) -> List[SynergyResult]:
    results = []
    counts = Counter(c.species_name for c in field)
    for species, count in counts.items():
        if count < 2:
            continue
        extra = min(count - 1, SYNERGY["species_max_extra"])
        results.append(SynergyResult(
            type="species",
            label=f"{species} Pack",
            bonus=SYNERGY["species_per_extra"] * extra,
            creature_ids=[c.id for c in field if c.species_name == species],
        ))
    return results


def _legendary(field: Sequence[Creature]) -> List[SynergyResult]:
    legends = [c.id for c in field if c.rarity == "Legendary"]
    if not legends:
        return []
    return [SynergyResult("legendary_presence", "Legendary Presence", SYNERGY["legendary_presence"], legends)]


def _balanced(field: Sequence[Creature]) -> List[SynergyResult]:
    if len(field) < 3:
        return []
    categories = Counter(stat_category(c) for c in field)
    if len(categories) < 3 or max(categories.values()) * 2 > len(field):
        return []
    return [SynergyResult("balanced_team", "Balanced Formation", SYNERGY["balanced_team"], [c.id for c in field])]


def _full_field(field: Sequence[Creature], capacity: int) -> List[SynergyResult]:
    if capacity <= 0 or len(field) < capacity:
        return []
    return [SynergyResult("full_field", "Full Force", SYNERGY["full_field"], [c.id for c in field])]


def _stat_pairs(field: Sequence[Creature]) -> List[SynergyResult]:
    threshold = SYNERGY["stat_pair_threshold"]
    results = []
    for first, second, kind, label in STAT_PAIRS:
        for i, one in enumerate(field):
            match = None
            for other in field[i + 1:]:
                a1, a2 = one.attributes, other.attributes
                if (a1.get(first, 0) >= threshold and a2.get(second, 0) >= threshold) or (
                    a1.get(second, 0) >= threshold and a2.get(first, 0) >= threshold
                ):
                    match = other
                    break
            if match is not None:
                results.append(SynergyResult(kind, label, SYNERGY["stat_pair"], [one.id, match.id]))
                break
    return results


def _high_form(field: Sequence[Creature]) -> List[SynergyResult]:
    if not all(c.form >= SYNERGY["high_form_min"] for c in field):
        return []
    return [SynergyResult("high_form", "Elder Formation", SYNERGY["high_form"], [c.id for c in field])]


def evaluate_synergies(field: Sequence[Creature], capacity: int = 0) -> List[SynergyResult]:
    """
    Evaluate field-wide synergy bonuses for one side's deployed creatures.

    Stateless: callers re-run it before every damage computation so a
    creature that died earlier in the turn no longer contributes.
    """
    field = list(field)
    if len(field) < 2:
        return []
    results: List[SynergyResult] = []
    results.extend(_species(field))
    results.extend(_legendary(field))
    results.extend(_balanced(field))
    results.extend(_full_field(field, capacity))
    results.extend(_stat_pairs(field))
    results.extend(_high_form(field))
    return results


def total_bonus(synergies: Sequence[SynergyResult]) -> float:
    return sum(s.bonus for s in synergies)
