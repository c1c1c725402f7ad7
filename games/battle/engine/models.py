# games/battle/engine/models.py
from dataclasses import dataclass
from dataclasses import field as dc_field
from typing import Any, Dict, List, Optional, Set


@dataclass
class BattleStats:
    max_health: int
    physical_attack: int
    magical_attack: int
    physical_defense: int
    magical_defense: int
    initiative: int
    critical_chance: int
    dodge_chance: int
    energy_cost: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "maxHealth": self.max_health,
            "physicalAttack": self.physical_attack,
            "magicalAttack": self.magical_attack,
            "physicalDefense": self.physical_defense,
            "magicalDefense": self.magical_defense,
            "initiative": self.initiative,
            "criticalChance": self.critical_chance,
            "dodgeChance": self.dodge_chance,
            "energyCost": self.energy_cost,
        }


@dataclass
class Creature:
    id: str
    species_name: str
    form: int
    rarity: str
    combination_level: int
    attributes: Dict[str, float]
    stats: BattleStats
    health: int
    owner: str = ""
    specialty_stats: List[str] = dc_field(default_factory=list)
    is_defending: bool = False
    is_stunned: bool = False
    effects: List[Dict[str, Any]] = dc_field(default_factory=list)   # stun / buffs

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "speciesName": self.species_name,
            "form": self.form,
            "rarity": self.rarity,
            "combinationLevel": self.combination_level,
            "currentHealth": self.health,
            "battleStats": self.stats.to_dict(),
            "isDefending": self.is_defending,
            "isStunned": self.is_stunned,
            "statusEffects": [dict(effect) for effect in self.effects],
            "owner": self.owner,
        }


@dataclass
class BattleSide:
    player: str
    field_capacity: int
    energy: int
    energy_max: int
    hand: List[Creature] = dc_field(default_factory=list)
    field: List[Creature] = dc_field(default_factory=list)
    deck: List[Creature] = dc_field(default_factory=list)
    tools: Dict[str, Dict[str, Any]] = dc_field(default_factory=dict)
    used_tools: Set[str] = dc_field(default_factory=set)
    spells: Dict[str, Dict[str, Any]] = dc_field(default_factory=dict)
    used_spells: Set[str] = dc_field(default_factory=set)

    def find_in_hand(self, creature_id: Optional[str]) -> Optional[Creature]:
        return next((c for c in self.hand if c.id == creature_id), None)

    def find_on_field(self, creature_id: Optional[str]) -> Optional[Creature]:
        return next((c for c in self.field if c.id == creature_id), None)

    def is_defeated(self) -> bool:
        return not self.hand and not self.field


@dataclass
class BattleState:
    battle_id: str
    players: List[str]                     # [side A, side B]
    sides: Dict[str, BattleSide]
    active_player: str
    phase: str = "active"                  # "active" | "completed"
    turn: int = 1
    seed: int = 0                          # for deterministic spell rolls
    deadline: float = 0.0                  # wall clock, epoch seconds
    turn_time_ms: int = 60000
    difficulty: str = "easy"
    log: List[Dict[str, Any]] = dc_field(default_factory=list)
    winner: Optional[str] = None
    rating_change: int = 0
    version: int = 0
    completed_at: float = 0.0              # wall clock when the phase became "completed"
    ai_player: Optional[str] = None        # side played by the computer, if any

    def opponent_of(self, player: str) -> str:
        a, b = self.players
        return b if player == a else a

    def add_log(self, message: str) -> None:
        self.log.append({"turn": self.turn, "message": message})
