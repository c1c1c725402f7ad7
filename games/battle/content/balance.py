# games/battle/content/balance.py
DEFAULTS = {
    "starting_energy": 10,
    "energy_max": 25,
    "energy_regen_per_turn": 3,
    "initial_hand_size": 3,
    "max_hand_size": 5,
    "max_creatures": 5,
    "max_tools": 3,
    "max_spells": 3,
    "turn_time_ms": 60000,
    "poll_interval_ms": 2000,
    "timer_tick_seconds": 1.0,
    "completed_ttl_seconds": 300,
    "rating_change": 25,
    "min_damage": 1,
    "defend_multiplier": 0.5,
    "default_energy_cost": 5,
}

# Energy spent per action type; deploy uses the creature's own energy cost
# and spells may override theirs in the catalog.
COSTS = {
    "attack": 2,
    "useTool": 0,
    "useSpell": 4,
    "defend": 1,
    "endTurn": 0,
    "forfeit": 0,
}

PLAYER_FIELD_CAPACITY = 3

FIELD_CAPACITY = {
    "easy": 3,
    "medium": 4,
    "hard": 5,
    "expert": 6,
}

RARITY_ORDER = ["Common", "Rare", "Epic", "Legendary"]

# Computer opponent tuning per difficulty. mistake_chance is the odds of
# playing a random legal action instead of the best scored one.
AI_PROFILES = {
    "easy": {"aggression": 0.5, "max_actions": 3, "mistake_chance": 0.3},
    "medium": {"aggression": 0.65, "max_actions": 4, "mistake_chance": 0.15},
    "hard": {"aggression": 0.8, "max_actions": 5, "mistake_chance": 0.05},
    "expert": {"aggression": 0.95, "max_actions": 7, "mistake_chance": 0.0},
}

RARITY_MULTIPLIERS = {
    "Common": 1.0,
    "Rare": 1.1,
    "Epic": 1.2,
    "Legendary": 1.3,
}

# (soft cap, hard cap) per derived stat
CAPS = {
    "physical_attack": (60, 120),
    "magical_attack": (60, 120),
    "physical_defense": (40, 80),
    "magical_defense": (40, 80),
    "max_health": (200, 400),
    "initiative": (40, 60),
    "critical_chance_max": 30,
    "dodge_chance_max": 20,
}

ATTRIBUTES = ("energy", "strength", "magic", "stamina", "speed")

SYNERGY = {
    "species_per_extra": 0.05,
    "species_max_extra": 3,
    "legendary_presence": 0.05,
    "balanced_team": 0.05,
    "full_field": 0.025,
    "stat_pair": 0.06,
    "stat_pair_threshold": 7,
    "high_form": 0.05,
    "high_form_min": 2,
}

SPELL_MAGIC_SCALING = 0.15
SPELL_DEFENSE_DIVISOR = 200
SPELL_DEFENSE_CAP = 0.5
