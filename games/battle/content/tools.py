# games/battle/content/tools.py
TOOLS = {
    "babylon_keystone": {
        "name": "Babylon Keystone",
        "element": "energy",
        "heal": 6,
        "energy_gain": 2,
    },
    "hyperscale_capacitor": {
        "name": "Hyperscale Capacitor",
        "element": "strength",
        "heal": 5,
        "buffs": [
            {"stat": "physical_attack", "flat": 15, "duration": 2},
        ],
    },
    "ledger_lens": {
        "name": "Ledger Lens",
        "element": "magic",
        "heal": 8,
        "buffs": [
            {"stat": "physical_defense", "flat": 12, "duration": 4},
            {"stat": "magical_defense", "flat": 12, "duration": 4},
        ],
    },
    "olympia_emblem": {
        "name": "Olympia Emblem",
        "element": "stamina",
        "heal": 13,
        "cleanse": True,
    },
    "validator_core": {
        "name": "Validator Core",
        "element": "speed",
        "heal": 7,
        "buffs": [
            {"stat": "physical_attack", "flat": 10, "duration": 4},
            {"stat": "magical_attack", "flat": 10, "duration": 4},
            {"stat": "physical_defense", "flat": -3, "duration": 4},
            {"stat": "magical_defense", "flat": -3, "duration": 4},
        ],
    },
}
