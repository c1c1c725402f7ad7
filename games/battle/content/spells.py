# games/battle/content/spells.py
SPELLS = {
    "babylon_burst": {
        "name": "Babylon Burst",
        "element": "energy",
        "target": "enemy",
        "power": 30,
        "armor_piercing": True,
        "crit": {"chance": 0.2, "multiplier": 1.5},
    },
    "scrypto_surge": {
        "name": "Scrypto Surge",
        "element": "strength",
        "target": "enemy",
        "power": 12,
        "self_heal": 10,
    },
    "cerberus_chain": {
        "name": "Cerberus Chain",
        "element": "stamina",
        "target": "ally",
        "heal": 20,
        "buffs": [
            {"stat": "physical_defense", "flat": 8, "duration": 3},
            {"stat": "magical_defense", "flat": 8, "duration": 3},
        ],
    },
    "engine_overclock": {
        "name": "Engine Overclock",
        "element": "speed",
        "target": "ally",
        "heal": 3,
        "buffs": [
            {"stat": "initiative", "flat": 10, "duration": 4},
        ],
    },
    "shardstorm": {
        "name": "Shardstorm",
        "element": "magic",
        "target": "all_enemies",
        "power": 35,
        "target_effects": [
            {"id": "stunned", "duration": 2, "chance": 0.2},
        ],
    },
}
