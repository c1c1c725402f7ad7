import pytest

from games.battle.engine.errors import InvalidCreatureData
from games.battle.engine.stats import build_creature, derive_stats, specialty_multipliers

from factories import creature_bag


def zero_bag(**overrides):
    bag = creature_bag("c1", energy=0, strength=0, magic=0, stamina=0, speed=0)
    bag.update(overrides)
    return bag


def test_zero_attributes_give_base_values():
    stats = derive_stats(zero_bag())
    assert stats.max_health == 50
    assert stats.physical_attack == 10
    assert stats.magical_attack == 10
    assert stats.physical_defense == 5
    assert stats.magical_defense == 5
    assert stats.initiative == 10
    assert stats.critical_chance == 5
    assert stats.dodge_chance == 3
    assert stats.energy_cost == 5


def test_rarity_scales_everything_but_initiative():
    stats = derive_stats(zero_bag(rarity="Legendary"))
    assert stats.max_health == 65
    assert stats.physical_attack == 13
    assert stats.initiative == 10


def test_form_raises_stats_and_energy_cost():
    stats = derive_stats(zero_bag(form=2))
    assert stats.max_health == 75
    assert stats.initiative == 15
    assert stats.energy_cost == 7


def test_explicit_energy_cost_wins():
    assert derive_stats(zero_bag(energy_cost=3)).energy_cost == 3


def test_single_specialty_gets_the_bigger_boost():
    bag = creature_bag("c1", energy=0, strength=10, magic=0, stamina=0, speed=0, specialty_stats=["strength"])
    assert derive_stats(bag).physical_attack == 55
    assert specialty_multipliers(["strength", "magic"])["magic"] == 1.4


def test_soft_cap_bends_but_never_passes_hard_cap():
    stats = derive_stats(creature_bag("c1", strength=40, speed=0))
    assert 60 < stats.physical_attack < 120
    huge = derive_stats(creature_bag("c1", strength=10_000))
    assert huge.physical_attack <= 120


def test_chance_stats_are_clamped():
    stats = derive_stats(creature_bag("c1", speed=200, magic=200, stamina=200))
    assert stats.critical_chance == 30
    assert stats.dodge_chance == 20


def test_derivation_is_pure():
    bag = creature_bag("c1", strength=9, magic=3, form=1, rarity="Epic")
    assert derive_stats(bag) == derive_stats(bag)


@pytest.mark.parametrize("bag", [
    "not a mapping",
    {"id": "c1", "form": 0},
    creature_bag("c1", magic="lots"),
    creature_bag("c1", strength=True),
    creature_bag("c1", form=-1),
    creature_bag("c1", rarity="Mythic"),
])
def test_bad_bags_are_rejected(bag):
    with pytest.raises(InvalidCreatureData):
        derive_stats(bag)


def test_missing_attribute_is_rejected():
    bag = creature_bag("c1")
    del bag["stats"]["speed"]
    with pytest.raises(InvalidCreatureData):
        derive_stats(bag)


def test_build_creature_starts_at_full_health():
    creature = build_creature(creature_bag("c1", species="Sparkit"), owner="alice")
    assert creature.health == creature.stats.max_health
    assert creature.owner == "alice"
    assert creature.species_name == "Sparkit"
    assert not creature.effects


def test_build_creature_needs_an_id():
    bag = creature_bag("c1")
    bag["id"] = ""
    with pytest.raises(InvalidCreatureData):
        build_creature(bag)
