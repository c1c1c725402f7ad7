import pytest

from games.battle.engine.synergy import evaluate_synergies, stat_category, total_bonus

from factories import make_creature


def types_of(results):
    return sorted(r.type for r in results)


def test_single_creature_has_no_synergy():
    assert evaluate_synergies([make_creature("c1", rarity="Legendary")], capacity=1) == []


def test_unrelated_pair_has_no_synergy():
    assert evaluate_synergies([make_creature("c1"), make_creature("c2")], capacity=3) == []


@pytest.mark.parametrize("count, bonus", [(2, 0.05), (3, 0.10), (4, 0.15), (5, 0.15)])
def test_species_bonus_is_capped(count, bonus):
    field = [make_creature(f"c{i}", species="Sparkit", energy=i) for i in range(count)]
    species = [r for r in evaluate_synergies(field) if r.type == "species"]
    assert len(species) == 1
    assert species[0].bonus == pytest.approx(bonus)
    assert len(species[0].creature_ids) == count


def test_legendary_presence_counts_once():
    field = [make_creature("c1", rarity="Legendary"), make_creature("c2", rarity="Legendary")]
    assert types_of(evaluate_synergies(field)) == ["legendary_presence"]


def test_full_field_needs_capacity_reached():
    field = [make_creature("c1"), make_creature("c2")]
    assert "full_field" in types_of(evaluate_synergies(field, capacity=2))
    assert "full_field" not in types_of(evaluate_synergies(field, capacity=3))


def test_stat_pair_fires_once_per_pair():
    field = [
        make_creature("c1", strength=8),
        make_creature("c2", stamina=9),
        make_creature("c3", stamina=7),
    ]
    pacts = [r for r in evaluate_synergies(field) if r.type == "fortress_formation"]
    assert len(pacts) == 1
    assert pacts[0].bonus == pytest.approx(0.06)


def test_high_form_needs_every_creature():
    field = [make_creature("c1", form=2), make_creature("c2", form=3)]
    assert "high_form" in types_of(evaluate_synergies(field))
    field.append(make_creature("c3", form=1))
    assert "high_form" not in types_of(evaluate_synergies(field))


def test_balanced_team_needs_three_categories():
    field = [
        make_creature("c1", strength=9),
        make_creature("c2", magic=9),
        make_creature("c3", speed=9),
    ]
    assert "balanced_team" in types_of(evaluate_synergies(field))
    field[2] = make_creature("c3", strength=9)
    assert "balanced_team" not in types_of(evaluate_synergies(field))


def test_category_prefers_specialty():
    creature = make_creature("c1", strength=9)
    assert stat_category(creature) == "strength"
    creature.specialty_stats = ["magic"]
    assert stat_category(creature) == "magic"


def test_bonuses_add_up():
    field = [
        make_creature("c1", species="Sparkit", rarity="Legendary"),
        make_creature("c2", species="Sparkit"),
    ]
    assert total_bonus(evaluate_synergies(field, capacity=2)) == pytest.approx(0.05 + 0.05 + 0.025)


def test_synergy_follows_the_live_field():
    field = [make_creature("c1", species="Sparkit"), make_creature("c2", species="Sparkit")]
    assert total_bonus(evaluate_synergies(field)) == pytest.approx(0.05)
    field.pop()
    assert total_bonus(evaluate_synergies(field)) == 0
