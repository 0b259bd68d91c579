import pytest

from battlesim.battle.formulas import (
    compute_damage, critical_hit_check, effective_accuracy_multiplier, effective_speed, effective_stat,
    effectiveness, hit_check, type_affinity, weather_affinity,
)
from battlesim.battle.models import Status, Weather
from battlesim.battle.moves import MoveInstance
from battlesim.core.types import ElementType as E


class ExplodingRng:
    def random(self):
        raise AssertionError("no draw expected")

    def uniform(self, a, b):
        raise AssertionError("no draw expected")


def test_effective_stat_stage_table():
    assert effective_stat(100, 0) == 100
    assert effective_stat(100, 1) == 150
    assert effective_stat(100, -1) == pytest.approx(66.666, rel=1e-3)
    assert effective_stat(100, 6) == 400
    assert effective_stat(100, -6) == 25


def test_effective_stat_clamps_stage_and_result():
    assert effective_stat(100, 12) == effective_stat(100, 6)
    assert effective_stat(100, -12) == 25
    assert effective_stat(400, 6) == 999
    assert effective_stat(1, -6) == 1


def test_accuracy_multiplier_is_gentler():
    assert effective_accuracy_multiplier(0) == 1
    assert effective_accuracy_multiplier(6) == 3
    assert effective_accuracy_multiplier(-6) == pytest.approx(1 / 3)
    assert effective_accuracy_multiplier(1) == pytest.approx(4 / 3)


def test_paralysis_halves_speed(make_combatant):
    c = make_combatant(speed=80)
    assert effective_speed(c) == 80
    c.status = Status.PARALYZED
    assert effective_speed(c) == 40
    c.stages.speed = 2
    assert effective_speed(c) == 80


def test_type_affinity_lookup():
    assert type_affinity(E.FIRE, E.GRASS) == 2
    assert type_affinity(E.WATER, E.FIRE) == 2
    assert type_affinity(E.ELECTRIC, E.GROUND) == 0
    assert type_affinity(E.GRASS, E.FIRE) == 0.5
    assert type_affinity(E.NORMAL, E.ICE) == 1
    assert type_affinity(E.FIRE, None) == 1
    assert type_affinity(None, E.WATER) == 1


def test_effectiveness_multiplies_both_types(make_combatant):
    snover = make_combatant(types=(E.GRASS, E.ICE))
    assert effectiveness(E.FIRE, snover) == 4
    assert effectiveness(E.WATER, snover) == 0.5
    single = make_combatant(types=(E.WATER,))
    assert effectiveness(E.ELECTRIC, single) == 2


def test_weather_affinity():
    assert weather_affinity(E.FIRE, Weather.SUNNY) == 1.5
    assert weather_affinity(E.FIRE, Weather.RAIN) == 0.5
    assert weather_affinity(E.WATER, Weather.RAIN) == 1.5
    assert weather_affinity(E.WATER, Weather.SUNNY) == 0.5
    assert weather_affinity(E.GRASS, Weather.SUNNY) == 1
    assert weather_affinity(None, Weather.RAIN) == 1
    assert weather_affinity(E.FIRE, Weather.NONE) == 1


def test_hit_check_uses_accuracy_and_stages(catalog, make_combatant, dummy_rng):
    a, d = make_combatant(), make_combatant()
    tackle = MoveInstance.of(catalog.move("Tackle"))
    hypnosis = MoveInstance.of(catalog.move("Hypnosis"))  # 60%
    assert hit_check(tackle, a, d, dummy_rng(0.5))
    assert hit_check(hypnosis, a, d, dummy_rng(0.5))
    assert not hit_check(hypnosis, a, d, dummy_rng(0.7))
    d.stages.evasion = 6
    assert not hit_check(tackle, a, d, dummy_rng(0.5))
    a.stages.accuracy = 6
    assert hit_check(tackle, a, d, dummy_rng(0.99))


def test_always_hit_moves_draw_nothing(catalog, make_combatant):
    swords = MoveInstance.of(catalog.move("Swords Dance"))
    a, d = make_combatant(), make_combatant()
    d.stages.evasion = 6
    assert hit_check(swords, a, d, ExplodingRng())


def test_critical_hit_tiers(dummy_rng):
    assert critical_hit_check(0, dummy_rng(0.04))
    assert not critical_hit_check(0, dummy_rng(0.05))
    assert not critical_hit_check(-3, dummy_rng(0.05))
    assert critical_hit_check(1, dummy_rng(0.12))
    assert not critical_hit_check(1, dummy_rng(0.13))
    assert critical_hit_check(2, dummy_rng(0.49))
    assert not critical_hit_check(2, dummy_rng(0.5))
    assert critical_hit_check(3, ExplodingRng())
    assert critical_hit_check(7, ExplodingRng())


@pytest.fixture
def duel(catalog, make_combatant):
    attacker = make_combatant("Atk", attack=100, sp_attack=100, types=(E.FIRE,))
    defender = make_combatant("Def", defense=100, sp_defense=100, health=500)
    return attacker, defender


def _move(catalog, name):
    return MoveInstance.of(catalog.move(name))


def test_damage_base_formula(catalog, duel, dummy_rng):
    a, d = duel
    roll = compute_damage(_move(catalog, "Tackle"), a, d, Weather.NONE, 1, dummy_rng())
    assert roll.damage == 19
    assert not roll.critical
    assert roll.effectiveness == 1


def test_damage_same_type_bonus(catalog, duel, dummy_rng):
    a, d = duel
    a.types = (E.NORMAL,)
    roll = compute_damage(_move(catalog, "Tackle"), a, d, Weather.NONE, 1, dummy_rng())
    assert roll.stab == 1.5
    assert roll.damage == 29


def test_damage_burn_halves_physical_only(catalog, duel, dummy_rng):
    a, d = duel
    a.status = Status.BURNED
    assert compute_damage(_move(catalog, "Tackle"), a, d, Weather.NONE, 1, dummy_rng()).damage == 9
    assert compute_damage(_move(catalog, "Water Gun"), a, d, Weather.NONE, 1, dummy_rng()).damage == 19


def test_damage_weather(catalog, duel, dummy_rng):
    a, d = duel
    assert compute_damage(_move(catalog, "Water Gun"), a, d, Weather.RAIN, 1, dummy_rng()).damage == 29
    assert compute_damage(_move(catalog, "Water Gun"), a, d, Weather.SUNNY, 1, dummy_rng()).damage == 9
    hit = _move(catalog, "Confusion Hit")
    assert compute_damage(hit, a, d, Weather.RAIN, 1, dummy_rng()).weather == 1


def test_spread_penalty_only_with_several_targets(catalog, duel, dummy_rng):
    a, d = duel
    surf = _move(catalog, "Surf")
    assert compute_damage(surf, a, d, Weather.NONE, 1, dummy_rng()).damage == 43
    assert compute_damage(surf, a, d, Weather.NONE, 2, dummy_rng()).damage == 32
    tackle = _move(catalog, "Tackle")
    assert compute_damage(tackle, a, d, Weather.NONE, 2, dummy_rng()).damage == 19


def test_critical_hit_ignores_attacker_drops(catalog, duel, dummy_rng):
    a, d = duel
    a.stages.attack = -2
    tackle = _move(catalog, "Tackle")
    assert compute_damage(tackle, a, d, Weather.NONE, 1, dummy_rng()).damage == 10
    roll = compute_damage(tackle, a, d, Weather.NONE, 1, dummy_rng(sequence=[0.0]))
    assert roll.critical
    assert roll.damage == 29


def test_critical_hit_ignores_defender_boosts(catalog, duel, dummy_rng):
    a, d = duel
    d.stages.defense = 6
    roll = compute_damage(_move(catalog, "Tackle"), a, d, Weather.NONE, 1, dummy_rng(sequence=[0.0]))
    assert roll.damage == 29


def test_immune_target_takes_nothing(catalog, duel, dummy_rng):
    a, d = duel
    d.types = (E.GROUND,)
    roll = compute_damage(_move(catalog, "Thunder Shock"), a, d, Weather.NONE, 1, dummy_rng())
    assert roll.effectiveness == 0
    assert roll.damage == 0


def test_damage_never_exceeds_remaining_health(catalog, duel, dummy_rng):
    a, d = duel
    d.current_health = 3
    assert compute_damage(_move(catalog, "Tackle"), a, d, Weather.NONE, 1, dummy_rng()).damage == 3
