import pytest

from battlesim.battle.models import Side, Stat, Stages, Status, Team
from battlesim.core.types import ElementType as E


def test_health_starts_full_and_clamps(make_combatant):
    c = make_combatant(health=80)
    assert c.current_health == 80
    c.current_health = 500
    c.clamp_health()
    assert c.current_health == 80
    c.current_health = -12
    c.clamp_health()
    assert c.current_health == 0
    assert c.is_fainted()
    assert make_combatant(health=80, current=200).current_health == 80


def test_combatant_needs_one_or_two_types(make_combatant):
    with pytest.raises(ValueError):
        make_combatant(types=())
    with pytest.raises(ValueError):
        make_combatant(types=(E.FIRE, E.WATER, E.ICE))
    dual = make_combatant(types=(E.GRASS, E.ICE))
    assert dual.primary_type is E.GRASS
    assert dual.secondary_type is E.ICE
    assert make_combatant(types=(E.FIRE,)).secondary_type is None


def test_stage_shift_clamps_and_reports_change():
    s = Stages()
    assert s.shift(Stat.ATTACK, 4) == 4
    assert s.shift(Stat.ATTACK, 4) == 2
    assert s.attack == 6
    assert s.shift(Stat.ATTACK, 1) == 0
    assert s.shift(Stat.DEFENSE, -9) == -6
    assert s.defense == -6


def test_critical_stage_is_unclamped():
    s = Stages()
    s.shift(Stat.CRITICAL, 5)
    s.shift(Stat.CRITICAL, 5)
    assert s.critical == 10
    s.reset()
    assert s.critical == 0 and s.attack == 0


def test_release_attack_respects_immobilizing_status(make_combatant):
    c = make_combatant()
    c.can_attack = False
    c.status = Status.FROZEN
    c.release_attack()
    assert not c.can_attack
    c.status = Status.PARALYZED
    c.release_attack()
    assert c.can_attack


def test_label_carries_gender(catalog):
    from battlesim.battle.factory import combatant_from_name
    chimchar = combatant_from_name("Chimchar", 10, Team.ALLY, catalog)
    assert chimchar.label == "Chimchar♂"


def test_side_swap_is_positional(make_combatant):
    a, b, c, d = (make_combatant(n) for n in "ABCD")
    side = Side(Team.ALLY, active=[a, b], reserve=[c, d])
    side.swap(b, d)
    assert side.active == [a, d]
    assert side.reserve == [c, b]
    assert len(side.members()) == 4


def test_side_all_fainted(make_combatant):
    a, b = make_combatant("A"), make_combatant("B")
    side = Side(Team.ENEMY, active=[a], reserve=[b])
    a.current_health = 0
    assert not side.all_fainted()
    b.current_health = 0
    assert side.all_fainted()


def test_usable_moves_skip_spent_copies(make_combatant):
    c = make_combatant(moves=("Tackle", "Growl"))
    c.moves[0].points = 0
    assert [m.name for m in c.usable_moves()] == ["Growl"]


def test_move_copies_are_independent(make_combatant):
    a, b = make_combatant("A"), make_combatant("B")
    a.moves[0].spend()
    assert a.moves[0].points == 34
    assert b.moves[0].points == 35
    a.moves[0].points = -3
    a.moves[0].clamp_points()
    assert a.moves[0].points == 0
