from battlesim.battle.ai import AI_PROVIDERS, GreedyDecisions, RandomDecisions, move_score
from battlesim.battle.decisions import Action
from battlesim.battle.models import Team
from battlesim.battle.moves import MoveInstance
from battlesim.core.types import ElementType as E


def test_random_ai_always_fights(make_combatant, make_battle):
    ally = make_combatant("Ally", moves=("Tackle", "Growl"))
    foe = make_combatant("Foe", Team.ENEMY)
    battle = make_battle([ally], [foe])
    ai = RandomDecisions()
    assert ai.choose_action(ally, battle) is Action.FIGHT
    choice = ai.choose_move(ally, battle)
    # the dummy rng picks the first option
    assert choice.move.name == "Tackle"
    assert choice.target is foe


def test_random_ai_leaves_side_wide_moves_untargeted(make_combatant, make_battle):
    ally = make_combatant("Ally", moves=("Growl",))
    battle = make_battle([ally], [make_combatant("Foe", Team.ENEMY)])
    assert RandomDecisions().choose_move(ally, battle).target is None


def test_move_score(catalog, make_combatant):
    user = make_combatant(types=(E.WATER,))
    fire = make_combatant(types=(E.FIRE,))
    assert move_score(MoveInstance.of(catalog.move("Water Gun")), user, fire) == 40 * 2 * 1.5
    assert move_score(MoveInstance.of(catalog.move("Tackle")), user, fire) == 40
    assert move_score(MoveInstance.of(catalog.move("Growl")), user, fire) == 0


def test_greedy_ai_prefers_the_best_matchup(make_combatant, make_battle):
    ally = make_combatant("Ally", types=(E.WATER,), moves=("Tackle", "Water Gun"))
    grass = make_combatant("Grass", Team.ENEMY, types=(E.GRASS,))
    fire = make_combatant("Fire", Team.ENEMY, types=(E.FIRE,))
    battle = make_battle([ally, make_combatant("Partner")], [grass, fire], size=2)
    choice = GreedyDecisions().choose_move(ally, battle)
    assert choice.move.name == "Water Gun"
    assert choice.target is fire


def test_greedy_ai_falls_back_when_nothing_scores(make_combatant, make_battle):
    ally = make_combatant("Ally", moves=("Growl", "Swords Dance"))
    battle = make_battle([ally], [make_combatant("Foe", Team.ENEMY)])
    choice = GreedyDecisions().choose_move(ally, battle)
    assert choice.move.name == "Growl"


def test_greedy_ai_sends_in_the_healthiest(make_combatant, make_battle):
    lead = make_combatant("Lead")
    hurt = make_combatant("Hurt", current=20)
    fresh = make_combatant("Fresh", health=50)
    battle = make_battle([lead, hurt, fresh], [make_combatant("Foe", Team.ENEMY)])
    assert GreedyDecisions().choose_switch(lead, battle) is fresh
    assert RandomDecisions().choose_switch(lead, battle) is hurt


def test_ai_registry():
    assert set(AI_PROVIDERS) == {"random", "greedy"}
