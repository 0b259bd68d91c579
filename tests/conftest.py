"""Shared fixtures: fixed-value rngs, combatant builders and scripted deciders."""
from __future__ import annotations
from typing import List, Optional, Sequence

import pytest

from battlesim.battle.abilities import Ability
from battlesim.battle.decisions import Action, MoveChoice
from battlesim.battle.engine import Battle
from battlesim.battle.models import Combatant, Team
from battlesim.battle.moves import MoveInstance
from battlesim.core.types import ElementType
from battlesim.data.catalog import load_catalog


class DummyRng:
    """random() returns a fixed value (or the next of a sequence, then the fixed one).

    0.5 is the neutral default: moves with accuracy >= 50 hit, nothing crits,
    paralysis and confusion never take the turn. uniform() gives the top of the
    range, randint() the bottom, choice() the first element.
    """

    def __init__(self, value: float = 0.5, sequence: Sequence[float] = ()):
        self.value = value
        self.sequence: List[float] = list(sequence)
        self.draws = 0

    def random(self):
        self.draws += 1
        if self.sequence:
            return self.sequence.pop(0)
        return self.value

    def uniform(self, a, b):
        return b

    def randint(self, a, b):
        return a

    def choice(self, seq):
        return seq[0]


class Scripted:
    """Decision provider that follows a fixed plan.

    ``actions`` is consumed one per prompt (FIGHT once it runs out); ``move``
    names the move to use when usable; ``target`` is used when it is a legal
    target; ``switch`` is sent in when it is a candidate.
    """

    def __init__(self, move: Optional[str] = None, target: Optional[Combatant] = None,
                 actions: Sequence[Action] = (), switch: Optional[Combatant] = None):
        self.move = move
        self.target = target
        self.actions = list(actions)
        self.switch = switch
        self.prompts = 0

    def choose_action(self, combatant, battle):
        self.prompts += 1
        return self.actions.pop(0) if self.actions else Action.FIGHT

    def choose_move(self, combatant, battle):
        moves = battle.usable_moves(combatant)
        move = next((m for m in moves if m.name == self.move), moves[0])
        targets = battle.target_candidates(combatant, move)
        if any(self.target is t for t in targets):
            return MoveChoice(move, self.target)
        return MoveChoice(move, targets[0] if targets else None)

    def choose_switch(self, combatant, battle):
        candidates = battle.switch_candidates(combatant)
        if any(self.switch is c for c in candidates):
            return self.switch
        return candidates[0] if candidates else None


@pytest.fixture
def catalog():
    return load_catalog()


@pytest.fixture
def make_combatant(catalog):
    def _make(name: str = "Testmon", team: Team = Team.ALLY, *, health: int = 100, current: Optional[int] = None,
              attack: int = 50, defense: int = 50, sp_attack: int = 50, sp_defense: int = 50, speed: int = 50,
              types=(ElementType.NORMAL,), moves: Sequence[str] = ("Tackle",), ability: str = "No Ability",
              level: int = 50) -> Combatant:
        return Combatant(
            name=name, level=level, team=team, max_health=health, current_health=current,
            attack=attack, defense=defense, sp_attack=sp_attack, sp_defense=sp_defense, speed=speed,
            types=tuple(types), ability=Ability.of(catalog.ability(ability)),
            moves=[MoveInstance.of(catalog.move(m)) for m in moves],
        )
    return _make


@pytest.fixture
def make_battle(catalog):
    """Build a battle with a captured message log at ``battle.log``."""
    def _make(allies, enemies, *, ally=None, enemy=None, rng=None, size: int = 1) -> Battle:
        log: List[str] = []
        battle = Battle(allies, enemies, catalog=catalog, battle_size=size, rng=rng or DummyRng(),
                        deciders={Team.ALLY: ally or Scripted(), Team.ENEMY: enemy or Scripted()},
                        message_cb=log.append)
        battle.log = log  # type: ignore[attr-defined]
        return battle
    return _make


@pytest.fixture
def dummy_rng():
    return DummyRng


@pytest.fixture
def scripted():
    return Scripted
