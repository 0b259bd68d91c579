"""Abilities: one fixed behaviour per combatant for the whole battle.

Hooks (each ``(ability, combatant, battle)``): on_switch_in, on_turn_start,
on_turn_end, on_switch_out, on_death. Undefined hooks are no-ops.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Mapping, Optional, Type, TYPE_CHECKING
import math

from battlesim.core.errors import DataLoadError
from .models import Combatant, Stat

if TYPE_CHECKING:  # pragma: no cover
    from .engine import Battle


class AbilityBehavior:
    kind: ClassVar[str] = ""

    def on_switch_in(self, ability: "Ability", combatant: Combatant, battle: "Battle") -> None:
        pass

    def on_turn_start(self, ability: "Ability", combatant: Combatant, battle: "Battle") -> None:
        pass

    def on_turn_end(self, ability: "Ability", combatant: Combatant, battle: "Battle") -> None:
        pass

    def on_switch_out(self, ability: "Ability", combatant: Combatant, battle: "Battle") -> None:
        pass

    def on_death(self, ability: "Ability", combatant: Combatant, battle: "Battle") -> None:
        pass


@dataclass(frozen=True)
class NoAbility(AbilityBehavior):
    kind: ClassVar[str] = "none"


@dataclass(frozen=True)
class StageOnSwitchIn(AbilityBehavior):
    """Intimidate and friends: shift a stage of every active foe."""
    kind: ClassVar[str] = "stage-on-switch-in"
    stat: str
    change: int

    def on_switch_in(self, ability, combatant, battle):
        foes = [f for f in battle.foes_of(combatant) if f.current_health > 0]
        if not foes:
            return
        battle.msg(f"{combatant.label}'s {ability.name}!")
        for foe in foes:
            battle.change_stage(foe, Stat(self.stat), self.change)


@dataclass(frozen=True)
class StageOnTurnEnd(AbilityBehavior):
    kind: ClassVar[str] = "stage-on-turn-end"
    stat: str
    change: int

    def on_turn_end(self, ability, combatant, battle):
        battle.change_stage(combatant, Stat(self.stat), self.change)


@dataclass(frozen=True)
class SlowStart(AbilityBehavior):
    kind: ClassVar[str] = "slow-start"
    turns: int = 5
    penalty: int = -1

    def on_switch_in(self, ability, combatant, battle):
        battle.msg(f"{combatant.label} can't get it going!")
        combatant.stages.shift(Stat.ATTACK, self.penalty)
        combatant.stages.shift(Stat.SPEED, self.penalty)

    def on_turn_end(self, ability, combatant, battle):
        if ability.turn == self.turns:
            battle.msg(f"{combatant.label} finally got its act together!")
            combatant.stages.shift(Stat.ATTACK, -self.penalty)
            combatant.stages.shift(Stat.SPEED, -self.penalty)


@dataclass(frozen=True)
class Aftermath(AbilityBehavior):
    kind: ClassVar[str] = "aftermath"
    fraction: float = 0.25

    def on_death(self, ability, combatant, battle):
        hit = combatant.last_hit_by
        if hit is None or hit.attacker.team is combatant.team or hit.attacker.current_health <= 0:
            return
        attacker = hit.attacker
        battle.msg(f"{attacker.label} was caught in the aftermath!")
        battle.apply_damage(attacker, max(1, math.floor(attacker.max_health * self.fraction)),
                            cause="ability", meta={"ability": ability.name})


ABILITY_BEHAVIORS: Dict[str, Type[AbilityBehavior]] = {
    cls.kind: cls for cls in (NoAbility, StageOnSwitchIn, StageOnTurnEnd, SlowStart, Aftermath)
}


def parse_ability_behavior(raw: Mapping[str, Any]) -> AbilityBehavior:
    params = dict(raw)
    kind = params.pop("kind", None)
    cls = ABILITY_BEHAVIORS.get(kind)
    if cls is None:
        raise DataLoadError("abilities", f"unknown ability behaviour kind {kind!r}")
    return cls(**params)


@dataclass(frozen=True)
class AbilityTemplate:
    name: str
    behavior: AbilityBehavior = NoAbility()
    counter: bool = False
    description: str = ""

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "AbilityTemplate":
        return cls(
            name=raw["name"],
            behavior=parse_ability_behavior(raw.get("behavior", {"kind": "none"})),
            counter=bool(raw.get("counter", False)),
            description=raw.get("description", ""),
        )


@dataclass(eq=False)
class Ability:
    """A combatant's own copy of an ability, with its turn counter."""
    template: AbilityTemplate
    turn: Optional[int] = None

    @classmethod
    def of(cls, template: AbilityTemplate) -> "Ability":
        return cls(template, turn=1 if template.counter else None)

    @property
    def name(self) -> str:
        return self.template.name

    def reset_counter(self):
        if self.template.counter:
            self.turn = 1

    def tick(self):
        if self.turn is not None:
            self.turn += 1

    def on_switch_in(self, combatant: Combatant, battle: "Battle"):
        self.template.behavior.on_switch_in(self, combatant, battle)

    def on_turn_start(self, combatant: Combatant, battle: "Battle"):
        self.template.behavior.on_turn_start(self, combatant, battle)

    def on_turn_end(self, combatant: Combatant, battle: "Battle"):
        self.template.behavior.on_turn_end(self, combatant, battle)

    def on_switch_out(self, combatant: Combatant, battle: "Battle"):
        self.template.behavior.on_switch_out(self, combatant, battle)

    def on_death(self, combatant: Combatant, battle: "Battle"):
        self.template.behavior.on_death(self, combatant, battle)


__all__ = [
    "Ability", "AbilityTemplate", "AbilityBehavior",
    "NoAbility", "StageOnSwitchIn", "StageOnTurnEnd", "SlowStart", "Aftermath",
    "ABILITY_BEHAVIORS", "parse_ability_behavior",
]
