"""Effects: timed or triggered modifiers living in the battle's ledger.

Templates are immutable catalog entries; instances are what the ledger holds.
Behaviour kinds implement any of ``on_creation``, ``execute`` and
``on_deletion`` (each called with ``(effect, target, battle)``); a hook a
kind does not define is a no-op.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, FrozenSet, Mapping, Optional, Tuple, Type, Union, TYPE_CHECKING
import math
import random

from battlesim.core.errors import DataLoadError
from battlesim.core.types import ElementType
from .models import Combatant, Status, Targeting, Trigger, Weather
from .moves import MoveInstance, Strike

if TYPE_CHECKING:  # pragma: no cover
    from .engine import Battle

Duration = Union[None, int, Tuple[int, int]]

CONFUSION_HIT = "Confusion Hit"


class EffectBehavior:
    kind: ClassVar[str] = ""

    def on_creation(self, effect: "EffectInstance", target: Combatant, battle: "Battle") -> None:
        pass

    def execute(self, effect: "EffectInstance", target: Combatant, battle: "Battle") -> None:
        pass

    def on_deletion(self, effect: "EffectInstance", target: Combatant, battle: "Battle") -> None:
        pass


def _hold_attack(effect: "EffectInstance", target: Combatant):
    target.can_attack = False
    effect.holding_attack = True


@dataclass(frozen=True)
class Affliction(EffectBehavior):
    """A major status with optional residual damage each tick."""
    kind: ClassVar[str] = "affliction"
    status: str
    residual: float = 0.0
    escalating: bool = False

    def on_creation(self, effect, target, battle):
        target.status = Status(self.status)

    def execute(self, effect, target, battle):
        if not self.residual:
            return
        ticks = effect.turn if (self.escalating and effect.turn) else 1
        amount = max(1, math.floor(target.max_health * self.residual * ticks))
        battle.apply_damage(target, amount, cause="status", meta={"status": self.status})

    def on_deletion(self, effect, target, battle):
        if target.status is Status(self.status):
            target.status = Status.NONE


@dataclass(frozen=True)
class Immobilize(EffectBehavior):
    """Freeze and sleep: no acting until the effect runs out."""
    kind: ClassVar[str] = "immobilize"
    status: str

    def on_creation(self, effect, target, battle):
        target.status = Status(self.status)
        target.can_attack = False

    def execute(self, effect, target, battle):
        target.can_attack = False

    def on_deletion(self, effect, target, battle):
        if target.status is Status(self.status):
            target.status = Status.NONE
        target.release_attack()


@dataclass(frozen=True)
class Paralysis(EffectBehavior):
    kind: ClassVar[str] = "paralysis"
    chance: float = 0.25

    def on_creation(self, effect, target, battle):
        target.status = Status.PARALYZED

    def execute(self, effect, target, battle):
        if battle.rng.random() < self.chance:
            battle.msg(f"{target.label} is paralyzed! It can't move!")
            _hold_attack(effect, target)

    def on_deletion(self, effect, target, battle):
        if target.status is Status.PARALYZED:
            target.status = Status.NONE


@dataclass(frozen=True)
class Confusion(EffectBehavior):
    kind: ClassVar[str] = "confusion"
    chance: float = 1 / 3

    def execute(self, effect, target, battle):
        if battle.rng.random() >= self.chance:
            return
        battle.msg("It hurt itself in its confusion!")
        move = MoveInstance.of(battle.catalog.move(CONFUSION_HIT))
        move.execute(Strike(move, target, target), battle)
        _hold_attack(effect, target)


@dataclass(frozen=True)
class DestinyBond(EffectBehavior):
    kind: ClassVar[str] = "destiny-bond"

    def on_deletion(self, effect, target, battle):
        owner = effect.owner
        if owner is None or owner.current_health > 0 or owner.last_hit_by is None:
            return
        attacker = owner.last_hit_by.attacker
        if attacker.team is owner.team or attacker.current_health <= 0:
            return
        battle.msg(f"{owner.label} took {attacker.label} down with it!")
        battle.apply_damage(attacker, attacker.current_health, cause="destiny-bond")


@dataclass(frozen=True)
class WeatherEffect(EffectBehavior):
    """Sets the battle weather; chip damage skips the template's immune types."""
    kind: ClassVar[str] = "weather"
    weather: str
    chip: float = 0.0
    chip_message: str = "{target} is buffeted by the weather!"

    def on_creation(self, effect, target, battle):
        for other in battle.effects.find_kind(WeatherEffect):
            if other is not effect:
                battle.effects.discard(other)
        battle.weather = Weather[self.weather.upper()]

    def execute(self, effect, target, battle):
        if not self.chip:
            return
        for c in battle.active_combatants():
            if c.current_health <= 0 or any(t in effect.template.immune_types for t in c.types):
                continue
            battle.msg(self.chip_message.format(target=c.label))
            battle.apply_damage(c, max(1, math.floor(c.max_health * self.chip)), cause="weather")

    def on_deletion(self, effect, target, battle):
        if battle.weather is Weather[self.weather.upper()]:
            battle.weather = Weather.NONE


@dataclass(frozen=True)
class Hazard(EffectBehavior):
    kind: ClassVar[str] = "hazard"
    fraction: float

    def execute(self, effect, target, battle):
        if any(t in effect.template.immune_types for t in target.types):
            return
        battle.msg(f"{target.label} is hurt by {effect.name}!")
        battle.apply_damage(target, max(1, math.floor(target.max_health * self.fraction)), cause="hazard")


EFFECT_BEHAVIORS: Dict[str, Type[EffectBehavior]] = {
    cls.kind: cls for cls in (Affliction, Immobilize, Paralysis, Confusion, DestinyBond, WeatherEffect, Hazard)
}


def parse_effect_behavior(raw: Mapping[str, Any]) -> EffectBehavior:
    params = dict(raw)
    kind = params.pop("kind", None)
    cls = EFFECT_BEHAVIORS.get(kind)
    if cls is None:
        raise DataLoadError("effects", f"unknown effect behaviour kind {kind!r}")
    return cls(**params)


@dataclass(frozen=True)
class EffectTemplate:
    name: str
    trigger: Trigger
    behavior: EffectBehavior
    targeting: Targeting = Targeting.SINGLE
    duration: Duration = None
    end_on_switch: bool = False
    counter: bool = False
    immune_types: FrozenSet[ElementType] = frozenset()
    # announce (once per creation), creation/execute/deletion (per target);
    # formatted with {target} and {owner}
    messages: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "EffectTemplate":
        duration = raw.get("duration")
        if isinstance(duration, list):
            duration = (int(duration[0]), int(duration[1]))
        return cls(
            name=raw["name"],
            trigger=Trigger(raw["trigger"]),
            behavior=parse_effect_behavior(raw["behavior"]),
            targeting=Targeting(raw.get("targeting", "single")),
            duration=duration,
            end_on_switch=bool(raw.get("end_on_switch", False)),
            counter=bool(raw.get("counter", False)),
            immune_types=frozenset(ElementType.parse(t) for t in raw.get("immune_types", [])),
            messages=dict(raw.get("messages", {})),
        )

    def roll_duration(self, rng: random.Random) -> Optional[int]:
        if isinstance(self.duration, tuple):
            lo, hi = self.duration
            return rng.randint(lo, hi)
        return self.duration


@dataclass(eq=False)
class EffectInstance:
    template: EffectTemplate
    owner: Optional[Combatant] = None
    target: Optional[Combatant] = None
    duration: Optional[int] = None  # None: never runs out
    turn: Optional[int] = None
    holding_attack: bool = False

    @classmethod
    def create(cls, template: EffectTemplate, owner: Optional[Combatant], target: Optional[Combatant],
               rng: random.Random) -> "EffectInstance":
        return cls(template, owner, target, duration=template.roll_duration(rng),
                   turn=1 if template.counter else None)

    @property
    def name(self) -> str:
        return self.template.name

    @property
    def trigger(self) -> Trigger:
        return self.template.trigger

    def expired(self) -> bool:
        return self.duration is not None and self.duration <= 0

    def attached_to(self, combatant: Combatant) -> bool:
        if self.template.targeting is Targeting.SELF:
            return self.owner is combatant
        return self.target is combatant

    def say(self, slot: str, target: Optional[Combatant], battle: "Battle"):
        text = self.template.messages.get(slot)
        if text:
            battle.msg(text.format(
                target=target.label if target else "",
                owner=self.owner.label if self.owner else "",
            ))

    def on_creation(self, target: Combatant, battle: "Battle"):
        self.say("creation", target, battle)
        self.template.behavior.on_creation(self, target, battle)

    def execute(self, target: Combatant, battle: "Battle"):
        self.say("execute", target, battle)
        self.template.behavior.execute(self, target, battle)

    def on_deletion(self, target: Combatant, battle: "Battle"):
        self.say("deletion", target, battle)
        self.template.behavior.on_deletion(self, target, battle)


__all__ = [
    "EffectTemplate", "EffectInstance", "EffectBehavior",
    "Affliction", "Immobilize", "Paralysis", "Confusion", "DestinyBond", "WeatherEffect", "Hazard",
    "EFFECT_BEHAVIORS", "parse_effect_behavior", "CONFUSION_HIT",
]
