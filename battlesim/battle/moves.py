"""Moves: immutable templates, per-combatant instances and behaviour kinds.

A move's behaviour is a list of tagged variants (``damage``, ``inflict``,
``field``, ``stage``, ``recoil``, ``crash``). Each variant carries only its
own fields and implements whichever hooks it needs:

  on_use(move, user, targets, battle)   once per use, before hit checks
  execute(strike, battle)               per target the move connects with
  on_miss(strike, battle)               per target the move misses

Hooks a variant does not define fall through to the no-op base.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Type, TYPE_CHECKING
import math

from battlesim.core.errors import DataLoadError
from battlesim.core.types import ElementType
from .formulas import compute_damage
from .models import Category, Combatant, Stat, Status, Targeting

if TYPE_CHECKING:  # pragma: no cover
    from .engine import Battle


@dataclass
class Strike:
    """One use of a move against one target."""
    move: "MoveInstance"
    user: Combatant
    target: Combatant
    target_count: int = 1
    damage: int = 0


class MoveBehavior:
    kind: ClassVar[str] = ""

    def on_use(self, move: "MoveInstance", user: Combatant, targets: List[Combatant], battle: "Battle") -> None:
        pass

    def execute(self, strike: Strike, battle: "Battle") -> None:
        pass

    def on_miss(self, strike: Strike, battle: "Battle") -> None:
        pass


@dataclass(frozen=True)
class Damage(MoveBehavior):
    kind: ClassVar[str] = "damage"
    crit_bonus: int = 0

    def execute(self, strike: Strike, battle: "Battle") -> None:
        roll = compute_damage(strike.move, strike.user, strike.target, battle.weather,
                              strike.target_count, battle.rng, crit_bonus=self.crit_bonus)
        if roll.weather > 1:
            battle.msg(f"{strike.move.name} is empowered by the weather.")
        elif roll.weather < 1:
            battle.msg(f"{strike.move.name} is weakened by the weather.")
        if roll.critical:
            battle.msg("A critical hit!")
        if roll.effectiveness == 0:
            battle.msg(f"It doesn't affect {strike.target.label}...")
        elif roll.effectiveness > 1:
            battle.msg("It's super effective!")
        elif roll.effectiveness < 1:
            battle.msg("It's not very effective...")
        battle.apply_damage(strike.target, roll.damage, cause="move", meta={"move": strike.move.name})
        strike.damage += roll.damage


@dataclass(frozen=True)
class Inflict(MoveBehavior):
    kind: ClassVar[str] = "inflict"
    effect: str
    chance: int = 100
    requires_clear_status: bool = True

    def execute(self, strike: Strike, battle: "Battle") -> None:
        target = strike.target
        is_status_move = strike.move.category is Category.STATUS
        if target.current_health <= 0:
            return
        if self.chance < 100 and battle.rng.randint(1, 100) > self.chance:
            return
        template = battle.catalog.effect(self.effect)
        if any(t in template.immune_types for t in target.types):
            if is_status_move:
                battle.msg(f"It doesn't affect {target.label}...")
            return
        if self.requires_clear_status and target.status is not Status.NONE:
            if is_status_move:
                battle.msg("But it failed!")
            return
        if battle.effects.exists(template.name, strike.user, target):
            if is_status_move:
                battle.msg("But it failed!")
            return
        battle.effects.add(template, owner=strike.user, target=target)


@dataclass(frozen=True)
class Field(MoveBehavior):
    """Creates an effect owned by the user, independent of whom the move hits."""
    kind: ClassVar[str] = "field"
    effect: str

    def on_use(self, move: "MoveInstance", user: Combatant, targets: List[Combatant], battle: "Battle") -> None:
        template = battle.catalog.effect(self.effect)
        if battle.effects.exists(template.name, user, None):
            battle.msg("But it failed!")
            return
        battle.effects.add(template, owner=user)


@dataclass(frozen=True)
class StageChange(MoveBehavior):
    kind: ClassVar[str] = "stage"
    stat: str
    change: int
    chance: int = 100
    on_user: bool = False

    def execute(self, strike: Strike, battle: "Battle") -> None:
        subject = strike.user if self.on_user else strike.target
        if subject.current_health <= 0:
            return
        if self.chance < 100 and battle.rng.randint(1, 100) > self.chance:
            return
        battle.change_stage(subject, Stat(self.stat), self.change)


@dataclass(frozen=True)
class Recoil(MoveBehavior):
    kind: ClassVar[str] = "recoil"
    fraction: float

    def execute(self, strike: Strike, battle: "Battle") -> None:
        if strike.damage <= 0:
            return
        amount = max(1, math.floor(strike.damage * self.fraction))
        battle.msg(f"{strike.user.label} received some recoil damage.")
        battle.apply_damage(strike.user, amount, cause="recoil", meta={"move": strike.move.name})


@dataclass(frozen=True)
class Crash(MoveBehavior):
    kind: ClassVar[str] = "crash"
    fraction: float

    def on_miss(self, strike: Strike, battle: "Battle") -> None:
        amount = max(1, math.floor(strike.user.max_health * self.fraction))
        battle.msg(f"{strike.user.label} kept going and crashed!")
        battle.apply_damage(strike.user, amount, cause="crash", meta={"move": strike.move.name})


MOVE_BEHAVIORS: Dict[str, Type[MoveBehavior]] = {
    cls.kind: cls for cls in (Damage, Inflict, Field, StageChange, Recoil, Crash)
}


def parse_move_behavior(raw: Mapping[str, Any]) -> MoveBehavior:
    params = dict(raw)
    kind = params.pop("kind", None)
    cls = MOVE_BEHAVIORS.get(kind)
    if cls is None:
        raise DataLoadError("moves", f"unknown move behaviour kind {kind!r}")
    return cls(**params)


@dataclass(frozen=True)
class MoveTemplate:
    name: str
    type: Optional[ElementType]
    category: Category
    power: int = 0
    accuracy: Optional[int] = 100  # None always hits
    points: Optional[int] = 10     # None means unbounded uses
    targeting: Targeting = Targeting.SINGLE
    spread: bool = False
    behaviors: Tuple[MoveBehavior, ...] = ()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "MoveTemplate":
        return cls(
            name=raw["name"],
            type=ElementType.parse(raw.get("type")),
            category=Category(raw["category"]),
            power=int(raw.get("power", 0) or 0),
            accuracy=raw.get("accuracy", 100),
            points=raw.get("points", 10),
            targeting=Targeting(raw.get("targeting", "single")),
            spread=bool(raw.get("spread", False)),
            behaviors=tuple(parse_move_behavior(b) for b in raw.get("behaviors", [])),
        )


@dataclass(eq=False)
class MoveInstance:
    """A combatant's own copy of a move; remaining uses are per copy."""
    template: MoveTemplate
    points: Optional[int] = field(default=None)
    max_points: Optional[int] = field(default=None)

    def __post_init__(self):
        if self.max_points is None:
            self.max_points = self.template.points
        if self.points is None:
            self.points = self.max_points

    @classmethod
    def of(cls, template: MoveTemplate) -> "MoveInstance":
        return cls(template)

    name = property(lambda self: self.template.name)
    type = property(lambda self: self.template.type)
    category = property(lambda self: self.template.category)
    power = property(lambda self: self.template.power)
    accuracy = property(lambda self: self.template.accuracy)
    targeting = property(lambda self: self.template.targeting)
    spread = property(lambda self: self.template.spread)

    def has_points(self) -> bool:
        return self.points is None or self.points > 0

    def spend(self):
        if self.points is not None:
            self.points -= 1

    def clamp_points(self):
        if self.points is not None:
            upper = self.max_points if self.max_points is not None else self.points
            self.points = max(0, min(self.points, upper))

    def on_use(self, user: Combatant, targets: List[Combatant], battle: "Battle"):
        for b in self.template.behaviors:
            b.on_use(self, user, targets, battle)

    def execute(self, strike: Strike, battle: "Battle"):
        for b in self.template.behaviors:
            b.execute(strike, battle)

    def on_miss(self, strike: Strike, battle: "Battle"):
        for b in self.template.behaviors:
            b.on_miss(strike, battle)


__all__ = [
    "MoveTemplate", "MoveInstance", "MoveBehavior", "Strike",
    "Damage", "Inflict", "Field", "StageChange", "Recoil", "Crash",
    "MOVE_BEHAVIORS", "parse_move_behavior",
]
