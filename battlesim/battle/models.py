"""Battle data model: combatants, stat stages, rosters and the shared enums.

A :class:`Combatant` is created once before battle and mutated in place for
the rest of it. Fainted combatants are never dropped: they stay in their
side's lists as plain records.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, TYPE_CHECKING

from battlesim.core.types import ElementType

if TYPE_CHECKING:  # pragma: no cover
    from .abilities import Ability
    from .moves import MoveInstance

STAGE_MIN = -6
STAGE_MAX = 6


class Team(Enum):
    ALLY = "ally"
    ENEMY = "enemy"

    def opponent(self) -> "Team":
        return Team.ENEMY if self is Team.ALLY else Team.ALLY


class Gender(Enum):
    MALE = "♂"
    FEMALE = "♀"
    NONE = ""


class Status(Enum):
    NONE = ""
    BURNED = "BRN"
    POISONED = "PSN"
    FROZEN = "FRZ"
    PARALYZED = "PAR"
    ASLEEP = "SLP"
    TOXIC = "TOX"
    FAINTED = "FNT"


# Statuses that keep a combatant from acting on their own
IMMOBILIZING = frozenset({Status.FROZEN, Status.ASLEEP})


class Category(Enum):
    PHYSICAL = "physical"
    SPECIAL = "special"
    STATUS = "status"


class Targeting(Enum):
    SELF = "self"
    SINGLE = "single"
    ALLIES = "allies"
    FOES = "foes"
    ALL = "all"


class Trigger(Enum):
    START_OF_TURN = "start-of-turn"
    END_OF_TURN = "end-of-turn"
    ON_DEATH = "on-death"
    ON_SWITCH_IN = "on-switch-in"
    ON_SWITCH_OUT = "on-switch-out"


class Liveness(Enum):
    ACTIVE = "active"
    JUST_FAINTED = "just-fainted"
    REMOVED = "removed"


class Weather(Enum):
    NONE = ""
    RAIN = "raining"
    SUNNY = "very sunny"
    SANDSTORM = "a dry sandstorm"
    HAIL = "hailing"


class Stat(Enum):
    ATTACK = "attack"
    DEFENSE = "defense"
    SP_ATTACK = "sp_attack"
    SP_DEFENSE = "sp_defense"
    SPEED = "speed"
    ACCURACY = "accuracy"
    EVASION = "evasion"
    CRITICAL = "critical"


STAT_LABELS = {
    Stat.ATTACK: "Attack",
    Stat.DEFENSE: "Defense",
    Stat.SP_ATTACK: "Special Attack",
    Stat.SP_DEFENSE: "Special Defense",
    Stat.SPEED: "Speed",
    Stat.ACCURACY: "Accuracy",
    Stat.EVASION: "Evasion",
    Stat.CRITICAL: "critical-hit ratio",
}


def clamp_stage(stage: int) -> int:
    return max(STAGE_MIN, min(STAGE_MAX, int(stage)))


@dataclass
class Stages:
    attack: int = 0
    defense: int = 0
    sp_attack: int = 0
    sp_defense: int = 0
    speed: int = 0
    accuracy: int = 0
    evasion: int = 0
    # Unclamped; read as tiers 0/1/2/3+
    critical: int = 0

    def get(self, stat: Stat) -> int:
        return getattr(self, stat.value)

    def shift(self, stat: Stat, delta: int) -> int:
        """Apply ``delta`` and return the change that actually took place."""
        cur = self.get(stat)
        new = cur + delta if stat is Stat.CRITICAL else clamp_stage(cur + delta)
        setattr(self, stat.value, new)
        return new - cur

    def reset(self):
        for stat in Stat:
            setattr(self, stat.value, 0)


@dataclass(frozen=True)
class HitRecord:
    move: "MoveInstance"
    attacker: "Combatant"


@dataclass(eq=False)
class Combatant:
    name: str
    level: int
    team: Team
    max_health: int
    attack: int
    defense: int
    sp_attack: int
    sp_defense: int
    speed: int
    types: Tuple[ElementType, ...]
    ability: "Ability"
    moves: List["MoveInstance"] = field(default_factory=list)
    gender: Gender = Gender.NONE
    current_health: Optional[int] = None  # lazily initialized to max health
    stages: Stages = field(default_factory=Stages)
    status: Status = Status.NONE
    can_attack: bool = True
    last_hit_by: Optional[HitRecord] = None

    def __post_init__(self):
        if self.max_health < 1:
            raise ValueError(f"{self.name}: max health must be positive")
        if not 1 <= len(self.types) <= 2:
            raise ValueError(f"{self.name}: a combatant carries one or two types")
        if self.current_health is None:
            self.current_health = self.max_health
        self.clamp_health()

    @property
    def label(self) -> str:
        return f"{self.name}{self.gender.value}"

    @property
    def primary_type(self) -> ElementType:
        return self.types[0]

    @property
    def secondary_type(self) -> Optional[ElementType]:
        return self.types[1] if len(self.types) > 1 else None

    def is_fainted(self) -> bool:
        return self.current_health <= 0

    def clamp_health(self):
        self.current_health = int(max(0, min(self.current_health, self.max_health)))

    def base_stat(self, stat: Stat) -> int:
        return getattr(self, stat.value)

    def release_attack(self):
        """Give the turn back unless an immobilizing status still holds it."""
        self.can_attack = self.status not in IMMOBILIZING

    def reset_volatile(self):
        self.stages.reset()
        self.release_attack()

    def usable_moves(self) -> List["MoveInstance"]:
        return [m for m in self.moves if m.has_points()]


@dataclass
class Side:
    """One team's roster: the combatants on the field and the ones in reserve."""
    team: Team
    active: List[Combatant]
    reserve: List[Combatant]

    def members(self) -> List[Combatant]:
        return [*self.active, *self.reserve]

    def all_fainted(self) -> bool:
        return all(c.current_health <= 0 for c in self.members())

    def swap(self, out: Combatant, incoming: Combatant):
        # positional swap keeps roster ordering stable
        a = self.active.index(out)
        r = self.reserve.index(incoming)
        self.active[a] = incoming
        self.reserve[r] = out


__all__ = [
    "Team", "Gender", "Status", "Category", "Targeting", "Trigger", "Liveness",
    "Weather", "Stat", "STAT_LABELS", "IMMOBILIZING", "Stages", "HitRecord",
    "Combatant", "Side", "clamp_stage", "STAGE_MIN", "STAGE_MAX",
]
