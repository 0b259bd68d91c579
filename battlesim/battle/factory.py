"""Factory helpers for constructing Combatant instances from creature templates.

Shared across the battle service, the CLI and tests.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple, TYPE_CHECKING

from battlesim.core.types import ElementType
from .abilities import Ability
from .models import Combatant, Gender, Team
from .moves import MoveInstance

if TYPE_CHECKING:  # pragma: no cover
    from battlesim.data.catalog import Catalog

MIN_LEVEL = 1
MAX_LEVEL = 100
STAT_KEYS = ("health", "attack", "defense", "sp_attack", "sp_defense", "speed")


@dataclass(frozen=True)
class CreatureTemplate:
    name: str
    types: Tuple[ElementType, ...]
    base_stats: Mapping[str, int]
    ability: str
    moves: Tuple[str, ...]
    gender: Gender = Gender.NONE
    description: str = field(default="", compare=False)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "CreatureTemplate":
        return cls(
            name=raw["name"],
            types=tuple(ElementType.parse(t) for t in raw["types"]),
            base_stats={k: int(raw["base_stats"][k]) for k in STAT_KEYS},
            ability=raw.get("ability", "No Ability"),
            moves=tuple(raw.get("moves", [])),
            gender=Gender[raw.get("gender", "none").upper()],
            description=raw.get("description", ""),
        )


def clamp_level(level: int) -> int:
    return max(MIN_LEVEL, min(MAX_LEVEL, int(level)))


def derive_stats(base: Mapping[str, int], level: int) -> Dict[str, int]:
    stats = {}
    for k, v in base.items():
        if k == "health":
            stats[k] = int(((2*v)*level)/100 + level + 10)
        else:
            stats[k] = int(((2*v)*level)/100 + 5)
    return stats


def combatant_from_template(template: CreatureTemplate, level: int, team: Team, catalog: "Catalog",
                            nickname: str | None = None) -> Combatant:
    """Level-scaled combatant with its own copies of the template's moves and ability."""
    level = clamp_level(level)
    stats = derive_stats(template.base_stats, level)
    return Combatant(
        name=nickname or template.name,
        level=level,
        team=team,
        max_health=stats["health"],
        attack=stats["attack"],
        defense=stats["defense"],
        sp_attack=stats["sp_attack"],
        sp_defense=stats["sp_defense"],
        speed=stats["speed"],
        types=template.types,
        ability=Ability.of(catalog.ability(template.ability)),
        moves=[MoveInstance.of(catalog.move(m)) for m in template.moves],
        gender=template.gender,
    )


def combatant_from_name(name: str, level: int, team: Team, catalog: "Catalog") -> Combatant:
    return combatant_from_template(catalog.creature(name), level, team, catalog)


__all__ = ["CreatureTemplate", "derive_stats", "clamp_level", "combatant_from_template", "combatant_from_name"]
