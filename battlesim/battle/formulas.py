"""Pure battle formulas: stage multipliers, accuracy, critical hits, damage.

Every random draw comes from the ``rng`` argument so callers (and tests) can
decide what the dice say.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional, TYPE_CHECKING
import math
import random

from battlesim.core.types import ElementType
from .models import Category, Combatant, Stat, Status, Weather, clamp_stage

if TYPE_CHECKING:  # pragma: no cover
    from .moves import MoveInstance

_E = ElementType

# Row is the attacker, column the defender; missing pairs are neutral.
_TYPE_CHART: Dict[ElementType, Dict[ElementType, float]] = {
    _E.NORMAL:   {},
    _E.GRASS:    {_E.GRASS: 0.5, _E.WATER: 2.0, _E.FIRE: 0.5, _E.GROUND: 2.0, _E.FLYING: 0.5},
    _E.WATER:    {_E.GRASS: 0.5, _E.WATER: 0.5, _E.FIRE: 2.0, _E.GROUND: 2.0},
    _E.FIRE:     {_E.GRASS: 2.0, _E.WATER: 0.5, _E.FIRE: 0.5, _E.ICE: 2.0},
    _E.ELECTRIC: {_E.GRASS: 0.5, _E.WATER: 2.0, _E.ELECTRIC: 0.5, _E.GROUND: 0.0, _E.FLYING: 2.0},
    _E.GROUND:   {_E.GRASS: 0.5, _E.FIRE: 2.0, _E.ELECTRIC: 2.0, _E.FLYING: 0.0},
    _E.FLYING:   {_E.GRASS: 2.0, _E.ELECTRIC: 0.5},
    _E.ICE:      {_E.GRASS: 2.0, _E.WATER: 0.5, _E.GROUND: 2.0, _E.FLYING: 2.0, _E.ICE: 0.5},
}

# Probability of a critical hit per crit stage; stage 3 and above always crit.
_CRIT_TABLE = {0: 1/24, 1: 1/8, 2: 1/2}

_BOOSTING_WEATHER = {_E.FIRE: Weather.SUNNY, _E.WATER: Weather.RAIN}
_OPPOSING_WEATHER = {_E.FIRE: Weather.RAIN, _E.WATER: Weather.SUNNY}

SPREAD_PENALTY = 0.75
CRIT_MULTIPLIER = 1.5
STAB_MULTIPLIER = 1.5
BURN_PENALTY = 0.5

# ---------------------------------------------------------------------------
# Stage helpers
# ---------------------------------------------------------------------------

def _stage_ratio(stage: int, base: int) -> float:
    s = clamp_stage(stage)
    num = base + max(s, 0)
    den = base + max(-s, 0)
    return num / den

def effective_stat(base: float, stage: int) -> float:
    """Base stat scaled by its stage, kept within [1, 999]."""
    return max(1.0, min(base * _stage_ratio(stage, 2), 999.0))

def effective_accuracy_multiplier(stage: int) -> float:
    return _stage_ratio(stage, 3)

def effective_speed(combatant: Combatant) -> float:
    speed = effective_stat(combatant.speed, combatant.stages.speed)
    if combatant.status is Status.PARALYZED:
        speed *= 0.5
    return speed

# ---------------------------------------------------------------------------
# Type affinity
# ---------------------------------------------------------------------------

def type_affinity(attacking: Optional[ElementType], defending: Optional[ElementType]) -> float:
    """One cell of the affinity chart; a missing type on either side is neutral."""
    if attacking is None or defending is None:
        return 1.0
    return _TYPE_CHART[attacking].get(defending, 1.0)

def effectiveness(move_type: Optional[ElementType], defender: Combatant) -> float:
    return type_affinity(move_type, defender.primary_type) * type_affinity(move_type, defender.secondary_type)

def weather_affinity(move_type: Optional[ElementType], weather: Weather) -> float:
    if move_type is None or weather is Weather.NONE:
        return 1.0
    if _BOOSTING_WEATHER.get(move_type) is weather:
        return 1.5
    if _OPPOSING_WEATHER.get(move_type) is weather:
        return 0.5
    return 1.0

# ---------------------------------------------------------------------------
# Rolls
# ---------------------------------------------------------------------------

def hit_check(move: "MoveInstance", attacker: Combatant, defender: Combatant, rng: random.Random) -> bool:
    if move.accuracy is None:
        return True
    stage = clamp_stage(attacker.stages.accuracy - defender.stages.evasion)
    return (move.accuracy / 100) * effective_accuracy_multiplier(stage) >= rng.random()

def critical_hit_check(crit_stage: int, rng: random.Random) -> bool:
    p = _CRIT_TABLE.get(max(0, crit_stage))
    if p is None:
        return True
    return rng.random() < p

# ---------------------------------------------------------------------------
# Damage
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DamageRoll:
    damage: int
    critical: bool
    effectiveness: float
    weather: float
    stab: float

def compute_damage(move: "MoveInstance", attacker: Combatant, defender: Combatant,
                   weather: Weather, target_count: int, rng: random.Random,
                   crit_bonus: int = 0) -> DamageRoll:
    """Damage of one strike, floored and capped at the defender's remaining health."""
    if move.category is Category.PHYSICAL:
        off_stat, def_stat = Stat.ATTACK, Stat.DEFENSE
    else:
        off_stat, def_stat = Stat.SP_ATTACK, Stat.SP_DEFENSE
    off_stage = attacker.stages.get(off_stat)
    def_stage = defender.stages.get(def_stat)

    crit = critical_hit_check(attacker.stages.critical + crit_bonus, rng)
    if crit:
        off_stage = max(0, off_stage)
        def_stage = min(0, def_stage)

    offense = effective_stat(attacker.base_stat(off_stat), off_stage)
    defense = effective_stat(defender.base_stat(def_stat), def_stage)
    base = ((((2 * attacker.level / 5) + 2) * move.power * offense / defense) / 50) + 2

    spread = SPREAD_PENALTY if (move.spread and target_count > 1) else 1.0
    weather_mult = weather_affinity(move.type, weather)
    crit_mult = CRIT_MULTIPLIER if crit else 1.0
    roll = rng.uniform(0.85, 1.0)
    stab = STAB_MULTIPLIER if (move.type is not None and move.type in attacker.types) else 1.0
    eff = effectiveness(move.type, defender)
    burn = BURN_PENALTY if (move.category is Category.PHYSICAL and attacker.status is Status.BURNED) else 1.0

    raw = base * spread * weather_mult * crit_mult * roll * stab * eff * burn
    damage = min(math.floor(raw), max(0, defender.current_health))
    return DamageRoll(damage=damage, critical=crit, effectiveness=eff, weather=weather_mult, stab=stab)


__all__ = [
    "effective_stat", "effective_accuracy_multiplier", "effective_speed",
    "type_affinity", "effectiveness", "weather_affinity",
    "hit_check", "critical_hit_check", "compute_damage", "DamageRoll",
]
