"""Decision interface between the engine and whoever picks actions.

The engine never knows whether a human or an AI produced a choice; it only
calls the three methods of :class:`DecisionProvider`.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, TYPE_CHECKING

from .models import Combatant
from .moves import MoveInstance

if TYPE_CHECKING:  # pragma: no cover
    from .engine import Battle

STRUGGLE = "Struggle"


class Action(Enum):
    FIGHT = "Fight"
    SWITCH = "Switch"
    RUN = "Run"


@dataclass
class MoveChoice:
    move: MoveInstance
    target: Optional[Combatant] = None  # omitted for self and side-wide moves


class DecisionProvider(Protocol):
    def choose_action(self, combatant: Combatant, battle: "Battle") -> Action: ...
    def choose_move(self, combatant: Combatant, battle: "Battle") -> MoveChoice: ...
    def choose_switch(self, combatant: Combatant, battle: "Battle") -> Optional[Combatant]: ...


def struggle(battle: "Battle") -> MoveInstance:
    """Fresh copy of the fallback move for a combatant with no uses left."""
    return MoveInstance.of(battle.catalog.move(STRUGGLE))


__all__ = ["Action", "MoveChoice", "DecisionProvider", "struggle", "STRUGGLE"]
