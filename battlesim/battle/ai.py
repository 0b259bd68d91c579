"""Computer-controlled decision providers."""
from __future__ import annotations
from typing import List, Optional, Tuple, TYPE_CHECKING
import random

from .decisions import Action, MoveChoice
from .formulas import STAB_MULTIPLIER, effectiveness
from .models import Category, Combatant
from .moves import MoveInstance

if TYPE_CHECKING:  # pragma: no cover
    from .engine import Battle


class RandomDecisions:
    """Always fights; picks a random usable move and a random legal target."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng

    def _rng(self, battle: "Battle") -> random.Random:
        return self.rng or battle.rng

    def choose_action(self, combatant: Combatant, battle: "Battle") -> Action:
        return Action.FIGHT

    def choose_move(self, combatant: Combatant, battle: "Battle") -> MoveChoice:
        rng = self._rng(battle)
        move = rng.choice(battle.usable_moves(combatant))
        targets = battle.target_candidates(combatant, move)
        return MoveChoice(move, rng.choice(targets) if targets else None)

    def choose_switch(self, combatant: Combatant, battle: "Battle") -> Optional[Combatant]:
        candidates = battle.switch_candidates(combatant)
        if not candidates:
            return None
        return self._rng(battle).choice(candidates)


def move_score(move: MoveInstance, user: Combatant, target: Combatant) -> float:
    if move.category is Category.STATUS or not move.power:
        return 0.0
    stab = STAB_MULTIPLIER if (move.type is not None and move.type in user.types) else 1.0
    return move.power * effectiveness(move.type, target) * stab


class GreedyDecisions(RandomDecisions):
    """Picks the move and target with the best power x affinity score.

    Falls back to a random choice when nothing scores above zero; forced
    switches bring in the healthiest reserve member.
    """

    def choose_move(self, combatant: Combatant, battle: "Battle") -> MoveChoice:
        best: Optional[Tuple[float, MoveInstance, Optional[Combatant]]] = None
        for move in battle.usable_moves(combatant):
            targets: List[Optional[Combatant]] = list(battle.target_candidates(combatant, move))
            scored = targets or [f for f in battle.foes_of(combatant) if f.current_health > 0]
            for target in scored:
                score = move_score(move, combatant, target)
                if best is None or score > best[0]:
                    best = (score, move, target if targets else None)
        if best is None or best[0] <= 0:
            return super().choose_move(combatant, battle)
        return MoveChoice(best[1], best[2])

    def choose_switch(self, combatant: Combatant, battle: "Battle") -> Optional[Combatant]:
        candidates = battle.switch_candidates(combatant)
        if not candidates:
            return None
        return max(candidates, key=lambda c: c.current_health / c.max_health)


AI_PROVIDERS = {
    "random": RandomDecisions,
    "greedy": GreedyDecisions,
}

__all__ = ["RandomDecisions", "GreedyDecisions", "move_score", "AI_PROVIDERS"]
