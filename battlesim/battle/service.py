"""Battle service: runs a battle to completion and reports the result.

Used by the CLI and by automated runs. Notifications are captured into the
result's log; an optional callback sees them as they happen.
"""
from __future__ import annotations
from typing import Callable, List, Literal, Mapping, Optional, Sequence, TypedDict
import random

from battlesim.core.logging import logger
from battlesim.data.catalog import Catalog, load_catalog
from .ai import AI_PROVIDERS, RandomDecisions
from .decisions import DecisionProvider
from .engine import Battle, Outcome
from .factory import combatant_from_name
from .models import Combatant, Team

DEFAULT_MAX_TURNS = 500


class BattleResult(TypedDict):
    outcome: Literal["WIN", "LOSS", "ESCAPED"]
    turns: int
    log: List[str]


class BattleService:
    def __init__(self, catalog: Optional[Catalog] = None):
        self._catalog = catalog

    @property
    def catalog(self) -> Catalog:
        if self._catalog is None:
            self._catalog = load_catalog()
        return self._catalog

    def build_party(self, names: Sequence[str], team: Team, level: int) -> List[Combatant]:
        return [combatant_from_name(n, level, team, self.catalog) for n in names]

    def run(self, allies: Sequence[Combatant], enemies: Sequence[Combatant], *,
            deciders: Optional[Mapping[Team, DecisionProvider]] = None, battle_size: int = 1,
            rng: Optional[random.Random] = None, seed: Optional[int] = None,
            max_turns: int = DEFAULT_MAX_TURNS,
            message_cb: Optional[Callable[[str], None]] = None,
            on_turn: Optional[Callable[[Battle], None]] = None) -> BattleResult:
        """Run to a terminal outcome; hitting ``max_turns`` counts as an escape."""
        log: List[str] = []

        def _capture(text: str):
            log.append(text)
            if message_cb:
                message_cb(text)

        deciders = deciders or {Team.ALLY: RandomDecisions(), Team.ENEMY: RandomDecisions()}
        battle = Battle(allies, enemies, catalog=self.catalog, deciders=deciders, battle_size=battle_size,
                        rng=rng or random.Random(seed), message_cb=_capture)
        battle.start()
        while battle.outcome is Outcome.UNDECIDED and battle.turn < max_turns:
            if on_turn:
                on_turn(battle)
            battle.play_turn()
        outcome = battle.outcome
        if outcome is Outcome.UNDECIDED:
            logger.warn("BattleTurnCapReached", turns=battle.turn, cap=max_turns)
            outcome = Outcome.ESCAPED
        return {"outcome": outcome.value, "turns": battle.turn, "log": log}  # type: ignore[typeddict-item]

    def quick_battle(self, ally_names: Sequence[str], enemy_names: Sequence[str], *, level: int = 50,
                     ai: str = "random", **kwargs) -> BattleResult:
        """Computer-vs-computer battle between two parties named from the catalog."""
        provider = AI_PROVIDERS[ai]
        allies = self.build_party(ally_names, Team.ALLY, level)
        enemies = self.build_party(enemy_names, Team.ENEMY, level)
        kwargs.setdefault("deciders", {Team.ALLY: provider(), Team.ENEMY: provider()})
        return self.run(allies, enemies, **kwargs)


battle_service = BattleService()

__all__ = ["BattleService", "BattleResult", "battle_service", "DEFAULT_MAX_TURNS"]
