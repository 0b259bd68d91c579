"""Turn engine: drives a battle from the first turn to a terminal outcome.

One round goes through these phases:

  AWAITING_ACTIONS       speed order, then one decision per active slot
  RESOLVING_SWITCHES     a slot's pending switch runs before its move
  RESOLVING_MOVES        start-of-turn hooks, then the queued move
  RESOLVING_END_OF_TURN  end-of-turn effects, aging, ability turn hooks
  CHECK_VICTORY          loss/win/undecided

Victory is also checked after every state-changing step, so a battle can
end in the middle of a round.
"""
from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence, TYPE_CHECKING
import random

from battlesim.core.errors import ValidationError
from battlesim.core.logging import logger
from .decisions import Action, DecisionProvider, struggle
from .formulas import effective_speed, hit_check
from .ledger import EffectLedger
from .models import (
    Combatant, HitRecord, Liveness, STAT_LABELS, Side, Stat, Status, Targeting, Team, Trigger, Weather,
)
from .moves import MoveInstance, Strike

if TYPE_CHECKING:  # pragma: no cover
    from battlesim.data.catalog import Catalog

MAX_BATTLE_SIZE = 3
NO_SWITCH_MESSAGE = "No other creatures are in a condition to fight!"


class Phase(Enum):
    AWAITING_ACTIONS = "awaiting-actions"
    RESOLVING_SWITCHES = "resolving-switches"
    RESOLVING_MOVES = "resolving-moves"
    RESOLVING_END_OF_TURN = "resolving-end-of-turn"
    CHECK_VICTORY = "check-victory"
    TERMINAL = "terminal"


class Outcome(Enum):
    UNDECIDED = "UNDECIDED"
    WIN = "WIN"
    LOSS = "LOSS"
    ESCAPED = "ESCAPED"


@dataclass
class MoveCommand:
    user: Combatant
    move: MoveInstance
    target: Optional[Combatant] = None


@dataclass
class SwitchCommand:
    switched_out: Combatant
    switched_in: Combatant


class Battle:
    def __init__(self, allies: Sequence[Combatant], enemies: Sequence[Combatant], *,
                 catalog: "Catalog", deciders: Mapping[Team, DecisionProvider], battle_size: int = 1,
                 rng: Optional[random.Random] = None, message_cb: Optional[Callable[[str], None]] = None):
        _validate_parties(allies, enemies, battle_size)
        self.sides: Dict[Team, Side] = {
            Team.ALLY: Side(Team.ALLY, list(allies[:battle_size]), list(allies[battle_size:])),
            Team.ENEMY: Side(Team.ENEMY, list(enemies[:battle_size]), list(enemies[battle_size:])),
        }
        self.catalog = catalog
        self.deciders = dict(deciders)
        self.battle_size = battle_size
        self.rng = rng or random.Random()
        self.message_cb = message_cb
        # Optional observer of health changes: (combatant, old, new, meta)
        self.hp_change_cb: Optional[Callable[[Combatant, int, int, dict], None]] = None
        self.effects = EffectLedger(self)
        self.weather = Weather.NONE
        self.turn = 0
        self.phase = Phase.AWAITING_ACTIONS
        self.outcome = Outcome.UNDECIDED
        self.order: List[Combatant] = []
        self.move_queue: List[Optional[MoveCommand]] = []
        self.switch_queue: List[Optional[SwitchCommand]] = []
        self._started = False

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def msg(self, text: str):
        logger.debug("Message", text=text)
        if self.message_cb:
            self.message_cb(text)

    # ------------------------------------------------------------------
    # Roster queries
    # ------------------------------------------------------------------
    def side(self, team: Team) -> Side:
        return self.sides[team]

    def active_combatants(self) -> List[Combatant]:
        return [*self.sides[Team.ALLY].active, *self.sides[Team.ENEMY].active]

    def allies_of(self, combatant: Combatant) -> List[Combatant]:
        return list(self.sides[combatant.team].active)

    def foes_of(self, combatant: Combatant) -> List[Combatant]:
        return list(self.sides[combatant.team.opponent()].active)

    def liveness(self, combatant: Combatant) -> Liveness:
        if not any(c is combatant for c in self.sides[combatant.team].active):
            return Liveness.REMOVED
        return Liveness.ACTIVE if combatant.current_health > 0 else Liveness.JUST_FAINTED

    def switch_candidates(self, combatant: Combatant) -> List[Combatant]:
        """Healthy reserve members not already claimed by a queued switch."""
        claimed = [s.switched_in for s in self.switch_queue if s is not None]
        return [c for c in self.sides[combatant.team].reserve
                if c.current_health > 0 and not any(c is x for x in claimed)]

    def can_switch(self, combatant: Combatant) -> bool:
        return bool(self.switch_candidates(combatant))

    def usable_moves(self, combatant: Combatant) -> List[MoveInstance]:
        return combatant.usable_moves() or [struggle(self)]

    def target_candidates(self, combatant: Combatant, move: MoveInstance) -> List[Combatant]:
        """Legal explicit targets; empty for moves that pick their own."""
        if move.targeting is not Targeting.SINGLE:
            return []
        foes = self.foes_of(combatant)
        # a fainted foe awaiting replacement is still aimable; retargeting follows the switch
        return [f for f in foes if f.current_health > 0] or foes

    # ------------------------------------------------------------------
    # Mutations shared by moves, effects and abilities
    # ------------------------------------------------------------------
    def apply_damage(self, target: Combatant, amount: int, *, cause: str = "damage",
                     meta: Optional[dict] = None) -> int:
        old = target.current_health
        target.current_health = old - max(0, int(amount))
        target.clamp_health()
        self._notify_hp_change(target, old, {"cause": cause, **(meta or {})})
        return old - target.current_health

    def apply_heal(self, target: Combatant, amount: int, *, cause: str = "heal",
                   meta: Optional[dict] = None) -> int:
        old = target.current_health
        target.current_health = old + max(0, int(amount))
        target.clamp_health()
        self._notify_hp_change(target, old, {"cause": cause, **(meta or {})})
        return target.current_health - old

    def _notify_hp_change(self, target: Combatant, old: int, meta: dict):
        logger.debug("HealthChange", target=target.label, old=old, new=target.current_health, **meta)
        if self.hp_change_cb:
            self.hp_change_cb(target, int(old), int(target.current_health), dict(meta))

    def change_stage(self, combatant: Combatant, stat: Stat, delta: int) -> int:
        actual = combatant.stages.shift(stat, delta)
        label = STAT_LABELS[stat]
        if actual == 0:
            direction = "higher" if delta > 0 else "lower"
            self.msg(f"{combatant.label}'s {label} won't go any {direction}!")
            return 0
        adverb = ""
        if abs(actual) == 2:
            adverb = " sharply"
        elif abs(actual) >= 3:
            adverb = " drastically"
        direction = " rose!" if actual > 0 else " fell!"
        self.msg(f"{combatant.label}'s {label}{adverb}{direction}")
        return actual

    def clamp_health(self):
        for side in self.sides.values():
            for c in side.members():
                c.clamp_health()

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------
    def sort_by_speed(self) -> List[Combatant]:
        """Active combatants, fastest first; ties are broken by the rng."""
        combatants = self.active_combatants()
        speeds = {id(c): effective_speed(c) for c in combatants}
        counts = Counter(speeds.values())
        draws = {id(c): self.rng.random() for c in combatants if counts[speeds[id(c)]] > 1}
        order = sorted(combatants, key=lambda c: (-speeds[id(c)], draws.get(id(c), 0.0)))
        for speed, n in counts.items():
            if n > 1:
                tied = [c.label for c in order if speeds[id(c)] == speed]
                self.msg(f"Speed tie between {' and '.join(tied)}! The order was decided at random.")
        return order

    # ------------------------------------------------------------------
    # Victory and fainting
    # ------------------------------------------------------------------
    def check_victory(self) -> Outcome:
        if self.outcome is not Outcome.UNDECIDED:
            return self.outcome
        if self.sides[Team.ALLY].all_fainted():
            self._finish(Outcome.LOSS)
        elif self.sides[Team.ENEMY].all_fainted():
            self._finish(Outcome.WIN)
        return self.outcome

    def _finish(self, outcome: Outcome):
        self.outcome = outcome
        self.phase = Phase.TERMINAL
        logger.info("BattleEnd", outcome=outcome.value, turn=self.turn)

    def check_death(self, order: Sequence[Combatant]):
        """Mark new faints in round order until a pass finds none."""
        while True:
            pool = list(order) + [c for c in self.active_combatants() if not any(c is o for o in order)]
            fallen = [c for c in pool if c.current_health <= 0 and c.status is not Status.FAINTED]
            if not fallen:
                return
            for c in fallen:
                if c.status is Status.FAINTED:
                    continue
                c.status = Status.FAINTED
                c.can_attack = False
                self.msg(f"{c.label} fainted!")
                logger.debug("Fainted", combatant=c.label, team=c.team.value)
                self.effects.on_death(c, order)
                c.ability.on_death(c, self)
                self.effects.purge_fainted(c)
                self.clamp_health()

    # ------------------------------------------------------------------
    # Switching
    # ------------------------------------------------------------------
    def switch(self, out: Combatant, incoming: Combatant, order: List[Combatant]):
        assert self.liveness(out) is not Liveness.REMOVED, f"{out.label} is not on the field"
        assert self.liveness(incoming) is Liveness.REMOVED, f"{incoming.label} is already on the field"
        assert incoming.current_health > 0, f"{incoming.label} cannot battle"
        side = self.sides[out.team]
        if out.current_health > 0:
            self.msg(f"{out.label}, come back!")
        out.ability.on_switch_out(out, self)
        self.effects.on_switch(out, Trigger.ON_SWITCH_OUT, order)
        self.check_death(order)
        self.effects.purge_switched_out(out)
        out.reset_volatile()
        side.swap(out, incoming)
        for i, c in enumerate(order):
            if c is out:
                order[i] = incoming
        logger.debug("Switch", team=out.team.value, out=out.label, incoming=incoming.label)
        self.msg(f"Go! {incoming.label}!")
        incoming.ability.reset_counter()
        incoming.ability.on_switch_in(incoming, self)
        self.effects.on_switch(incoming, Trigger.ON_SWITCH_IN, order)
        self.clamp_health()
        self.check_death(order)
        for cmd in self.move_queue:
            if cmd is not None and cmd.target is out:
                cmd.target = incoming

    # ------------------------------------------------------------------
    # Turn loop
    # ------------------------------------------------------------------
    def start(self):
        """Fire the opening switch-in abilities; idempotent."""
        if self._started:
            return
        self._started = True
        logger.info("BattleStart", allies=len(self.sides[Team.ALLY].members()),
                    enemies=len(self.sides[Team.ENEMY].members()), size=self.battle_size)
        order = self.sort_by_speed()
        for c in order:
            self.msg(f"{c.label} entered the battle!")
        for c in order:
            c.ability.reset_counter()
            if c.current_health > 0:
                c.ability.on_switch_in(c, self)
        self.clamp_health()
        self.check_death(order)
        self.check_victory()

    def run(self, max_turns: Optional[int] = None) -> Outcome:
        self.start()
        while self.outcome is Outcome.UNDECIDED:
            if max_turns is not None and self.turn >= max_turns:
                break
            self.play_turn()
        return self.outcome

    def play_turn(self) -> Outcome:
        self.start()
        if self.outcome is not Outcome.UNDECIDED:
            return self.outcome
        self.turn += 1
        logger.debug("TurnStart", turn=self.turn)
        self.phase = Phase.AWAITING_ACTIONS
        order = self.sort_by_speed()
        self.order = order
        self._collect_actions(order)
        if self.outcome is not Outcome.UNDECIDED:
            return self.outcome

        for i in range(len(order)):
            pending = self.switch_queue[i]
            if pending is not None:
                self.phase = Phase.RESOLVING_SWITCHES
                self.switch(pending.switched_out, pending.switched_in, order)
                if self.check_victory() is not Outcome.UNDECIDED:
                    return self.outcome
            self.phase = Phase.RESOLVING_MOVES
            c = order[i]
            if c.current_health <= 0:
                continue
            c.ability.on_turn_start(c, self)
            self.effects.start_of_turn(c, order)
            if self.check_victory() is not Outcome.UNDECIDED:
                return self.outcome
            cmd = self.move_queue[i]
            if cmd is None or c.current_health <= 0 or not c.can_attack:
                continue
            assert cmd.user is c, f"queued move of {cmd.user.label} in the slot of {c.label}"
            self._use_move(cmd, order)
            if self.check_victory() is not Outcome.UNDECIDED:
                return self.outcome

        self.phase = Phase.RESOLVING_END_OF_TURN
        self.effects.end_of_turn(order)
        for c in order:
            if self.liveness(c) is Liveness.ACTIVE:
                c.ability.on_turn_end(c, self)
                c.ability.tick()
        self.clamp_health()
        self.check_death(order)
        self.phase = Phase.CHECK_VICTORY
        return self.check_victory()

    def _collect_actions(self, order: Sequence[Combatant]):
        self.move_queue = [None] * len(order)
        self.switch_queue = [None] * len(order)
        for i, c in enumerate(order):
            decider = self.deciders[c.team]
            if c.current_health <= 0:
                # forced replacement; the newcomer acts in this slot
                if not self.can_switch(c):
                    continue
                incoming = decider.choose_switch(c, self)
                if incoming is None:
                    continue
                assert any(incoming is x for x in self.switch_candidates(c))
                self.switch_queue[i] = SwitchCommand(c, incoming)
                choice = decider.choose_move(incoming, self)
                self.move_queue[i] = MoveCommand(incoming, choice.move, choice.target)
                continue
            while True:
                action = decider.choose_action(c, self)
                if action is Action.RUN:
                    self.msg("Got away safely!" if c.team is Team.ALLY else f"{c.label} fled!")
                    self._finish(Outcome.ESCAPED)
                    return
                if action is Action.SWITCH:
                    if not self.can_switch(c):
                        self.msg(NO_SWITCH_MESSAGE)
                        continue
                    incoming = decider.choose_switch(c, self)
                    if incoming is None:
                        continue
                    assert any(incoming is x for x in self.switch_candidates(c))
                    self.switch_queue[i] = SwitchCommand(c, incoming)
                    break
                choice = decider.choose_move(c, self)
                self.move_queue[i] = MoveCommand(c, choice.move, choice.target)
                break

    def _move_targets(self, cmd: MoveCommand) -> List[Combatant]:
        user, mode = cmd.user, cmd.move.targeting
        if mode is Targeting.SELF:
            return [user]
        if mode is Targeting.SINGLE:
            if cmd.target is None:
                return []
            assert self.liveness(cmd.target) is not Liveness.REMOVED, \
                f"{cmd.move.name} aimed at {cmd.target.label}, who left the field"
            return [cmd.target]
        if mode is Targeting.ALLIES:
            pool = self.allies_of(user)
        elif mode is Targeting.FOES:
            pool = self.foes_of(user)
        else:
            pool = [c for c in self.active_combatants() if c is not user]
        return [c for c in pool if c.current_health > 0]

    def _use_move(self, cmd: MoveCommand, order: Sequence[Combatant]):
        user, move = cmd.user, cmd.move
        self.msg(f"{user.label} used {move.name}!")
        move.spend()
        targets = self._move_targets(cmd)
        move.on_use(user, targets, self)
        if not targets and move.targeting is not Targeting.SELF:
            self.msg("But there was no target...")
        for target in targets:
            if target.current_health <= 0:
                self.msg("But it failed!")
                logger.debug("MoveFailed", move=move.name, target=target.label, reason="fainted")
                continue
            strike = Strike(move, user, target, target_count=len(targets))
            if hit_check(move, user, target, self.rng):
                move.execute(strike, self)
                if target is not user:
                    target.last_hit_by = HitRecord(move, user)
            else:
                self.msg(f"{user.label}'s attack missed!")
                move.on_miss(strike, self)
        move.clamp_points()
        self.clamp_health()
        self.check_death(order)


def _validate_parties(allies: Sequence[Combatant], enemies: Sequence[Combatant], battle_size: int):
    if not 1 <= battle_size <= MAX_BATTLE_SIZE:
        raise ValidationError(f"battle size must be between 1 and {MAX_BATTLE_SIZE}, got {battle_size}")
    seen: List[Combatant] = []
    for team, party in ((Team.ALLY, allies), (Team.ENEMY, enemies)):
        if not party:
            raise ValidationError(f"the {team.value} party is empty")
        if len(party) < battle_size:
            raise ValidationError(f"the {team.value} party has {len(party)} members for a size {battle_size} battle")
        for c in party:
            if c.team is not team:
                raise ValidationError(f"{c.label} is on the {c.team.value} team, not {team.value}")
            if any(c is s for s in seen):
                raise ValidationError(f"{c.label} is listed twice")
            seen.append(c)


__all__ = ["Battle", "Phase", "Outcome", "MoveCommand", "SwitchCommand", "NO_SWITCH_MESSAGE", "MAX_BATTLE_SIZE"]
