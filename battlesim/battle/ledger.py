"""The effect ledger: the battle's registry of live effect instances.

Trigger dispatch points are called by the engine at fixed moments of the
turn. Every ``apply`` ends with a health clamp and a death check, so chained
faints resolve in round order.

Removal comes in two flavours:
  * expiry: the duration ran out; the deletion hook runs for every resolved
    target, then the instance leaves the ledger.
  * discard/purge: hard removal (switch invalidation, replaced weather); no
    hook runs.
"""
from __future__ import annotations
from typing import Iterator, List, Optional, Sequence, Type, TYPE_CHECKING

from battlesim.core.logging import logger
from .effects import EffectBehavior, EffectInstance, EffectTemplate
from .models import Combatant, Liveness, Targeting, Trigger

if TYPE_CHECKING:  # pragma: no cover
    from .engine import Battle

# Triggers that never fire at end of turn; their instances are swept once
# aging runs them out.
EVENT_TRIGGERS = frozenset({Trigger.ON_DEATH, Trigger.ON_SWITCH_IN, Trigger.ON_SWITCH_OUT})


class EffectLedger:
    def __init__(self, battle: "Battle"):
        self.battle = battle
        self._effects: List[EffectInstance] = []

    def __len__(self) -> int:
        return len(self._effects)

    def __iter__(self) -> Iterator[EffectInstance]:
        return iter(list(self._effects))

    def __contains__(self, effect: object) -> bool:
        return any(e is effect for e in self._effects)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def exists(self, name: str, owner: Optional[Combatant], target: Optional[Combatant]) -> bool:
        return any(e.name == name and e.owner is owner and e.target is target for e in self._effects)

    def find(self, name: str) -> List[EffectInstance]:
        return [e for e in self._effects if e.name == name]

    def find_kind(self, kind: Type[EffectBehavior]) -> List[EffectInstance]:
        return [e for e in self._effects if isinstance(e.template.behavior, kind)]

    def attached_to(self, combatant: Combatant) -> List[EffectInstance]:
        return [e for e in self._effects if e.attached_to(combatant)]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def add(self, template: EffectTemplate, owner: Optional[Combatant] = None,
            target: Optional[Combatant] = None) -> Optional[EffectInstance]:
        """Create an instance unless the same (name, owner, target) is live.

        Returns the new instance, or None when the call was a duplicate.
        """
        if self.exists(template.name, owner, target):
            logger.debug("EffectDuplicate", effect=template.name)
            return None
        effect = EffectInstance.create(template, owner, target, self.battle.rng)
        effect.say("announce", target, self.battle)
        for t in self.resolve_targets(effect):
            effect.on_creation(t, self.battle)
        self._effects.append(effect)
        logger.debug("EffectAdded", effect=effect.name, owner=_label(owner), target=_label(target),
                     duration=effect.duration)
        return effect

    def discard(self, effect: EffectInstance):
        before = len(self._effects)
        self._effects = [e for e in self._effects if e is not effect]
        if len(self._effects) != before:
            logger.debug("EffectDiscarded", effect=effect.name)

    def purge_switched_out(self, combatant: Combatant):
        """Hard-remove every end-on-switch effect attached to ``combatant``."""
        for effect in self.attached_to(combatant):
            if effect.template.end_on_switch:
                self.discard(effect)
                logger.debug("EffectPurged", effect=effect.name, target=combatant.label)

    def purge_fainted(self, combatant: Combatant):
        """Hard-remove effects aimed at a combatant that has fainted."""
        for effect in [e for e in self._effects if e.target is combatant]:
            self.discard(effect)
            logger.debug("EffectPurged", effect=effect.name, target=combatant.label)

    def resolve_targets(self, effect: EffectInstance) -> List[Combatant]:
        battle = self.battle
        mode = effect.template.targeting
        if mode is Targeting.SELF:
            # owner resolves whatever its liveness; on-death effects rely on it
            return [effect.owner] if effect.owner is not None else []
        if mode is Targeting.SINGLE:
            t = effect.target
            return [t] if t is not None and battle.liveness(t) is Liveness.ACTIVE else []
        if effect.owner is None:
            pool = battle.active_combatants()
        elif mode is Targeting.ALLIES:
            pool = battle.allies_of(effect.owner)
        elif mode is Targeting.FOES:
            pool = battle.foes_of(effect.owner)
        else:
            pool = battle.active_combatants()
        return [c for c in pool if battle.liveness(c) is Liveness.ACTIVE]

    def apply(self, effect: EffectInstance, order: Sequence[Combatant], only: Optional[Combatant] = None):
        """Run one tick of ``effect``: execute it, or expire it if its time is up."""
        if effect not in self:
            return
        targets = self.resolve_targets(effect)
        if only is not None:
            targets = [t for t in targets if t is only]
        if effect.expired():
            for t in targets:
                effect.on_deletion(t, self.battle)
            self.discard(effect)
            logger.debug("EffectExpired", effect=effect.name)
        else:
            for t in targets:
                if effect not in self:
                    break
                effect.execute(t, self.battle)
        self.battle.clamp_health()
        self.battle.check_death(order)

    # ------------------------------------------------------------------
    # Trigger dispatch
    # ------------------------------------------------------------------
    def start_of_turn(self, combatant: Combatant, order: Sequence[Combatant]):
        for effect in self:
            if effect.trigger is Trigger.START_OF_TURN and effect in self \
                    and any(t is combatant for t in self.resolve_targets(effect)):
                self.apply(effect, order, only=combatant)

    def end_of_turn(self, order: Sequence[Combatant]):
        for effect in self:
            if effect.trigger is Trigger.END_OF_TURN:
                self.apply(effect, order)
        self.age()
        for effect in self:
            if effect.trigger in EVENT_TRIGGERS and effect.expired():
                self.apply(effect, order)
        self.release_holds()

    def on_death(self, combatant: Combatant, order: Sequence[Combatant]):
        for effect in self:
            if effect.trigger is Trigger.ON_DEATH and effect.owner is combatant:
                # consumed by the trigger: what resolves is the deletion hook
                effect.duration = 0
                self.apply(effect, order)

    def on_switch(self, combatant: Combatant, trigger: Trigger, order: Sequence[Combatant]):
        for effect in self:
            if effect.trigger is trigger and effect in self \
                    and any(t is combatant for t in self.resolve_targets(effect)):
                self.apply(effect, order, only=combatant)

    def age(self):
        """One round passes for every instance, fired or not."""
        for effect in self._effects:
            if effect.turn is not None:
                effect.turn += 1
            if effect.duration is not None:
                effect.duration -= 1

    def release_holds(self):
        for effect in self._effects:
            if effect.holding_attack:
                effect.holding_attack = False
                subject = effect.target if effect.target is not None else effect.owner
                if subject is not None and subject.current_health > 0:
                    subject.release_attack()


def _label(c: Optional[Combatant]) -> str:
    return c.label if c is not None else "-"


__all__ = ["EffectLedger", "EVENT_TRIGGERS"]
