"""
Battle system package.
Modules:
- models.py (Combatant, Stages, Side and the shared enums)
- formulas.py (stage multipliers, accuracy, crits, damage, type affinity)
- moves.py / effects.py / abilities.py (templates, instances, behaviour kinds)
- ledger.py (live effect instances and trigger dispatch)
- engine.py (turn state machine)
- decisions.py / ai.py (decision interface and computer players)
- factory.py / service.py (building combatants, running battles)
"""
