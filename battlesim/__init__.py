"""battlesim: a turn-based creature battle simulator.

Subpackages:
- core     logging, errors, paths, element types
- data     content catalogs loaded from JSON assets
- battle   formulas, combatants, moves/effects/abilities, ledger, turn engine, AI
- system   persisted settings
- ui       rich console rendering and menus
"""
__version__ = "0.1.0"
