"""Content catalogs: moves, effects, abilities and creatures by exact name.

Assets are JSON arrays validated against the schemas in ``assets/schema``.
The loaded :class:`Catalog` is read-only and built once per process; the
battle receives it explicitly.
"""
from __future__ import annotations
import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, TypeVar

import jsonschema

from battlesim.battle.abilities import AbilityTemplate
from battlesim.battle.effects import CONFUSION_HIT, EffectTemplate
from battlesim.battle.factory import CreatureTemplate
from battlesim.battle.moves import Field, Inflict, MoveTemplate
from battlesim.core.errors import CatalogError, DataLoadError
from battlesim.core.logging import logger
from battlesim.core.paths import ASSETS, SCHEMA

T = TypeVar("T")

# Names the engine itself looks up
REQUIRED_MOVES = ("Struggle", CONFUSION_HIT)


def _index(kind: str, items: Iterable[T]) -> Mapping[str, T]:
    table: Dict[str, T] = {}
    for item in items:
        name = getattr(item, "name")
        if name in table:
            raise DataLoadError(kind, f"duplicate name {name!r}")
        table[name] = item
    return MappingProxyType(table)


@dataclass(frozen=True)
class Catalog:
    moves: Mapping[str, MoveTemplate]
    effects: Mapping[str, EffectTemplate]
    abilities: Mapping[str, AbilityTemplate]
    creatures: Mapping[str, CreatureTemplate]

    @classmethod
    def build(cls, moves: Iterable[MoveTemplate] = (), effects: Iterable[EffectTemplate] = (),
              abilities: Iterable[AbilityTemplate] = (), creatures: Iterable[CreatureTemplate] = ()) -> "Catalog":
        return cls(
            moves=_index("moves", moves),
            effects=_index("effects", effects),
            abilities=_index("abilities", abilities),
            creatures=_index("creatures", creatures),
        )

    def move(self, name: str) -> MoveTemplate:
        try:
            return self.moves[name]
        except KeyError:
            raise CatalogError("move", name) from None

    def effect(self, name: str) -> EffectTemplate:
        try:
            return self.effects[name]
        except KeyError:
            raise CatalogError("effect", name) from None

    def ability(self, name: str) -> AbilityTemplate:
        try:
            return self.abilities[name]
        except KeyError:
            raise CatalogError("ability", name) from None

    def creature(self, name: str) -> CreatureTemplate:
        try:
            return self.creatures[name]
        except KeyError:
            raise CatalogError("creature", name) from None

    def check_references(self):
        """Resolve every cross-reference once so bad content fails at load time."""
        for name in REQUIRED_MOVES:
            self.move(name)
        for mv in self.moves.values():
            for b in mv.behaviors:
                if isinstance(b, (Inflict, Field)):
                    self.effect(b.effect)
        for creature in self.creatures.values():
            self.ability(creature.ability)
            for m in creature.moves:
                self.move(m)


@lru_cache(maxsize=None)
def _schema(name: str) -> Dict[str, Any]:
    return json.loads((SCHEMA / f"{name}.schema.json").read_text(encoding="utf-8"))


def _read(path: Path, schema_name: str) -> List[Dict[str, Any]]:
    if not path.exists():
        raise DataLoadError(str(path), "file not found")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise DataLoadError(str(path), f"invalid JSON: {e}") from e
    try:
        jsonschema.validate(raw, _schema(schema_name))
    except jsonschema.ValidationError as e:
        raise DataLoadError(str(path), f"schema: {e.message}") from e
    return raw


def _parse(path: Path, schema_name: str, parse: Callable[[Mapping[str, Any]], T]) -> List[T]:
    return [parse(entry) for entry in _read(path, schema_name)]


@lru_cache(maxsize=None)
def load_catalog(assets_dir: Path = ASSETS) -> Catalog:
    try:
        catalog = Catalog.build(
            moves=_parse(assets_dir / "moves.json", "moves", MoveTemplate.from_dict),
            effects=_parse(assets_dir / "effects.json", "effects", EffectTemplate.from_dict),
            abilities=_parse(assets_dir / "abilities.json", "abilities", AbilityTemplate.from_dict),
            creatures=_parse(assets_dir / "creatures.json", "creatures", CreatureTemplate.from_dict),
        )
        catalog.check_references()
    except (DataLoadError, CatalogError) as e:
        logger.error("CatalogLoadFailed", dir=str(assets_dir), error=str(e))
        raise
    logger.info("CatalogLoaded", moves=len(catalog.moves), effects=len(catalog.effects),
                abilities=len(catalog.abilities), creatures=len(catalog.creatures))
    return catalog


__all__ = ["Catalog", "load_catalog", "REQUIRED_MOVES"]
