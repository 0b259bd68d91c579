"""Element type metadata: identifiers, colors & abbreviations.

Provides:
  ElementType: the closed set of elemental types a creature or move can carry
  TYPE_COLORS_HEX: mapping type -> hex color string (#RRGGBB)
  TYPE_ABBREVIATIONS: mapping type -> 3-letter abbreviation (upper)
  helpers producing rich markup for type badges.
"""
from __future__ import annotations
from enum import Enum
from typing import Dict, Iterable, Optional


class ElementType(Enum):
    NORMAL = "normal"
    GRASS = "grass"
    WATER = "water"
    FIRE = "fire"
    ELECTRIC = "electric"
    GROUND = "ground"
    FLYING = "flying"
    ICE = "ice"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ElementType"]:
        """None (or an empty string) means typeless."""
        if not value:
            return None
        return cls(value.lower())


TYPE_COLORS_HEX: Dict[ElementType, str] = {
    ElementType.NORMAL: "#A8A77A",
    ElementType.GRASS: "#7AC74C",
    ElementType.WATER: "#6390F0",
    ElementType.FIRE: "#EE8130",
    ElementType.ELECTRIC: "#F7D02C",
    ElementType.GROUND: "#E2BF65",
    ElementType.FLYING: "#A98FF3",
    ElementType.ICE: "#96D9D6",
}

TYPE_ABBREVIATIONS: Dict[ElementType, str] = {
    ElementType.NORMAL: "NRM",
    ElementType.GRASS: "GRS",
    ElementType.WATER: "WTR",
    ElementType.FIRE: "FIR",
    ElementType.ELECTRIC: "ELE",
    ElementType.GROUND: "GRN",
    ElementType.FLYING: "FLY",
    ElementType.ICE: "ICE",
}


def type_abbreviation(element: Optional[ElementType]) -> str:
    if element is None:
        return "???"
    return TYPE_ABBREVIATIONS.get(element, element.value[:3].upper())


def colorize_type_text(element: Optional[ElementType], text: str) -> str:
    if element is None:
        return text
    hex_val = TYPE_COLORS_HEX[element]
    return f"[bold {hex_val}]{text}[/]"


def format_types(types: Iterable[ElementType]) -> str:
    parts = [colorize_type_text(t, type_abbreviation(t)) for t in types]
    return '/'.join(parts)


__all__ = [
    'ElementType', 'TYPE_COLORS_HEX', 'TYPE_ABBREVIATIONS',
    'colorize_type_text', 'type_abbreviation', 'format_types'
]
